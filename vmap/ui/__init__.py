"""Pygame-facing pieces: input, rendering, overlays and the composed panel."""

"""
Utilities package marker.

Settings, logging, the change-notification bus and pygame bootstrap helpers
live here; nothing in this package draws.
"""
__all__ = ["settings", "logging_setup", "event_bus", "pygame_bootstrap", "error_report"]

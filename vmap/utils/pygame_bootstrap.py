# vmap/utils/pygame_bootstrap.py
from __future__ import annotations

import os
from typing import Optional, Tuple


def is_headless() -> bool:
    return (
        os.environ.get("VMAP_HEADLESS") == "1"
        or os.environ.get("CI", "").lower() == "true"
        or os.environ.get("SDL_VIDEODRIVER") == "dummy"
    )


def configure_environment(headless: Optional[bool] = None) -> None:
    """
    SDL/Pygame environment knobs; call before the first pygame.display use.
    Safe to call multiple times.
    """
    os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
    os.environ.setdefault("SDL_HINT_RENDER_SCALE_QUALITY", "1")
    if headless is None:
        headless = is_headless()
    if headless:
        os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
        os.environ.setdefault("SDL_AUDIODRIVER", "dummy")


def init_pygame_display(size: Tuple[int, int] = (1, 1), *, caption: str = "Virtual Map",
                        resizable: bool = True, headless: Optional[bool] = None):
    """
    Robust pygame bootstrap:
      - Configures 'dummy' drivers in CI/headless runs (no window/audio device required).
      - Ensures display and font modules are initialized.
      - Falls back to the dummy driver if the system driver fails.

    Returns:
        A pygame display surface (even in headless mode).
    """
    configure_environment(headless)

    import pygame  # local import after env is set

    pygame.init()
    if not pygame.display.get_init():
        pygame.display.init()

    flags = pygame.RESIZABLE if resizable else 0
    try:
        surf = pygame.display.set_mode(size, flags)
    except pygame.error:
        os.environ["SDL_VIDEODRIVER"] = "dummy"
        pygame.display.quit()
        pygame.display.init()
        surf = pygame.display.set_mode(size)
    pygame.display.set_caption(caption)

    if not pygame.font.get_init():
        pygame.font.init()

    return surf

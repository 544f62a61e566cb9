# tests/conftest.py
from __future__ import annotations
import os
import sys
from pathlib import Path
import pytest

# Ensure repo root is importable (so `import vmap...` works without installing)
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Headless pygame setup
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

from tests.util_asserts import FakeClock  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _init_pygame():
    try:
        import pygame
        pygame.init()
        # tiny hidden display so font/surface paths behave as in the app
        pygame.display.set_mode((1, 1))
        yield
    finally:
        try:
            import pygame
            pygame.quit()
        except Exception:
            pass


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock):
    from vmap.core.map_state import MapStore
    return MapStore(width=800, height=600, now_fn=clock)

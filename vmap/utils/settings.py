# vmap/utils/settings.py
"""
Centralized settings and constants for the map engine.
"""

# --- Zoom ---
MIN_ZOOM = 3
MAX_ZOOM = 10
INITIAL_ZOOM = 4
INITIAL_CENTER = (500.0, 500.0)

# Fallback surface size when the host container reports nothing usable.
DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600

# --- Animation (milliseconds) ---
CENTER_ANIM_MIN_MS = 100.0
CENTER_ANIM_MAX_MS = 500.0
CENTER_ANIM_MS_PER_UNIT = 0.5
ZOOM_ANIM_MIN_MS = 100.0
ZOOM_ANIM_MAX_MS = 400.0
ZOOM_ANIM_MS_PER_LEVEL = 80.0

# --- Drag ---
DRAG_DAMPING = 0.5
DRAG_MIN_DELTA = 1.0

# --- Input ---
CLICK_SLOP_PX = 3.0
HOVER_DEBOUNCE_MS = 30.0
HIT_RADIUS_BASE = 25.0
HIT_RADIUS_PER_ZOOM = 2.0
HIT_RADIUS_MAX = 40.0
WHEEL_STEP = 0.15
WHEEL_STEP_FALLOFF = 0.05
PINCH_GAIN = 0.5

# --- Rendering ---
MIN_FRAME_INTERVAL_MS = 16.0
STATS_INTERVAL_MS = 1000.0
GRID_MAX_ZOOM = 6
GRID_BASE_SPACING = 50.0
GRID_LINE_WIDTH = 1
REGION_LABEL_MIN_ZOOM = 5
WAYPOINT_MIN_ZOOM = 6
POI_LABEL_MIN_ZOOM = 6
POI_CULL_MARGIN = 100.0
CLUSTER_ZOOM_THRESHOLD = 7
CLUSTER_CELL_BASE = 60.0
CLUSTER_CELL_PER_ZOOM = 5.0
CLUSTER_CELL_MIN = 20.0
HOVER_SCALE = 1.3
DESCRIPTION_MAX_CHARS = 30
MARKER_BORDER_COLOR = (255, 255, 255)
DEFAULT_PATH_WIDTH = 3

# Screen coordinates handed to pygame.draw are clamped to this range.
SAFE_COORD_MIN = -2_000_000_000
SAFE_COORD_MAX = 2_000_000_000

# --- Fonts ---
FONT_NAME = "Arial"
LABEL_FONT_SIZE = 14
SMALL_FONT_SIZE = 12
CONTROL_FONT_SIZE = 16

# --- Controls overlay ---
CONTROL_BUTTON_SIZE = 40
CONTROL_MARGIN = 16
CONTROL_GAP = 8
CONTROL_BG_COLOR = (255, 255, 255)
CONTROL_BORDER_COLOR = (229, 231, 235)
CONTROL_TEXT_COLOR = (31, 41, 55)
CONTROL_DISABLED_COLOR = (156, 163, 175)
SCALE_BAR_COLOR = (59, 130, 246)
SCALE_BAR_SEGMENTS = 18

# --- Debug / perf overlay ---
DEBUG_PANEL_BG_COLOR = (10, 10, 30)
DEBUG_PANEL_FONT_COLOR = (240, 240, 240)
DEBUG_PANEL_FONT_SIZE = 16

WINDOW_TITLE = "Virtual Map"
FPS = 60

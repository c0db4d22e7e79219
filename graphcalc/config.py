"""
Configuration & Constants
=========================
Central registry for the numbers that shape the graphing surface: the default
view, zoom limits, hit-test tolerance, numerical search parameters, drawing
sizes and the location of the saved-graph history file.
"""
import os
from pathlib import Path

# ---------------- View ----------------

DEFAULT_PAN_X: float = 0.0
DEFAULT_PAN_Y: float = 0.0
DEFAULT_ZOOM: float = 50.0        # pixels per world unit
ZOOM_FACTOR: float = 1.1
MIN_ZOOM: float = 0.1

# ---------------- Interaction ----------------

HIT_TOLERANCE_PX: float = 20.0
DRAG_THRESHOLD_PX: float = 2.0

# ---------------- Numerical analysis ----------------

SCAN_STEPS: int = 1000
BISECTION_TOLERANCE: float = 1e-7
BISECTION_MAX_ITERATIONS: int = 100

ROOT_PREFIX: str = "Root"
INTERSECT_PREFIX: str = "Intersect"
EXTREMUM_PREFIX: str = "Extremum"

# ---------------- Drawing ----------------

MIN_GRID_GAP_PX: float = 60.0
POINT_RADIUS_PX: float = 4.0
DERIVED_POINT_RADIUS_PX: float = 5.0
CURVE_WIDTH_PX: float = 2.0
SELECTED_CURVE_WIDTH_PX: float = 4.0
GLOW_WIDTH_PX: float = 15.0
AXIS_WIDTH_PX: float = 2.0
GRID_WIDTH_PX: float = 1.0
ANGLE_ARC_RADIUS_PX: float = 25.0
LABEL_FONT_SIZE: float = 9.0

GRID_COLOR: str = "#e2e5ea"
AXIS_COLOR: str = "#1f2430"
POINT_COLOR: str = "#2f5bd3"
DERIVED_POINT_COLOR: str = "#e0771b"
LABEL_COLOR: str = "#1f2430"
SEGMENT_COLOR: str = "#3a7d44"
POLYGON_COLOR: str = "#7b3fb5"
ANGLE_COLOR: str = "#c2185b"
PREVIEW_COLOR: str = "#888888"
FUNCTION_PALETTE: tuple = (
    "#d62728", "#1f77b4", "#2ca02c", "#9467bd", "#ff7f0e",
    "#17becf", "#8c564b", "#e377c2", "#bcbd22", "#7f7f7f",
)

# ---------------- Objects ----------------

DEFAULT_FUNCTION: str = "x^2"
DEFAULT_SLIDER_MIN: float = -5.0
DEFAULT_SLIDER_MAX: float = 5.0
DEFAULT_SLIDER_STEP: float = 0.1
DEFAULT_SLIDER_VALUE: float = 1.0

# ---------------- Render loop ----------------

FRAME_INTERVAL_MS: int = 40

# ---------------- History ----------------

HISTORY_PATH: Path = Path(
    os.environ.get("GRAPHCALC_HISTORY", Path.home() / ".graphcalc" / "history.json")
)

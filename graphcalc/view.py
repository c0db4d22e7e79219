"""
View transform between world space (y up) and screen pixels (y down).

    sx =  x*zoom + width/2 + pan_x        x =  (sx - width/2 - pan_x) / zoom
    sy = -y*zoom + height/2 + pan_y       y = -(sy - height/2 - pan_y) / zoom
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from graphcalc import config


@dataclass(frozen=True)
class ViewBounds:
    """Visible world rectangle."""
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


@dataclass
class ViewTransform:
    pan_x: float = config.DEFAULT_PAN_X
    pan_y: float = config.DEFAULT_PAN_Y
    zoom: float = config.DEFAULT_ZOOM

    def __post_init__(self):
        if not self.zoom > 0:
            raise ValueError(f"zoom must be positive, got {self.zoom}")

    # ----- Mapping -----

    def world_to_screen(self, x: float, y: float, width: float, height: float) -> Tuple[float, float]:
        return (x * self.zoom + width / 2 + self.pan_x,
                -y * self.zoom + height / 2 + self.pan_y)

    def screen_to_world(self, sx: float, sy: float, width: float, height: float) -> Tuple[float, float]:
        return ((sx - width / 2 - self.pan_x) / self.zoom,
                -(sy - height / 2 - self.pan_y) / self.zoom)

    def bounds(self, width: float, height: float) -> ViewBounds:
        min_x, max_y = self.screen_to_world(0, 0, width, height)
        max_x, min_y = self.screen_to_world(width, height, width, height)
        return ViewBounds(min_x, max_x, min_y, max_y)

    def pixels_to_world(self, pixels: float) -> float:
        """Length in world units of ``pixels`` screen pixels."""
        return pixels / self.zoom

    def hit_tolerance(self) -> float:
        return self.pixels_to_world(config.HIT_TOLERANCE_PX)

    # ----- Navigation -----

    def pan(self, dx: float, dy: float) -> None:
        self.pan_x += dx
        self.pan_y += dy

    def zoom_wheel(self, delta_y: float) -> None:
        """Negative delta (wheel up) zooms in, positive zooms out."""
        if delta_y < 0:
            zoom = self.zoom * config.ZOOM_FACTOR
        elif delta_y > 0:
            zoom = self.zoom / config.ZOOM_FACTOR
        else:
            return
        self.zoom = max(config.MIN_ZOOM, zoom)

    def reset(self) -> None:
        self.pan_x, self.pan_y, self.zoom = config.DEFAULT_PAN_X, config.DEFAULT_PAN_Y, config.DEFAULT_ZOOM

    def to_dict(self) -> dict:
        return {"pan_x": self.pan_x, "pan_y": self.pan_y, "zoom": self.zoom}


def nice_grid_step(zoom: float, min_gap_px: float = config.MIN_GRID_GAP_PX) -> float:
    """Smallest 1, 2 or 5 x 10^k world step that is at least ``min_gap_px`` apart on screen."""
    min_step = min_gap_px / zoom
    exponent = math.floor(math.log10(min_step))
    base = 10.0 ** exponent
    for mult in (1.0, 2.0, 5.0, 10.0):
        step = mult * base
        # tolerate rounding in base so an exact fit is not pushed to the next step
        if step >= min_step * (1 - 1e-9):
            return step
    return 10.0 * base

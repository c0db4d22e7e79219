"""Plane geometry helpers in world coordinates."""
from __future__ import annotations

import math
from typing import Optional, Tuple

Vec = Tuple[float, float]

# Vectors shorter than this are treated as zero-length.
EPS = 1e-12


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)


def midpoint(x1: float, y1: float, x2: float, y2: float) -> Vec:
    return (x1 + x2) / 2.0, (y1 + y2) / 2.0


def distance_to_segment(px: float, py: float, x1: float, y1: float, x2: float, y2: float) -> float:
    """Shortest distance from (px, py) to the segment (x1, y1)-(x2, y2)."""
    dx, dy = x2 - x1, y2 - y1
    length_sq = dx * dx + dy * dy
    if length_sq < EPS:
        return distance(px, py, x1, y1)
    t = ((px - x1) * dx + (py - y1) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return distance(px, py, x1 + t * dx, y1 + t * dy)


def angle_degrees(vertex: Vec, arm1: Vec, arm2: Vec) -> Optional[float]:
    """Angle arm1-vertex-arm2 in degrees, in [0, 180].

    Returns None when either arm has zero length.
    """
    ux, uy = arm1[0] - vertex[0], arm1[1] - vertex[1]
    vx, vy = arm2[0] - vertex[0], arm2[1] - vertex[1]
    nu, nv = math.hypot(ux, uy), math.hypot(vx, vy)
    if nu < EPS or nv < EPS:
        return None
    return math.degrees(abs(math.atan2(ux * vy - uy * vx, ux * vx + uy * vy)))


def direction(vertex: Vec, point: Vec) -> float:
    """Polar angle (radians) of point as seen from vertex."""
    return math.atan2(point[1] - vertex[1], point[0] - vertex[0])

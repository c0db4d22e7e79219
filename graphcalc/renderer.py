"""
Frame renderer.

Draws the scene through a :class:`~graphcalc.surface.Surface` in a fixed order:
grid, axes, functions, points, segments, polygons, measurements, angles, then
the polygon under construction. World geometry is drawn with the surface
transform set to the view (translate to the origin, scale by zoom with y
flipped); sizes that must stay constant on screen are divided by zoom.

Rendering reads the scene and never changes it.
"""
from __future__ import annotations

import logging
import math
from typing import Callable, Collection, Mapping, Optional, Tuple

import numpy as np

from graphcalc import config
from graphcalc.errors import ExpressionError
from graphcalc.geometry import angle_degrees, direction
from graphcalc.interaction import PolygonConstruction
from graphcalc.scene import Angle, Func, Measurement, Point, Polygon, Scene, Segment
from graphcalc.surface import Surface
from graphcalc.view import ViewBounds, ViewTransform, nice_grid_step

logger = logging.getLogger(__name__)


def _tick_label(value: float, step: float) -> str:
    decimals = max(0, -int(math.floor(math.log10(step))))
    return f"{value:.{decimals}f}"


class Renderer:
    def __init__(self, surface: Surface):
        self.surface = surface
        self.grid_step: float = 1.0

    def render(self, scene: Scene, view: ViewTransform,
               selected: Collection[str] = (),
               construction: object = None,
               cursor: Optional[Tuple[float, float]] = None) -> None:
        """Draw one frame. ``cursor`` is the pointer position in world units, if known."""
        s = self.surface
        width, height = s.size
        s.clear()
        if width <= 0 or height <= 0:
            return

        bounds = view.bounds(width, height)
        self.grid_step = nice_grid_step(view.zoom)
        px = 1.0 / view.zoom  # one screen pixel in world units

        s.save()
        s.translate(width / 2 + view.pan_x, height / 2 + view.pan_y)
        s.scale(view.zoom, -view.zoom)

        self._draw_grid(bounds, px)
        self._draw_axes(bounds)

        scope = scene.scope()
        for func in scene.functions():
            self._draw_function(func, view, width, height, bounds, scope, func.id in selected)
        for point in scene.points():
            self._draw_point(point, px, point.id in selected)
        for segment in scene.of_kind(Segment):
            self._draw_segment(scene, segment, segment.id in selected)
        for polygon in scene.of_kind(Polygon):
            self._draw_polygon(scene, polygon, polygon.id in selected)
        for measurement in scene.of_kind(Measurement):
            self._draw_measurement(measurement, px)
        for angle in scene.of_kind(Angle):
            self._draw_angle(scene, angle, px)
        if isinstance(construction, PolygonConstruction):
            self._draw_polygon_preview(scene, construction, cursor)

        s.restore()

    # ---------------- Background ----------------

    def _draw_grid(self, b: ViewBounds, px: float) -> None:
        s, step = self.surface, self.grid_step
        xs = [i * step for i in range(math.ceil(b.min_x / step), math.floor(b.max_x / step) + 1)]
        ys = [j * step for j in range(math.ceil(b.min_y / step), math.floor(b.max_y / step) + 1)]

        s.begin_path()
        for x in xs:
            s.move_to(x, b.min_y); s.line_to(x, b.max_y)
        for y in ys:
            s.move_to(b.min_x, y); s.line_to(b.max_x, y)
        s.stroke(config.GRID_COLOR, config.GRID_WIDTH_PX)

        # tick labels hug the axes but stay on screen when an axis scrolls away
        label_y = min(max(0.0, b.min_y + 14 * px), b.max_y - 4 * px)
        label_x = min(max(0.0, b.min_x + 4 * px), b.max_x - 30 * px)
        for x in xs:
            if x != 0:
                s.text(x + 3 * px, label_y - 12 * px, _tick_label(x, step),
                       size=config.LABEL_FONT_SIZE - 1, color=config.AXIS_COLOR)
        for y in ys:
            if y != 0:
                s.text(label_x + 3 * px, y + 3 * px, _tick_label(y, step),
                       size=config.LABEL_FONT_SIZE - 1, color=config.AXIS_COLOR)

    def _draw_axes(self, b: ViewBounds) -> None:
        s = self.surface
        s.begin_path()
        s.move_to(b.min_x, 0); s.line_to(b.max_x, 0)
        s.move_to(0, b.min_y); s.line_to(0, b.max_y)
        s.stroke(config.AXIS_COLOR, config.AXIS_WIDTH_PX)

    # ---------------- Objects ----------------

    def _draw_function(self, func: Func, view: ViewTransform, width: float, height: float,
                       b: ViewBounds, scope: Mapping[str, float], selected: bool) -> None:
        if func.compiled is None:
            return
        # one sample per pixel column
        columns = np.arange(int(math.ceil(width)) + 1, dtype=float)
        xs = (columns - width / 2 - view.pan_x) / view.zoom
        try:
            ys = func.compiled.evaluate_many(xs, scope)
        except ExpressionError as exc:
            logger.debug("Skipping curve %s: %s", func.expression, exc)
            return

        # far off-screen values are pulled in so the surface never sees astronomic coordinates;
        # inf stays a break in the curve
        margin = 10 * b.height
        ys = np.where(np.isfinite(ys), np.clip(ys, b.min_y - margin, b.max_y + margin), np.nan)

        s = self.surface
        s.begin_path()
        pen_down = False
        for xv, yv in zip(xs, ys):
            if not np.isfinite(yv):
                pen_down = False
                continue
            if pen_down:
                s.line_to(xv, yv)
            else:
                s.move_to(xv, yv)
                pen_down = True
        if selected:
            s.stroke(func.color, config.SELECTED_CURVE_WIDTH_PX, glow=config.GLOW_WIDTH_PX)
        else:
            s.stroke(func.color, config.CURVE_WIDTH_PX)

    def _draw_point(self, point: Point, px: float, selected: bool) -> None:
        s = self.surface
        if point.is_derived:
            color, radius = config.DERIVED_POINT_COLOR, config.DERIVED_POINT_RADIUS_PX
        else:
            color, radius = config.POINT_COLOR, config.POINT_RADIUS_PX
        s.begin_path()
        s.arc(point.x, point.y, radius * px, 0, 2 * math.pi)
        s.close_path()
        s.fill(color)
        if selected:
            s.begin_path()
            s.arc(point.x, point.y, (radius + 3) * px, 0, 2 * math.pi)
            s.close_path()
            s.stroke(color, 1.5)
        if point.is_derived:
            s.text(point.x + 6 * px, point.y + 6 * px, point.label,
                   size=config.LABEL_FONT_SIZE, color=config.LABEL_COLOR)

    def _draw_segment(self, scene: Scene, segment: Segment, selected: bool) -> None:
        ends = scene.resolve_points([segment.point1_id, segment.point2_id])
        if ends is None:
            return
        p1, p2 = ends
        s = self.surface
        s.begin_path()
        s.move_to(p1.x, p1.y)
        s.line_to(p2.x, p2.y)
        s.stroke(segment.color, config.SELECTED_CURVE_WIDTH_PX if selected else config.CURVE_WIDTH_PX)

    def _draw_polygon(self, scene: Scene, polygon: Polygon, selected: bool) -> None:
        vertices = scene.resolve_points(polygon.point_ids)
        if vertices is None or len(vertices) < 3:
            return
        s = self.surface
        s.begin_path()
        s.move_to(vertices[0].x, vertices[0].y)
        for v in vertices[1:]:
            s.line_to(v.x, v.y)
        s.close_path()
        s.fill(polygon.color, alpha=0.2)
        s.stroke(polygon.color, config.SELECTED_CURVE_WIDTH_PX if selected else config.CURVE_WIDTH_PX)

    def _draw_measurement(self, m: Measurement, px: float) -> None:
        self.surface.text(m.x, m.y + 4 * px, m.label, size=config.LABEL_FONT_SIZE + 1,
                          align="center", color=config.LABEL_COLOR)

    def _draw_angle(self, scene: Scene, angle: Angle, px: float) -> None:
        pts = scene.resolve_points([angle.arm1_point_id, angle.vertex_point_id, angle.arm2_point_id])
        if pts is None:
            return
        arm1, vertex, arm2 = ((p.x, p.y) for p in pts)
        degrees = angle_degrees(vertex, arm1, arm2)
        if degrees is None:
            return

        start = direction(vertex, arm1)
        sweep = direction(vertex, arm2) - start
        # take the short way round
        if sweep > math.pi:
            sweep -= 2 * math.pi
        elif sweep <= -math.pi:
            sweep += 2 * math.pi

        s = self.surface
        radius = config.ANGLE_ARC_RADIUS_PX * px
        s.begin_path()
        s.arc(vertex[0], vertex[1], radius, start, start + sweep)
        s.stroke(angle.color, 1.5)

        mid = start + sweep / 2
        lx = vertex[0] + 1.6 * radius * math.cos(mid)
        ly = vertex[1] + 1.6 * radius * math.sin(mid)
        s.text(lx, ly, f"{degrees:.1f}°", size=config.LABEL_FONT_SIZE, align="center", color=angle.color)

    def _draw_polygon_preview(self, scene: Scene, construction: PolygonConstruction,
                              cursor: Optional[Tuple[float, float]]) -> None:
        vertices = [p for p in (scene.find(pid) for pid in construction.point_ids) if isinstance(p, Point)]
        if not vertices:
            return
        s = self.surface
        s.begin_path()
        s.move_to(vertices[0].x, vertices[0].y)
        for v in vertices[1:]:
            s.line_to(v.x, v.y)
        if cursor is not None:
            s.line_to(*cursor)
        s.stroke(config.PREVIEW_COLOR, 1.5)


class RenderLoop:
    """Calls ``frame`` on every tick of ``timer`` until stopped.

    ``timer`` follows matplotlib's ``TimerBase`` API (``add_callback``,
    ``start``, ``stop``). A frame that raises is logged and the loop goes on.
    """

    def __init__(self, timer, frame: Callable[[], None]):
        self.timer = timer
        self.frame = frame
        self.running = False
        self.frames = 0
        self.failed_frames = 0
        self.timer.add_callback(self._tick)

    def start(self) -> None:
        if not self.running:
            self.running = True
            self.timer.start()

    def stop(self) -> None:
        if self.running:
            self.running = False
            self.timer.stop()

    def _tick(self) -> None:
        if not self.running:
            return
        self.frames += 1
        try:
            self.frame()
        except Exception:
            self.failed_frames += 1
            logger.exception("Frame %d failed", self.frames)

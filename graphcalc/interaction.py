"""
Interaction state machine.

The :class:`GraphController` owns the active tool, the construction in
progress (if any), the selection, and the pointer bookkeeping that tells a
drag from a click. Every input arrives in screen pixels; the controller maps
it to world space through the view, hit-tests the scene, and edits the scene
or the view.

Multi-click tools keep their progress in a construction object:

  segment   SegmentConstruction(point1_id)              -> Segment
  polygon   PolygonConstruction(point_ids)              -> Polygon (click the first vertex again)
  distance  DistanceConstruction(point1_id)             -> Measurement at the midpoint
  angle     AngleConstruction(step, point_ids)          -> Angle (vertex, then arm1, then arm2)
  midpoint  MidpointConstruction(point1_id)             -> Point

Switching tools throws the construction away; nothing half-built is ever in
the scene. The intersect tool keeps its first pick in the selection instead.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union

from graphcalc import analysis, config
from graphcalc.errors import AnalysisError, ExpressionError, SceneError
from graphcalc.expressions import compile_expression, differentiate, tangent_line
from graphcalc.geometry import angle_degrees, distance, distance_to_segment, midpoint
from graphcalc.scene import (
    Angle, Func, GraphObject, Measurement, Point, Polygon, Scene, Segment, new_id, point_refs,
)
from graphcalc.view import ViewTransform

logger = logging.getLogger(__name__)


class Tool(str, Enum):
    MOVE = "move"
    POINT = "point"
    SLIDER = "slider"
    INTERSECT = "intersect"
    EXTREMUM = "extremum"
    ROOTS = "roots"
    BEST_FIT = "best-fit"
    SEGMENT = "segment"
    POLYGON = "polygon"
    DISTANCE = "distance"
    ANGLE = "angle"
    MIDPOINT = "midpoint"
    TANGENT = "tangent"
    SELECT = "select"
    DELETE = "delete"


# ---------------- Constructions ----------------

@dataclass
class SegmentConstruction:
    point1_id: str


@dataclass
class PolygonConstruction:
    point_ids: List[str] = field(default_factory=list)


@dataclass
class DistanceConstruction:
    point1_id: str


@dataclass
class AngleConstruction:
    step: str                    # the pick we are waiting for: 'arm1' or 'arm2'; no construction means the vertex is next
    point_ids: List[str] = field(default_factory=list)


@dataclass
class MidpointConstruction:
    point1_id: str


Construction = Union[SegmentConstruction, PolygonConstruction, DistanceConstruction,
                     AngleConstruction, MidpointConstruction]


@dataclass
class Notice:
    """A short message for the user (the status line)."""
    text: str
    level: str = "info"          # 'info' or 'error'


# ---------------- Hit-testing ----------------

def _function_distance(func: Func, x: float, y: float, scope: dict) -> float:
    if func.compiled is None:
        return math.inf
    try:
        fy = func.compiled.evaluate({**scope, "x": x})
    except ExpressionError:
        return math.inf
    return abs(fy - y) if math.isfinite(fy) else math.inf


def closest_function(scene: Scene, x: float, y: float, tolerance: float) -> Optional[Func]:
    """Function whose value at x is nearest to y, within ``tolerance``."""
    scope = scene.scope()
    best, best_distance = None, math.inf
    for func in scene.functions():
        d = _function_distance(func, x, y, scope)
        if d < best_distance:
            best, best_distance = func, d
    return best if best_distance < tolerance else None


def closest_point(scene: Scene, x: float, y: float, tolerance: float) -> Optional[Point]:
    best, best_distance = None, math.inf
    for point in scene.points():
        d = distance(point.x, point.y, x, y)
        if d < best_distance:
            best, best_distance = point, d
    return best if best_distance < tolerance else None


def _object_distance(scene: Scene, obj: GraphObject, x: float, y: float, scope: dict) -> float:
    if isinstance(obj, Point):
        return distance(obj.x, obj.y, x, y)
    if isinstance(obj, Func):
        return _function_distance(obj, x, y, scope)
    if isinstance(obj, Measurement):
        return distance(obj.x, obj.y, x, y)
    if isinstance(obj, (Segment, Polygon)):
        pts = scene.resolve_points(point_refs(obj))
        if not pts:
            return math.inf
        edges = list(zip(pts, pts[1:]))
        if isinstance(obj, Polygon):
            edges.append((pts[-1], pts[0]))
        return min((distance_to_segment(x, y, a.x, a.y, b.x, b.y) for a, b in edges), default=math.inf)
    if isinstance(obj, Angle):
        vertex = scene.find(obj.vertex_point_id)
        return distance(vertex.x, vertex.y, x, y) if isinstance(vertex, Point) else math.inf
    return math.inf


def closest_object(scene: Scene, x: float, y: float, tolerance: float) -> Optional[GraphObject]:
    """Nearest drawable object; on exact ties the earlier one in the scene wins."""
    scope = scene.scope()
    best, best_distance = None, math.inf
    for obj in scene:
        d = _object_distance(scene, obj, x, y, scope)
        if d < best_distance:
            best, best_distance = obj, d
    return best if best_distance < tolerance else None


# ---------------- Controller ----------------

class GraphController:
    def __init__(self, scene: Optional[Scene] = None, view: Optional[ViewTransform] = None,
                 notify: Optional[Callable[[Notice], None]] = None):
        self.scene = scene if scene is not None else Scene()
        self.view = view if view is not None else ViewTransform()
        self.notify = notify
        self.tool = Tool.MOVE
        self.construction: Optional[Construction] = None
        self.selected: List[str] = []
        self.last_notice: Optional[Notice] = None
        self.width, self.height = 800.0, 600.0

        self.cursor: Optional[Tuple[float, float]] = None
        self._press: Optional[Tuple[float, float]] = None
        self._last: Optional[Tuple[float, float]] = None
        self._dragged = False

    # ----- Plumbing -----

    def set_viewport(self, width: float, height: float) -> None:
        self.width, self.height = float(width), float(height)

    def to_world(self, sx: float, sy: float) -> Tuple[float, float]:
        return self.view.screen_to_world(sx, sy, self.width, self.height)

    def _tell(self, text: str, level: str = "info") -> None:
        notice = Notice(text, level)
        self.last_notice = notice
        if level == "error":
            logger.warning(text)
        else:
            logger.info(text)
        if self.notify is not None:
            self.notify(notice)

    def _error(self, text: str) -> None:
        self._tell(text, "error")

    # ----- Tool state -----

    def set_tool(self, tool: Union[Tool, str]) -> None:
        tool = Tool(tool)
        self.cancel()
        self.tool = tool
        logger.debug("Tool -> %s", tool.value)

    def cancel(self) -> None:
        """Drop the construction and selection in progress."""
        self.construction = None
        self.selected = []

    def _forget(self, removed_ids: List[str]) -> None:
        removed = set(removed_ids)
        self.selected = [i for i in self.selected if i not in removed]
        c = self.construction
        if c is None:
            return
        ids = c.point_ids if isinstance(c, (PolygonConstruction, AngleConstruction)) else [c.point1_id]
        if any(i in removed for i in ids):
            self.construction = None

    # ----- Pointer input -----

    def press(self, sx: float, sy: float) -> None:
        self._press = self._last = (sx, sy)
        self._dragged = False

    def move(self, sx: float, sy: float) -> None:
        self.cursor = self.to_world(sx, sy)
        if self._press is None:
            return
        if max(abs(sx - self._press[0]), abs(sy - self._press[1])) > config.DRAG_THRESHOLD_PX:
            self._dragged = True
        if self.tool is Tool.MOVE:
            dx, dy = sx - self._last[0], sy - self._last[1]
            self.view.pan(dx, dy)
        self._last = (sx, sy)

    def release(self, sx: float, sy: float) -> None:
        dragged = self._dragged or (
            self._press is not None
            and max(abs(sx - self._press[0]), abs(sy - self._press[1])) > config.DRAG_THRESHOLD_PX)
        self._press = self._last = None
        self._dragged = False
        if self.tool is Tool.MOVE and dragged:
            return
        self.click(sx, sy)

    def wheel(self, delta_y: float) -> None:
        self.view.zoom_wheel(delta_y)

    def click(self, sx: float, sy: float) -> None:
        x, y = self.to_world(sx, sy)
        handler = getattr(self, f"_click_{self.tool.name.lower()}", None)
        if handler is not None:
            handler(x, y)

    # ----- Object management -----

    def add_function(self, expression: str = config.DEFAULT_FUNCTION) -> Optional[Func]:
        try:
            func = self.scene.add_function(expression)
        except ExpressionError as exc:
            self._error(f"Invalid expression: {exc}")
            return None
        self._tell(f"Added y = {func.expression}")
        return func

    def add_slider(self) -> None:
        try:
            slider = self.scene.add_slider()
        except SceneError as exc:
            self._error(str(exc))
            return
        self._tell(f"Slider {slider.name} = {slider.value:g}")

    def update(self, object_id: str, **changes) -> None:
        obj = self.scene.update(object_id, **changes)
        if isinstance(obj, Func) and obj.error:
            self._error("Invalid expression")

    def delete(self, object_id: str) -> None:
        removed = self.scene.delete(object_id)
        self._forget(removed)
        self._tell("Object deleted.")

    # ----- Helpers -----

    def _tolerance(self) -> float:
        return self.view.hit_tolerance()

    def _pick_or_create_point(self, x: float, y: float) -> Point:
        existing = closest_point(self.scene, x, y, self._tolerance())
        return existing if existing is not None else self.scene.add_point(x, y)

    def _pick_point(self, x: float, y: float) -> Optional[Point]:
        point = closest_point(self.scene, x, y, self._tolerance())
        if point is None:
            self._error("Click on an existing point.")
        return point

    def _pick_function(self, x: float, y: float) -> Optional[Func]:
        func = closest_function(self.scene, x, y, self._tolerance())
        if func is None:
            self._error("No function selected. Click closer to a function.")
        return func

    def _visible(self):
        return self.view.bounds(self.width, self.height)

    def _run_analysis(self, run: Callable[[], analysis.AnalysisResult]) -> None:
        try:
            result = run()
        except AnalysisError as exc:
            self._error(str(exc))
            return
        analysis.apply_result(self.scene, result)
        self._tell(result.message(), "info" if result.found else "error")

    # ----- Single-click tools -----

    def _click_point(self, x: float, y: float) -> None:
        self.scene.add_point(x, y)

    def _click_slider(self, x: float, y: float) -> None:
        self.add_slider()

    def _click_roots(self, x: float, y: float) -> None:
        func = self._pick_function(x, y)
        if func is not None:
            self._run_analysis(lambda: analysis.find_roots(func, self._visible(), self.scene.scope()))

    def _click_extremum(self, x: float, y: float) -> None:
        func = self._pick_function(x, y)
        if func is not None:
            self._run_analysis(lambda: analysis.find_extrema(func, self._visible(), self.scene.scope()))

    def _click_intersect(self, x: float, y: float) -> None:
        func = self._pick_function(x, y)
        if func is None:
            return
        first = self.scene.find(self.selected[0]) if self.selected else None
        if not isinstance(first, Func):
            self.selected = [func.id]
            self._tell(f"Function y = {func.expression} selected. Select another to find intersections.")
            return
        if first.id == func.id:
            return
        self._run_analysis(
            lambda: analysis.find_intersections(first, func, self._visible(), self.scene.scope()))
        self.selected = []

    def _click_tangent(self, x: float, y: float) -> None:
        func = self._pick_function(x, y)
        if func is None or func.compiled is None:
            return
        scope = {**self.scene.scope(), "x": x}
        try:
            slope = compile_expression(differentiate(func.compiled.text)).evaluate(scope)
            y0 = func.compiled.evaluate(scope)
        except ExpressionError as exc:
            self._error(f"Could not compute derivative: {exc}")
            return
        if not (math.isfinite(slope) and math.isfinite(y0)):
            self._error(f"No tangent at x = {x:.2f}.")
            return
        self.add_function(tangent_line(slope, x, y0))

    def _click_best_fit(self, x: float, y: float) -> None:
        points = [p for p in self.scene.points() if not p.is_derived]
        try:
            expression = analysis.fit_line(points)
        except AnalysisError as exc:
            self._error(str(exc))
            return
        self.add_function(expression)

    def _click_select(self, x: float, y: float) -> None:
        obj = closest_object(self.scene, x, y, self._tolerance())
        if obj is None:
            self.selected = []
        elif obj.id in self.selected:
            self.selected.remove(obj.id)
        else:
            self.selected.append(obj.id)

    def _click_delete(self, x: float, y: float) -> None:
        obj = closest_object(self.scene, x, y, self._tolerance())
        if obj is None:
            self._error("Nothing to delete here.")
            return
        self.delete(obj.id)

    # ----- Construction tools -----

    def _click_segment(self, x: float, y: float) -> None:
        c = self.construction
        if not isinstance(c, SegmentConstruction) or c.point1_id not in self.scene:
            self.construction = SegmentConstruction(self._pick_or_create_point(x, y).id)
            return
        p2 = self._pick_or_create_point(x, y)
        if p2.id == c.point1_id:
            self._error("Pick a different second point.")
            return
        self.scene.add(Segment(id=new_id(), point1_id=c.point1_id, point2_id=p2.id))
        self.construction = None

    def _click_polygon(self, x: float, y: float) -> None:
        c = self.construction
        if not isinstance(c, PolygonConstruction) or self.scene.resolve_points(c.point_ids) is None:
            self.construction = PolygonConstruction([self._pick_or_create_point(x, y).id])
            return
        vertex = self._pick_or_create_point(x, y)
        if len(c.point_ids) >= 3 and vertex.id == c.point_ids[0]:
            self.scene.add(Polygon(id=new_id(), point_ids=list(c.point_ids)))
            self.construction = None
            self._tell(f"Polygon with {len(c.point_ids)} vertices.")
            return
        if vertex.id == c.point_ids[-1]:
            return
        c.point_ids.append(vertex.id)

    def _click_distance(self, x: float, y: float) -> None:
        point = self._pick_point(x, y)
        if point is None:
            return
        c = self.construction
        first = self.scene.find(c.point1_id) if isinstance(c, DistanceConstruction) else None
        if not isinstance(first, Point):
            self.construction = DistanceConstruction(point.id)
            return
        if first.id == point.id:
            self._error("Pick a different second point.")
            return
        d = distance(first.x, first.y, point.x, point.y)
        mx, my = midpoint(first.x, first.y, point.x, point.y)
        self.scene.add(Measurement(id=new_id(), label=f"{d:.3f}", x=mx, y=my))
        self.construction = None
        self._tell(f"Distance: {d:.3f}")

    def _click_angle(self, x: float, y: float) -> None:
        point = self._pick_point(x, y)
        if point is None:
            return
        c = self.construction
        if not isinstance(c, AngleConstruction) or self.scene.resolve_points(c.point_ids) is None:
            self.construction = AngleConstruction(step="arm1", point_ids=[point.id])
            return
        if point.id in c.point_ids:
            self._error("Pick a point that is not already part of the angle.")
            return
        if c.step == "arm1":
            c.point_ids.append(point.id)
            c.step = "arm2"
            return

        vertex, arm1 = self.scene.resolve_points(c.point_ids)
        degrees = angle_degrees((vertex.x, vertex.y), (arm1.x, arm1.y), (point.x, point.y))
        if degrees is None:
            self._error("The arms of an angle need non-zero length.")
            return
        self.scene.add(Angle(id=new_id(), arm1_point_id=arm1.id,
                             vertex_point_id=vertex.id, arm2_point_id=point.id))
        self.construction = None
        self._tell(f"Angle: {degrees:.1f}°")

    def _click_midpoint(self, x: float, y: float) -> None:
        point = self._pick_point(x, y)
        if point is None:
            return
        c = self.construction
        first = self.scene.find(c.point1_id) if isinstance(c, MidpointConstruction) else None
        if not isinstance(first, Point):
            self.construction = MidpointConstruction(point.id)
            return
        if first.id == point.id:
            self._error("Pick a different second point.")
            return
        self.scene.add_point(*midpoint(first.x, first.y, point.x, point.y))
        self.construction = None

    # ----- Persistence -----

    def save(self, store) -> None:
        """Push a snapshot of the scene and view to a :class:`~graphcalc.history.HistoryStore`."""
        try:
            store.save_graph(self.scene, self.view)
        except OSError as exc:
            self._error(f"Could not save graph: {exc}")
            return
        self._tell("Saved! Graph saved to history.")

"""
Scene model: the ordered collection of everything drawn on the graph.

Objects are plain dataclasses tagged with a ``kind``. Constructions refer to
points by id only, so removing a point can leave stale ids but never a live
reference; :meth:`Scene.delete` removes those dependants in the same step.
"""
from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass, field, fields
from typing import ClassVar, Dict, Iterator, List, Optional, Sequence, Type, TypeVar, Union

from graphcalc import config
from graphcalc.errors import ExpressionError, SceneError
from graphcalc.expressions import CompiledExpression, compile_expression

logger = logging.getLogger(__name__)

# ---------------- Objects ----------------


@dataclass
class Point:
    kind: ClassVar[str] = "point"
    id: str
    x: float
    y: float
    label: str = ""
    is_derived: bool = False


@dataclass
class Func:
    """A curve y = f(x).

    ``compiled`` always holds the last expression that compiled. While the
    user is typing an invalid ``expression`` the old curve keeps drawing and
    ``error`` carries the reason.
    """
    kind: ClassVar[str] = "function"
    id: str
    expression: str
    color: str
    compiled: Optional[CompiledExpression] = field(default=None, repr=False)
    error: Optional[str] = None


@dataclass
class Slider:
    kind: ClassVar[str] = "slider"
    id: str
    name: str
    min: float = config.DEFAULT_SLIDER_MIN
    max: float = config.DEFAULT_SLIDER_MAX
    step: float = config.DEFAULT_SLIDER_STEP
    value: float = config.DEFAULT_SLIDER_VALUE


@dataclass
class Segment:
    kind: ClassVar[str] = "segment"
    id: str
    point1_id: str
    point2_id: str
    color: str = config.SEGMENT_COLOR


@dataclass
class Polygon:
    kind: ClassVar[str] = "polygon"
    id: str
    point_ids: List[str]
    color: str = config.POLYGON_COLOR


@dataclass
class Measurement:
    kind: ClassVar[str] = "measurement"
    id: str
    label: str
    x: float
    y: float


@dataclass
class Angle:
    kind: ClassVar[str] = "angle"
    id: str
    arm1_point_id: str
    vertex_point_id: str
    arm2_point_id: str
    color: str = config.ANGLE_COLOR


GraphObject = Union[Point, Func, Slider, Segment, Polygon, Measurement, Angle]
T = TypeVar("T", Point, Func, Slider, Segment, Polygon, Measurement, Angle)

# Fields that never leave the process (not serialisable).
_TRANSIENT_FIELDS = {"compiled", "error"}


def point_refs(obj: GraphObject) -> List[str]:
    """Ids of the points a construction depends on (empty for everything else)."""
    if isinstance(obj, Segment):
        return [obj.point1_id, obj.point2_id]
    if isinstance(obj, Polygon):
        return list(obj.point_ids)
    if isinstance(obj, Angle):
        return [obj.arm1_point_id, obj.vertex_point_id, obj.arm2_point_id]
    return []


def new_id() -> str:
    return uuid.uuid4().hex


def point_label(x: float, y: float, prefix: str = "") -> str:
    coords = f"({x:.2f}, {y:.2f})"
    return f"{prefix} {coords}" if prefix else coords


def to_dict(obj: GraphObject) -> dict:
    data = {"type": obj.kind}
    for f in fields(obj):
        if f.name in _TRANSIENT_FIELDS:
            continue
        value = getattr(obj, f.name)
        data[f.name] = list(value) if isinstance(value, (list, tuple)) else value
    return data


# ---------------- Scene ----------------


class Scene:
    def __init__(self) -> None:
        self._objects: List[GraphObject] = []

    def __iter__(self) -> Iterator[GraphObject]:
        return iter(list(self._objects))

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: str) -> bool:
        return self.find(object_id) is not None

    # ----- Lookup -----

    def find(self, object_id: str) -> Optional[GraphObject]:
        for obj in self._objects:
            if obj.id == object_id:
                return obj
        return None

    def get(self, object_id: str, kind: Optional[Type[T]] = None) -> T:
        obj = self.find(object_id)
        if obj is None:
            raise SceneError(f"No object with id {object_id}")
        if kind is not None and not isinstance(obj, kind):
            raise SceneError(f"Object {object_id} is a {obj.kind}, not a {kind.kind}")
        return obj

    def of_kind(self, kind: Type[T]) -> List[T]:
        return [o for o in self._objects if isinstance(o, kind)]

    def functions(self) -> List[Func]:
        return self.of_kind(Func)

    def points(self) -> List[Point]:
        return self.of_kind(Point)

    def sliders(self) -> List[Slider]:
        return self.of_kind(Slider)

    def resolve_points(self, point_ids: Sequence[str]) -> Optional[List[Point]]:
        """Points for ``point_ids`` in order, or None if any id is stale."""
        found = []
        for pid in point_ids:
            obj = self.find(pid)
            if not isinstance(obj, Point):
                return None
            found.append(obj)
        return found

    def scope(self) -> Dict[str, float]:
        """Slider name -> value, the bindings every function is evaluated with."""
        return {s.name: float(s.value) for s in self.sliders()}

    # ----- Mutation -----

    def add(self, obj: GraphObject) -> GraphObject:
        if self.find(obj.id) is not None:
            raise SceneError(f"Duplicate object id {obj.id}")
        self._objects.append(obj)
        logger.debug("Added %s %s", obj.kind, obj.id)
        return obj

    def add_point(self, x: float, y: float, label: Optional[str] = None,
                  is_derived: bool = False) -> Point:
        point = Point(id=new_id(), x=float(x), y=float(y),
                      label=label if label is not None else point_label(x, y),
                      is_derived=is_derived)
        self.add(point)
        return point

    def add_function(self, expression: str = config.DEFAULT_FUNCTION,
                     color: Optional[str] = None) -> Func:
        """Compile and append a function. Raises ExpressionError without touching the scene."""
        compiled = compile_expression(expression)
        if color is None:
            color = random.choice(config.FUNCTION_PALETTE)
        func = Func(id=new_id(), expression=expression, color=color, compiled=compiled)
        self.add(func)
        return func

    def next_slider_name(self) -> str:
        taken = {s.name for s in self.sliders()}
        index = len(taken)
        while index < 26:
            name = chr(ord("a") + index)
            if name not in taken:
                return name
            index += 1
        for index in range(26):
            name = chr(ord("a") + index)
            if name not in taken:
                return name
        raise SceneError("All slider names a-z are in use")

    def add_slider(self, **settings) -> Slider:
        slider = Slider(id=new_id(), name=self.next_slider_name(), **settings)
        self.add(slider)
        return slider

    def update(self, object_id: str, **changes) -> GraphObject:
        """Merge ``changes`` into an object.

        Changing a function's expression recompiles it; if that fails the
        previous compiled form stays in place and ``error`` is set.
        """
        obj = self.get(object_id)
        names = {f.name for f in fields(obj)}
        unknown = set(changes) - names
        if unknown:
            raise SceneError(f"{obj.kind} has no field(s) {', '.join(sorted(unknown))}")
        if "id" in changes and changes["id"] != obj.id:
            raise SceneError("Object ids cannot change")

        if isinstance(obj, Func) and "expression" in changes:
            expression = changes.pop("expression")
            changes.pop("compiled", None)
            obj.expression = expression
            try:
                obj.compiled = compile_expression(expression)
                obj.error = None
            except ExpressionError as exc:
                obj.error = str(exc)
                logger.warning("Invalid expression for %s: %s", obj.id, exc)

        for name, value in changes.items():
            setattr(obj, name, value)
        return obj

    def delete(self, object_id: str) -> List[str]:
        """Remove an object and everything left dangling by its removal.

        Deleting a function also removes every derived point in the scene,
        not only the ones computed from that function.
        Returns the removed ids in scene order.
        """
        target = self.get(object_id)
        doomed = {target.id}
        if isinstance(target, Func):
            doomed.update(p.id for p in self.points() if p.is_derived)
        for obj in self._objects:
            if any(pid in doomed for pid in point_refs(obj)):
                doomed.add(obj.id)

        removed = [o.id for o in self._objects if o.id in doomed]
        self._objects = [o for o in self._objects if o.id not in doomed]
        logger.debug("Deleted %d object(s) starting from %s %s", len(removed), target.kind, target.id)
        return removed

    def replace_derived_points(self, prefix: str, coords: Sequence[tuple]) -> List[Point]:
        """Swap every derived point labelled ``prefix ...`` for new ones at ``coords``.

        Constructions that used a replaced point go with it.
        """
        stale = [p.id for p in self.points() if p.is_derived and p.label.startswith(prefix)]
        for pid in stale:
            if pid in self:
                self.delete(pid)
        return [self.add_point(x, y, label=point_label(x, y, prefix), is_derived=True)
                for x, y in coords]

    def to_list(self) -> List[dict]:
        return [to_dict(o) for o in self._objects]

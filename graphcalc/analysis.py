"""
Numerical analysis over user functions.

Everything reduces to one scan: sample a function on a regular grid across the
visible x-range, keep the intervals where consecutive samples change sign, and
refine each with bisection.

  roots          f
  intersections  f1 - f2      (y taken from f1)
  extrema        f'           (symbolic derivative, y taken from f)

Roots closer together than one grid step, and roots where the function only
touches zero without crossing, are not found.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from graphcalc import config
from graphcalc.errors import AnalysisError, ExpressionError
from graphcalc.expressions import (
    CompiledExpression, compile_expression, difference, differentiate, linear,
)
from graphcalc.scene import Func, Point, Scene
from graphcalc.view import ViewBounds

logger = logging.getLogger(__name__)

# ---------------- Root finding ----------------


def bisection(f: Callable[[float], float], a: float, b: float,
              tol: float = config.BISECTION_TOLERANCE,
              max_iterations: int = config.BISECTION_MAX_ITERATIONS) -> Optional[float]:
    """Root of f in [a, b] by bisection, or None when f(a) and f(b) share a sign."""
    fa = f(a)
    if abs(fa) < tol:
        return a
    fb = f(b)
    if abs(fb) < tol:
        return b
    if not (np.isfinite(fa) and np.isfinite(fb)) or fa * fb >= 0:
        return None

    c = a
    for _ in range(max_iterations):
        c = 0.5 * (a + b)
        fc = f(c)
        if fc == 0 or (b - a) / 2 < tol:
            return c
        if fa * fc < 0:
            b = c
        else:
            a = c; fa = fc
    return c


def zero_brackets(xs: np.ndarray, ys: np.ndarray) -> List[Tuple[float, float]]:
    """Intervals [xs[i], xs[i+1]] where ys changes sign (NaN samples never bracket)."""
    with np.errstate(invalid="ignore"):
        idx = np.where(ys[:-1] * ys[1:] < 0)[0]
    return [(float(xs[i]), float(xs[i + 1])) for i in idx]


def scan_roots(compiled: CompiledExpression, min_x: float, max_x: float,
               scope: Mapping[str, float], steps: int = config.SCAN_STEPS,
               tol: float = config.BISECTION_TOLERANCE) -> List[float]:
    """Sign-change scan of ``compiled`` over [min_x, max_x] in ``steps`` equal steps."""
    if not max_x > min_x:
        return []
    step = (max_x - min_x) / steps
    xs = min_x + step * np.arange(steps + 1)
    ys = compiled.evaluate_many(xs, scope)
    f = compiled.as_function(scope)

    roots = []
    for a, b in zero_brackets(xs, ys):
        try:
            root = bisection(f, a, b, tol=tol)
        except ExpressionError as exc:
            logger.debug("Bisection on [%g, %g] failed: %s", a, b, exc)
            continue
        if root is not None:
            roots.append(root)
    return roots


# ---------------- Tools ----------------


@dataclass
class AnalysisResult:
    prefix: str
    points: List[Tuple[float, float]] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.points)

    def message(self) -> str:
        noun = self.prefix.lower()
        if self.points:
            return f"Found {len(self.points)} {noun}(s)."
        return f"No {noun} found in the current view."


def _compiled(func: Func) -> CompiledExpression:
    if func.compiled is None:
        raise AnalysisError(f"Function '{func.expression}' has no valid expression")
    return func.compiled


def _points_at(roots: Sequence[float], y_of: Optional[Callable[[float], float]]) -> List[Tuple[float, float]]:
    points = []
    for rx in roots:
        if y_of is None:
            points.append((rx, 0.0))
            continue
        try:
            ry = y_of(rx)
        except ExpressionError:
            continue
        if np.isfinite(ry):
            points.append((rx, ry))
    return points


def find_roots(func: Func, bounds: ViewBounds, scope: Mapping[str, float]) -> AnalysisResult:
    roots = scan_roots(_compiled(func), bounds.min_x, bounds.max_x, scope)
    return AnalysisResult(config.ROOT_PREFIX, _points_at(roots, None))


def find_intersections(func1: Func, func2: Func, bounds: ViewBounds,
                       scope: Mapping[str, float]) -> AnalysisResult:
    c1, c2 = _compiled(func1), _compiled(func2)
    try:
        diff = compile_expression(difference(c1.text, c2.text))
    except ExpressionError as exc:
        raise AnalysisError(f"Could not find intersections: {exc}") from exc
    roots = scan_roots(diff, bounds.min_x, bounds.max_x, scope)
    return AnalysisResult(config.INTERSECT_PREFIX, _points_at(roots, c1.as_function(scope)))


def find_extrema(func: Func, bounds: ViewBounds, scope: Mapping[str, float]) -> AnalysisResult:
    compiled = _compiled(func)
    try:
        derivative = compile_expression(differentiate(compiled.text))
    except ExpressionError as exc:
        raise AnalysisError(f"Could not compute derivative: {exc}") from exc
    roots = scan_roots(derivative, bounds.min_x, bounds.max_x, scope)
    return AnalysisResult(config.EXTREMUM_PREFIX, _points_at(roots, compiled.as_function(scope)))


def apply_result(scene: Scene, result: AnalysisResult) -> List[Point]:
    """Write a result into the scene, replacing earlier points with the same prefix.

    An empty result leaves the earlier points alone.
    """
    if not result.found:
        return []
    return scene.replace_derived_points(result.prefix, result.points)


def fit_line(points: Sequence[Point]) -> str:
    """Least-squares line through ``points`` as expression text."""
    if len({p.x for p in points}) < 2:
        raise AnalysisError("Best fit needs at least two points with different x")
    xs = np.array([p.x for p in points])
    ys = np.array([p.y for p in points])
    slope, intercept = np.polyfit(xs, ys, 1)
    return linear(float(slope), float(intercept))

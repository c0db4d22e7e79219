"""
graphcalc: an interactive 2D graphing calculator.

Functions, sliders, points and constructions (segments, polygons, angles,
distance read-outs) live in a Scene; a ViewTransform maps world space to
pixels; the Renderer draws a frame onto any Surface; the GraphController turns
clicks, drags and wheel events into scene edits and numerical analysis
(roots, intersections, extrema).
"""
from graphcalc.errors import AnalysisError, ExpressionError, GraphCalcError, SceneError
from graphcalc.expressions import CompiledExpression, compile_expression, differentiate
from graphcalc.scene import (
    Angle, Func, GraphObject, Measurement, Point, Polygon, Scene, Segment, Slider,
)
from graphcalc.view import ViewBounds, ViewTransform

__all__ = [
    "AnalysisError", "ExpressionError", "GraphCalcError", "SceneError",
    "CompiledExpression", "compile_expression", "differentiate",
    "Angle", "Func", "GraphObject", "Measurement", "Point", "Polygon", "Scene",
    "Segment", "Slider",
    "ViewBounds", "ViewTransform",
]

__version__ = "0.1.0"

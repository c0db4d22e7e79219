"""
Expression compiler.

Text -> SymPy expression -> NumPy callable, the same route the derivative
visualizer takes with ``sp.lambdify(x, expr, 'numpy')``. Parsing accepts the
calculator dialect users type: ``x^2`` for powers, ``2x`` and ``3(x+1)`` for
products, ``sin x`` for application, ``ln`` for the natural log. Every symbol
is real.

Every public entry point raises :class:`ExpressionError` on failure; nothing
here lets a SymPy or NumPy exception escape.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Mapping, Tuple

import numpy as np
import sympy as sp
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    parse_expr,
    standard_transformations,
)

from graphcalc.errors import ExpressionError

logger = logging.getLogger(__name__)

VARIABLE = "x"

_TRANSFORMATIONS = standard_transformations + (implicit_multiplication_application, convert_xor)

# Names that resolve to something other than a fresh Symbol while parsing.
_LOCALS = {
    "ln": sp.log,
    "e": sp.Symbol("e"),
}

# Values for free symbols that no binding provides.
CONSTANTS: dict[str, float] = {"e": math.e}


def parse(text: str) -> sp.Expr:
    """Parse calculator text into a SymPy expression."""
    if not text or not text.strip():
        raise ExpressionError("Empty expression", text)
    try:
        expr = parse_expr(text, local_dict=dict(_LOCALS), transformations=_TRANSFORMATIONS)
    except Exception as exc:
        raise ExpressionError(f"Cannot parse '{text}': {exc}", text) from exc
    if not isinstance(expr, sp.Expr):
        raise ExpressionError(f"'{text}' is not a numeric expression", text)
    # d/dx abs(x) is sign(x) only for a real x
    return expr.subs({s: sp.Symbol(s.name, real=True) for s in expr.free_symbols})


@dataclass(frozen=True)
class CompiledExpression:
    """An evaluable form of one expression.

    ``names`` are the free symbols in a fixed order; ``evaluate`` takes a
    mapping from those names to numbers (``x`` plus slider values).
    """
    text: str
    expr: sp.Expr
    names: Tuple[str, ...]
    _fn: Callable = field(repr=False, compare=False)

    def _arguments(self, bindings: Mapping[str, float]) -> list:
        args = []
        for name in self.names:
            if name in bindings:
                args.append(bindings[name])
            elif name in CONSTANTS:
                args.append(CONSTANTS[name])
            else:
                raise ExpressionError(f"Undefined symbol '{name}' in '{self.text}'", self.text)
        return args

    def evaluate(self, bindings: Mapping[str, float]) -> float:
        args = self._arguments(bindings)
        try:
            with np.errstate(all="ignore"):
                # NumPy scalars so 1/0 gives inf like the vectorised path instead of raising
                value = self._fn(*(np.float64(a) for a in args))
            return float(value)
        except ExpressionError:
            raise
        except Exception as exc:
            raise ExpressionError(f"Cannot evaluate '{self.text}': {exc}", self.text) from exc

    def evaluate_many(self, xs: np.ndarray, bindings: Mapping[str, float]) -> np.ndarray:
        """Evaluate at every x in ``xs``; samples that fail come back as NaN."""
        xs = np.asarray(xs, dtype=float)
        scope = dict(bindings)
        scope[VARIABLE] = xs
        args = self._arguments(scope)
        try:
            with np.errstate(all="ignore"):
                values = np.asarray(self._fn(*args), dtype=float)
            return np.broadcast_to(values, xs.shape).copy()
        except Exception:
            logger.debug("Vectorised evaluation of '%s' failed, sampling one by one", self.text)

        out = np.full(xs.shape, np.nan)
        for i, xv in enumerate(xs):
            scope[VARIABLE] = float(xv)
            try:
                out[i] = self.evaluate(scope)
            except ExpressionError:
                pass
        return out

    def as_function(self, bindings: Mapping[str, float]) -> Callable[[float], float]:
        """Bind everything except ``x``: the result maps x -> f(x)."""
        scope = dict(bindings)

        def f(xv: float) -> float:
            scope[VARIABLE] = xv
            return self.evaluate(scope)

        return f


def compile_expression(text: str) -> CompiledExpression:
    expr = parse(text)
    symbols = sorted(expr.free_symbols, key=lambda s: s.name)
    try:
        fn = sp.lambdify(symbols, expr, "numpy")
    except Exception as exc:
        raise ExpressionError(f"Cannot compile '{text}': {exc}", text) from exc
    return CompiledExpression(text=text, expr=expr, names=tuple(s.name for s in symbols), _fn=fn)


def differentiate(text: str, variable: str = VARIABLE) -> str:
    """Symbolic derivative of ``text`` with respect to ``variable``, as text."""
    expr = parse(text)
    try:
        derivative = sp.diff(expr, sp.Symbol(variable, real=True))
    except Exception as exc:
        raise ExpressionError(f"Cannot differentiate '{text}': {exc}", text) from exc
    return sp.sstr(derivative)


def difference(text1: str, text2: str) -> str:
    return f"({text1}) - ({text2})"


def tangent_line(slope: float, x0: float, y0: float) -> str:
    return f"({slope:.6g})*(x - ({x0:.6g})) + ({y0:.6g})"


def linear(slope: float, intercept: float) -> str:
    return f"({slope:.6g})*x + ({intercept:.6g})"


"""
Drawing surfaces.

:class:`Surface` is the small canvas-like API the renderer draws through:
clear, save/restore, translate/scale, paths made of move/line/arc, stroke,
fill and text. The base class keeps the transform stack and turns path
commands into polylines in device pixels (y down); a subclass only has to put
finished polylines and text on screen.

:class:`MatplotlibSurface` does that on a matplotlib Axes whose data
coordinates are set up to be the Axes' own pixels.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import List, Tuple

import numpy as np
from matplotlib import patheffects
from matplotlib.axes import Axes
from matplotlib.patches import PathPatch
from matplotlib.path import Path

XY = Tuple[float, float]


class SubPath:
    __slots__ = ("points", "closed")

    def __init__(self, start: XY):
        self.points: List[XY] = [start]
        self.closed = False


class Surface(ABC):
    def __init__(self) -> None:
        self._matrix = np.eye(3)
        self._stack: List[np.ndarray] = []
        self._path: List[SubPath] = []

    # ----- Backend hooks -----

    @property
    @abstractmethod
    def size(self) -> Tuple[float, float]:
        """(width, height) in pixels."""

    @abstractmethod
    def _stroke_paths(self, paths: List[SubPath], color: str, width: float, glow: float) -> None: ...

    @abstractmethod
    def _fill_paths(self, paths: List[SubPath], color: str, alpha: float) -> None: ...

    @abstractmethod
    def _draw_text(self, x: float, y: float, text: str, size: float, align: str, color: str) -> None: ...

    @abstractmethod
    def _clear(self) -> None: ...

    # ----- State -----

    def clear(self) -> None:
        self._matrix = np.eye(3)
        self._stack.clear()
        self._path = []
        self._clear()

    def save(self) -> None:
        self._stack.append(self._matrix.copy())

    def restore(self) -> None:
        if self._stack:
            self._matrix = self._stack.pop()

    def translate(self, dx: float, dy: float) -> None:
        self._matrix = self._matrix @ np.array([[1.0, 0.0, dx], [0.0, 1.0, dy], [0.0, 0.0, 1.0]])

    def scale(self, sx: float, sy: float) -> None:
        self._matrix = self._matrix @ np.diag([sx, sy, 1.0])

    def device(self, x: float, y: float) -> XY:
        m = self._matrix
        return (m[0, 0] * x + m[0, 1] * y + m[0, 2],
                m[1, 0] * x + m[1, 1] * y + m[1, 2])

    # ----- Paths -----

    def begin_path(self) -> None:
        self._path = []

    def move_to(self, x: float, y: float) -> None:
        self._path.append(SubPath(self.device(x, y)))

    def line_to(self, x: float, y: float) -> None:
        if not self._path or self._path[-1].closed:
            self.move_to(x, y)
            return
        self._path[-1].points.append(self.device(x, y))

    def arc(self, cx: float, cy: float, radius: float, start: float, end: float) -> None:
        """Counter-clockwise (in current coordinates) arc from angle ``start`` to ``end``."""
        sweep = end - start
        segments = max(8, int(math.ceil(abs(sweep) / (2 * math.pi) * 64)))
        for i in range(segments + 1):
            t = start + sweep * i / segments
            # joins the open subpath, if any, like a canvas arc does
            self.line_to(cx + radius * math.cos(t), cy + radius * math.sin(t))

    def close_path(self) -> None:
        if self._path:
            self._path[-1].closed = True

    def stroke(self, color: str, width: float = 1.0, glow: float = 0.0) -> None:
        paths = [p for p in self._path if len(p.points) > 1]
        if paths:
            self._stroke_paths(paths, color, width, glow)

    def fill(self, color: str, alpha: float = 1.0) -> None:
        paths = [p for p in self._path if len(p.points) > 2]
        if paths:
            self._fill_paths(paths, color, alpha)

    def text(self, x: float, y: float, text: str, size: float = 9.0,
             align: str = "left", color: str = "black") -> None:
        dx, dy = self.device(x, y)
        self._draw_text(dx, dy, text, size, align, color)


# ---------------- matplotlib ----------------


def _mpl_path(paths: List[SubPath]) -> Path:
    vertices, codes = [], []
    for sub in paths:
        vertices.extend(sub.points)
        codes.append(Path.MOVETO)
        codes.extend([Path.LINETO] * (len(sub.points) - 1))
        if sub.closed:
            vertices.append(sub.points[0])
            codes.append(Path.CLOSEPOLY)
    return Path(np.asarray(vertices, dtype=float), codes)


class MatplotlibSurface(Surface):
    """Draws into ``ax``; the Axes' data coordinates are its pixels, y down."""

    def __init__(self, ax: Axes):
        super().__init__()
        self.ax = ax
        self._prepare()

    @property
    def size(self) -> Tuple[float, float]:
        bbox = self.ax.get_window_extent()
        return float(bbox.width), float(bbox.height)

    def _points(self, pixels: float) -> float:
        return pixels * 72.0 / self.ax.figure.dpi

    def _prepare(self) -> None:
        width, height = self.size
        self.ax.set_axis_off()
        self.ax.set_autoscale_on(False)
        self.ax.set_xlim(0, width)
        self.ax.set_ylim(height, 0)

    def _clear(self) -> None:
        self.ax.cla()
        self._prepare()

    def _stroke_paths(self, paths, color, width, glow):
        patch = PathPatch(_mpl_path(paths), fill=False, edgecolor=color,
                          linewidth=self._points(width), joinstyle="round", capstyle="round")
        if glow > 0:
            patch.set_path_effects([
                patheffects.Stroke(linewidth=self._points(width + glow), foreground=color, alpha=0.25),
                patheffects.Normal(),
            ])
        self.ax.add_patch(patch)

    def _fill_paths(self, paths, color, alpha):
        self.ax.add_patch(PathPatch(_mpl_path(paths), facecolor=color, edgecolor="none", alpha=alpha))

    def _draw_text(self, x, y, text, size, align, color):
        self.ax.text(x, y, text, fontsize=size, ha=align, va="bottom", color=color, clip_on=True)

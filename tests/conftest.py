import matplotlib
matplotlib.use("Agg")

import pytest

from graphcalc.interaction import GraphController
from graphcalc.scene import Scene
from graphcalc.surface import Surface
from graphcalc.view import ViewTransform


class RecordingSurface(Surface):
    """Surface that keeps every drawing call instead of putting pixels anywhere."""

    def __init__(self, width=800.0, height=600.0):
        super().__init__()
        self._size = (width, height)
        self.calls = []

    @property
    def size(self):
        return self._size

    def _clear(self):
        self.calls.append(("clear",))

    def _stroke_paths(self, paths, color, width, glow):
        self.calls.append(("stroke", [list(p.points) for p in paths], color, width, glow))

    def _fill_paths(self, paths, color, alpha):
        self.calls.append(("fill", [list(p.points) for p in paths], color, alpha))

    def _draw_text(self, x, y, text, size, align, color):
        self.calls.append(("text", x, y, text))

    def of(self, kind, color=None):
        return [c for c in self.calls if c[0] == kind and (color is None or c[2] == color)]


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def scene():
    return Scene()


@pytest.fixture
def view():
    return ViewTransform()


@pytest.fixture
def controller(scene, view):
    c = GraphController(scene=scene, view=view)
    c.set_viewport(800, 600)
    return c


@pytest.fixture
def click(controller):
    """Click at a world position with the active tool."""
    def _click(x, y):
        controller.click(*controller.view.world_to_screen(x, y, controller.width, controller.height))
    return _click

import math

import matplotlib.pyplot as plt
import pytest
from matplotlib.patches import PathPatch

from graphcalc.surface import MatplotlibSurface

from conftest import RecordingSurface


@pytest.fixture
def mpl_surface():
    fig = plt.figure(figsize=(4, 3), dpi=100)
    ax = fig.add_axes([0, 0, 1, 1])
    yield MatplotlibSurface(ax)
    plt.close(fig)


def _patches(surface):
    return [p for p in surface.ax.patches if isinstance(p, PathPatch)]


# ---------------- Transform and paths ----------------

def test_transform_stack(surface):
    surface.save()
    surface.translate(400, 300)
    surface.scale(50, -50)
    assert surface.device(1, 1) == (450, 250)
    surface.restore()
    assert surface.device(1, 1) == (1, 1)


def test_subpaths_and_closing(surface):
    surface.begin_path()
    surface.move_to(0, 0); surface.line_to(1, 0)
    surface.move_to(5, 5); surface.line_to(6, 5); surface.line_to(6, 6)
    surface.close_path()
    surface.stroke("k")
    (call,) = surface.calls
    assert call[1] == [[(0, 0), (1, 0)], [(5, 5), (6, 5), (6, 6)]]


def test_single_points_are_not_stroked(surface):
    surface.begin_path()
    surface.move_to(0, 0)
    surface.stroke("k")
    assert surface.calls == []


def test_arc_spans_requested_angles(surface):
    surface.begin_path()
    surface.arc(0, 0, 10, 0, math.pi / 2)
    surface.stroke("k")
    (path,) = surface.calls[0][1]
    assert path[0] == (pytest.approx(10), pytest.approx(0))
    assert path[-1] == (pytest.approx(0, abs=1e-9), pytest.approx(10))
    assert all(math.hypot(x, y) == pytest.approx(10) for x, y in path)


def test_text_anchor_is_transformed(surface):
    surface.translate(10, 20)
    surface.text(1, 2, "hi")
    assert surface.calls == [("text", 11, 22, "hi")]


def test_clear_resets_transform():
    surface = RecordingSurface()
    surface.translate(5, 5)
    surface.clear()
    assert surface.device(0, 0) == (0, 0)


# ---------------- matplotlib ----------------

def test_axes_are_pixel_space(mpl_surface):
    width, height = mpl_surface.size
    assert (width, height) == (pytest.approx(400), pytest.approx(300))
    assert mpl_surface.ax.get_xlim() == (0, pytest.approx(400))
    assert mpl_surface.ax.get_ylim() == (pytest.approx(300), 0)


def test_stroke_fill_and_text_add_artists(mpl_surface):
    s = mpl_surface
    s.begin_path()
    s.move_to(10, 10); s.line_to(100, 10); s.line_to(100, 100)
    s.close_path()
    s.fill("#ff0000", alpha=0.2)
    s.stroke("#0000ff", 2, glow=15)
    s.text(20, 20, "label")

    fill, stroke = _patches(s)
    assert fill.get_alpha() == pytest.approx(0.2)
    assert stroke.get_path_effects()
    assert stroke.get_linewidth() == pytest.approx(2 * 72 / 100)
    assert [t.get_text() for t in s.ax.texts] == ["label"]


def test_clear_removes_artists(mpl_surface):
    s = mpl_surface
    s.begin_path()
    s.move_to(0, 0); s.line_to(10, 10)
    s.stroke("k")
    s.text(1, 1, "x")
    s.clear()
    assert _patches(s) == []
    assert len(s.ax.texts) == 0
    assert s.ax.get_ylim() == (pytest.approx(300), 0)


def test_full_frame_on_agg(mpl_surface):
    from graphcalc.renderer import Renderer
    from graphcalc.scene import Scene
    from graphcalc.view import ViewTransform

    scene = Scene()
    scene.add_function("sin(x)")
    scene.add_point(1, 1)
    Renderer(mpl_surface).render(scene, ViewTransform())
    mpl_surface.ax.figure.canvas.draw()
    assert len(_patches(mpl_surface)) >= 4

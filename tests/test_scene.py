import pytest

from graphcalc.errors import ExpressionError, SceneError
from graphcalc.scene import (
    Angle, Func, Measurement, Point, Polygon, Scene, Segment, new_id, point_label,
)


def _segment(scene, a, b):
    return scene.add(Segment(id=new_id(), point1_id=a.id, point2_id=b.id))


def test_add_keeps_insertion_order(scene):
    a = scene.add_point(0, 0)
    f = scene.add_function("x^2")
    b = scene.add_point(1, 1)
    assert [o.id for o in scene] == [a.id, f.id, b.id]
    assert scene.points() == [a, b]


def test_ids_are_unique(scene):
    p = scene.add_point(0, 0)
    with pytest.raises(SceneError):
        scene.add(Point(id=p.id, x=1, y=1))


def test_point_label():
    assert point_label(1, -2.345) == "(1.00, -2.35)"
    assert point_label(3.14159, 0, "Root") == "Root (3.14, 0.00)"


def test_add_function_with_bad_expression_leaves_scene_alone(scene):
    with pytest.raises(ExpressionError):
        scene.add_function("x +")
    assert len(scene) == 0


def test_update_recompiles_function(scene):
    f = scene.add_function("x^2")
    scene.update(f.id, expression="x + 1")
    assert f.expression == "x + 1"
    assert f.compiled.evaluate({"x": 1}) == pytest.approx(2)
    assert f.error is None


def test_invalid_update_keeps_last_good_curve(scene):
    f = scene.add_function("x^2")
    scene.update(f.id, expression="x^")
    assert f.expression == "x^"
    assert f.error
    assert f.compiled.text == "x^2"
    assert f.compiled.evaluate({"x": 3}) == pytest.approx(9)

    # the next good edit clears the error
    scene.update(f.id, expression="2x")
    assert f.error is None
    assert f.compiled.text == "2x"


def test_update_plain_fields(scene):
    p = scene.add_point(0, 0)
    scene.update(p.id, x=2.5, label="A")
    assert (p.x, p.label) == (2.5, "A")
    with pytest.raises(SceneError):
        scene.update(p.id, colour="red")
    with pytest.raises(SceneError):
        scene.update("missing", x=1)


def test_slider_names(scene):
    names = [scene.add_slider().name for _ in range(3)]
    assert names == ["a", "b", "c"]


def test_deleted_slider_name_is_not_reassigned(scene):
    a, b, c = (scene.add_slider() for _ in range(3))
    scene.delete(b.id)
    assert c.name == "c"
    # two sliders left: 'c' is the count-based pick but taken, so the next free letter
    assert scene.add_slider().name == "d"


def test_slider_names_run_out(scene):
    for _ in range(26):
        scene.add_slider()
    with pytest.raises(SceneError):
        scene.add_slider()


def test_scope_collects_slider_values(scene):
    a = scene.add_slider()
    scene.add_slider(value=-2.0)
    scene.update(a.id, value=0.5)
    assert scene.scope() == {"a": 0.5, "b": -2.0}


def test_delete_point_removes_segment(scene):
    a = scene.add_point(0, 0)
    b = scene.add_point(1, 1)
    seg = _segment(scene, a, b)
    removed = scene.delete(a.id)
    assert set(removed) == {a.id, seg.id}
    assert a.id not in scene and seg.id not in scene
    assert b.id in scene


def test_delete_point_removes_polygon_and_angle(scene):
    pts = [scene.add_point(x, y) for x, y in [(0, 0), (1, 0), (0, 1), (5, 5)]]
    poly = scene.add(Polygon(id=new_id(), point_ids=[p.id for p in pts[:3]]))
    ang = scene.add(Angle(id=new_id(), arm1_point_id=pts[1].id,
                          vertex_point_id=pts[0].id, arm2_point_id=pts[2].id))
    other = _segment(scene, pts[1], pts[3])
    scene.delete(pts[2].id)
    assert poly.id not in scene and ang.id not in scene
    assert other.id in scene


def test_delete_function_removes_all_derived_points(scene):
    f = scene.add_function("x^2")
    g = scene.add_function("x")
    user = scene.add_point(2, 2)
    from_f = scene.add_point(0, 0, label="Root (0.00, 0.00)", is_derived=True)
    from_g = scene.add_point(1, 1, label="Intersect (1.00, 1.00)", is_derived=True)
    seg = _segment(scene, user, from_g)

    scene.delete(f.id)

    remaining = {o.id for o in scene}
    assert remaining == {g.id, user.id}
    assert from_f.id not in remaining and from_g.id not in remaining
    # nothing left pointing at a removed point
    assert seg.id not in remaining


def test_measurement_survives_point_deletion(scene):
    a = scene.add_point(0, 0)
    m = scene.add(Measurement(id=new_id(), label="1.000", x=0.5, y=0))
    scene.delete(a.id)
    assert m.id in scene


def test_replace_derived_points_only_touches_prefix(scene):
    user = scene.add_point(0, 0, label="Root of my own")
    old_root = scene.add_point(1, 0, label="Root (1.00, 0.00)", is_derived=True)
    extremum = scene.add_point(2, 3, label="Extremum (2.00, 3.00)", is_derived=True)

    new = scene.replace_derived_points("Root", [(4.0, 0.0), (5.0, 0.0)])

    ids = {o.id for o in scene}
    assert old_root.id not in ids
    assert user.id in ids and extremum.id in ids
    assert [p.label for p in new] == ["Root (4.00, 0.00)", "Root (5.00, 0.00)"]
    assert all(p.is_derived for p in new)


def test_resolve_points(scene):
    a = scene.add_point(0, 0)
    f = scene.add_function("x")
    assert scene.resolve_points([a.id]) == [a]
    assert scene.resolve_points([a.id, "gone"]) is None
    assert scene.resolve_points([f.id]) is None


def test_to_list_strips_compiled_form(scene):
    f = scene.add_function("x^2", color="#123456")
    scene.update(f.id, expression="x^")
    a = scene.add_point(1, 2)
    poly = scene.add(Polygon(id=new_id(), point_ids=[a.id, a.id, a.id]))
    data = scene.to_list()
    assert data[0] == {"type": "function", "id": f.id, "expression": "x^", "color": "#123456"}
    assert data[1]["type"] == "point" and data[1]["is_derived"] is False
    assert data[2]["point_ids"] == [a.id] * 3
    assert isinstance(scene.get(f.id, Func), Func)
    with pytest.raises(SceneError):
        scene.get(poly.id, Func)

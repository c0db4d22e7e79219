import json

import pytest

from graphcalc.history import HistoryStore, snapshot


@pytest.fixture
def store(tmp_path):
    return HistoryStore(tmp_path / "nested" / "history.json")


def test_empty_store(store):
    assert store.items() == []


def test_save_graph_strips_compiled_forms(store, scene, view):
    func = scene.add_function("x^2", color="#d62728")
    scene.add_point(1, 2)
    view.pan(10, -5)

    item = store.save_graph(scene, view)

    assert item["type"] == "graph"
    assert item["name"] == "Saved Interactive Graph"
    assert isinstance(item["timestamp"], int)
    objects = item["data"]["objects"]
    assert objects[0] == {"type": "function", "id": func.id, "expression": "x^2", "color": "#d62728"}
    assert objects[1]["type"] == "point" and objects[1]["x"] == 1.0
    assert item["data"]["view_transform"] == {"pan_x": 10.0, "pan_y": -5.0, "zoom": 50.0}
    # survives a trip through the file
    assert store.items() == [item]


def test_newest_first(store, scene, view):
    store.add("graph", snapshot(scene, view), "first")
    store.add("graph", snapshot(scene, view), "second")
    assert [i["name"] for i in store.items()] == ["second", "first"]


def test_get_and_delete(store, scene, view):
    a = store.add("note", {"n": 1}, "a")
    a_id = a["id"]
    store.add("note", {"n": 2}, "b")
    assert store.get(a_id)["data"] == {"n": 1}
    remaining = store.delete(a_id)
    assert [i["name"] for i in remaining] == ["b"]
    assert store.get(a_id) is None


def test_clear(store, scene, view):
    store.save_graph(scene, view)
    store.clear()
    assert store.items() == []
    store.clear()


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "history.json"
    path.write_text("{not json", encoding="utf-8")
    assert HistoryStore(path).items() == []


def test_non_list_file_reads_as_empty(tmp_path):
    path = tmp_path / "history.json"
    path.write_text(json.dumps({"id": 1}), encoding="utf-8")
    assert HistoryStore(path).items() == []

"""场景存储测试模块"""

import pytest

from scenemcp.common.errors import ObjectNotFoundError, ParameterError
from scenemcp.scene import SceneStore
from scenemcp.scene.models import (
    DEFAULT_COLOR, DEFAULT_SCENE_ID, GeometryKind, SceneObject, to_color, to_vector,
    SCENE_CLEARED, OBJECT_ADDED, OBJECT_UPDATED, OBJECT_REMOVED,
)


def test_new_store_is_empty(store):
    assert store.render() == {"sceneId": None, "objects": []}
    assert len(store) == 0


def test_create_scene_replaces_everything(store):
    store.create_object({"id": "a", "type": "BoxGeometry"})
    snapshot = store.create_scene("level-1")
    assert snapshot == {"sceneId": "level-1", "objects": []}
    assert store.scene_id == "level-1"


def test_create_scene_default_id(store):
    assert store.create_scene()["sceneId"] == DEFAULT_SCENE_ID


def test_clear_is_idempotent(store):
    store.create_scene("s")
    store.create_object({"id": "a", "type": "BoxGeometry"})
    store.clear_scene()
    first = store.render()
    store.clear_scene()
    assert store.render() == first == {"sceneId": "s", "objects": []}


class TestCreateObject:
    """测试创建对象"""

    def test_defaults(self, store):
        obj = store.create_object({"id": "a", "type": "SphereGeometry"})
        assert obj == {
            "id": "a",
            "type": "SphereGeometry",
            "position": [0.0, 0.0, 0.0],
            "rotation": [0.0, 0.0, 0.0],
            "scale": [1.0, 1.0, 1.0],
            "color": DEFAULT_COLOR,
        }
        assert store.render()["objects"] == [obj]

    def test_parser_layout(self, store):
        obj = store.create_object({
            "id": "b",
            "type": "ConeGeometry",
            "properties": {
                "position": {"x": 1, "y": 2, "z": 3},
                "scale": {"x": 2, "y": 2, "z": 2},
                "materialOptions": {"color": 0x00ff00},
            },
        })
        assert obj["position"] == [1.0, 2.0, 3.0]
        assert obj["scale"] == [2.0, 2.0, 2.0]
        assert obj["color"] == 0x00ff00

    def test_top_level_fields(self, store):
        obj = store.create_object({"id": "c", "type": "torus", "position": [4, 5, 6],
                                   "color": "#0000ff"})
        assert obj["type"] == "TorusGeometry"
        assert obj["position"] == [4.0, 5.0, 6.0]
        assert obj["color"] == 0x0000ff

    def test_unknown_type_falls_back_to_box(self, store):
        assert store.create_object({"id": "d", "type": "teapot"})["type"] == "BoxGeometry"

    def test_id_is_assigned(self, store):
        obj = store.create_object({"type": "BoxGeometry"})
        assert obj["id"].startswith("obj_")
        assert store.get_object(obj["id"]) == obj

    def test_missing_type(self, store):
        with pytest.raises(ParameterError):
            store.create_object({"id": "e"})
        assert len(store) == 0

    def test_duplicate_id(self, store):
        store.create_object({"id": "a", "type": "BoxGeometry"})
        with pytest.raises(ParameterError):
            store.create_object({"id": "a", "type": "SphereGeometry"})
        assert [obj.id for obj in store.objects] == ["a"]
        assert store.get_object("a")["type"] == "BoxGeometry"

    def test_invalid_vector_leaves_scene_unchanged(self, store):
        with pytest.raises(ParameterError):
            store.create_object({"id": "a", "type": "BoxGeometry", "position": [1, 2]})
        assert len(store) == 0

    def test_display_order(self, store):
        for object_id in ("x", "y", "z"):
            store.create_object({"id": object_id, "type": "BoxGeometry"})
        assert [obj["id"] for obj in store.render()["objects"]] == ["x", "y", "z"]


class TestUpdateObject:
    """测试更新对象"""

    def test_shallow_merge(self, store):
        store.create_object({"id": "a", "type": "BoxGeometry", "position": [1, 1, 1],
                             "color": 0x123456})
        obj = store.update_object("a", {"position": [5, 6, 7]})
        assert obj["position"] == [5.0, 6.0, 7.0]
        assert obj["color"] == 0x123456
        assert obj["scale"] == [1.0, 1.0, 1.0]

    def test_material_color(self, store):
        store.create_object({"id": "a", "type": "BoxGeometry"})
        assert store.update_object("a", {"materialOptions": {"color": 0xffffff}})["color"] == 0xffffff

    def test_not_found_leaves_scene_unchanged(self, store):
        store.create_object({"id": "a", "type": "BoxGeometry"})
        before = store.render()
        with pytest.raises(ObjectNotFoundError) as exc_info:
            store.update_object("missing", {"position": [1, 2, 3]})
        assert exc_info.value.details == {"id": "missing"}
        assert store.render() == before

    def test_unknown_field(self, store):
        store.create_object({"id": "a", "type": "BoxGeometry"})
        before = store.render()
        with pytest.raises(ParameterError):
            store.update_object("a", {"position": [1, 2, 3], "mass": 5})
        assert store.render() == before

    def test_invalid_value_is_not_applied(self, store):
        store.create_object({"id": "a", "type": "BoxGeometry"})
        with pytest.raises(ParameterError):
            store.update_object("a", {"scale": [2, 2, 2], "color": "nope"})
        assert store.get_object("a")["scale"] == [1.0, 1.0, 1.0]


class TestDeleteObject:
    """测试删除对象"""

    def test_delete(self, store):
        store.create_object({"id": "a", "type": "BoxGeometry"})
        store.create_object({"id": "b", "type": "BoxGeometry"})
        assert store.delete_object("a") is True
        assert [obj["id"] for obj in store.render()["objects"]] == ["b"]

    def test_unknown_id_is_noop(self, store):
        store.create_object({"id": "a", "type": "BoxGeometry"})
        before = store.render()
        assert store.delete_object("missing") is False
        assert store.render() == before


def test_render_does_not_mutate(store):
    store.create_object({"id": "a", "type": "BoxGeometry"})
    snapshot = store.render()
    snapshot["objects"][0]["position"][0] = 99.0
    snapshot["objects"].clear()
    assert store.get_object("a")["position"] == [0.0, 0.0, 0.0]


def test_observers(store):
    events = []
    store.add_observer(events.append)
    store.create_object({"id": "a", "type": "BoxGeometry"})
    store.update_object("a", {"rotation": [0, 1, 0]})
    store.delete_object("a")
    store.delete_object("a")
    store.clear_scene()
    assert [event.kind for event in events] == [
        OBJECT_ADDED, OBJECT_UPDATED, OBJECT_REMOVED, SCENE_CLEARED
    ]
    assert events[1].object["rotation"] == [0.0, 1.0, 0.0]

    store.remove_observer(events.append)
    store.clear_scene()
    assert len(events) == 4


def test_failing_observer_does_not_break_store(store):
    def broken(event):
        raise RuntimeError("boom")

    seen = []
    store.add_observer(broken)
    store.add_observer(seen.append)
    store.create_object({"id": "a", "type": "BoxGeometry"})
    assert len(store) == 1
    assert len(seen) == 1


class TestModels:
    """测试模型辅助函数"""

    @pytest.mark.parametrize("value", ["SphereGeometry", "Sphere", "sphere", GeometryKind.SPHERE])
    def test_geometry_aliases(self, value):
        assert GeometryKind.from_value(value) is GeometryKind.SPHERE

    def test_vectors(self):
        assert to_vector({"x": 1, "y": 2, "z": 3}, "position") == [1.0, 2.0, 3.0]
        assert to_vector((1, 2, 3), "position") == [1.0, 2.0, 3.0]
        for bad in ({"x": 1}, [1, 2, 3, 4], ["a", 1, 2], "1 2 3",
                    [float("nan"), 0, 0], {"x": 0, "y": float("inf"), "z": 0}):
            with pytest.raises(ParameterError):
                to_vector(bad, "position")

    def test_colors(self):
        assert to_color("#ff8000") == 0xff8000
        assert to_color(255) == 255
        for bad in ("#xyz", -1, 0x1000000, True, 1.5):
            with pytest.raises(ParameterError):
                to_color(bad)

    def test_object_from_dict(self):
        obj = SceneObject.from_dict({"id": 7, "type": "cone", "position": [1, 2, 3]})
        assert obj.id == "7"
        assert obj.type is GeometryKind.CONE
        assert obj.position == [1.0, 2.0, 3.0]
        assert obj.color == DEFAULT_COLOR

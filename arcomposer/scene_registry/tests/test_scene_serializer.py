import random

from arcomposer.common.geometry import Transform, Vector3
from arcomposer.scene_registry.commands import AddObject, ResetScene
from arcomposer.scene_registry.models import AnimationType, MaterialPatch, MediaRef, ObjectKind, PrimitiveType
from arcomposer.scene_registry.serializer import export_scene, load_scene, scene_commands
from arcomposer.scene_registry.service import SceneRegistry


def _populated() -> SceneRegistry:
    registry = SceneRegistry(rng=random.Random(1))
    registry.add(
        "cube",
        ObjectKind.PRIMITIVE,
        PrimitiveType.CUBE,
        transform=Transform(position=Vector3(x=0.5, y=0.2, z=-1.5), scale=Vector3.uniform(0.4)),
        color="#00ff00",
    )
    registry.update_material("cube", MaterialPatch(normal_map_uri="file:///n.png"))
    registry.set_animation_layer("cube", "rotate", {"intensity": 1.5, "axis": "y"})
    registry.add(
        "photo",
        ObjectKind.IMAGE,
        media=MediaRef(uri="blob:1234", original_uri="file:///photo.jpg", mime_type="image/jpeg", resolved=True),
    )
    return registry


def test_export_shape():
    exported = export_scene(_populated())
    objects = {o["id"]: o for o in exported["objects"]}

    cube = objects["cube"]
    assert cube["type"] == "primitive"
    assert cube["primitiveType"] == "cube"
    assert cube["transform"] == {"position": [0.5, 0.2, -1.5], "rotation": [0.0, 0.0, 0.0], "scale": [0.4, 0.4, 0.4]}
    assert cube["material"] == {"color": "#00ff00", "textures": {"normalMap": "file:///n.png"}}
    assert cube["animations"]["rotate"]["intensity"] == 1.5
    assert cube["animations"]["rotate"]["axis"] == {"x": False, "y": True, "z": False}

    photo = objects["photo"]
    assert photo["type"] == "image-plane"
    assert photo["assetUri"] == "blob:1234"
    assert photo["originalUri"] == "file:///photo.jpg"


def test_export_writes_rest_pose_of_animating_object():
    registry = _populated()
    moved = Transform(position=Vector3(x=0.5, y=0.2, z=-1.5), rotation=Vector3(y=90), scale=Vector3.uniform(0.4))
    registry.commit_frame({"cube": moved})

    cube = next(o for o in export_scene(registry)["objects"] if o["id"] == "cube")
    assert cube["transform"]["rotation"] == [0.0, 0.0, 0.0]


def test_round_trip_restores_objects():
    exported = export_scene(_populated())
    restored = SceneRegistry()
    assert load_scene(restored, exported) == 2

    cube = restored.get("cube")
    assert cube.transform.position.to_list() == [0.5, 0.2, -1.5]
    assert cube.material.color == "#00ff00"
    assert cube.material.textures == {"normalMap": "file:///n.png"}
    rotate = cube.animations[AnimationType.ROTATE]
    assert rotate.intensity == 1.5
    assert rotate.active
    assert cube.base_transform is not None

    photo = restored.get("photo")
    # Session handles are not durable, reload points at the original source.
    assert photo.media.uri == "file:///photo.jpg"
    assert photo.media.resolved


def test_load_replaces_existing_scene():
    registry = _populated()
    load_scene(registry, {"objects": [{"id": "only", "type": "primitive", "primitiveType": "sphere"}]})
    assert registry.ids() == ["only"]
    assert registry.get("only").primitive_type == PrimitiveType.SPHERE


def test_malformed_entries_are_skipped():
    data = {
        "objects": [
            {"id": "ok", "type": "primitive"},
            {"id": "bad-type", "type": "hologram"},
            {"type": "primitive"},
            {"id": "bad-transform", "type": "primitive", "transform": {"position": [1, 2]}},
        ]
    }
    commands = scene_commands(data)
    assert isinstance(commands[0], ResetScene)
    assert [c.id for c in commands[1:] if isinstance(c, AddObject)] == ["ok"]


def test_missing_objects_list_yields_empty_scene():
    registry = _populated()
    assert load_scene(registry, {"nope": True}) == 0
    assert len(registry) == 0


def test_bad_color_skips_only_that_entry():
    registry = SceneRegistry()
    scene = {
        "objects": [
            {"id": "first", "type": "primitive"},
            {"id": "second", "type": "primitive", "material": {"color": "red"}},
            {"id": "third", "type": "primitive", "material": {"color": "#0F0"}},
        ]
    }
    assert load_scene(registry, scene) == 2
    assert sorted(registry.ids()) == ["first", "third"]
    assert registry.get("third").material.color == "#00ff00"


def test_non_object_material_is_skipped():
    registry = SceneRegistry()
    registry.add("stale", ObjectKind.PRIMITIVE)
    scene = {
        "objects": [
            {"id": "a", "type": "primitive", "material": "red"},
            {"id": "b", "type": "primitive", "material": {"textures": ["file:///t.png"]}},
            {"id": "c", "type": "primitive", "transform": "upright"},
            {"id": "d", "type": "primitive"},
        ]
    }
    assert load_scene(registry, scene) == 1
    assert registry.ids() == ["d"]

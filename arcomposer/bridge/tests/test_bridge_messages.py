import pytest

from arcomposer.bridge.messages import (
    AddPrimitiveMessage,
    ArrangeFormationMessage,
    ExportCompleteMessage,
    InvalidMessage,
    LogMessage,
    StreamStartMessage,
    UpdateObjectMaterialMessage,
    parse_inbound,
)
from arcomposer.scene_registry.arrange import FormationType
from arcomposer.scene_registry.models import PrimitiveType


def test_parse_uses_type_tag():
    msg = parse_inbound('{"type": "add-primitive", "id": "p"}')
    assert isinstance(msg, AddPrimitiveMessage)
    assert msg.primitive == PrimitiveType.CUBE


def test_camel_case_fields():
    msg = parse_inbound(
        {"type": "stream-start", "id": "s", "totalChunks": 3, "mimeType": "video/mp4", "originalUri": "file:///v.mp4"}
    )
    assert isinstance(msg, StreamStartMessage)
    assert msg.total_chunks == 3
    assert msg.original_uri == "file:///v.mp4"
    assert msg.to_wire()["totalChunks"] == 3


def test_material_patch_aliases():
    msg = parse_inbound({"type": "update-object-material", "id": "p", "material": {"mapUri": "file:///t.png"}})
    assert isinstance(msg, UpdateObjectMaterialMessage)
    assert msg.material.texture_updates() == {"map": "file:///t.png"}


def test_formation_params_defaults():
    msg = parse_inbound({"type": "arrange-formation", "formationType": "ring"})
    assert isinstance(msg, ArrangeFormationMessage)
    assert msg.formation == FormationType.RING
    assert msg.params.radius == 1.5
    assert msg.params.center_z == -2.0


@pytest.mark.parametrize(
    "raw, reason",
    [
        ("nope", "not valid JSON"),
        ("[1, 2]", "must be a JSON object"),
        ({"id": "p"}, "unknown message type"),
        ({"type": ["add-primitive"]}, "unknown message type"),
        ({"type": "stream-start", "id": "s"}, "malformed stream-start"),
        ({"type": "stream-start", "id": "s", "totalChunks": -1, "mimeType": "image/png"}, "malformed stream-start"),
    ],
)
def test_invalid_payloads(raw, reason):
    with pytest.raises(InvalidMessage) as excinfo:
        parse_inbound(raw)
    assert reason in excinfo.value.reason


def test_validation_details_are_serializable():
    with pytest.raises(InvalidMessage) as excinfo:
        parse_inbound({"type": "stream-chunk", "id": "t"})
    errors = excinfo.value.details["errors"]
    assert {tuple(e["loc"])[-1] for e in errors} == {"chunkIndex", "data"}
    assert all("input" not in e and "url" not in e for e in errors)


def test_messages_are_immutable():
    msg = parse_inbound({"type": "remove-object", "id": "p"})
    with pytest.raises(Exception):
        msg.id = "q"


def test_outbound_wire_names():
    export = ExportCompleteMessage(scene={"objects": []}, cover_image_uri="file:///c.jpg")
    assert export.to_wire() == {
        "type": "export-complete",
        "scene": {"objects": []},
        "finalVideoUri": None,
        "coverImageURI": "file:///c.jpg",
    }
    assert LogMessage(message="m", level="error").to_wire() == {"type": "log", "message": "m", "level": "error"}

"""Cross-boundary message schema (host <-> engine).

Each message kind is its own model tagged by a `type` literal. Field names
on the wire are camelCase.
"""
from __future__ import annotations

import json
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Tuple, Type, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from arcomposer.scene_registry.arrange import (
    BatchParams,
    BatchTransformType,
    FormationParams,
    FormationType,
)
from arcomposer.scene_registry.models import MaterialPatch, PrimitiveType, normalize_hex_color


class InvalidMessage(ValueError):
    """Raised when a payload is not a well-formed inbound message."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(reason)
        self.reason = reason
        self.details = details or {}


class _Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# --- host -> engine ---

class AddPrimitiveMessage(_Message):
    type: Literal["add-primitive"] = "add-primitive"
    id: str
    primitive: PrimitiveType = PrimitiveType.CUBE
    color: Optional[str] = None

    @field_validator("color")
    @classmethod
    def _check_color(cls, value: Optional[str]) -> Optional[str]:
        return normalize_hex_color(value) if value is not None else None


class AddImageMessage(_Message):
    type: Literal["add-image"] = "add-image"
    id: str
    uri: str
    original_uri: Optional[str] = Field(default=None, alias="originalUri")


class AddVideoMessage(_Message):
    type: Literal["add-video"] = "add-video"
    id: str
    uri: str
    original_uri: Optional[str] = Field(default=None, alias="originalUri")


class AddModelMessage(_Message):
    type: Literal["add-model"] = "add-model"
    id: str
    uri: str
    original_uri: Optional[str] = Field(default=None, alias="originalUri")


class RemoveObjectMessage(_Message):
    type: Literal["remove-object"] = "remove-object"
    id: str


class ResetSceneMessage(_Message):
    type: Literal["reset-scene"] = "reset-scene"


class LoadSceneMessage(_Message):
    type: Literal["load-scene"] = "load-scene"
    scene: Dict[str, Any] = Field(default_factory=dict)


class UpdateObjectMaterialMessage(_Message):
    type: Literal["update-object-material"] = "update-object-material"
    id: str
    material: MaterialPatch


class AnimationSpec(BaseModel):
    # Plain string: unknown types are dropped by the registry, not rejected here.
    type: str
    params: Dict[str, Any] = Field(default_factory=dict)
    active: bool = True


class AddObjectAnimationMessage(_Message):
    type: Literal["add-object-animation"] = "add-object-animation"
    id: str
    animation: AnimationSpec


class UpdateObjectAnimationMessage(_Message):
    type: Literal["update-object-animation"] = "update-object-animation"
    id: str
    animation_id: str = Field(alias="animationId")
    params: Dict[str, Any] = Field(default_factory=dict)


class SelectObjectMessage(_Message):
    type: Literal["select-object"] = "select-object"
    id: Optional[str] = None


class StreamStartMessage(_Message):
    type: Literal["stream-start"] = "stream-start"
    id: str
    total_chunks: int = Field(alias="totalChunks", ge=0)
    mime_type: str = Field(alias="mimeType")
    media_type: Optional[Literal["image", "video"]] = Field(default=None, alias="mediaType")
    original_uri: Optional[str] = Field(default=None, alias="originalUri")


class StreamChunkMessage(_Message):
    type: Literal["stream-chunk"] = "stream-chunk"
    id: str
    chunk_index: int = Field(alias="chunkIndex")
    data: str


class StreamEndMessage(_Message):
    type: Literal["stream-end"] = "stream-end"
    id: str


class StreamCancelMessage(_Message):
    type: Literal["stream-cancel"] = "stream-cancel"
    id: str


class RequestExportMessage(_Message):
    type: Literal["request-export"] = "request-export"


class ArrangeFormationMessage(_Message):
    type: Literal["arrange-formation"] = "arrange-formation"
    formation: FormationType = Field(alias="formationType")
    params: FormationParams = Field(default_factory=FormationParams)


class BatchTransformMessage(_Message):
    type: Literal["batch-transform"] = "batch-transform"
    transform_type: BatchTransformType = Field(alias="transformType")
    params: BatchParams = Field(default_factory=BatchParams)


InboundMessage = Annotated[
    Union[
        AddPrimitiveMessage,
        AddImageMessage,
        AddVideoMessage,
        AddModelMessage,
        RemoveObjectMessage,
        ResetSceneMessage,
        LoadSceneMessage,
        UpdateObjectMaterialMessage,
        AddObjectAnimationMessage,
        UpdateObjectAnimationMessage,
        SelectObjectMessage,
        StreamStartMessage,
        StreamChunkMessage,
        StreamEndMessage,
        StreamCancelMessage,
        RequestExportMessage,
        ArrangeFormationMessage,
        BatchTransformMessage,
    ],
    Field(discriminator="type"),
]

INBOUND_TYPES: Tuple[Type[_Message], ...] = get_args(get_args(InboundMessage)[0])
INBOUND_KINDS = frozenset(cls.model_fields["type"].default for cls in INBOUND_TYPES)

_inbound_adapter: TypeAdapter = TypeAdapter(InboundMessage)


# --- engine -> host ---

class ObjectSelectedMessage(_Message):
    type: Literal["object-selected"] = "object-selected"
    id: Optional[str] = None
    animations: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class ExportCompleteMessage(_Message):
    type: Literal["export-complete"] = "export-complete"
    scene: Dict[str, Any]
    final_video_uri: Optional[str] = Field(default=None, alias="finalVideoUri")
    cover_image_uri: Optional[str] = Field(default=None, alias="coverImageURI")


class LogMessage(_Message):
    type: Literal["log"] = "log"
    message: str
    level: Literal["info", "warn", "error"] = "info"


OutboundMessage = Annotated[
    Union[ObjectSelectedMessage, ExportCompleteMessage, LogMessage],
    Field(discriminator="type"),
]


def parse_inbound(raw: Union[str, bytes, Mapping[str, Any]]) -> InboundMessage:
    """Validate a raw payload (JSON text or decoded dict) into a typed message."""
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise InvalidMessage(f"not valid JSON: {exc.msg}") from exc
    if not isinstance(raw, Mapping):
        raise InvalidMessage("message must be a JSON object")
    kind = raw.get("type")
    if not isinstance(kind, str) or kind not in INBOUND_KINDS:
        raise InvalidMessage(f"unknown message type {kind!r}", {"type": kind})
    try:
        return _inbound_adapter.validate_python(dict(raw))
    except ValidationError as exc:
        raise InvalidMessage(
            f"malformed {kind} message",
            {"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ) from exc

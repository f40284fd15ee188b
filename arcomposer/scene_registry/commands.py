"""Immutable registry commands.

Every mutation of the scene is expressed as one of these and applied by
SceneRegistry, the single writer of scene state.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from arcomposer.common.geometry import Transform, TransformPatch
from arcomposer.scene_registry.models import (
    AnimationType,
    MaterialPatch,
    MediaRef,
    ObjectKind,
    PrimitiveType,
    normalize_hex_color,
)


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True)


class AddObject(_Command):
    kind: Literal["add_object"] = "add_object"
    id: str
    object_kind: ObjectKind
    primitive_type: Optional[PrimitiveType] = None
    # None means "use spawn placement"; restored objects pass their saved transform.
    transform: Optional[Transform] = None
    color: Optional[str] = None
    textures: Dict[str, str] = Field(default_factory=dict)
    media: Optional[MediaRef] = None
    animations: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @field_validator("color")
    @classmethod
    def _check_color(cls, value: Optional[str]) -> Optional[str]:
        return normalize_hex_color(value) if value is not None else None


class RemoveObject(_Command):
    kind: Literal["remove_object"] = "remove_object"
    id: str


class UpdateMaterial(_Command):
    kind: Literal["update_material"] = "update_material"
    id: str
    patch: MaterialPatch


class UpdateTransform(_Command):
    kind: Literal["update_transform"] = "update_transform"
    id: str
    patch: TransformPatch
    # Also move the pre-animation base so the edit survives an active animation.
    rebase: bool = False


class SetAnimationLayer(_Command):
    kind: Literal["set_animation_layer"] = "set_animation_layer"
    id: str
    # Kept as a string so unknown types reach the registry and are ignored there.
    animation_type: Union[AnimationType, str]
    params: Dict[str, Any] = Field(default_factory=dict)
    active: Optional[bool] = None


class ResetScene(_Command):
    kind: Literal["reset_scene"] = "reset_scene"


SceneCommand = Annotated[
    Union[AddObject, RemoveObject, UpdateMaterial, UpdateTransform, SetAnimationLayer, ResetScene],
    Field(discriminator="kind"),
]

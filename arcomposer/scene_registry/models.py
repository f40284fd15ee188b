"""Scene Registry data model: objects, animation layers, curves."""
from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from arcomposer.common.geometry import Transform

MAX_HEIGHT_METERS = 3.0
_HEX_COLOR = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


# --- Animation types ---

class AnimationType(str, Enum):
    BOUNCE = "bounce"
    PULSE = "pulse"
    ROTATE = "rotate"
    SCALE = "scale"
    WIGGLE = "wiggle"
    RANDOM = "random"
    PATH = "path"
    VERTICAL = "vertical"

    @classmethod
    def parse(cls, value: Any) -> Optional[AnimationType]:
        """Lenient lookup used at the message boundary; None for unknown types."""
        if isinstance(value, AnimationType):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        if key == "float":
            return cls.RANDOM
        try:
            return cls(key)
        except ValueError:
            return None


# Fixed evaluation order for procedural layers.
PROCEDURAL_ORDER: Tuple[AnimationType, ...] = (
    AnimationType.BOUNCE,
    AnimationType.PULSE,
    AnimationType.ROTATE,
    AnimationType.SCALE,
    AnimationType.WIGGLE,
    AnimationType.RANDOM,
)
CURVE_TYPES: Tuple[AnimationType, ...] = (AnimationType.PATH, AnimationType.VERTICAL)
EVALUATION_ORDER: Tuple[AnimationType, ...] = PROCEDURAL_ORDER + CURVE_TYPES


# --- Curves ---

class Interpolation(str, Enum):
    LINEAR = "linear"
    SMOOTH = "smooth"


class PlaybackMode(str, Enum):
    ONCE = "once"
    LOOP = "loop"
    PINGPONG = "pingpong"


class PathPoint(BaseModel):
    """Planar sample in meters (X/Z floor plane)."""
    x: float
    z: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.z)


class HeightPoint(BaseModel):
    """Normalized time against height in meters."""
    t: float = Field(ge=0.0, le=1.0)
    y: float = Field(ge=0.0, le=MAX_HEIGHT_METERS)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.t, self.y)


class PathCurve(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["path"] = "path"
    points: List[PathPoint] = Field(default_factory=list)
    interpolation: Interpolation = Interpolation.SMOOTH
    playback: PlaybackMode = Field(default=PlaybackMode.LOOP, alias="playMode")
    duration_s: float = Field(default=5.0, gt=0.0, alias="duration")

    def is_playable(self) -> bool:
        return len(self.points) >= 2

    def is_closed(self) -> bool:
        return len(self.points) >= 2 and self.points[0] == self.points[-1]

    def as_tuples(self) -> List[Tuple[float, float]]:
        return [p.as_tuple() for p in self.points]


class HeightCurve(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["height"] = "height"
    points: List[HeightPoint] = Field(default_factory=list)
    interpolation: Interpolation = Interpolation.SMOOTH

    def is_playable(self) -> bool:
        return len(self.points) >= 2

    def is_loop_closed(self) -> bool:
        return len(self.points) >= 2 and self.points[0].y == self.points[-1].y

    def as_tuples(self) -> List[Tuple[float, float]]:
        return [p.as_tuple() for p in self.points]


Curve = Annotated[Union[PathCurve, HeightCurve], Field(discriminator="kind")]


# --- Animation layers ---

class RotationAxis(BaseModel):
    x: bool = False
    y: bool = True
    z: bool = False


class AnimationLayer(BaseModel):
    """One toggleable motion effect on a scene object."""
    model_config = ConfigDict(populate_by_name=True)

    type: AnimationType
    active: bool = True
    intensity: float = 1.0
    axis: RotationAxis = Field(default_factory=RotationAxis)
    distance: float = 1.0
    phase_offset: float = Field(default=0.0, ge=0.0, lt=1.0, alias="phaseOffset")
    duration_s: float = Field(default=5.0, gt=0.0, alias="duration")
    curve: Optional[Curve] = None
    # Clock value of the first evaluation after activation; runtime only.
    started_at_ms: Optional[float] = Field(default=None, exclude=True)

    @field_validator("axis", mode="before")
    @classmethod
    def _coerce_axis(cls, value: Any) -> Any:
        # Accept "y", ["x", "z"] as well as {"x": .., "y": .., "z": ..}.
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple)):
            names = {str(v).lower() for v in value}
            return {"x": "x" in names, "y": "y" in names, "z": "z" in names}
        return value

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "active": self.active,
            "intensity": self.intensity,
            "phaseOffset": self.phase_offset,
        }
        if self.type == AnimationType.ROTATE:
            params["axis"] = self.axis.model_dump()
        if self.type == AnimationType.RANDOM:
            params["distance"] = self.distance
        if self.type in CURVE_TYPES:
            params["duration"] = self.duration_s
            params["curve"] = self.curve.model_dump(by_alias=True, mode="json") if self.curve else None
        return params


# --- Materials & media ---

class Material(BaseModel):
    color: str = "#ffffff"
    # keys are texture slots ("map", "normalMap", "roughnessMap"), values are uris
    textures: Dict[str, str] = Field(default_factory=dict)

    @field_validator("color")
    @classmethod
    def _normalize_color(cls, value: str) -> str:
        return normalize_hex_color(value)


class MaterialPatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    color: Optional[str] = None
    map_uri: Optional[str] = Field(default=None, alias="mapUri")
    normal_map_uri: Optional[str] = Field(default=None, alias="normalMapUri")
    roughness_map_uri: Optional[str] = Field(default=None, alias="roughnessMapUri")

    @field_validator("color")
    @classmethod
    def _normalize_color(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return normalize_hex_color(value)

    def texture_updates(self) -> Dict[str, str]:
        slots = {
            "map": self.map_uri,
            "normalMap": self.normal_map_uri,
            "roughnessMap": self.roughness_map_uri,
        }
        return {slot: uri for slot, uri in slots.items() if uri}


def normalize_hex_color(value: str) -> str:
    if not isinstance(value, str) or not _HEX_COLOR.match(value):
        raise ValueError(f"color must be #rgb or #rrggbb, got {value!r}")
    digits = value[1:].lower()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"


class MediaRef(BaseModel):
    uri: Optional[str] = None
    original_uri: Optional[str] = None  # durable source kept for re-export
    handle_id: Optional[str] = None  # session-scoped handle minted by the transfer channel
    mime_type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    resolved: bool = False


# --- Scene objects ---

class ObjectKind(str, Enum):
    PRIMITIVE = "primitive"
    IMAGE = "image-plane"
    VIDEO = "video-plane"
    MODEL = "model"


class PrimitiveType(str, Enum):
    CUBE = "cube"
    SPHERE = "sphere"
    PLANE = "plane"
    CYLINDER = "cylinder"


class SceneObject(BaseModel):
    id: str
    kind: ObjectKind
    primitive_type: Optional[PrimitiveType] = None
    transform: Transform = Field(default_factory=Transform)
    # Pre-animation transform; only set while at least one layer is active.
    base_transform: Optional[Transform] = None
    material: Material = Field(default_factory=Material)
    animations: Dict[AnimationType, AnimationLayer] = Field(default_factory=dict)
    media: Optional[MediaRef] = None

    def active_layers(self) -> List[AnimationLayer]:
        return [
            self.animations[t]
            for t in EVALUATION_ORDER
            if t in self.animations and self.animations[t].active
        ]

    def has_active_layers(self) -> bool:
        return any(layer.active for layer in self.animations.values())

    def rest_transform(self) -> Transform:
        """Transform without any animation contribution."""
        return self.base_transform if self.base_transform is not None else self.transform


class SceneSnapshot(BaseModel):
    """Read-only view published to the rendering layer."""
    model_config = ConfigDict(frozen=True)

    revision: int
    objects: Dict[str, SceneObject] = Field(default_factory=dict)
    selected_id: Optional[str] = None

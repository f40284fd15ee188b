"""Core geometry types shared by every composer engine."""
from __future__ import annotations

import math
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field


class Vector3(BaseModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def add(self, other: Vector3) -> Vector3:
        return Vector3(x=self.x + other.x, y=self.y + other.y, z=self.z + other.z)

    def sub(self, other: Vector3) -> Vector3:
        return Vector3(x=self.x - other.x, y=self.y - other.y, z=self.z - other.z)

    def mul(self, scalar: float) -> Vector3:
        return Vector3(x=self.x * scalar, y=self.y * scalar, z=self.z * scalar)

    def hadamard(self, other: Vector3) -> Vector3:
        """Component-wise product (used for scale composition)."""
        return Vector3(x=self.x * other.x, y=self.y * other.y, z=self.z * other.z)

    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def distance_to(self, other: Vector3) -> float:
        return self.sub(other).magnitude()

    def to_list(self) -> List[float]:
        return [self.x, self.y, self.z]

    @staticmethod
    def from_list(values: Sequence[float]) -> Vector3:
        if len(values) != 3:
            raise ValueError(f"expected 3 components, got {len(values)}")
        return Vector3(x=float(values[0]), y=float(values[1]), z=float(values[2]))

    @staticmethod
    def uniform(value: float) -> Vector3:
        return Vector3(x=value, y=value, z=value)


class Transform(BaseModel):
    """Position in meters, Euler rotation in degrees, per-axis scale."""
    position: Vector3 = Field(default_factory=Vector3)
    rotation: Vector3 = Field(default_factory=Vector3)
    scale: Vector3 = Field(default_factory=lambda: Vector3.uniform(1.0))

    def to_wire(self) -> dict:
        return {
            "position": self.position.to_list(),
            "rotation": self.rotation.to_list(),
            "scale": self.scale.to_list(),
        }

    @staticmethod
    def from_wire(data: Optional[dict]) -> Transform:
        data = data or {}
        tf = Transform()
        if data.get("position") is not None:
            tf.position = Vector3.from_list(data["position"])
        if data.get("rotation") is not None:
            tf.rotation = Vector3.from_list(data["rotation"])
        if data.get("scale") is not None:
            tf.scale = Vector3.from_list(data["scale"])
        return tf


class TransformPatch(BaseModel):
    """Partial transform update; omitted components are left untouched."""
    position: Optional[Vector3] = None
    rotation: Optional[Vector3] = None
    scale: Optional[Vector3] = None

    def apply_to(self, transform: Transform) -> Transform:
        updated = transform.model_copy(deep=True)
        if self.position is not None:
            updated.position = self.position.model_copy()
        if self.rotation is not None:
            updated.rotation = self.rotation.model_copy()
        if self.scale is not None:
            updated.scale = self.scale.model_copy()
        return updated

    def is_empty(self) -> bool:
        return self.position is None and self.rotation is None and self.scale is None

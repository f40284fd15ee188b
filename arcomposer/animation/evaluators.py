"""Per-layer motion functions and pose composition.

Procedural layers are periodic in their own cycle. Position and rotation
contributions add; scale contributions multiply. Path and vertical layers
sample their curve and own the axes they drive (X/Z and Y respectively),
which suppresses procedural position offsets on those axes.
"""
from __future__ import annotations

import math
from typing import Callable, Dict, Mapping, Sequence

from pydantic import BaseModel, Field

from arcomposer.common.geometry import Transform, Vector3
from arcomposer.curves.spline import sample_height, sample_path
from arcomposer.scene_registry.models import (
    AnimationLayer,
    AnimationType,
    HeightCurve,
    PathCurve,
    PlaybackMode,
)

CYCLE_MS: Dict[AnimationType, float] = {
    AnimationType.BOUNCE: 600.0,
    AnimationType.PULSE: 800.0,
    AnimationType.ROTATE: 2000.0,
    AnimationType.SCALE: 1000.0,
    AnimationType.WIGGLE: 300.0,
    AnimationType.RANDOM: 4000.0,
}

BOUNCE_HEIGHT = 0.15
PULSE_AMPLITUDE = 0.15
SCALE_AMPLITUDE = 0.3
WIGGLE_DEGREES = 5.0
RANDOM_AMPLITUDE = 0.1
RANDOM_Y_DAMPING = 0.6
# Lissajous frequency ratio and phase per axis (x, y, z).
RANDOM_FREQUENCIES = (2.0, 3.0, 2.0)
RANDOM_PHASES = (0.0, math.pi / 4, math.pi / 2)

TWO_PI = math.pi * 2


class Contribution(BaseModel):
    """What one procedural layer adds to the base pose."""
    position: Vector3 = Field(default_factory=Vector3)
    rotation: Vector3 = Field(default_factory=Vector3)
    scale: Vector3 = Field(default_factory=lambda: Vector3.uniform(1.0))


def layer_phase(layer: AnimationLayer, elapsed_ms: float) -> float:
    cycle = CYCLE_MS[layer.type]
    return (elapsed_ms / cycle + layer.phase_offset) % 1.0


def bounce(layer: AnimationLayer, elapsed_ms: float) -> Contribution:
    phase = layer_phase(layer, elapsed_ms)
    lift = abs(math.sin(TWO_PI * phase)) * BOUNCE_HEIGHT * layer.intensity
    return Contribution(position=Vector3(y=lift))


def _scale_wave(layer: AnimationLayer, elapsed_ms: float, amplitude: float) -> Contribution:
    phase = layer_phase(layer, elapsed_ms)
    factor = 1.0 + math.sin(TWO_PI * phase) * amplitude * layer.intensity
    return Contribution(scale=Vector3.uniform(factor))


def pulse(layer: AnimationLayer, elapsed_ms: float) -> Contribution:
    return _scale_wave(layer, elapsed_ms, PULSE_AMPLITUDE)


def scale(layer: AnimationLayer, elapsed_ms: float) -> Contribution:
    return _scale_wave(layer, elapsed_ms, SCALE_AMPLITUDE)


def rotate(layer: AnimationLayer, elapsed_ms: float) -> Contribution:
    # Unwrapped cycle count so the angle keeps accumulating across cycles.
    cycles = elapsed_ms / CYCLE_MS[AnimationType.ROTATE] + layer.phase_offset
    degrees = (cycles * 360.0 * layer.intensity) % 360.0
    axis = layer.axis
    return Contribution(
        rotation=Vector3(
            x=degrees if axis.x else 0.0,
            y=degrees if axis.y else 0.0,
            z=degrees if axis.z else 0.0,
        )
    )


def wiggle(layer: AnimationLayer, elapsed_ms: float) -> Contribution:
    phase = layer_phase(layer, elapsed_ms)
    return Contribution(rotation=Vector3(z=math.sin(2 * TWO_PI * phase) * WIGGLE_DEGREES * layer.intensity))


def random_float(layer: AnimationLayer, elapsed_ms: float) -> Contribution:
    phase = layer_phase(layer, elapsed_ms)
    amplitude = RANDOM_AMPLITUDE * layer.intensity * layer.distance
    offsets = [
        amplitude * (math.sin(freq * TWO_PI * phase + delta) - math.sin(delta))
        for freq, delta in zip(RANDOM_FREQUENCIES, RANDOM_PHASES)
    ]
    return Contribution(position=Vector3(x=offsets[0], y=offsets[1] * RANDOM_Y_DAMPING, z=offsets[2]))


PROCEDURAL_EVALUATORS: Dict[AnimationType, Callable[[AnimationLayer, float], Contribution]] = {
    AnimationType.BOUNCE: bounce,
    AnimationType.PULSE: pulse,
    AnimationType.ROTATE: rotate,
    AnimationType.SCALE: scale,
    AnimationType.WIGGLE: wiggle,
    AnimationType.RANDOM: random_float,
}


def curve_progress(elapsed_ms: float, duration_s: float, playback: PlaybackMode) -> float:
    """Normalized time along a curve. Ping-pong plays as a forward loop."""
    u = elapsed_ms / (duration_s * 1000.0)
    if playback == PlaybackMode.ONCE:
        return min(u, 1.0)
    return u % 1.0


def compose_pose(
    base: Transform,
    layers: Sequence[AnimationLayer],
    elapsed_ms: Mapping[AnimationType, float],
) -> Transform:
    """Combine active layers (already in evaluation order) on top of base."""
    by_type = {layer.type: layer for layer in layers if layer.active}
    path_layer = by_type.get(AnimationType.PATH)
    vertical_layer = by_type.get(AnimationType.VERTICAL)
    path_curve = path_layer.curve if path_layer and isinstance(path_layer.curve, PathCurve) else None
    height_curve = (
        vertical_layer.curve if vertical_layer and isinstance(vertical_layer.curve, HeightCurve) else None
    )

    position = base.position.model_copy()
    rotation = base.rotation.model_copy()
    scale_vec = base.scale.model_copy()

    for layer in layers:
        evaluator = PROCEDURAL_EVALUATORS.get(layer.type)
        if evaluator is None or not layer.active:
            continue
        contribution = evaluator(layer, elapsed_ms.get(layer.type, 0.0))
        offset = contribution.position
        if path_curve is not None:
            offset = Vector3(y=offset.y)
        if height_curve is not None:
            offset = Vector3(x=offset.x, z=offset.z)
        position = position.add(offset)
        rotation = rotation.add(contribution.rotation)
        scale_vec = scale_vec.hadamard(contribution.scale)

    if path_curve is not None and path_curve.is_playable():
        u = curve_progress(elapsed_ms.get(AnimationType.PATH, 0.0), path_curve.duration_s, path_curve.playback)
        position.x, position.z = sample_path(path_curve, u)

    if height_curve is not None and height_curve.is_playable():
        # Follow the path's loop length when both are active so they stay in phase.
        duration_s = path_curve.duration_s if path_curve is not None else vertical_layer.duration_s
        u = curve_progress(elapsed_ms.get(AnimationType.VERTICAL, 0.0), duration_s, PlaybackMode.LOOP)
        position.y = sample_height(height_curve, u)

    return Transform(position=position, rotation=rotation, scale=scale_vec)

"""Curve Authoring Engine.

Turns freehand pointer samples into simplified, loop-safe curves and hands
them to the registry as path/vertical animation layers.
"""
from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

from arcomposer.curves.loops import clamp_height_span, close_height_loop, close_path_loop
from arcomposer.curves.presets import HeightPreset, preset_samples
from arcomposer.curves.simplify import rdp_simplify
from arcomposer.scene_registry.models import (
    MAX_HEIGHT_METERS,
    AnimationType,
    HeightCurve,
    HeightPoint,
    Interpolation,
    PathCurve,
    PathPoint,
    PlaybackMode,
)
from arcomposer.scene_registry.service import SceneRegistry

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

PATH_MIN_SPACING = 0.2
PATH_TOLERANCE = 0.25
HEIGHT_MIN_ADVANCE = 0.01
HEIGHT_TOLERANCE = 0.03
DEFAULT_DURATION_S = 5.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class PathAuthoringSession:
    """Collects planar (x, z) samples for one drawing gesture."""

    def __init__(self, min_spacing: float = PATH_MIN_SPACING, tolerance: float = PATH_TOLERANCE):
        self.min_spacing = min_spacing
        self.tolerance = tolerance
        self._points: List[Point] = []

    @property
    def points(self) -> List[Point]:
        return list(self._points)

    def begin(self, x: float, z: float) -> None:
        self._points = [(float(x), float(z))]

    def add_sample(self, x: float, z: float) -> bool:
        """Commit the sample only if it moved far enough from the last one."""
        point = (float(x), float(z))
        if not self._points:
            self._points.append(point)
            return True
        last = self._points[-1]
        if math.hypot(point[0] - last[0], point[1] - last[1]) > self.min_spacing:
            self._points.append(point)
            return True
        return False

    def finish(self) -> List[Point]:
        pts = self._points
        if len(pts) >= 3:
            pts = rdp_simplify(pts, self.tolerance)
        result = close_path_loop(pts)
        logger.debug(f"Path stroke: {len(self._points)} samples -> {len(result)} points")
        self._points = []
        return result


class HeightAuthoringSession:
    """Collects (t, height) samples, requiring time to move forward."""

    def __init__(self, min_advance: float = HEIGHT_MIN_ADVANCE, tolerance: float = HEIGHT_TOLERANCE):
        self.min_advance = min_advance
        self.tolerance = tolerance
        self._points: List[Point] = []

    @property
    def points(self) -> List[Point]:
        return list(self._points)

    @staticmethod
    def _clamped(t: float, y: float) -> Point:
        return (_clamp(float(t), 0.0, 1.0), _clamp(float(y), 0.0, MAX_HEIGHT_METERS))

    def begin(self, t: float, y: float) -> None:
        self._points = [self._clamped(t, y)]

    def add_sample(self, t: float, y: float) -> bool:
        point = self._clamped(t, y)
        if not self._points:
            self._points.append(point)
            return True
        if point[0] > self._points[-1][0] + self.min_advance:
            self._points.append(point)
            return True
        return False

    def finish(self) -> List[Point]:
        pts = clamp_height_span(self._points)
        if len(pts) >= 3:
            pts = rdp_simplify(pts, self.tolerance)
        result = close_height_loop(pts)
        self._points = []
        return result


class CurveAuthoringService:
    """Applies or clears authored curves on scene objects."""

    def __init__(self, registry: SceneRegistry):
        self._registry = registry

    def build_path_curve(
        self,
        points: Sequence[Point],
        interpolation: Interpolation = Interpolation.SMOOTH,
        playback: PlaybackMode = PlaybackMode.LOOP,
        duration_s: float = DEFAULT_DURATION_S,
    ) -> Optional[PathCurve]:
        closed = close_path_loop(points)
        if len(closed) < 2:
            return None
        return PathCurve(
            points=[PathPoint(x=x, z=z) for x, z in closed],
            interpolation=interpolation,
            playback=playback,
            duration_s=duration_s,
        )

    def build_height_curve(
        self,
        points: Sequence[Point],
        interpolation: Interpolation = Interpolation.SMOOTH,
    ) -> Optional[HeightCurve]:
        if len(points) < 2:
            return None
        clamped = [HeightAuthoringSession._clamped(t, y) for t, y in points]
        pts = close_height_loop(clamp_height_span(clamped))
        return HeightCurve(points=[HeightPoint(t=t, y=y) for t, y in pts], interpolation=interpolation)

    def apply_path(
        self,
        object_id: str,
        points: Sequence[Point],
        interpolation: Interpolation = Interpolation.SMOOTH,
        playback: PlaybackMode = PlaybackMode.LOOP,
        duration_s: float = DEFAULT_DURATION_S,
    ) -> bool:
        curve = self.build_path_curve(points, interpolation, playback, duration_s)
        if curve is None:
            logger.warning(f"apply_path: {object_id} path has fewer than 2 points, clearing instead")
            self.clear_path(object_id)
            return False
        return self._registry.set_animation_layer(
            object_id, AnimationType.PATH, {"curve": curve, "duration": duration_s}, active=True
        )

    def apply_vertical(
        self,
        object_id: str,
        points: Sequence[Point],
        interpolation: Interpolation = Interpolation.SMOOTH,
        duration_s: float = DEFAULT_DURATION_S,
    ) -> bool:
        curve = self.build_height_curve(points, interpolation)
        if curve is None:
            logger.warning(f"apply_vertical: {object_id} height curve has fewer than 2 points, clearing instead")
            self.clear_vertical(object_id)
            return False
        return self._registry.set_animation_layer(
            object_id, AnimationType.VERTICAL, {"curve": curve, "duration": duration_s}, active=True
        )

    def apply_preset(
        self,
        object_id: str,
        preset: HeightPreset,
        interpolation: Interpolation = Interpolation.SMOOTH,
        duration_s: float = DEFAULT_DURATION_S,
    ) -> bool:
        return self.apply_vertical(object_id, preset_samples(preset), interpolation, duration_s)

    def clear_path(self, object_id: str) -> bool:
        return self._registry.set_animation_layer(object_id, AnimationType.PATH, {"curve": None}, active=False)

    def clear_vertical(self, object_id: str) -> bool:
        return self._registry.set_animation_layer(object_id, AnimationType.VERTICAL, {"curve": None}, active=False)

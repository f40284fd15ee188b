"""Built-in height profiles offered by the vertical authoring panel."""
from __future__ import annotations

import math
from enum import Enum
from typing import Callable, Dict, List, Tuple

from arcomposer.scene_registry.models import HeightCurve, HeightPoint, Interpolation

Sample = Tuple[float, float]


class HeightPreset(str, Enum):
    SINE = "sine"
    BOUNCE = "bounce"
    SAWTOOTH = "sawtooth"
    TRIANGLE = "triangle"
    HOP = "hop"
    PULSE = "pulse"
    FLOAT = "float"
    STEP = "step"
    EASE = "ease"


def _closed(samples: List[Sample]) -> List[Sample]:
    samples[-1] = (samples[-1][0], samples[0][1])
    return samples


def _sine() -> List[Sample]:
    return _closed([(i / 16, math.sin(i / 16 * math.pi * 2) + 1.0) for i in range(17)])


def _float() -> List[Sample]:
    samples = []
    for i in range(21):
        t = i / 20
        y = 1.0 + math.sin(t * math.pi * 4) * 0.3 + math.sin(t * math.pi * 2.5) * 0.2
        samples.append((t, max(0.0, y)))
    return _closed(samples)


def _ease() -> List[Sample]:
    return _closed([(i / 12, 1.0 - math.cos(i / 12 * math.pi * 2)) for i in range(13)])


_FIXED: Dict[HeightPreset, List[Sample]] = {
    HeightPreset.BOUNCE: [
        (0.0, 0.0), (0.15, 2.0), (0.30, 0.0), (0.40, 1.2), (0.50, 0.0), (0.58, 0.7),
        (0.66, 0.0), (0.72, 0.35), (0.78, 0.0), (0.84, 0.15), (0.90, 0.0), (1.0, 0.0),
    ],
    HeightPreset.SAWTOOTH: [(0.0, 0.0), (0.45, 2.0), (0.50, 0.0), (0.95, 2.0), (1.0, 0.0)],
    HeightPreset.TRIANGLE: [(0.0, 0.0), (0.25, 2.0), (0.50, 0.0), (0.75, 2.0), (1.0, 0.0)],
    HeightPreset.HOP: [(0.0, 0.0), (0.10, 1.5), (0.45, 1.5), (0.55, 0.0), (1.0, 0.0)],
    HeightPreset.PULSE: [
        (0.0, 0.0), (0.20, 0.0), (0.25, 2.5), (0.30, 0.0),
        (0.70, 0.0), (0.75, 2.5), (0.80, 0.0), (1.0, 0.0),
    ],
    HeightPreset.STEP: [
        (0.0, 0.0), (0.24, 0.0), (0.25, 1.0), (0.49, 1.0), (0.50, 2.0),
        (0.74, 2.0), (0.75, 1.0), (0.99, 1.0), (1.0, 0.0),
    ],
}

_GENERATED: Dict[HeightPreset, Callable[[], List[Sample]]] = {
    HeightPreset.SINE: _sine,
    HeightPreset.FLOAT: _float,
    HeightPreset.EASE: _ease,
}


def preset_samples(preset: HeightPreset) -> List[Sample]:
    if preset in _GENERATED:
        return _GENERATED[preset]()
    return list(_FIXED[preset])


def preset_curve(preset: HeightPreset, interpolation: Interpolation = Interpolation.SMOOTH) -> HeightCurve:
    return HeightCurve(
        points=[HeightPoint(t=t, y=y) for t, y in preset_samples(preset)],
        interpolation=interpolation,
    )

import pytest

from arcomposer.curves.presets import HeightPreset, preset_curve, preset_samples
from arcomposer.scene_registry.models import MAX_HEIGHT_METERS, Interpolation


@pytest.mark.parametrize("preset", list(HeightPreset))
def test_presets_are_closed_loops(preset):
    samples = preset_samples(preset)
    assert samples[0][0] == 0.0
    assert samples[-1][0] == pytest.approx(1.0)
    assert samples[0][1] == samples[-1][1]
    ts = [t for t, _ in samples]
    assert ts == sorted(ts)
    assert all(0.0 <= y <= MAX_HEIGHT_METERS for _, y in samples)


@pytest.mark.parametrize("preset", list(HeightPreset))
def test_preset_curve_is_playable(preset):
    curve = preset_curve(preset, Interpolation.LINEAR)
    assert curve.is_playable()
    assert curve.is_loop_closed()
    assert curve.interpolation == Interpolation.LINEAR


def test_fixed_presets_are_copies():
    samples = preset_samples(HeightPreset.HOP)
    samples.append((2.0, 0.0))
    assert len(preset_samples(HeightPreset.HOP)) == 5

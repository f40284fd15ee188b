import pytest

from arcomposer.curves.spline import bezier_segments, sample_height, sample_path, tessellate
from arcomposer.scene_registry.models import HeightCurve, HeightPoint, Interpolation, PathCurve, PathPoint

SQUARE = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0), (0.0, 0.0)]


def _path(points, interpolation=Interpolation.SMOOTH) -> PathCurve:
    return PathCurve(points=[PathPoint(x=x, z=z) for x, z in points], interpolation=interpolation)


def _height(points, interpolation=Interpolation.SMOOTH) -> HeightCurve:
    return HeightCurve(points=[HeightPoint(t=t, y=y) for t, y in points], interpolation=interpolation)


def test_control_points_follow_catmull_rom():
    segments = bezier_segments([(0, 0), (1, 0), (2, 1), (3, 1)], closed=False)
    assert len(segments) == 3
    p1, cp1, cp2, p2 = segments[1]
    assert p1 == (1.0, 0.0)
    assert cp1 == pytest.approx((1.0 + 2.0 / 6, 1.0 / 6))
    assert cp2 == pytest.approx((2.0 - 2.0 / 6, 1.0 - 1.0 / 6))
    assert p2 == (2.0, 1.0)


def test_closed_loop_wraps():
    segments = bezier_segments(SQUARE, closed=True)
    assert len(segments) == 4
    assert segments[-1][3] == (0.0, 0.0)


def test_smooth_path_passes_through_samples():
    curve = _path(SQUARE)
    for i, expected in enumerate(SQUARE[:-1]):
        assert sample_path(curve, i / 4) == pytest.approx(expected)


def test_path_time_wraps():
    curve = _path(SQUARE)
    assert sample_path(curve, 1.25) == pytest.approx(sample_path(curve, 0.25))
    assert sample_path(curve, -0.75) == pytest.approx(sample_path(curve, 0.25))


def test_two_point_path_is_linear():
    curve = _path([(0.0, 0.0), (2.0, 0.0)])
    assert sample_path(curve, 0.25) == pytest.approx((1.0, 0.0))
    assert sample_path(curve, 0.75) == pytest.approx((1.0, 0.0))


def test_linear_interpolation_between_samples():
    curve = _path(SQUARE, Interpolation.LINEAR)
    assert sample_path(curve, 0.125) == pytest.approx((0.5, 0.0))


def test_height_linear():
    curve = _height([(0.0, 0.0), (1.0, 2.0)], Interpolation.LINEAR)
    assert sample_height(curve, 0.5) == pytest.approx(1.0)
    assert sample_height(curve, -1.0) == 0.0
    assert sample_height(curve, 4.0) == 2.0


def test_height_smooth_hits_samples():
    curve = _height([(0.0, 0.0), (0.5, 2.0), (1.0, 0.0)])
    assert sample_height(curve, 0.5) == pytest.approx(2.0)
    assert 0.0 < sample_height(curve, 0.25) < 2.0


def test_height_overshoot_is_clamped():
    curve = _height([(0.0, 0.0), (0.1, 3.0), (0.2, 3.0), (0.3, 0.0)])
    assert sample_height(curve, 0.15) == 3.0


def test_empty_curves_raise():
    with pytest.raises(ValueError):
        sample_path(PathCurve(), 0.5)
    with pytest.raises(ValueError):
        sample_height(HeightCurve(), 0.5)


def test_tessellate_closed_smooth():
    out = tessellate([(0, 0), (1, 0), (0.5, 1)], closed=True, steps_per_segment=16)
    assert len(out) == 3 * 16 + 1
    assert out[0] == pytest.approx(out[-1])


def test_tessellate_linear_closes_loop():
    out = tessellate([(0, 0), (1, 0), (0.5, 1)], closed=True, interpolation=Interpolation.LINEAR)
    assert out == [(0.0, 0.0), (1.0, 0.0), (0.5, 1.0), (0.0, 0.0)]

"""Catmull-Rom to cubic Bezier conversion, curve sampling and tessellation.

For consecutive points p0..p3 the Bezier controls of the p1-p2 segment are
cp1 = p1 + (p2 - p0) / 6 and cp2 = p2 - (p3 - p1) / 6, so the curve passes
through every sample. Closed curves wrap around; open curves clamp the ends.
"""
from __future__ import annotations

import math
from typing import List, Sequence, Tuple

from arcomposer.scene_registry.models import (
    MAX_HEIGHT_METERS,
    HeightCurve,
    Interpolation,
    PathCurve,
)

Point = Tuple[float, float]
BezierSegment = Tuple[Point, Point, Point, Point]

SMOOTH_MIN_POINTS = 3


def _unique_loop(points: Sequence[Point]) -> List[Point]:
    """Drop the duplicated closing point of a closed loop."""
    pts = [(float(p[0]), float(p[1])) for p in points]
    if len(pts) >= 2 and pts[0] == pts[-1]:
        pts = pts[:-1]
    return pts


def bezier_segments(points: Sequence[Point], closed: bool) -> List[BezierSegment]:
    """Return (p1, cp1, cp2, p2) for every segment of the curve."""
    pts = _unique_loop(points) if closed else [(float(p[0]), float(p[1])) for p in points]
    n = len(pts)
    if n < 2:
        return []

    segments: List[BezierSegment] = []
    count = n if closed else n - 1
    for i in range(count):
        if closed:
            p0, p1, p2, p3 = pts[(i - 1) % n], pts[i], pts[(i + 1) % n], pts[(i + 2) % n]
        else:
            p0 = pts[max(i - 1, 0)]
            p1 = pts[i]
            p2 = pts[i + 1]
            p3 = pts[min(i + 2, n - 1)]
        cp1 = (p1[0] + (p2[0] - p0[0]) / 6.0, p1[1] + (p2[1] - p0[1]) / 6.0)
        cp2 = (p2[0] - (p3[0] - p1[0]) / 6.0, p2[1] - (p3[1] - p1[1]) / 6.0)
        segments.append((p1, cp1, cp2, p2))
    return segments


def cubic_bezier(segment: BezierSegment, s: float) -> Point:
    p1, cp1, cp2, p2 = segment
    inv = 1.0 - s
    a = inv * inv * inv
    b = 3 * inv * inv * s
    c = 3 * inv * s * s
    d = s * s * s
    return (
        a * p1[0] + b * cp1[0] + c * cp2[0] + d * p2[0],
        a * p1[1] + b * cp1[1] + c * cp2[1] + d * p2[1],
    )


def _lerp(a: Point, b: Point, s: float) -> Point:
    return (a[0] + (b[0] - a[0]) * s, a[1] + (b[1] - a[1]) * s)


def _use_smooth(interpolation: Interpolation, point_count: int) -> bool:
    return interpolation == Interpolation.SMOOTH and point_count >= SMOOTH_MIN_POINTS


def sample_path(curve: PathCurve, u: float) -> Point:
    """Position (x, z) on the closed path at normalized time u (wraps)."""
    pts = _unique_loop(curve.as_tuples())
    if not pts:
        raise ValueError("cannot sample an empty path")
    if len(pts) == 1:
        return pts[0]

    u = u - math.floor(u)
    seg_count = len(pts)
    pos = u * seg_count
    index = min(int(pos), seg_count - 1)
    s = pos - index

    if _use_smooth(curve.interpolation, len(curve.points)):
        return cubic_bezier(bezier_segments(pts, closed=True)[index], s)
    return _lerp(pts[index], pts[(index + 1) % seg_count], s)


def sample_height(curve: HeightCurve, u: float) -> float:
    """Height at normalized time u in [0, 1], clamped to the valid height range."""
    pts = curve.as_tuples()
    if not pts:
        raise ValueError("cannot sample an empty height curve")
    u = max(0.0, min(1.0, u))
    if len(pts) == 1 or u <= pts[0][0]:
        return pts[0][1]
    if u >= pts[-1][0]:
        return pts[-1][1]

    index = 0
    for i in range(len(pts) - 1):
        if pts[i][0] <= u <= pts[i + 1][0]:
            index = i
            break
    t1, t2 = pts[index][0], pts[index + 1][0]
    s = (u - t1) / (t2 - t1) if t2 > t1 else 0.0

    if _use_smooth(curve.interpolation, len(pts)):
        y = cubic_bezier(bezier_segments(pts, closed=False)[index], s)[1]
    else:
        y = _lerp(pts[index], pts[index + 1], s)[1]
    return max(0.0, min(MAX_HEIGHT_METERS, y))


def tessellate(
    points: Sequence[Point],
    closed: bool,
    interpolation: Interpolation = Interpolation.SMOOTH,
    steps_per_segment: int = 16,
) -> List[Point]:
    """Polyline approximation of a curve for rendering."""
    if steps_per_segment < 1:
        raise ValueError("steps_per_segment must be >= 1")
    pts = [(float(p[0]), float(p[1])) for p in points]
    if not _use_smooth(interpolation, len(pts)):
        if closed and pts and pts[0] != pts[-1]:
            pts.append(pts[0])
        return pts

    segments = bezier_segments(pts, closed)
    out: List[Point] = [segments[0][0]]
    for segment in segments:
        for step in range(1, steps_per_segment + 1):
            out.append(cubic_bezier(segment, step / steps_per_segment))
    return out

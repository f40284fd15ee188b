"""Ramer-Douglas-Peucker polyline simplification for authored curves."""
from __future__ import annotations

import math
from typing import List, Sequence, Tuple

Point = Tuple[float, float]


def point_segment_distance(point: Point, start: Point, end: Point) -> float:
    """Distance from point to the segment start-end (projection clamped to the segment)."""
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return math.hypot(point[0] - start[0], point[1] - start[1])
    t = ((point[0] - start[0]) * dx + (point[1] - start[1]) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    proj_x = start[0] + t * dx
    proj_y = start[1] + t * dy
    return math.hypot(point[0] - proj_x, point[1] - proj_y)


def rdp_simplify(points: Sequence[Point], tolerance: float) -> List[Point]:
    """Simplify a polyline, keeping every point farther than tolerance from its chord.

    Endpoints are always kept. Uses an explicit stack so long strokes do not
    hit the recursion limit; output matches the recursive formulation.
    """
    if tolerance < 0:
        raise ValueError("tolerance must be non-negative")
    pts = [(float(p[0]), float(p[1])) for p in points]
    if len(pts) < 3:
        return pts

    keep = [False] * len(pts)
    keep[0] = keep[-1] = True
    stack = [(0, len(pts) - 1)]
    while stack:
        first, last = stack.pop()
        max_dist = 0.0
        max_index = first
        for i in range(first + 1, last):
            dist = point_segment_distance(pts[i], pts[first], pts[last])
            if dist > max_dist:
                max_dist = dist
                max_index = i
        if max_dist > tolerance:
            keep[max_index] = True
            stack.append((first, max_index))
            stack.append((max_index, last))

    return [p for p, kept in zip(pts, keep) if kept]


def polyline_distance(point: Point, polyline: Sequence[Point]) -> float:
    """Shortest distance from point to any segment of polyline."""
    if not polyline:
        raise ValueError("polyline must not be empty")
    if len(polyline) == 1:
        return math.hypot(point[0] - polyline[0][0], point[1] - polyline[0][1])
    return min(
        point_segment_distance(point, polyline[i], polyline[i + 1])
        for i in range(len(polyline) - 1)
    )

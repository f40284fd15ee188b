"""Loop-closing rules every playable curve obeys.

Path curves end where they start; height profiles span t=0..1 and end at
the height they start from.
"""
from __future__ import annotations

from typing import List, Sequence, Tuple

Point = Tuple[float, float]


def close_path_loop(points: Sequence[Point]) -> List[Point]:
    """Append the first point so the path ends where it starts."""
    pts = list(points)
    if len(pts) >= 2 and pts[0] != pts[-1]:
        pts.append(pts[0])
    return pts


def clamp_height_span(points: Sequence[Point]) -> List[Point]:
    """Extend a height profile to cover t=0..1, copying the nearest sample's height."""
    pts = list(points)
    if not pts:
        return pts
    if pts[0][0] > 0.0:
        pts.insert(0, (0.0, pts[0][1]))
    if pts[-1][0] < 1.0:
        pts.append((1.0, pts[-1][1]))
    return pts


def close_height_loop(points: Sequence[Point]) -> List[Point]:
    """Force the last height to equal the first so the profile loops seamlessly."""
    pts = list(points)
    if len(pts) >= 2:
        pts[-1] = (pts[-1][0], pts[0][1])
    return pts


def seamless_height_loop(points: Sequence[Point]) -> List[Point]:
    return close_height_loop(clamp_height_span(points))

"""
Planar geometry helpers for Euclidean Voronoi diagrams.

These describe the pieces of a 2-D diagram that the nearest-site test
implies: the perpendicular bisector separating two cells, the circumcenter
where three cells meet, and the clipping of bisector rays to a bounding box.
"""

import math
from dataclasses import dataclass
from typing import List, NamedTuple, Sequence, Tuple

import numpy as np


class Point(NamedTuple):
    """A point in the plane."""
    x: float
    y: float


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned rectangle (immutable, non-empty)."""
    x_min: float
    x_max: float
    y_min: float
    y_max: float

    def __post_init__(self):
        if not (self.x_min < self.x_max and self.y_min < self.y_max):
            raise ValueError(
                f"Invalid bounding box: x [{self.x_min}, {self.x_max}], "
                f"y [{self.y_min}, {self.y_max}]"
            )

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    def contains(self, point: Sequence[float], eps: float = 1e-9) -> bool:
        """Check whether a point lies inside the box (edges included)."""
        x, y = point
        return (self.x_min - eps <= x <= self.x_max + eps and
                self.y_min - eps <= y <= self.y_max + eps)

    def sample_grid(self, resolution: Tuple[int, int]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Sample a regular grid of pixel centers over the box.

        Args:
            resolution: (nx, ny) number of samples along each axis

        Returns:
            Tuple of (xs, ys, points) where points has shape (ny * nx, 2)
            in row-major order (y outer, x inner)
        """
        nx, ny = resolution
        if nx <= 0 or ny <= 0:
            raise ValueError(f"resolution must be positive, got {resolution}")

        step_x = self.width / nx
        step_y = self.height / ny
        xs = self.x_min + step_x * (np.arange(nx) + 0.5)
        ys = self.y_min + step_y * (np.arange(ny) + 0.5)

        grid_x, grid_y = np.meshgrid(xs, ys)
        points = np.column_stack([grid_x.ravel(), grid_y.ravel()])
        return xs, ys, points


def normal_vector(vector: Sequence[float]) -> Point:
    """Rotate a vector by 90 degrees counter-clockwise."""
    x, y = vector
    return Point(-y, x)


def midpoint(a: Sequence[float], b: Sequence[float]) -> Point:
    return Point((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0)


def bisector(a: Sequence[float], b: Sequence[float]) -> Tuple[Point, Point]:
    """
    Perpendicular bisector of two sites.

    Every point on this line is equidistant from ``a`` and ``b``; it is the
    boundary shared by their two cells.

    Returns:
        Tuple of (origin, direction) with origin at the midpoint
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    if dx == 0 and dy == 0:
        raise ValueError(f"Bisector undefined for coincident sites {tuple(a)}")
    return midpoint(a, b), normal_vector((dx, dy))


def circumcenter(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> Point:
    """
    Point equidistant from three sites.

    This is the Voronoi vertex where the cells of ``a``, ``b`` and ``c`` meet
    (when no fourth site is closer).

    Raises:
        ValueError: If the three sites are collinear
    """
    x1, y1 = a
    x2, y2 = b
    x3, y3 = c

    c1 = x3 * x3 + y3 * y3 - x1 * x1 - y1 * y1
    c2 = x3 * x3 + y3 * y3 - x2 * x2 - y2 * y2
    a1 = -2.0 * (x1 - x3)
    a2 = -2.0 * (x2 - x3)
    b1 = -2.0 * (y1 - y3)
    b2 = -2.0 * (y2 - y3)

    denom = b1 * a2 - b2 * a1
    if denom == 0:
        raise ValueError("Circumcenter does not exist for collinear sites")

    y_cen = (c1 * a2 - c2 * a1) / denom
    if a2 != 0:
        x_cen = (c2 - b2 * y_cen) / a2
    else:
        x_cen = (c1 - b1 * y_cen) / a1

    return Point(x_cen, y_cen)


def bounded_segment(origin: Sequence[float], direction: Sequence[float],
                    bbox: BoundingBox) -> Tuple[Point, Point]:
    """
    Clip a ray to the first box edge it reaches.

    Args:
        origin: Ray origin, expected inside the box
        direction: Ray direction (need not be normalized)
        bbox: Clipping box

    Returns:
        Tuple of (origin, end point on the box boundary)
    """
    x, y = origin
    dx, dy = direction
    if dx == 0 and dy == 0:
        raise ValueError("Ray direction must be non-zero")

    # Parametric distance to the x and y walls the ray is heading towards
    cx = None
    if dx != 0:
        cx = ((bbox.x_min if dx < 0 else bbox.x_max) - x) / dx
    cy = None
    if dy != 0:
        cy = ((bbox.y_min if dy < 0 else bbox.y_max) - y) / dy

    if cx is None:
        c = cy
    elif cy is None:
        c = cx
    else:
        c = min(cx, cy)

    return Point(float(x), float(y)), Point(x + c * dx, y + c * dy)


def bisector_segment(a: Sequence[float], b: Sequence[float],
                     bbox: BoundingBox) -> Tuple[Point, Point]:
    """
    Portion of the bisector of two sites that lies inside a box.

    Raises:
        ValueError: If the sites coincide or their midpoint is outside the box
    """
    origin, direction = bisector(a, b)
    if not bbox.contains(origin):
        raise ValueError(f"Bisector midpoint {tuple(origin)} lies outside {bbox}")

    _, forward = bounded_segment(origin, direction, bbox)
    _, backward = bounded_segment(origin, Point(-direction.x, -direction.y), bbox)
    return backward, forward


class Edge(NamedTuple):
    """A piece of the boundary between the cells of sites ``left`` and ``right``."""
    left: int
    right: int
    start: Point
    end: Point


def _clip_interval(t0: float, t1: float, a: float, b: float) -> Tuple[float, float]:
    """Intersect [t0, t1] with the half-line ``a * t <= b``."""
    if a > 0:
        return t0, min(t1, b / a)
    if a < 0:
        return max(t0, b / a), t1
    return (t0, t1) if b >= 0 else (math.inf, -math.inf)


def voronoi_edges(sites: Sequence[Sequence[float]], bbox: BoundingBox) -> List[Edge]:
    """
    Edges of the Euclidean Voronoi diagram of ``sites`` inside ``bbox``.

    Brute force: each pair's bisector is clipped to the box and then to the
    half-planes where no third site is strictly closer. Whatever remains is
    the shared boundary of the pair, so there is at most one edge per pair.
    Duplicate sites contribute the edges of their first occurrence only.

    Args:
        sites: 2-D sites in index order
        bbox: Region the edges are clipped to

    Returns:
        Edges ordered by (left, right), with ``left < right``
    """
    points = np.asarray(sites, dtype=float).reshape(-1, 2)
    n = len(points)
    # Edges shorter than this are degenerate vertices, e.g. four cocircular sites
    min_length = 1e-9 * max(bbox.width, bbox.height)

    first = [i for i in range(n)
             if not any(np.array_equal(points[i], points[j]) for j in range(i))]
    norms = np.einsum("ij,ij->i", points, points)

    edges = []
    for a, i in enumerate(first):
        for j in first[a + 1:]:
            origin, direction = bisector(points[i], points[j])
            ox, oy = origin
            dx, dy = direction

            t0, t1 = -math.inf, math.inf
            t0, t1 = _clip_interval(t0, t1, dx, bbox.x_max - ox)
            t0, t1 = _clip_interval(t0, t1, -dx, ox - bbox.x_min)
            t0, t1 = _clip_interval(t0, t1, dy, bbox.y_max - oy)
            t0, t1 = _clip_interval(t0, t1, -dy, oy - bbox.y_min)

            for k in first:
                if t0 >= t1:
                    break
                if k == i or k == j:
                    continue
                # |x - s_i|^2 <= |x - s_k|^2  <=>  2 x.(s_k - s_i) <= |s_k|^2 - |s_i|^2
                wx, wy = points[k] - points[i]
                t0, t1 = _clip_interval(
                    t0, t1,
                    2.0 * (dx * wx + dy * wy),
                    norms[k] - norms[i] - 2.0 * (ox * wx + oy * wy),
                )

            if (t1 - t0) * math.hypot(dx, dy) > min_length:
                edges.append(Edge(
                    i, j,
                    Point(float(ox + t0 * dx), float(oy + t0 * dy)),
                    Point(float(ox + t1 * dx), float(oy + t1 * dy)),
                ))
    return edges

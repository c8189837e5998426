"""Tests for planar geometry helpers."""

import pytest
import numpy as np
from py_voronoi.core import VoronoiDiagram
from py_voronoi.core.geometry import (
    Point, BoundingBox, normal_vector, midpoint, bisector,
    circumcenter, bounded_segment, bisector_segment, voronoi_edges
)


@pytest.fixture
def box():
    return BoundingBox(0.0, 1000.0, 0.0, 1000.0)


class TestBoundingBox:
    """Test bounding box construction and sampling."""

    @pytest.mark.parametrize("extent", [(0, 0, 0, 1), (1, 0, 0, 1), (0, 1, 2, 1)])
    def test_invalid_extent(self, extent):
        with pytest.raises(ValueError):
            BoundingBox(*extent)

    def test_contains(self, box):
        assert box.contains((0, 0))
        assert box.contains((1000, 500))
        assert not box.contains((-1, 500))

    def test_sample_grid(self):
        """Test pixel-center sampling order and shape."""
        xs, ys, points = BoundingBox(0, 4, 0, 2).sample_grid((4, 2))

        np.testing.assert_allclose(xs, [0.5, 1.5, 2.5, 3.5])
        np.testing.assert_allclose(ys, [0.5, 1.5])
        assert points.shape == (8, 2)
        np.testing.assert_allclose(points[1], [1.5, 0.5])
        np.testing.assert_allclose(points[4], [0.5, 1.5])

    def test_sample_grid_resolution(self, box):
        with pytest.raises(ValueError):
            box.sample_grid((0, 10))


class TestPrimitives:
    """Test vector helpers."""

    def test_normal_vector(self):
        assert normal_vector((1.0, 0.0)) == Point(-0.0, 1.0)

    def test_midpoint(self):
        assert midpoint((0, 0), (4, 2)) == Point(2.0, 1.0)

    def test_bisector_is_equidistant(self):
        """Test that points along the bisector are equidistant from both sites."""
        a, b = (1.0, 2.0), (5.0, -1.0)
        origin, direction = bisector(a, b)

        for t in (-3.0, 0.0, 0.5, 7.0):
            p = (origin.x + t * direction.x, origin.y + t * direction.y)
            assert np.hypot(p[0] - a[0], p[1] - a[1]) == pytest.approx(
                np.hypot(p[0] - b[0], p[1] - b[1]))

    def test_bisector_coincident_sites(self):
        with pytest.raises(ValueError):
            bisector((1, 1), (1, 1))


class TestCircumcenter:
    """Test Voronoi vertex computation."""

    def test_three_points(self):
        """Test the vertex shared by three cells."""
        center = circumcenter((250, 250), (500, 750), (750, 250))

        assert center.x == pytest.approx(500.0)
        assert center.y == pytest.approx(437.5)

    def test_collinear(self):
        with pytest.raises(ValueError):
            circumcenter((0, 0), (1, 1), (2, 2))

    def test_vertex_lies_in_all_three_cells(self):
        """Test that the circumcenter is on the boundary of every cell."""
        sites = [(250, 250), (500, 750), (750, 250)]
        diagram = VoronoiDiagram(sites, tie_tolerance=1e-9)
        center = circumcenter(*sites)

        assert diagram.cell_indices(center) == [0, 1, 2]
        assert diagram.nearest(center) == 0


class TestBoundedSegment:
    """Test ray clipping against a box."""

    def test_vertical(self, box):
        start, end = bounded_segment((500, 500), (0, 500), box)

        assert start == Point(500, 500)
        assert end == pytest.approx((500, 1000))

    def test_vertical_negative_zero(self, box):
        """Test that a -0.0 x component does not break clipping."""
        _, end = bounded_segment((500, 500), (-0.0, 500), box)
        assert end == pytest.approx((500, 1000))

    def test_downwards(self, box):
        _, end = bounded_segment((750, 500), (-0.0, -500), box)
        assert end == pytest.approx((750, 0))

    def test_diagonal_hits_nearest_wall(self, box):
        _, end = bounded_segment((500, 500), (1, 2), box)
        assert end == pytest.approx((750, 1000))

    def test_zero_direction(self, box):
        with pytest.raises(ValueError):
            bounded_segment((500, 500), (0, 0), box)


class TestBisectorSegment:
    """Test the clipped boundary between two cells."""

    def test_vertical_line(self, box):
        """Test two sites side by side split the box vertically."""
        start, end = bisector_segment((250, 500), (750, 500), box)

        assert sorted([start, end]) == [pytest.approx((500, 0)), pytest.approx((500, 1000))]

    def test_horizontal_line(self, box):
        start, end = bisector_segment((500, 250), (500, 750), box)

        assert sorted([start, end]) == [pytest.approx((0, 500)), pytest.approx((1000, 500))]

    def test_endpoints_in_both_cells(self, box):
        """Test that segment endpoints lie on the shared cell boundary."""
        a, b = (200.0, 300.0), (640.0, 520.0)
        diagram = VoronoiDiagram([a, b], tie_tolerance=1e-9)

        for endpoint in bisector_segment(a, b, box):
            assert box.contains(endpoint)
            assert diagram.in_cell(endpoint, 0)
            assert diagram.in_cell(endpoint, 1)

    def test_midpoint_outside_box(self, box):
        with pytest.raises(ValueError):
            bisector_segment((2000, 0), (4000, 0), box)


def as_segments(edges):
    """Endpoint pairs rounded for order-insensitive comparison."""
    return {frozenset([tuple(np.round(e.start, 6)), tuple(np.round(e.end, 6))]) for e in edges}


def segment(a, b):
    return frozenset([tuple(map(float, a)), tuple(map(float, b))])


class TestVoronoiEdges:
    """Test brute-force diagram edges against reference layouts."""

    def test_vertical_line(self, box):
        """Test two sites side by side share one vertical edge across the box."""
        edges = voronoi_edges([(250, 500), (750, 500)], box)

        # The reference output splits this edge at (500, 500); together the
        # two pieces cover the same segment
        assert as_segments(edges) == {segment((500, 0), (500, 1000))}
        assert (edges[0].left, edges[0].right) == (0, 1)

    def test_horizontal_line(self, box):
        edges = voronoi_edges([(500, 250), (500, 750)], box)

        assert as_segments(edges) == {segment((0, 500), (1000, 500))}

    def test_three_points(self, box):
        """Test three rays from the circumcenter to the box walls."""
        edges = voronoi_edges([(250, 250), (500, 750), (750, 250)], box)

        assert as_segments(edges) == {
            segment((500, 437.5), (500, 0)),
            segment((500, 437.5), (1000, 687.5)),
            segment((500, 437.5), (0, 687.5)),
        }

    def test_order_of_sites_does_not_change_geometry(self, box):
        """Test that permuting the sites only relabels the edges."""
        sites = [(250, 250), (500, 750), (750, 250)]
        forward = voronoi_edges(sites, box)
        backward = voronoi_edges(sites[::-1], box)

        assert as_segments(forward) == as_segments(backward)

    def test_blocked_pair_has_no_edge(self, box):
        """Test that sites separated by a third cell share no boundary."""
        edges = voronoi_edges([(100, 500), (500, 500), (900, 500)], box)

        assert [(e.left, e.right) for e in edges] == [(0, 1), (1, 2)]
        assert as_segments(edges) == {
            segment((300, 0), (300, 1000)),
            segment((700, 0), (700, 1000)),
        }

    def test_duplicate_sites(self, box):
        """Test that a repeated site adds no extra edges."""
        edges = voronoi_edges([(250, 500), (750, 500), (250, 500)], box)

        assert [(e.left, e.right) for e in edges] == [(0, 1)]

    def test_four_cocircular_sites(self, box):
        """Test that a degenerate vertex does not produce zero-length edges."""
        edges = voronoi_edges([(400, 500), (500, 400), (600, 500), (500, 600)], box)

        # Opposite sites meet only at the center point
        assert [(e.left, e.right) for e in edges] == [(0, 1), (0, 3), (1, 2), (2, 3)]

    def test_sites_outside_box(self, box):
        """Test that edges are still clipped to the box."""
        edges = voronoi_edges([(-500, 500), (1500, 500)], box)

        assert as_segments(edges) == {segment((500, 0), (500, 1000))}

    def test_empty_and_single(self, box):
        assert voronoi_edges([], box) == []
        assert voronoi_edges([(1, 1)], box) == []

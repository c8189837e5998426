"""
Nearest-site Voronoi diagram over an arbitrary metric space.

A point ``p`` lies in the cell of site ``k`` when no other site is strictly
closer to ``p`` than site ``k``. Cells are never materialized; every query
scans all sites, so results are always consistent with the site list.

Ties are resolved deterministically: ``nearest`` returns the smallest index
among the sites at minimal distance, while ``in_cell`` is non-strict and
reports a boundary point as belonging to every tied cell.
"""

import math
import operator
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
import structlog

from ..config import settings
from .errors import EmptyDiagram, InvalidConfiguration, SiteIndexError
from .geometry import BoundingBox, Edge, voronoi_edges
from .metrics import EUCLIDEAN, Metric, get_metric, scaled_pairwise

logger = structlog.get_logger()

MetricLike = Union[str, Metric, Callable[[Any, Any], float]]

# Rows per distance-matrix block in batch queries
BATCH_CHUNK_SIZE = 1024


class VoronoiDiagram:
    """Immutable set of sites answering nearest-site and cell-membership queries.

    Args:
        sites: Ordered iterable of points, materialized once at construction
        metric: Metric name, Metric, or callable ``dist(a, b)``; defaults to
            ``settings.default_metric``
        tie_tolerance: Absolute slack within which two distances are treated as
            equal; defaults to ``settings.tie_tolerance`` (0.0, exact)
        expected_count: If given, the number of sites must match it

    Raises:
        InvalidConfiguration: If the sites cannot be fixed to a validated count
            of points, or the metric or tolerance is rejected
    """

    def __init__(self, sites, metric: Optional[MetricLike] = None,
                 tie_tolerance: Optional[float] = None,
                 expected_count: Optional[int] = None):
        self._metric = get_metric(settings.default_metric if metric is None else metric)
        self._tie_tolerance = _validate_tolerance(
            settings.tie_tolerance if tie_tolerance is None else tie_tolerance
        )

        try:
            site_list = list(sites)
        except TypeError as exc:
            raise InvalidConfiguration(
                f"Sites must be an iterable of points, got {type(sites).__name__}"
            ) from exc

        if expected_count is not None and len(site_list) != expected_count:
            raise InvalidConfiguration(
                f"Expected {expected_count} sites, got {len(site_list)}"
            )

        self._n_sites = len(site_list)
        self._dimension: Optional[int] = None

        if self._metric.is_coordinate:
            self._sites = self._pack_coordinates(site_list)
        else:
            self._sites = tuple(site_list)

        if self._n_sites == 0:
            logger.warning("Empty Voronoi diagram constructed, queries will fail",
                           metric=self._metric.name)
        else:
            logger.info("Voronoi diagram constructed",
                        sites=self._n_sites, dimension=self._dimension,
                        metric=self._metric.name, tie_tolerance=self._tie_tolerance)

    @classmethod
    def from_array(cls, array, metric: Optional[MetricLike] = None,
                   tie_tolerance: Optional[float] = None) -> "VoronoiDiagram":
        """Construct from an (n, d) coordinate array."""
        try:
            array = np.asarray(array, dtype=float)
        except (TypeError, ValueError) as exc:
            raise InvalidConfiguration(f"Sites are not a numeric array: {exc}") from exc
        if array.ndim != 2:
            raise InvalidConfiguration(f"Site array must be (n, d), got shape {array.shape}")
        return cls(array, metric=metric, tie_tolerance=tie_tolerance,
                   expected_count=array.shape[0])

    def _pack_coordinates(self, site_list: List[Any]) -> np.ndarray:
        if not site_list:
            return np.empty((0, 0), dtype=float)

        try:
            array = np.array(site_list, dtype=float)
        except (TypeError, ValueError) as exc:
            raise InvalidConfiguration(
                f"Sites for metric {self._metric.name!r} must be numeric vectors "
                f"of equal length: {exc}"
            ) from exc

        if array.ndim != 2 or array.shape[1] == 0:
            raise InvalidConfiguration(
                f"Sites must pack into an (n, d) array with d >= 1, got shape {array.shape}"
            )
        if not np.all(np.isfinite(array)):
            raise InvalidConfiguration("Site coordinates must be finite")

        array.flags.writeable = False
        self._dimension = array.shape[1]
        return array

    # Properties

    @property
    def sites(self) -> Union[np.ndarray, Tuple[Any, ...]]:
        """Read-only sites: an (n, d) array for coordinate metrics, else a tuple."""
        return self._sites

    @property
    def metric(self) -> Metric:
        return self._metric

    @property
    def tie_tolerance(self) -> float:
        return self._tie_tolerance

    @property
    def dimension(self) -> Optional[int]:
        """Coordinate dimension, or None for opaque metrics and empty diagrams."""
        return self._dimension

    def __len__(self) -> int:
        return self._n_sites

    def __repr__(self) -> str:
        return (f"VoronoiDiagram(sites={self._n_sites}, metric={self._metric.name!r}, "
                f"tie_tolerance={self._tie_tolerance})")

    # Queries

    def distances(self, point) -> np.ndarray:
        """
        Distance from ``point`` to every site, in site order.

        Distances beyond the float range are reported as ``inf``; the other
        queries compare rescaled distances and are unaffected.
        """
        self._require_sites("query")
        scaled, shift = self._scaled_distances(self._as_queries([point]))
        with np.errstate(over="ignore"):
            return np.ldexp(scaled[0], shift[0])

    def nearest(self, point) -> int:
        """
        Index of the site whose cell contains ``point``.

        Among sites tied for minimal distance the smallest index wins.

        Raises:
            EmptyDiagram: If the diagram has no sites
        """
        self._require_sites("query")
        return int(self._nearest_rows(self._as_queries([point]))[0])

    def nearest_with_distance(self, point) -> Tuple[int, float]:
        """Nearest site index together with its distance to ``point``."""
        self._require_sites("query")
        scaled, shift = self._scaled_distances(self._as_queries([point]))
        index = int(np.argmax(self._tied(scaled, shift)[0]))
        with np.errstate(over="ignore"):
            return index, float(np.ldexp(scaled[0, index], shift[0]))

    def in_cell(self, point, k: int) -> bool:
        """
        Check whether ``point`` lies in the cell of site ``k``.

        True iff no site is strictly closer to ``point`` than site ``k``
        (beyond the tie tolerance). Boundary points belong to every tied cell.

        Raises:
            EmptyDiagram: If the diagram has no sites
            SiteIndexError: If ``k`` is outside 0..n-1
        """
        self._require_sites("test cell membership in")
        index = self._check_index(k)
        tied = self._tied(*self._scaled_distances(self._as_queries([point])))
        return bool(tied[0, index])

    def cell_indices(self, point) -> List[int]:
        """All site indices whose cell contains ``point``, ascending."""
        self._require_sites("query")
        tied = self._tied(*self._scaled_distances(self._as_queries([point])))
        return [int(i) for i in np.flatnonzero(tied[0])]

    def nearest_many(self, points: Sequence) -> np.ndarray:
        """
        Nearest site index for each of many query points.

        Uses the same tie-break as :meth:`nearest`.

        Args:
            points: Sequence of query points ((m, d) array for coordinate metrics)

        Returns:
            Integer array of length m
        """
        self._require_sites("query")
        if len(points) == 0:
            return np.empty(0, dtype=np.intp)

        queries = self._as_queries(points)
        logger.debug("Batch nearest-site query", queries=len(queries), sites=self._n_sites)

        result = np.empty(len(queries), dtype=np.intp)
        for start in range(0, len(queries), BATCH_CHUNK_SIZE):
            block = queries[start:start + BATCH_CHUNK_SIZE]
            result[start:start + len(block)] = self._nearest_rows(block)
        return result

    def label_grid(self, bbox: BoundingBox, resolution: Tuple[int, int]) -> np.ndarray:
        """
        Rasterize the diagram over a 2-D bounding box.

        Args:
            bbox: Region to sample
            resolution: (nx, ny) samples along each axis

        Returns:
            (ny, nx) integer array of nearest site indices at pixel centers
        """
        self._require_sites("rasterize")
        if self._dimension is not None and self._dimension != 2:
            raise ValueError(f"label_grid needs 2-D sites, diagram is {self._dimension}-D")

        nx, ny = resolution
        _, _, samples = bbox.sample_grid(resolution)
        labels = self.nearest_many(samples)
        return labels.reshape(ny, nx)

    def edges(self, bbox: BoundingBox) -> List[Edge]:
        """
        Cell boundaries of a 2-D Euclidean diagram, clipped to ``bbox``.

        Raises:
            EmptyDiagram: If the diagram has no sites
            ValueError: If the metric is not Euclidean or the sites are not 2-D
        """
        self._require_sites("compute edges of")
        if self._metric.order != EUCLIDEAN.order:
            raise ValueError(f"edges needs the Euclidean metric, diagram uses {self._metric.name!r}")
        if self._dimension != 2:
            raise ValueError(f"edges needs 2-D sites, diagram is {self._dimension}-D")

        edges = voronoi_edges(self._sites, bbox)
        logger.debug("Computed Voronoi edges", sites=self._n_sites, edges=len(edges))
        return edges

    # Internals

    def _require_sites(self, operation: str) -> None:
        if self._n_sites == 0:
            raise EmptyDiagram(operation)

    def _check_index(self, k) -> int:
        try:
            index = operator.index(k)
        except TypeError as exc:
            raise SiteIndexError(k, self._n_sites) from exc
        # Negative indices are rejected rather than wrapped
        if not 0 <= index < self._n_sites:
            raise SiteIndexError(index, self._n_sites)
        return index

    def _as_queries(self, points):
        if not self._metric.is_coordinate:
            return list(points)

        array = np.asarray(points, dtype=float)
        if array.ndim != 2 or array.shape[1] != self._dimension:
            raise ValueError(
                f"Query points must have dimension {self._dimension}, got shape {array.shape[1:]}"
            )
        if not np.all(np.isfinite(array)):
            raise ValueError("Query coordinates must be finite")
        return array

    def _scaled_distances(self, queries) -> Tuple[np.ndarray, np.ndarray]:
        scaled, shift = scaled_pairwise(self._metric, queries, self._sites)
        if np.isnan(scaled).any():
            raise ValueError(f"Metric {self._metric.name!r} returned NaN")
        return scaled, shift

    def _tied(self, scaled: np.ndarray, shift: np.ndarray) -> np.ndarray:
        with np.errstate(over="ignore"):
            tolerance = np.ldexp(self._tie_tolerance, -shift)[:, np.newaxis]
        return scaled <= scaled.min(axis=1, keepdims=True) + tolerance

    def _nearest_rows(self, queries) -> np.ndarray:
        # argmax over booleans returns the first True, i.e. the smallest tied index
        return np.argmax(self._tied(*self._scaled_distances(queries)), axis=1)


def _validate_tolerance(value) -> float:
    try:
        tolerance = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfiguration(f"tie_tolerance must be a number, got {value!r}") from exc
    if not math.isfinite(tolerance) or tolerance < 0:
        raise InvalidConfiguration(f"tie_tolerance must be finite and >= 0, got {tolerance}")
    return tolerance

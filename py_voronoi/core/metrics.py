"""
Distance functions for nearest-site queries.

A metric is any callable ``dist(a, b) -> float``. Coordinate metrics are
evaluated a whole distance matrix at a time. The Minkowski family (Euclidean,
Manhattan, Chebyshev and general order ``p``) is homogeneous, so each query
row is rescaled by a power of two before the norms are taken. That keeps the
competing distances finite and exact for coordinates anywhere in the float
range. Other coordinate metrics go through ``scipy.spatial.distance.cdist``.
Scalar and batch queries share :func:`scaled_pairwise`, which keeps tie
detection identical between them.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.spatial.distance import cdist

from .errors import InvalidConfiguration


@dataclass(frozen=True)
class Metric:
    """A named distance function.

    Attributes:
        name: Human-readable metric name
        func: Callable computing the distance between two points
        cdist_name: Metric name understood by ``scipy.spatial.distance.cdist``,
            or None for opaque (non-coordinate) metrics
        order: Minkowski order ``p`` (``math.inf`` for Chebyshev) when the
            metric is a p-norm of the coordinate difference
    """
    name: str
    func: Callable[[Any, Any], float]
    cdist_name: Optional[str] = None
    order: Optional[float] = None

    @property
    def is_coordinate(self) -> bool:
        """True when sites must be numeric coordinate vectors."""
        return self.cdist_name is not None or self.order is not None

    @property
    def is_homogeneous(self) -> bool:
        """True when ``dist(s * a, s * b) == s * dist(a, b)`` for s > 0."""
        return self.order is not None

    def __call__(self, a, b) -> float:
        return float(self.func(a, b))


def _euclidean(a, b) -> float:
    diff = np.asarray(a, dtype=float) - np.asarray(b, dtype=float)
    return float(np.sqrt(np.dot(diff, diff)))


def _manhattan(a, b) -> float:
    return float(np.sum(np.abs(np.asarray(a, dtype=float) - np.asarray(b, dtype=float))))


def _chebyshev(a, b) -> float:
    return float(np.max(np.abs(np.asarray(a, dtype=float) - np.asarray(b, dtype=float))))


def _canberra(a, b) -> float:
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    numerator = np.abs(a - b)
    denominator = np.abs(a) + np.abs(b)
    # 0/0 terms count as zero
    terms = np.divide(numerator, denominator, out=np.zeros_like(numerator), where=denominator != 0)
    return float(np.sum(terms))


EUCLIDEAN = Metric("euclidean", _euclidean, "euclidean", 2.0)
MANHATTAN = Metric("manhattan", _manhattan, "cityblock", 1.0)
CHEBYSHEV = Metric("chebyshev", _chebyshev, "chebyshev", math.inf)
CANBERRA = Metric("canberra", _canberra, "canberra")

_NAMED_METRICS: Dict[str, Metric] = {
    "euclidean": EUCLIDEAN,
    "l2": EUCLIDEAN,
    "manhattan": MANHATTAN,
    "cityblock": MANHATTAN,
    "l1": MANHATTAN,
    "chebyshev": CHEBYSHEV,
    "linf": CHEBYSHEV,
    "canberra": CANBERRA,
}


def minkowski(p: float) -> Metric:
    """
    Minkowski distance of order ``p`` (a metric only for p >= 1).

    ``p = inf`` is the Chebyshev limit and returns :data:`CHEBYSHEV`.
    """
    if not p >= 1:
        raise ValueError(f"Minkowski order must be >= 1, got {p}")
    if math.isinf(p):
        return CHEBYSHEV
    p = float(p)

    def _minkowski(a, b) -> float:
        diff = np.abs(np.asarray(a, dtype=float) - np.asarray(b, dtype=float))
        return float(np.sum(diff ** p) ** (1.0 / p))

    return Metric(f"minkowski(p={p:g})", _minkowski, "minkowski", p)


def get_metric(metric: Union[str, Metric, Callable[[Any, Any], float]]) -> Metric:
    """
    Resolve a metric specification.

    Args:
        metric: Metric name, Metric instance, or plain callable

    Returns:
        Metric instance

    Raises:
        InvalidConfiguration: If the name is unknown or the value is not callable
    """
    if isinstance(metric, Metric):
        return metric
    if isinstance(metric, str):
        try:
            return _NAMED_METRICS[metric.lower()]
        except KeyError:
            known = ", ".join(sorted(_NAMED_METRICS))
            raise InvalidConfiguration(f"Unknown metric {metric!r} (known: {known})") from None
    if callable(metric):
        name = getattr(metric, "__name__", type(metric).__name__)
        return Metric(name, metric)
    raise InvalidConfiguration(f"Metric must be a name or a callable, got {type(metric).__name__}")


def scaled_pairwise(metric: Metric, points: Union[np.ndarray, Sequence],
                    sites: Union[np.ndarray, Sequence]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Distance matrix with a power-of-two scale factor per query row.

    For homogeneous metrics each row is divided by ``2**shift[i]`` so that the
    smallest non-zero Chebyshev offset from the query lies in [1, 2). Sites
    competing for the minimum then have finite scaled distances, and far sites
    that overflow become ``inf``, which still orders them correctly. Scaling by
    powers of two is exact, so exact ties survive it.

    Args:
        metric: Resolved metric
        points: m query points (an (m, d) array for coordinate metrics)
        sites: n sites (an (n, d) array for coordinate metrics)

    Returns:
        (scaled, shift): an (m, n) float array and an (m,) integer array with
        ``dist(points[i], sites[j]) == ldexp(scaled[i, j], shift[i])``
    """
    if not metric.is_homogeneous:
        return _unscaled(metric, points, sites), np.zeros(len(points), dtype=np.int32)

    points = np.asarray(points, dtype=float)
    sites = np.asarray(sites, dtype=float)
    with np.errstate(over="ignore"):
        # Halve before subtracting so opposite extremes cannot overflow
        offsets = sites[np.newaxis, :, :] * 0.5 - points[:, np.newaxis, :] * 0.5
        spans = np.abs(offsets).max(axis=2)
        smallest = np.where(spans > 0, spans, np.inf).min(axis=1)
        _, exponents = np.frexp(np.where(np.isfinite(smallest), smallest, 1.0))
        exponents = exponents - 1
        scaled = np.linalg.norm(
            np.ldexp(offsets, -exponents[:, np.newaxis, np.newaxis]),
            ord=metric.order,
            axis=2,
        )
    return scaled, exponents + 1


def pairwise(metric: Metric, points: Union[np.ndarray, Sequence], sites: Union[np.ndarray, Sequence]) -> np.ndarray:
    """
    Distance matrix between query points and sites.

    Distances beyond the float range are reported as ``inf``.

    Args:
        metric: Resolved metric
        points: m query points (an (m, d) array for coordinate metrics)
        sites: n sites (an (n, d) array for coordinate metrics)

    Returns:
        (m, n) float array, entry [i, j] = dist(points[i], sites[j])
    """
    if not metric.is_homogeneous:
        return _unscaled(metric, points, sites)

    scaled, shift = scaled_pairwise(metric, points, sites)
    with np.errstate(over="ignore"):
        return np.ldexp(scaled, shift[:, np.newaxis])


def _unscaled(metric: Metric, points, sites) -> np.ndarray:
    if metric.cdist_name is not None:
        return cdist(np.asarray(points, dtype=float), np.asarray(sites, dtype=float),
                     metric=metric.cdist_name)

    result = np.empty((len(points), len(sites)), dtype=float)
    for i, point in enumerate(points):
        for j, site in enumerate(sites):
            result[i, j] = metric(point, site)
    return result

"""
Core nearest-site functionality.
"""

from .diagram import VoronoiDiagram
from .errors import VoronoiError, InvalidConfiguration, EmptyDiagram, SiteIndexError
from .geometry import Point, BoundingBox, Edge, bisector, bisector_segment, circumcenter, voronoi_edges
from .metrics import Metric, EUCLIDEAN, MANHATTAN, CHEBYSHEV, CANBERRA, minkowski, get_metric

__all__ = ['VoronoiDiagram',
           'VoronoiError', 'InvalidConfiguration', 'EmptyDiagram', 'SiteIndexError',
           'Point', 'BoundingBox', 'Edge', 'bisector', 'bisector_segment', 'circumcenter',
           'voronoi_edges',
           'Metric', 'EUCLIDEAN', 'MANHATTAN', 'CHEBYSHEV', 'CANBERRA', 'minkowski', 'get_metric']

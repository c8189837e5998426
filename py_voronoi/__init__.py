"""Brute-force nearest-site Voronoi diagrams over metric spaces."""

from .core import (
    VoronoiDiagram,
    VoronoiError,
    InvalidConfiguration,
    EmptyDiagram,
    SiteIndexError,
    Point,
    BoundingBox,
    Edge,
    get_metric,
)

__version__ = "0.1.0"

__all__ = ['VoronoiDiagram', 'VoronoiError', 'InvalidConfiguration', 'EmptyDiagram',
           'SiteIndexError', 'Point', 'BoundingBox', 'Edge', 'get_metric']

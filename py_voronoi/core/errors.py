"""Exceptions raised by diagram construction and queries."""


class VoronoiError(Exception):
    """Base class for all py_voronoi errors."""
    pass


class InvalidConfiguration(VoronoiError, ValueError):
    """Raised when a site set, metric or tolerance cannot be accepted."""
    pass


class EmptyDiagram(VoronoiError):
    """Raised when a query is issued against a diagram with zero sites."""

    def __init__(self, operation: str = "query"):
        super().__init__(f"Cannot {operation} an empty Voronoi diagram")
        self.operation = operation


class SiteIndexError(VoronoiError, IndexError):
    """Raised when a site index falls outside 0..n-1."""

    def __init__(self, index: int, n_sites: int):
        super().__init__(f"Site index {index} out of range for {n_sites} sites")
        self.index = index
        self.n_sites = n_sites

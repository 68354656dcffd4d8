"""Exception hierarchy for the RAG dashboard."""

from typing import Optional


class DashboardError(Exception):
    """Base class for all dashboard failures."""


class ComponentValidationError(DashboardError):
    """A UI component tree is malformed."""


class ComponentCycleError(ComponentValidationError, ValueError):
    """Attaching a component would make it its own descendant."""


class ComponentSharedError(ComponentValidationError, ValueError):
    """A component instance appears more than once in one tree."""


class NetworkError(DashboardError):
    """A remote service was unreachable or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EmbeddingUnavailableError(NetworkError):
    """The embedding service could not be reached or rejected the request."""


class FormatError(DashboardError):
    """A remote service answered with an unexpected payload shape."""


class EmbeddingFormatError(FormatError):
    """The embedding service answered without a usable vector."""


class RequestError(DashboardError):
    """An endpoint received missing or invalid parameters."""

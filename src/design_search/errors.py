"""Error taxonomy for the retrieval core.

Read-path errors are recovered locally wherever one signal can stand in for
the other. Only ``InvalidQuery`` and a total ``DependencyUnavailable`` reach
callers; ``StaleReference`` and ``VectorizationFailed`` are logged and absorbed.
"""


class DesignSearchError(Exception):
    """Base class for all design-search errors."""


class InvalidQuery(DesignSearchError):
    """Empty text, non-positive limit, malformed filters or an unknown base artifact."""


class DependencyUnavailable(DesignSearchError):
    """The embedding provider or the vector index cannot serve the request."""


class StaleReference(DesignSearchError):
    """A ranked id no longer resolves to a searchable document."""

    def __init__(self, artifact_id: str, source_kind: str) -> None:
        """Record which reference went stale."""
        super().__init__(f"No searchable {source_kind} with id {artifact_id}")
        self.artifact_id = artifact_id
        self.source_kind = source_kind


class VectorizationFailed(DesignSearchError):
    """Write-side sync could not embed or upsert an artifact."""

"""
Exception hierarchy for the scan pipeline.

None of these are retried anywhere in the service; the HTTP layer maps each
family to a status code in `aiguard.main`.
"""


class AIGuardError(Exception):
    """Base class for every pipeline failure."""


class IngestionError(AIGuardError):
    """Input could not be turned into a transportable payload."""


class FetchError(IngestionError):
    """A remote media URL was unreachable or answered with a non-200 status."""


class AnalysisError(AIGuardError):
    """The remote audit failed, returned nothing, or returned unparsable JSON."""


class MediaUnavailableError(AnalysisError, IngestionError):
    """Raised by the orchestrator when ingestion fails mid-analysis."""


class PersistenceError(AIGuardError):
    """The history backend could not complete a save or list operation."""

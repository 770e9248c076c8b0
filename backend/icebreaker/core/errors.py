"""Error taxonomy shared by the clients, the pipeline and the HTTP layer.

Each error carries the HTTP status the API answers with, so routes never
translate exceptions themselves.
"""


class PipelineError(Exception):
    """Base class for every failure the pipeline reports to a caller."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(PipelineError):
    """Malformed caller request (wrong number of URLs, bad job id)."""

    status_code = 400


class ProviderUnavailable(PipelineError):
    """Transport, auth or malformed-response failure from a provider."""

    status_code = 500


class CollectionFailed(ProviderUnavailable):
    """The collection provider reported the job itself as failed."""


class JobTimeout(PipelineError):
    """Job still running after the polling ceiling."""

    status_code = 500


class ArtifactNotFound(PipelineError):
    """No staged artifact for the requested job id."""

    status_code = 400


class CorruptArtifact(PipelineError):
    """Staged payload exists but cannot be decoded."""

    status_code = 500

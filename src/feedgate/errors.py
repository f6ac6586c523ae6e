"""Exception hierarchy for the ingestion pipeline."""


class FeedGateError(Exception):
    """Base class for all pipeline errors."""


class FetchError(FeedGateError):
    """Network retrieval failed after all retries (or permanently)."""

    def __init__(self, message: str, url: str = "", attempts: int = 0):
        super().__init__(message)
        self.url = url
        self.attempts = attempts


class FetchTimeoutError(FetchError):
    """A single attempt exceeded its hard timeout."""


class FetchHTTPError(FetchError):
    """Upstream answered with a non-success HTTP status."""

    def __init__(self, message: str, url: str = "", status_code: int = 0, attempts: int = 0):
        super().__init__(message, url=url, attempts=attempts)
        self.status_code = status_code

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class FeedParseError(FeedGateError):
    """Root document is not a usable RSS/Atom feed."""


class ItemMappingError(FeedGateError):
    """
    Recoverable failure while mapping one upstream record.
    Adapters log and skip the record; the batch continues.
    """

    def __init__(self, message: str, raw: dict | None = None):
        super().__init__(message)
        self.raw = raw or {}


class TaggingConfigError(FeedGateError):
    """Tagging rule document is missing or malformed."""


class EmbeddingError(FeedGateError):
    """Embedding provider call failed."""


class SourceNotRegisteredError(FeedGateError):
    """Adapter key or source name has no persisted identity."""


class MissingSecretError(FeedGateError, ValueError):
    """Credential is neither mounted nor configured."""

"""Error types raised by the ingestion pipelines and their collaborators."""


class FetchError(Exception):
    """Base class for every failure that aborts an ingestion run."""


class AuthError(FetchError):
    """An access token could not be obtained."""


class ConfigurationError(AuthError):
    """No ShipHero credentials are configured."""


class UpstreamAuthError(AuthError):
    """The token endpoint rejected the refresh token."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UpstreamError(FetchError):
    """The inventory API returned errors or an unexpected response shape."""


class GenerationError(FetchError):
    """Snapshot generation did not return a snapshot id."""


class SnapshotError(FetchError):
    """The snapshot job reported an error."""


class SnapshotTimeoutError(FetchError, TimeoutError):
    """The snapshot job did not finish within the allowed poll attempts."""


class FormatError(FetchError):
    """The downloaded snapshot payload is not a list of records."""


class PersistenceError(FetchError):
    """A storage operation failed."""


class CredentialValidationError(ValueError):
    """Credentials were rejected before reaching storage."""

    def __init__(self, field: str, message: str | None = None):
        super().__init__(message or f"Missing or invalid {field}")
        self.field = field

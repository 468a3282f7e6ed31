from typing import Optional


class NearbySearchError(Exception):
    """Base class for every error raised by the search service."""


class ConfigurationError(NearbySearchError):
    """Missing or unusable process configuration (e.g. provider credentials)."""


class ValidationError(NearbySearchError):
    """Bad request parameters. Raised before any provider call is made."""


class ProviderError(NearbySearchError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ProviderTransientError(ProviderError):
    """5xx, network failure or timeout. Worth retrying."""


class ProviderTerminalError(ProviderError):
    """4xx from the provider. Retrying the same request cannot help."""


class ProviderPayloadError(ProviderError):
    """The provider answered, but the body could not be understood."""


class FetchExhausted(ProviderTransientError):
    def __init__(self, attempts: int, last_error: Optional[Exception] = None):
        status = getattr(last_error, "status", None)
        super().__init__(
            f"Provider request failed after {attempts} attempts: {last_error}",
            status=status,
        )
        self.attempts = attempts
        self.last_error = last_error

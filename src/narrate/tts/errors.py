"""Custom TTS exceptions."""


class TTSError(Exception):
    """Base exception for TTS-related errors."""

    def __init__(
        self, message: str, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_error = original_error


class ProviderError(TTSError):
    """Exception raised when a synthesis provider fails.

    This typically occurs when:
    - API server is unavailable (5xx errors)
    - Rate limits are exceeded (429 error)
    - The request timed out
    - The response carried no audio
    - The local synthesis tool exited with an error
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
        provider: str | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.status_code = status_code
        self.provider = provider

    @property
    def transient(self) -> bool:
        """Whether retrying the same call may succeed."""
        if self.status_code is None:
            return False
        return self.status_code == 429 or self.status_code >= 500


class TTSAuthError(ProviderError):
    """Exception raised when ElevenLabs rejects the configured API key.

    Never retried and, unlike a missing key, only detected once a request
    reaches the API (HTTP 401 or a failed client construction).
    """

    pass


class ToolMissingError(ProviderError):
    """Exception raised when the local synthesis executable is not installed."""

    pass


class CredentialMissingError(TTSError):
    """Exception raised when no primary provider API key is configured."""

    pass


class ArtifactNotProducedError(TTSError):
    """Exception raised when a provider reported success but wrote no file."""

    def __init__(self, path, provider: str | None = None) -> None:
        super().__init__(f"Expected audio file was not produced: {path}")
        self.path = path
        self.provider = provider

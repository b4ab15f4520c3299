"""Exceptions for row enrichment."""


class EnrichBatchError(Exception):
    """Base exception for enrichment errors."""


class InvalidArgumentError(EnrichBatchError):
    """Raised when a call receives malformed arguments."""


class EmptyInputError(EnrichBatchError):
    """Raised when a prompt is requested for no content at all."""


class ConfigurationError(EnrichBatchError):
    """Raised when settings cannot be loaded or validated."""


class MissingKeyError(ConfigurationError):
    """Raised when the API key required by a provider is missing."""


class CopyError(EnrichBatchError):
    """Raised when every copy strategy in the cascade has failed.

    ``failures`` holds ``(strategy, depth, reason)`` tuples in attempt order.
    """

    def __init__(self, message: str, failures: tuple = ()) -> None:
        super().__init__(message)
        self.failures = failures


class RetryExhaustedError(EnrichBatchError):
    """Raised when a remote call fails on its final permitted attempt."""

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        max_attempts: int,
        last_result: object = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.max_attempts = max_attempts
        self.last_result = last_result

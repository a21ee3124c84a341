"""Custom exceptions for the secret service."""

from typing import Any, Optional


class SecretDropError(Exception):
    """Base exception for secret service errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class ValidationError(SecretDropError):
    """Raised when a payload or TTL is rejected at store time."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, status_code=status_code, details=details)


class PayloadEmptyError(ValidationError):
    """Raised when the payload has no content."""

    def __init__(self) -> None:
        super().__init__("Secret cannot be empty")


class PayloadTooLargeError(ValidationError):
    """Raised when the payload exceeds the configured maximum size."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"Secret exceeds maximum size of {limit} bytes",
            status_code=413,
            details={"size_bytes": size, "max_payload_bytes": limit},
        )


class NotFoundError(SecretDropError):
    """Raised for unknown, expired and already-read keys alike.

    The message and details never vary with the cause, so a caller probing
    keys cannot tell "never existed" from "already consumed" or "expired".
    """

    def __init__(self) -> None:
        super().__init__("Secret not found or has expired", status_code=404)


class GenerationExhaustedError(SecretDropError):
    """Raised when no fresh unique key could be produced. Safe to retry the whole store call."""

    def __init__(self, attempts: int = 0, message: Optional[str] = None) -> None:
        super().__init__(
            message or f"Could not allocate a unique key after {attempts} attempts",
            status_code=503,
            details={"attempts": attempts} if attempts else {},
        )


class InternalError(SecretDropError):
    """Raised when the backing storage fails. Never carries backend internals."""

    def __init__(self, message: str = "Secret storage is temporarily unavailable") -> None:
        super().__init__(message, status_code=500)

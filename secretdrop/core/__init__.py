"""Core configuration, logging, errors, and telemetry."""

from secretdrop.core.config import Settings, get_settings
from secretdrop.core.errors import (
    GenerationExhaustedError,
    InternalError,
    NotFoundError,
    PayloadEmptyError,
    PayloadTooLargeError,
    SecretDropError,
    ValidationError,
)
from secretdrop.core.logging import configure_logging, key_fingerprint, structured_log
from secretdrop.core.telemetry import (
    get_metrics,
    get_trace_context,
    get_tracer,
    init_telemetry,
    instrument_fastapi,
    record_secret_not_found,
    record_secret_rejected,
    record_secret_revealed,
    record_secret_stored,
    record_secrets_expired,
    span,
)

__all__ = [
    "Settings",
    "get_settings",
    "SecretDropError",
    "ValidationError",
    "PayloadEmptyError",
    "PayloadTooLargeError",
    "NotFoundError",
    "GenerationExhaustedError",
    "InternalError",
    "configure_logging",
    "key_fingerprint",
    "structured_log",
    "init_telemetry",
    "instrument_fastapi",
    "get_tracer",
    "get_trace_context",
    "get_metrics",
    "record_secret_stored",
    "record_secret_revealed",
    "record_secret_not_found",
    "record_secrets_expired",
    "record_secret_rejected",
    "span",
]

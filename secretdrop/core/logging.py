"""Structured JSON logging with secret-key redaction."""

import hashlib
import json
import logging
import os
import re
import sys
from datetime import UTC, datetime
from typing import Any, Optional

from secretdrop.core.telemetry import get_trace_context

REDACTED = "***REDACTED***"

# Patterns to redact from log output. Retrieval URLs carry the key itself.
SECRET_PATTERNS = (
    re.compile(r"(/secret/)[A-Za-z0-9_\-]+"),
    re.compile(r"(key|payload|secret|token|password)\s*[:=]\s*['\"]?[\w\-]{8,}['\"]?", re.I),
)
SENSITIVE_FIELDS = ("key", "payload", "secret", "token", "password", "authorization", "reference")


def _redact(message: str) -> str:
    def repl(m: re.Match[str]) -> str:
        prefix = m.group(1)
        if prefix.startswith("/"):
            return f"{prefix}{REDACTED}"
        return f"{prefix}={REDACTED}"

    for pat in SECRET_PATTERNS:
        message = pat.sub(repl, message)
    return message


def _redact_dict(obj: Any) -> Any:
    if isinstance(obj, dict):
        redacted = {}
        for k, v in obj.items():
            key_lower = str(k).lower()
            if any(s in key_lower for s in SENSITIVE_FIELDS) and key_lower != "secret_ref":
                redacted[k] = REDACTED
            else:
                redacted[k] = _redact_dict(v)
        return redacted
    if isinstance(obj, list):
        return [_redact_dict(i) for i in obj]
    if isinstance(obj, str):
        return _redact(obj)
    return obj


def key_fingerprint(key: str) -> str:
    """Short, non-reversible reference to a key for log correlation."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:12]


def structured_log(
    level: str,
    message: str,
    *,
    secret_ref: Optional[str] = None,
    trace_id: Optional[str] = None,
    span_id: Optional[str] = None,
    operation: Optional[str] = None,
    duration_ms: Optional[int | float] = None,
    metadata: Optional[dict[str, Any]] = None,
    error: Optional[dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Emit a structured log entry. Pass key fingerprints as secret_ref, never keys."""
    log = logging.getLogger(logger.name if logger else __name__)
    if trace_id is None:
        ctx = get_trace_context()
        trace_id, span_id = ctx.get("trace_id"), span_id or ctx.get("span_id")
    payload: dict[str, Any] = {
        "severity": level.upper(),
        "message": _redact(message),
        "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
    }
    if secret_ref:
        payload["secret_ref"] = secret_ref
    if trace_id:
        payload["trace_id"] = trace_id
    if span_id:
        payload["span_id"] = span_id
    if operation:
        payload["operation"] = operation
    if duration_ms is not None:
        payload["duration_ms"] = round(duration_ms, 2)
    if metadata:
        payload["metadata"] = _redact_dict(metadata)
    if error:
        payload["error"] = _redact_dict(error)

    msg = json.dumps(payload) if _use_json() else _format_readable(payload)
    getattr(log, level.lower(), log.info)(msg)


def _use_json() -> bool:
    """Use JSON format unless LOG_FORMAT=readable (local development)."""
    return os.getenv("LOG_FORMAT", "json").lower() == "json"


def _format_readable(payload: dict[str, Any]) -> str:
    parts = [f"[{payload.get('severity', 'INFO')}]", payload.get("message", "")]
    if payload.get("secret_ref"):
        parts.append(f"secret_ref={payload['secret_ref']}")
    if payload.get("operation"):
        parts.append(f"operation={payload['operation']}")
    if payload.get("duration_ms") is not None:
        parts.append(f"duration_ms={payload['duration_ms']}")
    if payload.get("metadata"):
        parts.extend(f"{k}={v}" for k, v in payload["metadata"].items())
    return " ".join(parts)


def configure_logging(log_level: str = "INFO") -> None:
    """Configure root logger with JSON or readable format."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        if _use_json():
            handler.setFormatter(JsonFormatter())
        else:
            handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    # Access logs contain retrieval paths; keep them out unless debugging.
    if level > logging.DEBUG:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


class JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "severity": record.levelname,
            "message": _redact(record.getMessage()),
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat().replace("+00:00", "Z"),
            "logger": record.name,
        }
        if getattr(record, "secret_ref", None):
            payload["secret_ref"] = record.secret_ref
        if getattr(record, "trace_id", None):
            payload["trace_id"] = record.trace_id
        if getattr(record, "span_id", None):
            payload["span_id"] = record.span_id
        if getattr(record, "operation", None):
            payload["operation"] = record.operation
        if getattr(record, "duration_ms", None) is not None:
            payload["duration_ms"] = record.duration_ms
        if getattr(record, "metadata", None):
            payload["metadata"] = _redact_dict(record.metadata)
        if record.exc_info:
            payload["error"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else "",
                "message": _redact(str(record.exc_info[1])) if record.exc_info[1] else "",
                "stack_trace": self.formatException(record.exc_info) if record.exc_info[2] else "",
            }
        return json.dumps(payload)

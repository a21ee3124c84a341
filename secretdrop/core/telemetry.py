"""OpenTelemetry and Cloud Trace integration with in-process counters."""

from collections import deque
from contextlib import contextmanager
from threading import Lock
from typing import Any, Generator, Optional

from opentelemetry import trace
from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

TRACER_NAME = "secretdrop"
_PAYLOAD_SAMPLE_SIZE = 1000

_COUNTERS = (
    "secrets_stored_total",
    "secrets_revealed_total",
    "secrets_not_found_total",
    "secrets_expired_total",
    "secrets_rejected_total",
)

_metrics_lock = Lock()
_counters: dict[str, int] = dict.fromkeys(_COUNTERS, 0)
_payload_sizes: deque[int] = deque(maxlen=_PAYLOAD_SAMPLE_SIZE)


def get_tracer(name: str = TRACER_NAME) -> Any:
    """Return OpenTelemetry tracer (no-op until a provider is installed)."""
    return trace.get_tracer(name)


def get_trace_context() -> dict[str, str]:
    """Return trace_id and span_id for current span (for log correlation)."""
    current = trace.get_current_span()
    if current is None or not current.is_recording():
        return {}
    ctx = current.get_span_context()
    return {"trace_id": format(ctx.trace_id, "032x"), "span_id": format(ctx.span_id, "016x")}


def init_telemetry(service_name: str = TRACER_NAME, project_id: Optional[str] = None) -> bool:
    """Install a Cloud Trace exporter when a GCP project is configured.

    Returns True if a tracer provider was installed.
    """
    if not project_id:
        return False
    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(CloudTraceSpanExporter(project_id=project_id)))
    trace.set_tracer_provider(provider)
    return True


def instrument_fastapi(app: Any) -> None:
    """Instrument FastAPI app for automatic tracing."""
    FastAPIInstrumentor.instrument_app(app)


def _incr(name: str, amount: int = 1) -> None:
    with _metrics_lock:
        _counters[name] = _counters.get(name, 0) + amount


def record_secret_stored(size_bytes: int) -> None:
    """Increment secrets_stored_total and sample the payload size."""
    with _metrics_lock:
        _counters["secrets_stored_total"] += 1
        _payload_sizes.append(size_bytes)


def record_secret_revealed() -> None:
    _incr("secrets_revealed_total")


def record_secret_not_found() -> None:
    _incr("secrets_not_found_total")


def record_secrets_expired(count: int) -> None:
    if count:
        _incr("secrets_expired_total", count)


def record_secret_rejected() -> None:
    _incr("secrets_rejected_total")


def get_metrics() -> dict[str, Any]:
    """Return current metrics snapshot (for /metrics or tests)."""
    with _metrics_lock:
        out: dict[str, Any] = dict(_counters)
        sizes = list(_payload_sizes)
    out["payload_size_bytes"] = {"count": len(sizes), "sum": sum(sizes), "values": sizes}
    return out


def reset_metrics() -> None:
    """Zero all counters."""
    with _metrics_lock:
        for name in _COUNTERS:
            _counters[name] = 0
        _payload_sizes.clear()


@contextmanager
def span(name: str, attributes: Optional[dict[str, Any]] = None) -> Generator[Any, None, None]:
    """Context manager for a child span."""
    tracer = get_tracer()
    with tracer.start_as_current_span(name) as span_obj:
        if attributes:
            for key, val in attributes.items():
                if val is not None:
                    span_obj.set_attribute(key, str(val))
        yield span_obj

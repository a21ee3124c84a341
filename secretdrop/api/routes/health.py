"""Health, readiness and metrics endpoints."""

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from secretdrop.api.dependencies import get_secret_store
from secretdrop.core.errors import SecretDropError
from secretdrop.core.telemetry import get_metrics
from secretdrop.services.secret_store import SecretStore

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    """Liveness: minimal check, <10ms."""
    return {"status": "ok"}


@router.get("/readiness", response_model=None)
async def readiness(store: Annotated[SecretStore, Depends(get_secret_store)]):
    """Readiness: verify the storage backend answers."""
    try:
        await asyncio.to_thread(store.ping)
    except SecretDropError as e:
        return JSONResponse(
            status_code=503,
            content={"status": "unready", "backend": store.backend_name, "error": e.message},
        )
    return {"status": "ready", "backend": store.backend_name}


def _percentile(values: list[int], p: float) -> float:
    if not values:
        return 0.0
    sorted_vals = sorted(values)
    idx = int((len(sorted_vals) - 1) * p)
    return round(float(sorted_vals[idx]), 2)


@router.get("/metrics")
async def metrics(store: Annotated[SecretStore, Depends(get_secret_store)]) -> dict:
    """Simple JSON metrics endpoint for operational visibility."""
    snapshot = get_metrics()
    sizes = snapshot["payload_size_bytes"]["values"]
    return {
        "secrets_stored_total": snapshot["secrets_stored_total"],
        "secrets_revealed_total": snapshot["secrets_revealed_total"],
        "secrets_not_found_total": snapshot["secrets_not_found_total"],
        "secrets_expired_total": snapshot["secrets_expired_total"],
        "secrets_rejected_total": snapshot["secrets_rejected_total"],
        "secrets_held": await asyncio.to_thread(store.count),
        "payload_size_bytes": {
            "count": len(sizes),
            "p50": _percentile(sizes, 0.50),
            "p95": _percentile(sizes, 0.95),
            "sum": snapshot["payload_size_bytes"]["sum"],
        },
    }

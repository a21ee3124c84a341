"""Background expiry sweeper."""

import asyncio
import time
from typing import Optional

from secretdrop.core.logging import structured_log
from secretdrop.core.telemetry import record_secrets_expired, span
from secretdrop.services.secret_store import SecretStore


class ExpiryScheduler:
    """Periodically removes expired secrets, whether or not they were ever read.

    The sweep runs in a worker thread so a slow backend never blocks the
    event loop; it goes through the store's own locking, so it cannot race
    a concurrent take_once into returning an expired payload.
    """

    def __init__(self, store: SecretStore, interval_seconds: float = 30.0) -> None:
        self.store = store
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """Sweep once and return how many secrets were removed."""
        started = time.perf_counter()
        with span("expiry.sweep", {"backend": self.store.backend_name}):
            removed = await asyncio.to_thread(self.store.sweep_expired)
        record_secrets_expired(removed)
        if removed:
            structured_log(
                "INFO",
                "Expired secrets removed",
                operation="expiry.sweep",
                duration_ms=(time.perf_counter() - started) * 1000,
                metadata={"removed": removed},
            )
        return removed

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # Keep sweeping; reads enforce expiry on their own meanwhile.
                structured_log(
                    "ERROR",
                    f"Expiry sweep failed: {e}",
                    operation="expiry.sweep",
                    error={"type": type(e).__name__, "message": str(e)},
                )

    def start(self) -> None:
        """Start the sweep loop on the running event loop (no-op if disabled or running)."""
        if not self.enabled or self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="secretdrop-expiry")
        structured_log(
            "INFO",
            "Expiry scheduler started",
            operation="expiry.start",
            metadata={"interval_seconds": self.interval_seconds},
        )

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

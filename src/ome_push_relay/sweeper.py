"""Debounced cleanup of pushes whose source stream has gone away."""

import asyncio
import logging
import secrets

from .config import config
from .exceptions import UpstreamError
from .ome_client import OMEClient
from .push_publisher import PushPublisher

logger = logging.getLogger(__name__)


class StalePushSweeper:
    """Stops pushes whose source stream is no longer active in OME.

    Sweeps are triggered by closing events. Bursts of events are coalesced:
    scheduling again before the timer fires replaces the pending timer.
    """

    def __init__(
        self,
        client: OMEClient,
        publisher: PushPublisher,
        delay: float | None = None,
    ):
        self.client = client
        self.publisher = publisher
        self.delay = config.cleanup_delay if delay is None else delay
        self._pending: asyncio.Task | None = None

    @property
    def is_pending(self) -> bool:
        """Whether a sweep is scheduled and has not fired yet."""
        return self._pending is not None and not self._pending.done()

    def schedule(self) -> None:
        """Arm the sweep timer, cancelling any pending one. Must run on the event loop."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            logger.debug("Rescheduled pending push cleanup")

        self._pending = asyncio.get_running_loop().create_task(self._fire())
        logger.info(f"Push cleanup scheduled in {self.delay:g}s")

    async def cancel(self) -> None:
        """Cancel the pending sweep, if any."""
        task, self._pending = self._pending, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _fire(self) -> None:
        await asyncio.sleep(self.delay)

        # Once fired, a new schedule() must not cancel the running sweep
        self._pending = None

        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self.sweep)
        except Exception:
            logger.exception("Unexpected error during push cleanup")

    def sweep(self) -> list[str]:
        """
        Stop every push whose source stream is not currently active.

        Listing failures abort this sweep; the next closing event schedules
        another one.

        Returns:
            Names of the streams whose pushes were stopped.
        """
        event_id = secrets.token_hex(4)
        logger.info(f"[{event_id}] Push cleanup begin")

        try:
            pushes = self.client.list_pushes()
            active = set(self.client.list_streams())
        except UpstreamError as e:
            logger.warning(f"[{event_id}] Push cleanup aborted: {e}")
            return []

        running = [
            push["stream"]["name"]
            for push in pushes
            if isinstance(push.get("stream"), dict) and push["stream"].get("name")
        ]
        logger.info(f"[{event_id}] Currently pushing streams: {len(running)}, active: {len(active)}")

        stale = [name for name in dict.fromkeys(running) if name not in active]
        if not stale:
            logger.info(f"[{event_id}] No stale pushes to stop")

        for stream_name in stale:
            logger.info(f"[{event_id}] Stopping stale push")
            self.publisher.stop(stream_name, event_id)

        logger.info(f"[{event_id}] Push cleanup end")
        return stale

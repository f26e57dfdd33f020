"""Relay service wiring the OME client, push publisher and stale-push sweeper."""

import logging

from .config import config
from .ome_client import OMEClient
from .push_publisher import PushPublisher
from .stream_urls import redact
from .sweeper import StalePushSweeper

logger = logging.getLogger(__name__)


class RelayService:
    """Service owning the push-publish state machine for the incoming app."""

    def __init__(self, client: OMEClient | None = None):
        """Initialize the relay service."""
        self.client = client or OMEClient()
        self.publisher = PushPublisher(self.client)
        self.sweeper = StalePushSweeper(self.client, self.publisher)

    async def start(self) -> None:
        """Start the relay service."""
        logger.info(f"Starting relay service: {self.get_settings_summary()}")
        if not self.client.has_credentials:
            logger.warning(
                "OME_API_ACCESS_TOKEN is not set; OME API calls are sent without an "
                "Authorization header and will be rejected if the API requires one"
            )

    async def stop(self) -> None:
        """Stop the relay service, dropping any pending cleanup."""
        logger.info("Stopping relay service")

        await self.sweeper.cancel()
        self.client.close()

        logger.info("Relay service stopped")

    def publish(self, event_id: str, stream_name: str, target_url: str | None) -> None:
        """
        Converge the push of an admitted stream (blocking).

        Runs as a background task after the admission response has been sent,
        so errors are logged here and never propagate.
        """
        try:
            action = self.publisher.update(stream_name, target_url, event_id)
            logger.info(f"[{event_id}] Push update finished: {action.value}")
        except Exception:
            logger.exception(
                f"[{event_id}] Unexpected error updating push to "
                f"{redact(target_url) if target_url else None}"
            )

    def schedule_sweep(self) -> None:
        """Schedule a debounced stale-push cleanup."""
        self.sweeper.schedule()

    def get_settings_summary(self) -> dict:
        """Non-secret settings, for startup logging."""
        return {
            "incoming_app": self.client.app,
            "ome_api_base_url": self.client.base_url,
            "push_settle_delay": self.publisher.settle_delay,
            "cleanup_delay": self.sweeper.delay,
            "ome_api_timeout": config.ome_api_timeout,
        }

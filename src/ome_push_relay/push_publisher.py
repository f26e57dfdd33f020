"""Push-publish reconciliation against OME."""

import enum
import logging
import time
from collections.abc import Callable

from .config import config
from .exceptions import InvalidForwardUrl, UpstreamError
from .ome_client import OMEClient
from .stream_urls import parse_forward_url, redact, redact_stream_name

logger = logging.getLogger(__name__)


class PushAction(str, enum.Enum):
    """What a reconciliation did to converge a stream's push."""

    NOOP = "noop"
    START = "start"
    STOP = "stop"
    SWITCH = "switch"


class PushPublisher:
    """Converges the push-publish job of a stream to a desired RTMP target.

    OME is the only source of truth: the running push is queried again before
    every decision and nothing is cached here.
    """

    def __init__(
        self,
        client: OMEClient,
        settle_delay: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.settle_delay = config.push_settle_delay if settle_delay is None else settle_delay
        self._sleep = sleep

    @staticmethod
    def job_id(stream_name: str) -> str:
        """Deterministic push job id for a source stream."""
        return f"push_{stream_name}"

    def current_target(self, stream_name: str, event_id: str = "-") -> str | None:
        """
        Look up the RTMP URL the stream is currently pushed to.

        A failure to list pushes is logged and reported as no current target.

        Returns:
            The full target URL (``url/streamKey``), or None if no push is running.
        """
        try:
            pushes = self.client.list_pushes()
        except UpstreamError as e:
            logger.warning(f"[{event_id}] Could not list pushes, assuming none running: {e}")
            return None

        job_id = self.job_id(stream_name)
        for push in pushes:
            if push.get("id") == job_id:
                current = f"{push.get('url')}/{push.get('streamKey')}"
                logger.info(f"[{event_id}] Running push target: {redact(current)}")
                return current

        logger.info(f"[{event_id}] No running push for stream")
        return None

    def start(self, stream_name: str, target_url: str, event_id: str = "-") -> bool:
        """
        Start pushing a stream to an RTMP URL.

        Returns:
            True if OME accepted the push, False otherwise.
        """
        try:
            target = parse_forward_url(target_url)
        except InvalidForwardUrl as e:
            logger.error(f"[{event_id}] Refusing to start push to invalid URL {redact(target_url)}: {e}")
            return False

        body = {
            "id": self.job_id(stream_name),
            "stream": {"name": stream_name},
            "protocol": target.protocol,
            "url": target.server_url,
            "streamKey": target.stream,
        }
        logger.info(
            f"[{event_id}] Starting push for {redact_stream_name(stream_name)}: "
            f"url={body['url']} streamKey=***masked***"
        )

        try:
            result = self.client.start_push(body)
        except UpstreamError as e:
            logger.error(f"[{event_id}] Failed to start push to {redact(target_url)}: {e}")
            return False

        logger.info(f"[{event_id}] Push started: {result}")
        return True

    def stop(self, stream_name: str, event_id: str = "-") -> bool:
        """
        Stop the push of a stream.

        Stopping a push that does not exist is not an error for the caller.

        Returns:
            True if OME acknowledged the stop, False otherwise.
        """
        job_id = self.job_id(stream_name)
        logger.info(f"[{event_id}] Stopping push for {redact_stream_name(stream_name)}")

        try:
            result = self.client.stop_push(job_id)
        except UpstreamError as e:
            logger.warning(f"[{event_id}] Stop push failed (ignored): {e}")
            return False

        logger.info(f"[{event_id}] Push stopped: {result}")
        return True

    def update(self, stream_name: str, target_url: str | None, event_id: str = "-") -> PushAction:
        """
        Make the stream's push match ``target_url``.

        None means the stream should not be pushed anywhere. Switching to a
        different target stops the old push and waits ``settle_delay`` seconds
        before starting the new one, since OME may not release the outbound
        connection right away.
        """
        logger.info(
            f"[{event_id}] Updating push for stream, desired target: "
            f"{redact(target_url) if target_url else None}"
        )
        current = self.current_target(stream_name, event_id)

        if target_url is None:
            if current is None:
                logger.info(f"[{event_id}] No-op; not pushing anyway")
                return PushAction.NOOP
            self.stop(stream_name, event_id)
            return PushAction.STOP

        if current == target_url:
            logger.info(f"[{event_id}] No-op; already pushing to desired target")
            return PushAction.NOOP

        if current is not None:
            logger.info(f"[{event_id}] Target changed, stopping existing push before switching")
            self.stop(stream_name, event_id)
            self._sleep(self.settle_delay)
            self.start(stream_name, target_url, event_id)
            return PushAction.SWITCH

        self.start(stream_name, target_url, event_id)
        return PushAction.START

"""Admission decisions for OvenMediaEngine webhook requests."""

import logging
from dataclasses import dataclass

from .exceptions import MalformedUrl, ValidationError
from .stream_urls import (
    ForwardTarget,
    decode_forward_target,
    parse_admission_url,
    redact,
    strip_admission_query,
)

logger = logging.getLogger(__name__)


@dataclass
class AdmissionDecision:
    """Outcome of one admission request.

    ``allowed``, ``reason`` and ``lifetime`` are returned to OME; an all-None
    decision is an empty acknowledgement. ``stream_name`` and ``target`` are
    set when an admitted stream should be pushed, ``schedule_sweep`` when a
    stale-push cleanup should be scheduled.
    """

    allowed: bool | None = None
    reason: str | None = None
    lifetime: int | None = None
    stream_name: str | None = None
    target: ForwardTarget | None = None
    schedule_sweep: bool = False


def reject(event_id: str, reason: str, detail: str | None = None) -> AdmissionDecision:
    """Build a rejection and log it."""
    suffix = f" ({detail})" if detail else ""
    logger.warning(f"[{event_id}] REJECT: {reason}{suffix}")
    return AdmissionDecision(allowed=False, reason=reason)


def evaluate(
    direction: str | None,
    status: str | None,
    url: str | None,
    incoming_app: str,
    event_id: str = "-",
) -> AdmissionDecision:
    """
    Decide on an admission request.

    Only incoming streams are governed; other directions are acknowledged
    without a decision. An opening stream is admitted when its URL names
    ``incoming_app`` and its stream name is a URL-encoded RTMP URL, which
    becomes the push target.

    Args:
        direction: "incoming" or "outgoing".
        status: "opening" or "closing".
        url: The request URL reported by OME.
        incoming_app: The app incoming streams must be published to.
        event_id: Correlation id for log lines.

    Returns:
        The decision to send back and the follow-up work to run.
    """
    if not direction:
        return reject(event_id, "missing direction")
    if direction != "incoming":
        logger.info(f"[{event_id}] Ignoring non-incoming request ({direction})")
        return AdmissionDecision()
    if not status:
        return reject(event_id, "missing status")
    if not url:
        return reject(event_id, "missing request.url")

    if status == "closing":
        logger.info(f"[{event_id}] Incoming stream closing, scheduling push cleanup")
        return AdmissionDecision(schedule_sweep=True)
    if status != "opening":
        logger.info(f"[{event_id}] Status {status} acknowledged (no action)")
        return AdmissionDecision()

    try:
        incoming = parse_admission_url(url)
    except MalformedUrl as e:
        return reject(event_id, e.reason, e.detail)
    logger.info(f"[{event_id}] Parsed admission URL: scheme={incoming.scheme} host={incoming.host} app={incoming.app}")

    if incoming.app != incoming_app:
        return reject(
            event_id,
            f"unexpected app: {incoming.app}",
            f"expected '{incoming_app}'",
        )

    stream_name = strip_admission_query(incoming.stream_name)
    if not stream_name:
        return reject(event_id, "missing stream name")

    try:
        target = decode_forward_target(stream_name)
    except ValidationError as e:
        return reject(event_id, e.reason, e.detail)

    logger.info(f"[{event_id}] ACCEPT: will push-publish to {redact(target.url)}")
    return AdmissionDecision(
        allowed=True,
        reason="authorized",
        lifetime=0,  # No timeout
        stream_name=stream_name,
        target=target,
    )

"""Pydantic models for the OvenMediaEngine Admission Webhook."""

from typing import Any

from pydantic import BaseModel, field_validator


class OMERequestInfo(BaseModel):
    """Request information from OvenMediaEngine webhook.

    Every field is optional and non-string values are stringified, so that
    incomplete or odd requests get a decision instead of a validation error.
    """

    direction: str | None = None  # "incoming" (publish) or "outgoing" (playback)
    protocol: str | None = None  # "webrtc", "rtmp", "srt", "llhls", "thumbnail"
    status: str | None = None  # "opening" or "closing"
    url: str | None = None
    time: str | None = None  # ISO8601 timestamp

    @field_validator("direction", "protocol", "status", "url", "time", mode="before")
    @classmethod
    def coerce_to_str(cls, v: Any) -> str | None:
        """Turn any non-null JSON value into a string."""
        if v is None or isinstance(v, str):
            return v
        return str(v)


class OMEAdmissionRequest(BaseModel):
    """Request model for OvenMediaEngine Admission Webhook."""

    request: OMERequestInfo | None = None

    @field_validator("request", mode="before")
    @classmethod
    def drop_non_object(cls, v: Any) -> Any:
        """Treat a non-object request as missing."""
        return v if isinstance(v, dict) else None


class OMEAdmissionResponse(BaseModel):
    """Response model for OvenMediaEngine Admission Webhook.

    Serialized without None fields, so an empty response is ``{}``.
    """

    allowed: bool | None = None
    lifetime: int | None = None  # milliseconds, 0 = infinity
    reason: str | None = None

"""Exceptions raised while validating admissions and talking to OME."""


class ValidationError(Exception):
    """An admission request that must be rejected.

    ``reason`` is the human-readable text returned to OME in the
    ``allowed: false`` response.
    """

    reason = "invalid admission request"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.reason)
        self.detail = detail


class MalformedUrl(ValidationError):
    """The admission URL cannot be split into an app and a stream name."""

    reason = "invalid incoming admission URL"


class NotEncodedForwardUrl(ValidationError):
    """The stream name does not look like a URL-encoded RTMP URL."""

    reason = "stream name must be URL-encoded RTMP URL (rtmp%3A%2F%2F...)"


class DecodeFailure(ValidationError):
    """The stream name could not be percent-decoded."""

    reason = "cannot decode URL-encoded RTMP URL"


class InvalidForwardUrl(ValidationError):
    """The decoded forwarding URL is not a usable RTMP URL."""

    reason = "decoded value is not a valid RTMP URL"


class UpstreamError(Exception):
    """A call to the OME REST API failed or returned a non-2xx status."""

    def __init__(self, endpoint: str, status: int | None = None, message: str = ""):
        self.endpoint = endpoint
        self.status = status
        self.message = message
        if status is not None:
            text = f"[{endpoint}] HTTP {status} {message}".rstrip()
        else:
            text = f"[{endpoint}] {message}"
        super().__init__(text)

"""Parsing of admission URLs and the RTMP forwarding URLs encoded in stream names.

An incoming stream is published to ``<scheme>://<host>/<incoming_app>/<stream>``
where ``<stream>`` is a URL-encoded RTMP URL, for example::

    https://relay.example/rtmprelay/rtmp%3A%2F%2Fa.rtmp.youtube.com%2Flive2%2Fxxxx-xxxx

The decoded URL is the push-publish destination for that stream.
"""

import re
from dataclasses import dataclass
from urllib.parse import unquote, urlsplit, urlunsplit

from .exceptions import DecodeFailure, InvalidForwardUrl, MalformedUrl, NotEncodedForwardUrl

FORWARD_SCHEME = "rtmp"
DEFAULT_RTMP_PORT = "1935"

# quote("rtmp://", safe="")
_ENCODED_PREFIX = re.compile(r"^rtmp%3A%2F%2F", re.IGNORECASE)
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True)
class IncomingStreamRef:
    """The parts of an admission request URL that identify the incoming stream."""

    scheme: str
    host: str
    app: str
    stream_name: str


@dataclass(frozen=True)
class ForwardTarget:
    """A push-publish destination decoded from an incoming stream name."""

    host: str
    app: str
    stream: str  # stream key, including any query string
    port: str = DEFAULT_RTMP_PORT
    protocol: str = FORWARD_SCHEME

    @property
    def server_url(self) -> str:
        """Destination URL without the stream key, as OME expects it in ``url``."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port != DEFAULT_RTMP_PORT:
            host = f"{host}:{self.port}"
        return f"{self.protocol}://{host}/{self.app}"

    @property
    def url(self) -> str:
        """Fully-qualified forwarding URL including the stream key."""
        return f"{self.server_url}/{self.stream}"


def parse_admission_url(raw: str) -> IncomingStreamRef:
    """
    Split an admission request URL into app and stream name.

    The first path segment is the app, the rest of the path is the stream
    name. The query string is never part of the stream name.

    Raises:
        MalformedUrl: If the URL is not absolute or has fewer than two path segments.
    """
    try:
        parts = urlsplit(raw)
    except ValueError as e:
        raise MalformedUrl(str(e)) from e

    if not parts.scheme or not parts.netloc:
        raise MalformedUrl("admission URL is not absolute")

    segments = [segment for segment in parts.path.split("/") if segment]
    if len(segments) < 2:
        raise MalformedUrl("admission URL needs an app and a stream name")

    return IncomingStreamRef(
        scheme=parts.scheme,
        host=parts.hostname or "",
        app=segments[0],
        stream_name="/".join(segments[1:]),
    )


def strip_admission_query(stream_name: str) -> str:
    """Drop anything after the first '?', such as OME's ``?direction=whip`` marker."""
    return stream_name.split("?", 1)[0]


def parse_forward_url(url: str) -> ForwardTarget:
    """
    Parse a decoded RTMP URL into a ForwardTarget.

    The first path segment is the RTMP app; the remaining path plus the query
    string form the stream key.

    Raises:
        InvalidForwardUrl: If the URL is not rtmp or lacks a host, app or stream key.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise InvalidForwardUrl(str(e)) from e

    if parts.scheme.lower() != FORWARD_SCHEME:
        raise InvalidForwardUrl(f"unsupported scheme '{parts.scheme}'")
    if not parts.hostname:
        raise InvalidForwardUrl("missing host")

    segments = [segment for segment in parts.path.split("/") if segment]
    app = segments[0] if segments else ""
    stream = "/".join(segments[1:])
    if not app or not stream:
        raise InvalidForwardUrl("missing app or stream key")
    if parts.query:
        stream = f"{stream}?{parts.query}"

    return ForwardTarget(
        host=parts.hostname,
        port=str(port) if port is not None else DEFAULT_RTMP_PORT,
        app=app,
        stream=stream,
    )


def decode_forward_target(encoded: str) -> ForwardTarget:
    """
    Decode a URL-encoded RTMP URL taken from an incoming stream name.

    Raises:
        NotEncodedForwardUrl: If the value does not start with ``rtmp%3A%2F%2F``.
        DecodeFailure: If the value contains malformed percent escapes.
        InvalidForwardUrl: If the decoded value is not a valid RTMP URL.
    """
    if not _ENCODED_PREFIX.match(encoded):
        raise NotEncodedForwardUrl()
    if _BAD_ESCAPE.search(encoded):
        raise DecodeFailure("malformed percent escape")

    try:
        decoded = unquote(encoded, errors="strict")
    except UnicodeDecodeError as e:
        raise DecodeFailure(str(e)) from e

    return parse_forward_url(decoded)


def redact(url: str) -> str:
    """
    Mask the stream key of a URL for logging.

    The last path segment keeps its first and last three characters when it
    is longer than six characters and becomes ``***`` otherwise. A query
    string is part of the key material and is replaced by ``***``. URLs with
    neither a key segment nor a query are returned unchanged.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    segments = [segment for segment in parts.path.split("/") if segment]
    if len(segments) < 2 and not parts.query:
        return url

    path = parts.path
    if len(segments) >= 2:
        key = segments[-1]
        segments[-1] = "***" if len(key) <= 6 else f"{key[:3]}***{key[-3:]}"
        path = "/" + "/".join(segments)

    query = "***" if parts.query else ""
    return urlunsplit(parts._replace(path=path, query=query))


def redact_stream_name(stream_name: str) -> str:
    """
    Mask a source stream name for logging.

    Relayed stream names are URL-encoded RTMP URLs, so they carry the stream
    key of their target. Names that are not URLs are returned unchanged.
    """
    return redact(unquote(stream_name))

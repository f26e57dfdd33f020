"""OvenMediaEngine REST API client."""

import base64
import logging
from typing import Any

import httpx

from .config import config
from .exceptions import UpstreamError

logger = logging.getLogger(__name__)


class OMEClient:
    """Client for the push-publish endpoints of one OME application.

    Calls are blocking and may be issued concurrently from several worker
    threads; a single ``httpx.Client`` is shared between them.
    """

    def __init__(
        self,
        base_url: str | None = None,
        access_token: str | None = None,
        app: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the OME client, falling back to the global config."""
        self.base_url = (base_url or config.ome_api_base_url).rstrip("/")
        self.app = app or config.incoming_app
        token = config.ome_api_access_token if access_token is None else access_token
        self.has_credentials = bool(token)

        self._client = httpx.Client(
            headers=self._build_headers(token),
            timeout=config.ome_api_timeout if timeout is None else timeout,
            transport=transport,
        )

    @staticmethod
    def _build_headers(access_token: str) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if access_token:
            encoded = base64.b64encode(access_token.encode()).decode()
            headers["Authorization"] = f"Basic {encoded}"
        return headers

    def call(self, endpoint: str, method: str = "GET", body: Any = None) -> Any:
        """
        Call an OME API endpoint relative to the base URL.

        Args:
            endpoint: Path below the base URL, e.g. ``rtmprelay:pushes``.
            method: HTTP method.
            body: JSON-serialisable request body.

        Returns:
            The decoded JSON response.

        Raises:
            UpstreamError: On transport failure, non-2xx status or a non-JSON body.
        """
        url = f"{self.base_url}/{endpoint}"
        logger.debug(f"OME API {method} {endpoint}")

        try:
            response = self._client.request(method, url, json=body)
        except httpx.HTTPError as e:
            logger.warning(f"OME API call {endpoint} failed: {e}")
            raise UpstreamError(endpoint, message=str(e) or type(e).__name__) from e

        if not response.is_success:
            logger.warning(f"OME API call {endpoint} returned HTTP {response.status_code}")
            raise UpstreamError(endpoint, status=response.status_code, message=response.reason_phrase)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                endpoint, status=response.status_code, message="invalid JSON response"
            ) from e

    def list_pushes(self) -> list[dict]:
        """
        Get the push-publish jobs currently running for the app.

        Returns:
            List of push dictionaries with ``id``, ``stream``, ``url`` and ``streamKey``.
        """
        data = self.call(f"{self.app}:pushes")
        pushes = data.get("response") if isinstance(data, dict) else None
        return pushes if isinstance(pushes, list) else []

    def list_streams(self) -> list[str]:
        """Get the names of the streams currently active in the app."""
        data = self.call(f"{self.app}/streams")
        streams = data.get("response") if isinstance(data, dict) else None
        return streams if isinstance(streams, list) else []

    def start_push(self, body: dict) -> Any:
        """Start a push-publish job."""
        return self.call(f"{self.app}:startPush", method="POST", body=body)

    def stop_push(self, push_id: str) -> Any:
        """Stop the push-publish job with the given id."""
        return self.call(f"{self.app}:stopPush", method="POST", body={"id": push_id})

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

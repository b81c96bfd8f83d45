"""
Grooming backend API client.

WHAT: Async HTTP client for the downstream grooming API that owns travel-time
storage.

WHY: Provides a single place for:
1. Base URL construction (API_URL with or without /api/v1)
2. Error wrapping in BackendAPIError / DownstreamImportError
3. The import progress relay

HOW: Uses httpx with per-call AsyncClient instances. The import call keeps
its client open inside an ImportProgressStream until that stream is
closed.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import httpx

from grooming_gateway.core.config import settings
from grooming_gateway.core.exceptions import (
    BackendAPIError,
    BackendUnavailableError,
    DownstreamImportError,
    StreamRelayError,
)
from grooming_gateway.schemas.travel_time import TravelTimeImportBatch, TravelTimeRow


logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data: "


def _parse_error_response(response: httpx.Response, fallback: str) -> Dict[str, Any]:
    """
    Extract message and extra fields from a downstream error body.

    The backend answers errors with JSON such as
    {"message": ..., "googleApiError": bool, "error": ...}; anything else is
    reduced to its text.
    """
    try:
        data = response.json()
    except ValueError:
        return {"message": response.text or fallback}

    if not isinstance(data, dict):
        return {"message": fallback}
    return {
        "message": data.get("message") or data.get("error") or fallback,
        "google_api_error": bool(data.get("googleApiError", False)),
        "details": data.get("error"),
    }


class BackendClient:
    """
    Async HTTP client for the grooming backend.

    WHAT: Handles all communication with {BASE_URL}/api/v1/travel-times*.

    HOW: Plain JSON calls go through _request(); the import call is
    handled by open_import_stream() because its response is an event stream.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        stream_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize backend client.

        Args:
            base_url: Downstream origin, defaults to settings.backend_base_url
            timeout: Timeout for JSON calls in seconds
            stream_timeout: Read timeout while relaying the import stream
                (None waits indefinitely between events)
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self._base_url = (base_url or settings.backend_base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.BACKEND_TIMEOUT
        self._stream_timeout = (
            stream_timeout if stream_timeout is not None else settings.IMPORT_STREAM_TIMEOUT
        )
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, path: str) -> str:
        return f"{self._base_url}/api/v1/{path.lstrip('/')}"

    def _client(self, timeout: httpx.Timeout) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        fallback_message: str = "Grooming backend request failed",
    ) -> Any:
        """
        Make a JSON request to the backend.

        Args:
            method: HTTP method
            path: Path below /api/v1
            json: Request body
            fallback_message: Message used when the error body has none

        Returns:
            Parsed JSON response

        Raises:
            BackendAPIError: Backend answered with a 4xx/5xx status
            BackendUnavailableError: Backend could not be reached
        """
        url = self._url(path)
        try:
            async with self._client(httpx.Timeout(self._timeout)) as client:
                response = await client.request(
                    method,
                    url,
                    json=json,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException:
            logger.error(f"Backend request timed out: {method} {url}")
            raise BackendUnavailableError(
                message="Grooming backend request timed out",
                path=path,
                timeout=self._timeout,
            )
        except httpx.RequestError as e:
            logger.error(f"Backend connection error: {method} {url}: {e}")
            raise BackendUnavailableError(
                message=f"Grooming backend connection error: {e}",
                path=path,
            )

        if response.status_code >= 400:
            error = _parse_error_response(response, f"{fallback_message}: {response.status_code}")
            logger.error(f"Backend returned {response.status_code} for {method} {path}: {error['message']}")
            raise BackendAPIError(
                message=error["message"],
                status_code=response.status_code,
                google_api_error=error.get("google_api_error", False),
                backend_error=error.get("details"),
            )

        if response.status_code == 204:
            return {}
        return response.json()

    # =========================================================================
    # Travel Times
    # =========================================================================

    async def list_travel_times(self) -> List[Dict[str, Any]]:
        """Fetch every stored travel-time record."""
        return await self._request(
            "GET", "/travel-times", fallback_message="Failed to fetch travel times"
        )

    async def update_travel_times(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Ask the backend to refresh travel times.

        WHY: The backend queries the maps provider; when that fails it sets
        googleApiError in its error body, which is kept in the error context.
        """
        return await self._request(
            "POST",
            "/travel-times/update",
            json=body,
            fallback_message="Failed to update travel times",
        )

    async def check_health(self) -> Dict[str, Any]:
        """Call the backend health endpoint."""
        return await self._request("GET", "/health")

    async def open_import_stream(self, rows: Sequence[TravelTimeRow]) -> "ImportProgressStream":
        """
        Forward an import batch and return the progress relay.

        WHAT: POSTs {"travelTimes": [...]} to /api/v1/travel-times/import and
        waits for the response headers.

        WHY: The status check happens before any bytes go to the caller, so
        a rejected batch still produces a normal JSON error response.

        Args:
            rows: Validated travel-time rows

        Returns:
            ImportProgressStream for the caller to relay and then aclose()

        Raises:
            DownstreamImportError: Backend unreachable or answered 4xx/5xx
        """
        url = self._url("/travel-times/import")
        payload = TravelTimeImportBatch(travel_times=list(rows)).model_dump(
            by_alias=True, mode="json"
        )
        client = self._client(httpx.Timeout(self._timeout, read=self._stream_timeout))

        try:
            request = client.build_request(
                "POST", url, json=payload, headers={"Accept": "text/event-stream"}
            )
            response = await client.send(request, stream=True)
        except httpx.RequestError as e:
            await client.aclose()
            logger.error(f"Travel-time import request failed: {e}")
            raise DownstreamImportError(
                message=f"Failed to import travel times: {e}",
                row_count=len(rows),
            )

        if response.status_code >= 400:
            try:
                await response.aread()
                error = _parse_error_response(response, "Failed to import travel times")
            finally:
                await response.aclose()
                await client.aclose()
            logger.error(
                f"Travel-time import rejected by backend ({response.status_code}): {error['message']}"
            )
            raise DownstreamImportError(
                message=error["message"],
                status_code=response.status_code,
                row_count=len(rows),
            )

        logger.info(f"Forwarded {len(rows)} travel-time row(s) to backend import")
        return ImportProgressStream(client, response)


class ImportProgressStream:
    """
    Relay of the downstream import progress stream.

    WHAT: Iterating yields each `data: ` line from the backend as one SSE
    event. aclose() releases the downstream response and its client.

    WHY: The downstream connection is open from the moment the batch is
    accepted. aclose() works whether or not iteration ever started, so a
    caller that disconnects before the body begins does not leave it open.
    """

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response):
        self._client = client
        self._response = response
        self.forwarded = 0

    @property
    def closed(self) -> bool:
        return self._response.is_closed and self._client.is_closed

    def __aiter__(self) -> AsyncIterator[str]:
        return self._relay()

    async def _relay(self) -> AsyncIterator[str]:
        """
        Relay `data:` lines from the backend stream as they arrive.

        HOW: aiter_lines() reassembles lines split across network chunks, so
        each yielded event is one complete backend line. Only `data: ` lines
        are forwarded; each is terminated by a blank line to form an event.

        Raises:
            StreamRelayError: The backend stream broke mid-relay
        """
        try:
            async for line in self._response.aiter_lines():
                if line.startswith(SSE_DATA_PREFIX):
                    self.forwarded += 1
                    yield f"{line}\n\n"
        except httpx.HTTPError as e:
            logger.error(f"Travel-time import stream aborted after {self.forwarded} event(s): {e}")
            raise StreamRelayError(message=f"Import progress stream interrupted: {e}")
        finally:
            await self.aclose()

        logger.info(f"Travel-time import stream finished after {self.forwarded} event(s)")

    async def aclose(self) -> None:
        """Close the downstream response and client. Safe to call repeatedly."""
        await self._response.aclose()
        await self._client.aclose()

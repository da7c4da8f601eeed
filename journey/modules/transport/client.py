"""HTTP client for the Journey ingest endpoints."""

import logging
from typing import Any, Optional

import httpx

from ...errors import TransportError
from ..session.models import SessionFlush, SessionHeader, SessionRecord, SessionTail, encode

logger = logging.getLogger(__name__)

DEFAULT_INGEST_URL = "https://journey3-ingest.artemkv.net:8060"
DEFAULT_TIMEOUT = 10.0

SESSION_HEAD_PATH = "/session_head"
SESSION_TAIL_PATH = "/session_tail"
SESSION_FLUSH_PATH = "/session_flush"


def _error_from_response(response: httpx.Response) -> TransportError:
    """Build a TransportError from a non-2xx response and its error envelope."""
    message = response.reason_phrase
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("err"):
        message = str(body["err"])
    return TransportError(response.status_code, response.reason_phrase, message)


class IngestClient:
    """
    Posts session records as JSON to the ingest service.

    Success responses carry ``{"data": ...}``; anything else carries
    ``{"err": "..."}`` and is raised as TransportError.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_INGEST_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the ingest client.

        Args:
            base_url: Root URL of the ingest service
            timeout: Per-request timeout in seconds
            client: Pre-built httpx client (not closed by aclose())
        """
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _post_json(self, path: str, record: SessionRecord) -> Any:
        try:
            response = await self._client.post(
                self.base_url + path,
                json=encode(record),
                headers={"Cache-Control": "no-cache"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(None, None, str(e) or e.__class__.__name__) from e

        if not response.is_success:
            raise _error_from_response(response)

        logger.debug(f"Journey: {path} accepted with HTTP {response.status_code}")
        try:
            return response.json().get("data")
        except (ValueError, AttributeError):
            return None

    async def post_session_header(self, header: SessionHeader) -> Any:
        try:
            return await self._post_json(SESSION_HEAD_PATH, header)
        except TransportError as e:
            raise e.with_prefix("Error sending session header to Journey: ") from e

    async def post_session(self, session: SessionTail) -> Any:
        try:
            return await self._post_json(SESSION_TAIL_PATH, session)
        except TransportError as e:
            raise e.with_prefix("Error sending session to Journey: ") from e

    async def post_session_flush(self, flush: SessionFlush) -> Any:
        try:
            return await self._post_json(SESSION_FLUSH_PATH, flush)
        except TransportError as e:
            raise e.with_prefix("Error sending session flush to Journey: ") from e

import logging
from dataclasses import dataclass, field

import httpx

from catalog_bridge.exceptions import ProtocolError, TransportError
from catalog_bridge.params import ParamBag

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 200


@dataclass(frozen=True)
class CatalogRequest:
    method: str
    url: str
    params: tuple[tuple[str, str], ...] = ()
    headers: tuple[tuple[str, str], ...] = ()

    @property
    def full_url(self) -> httpx.URL:
        return httpx.URL(self.url, params=list(self.params))


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    body: bytes
    content_type: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def build_request(
    base_url: str,
    params: ParamBag | None = None,
    method: str = "GET",
    headers: dict[str, str] | None = None,
) -> CatalogRequest:
    """Describe one upstream call. Query values are escaped when the URL is rendered."""
    return CatalogRequest(
        method=method.upper(),
        url=base_url,
        params=tuple(params.to_query_params()) if params is not None else (),
        headers=tuple((headers or {}).items()),
    )


def _error_message(response: httpx.Response) -> str:
    # Solr reports failures as {"error": {"msg": ...}}; anything else gets a snippet.
    try:
        payload = response.json()
    except (ValueError, UnicodeDecodeError):
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        msg = payload["error"].get("msg")
        if msg:
            return str(msg)
    return response.text[:SNIPPET_LENGTH]


class HttpTransport:
    """Sends CatalogRequests with a bounded timeout.

    Only the HTTP status is judged here. Circulation endpoints answer 200 for
    refused operations and put the real outcome in an embedded <code>; that
    is read by the normalizers, never by the transport.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 30.0) -> None:
        self._client = client
        self._timeout = timeout

    async def send(self, request: CatalogRequest) -> RawResponse:
        url = request.full_url
        logger.debug("%s %s", request.method, url)
        try:
            if self._client is not None:
                response = await self._dispatch(self._client, request, url)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await self._dispatch(client, request, url)
        except httpx.TimeoutException as e:
            raise TransportError(f"Timed out calling {request.url}: {e}") from e
        except httpx.TransportError as e:
            raise TransportError(f"Could not reach {request.url}: {e}") from e

        logger.debug("%s %s -> %s", request.method, request.url, response.status_code)
        if not response.is_success:
            raise ProtocolError(
                f"HTTP {response.status_code} from {request.url}: {_error_message(response)}",
                status_code=response.status_code,
            )
        return RawResponse(
            status_code=response.status_code,
            body=response.content,
            content_type=response.headers.get("content-type", ""),
            headers=dict(response.headers),
        )

    async def _dispatch(
        self, client: httpx.AsyncClient, request: CatalogRequest, url: httpx.URL
    ) -> httpx.Response:
        return await client.request(
            request.method,
            url,
            headers=dict(request.headers),
            timeout=self._timeout,
            follow_redirects=True,
        )


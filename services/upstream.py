"""HTTP relaying to arbitrary upstream targets."""

import logging
from collections.abc import AsyncIterator

import httpx
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from core.exceptions import UpstreamConnectionError, UpstreamFailure, UpstreamTimeoutError
from core.headers import HeaderSanitizer
from core.protocols import RequestLogger
from core.request_types import TargetURL

logger = logging.getLogger(__name__)

BODYLESS_METHODS = frozenset({"GET", "HEAD"})


class UpstreamRelay:
    """Send the proxied request upstream and stream the response back."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        sanitizer: HeaderSanitizer,
        logger: RequestLogger,
        timeout: httpx.Timeout | float = 30.0,
    ) -> None:
        self._client = client
        self._sanitizer = sanitizer
        self._logger = logger
        self._timeout = timeout

    async def relay(
        self,
        method: str,
        target: TargetURL,
        headers: list[tuple[str, str]],
        body: AsyncIterator[bytes] | bytes | None = None,
    ) -> StreamingResponse:
        """Execute the proxied request and return a streaming response.

        Raises:
            UpstreamFailure: the upstream could not be reached or timed out.
        """
        method = method.upper()
        content = None if method in BODYLESS_METHODS else body

        try:
            # Header values arrive latin-1 decoded; send the original bytes back out
            raw_headers = [(key.encode("latin-1"), value.encode("latin-1")) for key, value in headers]
            req = self._client.build_request(
                method,
                str(target),
                headers=raw_headers,
                content=content,
                timeout=self._timeout,
            )
            response = await self._client.send(req, stream=True, follow_redirects=False)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(f"Proxy request failed: upstream timeout ({type(e).__name__})") from e
        except httpx.ConnectError as e:
            raise UpstreamConnectionError(f"Proxy request failed: {e}") from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise UpstreamFailure(f"Proxy request failed: {e}") from e

        relayed = StreamingResponse(
            self._stream_body(response, target),
            status_code=response.status_code,
            background=BackgroundTask(self._cleanup_streaming, response),
        )
        upstream_headers = [
            (key.decode("latin-1"), value.decode("latin-1")) for key, value in response.headers.raw
        ]
        relayed.raw_headers.extend(
            (key.lower().encode("latin-1"), value.encode("latin-1"))
            for key, value in self._sanitizer.strip_inbound(upstream_headers)
        )
        return relayed

    async def _stream_body(
        self,
        response: httpx.Response,
        target: TargetURL,
    ) -> AsyncIterator[bytes]:
        """Yield the decoded upstream body, closing the upstream when done."""
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        except httpx.HTTPError as e:
            # Headers are already sent; the truncated body is all we can do
            logger.warning("Upstream stream from %s broke off: %s", target.host, e)
            self._logger.log_error(target.host, 502, f"Stream interrupted: {e}")
        finally:
            await response.aclose()

    async def _cleanup_streaming(self, response: httpx.Response) -> None:
        """Clean up streaming resources."""
        await response.aclose()

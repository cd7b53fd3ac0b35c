"""Request relay pipeline: auth, target, safety, rate limit, relay."""

import logging
import math

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from auth import AuthGate
from core.exceptions import AuthFailure, ProxyError, RateLimited
from core.headers import HeaderSanitizer
from core.protocols import RequestLogger
from core.rate_limit import RateLimiter
from core.request_types import Stage
from core.safety import SafetyFilter
from core.target import TargetResolver
from services.upstream import BODYLESS_METHODS, UpstreamRelay

logger = logging.getLogger(__name__)


def error_response(exc: ProxyError) -> JSONResponse:
    """Render a rejection as a JSON error response."""
    return JSONResponse(
        {"error": exc.message},
        status_code=exc.status_code,
        headers=exc.headers or None,
    )


class ProxyPipeline:
    """Run each proxy request through the stages in a fixed order.

    The first stage to reject ends the request; later stages never run, so a
    malformed request does not spend rate-limit quota.
    """

    def __init__(
        self,
        logger: RequestLogger,
        auth_gate: AuthGate,
        resolver: TargetResolver,
        safety: SafetyFilter,
        limiter: RateLimiter,
        sanitizer: HeaderSanitizer,
        relay: UpstreamRelay,
    ) -> None:
        self._logger = logger
        self._auth = auth_gate
        self._resolver = resolver
        self._safety = safety
        self._limiter = limiter
        self._sanitizer = sanitizer
        self._relay = relay

    async def handle(self, request: Request) -> Response:
        """Proxy a single request, or answer with the first rejection."""
        identity = request.client.host if request.client else "unknown"
        stage = Stage.AUTHENTICATING
        try:
            result = self._auth.check(request.headers)
            if not result.allowed:
                status, challenge = self._auth.challenge()
                raise AuthFailure(status_code=status, headers=challenge)

            stage = Stage.RESOLVING_TARGET
            body = None
            if self._resolver.needs_body(request.query_params, request.headers):
                body = await request.body()
            target = self._resolver.resolve(request.query_params, request.headers, body)

            stage = Stage.FILTERING_SAFETY
            await self._safety.check(target)

            stage = Stage.RATE_LIMITING
            if not self._limiter.admit(identity):
                wait = self._limiter.retry_after(identity)
                raise RateLimited(headers={"Retry-After": str(max(1, math.ceil(wait)))})

            stage = Stage.RELAYING
            headers = self._sanitizer.strip_outbound(request.headers.items())
            content = None if request.method in BODYLESS_METHODS else request.stream()
            response = await self._relay.relay(request.method, target, headers, content)
        except ProxyError as exc:
            logger.debug("Rejected %s %s at %s: %s", request.method, request.url.path, stage.value, exc.message)
            self._logger.log_rejected(stage.value, exc.status_code, exc.message, identity=identity)
            return error_response(exc)

        self._logger.log_proxied(
            request.method,
            str(target),
            response.status_code,
            identity=result.identity or identity,
            headers=headers,
        )
        return response

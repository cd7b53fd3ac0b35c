"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_health, handle_proxy
from auth import AuthGate
from core.config import Config
from core.headers import HeaderSanitizer
from core.protocols import RequestLogger
from core.rate_limit import RateLimiter
from core.safety import SafetyFilter
from core.target import TargetResolver
from services.pipeline import ProxyPipeline
from services.upstream import UpstreamRelay

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(
    config: Config,
    logger: RequestLogger,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    limiter: RateLimiter | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    limits_cfg = config.limits
    limiter = limiter or RateLimiter(
        limit=limits_cfg.requests_per_minute,
        window=limits_cfg.window_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(
            max_connections=limits_cfg.max_connections,
            max_keepalive_connections=limits_cfg.max_keepalive_connections,
        )
        timeout = httpx.Timeout(limits_cfg.upstream_timeout, connect=limits_cfg.connect_timeout)
        client = httpx.AsyncClient(timeout=timeout, limits=limits, transport=transport)

        auth_gate = AuthGate(config.auth)
        sanitizer = HeaderSanitizer(auth_gate.credential_header)
        app.state.pipeline = ProxyPipeline(
            logger=logger,
            auth_gate=auth_gate,
            resolver=TargetResolver(),
            safety=SafetyFilter(resolve_dns=config.safety.resolve_dns),
            limiter=limiter,
            sanitizer=sanitizer,
            relay=UpstreamRelay(client, sanitizer, logger, timeout=timeout),
        )
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="Forward Proxy", version="0.1.0", lifespan=lifespan)

    @app.get("/")
    async def health(request: Request):
        return await handle_health(request)

    @app.api_route("/proxy", methods=PROXY_METHODS)
    async def proxy(request: Request):
        return await handle_proxy(request)

    return app

"""FastAPI route handlers."""

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse

HEALTH_MESSAGE = "Proxy is running"


async def handle_health(_request: Request) -> Response:
    """Liveness marker for GET /."""
    return PlainTextResponse(HEALTH_MESSAGE)


async def handle_proxy(request: Request) -> Response:
    """Handle /proxy by running the request through the pipeline."""
    pipeline = request.app.state.pipeline
    return await pipeline.handle(request)

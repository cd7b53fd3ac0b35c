"""Target URL resolution from the query string or a JSON body."""

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

from core.exceptions import InvalidTarget, MissingTarget
from core.request_types import TargetURL

ALLOWED_SCHEMES = ("http", "https")


class TargetResolver:
    """Decide which URL a request should be forwarded to."""

    def __init__(self, param: str = "url", field: str = "url") -> None:
        self.param = param
        self.field = field

    def needs_body(self, query: Mapping[str, str], headers: Mapping[str, str]) -> bool:
        """Whether the body has to be read to find the target."""
        if query.get(self.param):
            return False
        return "application/json" in headers.get("content-type", "").lower()

    def resolve(
        self,
        query: Mapping[str, str],
        headers: Mapping[str, str],
        body: bytes | None = None,
    ) -> TargetURL:
        """Return the parsed target, preferring the query parameter."""
        candidate = query.get(self.param)
        if not candidate and body is not None and self.needs_body(query, headers):
            candidate = self.try_extract_body_target(body)
        if not candidate:
            raise MissingTarget()
        return parse_target(candidate)

    def try_extract_body_target(self, body: bytes) -> str | None:
        """Pull the target field out of a JSON body.

        Anything unparseable counts as "no target in body" rather than an
        error, so a bad body falls through to MissingTarget.
        """
        try:
            data: Any = json.loads(body)
        except (ValueError, UnicodeDecodeError):
            return None
        if not isinstance(data, dict):
            return None
        value = data.get(self.field)
        if isinstance(value, str) and value:
            return value
        return None


def parse_target(candidate: str) -> TargetURL:
    """Parse an absolute http(s) URL or raise InvalidTarget."""
    candidate = candidate.strip()
    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError as e:
        raise InvalidTarget(f"Invalid target URL: {e}") from e

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidTarget(f"Invalid target URL: unsupported scheme in {candidate!r}")
    if not parts.hostname:
        raise InvalidTarget(f"Invalid target URL: no host in {candidate!r}")

    return TargetURL(
        raw=candidate,
        scheme=parts.scheme.lower(),
        host=parts.hostname,
        port=port,
    )

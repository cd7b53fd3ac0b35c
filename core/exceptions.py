"""Custom exception hierarchy for the forward proxy."""


class ProxyError(Exception):
    """Base exception for every rejection the proxy can answer with.

    Attributes:
        message: Error message returned to the caller
        status_code: HTTP status code of the rejection response
        headers: Extra response headers (challenge, Retry-After, ...)
    """

    status_code = 500
    default_message = "Proxy error"

    def __init__(
        self,
        message: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.headers = headers or {}
        super().__init__(self.message)


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""


class AuthFailure(ProxyError):
    """Missing or invalid proxy credential."""

    default_message = "Authentication required"

    def __init__(
        self,
        message: str | None = None,
        status_code: int = 401,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message, headers)
        self.status_code = status_code


class MissingTarget(ProxyError):
    """No target URL in the query string or JSON body."""

    status_code = 400
    default_message = "Missing 'url' parameter in query or JSON body."


class InvalidTarget(ProxyError):
    """Target URL is not an absolute http(s) URL."""

    status_code = 400
    default_message = "Invalid target URL"


class BlockedHost(ProxyError):
    """Target names a loopback, private or otherwise internal host."""

    status_code = 403
    default_message = "Blocked private host"


class RateLimited(ProxyError):
    """Caller exceeded the requests-per-window ceiling."""

    status_code = 429
    default_message = "Rate limit exceeded"


class UpstreamFailure(ProxyError):
    """Raised when the upstream could not be reached."""

    status_code = 502
    default_message = "Proxy request failed"


class UpstreamTimeoutError(UpstreamFailure):
    """Raised when an upstream request times out."""


class UpstreamConnectionError(UpstreamFailure):
    """Raised when unable to connect to the upstream."""

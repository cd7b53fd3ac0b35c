"""Header sanitization for both legs of a proxied request."""

from collections.abc import Iterable

# Hop-by-hop headers (RFC 9110 section 7.6.1) plus the legacy proxy-connection
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

# Framing the transport recomputes for each leg
OUTBOUND_STRIPPED = HOP_BY_HOP_HEADERS | {"host", "content-length", "proxy-authorization"}
INBOUND_STRIPPED = HOP_BY_HOP_HEADERS | {"host", "content-length", "content-encoding"}


class HeaderSanitizer:
    """Strip headers that must not cross from one transport leg to the other."""

    def __init__(self, credential_header: str | None = None) -> None:
        self.credential_header = credential_header.lower() if credential_header else None

    def strip_outbound(self, headers: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
        """Filter caller headers before they are sent upstream.

        Removes framing and hop-by-hop headers and the header carrying the
        proxy's own credential, so the upstream never sees the caller's secret.
        """
        stripped = set(OUTBOUND_STRIPPED)
        if self.credential_header:
            stripped.add(self.credential_header)
        return _filter(headers, stripped)

    def strip_inbound(self, headers: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
        """Filter upstream response headers before they are relayed.

        The body is relayed decoded, so content-encoding goes along with the
        framing headers the downstream transport recomputes.
        """
        return _filter(headers, INBOUND_STRIPPED)


def _filter(headers: Iterable[tuple[str, str]], stripped: set[str] | frozenset[str]) -> list[tuple[str, str]]:
    """Drop stripped names and anything listed in a Connection header."""
    items = list(headers)
    connection_listed = {
        token.strip().lower()
        for key, value in items
        if key.lower() == "connection"
        for token in value.split(",")
        if token.strip()
    }
    return [
        (key, value)
        for key, value in items
        if key.lower() not in stripped and key.lower() not in connection_listed
    ]

"""Best-effort SSRF filter for proxy targets.

This is advisory: it blocks obvious loopback and private targets but does not
protect against DNS rebinding or hosts that resolve differently later.
"""

import asyncio
import ipaddress
import logging
import socket

from core.exceptions import BlockedHost
from core.request_types import TargetURL

logger = logging.getLogger(__name__)

BLOCKED_HOSTNAMES = frozenset(
    {
        "localhost",
        "localhost.localdomain",
        "ip6-localhost",
        "ip6-loopback",
    }
)

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


def parse_ip(host: str) -> IPAddress | None:
    """Parse an IP literal, including legacy IPv4 forms like 127.1."""
    try:
        return ipaddress.ip_address(host)
    except ValueError:
        pass
    # inet_aton accepts shorthand, decimal and hex IPv4 notations
    if host and all(c in "0123456789abcdefxABCDEFX." for c in host):
        try:
            return ipaddress.IPv4Address(socket.inet_aton(host))
        except OSError:
            return None
    return None


def is_blocked_ip(ip: IPAddress) -> bool:
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_unspecified
        or ip.is_reserved
        or ip.is_multicast
    )


def is_blocked_hostname(host: str) -> bool:
    host = host.rstrip(".").lower()
    if host in BLOCKED_HOSTNAMES or host.endswith(".localhost"):
        return True
    ip = parse_ip(host)
    return ip is not None and is_blocked_ip(ip)


class SafetyFilter:
    """Reject targets that point at the proxy's own network."""

    def __init__(self, resolve_dns: bool = False) -> None:
        self.resolve_dns = resolve_dns

    async def check(self, target: TargetURL) -> None:
        """Raise BlockedHost when the target host is internal."""
        if is_blocked_hostname(target.host):
            raise BlockedHost()
        if self.resolve_dns and parse_ip(target.host) is None:
            for address in await self._resolve(target):
                ip = parse_ip(address)
                if ip is not None and is_blocked_ip(ip):
                    logger.info("Target %s resolves to blocked address %s", target.host, address)
                    raise BlockedHost()

    async def _resolve(self, target: TargetURL) -> list[str]:
        loop = asyncio.get_running_loop()
        port = target.port or (443 if target.scheme == "https" else 80)
        try:
            infos = await loop.getaddrinfo(target.host, port, type=socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as e:
            # Let the upstream call report the failure
            logger.debug("DNS lookup failed for %s: %s", target.host, e)
            return []
        return [info[4][0] for info in infos]

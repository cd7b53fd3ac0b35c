"""Proxy credential checks - Basic auth or a shared API key."""

import base64
import binascii
import hashlib
import hmac
from collections.abc import Mapping

from rich.console import Console

from core.config import AuthSettings, Config, load_config
from core.request_types import AuthResult

console = Console()

API_KEY_HEADER = "x-api-key"


class AuthGate:
    """Validate caller credentials against the configured secrets.

    Two modes exist and each has its own default when nothing is configured:
    basic auth rejects everything unless ``allow_open`` is set, and API-key
    auth always rejects.
    """

    def __init__(self, settings: AuthSettings) -> None:
        self._settings = settings

    @property
    def credential_header(self) -> str:
        """Header carrying the proxy's own credential."""
        if self._settings.mode == "api_key":
            return API_KEY_HEADER
        if self._settings.challenge == "proxy":
            return "proxy-authorization"
        return "authorization"

    @property
    def is_open(self) -> bool:
        """True when basic auth is unconfigured and explicitly opted out."""
        return (
            self._settings.mode == "basic"
            and not self._has_basic_credentials()
            and self._settings.allow_open
        )

    def check(self, headers: Mapping[str, str]) -> AuthResult:
        """Return whether the request may pass the gate."""
        if self._settings.mode == "api_key":
            return self._check_api_key(headers.get(API_KEY_HEADER))
        return self._check_basic(headers.get(self.credential_header))

    def challenge(self) -> tuple[int, dict[str, str]]:
        """Status code and challenge header for a rejection."""
        scheme = "ApiKey" if self._settings.mode == "api_key" else "Basic"
        value = f'{scheme} realm="{self._settings.realm}"'
        if self._settings.challenge == "proxy":
            return 407, {"Proxy-Authenticate": value}
        return 401, {"WWW-Authenticate": value}

    def describe_policy(self) -> str:
        """One-line description of the effective policy."""
        status, _ = self.challenge()
        if self._settings.mode == "api_key":
            if not self._settings.api_key:
                return f"API key (no key configured: every request rejected with {status})"
            return f"API key via X-Api-Key, rejects with {status}"
        if self._has_basic_credentials():
            return (
                f"Basic auth via {self.credential_header.title()} "
                f"for user '{self._settings.username}', rejects with {status}"
            )
        if self._settings.allow_open:
            return "OPEN PROXY (basic auth unconfigured, allow_open=true)"
        return f"Basic auth (no credentials configured: every request rejected with {status})"

    def _has_basic_credentials(self) -> bool:
        return bool(self._settings.username or self._settings.password)

    def _check_basic(self, header: str | None) -> AuthResult:
        if not self._has_basic_credentials():
            if self._settings.allow_open:
                return AuthResult(allowed=True, identity=None, reason="open")
            return AuthResult(allowed=False, reason="no credentials configured")

        if not header:
            return AuthResult(allowed=False, reason="missing credential")
        scheme, _, payload = header.strip().partition(" ")
        if scheme.lower() != "basic" or not payload:
            return AuthResult(allowed=False, reason="unsupported scheme")

        try:
            decoded = base64.b64decode(payload.strip(), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return AuthResult(allowed=False, reason="malformed credential")
        if ":" not in decoded:
            return AuthResult(allowed=False, reason="malformed credential")

        username, _, password = decoded.partition(":")
        user_ok = hmac.compare_digest(username.encode(), self._settings.username.encode())
        pass_ok = hmac.compare_digest(password.encode(), self._settings.password.encode())
        if user_ok and pass_ok:
            return AuthResult(allowed=True, identity=username)
        return AuthResult(allowed=False, reason="invalid credential")

    def _check_api_key(self, provided: str | None) -> AuthResult:
        expected = self._settings.api_key
        if not expected:
            return AuthResult(allowed=False, reason="no api key configured")
        if provided is None:
            return AuthResult(allowed=False, reason="missing credential")
        if not hmac.compare_digest(provided.encode(), expected.encode()):
            return AuthResult(allowed=False, reason="invalid credential")
        fingerprint = hashlib.sha256(expected.encode()).hexdigest()[:12]
        return AuthResult(allowed=True, identity=f"key:{fingerprint}")


def print_auth_status(config: Config | None = None) -> bool:
    """Print the effective auth policy. Returns False when nothing can pass."""
    config = config or load_config()
    gate = AuthGate(config.auth)
    policy = gate.describe_policy()
    if gate.is_open:
        console.print(f"[yellow]Warning:[/yellow] {policy}")
        return True
    if "every request rejected" in policy:
        console.print(f"[red]Locked:[/red] {policy}")
        console.print("\n[dim]Set PROXY_USERNAME/PROXY_PASSWORD or PROXY_API_KEY[/dim]")
        return False
    console.print(f"[green]Protected[/green] {policy}")
    return True


def main():
    """CLI entry point for auth check."""
    print_auth_status()


if __name__ == "__main__":
    main()

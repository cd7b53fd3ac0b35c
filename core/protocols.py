"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard)."""

    def log_proxied(
        self,
        method: str,
        target: str,
        status: int,
        *,
        identity: str,
        headers: list[tuple[str, str]],
    ) -> None: ...
    def log_rejected(
        self,
        stage: str,
        status: int,
        message: str,
        *,
        identity: str,
    ) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...

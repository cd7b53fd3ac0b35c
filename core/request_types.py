"""Shared request data types."""

from dataclasses import dataclass
from enum import Enum


class Stage(str, Enum):
    """Pipeline stage a request is in (or was rejected by)."""

    AUTHENTICATING = "authenticating"
    RESOLVING_TARGET = "resolving_target"
    FILTERING_SAFETY = "filtering_safety"
    RATE_LIMITING = "rate_limiting"
    RELAYING = "relaying"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a credential check."""

    allowed: bool
    identity: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class TargetURL:
    """Parsed absolute target URL."""

    raw: str
    scheme: str
    host: str
    port: int | None = None

    def __str__(self) -> str:
        return self.raw

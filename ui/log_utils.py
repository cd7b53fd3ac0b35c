"""Shared logging utilities."""

import json
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "proxy.log"

SENSITIVE_MARKERS = ("key", "authorization", "cookie", "secret", "token")


def write_request_log(
    method: str,
    target: str,
    status: int,
    headers: list[tuple[str, str]],
    *,
    identity: str,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single proxied request log entry."""
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "target": target,
        "status": status,
        "identity": identity,
        "headers": _redact_headers(headers),
    }
    return _write_json(log_root / "requests", payload)


def write_cli_log(
    level: str,
    message: str,
    *,
    log_file: Path | None = None,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    log_file = log_file or CLI_LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with log_file.open("a") as f:
        f.write(line)


def clear_logs(log_root: Path = LOG_ROOT) -> None:
    """Remove logs from a previous run."""
    requests_dir = log_root / "requests"
    if requests_dir.exists():
        shutil.rmtree(requests_dir)
    cli_log = log_root / CLI_LOG_FILE.name
    if cli_log.exists():
        cli_log.unlink()


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _redact_headers(headers: list[tuple[str, str]]) -> list[tuple[str, str]]:
    """Redact sensitive headers."""
    redacted = []
    for key, value in headers:
        if any(marker in key.lower() for marker in SENSITIVE_MARKERS):
            redacted.append((key, _mask(value)))
        else:
            redacted.append((key, value))
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()

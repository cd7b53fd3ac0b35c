"""Real-time CLI dashboard for proxy monitoring."""

from datetime import datetime
from threading import Lock
from urllib.parse import urlsplit

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log, write_request_log

console = Console()


class RequestInfo:
    """Info about a single request."""

    def __init__(self, method: str, target: str, status: int, identity: str, timestamp: datetime):
        self.method = method
        self.target = target[:60] + "..." if len(target) > 60 else target
        self.status = status
        self.identity = identity
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing proxied and rejected requests."""

    def __init__(self, config: Config, *, write_files: bool = True):
        self.config = config
        self._write_files = write_files
        self._lock = Lock()
        self._recent: list[RequestInfo] = []
        self._max_recent = 8
        self._counts = {"proxied": 0, "rejected": 0, "errors": 0}
        self._rejections: dict[str, int] = {}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_proxied(
        self,
        method: str,
        target: str,
        status: int,
        *,
        identity: str,
        headers: list[tuple[str, str]],
    ) -> None:
        """Log a request relayed upstream."""
        with self._lock:
            self._counts["proxied"] += 1
            self._remember(method, target, status, identity)
            self._refresh()

            if self._write_files:
                write_request_log(method, target, status, headers, identity=identity)
                host = urlsplit(target).hostname or target
                write_cli_log("PROXY", f"{method} {host}", status=status, identity=identity)

    def log_rejected(
        self,
        stage: str,
        status: int,
        message: str,
        *,
        identity: str,
    ) -> None:
        """Log a request stopped by one of the pipeline stages."""
        with self._lock:
            self._counts["rejected"] += 1
            self._rejections[stage] = self._rejections.get(stage, 0) + 1
            self._remember("-", f"{stage}: {message}", status, identity)
            self._refresh()

            if self._write_files:
                write_cli_log("REJECT", message[:200], stage=stage, status=status, identity=identity)

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            self._counts["errors"] += 1
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()

            if self._write_files:
                write_cli_log("ERROR", message[:200], route=route, status=status)

    def _remember(self, method: str, target: str, status: int, identity: str) -> None:
        info = RequestInfo(method, target, status, identity, datetime.now())
        self._recent.insert(0, info)
        self._recent = self._recent[: self._max_recent]

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_requests_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("Forward Proxy", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Proxied: {self._counts['proxied']}", style="green")
        stats.append("  |  ")
        stats.append(f"Rejected: {self._counts['rejected']}", style="yellow")
        stats.append("  |  ")
        stats.append(f"Errors: {self._counts['errors']}", style="red")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_requests_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Status", width=6)
            table.add_column("Target", ratio=3)
            table.add_column("Caller", ratio=1)

            for info in self._recent:
                style = "green" if info.status < 400 else "yellow" if info.status < 500 else "red"
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.method,
                    Text(str(info.status), style=style),
                    info.target,
                    info.identity,
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent Requests[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        elif self._rejections:
            content = Text(
                "  ".join(f"{stage}={count}" for stage, count in sorted(self._rejections.items())),
                style="yellow",
            )
        else:
            content = Text(
                f"GET http://{self.config.proxy.host}:{self.config.proxy.port}/proxy?url=<target>",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")

"""CLI entry point for forward-proxy."""

import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from auth import print_auth_status
from core.config import CONFIG_FILE, load_config
from core.exceptions import ConfigurationError
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    try:
        config = load_config()
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        sys.exit(1)

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg in ("--check", "--auth"):
            print_auth_status(config)
            return

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

    # Warns on open mode; an always-rejecting gate still starts
    if not print_auth_status(config):
        console.print(f"[dim]Edit {CONFIG_FILE} or set the environment variables above[/dim]")

    # Clear previous logs and start dashboard
    clear_logs()
    dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, dashboard)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="debug" if config.proxy.debug else "warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", duration=str(duration))
        dashboard.stop()


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Forward Proxy[/bold cyan]

Relays GET/POST/... /proxy?url=<target> to the target and streams the reply.

[bold]Usage:[/bold]
    forward-proxy              Start with live dashboard
    forward-proxy --check      Show the effective auth policy
    forward-proxy --config     Show config location
    forward-proxy --help       Show this help

[bold]Environment:[/bold]
    PROXY_USERNAME / PROXY_PASSWORD   Basic auth credentials
    PROXY_API_KEY                     Shared key (with PROXY_AUTH_MODE=api_key)
    PROXY_ALLOW_OPEN=true             Run without credentials (open proxy)
    RATE_LIMIT_PER_MINUTE             Requests per caller per minute (default 30)
"""
    console.print(help_text)


if __name__ == "__main__":
    main()

"""
Command line entry point for Netly.

Direct mode (``listen`` / ``connect``) establishes a session and relays
stdin/stdout over it. With no command, or with ``interactive``, the menu
driven navigator collects the role, host and port first.
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console

from .. import __version__
from ..tui.render import Theme
from ..utils.logging import configure_logging
from .config import NetlyConfig
from .establisher import Establisher
from .exceptions import NetlyError
from .relay import RelayOutcome, relay_stdio
from .session import Session, format_address


logger = logging.getLogger(__name__)


class StatusPrinter:
    """Prints styled status lines to stderr so stdout only carries relayed bytes."""

    def __init__(self, theme: Optional[Theme] = None, console: Optional[Console] = None):
        self.theme = theme or Theme()
        self.console = console or Console(stderr=True, highlight=False)

    def info(self, message: str) -> None:
        self.console.print(f"[{self.theme.info}]→[/] {message}")

    def success(self, message: str) -> None:
        self.console.print(f"[{self.theme.success}]✓[/] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[{self.theme.error}]✗[/] Error: {message}")


def relay_session(session: Session, config: NetlyConfig, status: StatusPrinter) -> RelayOutcome:
    """Relay stdio over ``session`` and report how it ended."""
    try:
        outcome = relay_stdio(session, chunk_size=config.chunk_size)
    finally:
        session.close()

    if outcome.error is not None:
        status.error(f"{outcome.direction.value} stream failed: {outcome.error}")
    else:
        logger.info(
            f"Relay finished ({outcome.reason.value}): "
            f"{outcome.bytes_sent} bytes sent, {outcome.bytes_received} bytes received"
        )
    return outcome


def run_direct_server(port: str, config: NetlyConfig, status: StatusPrinter) -> int:
    """
    Listen on ``port``, accept one peer and relay until either side ends.

    Returns:
        int: Process exit code
    """
    status.info(f"Starting server on port {port}...")
    establisher = Establisher(config)

    def on_listening(address) -> None:
        status.success(f"Listening on port {address[1]}")
        status.info("Waiting for connection...")

    try:
        session = establisher.listen(port, on_listening=on_listening)
    except NetlyError as e:
        status.error(str(e))
        return 1

    status.success(f"Connection from {format_address(session.remote_address)}")
    relay_session(session, config, status)
    return 0


def run_direct_client(host: str, port: str, config: NetlyConfig, status: StatusPrinter) -> int:
    """
    Dial ``host:port`` and relay until either side ends.

    Returns:
        int: Process exit code
    """
    status.info(f"Connecting to {host}:{port}...")
    establisher = Establisher(config)

    try:
        session = establisher.dial(host, port)
    except NetlyError as e:
        status.error(str(e))
        return 1

    status.success("Connected successfully!")
    relay_session(session, config, status)
    return 0


def run_interactive(config: NetlyConfig, status: StatusPrinter) -> int:
    """
    Run the navigator and relay over the session it produces, if any.

    Returns:
        int: Process exit code
    """
    # Imported lazily so direct mode never pays for loading textual.
    from ..tui.interactive import run_navigator

    try:
        session = run_navigator(netly_config=config, theme=status.theme)
    except Exception as e:
        status.error(str(e))
        return 1

    if session is None:
        return 0

    status.success(f"Connected to {format_address(session.remote_address)}")
    relay_session(session, config, status)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netly",
        description="Netly - a modern, fast netcat alternative",
    )
    parser.add_argument("--version", action="version", version=f"netly {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log debug output to stderr",
    )
    subparsers = parser.add_subparsers(dest="command")

    listen_parser = subparsers.add_parser("listen", help="Start listening mode (server)")
    listen_parser.add_argument("port", help="Port to listen on")

    connect_parser = subparsers.add_parser("connect", help="Connect to remote host (client)")
    connect_parser.add_argument("host", help="Remote hostname or IP address")
    connect_parser.add_argument("port", help="Remote port")

    subparsers.add_parser("interactive", help="Start interactive mode")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the netly command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose)

    config = NetlyConfig()
    status = StatusPrinter()

    try:
        if args.command == "listen":
            return run_direct_server(args.port, config, status)
        if args.command == "connect":
            return run_direct_client(args.host, args.port, config, status)
        return run_interactive(config, status)
    except KeyboardInterrupt:
        status.info("Interrupted")
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
Rendering for the interactive navigator.

Turns a navigator state into rich renderables. The renderer only reads the
state; styling comes from an explicit Theme handed in at startup.
"""

from dataclasses import dataclass
from typing import Optional

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from .. import __author__, __version__
from .navigator import (
    ClientConfigHost, ClientConfigPort, Error, Help, Loading, Menu,
    NavigatorState, ServerConfig,
)


BANNER = r"""
    _   __     __  __
   / | / /__  / /_/ /_  __
  /  |/ / _ \/ __/ / / / /
 / /|  /  __/ /_/ / /_/ /
/_/ |_/\___/\__/_/\__, /
                 /____/
"""

SPINNER_FRAMES = "⣾⣽⣻⢿⡿⣟⣯⣷"


@dataclass(frozen=True)
class Theme:
    """Styles used by the navigator view and the CLI status lines."""

    title: str = "bold #00FF00 on #1a1a1a"
    subtitle: str = "#888888"
    info: str = "#00BFFF"
    error: str = "bold #FF0000"
    success: str = "bold #00FF00"
    prompt: str = "#FFFF00"


class NavigatorView:
    """
    Builds the screen for the current navigator state.

    Args:
        theme: Styles to render with
    """

    def __init__(self, theme: Optional[Theme] = None):
        self.theme = theme or Theme()

    def create_header(self) -> Text:
        """Create the banner and version line."""
        header = Text()
        header.append(BANNER, style=self.theme.title)
        header.append("\n")
        header.append(f"Modern Netcat Alternative v{__version__} | by {__author__}", style=self.theme.subtitle)
        return header

    def create_prompt(self, buffer: str, placeholder: str) -> Text:
        prompt = Text("→ ", style=self.theme.prompt)
        if buffer:
            prompt.append(buffer)
        else:
            prompt.append(placeholder, style=self.theme.subtitle)
        prompt.append("█", style="blink")
        return prompt

    def create_menu_panel(self, state: Menu) -> Panel:
        body = Text()
        body.append("  1. ", style=self.theme.success)
        body.append("Listen Mode (Server)    - Accept incoming connections\n")
        body.append("  2. ", style=self.theme.success)
        body.append("Connect Mode (Client)   - Connect to remote host\n")
        body.append("  3. ", style=self.theme.error)
        body.append("Exit\n\n")
        body.append_text(self.create_prompt(state.buffer, "Enter choice..."))
        return Panel(body, title="SELECT OPERATION MODE", border_style=self.theme.info)

    def create_server_panel(self, state: ServerConfig) -> Panel:
        body = self.create_prompt(state.buffer, "Enter port (e.g., 4444)...")
        return Panel(body, title="LISTEN MODE (SERVER)", border_style=self.theme.info)

    def create_client_panel(self, state) -> Panel:
        body = Text()
        if isinstance(state, ClientConfigPort):
            body.append("  Target: ")
            body.append(f"{state.host}\n\n", style=self.theme.info)
            body.append_text(self.create_prompt(state.buffer, "Enter port (e.g., 4444)..."))
        else:
            body.append_text(self.create_prompt(state.buffer, "Enter host (e.g., 192.168.1.100)..."))
        return Panel(body, title="CONNECT MODE (CLIENT)", border_style=self.theme.info)

    def create_loading_panel(self, state: Loading, frame: int = 0) -> Panel:
        spinner = SPINNER_FRAMES[frame % len(SPINNER_FRAMES)]
        body = Text()
        body.append(f"{spinner} ", style=self.theme.success)
        body.append(state.status or "Processing...")
        return Panel(body, title="WORKING", border_style=self.theme.info)

    def create_error_panel(self, state: Error) -> Panel:
        body = Text()
        body.append(f"✗ Error: {state.message}\n\n", style=self.theme.error)
        body.append("Press Esc to return to the menu or 'q' to quit", style=self.theme.prompt)
        return Panel(body, title="ERROR", border_style=self.theme.error)

    def create_help_panel(self) -> Panel:
        body = Text()
        body.append("Enter", style="bold")
        body.append("  - Submit the current input\n")
        body.append("Esc", style="bold")
        body.append("    - Back to the menu\n")
        body.append("?", style="bold")
        body.append("      - Show this help (from the menu)\n")
        body.append("Ctrl+C", style="bold")
        body.append(" - Quit\n\n")
        body.append("Once connected, everything typed is sent to the peer and\n")
        body.append("everything received is printed. Close input (Ctrl+D) to end the session.")
        return Panel(body, title="HELP", border_style=self.theme.prompt)

    def render(self, state: NavigatorState, frame: int = 0) -> RenderableType:
        """
        Render a full screen for ``state``.

        Args:
            state: Current navigator state
            frame: Spinner animation frame, used while loading

        Returns:
            RenderableType: A rich renderable for the whole view
        """
        if isinstance(state, Menu):
            body = self.create_menu_panel(state)
        elif isinstance(state, ServerConfig):
            body = self.create_server_panel(state)
        elif isinstance(state, (ClientConfigHost, ClientConfigPort)):
            body = self.create_client_panel(state)
        elif isinstance(state, Loading):
            body = self.create_loading_panel(state, frame)
        elif isinstance(state, Error):
            body = self.create_error_panel(state)
        elif isinstance(state, Help):
            body = self.create_help_panel()
        else:
            raise TypeError(f"Unknown navigator state: {state!r}")

        footer = Text("Press 'Ctrl+C' to quit, '?' for help", style=self.theme.subtitle)
        return Group(self.create_header(), Text(""), body, footer)

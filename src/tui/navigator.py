"""
Interactive navigator state machine.

The navigator is a pure, single-threaded state machine. Each mode is its own
frozen dataclass carrying only the fields that are meaningful in that mode.
``Navigator.handle`` consumes one event at a time and may return a command
for the runtime to execute (start listening, dial, relay, terminate).
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Optional, Union


logger = logging.getLogger(__name__)


MENU_LISTEN = "1"
MENU_CONNECT = "2"
MENU_EXIT = "3"

# Typed "q" quits only where the user is not entering free text.
QUIT_CHAR = "q"


# States

@dataclass(frozen=True)
class Menu:
    buffer: str = ""
    mode = "menu"


@dataclass(frozen=True)
class Help:
    mode = "help"


@dataclass(frozen=True)
class ServerConfig:
    buffer: str = ""
    mode = "server-config"


@dataclass(frozen=True)
class ClientConfigHost:
    buffer: str = ""
    mode = "client-config-host"


@dataclass(frozen=True)
class ClientConfigPort:
    host: str
    buffer: str = ""
    mode = "client-config-port"


@dataclass(frozen=True)
class Loading:
    role: str
    port: str
    host: Optional[str] = None
    status: str = ""
    mode = "loading"


@dataclass(frozen=True)
class Error:
    message: str
    mode = "error"


NavigatorState = Union[Menu, Help, ServerConfig, ClientConfigHost, ClientConfigPort, Loading, Error]

TEXT_ENTRY_STATES = (Menu, ServerConfig, ClientConfigHost, ClientConfigPort)


# Events

@dataclass(frozen=True)
class KeyInput:
    char: str


@dataclass(frozen=True)
class Backspace:
    pass


@dataclass(frozen=True)
class Submit:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class HelpKey:
    pass


@dataclass(frozen=True)
class QuitKey:
    pass


@dataclass(frozen=True)
class EstablishmentProgress:
    status: str


@dataclass(frozen=True)
class EstablishmentSucceeded:
    session: Any


@dataclass(frozen=True)
class EstablishmentFailed:
    message: str


Event = Union[
    KeyInput, Backspace, Submit, Cancel, HelpKey, QuitKey,
    EstablishmentProgress, EstablishmentSucceeded, EstablishmentFailed,
]


# Commands

@dataclass(frozen=True)
class StartListen:
    port: str


@dataclass(frozen=True)
class StartDial:
    host: str
    port: str


@dataclass(frozen=True)
class StartRelay:
    session: Any


@dataclass(frozen=True)
class Terminate:
    pass


Command = Union[StartListen, StartDial, StartRelay, Terminate]


class Navigator:
    """
    Event-driven menu that collects role, host and port.

    Keybindings (translated into events by the interactive app):
    - Enter: submit the current input
    - Esc: back to the menu (ignored while loading)
    - ?: help (from the menu)
    - Ctrl+C: quit; q also quits outside the text prompts
    """

    def __init__(self, state: Optional[NavigatorState] = None):
        self.state: NavigatorState = state or Menu()
        self.finished = False

    @property
    def mode(self) -> str:
        return self.state.mode

    def handle(self, event: Event) -> Optional[Command]:
        """
        Process one event.

        Args:
            event: The next key press or establishment result

        Returns:
            Optional[Command]: Work the runtime must perform, if any
        """
        if self.finished:
            return None

        if isinstance(event, QuitKey):
            return self._terminate()

        if isinstance(event, KeyInput) and event.char == QUIT_CHAR and not isinstance(self.state, (
                ServerConfig, ClientConfigHost, ClientConfigPort)):
            return self._terminate()

        if isinstance(event, Cancel):
            if not isinstance(self.state, Loading):
                self.state = Menu()
            return None

        if isinstance(self.state, Loading):
            return self._handle_loading(event)

        if isinstance(self.state, TEXT_ENTRY_STATES):
            if isinstance(event, KeyInput):
                self.state = replace(self.state, buffer=self.state.buffer + event.char)
                return None
            if isinstance(event, Backspace):
                self.state = replace(self.state, buffer=self.state.buffer[:-1])
                return None

        if isinstance(self.state, Menu):
            if isinstance(event, HelpKey):
                self.state = Help()
            elif isinstance(event, Submit):
                return self._submit_menu(self.state.buffer.strip())
            return None

        if isinstance(event, Submit):
            return self._submit(self.state)

        return None

    def _submit_menu(self, choice: str) -> Optional[Command]:
        if choice == MENU_LISTEN:
            self.state = ServerConfig()
        elif choice == MENU_CONNECT:
            self.state = ClientConfigHost()
        elif choice == MENU_EXIT:
            return self._terminate()
        else:
            logger.debug(f"Ignoring unrecognized menu choice {choice!r}")
        return None

    def _submit(self, state: NavigatorState) -> Optional[Command]:
        if not isinstance(state, (ServerConfig, ClientConfigHost, ClientConfigPort)):
            return None

        value = state.buffer.strip()
        if not value:
            return None

        if isinstance(state, ServerConfig):
            self.state = Loading(role="server", port=value, status=f"Starting listener on port {value}...")
            return StartListen(port=value)

        if isinstance(state, ClientConfigHost):
            self.state = ClientConfigPort(host=value)
            return None

        self.state = Loading(
            role="client", host=state.host, port=value,
            status=f"Connecting to {state.host}:{value}...",
        )
        return StartDial(host=state.host, port=value)

    def _handle_loading(self, event: Event) -> Optional[Command]:
        if isinstance(event, EstablishmentProgress):
            self.state = replace(self.state, status=event.status)
        elif isinstance(event, EstablishmentSucceeded):
            logger.info(f"Session ready, handing off to relay: {event.session!r}")
            self.finished = True
            return StartRelay(session=event.session)
        elif isinstance(event, EstablishmentFailed):
            self.state = Error(message=event.message)
        return None

    def _terminate(self) -> Terminate:
        self.finished = True
        return Terminate()

"""
Interactive front end for Netly.

This module hosts the navigator inside a textual application. Key presses and
establishment results are fed to the navigator one at a time on the app's
event loop; establishment itself runs in a worker thread so the screen stays
responsive while waiting for a peer.
"""

import logging
from typing import Optional

from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import Static

from ..netly.config import NetlyConfig
from ..netly.establisher import Establisher
from ..netly.exceptions import NetlyError
from ..netly.session import Session, format_address
from .navigator import (
    Backspace, Cancel, Command, EstablishmentFailed, EstablishmentProgress,
    EstablishmentSucceeded, Event, HelpKey, KeyInput, Loading, Navigator,
    QuitKey, StartDial, StartListen, StartRelay, Submit, Terminate,
)
from .render import NavigatorView, Theme


logger = logging.getLogger(__name__)

KEY_EVENTS = {
    "quit": QuitKey,
    "submit": Submit,
    "cancel": Cancel,
    "backspace": Backspace,
}


class EstablishmentUpdate(Message):
    """Carries a navigator event from the establishment worker to the app."""

    def __init__(self, event: Event) -> None:
        super().__init__()
        self.event = event


def translate_character(character: Optional[str]) -> Optional[Event]:
    """
    Map a typed character to a navigator event.

    Enter, Esc, Backspace and Ctrl+C are handled by the app bindings.

    Args:
        character: Printable character for the key press, if any

    Returns:
        Optional[Event]: The navigator event, or None for keys the navigator ignores
    """
    if not character or not character.isprintable():
        return None
    if character == "?":
        return HelpKey()
    return KeyInput(character)


class NavigatorApp(App):
    """
    Textual application driving the Navigator.

    The app exits with the established Session as its return value, or None
    when the user quits.
    """

    BINDINGS = [
        Binding("ctrl+c", "navigator_event('quit')", "Quit", priority=True, show=False),
        Binding("enter", "navigator_event('submit')", "Submit", priority=True, show=False),
        Binding("escape", "navigator_event('cancel')", "Back", priority=True, show=False),
        Binding("backspace", "navigator_event('backspace')", "Delete", priority=True, show=False),
    ]

    def __init__(
        self,
        establisher: Optional[Establisher] = None,
        netly_config: Optional[NetlyConfig] = None,
        theme: Optional[Theme] = None,
    ):
        super().__init__()
        self.netly_config = netly_config or NetlyConfig()
        self.establisher = establisher or Establisher(self.netly_config)
        self.navigator = Navigator()
        self.navigator_view = NavigatorView(theme)
        self.spinner_frame = 0

    def compose(self) -> ComposeResult:
        yield Static(id="navigator")

    def on_mount(self) -> None:
        self.refresh_view()
        self.set_interval(0.1, self._tick)

    def _tick(self) -> None:
        if isinstance(self.navigator.state, Loading):
            self.spinner_frame += 1
            self.refresh_view()

    def refresh_view(self) -> None:
        self.query_one("#navigator", Static).update(
            self.navigator_view.render(self.navigator.state, self.spinner_frame)
        )

    def on_key(self, event: events.Key) -> None:
        nav_event = translate_character(event.character)
        if nav_event is None:
            return
        event.stop()
        self.feed(nav_event)

    def action_navigator_event(self, name: str) -> None:
        self.feed(KEY_EVENTS[name]())

    def on_establishment_update(self, message: EstablishmentUpdate) -> None:
        self.feed(message.event)

    def feed(self, event: Event) -> None:
        """Hand one event to the navigator and carry out the resulting command."""
        if self.navigator.finished:
            # A dial can still complete after the user has quit.
            if isinstance(event, EstablishmentSucceeded):
                event.session.close()
            return

        command = self.navigator.handle(event)
        if not self.navigator.finished:
            self.refresh_view()
        if command is not None:
            self.perform(command)

    def perform(self, command: Command) -> None:
        logger.debug(f"Navigator command: {command!r}")
        if isinstance(command, (StartListen, StartDial)):
            self.establish(command)
        elif isinstance(command, StartRelay):
            self.exit(command.session)
        elif isinstance(command, Terminate):
            self.establisher.abort()
            self.exit(None)

    @work(thread=True, exclusive=True)
    def establish(self, command: Command) -> None:
        """Run the establishment in a worker thread."""
        self.run_establishment(command)

    def run_establishment(self, command: Command) -> None:
        """
        Run the blocking listen or dial and post the result back to the app.

        A session that arrives after the user quit is closed here: the app
        may already be gone and never see the message.
        """
        def on_listening(address) -> None:
            status = f"Listening on {format_address(address)}, waiting for connection..."
            self.post_message(EstablishmentUpdate(EstablishmentProgress(status)))

        try:
            if isinstance(command, StartListen):
                session = self.establisher.listen(command.port, on_listening=on_listening)
            else:
                session = self.establisher.dial(command.host, command.port)
        except NetlyError as e:
            self.post_message(EstablishmentUpdate(EstablishmentFailed(str(e))))
        else:
            if self.navigator.finished or not self.post_message(EstablishmentUpdate(EstablishmentSucceeded(session))):
                logger.info(f"Closing session established after quit: {session!r}")
                session.close()


def run_navigator(
    netly_config: Optional[NetlyConfig] = None,
    theme: Optional[Theme] = None,
) -> Optional[Session]:
    """
    Run the interactive navigator until the user quits or a session is ready.

    Returns:
        Optional[Session]: The established session, or None if the user quit
    """
    app = NavigatorApp(netly_config=netly_config, theme=theme)
    return app.run()

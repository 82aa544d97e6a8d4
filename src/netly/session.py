"""
TCP session handling for Netly.

A Session wraps exactly one connected socket together with the role that
produced it and its lifecycle state.
"""

import enum
import logging
import socket
import threading
from typing import Optional, Tuple

from .exceptions import ConnectionIOError


logger = logging.getLogger(__name__)


class SessionRole(enum.Enum):
    """Which side of the connection this process is."""

    SERVER = "server"
    CLIENT = "client"


class SessionState(enum.Enum):
    """Lifecycle of a session; only ever moves forward."""

    CONNECTING = "connecting"
    ESTABLISHED = "established"
    CLOSED = "closed"


# Allowed forward transitions; nothing ever moves backwards.
_TRANSITIONS = {
    SessionState.CONNECTING: {SessionState.ESTABLISHED, SessionState.CLOSED},
    SessionState.ESTABLISHED: {SessionState.CLOSED},
    SessionState.CLOSED: set(),
}


class Session:
    """
    One TCP connection and its lifecycle.

    The session exclusively owns its socket. ``close()`` may be called from
    any thread any number of times; only the first call touches the socket.
    """

    def __init__(self, role: SessionRole):
        self.role = role
        self.state = SessionState.CONNECTING
        self.local_address: Optional[Tuple[str, int]] = None
        self.remote_address: Optional[Tuple[str, int]] = None
        self._sock: Optional[socket.socket] = None
        self._close_lock = threading.Lock()

    def __repr__(self) -> str:
        """Short description with role, state and peer address."""
        return (
            f"Session(role={self.role.value}, state={self.state.value}, "
            f"remote={format_address(self.remote_address)})"
        )

    def _check_transition(self, new_state: SessionState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise ValueError(f"Invalid session transition {self.state.value} -> {new_state.value}")

    def _transition(self, new_state: SessionState) -> None:
        self._check_transition(new_state)
        self.state = new_state

    def attach(self, sock: socket.socket, remote_address: Optional[Tuple[str, int]] = None) -> None:
        """
        Take ownership of a connected socket and mark the session established.

        The session stays in ``connecting`` if the socket addresses cannot be
        read (e.g. the peer reset the connection before it was accepted).

        Args:
            sock: A connected stream socket
            remote_address: Peer address already known from ``accept()``

        Raises:
            OSError: If the socket is no longer connected
        """
        self._check_transition(SessionState.ESTABLISHED)
        local_address = sock.getsockname()[:2]
        if remote_address is None:
            remote_address = sock.getpeername()
        self.local_address = local_address
        self.remote_address = remote_address[:2]
        self._sock = sock
        self._transition(SessionState.ESTABLISHED)
        logger.info(
            f"{self.role.value} session established "
            f"{format_address(self.local_address)} <-> {format_address(self.remote_address)}"
        )

    @property
    def is_open(self) -> bool:
        """True while the session is established and usable for I/O."""
        return self.state is SessionState.ESTABLISHED

    def send(self, data: bytes) -> None:
        """
        Send all of ``data`` to the peer.

        Raises:
            ConnectionIOError: If the session is closed or the write fails
        """
        sock = self._require_socket()
        try:
            sock.sendall(data)
        except OSError as e:
            raise ConnectionIOError(f"Failed to send to {format_address(self.remote_address)}: {e}") from e

    def recv(self, size: int) -> bytes:
        """
        Receive up to ``size`` bytes; an empty result means the peer closed.

        Raises:
            ConnectionIOError: If the session is closed or the read fails
        """
        sock = self._require_socket()
        try:
            return sock.recv(size)
        except OSError as e:
            raise ConnectionIOError(f"Failed to receive from {format_address(self.remote_address)}: {e}") from e

    def _require_socket(self) -> socket.socket:
        if self.state is not SessionState.ESTABLISHED or self._sock is None:
            raise ConnectionIOError("use of closed network connection")
        return self._sock

    def close(self) -> bool:
        """
        Close the session.

        The socket is shut down in both directions before closing so that a
        thread blocked in ``recv`` on it is released.

        Returns:
            bool: True if this call closed the session, False if it was already closed
        """
        with self._close_lock:
            if self.state is SessionState.CLOSED:
                return False
            sock = self._sock
            self._transition(SessionState.CLOSED)

        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                # Peer may already be gone; the close below still releases the fd.
                pass
            try:
                sock.close()
            except OSError as e:
                logger.warning(f"Error during close: {e}")
        logger.info(f"{self.role.value} session closed")
        return True

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def format_address(address: Optional[Tuple[str, int]]) -> str:
    """Render a socket address as host:port."""
    if not address:
        return "-"
    host, port = address[0], address[1]
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"

"""
Session establishment for Netly.

This module opens the single TCP endpoint a Netly run works with, either by
accepting one inbound connection or by dialing a remote address.
"""

import logging
import socket
import threading
from typing import Callable, Optional, Tuple, Type, Union

from .config import NetlyConfig
from .exceptions import AcceptError, BindError, DialError, NetlyError
from .session import Session, SessionRole, format_address


logger = logging.getLogger(__name__)

Port = Union[str, int]


def parse_port(value: Port, error_class: Type[NetlyError]) -> int:
    """
    Convert a user supplied port into an integer.

    Args:
        value: Port as typed by the user or given on the command line
        error_class: Exception type raised for malformed ports

    Returns:
        int: Port number in the range 0-65535
    """
    try:
        port = int(str(value).strip())
    except ValueError:
        raise error_class(f"invalid port {value!r}")
    if not 0 <= port <= 65535:
        raise error_class(f"port {port} out of range (0-65535)")
    return port


class Establisher:
    """
    Produces established Sessions via listen-and-accept or dial.

    No operation retries; a failure is final for that attempt.
    """

    def __init__(self, config: Optional[NetlyConfig] = None):
        self.config = config or NetlyConfig()
        self._listener: Optional[socket.socket] = None
        self._aborted = False
        self._lock = threading.Lock()

    def listen(
        self,
        port: Port,
        on_listening: Optional[Callable[[Tuple[str, int]], None]] = None,
    ) -> Session:
        """
        Bind, wait for exactly one inbound connection and return it.

        The listening socket is closed as soon as the first connection is
        accepted, so no further peers can connect during this run.

        Args:
            port: Port to bind
            on_listening: Called with the bound address before blocking in accept

        Returns:
            Session: An established server session

        Raises:
            BindError: If the port is malformed or unavailable
            AcceptError: If accepting fails or the wait was aborted
        """
        port_number = parse_port(port, BindError)
        session = Session(SessionRole.SERVER)

        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind((self.config.bind_host, port_number))
            listener.listen(1)
        except OSError as e:
            listener.close()
            error_msg = f"Failed to listen on port {port_number}: {e}"
            logger.error(error_msg)
            raise BindError(error_msg) from e

        with self._lock:
            if self._aborted:
                listener.close()
                raise AcceptError("Listen aborted")
            self._listener = listener

        bound = listener.getsockname()[:2]
        logger.info(f"Listening on {format_address(bound)}")
        if on_listening:
            on_listening(bound)

        try:
            conn, addr = listener.accept()
        except OSError as e:
            error_msg = "Listen aborted" if self._aborted else f"Failed to accept connection: {e}"
            logger.error(error_msg)
            raise AcceptError(error_msg) from e
        finally:
            with self._lock:
                self._listener = None
            listener.close()

        logger.info(f"Accepted connection from {format_address(addr)}")
        try:
            session.attach(conn, remote_address=addr)
        except OSError as e:
            conn.close()
            error_msg = f"Connection from {format_address(addr)} dropped before it could be used: {e}"
            logger.error(error_msg)
            raise AcceptError(error_msg) from e
        return session

    def dial(self, host: str, port: Port, timeout: Optional[float] = None) -> Session:
        """
        Open an outbound connection within the timeout.

        Args:
            host: Remote hostname or IP address
            port: Remote port
            timeout: Seconds allowed for the attempt (defaults to the configured dial timeout)

        Returns:
            Session: An established client session

        Raises:
            DialError: On malformed port, resolution failure, refusal or timeout
        """
        port_number = parse_port(port, DialError)
        if timeout is None:
            timeout = self.config.dial_timeout
        session = Session(SessionRole.CLIENT)

        logger.info(f"Connecting to {host}:{port_number} (timeout={timeout}s)")
        try:
            sock = socket.create_connection((host, port_number), timeout=timeout)
        except socket.timeout as e:
            error_msg = f"Timed out connecting to {host}:{port_number} after {timeout}s"
            logger.error(error_msg)
            raise DialError(error_msg) from e
        except OSError as e:
            error_msg = f"Failed to connect to {host}:{port_number}: {e}"
            logger.error(error_msg)
            raise DialError(error_msg) from e

        try:
            # The relay itself never times out.
            sock.settimeout(None)
            session.attach(sock)
        except OSError as e:
            sock.close()
            error_msg = f"Connection to {host}:{port_number} dropped right after connecting: {e}"
            logger.error(error_msg)
            raise DialError(error_msg) from e
        return session

    def abort(self) -> None:
        """Stop a pending ``listen`` that is still waiting for a peer."""
        with self._lock:
            self._aborted = True
            listener = self._listener
            self._listener = None

        if listener is None:
            return
        logger.info("Aborting pending listen")
        try:
            # Shutting down a listening socket wakes a thread blocked in accept().
            listener.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        listener.close()

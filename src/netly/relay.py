"""
Bidirectional byte relay between local streams and an established Session.

Two pump threads move data: outbound (local input -> peer) and inbound
(peer -> local output). Whichever pump stops first closes the session and
decides the outcome; the other one is only released by that close.
"""

import enum
import logging
import sys
import threading
from dataclasses import dataclass
from typing import BinaryIO, Optional

from .config import DEFAULT_CHUNK_SIZE
from .exceptions import ConnectionIOError
from .session import Session


logger = logging.getLogger(__name__)


class Direction(enum.Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class RelayReason(enum.Enum):
    INBOUND_EOF = "inbound-eof"
    OUTBOUND_EOF = "outbound-eof"
    ERROR = "error"


@dataclass
class RelayOutcome:
    """Result of a finished relay."""

    reason: RelayReason
    direction: Direction
    error: Optional[Exception] = None
    bytes_sent: int = 0
    bytes_received: int = 0
    session_closed: bool = False


class DuplexRelay:
    """
    Streams bytes in both directions until either side ends.

    Args:
        session: An established session, closed by the relay when it finishes
        source: Binary stream read for outbound data (usually stdin)
        sink: Binary stream written with inbound data (usually stdout)
        chunk_size: Maximum bytes per read
    """

    def __init__(
        self,
        session: Session,
        source: BinaryIO,
        sink: BinaryIO,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.session = session
        self.source = source
        self.sink = sink
        self.chunk_size = chunk_size
        self.bytes_sent = 0
        self.bytes_received = 0
        self.outcome: Optional[RelayOutcome] = None
        self._stopped = threading.Event()
        self._outcome_lock = threading.Lock()

    def run(self) -> RelayOutcome:
        """
        Start both pumps and block until the first one finishes.

        Returns:
            RelayOutcome: Which direction ended first and why
        """
        if not self.session.is_open:
            raise ConnectionIOError("Cannot relay over a session that is not established")

        pumps = [
            threading.Thread(target=self._pump_outbound, name="netly-outbound", daemon=True),
            threading.Thread(target=self._pump_inbound, name="netly-inbound", daemon=True),
        ]
        for pump in pumps:
            pump.start()

        self._stopped.wait()
        return self.outcome

    def _finish(self, reason: RelayReason, direction: Direction, error: Optional[Exception] = None) -> None:
        with self._outcome_lock:
            if self.outcome is not None:
                return
            self.outcome = RelayOutcome(reason=reason, direction=direction, error=error)

        if error is not None:
            logger.warning(f"{direction.value} relay failed: {error}")
        else:
            logger.info(f"{direction.value} stream reached end of stream")

        self.session.close()
        self.outcome.bytes_sent = self.bytes_sent
        self.outcome.bytes_received = self.bytes_received
        self.outcome.session_closed = True
        self._stopped.set()

    def _read_local(self) -> bytes:
        read = getattr(self.source, "read1", None) or self.source.read
        return read(self.chunk_size)

    def _pump_outbound(self) -> None:
        try:
            while not self._stopped.is_set():
                data = self._read_local()
                if not data:
                    self._finish(RelayReason.OUTBOUND_EOF, Direction.OUTBOUND)
                    return
                if self._stopped.is_set():
                    break
                self.session.send(data)
                self.bytes_sent += len(data)
        except (OSError, ValueError, ConnectionIOError) as e:
            self._finish(RelayReason.ERROR, Direction.OUTBOUND, e)

    def _pump_inbound(self) -> None:
        try:
            while not self._stopped.is_set():
                data = self.session.recv(self.chunk_size)
                if not data:
                    self._finish(RelayReason.INBOUND_EOF, Direction.INBOUND)
                    return
                if self._stopped.is_set():
                    break
                self.sink.write(data)
                self.sink.flush()
                self.bytes_received += len(data)
        except (OSError, ValueError, ConnectionIOError) as e:
            self._finish(RelayReason.ERROR, Direction.INBOUND, e)


def relay_stdio(session: Session, chunk_size: int = DEFAULT_CHUNK_SIZE) -> RelayOutcome:
    """Relay a session over the process's standard input and output."""
    relay = DuplexRelay(session, sys.stdin.buffer, sys.stdout.buffer, chunk_size=chunk_size)
    return relay.run()

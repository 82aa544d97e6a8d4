"""
Tests for the duplex relay.
"""

import io
import os
import threading
import time

import pytest

from src.netly.exceptions import ConnectionIOError
from src.netly.relay import Direction, DuplexRelay, RelayReason
from src.netly.session import Session, SessionRole, SessionState


class LockedBuffer(io.BytesIO):
    """BytesIO that can be polled from another thread."""

    def __init__(self):
        super().__init__()
        self.lock = threading.Lock()

    def write(self, data):
        with self.lock:
            return super().write(data)

    def wait_for(self, expected, timeout=5.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            with self.lock:
                if self.getvalue() == expected:
                    return True
            time.sleep(0.01)
        return False


class FailingSink:
    def write(self, data):
        raise OSError("disk full")

    def flush(self):
        pass


def run_in_thread(relay):
    result = {}
    thread = threading.Thread(target=lambda: result.update(outcome=relay.run()), daemon=True)
    thread.start()
    return thread, result


@pytest.fixture
def session_and_peer(tcp_pair):
    server, peer = tcp_pair
    server.settimeout(None)
    session = Session(SessionRole.SERVER)
    session.attach(server)
    yield session, peer
    session.close()


@pytest.fixture
def local_input():
    """A pipe standing in for stdin: (reader, writer)."""
    read_fd, write_fd = os.pipe()
    reader = os.fdopen(read_fd, "rb", buffering=0)
    writer = os.fdopen(write_fd, "wb", buffering=0)
    yield reader, writer
    for f in (writer, reader):
        try:
            f.close()
        except OSError:
            pass


class TestDuplexRelay:
    """Test cases for DuplexRelay."""

    def test_outbound_bytes_reach_peer(self, session_and_peer, local_input):
        session, peer = session_and_peer
        reader, writer = local_input
        relay = DuplexRelay(session, reader, LockedBuffer())
        thread, result = run_in_thread(relay)

        writer.write(b"hello\n")
        assert peer.recv(64) == b"hello\n"

        writer.close()
        thread.join(5.0)

        outcome = result["outcome"]
        assert outcome.reason == RelayReason.OUTBOUND_EOF
        assert outcome.direction == Direction.OUTBOUND
        assert outcome.bytes_sent == 6
        assert outcome.session_closed
        assert session.state == SessionState.CLOSED

    def test_inbound_bytes_reach_local_output(self, session_and_peer, local_input):
        session, peer = session_and_peer
        reader, writer = local_input
        sink = LockedBuffer()
        relay = DuplexRelay(session, reader, sink)
        thread, result = run_in_thread(relay)

        peer.sendall(b"world\n")
        assert sink.wait_for(b"world\n")

        peer.close()
        thread.join(5.0)

        outcome = result["outcome"]
        assert outcome.reason == RelayReason.INBOUND_EOF
        assert outcome.direction == Direction.INBOUND
        assert outcome.bytes_received == 6
        assert session.state == SessionState.CLOSED

    def test_order_preserved_across_chunks(self, session_and_peer):
        """Payload larger than one chunk arrives intact and in order."""
        session, peer = session_and_peer
        payload = bytes(range(256)) * 64
        relay = DuplexRelay(session, io.BytesIO(payload), LockedBuffer(), chunk_size=1000)
        thread, result = run_in_thread(relay)

        received = b""
        while True:
            data = peer.recv(4096)
            if not data:
                break
            received += data
        thread.join(5.0)

        assert received == payload
        assert result["outcome"].bytes_sent == len(payload)

    def test_local_eof_closes_session_for_peer(self, session_and_peer):
        """Ending local input ends the whole session, the peer sees EOF."""
        session, peer = session_and_peer
        relay = DuplexRelay(session, io.BytesIO(b""), LockedBuffer())

        outcome = relay.run()

        assert outcome.reason == RelayReason.OUTBOUND_EOF
        assert peer.recv(64) == b""

    def test_other_direction_fails_after_close(self, session_and_peer, local_input):
        """Once one direction ends, further I/O on the session fails."""
        session, peer = session_and_peer
        reader, _ = local_input
        relay = DuplexRelay(session, reader, LockedBuffer())
        thread, result = run_in_thread(relay)

        peer.close()
        thread.join(5.0)

        assert result["outcome"].reason == RelayReason.INBOUND_EOF
        with pytest.raises(ConnectionIOError, match="closed"):
            session.send(b"too late")

    def test_sink_error_ends_relay(self, session_and_peer, local_input):
        session, peer = session_and_peer
        reader, _ = local_input
        relay = DuplexRelay(session, reader, FailingSink())
        thread, result = run_in_thread(relay)

        peer.sendall(b"data")
        thread.join(5.0)

        outcome = result["outcome"]
        assert outcome.reason == RelayReason.ERROR
        assert outcome.direction == Direction.INBOUND
        assert isinstance(outcome.error, OSError)
        assert session.state == SessionState.CLOSED

    def test_first_outcome_wins(self, session_and_peer):
        """Only the first finishing direction is recorded."""
        session, _ = session_and_peer
        relay = DuplexRelay(session, io.BytesIO(b""), LockedBuffer())

        relay._finish(RelayReason.INBOUND_EOF, Direction.INBOUND)
        relay._finish(RelayReason.OUTBOUND_EOF, Direction.OUTBOUND)

        assert relay.outcome.reason == RelayReason.INBOUND_EOF

    def test_requires_established_session(self):
        relay = DuplexRelay(Session(SessionRole.CLIENT), io.BytesIO(b""), io.BytesIO())

        with pytest.raises(ConnectionIOError):
            relay.run()

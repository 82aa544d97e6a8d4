"""
Shared fixtures for Netly tests.
"""

import socket

import pytest


def _loopback_pair():
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    client = socket.create_connection(listener.getsockname(), timeout=5.0)
    server, _ = listener.accept()
    listener.close()
    client.settimeout(5.0)
    server.settimeout(5.0)
    return server, client


@pytest.fixture
def tcp_pair():
    """A connected (server, client) pair of loopback TCP sockets."""
    server, client = _loopback_pair()
    yield server, client
    for sock in (server, client):
        try:
            sock.close()
        except OSError:
            pass


@pytest.fixture
def free_port():
    """A TCP port on 127.0.0.1 that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: end-to-end tests over real loopback sockets"
    )

"""
Runtime configuration for Netly.
"""

from dataclasses import dataclass


DEFAULT_DIAL_TIMEOUT = 10.0
DEFAULT_CHUNK_SIZE = 4096


@dataclass(frozen=True)
class NetlyConfig:
    """
    Settings shared by the establisher, the relay and the interactive app.

    Attributes:
        dial_timeout: Seconds allowed for an outbound connection attempt
        chunk_size: Maximum bytes moved per read in either relay direction
        bind_host: Address the listener binds to ("" means all interfaces)
    """

    dial_timeout: float = DEFAULT_DIAL_TIMEOUT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    bind_host: str = ""

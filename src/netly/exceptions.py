"""
Custom exceptions for the Netly TCP utility.
"""


class NetlyError(Exception):
    """Base exception for all Netly related errors."""
    pass


class BindError(NetlyError):
    """Raised when the listening port cannot be bound."""
    pass


class AcceptError(NetlyError):
    """Raised when accepting the inbound connection fails."""
    pass


class DialError(NetlyError):
    """Raised when an outbound connection cannot be opened (refused, timeout, bad address)."""
    pass


class ConnectionIOError(NetlyError):
    """Raised when reading from or writing to an established session fails."""
    pass

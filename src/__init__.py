"""
Netly - a modern netcat alternative

A small TCP utility with a listen (server) role and a connect (client) role,
reachable from direct commands or from an interactive menu, relaying raw
bytes between the terminal and the remote peer.
"""

__version__ = "1.0.0"
__author__ = "penguinshero"
__description__ = "Modern and fast netcat alternative"

"""
Transport: the loopback listener and the client connections it accepts.
"""

from .connection import Connection, ConnectionState, RequestTooLarge
from .listener import Listener

__all__ = ["Connection", "ConnectionState", "RequestTooLarge", "Listener"]

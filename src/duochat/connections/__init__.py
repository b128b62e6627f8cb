"""Package that holds the connection classes of the chat: the connection
that carries the chat traffic with the peer, and the helpers that establish
the underlying TCP streams.

Each connection class provided by this package has a common notion of a
*state*, which may be one of: disconnected, connecting, connected or
disconnecting. Connection instances send signals when their state changes.
"""

from .base import (
    Connection,
    ConnectionBase,
    ConnectionState,
    ReadableConnection,
    WritableConnection,
)
from .chat import ChatConnection
from .errors import (
    AddressInUseError,
    ConnectTimeoutError,
    ConnectionClosedError,
    ConnectionError,
    ConnectionEstablishmentError,
    ConnectionLostError,
    HostNotFoundError,
    InvalidAddressError,
    PeerUnreachableError,
)
from .tcp import PeerListener, connect_to_peer

__all__ = (
    "AddressInUseError",
    "ChatConnection",
    "ConnectTimeoutError",
    "Connection",
    "ConnectionBase",
    "ConnectionClosedError",
    "ConnectionError",
    "ConnectionEstablishmentError",
    "ConnectionLostError",
    "ConnectionState",
    "HostNotFoundError",
    "InvalidAddressError",
    "PeerListener",
    "PeerUnreachableError",
    "ReadableConnection",
    "WritableConnection",
    "connect_to_peer",
)

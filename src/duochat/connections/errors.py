from duochat.errors import ChatError

__all__ = (
    "AddressInUseError",
    "ConnectTimeoutError",
    "ConnectionClosedError",
    "ConnectionError",
    "ConnectionEstablishmentError",
    "ConnectionLostError",
    "HostNotFoundError",
    "InvalidAddressError",
    "PeerUnreachableError",
)


class ConnectionError(ChatError):
    """Base class for connection-related errors."""

    pass


class ConnectionClosedError(ConnectionError):
    """Exception thrown when trying to read from or write to a connection
    that was already closed locally.
    """

    def __init__(self, message=None):
        message = message or "Connection is closed"
        super().__init__(message)


class ConnectionLostError(ConnectionError):
    """Exception thrown when the connection to the peer broke down in an
    abnormal way, e.g., it was reset by the peer.
    """

    pass


class ConnectionEstablishmentError(ConnectionError):
    """Base class for errors that prevent a connection from being established
    in the first place.

    Attributes:
        user_message: a single human-readable line that describes the failure
            to the user
    """

    default_message = "Error while establishing the connection"

    def __init__(self, user_message=None):
        """Constructor.

        Parameters:
            user_message (Optional[str]): the message to show to the user
        """
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message)


class HostNotFoundError(ConnectionEstablishmentError):
    """Exception thrown when the address of the peer cannot be resolved."""

    default_message = "Server address not found"


class ConnectTimeoutError(ConnectionEstablishmentError):
    """Exception thrown when the peer did not accept the connection in time."""

    default_message = "Connection timed out"


class InvalidAddressError(ConnectionEstablishmentError):
    """Exception thrown when the address or port of the peer is malformed."""

    default_message = "Invalid server address"


class PeerUnreachableError(ConnectionEstablishmentError):
    """Exception thrown for all other I/O errors while connecting to the
    peer, e.g., when the peer refuses the connection.
    """

    default_message = "Error connecting to server"


class AddressInUseError(ConnectionEstablishmentError):
    """Exception thrown when the server cannot listen on the requested port
    because it is already in use.
    """

    default_message = "Address already in use"

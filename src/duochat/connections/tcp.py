"""Establishment of TCP connections to the peer, either by connecting to it
(client role) or by waiting for it to connect (server role).

Both roles produce an open Trio socket stream. Failures are reported as
subclasses of ConnectionEstablishmentError_ so the caller can tell the user
what went wrong.
"""

from contextlib import nullcontext
from errno import EADDRINUSE
from trio import (
    SocketListener,
    SocketStream,
    TooSlowError,
    aclose_forcefully,
    fail_after,
    open_nursery,
    open_tcp_listeners,
    open_tcp_stream,
)
from trio.socket import gaierror
from typing import List, Optional, Union

from duochat.logger import log as base_log

from .errors import (
    AddressInUseError,
    ConnectTimeoutError,
    ConnectionEstablishmentError,
    HostNotFoundError,
    InvalidAddressError,
    PeerUnreachableError,
)

__all__ = ("PeerListener", "connect_to_peer")

log = base_log.getChild("tcp")


async def connect_to_peer(
    host: str, port: int, *, timeout: Optional[float] = None
) -> SocketStream:
    """Opens a TCP connection to the peer listening at the given address.

    Parameters:
        host: the hostname or IP address of the peer
        port: the port of the peer
        timeout: maximum number of seconds to wait for the connection to be
            established; ``None`` means to wait indefinitely

    Returns:
        the connected stream

    Raises:
        HostNotFoundError: if the hostname cannot be resolved
        ConnectTimeoutError: if the connection was not established in time
        InvalidAddressError: if the host or the port is malformed
        PeerUnreachableError: for any other I/O error
    """
    deadline = fail_after(timeout) if timeout is not None else nullcontext()
    try:
        with deadline:
            return await open_tcp_stream(host, port)
    except gaierror as ex:
        log.debug(f"Server address not found: {host}", exc_info=ex)
        raise HostNotFoundError(f"Server {host} not found") from ex
    except TooSlowError as ex:
        log.debug(f"Connection timed out with {host}:{port}")
        raise ConnectTimeoutError(
            f"Timed out when trying to connect to server: {host}"
        ) from ex
    except (ValueError, TypeError, UnicodeError) as ex:
        log.debug(f"Invalid server address: {host}:{port}", exc_info=ex)
        raise InvalidAddressError(f"Server address not valid: {host}") from ex
    except OSError as ex:
        log.debug(f"Error connecting to {host}:{port}", exc_info=ex)
        raise PeerUnreachableError(
            f"Error during connection with server: {host}"
        ) from ex


class PeerListener:
    """Object that listens on a TCP port and hands out the streams of the
    peers connecting to it, one at a time.

    The listener keeps its listening sockets open until it is closed, so the
    same port can be used for several consecutive sessions.
    """

    def __init__(self, host: Optional[str] = "", port: int = 0):
        """Constructor.

        Parameters:
            host: the address to bind to; empty string or ``None`` means all
                the interfaces of the local machine
            port: the port to listen on. Zero means that the operating system
                picks an ephemeral port; see the `port` property for the
                port that was picked.
        """
        self._host = host or None
        self._port = port
        self._listeners: List[SocketListener] = []

    @property
    def is_open(self) -> bool:
        """Whether the listener is currently listening for new peers."""
        return bool(self._listeners)

    @property
    def port(self) -> int:
        """The port that the listener is bound to."""
        if self._listeners:
            return self._listeners[0].socket.getsockname()[1]
        else:
            return self._port

    async def accept(self) -> SocketStream:
        """Waits for the next peer to connect and returns the stream
        connected to it.

        Raises:
            RuntimeError: if the listener is not open
            PeerUnreachableError: if accepting the connection failed
        """
        if not self._listeners:
            raise RuntimeError("listener is not open")

        results: List[Union[SocketStream, OSError]] = []
        async with open_nursery() as nursery:
            for listener in self._listeners:
                nursery.start_soon(
                    self._accept_from, listener, results, nursery.cancel_scope
                )

        streams = [item for item in results if isinstance(item, SocketStream)]
        errors = [item for item in results if not isinstance(item, SocketStream)]

        for extra_stream in streams[1:]:
            await aclose_forcefully(extra_stream)

        if streams:
            return streams[0]

        raise PeerUnreachableError("Error while accepting a client") from errors[0]

    async def close(self) -> None:
        """Closes the listening sockets. No-op if the listener is closed."""
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            await listener.aclose()

    async def open(self) -> None:
        """Starts listening on the configured address and port.

        Raises:
            AddressInUseError: if the port is already in use
            InvalidAddressError: if the address to bind to cannot be resolved
            ConnectionEstablishmentError: for all other errors
        """
        if self._listeners:
            return

        try:
            self._listeners = await open_tcp_listeners(self._port, host=self._host)
        except gaierror as ex:
            raise InvalidAddressError(
                f"Cannot listen on address: {self._host}"
            ) from ex
        except OSError as ex:
            if ex.errno == EADDRINUSE:
                raise AddressInUseError(
                    f"Port {self._port} is already in use"
                ) from ex
            raise ConnectionEstablishmentError(
                f"Cannot listen on port {self._port}: {ex.strerror or ex}"
            ) from ex

        log.debug(f"Listening on port {self.port}")

    @staticmethod
    async def _accept_from(listener, results, cancel_scope) -> None:
        try:
            results.append(await listener.accept())
        except OSError as ex:
            results.append(ex)
        cancel_scope.cancel()

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        await self.close()

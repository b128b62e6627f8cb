"""Base connection classes with a small state machine and change signals."""

from abc import ABCMeta, abstractmethod
from blinker import Signal
from enum import Enum
from trio_util import AsyncValue
from typing import Generic, Optional, TypeVar


__all__ = (
    "Connection",
    "ConnectionState",
    "ConnectionBase",
    "ReadableConnection",
    "WritableConnection",
)


class ConnectionState(Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    DISCONNECTING = "DISCONNECTING"


class Connection(metaclass=ABCMeta):
    """Interface specification for stateful connection objects."""

    connected = Signal(doc="Signal sent after the connection became usable.")
    disconnected = Signal(doc="Signal sent after the connection was released.")

    @abstractmethod
    async def open(self):
        """Opens the connection. No-op if the connection is open already."""
        raise NotImplementedError

    @abstractmethod
    async def close(self):
        """Closes the connection. No-op if the connection is closed already."""
        raise NotImplementedError

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def is_disconnected(self) -> bool:
        return self.state is ConnectionState.DISCONNECTED

    @property
    @abstractmethod
    def state(self) -> ConnectionState:
        raise NotImplementedError

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        await self.close()


T = TypeVar("T")


class ReadableConnection(Connection, Generic[T]):
    """Connection that incoming units of data can be read from."""

    @abstractmethod
    async def read(self) -> Optional[T]:
        """Reads the next unit of data from the connection.

        Returns:
            the data that was read, or ``None`` if the peer has finished
            sending and nothing more will arrive
        """
        raise NotImplementedError


class WritableConnection(Connection, Generic[T]):
    """Connection that outgoing units of data can be written to."""

    @abstractmethod
    async def write(self, data: T) -> None:
        raise NotImplementedError


class ConnectionBase(Connection):
    """Base class for stateful connection objects.

    A connection moves from ``DISCONNECTED`` through ``CONNECTING`` to
    ``CONNECTED`` when opened, and through ``DISCONNECTING`` back to
    ``DISCONNECTED`` when closed. ``connected`` is sent on entering the
    ``CONNECTED`` state and ``disconnected`` on entering the ``DISCONNECTED``
    state.

    Subclasses implement `_open()` and `_close()` and never touch ``_state``
    directly.
    """

    def __init__(self):
        self._state = AsyncValue(ConnectionState.DISCONNECTED)

    @property
    def state(self) -> ConnectionState:
        return self._state.value

    def _set_state(self, new_state: ConnectionState) -> None:
        if new_state is self._state.value:
            return

        self._state.value = new_state

        if new_state is ConnectionState.CONNECTED:
            self.connected.send(self)
        elif new_state is ConnectionState.DISCONNECTED:
            self.disconnected.send(self)

    async def close(self) -> None:
        """Closes the connection.

        Concurrent and repeated calls release the underlying resource only
        once; callers arriving while the connection is being closed wait
        until it is fully closed.
        """
        if self.state is ConnectionState.DISCONNECTED:
            return
        elif self.state is ConnectionState.DISCONNECTING:
            return await self.wait_until_disconnected()
        elif self.state is ConnectionState.CONNECTING:
            await self.wait_until_connected()

        self._set_state(ConnectionState.DISCONNECTING)
        try:
            await self._close()
        finally:
            # Released even if closing failed
            self._set_state(ConnectionState.DISCONNECTED)

    async def open(self) -> None:
        if self.state is ConnectionState.CONNECTED:
            return
        elif self.state is ConnectionState.CONNECTING:
            return await self.wait_until_connected()
        elif self.state is ConnectionState.DISCONNECTING:
            await self.wait_until_disconnected()

        self._set_state(ConnectionState.CONNECTING)
        success = False
        try:
            await self._open()
            success = True
        finally:
            self._set_state(
                ConnectionState.CONNECTED if success else ConnectionState.DISCONNECTED
            )

    async def wait_until_connected(self) -> None:
        """Blocks the execution until the connection becomes connected."""
        await self._state.wait_value(ConnectionState.CONNECTED)

    async def wait_until_disconnected(self) -> None:
        """Blocks the execution until the connection becomes disconnected."""
        await self._state.wait_value(ConnectionState.DISCONNECTED)

    @abstractmethod
    async def _open(self):
        raise NotImplementedError

    @abstractmethod
    async def _close(self):
        """Releases the underlying resource. Called at most once per
        successful `open()`.
        """
        raise NotImplementedError

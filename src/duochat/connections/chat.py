"""Connection class that carries the chat traffic with a single peer."""

from trio import BrokenResourceError, ClosedResourceError, EndOfChannel
from typing import AsyncIterator, Optional

from duochat.channels import LineChannel
from duochat.encoders import Encoder, MessageCodec
from duochat.model.message import Message

from .base import (
    ConnectionBase,
    ConnectionState,
    ReadableConnection,
    WritableConnection,
)
from .errors import ConnectionClosedError, ConnectionLostError

__all__ = ("ChatConnection",)


class ChatConnection(
    ConnectionBase, ReadableConnection[str], WritableConnection[str]
):
    """Duplex, line-based connection to the peer of a chat session.

    The connection owns the line channel (and the socket stream behind it)
    that it was constructed with. It may be used by one reader task and one
    writer task at the same time; the two directions share no state apart
    from the stream itself.

    Reading and writing is allowed only while the connection is open. Once
    the connection was closed, all subsequent reads and writes raise
    ConnectionClosedError_.
    """

    def __init__(
        self,
        channel: LineChannel,
        peer_name: str = "",
        *,
        codec: Optional[Encoder[Message]] = None,
    ):
        """Constructor.

        Parameters:
            channel: the line channel to the peer
            peer_name: the display name that the peer announced during the
                handshake; empty string if it is unknown
            codec: the encoder to use to convert messages to raw lines
        """
        super().__init__()
        self._channel = channel
        self._codec = codec or MessageCodec()
        self._peer_name = peer_name or ""

    @property
    def peer_name(self) -> str:
        """The display name of the peer; empty string if it is unknown."""
        return self._peer_name

    async def finish_sending(self) -> None:
        """Closes the sending half of the connection so the peer observes the
        end of the stream while this side can still read from it.

        Errors are ignored because the peer might have gone away already;
        the reader observes those on its own.
        """
        if self.state is not ConnectionState.CONNECTED:
            return

        try:
            await self._channel.send_eof()
        except (BrokenResourceError, ClosedResourceError, OSError):
            pass

    async def lines(self) -> AsyncIterator[str]:
        """Async generator that yields the lines received from the peer in
        the order of their arrival.

        The generator returns when the peer closes the connection gracefully.

        Raises:
            ConnectionLostError: when the connection broke down abnormally
            ConnectionClosedError: when the connection was closed locally
        """
        while True:
            line = await self.read()
            if line is None:
                return
            yield line

    async def read(self) -> Optional[str]:
        """Reads the next line from the peer.

        Returns:
            the line without its terminator, or ``None`` if the peer closed
            the connection gracefully

        Raises:
            ConnectionLostError: when the connection broke down abnormally
            ConnectionClosedError: when the connection was closed locally
        """
        self._ensure_connected()
        try:
            return await self._channel.receive()
        except EndOfChannel:
            return None
        except ClosedResourceError as ex:
            raise ConnectionClosedError() from ex
        except (BrokenResourceError, OSError) as ex:
            raise ConnectionLostError(str(ex) or "Connection lost") from ex

    async def write(self, data: str) -> None:
        """Writes a single raw line to the peer. Returns when the line was
        handed over to the operating system in full.

        Raises:
            ValueError: if the line contains a line break
            ConnectionLostError: when the connection broke down abnormally
            ConnectionClosedError: when the connection was closed locally
        """
        self._ensure_connected()
        try:
            await self._channel.send(data)
        except ClosedResourceError as ex:
            raise ConnectionClosedError() from ex
        except (BrokenResourceError, OSError) as ex:
            raise ConnectionLostError(str(ex) or "Connection lost") from ex

    async def write_message(self, message: Message) -> None:
        """Encodes the given message and writes it to the peer as a single
        line.
        """
        await self.write(self._codec.dumps(message))

    async def _open(self):
        pass

    async def _close(self):
        await self._channel.aclose()

    def _ensure_connected(self) -> None:
        if self.state is not ConnectionState.CONNECTED:
            raise ConnectionClosedError()

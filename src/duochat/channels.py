"""Class that implements a Trio-style channel object that takes data from a
Trio byte stream and yields lines of text, and writes lines of text back to
the same stream.
"""

from collections import deque
from functools import partial
from trio import EndOfChannel
from trio.abc import Channel, Stream
from typing import Optional

from .parsers import LineParser, Parser

__all__ = ("LineChannel",)


class LineChannel(Channel[str]):
    """Trio-style Channel_ that wraps a bidirectional byte stream and uses
    newline-terminated lines of text as its messages.

    The channel supports one concurrent receiver and one concurrent sender,
    just like the underlying Trio stream.
    """

    def __init__(
        self,
        stream: Stream,
        *,
        encoding: str = "utf-8",
        parser: Optional[Parser[str]] = None,
    ):
        """Constructor.

        Parameters:
            stream: the byte stream to wrap
            encoding: the encoding of the text on the wire. Bytes that cannot
                be decoded are replaced, never fatal.
            parser: the parser that splits the incoming bytes into lines.
                Defaults to a LineParser_ that decodes each line with the
                given encoding.
        """
        self._stream = stream
        self._encoding = encoding
        self._parser = parser or LineParser(
            decoder=partial(bytes.decode, encoding=encoding, errors="replace")
        )
        self._pending = deque()
        self._at_eof = False

    @property
    def stream(self) -> Stream:
        """The byte stream wrapped by this channel."""
        return self._stream

    async def aclose(self) -> None:
        await self._stream.aclose()

    async def receive(self) -> str:
        """Returns the next line received from the stream, without its line
        terminator.

        Raises:
            EndOfChannel: if the remote side closed the stream and all the
                lines received so far have been consumed
        """
        while not self._pending:
            await self._read()
        return self._pending.popleft()

    async def send(self, value: str) -> None:
        """Sends a single line of text to the stream, followed by a line
        terminator. Returns when the whole line was handed to the transport.

        Raises:
            ValueError: if the line contains a line break
        """
        if "\n" in value or "\r" in value:
            raise ValueError("lines sent to the channel must not contain line breaks")
        await self._stream.send_all((value + "\n").encode(self._encoding))

    async def send_eof(self) -> None:
        """Closes the sending half of the stream if the stream supports it;
        does nothing otherwise.
        """
        send_eof = getattr(self._stream, "send_eof", None)
        if send_eof is not None:
            await send_eof()

    async def _read(self) -> None:
        """Reads the pending bytes from the stream and feeds the parsed lines
        into the pending list.

        Raises:
            EndOfChannel: if there is no more data to read from the stream
        """
        if self._at_eof:
            raise EndOfChannel()

        data = await self._stream.receive_some()
        if data:
            self._pending.extend(self._parser.feed(data))
        else:
            self._at_eof = True
            self._pending.extend(self._parser.flush())
            if not self._pending:
                raise EndOfChannel()

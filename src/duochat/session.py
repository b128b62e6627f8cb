"""Runner of a single chat session between the local user and the peer.

A session starts with an already open stream to the peer and goes through
the following phases:

1. *Name exchange*: the local name is sent as a single line while the first
   line received from the peer is taken as the name of the peer. The two
   directions run concurrently.

2. *Chat*: two loops run concurrently on the same connection. The send loop
   reads lines typed by the local user and sends them to the peer; the
   receive loop decodes the lines arriving from the peer and shows them.
   Whichever loop finishes first shuts down the executor of the session,
   which tells the other loop to wrap up at its next opportunity without
   interrupting any read or write that is in progress.

3. *Closing*: when both loops have finished, the connection is closed.
"""

from dataclasses import dataclass
from enum import Enum
from trio import BrokenResourceError, ClosedResourceError, EndOfChannel
from trio.abc import Stream
from typing import Optional, Union

from .channels import LineChannel
from .concurrency import TaskExecutor, aclosing
from .connections import ChatConnection, ConnectionError
from .console import Display, InputSignal, InputSource
from .encoders import Encoder, MessageCodec
from .errors import InvalidMessageError
from .logger import log as base_log
from .model.message import Message

__all__ = (
    "ChatSession",
    "Dropped",
    "LoopExit",
    "QUIT_COMMAND",
    "Received",
    "ReceiveOutcome",
    "SessionResult",
    "decode_line",
    "to_single_line",
)

log = base_log.getChild("session")

#: Input line that ends the send loop without sending anything
QUIT_COMMAND = "quit"


class LoopExit(Enum):
    """Reasons why the send or the receive loop of a session may end."""

    NORMAL_END = "normalEnd"
    """The loop ended because the other loop finished first."""

    USER_QUIT = "userQuit"
    """The local user typed the quit command, closed or interrupted the input."""

    PEER_CLOSED = "peerClosed"
    """The peer closed the connection gracefully."""

    IO_ERROR = "ioError"
    """The connection broke down."""


@dataclass(frozen=True)
class Received:
    """Outcome of decoding a raw line that contained a valid message."""

    message: Message


@dataclass(frozen=True)
class Dropped:
    """Outcome of decoding a raw line that did not contain a valid message."""

    line: str
    reason: str


ReceiveOutcome = Union[Received, Dropped]


def decode_line(line: str, codec: Optional[Encoder[Message]] = None) -> ReceiveOutcome:
    """Decodes a raw line received from the peer into a tagged outcome.

    Only `Received` outcomes carry a message; `Dropped` outcomes record the
    line and the reason why it was dropped.
    """
    codec = codec or _default_codec
    try:
        return Received(codec.loads(line))
    except InvalidMessageError as ex:
        return Dropped(line, str(ex))


_default_codec = MessageCodec()


def to_single_line(text: str) -> str:
    """Converts text typed by the local user into a single line that can be
    sent to the peer.

    Trailing line terminators (e.g., from input piped with CRLF line endings)
    are removed and any remaining line break is replaced with a space.
    """
    text = text.rstrip("\r\n")
    return text.replace("\r\n", " ").replace("\r", " ").replace("\n", " ")


@dataclass(frozen=True)
class SessionResult:
    """Summary of a finished chat session."""

    peer_name: str
    """The name that the peer announced; empty string if it is unknown."""

    sender_exit: LoopExit
    """The reason why the send loop ended."""

    receiver_exit: LoopExit
    """The reason why the receive loop ended."""


class ChatSession:
    """A single chat session over an open stream to the peer.

    The session takes ownership of the stream; the stream is closed when the
    session ends, no matter how it ends.
    """

    def __init__(
        self,
        name: str,
        stream: Stream,
        *,
        input: InputSource,
        display: Display,
        executor_name: str = "session",
        codec: Optional[Encoder[Message]] = None,
    ):
        """Constructor.

        Parameters:
            name: the display name of the local user
            stream: the open stream to the peer
            input: the source of the lines typed by the local user
            display: the display to show the received messages on
            executor_name: name of the task executor of the session; used as
                a prefix in task names
            codec: the encoder to use to convert messages to and from raw
                lines
        """
        self._name = name
        self._stream = stream
        self._input = input
        self._display = display
        self._executor_name = executor_name
        self._codec = codec or _default_codec

    async def run(self) -> SessionResult:
        """Runs the session until both the send and the receive loop have
        finished, then closes the connection.
        """
        channel = LineChannel(self._stream)
        connection = None

        try:
            async with TaskExecutor(self._executor_name) as executor:
                peer_name = await self._exchange_names(channel, executor)

                connection = ChatConnection(channel, peer_name, codec=self._codec)
                async with connection:
                    self._display.show_banner(
                        f"Connection Established with {self._describe(peer_name)}"
                    )
                    self._display.show_text(f"Type `{QUIT_COMMAND}` to exit")

                    sender = executor.submit(
                        self._send_messages, connection, executor, name="send"
                    )
                    receiver = executor.submit(
                        self._receive_messages, connection, executor, name="receive"
                    )

                    sender_exit = await sender.wait()
                    receiver_exit = await receiver.wait()

                    log.debug("Closing connection")
        finally:
            if connection is None:
                await channel.aclose()

        log.debug(
            f"Session ended; sender: {sender_exit.value}, "
            f"receiver: {receiver_exit.value}"
        )
        return SessionResult(peer_name, sender_exit, receiver_exit)

    async def _exchange_names(
        self, channel: LineChannel, executor: TaskExecutor
    ) -> str:
        """Sends the local name to the peer and receives the name of the
        peer at the same time.

        Returns:
            the name of the peer, or an empty string if it could not be
            received
        """
        sent = executor.submit(self._send_name, channel, name="send-name")
        received = executor.submit(self._receive_name, channel, name="receive-name")

        await sent.wait()
        return await received.wait()

    async def _send_name(self, channel: LineChannel) -> None:
        try:
            await channel.send(self._name)
        except (BrokenResourceError, ClosedResourceError, OSError) as ex:
            log.warning(f"Error sending name to peer: {ex}")
        else:
            log.debug(f"Sent name ({self._name}) to peer")

    async def _receive_name(self, channel: LineChannel) -> str:
        try:
            peer_name = await channel.receive()
        except EndOfChannel:
            log.warning(
                "Peer closed the connection before sending its name",
                extra={"semantics": "failure"},
            )
            return ""
        except (BrokenResourceError, ClosedResourceError, OSError) as ex:
            log.error(
                f"Error receiving peer name: {ex}", extra={"semantics": "failure"}
            )
            return ""

        peer_name = peer_name.strip()
        log.info(
            "Name exchange completed", extra={"id": peer_name, "semantics": "success"}
        )
        return peer_name

    async def _send_messages(
        self, connection: ChatConnection, executor: TaskExecutor
    ) -> LoopExit:
        """Reads lines typed by the local user and sends them to the peer
        until the user quits, the connection breaks down or the receive loop
        finishes.
        """
        reason = LoopExit.NORMAL_END

        try:
            while not executor.is_shutdown:
                line = await self._input.read_line()

                if isinstance(line, InputSignal):
                    log.debug(f"Local input ended: {line.value}")
                    reason = LoopExit.USER_QUIT
                    break

                line = to_single_line(line)

                if executor.is_shutdown:
                    if line.strip() and line != QUIT_COMMAND:
                        self._display.show_text("Message not sent.")
                    break

                if line == QUIT_COMMAND:
                    reason = LoopExit.USER_QUIT
                    break

                if not line.strip():
                    continue

                await connection.write_message(Message(self._name, line))
        except ConnectionError as ex:
            log.debug(f"Cannot send message to peer: {ex}")
            reason = LoopExit.IO_ERROR
        finally:
            receiver_running = not executor.is_shutdown
            executor.shutdown()
            await connection.finish_sending()

        if receiver_running and reason is LoopExit.USER_QUIT:
            self._display.show_text(
                f"Waiting for {self._describe(connection.peer_name)} "
                "to close the connection..."
            )

        log.debug(f"Send loop finished: {reason.value}")
        return reason

    async def _receive_messages(
        self, connection: ChatConnection, executor: TaskExecutor
    ) -> LoopExit:
        """Receives lines from the peer and shows the valid messages until the
        peer closes the connection, the connection breaks down or the send
        loop finishes.

        Lines that are not valid messages are dropped silently.
        """
        reason = LoopExit.PEER_CLOSED

        try:
            async with aclosing(connection.lines()) as lines:
                async for line in lines:
                    outcome = decode_line(line, self._codec)
                    if isinstance(outcome, Received):
                        self._display.show_message(outcome.message)
                    else:
                        log.debug(
                            f"Dropped line from peer ({outcome.reason}): "
                            f"{outcome.line!r}"
                        )

                    if executor.is_shutdown:
                        reason = LoopExit.NORMAL_END
                        break
        except ConnectionError as ex:
            log.info(
                f"Connection lost: {ex}",
                extra={"id": connection.peer_name, "semantics": "failure"},
            )
            reason = LoopExit.IO_ERROR
        finally:
            sender_running = not executor.is_shutdown
            executor.shutdown()

        if sender_running:
            peer = self._describe(connection.peer_name)
            if reason is LoopExit.PEER_CLOSED:
                self._display.show_text(
                    f"{peer} has left the chat. Press Enter to continue."
                )
            elif reason is LoopExit.IO_ERROR:
                self._display.show_text(
                    f"Connection with {peer} was lost. Press Enter to continue."
                )

        log.debug(f"Receive loop finished: {reason.value}")
        return reason

    @staticmethod
    def _describe(peer_name: str) -> str:
        return peer_name or "unknown peer"

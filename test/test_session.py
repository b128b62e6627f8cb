import logging
import trio

from pytest import fixture
from trio import BrokenResourceError, EndOfChannel, fail_after, open_nursery
from trio.abc import HalfCloseableStream
from trio.testing import memory_stream_pair, wait_all_tasks_blocked

from duochat.channels import LineChannel
from duochat.console import InputSignal
from duochat.model import Message
from duochat.session import (
    ChatSession,
    Dropped,
    LoopExit,
    Received,
    decode_line,
    to_single_line,
)


@fixture
def session_factory(display, counting_stream):
    """Factory that creates a chat session for a local user named ``alice``
    together with the line channel of the simulated peer. The stream of the
    session counts how many times it was closed.
    """

    def factory(input, stream=None, peer_stream=None):
        if stream is None:
            stream, peer_stream = memory_stream_pair()
        stream = counting_stream(stream)
        session = ChatSession("alice", stream, input=input, display=display)
        peer = LineChannel(peer_stream) if peer_stream is not None else None
        return session, peer, stream

    return factory


class FlakyStream(HalfCloseableStream):
    """Stream that delivers the given chunks and then fails as if the peer had
    reset the connection. Everything sent to it is discarded.
    """

    def __init__(self, chunks):
        self._chunks = list(chunks)

    async def aclose(self):
        await trio.lowlevel.checkpoint()

    async def receive_some(self, max_bytes=None):
        await trio.lowlevel.checkpoint()
        if self._chunks:
            return self._chunks.pop(0)
        raise BrokenResourceError("connection reset by peer")

    async def send_all(self, data):
        await trio.lowlevel.checkpoint()

    async def send_eof(self):
        pass

    async def wait_send_all_might_not_block(self):
        pass


async def receive_all(peer):
    lines = []
    while True:
        try:
            lines.append(await peer.receive())
        except EndOfChannel:
            return lines


async def run_with_peer(session, peer_script):
    """Runs the session and the script of the simulated peer concurrently
    and returns the result of the session.
    """
    results = []

    async def run_session():
        results.append(await session.run())

    with fail_after(5):
        async with open_nursery() as nursery:
            nursery.start_soon(run_session)
            await peer_script()

    return results[0]


def test_decode_valid_line():
    assert decode_line("bob,hi") == Received(Message("bob", "hi"))


def test_decode_invalid_lines():
    for line in ("", "noSeparatorHere", ",hello", "bob: hi"):
        outcome = decode_line(line)
        assert isinstance(outcome, Dropped)
        assert outcome.line == line
        assert outcome.reason


def test_to_single_line():
    assert to_single_line("hi") == "hi"
    assert to_single_line("hi\r") == "hi"
    assert to_single_line("hi\r\n") == "hi"
    assert to_single_line("two\r\nlines\rhere\nnow") == "two lines here now"
    assert to_single_line("  padded  ") == "  padded  "
    assert to_single_line("\r") == ""


class TestChatSession:
    async def test_peer_leaves(self, session_factory, display, scripted_input):
        input = scripted_input()
        session, peer, stream = session_factory(input)

        async def peer_script():
            assert await peer.receive() == "alice"
            await peer.send("bob")
            await peer.send("bob,hello there")
            await peer.send("garbage without separator")
            await peer.send(",blank sender")
            await peer.send("bob,a, b")
            await peer.send_eof()

            await display.wait_for_text(
                "bob has left the chat. Press Enter to continue."
            )
            await wait_all_tasks_blocked()
            input.feed("")

        result = await run_with_peer(session, peer_script)

        assert result.peer_name == "bob"
        assert result.receiver_exit is LoopExit.PEER_CLOSED
        assert result.sender_exit is LoopExit.NORMAL_END
        assert stream.close_count == 1

        assert display.banners == ["Connection Established with bob"]
        assert display.messages == [
            Message("bob", "hello there"),
            Message("bob", "a, b"),
        ]
        assert "Type `quit` to exit" in display.texts
        assert "Message not sent." not in display.texts

    async def test_text_typed_after_peer_left_is_not_sent(
        self, session_factory, display, scripted_input
    ):
        input = scripted_input()
        session, peer, _ = session_factory(input)

        async def peer_script():
            assert await peer.receive() == "alice"
            await peer.send("bob")
            await peer.send_eof()

            await display.wait_for_text(
                "bob has left the chat. Press Enter to continue."
            )
            await wait_all_tasks_blocked()
            input.feed("are you still there?")

        result = await run_with_peer(session, peer_script)

        assert result.sender_exit is LoopExit.NORMAL_END
        assert display.texts[-1] == "Message not sent."

    async def test_quit_sends_nothing(self, session_factory, display, scripted_input):
        input = scripted_input(["hi there", "", "   ", "quit", "never sent"])
        session, peer, stream = session_factory(input)

        async def peer_script():
            assert await peer.receive() == "alice"
            await peer.send("bob")
            assert await receive_all(peer) == ["alice,hi there"]

            await display.wait_for_text("Waiting for bob to close the connection...")
            await peer.aclose()

        result = await run_with_peer(session, peer_script)

        assert result.sender_exit is LoopExit.USER_QUIT
        assert result.receiver_exit is LoopExit.PEER_CLOSED
        assert stream.close_count == 1
        assert not any("has left the chat" in text for text in display.texts)

    async def test_line_breaks_in_typed_text(self, session_factory, scripted_input):
        input = scripted_input(["hi\r", "multi\rline", "\r", "quit\r"])
        session, peer, _ = session_factory(input)

        async def peer_script():
            assert await peer.receive() == "alice"
            await peer.send("bob")
            assert await receive_all(peer) == ["alice,hi", "alice,multi line"]
            await peer.aclose()

        result = await run_with_peer(session, peer_script)

        assert result.sender_exit is LoopExit.USER_QUIT
        assert result.receiver_exit is LoopExit.PEER_CLOSED

    async def test_end_of_input_quits(self, session_factory, scripted_input):
        input = scripted_input(["hello"], closed=True)
        session, peer, _ = session_factory(input)

        async def peer_script():
            assert await peer.receive() == "alice"
            await peer.send("bob")
            assert await receive_all(peer) == ["alice,hello"]
            await peer.aclose()

        result = await run_with_peer(session, peer_script)
        assert result.sender_exit is LoopExit.USER_QUIT

    async def test_interrupted_input_quits(self, session_factory, scripted_input):
        input = scripted_input([InputSignal.INTERRUPTED, "never sent"])
        session, peer, _ = session_factory(input)

        async def peer_script():
            assert await peer.receive() == "alice"
            await peer.send("bob")
            assert await receive_all(peer) == []
            await peer.aclose()

        result = await run_with_peer(session, peer_script)

        assert result.sender_exit is LoopExit.USER_QUIT
        assert result.receiver_exit is LoopExit.PEER_CLOSED

    async def test_peer_closes_before_sending_name(
        self, session_factory, display, scripted_input
    ):
        input = scripted_input()
        session, peer, stream = session_factory(input)

        async def peer_script():
            assert await peer.receive() == "alice"
            await peer.aclose()

            await display.wait_for_text(
                "unknown peer has left the chat. Press Enter to continue."
            )
            await wait_all_tasks_blocked()
            input.feed("")

        result = await run_with_peer(session, peer_script)

        assert result.peer_name == ""
        assert stream.close_count == 1
        assert display.banners == ["Connection Established with unknown peer"]
        assert display.messages == []

    async def test_peer_name_is_stripped(
        self, session_factory, scripted_input, caplog
    ):
        caplog.set_level(logging.INFO, logger="duochat")

        input = scripted_input(["quit"])
        session, peer, _ = session_factory(input)

        async def peer_script():
            assert await peer.receive() == "alice"
            await peer.send("  bob  ")
            assert await receive_all(peer) == []
            await peer.aclose()

        result = await run_with_peer(session, peer_script)
        assert result.peer_name == "bob"

        records = [
            record
            for record in caplog.records
            if getattr(record, "semantics", None) == "success"
        ]
        assert [record.id for record in records] == ["bob"]

    async def test_peer_sends_name_then_closes(
        self, session_factory, display, scripted_input
    ):
        input = scripted_input()
        session, peer, _ = session_factory(input)

        async def peer_script():
            assert await peer.receive() == "alice"
            await peer.send("bob")
            await peer.aclose()

            await display.wait_for_text(
                "bob has left the chat. Press Enter to continue."
            )
            input.feed("")

        result = await run_with_peer(session, peer_script)

        assert result.peer_name == "bob"
        assert result.receiver_exit is LoopExit.PEER_CLOSED
        assert display.messages == []

    async def test_connection_lost(self, display, scripted_input, counting_stream):
        input = scripted_input()
        stream = counting_stream(FlakyStream([b"bob\nbob,hi\n"]))
        session = ChatSession("alice", stream, input=input, display=display)

        async def user_script():
            await display.wait_for_text(
                "Connection with bob was lost. Press Enter to continue."
            )
            input.feed("")

        result = await run_with_peer(session, user_script)

        assert result.peer_name == "bob"
        assert result.receiver_exit is LoopExit.IO_ERROR
        assert result.sender_exit is LoopExit.NORMAL_END
        assert stream.close_count == 1
        assert display.messages == [Message("bob", "hi")]

    async def test_connection_lost_before_name(
        self, display, scripted_input, counting_stream, caplog
    ):
        input = scripted_input()
        stream = counting_stream(FlakyStream([]))
        session = ChatSession("alice", stream, input=input, display=display)

        async def user_script():
            await display.wait_for_text(
                "Connection with unknown peer was lost. Press Enter to continue."
            )
            input.feed("")

        result = await run_with_peer(session, user_script)

        assert result.peer_name == ""
        assert result.receiver_exit is LoopExit.IO_ERROR
        assert stream.close_count == 1
        assert display.banners == ["Connection Established with unknown peer"]
        assert any(
            getattr(record, "semantics", None) == "failure"
            and record.levelno == logging.ERROR
            for record in caplog.records
        )

from math import inf
from pytest import fixture
from trio import EndOfChannel, Event, open_memory_channel
from trio.abc import HalfCloseableStream

from duochat.console import Display, InputSignal, InputSource


class ScriptedInput(InputSource):
    """Input source that returns lines fed to it by the test. Returns
    END_OF_INPUT when it has been closed and all its lines were consumed.
    """

    def __init__(self, lines=(), *, closed=False):
        self._sender, self._receiver = open_memory_channel(inf)
        self.prompts = []
        for line in lines:
            self.feed(line)
        if closed:
            self.close()

    def close(self):
        self._sender.close()

    def feed(self, line):
        self._sender.send_nowait(line)

    async def read_line(self, prompt=""):
        self.prompts.append(prompt)
        try:
            return await self._receiver.receive()
        except EndOfChannel:
            return InputSignal.END_OF_INPUT


class RecordingDisplay(Display):
    """Display that records everything shown on it."""

    def __init__(self):
        self.banners = []
        self.messages = []
        self.texts = []
        self._changed = Event()

    def show_banner(self, text):
        self.banners.append(text)
        self._notify()

    def show_message(self, message):
        self.messages.append(message)
        self._notify()

    def show_text(self, text):
        self.texts.append(text)
        self._notify()

    async def wait_for_text(self, text):
        while text not in self.texts:
            await self._changed.wait()

    def _notify(self):
        event, self._changed = self._changed, Event()
        event.set()


class CountingStream(HalfCloseableStream):
    """Stream wrapper that counts how many times it was closed."""

    def __init__(self, stream):
        self.wrapped = stream
        self.close_count = 0

    async def aclose(self):
        self.close_count += 1
        await self.wrapped.aclose()

    async def receive_some(self, max_bytes=None):
        return await self.wrapped.receive_some(max_bytes)

    async def send_all(self, data):
        await self.wrapped.send_all(data)

    async def send_eof(self):
        await self.wrapped.send_eof()

    async def wait_send_all_might_not_block(self):
        await self.wrapped.wait_send_all_might_not_block()


@fixture
def display():
    return RecordingDisplay()


@fixture
def scripted_input():
    """Factory of ScriptedInput_ objects."""
    return ScriptedInput


@fixture
def counting_stream():
    return CountingStream

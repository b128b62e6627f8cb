"""Interactive terminal input and output for the chat.

The session runner does not talk to the terminal directly; it reads lines
from an InputSource_ and shows text and messages on a Display_. The classes
in this module implement both on top of the standard input and output of
the process.
"""

import click

from abc import ABCMeta, abstractmethod
from enum import Enum
from trio import to_thread
from typing import Union

from .model.message import Message

__all__ = (
    "ConsoleDisplay",
    "ConsoleInput",
    "Display",
    "InputResult",
    "InputSignal",
    "InputSource",
)


class InputSignal(Enum):
    """Signals that an input source may return instead of a line of text."""

    END_OF_INPUT = "endOfInput"
    INTERRUPTED = "interrupted"


#: Type of the values returned from an input source
InputResult = Union[str, InputSignal]


class InputSource(metaclass=ABCMeta):
    """Interface specification for line-based interactive input sources."""

    @abstractmethod
    async def read_line(self, prompt: str = "") -> InputResult:
        """Reads a single line of input.

        Parameters:
            prompt: the prompt to show to the user before reading the line

        Returns:
            the line without its terminator, or an InputSignal_ if the input
            has ended or the user interrupted the input
        """
        raise NotImplementedError


class Display(metaclass=ABCMeta):
    """Interface specification for display sinks that show text and chat
    messages to the user.
    """

    @abstractmethod
    def show_banner(self, text: str) -> None:
        """Shows a prominent banner with the given text."""
        raise NotImplementedError

    @abstractmethod
    def show_message(self, message: Message) -> None:
        """Shows a chat message received from the peer."""
        raise NotImplementedError

    @abstractmethod
    def show_text(self, text: str) -> None:
        """Shows a line of informational text."""
        raise NotImplementedError


class ConsoleInput(InputSource):
    """Input source that reads lines from the standard input.

    Reading happens in a worker thread so the Trio event loop keeps running
    while the user is typing. The worker thread cannot be interrupted; when
    the waiting task is cancelled, the thread is abandoned.
    """

    async def read_line(self, prompt: str = "") -> InputResult:
        return await to_thread.run_sync(
            self._read_line, prompt, abandon_on_cancel=True
        )

    @staticmethod
    def _read_line(prompt: str) -> InputResult:
        try:
            return input(prompt)
        except EOFError:
            return InputSignal.END_OF_INPUT
        except KeyboardInterrupt:
            return InputSignal.INTERRUPTED


class ConsoleDisplay(Display):
    """Display sink that prints to the standard output."""

    def show_banner(self, text: str) -> None:
        rule = "=" * (len(text) + 4)
        click.echo(click.style(rule, bold=True))
        click.echo(click.style(f"  {text}", bold=True))
        click.echo(click.style(rule, bold=True))

    def show_message(self, message: Message) -> None:
        click.echo(str(message))

    def show_text(self, text: str) -> None:
        click.echo(text)

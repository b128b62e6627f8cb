"""Base class and interface specification for stream parsers in duochat."""

from abc import ABCMeta, abstractmethod
from typing import Callable, Generic, List, Optional, TypeVar

__all__ = ("Parser", "ParserBase")

T = TypeVar("T")


class Parser(Generic[T], metaclass=ABCMeta):
    """Interface specification for parsers that can be fed with incoming
    data and that return the messages that they were able to parse out of
    the incoming data so far.
    """

    @abstractmethod
    def feed(self, data: bytes) -> List[T]:
        """Feeds the parser with the given raw incoming bytes.

        Parameters:
            data (bytes): the raw bytes to feed into the parser

        Returns:
            List[object]: a list of parsed messages from the current chunk
        """
        raise NotImplementedError

    def flush(self) -> List[T]:
        """Notifies the parser that no more data will arrive, and returns the
        messages that can be parsed out of the data that is still buffered.
        """
        return []


class ParserBase(Parser[T]):
    """Base class for parsers that pass each raw message through an optional
    decoder before returning it.
    """

    def __init__(self, decoder: Optional[Callable[[bytes], T]] = None):
        self.decoder = decoder

    def _decode(self, data: bytes) -> T:
        return self.decoder(data) if self.decoder else data

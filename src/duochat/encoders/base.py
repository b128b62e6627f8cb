"""Base class and interface specification for message encoders in duochat."""

from abc import ABCMeta, abstractmethod
from typing import Generic, TypeVar

__all__ = ("Encoder",)

T = TypeVar("T")


class Encoder(Generic[T], metaclass=ABCMeta):
    """Interface specification for message encoders that can encode and
    decode chat messages or other objects to and from a single line of text.
    """

    @abstractmethod
    def dumps(self, obj: T) -> str:
        """Converts the given object into its encoded representation.

        Parameters:
            obj (object): the object to encode

        Returns:
            a single line of text representing the given object, without a
            line terminator
        """
        raise NotImplementedError

    @abstractmethod
    def loads(self, data: str) -> T:
        """Loads an encoded object from the given raw representation.

        Parameters:
            data: the raw line to decode, without a line terminator

        Returns:
            the constructed object
        """
        raise NotImplementedError

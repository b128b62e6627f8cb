"""Encoder that converts chat messages to and from their wire format.

The wire format of a message is the sender and the content joined with a
single comma. Nothing is escaped; decoding splits on the *first* comma only,
so commas in the content survive a round trip while commas in the sender
would not. Local names are therefore validated not to contain commas.
"""

from duochat.errors import InvalidMessageError
from duochat.model.message import Message, SEPARATOR

from .base import Encoder

__all__ = ("MessageCodec", "decode", "encode")


class MessageCodec(Encoder[Message]):
    """Stateless encoder between Message_ objects and raw wire lines."""

    def dumps(self, obj: Message) -> str:
        return obj.raw

    def loads(self, data: str) -> Message:
        sender, sep, content = data.partition(SEPARATOR)
        if not sep:
            raise InvalidMessageError("Missing separator in message", line=data)
        if not sender.strip():
            raise InvalidMessageError("Blank sender in message", line=data)
        return Message(sender, content)


_codec = MessageCodec()

encode = _codec.dumps
decode = _codec.loads

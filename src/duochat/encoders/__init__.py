from .base import Encoder
from .message import MessageCodec, decode, encode

__all__ = ("Encoder", "MessageCodec", "decode", "encode")

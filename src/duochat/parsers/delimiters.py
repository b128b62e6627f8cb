"""Parser class that assumes that the individual messages in the incoming
stream are separated by a delimiter character that appears in none of the
messages.
"""

from typing import List, Tuple

from .base import ParserBase

__all__ = ("DelimiterBasedParser", "LineParser")


class DelimiterBasedParser(ParserBase[bytes]):
    """Parser class that assumes that the individual messages in the incoming
    stream are separated by a delimiter character that appears in none of the
    messages. Empty messages are kept.
    """

    def __init__(self, delimiter: bytes = b"\n", **kwds):
        super().__init__(**kwds)

        self.delimiter = delimiter

        self._chunks = []

    def feed(self, data: bytes) -> List[bytes]:
        result = []
        while data:
            prefix, sep, data = self._split(data)
            if prefix:
                self._chunks.append(prefix)
            if sep:
                result.append(self._emit())
        return result

    def flush(self) -> List[bytes]:
        return [self._emit()] if self._chunks else []

    def _emit(self):
        """Joins the buffered chunks into a single message and returns it
        after decoding.
        """
        chunk = self._finalize(b"".join(self._chunks))
        del self._chunks[:]
        return self._decode(chunk)

    def _finalize(self, chunk: bytes) -> bytes:
        """Hook for subclasses to post-process a complete message before it
        is decoded.
        """
        return chunk

    def _split(self, data: bytes) -> Tuple[bytes, bytes, bytes]:
        """Splits an incoming chunk of data into a prefix, a separator and a
        suffix such that the concatenation of the three parts is always the
        entire data.

        When the incoming chunk does not contain the separator, the prefix will
        contain the whole chunk and the separator and the suffix will be
        empty byte strings.
        """
        return data.partition(self.delimiter)


class LineParser(DelimiterBasedParser):
    """Parser class that assumes that the individual messages are terminated
    with ``\\n`` or ``\\r\\n``.
    """

    def __init__(self, **kwds):
        super().__init__(delimiter=b"\n", **kwds)

    def _finalize(self, chunk: bytes) -> bytes:
        return chunk[:-1] if chunk.endswith(b"\r") else chunk

from .base import Parser, ParserBase
from .delimiters import DelimiterBasedParser, LineParser

__all__ = ("DelimiterBasedParser", "LineParser", "Parser", "ParserBase")

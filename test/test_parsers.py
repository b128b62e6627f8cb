from functools import partial

from duochat.parsers import DelimiterBasedParser, LineParser


def create_parser():
    return LineParser(decoder=partial(bytes.decode, encoding="utf-8"))


class TestLineParser:
    def test_single_line(self):
        parser = create_parser()
        assert parser.feed(b"alice,hi\n") == ["alice,hi"]

    def test_multiple_lines_in_one_chunk(self):
        parser = create_parser()
        assert parser.feed(b"alice\nalice,hi\nalice,there\n") == [
            "alice",
            "alice,hi",
            "alice,there",
        ]

    def test_lines_split_across_chunks(self):
        parser = create_parser()
        assert parser.feed(b"ali") == []
        assert parser.feed(b"ce,h") == []
        assert parser.feed(b"i\nbob") == ["alice,hi"]
        assert parser.feed(b",yo\n") == ["bob,yo"]

    def test_crlf_terminators(self):
        parser = create_parser()
        assert parser.feed(b"alice,hi\r\nbob,yo\r\n") == ["alice,hi", "bob,yo"]

    def test_carriage_return_split_from_newline(self):
        parser = create_parser()
        assert parser.feed(b"alice,hi\r") == []
        assert parser.feed(b"\n") == ["alice,hi"]

    def test_empty_lines_are_kept(self):
        parser = create_parser()
        assert parser.feed(b"\n\r\nalice,\n") == ["", "", "alice,"]

    def test_flush_returns_unterminated_line(self):
        parser = create_parser()
        assert parser.feed(b"alice,hi\nbob,unterminated") == ["alice,hi"]
        assert parser.flush() == ["bob,unterminated"]
        assert parser.flush() == []

    def test_flush_when_empty(self):
        parser = create_parser()
        assert parser.flush() == []
        parser.feed(b"alice,hi\n")
        assert parser.flush() == []

    def test_without_decoder(self):
        parser = LineParser()
        assert parser.feed(b"alice,hi\r\n") == [b"alice,hi"]


class TestDelimiterBasedParser:
    def test_custom_delimiter(self):
        parser = DelimiterBasedParser(delimiter=b";")
        assert parser.feed(b"ab;c;;def") == [b"ab", b"c", b""]
        assert parser.flush() == [b"def"]

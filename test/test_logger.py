import logging

from pytest import raises

from duochat.logger import ColoredFormatter, _create_fancy_formatter, install


def create_record(level=logging.INFO, **extra):
    record = logging.makeLogRecord(
        {
            "name": "duochat.session",
            "levelno": level,
            "levelname": logging.getLevelName(level),
            "msg": "Name exchange completed",
        }
    )
    record.__dict__.update(extra)
    return record


class TestColoredFormatter:
    def test_symbol_from_semantics(self):
        formatter = _create_fancy_formatter()

        output = formatter.format(create_record(semantics="success", id="bob"))
        assert "✔" in output
        assert "bob" in output
        assert "Name exchange completed" in output

        output = formatter.format(create_record(logging.ERROR, semantics="failure"))
        assert "✘" in output

    def test_symbol_from_level(self):
        formatter = _create_fancy_formatter()

        assert "▲" in formatter.format(create_record(logging.WARNING))
        assert "●" in formatter.format(create_record(logging.ERROR))

    def test_default_format(self):
        formatter = ColoredFormatter()
        output = formatter.format(create_record())
        assert "INFO:duochat.session:Name exchange completed" in output


def test_install_rejects_unknown_style():
    with raises(ValueError):
        install(style="json")

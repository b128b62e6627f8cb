"""Logger object and console log formatting for duochat."""

import logging

from colorlog import ColoredFormatter as ColoredFormatterBase, default_log_colors

__all__ = ("log", "install")


log = logging.getLogger(__name__.rpartition(".")[0])


default_log_symbols = {
    "DEBUG": " ",
    "INFO": " ",
    "WARNING": "▲",  # BLACK UP-POINTING TRIANGLE
    "ERROR": "●",  # BLACK CIRCLE
    "CRITICAL": "●",  # BLACK CIRCLE
}


class ColoredFormatter(ColoredFormatterBase):
    """Logging formatter that adds colors and a leading symbol to the log
    output.

    Colors are added based on the log level; symbols are picked based on the
    ``semantics`` attribute of the log record if it has one, falling back to
    the log level otherwise.
    """

    def __init__(self, fmt=None, datefmt=None, log_colors=None, log_symbols=None):
        """Constructor.

        Parameters:
            fmt (Optional[str]): The format string to use.
            datefmt (Optional[str]): The format string to use for dates.
            log_colors (dict): Mapping from log level names to color names
            log_symbols (dict): Mapping from log level names or record
                semantics to symbols
        """
        if fmt is None:
            fmt = "%(log_color)s%(levelname)s:%(name)s:%(message)s"

        super().__init__(
            fmt,
            datefmt=datefmt,
            log_colors=log_colors if log_colors is not None else default_log_colors,
            reset=True,
        )

        self.log_symbols = (
            log_symbols if log_symbols is not None else default_log_symbols
        )

    def format(self, record):
        """Format a message from a log record object."""
        if not hasattr(record, "semantics"):
            record.semantics = None
        if not hasattr(record, "id"):
            record.id = ""

        record.log_symbol = self.get_preferred_symbol(record)
        return super().format(record)

    def get_preferred_symbol(self, record):
        """Return the preferred symbol for the given log record."""
        symbol = self.log_symbols.get(record.semantics)
        if symbol is not None:
            return symbol
        else:
            return self.log_symbols.get(record.levelname, "")


def _create_fancy_formatter() -> logging.Formatter:
    log_colors = dict(default_log_colors)
    log_colors.update(DEBUG="bold_black", INFO="reset")

    log_symbols = dict(default_log_symbols)
    log_symbols.update(
        success="✔",  # CHECK MARK
        failure="✘",  # BALLOT X
    )

    return ColoredFormatter(
        "%(fg_bold_black)s%(id)-7.7s %(log_color)s%(log_symbol)s %(message)s",
        log_colors=log_colors,
        log_symbols=log_symbols,
    )


def _create_plain_formatter() -> logging.Formatter:
    return logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")


def install(level: int = logging.INFO, style: str = "fancy") -> None:
    """Install a default formatter and stream handler to the root logger of
    Python.

    This method can be used during startup to ensure that we can see the
    log messages on the console nicely.

    Parameters:
        level: the minimum level of the log records to show
        style: ``fancy`` for colored output with symbols, ``plain`` for
            timestamped output without colors
    """
    if style == "fancy":
        formatter = _create_fancy_formatter()
    elif style == "plain":
        formatter = _create_plain_formatter()
    else:
        raise ValueError(f"unknown log style: {style!r}")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

"""Validated configuration of a single chat session."""

import attr

from .message import SEPARATOR

__all__ = ("PORT_MAX", "PORT_MIN", "SessionConfig", "validate_name")


#: Smallest valid TCP port number
PORT_MIN = 1

#: Largest valid TCP port number
PORT_MAX = 65535


def validate_name(name: str) -> str:
    """Validates a local display name and returns it with surrounding
    whitespace removed.

    Names are sent as a single line during the handshake and become the
    sender part of every outgoing message, so they must not be blank and
    must not contain line breaks or the message separator.

    Raises:
        TypeError: if the name is not a string
        ValueError: if the name is not valid
    """
    if not isinstance(name, str):
        raise TypeError(f"name must be a string, got {type(name)!r}")

    name = name.strip()
    if not name:
        raise ValueError("name must not be blank")
    if SEPARATOR in name:
        raise ValueError(f"name must not contain {SEPARATOR!r}")
    if "\n" in name or "\r" in name:
        raise ValueError("name must not contain line breaks")

    return name


def _validate_name(instance, attribute, value) -> None:
    validate_name(value)


def _validate_port(instance, attribute, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"port must be an integer, got {type(value)!r}")
    if value < PORT_MIN or value > PORT_MAX:
        raise ValueError(f"port must be between {PORT_MIN} and {PORT_MAX}, got {value}")


def _strip(value):
    return value.strip() if isinstance(value, str) else value


@attr.s(frozen=True)
class SessionConfig:
    """Configuration of the local side of a chat session.

    The same configuration is reused when the user chooses to start a new
    session after the previous one ended.

    Attributes:
        name: the display name of the local party
        host: the address of the peer in the client role, or the address to
            bind to in the server role; empty string means all interfaces
        port: the port of the peer in the client role, or the port to listen
            on in the server role
    """

    name: str = attr.ib(converter=_strip, validator=_validate_name)
    host: str = attr.ib(
        default="", converter=_strip, validator=attr.validators.instance_of(str)
    )
    port: int = attr.ib(default=5000, validator=_validate_port)

"""Model class for a single chat message."""

from dataclasses import dataclass

__all__ = ("Message", "SEPARATOR")


#: Separator between the sender and the content in the wire format
SEPARATOR = ","


@dataclass(frozen=True)
class Message:
    """A single chat message typed by one of the parties.

    Attributes:
        sender: the display name of the party that typed the message; never
            blank
        content: the text of the message; may be empty
    """

    sender: str
    content: str

    def __post_init__(self):
        if not isinstance(self.sender, str):
            raise TypeError(f"sender must be a string, got {type(self.sender)!r}")
        if not isinstance(self.content, str):
            raise TypeError(f"content must be a string, got {type(self.content)!r}")
        if not self.sender.strip():
            raise ValueError("sender must not be blank")

    @property
    def raw(self) -> str:
        """The wire representation of the message. The sender and the content
        are joined with a comma; neither of them is escaped.
        """
        return f"{self.sender}{SEPARATOR}{self.content}"

    def __str__(self):
        return f"{self.sender}: {self.content}"

"""Common exception classes used in many places throughout duochat."""

__all__ = ("ChatError", "InvalidMessageError")


class ChatError(RuntimeError):
    """Base class for all duochat-related errors."""

    pass


class InvalidMessageError(ChatError):
    """Exception thrown when a raw line received from the peer cannot be
    decoded into a chat message.
    """

    def __init__(self, message=None, line=None):
        """Constructor.

        Parameters:
            message (Optional[str]): the error message
            line (Optional[str]): the raw line that failed to decode
        """
        message = message or "Invalid message received"
        super().__init__(message)
        self.line = line

"""Error types raised by the message core."""


class ChatroomError(Exception):
    """Base class for failures reported back to a caller."""
    pass


class MessageValidationError(ChatroomError):
    """Inbound message fields are missing or empty."""
    pass


class MessageNotFoundError(ChatroomError):
    """Delete requested for an id that is not in the log."""
    pass


class PersistenceError(ChatroomError):
    """The snapshot file could not be written."""
    pass

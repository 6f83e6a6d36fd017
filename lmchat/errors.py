"""Structured error types for the chat client."""


class ChatError(Exception):
    """Base error for all chat operations."""
    pass


class TransportError(ChatError, ConnectionError):
    """Raised when the response stream cannot be opened or breaks mid-turn."""

    def __init__(self, message: str, model: str = ""):
        self.model = model
        super().__init__(message)


class ParserClosedError(ChatError):
    """Raised when text is fed to a parser after finish()."""

    def __init__(self):
        super().__init__("Parser already finished; create a new one per stream")

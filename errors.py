class RelayError(Exception):
    """Base class for errors raised while serving a client channel."""


class CommandValidationError(RelayError):
    """Inbound command has an unknown name or a malformed payload."""

    def __init__(self, message: str, event: str | None = None):
        super().__init__(message)
        self.event = event


class TransportError(RelayError):
    """The underlying channel failed for a reason other than a clean close."""

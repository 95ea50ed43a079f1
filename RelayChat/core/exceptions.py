"""
Exceptions raised by the RelayChat server.

None of these cross into the relay core: protocol errors are handled at the
transport boundary and upload errors inside the HTTP layer.
"""


class RelayChatError(Exception):
    """Base exception for server errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ProtocolError(RelayChatError):
    """Raised when an inbound frame is not a well-formed relay event."""
    pass


class UploadError(RelayChatError):
    """Raised when an uploaded file cannot be stored."""
    pass


class FileTooLargeError(UploadError):
    """Raised when an upload exceeds the configured size limit."""
    pass

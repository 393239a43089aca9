"""Exceptions raised by outline-chat."""


class OutlineChatError(Exception):
    """Base class for outline-chat errors."""


class GenerationInProgressError(OutlineChatError):
    """A reply is still streaming for this conversation."""


class NotEditableError(OutlineChatError):
    """Only user-authored turns can be edited."""


class UpstreamError(OutlineChatError):
    """The hosted completion API rejected or dropped a request."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


class MissingCredentialError(OutlineChatError):
    """No API key is configured and the request carried none."""

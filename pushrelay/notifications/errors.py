from pushrelay.notifications.types import ErrorKind


class ValidationError(ValueError):
    """Request rejected before any provider call or record mutation."""

    kind: ErrorKind = ErrorKind.MISSING_CONTENT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingToken(ValidationError):
    kind = ErrorKind.MISSING_TOKEN


class MissingContent(ValidationError):
    kind = ErrorKind.MISSING_CONTENT


class ProviderError(Exception):
    """Raised by a delivery provider; ``code`` uses the ``messaging/...`` vocabulary."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return self.message

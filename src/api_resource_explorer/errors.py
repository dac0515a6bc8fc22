"""Typed errors raised by discovery and response transformation.

Every error carries an HTTP-status-like code and a category string so that
callers (a UI layer, the CLI) can render them without inspecting messages.
"""


class ResourceExplorerError(Exception):
    """Base error with a status code and a category."""

    status_code = 500
    category = "Error"

    def __init__(self, message: str, status_code: int | None = None, category: str | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if category is not None:
            self.category = category

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "status_code": self.status_code,
            "category": self.category,
        }


class ConfigurationError(ResourceExplorerError):
    """A required argument is missing or the source document is unusable."""

    status_code = 400
    category = "Configuration Error"


class ParseError(ResourceExplorerError):
    """A response body could not be matched against its declared schema."""

    status_code = 500
    category = "Parse Error"

"""Errors raised by catalog and search operations.

Logical failures reported inside a well-formed upstream payload (an embedded
response code other than the success code) are not errors; they normalize to
empty or unsuccessful results instead.
"""


class CatalogError(Exception):
    """Base exception for a failed catalog or search operation."""


class TransportError(CatalogError):
    """Connection failure or timeout talking to an upstream service."""


class ProtocolError(CatalogError):
    """Upstream answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(CatalogError):
    """Upstream payload could not be parsed as JSON or XML."""

    def __init__(self, message: str, snippet: str = "") -> None:
        super().__init__(f"{message} -- {snippet}" if snippet else message)
        self.snippet = snippet


class ConfigurationError(CatalogError):
    pass


class InvalidArgumentError(CatalogError, ValueError):
    """Caller supplied parameters that conflict with what the backend requires."""

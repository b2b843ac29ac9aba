from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ValidationError(AppError):
    pass


class NotConnectedError(AppError):
    """The session is not connected; retry after reconnection."""


class TransportError(AppError):
    """The transport failed to open, send or probe."""


class BackendError(AppError):
    """An auto-response backend raised or returned malformed data."""


class StorageError(AppError):
    """A persisted file could not be read or written."""

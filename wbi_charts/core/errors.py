"""Exception hierarchy shared by the rendering core, the API client and storage."""

from __future__ import annotations


class RenderError(Exception):
    """Base exception for chart rendering failures. Never retried."""

    pass


class EmptyInput(RenderError):
    """No observations were supplied."""

    def __init__(self, message: str = "no data to plot"):
        super().__init__(message)


class NoValidYears(RenderError):
    """Every observation carries the unparseable-year sentinel (0)."""

    def __init__(self, message: str = "no valid years"):
        super().__init__(message)


class NoNumericValues(RenderError):
    """No observation carries a numeric value."""

    def __init__(self, message: str = "no numeric values to plot"):
        super().__init__(message)


class BackendDrawError(RenderError):
    """The output backend failed while drawing or writing the image."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class WorldBankApiError(RuntimeError):
    """HTTP, decoding or API-level error returned by the indicators API."""

    pass


class StorageError(Exception):
    """Unsupported persistence format or unreadable observation file."""

    pass

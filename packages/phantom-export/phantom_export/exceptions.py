"""Exceptions raised by the Phantom export engine.

Heuristic paths (field mapping, measure binding, projection building) never
raise; they log a warning and omit what they cannot build. The hard failures
are malformed dashboard payloads and archive serialisation.
"""


class PhantomExportError(Exception):
    """Base class for export engine errors."""


class InvalidDashboardError(PhantomExportError):
    """Raised when a dashboard item payload cannot be parsed."""

    def __init__(self, message: str, item_id: str | None = None):
        self.item_id = item_id
        if item_id:
            message = f"{message} (item: {item_id})"
        super().__init__(message)


class ArchiveAssemblyError(PhantomExportError):
    """Raised when the final archive bytes cannot be produced.

    There is no partial-success state once serialisation starts, so the
    whole export call fails.
    """

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        if path:
            message = f"{message} [{path}]"
        super().__init__(message)

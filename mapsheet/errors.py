"""Typed failures raised by the export pipeline."""


class ExportError(Exception):
    """Base class for fatal export failures.

    The message is meant to be shown to the operator as-is.
    """


class InvalidTemplate(ExportError):
    """The template cannot be exported (no map element or degenerate geometry)."""


class MissingMapElement(InvalidTemplate):
    """The template has no visible map element."""

    def __init__(self, message: str = "Template has no map element"):
        super().__init__(message)


class CaptureUnavailable(ExportError):
    """No export area or no map view to capture from."""


class EncodingError(ExportError):
    """The composed page could not be encoded to the requested format."""


class ExportInProgress(ExportError):
    """Another export is already using the map view."""

    def __init__(self, message: str = "An export is already in progress"):
        super().__init__(message)

from __future__ import annotations


class ConversionError(Exception):
    """Base class for errors that end a conversion job."""


class ParseError(ConversionError):
    """The input is not valid UTF-8 JSON text."""


class UnsupportedStructureError(ConversionError):
    """The top-level JSON value is neither an object nor an array of objects."""


class SerializeError(ConversionError):
    """Rows could not be rendered as UTF-8 CSV text."""


class ConversionCancelled(ConversionError):
    pass


class JobInProgressError(ConversionError):
    """A conversion was requested while another one is still running."""

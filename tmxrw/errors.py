"""Exceptions raised by the TMX reader/writer."""


class TmxError(Exception):
    """Base class for every error raised by tmxrw."""


class NotFoundError(TmxError, FileNotFoundError):
    """The TMX file to load does not exist."""


class TmxPermissionError(TmxError, PermissionError):
    """A file or directory permission check failed."""


class NotWritableError(TmxPermissionError):
    """The target file or its directory cannot be written."""


class NotReadableError(TmxPermissionError):
    """The TMX file exists but cannot be read."""


class MissingPlatformSupportError(TmxError):
    """The installed XML library lacks streaming read/write support."""


class NoFileError(TmxError):
    """A write was requested but no destination path is configured."""


class TmxParseError(TmxError):
    """The input document is not well-formed XML."""


class UnknownUnitError(TmxError, KeyError):
    """An operation referenced a tuid that is not in the store."""

    def __init__(self, tuid: str):
        super().__init__(f"No such tuid element: {tuid}")
        self.tuid = tuid

    def __str__(self):
        return self.args[0]


class WriteFailedError(TmxError):
    """Persisting the serialized document failed."""

"""
Error types raised by the conversion pipeline.

``UgconvError`` is the common base.  Every subclass pins a
:class:`~ugconv.types.ErrorKind`, which :meth:`Converter.convert
<ugconv.converter.Converter.convert>` copies into the returned
:class:`~ugconv.types.Result`.
"""

from __future__ import annotations

from ugconv.types import ErrorKind


class UgconvError(Exception):
    """Base exception for all ugconv errors."""

    kind: ErrorKind = ErrorKind.USAGE

    @property
    def message(self) -> str:
        return str(self)


class UsageError(UgconvError):
    """Raised when the supplied inputs cannot drive a conversion."""
    kind = ErrorKind.USAGE


class UrlInvalidError(UgconvError):
    """Raised when an artwork URL or post ID is malformed."""
    kind = ErrorKind.URL_INVALID


class MetaCantOpenError(UgconvError):
    """Raised when a meta file (or a bundled animation.json) is unreadable."""
    kind = ErrorKind.META_CANTOPEN


class MetaInvalidError(UgconvError):
    """Raised when meta JSON cannot be parsed or has the wrong shape."""
    kind = ErrorKind.META_INVALID


class ZipCantOpenError(UgconvError):
    """Raised when the frames archive does not exist."""
    kind = ErrorKind.ZIP_CANTOPEN


class RequestFailedError(UgconvError):
    """Raised when a Pixiv request fails or Pixiv reports an error."""
    kind = ErrorKind.REQ_FAILED

    def __init__(self, message: str, status: int = 0) -> None:
        super().__init__(message)
        self.status = status


class CommandFailedError(UgconvError):
    """Raised when an external command (unzip, ffmpeg) fails."""
    kind = ErrorKind.CMD_FAILED

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class ToolNotFoundError(CommandFailedError):
    """Raised when a required external tool is not on $PATH."""

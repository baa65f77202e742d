"""
Core data structures used throughout the conversion pipeline.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class OutputFormat(enum.Enum):
    """Supported animation output formats."""
    GIF = "gif"
    WEBM = "webm"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def fps_limit(self) -> int:
        """Highest output frame rate the container plays back reliably."""
        return 50 if self is OutputFormat.GIF else 60


def parse_format(ext: str) -> OutputFormat | None:
    """Map a file extension (without the dot) to an output format."""
    for fmt in OutputFormat:
        if fmt.value == ext:
            return fmt
    return None


class ErrorKind(enum.Enum):
    """Outcome of a conversion, reported back to the caller."""
    OK = "ok"
    USAGE = "usage"
    URL_INVALID = "url_invalid"
    META_CANTOPEN = "meta_cantopen"
    META_INVALID = "meta_invalid"
    ZIP_CANTOPEN = "zip_cantopen"
    REQ_FAILED = "req_failed"
    CMD_FAILED = "cmd_failed"


@dataclass(frozen=True)
class Frame:
    """A single still frame inside the ugoira archive."""
    name: str         # File name relative to the extracted frames dir
    delay_ms: int     # Display duration


@dataclass(frozen=True)
class MetaInfo:
    """Decoded ugoira metadata. ``frames`` is in playback order."""
    zip_url: str
    frames: tuple[Frame, ...] = field(default_factory=tuple)

    @property
    def delays_ms(self) -> list[int]:
        return [f.delay_ms for f in self.frames]


@dataclass(frozen=True)
class FrameStats:
    """Frame-rate summary derived from the delay table."""
    avg_fps: float
    is_constant: bool
    const_fps: float  # 0.0 unless is_constant


@dataclass(frozen=True)
class Result:
    """Outcome of :meth:`ugconv.converter.Converter.convert`."""
    kind: ErrorKind = ErrorKind.OK
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is ErrorKind.OK

    def __bool__(self) -> bool:
        return self.ok

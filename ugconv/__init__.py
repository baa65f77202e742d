"""
ugconv -- Pixiv ugoira to GIF / WebM converter.

Downloads (or loads) an ugoira's frame archive and delay table, then
drives FFmpeg's concat demuxer to produce a single animation file.
"""

__version__ = "0.1.0"

from ugconv.converter import Converter
from ugconv.types import (
    ErrorKind,
    Frame,
    FrameStats,
    MetaInfo,
    OutputFormat,
    Result,
)

__all__ = [
    "Converter",
    "ErrorKind",
    "Frame",
    "FrameStats",
    "MetaInfo",
    "OutputFormat",
    "Result",
]

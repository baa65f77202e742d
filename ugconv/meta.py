"""
Pixiv ugoira metadata: artwork URLs, the meta endpoint, and decoding.

Pixiv serves ugoira metadata in a wrapped envelope::

    {"error": false, "message": "",
     "body": {"originalSrc": "...", "frames": [{"file": "000000.jpg", "delay": 40}, ...]}}

Bundled ugoira archives carry the same object without the envelope in
their ``animation.json``.  :func:`decode_meta` accepts both.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import IO, Any

from ugconv.exceptions import (
    MetaCantOpenError,
    MetaInvalidError,
    RequestFailedError,
    UrlInvalidError,
)
from ugconv.types import Frame, MetaInfo


PIXIV_REFERER = "https://www.pixiv.net/"
ARTWORK_URL_BASE = "www.pixiv.net/en/artworks/"
META_URL_TEMPLATE = "https://www.pixiv.net/ajax/illust/{post_id}/ugoira_meta?lang=en"

_MAX_POST_ID = 2 ** 64 - 1
_RE_DIGITS = re.compile(r"[0-9]+")
_RE_SCHEME = re.compile(r"^https?://")


# ---------------------------------------------------------------------------
# Post IDs and URLs
# ---------------------------------------------------------------------------

def parse_post_id(text: str) -> int:
    """Parse an unsigned 64-bit post ID with no sign or trailing junk."""
    if not _RE_DIGITS.fullmatch(text):
        raise UrlInvalidError(
            "Invalid artwork URL (ID is not a non-negative integer)"
        )
    post_id = int(text)
    if post_id > _MAX_POST_ID:
        raise UrlInvalidError(
            "Invalid artwork URL (ID is not a non-negative integer)"
        )
    return post_id


def parse_post_url(url: str) -> int:
    """
    Extract the post ID from ``[http[s]://]www.pixiv.net/en/artworks/<ID>``.

    Raises
    ------
    UrlInvalidError
        If the URL has any other shape or the ID is not a valid integer.
    """
    rest = _RE_SCHEME.sub("", url, count=1)
    if not rest.startswith(ARTWORK_URL_BASE):
        raise UrlInvalidError(
            "Invalid artwork URL (must be in the form "
            f"[http(s)://]{ARTWORK_URL_BASE}<ID>)"
        )
    return parse_post_id(rest[len(ARTWORK_URL_BASE):])


def meta_url(post_id: int) -> str:
    return META_URL_TEMPLATE.format(post_id=post_id)


# ---------------------------------------------------------------------------
# Loading raw JSON
# ---------------------------------------------------------------------------

def load_meta_string(text: str | bytes) -> Any:
    """Parse meta JSON from a string or raw response body."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MetaInvalidError(f"Failed to parse JSON meta file: {exc}") from exc


def load_meta_stream(stream: IO[str] | IO[bytes]) -> Any:
    return load_meta_string(stream.read())


def load_meta_path(path: Path) -> Any:
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise MetaCantOpenError(f"Failed to open meta file: {path}") from exc
    return load_meta_string(data)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def check_pixiv_error(meta: Any) -> None:
    """Raise if Pixiv flagged the response with a truthy ``error``."""
    if isinstance(meta, dict) and meta.get("error"):
        message = meta.get("message", "")
        raise RequestFailedError(f"Pixiv: {message}")


def decode_meta(meta: Any) -> MetaInfo:
    """
    Map parsed meta JSON to :class:`MetaInfo`.

    Operates on ``meta["body"]`` when the key is present, otherwise on
    the root object.  Frame order is preserved as playback order.
    """
    if isinstance(meta, dict) and "body" in meta:
        meta = meta["body"]
    if not isinstance(meta, dict):
        raise _invalid()

    zip_url = meta.get("originalSrc")
    raw_frames = meta.get("frames")
    if not isinstance(zip_url, str) or not isinstance(raw_frames, list):
        raise _invalid()
    if not raw_frames:
        raise _invalid("frame list is empty")

    frames = tuple(_decode_frame(f) for f in raw_frames)
    return MetaInfo(zip_url=zip_url, frames=frames)


def _decode_frame(raw: Any) -> Frame:
    if not isinstance(raw, dict):
        raise _invalid()
    name = raw.get("file")
    delay = raw.get("delay")
    # bool is an int subclass; JSON true/false is not a delay.
    if not isinstance(name, str) or not isinstance(delay, int) or isinstance(delay, bool):
        raise _invalid()
    if delay < 0:
        raise _invalid(f"negative delay for frame {name!r}")
    if not name or "/" in name or "\\" in name or "'" in name or name in (".", ".."):
        raise _invalid(f"unusable frame file name {name!r}")
    return Frame(name=name, delay_ms=delay)


def _invalid(detail: str = "missing fields or wrong data types") -> MetaInvalidError:
    return MetaInvalidError(f"Invalid meta file ({detail})")

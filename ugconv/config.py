"""
Converter settings and external tool lookup.

``ConverterConfig`` carries the HTTP identity, session cookie, temp root
and tool names used by one converter.  ``resolve_tool`` finds ``ffmpeg``
or ``unzip`` on ``$PATH`` and reports an install hint when one is missing.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from ugconv.exceptions import ToolNotFoundError


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64; rv:91.0) Gecko/20100101 Firefox/91.0"
)

SESSION_ID_ENV = "UGCONV_SESSION_ID"

_INSTALL_HINTS = {
    "ffmpeg": "Install FFmpeg (https://ffmpeg.org) and make sure it is on $PATH.",
    "unzip": "Install Info-ZIP unzip from your system package manager.",
}


@dataclass
class ConverterConfig:
    """Settings shared by every conversion run on one converter."""
    user_agent: str = DEFAULT_USER_AGENT
    session_id: str = ""
    show_progress: bool = True
    temp_root: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    ffmpeg: str = "ffmpeg"
    unzip: str = "unzip"
    timeout_s: float | None = None   # None = wait for child processes forever

    @property
    def cookies(self) -> str:
        """Cookie header value; empty when no session is configured."""
        if not self.session_id:
            return ""
        return f"PHPSESSID={self.session_id}"


def session_id_from_env() -> str:
    """Return the session cookie configured in the environment, if any."""
    return os.environ.get(SESSION_ID_ENV, "")


def resolve_tool(name: str) -> Path:
    """Find the absolute path to an external tool."""
    path = shutil.which(name)
    if path is None:
        hint = _INSTALL_HINTS.get(Path(name).name, "")
        raise ToolNotFoundError(f"{name!r} not found on $PATH. {hint}".rstrip())
    return Path(path)

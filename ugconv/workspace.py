"""
Scratch workspace for a single conversion.

Directory layout
----------------
<temp_root>/ugoira-convert/
    <32 random alphanumerics>/
        frames/             (extracted archive)
        ugoira.zip          (only when downloaded)
        ffmpeg_input.txt    (concat demuxer script)

The workspace is reference counted: nested helpers may acquire it again
without creating a second directory, and the directory is removed when
the last holder releases it.
"""

from __future__ import annotations

import logging
import secrets
import shutil
import string
from pathlib import Path

logger = logging.getLogger(__name__)

WORKSPACE_DIRNAME = "ugoira-convert"
NAME_LENGTH = 32
_NAME_ALPHABET = string.ascii_letters + string.digits


def random_name(length: int = NAME_LENGTH) -> str:
    """Return a random ``[a-zA-Z0-9]`` string."""
    return "".join(secrets.choice(_NAME_ALPHABET) for _ in range(length))


class Workspace:
    """
    Reference-counted temporary directory.

    Usage::

        ws = Workspace(Path(tempfile.gettempdir()))
        with ws:
            (ws.path / "frames").mkdir()
            with ws:              # same directory, refcount 2
                ...
        # directory removed here
    """

    def __init__(self, temp_root: Path) -> None:
        self.base = Path(temp_root).resolve() / WORKSPACE_DIRNAME
        self._path: Path | None = None
        self._refcount = 0

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RuntimeError("Workspace has not been acquired")
        return self._path

    @property
    def active(self) -> bool:
        return self._refcount > 0

    @property
    def frames_dir(self) -> Path:
        return self.path / "frames"

    @property
    def zip_path(self) -> Path:
        return self.path / "ugoira.zip"

    @property
    def concat_path(self) -> Path:
        return self.path / "ffmpeg_input.txt"

    # -- Lifecycle -----------------------------------------------------------

    def acquire(self) -> Path:
        """Take a reference, creating the directory on the first one."""
        if self._refcount == 0:
            self._path = self._create()
            logger.debug("Created workspace %s", self._path)
        self._refcount += 1
        return self.path

    def release(self) -> None:
        """Drop a reference, deleting the directory on the last one."""
        if self._refcount == 0:
            return
        self._refcount -= 1
        if self._refcount == 0:
            path, self._path = self._path, None
            if path is not None:
                shutil.rmtree(path, ignore_errors=True)
                logger.debug("Removed workspace %s", path)

    def _create(self) -> Path:
        self.base.mkdir(parents=True, exist_ok=True)
        while True:
            candidate = self.base / random_name()
            try:
                candidate.mkdir()
            except FileExistsError:
                continue
            return candidate

    def __enter__(self) -> Workspace:
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()

"""
Input normalization.

A conversion starts from exactly one of three sources:

  - :class:`FromPost` -- a Pixiv post ID; meta and frames are downloaded.
  - :class:`FromMeta` -- pre-loaded meta JSON, optionally with a local
    frames archive (otherwise the archive is downloaded).
  - :class:`FromUgoira` -- a self-contained archive holding the frames
    plus an ``animation.json``.

:class:`InputNormalizer` collapses all three into a decoded
:class:`~ugconv.types.MetaInfo` and a directory of extracted frames.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from ugconv.config import ConverterConfig, resolve_tool
from ugconv.encoding import build_unzip_command, run_command
from ugconv.exceptions import (
    MetaCantOpenError,
    MetaInvalidError,
    RequestFailedError,
    UsageError,
    ZipCantOpenError,
)
from ugconv.meta import (
    PIXIV_REFERER,
    check_pixiv_error,
    decode_meta,
    load_meta_path,
    load_meta_string,
    meta_url,
)
from ugconv.progress import ProgressReporter
from ugconv.request import Fetcher, RequestOptions, Response
from ugconv.types import MetaInfo
from ugconv.workspace import Workspace

logger = logging.getLogger(__name__)

BUNDLED_META_NAME = "animation.json"


# ---------------------------------------------------------------------------
# Input variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FromPost:
    post_id: int


@dataclass(frozen=True)
class FromMeta:
    meta: Any                    # Parsed JSON, wrapped or unwrapped
    zip_path: Path | None = None


@dataclass(frozen=True)
class FromUgoira:
    path: Path


InputState = Union[FromPost, FromMeta, FromUgoira]


@dataclass(frozen=True)
class NormalizedInput:
    meta: MetaInfo
    frames_dir: Path


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------

def _describe_failure(resp: Response) -> str:
    if resp.status == 0:
        return resp.error_message or "transport error"
    return f"Request returned {resp.status}"


class InputNormalizer:
    """Resolves an :data:`InputState` inside an acquired workspace."""

    def __init__(
        self,
        fetcher: Fetcher,
        config: ConverterConfig,
        progress: ProgressReporter,
        workspace: Workspace,
    ) -> None:
        self.fetcher = fetcher
        self.config = config
        self.progress = progress
        self.workspace = workspace

    def normalize(self, state: InputState | None) -> NormalizedInput:
        with self.workspace:
            return self._normalize(state)

    def _normalize(self, state: InputState | None) -> NormalizedInput:
        raw_meta: Any = None
        zip_path: Path | None = None
        extracted = False

        if isinstance(state, FromUgoira):
            zip_path = Path(state.path)
            self.extract(zip_path)
            raw_meta = self._load_bundled_meta()
            extracted = True
        elif isinstance(state, FromMeta):
            raw_meta = state.meta
            zip_path = Path(state.zip_path) if state.zip_path is not None else None
        elif isinstance(state, FromPost):
            raw_meta = self.fetch_meta(state.post_id)
        else:
            raise UsageError("Post ID must be given if meta file is not")

        check_pixiv_error(raw_meta)
        meta = decode_meta(raw_meta)
        logger.info("Decoded ugoira meta with %d frames", len(meta.frames))

        if zip_path is None:
            zip_path = self.fetch_zip(meta.zip_url)
        if not extracted:
            self.extract(zip_path)

        return NormalizedInput(meta=meta, frames_dir=self.workspace.frames_dir)

    # -- Network -------------------------------------------------------------

    def request(self, url: str, label: str) -> Response:
        """GET *url* with Pixiv headers, reporting it as one transfer."""
        opts = RequestOptions(
            referer=PIXIV_REFERER,
            user_agent=self.config.user_agent,
            cookies=self.config.cookies,
            progress=self.progress.begin_transfer(label),
        )
        resp = self.fetcher.get(url, opts)
        self.progress.end_transfer(len(resp.body))
        return resp

    def fetch_meta(self, post_id: int) -> Any:
        resp = self.request(meta_url(post_id), "Downloading ugoira_meta")
        try:
            return load_meta_string(resp.body)
        except MetaInvalidError:
            if resp.status != 200:
                raise RequestFailedError(
                    f"Failed to fetch ugoira meta info: {_describe_failure(resp)}",
                    status=resp.status,
                ) from None
            raise

    def fetch_zip(self, url: str) -> Path:
        resp = self.request(url, "Downloading ugoira.zip")
        if resp.status != 200:
            raise RequestFailedError(
                f"Failed to fetch ugoira frames (zip): {_describe_failure(resp)}",
                status=resp.status,
            )
        zip_path = self.workspace.zip_path
        zip_path.write_bytes(resp.body)
        return zip_path

    # -- Archive -------------------------------------------------------------

    def extract(self, zip_path: Path) -> Path:
        """Unpack *zip_path* into the workspace's ``frames/`` directory."""
        if not zip_path.is_file():
            raise ZipCantOpenError(f"Zip file doesn't exist: {zip_path}")
        frames_dir = self.workspace.frames_dir
        frames_dir.mkdir(exist_ok=True)
        unzip = resolve_tool(self.config.unzip)
        run_command(
            build_unzip_command(zip_path, frames_dir, str(unzip)),
            description="unzip",
            timeout=self.config.timeout_s,
        )
        return frames_dir

    def _load_bundled_meta(self) -> Any:
        path = self.workspace.frames_dir / BUNDLED_META_NAME
        if not path.is_file():
            raise MetaCantOpenError(
                f"Ugoira archive has no {BUNDLED_META_NAME}"
            )
        return load_meta_path(path)

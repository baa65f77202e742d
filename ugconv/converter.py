"""
Conversion driver.

:class:`Converter` is the caller-facing object: configure it through the
setters, choose one input source, then call :meth:`Converter.convert`.

Each ``convert`` call runs::

    FRESH -> NORMALIZED -> ANALYZED -> ENCODED -> COMMITTED

inside a freshly acquired workspace.  Whatever the outcome, the
workspace is removed and the input source is cleared before returning,
so a converter can be reused for the next artwork.  The output is
encoded to ``<dest>.part`` and renamed over ``<dest>`` only after FFmpeg
succeeds.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Any

from ugconv.config import ConverterConfig, resolve_tool
from ugconv.encoding import (
    build_encode_command,
    compute_frame_stats,
    run_command,
    write_concat_file,
)
from ugconv.exceptions import UgconvError, UsageError
from ugconv.inputs import (
    FromMeta,
    FromPost,
    FromUgoira,
    InputNormalizer,
    InputState,
)
from ugconv.meta import (
    load_meta_path,
    load_meta_stream,
    load_meta_string,
    parse_post_url,
)
from ugconv.progress import ProgressReporter, ProgressSink
from ugconv.request import Fetcher, RequestsFetcher
from ugconv.types import OutputFormat, Result
from ugconv.workspace import Workspace

logger = logging.getLogger(__name__)

PART_SUFFIX = ".part"


def part_path(dest: Path) -> Path:
    """Return the in-progress name FFmpeg writes to."""
    return dest.with_name(dest.name + PART_SUFFIX)


class _ConfigProgressReporter(ProgressReporter):
    """Reporter switched on and off by ``config.show_progress``."""

    def __init__(self, sink: ProgressSink | None, config: ConverterConfig) -> None:
        self.config = config
        super().__init__(sink, config.show_progress)

    @property
    def enabled(self) -> bool:
        return self.config.show_progress

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self.config.show_progress = value


class Converter:
    """
    Converts one ugoira per :meth:`convert` call.

    Usage::

        conv = Converter(progress_sink=print)
        conv.set_post_url("https://www.pixiv.net/en/artworks/44298467")
        result = conv.convert(Path("44298467.webm"), OutputFormat.WEBM)
        if not result:
            print(result.message)

    Not safe for concurrent ``convert`` calls; use one converter per
    thread.
    """

    def __init__(
        self,
        fetcher: Fetcher | None = None,
        config: ConverterConfig | None = None,
        progress_sink: ProgressSink | None = None,
    ) -> None:
        self.config = config or ConverterConfig()
        self.fetcher = fetcher or RequestsFetcher()
        self.progress = _ConfigProgressReporter(progress_sink, self.config)
        self._state: InputState | None = None

    # -- Settings ------------------------------------------------------------

    def set_user_agent(self, user_agent: str) -> None:
        self.config.user_agent = user_agent

    def set_session_id(self, session_id: str) -> None:
        self.config.session_id = session_id

    def show_progress(self, enabled: bool) -> None:
        self.config.show_progress = enabled

    def set_progress_sink(self, sink: ProgressSink | None) -> None:
        self.progress.sink = sink

    # -- Input source --------------------------------------------------------

    @property
    def input_state(self) -> InputState | None:
        return self._state

    @property
    def post_id(self) -> int | None:
        if isinstance(self._state, FromPost):
            return self._state.post_id
        return None

    def set_post_url(self, url: str) -> int:
        """Select the artwork at *url*; returns its post ID."""
        post_id = parse_post_url(url)
        self.set_post_id(post_id)
        return post_id

    def set_post_id(self, post_id: int) -> None:
        self._require_unset(FromPost, "A post ID")
        self._state = FromPost(post_id)

    def set_meta(self, meta: Any) -> None:
        """Use already-parsed meta JSON."""
        self._require_unset(FromMeta, "Meta")
        zip_path = self._state.zip_path if isinstance(self._state, FromMeta) else None
        self._state = FromMeta(meta, zip_path)

    def set_meta_path(self, path: Path) -> None:
        self.set_meta(load_meta_path(Path(path)))

    def set_meta_stream(self, stream: IO[str] | IO[bytes]) -> None:
        self.set_meta(load_meta_stream(stream))

    def set_meta_string(self, text: str | bytes) -> None:
        self.set_meta(load_meta_string(text))

    def set_zip(self, path: Path) -> None:
        """Use a local frames archive instead of downloading one."""
        if not isinstance(self._state, FromMeta):
            raise UsageError("A zip file can only be supplied together with meta")
        self._state = FromMeta(self._state.meta, Path(path))

    def set_ugoira(self, path: Path) -> None:
        self._require_unset(FromUgoira, "An ugoira archive")
        self._state = FromUgoira(Path(path))

    def clear_inputs(self) -> None:
        self._state = None

    def _require_unset(self, kind: type, what: str) -> None:
        if self._state is not None and not isinstance(self._state, kind):
            raise UsageError(
                f"{what} cannot be combined with the input already given"
            )

    # -- Conversion ----------------------------------------------------------

    def convert(self, dest: Path, fmt: OutputFormat) -> Result:
        """Convert the selected input to *dest*.  Never raises UgconvError."""
        dest = Path(dest)
        state, self._state = self._state, None
        try:
            self._convert(state, dest, fmt)
        except UgconvError as exc:
            logger.debug("Conversion failed (%s): %s", exc.kind.name, exc)
            return Result(exc.kind, exc.message)
        return Result()

    def _convert(self, state: InputState | None, dest: Path, fmt: OutputFormat) -> None:
        workspace = Workspace(self.config.temp_root)
        with workspace:
            normalizer = InputNormalizer(
                self.fetcher, self.config, self.progress, workspace,
            )
            normalized = normalizer.normalize(state)

            stats = compute_frame_stats(normalized.meta.frames)
            logger.debug(
                "Frame stats: avg %.3f fps, constant=%s (%.3f fps)",
                stats.avg_fps, stats.is_constant, stats.const_fps,
            )
            concat_path = write_concat_file(
                normalized.frames_dir, normalized.meta, stats, fmt,
                workspace.concat_path,
            )

            self.progress.message(f"Encoding to {fmt.extension}")
            ffmpeg = resolve_tool(self.config.ffmpeg)
            partial = part_path(dest)
            cmd = build_encode_command(
                concat_path, partial, fmt, stats, ffmpeg=str(ffmpeg),
            )
            try:
                run_command(cmd, description="ffmpeg", timeout=self.config.timeout_s)
                partial.replace(dest)
            finally:
                partial.unlink(missing_ok=True)

        logger.info("Wrote %s", dest)

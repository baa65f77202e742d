"""
Frame-rate analysis and FFmpeg invocation.

Ugoira frames are fed to FFmpeg through the concat demuxer.  Two input
shapes are distinguished:

  - **Constant rate** -- every frame has the first frame's delay.  The
    concat script carries no durations; the rate is passed with ``-r``
    on both sides of the input so FFmpeg emits a CFR stream.
  - **Variable rate** -- each frame gets a ``duration`` line.  GIF takes
    fractional seconds.  WebM takes integer milliseconds and the time
    base is rescaled to 1/1000 so libvpx keeps the exact timestamps.

At very low average rates (< 5 fps) the concat demuxer drops the last
frame's duration when writing WebM, so the final frame is listed twice.
"""

from __future__ import annotations

import logging
import math
import shlex
import subprocess
from pathlib import Path
from typing import Sequence

from ugconv.exceptions import CommandFailedError, ToolNotFoundError
from ugconv.types import Frame, FrameStats, MetaInfo, OutputFormat

logger = logging.getLogger(__name__)

TAIL_DUPLICATION_FPS = 5.0

GIF_FILTER = "split[s0][s1];[s0]palettegen[p];[s1][p]paletteuse=dither=sierra2"
WEBM_TIMEBASE_FILTER = "settb=1/1000,setpts=PTS*0.001"


# ---------------------------------------------------------------------------
# Frame-rate analysis
# ---------------------------------------------------------------------------

def compute_frame_stats(frames: Sequence[Frame]) -> FrameStats:
    """
    Summarize the delay table of a non-empty frame sequence.

    A sequence is constant only if every delay equals the *first* delay.
    All-zero delays produce infinite rates.
    """
    first = frames[0].delay_ms
    is_constant = all(f.delay_ms == first for f in frames)
    total = sum(f.delay_ms for f in frames)

    const_fps = _rate(first) if is_constant else 0.0
    avg_fps = _rate(total / len(frames))
    return FrameStats(avg_fps=avg_fps, is_constant=is_constant, const_fps=const_fps)


def _rate(delay_ms: float) -> float:
    if delay_ms == 0:
        return math.inf
    return 1000.0 / delay_ms


def format_rate(fps: float) -> str:
    """Render a frame rate for FFmpeg (``50.0`` -> ``"50"``)."""
    return f"{fps:g}"


# ---------------------------------------------------------------------------
# Concat demuxer script
# ---------------------------------------------------------------------------

def _file_line(path: Path) -> str:
    return f"file '{path}'\n"


def _duration(frame: Frame, fmt: OutputFormat) -> str:
    if fmt is OutputFormat.WEBM:
        return str(frame.delay_ms)
    return f"{frame.delay_ms / 1000:.6f}"


def build_concat_script(
    frames_dir: Path,
    meta: MetaInfo,
    stats: FrameStats,
    fmt: OutputFormat,
) -> str:
    """Return the concat demuxer script for *meta*'s frames."""
    lines: list[str] = []
    for frame in meta.frames:
        lines.append(_file_line(frames_dir / frame.name))
        if not stats.is_constant:
            lines.append(f"duration {_duration(frame, fmt)}\n")

    if fmt is OutputFormat.WEBM and stats.avg_fps < TAIL_DUPLICATION_FPS:
        lines.append(_file_line(frames_dir / meta.frames[-1].name))
    return "".join(lines)


def write_concat_file(
    frames_dir: Path,
    meta: MetaInfo,
    stats: FrameStats,
    fmt: OutputFormat,
    out_path: Path,
) -> Path:
    """Write the concat script to *out_path* (UTF-8, ``\\n`` line ends)."""
    script = build_concat_script(frames_dir, meta, stats, fmt)
    with open(out_path, "w", encoding="utf-8", newline="\n") as f:
        f.write(script)
    return out_path


# ---------------------------------------------------------------------------
# Command-line builders
# ---------------------------------------------------------------------------

def build_encode_command(
    concat_path: Path,
    output_path: Path,
    fmt: OutputFormat,
    stats: FrameStats,
    ffmpeg: str = "ffmpeg",
) -> list[str]:
    """
    Build the FFmpeg argument vector encoding *concat_path* to *output_path*.

    *output_path* is written as-is; the driver passes the ``.part`` name.
    """
    limit = fmt.fps_limit
    cmd = [ffmpeg, "-loglevel", "error", "-y", "-f", "concat", "-safe", "0"]

    if stats.is_constant:
        cmd += ["-r", format_rate(stats.const_fps)]
    cmd += ["-i", str(concat_path)]

    if fmt is OutputFormat.GIF:
        cmd += ["-vf", GIF_FILTER, "-f", "gif"]
    else:
        cmd += ["-f", "webm", "-c:v", "libvpx", "-b:v", "10M", "-crf", "4"]

    cmd += ["-fflags", "bitexact"]
    cmd += ["-vsync", "cfr" if stats.is_constant else "vfr"]

    if stats.is_constant:
        cmd += ["-r", format_rate(min(stats.const_fps, limit))]
    elif fmt is OutputFormat.WEBM:
        cmd += ["-enc_time_base", "1/1000", "-vf", WEBM_TIMEBASE_FILTER]

    cmd.append(str(output_path))
    return cmd


def build_unzip_command(zip_path: Path, dest_dir: Path, unzip: str = "unzip") -> list[str]:
    return [unzip, "-q", str(zip_path), "-d", str(dest_dir)]


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

def run_command(
    cmd: list[str],
    *,
    description: str,
    timeout: float | None = None,
) -> subprocess.CompletedProcess:
    """
    Run an external command, raising on any failure.

    Raises
    ------
    ToolNotFoundError
        If the executable does not exist.
    CommandFailedError
        On a nonzero exit status or a timeout.
    """
    logger.debug("%s command: %s", description, shlex.join(cmd))
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise ToolNotFoundError(f"{cmd[0]!r} not found on $PATH.") from exc
    except subprocess.TimeoutExpired as exc:
        raise CommandFailedError(
            f"{description} command timed out after {timeout}s"
        ) from exc

    if proc.returncode != 0:
        stderr = (proc.stderr or "").strip()
        logger.debug("%s exited with %d: %s", description, proc.returncode, stderr)
        message = f"{description} command failed"
        if stderr:
            message += f": {stderr.splitlines()[-1]}"
        raise CommandFailedError(message, stderr=stderr)
    return proc

"""
Builders and test doubles shared by the ugconv test suite.
"""

from __future__ import annotations

import json
import zipfile
from pathlib import Path

from ugconv.request import RequestOptions, Response


ZIP_URL = "https://i.pximg.net/img-zip-ugoira/img/2020/01/01/00/00/00/12345_ugoira1920x1080.zip"


def meta_url(post_id: int) -> str:
    return f"https://www.pixiv.net/ajax/illust/{post_id}/ugoira_meta?lang=en"


def make_meta(delays: list[int], wrapped: bool = True, zip_url: str = ZIP_URL) -> dict:
    """Build ugoira meta JSON with frames 000000.jpg, 000001.jpg, ..."""
    body = {
        "src": zip_url.replace("1920x1080", "600x600"),
        "originalSrc": zip_url,
        "mime_type": "image/jpeg",
        "frames": [
            {"file": f"{i:06d}.jpg", "delay": d} for i, d in enumerate(delays)
        ],
    }
    if not wrapped:
        return body
    return {"error": False, "message": "", "body": body}


def make_zip(path: Path, n_frames: int, animation: dict | None = None) -> Path:
    """Write a frames archive; include animation.json when given."""
    with zipfile.ZipFile(path, "w") as zf:
        for i in range(n_frames):
            zf.writestr(f"{i:06d}.jpg", b"\xff\xd8\xff\xe0fake-jpeg-%d" % i)
        if animation is not None:
            zf.writestr("animation.json", json.dumps(animation))
    return path


def zip_bytes(tmp_path: Path, n_frames: int) -> bytes:
    return make_zip(tmp_path / "_payload.zip", n_frames).read_bytes()


class FakeFetcher:
    """In-memory fetcher keyed by URL.

    Each route is ``(status, body, progress_steps)``; the steps are
    forwarded to the progress callback before the response is returned.
    Unknown URLs answer 404.
    """

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes, list[tuple[int, int]]]] = {}
        self.errors: dict[str, str] = {}
        self.calls: list[tuple[str, RequestOptions]] = []

    def add(self, url: str, status: int = 200, body: bytes | str | dict = b"",
            steps: list[tuple[int, int]] | None = None) -> None:
        if isinstance(body, dict):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[url] = (status, body, steps or [])

    def fail(self, url: str, message: str) -> None:
        self.errors[url] = message

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]

    def get(self, url: str, opts: RequestOptions) -> Response:
        self.calls.append((url, opts))
        if url in self.errors:
            return Response(status=0, error_message=self.errors[url])
        if url not in self.routes:
            return Response(status=404, body=b"<html>not found</html>")
        status, body, steps = self.routes[url]
        if opts.progress is not None:
            for total, now in steps:
                opts.progress(total, now)
        return Response(status=status, body=body)


# Stand-ins for the external tools.  The fake ffmpeg records its argv,
# the concat script and the extracted frame names under $UGCONV_TEST_LOG
# before the workspace disappears.

FAKE_UNZIP = """\
import sys
import zipfile

args = [a for a in sys.argv[1:] if a != "-q"]
dest = args[args.index("-d") + 1]
try:
    with zipfile.ZipFile(args[0]) as zf:
        zf.extractall(dest)
except (OSError, zipfile.BadZipFile) as exc:
    sys.stderr.write(f"unzip: cannot find or open {args[0]}: {exc}\\n")
    sys.exit(9)
"""

FAKE_FFMPEG = """\
import json
import os
import shutil
import sys
from pathlib import Path

argv = sys.argv[1:]
log_dir = Path(os.environ["UGCONV_TEST_LOG"])
log_dir.mkdir(parents=True, exist_ok=True)
concat = Path(argv[argv.index("-i") + 1])
shutil.copyfile(concat, log_dir / "ffmpeg_input.txt")
(log_dir / "ffmpeg_argv.json").write_text(json.dumps(argv))
frames = sorted(p.name for p in (concat.parent / "frames").iterdir())
(log_dir / "frames.json").write_text(json.dumps(frames))
(log_dir / "workspace.txt").write_text(str(concat.parent))

code = int(os.environ.get("UGCONV_TEST_FFMPEG_EXIT", "0"))
if code:
    Path(argv[-1]).write_bytes(b"partial")
    if os.environ.get("UGCONV_TEST_FFMPEG_BINARY_STDERR"):
        sys.stderr.buffer.write(b"\\xff\\xfe Conversion failed!\\n")
    else:
        sys.stderr.write("Conversion failed!\\n")
    sys.exit(code)
Path(argv[-1]).write_bytes(b"fake animation")
"""

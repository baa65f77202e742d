"""Terminal rendering of pipeline progress events."""

from __future__ import annotations

import sys
from typing import IO, Any

from tqdm import tqdm

from ugconv.progress import ProgressEvent, ProgressKind


class TqdmProgressSink:
    """
    Progress sink that draws byte transfers with tqdm.

    A BAR event opens a bar (labelled with the most recent non-empty
    text) or advances the open one; an empty MESSAGE closes it.  Other
    messages are printed on their own line.
    """

    def __init__(self, file: IO[str] | None = None) -> None:
        self.file = file or sys.stderr
        self.label = ""
        self._bar: Any = None

    def __call__(self, event: ProgressEvent) -> None:
        if event.kind is ProgressKind.MESSAGE:
            self.close()
            if event.text:
                print(event.text, file=self.file, flush=True)
            return

        if event.text:
            self.label = event.text
        if self._bar is None:
            self._bar = tqdm(
                total=event.total or None,
                desc=self.label,
                unit="B",
                unit_scale=True,
                unit_divisor=1024,
                file=self.file,
                dynamic_ncols=True,
                leave=True,
            )
        if event.total and self._bar.total != event.total:
            self._bar.total = event.total
        self._bar.n = event.now
        self._bar.refresh()

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None

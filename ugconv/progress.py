"""
Progress reporting.

The pipeline reports two kinds of events to a caller-supplied sink:

  - ``MESSAGE`` -- a one-line notice.  An empty text closes the bar
    sequence that preceded it.
  - ``BAR`` -- one step of a byte transfer.  Only the first event of a
    transfer carries a label; later ones carry ``""`` and the sink is
    expected to reuse the last label it saw.  ``total == 0`` means the
    size is not known yet.

Events are delivered inline on the calling thread, in issue order.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable

from ugconv.request import ByteProgress


class ProgressKind(enum.Enum):
    MESSAGE = "message"
    BAR = "bar"


@dataclass(frozen=True)
class ProgressEvent:
    """A single progress notification. ``total``/``now`` are 0 for MESSAGE."""
    kind: ProgressKind
    text: str = ""
    total: int = 0
    now: int = 0

    @classmethod
    def message(cls, text: str) -> ProgressEvent:
        return cls(ProgressKind.MESSAGE, text)

    @classmethod
    def bar(cls, text: str, total: int, now: int) -> ProgressEvent:
        return cls(ProgressKind.BAR, text, total, now)


ProgressSink = Callable[[ProgressEvent], None]


class ProgressReporter:
    """
    Routes pipeline events to a sink, or drops them when disabled.

    Wraps byte transfers so that every transfer seen by the sink has the
    same shape: a labelled opening bar, the fetcher's own updates, a
    synthesized 100% bar, and a closing empty message.  The synthesized
    event covers fetchers that never report the final chunk.
    """

    def __init__(self, sink: ProgressSink | None = None, enabled: bool = True) -> None:
        self.sink = sink
        self.enabled = enabled

    def _emit(self, event: ProgressEvent) -> None:
        if self.enabled and self.sink is not None:
            self.sink(event)

    def message(self, text: str) -> None:
        self._emit(ProgressEvent.message(text))

    def bar(self, total: int, now: int, text: str = "") -> None:
        self._emit(ProgressEvent.bar(text, total, now))

    # -- Transfers -----------------------------------------------------------

    def begin_transfer(self, label: str) -> ByteProgress:
        """Open a bar sequence and return the callback for the fetcher."""
        self.bar(0, 0, label)

        def forward(total: int, now: int) -> None:
            self.bar(total, now)

        return forward

    def end_transfer(self, n_bytes: int) -> None:
        """Complete the bar at *n_bytes* and close the sequence."""
        self.bar(n_bytes, n_bytes)
        self.message("")

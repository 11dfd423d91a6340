import logging
import queue
from pathlib import Path
from typing import Callable, Iterator, Optional

from .models import PHASES, ProgressEvent

ProgressCallback = Callable[[ProgressEvent], None]


class ProgressReporter:
    """
    Forwards progress events to a callback, keeping percent monotonic
    and phases in pipeline order across the whole run.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self.callback = callback
        self.percent = 0
        self.phase_index = 0

    def emit(self, phase: str, message: str, percent: float, current_item: Optional[Path] = None):
        index = PHASES.index(phase)
        if index < self.phase_index:
            raise ValueError(f"Phase {phase} re-entered after {PHASES[self.phase_index]}")
        self.phase_index = index

        self.percent = max(self.percent, min(100, int(round(percent))))
        event = ProgressEvent(phase=phase, message=message, percent=self.percent, current_item=current_item)
        logging.debug(f"[{event.percent:3d}%] {phase}: {message}")
        if self.callback:
            self.callback(event)


class EventChannel:
    """
    Queue-backed sink: the pipeline puts events from its worker thread,
    the caller iterates them until the run closes the channel.
    """
    _CLOSED = object()

    def __init__(self):
        self._queue: "queue.Queue" = queue.Queue()

    def put(self, event: ProgressEvent):
        self._queue.put(event)

    def close(self):
        self._queue.put(self._CLOSED)

    def __iter__(self) -> Iterator[ProgressEvent]:
        while True:
            item = self._queue.get()
            if item is self._CLOSED:
                return
            yield item

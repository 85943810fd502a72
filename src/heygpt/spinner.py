# heygpt: Progress spinner shown while waiting for the first byte of a reply.

import itertools
import threading
from typing import Optional, TextIO

CLEAR_LINE = "\r\033[K"


class Spinner:
    """
    A minimal terminal spinner drawn after `prefix` on a background thread.

    Use it as a context manager: it starts on enter and is always stopped on exit.
    stop() may also be called early (on first output) and is idempotent. A disabled
    spinner writes nothing at all.
    """

    FRAMES = ".oO@*"

    def __init__(self, out: TextIO, prefix: str = "", delay: float = 0.1, enabled: bool = True) -> None:
        self._out = out
        self._prefix = prefix
        self._delay = delay
        self._enabled = enabled
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None

    def _spin(self) -> None:
        for frame in itertools.cycle(self.FRAMES):
            if self._stop_event.is_set():
                break
            self._out.write(f"{CLEAR_LINE}{self._prefix}{frame}")
            self._out.flush()
            self._stop_event.wait(self._delay)

    def start(self) -> None:
        if not self._enabled or self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._spin, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join()
        self._thread = None
        # Leave the cursor right after the prefix, ready for real text.
        self._out.write(f"{CLEAR_LINE}{self._prefix}")
        self._out.flush()

    def __enter__(self) -> "Spinner":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

# heygpt: Console I/O and logging wrapper. Business logic writes through a Context instead of print() so
# tests can substitute in-memory streams.

import sys
from typing import Optional, TextIO


class Context:
    """
    Thin wrapper around console I/O and logging.

    User-facing text goes to `out`; log lines and errors go to `err` so they never
    mix with an assistant reply that is being piped somewhere.
    """

    def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None, verbose: bool = False) -> None:
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr
        self.verbose = verbose

    @property
    def is_tty(self) -> bool:
        isatty = getattr(self.out, "isatty", None)
        return bool(isatty and isatty())

    def send_to_user(self, message: str) -> None:
        """Print a full line to stdout."""
        print(message, file=self.out, flush=True)

    def write(self, text: str) -> None:
        """Write raw text with no newline and flush, for incremental output."""
        self.out.write(text)
        self.out.flush()

    def log(self, message: str) -> None:
        """Emit a log line to stderr when verbose logging is on."""
        if self.verbose:
            print(f"[LOG] {message}", file=self.err, flush=True)

    def error_message(self, message: str) -> None:
        """Print an error message to stderr."""
        print(f"Error: {message}", file=self.err, flush=True)

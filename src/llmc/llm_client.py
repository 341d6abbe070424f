import sys
import threading
from typing import TextIO

from loguru import logger

_SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
RETRY_ATTEMPTS = 5


class Spinner:
    """Thread-based spinner that renders on the current line using \\r.

    Runs beside the provider call; the two share nothing but the stop event.
    """

    def __init__(self, label: str = " Waiting for response...", stream: TextIO | None = None):
        self._label = label
        self._stream = stream or sys.stderr
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._frame_width = 1 + len(label)

    def start(self) -> None:
        if not self._stream.isatty():
            return
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._stop.is_set():
            return
        self._stop.set()
        if self._thread is None:
            return
        self._thread.join()
        self._stream.write("\r" + " " * self._frame_width + "\r")
        self._stream.flush()

    def _run(self) -> None:
        i = 0
        try:
            while not self._stop.is_set():
                frame = _SPINNER_FRAMES[i % len(_SPINNER_FRAMES)] + self._label
                self._stream.write("\r" + frame)
                self._stream.flush()
                self._stop.wait(0.08)
                i += 1
        except (UnicodeEncodeError, OSError):
            pass  # Terminal doesn't support these characters; fail silently


def _on_retry(retry_state):
    attempt = retry_state.attempt_number
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    reason = type(exc).__name__ if exc else "Unknown"
    logger.warning(f"{reason}. Retrying in {wait:.0f}s (attempt {attempt}/{RETRY_ATTEMPTS})...")

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from tenacity import retry_if_exception_type, stop_after_attempt, wait_exponential

from llmc.llm_client import RETRY_ATTEMPTS, Spinner, _on_retry
from llmc.sessions.models import Message


def default_retry_kwargs(exception_types: tuple[type[Exception], ...]) -> dict:
    return {
        "retry": retry_if_exception_type(exception_types),
        "wait": wait_exponential(multiplier=2, min=2, max=60),
        "stop": stop_after_attempt(RETRY_ATTEMPTS),
        "before_sleep": _on_retry,
        "reraise": True,
    }


def history_to_dicts(history: list[Message], new_message: str) -> list[dict]:
    messages = [{"role": m.role, "content": m.content} for m in history]
    messages.append({"role": "user", "content": new_message})
    return messages


@contextmanager
def waiting_spinner(*, label: str = " Waiting for response...") -> Iterator[Spinner]:
    spinner = Spinner(label=label)
    spinner.start()
    try:
        yield spinner
    finally:
        spinner.stop()

import sys
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from llmc.errors import InvalidArgumentError

DEFAULT_LOG_FILE = "~/.config/llmc/llmc.log"

_BRIEF_FORMAT = "<level>{level}</level>: {message}"
_DETAILED_FORMAT = (
    "<level>{level:<8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>"
    " - <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} - {message}"
_VERBOSE_LEVELS = ("TRACE", "DEBUG")


@runtime_checkable
class LogConsumer(Protocol):
    def register(self, level: str) -> None: ...
    def describe(self, level: str) -> str: ...


class ConsoleLogConsumer:
    """stderr sink. Brief ``LEVEL: message`` lines unless running at DEBUG or below."""

    def __init__(self, detailed: bool | None = None):
        self._detailed = detailed

    def _is_detailed(self, level: str) -> bool:
        if self._detailed is not None:
            return self._detailed
        return level.upper() in _VERBOSE_LEVELS

    def register(self, level: str) -> None:
        fmt = _DETAILED_FORMAT if self._is_detailed(level) else _BRIEF_FORMAT
        logger.add(sys.stderr, level=level, format=fmt)

    def describe(self, level: str) -> str:
        return f"console (stderr, {level})"


class FileLogConsumer:
    """Rotating log file, created on first registration."""

    def __init__(self, path: str = DEFAULT_LOG_FILE, rotation: str = "10 MB", retention: int = 3):
        self._path = Path(path).expanduser()
        self._rotation = rotation
        self._retention = retention

    def register(self, level: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self._path),
            level=level,
            format=_FILE_FORMAT,
            rotation=self._rotation,
            retention=self._retention,
        )

    def describe(self, level: str) -> str:
        return f"file ({self._path}, {level})"


_CONSUMER_TYPES: dict[str, type] = {
    "console": ConsoleLogConsumer,
    "file": FileLogConsumer,
}


def build_consumer(entry: dict[str, Any]) -> tuple[LogConsumer, str | None]:
    """Turn one ``LogConsumers`` config entry into a consumer and its level override."""
    sink_type = str(entry.get("type", ""))
    cls = _CONSUMER_TYPES.get(sink_type)
    if cls is None:
        known = ", ".join(sorted(_CONSUMER_TYPES))
        raise InvalidArgumentError(f"unknown log consumer type: {sink_type!r} (known: {known})")
    options = {k: v for k, v in entry.items() if k not in ("type", "level")}
    try:
        consumer = cls(**options)
    except TypeError as ex:
        raise InvalidArgumentError(f"invalid options for {sink_type} log consumer: {ex}") from None
    return consumer, entry.get("level")


def setup_logging(level: str = "WARNING", consumers: list[dict[str, Any]] | None = None) -> list[str]:
    """Replace every loguru sink with the configured consumers.

    Without a ``LogConsumers`` list only the console sink is installed. Returns
    one description per registered sink.
    """
    entries = consumers if consumers is not None else [{"type": "console"}]
    built = [build_consumer(entry) for entry in entries]

    logger.remove()
    descriptions: list[str] = []
    for consumer, override in built:
        sink_level = (override or level).upper()
        consumer.register(sink_level)
        descriptions.append(consumer.describe(sink_level))
    return descriptions

"""
Logging for fundtrade.

Every component reports through ``log_event``: one JSON object per line with
an ``event`` key. The console gets those lines through rich; the file sink
gets them as flat JSON records (timestamp, level and logger merged into the
event fields) written from a background listener thread.
"""

from __future__ import annotations

import atexit
import json
import logging
import queue
import sys
import time
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from rich.logging import RichHandler

THROTTLED_EVENTS = frozenset({"rpc_error", "policy_rejected"})
# fields that tell two throttled events apart
THROTTLE_KEY_FIELDS: Tuple[str, ...] = ("method", "selector", "phase")


def parse_event(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    """The event payload of a record, or None for plain text messages."""
    msg = record.getMessage()
    if not msg.startswith("{"):
        return None
    try:
        data = json.loads(msg)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict) or "event" not in data:
        return None
    return data


class JsonFormatter(logging.Formatter):
    """
    Flat JSON lines. Event payloads are merged into the record; anything
    else is kept as ``msg``. Record fields win over payload keys of the same
    name.
    """

    def format(self, record: logging.LogRecord) -> str:
        out: Dict[str, Any] = {}
        data = parse_event(record)
        if data is None:
            out["msg"] = record.getMessage()
        else:
            out.update(data)
        out.update(
            ts=record.created,
            ts_iso=datetime.fromtimestamp(record.created).isoformat(timespec="milliseconds"),
            level=record.levelname,
            logger=record.name,
        )
        if record.exc_info:
            out["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(out, separators=(",", ":"), default=str)


class EventQueueHandler(QueueHandler):
    """
    Bounded queue in front of ``target``; a ``QueueListener`` thread does the
    actual writes. Records that do not fit are counted and dropped.
    """

    def __init__(self, target: logging.Handler, max_queue_size: int = 10000):
        super().__init__(queue.Queue(maxsize=max_queue_size))
        self.target = target
        self.dropped = 0
        self._listener = QueueListener(self.queue, target, respect_handler_level=True)
        self._listener.start()
        self._closed = False
        atexit.register(self.close)

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        # render args now, keep exc_info for the target's formatter
        record.msg = record.getMessage()
        record.args = None
        return record

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            self.dropped += 1

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._listener.stop()
        if self.dropped:
            sys.stderr.write(f"[logging] dropped {self.dropped} records, queue full\n")
        self.target.close()
        super().close()


class ThrottledFilter(logging.Filter):
    """
    Lets the first of a burst of identical throttled events through, then
    drops repeats for ``cooldown_sec``. Events are identical when their
    ``event`` and ``key_fields`` values match.
    """

    def __init__(
        self,
        cooldown_sec: float = 30.0,
        events: Iterable[str] = THROTTLED_EVENTS,
        key_fields: Tuple[str, ...] = THROTTLE_KEY_FIELDS,
    ):
        super().__init__()
        self.cooldown_sec = cooldown_sec
        self.events = frozenset(events)
        self.key_fields = key_fields
        self._last_seen: Dict[Tuple[Any, ...], float] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        data = parse_event(record)
        if data is None or data["event"] not in self.events:
            return True
        key = (data["event"],) + tuple(str(data.get(f, "")) for f in self.key_fields)
        now = time.monotonic()
        last = self._last_seen.get(key)
        if last is not None and now - last < self.cooldown_sec:
            return False
        self._last_seen[key] = now
        return True


def resolve_level(level: Union[int, str]) -> int:
    """Numeric level for ``level``; unknown names fall back to INFO."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def build_logger(
    name: str = "fundtrade",
    level: Union[int, str] = logging.INFO,
    file_path: Optional[str] = "fundtrade.log",
    async_file: bool = True,
    throttle: bool = True,
) -> logging.Logger:
    """
    Configure the ``name`` logger once. Later calls only change the level,
    so every entry point can call it with its own settings.
    """
    level = resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        for h in logger.handlers:
            h.setLevel(level)
        return logger

    console = RichHandler(show_path=False, markup=False, rich_tracebacks=False)
    console.setFormatter(logging.Formatter("%(message)s"))
    console.setLevel(level)
    if throttle:
        console.addFilter(ThrottledFilter())
    logger.addHandler(console)

    if file_path:
        sink: logging.Handler = logging.FileHandler(file_path)
        sink.setFormatter(JsonFormatter())
        sink.setLevel(level)
        if async_file:
            sink = EventQueueHandler(sink)
            sink.setLevel(level)
        logger.addHandler(sink)

    logger.propagate = False
    return logger


def log_event(logger: logging.Logger, event: str, level: int = logging.INFO, **data) -> None:
    """
    Emit one structured event.

        log_event(log, "trade_rejected", level=logging.WARNING, code="FundIsShutDownError")
    """
    logger.log(level, json.dumps({"event": event, **data}, default=str))

"""Structured key/value logger writing logfmt or JSON lines to stderr."""

from __future__ import annotations

import json
import os
import sys
import threading
from datetime import datetime, timezone
from typing import Any, TextIO

_MISSING = "(MISSING)"
_WRITE_LOCK = threading.Lock()


def _to_text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _logfmt_value(value: Any) -> str:
    text = _to_text(value)
    if text and not any(c in ' ="\\' or not c.isprintable() for c in text):
        return text
    if not text:
        return ""
    return json.dumps(text, ensure_ascii=False)


def _json_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple)):
        return [_json_value(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _json_value(v) for k, v in value.items()}
    return _to_text(value)


class Logger:
    """A leveled logger carrying key/value context."""

    def __init__(
        self,
        fmt: str = "logfmt",
        debug_enabled: bool = False,
        context: tuple = (),
        *,
        stream: TextIO | None = None,
        enabled: bool = True,
    ) -> None:
        self._fmt = fmt
        self._debug_enabled = debug_enabled
        self._context = tuple(context)
        self._stream = stream
        self._enabled = enabled

    def debug(self, message: str, *args: Any) -> None:
        if self._debug_enabled:
            self._log("debug", ("msg", message, *args))

    def info(self, message: str, *args: Any) -> None:
        self._log("info", ("msg", message, *args))

    def warn(self, message: str, *args: Any) -> None:
        self._log("warn", ("msg", message, *args))

    def error(self, err: BaseException | str | None, message: str, *args: Any) -> None:
        self._log("error", ("msg", message, "err", err, *args))

    def with_(self, *args: Any) -> "Logger":
        """Return a logger that adds the given key/value pairs to every line."""
        return Logger(
            self._fmt,
            self._debug_enabled,
            self._context + args,
            stream=self._stream,
            enabled=self._enabled,
        )

    def is_debug_enabled(self) -> bool:
        return self._debug_enabled

    def _log(self, level: str, keyvals: tuple) -> None:
        if not self._enabled:
            return
        frame = sys._getframe(2)
        caller = f"{os.path.basename(frame.f_code.co_filename)}:{frame.f_lineno}"
        ts = datetime.now(timezone.utc).isoformat(timespec="microseconds")
        ts = ts.replace("+00:00", "Z")
        items = ["level", level, "ts", ts, "caller", caller, *self._context, *keyvals]
        if len(items) % 2:
            items.append(_MISSING)
        pairs = list(zip(items[::2], items[1::2]))

        if self._fmt == "json":
            line = json.dumps(
                {str(k): _json_value(v) for k, v in pairs}, ensure_ascii=False
            )
        else:
            line = " ".join(f"{_to_text(k)}={_logfmt_value(v)}" for k, v in pairs)

        stream = self._stream if self._stream is not None else sys.stderr
        with _WRITE_LOCK:
            stream.write(line + "\n")
            stream.flush()


def new_logger(fmt: str, debug_enabled: bool, *args: Any) -> Logger:
    """Create a logger writing to stderr, as JSON when ``fmt`` is "json"."""
    return Logger("json" if fmt == "json" else "logfmt", debug_enabled, args)


def new_nop_logger() -> Logger:
    """Create a logger that discards everything."""
    return Logger(enabled=False)
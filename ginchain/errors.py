"""Errors collected while a request runs through its handler chain."""

from __future__ import annotations

import dataclasses
import enum
import json
from collections.abc import Mapping
from typing import Any

ERROR_TYPE_NU = 2

_GO_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class ErrorType(enum.IntFlag):
    """Bit flags classifying an attached error."""

    PRIVATE = 1 << 0
    PUBLIC = 1 << 1
    RENDER = 1 << 62
    BIND = 1 << 63
    ANY = (1 << 64) - 1


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Error):
        return value.to_json()
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def _dumps(value: Any) -> str:
    """Compact JSON with sorted keys and HTML-sensitive characters escaped."""
    text = json.dumps(
        value,
        separators=(",", ":"),
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    )
    for char, escape in _GO_ESCAPES.items():
        text = text.replace(char, escape)
    return text


def _format_value(value: Any) -> str:
    """Render a value the way a default format verb shows it."""
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda item: str(item[0]))
        body = " ".join(f"{_format_value(k)}:{_format_value(v)}" for k, v in items)
        return f"map[{body}]"
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_format_value(item) for item in value) + "]"
    return str(value)


class Error(Exception):
    """An error attached to a context, with a type and optional metadata."""

    def __init__(self, err: BaseException, type: int = ErrorType.PRIVATE, meta: Any = None):
        super().__init__(err)
        self.err = err
        self.type = type
        self.meta = meta

    def __str__(self) -> str:
        return str(self.err)

    def __repr__(self) -> str:
        return f"Error(err={self.err!r}, type={self.type!r}, meta={self.meta!r})"

    def set_type(self, flags: int) -> "Error":
        """Set the error's type and return the error."""
        self.type = flags
        return self

    def set_meta(self, data: Any) -> "Error":
        """Set the error's metadata and return the error."""
        self.meta = data
        return self

    def to_json(self) -> Any:
        """Return a JSON-ready view of the error."""
        data: dict[str, Any] = {}
        meta = self.meta
        if meta is not None:
            if dataclasses.is_dataclass(meta) and not isinstance(meta, type):
                return meta
            if isinstance(meta, Mapping):
                for key, value in meta.items():
                    data[str(key)] = value
            else:
                data["meta"] = meta
        data.setdefault("error", str(self))
        return data

    def marshal_json(self) -> str:
        """Serialize the error as JSON text."""
        return _dumps(self.to_json())

    def is_type(self, flags: int) -> bool:
        """Report whether the error's type shares any bit with ``flags``."""
        return (int(self.type) & int(flags)) > 0


class ErrorMsgs(list):
    """A list of attached errors."""

    def by_type(self, typ: int) -> "ErrorMsgs":
        """Return the errors whose type matches ``typ``."""
        if not self:
            return ErrorMsgs()
        if typ == ErrorType.ANY:
            return self
        return ErrorMsgs(msg for msg in self if msg.is_type(typ))

    def last(self) -> Error | None:
        """Return the last error, or None when there are none."""
        return self[-1] if self else None

    def errors(self) -> list[str]:
        """Return the messages of all errors."""
        return [str(msg) for msg in self]

    def to_json(self) -> Any:
        """Return None, one error's JSON view, or a list of them."""
        if not self:
            return None
        if len(self) == 1:
            return self[0].to_json()
        return [msg.to_json() for msg in self]

    def marshal_json(self) -> str:
        """Serialize the errors as JSON text."""
        return _dumps(self.to_json())

    def __str__(self) -> str:
        lines = []
        for number, msg in enumerate(self, start=1):
            lines.append(f"Error #{number:02d}: {msg.err}\n")
            if msg.meta is not None:
                lines.append(f"     Meta: {_format_value(msg.meta)}\n")
        return "".join(lines)
"""The per-request context that carries a request through its handler chain."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from typing import Any

from .debug import _name_of_function
from .errors import Error, ErrorMsgs, ErrorType
from .inputs import InputMixin
from .rendering import RenderMixin
from .wire import Request, ResponseWriter

ABORT_INDEX = 127 // 2

Handler = Callable[["Context"], Any]


def last_handler(handlers: Sequence[Handler] | None) -> Handler | None:
    """Return the last handler of a chain, the main one, or None if empty."""
    return handlers[-1] if handlers else None


def _detached_writer(writer: ResponseWriter) -> ResponseWriter:
    """Return a fresh writer that keeps the recorded status but shares nothing."""
    clone = ResponseWriter()
    clone.write_header(writer.status())
    return clone


class Context(InputMixin, RenderMixin):
    """State of one request: handler chain, keys, errors, request and response."""

    def __init__(
        self,
        engine: Any = None,
        request: Request | None = None,
        writer: ResponseWriter | None = None,
    ):
        self.engine = engine
        self.request = request
        self.writer = writer if writer is not None else ResponseWriter()
        self.params: list[tuple[str, str]] = []
        self.handlers: list[Handler] | None = None
        self.index = -1
        self._full_path = ""
        self.keys: dict[str, Any] | None = None
        self.errors = ErrorMsgs()
        self.accepted = None
        self._query_cache = None
        self._form_cache = None
        self._same_site = ""
        self._keys_lock = threading.RLock()

    def reset(self) -> None:
        """Clear per-request state so the context can serve another request."""
        self.params = []
        self.handlers = None
        self.index = -1
        self._full_path = ""
        self.keys = None
        self.errors = ErrorMsgs()
        self._reset_rendering()
        self._reset_inputs()

    def copy(self) -> "Context":
        """Return a copy safe to use outside the request, e.g. in another thread."""
        cp = Context(
            engine=self.engine,
            request=self.request,
            writer=_detached_writer(self.writer),
        )
        cp.index = ABORT_INDEX
        cp.handlers = None
        with self._keys_lock:
            cp.keys = dict(self.keys or {})
        cp.params = list(self.params)
        return cp

    def handler_name(self) -> str:
        """Return the qualified name of the main handler."""
        return _name_of_function(last_handler(self.handlers))

    def handler_names(self) -> list[str]:
        """Return the qualified names of every handler in the chain."""
        return [_name_of_function(handler) for handler in self.handlers or []]

    def handler(self) -> Handler | None:
        """Return the main handler."""
        return last_handler(self.handlers)

    def full_path(self) -> str:
        """Return the matched route pattern, or '' when no route matched."""
        return self._full_path

    def next(self) -> None:
        """Run the pending handlers of the chain; for use inside middleware."""
        self.index += 1
        while self.handlers is not None and self.index < len(self.handlers):
            self.handlers[self.index](self)
            self.index += 1

    def is_aborted(self) -> bool:
        """Report whether the chain was aborted."""
        return self.index >= ABORT_INDEX

    def abort(self) -> None:
        """Stop pending handlers from running; the current one continues."""
        self.index = ABORT_INDEX

    def abort_with_status(self, code: int) -> None:
        """Abort and commit the given status code."""
        self.status(code)
        self.writer.write_header_now()
        self.abort()

    def abort_with_status_json(self, code: int, obj: Any) -> None:
        """Abort and write ``obj`` as JSON with the given status."""
        self.abort()
        self.json(code, obj)

    def abort_with_error(self, code: int, err: BaseException) -> Error:
        """Abort with a status and attach ``err`` to the context."""
        self.abort_with_status(code)
        return self.error(err)

    def error(self, err: BaseException | None) -> Error:
        """Attach an error to the context; raises ValueError if ``err`` is None."""
        if err is None:
            raise ValueError("err is nil")
        parsed = err if isinstance(err, Error) else Error(err, ErrorType.PRIVATE)
        self.errors.append(parsed)
        return parsed

    def set(self, key: str, value: Any) -> None:
        """Store a value under ``key`` for this request."""
        with self._keys_lock:
            if self.keys is None:
                self.keys = {}
            self.keys[key] = value

    def get(self, key: str) -> tuple[Any, bool]:
        """Return the value under ``key`` and whether it exists."""
        with self._keys_lock:
            if self.keys is not None and key in self.keys:
                return self.keys[key], True
        return None, False

    def must_get(self, key: str) -> Any:
        """Return the value under ``key``; raise KeyError if it is missing."""
        value, exists = self.get(key)
        if not exists:
            raise KeyError(f'Key "{key}" does not exist')
        return value

    def get_string(self, key: str) -> str:
        """Return the value under ``key`` if it is a string, else ''."""
        value, _ = self.get(key)
        return value if isinstance(value, str) else ""

    def get_bool(self, key: str) -> bool:
        """Return the value under ``key`` if it is a bool, else False."""
        value, _ = self.get(key)
        return value if isinstance(value, bool) else False

    def get_int(self, key: str) -> int:
        """Return the value under ``key`` if it is an int, else 0."""
        value, _ = self.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return 0

    def get_float(self, key: str) -> float:
        """Return the value under ``key`` if it is a float, else 0.0."""
        value, _ = self.get(key)
        return value if isinstance(value, float) else 0.0

    def value(self, key: Any) -> Any:
        """Return the request for key 0, a stored value for a string key, else None."""
        if type(key) is int and key == 0:
            return self.request
        if isinstance(key, str):
            return self.get(key)[0]
        return None
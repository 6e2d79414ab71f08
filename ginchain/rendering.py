"""Response rendering: status, headers, cookies and body formats."""

from __future__ import annotations

import base64
import dataclasses
import json
from collections.abc import Mapping, Sequence
from typing import Any, Protocol
from urllib.parse import quote_plus

from .errors import Error, ErrorMsgs
from .wire import Request, ResponseWriter

MIME_JSON = "application/json"
MIME_HTML = "text/html"
MIME_XML = "application/xml"
MIME_XML2 = "text/xml"
MIME_PLAIN = "text/plain"
MIME_YAML = "application/x-yaml"

SAME_SITE_NONE = "None"
SAME_SITE_LAX = "Lax"
SAME_SITE_STRICT = "Strict"
_SAME_SITE_MODES = frozenset({"", SAME_SITE_NONE, SAME_SITE_LAX, SAME_SITE_STRICT})

DEFAULT_SECURE_PREFIX = "while(1);"

_JSON_CONTENT_TYPE = "application/json; charset=utf-8"
_JSONP_CONTENT_TYPE = "application/javascript; charset=utf-8"
_ASCII_JSON_CONTENT_TYPE = "application/json"
_PLAIN_CONTENT_TYPE = "text/plain; charset=utf-8"

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_JS_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "<": "\\u003C",
    ">": "\\u003E",
    "&": "\\u0026",
    "=": "\\u003D",
}
_TOKEN_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789!#$%&'*+-.^_`|~"
)
_DOMAIN_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-.:")


class Renderer(Protocol):
    def render(self, writer: ResponseWriter) -> None: ...

    def write_content_type(self, writer: ResponseWriter) -> None: ...


def body_allowed_for_status(status: int) -> bool:
    """Report whether a response with this status may carry a body."""
    if 100 <= status <= 199:
        return False
    return status not in (204, 304)


def _prepare(value: Any) -> Any:
    """Turn a value into plain JSON data: maps sorted, records in field order."""
    if isinstance(value, Error):
        return _prepare(value.to_json())
    if isinstance(value, ErrorMsgs):
        return _prepare(value.to_json())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _prepare(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda item: str(item[0]))
        return {str(key): _prepare(item) for key, item in items}
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (list, tuple)):
        return [_prepare(item) for item in value]
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def _escape_html(text: str) -> str:
    for char, escape in _HTML_ESCAPES.items():
        text = text.replace(char, escape)
    return text


def _marshal(obj: Any, *, escape_html: bool = True, indent: int | None = None) -> str:
    separators = (",", ": ") if indent is not None else (",", ":")
    text = json.dumps(
        _prepare(obj),
        ensure_ascii=False,
        allow_nan=False,
        indent=indent,
        separators=separators,
    )
    return _escape_html(text) if escape_html else text


def _js_escape(text: str) -> str:
    out = []
    for char in text:
        if char in _JS_ESCAPES:
            out.append(_JS_ESCAPES[char])
        elif ord(char) < 0x20:
            out.append(f"\\u{ord(char):04X}")
        else:
            out.append(char)
    return "".join(out)


def _write_content_type(writer: ResponseWriter, value: str) -> None:
    if not writer.headers.values("Content-Type"):
        writer.headers.set("Content-Type", value)


@dataclasses.dataclass
class _JSON:
    data: Any

    def write_content_type(self, writer: ResponseWriter) -> None:
        _write_content_type(writer, _JSON_CONTENT_TYPE)

    def render(self, writer: ResponseWriter) -> None:
        self.write_content_type(writer)
        writer.write(_marshal(self.data))


@dataclasses.dataclass
class _IndentedJSON:
    data: Any

    def write_content_type(self, writer: ResponseWriter) -> None:
        _write_content_type(writer, _JSON_CONTENT_TYPE)

    def render(self, writer: ResponseWriter) -> None:
        self.write_content_type(writer)
        writer.write(_marshal(self.data, indent=4))


@dataclasses.dataclass
class _SecureJSON:
    prefix: str
    data: Any

    def write_content_type(self, writer: ResponseWriter) -> None:
        _write_content_type(writer, _JSON_CONTENT_TYPE)

    def render(self, writer: ResponseWriter) -> None:
        self.write_content_type(writer)
        text = _marshal(self.data)
        if text.startswith("[") and text.endswith("]"):
            writer.write(self.prefix)
        writer.write(text)


@dataclasses.dataclass
class _JsonpJSON:
    callback: str
    data: Any

    def write_content_type(self, writer: ResponseWriter) -> None:
        _write_content_type(writer, _JSONP_CONTENT_TYPE)

    def render(self, writer: ResponseWriter) -> None:
        self.write_content_type(writer)
        text = _marshal(self.data)
        if not self.callback:
            writer.write(text)
            return
        writer.write(_js_escape(self.callback) + "(" + text + ");")


@dataclasses.dataclass
class _AsciiJSON:
    data: Any

    def write_content_type(self, writer: ResponseWriter) -> None:
        _write_content_type(writer, _ASCII_JSON_CONTENT_TYPE)

    def render(self, writer: ResponseWriter) -> None:
        self.write_content_type(writer)
        text = _marshal(self.data)
        writer.write("".join(c if ord(c) < 128 else f"\\u{ord(c):04x}" for c in text))


@dataclasses.dataclass
class _PureJSON:
    data: Any

    def write_content_type(self, writer: ResponseWriter) -> None:
        _write_content_type(writer, _JSON_CONTENT_TYPE)

    def render(self, writer: ResponseWriter) -> None:
        self.write_content_type(writer)
        writer.write(_marshal(self.data, escape_html=False) + "\n")


@dataclasses.dataclass
class _String:
    format: str
    args: tuple

    def write_content_type(self, writer: ResponseWriter) -> None:
        _write_content_type(writer, _PLAIN_CONTENT_TYPE)

    def render(self, writer: ResponseWriter) -> None:
        self.write_content_type(writer)
        writer.write(self.format % self.args if self.args else self.format)


@dataclasses.dataclass
class _Data:
    content_type: str
    data: bytes

    def write_content_type(self, writer: ResponseWriter) -> None:
        _write_content_type(writer, self.content_type)

    def render(self, writer: ResponseWriter) -> None:
        self.write_content_type(writer)
        writer.write(self.data)


def _parse_accept(header: str) -> list[str]:
    accepted = []
    for part in header.split(","):
        media = part.partition(";")[0].strip()
        if media:
            accepted.append(media)
    return accepted


def _offer_matches(accepted: str, offer: str) -> bool:
    for position, char in enumerate(accepted):
        if char == "*":
            return True
        if position >= len(offer):
            return False
        if offer[position] == "*":
            return True
        if char != offer[position]:
            return False
    return True


def _sanitize_path(path: str) -> str:
    return "".join(c for c in path if 0x20 <= ord(c) < 0x7F and c != ";")


class RenderMixin:
    """Response-writing methods; expects ``writer``, ``request`` and ``engine``.

    ``engine`` carries ``secure_prefix``, the text put before JSON arrays
    by :meth:`secure_json`.
    """

    writer: ResponseWriter
    request: Request
    engine: Any
    accepted: list[str] | None = None
    _same_site: str = ""

    def _reset_rendering(self) -> None:
        self.accepted = None

    def status(self, code: int) -> None:
        """Set the response status code."""
        self.writer.write_header(code)

    def header(self, key: str, value: str) -> None:
        """Set a response header; an empty value removes it."""
        if value == "":
            self.writer.headers.delete(key)
        else:
            self.writer.headers.set(key, value)

    def set_same_site(self, same_site: str) -> None:
        """Choose the SameSite attribute for cookies set afterwards."""
        if same_site not in _SAME_SITE_MODES:
            raise ValueError(f"unknown SameSite mode: {same_site!r}")
        self._same_site = same_site

    def set_cookie(
        self,
        name: str,
        value: str,
        max_age: int,
        path: str,
        domain: str,
        secure: bool,
        http_only: bool,
    ) -> None:
        """Add a Set-Cookie header; cookies with invalid names are dropped."""
        if not name or not set(name) <= _TOKEN_CHARS:
            return
        parts = [f"{name}={quote_plus(value)}"]
        parts.append(f"Path={_sanitize_path(path or '/')}")
        domain = domain.lstrip(".") if domain else ""
        if domain and set(domain) <= _DOMAIN_CHARS:
            parts.append(f"Domain={domain}")
        if max_age > 0:
            parts.append(f"Max-Age={max_age}")
        elif max_age < 0:
            parts.append("Max-Age=0")
        if http_only:
            parts.append("HttpOnly")
        if secure:
            parts.append("Secure")
        if self._same_site:
            parts.append(f"SameSite={self._same_site}")
        self.writer.headers.add("Set-Cookie", "; ".join(parts))

    def render(self, code: int, renderer: Renderer) -> None:
        """Set the status and let ``renderer`` write the response."""
        self.status(code)
        if not body_allowed_for_status(code):
            renderer.write_content_type(self.writer)
            self.writer.write_header_now()
            return
        renderer.render(self.writer)

    def json(self, code: int, obj: Any) -> None:
        """Write ``obj`` as compact JSON with HTML characters escaped."""
        self.render(code, _JSON(obj))

    def indented_json(self, code: int, obj: Any) -> None:
        """Write ``obj`` as JSON indented by four spaces."""
        self.render(code, _IndentedJSON(obj))

    def secure_json(self, code: int, obj: Any) -> None:
        """Write ``obj`` as JSON, prefixing arrays with the engine's prefix."""
        self.render(code, _SecureJSON(self.engine.secure_prefix, obj))

    def jsonp(self, code: int, obj: Any) -> None:
        """Write ``obj`` as JSON wrapped in the ``callback`` query value, if any."""
        callbacks = self.request.query_values().get("callback")
        callback = callbacks[0] if callbacks else ""
        if not callback:
            self.render(code, _JSON(obj))
            return
        self.render(code, _JsonpJSON(callback, obj))

    def ascii_json(self, code: int, obj: Any) -> None:
        """Write ``obj`` as JSON with non-ASCII characters escaped."""
        self.render(code, _AsciiJSON(obj))

    def pure_json(self, code: int, obj: Any) -> None:
        """Write ``obj`` as JSON without escaping HTML characters."""
        self.render(code, _PureJSON(obj))

    def string(self, code: int, format: str, *args: Any) -> None:
        """Write formatted text as plain text."""
        self.render(code, _String(format, args))

    def data(self, code: int, content_type: str, data: bytes) -> None:
        """Write raw bytes with the given content type."""
        self.render(code, _Data(content_type, bytes(data)))

    def negotiate_format(self, *args: str) -> str:
        """Return the first offered format the client accepts, or ''."""
        if not args:
            raise ValueError("you must provide at least one offer")
        if self.accepted is None:
            self.accepted = _parse_accept(self.request.headers.get("Accept"))
        if not self.accepted:
            return args[0]
        for accepted in self.accepted:
            for offer in args:
                if _offer_matches(accepted, offer):
                    return offer
        return ""

    def set_accepted(self, *args: str) -> None:
        """Override the formats the client accepts."""
        self.accepted = list(args)


__all__: Sequence[str] = (
    "RenderMixin",
    "body_allowed_for_status",
    "MIME_JSON",
    "MIME_HTML",
    "MIME_XML",
    "MIME_XML2",
    "MIME_PLAIN",
    "MIME_YAML",
    "SAME_SITE_NONE",
    "SAME_SITE_LAX",
    "SAME_SITE_STRICT",
    "DEFAULT_SECURE_PREFIX",
)
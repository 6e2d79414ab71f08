"""HTTP request and response primitives used by the handler chain."""

from __future__ import annotations

import io
from collections.abc import Iterable, Iterator, Mapping
from email.message import Message
from email.utils import collapse_rfc2231_value
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from .bytesconv import bytes_to_string
from .debug import debug_print

MIME_POST_FORM = "application/x-www-form-urlencoded"
MIME_MULTIPART_POST_FORM = "multipart/form-data"
DEFAULT_STATUS = 200
NO_WRITTEN = -1

_FORM_METHODS = frozenset({"POST", "PUT", "PATCH"})
_TOKEN_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789!#$%&'*+-.^_`|~"
)


def _canonical_key(key: str) -> str:
    """Return the canonical form of a header name, e.g. ``X-Real-Ip``."""
    if not key or not set(key) <= _TOKEN_CHARS:
        return key
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


def _parse_query(raw: str) -> dict[str, list[str]]:
    values: dict[str, list[str]] = {}
    for key, value in parse_qsl(raw, keep_blank_values=True):
        values.setdefault(key, []).append(value)
    return values


def _parse_header(value: str) -> tuple[str, dict[str, str]]:
    """Split a header value into its lower-cased main part and its parameters."""
    main = value.partition(";")[0].strip().lower()
    message = Message()
    message["X-Value"] = value
    params = {
        name.lower(): collapse_rfc2231_value(param)
        for name, param in (message.get_params(header="x-value") or [])[1:]
    }
    return main, params


def _parse_multipart(
    body: bytes, boundary: str
) -> tuple[dict[str, list[str]], dict[str, list[tuple[str, bytes]]]]:
    delimiter = b"--" + boundary.encode("utf-8")
    chunks = body.split(delimiter)
    if len(chunks) < 2:
        raise ValueError("multipart: NextPart: EOF")
    fields: dict[str, list[str]] = {}
    files: dict[str, list[tuple[str, bytes]]] = {}
    for chunk in chunks[1:]:
        if chunk.startswith(b"--"):
            break
        if chunk.startswith(b"\r\n"):
            chunk = chunk[2:]
        if chunk.endswith(b"\r\n"):
            chunk = chunk[:-2]
        head, separator, content = chunk.partition(b"\r\n\r\n")
        if not separator:
            head, separator, content = chunk.partition(b"\r\n")
            if not separator or head:
                raise ValueError("multipart: malformed part")
        part_headers = Headers()
        for line in filter(None, head.split(b"\r\n")):
            name, colon, value = bytes_to_string(line).partition(":")
            if not colon:
                raise ValueError(f"multipart: malformed header line {name!r}")
            part_headers.add(name.strip(), value.strip())
        _, params = _parse_header(part_headers.get("Content-Disposition"))
        name = params.get("name")
        if not name:
            continue
        if "filename" in params:
            files.setdefault(name, []).append((params["filename"], content))
        else:
            fields.setdefault(name, []).append(bytes_to_string(content))
    return fields, files


class Headers:
    """Case-insensitive, multi-valued HTTP header map."""

    def __init__(self, initial: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None):
        self._values: dict[str, list[str]] = {}
        if initial is None:
            return
        pairs = initial.items() if isinstance(initial, Mapping) else initial
        for key, value in pairs:
            for item in value if isinstance(value, (list, tuple)) else [value]:
                self.add(key, item)

    def get(self, key: str) -> str:
        """Return the first value for ``key``, or an empty string."""
        values = self._values.get(_canonical_key(key))
        return values[0] if values else ""

    def values(self, key: str) -> list[str]:
        """Return every value stored for ``key``."""
        return list(self._values.get(_canonical_key(key), []))

    def set(self, key: str, value: str) -> None:
        """Replace the values of ``key`` with ``value``."""
        self._values[_canonical_key(key)] = [value]

    def add(self, key: str, value: str) -> None:
        """Append ``value`` to the values of ``key``."""
        self._values.setdefault(_canonical_key(key), []).append(value)

    def delete(self, key: str) -> None:
        """Remove every value of ``key``."""
        self._values.pop(_canonical_key(key), None)

    def items(self) -> list[tuple[str, list[str]]]:
        return [(key, list(values)) for key, values in self._values.items()]

    def __getitem__(self, key: str) -> list[str]:
        return self._values[_canonical_key(key)]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and _canonical_key(key) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Headers({self._values!r})"


class NoCookieError(LookupError):
    """Raised when a request carries no cookie of the wanted name."""

    def __init__(self, name: str):
        super().__init__(f"named cookie not present: {name}")
        self.name = name


class Request:
    """An incoming HTTP request."""

    def __init__(
        self,
        method: str = "GET",
        target: str = "/",
        body: bytes | str | None = b"",
        headers: Headers | Mapping[str, Any] | None = None,
        remote_addr: str = "",
    ):
        self.method = method
        parts = urlsplit(target)
        self.host = parts.netloc
        self.path = parts.path
        self.raw_query = parts.query
        self.headers = headers if isinstance(headers, Headers) else Headers(headers)
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.body = io.BytesIO(body or b"")
        self.remote_addr = remote_addr
        self.files: dict[str, list[tuple[str, bytes]]] = {}
        self._form: dict[str, list[str]] | None = None

    def query_values(self) -> dict[str, list[str]]:
        """Parse the URL query into a map of value lists."""
        return _parse_query(self.raw_query)

    def form_values(self) -> dict[str, list[str]]:
        """Parse the body as a url-encoded or multipart form, once.

        Raises ValueError for a malformed multipart body.
        """
        if self._form is not None:
            return self._form
        form: dict[str, list[str]] = {}
        self._form = form
        media_type, params = _parse_header(self.headers.get("Content-Type"))
        if media_type == MIME_POST_FORM and self.method in _FORM_METHODS:
            form.update(_parse_query(bytes_to_string(self.body.read())))
        elif media_type == MIME_MULTIPART_POST_FORM:
            boundary = params.get("boundary")
            if not boundary:
                raise ValueError("no multipart boundary param in Content-Type")
            fields, files = _parse_multipart(self.body.read(), boundary)
            for key, values in fields.items():
                form.setdefault(key, []).extend(values)
            self.files = files
        return form

    def cookie(self, name: str) -> str:
        """Return the raw value of the named cookie; raise NoCookieError if absent."""
        for line in self.headers.values("Cookie"):
            for part in line.split(";"):
                key, separator, value = part.strip().partition("=")
                if separator and key == name:
                    if len(value) > 1 and value[0] == value[-1] == '"':
                        value = value[1:-1]
                    return value
        raise NoCookieError(name)


class ResponseWriter:
    """Collects the status, headers and body of a response."""

    def __init__(self) -> None:
        self.headers = Headers()
        self.body = bytearray()
        self.code = DEFAULT_STATUS
        self._status = DEFAULT_STATUS
        self._size = NO_WRITTEN

    @property
    def size(self) -> int:
        return self._size

    def write_header(self, code: int) -> None:
        """Record the status code to send; non-positive codes are ignored."""
        if code > 0 and self._status != code:
            if self.written():
                debug_print(
                    "[WARNING] Headers were already written. "
                    "Wanted to override status code %d with %d",
                    self._status,
                    code,
                )
            self._status = code

    def write_header_now(self) -> None:
        """Commit the status code if nothing was written yet."""
        if not self.written():
            self._size = 0
            self.code = self._status

    def write(self, data: bytes | str) -> int:
        """Commit headers and append ``data`` to the body."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.write_header_now()
        self.body.extend(data)
        self._size += len(data)
        return len(data)

    def written(self) -> bool:
        """Report whether headers have been committed."""
        return self._size != NO_WRITTEN

    def status(self) -> int:
        """Return the status code recorded so far."""
        return self._status
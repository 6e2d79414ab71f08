"""Access to request input: path params, query, form, headers and cookies."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import unquote_plus

from .debug import debug_print
from .wire import Request


def _split_host(hostport: str) -> str:
    """Return the host part of ``host:port``; raise ValueError without a port."""
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0 or hostport[end + 1 : end + 2] != ":" or ":" in hostport[end + 2 :]:
            raise ValueError(f"malformed address {hostport!r}")
        return hostport[1:end]
    host, colon, _ = hostport.rpartition(":")
    if not colon:
        raise ValueError(f"missing port in address {hostport!r}")
    if ":" in host:
        raise ValueError(f"too many colons in address {hostport!r}")
    return host


def _filter_flags(content: str) -> str:
    return re.split(r"[ ;]", content, maxsplit=1)[0]


def _lookup_map(values: Mapping[str, Sequence[str]], key: str) -> tuple[dict[str, str], bool]:
    """Collect ``key[sub]`` entries into a map of sub-key to first value."""
    found: dict[str, str] = {}
    exists = False
    for name, items in values.items():
        open_at = name.find("[")
        if open_at < 1 or name[:open_at] != key:
            continue
        rest = name[open_at + 1 :]
        close_at = rest.find("]")
        if close_at >= 1 and items:
            exists = True
            found[rest[:close_at]] = items[0]
    return found, exists


class InputMixin:
    """Request-reading methods; expects ``request``, ``params`` and ``engine``.

    ``params`` is a sequence of ``(key, value)`` pairs and ``engine`` carries
    ``forwarded_by_client_ip`` and ``app_engine``.
    """

    request: Request
    params: Sequence[tuple[str, str]]
    engine: Any
    _query_cache: dict[str, list[str]] | None = None
    _form_cache: dict[str, list[str]] | None = None

    def _reset_inputs(self) -> None:
        self._query_cache = None
        self._form_cache = None

    def _queries(self) -> dict[str, list[str]]:
        if self._query_cache is None:
            self._query_cache = self.request.query_values()
        return self._query_cache

    def _forms(self) -> dict[str, list[str]]:
        if self._form_cache is None:
            try:
                self._form_cache = self.request.form_values()
            except ValueError as exc:
                debug_print("error on parse multipart form array: %s", exc)
                self._form_cache = {}
        return self._form_cache

    def _request_header(self, key: str) -> str:
        return self.request.headers.get(key)

    def param(self, key: str) -> str:
        """Return the value of the URL path parameter ``key``, or ''."""
        return next((value for name, value in self.params if name == key), "")

    def query(self, key: str) -> str:
        """Return the first query value for ``key``, or ''."""
        return self.get_query(key)[0]

    def default_query(self, key: str, default_value: str) -> str:
        """Return the first query value for ``key``, or ``default_value``."""
        value, exists = self.get_query(key)
        return value if exists else default_value

    def get_query(self, key: str) -> tuple[str, bool]:
        """Return the first query value and whether the key is present."""
        values, exists = self.get_query_array(key)
        return (values[0], True) if exists else ("", False)

    def query_array(self, key: str) -> list[str]:
        """Return every query value for ``key``."""
        return self.get_query_array(key)[0]

    def get_query_array(self, key: str) -> tuple[list[str], bool]:
        """Return every query value for ``key`` and whether there is one."""
        values = self._queries().get(key)
        return (values, True) if values else ([], False)

    def query_map(self, key: str) -> dict[str, str]:
        """Return the ``key[sub]`` query entries as a map."""
        return self.get_query_map(key)[0]

    def get_query_map(self, key: str) -> tuple[dict[str, str], bool]:
        """Return the ``key[sub]`` query entries and whether any exists."""
        return _lookup_map(self._queries(), key)

    def post_form(self, key: str) -> str:
        """Return the first form value for ``key``, or ''."""
        return self.get_post_form(key)[0]

    def default_post_form(self, key: str, default_value: str) -> str:
        """Return the first form value for ``key``, or ``default_value``."""
        value, exists = self.get_post_form(key)
        return value if exists else default_value

    def get_post_form(self, key: str) -> tuple[str, bool]:
        """Return the first form value and whether the key is present."""
        values, exists = self.get_post_form_array(key)
        return (values[0], True) if exists else ("", False)

    def post_form_array(self, key: str) -> list[str]:
        """Return every form value for ``key``."""
        return self.get_post_form_array(key)[0]

    def get_post_form_array(self, key: str) -> tuple[list[str], bool]:
        """Return every form value for ``key`` and whether there is one."""
        values = self._forms().get(key)
        return (values, True) if values else ([], False)

    def post_form_map(self, key: str) -> dict[str, str]:
        """Return the ``key[sub]`` form entries as a map."""
        return self.get_post_form_map(key)[0]

    def get_post_form_map(self, key: str) -> tuple[dict[str, str], bool]:
        """Return the ``key[sub]`` form entries and whether any exists."""
        return _lookup_map(self._forms(), key)

    def client_ip(self) -> str:
        """Best-effort address of the client, honouring proxy headers."""
        if self.engine.forwarded_by_client_ip:
            ip = self._request_header("X-Forwarded-For").split(",")[0].strip()
            if not ip:
                ip = self._request_header("X-Real-Ip").strip()
            if ip:
                return ip
        if self.engine.app_engine:
            addr = self._request_header("X-Appengine-Remote-Addr")
            if addr:
                return addr
        try:
            return _split_host(self.request.remote_addr.strip())
        except ValueError:
            return ""

    def content_type(self) -> str:
        """Return the request's media type without parameters."""
        return _filter_flags(self._request_header("Content-Type"))

    def is_websocket(self) -> bool:
        """Report whether the request asks for a websocket upgrade."""
        return (
            "upgrade" in self._request_header("Connection").lower()
            and self._request_header("Upgrade").lower() == "websocket"
        )

    def get_header(self, key: str) -> str:
        """Return a request header value, or ''."""
        return self._request_header(key)

    def get_raw_data(self) -> bytes:
        """Read the rest of the request body."""
        return self.request.body.read()

    def cookie(self, name: str) -> str:
        """Return the unescaped named cookie; raise NoCookieError if absent."""
        return unquote_plus(self.request.cookie(name))
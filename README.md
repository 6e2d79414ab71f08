# ginchain

A per-request `Context` that carries an HTTP request through a chain of handlers,
with helpers for reading the request and rendering the response.

## Modules

- `ginchain.context`: `Context`, the state of one request.
  - Flow: `next`, `abort`, `is_aborted`, `abort_with_status`,
    `abort_with_status_json`, `abort_with_error`.
  - Per-request values: `set`, `get` (returns `(value, exists)`), `must_get`
    (raises `KeyError`), `get_string`, `get_bool`, `get_int`, `get_float`, `value`.
  - Errors: `error` attaches an exception to `errors` (raises `ValueError` for `None`).
  - `reset`, `copy`, `handler`, `handler_name`, `handler_names`, `full_path`,
    and the module function `last_handler`.
- `ginchain.inputs`: `InputMixin`, mixed into `Context`: `param`, `query`,
  `default_query`, `get_query`, `query_array`, `query_map`, `post_form`,
  `default_post_form`, `get_post_form`, `post_form_array`, `post_form_map`
  (and their `get_...` forms), `client_ip`, `content_type`, `is_websocket`,
  `get_header`, `get_raw_data`, `cookie`.
- `ginchain.rendering`: `RenderMixin`, mixed into `Context`: `status`, `header`,
  `set_same_site`, `set_cookie`, `render`, `json`, `indented_json`,
  `secure_json`, `jsonp`, `ascii_json`, `pure_json`, `string`, `data`,
  `negotiate_format`, `set_accepted`; plus `body_allowed_for_status` and the
  `MIME_*` constants.
- `ginchain.wire`: `Headers` (case-insensitive, multi-valued), `Request`
  (query, url-encoded and multipart form parsing, cookies) and `ResponseWriter`
  (status, headers and body of the response).
- `ginchain.errors`: `ErrorType` flags, `Error` (`set_type`, `set_meta`,
  `to_json`, `marshal_json`, `is_type`) and `ErrorMsgs` (`by_type`, `last`,
  `errors`, `to_json`, `marshal_json`).
- `ginchain.debug`: `set_mode`, `mode`, `is_debugging`, `debug_print`,
  `debug_print_error`, `debug_print_route`; the mode starts from the
  `GIN_MODE` environment variable (`debug`, `release` or `test`).
- `ginchain.fs`: `DirFS`, `OnlyFilesFS` (refuses to list directories) and `make_dir`.
- `ginchain.bytesconv`: `string_to_bytes` and `bytes_to_string`.

## Installation

```
pip install .
```

## Example

A `Context` needs an object carrying the settings it reads:
`forwarded_by_client_ip`, `app_engine` and `secure_prefix`.

```python
from types import SimpleNamespace

from ginchain.context import Context
from ginchain.rendering import DEFAULT_SECURE_PREFIX
from ginchain.wire import Request

settings = SimpleNamespace(
    forwarded_by_client_ip=True,
    app_engine=False,
    secure_prefix=DEFAULT_SECURE_PREFIX,
)
request = Request("GET", "/hello?name=world", remote_addr="10.0.0.1:5000")
c = Context(engine=settings, request=request)
c.params = [("id", "42")]


def identify(c):
    c.set("user", "guest")


def hello(c):
    c.json(200, {"id": c.param("id"), "name": c.query("name"), "user": c.get_string("user")})


c.handlers = [identify, hello]
c.next()
print(c.writer.code, bytes(c.writer.body))
# 200 b'{"id":"42","name":"world","user":"guest"}'
```

A middleware may call `c.next()` to run the rest of the chain inside itself,
or `c.abort()` to stop the handlers still pending.

## What it does not do

There is no engine in this package: no route registration, no path matching,
no 404/405 fallback handling and no server. The caller builds the `Request`,
fills in `params` and `handlers` on the `Context`, runs `next()`, and reads the
result from the `ResponseWriter`. HTML templates, XML, YAML, Protocol Buffers,
redirects, file serving and server-sent events are not rendered.

## Running the tests

```
pip install .[test]
pytest
```
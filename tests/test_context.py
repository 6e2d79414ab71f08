import dataclasses
from types import SimpleNamespace

import pytest

from ginchain.context import ABORT_INDEX, Context, last_handler
from ginchain.errors import Error, ErrorType
from ginchain.wire import Request


def make_engine():
    return SimpleNamespace(
        forwarded_by_client_ip=True, app_engine=False, secure_prefix="while(1);"
    )


def make_context(request=None):
    return Context(engine=make_engine(), request=request)


def handler_name_test(c):
    pass


def handler_name_test2(c):
    pass


def test_reset():
    c = make_context()
    writer = c.writer
    c.index = 2
    c.params = [("", "")]
    c.error(RuntimeError("test"))
    c.set("foo", "bar")
    c.accepted = ["text/html"]
    c.reset()

    assert not c.is_aborted()
    assert c.keys is None
    assert c.accepted is None
    assert len(c.errors) == 0
    assert c.errors.errors() == []
    assert len(c.errors.by_type(ErrorType.ANY)) == 0
    assert c.params == []
    assert c.index == -1
    assert c.writer is writer


def test_handlers_last():
    c = make_context()
    assert c.handlers is None
    assert last_handler(c.handlers) is None

    c.handlers = []
    assert last_handler(c.handlers) is None

    def f(_):
        pass

    def g(_):
        pass

    c.handlers = [f]
    assert last_handler(c.handlers) is f
    c.handlers = [f, g]
    assert last_handler(c.handlers) is g


def test_set_get():
    c = make_context()
    c.set("foo", "bar")

    assert c.get("foo") == ("bar", True)
    assert c.get("foo2") == (None, False)
    assert c.must_get("foo") == "bar"
    with pytest.raises(KeyError):
        c.must_get("no_exist")


def test_set_get_values():
    c = make_context()
    c.set("string", "this is a string")
    c.set("int", -42)
    c.set("float", 4.2)
    assert c.must_get("string") == "this is a string"
    assert c.must_get("int") == -42
    assert c.must_get("float") == 4.2


def test_typed_getters():
    c = make_context()
    c.set("string", "this is a string")
    c.set("bool", True)
    c.set("int", 1)
    c.set("big", 42424242424242)
    c.set("float", 4.2)

    assert c.get_string("string") == "this is a string"
    assert c.get_bool("bool") is True
    assert c.get_int("int") == 1
    assert c.get_int("big") == 42424242424242
    assert c.get_float("float") == 4.2


def test_typed_getters_wrong_type_or_missing():
    c = make_context()
    c.set("int", 1)
    c.set("bool", True)
    assert c.get_string("int") == ""
    assert c.get_bool("int") is False
    assert c.get_int("bool") == 0
    assert c.get_float("int") == 0.0
    assert c.get_string("missing") == ""


def test_keys_without_engine():
    c = Context()
    c.set("foo", "bar")
    assert c.get("foo") == ("bar", True)
    assert c.get("foo2") == (None, False)


def test_copy():
    c = make_context(Request("POST", "/hola"))
    c.index = 2
    c.handlers = [lambda ctx: None]
    c.params = [("foo", "bar")]
    c.set("foo", "bar")

    cp = c.copy()
    assert cp.handlers is None
    assert cp.request is c.request
    assert cp.index == ABORT_INDEX
    assert cp.keys == c.keys
    assert cp.engine is c.engine
    assert cp.params == c.params
    cp.set("foo", "notBar")
    assert c.keys["foo"] == "bar"
    assert cp.keys["foo"] == "notBar"


def test_copy_writer_is_detached():
    c = make_context(Request("GET", "/"))
    cp = c.copy()
    cp.writer.write(b"data")
    assert bytes(c.writer.body) == b""
    assert bytes(cp.writer.body) == b"data"


def test_copy_params_independent():
    c = make_context()
    c.params = [("name", "name1")]
    cp = c.copy()
    c.params.append(("other", "x"))
    assert cp.param("name") == "name1"
    assert cp.params == [("name", "name1")]


def test_handler_name():
    c = make_context()
    c.handlers = [lambda ctx: None, handler_name_test]
    name = c.handler_name()
    assert name.split(".")[-1] == "handler_name_test"
    assert name.split(".")[-2] == "test_context"


def test_handler_names():
    c = make_context()
    c.handlers = [lambda ctx: None, handler_name_test, lambda ctx: None, handler_name_test2]
    names = c.handler_names()
    assert len(names) == 4
    assert names[1].endswith(".handler_name_test")
    assert names[3].endswith(".handler_name_test2")
    assert "<lambda>" in names[0]


def test_handler():
    c = make_context()
    c.handlers = [lambda ctx: None, handler_name_test]
    assert c.handler() is handler_name_test


def test_full_path_default_empty():
    c = make_context()
    assert c.full_path() == ""


def test_next_runs_chain_in_order():
    c = make_context()
    calls = []

    def middleware(ctx):
        calls.append("before")
        ctx.next()
        calls.append("after")

    c.handlers = [middleware, lambda ctx: calls.append("main")]
    c.next()
    assert calls == ["before", "main", "after"]


def test_abort_stops_pending_handlers():
    c = make_context()
    calls = []

    def guard(ctx):
        calls.append("guard")
        ctx.abort()

    c.handlers = [guard, lambda ctx: calls.append("main")]
    c.next()
    assert calls == ["guard"]
    assert c.is_aborted()


def test_is_aborted():
    c = make_context()
    assert not c.is_aborted()
    c.abort()
    assert c.is_aborted()
    c.next()
    assert c.is_aborted()
    c.index += 1
    assert c.is_aborted()


def test_abort_with_status():
    c = make_context()
    c.index = 4
    c.abort_with_status(401)
    assert c.index == ABORT_INDEX
    assert c.writer.status() == 401
    assert c.writer.code == 401
    assert c.is_aborted()


@dataclasses.dataclass
class JSONAbortMsg:
    foo: str
    bar: str


def test_abort_with_status_json():
    c = make_context()
    c.index = 4
    c.abort_with_status_json(415, JSONAbortMsg(foo="fooValue", bar="barValue"))

    assert c.index == ABORT_INDEX
    assert c.writer.status() == 415
    assert c.writer.code == 415
    assert c.is_aborted()
    assert c.writer.headers.get("Content-Type") == "application/json; charset=utf-8"
    assert bytes(c.writer.body) == b'{"foo":"fooValue","bar":"barValue"}'


def test_error():
    c = make_context()
    assert len(c.errors) == 0

    first = RuntimeError("first error")
    c.error(first)
    assert len(c.errors) == 1
    assert str(c.errors) == "Error #01: first error\n"

    second = RuntimeError("second error")
    c.error(Error(second, ErrorType.PUBLIC, "some data 2"))
    assert len(c.errors) == 2

    assert c.errors[0].err is first
    assert c.errors[0].meta is None
    assert c.errors[0].type == ErrorType.PRIVATE

    assert c.errors[1].err is second
    assert c.errors[1].meta == "some data 2"
    assert c.errors[1].type == ErrorType.PUBLIC

    assert c.errors.last() is c.errors[1]

    with pytest.raises(ValueError):
        c.error(None)


def test_typed_error():
    c = make_context()
    c.error(RuntimeError("externo 0")).set_type(ErrorType.PUBLIC)
    c.error(RuntimeError("interno 0")).set_type(ErrorType.PRIVATE)

    assert [e.type for e in c.errors.by_type(ErrorType.PUBLIC)] == [ErrorType.PUBLIC]
    assert [e.type for e in c.errors.by_type(ErrorType.PRIVATE)] == [ErrorType.PRIVATE]
    assert c.errors.errors() == ["externo 0", "interno 0"]


def test_abort_with_error():
    c = make_context()
    err = c.abort_with_error(401, RuntimeError("bad input")).set_meta("some input")

    assert c.writer.code == 401
    assert c.index == ABORT_INDEX
    assert c.is_aborted()
    assert err.meta == "some input"
    assert c.errors.last() is err


def test_value():
    request = Request("POST", "/", body='{"foo":"bar", "bar":"foo"}')
    c = make_context(request)
    assert c.value(0) is request
    assert c.value("foo") is None

    c.set("foo", "bar")
    assert c.value("foo") == "bar"
    assert c.value(1) is None
    assert c.value(False) is None


def test_reset_in_handler():
    c = make_context()
    seen = []

    def resetter(ctx):
        ctx.reset()
        seen.append(ctx.index)

    c.handlers = [resetter]
    c.next()
    assert seen == [-1]
    assert c.handlers is None


def test_inputs_and_rendering_through_context():
    c = make_context(Request("GET", "http://example.com/?foo=bar"))
    assert c.query("foo") == "bar"
    c.string(201, "test %s %d", "string", 2)
    assert c.writer.code == 201
    assert bytes(c.writer.body) == b"test string 2"
from dataclasses import dataclass

import pytest

from ginchain.errors import Error, ErrorMsgs, ErrorType


def test_error():
    base = ValueError("test error")
    err = Error(base, ErrorType.PRIVATE)
    assert str(err) == str(base)
    assert err.to_json() == {"error": "test error"}

    assert err.set_type(ErrorType.PUBLIC) is err
    assert err.type == ErrorType.PUBLIC

    assert err.set_meta("some data") is err
    assert err.meta == "some data"
    assert err.to_json() == {"error": "test error", "meta": "some data"}
    assert err.marshal_json() == '{"error":"test error","meta":"some data"}'

    err.set_meta({"status": "200", "data": "some data"})
    assert err.to_json() == {"error": "test error", "status": "200", "data": "some data"}

    err.set_meta({"error": "custom error", "status": "200", "data": "some data"})
    assert err.to_json() == {"error": "custom error", "status": "200", "data": "some data"}


def test_error_struct_meta_returned_as_is():
    @dataclass
    class CustomError:
        status: str
        data: str

    err = Error(ValueError("test error"))
    err.set_meta(CustomError(status="200", data="other data"))
    assert err.to_json() == CustomError(status="200", data="other data")


def test_error_json_escapes_html():
    err = Error(ValueError("<b>"))
    assert err.marshal_json() == '{"error":"\\u003cb\\u003e"}'


def test_error_is_type_and_raisable():
    err = Error(KeyError("x"), ErrorType.PUBLIC)
    assert err.is_type(ErrorType.PUBLIC)
    assert not err.is_type(ErrorType.PRIVATE)
    assert err.is_type(ErrorType.ANY)
    with pytest.raises(Error) as info:
        raise err
    assert info.value.err.args == ("x",)


def test_error_slice():
    errs = ErrorMsgs(
        [
            Error(ValueError("first"), ErrorType.PRIVATE),
            Error(ValueError("second"), ErrorType.PRIVATE, meta="some data"),
            Error(ValueError("third"), ErrorType.PUBLIC, meta={"status": "400"}),
        ]
    )

    assert errs.by_type(ErrorType.ANY) == errs
    assert str(errs.last()) == "third"
    assert errs.errors() == ["first", "second", "third"]
    assert errs.by_type(ErrorType.PUBLIC).errors() == ["third"]
    assert errs.by_type(ErrorType.PRIVATE).errors() == ["first", "second"]
    assert errs.by_type(ErrorType.PUBLIC | ErrorType.PRIVATE).errors() == [
        "first",
        "second",
        "third",
    ]
    assert len(errs.by_type(ErrorType.BIND)) == 0
    assert str(errs.by_type(ErrorType.BIND)) == ""

    assert str(errs) == (
        "Error #01: first\n"
        "Error #02: second\n"
        "     Meta: some data\n"
        "Error #03: third\n"
        "     Meta: map[status:400]\n"
    )
    assert errs.to_json() == [
        {"error": "first"},
        {"error": "second", "meta": "some data"},
        {"error": "third", "status": "400"},
    ]
    assert errs.marshal_json() == (
        '[{"error":"first"},{"error":"second","meta":"some data"},'
        '{"error":"third","status":"400"}]'
    )


def test_error_slice_single():
    errs = ErrorMsgs([Error(ValueError("first"), ErrorType.PRIVATE)])
    assert errs.to_json() == {"error": "first"}
    assert errs.marshal_json() == '{"error":"first"}'


def test_error_slice_empty():
    errs = ErrorMsgs()
    assert errs.last() is None
    assert errs.to_json() is None
    assert str(errs) == ""
    assert errs.errors() == []
    assert len(errs.by_type(ErrorType.ANY)) == 0
"""Run mode and debug output."""

from __future__ import annotations

import os
import platform
import sys
from collections.abc import Callable, Sequence
from typing import Any, TextIO

DEBUG_MODE = "debug"
RELEASE_MODE = "release"
TEST_MODE = "test"
ENV_MODE = "GIN_MODE"

SUPPORT_MIN_MINOR = 9

# Output streams; None means the current sys.stdout / sys.stderr.
default_writer: TextIO | None = None
default_error_writer: TextIO | None = None

# Optional hook called instead of the default route line.
debug_print_route_func: Callable[[str, str, str, int], None] | None = None

_MODES = (DEBUG_MODE, RELEASE_MODE, TEST_MODE)
_state = {"mode": DEBUG_MODE}


def set_mode(value: str) -> None:
    """Select the run mode; an empty value means debug mode."""
    if value == "":
        value = DEBUG_MODE
    if value not in _MODES:
        raise ValueError(f"mode unknown: {value}")
    _state["mode"] = value


def mode() -> str:
    """Return the current run mode."""
    return _state["mode"]


def is_debugging() -> bool:
    """Report whether the current mode is debug mode."""
    return _state["mode"] == DEBUG_MODE


def _out() -> TextIO:
    return default_writer if default_writer is not None else sys.stdout


def _err() -> TextIO:
    return default_error_writer if default_error_writer is not None else sys.stderr


def _name_of_function(fn: Any) -> str:
    if fn is None:
        return ""
    module = getattr(fn, "__module__", None) or type(fn).__module__
    qualname = getattr(fn, "__qualname__", None) or type(fn).__qualname__
    return f"{module}.{qualname}"


def debug_print(format: str, *args: Any) -> None:
    """Write a formatted debug line when in debug mode."""
    if not is_debugging():
        return
    if not format.endswith("\n"):
        format += "\n"
    text = format % args if args else format
    _out().write("[GIN-debug] " + text)


def debug_print_error(err: BaseException | None) -> None:
    """Write an error line to the error stream when in debug mode."""
    if err is not None and is_debugging():
        _err().write(f"[GIN-debug] [ERROR] {err}\n")


def debug_print_route(http_method: str, absolute_path: str, handlers: Sequence[Any]) -> None:
    """Describe a newly registered route when in debug mode."""
    if not is_debugging():
        return
    count = len(handlers)
    handler_name = _name_of_function(handlers[-1] if handlers else None)
    if debug_print_route_func is None:
        debug_print(
            "%-6s %-25s --> %s (%d handlers)\n",
            http_method,
            absolute_path,
            handler_name,
            count,
        )
    else:
        debug_print_route_func(http_method, absolute_path, handler_name, count)


def get_min_ver(version: str) -> int:
    """Return the minor number of a dotted version string."""
    first = version.find(".")
    last = version.rfind(".")
    part = version[first + 1 :] if first == last else version[first + 1 : last]
    if not part or not (part.isascii() and part.isdigit()):
        raise ValueError(f"invalid syntax: {part!r}")
    return int(part)


def debug_print_warning_default() -> None:
    """Warn that an engine comes with middleware attached."""
    try:
        minor = get_min_ver(platform.python_version())
    except ValueError:
        minor = None
    if minor is not None and minor <= SUPPORT_MIN_MINOR:
        debug_print("[WARNING] Now ginchain requires Python 3.10 or later.\n\n")
    debug_print(
        "[WARNING] Creating an Engine instance with the Logger and Recovery "
        "middleware already attached.\n\n"
    )


def debug_print_warning_new() -> None:
    """Warn that the engine runs in debug mode."""
    debug_print(
        '[WARNING] Running in "debug" mode. Switch to "release" mode in production.\n'
        f" - using env:\texport {ENV_MODE}=release\n"
        " - using code:\tginchain.debug.set_mode(ginchain.debug.RELEASE_MODE)\n\n"
    )


def debug_print_warning_set_html_template() -> None:
    """Warn that setting the HTML template is not thread-safe."""
    debug_print(
        "[WARNING] Since set_html_template() is NOT thread-safe. It should only be called\n"
        "at initialization. ie. before any route is registered or the router is "
        "listening in a socket:\n\n"
        "\tengine = Engine()\n"
        "\tengine.set_html_template(template)  # << good place\n\n"
    )


set_mode(os.environ.get(ENV_MODE, ""))
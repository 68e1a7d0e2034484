"""Error kinds raised while rendering a terminal stream."""

from __future__ import annotations

from enum import IntEnum

__all__ = [
    "ExitStatus",
    "RenderError",
    "CursorOutOfRange",
    "UnsupportedEraseMode",
    "UnexpectedParameterCount",
    "InvalidColorValue",
    "ReadError",
]


class ExitStatus(IntEnum):
    ok = 0
    render_error = 1
    cursor_out_of_range = 3
    unsupported_erase_mode = 4
    unexpected_parameter_count = 5
    invalid_color_value = 6
    read_error = 7


class RenderError(ValueError):
    """Base class for protocol and invariant violations.

    These abort processing; the caller maps them to `exit_status`.
    """

    exit_status = ExitStatus.render_error


class CursorOutOfRange(RenderError):
    exit_status = ExitStatus.cursor_out_of_range

    def __init__(self, cursor: int, length: int):
        super().__init__(
            f"cursor position {cursor} is outside of the line buffer (length {length})"
        )
        self.cursor = cursor
        self.length = length


class UnsupportedEraseMode(RenderError):
    exit_status = ExitStatus.unsupported_erase_mode

    def __init__(self, mode: int):
        super().__init__(f"erase in line mode {mode} is not supported")
        self.mode = mode


class UnexpectedParameterCount(RenderError):
    exit_status = ExitStatus.unexpected_parameter_count

    def __init__(self, final: str, count: int):
        super().__init__(
            f"unexpected number of parameter groups ({count}) for CSI {final}"
        )
        self.final = final
        self.count = count


class InvalidColorValue(RenderError):
    exit_status = ExitStatus.invalid_color_value

    def __init__(self, which: str, code: int):
        super().__init__(f"unexpected {which} color value {code}")
        self.which = which
        self.code = code


class ReadError(OSError):
    """The input stream failed before end-of-stream was reached."""

    exit_status = ExitStatus.read_error

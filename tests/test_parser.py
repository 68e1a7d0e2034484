import errno
import io
import logging

import pytest

from termline.errors import ReadError
from termline.events import (
    CsiDispatch,
    EscDispatch,
    Execute,
    Hook,
    OscDispatch,
    Print,
    Put,
    Unhook,
)
from termline.parser import Parser, State, parse_bytes


def printed(events):
    return "".join(e.char for e in events if isinstance(e, Print))


def test_plain_text():
    assert parse_bytes(b"hi") == [Print("h"), Print("i")]


def test_control_bytes_are_executed():
    assert parse_bytes(b"a\r\n") == [Print("a"), Execute(0x0D), Execute(0x0A)]


def test_csi_parameter_groups():
    (event,) = parse_bytes(b"\x1b[1;31m")
    assert event == CsiDispatch(params=((1,), (31,)), intermediates="", ignore=False, final="m")


def test_csi_without_parameters_has_one_zero_group():
    (event,) = parse_bytes(b"\x1b[K")
    assert event.params == ((0,),)
    assert event.final == "K"


def test_csi_omitted_values_read_as_zero():
    (event,) = parse_bytes(b"\x1b[;5H")
    assert event.params == ((0,), (5,))


def test_csi_sub_parameters():
    (event,) = parse_bytes(b"\x1b[38:5:196;1m")
    assert event.params == ((38, 5, 196), (1,))


def test_csi_private_marker_is_collected():
    (event,) = parse_bytes(b"\x1b[?25l")
    assert event.intermediates == "?"
    assert event.params == ((25,),)


def test_csi_with_too_many_intermediates_is_flagged():
    (event,) = parse_bytes(b"\x1b[1 !\"p")
    assert event.ignore


def test_csi_with_too_many_parameters_is_flagged():
    data = b"\x1b[" + b";".join(b"1" for _ in range(40)) + b"m"
    (event,) = parse_bytes(data)
    assert event.ignore


def test_eight_bit_csi():
    (event,) = parse_bytes(b"\x9b2K")
    assert event == CsiDispatch(params=((2,),), intermediates="", ignore=False, final="K")


def test_gr_parameter_digits_read_as_ascii():
    # 0xB1 is "1" with the high bit set
    (event,) = parse_bytes(b"\x1b[\xb1;\xb2C")
    assert event.params == ((1,), (2,))
    assert event.final == "C"


def test_gr_final_byte_reads_as_ascii():
    # 0xCB is "K" with the high bit set
    (event,) = parse_bytes(b"\x1b[\xcb")
    assert event == CsiDispatch(params=((0,),), intermediates="", ignore=False, final="K")


def test_gr_byte_keeps_its_value_when_printed():
    assert parse_bytes(b"\xb1") == [Print("\xb1")]


def test_utf8_is_printed():
    assert printed(parse_bytes("hé─\U0001f600".encode())) == "hé─\U0001f600"


def test_invalid_utf8_passes_through_raw():
    # 0xE9 starts a 3-byte sequence, "x" is not a continuation byte
    events = parse_bytes(b"\xe9x")
    assert printed(events) == "éx"


def test_truncated_utf8_at_end_of_stream():
    events = parse_bytes(b"a\xe2\x94")
    assert printed(events)[0] == "a"
    assert len(events) == 3


def test_osc_bell_terminated():
    events = parse_bytes(b"\x1b]0;title\x07x")
    assert events == [OscDispatch(params=(b"0", b"title"), bell_terminated=True), Print("x")]


def test_osc_string_terminator_does_not_dispatch_esc():
    events = parse_bytes(b"\x1b]2;t\x1b\\x")
    assert events == [OscDispatch(params=(b"2", b"t"), bell_terminated=False), Print("x")]


def test_esc_dispatch():
    assert parse_bytes(b"\x1b7\x1b(B") == [
        EscDispatch(intermediates="", ignore=False, final="7"),
        EscDispatch(intermediates="(", ignore=False, final="B"),
    ]


def test_dcs_hook_put_unhook():
    events = parse_bytes(b"\x1bP1$rab\x1b\\")
    assert events == [
        Hook(params=((1,),), intermediates="$", ignore=False, final="r"),
        Put(ord("a")),
        Put(ord("b")),
        Unhook(),
    ]


def test_cancel_aborts_sequence():
    assert parse_bytes(b"\x1b[3\x18x") == [Execute(0x18), Print("x")]


def test_state_persists_across_chunks():
    parser = Parser(chunk_size=1)
    events = list(parser.parse(io.BytesIO(b"\x1b[31mab")))
    assert events[0].final == "m"
    assert printed(events) == "ab"
    assert parser.state is State.ground


class FailingStream(io.RawIOBase):
    def __init__(self, data, err):
        super().__init__()
        self._data = data
        self._err = err

    def readable(self):
        return True

    def read(self, size=-1):
        if self._data:
            data, self._data = self._data, b""
            return data
        raise OSError(self._err, "boom")


def test_read_failure_raises_read_error_after_data():
    events = []
    with pytest.raises(ReadError):
        for event in Parser().parse(FailingStream(b"ok", errno.EBADF)):
            events.append(event)
    assert printed(events) == "ok"


def test_eio_is_end_of_stream():
    events = list(Parser().parse(FailingStream(b"ok", errno.EIO)))
    assert printed(events) == "ok"


def test_transitions_are_logged_at_debug(caplog):
    with caplog.at_level(logging.DEBUG, logger="termline.parser"):
        parse_bytes(b"\x1b[m")
    assert "processing on_entry to CSI_ENTRY" in caplog.text

"""Terminal control sequence tokenizer, following https://www.vt100.net/emu/dec_ansi_parser

`Parser.parse` turns a binary stream into `termline.events` values.
"""

from __future__ import annotations

import codecs
import errno
import io
import logging
from enum import Enum
from typing import (
    IO,
    Dict,
    Iterator,
    List,
    NamedTuple,
    Optional,
    Tuple,
    Union,
)

from .errors import ReadError
from .events import (
    CsiDispatch,
    EscDispatch,
    Event,
    Execute,
    Hook,
    OscDispatch,
    ParamGroups,
    Print,
    Put,
    Unhook,
)

__all__ = ["State", "Action", "Parameters", "Parser", "parse_bytes"]

logger = logging.getLogger(__name__)

# beyond these limits a dispatch is flagged as ignored
MAX_INTERMEDIATES = 2
MAX_PARAMS = 32


# anywhere is denoted by None in the table generation code
class State(Enum):
    ground = 0
    escape = 1
    escape_intermediate = 2
    csi_entry = 3
    csi_param = 4
    csi_intermediate = 5
    csi_ignore = 6
    dcs_entry = 7
    dcs_param = 8
    dcs_intermediate = 9
    dcs_passthrough = 10
    dcs_ignore = 11
    osc_string = 12
    # sos/pm/apc string
    other_string = 13

    def __str__(self) -> str:
        return self.name.upper()


ground = State.ground
escape = State.escape
escape_intermediate = State.escape_intermediate
csi_entry = State.csi_entry
csi_param = State.csi_param
csi_intermediate = State.csi_intermediate
csi_ignore = State.csi_ignore
dcs_entry = State.dcs_entry
dcs_param = State.dcs_param
dcs_intermediate = State.dcs_intermediate
dcs_passthrough = State.dcs_passthrough
dcs_ignore = State.dcs_ignore
osc_string = State.osc_string
other_string = State.other_string


class Action(Enum):
    ignore = 0
    print = 1
    execute = 2
    clear = 3
    collect = 4
    param = 5
    esc_dispatch = 6
    csi_dispatch = 7
    hook = 8
    put = 9
    unhook = 10
    osc_start = 11
    osc_put = 12
    osc_end = 13


class Transition(NamedTuple):
    # if None, will stay in current state
    target: Optional[State]
    action: Optional[Action]


def do(action: Action) -> Transition:
    return Transition(target=None, action=action)


def to(state: State, action: Optional[Action] = None) -> Transition:
    return Transition(target=state, action=action)


class ByteRange(NamedTuple):
    start: int
    stop: int


class Indexer:
    """`r[0x20:0x2F, 0x7F]` builds a tuple of inclusive byte ranges."""

    # pylint: disable=too-few-public-methods
    def __getitem__(
        self, key: Union[int, slice, Tuple[Union[int, slice], ...]]
    ) -> Tuple[ByteRange, ...]:
        if not isinstance(key, tuple):
            key = (key,)
        return tuple(
            ByteRange(x.start, x.stop) if isinstance(x, slice) else ByteRange(x, x)
            for x in key
        )


r = Indexer()

RangeTransitions = Dict[Tuple[ByteRange, ...], Transition]

A = Action
# these will override any conflicting transitions in other states
anywhere_table: RangeTransitions = {
    # CAN, SUB
    r[0x18, 0x1A]: to(ground, A.execute),
    # ESC
    r[0x1B]: to(escape),
    # C1 (8-bit) controls:
    r[0x90]: to(dcs_entry),
    r[0x9B]: to(csi_entry),
    r[0x9D]: to(osc_string),
    # SOS, PM, APC
    r[0x98, 0x9E, 0x9F]: to(other_string),
    # ST
    r[0x9C]: to(ground, A.ignore),
    # all other undefined C1 controls
    r[0x80:0x8F, 0x91:0x97, 0x99, 0x9A]: to(ground, A.execute),
}
r_normal_c0 = r[0x00:0x17, 0x19, 0x1C:0x1F]

range_table: Dict[State, RangeTransitions] = {
    ground: {r_normal_c0: do(A.execute), r[0x20:0x7F]: do(A.print)},
    escape: {
        r_normal_c0: do(A.execute),
        r[0x20:0x2F]: to(escape_intermediate, A.collect),
        r[0x30:0x4F, 0x51:0x57, 0x59, 0x5A, 0x5C, 0x60:0x7E]: to(
            ground, A.esc_dispatch
        ),
        r[0x50]: to(dcs_entry),
        r[0x5B]: to(csi_entry),
        r[0x5D]: to(osc_string),
        r[0x58, 0x5E, 0x5F]: to(other_string),
        r[0x7F]: do(A.ignore),
    },
    escape_intermediate: {
        r_normal_c0: do(A.execute),
        r[0x20:0x2F]: do(A.collect),
        r[0x30:0x7E]: to(ground, A.esc_dispatch),
        r[0x7F]: do(A.ignore),
    },
    csi_entry: {
        r_normal_c0: do(A.execute),
        r[0x20:0x2F]: to(csi_intermediate, A.collect),
        r[0x30:0x39, 0x3B]: to(csi_param, A.param),
        # sub-parameters
        r[0x3A]: to(csi_param, A.param),
        r[0x3C:0x3F]: to(csi_param, A.collect),
        r[0x40:0x7E]: to(ground, A.csi_dispatch),
        r[0x7F]: do(A.ignore),
    },
    csi_param: {
        r_normal_c0: do(A.execute),
        r[0x20:0x2F]: to(csi_intermediate, A.collect),
        r[0x30:0x39, 0x3B]: do(A.param),
        # sub-parameters
        r[0x3A]: do(A.param),
        r[0x3C:0x3F]: to(csi_ignore),
        r[0x40:0x7E]: to(ground, A.csi_dispatch),
        r[0x7F]: do(A.ignore),
    },
    csi_intermediate: {
        r_normal_c0: do(A.execute),
        r[0x20:0x2F]: do(A.collect),
        r[0x30:0x3F]: to(csi_ignore),
        r[0x40:0x7E]: to(ground, A.csi_dispatch),
        r[0x7F]: do(A.ignore),
    },
    csi_ignore: {
        r_normal_c0: do(A.execute),
        r[0x20:0x3F, 0x7F]: do(A.ignore),
        r[0x40:0x7E]: to(ground),
    },
    dcs_entry: {
        r_normal_c0: do(A.ignore),
        r[0x20:0x2F]: to(dcs_intermediate, A.collect),
        r[0x30:0x39, 0x3B]: to(dcs_param, A.param),
        r[0x3A]: to(dcs_ignore),
        r[0x3C:0x3F]: to(dcs_param, A.collect),
        r[0x40:0x7E]: to(dcs_passthrough),
        r[0x7F]: do(A.ignore),
    },
    dcs_param: {
        r_normal_c0: do(A.ignore),
        r[0x20:0x2F]: to(dcs_intermediate, A.collect),
        r[0x30:0x39, 0x3B]: do(A.param),
        r[0x3A, 0x3C:0x3F]: to(dcs_ignore),
        r[0x40:0x7E]: to(dcs_passthrough),
        r[0x7F]: do(A.ignore),
    },
    dcs_intermediate: {
        r_normal_c0: do(A.ignore),
        r[0x20:0x2F]: do(A.collect),
        r[0x30:0x3F]: to(dcs_ignore),
        r[0x40:0x7E]: to(dcs_passthrough),
        r[0x7F]: do(A.ignore),
    },
    dcs_passthrough: {
        r_normal_c0: do(A.put),
        r[0x20:0x7E]: do(A.put),
        r[0x7F]: do(A.ignore),
    },
    dcs_ignore: {
        r_normal_c0: do(A.ignore),
        r[0x20:0x7F]: do(A.ignore),
    },
    osc_string: {
        r_normal_c0: do(A.ignore),
        r[0x20:0x7F]: do(A.osc_put),
        # XTerm accepts BEL (0x07) as an OSC string terminator:
        r[0x07]: to(ground, A.ignore),
    },
    other_string: {
        r_normal_c0: do(A.ignore),
        r[0x20:0x7F]: do(A.ignore),
    },
}

on_entry: Dict[State, Action] = {
    escape: A.clear,
    csi_entry: A.clear,
    dcs_entry: A.clear,
    dcs_passthrough: A.hook,
    osc_string: A.osc_start,
}

on_exit: Dict[State, Action] = {
    dcs_passthrough: A.unhook,
    osc_string: A.osc_end,
}


def expand_table(
    state_table: Dict[State, RangeTransitions], anywhere: RangeTransitions
) -> Dict[State, List[Transition]]:
    # transition lists must be dense on 00-9F (A0-FF are wrapped to 20-7F)
    t: Dict[State, List[Transition]] = {}
    placeholder = Transition(None, None)

    def store_transitions(l: List[Transition], rt: RangeTransitions) -> None:
        for ranges, trans in rt.items():
            for br in ranges:
                for i in range(br.start, br.stop + 1):
                    l[i] = trans

    for state, transitions in state_table.items():
        l = [placeholder] * (0x9F + 1)
        store_transitions(l, transitions)
        store_transitions(l, anywhere)
        for i, trans in enumerate(l):
            if trans is placeholder:
                logger.warning("missing transition in %s at 0x%02X", state, i)
        t[state] = l

    return t


state_transitions = expand_table(range_table, anywhere_table)


class Parameters(List[Union[Optional[int], List[Optional[int]]]]):
    """Raw parameters collected while parsing.

    None marks an omitted value; a nested list holds ":"-separated
    sub-parameters.
    """

    def groups(self) -> ParamGroups:
        """Parameter groups with omitted values read as 0."""
        return tuple(
            tuple(x or 0 for x in p) if isinstance(p, list) else (p or 0,)
            for p in self
        )

    def total(self) -> int:
        return sum(len(p) if isinstance(p, list) else 1 for p in self)


def read_bytes(stream: Union[IO[bytes], io.RawIOBase], chunk_size: int) -> Iterator[int]:
    """Yield the bytes of `stream` until end-of-stream.

    Read failures other than EIO are raised as `ReadError`.
    """
    while True:
        try:
            chunk = stream.read(chunk_size)
        except OSError as e:
            if e.errno == errno.EIO:
                break  # EIO means EOF on some systems
            raise ReadError(e.errno, f"failed to read input: {e.strerror or e}") from e
        if not chunk:
            break
        yield from chunk


def decode_codes(raw: Iterator[int]) -> Iterator[int]:
    """Yield a stream of character codes, with the sign denoting whether they
    were parsed as raw bytes or a multibyte UTF-8 sequence (positive if raw,
    negative if UTF-8).

    Bytes that do not form valid UTF-8 are passed through raw, which keeps
    8-bit C1 controls working.
    """
    Decoder = codecs.getincrementaldecoder("utf-8")
    for byte in raw:
        if not 0xC2 <= byte <= 0xF4:
            yield byte
            continue
        # valid UTF-8 start byte
        pending = bytearray([byte])
        decoder = Decoder()
        try:
            output = decoder.decode(bytes(pending))
            while not output:
                nxt = next(raw, None)
                if nxt is None:
                    break
                pending.append(nxt)
                output = decoder.decode(bytes([nxt]))
        except UnicodeDecodeError:
            yield from pending
            continue
        if output:
            yield -ord(output)
        else:
            # stream ended in the middle of a sequence
            yield from pending


class Parser:
    def __init__(self, chunk_size: int = 2048):
        self._trans = state_transitions
        self.chunk_size = chunk_size

        self.state = State.ground
        self.intermediate = ""
        # None is used for an unspecified parameter (read as 0 on dispatch)
        self.parameters = Parameters([None])
        # used to suppress an esc_dispatch after a 2-byte string terminator
        self.esc_ended_string = False
        self.osc_data = bytearray()
        self._pending: List[Event] = []

    def reset(self) -> None:
        self.state = State.ground
        self.esc_ended_string = False
        self.osc_data.clear()
        self._pending.clear()
        self.clear()

    def clear(self) -> None:
        self.intermediate = ""
        self.parameters = Parameters([None])

    def parse(self, data: Union[IO[bytes], io.RawIOBase]) -> Iterator[Event]:
        """Yield the events found in `data`, reading it until end-of-stream."""
        for char in decode_codes(read_bytes(data, self.chunk_size)):
            self.advance(char)
            if self._pending:
                events, self._pending = self._pending, []
                yield from events

    def advance(self, char: int) -> None:
        trans_table = self._trans[self.state]
        if char < 0:
            # unicode character
            new_state, action = trans_table[0x7E]
            char = code = -char
        else:
            # GR bytes (A0-FF) act as their GL counterparts, except when printed
            code = char & 0x7F if 0xA0 <= char <= 0xFF else char
            new_state, action = trans_table[code]
        arg = char if action is A.print else code

        if new_state is not None:
            if self.state in on_exit:
                logger.debug("processing on_exit from %s", self.state)
                self.process(on_exit[self.state], code)
                if self.state in (osc_string, dcs_passthrough) and code == 0x1B:
                    self.esc_ended_string = True
            if action is not None:
                logger.debug("processing %s with state change to %s", action.name, new_state)
                self.process(action, arg)
            if new_state in on_entry:
                logger.debug("processing on_entry to %s", new_state)
                self.process(on_entry[new_state], code)
            self.state = new_state
        elif action is not None:
            self.process(action, arg)

    def _ignored(self) -> bool:
        return (
            len(self.intermediate) > MAX_INTERMEDIATES
            or self.parameters.total() > MAX_PARAMS
        )

    def process(
        self,
        action: Action,
        char: int = -1,
        # optimization: avoid several dict lookups in Action per call by storing
        # these as local parameters when the function is defined
        ignore: Action = Action.ignore,
        print_: Action = Action.print,
        param: Action = Action.param,
    ) -> None:
        if action is ignore:
            pass
        elif action is print_:
            self._pending.append(Print(chr(char)))
        elif action is A.clear:
            self.clear()
        elif action is A.collect:
            self.intermediate += chr(char)
        elif action is param:
            assert char >= 0
            if chr(char) == ";":
                self.parameters.append(None)
            elif chr(char) == ":":
                # handle subparameters, from section 5.4.2 of ECMA-48
                if isinstance(self.parameters[-1], list):
                    self.parameters[-1].append(None)
                else:
                    self.parameters[-1] = [self.parameters[-1], None]
            else:
                lst: Union[Parameters, List[Optional[int]]]
                if isinstance(self.parameters[-1], list):
                    lst = self.parameters[-1]
                else:
                    lst = self.parameters
                digit = char - ord("0")
                # use or here to handle None neatly
                lst[-1] = (lst[-1] or 0) * 10 + digit
        elif action is A.osc_start:
            self.osc_data.clear()
        elif action is A.osc_put:
            self.osc_data.extend(chr(char).encode())
        elif action is A.osc_end:
            self._pending.append(
                OscDispatch(
                    params=tuple(bytes(self.osc_data).split(b";")),
                    bell_terminated=char == 0x07,
                )
            )
            self.osc_data.clear()
        else:
            if self.esc_ended_string:
                self.esc_ended_string = False
                if action is A.esc_dispatch and chr(char) == "\\":
                    return
            self._pending.append(self.dispatch(action, char))

    def dispatch(self, action: Action, char: int) -> Event:
        if action is A.execute:
            return Execute(char)
        if action is A.csi_dispatch:
            return CsiDispatch(
                params=self.parameters.groups(),
                intermediates=self.intermediate,
                ignore=self._ignored(),
                final=chr(char),
            )
        if action is A.esc_dispatch:
            return EscDispatch(
                intermediates=self.intermediate,
                ignore=self._ignored(),
                final=chr(char),
            )
        if action is A.hook:
            return Hook(
                params=self.parameters.groups(),
                intermediates=self.intermediate,
                ignore=self._ignored(),
                final=chr(char),
            )
        if action is A.put:
            return Put(char)
        if action is A.unhook:
            return Unhook()
        raise ValueError(f"no event for action {action.name}")


def parse_bytes(data: bytes) -> List[Event]:
    """Tokenize an in-memory byte string."""
    return list(Parser().parse(io.BytesIO(data)))

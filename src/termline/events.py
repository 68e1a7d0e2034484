"""Events produced by the tokenizer.

The set is closed: `Event` is the union of every type the parser can yield.
"""

from __future__ import annotations

from typing import NamedTuple, Tuple, Union

__all__ = [
    "ParamGroups",
    "Print",
    "Execute",
    "CsiDispatch",
    "EscDispatch",
    "OscDispatch",
    "Hook",
    "Put",
    "Unhook",
    "Event",
]

# parameter groups separated by ";", each holding ":"-separated sub-parameters
ParamGroups = Tuple[Tuple[int, ...], ...]


class Print(NamedTuple):
    char: str


class Execute(NamedTuple):
    byte: int


class CsiDispatch(NamedTuple):
    params: ParamGroups
    intermediates: str
    ignore: bool
    final: str


class EscDispatch(NamedTuple):
    intermediates: str
    ignore: bool
    final: str


class OscDispatch(NamedTuple):
    params: Tuple[bytes, ...]
    bell_terminated: bool


class Hook(NamedTuple):
    params: ParamGroups
    intermediates: str
    ignore: bool
    final: str


class Put(NamedTuple):
    byte: int


class Unhook(NamedTuple):
    pass


Event = Union[
    Print, Execute, CsiDispatch, EscDispatch, OscDispatch, Hook, Put, Unhook
]

"""Apply tokenizer events to a line buffer and the current style."""

from __future__ import annotations

import logging
from typing import Iterable, Tuple

from .buffer import LineBuffer
from .errors import UnexpectedParameterCount, UnsupportedEraseMode
from .events import (
    CsiDispatch,
    EscDispatch,
    Event,
    Execute,
    Hook,
    OscDispatch,
    Print,
    Put,
    Unhook,
)
from .style import DEFAULT_STYLE, VisualState, apply_sgr

__all__ = ["Interpreter"]

logger = logging.getLogger(__name__)

LF = 0x0A
CR = 0x0D


class Interpreter:
    """Consumes events and tracks the resulting line buffer.

    Only printing, LF/CR and the CSI commands ``m``, ``K`` and ``C`` have an
    effect; every other event is accepted and dropped.
    """

    def __init__(self) -> None:
        self.buffer = LineBuffer()
        self.style: VisualState = DEFAULT_STYLE

    def feed(self, events: Iterable[Event]) -> LineBuffer:
        for event in events:
            self.handle(event)
        return self.buffer

    def handle(self, event: Event) -> None:
        if isinstance(event, Print):
            self.buffer.write(event.char, self.style)
        elif isinstance(event, Execute):
            self.execute(event.byte)
        elif isinstance(event, CsiDispatch):
            self.csi_dispatch(event)
        elif isinstance(event, (EscDispatch, OscDispatch, Hook, Put, Unhook)):
            logger.debug("ignoring %r", event)
        else:
            raise TypeError(f"not a terminal event: {event!r}")

    def execute(self, byte: int) -> None:
        if byte == LF:
            self.buffer.write("\n", self.style)
        elif byte == CR:
            self.buffer.cursor_to_start_of_line()
        else:
            logger.debug("ignoring control byte 0x%02x", byte)

    def csi_dispatch(self, event: CsiDispatch) -> None:
        final = event.final
        if final == "m":
            self.select_graphic_rendition(event)
        elif final == "K":
            for mode in self._single_group(event):
                if mode != 0:
                    raise UnsupportedEraseMode(mode)
                self.buffer.delete_to_end_of_line()
        elif final == "C":
            for offset in self._single_group(event):
                self.buffer.offset_cursor(offset)
        else:
            logger.debug("ignoring CSI %r", event)

    def select_graphic_rendition(self, event: CsiDispatch) -> None:
        # an empty parameter list arrives as a single 0 group
        style = self.style
        for group in event.params:
            for code in group:
                style = apply_sgr(style, code)
        self.style = style

    @staticmethod
    def _single_group(event: CsiDispatch) -> Tuple[int, ...]:
        if len(event.params) != 1:
            raise UnexpectedParameterCount(event.final, len(event.params))
        return event.params[0]

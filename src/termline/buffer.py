"""A single logical line buffer addressed by a one-dimensional cursor."""

from __future__ import annotations

import logging
from typing import List

from .errors import CursorOutOfRange
from .style import DEFAULT_STYLE, VisualState

__all__ = ["LineBuffer"]

logger = logging.getLogger(__name__)


class LineBuffer:
    """Characters paired 1:1 with the style active when each was written.

    A cursor equal to the length is the append position, anything lower
    overwrites in place.
    """

    def __init__(self) -> None:
        self.chars: List[str] = []
        self.styles: List[VisualState] = []
        self.cursor = 0

    def __len__(self) -> int:
        return len(self.chars)

    @property
    def text(self) -> str:
        return "".join(self.chars)

    def write(self, char: str, style: VisualState = DEFAULT_STYLE) -> None:
        length = len(self.chars)
        if self.cursor < length:
            self.chars[self.cursor] = char
            self.styles[self.cursor] = style
        elif self.cursor == length:
            self.chars.append(char)
            self.styles.append(style)
        else:
            raise CursorOutOfRange(self.cursor, length)
        self.cursor += 1

    def offset_cursor(self, delta: int) -> None:
        new_cursor = self.cursor + delta
        if not 0 <= new_cursor <= len(self.chars):
            raise CursorOutOfRange(new_cursor, len(self.chars))
        logger.debug("cursor %d -> %d", self.cursor, new_cursor)
        self.cursor = new_cursor

    def cursor_to_start_of_line(self) -> None:
        for i in range(self.cursor - 1, -1, -1):
            if self.chars[i] == "\n":
                self.cursor = i + 1
                return
        self.cursor = 0

    def delete_to_end_of_line(self) -> None:
        try:
            end = self.chars.index("\n", self.cursor)
        except ValueError:
            end = len(self.chars)
        self.delete_range(self.cursor, end)

    def delete_range(self, start: int, stop: int) -> None:
        del self.chars[start:stop]
        del self.styles[start:stop]
        if self.cursor > len(self.chars):
            self.cursor = len(self.chars)

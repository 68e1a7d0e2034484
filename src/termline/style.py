"""Text attributes captured for every character written to the line buffer."""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple, Optional, Union

__all__ = [
    "Intensity",
    "Named",
    "TrueColor",
    "Color",
    "VisualState",
    "DEFAULT_STYLE",
    "apply_sgr",
]


class Intensity(Enum):
    bold = 1
    faint = 2


class Named(NamedTuple):
    # the SGR code that selected the color, e.g. 31 or 101
    code: int


class TrueColor(NamedTuple):
    r: int
    g: int
    b: int


Color = Union[Named, TrueColor]


class VisualState(NamedTuple):
    intensity: Optional[Intensity] = None
    fg: Optional[Color] = None
    bg: Optional[Color] = None

    @property
    def is_plain(self) -> bool:
        return self.intensity is None and self.fg is None and self.bg is None


DEFAULT_STYLE = VisualState()


def apply_sgr(state: VisualState, code: int) -> VisualState:
    """Return `state` updated by a single SGR code.

    Codes without an entry in the table leave the state unchanged.
    """
    if code == 0:
        return DEFAULT_STYLE
    if code == 1:
        return state._replace(intensity=Intensity.bold)
    if code == 22:
        return state._replace(intensity=None)
    if 30 <= code <= 37 or 90 <= code <= 97:
        return state._replace(fg=Named(code))
    if code == 39:
        return state._replace(fg=None)
    if 40 <= code <= 47 or 100 <= code <= 107:
        return state._replace(bg=Named(code))
    if code == 49:
        return state._replace(bg=None)
    return state

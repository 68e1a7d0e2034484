"""Turn a finished line buffer into HTML spans."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .buffer import LineBuffer
from .errors import InvalidColorValue
from .style import Color, Intensity, Named, VisualState

__all__ = ["classes_for", "serialize", "to_html", "stylesheet", "standalone_document"]

INTENSITY_CLASSES = {
    Intensity.bold: "sgr-bold",
    Intensity.faint: "sgr-faint",
}

FG_PALETTE = ["#000", "#c00", "#0c0", "#cc0", "#00c", "#c0c", "#0cc", "#ccc"]
BRIGHT_PALETTE = ["#666", "#f44", "#4f4", "#ff4", "#44f", "#f4f", "#4ff", "#fff"]


def _color_class(which: str, color: Optional[Color], base: int) -> Optional[str]:
    # base is 30 for foreground and 40 for background
    if not isinstance(color, Named):
        # unset, or a true color which has no class
        return None
    code = color.code
    if base <= code <= base + 7:
        return f"sgr-{which}-{code - base + 1}"
    if base + 60 <= code <= base + 67:
        return f"sgr-{which}-b{code - base - 59}"
    raise InvalidColorValue(which, code)


def classes_for(style: VisualState) -> List[str]:
    """CSS classes describing `style`, empty for the default style."""
    classes = []
    if style.intensity is not None:
        classes.append(INTENSITY_CLASSES[style.intensity])
    for which, color, base in (("fg", style.fg, 30), ("bg", style.bg, 40)):
        cls = _color_class(which, color, base)
        if cls is not None:
            classes.append(cls)
    return classes


def serialize(chars: Sequence[str], styles: Sequence[VisualState]) -> str:
    out: List[str] = []
    span_open = False
    last = len(chars) - 1
    for i, char in enumerate(chars):
        style = styles[i]
        if i == 0 or style != styles[i - 1]:
            if span_open:
                out.append("</span>")
            classes = [] if style.is_plain else classes_for(style)
            span_open = bool(classes)
            if span_open:
                out.append(f'<span class="{" ".join(classes)}">')
        out.append(char)
        if i == last and span_open:
            out.append("</span>")
    return "".join(out)


def to_html(buffer: LineBuffer) -> str:
    return serialize(buffer.chars, buffer.styles)


def stylesheet() -> str:
    """CSS rules for every class `classes_for` can produce."""
    rules = [
        ".sgr-bold { font-weight: bold; }",
        ".sgr-faint { opacity: 0.6; }",
    ]
    for i, (normal, bright) in enumerate(zip(FG_PALETTE, BRIGHT_PALETTE), 1):
        rules.append(f".sgr-fg-{i} {{ color: {normal}; }}")
        rules.append(f".sgr-fg-b{i} {{ color: {bright}; }}")
        rules.append(f".sgr-bg-{i} {{ background-color: {normal}; }}")
        rules.append(f".sgr-bg-b{i} {{ background-color: {bright}; }}")
    return "\n".join(rules)


def standalone_document(body: str, title: str = "termline") -> str:
    return (
        "<!DOCTYPE html>\n"
        "<html>\n<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{title}</title>\n"
        f"<style>\n{stylesheet()}\n</style>\n"
        "</head>\n<body>\n"
        f"<pre>{body}</pre>\n"
        "</body>\n</html>\n"
    )

# read version from installed package
from importlib.metadata import version

__version__ = version("termline")

from .buffer import LineBuffer
from .interpreter import Interpreter
from .parser import Parser, parse_bytes
from .serializer import to_html


def render(data: bytes) -> str:
    """Render a complete terminal output byte string as HTML."""
    return to_html(Interpreter().feed(parse_bytes(data)))

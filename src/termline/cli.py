"""Command line entry point: render a terminal log file as HTML."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .errors import ExitStatus, ReadError, RenderError
from .interpreter import Interpreter
from .parser import Parser
from .serializer import standalone_document, to_html

__all__ = ["main"]

logger = logging.getLogger(__name__)


def configure_logging(debug: bool = False) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger("termline")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if debug else logging.WARNING)


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="termline",
        description="Render terminal output (text with escape sequences) as HTML.",
    )
    ap.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="write the HTML to this file instead of stdout",
    )
    ap.add_argument(
        "--standalone",
        action="store_true",
        help="wrap the output in a complete HTML document with a stylesheet",
    )
    ap.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="log parser and interpreter activity to stderr",
    )
    ap.add_argument(
        "file",
        nargs="?",
        default="-",
        type=argparse.FileType("rb"),
        help="the file to render, or - for stdin (defaults to stdin)",
    )
    return ap


def write_output(text: str, path: Optional[Path]) -> None:
    data = text.encode("utf-8")
    if path is None:
        sys.stdout.flush()
        sys.stdout.buffer.write(data)
        sys.stdout.flush()
    else:
        path.write_bytes(data)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(args.debug)

    infile = args.file
    from_stdin = infile in (sys.stdin, getattr(sys.stdin, "buffer", None))
    # work around argparse bug (https://github.com/python/cpython/pull/13165)
    if hasattr(infile, "buffer"):
        infile = infile.buffer

    status = ExitStatus.ok
    interpreter = Interpreter()
    try:
        try:
            interpreter.feed(Parser().parse(infile))
        except ReadError as e:
            # render whatever arrived before the failure
            logger.error("%s", e.strerror or e)
            status = ExitStatus.read_error
        html = to_html(interpreter.buffer)
    except RenderError as e:
        logger.error("%s", e)
        return int(e.exit_status)
    finally:
        if not from_stdin:
            infile.close()

    if args.standalone:
        html = standalone_document(html)
    write_output(html, args.output)
    return int(status)

"""Command line entry point.

Usage::

    tagrewriter page.html --handler myproject.handlers:LinkRewriter
    tagrewriter --fragment --mask-only < snippet.html
"""

from __future__ import annotations

import argparse
import importlib
import inspect
import logging
import sys
from pathlib import Path

from .esi import postprocess, preprocess
from .rewriter import TagRewriter
from .serialize import SerializerOpts

logger = logging.getLogger(__name__)


class HandlerLoadError(Exception):
    pass


def load_handler(spec: str):
    """Resolve ``module:name`` to a handler.

    Classes are instantiated without arguments; any other object is used as
    it is.
    """
    module_name, sep, attr_path = spec.partition(":")
    if not sep or not module_name or not attr_path:
        raise HandlerLoadError(f"Handler must look like 'module:name', got {spec!r}")
    try:
        obj = importlib.import_module(module_name)
    except ImportError as exc:
        raise HandlerLoadError(f"Cannot import {module_name!r}: {exc}") from exc
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise HandlerLoadError(f"{module_name!r} has no attribute {attr_path!r}") from exc
    if inspect.isclass(obj):
        obj = obj()
    return obj


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tagrewriter",
        description="Rewrite HTML5 with pluggable handlers, keeping ESI tags intact",
    )
    parser.add_argument("input", nargs="?", help="Input file (default: stdin)")
    parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    parser.add_argument(
        "--fragment",
        action="store_true",
        help="Treat the input as body content instead of a complete document",
    )
    parser.add_argument(
        "--handler",
        action="append",
        default=[],
        metavar="MODULE:NAME",
        help="Handler to register; repeat to register several, they run in order",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--mask-only", action="store_true", help="Only wrap ESI tags in comments")
    mode.add_argument("--unmask-only", action="store_true", help="Only restore ESI tags from comments")
    parser.add_argument(
        "--minimize-boolean-attributes",
        action="store_true",
        help="Write boolean attributes as 'disabled' instead of 'disabled=\"\"'",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    return parser


def _read_input(path: str | None) -> str:
    if path is None or path == "-":
        return sys.stdin.buffer.read().decode("utf-8")
    return Path(path).read_text(encoding="utf-8")


def _write_output(path: str | None, text: str) -> None:
    if path is None or path == "-":
        sys.stdout.flush()
        sys.stdout.buffer.write(text.encode("utf-8"))
        sys.stdout.buffer.flush()
        return
    Path(path).write_text(text, encoding="utf-8")


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    html = _read_input(args.input)

    if args.mask_only:
        _write_output(args.output, preprocess(html))
        return 0
    if args.unmask_only:
        _write_output(args.output, postprocess(html))
        return 0

    rewriter = TagRewriter(
        serializer_opts=SerializerOpts(minimize_boolean_attributes=args.minimize_boolean_attributes),
    )
    try:
        for spec in args.handler:
            rewriter.register(load_handler(spec))
    except (HandlerLoadError, TypeError) as exc:
        print(f"tagrewriter: {exc}", file=sys.stderr)
        return 2
    logger.debug("Registered %d handlers", len(rewriter.handlers))

    result = rewriter.process_fragment(html) if args.fragment else rewriter.process(html)
    _write_output(args.output, result)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Run rewrite handlers over HTML5 documents and body fragments."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .dom import body_of, create_shell, parse_with_doctype_position, set_inner_html
from .esi import postprocess, preprocess
from .handler import RewriteHandler
from .selector import compile_selector, query
from .serialize import serialize_document, serialize_inner

if TYPE_CHECKING:
    from typing import Any

    from lxml import etree

    from .serialize import SerializerOpts

logger = logging.getLogger(__name__)


class TagRewriter:
    """Parses HTML5, lets registered handlers rewrite it, serializes it back.

    ESI tags in the input are masked as comments before parsing and restored
    byte for byte in the output (see :mod:`tagrewriter.esi`).

    Handlers run in registration order. Each ``process`` call is independent,
    but the handler list itself is not synchronized: register everything
    before sharing an instance between threads.
    """

    __slots__ = ("_handlers", "serializer_opts")

    def __init__(self, handlers=None, *, serializer_opts: SerializerOpts | None = None):
        self._handlers: list[RewriteHandler] = []
        self.serializer_opts = serializer_opts
        for handler in handlers or ():
            self.register(handler)

    @property
    def handlers(self) -> tuple[RewriteHandler, ...]:
        return tuple(self._handlers)

    def register(self, handler: RewriteHandler) -> None:
        """Append ``handler``. The same handler registered twice runs twice."""
        if not isinstance(handler, RewriteHandler):
            raise TypeError(
                f"Unsupported handler: {type(handler).__name__} "
                "(needs applies_to(), match() and after_matches())"
            )
        self._handlers.append(handler)

    def process(self, html: str) -> str:
        """Rewrite a complete HTML5 document."""
        document, comments_before_doctype = parse_with_doctype_position(preprocess(html))
        self.apply_handlers(document, document)
        return postprocess(serialize_document(document, self.serializer_opts, comments_before_doctype))

    def process_fragment(self, html: str) -> str:
        """Rewrite an HTML5 fragment.

        The fragment is parsed as if it directly followed a ``<body>`` start
        tag, and handlers are scoped to that body. Content that needs another
        parsing context (the inside of a ``<table>`` or ``<select>``) is not
        supported and may come out restructured.
        """
        document = create_shell()
        container = body_of(document)
        set_inner_html(container, preprocess(html))
        self.apply_handlers(document, container)
        return postprocess(serialize_inner(container, self.serializer_opts))

    def apply_handlers(self, document: etree._ElementTree, scope: Any) -> None:
        """Run every registered handler against ``scope``.

        Exceptions from selectors or handlers propagate unchanged and abort
        the run.
        """
        for handler in self._handlers:
            selector = handler.applies_to()
            nodes = query(scope, compile_selector(selector))
            logger.debug("%r: %d matches for %r", handler, len(nodes), selector)
            for node in nodes:
                handler.match(node)
            handler.after_matches(document, scope)

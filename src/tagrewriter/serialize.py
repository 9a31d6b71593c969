"""HTML serialization of lxml trees built by html5lib."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from html5lib import getTreeWalker
from html5lib.filters.base import Filter
from html5lib.serializer import HTMLSerializer

from .treebuilder import unescape_name, unescape_text

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import Any

    from lxml import etree


class SerializerOpts:
    """Serializer settings.

    The defaults follow the HTML fragment serialization algorithm rather than
    html5lib's own defaults: attribute values are always double-quoted,
    boolean attributes keep their ``=""`` and no optional tags are dropped.
    """

    __slots__ = (
        "minimize_boolean_attributes",
        "omit_optional_tags",
        "quote_attr_values",
        "use_best_quote_char",
        "use_trailing_solidus",
    )

    def __init__(
        self,
        quote_attr_values="always",
        use_best_quote_char=False,
        minimize_boolean_attributes=False,
        omit_optional_tags=False,
        use_trailing_solidus=False,
    ):
        if quote_attr_values not in ("always", "spec", "legacy"):
            raise ValueError(f"quote_attr_values must be 'always', 'spec' or 'legacy', not {quote_attr_values!r}")
        self.quote_attr_values = quote_attr_values
        self.use_best_quote_char = bool(use_best_quote_char)
        self.minimize_boolean_attributes = bool(minimize_boolean_attributes)
        self.omit_optional_tags = bool(omit_optional_tags)
        self.use_trailing_solidus = bool(use_trailing_solidus)

    def as_kwargs(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.__slots__}

    def __repr__(self):
        args = ", ".join(f"{name}={getattr(self, name)!r}" for name in self.__slots__)
        return f"SerializerOpts({args})"


DEFAULT_OPTS = SerializerOpts()

_TreeWalker = getTreeWalker("lxml")


class InnerContentFilter(Filter):
    """Drop the outermost start and end tag from a token stream."""

    def __iter__(self) -> Iterator[dict[str, Any]]:
        depth = 0
        for token in Filter.__iter__(self):
            kind = token["type"]
            if kind == "StartTag":
                depth += 1
                if depth == 1:
                    continue
            elif kind == "EndTag":
                depth -= 1
                if depth == 0:
                    continue
            yield token


class TreeTextFilter(Filter):
    """Undo the escaping :mod:`tagrewriter.treebuilder` applies to stored strings."""

    def __iter__(self) -> Iterator[dict[str, Any]]:
        for token in Filter.__iter__(self):
            kind = token["type"]
            if kind in ("Characters", "SpaceCharacters", "Comment"):
                token["data"] = unescape_text(token["data"])
            elif kind in ("StartTag", "EmptyTag"):
                token["data"] = {
                    (namespace, unescape_name(name)): unescape_text(value)
                    for (namespace, name), value in token["data"].items()
                }
            elif kind == "Doctype" and token.get("systemId"):
                token["systemId"] = unescape_text(token["systemId"])
            yield token


class DoctypePositionFilter(Filter):
    """Emit the doctype after the first ``count`` top-level comments.

    The lxml tree walker always emits the doctype first.
    """

    def __init__(self, source, count: int) -> None:
        super().__init__(source)
        self.count = count

    def __iter__(self) -> Iterator[dict[str, Any]]:
        doctype = None
        remaining = self.count
        for token in Filter.__iter__(self):
            if doctype is None:
                if token["type"] == "Doctype" and remaining:
                    doctype = token
                    continue
            elif token["type"] == "Comment" and remaining:
                remaining -= 1
            else:
                yield doctype
                doctype = None
                remaining = 0
            yield token
        if doctype is not None:
            yield doctype


def _serializer(opts: SerializerOpts | None) -> HTMLSerializer:
    return HTMLSerializer(**(opts or DEFAULT_OPTS).as_kwargs())


def serialize_document(
    document: etree._ElementTree,
    opts: SerializerOpts | None = None,
    comments_before_doctype: int = 0,
) -> str:
    """Serialize a whole document: doctype, top-level comments and ``<html>``.

    ``comments_before_doctype`` comes from
    :func:`tagrewriter.dom.parse_with_doctype_position`.
    """
    tokens = TreeTextFilter(_TreeWalker(document))
    if comments_before_doctype:
        tokens = DoctypePositionFilter(tokens, comments_before_doctype)
    return _serializer(opts).render(tokens)


def serialize_inner(container: etree._Element, opts: SerializerOpts | None = None) -> str:
    """Serialize the children of ``container`` without the container itself."""
    # The lxml tree walker walks a node's siblings too, so work on a
    # detached copy that has none.
    detached = copy.deepcopy(container)
    detached.tail = None
    return _serializer(opts).render(TreeTextFilter(InnerContentFilter(_TreeWalker(detached))))

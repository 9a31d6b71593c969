"""Parsing and tree helpers on top of html5lib's lxml tree builder.

Documents are ``lxml.etree._ElementTree`` objects. HTML elements live in the
XHTML namespace, so their tags read ``{http://www.w3.org/1999/xhtml}p``;
comments are ``lxml.etree._Comment`` nodes.

Strings lxml cannot hold (control characters, ``--`` in comments) are stored
escaped; see :mod:`tagrewriter.treebuilder`. Use :func:`text_content`,
:func:`set_text_content`, :func:`get_attribute` and :func:`set_attribute` to
work with the unescaped values.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from html5lib import HTMLParser
from html5lib.constants import namespaces
from lxml import etree

from .treebuilder import TreeBuilder, attribute_key, escape_text, unescape_text

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

HTML_NAMESPACE = namespaces["html"]
SVG_NAMESPACE = namespaces["svg"]
MATHML_NAMESPACE = namespaces["mathml"]

# Prefixes available to every selector.
NAMESPACES = {
    "html": HTML_NAMESPACE,
    "svg": SVG_NAMESPACE,
    "mathml": MATHML_NAMESPACE,
}


def _parser() -> HTMLParser:
    # HTMLParser keeps per-parse state, so each call gets its own.
    return HTMLParser(tree=TreeBuilder, strict=False, namespaceHTMLElements=True)


def _log_parse_errors(parser: HTMLParser, what: str) -> None:
    if parser.errors and logger.isEnabledFor(logging.DEBUG):
        logger.debug("Recovered from %d parse errors in %s", len(parser.errors), what)
        for position, code, datavars in parser.errors:
            logger.debug("  %s at line %s, column %s %r", code, position[0], position[1], datavars)


def html_tag(name: str) -> str:
    """Clark-notation tag for the HTML element ``name``."""
    return f"{{{HTML_NAMESPACE}}}{name}"


def parse_document(html: str) -> etree._ElementTree:
    """Parse ``html`` as a complete document.

    Malformed markup is repaired by the HTML5 tree construction rules; this
    never raises for bad input.
    """
    return parse_with_doctype_position(html)[0]


def parse_with_doctype_position(html: str) -> tuple[etree._ElementTree, int]:
    """Like :func:`parse_document`, also returning how many of the comments
    before ``<html>`` preceded the doctype.

    lxml keeps the doctype outside the tree, so the count is what lets
    :func:`tagrewriter.serialize.serialize_document` put it back in place.
    """
    parser = _parser()
    document = parser.parse(html)
    _log_parse_errors(parser, "document")
    return document, parser.tree.comments_before_doctype


def create_shell() -> etree._ElementTree:
    """An empty document: ``<html><head></head><body></body></html>``."""
    return parse_document("")


def body_of(document: etree._ElementTree) -> etree._Element:
    body = document.getroot().find(html_tag("body"))
    if body is None:
        raise ValueError("Document has no body element")
    return body


def _append_fragment(container: etree._Element, fragment: Iterable[str | etree._Element]) -> None:
    for item in fragment:
        if isinstance(item, str):
            if len(container):
                last = container[-1]
                last.tail = (last.tail or "") + item
            else:
                container.text = (container.text or "") + item
        else:
            container.append(item)


def clear_children(element: etree._Element) -> None:
    element.text = None
    del element[:]


def set_inner_html(container: etree._Element, html: str) -> None:
    """Replace the children of ``container`` by ``html``.

    ``html`` is parsed as a fragment in the context of the container's own
    element name, like assigning ``innerHTML`` in a browser.
    """
    context = etree.QName(container).localname
    parser = _parser()
    fragment = parser.parseFragment(html, container=context)
    _log_parse_errors(parser, f"fragment (context <{context}>)")
    clear_children(container)
    _append_fragment(container, fragment)


def set_text_content(element: etree._Element, text: str) -> None:
    """Replace all children of ``element`` by a single text node."""
    clear_children(element)
    element.text = escape_text(text)


def _stored_text(element: etree._Element) -> str:
    parts = [element.text or ""]
    for child in element:
        if not isinstance(child, etree._Comment):
            parts.append(_stored_text(child))
        parts.append(child.tail or "")
    return "".join(parts)


def text_content(element: etree._Element) -> str:
    """Concatenated text of ``element`` and its descendants, comments excluded."""
    return unescape_text(_stored_text(element))


def get_attribute(element: etree._Element, name: str, default: str | None = None) -> str | None:
    """Value of the HTML attribute ``name``, as it appeared in the markup."""
    value = element.get(attribute_key(name))
    return default if value is None else unescape_text(value)


def set_attribute(element: etree._Element, name: str, value: str | None) -> None:
    """Set the HTML attribute ``name``; ``None`` removes it.

    Unlike ``element.set()`` this accepts any name and value HTML allows,
    such as ``@click`` or a value with control characters.
    """
    key = attribute_key(name)
    if value is None:
        element.attrib.pop(key, None)
    else:
        element.set(key, escape_text(value))

"""XPath selectors with the fixed ``html``/``svg``/``mathml`` prefixes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from lxml import etree

from .dom import NAMESPACES

if TYPE_CHECKING:
    from typing import Any


class SelectorError(ValueError):
    """Raised when a selector does not evaluate to a node-set."""


def compile_selector(selector: str) -> etree.XPath:
    """Compile ``selector``.

    Syntax errors surface as ``lxml.etree.XPathSyntaxError``.
    """
    return etree.XPath(selector, namespaces=NAMESPACES)


def query(scope: etree._Element | etree._ElementTree, selector: str | etree.XPath) -> list[Any]:
    """Evaluate ``selector`` against ``scope`` and return the matches as a list.

    The list is a snapshot: mutating the tree afterwards does not change it.
    Expressions such as ``count(//html:p)`` that yield a number, string or
    boolean raise :class:`SelectorError`.
    """
    xpath = selector if isinstance(selector, etree.XPath) else compile_selector(selector)
    result = xpath(scope)
    if not isinstance(result, list):
        raise SelectorError(f"Selector {xpath.path!r} returned {type(result).__name__}, expected a node-set")
    return list(result)

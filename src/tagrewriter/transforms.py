"""Ready-made handlers for common rewrites.

Each one takes its selector as the first argument and is registered like any
other handler::

    rewriter = TagRewriter()
    rewriter.register(SetAttrs("//html:a[@target='_blank']", rel="noopener"))
    rewriter.register(Drop("//html:script[not(@src)]"))

ESI tags are comment nodes while handlers run. ``Drop`` and ``SetText``
remove everything inside the matched elements, masked ESI tags included.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .dom import set_attribute, set_text_content
from .handler import BaseRewriteHandler

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any

    from lxml import etree

    NodeCallback = Callable[[Any], None]
    DocumentCallback = Callable[[etree._ElementTree, Any], None]


@dataclass(frozen=True, slots=True, eq=False)
class SetAttrs(BaseRewriteHandler):
    """Set attributes on every match; a ``None`` value removes the attribute."""

    selector: str
    attrs: dict[str, str | None]

    def __init__(self, selector: str, *, attributes: dict[str, str | None] | None = None, **attrs: str | None) -> None:
        object.__setattr__(self, "selector", str(selector))
        merged = dict(attributes) if attributes else {}
        merged.update(attrs)
        object.__setattr__(self, "attrs", merged)

    def applies_to(self) -> str:
        return self.selector

    def match(self, node: etree._Element) -> None:
        for name, value in self.attrs.items():
            set_attribute(node, name, value)


@dataclass(frozen=True, slots=True)
class SetText(BaseRewriteHandler):
    """Replace the content of every match by ``text``."""

    selector: str
    text: str

    def applies_to(self) -> str:
        return self.selector

    def match(self, node: etree._Element) -> None:
        set_text_content(node, self.text)


@dataclass(frozen=True, slots=True)
class Edit(BaseRewriteHandler):
    """Call ``callback(node)`` for every match."""

    selector: str
    callback: NodeCallback

    def applies_to(self) -> str:
        return self.selector

    def match(self, node: Any) -> None:
        self.callback(node)


@dataclass(frozen=True, slots=True)
class Drop(BaseRewriteHandler):
    """Remove every match together with its subtree.

    Text following a dropped element stays in the document.
    """

    selector: str

    def applies_to(self) -> str:
        return self.selector

    def match(self, node: etree._Element) -> None:
        parent = node.getparent()
        if parent is None:
            return
        tail = node.tail
        previous = node.getprevious()
        parent.remove(node)
        if tail:
            if previous is not None:
                previous.tail = (previous.tail or "") + tail
            else:
                parent.text = (parent.text or "") + tail


@dataclass(frozen=True, slots=True)
class EditDocument(BaseRewriteHandler):
    """Call ``callback(document, scope)`` once per run.

    Selects nothing; the callback runs in the batch phase.
    """

    callback: DocumentCallback

    def applies_to(self) -> str:
        return "/.."

    def after_matches(self, document: etree._ElementTree, scope: Any) -> None:
        self.callback(document, scope)

"""The extension point: handlers that select and rewrite nodes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from lxml import etree


@runtime_checkable
class RewriteHandler(Protocol):
    """Rewrites one kind of node.

    For every ``process`` call the engine evaluates :meth:`applies_to`, calls
    :meth:`match` once per selected node and then :meth:`after_matches` once.
    """

    def applies_to(self) -> str:
        """XPath expression selecting the nodes to process.

        HTML elements must be addressed with the ``html`` prefix
        (``//html:a`` matches every ``<a>``); ``svg`` and ``mathml`` are bound
        as well.
        """
        ...

    def match(self, node: Any) -> None:
        """Process one selected node.

        The node may be changed in place, or remembered and handled in bulk by
        :meth:`after_matches`.
        """
        ...

    def after_matches(self, document: etree._ElementTree, scope: Any) -> None:
        """Called once after every selected node went through :meth:`match`."""
        ...


class BaseRewriteHandler(ABC):
    """Base class with no-op ``match`` and ``after_matches``.

    Subclasses implement :meth:`applies_to` and override whichever of the
    other two they need.
    """

    @abstractmethod
    def applies_to(self) -> str: ...

    def match(self, node: Any) -> None:
        pass

    def after_matches(self, document: etree._ElementTree, scope: Any) -> None:
        pass

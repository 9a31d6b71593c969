"""Keep Edge Side Includes (ESI) tags verbatim across HTML5 parsing.

ESI markup does not survive an HTML5 parse/serialize round trip:

- ``<esi:include src="..." />`` uses self-closing syntax, which HTML5 ignores
  for unknown elements. The parser opens an element and nests everything that
  follows inside it.
- Opening and closing ESI tags may straddle HTML element boundaries. Tree
  construction "repairs" such interleavings and moves the tags around.
- The tags are consumed as plain text by an upstream cache or CDN. Any change
  made by the serializer (``&`` re-encoded as ``&amp;`` in an attribute, for
  instance) breaks them.

Every ESI tag (opening, closing or self-closing) is therefore wrapped in an
HTML comment before parsing, using the comment syntax from section 3.7 of the
ESI language specification, and unwrapped again after serialization.

While handlers run, ESI tags exist in the tree as comment nodes, not as
elements. Handlers that move or delete those comments change where (or
whether) the tags come back.
"""

from __future__ import annotations

import re

COMMENT_MARKER = "esi html5-tagrewriter"
COMMENT_PREFIX = COMMENT_MARKER + " "

# [^>]*? stops at the first ">", even inside a quoted attribute value, so
# <esi:include src="a>b" /> is not matched. Such values are rare enough to
# leave alone.
ESI_TAG_RE = re.compile(r"<(/?)esi:([a-z]+)([^>]*?)(/?)>")
MASKED_TAG_RE = re.compile(r"<!--" + re.escape(COMMENT_PREFIX) + r"(.+?)-->", re.DOTALL)


def _mask(match: re.Match[str]) -> str:
    return "<!--" + COMMENT_PREFIX + match.group(0) + "-->"


def _unmask(match: re.Match[str]) -> str:
    return match.group(1)


def preprocess(html: str) -> str:
    """Wrap every ESI tag in ``html`` in a marker comment."""
    return ESI_TAG_RE.sub(_mask, html)


def postprocess(html: str) -> str:
    """Replace every marker comment in ``html`` by the tag it wraps."""
    return MASKED_TAG_RE.sub(_unmask, html)


def find_tags(html: str) -> list[str]:
    """Return the ESI tags ``preprocess`` would mask, in document order."""
    return [m.group(0) for m in ESI_TAG_RE.finditer(html)]


def is_masked_comment(data: str | None) -> bool:
    """True for the text of a comment node produced by ``preprocess``."""
    return data is not None and data.startswith(COMMENT_PREFIX)


class EsiTagProcessor:
    """Object form of :func:`preprocess` / :func:`postprocess`.

    Stateless; one instance can be shared freely.
    """

    __slots__ = ()

    def preprocess(self, html: str) -> str:
        return preprocess(html)

    def postprocess(self, html: str) -> str:
        return postprocess(html)

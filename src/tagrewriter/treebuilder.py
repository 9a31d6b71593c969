"""html5lib's lxml tree builder, extended to store everything HTML allows.

libxml2 rejects some strings that are fine in HTML:

- control characters (U+0001, U+000B, ...) and U+FFFE/U+FFFF in text,
  attribute values and comments
- ``--`` inside a comment, or a comment ending in ``-``
- attribute names that are not XML names (``@click``, ``:class``)

html5lib either raises or rewrites these lossily (``- -``). Here text,
attribute values and comment data are escaped on the way into the tree and
unescaped by :class:`tagrewriter.serialize.TreeTextFilter` on the way out, so
the output matches the input. Attribute names keep html5lib's ``U0003A``
escapes; a literal ``U`` followed by five hex digits is escaped first so the
decoding is exact.

Handlers see the escaped strings. :func:`unescape_text` and
:func:`attribute_key` convert between the two forms.
"""

from __future__ import annotations

import re
from collections.abc import MutableMapping

from html5lib._ihatexml import InfosetFilter
from html5lib.treebuilders import etree_lxml

ESCAPE = "\ufdd0"

_UNSTORABLE = "\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufdd0\ufffe\uffff"
_TEXT_RE = re.compile(f"[{_UNSTORABLE}]")
# A dash that would form "--" with the next one, or end the comment.
_COMMENT_RE = re.compile(f"[{_UNSTORABLE}]|-(?=-|\\Z)")
_ESCAPED_RE = re.compile(ESCAPE + "([0-9A-F]{1,6});")

_LITERAL_NAME_ESCAPE_RE = re.compile(r"U(?=[0-9A-F]{5})")
_ESCAPED_NAME_RE = re.compile(r"U([0-9A-F]{5})")

_name_filter = InfosetFilter()


def _escape_char(match: re.Match[str]) -> str:
    return f"{ESCAPE}{ord(match.group(0)):X};"


def _unescape_char(match: re.Match[str]) -> str:
    return chr(int(match.group(1), 16))


def escape_text(data: str) -> str:
    """Make ``data`` storable as lxml text or attribute value."""
    return _TEXT_RE.sub(_escape_char, data)


def escape_comment(data: str) -> str:
    """Make ``data`` storable as an lxml comment."""
    return _COMMENT_RE.sub(_escape_char, data)


def unescape_text(data: str) -> str:
    """Undo :func:`escape_text` and :func:`escape_comment`."""
    if ESCAPE not in data:
        return data
    return _ESCAPED_RE.sub(_unescape_char, data)


def _protect_name(name: str) -> str:
    return _LITERAL_NAME_ESCAPE_RE.sub("U00055", name)


def unescape_name(name: str) -> str:
    """The HTML attribute name for an lxml attribute key."""
    return _ESCAPED_NAME_RE.sub(_unescape_char, name)


def attribute_key(name: str) -> str:
    """The lxml attribute key under which the HTML attribute ``name`` is stored."""
    return _name_filter.coerceAttribute(_protect_name(name))


class _Attributes(MutableMapping):
    # Wraps html5lib's attribute mapping, which coerces names to XML names.
    def __init__(self, attributes):
        self._attributes = attributes

    def _key(self, key):
        return key if isinstance(key, tuple) else _protect_name(key)

    def __getitem__(self, key):
        return unescape_text(self._attributes[self._key(key)])

    def __setitem__(self, key, value):
        self._attributes[self._key(key)] = escape_text(value)

    def __delitem__(self, key):
        del self._attributes[self._key(key)]

    def __iter__(self):
        return (unescape_name(key) for key in self._attributes)

    def __len__(self):
        return len(self._attributes)

    def clear(self):
        self._attributes.clear()


class TreeBuilder(etree_lxml.TreeBuilder):
    """lxml tree builder that escapes instead of raising or rewriting.

    Also records how many comments came before the doctype, which lxml
    cannot represent: it always writes the doctype first.
    """

    def __init__(self, namespaceHTMLElements, fullTree=False):
        super().__init__(namespaceHTMLElements, fullTree)
        base_element = self.elementClass
        base_comment = self.commentClass

        class Element(base_element):
            def __init__(self, name, namespace):
                super().__init__(name, namespace)
                self._attributes = _Attributes(self._attributes)

            def insertText(self, data, insertBefore=None):
                super().insertText(escape_text(data), insertBefore)

        class Comment(base_comment):
            def __init__(self, data):
                super().__init__(escape_comment(data))

        self.elementClass = Element
        self.commentClass = Comment

    def reset(self):
        super().reset()
        self.comments_before_doctype = 0

    def insertDoctype(self, token):
        self.comments_before_doctype = len(self.initial_comments)
        if token["systemId"]:
            token = dict(token, systemId=escape_text(token["systemId"]))
        super().insertDoctype(token)

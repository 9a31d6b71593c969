from .dom import NAMESPACES, get_attribute, set_attribute, set_inner_html, set_text_content, text_content
from .esi import EsiTagProcessor, postprocess, preprocess
from .handler import BaseRewriteHandler, RewriteHandler
from .rewriter import TagRewriter
from .selector import SelectorError, query
from .serialize import SerializerOpts
from .transforms import Drop, Edit, EditDocument, SetAttrs, SetText

__all__ = [
    "NAMESPACES",
    "BaseRewriteHandler",
    "Drop",
    "Edit",
    "EditDocument",
    "EsiTagProcessor",
    "RewriteHandler",
    "SelectorError",
    "SerializerOpts",
    "SetAttrs",
    "SetText",
    "TagRewriter",
    "get_attribute",
    "postprocess",
    "preprocess",
    "query",
    "set_attribute",
    "set_inner_html",
    "set_text_content",
    "text_content",
]

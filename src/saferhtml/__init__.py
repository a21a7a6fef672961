from .context import FragmentContext
from .errors import (
    AttachmentError,
    HierarchyRequestError,
    IndexSizeError,
    InvalidNodeTypeError,
    SaferHTMLError,
    WrongDocumentError,
)
from .mutate import set_safe_inner_html, set_safe_outer_html, try_set_safe_outer_html
from .node import CommentNode, DocumentFragment, ElementNode, Node, TextNode, is_descendant, walk_tree
from .parser import FragmentParser, parse_fragment
from .sanitize import DEFAULT_POLICY, SanitizationPolicy, sanitize, sanitize_to_html, sanitize_tree
from .selection import Range, range_intersects_node
from .serialize import get_fragment_html, inner_html, outer_html, to_html
from .tokens import ParseError

__all__ = [
    "DEFAULT_POLICY",
    "AttachmentError",
    "CommentNode",
    "DocumentFragment",
    "ElementNode",
    "FragmentContext",
    "FragmentParser",
    "HierarchyRequestError",
    "IndexSizeError",
    "InvalidNodeTypeError",
    "Node",
    "ParseError",
    "Range",
    "SaferHTMLError",
    "SanitizationPolicy",
    "TextNode",
    "WrongDocumentError",
    "get_fragment_html",
    "inner_html",
    "is_descendant",
    "outer_html",
    "parse_fragment",
    "range_intersects_node",
    "sanitize",
    "sanitize_to_html",
    "sanitize_tree",
    "set_safe_inner_html",
    "set_safe_outer_html",
    "to_html",
    "try_set_safe_outer_html",
    "walk_tree",
]

"""HTML serialization for saferhtml nodes.

Output follows the HTML fragment serialization algorithm (what a browser
returns from innerHTML/outerHTML), so markup produced here re-parses to the
same tree.
"""

from __future__ import annotations

from .constants import LEADING_NEWLINE_ELEMENTS, SERIALIZE_RAW_TEXT_ELEMENTS, VOID_ELEMENTS
from .node import CommentNode, Node, TextNode


def _escape_text(text: str | None) -> str:
    if not text:
        return ""
    text = text.replace("&", "&amp;").replace("\xa0", "&nbsp;").replace("<", "&lt;").replace(">", "&gt;")
    # A literal CR would come back as LF once re-parsed.
    return text.replace("\r", "&#13;")


def _escape_attr_value(value: str | None, *, escape_lt_in_attrs: bool = False) -> str:
    if value is None:
        return ""
    value = str(value).replace("&", "&amp;").replace("\xa0", "&nbsp;").replace('"', "&quot;").replace("\r", "&#13;")
    if escape_lt_in_attrs:
        value = value.replace("<", "&lt;").replace(">", "&gt;")
    return value


def serialize_start_tag(
    name: str,
    attrs: dict[str, str | None] | None,
    *,
    escape_lt_in_attrs: bool = False,
) -> str:
    parts: list[str] = ["<", name]
    for key, value in (attrs or {}).items():
        parts.extend([" ", key, '="', _escape_attr_value(value, escape_lt_in_attrs=escape_lt_in_attrs), '"'])
    parts.append(">")
    return "".join(parts)


def serialize_end_tag(name: str) -> str:
    return f"</{name}>"


def _serialize_children(node: Node, parts: list[str], escape_lt_in_attrs: bool) -> None:
    raw = node.name in SERIALIZE_RAW_TEXT_ELEMENTS
    for child in node.children:
        if isinstance(child, TextNode):
            parts.append(child.data if raw else _escape_text(child.data))
        else:
            _serialize_node(child, parts, escape_lt_in_attrs)


def _serialize_node(node: Node, parts: list[str], escape_lt_in_attrs: bool) -> None:
    if isinstance(node, TextNode):
        parts.append(_escape_text(node.data))
    elif isinstance(node, CommentNode):
        parts.append(f"<!--{node.data}-->")
    elif node.name == "#document-fragment":
        _serialize_children(node, parts, escape_lt_in_attrs)
    else:
        parts.append(serialize_start_tag(node.name, node.attrs, escape_lt_in_attrs=escape_lt_in_attrs))
        if node.name in VOID_ELEMENTS:
            return
        # The parser drops one newline right after these start tags.
        first = node.first_child
        if node.name in LEADING_NEWLINE_ELEMENTS and isinstance(first, TextNode) and first.data.startswith("\n"):
            parts.append("\n")
        _serialize_children(node, parts, escape_lt_in_attrs)
        parts.append(serialize_end_tag(node.name))


def inner_html(node: Node, *, escape_lt_in_attrs: bool = False) -> str:
    """Markup for the children of `node`."""
    parts: list[str] = []
    _serialize_children(node, parts, escape_lt_in_attrs)
    return "".join(parts)


def outer_html(node: Node, *, escape_lt_in_attrs: bool = False) -> str:
    """Markup for `node` itself; a fragment serializes as its children."""
    parts: list[str] = []
    _serialize_node(node, parts, escape_lt_in_attrs)
    return "".join(parts)


to_html = outer_html


def get_fragment_html(fragment: Node) -> str:
    """Markup for a fragment's content; an empty fragment gives ''."""
    return inner_html(fragment)

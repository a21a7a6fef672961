"""HTML sanitization policy and the sanitizing pass.

The sanitizer works on a detached tree and never rewrites an attribute
value: a dangerous element loses its whole subtree, a dangerous attribute is
removed whole, and everything else is left exactly as parsed. That keeps
the output visually faithful to the input (ids, classes and inline styles
survive) while removing every construct that can run script.

Removals are not reported to the caller; they are logged at DEBUG level on
the ``saferhtml.sanitize`` logger.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Collection
from dataclasses import dataclass, field

from .constants import FOREIGN_ELEMENTS, RAWTEXT_ELEMENTS, URL_ATTRIBUTES
from .context import FragmentContext
from .node import CommentNode, DocumentFragment, ElementNode, Node, TextNode
from .parser import parse_fragment
from .serialize import get_fragment_html

logger = logging.getLogger(__name__)

# Browsers ignore ASCII whitespace and control characters anywhere in a URL
# scheme ("java\tscript:" still runs), so strip them before comparing.
_URL_IGNORED_CHARS = re.compile(r"[\x00-\x20\x7f]+")
_URL_SCHEME = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")


def _lowered_set(values: Collection[str]) -> frozenset[str]:
    return frozenset(str(value).lower() for value in values)


@dataclass(frozen=True, slots=True)
class SanitizationPolicy:
    """A table-driven policy for sanitizing a parsed tree.

    - Tags in `drop_content_tags` are removed together with their subtree.
    - If `allowed_tags` is not None, any other tag not listed is unwrapped
      (children kept) or, with `strip_disallowed_tags=False`, dropped.
    - Attributes whose name starts with one of `forbidden_attribute_prefixes`
      or equals one of `forbidden_attributes` are removed, whatever their value.
    - Attributes in `url_attributes` are removed when their URL scheme is in
      `forbidden_url_schemes`; attributes in `data_url_forbidden_attributes`
      (links and form targets) also lose `data:` URLs.
    - With `drop_foreign_namespaces`, <svg> and <math> are removed together
      with their subtree. Without it they are kept, but elements whose
      content is raw text (<style>, <xmp>, ...) are dropped inside them:
      a browser parses that text as markup there.

    All tag and attribute names are compared ASCII-lowercase.
    """

    allowed_tags: Collection[str] | None = None
    drop_content_tags: Collection[str] = field(
        default_factory=lambda: {"script", "iframe", "frame", "frameset", "object", "embed", "applet"}
    )
    forbidden_attribute_prefixes: Collection[str] = ("on",)
    forbidden_attributes: Collection[str] = field(default_factory=set)
    url_attributes: Collection[str] = URL_ATTRIBUTES
    forbidden_url_schemes: Collection[str] = field(default_factory=lambda: {"javascript", "vbscript"})
    data_url_forbidden_attributes: Collection[str] = field(
        default_factory=lambda: {"action", "formaction", "href", "xlink:href"}
    )
    strip_disallowed_tags: bool = True
    drop_comments: bool = False
    drop_foreign_namespaces: bool = True

    def __post_init__(self) -> None:
        # Normalize to lowercase frozensets so matching is case-insensitive
        # and the policy stays hashable and immutable.
        if self.allowed_tags is not None:
            object.__setattr__(self, "allowed_tags", _lowered_set(self.allowed_tags))
        object.__setattr__(self, "drop_content_tags", _lowered_set(self.drop_content_tags))
        object.__setattr__(
            self, "forbidden_attribute_prefixes", tuple(sorted(_lowered_set(self.forbidden_attribute_prefixes)))
        )
        object.__setattr__(self, "forbidden_attributes", _lowered_set(self.forbidden_attributes))
        object.__setattr__(self, "url_attributes", _lowered_set(self.url_attributes))
        object.__setattr__(self, "forbidden_url_schemes", _lowered_set(self.forbidden_url_schemes))
        object.__setattr__(self, "data_url_forbidden_attributes", _lowered_set(self.data_url_forbidden_attributes))

    def drops_subtree(self, tag: str) -> bool:
        tag = tag.lower()
        if tag in self.drop_content_tags:
            return True
        if self.drop_foreign_namespaces and tag in FOREIGN_ELEMENTS:
            return True
        return self.allowed_tags is not None and tag not in self.allowed_tags and not self.strip_disallowed_tags

    def unwraps(self, tag: str) -> bool:
        return self.allowed_tags is not None and tag.lower() not in self.allowed_tags

    def forbids_attribute(self, name: str, value: str | None) -> bool:
        name = name.lower()
        if name in self.forbidden_attributes or name.startswith(self.forbidden_attribute_prefixes):
            return True
        if not value or (name not in self.url_attributes and name not in self.data_url_forbidden_attributes):
            return False
        match = _URL_SCHEME.match(_URL_IGNORED_CHARS.sub("", value))
        if match is None:
            return False
        scheme = match.group(1).lower()
        if name in self.url_attributes and scheme in self.forbidden_url_schemes:
            return True
        return scheme == "data" and name in self.data_url_forbidden_attributes


DEFAULT_POLICY: SanitizationPolicy = SanitizationPolicy()


def _raw_text_breaks_out(element: ElementNode) -> bool:
    # Text inside <style> and friends is serialized verbatim; if it contains
    # its own end tag, re-parsing the markup would produce live elements.
    closing = "</" + element.name
    return any(isinstance(child, TextNode) and closing in child.data.lower() for child in element.children)


def _comment_breaks_out(comment: CommentNode) -> bool:
    return "-->" in comment.data or "--!>" in comment.data or comment.data.startswith((">", "->"))


def _sanitize_children(parent: Node, policy: SanitizationPolicy, in_foreign: bool = False) -> None:
    for child in list(parent.children):
        if isinstance(child, CommentNode):
            if policy.drop_comments or _comment_breaks_out(child):
                logger.debug("Dropping comment %r", child.data[:30])
                parent.remove_child(child)
            continue

        if not isinstance(child, ElementNode):
            if child.can_have_children:
                _sanitize_children(child, policy, in_foreign)
            continue

        if policy.drops_subtree(child.name):
            logger.debug("Dropping <%s> and its content", child.name)
            parent.remove_child(child)
            continue

        # Raw text is serialized verbatim, and inside <svg> or <math> a
        # browser reads it back as markup.
        if in_foreign and child.name in RAWTEXT_ELEMENTS:
            logger.debug("Dropping <%s> inside foreign content", child.name)
            parent.remove_child(child)
            continue

        for name in list(child.attrs):
            if policy.forbids_attribute(name, child.attrs[name]):
                logger.debug("Dropping attribute %s on <%s>", name, child.name)
                del child.attrs[name]

        _sanitize_children(child, policy, in_foreign or child.name in FOREIGN_ELEMENTS)

        if child.name in RAWTEXT_ELEMENTS and _raw_text_breaks_out(child):
            logger.debug("Dropping <%s> whose text closes the element", child.name)
            parent.remove_child(child)
            continue

        # <plaintext> swallows everything after it, including its own end
        # tag, so its markup cannot be re-parsed; keep its text instead.
        if policy.unwraps(child.name) or child.name == "plaintext":
            logger.debug("Unwrapping <%s>", child.name)
            parent.insert_before(_take_children(child), child)
            parent.remove_child(child)

    _merge_adjacent_text(parent)


def _merge_adjacent_text(parent: Node) -> None:
    # Removals can leave text nodes side by side; a parser never produces
    # that, so merge them to keep the tree identical to its re-parse.
    previous = None
    for child in list(parent.children):
        if isinstance(child, TextNode) and isinstance(previous, TextNode):
            previous.data += child.data
            parent.remove_child(child)
            continue
        previous = child


def _take_children(node: Node) -> DocumentFragment:
    fragment = DocumentFragment()
    for child in list(node.children):
        fragment.append_child(child)
    return fragment


def sanitize_tree(node: Node, *, policy: SanitizationPolicy = DEFAULT_POLICY) -> Node:
    """Sanitize the subtree below `node` in place and return `node`.

    `node` itself is kept as the container; only its descendants are
    filtered. Meant for detached trees such as freshly parsed fragments.
    """
    context = FragmentContext.for_node(node)
    _sanitize_children(node, policy, context is not None and context.namespace is not None)
    return node


def sanitize(
    markup: str,
    *,
    policy: SanitizationPolicy = DEFAULT_POLICY,
    fragment_context: FragmentContext | str | None = None,
) -> DocumentFragment:
    """Parse untrusted `markup` and return a sanitized DocumentFragment.

    Never raises on malformed markup. `fragment_context` names the element
    the result is meant for, so that e.g. markup for a <textarea> parses as
    text; markup for an element whose whole content the policy drops
    (such as <script>, or anything inside <svg> by default) yields an
    empty fragment.
    """
    if isinstance(fragment_context, str):
        fragment_context = FragmentContext(fragment_context)
    in_foreign = False
    if fragment_context is not None:
        tag_name = fragment_context.tag_name
        in_foreign = fragment_context.namespace is not None
        if (
            policy.drops_subtree(tag_name)
            or (in_foreign and policy.drop_foreign_namespaces)
            or (in_foreign and tag_name in RAWTEXT_ELEMENTS)
        ):
            logger.debug("Discarding markup for <%s> content", tag_name)
            return DocumentFragment()

    fragment = parse_fragment(markup, fragment_context=fragment_context)
    _sanitize_children(fragment, policy, in_foreign)
    return fragment


def sanitize_to_html(markup: str, *, policy: SanitizationPolicy = DEFAULT_POLICY) -> str:
    """Sanitize `markup` and serialize the result back to a string."""
    return get_fragment_html(sanitize(markup, policy=policy))

"""Safe replacements for innerHTML / outerHTML assignment.

Untrusted markup is parsed into a detached fragment, sanitized, and only
then grafted into the target tree, so script elements and event handler
attributes never exist in the live tree, not even briefly.

All checks run before anything is parsed or moved: a call either applies
completely or leaves the tree untouched. The functions assume a single
writer; they take no locks, and callers sharing a tree across threads must
serialize access themselves.
"""

from __future__ import annotations

import logging

from .context import FragmentContext
from .errors import AttachmentError, HierarchyRequestError
from .node import Node
from .sanitize import DEFAULT_POLICY, SanitizationPolicy, sanitize

logger = logging.getLogger(__name__)


def set_safe_inner_html(target: Node, markup: str, *, policy: SanitizationPolicy = DEFAULT_POLICY) -> None:
    """Replace the children of `target` with the sanitized content of `markup`.

    `target` does not need to be attached. Raises HierarchyRequestError,
    before changing anything, if it cannot hold children.
    """
    if not target.can_have_children:
        msg = f"{target!r} cannot have children"
        raise HierarchyRequestError(msg)

    fragment = sanitize(markup, policy=policy, fragment_context=FragmentContext.for_node(target))
    target.replace_children(fragment)
    logger.debug("Set inner content of %r (%d children)", target, len(target.children))


def try_set_safe_outer_html(
    target: Node, markup: str, *, policy: SanitizationPolicy = DEFAULT_POLICY
) -> AttachmentError | None:
    """Replace `target` itself with the sanitized content of `markup`.

    Returns an AttachmentError, without parsing or mutating anything, when
    `target` has no parent; returns None on success. Siblings of `target`
    are left as they are and no wrapper element is introduced.
    """
    parent = target.parent
    if parent is None:
        logger.debug("Refusing to replace detached node %r", target)
        return AttachmentError(target)

    fragment = sanitize(markup, policy=policy, fragment_context=FragmentContext.for_node(parent))
    grafted = len(fragment.children)
    parent.insert_before(fragment, target)
    parent.remove_child(target)
    logger.debug("Replaced %r with %d sanitized nodes", target, grafted)
    return None


def set_safe_outer_html(target: Node, markup: str, *, policy: SanitizationPolicy = DEFAULT_POLICY) -> None:
    """Like try_set_safe_outer_html, but raises the AttachmentError."""
    error = try_set_safe_outer_html(target, markup, policy=policy)
    if error is not None:
        raise error

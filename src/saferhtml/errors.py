"""Exceptions raised by saferhtml.

Names follow the DOM exception names for the same conditions so callers
porting DOM code can map them one to one.
"""


class SaferHTMLError(Exception):
    """Base class for all saferhtml errors."""


class AttachmentError(SaferHTMLError):
    """The target node has no parent, so it cannot be replaced in place."""

    def __init__(self, node, message=None):
        self.node = node
        super().__init__(message or f"{node!r} is not attached to a tree")


class HierarchyRequestError(SaferHTMLError, ValueError):
    """An insertion would produce an invalid tree (cycle, text parent, ...)."""


class IndexSizeError(SaferHTMLError, IndexError):
    """A boundary point offset is larger than the node's length."""


class InvalidNodeTypeError(SaferHTMLError, ValueError):
    """The node cannot be used as a range boundary in this position."""


class WrongDocumentError(SaferHTMLError, ValueError):
    """Two boundary points do not share a root."""

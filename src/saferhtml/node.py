"""DOM-like node model.

Nodes own their children; `parent` points back up and is None for a
detached root. Trees are single-writer structures: nothing here locks, so
callers that share a tree between threads must serialize access themselves.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

from .errors import HierarchyRequestError


class Node:
    """Base class for every node in a tree.

    - name: tag name for elements, '#text', '#comment' or '#document-fragment'
    - children: list of child Nodes (always empty for character data)
    - parent: containing Node, or None when detached
    """

    __slots__ = ("children", "name", "parent")

    def __init__(self, name: str) -> None:
        if not name:
            msg = "Empty name passed to Node constructor"
            raise ValueError(msg)
        self.name = name
        self.children: list[Node] = []
        self.parent: Node | None = None

    @property
    def can_have_children(self) -> bool:
        return True

    @property
    def is_attached(self) -> bool:
        return self.parent is not None

    @property
    def index(self) -> int:
        """Position of this node among its parent's children (0 when detached)."""
        if self.parent is None:
            return 0
        siblings = self.parent.children
        for i, sibling in enumerate(siblings):
            if sibling is self:
                return i
        msg = f"{self!r} is missing from its parent's children"
        raise HierarchyRequestError(msg)

    @property
    def root(self) -> Node:
        current = self
        while current.parent is not None:
            current = current.parent
        return current

    @property
    def length(self) -> int:
        """DOM node length: characters for character data, children otherwise."""
        return len(self.children)

    @property
    def first_child(self) -> Node | None:
        return self.children[0] if self.children else None

    @property
    def last_child(self) -> Node | None:
        return self.children[-1] if self.children else None

    @property
    def next_sibling(self) -> Node | None:
        if self.parent is None:
            return None
        i = self.index + 1
        siblings = self.parent.children
        return siblings[i] if i < len(siblings) else None

    @property
    def previous_sibling(self) -> Node | None:
        if self.parent is None:
            return None
        i = self.index
        return self.parent.children[i - 1] if i > 0 else None

    @property
    def text_content(self) -> str:
        return "".join(node.data for node in self.walk() if isinstance(node, TextNode))

    def has_child_nodes(self) -> bool:
        return bool(self.children)

    # ---------------------
    # Mutation
    # ---------------------

    def append_child(self, child: Node) -> Node:
        return self.insert_before(child, None)

    def insert_before(self, new_node: Node, reference_node: Node | None) -> Node:
        """Insert `new_node` before `reference_node` (append when it is None).

        A DocumentFragment is consumed: its children move here in order and
        the fragment is left empty. All checks run before anything moves.
        """
        if not self.can_have_children:
            msg = f"{self!r} cannot have children"
            raise HierarchyRequestError(msg)
        if reference_node is not None and reference_node.parent is not self:
            msg = f"{reference_node!r} is not a child of {self!r}"
            raise HierarchyRequestError(msg)
        if new_node.contains(self):
            msg = f"Inserting {new_node!r} into {self!r} would create a cycle"
            raise HierarchyRequestError(msg)
        if reference_node is new_node:
            return new_node

        if isinstance(new_node, DocumentFragment):
            for child in list(new_node.children):
                self._insert(child, reference_node)
            return new_node

        self._insert(new_node, reference_node)
        return new_node

    def _insert(self, node: Node, reference_node: Node | None) -> None:
        if node.parent is not None:
            node.parent.remove_child(node)
        node.parent = self
        if reference_node is None:
            self.children.append(node)
        else:
            self.children.insert(reference_node.index, node)

    def remove_child(self, child: Node) -> Node:
        if child.parent is not self:
            msg = f"{child!r} is not a child of {self!r}"
            raise HierarchyRequestError(msg)
        del self.children[child.index]
        child.parent = None
        return child

    def remove(self) -> None:
        """Detach this node from its parent, if it has one."""
        if self.parent is not None:
            self.parent.remove_child(self)

    def replace_children(self, *nodes: Node) -> None:
        if not self.can_have_children:
            msg = f"{self!r} cannot have children"
            raise HierarchyRequestError(msg)
        for node in nodes:
            if node.contains(self):
                msg = f"Inserting {node!r} into {self!r} would create a cycle"
                raise HierarchyRequestError(msg)
        for child in list(self.children):
            self.remove_child(child)
        for node in nodes:
            self.append_child(node)

    # ---------------------
    # Queries
    # ---------------------

    def contains(self, other: Node | None) -> bool:
        """True if `other` is this node or one of its descendants (DOM semantics)."""
        current = other
        while current is not None:
            if current is self:
                return True
            current = current.parent
        return False

    def walk(self) -> Iterator[Node]:
        """Yield this node and its descendants in document order."""
        stack: list[Node] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def get_element_by_id(self, element_id: str) -> ElementNode | None:
        for node in self.walk():
            if isinstance(node, ElementNode) and node.attrs.get("id") == element_id:
                return node
        return None

    def tree_path(self) -> list[int]:
        """Child indices leading from the root down to this node."""
        path: list[int] = []
        current = self
        while current.parent is not None:
            path.append(current.index)
            current = current.parent
        path.reverse()
        return path

    def is_equal_node(self, other: Node | None) -> bool:
        """Structural equality: same kind, name, attributes, data and children."""
        if other is None or type(self) is not type(other) or self.name != other.name:
            return False
        if not self._same_payload(other):
            return False
        if len(self.children) != len(other.children):
            return False
        return all(a.is_equal_node(b) for a, b in zip(self.children, other.children))

    def _same_payload(self, other: Node) -> bool:
        return True

    def clone(self, deep: bool = True) -> Node:
        copy = self._shallow_copy()
        if deep:
            for child in self.children:
                copy.append_child(child.clone(deep=True))
        return copy

    def _shallow_copy(self) -> Node:
        return type(self)(self.name)

    def __repr__(self) -> str:
        return f"Node({self.name}, children={len(self.children)})"


class ElementNode(Node):
    __slots__ = ("attrs",)

    def __init__(self, name: str, attrs: dict[str, str | None] | None = None) -> None:
        super().__init__(name.lower())
        # Lowercase attribute names deterministically; keep first occurrence
        lowered: dict[str, str | None] = {}
        for key, value in (attrs or {}).items():
            lowered.setdefault(key.lower(), value)
        self.attrs = lowered

    def _same_payload(self, other: Node) -> bool:
        return self.attrs == other.attrs

    def _shallow_copy(self) -> ElementNode:
        return ElementNode(self.name, dict(self.attrs))

    def __repr__(self) -> str:
        element_id = self.attrs.get("id")
        suffix = f"#{element_id}" if element_id else ""
        return f"ElementNode(<{self.name}{suffix}>, children={len(self.children)})"


class CharacterDataNode(Node):
    __slots__ = ("data",)

    def __init__(self, name: str, data: str = "") -> None:
        super().__init__(name)
        self.data = data

    @property
    def can_have_children(self) -> bool:
        return False

    @property
    def length(self) -> int:
        return len(self.data)

    def _same_payload(self, other: Node) -> bool:
        return self.data == other.data

    def _shallow_copy(self) -> CharacterDataNode:
        return type(self)(self.data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.data[:30]!r})"


class TextNode(CharacterDataNode):
    __slots__ = ()

    def __init__(self, data: str = "") -> None:
        super().__init__("#text", data)


class CommentNode(CharacterDataNode):
    __slots__ = ()

    def __init__(self, data: str = "") -> None:
        super().__init__("#comment", data)


class DocumentFragment(Node):
    __slots__ = ()

    def __init__(self) -> None:
        super().__init__("#document-fragment")

    def _shallow_copy(self) -> DocumentFragment:
        return DocumentFragment()

    def __repr__(self) -> str:
        return f"DocumentFragment(children={len(self.children)})"


def is_descendant(ancestor: Node, node: Node) -> bool:
    """True if `node` sits strictly below `ancestor`; a node is not its own descendant."""
    if node is ancestor:
        return False
    return ancestor.contains(node)


def walk_tree(node: Node, callback: Callable[[Node], object]) -> None:
    """Call `callback` on `node` and every descendant, in document order."""
    for current in node.walk():
        callback(current)

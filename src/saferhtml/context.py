from .constants import FOREIGN_ELEMENTS


class FragmentContext:
    """Context element a fragment is parsed for (the element receiving it).

    `namespace` is "svg" or "math" when the element sits inside foreign
    content, None for plain HTML.
    """

    __slots__ = ("namespace", "tag_name")

    def __init__(self, tag_name, namespace=None):
        self.tag_name = tag_name.lower()
        if namespace is None and self.tag_name in FOREIGN_ELEMENTS:
            namespace = self.tag_name
        self.namespace = namespace

    @classmethod
    def for_node(cls, node):
        """Context for markup inserted as children of `node`, or None for fragments."""
        if node is None or node.name.startswith("#"):
            return None
        namespace = None
        ancestor = node
        while ancestor is not None:
            if ancestor.name in FOREIGN_ELEMENTS:
                namespace = ancestor.name
                break
            ancestor = ancestor.parent
        return cls(node.name, namespace)

    def __repr__(self):
        ns = f"{self.namespace}:" if self.namespace else ""
        return f"FragmentContext({ns}{self.tag_name})"

from .constants import (
    AUTO_CLOSING_TAGS,
    BUTTON_SCOPE_BOUNDARY_ELEMENTS,
    CLOSES_P,
    FORMATTING_ELEMENTS,
    FORMATTING_MARKER_ELEMENTS,
    FRAGMENT_IGNORED_START_TAGS,
    HEADING_ELEMENTS,
    IMPLIED_END_TAGS,
    LEADING_NEWLINE_ELEMENTS,
    RAWTEXT_ELEMENTS,
    RCDATA_ELEMENTS,
    RECONSTRUCTS_FORMATTING,
    SCOPE_BOUNDARY_ELEMENTS,
    SPECIAL_ELEMENTS,
    TABLE_END_TAGS,
    TABLE_SCOPE_BOUNDARY_ELEMENTS,
    VOID_ELEMENTS,
)
from .node import CommentNode, DocumentFragment, ElementNode, TextNode
from .tokens import CommentToken, DoctypeToken, EOFToken, ParseError, Tag, TextToken

FORMAT_MARKER = object()

_TEXT_ONLY_ELEMENTS = RCDATA_ELEMENTS | RAWTEXT_ELEMENTS


class TreeBuilder:
    """Builds a DocumentFragment from tokenizer output.

    This follows the HTML "in body" rules closely enough that ordinary and
    sloppy markup land where a browser would put them: implied end tags,
    auto-closing list items and paragraphs, void elements, stray end tags,
    and misnested formatting elements (via the adoption agency algorithm).
    It does not implement table foster parenting or foreign content; stray
    table content resolves to the nearest well-nested tree instead.
    """

    __slots__ = ("active_formatting", "errors", "fragment_context", "ignore_lf", "open_elements", "root")

    def __init__(self, fragment_context=None):
        self.fragment_context = fragment_context
        self.root = DocumentFragment()
        self.open_elements = []
        self.active_formatting = []
        self.ignore_lf = False
        self.errors = []

    @property
    def current_node(self):
        return self.open_elements[-1] if self.open_elements else self.root

    def process_token(self, token):
        token_type = type(token)
        if token_type is ParseError:
            self.errors.append(token)
            return
        ignore_lf = self.ignore_lf
        self.ignore_lf = False

        if token_type is TextToken:
            data = token.data
            if ignore_lf and data.startswith("\n"):
                data = data[1:]
            self._insert_text(data)
        elif token_type is Tag:
            if token.is_start:
                self._handle_start_tag(token)
            else:
                self._handle_end_tag(token)
        elif token_type is CommentToken:
            self.current_node.append_child(CommentNode(token.data))
        elif token_type is DoctypeToken:
            self._parse_error("unexpected-doctype")
        elif token_type is EOFToken:
            if self.open_elements:
                self._parse_error("expected-closing-tag-but-got-eof")

    def finish(self):
        self.open_elements.clear()
        self.active_formatting.clear()
        return self.root

    # Helpers ---------------------------------------------------------------

    def _parse_error(self, code):
        self.errors.append(ParseError(code))

    def _insert_text(self, data):
        if "\0" in data:
            data = data.replace("\0", "")
        if not data:
            return
        if self.current_node.name not in _TEXT_ONLY_ELEMENTS:
            self._reconstruct_active_formatting_elements()
        parent = self.current_node
        last = parent.last_child
        if isinstance(last, TextNode):
            last.data += data
        else:
            parent.append_child(TextNode(data))

    def _insert_element(self, tag, *, push):
        node = ElementNode(tag.name, tag.attrs)
        self.current_node.append_child(node)
        if push:
            self.open_elements.append(node)
        return node

    def _pop_element(self):
        node = self.open_elements.pop()
        if node.name in FORMATTING_MARKER_ELEMENTS:
            self._clear_active_formatting_up_to_marker()
        return node

    def _open_index(self, node):
        for index in range(len(self.open_elements) - 1, -1, -1):
            if self.open_elements[index] is node:
                return index
        return None

    def _has_element_in_scope(self, name, boundaries=SCOPE_BOUNDARY_ELEMENTS):
        for node in reversed(self.open_elements):
            if node.name == name:
                return True
            if node.name in boundaries:
                return False
        return False

    def _has_node_in_scope(self, target):
        for node in reversed(self.open_elements):
            if node is target:
                return True
            if node.name in SCOPE_BOUNDARY_ELEMENTS:
                return False
        return False

    def _has_element_in_button_scope(self, name):
        return self._has_element_in_scope(name, BUTTON_SCOPE_BOUNDARY_ELEMENTS)

    def _generate_implied_end_tags(self, exclude=None):
        while self.open_elements:
            name = self.open_elements[-1].name
            if name not in IMPLIED_END_TAGS or name == exclude:
                return
            self._pop_element()

    def _pop_until_inclusive(self, name):
        while self.open_elements:
            if self._pop_element().name == name:
                break

    def _pop_until_node(self, target):
        while self.open_elements:
            if self._pop_element() is target:
                break

    def _close_p_element(self):
        if self._has_element_in_button_scope("p"):
            self._generate_implied_end_tags("p")
            if self.open_elements[-1].name != "p":
                self._parse_error("unexpected-end-tag")
            self._pop_until_inclusive("p")
            return True
        return False

    def _close_auto_closed(self, name):
        # Close the outermost matching element before a stop, so that <tr>
        # inside an open cell closes the cell and its row together.
        closes, stops = AUTO_CLOSING_TAGS[name]
        target = None
        for node in reversed(self.open_elements):
            if node.name in closes:
                target = node
                continue
            if node.name in stops or node.name in SCOPE_BOUNDARY_ELEMENTS:
                break
        if target is None:
            return
        self._generate_implied_end_tags(target.name)
        if self.open_elements[-1] is not target:
            self._parse_error("unexpected-start-tag-implies-end-tag")
        self._pop_until_node(target)

    # Active formatting elements ----------------------------------------------

    def _formatting_index(self, name):
        for index in range(len(self.active_formatting) - 1, -1, -1):
            entry = self.active_formatting[index]
            if entry is FORMAT_MARKER:
                break
            if entry["name"] == name:
                return index
        return None

    def _formatting_index_by_node(self, node):
        for index in range(len(self.active_formatting) - 1, -1, -1):
            entry = self.active_formatting[index]
            if entry is FORMAT_MARKER:
                break
            if entry["node"] is node:
                return index
        return None

    def _push_formatting_entry(self, node, attrs):
        # At most three identical entries after the last marker; the
        # earliest one goes.
        attrs = dict(attrs)
        duplicates = []
        for index in range(len(self.active_formatting) - 1, -1, -1):
            entry = self.active_formatting[index]
            if entry is FORMAT_MARKER:
                break
            if entry["name"] == node.name and entry["attrs"] == attrs:
                duplicates.append(index)
        if len(duplicates) >= 3:
            del self.active_formatting[duplicates[-1]]
        self.active_formatting.append({"name": node.name, "attrs": attrs, "node": node})

    def _clear_active_formatting_up_to_marker(self):
        while self.active_formatting:
            if self.active_formatting.pop() is FORMAT_MARKER:
                break

    def _forget_formatting_element(self, node):
        index = self._formatting_index_by_node(node)
        if index is not None:
            del self.active_formatting[index]
        index = self._open_index(node)
        if index is not None:
            del self.open_elements[index]

    def _reconstruct_active_formatting_elements(self):
        entries = self.active_formatting
        if not entries:
            return
        last = entries[-1]
        if last is FORMAT_MARKER or self._open_index(last["node"]) is not None:
            return
        index = len(entries) - 1
        while index > 0:
            previous = entries[index - 1]
            if previous is FORMAT_MARKER or self._open_index(previous["node"]) is not None:
                break
            index -= 1
        for entry in entries[index:]:
            entry["node"] = self._insert_element(Tag(Tag.START, entry["name"], dict(entry["attrs"])), push=True)

    def _adoption_agency(self, subject):
        current = self.current_node
        if self.open_elements and current.name == subject and self._formatting_index_by_node(current) is None:
            self._pop_element()
            return

        for _ in range(8):
            index = self._formatting_index(subject)
            if index is None:
                self._close_element_by_name(subject)
                return
            entry = self.active_formatting[index]
            formatting_element = entry["node"]

            formatting_position = self._open_index(formatting_element)
            if formatting_position is None:
                self._parse_error("misnested-formatting-element")
                del self.active_formatting[index]
                return
            if not self._has_node_in_scope(formatting_element):
                self._parse_error("unexpected-end-tag")
                return
            if formatting_element is not self.current_node:
                self._parse_error("misnested-formatting-element")

            furthest_block = None
            for node in self.open_elements[formatting_position + 1 :]:
                if node.name in SPECIAL_ELEMENTS:
                    furthest_block = node
                    break
            if furthest_block is None:
                self._pop_until_node(formatting_element)
                del self.active_formatting[index]
                return

            bookmark = index + 1
            node = last_node = furthest_block
            inner_loop_counter = 0
            while True:
                inner_loop_counter += 1
                node_position = self._open_index(node)
                node = self.open_elements[node_position - 1]
                if node is formatting_element:
                    break

                node_index = self._formatting_index_by_node(node)
                if inner_loop_counter > 3 and node_index is not None:
                    del self.active_formatting[node_index]
                    if node_index < bookmark:
                        bookmark -= 1
                    node_index = None
                if node_index is None:
                    # Drop it from the stack; the element that took its
                    # place steps the loop on to the one above.
                    node_position = self._open_index(node)
                    del self.open_elements[node_position]
                    node = self.open_elements[node_position]
                    continue

                node_entry = self.active_formatting[node_index]
                replacement = ElementNode(node_entry["name"], node_entry["attrs"])
                node_entry["node"] = replacement
                self.open_elements[self._open_index(node)] = replacement
                node = replacement
                if last_node is furthest_block:
                    bookmark = node_index + 1
                node.append_child(last_node)
                last_node = node

            common_ancestor = self.open_elements[formatting_position - 1] if formatting_position > 0 else self.root
            common_ancestor.append_child(last_node)

            replacement = ElementNode(entry["name"], entry["attrs"])
            for child in list(furthest_block.children):
                replacement.append_child(child)
            furthest_block.append_child(replacement)

            entry_index = self.active_formatting.index(entry)
            del self.active_formatting[entry_index]
            if bookmark > entry_index:
                bookmark -= 1
            entry["node"] = replacement
            self.active_formatting.insert(bookmark, entry)

            del self.open_elements[self._open_index(formatting_element)]
            self.open_elements.insert(self._open_index(furthest_block) + 1, replacement)

    # Tag handlers ----------------------------------------------------------

    def _handle_start_tag(self, tag):
        name = tag.name
        if name in FRAGMENT_IGNORED_START_TAGS:
            self._parse_error("unexpected-start-tag")
            return

        if name == "a":
            index = self._formatting_index("a")
            if index is not None:
                self._parse_error("unexpected-start-tag-implies-end-tag")
                anchor = self.active_formatting[index]["node"]
                self._adoption_agency("a")
                self._forget_formatting_element(anchor)
        elif name == "nobr" and self._has_element_in_scope("nobr"):
            self._parse_error("unexpected-start-tag-implies-end-tag")
            self._adoption_agency("nobr")

        if name in CLOSES_P:
            self._close_p_element()
        if name in HEADING_ELEMENTS and self.current_node.name in HEADING_ELEMENTS:
            self._parse_error("unexpected-start-tag")
            self._pop_element()
        if name in AUTO_CLOSING_TAGS:
            self._close_auto_closed(name)
        if name not in SPECIAL_ELEMENTS or name in RECONSTRUCTS_FORMATTING:
            self._reconstruct_active_formatting_elements()

        if name in VOID_ELEMENTS:
            self._insert_element(tag, push=False)
            return
        if tag.self_closing:
            self._parse_error("non-void-html-element-start-tag-with-trailing-solidus")
        node = self._insert_element(tag, push=True)
        if name in FORMATTING_ELEMENTS:
            self._push_formatting_entry(node, tag.attrs)
        elif name in FORMATTING_MARKER_ELEMENTS:
            self.active_formatting.append(FORMAT_MARKER)
        elif name in LEADING_NEWLINE_ELEMENTS:
            self.ignore_lf = True

    def _handle_end_tag(self, tag):
        name = tag.name
        if name == "br":
            self._parse_error("unexpected-end-tag")
            self._reconstruct_active_formatting_elements()
            self._insert_element(Tag(Tag.START, "br", {}), push=False)
            return
        if name == "p":
            if not self._close_p_element():
                self._parse_error("unexpected-end-tag")
                self._insert_element(Tag(Tag.START, "p", {}), push=False)
            return
        if name in FORMATTING_ELEMENTS:
            self._adoption_agency(name)
            return
        self._close_element_by_name(name)

    def _close_element_by_name(self, name):
        boundaries = TABLE_SCOPE_BOUNDARY_ELEMENTS if name in TABLE_END_TAGS else SCOPE_BOUNDARY_ELEMENTS
        for node in reversed(self.open_elements):
            if node.name == name:
                self._generate_implied_end_tags(name)
                if self.open_elements[-1] is not node:
                    self._parse_error("end-tag-too-early")
                self._pop_until_node(node)
                return
            if node.name in boundaries:
                break
        self._parse_error("unexpected-end-tag")

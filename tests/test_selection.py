"""Tests for ranges and range/node intersection."""

import unittest

from saferhtml import (
    ElementNode,
    IndexSizeError,
    InvalidNodeTypeError,
    Range,
    WrongDocumentError,
    parse_fragment,
    range_intersects_node,
)


def _build_page():
    body = ElementNode("body")
    fragment = parse_fragment('<div id="test-container"><div id="test-elem-1"></div><div id="test-elem-2"></div></div>')
    body.append_child(fragment)
    return body


class _HostRange:
    """A range object from another environment that has its own intersection primitive."""

    def __init__(self, answer):
        self.answer = answer
        self.calls = []

    def intersects_node(self, node):
        self.calls.append(node)
        return self.answer


class _BareRange:
    """A range with boundary points only."""

    def __init__(self, start_container, start_offset, end_container, end_offset):
        self.start_container = start_container
        self.start_offset = start_offset
        self.end_container = end_container
        self.end_offset = end_offset


class TestRangeIntersectsNode(unittest.TestCase):
    def setUp(self):
        self.body = _build_page()
        self.container = self.body.get_element_by_id("test-container")
        self.elem_1 = self.body.get_element_by_id("test-elem-1")
        self.elem_2 = self.body.get_element_by_id("test-elem-2")

    def test_detects_node_in_range(self):
        node_range = Range(self.body)
        node_range.select_node(self.container)
        assert range_intersects_node(node_range, self.container)
        assert range_intersects_node(node_range, self.elem_2)

    def test_does_not_detect_node_not_in_range(self):
        node_range = Range(self.body)
        node_range.select_node(self.elem_1)
        assert range_intersects_node(node_range, self.container)
        assert range_intersects_node(node_range, self.elem_1)
        assert not range_intersects_node(node_range, self.elem_2)

    def test_node_in_other_tree(self):
        node_range = Range(self.body)
        node_range.select_node_contents(self.body)
        assert not range_intersects_node(node_range, ElementNode("div"))

    def test_root_always_intersects_its_ranges(self):
        node_range = Range(self.elem_1)
        assert range_intersects_node(node_range, self.body)

    def test_collapsed_range_between_siblings(self):
        node_range = Range(self.container, 1)
        assert not range_intersects_node(node_range, self.elem_1)
        assert not range_intersects_node(node_range, self.elem_2)
        assert range_intersects_node(node_range, self.container)

    def test_host_answer_is_passed_through(self):
        host = _HostRange(True)
        assert range_intersects_node(host, self.elem_2)
        assert host.calls == [self.elem_2]
        assert not range_intersects_node(_HostRange(False), self.elem_1)

    def test_fallback_without_intersection_primitive(self):
        bare = _BareRange(self.container, 0, self.container, 1)
        assert range_intersects_node(bare, self.elem_1)
        assert range_intersects_node(bare, self.container)
        assert not range_intersects_node(bare, self.elem_2)

    def test_fallback_with_parentless_node(self):
        bare = _BareRange(self.elem_1, 0, self.elem_1, 0)
        assert range_intersects_node(bare, self.body)

    def test_fallback_node_in_other_tree(self):
        bare = _BareRange(self.container, 0, self.container, 2)
        assert not range_intersects_node(bare, ElementNode("p"))

    def test_fallback_agrees_with_range(self):
        text_fragment = parse_fragment("<p>ab<b>cd</b>ef</p><p>gh</p>")
        nodes = list(text_fragment.walk())
        first_text = text_fragment.children[0].children[0]
        last_text = text_fragment.children[1].children[0]
        node_range = Range(first_text, 1, last_text, 1)
        bare = _BareRange(first_text, 1, last_text, 1)
        for node in nodes:
            assert range_intersects_node(bare, node) == node_range.intersects_node(node), node


class TestRange(unittest.TestCase):
    def setUp(self):
        self.fragment = parse_fragment("<p>one<b>two</b></p><p>three</p>")
        self.first, self.second = self.fragment.children
        self.bold = self.first.children[1]

    def test_new_range_is_collapsed(self):
        node_range = Range(self.first)
        assert node_range.collapsed
        assert node_range.start_container is self.first
        assert node_range.start_offset == 0

    def test_offsets_are_checked(self):
        with self.assertRaises(IndexSizeError):
            Range(self.first, 3)
        with self.assertRaises(IndexSizeError):
            Range(self.first).set_end(self.first.children[0], 4)
        with self.assertRaises(IndexSizeError):
            Range(self.first, -1)

    def test_text_offsets_count_characters(self):
        text = self.first.children[0]
        node_range = Range(text, 1, text, 3)
        assert not node_range.collapsed
        assert node_range.common_ancestor_container is text

    def test_set_start_after_end_collapses(self):
        node_range = Range(self.first, 0, self.first, 1)
        node_range.set_start(self.second, 0)
        assert node_range.collapsed
        assert node_range.end_container is self.second

    def test_set_end_before_start_collapses(self):
        node_range = Range(self.second, 0, self.second, 1)
        node_range.set_end(self.first, 1)
        assert node_range.collapsed
        assert node_range.start_container is self.first

    def test_set_start_in_other_tree_collapses(self):
        node_range = Range(self.first, 0, self.first, 2)
        other = ElementNode("div")
        node_range.set_start(other, 0)
        assert node_range.collapsed
        assert node_range.root is other

    def test_collapse(self):
        node_range = Range(self.first, 0, self.second, 1)
        node_range.collapse(to_start=True)
        assert node_range.end_container is self.first
        node_range = Range(self.first, 0, self.second, 1)
        node_range.collapse()
        assert node_range.start_container is self.second
        assert node_range.start_offset == 1

    def test_select_node(self):
        node_range = Range(self.fragment)
        node_range.select_node(self.bold)
        assert node_range.start_container is self.first
        assert node_range.start_offset == 1
        assert node_range.end_offset == 2
        assert node_range.common_ancestor_container is self.first

    def test_select_parentless_node_raises(self):
        with self.assertRaises(InvalidNodeTypeError):
            Range(self.fragment).select_node(self.fragment)

    def test_select_node_contents(self):
        node_range = Range(self.fragment)
        node_range.select_node_contents(self.first)
        assert (node_range.start_offset, node_range.end_offset) == (0, 2)

    def test_common_ancestor_across_paragraphs(self):
        node_range = Range(self.bold.children[0], 1, self.second.children[0], 2)
        assert node_range.common_ancestor_container is self.fragment

    def test_compare_boundary_points(self):
        outer = Range(self.fragment)
        outer.select_node_contents(self.fragment)
        inner = Range(self.fragment)
        inner.select_node(self.bold)
        assert outer.compare_boundary_points(Range.START_TO_START, inner) == -1
        assert outer.compare_boundary_points(Range.END_TO_END, inner) == 1
        assert inner.compare_boundary_points(Range.START_TO_END, outer) == 1
        assert inner.compare_boundary_points(Range.END_TO_START, outer) == -1
        assert inner.compare_boundary_points(Range.START_TO_START, inner) == 0
        with self.assertRaises(ValueError):
            inner.compare_boundary_points(7, outer)

    def test_compare_ranges_in_different_trees(self):
        with self.assertRaises(WrongDocumentError):
            Range(self.first).compare_boundary_points(Range.START_TO_START, Range(ElementNode("div")))

    def test_compare_point(self):
        node_range = Range(self.first, 1, self.first, 2)
        assert node_range.compare_point(self.first.children[0], 0) == -1
        assert node_range.compare_point(self.bold, 0) == 0
        assert node_range.compare_point(self.second, 0) == 1
        assert node_range.is_point_in_range(self.first, 2)
        assert not node_range.is_point_in_range(self.first, 0)
        assert not node_range.is_point_in_range(ElementNode("div"), 0)
        with self.assertRaises(WrongDocumentError):
            node_range.compare_point(ElementNode("div"), 0)

    def test_intersects_node(self):
        node_range = Range(self.first.children[0], 1, self.bold.children[0], 1)
        assert node_range.intersects_node(self.first)
        assert node_range.intersects_node(self.bold)
        assert node_range.intersects_node(self.fragment)
        assert not node_range.intersects_node(self.second)


if __name__ == "__main__":
    unittest.main()

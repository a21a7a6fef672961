"""Tests for the sanitization policy and the sanitizing pass."""

import logging
import random
import unittest

from saferhtml import (
    DEFAULT_POLICY,
    CommentNode,
    ElementNode,
    SanitizationPolicy,
    TextNode,
    get_fragment_html,
    parse_fragment,
    sanitize,
    sanitize_to_html,
    sanitize_tree,
)
from saferhtml.constants import RAWTEXT_ELEMENTS

_HANDLER_ATTRS = ("onclick", "onerror", "onload", "onmouseover", "onfocus")


def _assert_safe(node):
    for descendant in node.walk():
        if isinstance(descendant, ElementNode):
            assert descendant.name not in DEFAULT_POLICY.drop_content_tags, descendant
            for name in descendant.attrs:
                assert not name.startswith("on"), (descendant, name)


class TestSanitizePlumbing(unittest.TestCase):
    def test_public_api_exports_exist(self):
        assert isinstance(DEFAULT_POLICY, SanitizationPolicy)
        assert callable(sanitize)

    def test_policy_normalizes_inputs(self):
        policy = SanitizationPolicy(
            allowed_tags=["DIV", "b"],
            drop_content_tags=["Script"],
            forbidden_attribute_prefixes=["ON", "data-"],
            forbidden_attributes=["Style"],
            forbidden_url_schemes=["JavaScript"],
        )
        assert policy.allowed_tags == frozenset({"div", "b"})
        assert policy.drop_content_tags == frozenset({"script"})
        assert policy.forbidden_attribute_prefixes == ("data-", "on")
        assert policy.forbidden_attributes == frozenset({"style"})
        assert policy.forbidden_url_schemes == frozenset({"javascript"})

    def test_policy_is_immutable_and_hashable(self):
        policy = SanitizationPolicy()
        with self.assertRaises(AttributeError):
            policy.drop_comments = True
        assert hash(policy) == hash(SanitizationPolicy())

    def test_policy_predicates(self):
        policy = DEFAULT_POLICY
        assert policy.drops_subtree("SCRIPT")
        assert policy.drops_subtree("iframe")
        assert not policy.drops_subtree("div")
        assert not policy.unwraps("custom-element")
        assert policy.forbids_attribute("OnClick", "x()")
        assert policy.forbids_attribute("href", "javascript:alert(1)")
        assert policy.forbids_attribute("href", " JaVa\tScRiPt:alert(1)")
        assert policy.forbids_attribute("src", "vbscript:msgbox")
        assert not policy.forbids_attribute("href", "https://example.com/javascript:")
        assert not policy.forbids_attribute("href", "/relative")
        assert not policy.forbids_attribute("title", "javascript:alert(1)")
        assert not policy.forbids_attribute("style", "color:red")


class TestDefaultPolicy(unittest.TestCase):
    def test_script_and_content_are_removed(self):
        assert sanitize_to_html("<b>hi</b><script>alert(1)</script>there") == "<b>hi</b>there"

    def test_handler_attribute_removed_others_kept(self):
        markup = '<div id="rad" style="color:red" onclick="x()">hi</div>'
        assert sanitize_to_html(markup) == '<div id="rad" style="color:red">hi</div>'

    def test_image_error_handler_removed(self):
        fragment = sanitize('<img src="does-not-exist.png" onerror="alert(1)">')
        img = fragment.children[0]
        assert img.name == "img"
        assert img.attrs == {"src": "does-not-exist.png"}

    def test_all_handler_spellings_removed(self):
        markup = "<p " + " ".join(f'{name.upper()}="x"' for name in _HANDLER_ATTRS) + ' class="k">t</p>'
        fragment = sanitize(markup)
        assert fragment.children[0].attrs == {"class": "k"}

    def test_embedding_elements_are_removed(self):
        markup = (
            '<iframe src="x"></iframe><object data="x"><param name="a"></object>'
            '<embed src="x"><frame src="x"><applet code="x"></applet>ok'
        )
        assert sanitize_to_html(markup) == "ok"

    def test_script_url_attributes_removed(self):
        markup = '<a href="javascript:alert(1)" title="t">x</a><a href="java&#x09;script:alert(1)">y</a>'
        assert sanitize_to_html(markup) == '<a title="t">x</a><a>y</a>'

    def test_safe_urls_kept_unchanged(self):
        markup = '<a href="https://example.com/?a=1&amp;b=2">x</a><img src="data:image/png;base64,AAAA">'
        assert sanitize_to_html(markup) == markup

    def test_unknown_elements_are_kept(self):
        markup = '<custom-thing data-x="1"><section>t</section></custom-thing>'
        assert sanitize_to_html(markup) == markup

    def test_comments_kept_by_default(self):
        assert sanitize_to_html("a<!-- note -->b") == "a<!-- note -->b"

    def test_nested_dangerous_content(self):
        markup = '<div><p onmouseover="x">a<script>b</script><span><iframe></iframe>c</span></p></div>'
        fragment = sanitize(markup)
        _assert_safe(fragment)
        assert get_fragment_html(fragment) == "<div><p>a<span>c</span></p></div>"

    def test_malformed_markup_never_raises(self):
        for markup in ["<", "<<>>", "</", "<a <b", "<!--", "<![CDATA[", "<p =x>", "&#xffffffff;", "\x00<\x00>"]:
            _assert_safe(sanitize(markup))

    def test_removal_merges_surrounding_text(self):
        fragment = sanitize("a<script>x</script>b")
        assert len(fragment.children) == 1
        assert fragment.children[0].data == "ab"

    def test_sanitize_is_idempotent(self):
        for markup in [
            "<b>hi</b><script>alert(1)</script>there",
            '<div id="rad" onclick="x()">hi<img src=x onerror=y></div>',
            "a<!-- c -->b<iframe>z</iframe>c",
            "<ul><li>1<li>2</ul><p>x<p>y",
            "<style>p { color: red }</style><textarea>&lt;b&gt;</textarea>",
        ]:
            once = sanitize_to_html(markup)
            assert sanitize_to_html(once) == once, markup

    def test_mutation_xss_via_noscript_is_neutralized(self):
        markup = '<noscript><p title="</noscript><img src=x onerror=alert(1)>"></noscript>'
        fragment = sanitize(markup)
        _assert_safe(fragment)
        reparsed = parse_fragment(get_fragment_html(fragment))
        _assert_safe(reparsed)

    def test_raw_text_that_would_break_out_is_dropped(self):
        style = ElementNode("style")
        style.append_child(TextNode("x</style><img src=x onerror=alert(1)>"))
        root = ElementNode("div")
        root.append_child(style)
        sanitize_tree(root)
        assert root.children == []

    def test_comment_that_would_break_out_is_dropped(self):
        root = ElementNode("div")
        root.append_child(CommentNode("--><img src=x onerror=alert(1)>"))
        root.append_child(CommentNode(">"))
        root.append_child(CommentNode("fine"))
        sanitize_tree(root)
        assert [child.data for child in root.children] == ["fine"]

    def test_plaintext_is_unwrapped_into_text(self):
        once = sanitize_to_html("a<plaintext><b>x</b>")
        assert once == "a&lt;b&gt;x&lt;/b&gt;"
        assert sanitize_to_html(once) == once

    def test_data_urls_removed_from_links_and_forms(self):
        markup = (
            '<a href="data:text/html,<script>alert(1)</script>">x</a>'
            '<form action=" DATA:text/html,x"></form>'
            '<img src="data:image/png;base64,AAAA">'
        )
        assert sanitize_to_html(markup) == '<a>x</a><form></form><img src="data:image/png;base64,AAAA">'
        assert DEFAULT_POLICY.forbids_attribute("href", "data:text/html,x")
        assert not DEFAULT_POLICY.forbids_attribute("src", "data:image/png;base64,AAAA")

    def test_carriage_return_references_are_stable(self):
        for markup in ["a&#13;b", "a&#x0D;b", '<p title="x&#13;y">z</p>', "<textarea>&#13;</textarea>"]:
            once = sanitize_to_html(markup)
            assert "\r" not in once, markup
            assert sanitize_to_html(once) == once, markup
            assert sanitize(once).is_equal_node(sanitize(markup)), markup

    def test_leading_newline_in_preformatted_text_is_stable(self):
        for markup in ["<pre>\n\nx</pre>", "<pre><script>x</script>\ny</pre>", "<textarea>\n\n</textarea>"]:
            once = sanitize_to_html(markup)
            assert sanitize_to_html(once) == once, markup

    def test_sanitize_tree_returns_same_node(self):
        root = ElementNode("div")
        assert sanitize_tree(root) is root


class TestCustomPolicies(unittest.TestCase):
    def test_allowed_tags_unwrap_others(self):
        policy = SanitizationPolicy(allowed_tags=["b", "p"])
        assert sanitize_to_html("<p><i>x</i><b>y</b></p>", policy=policy) == "<p>x<b>y</b></p>"

    def test_disallowed_tags_dropped_when_not_stripping(self):
        policy = SanitizationPolicy(allowed_tags=["p"], strip_disallowed_tags=False)
        assert sanitize_to_html("<p><i>x</i>y</p>", policy=policy) == "<p>y</p>"

    def test_drop_comments(self):
        policy = SanitizationPolicy(drop_comments=True)
        assert sanitize_to_html("a<!-- c -->b", policy=policy) == "ab"

    def test_forbidden_attributes(self):
        policy = SanitizationPolicy(forbidden_attributes=["style"])
        assert sanitize_to_html('<p style="x" id="y">t</p>', policy=policy) == '<p id="y">t</p>'

    def test_extra_drop_content_tags(self):
        policy = SanitizationPolicy(drop_content_tags={"script", "style"})
        assert sanitize_to_html("<style>p{}</style><iframe>x</iframe>t", policy=policy) == "<iframe>x</iframe>t"

    def test_fragment_context_in_drop_set_yields_nothing(self):
        assert sanitize("alert(1)", fragment_context="script").children == []

    def test_fragment_context_textarea(self):
        fragment = sanitize("<script>x</script>", fragment_context="textarea")
        assert fragment.children[0].data == "<script>x</script>"


class TestForeignContent(unittest.TestCase):
    def test_svg_and_math_are_dropped_by_default(self):
        for markup in [
            "<svg><style><img src=x onerror=alert(1)></style></svg>",
            "<math><mtext><xmp><img src=x onerror=alert(1)></xmp></mtext></math>",
            "<svg><noembed><img src=x onerror=alert(1)></noembed></svg>",
            "<svg><noframes><img src=x onerror=alert(1)></noframes></svg>",
            '<SVG><circle r="1"></circle></SVG>',
        ]:
            assert sanitize_to_html("a" + markup + "b") == "ab", markup

    def test_kept_foreign_content_loses_raw_text_elements(self):
        policy = SanitizationPolicy(drop_foreign_namespaces=False)
        markup = '<svg width="1"><style><img src=x onerror=alert(1)></style><circle r="1"></circle></svg><style>p{}</style>'
        expected = '<svg width="1"><circle r="1"></circle></svg><style>p{}</style>'
        assert sanitize_to_html(markup, policy=policy) == expected

    def test_markup_for_foreign_context(self):
        assert sanitize("<b>x</b>", fragment_context="svg").children == []
        policy = SanitizationPolicy(drop_foreign_namespaces=False)
        fragment = sanitize("<b>x</b><style>y</style>", policy=policy, fragment_context="svg")
        assert get_fragment_html(fragment) == "<b>x</b>"

    def test_sanitize_tree_below_foreign_element(self):
        svg = ElementNode("svg")
        group = ElementNode("g")
        svg.append_child(group)
        style = ElementNode("style")
        style.append_child(TextNode("<img src=x onerror=alert(1)>"))
        group.append_child(style)
        sanitize_tree(group, policy=SanitizationPolicy(drop_foreign_namespaces=False))
        assert group.children == []


# Markup pieces that exercise the parser's repair rules, raw text, character
# references that decode to control characters, and foreign content.
_PIECES = [
    "<div>",
    "</div>",
    "<p>",
    "</p>",
    "<b>",
    "</b>",
    "<i>",
    "</i>",
    "<a href=x>",
    "<a href=javascript:alert(1)>",
    "<a href='data:text/html,x'>",
    "</a>",
    "<span title='&#13;' onclick=x>",
    "</span>",
    "<ul><li>",
    "<li>",
    "</ul>",
    "<table><tr><td>",
    "<td>",
    "</table>",
    "<button>",
    "<pre>\n",
    "</pre>",
    "<textarea>\n",
    "</textarea>",
    "<title>",
    "</title>",
    "<xmp>",
    "</xmp>",
    "<plaintext>",
    "<script>alert(1)</script>",
    "<style>p{}</style>",
    '<noscript><p title="</noscript><img src=x onerror=alert(1)>"></noscript>',
    "<svg>",
    "</svg>",
    "<math>",
    "</math>",
    "<svg><style><img src=x onerror=alert(1)></style></svg>",
    "<img src=x onerror=alert(1)>",
    "<!-- c -->",
    "<!--->",
    "<?x>",
    "text",
    " ",
    "\n",
    "\r\n",
    "&#13;",
    "&#x0D;",
    "&#xFEFF;",
    "&amp;",
    "&lt;b&gt;",
    "&nbsp;",
    "<",
    ">",
]


def _random_markup(rng):
    return "".join(rng.choice(_PIECES) for _ in range(rng.randint(1, 12)))


def _find_unsafe(root, policy=DEFAULT_POLICY):
    for node in root.walk():
        if not isinstance(node, ElementNode):
            continue
        if policy.drops_subtree(node.name):
            return node
        if any(policy.forbids_attribute(name, value) for name, value in node.attrs.items()):
            return node
    return None


class TestSanitizeProperties(unittest.TestCase):
    def test_random_markup_is_safe_and_idempotent(self):
        rng = random.Random(20240611)
        for _ in range(3000):
            markup = _random_markup(rng)
            fragment = sanitize(markup)
            assert _find_unsafe(fragment) is None, markup

            once = get_fragment_html(fragment)
            assert _find_unsafe(parse_fragment(once)) is None, markup
            assert sanitize_to_html(once) == once, markup

    def test_random_markup_with_foreign_content_kept(self):
        policy = SanitizationPolicy(drop_foreign_namespaces=False)
        rng = random.Random(7)
        for _ in range(1000):
            markup = _random_markup(rng)
            once = sanitize_to_html(markup, policy=policy)
            reparsed = parse_fragment(once)
            assert _find_unsafe(reparsed, policy) is None, markup
            for node in reparsed.walk():
                if isinstance(node, ElementNode) and node.name in RAWTEXT_ELEMENTS:
                    assert not any(ancestor.name in ("svg", "math") for ancestor in _ancestors(node)), markup


def _ancestors(node):
    parent = node.parent
    while parent is not None:
        yield parent
        parent = parent.parent


class TestSanitizeLogging(unittest.TestCase):
    def test_removals_are_logged_at_debug(self):
        with self.assertLogs("saferhtml.sanitize", level=logging.DEBUG) as captured:
            sanitize('<script>x</script><p onclick="y">t</p>')
        output = "\n".join(captured.output)
        assert "<script>" in output
        assert "onclick" in output


if __name__ == "__main__":
    unittest.main()

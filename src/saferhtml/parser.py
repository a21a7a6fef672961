"""Fragment parser entry point."""

from .context import FragmentContext
from .constants import RAWTEXT_ELEMENTS, RCDATA_ELEMENTS
from .tokenizer import Tokenizer, TokenizerOpts
from .treebuilder import TreeBuilder


class FragmentParser:
    """Parse a markup string into a detached DocumentFragment.

    Parsing never fails: malformed markup is repaired the way a browser
    would repair it. With `collect_errors=True` the problems found along the
    way are recorded in `errors` as ParseError objects.
    """

    __slots__ = ("errors", "fragment_context", "root", "tokenizer", "tree_builder")

    def __init__(
        self,
        html,
        *,
        fragment_context=None,
        collect_errors=False,
        tokenizer_opts=None,
        tree_builder=None,
    ):
        if isinstance(fragment_context, str):
            fragment_context = FragmentContext(fragment_context)
        self.fragment_context = fragment_context
        self.tree_builder = tree_builder or TreeBuilder(fragment_context=fragment_context)
        # A fragment is already-decoded text, so a leading U+FEFF is content.
        opts = tokenizer_opts or TokenizerOpts(collect_errors=collect_errors, discard_bom=False)

        # Content of text-only context elements starts out as text.
        if fragment_context is not None:
            tag_name = fragment_context.tag_name
            if tag_name in RCDATA_ELEMENTS:
                opts.initial_state = Tokenizer.RCDATA
                opts.initial_rawtext_tag = tag_name
            elif tag_name in RAWTEXT_ELEMENTS:
                opts.initial_state = Tokenizer.RAWTEXT
                opts.initial_rawtext_tag = tag_name
            elif tag_name == "plaintext":
                opts.initial_state = Tokenizer.PLAINTEXT

        self.tokenizer = Tokenizer(self.tree_builder, opts)
        self.tokenizer.run(html or "")
        self.root = self.tree_builder.finish()
        self.errors = self.tree_builder.errors if collect_errors else []


def parse_fragment(html, *, fragment_context=None, collect_errors=False):
    """Return the DocumentFragment for `html`."""
    return FragmentParser(html, fragment_context=fragment_context, collect_errors=collect_errors).root

"""Tokens passed from the tokenizer to the tree builder."""

# Human-readable descriptions for the parse error codes this package emits.
ERROR_MESSAGES = {
    "abrupt-closing-of-empty-comment": "Comment closed before it started (<!--> or <!--->)",
    "duplicate-attribute": "Attribute repeated on the same tag; the first value wins",
    "end-tag-too-early": "End tag closed elements that were still open",
    "end-tag-with-attributes": "End tag carries attributes",
    "eof-before-tag-name": "Markup ended right after '<' or '</'",
    "eof-in-comment": "Markup ended inside a comment",
    "eof-in-doctype": "Markup ended inside a doctype",
    "eof-in-tag": "Markup ended inside a tag",
    "expected-closing-tag-but-got-eof": "Markup ended with elements still open",
    "incorrectly-closed-comment": "Comment closed with --!>",
    "incorrectly-opened-comment": "Unknown markup declaration treated as a comment",
    "invalid-first-character-of-tag-name": "'<' not followed by a tag name",
    "misnested-formatting-element": "Formatting element closed out of order and reopened where needed",
    "missing-attribute-value": "Attribute has '=' but no value",
    "missing-end-tag-name": "Empty end tag </>",
    "missing-whitespace-between-attributes": "Attributes run together without whitespace",
    "non-void-html-element-start-tag-with-trailing-solidus": "Self-closing syntax on a non-void element",
    "unexpected-character-in-attribute-name": "Quote or '<' inside an attribute name",
    "unexpected-doctype": "Doctype inside a fragment",
    "unexpected-end-tag": "End tag without a matching open element",
    "unexpected-equals-sign-before-attribute-name": "Attribute name starts with '='",
    "unexpected-null-character": "NUL character in markup",
    "unexpected-question-mark-instead-of-tag-name": "Processing instruction treated as a comment",
    "unexpected-solidus-in-tag": "Stray '/' inside a tag",
    "unexpected-start-tag": "Start tag not allowed here",
    "unexpected-start-tag-implies-end-tag": "Start tag implicitly closed other open elements",
}


class Tag:
    """A start or end tag. `attrs` keeps source order, first occurrence wins."""

    __slots__ = ("attrs", "kind", "name", "self_closing")

    START = 0
    END = 1

    def __init__(self, kind, name, attrs=None, self_closing=False):
        self.kind = kind
        self.name = name
        self.attrs = attrs if attrs is not None else {}
        self.self_closing = bool(self_closing)

    @property
    def is_start(self):
        return self.kind == self.START

    def __repr__(self):
        slash = "/" if self.kind == self.END else ""
        attrs = "".join(f" {name}={value!r}" for name, value in self.attrs.items())
        closing = " /" if self.self_closing else ""
        return f"<{slash}{self.name}{attrs}{closing}>"


class TextToken:
    __slots__ = ("data",)

    def __init__(self, data):
        self.data = data


class CommentToken:
    __slots__ = ("data",)

    def __init__(self, data):
        self.data = data


class DoctypeToken:
    """Only the name is kept; fragments ignore doctypes anyway."""

    __slots__ = ("name",)

    def __init__(self, name=None):
        self.name = name


class EOFToken:
    __slots__ = ()


class ParseError:
    """A recoverable problem found while parsing, with its 1-based position when known."""

    __slots__ = ("code", "column", "line", "message")

    def __init__(self, code, line=None, column=None, message=None):
        self.code = code
        self.line = line
        self.column = column
        self.message = message or ERROR_MESSAGES.get(code, code)

    @property
    def position(self):
        if self.line is None or self.column is None:
            return None
        return self.line, self.column

    def __repr__(self):
        if self.position is None:
            return f"ParseError({self.code!r})"
        return f"ParseError({self.code!r}, line={self.line}, column={self.column})"

    def __str__(self):
        location = f"{self.line}:{self.column}: " if self.position is not None else ""
        return f"{location}{self.code}: {self.message}"

    def __eq__(self, other):
        if not isinstance(other, ParseError):
            return NotImplemented
        return (self.code, self.line, self.column) == (other.code, other.line, other.column)

    __hash__ = None

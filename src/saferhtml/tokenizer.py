import re
import sys

from .constants import RAWTEXT_ELEMENTS, RCDATA_ELEMENTS
from .entities import decode_entities_in_text
from .tokens import CommentToken, DoctypeToken, EOFToken, ParseError, Tag, TextToken

_WHITESPACE = "\t\n\f "
_ASCII_LOWER_TABLE = str.maketrans({chr(code): chr(code + 32) for code in range(65, 91)})

_TAG_NAME_PATTERN = re.compile(r"[^\t\n\f />]*")
_ATTR_NAME_PATTERN = re.compile(r"[^\t\n\f />=]*")
_ATTR_VALUE_UNQUOTED_PATTERN = re.compile(r"[^\t\n\f >]*")
_WHITESPACE_PATTERN = re.compile(r"[\t\n\f ]*")
_COMMENT_END_PATTERN = re.compile(r"--!?>")


class TokenizerOpts:
    __slots__ = ("collect_errors", "discard_bom", "initial_rawtext_tag", "initial_state")

    def __init__(self, collect_errors=False, discard_bom=True, initial_state=None, initial_rawtext_tag=None):
        self.collect_errors = bool(collect_errors)
        self.discard_bom = bool(discard_bom)
        self.initial_state = initial_state
        self.initial_rawtext_tag = initial_rawtext_tag


class Tokenizer:
    """Lenient HTML tokenizer.

    Every input produces a token stream: malformed constructs are reported
    as ParseError tokens (when requested) and recovered from the way a
    browser would, never raised.
    """

    DATA = 0
    TAG_OPEN = 1
    END_TAG_OPEN = 2
    TAG_NAME = 3
    BEFORE_ATTRIBUTE_NAME = 4
    ATTRIBUTE_NAME = 5
    AFTER_ATTRIBUTE_NAME = 6
    BEFORE_ATTRIBUTE_VALUE = 7
    ATTRIBUTE_VALUE_DOUBLE = 8
    ATTRIBUTE_VALUE_SINGLE = 9
    ATTRIBUTE_VALUE_UNQUOTED = 10
    AFTER_ATTRIBUTE_VALUE_QUOTED = 11
    SELF_CLOSING_START_TAG = 12
    MARKUP_DECLARATION_OPEN = 13
    COMMENT = 14
    BOGUS_COMMENT = 15
    DOCTYPE = 16
    RCDATA = 17
    RAWTEXT = 18
    PLAINTEXT = 19

    __slots__ = (
        "buffer",
        "current_attr_name",
        "current_attr_value",
        "current_tag_attrs",
        "current_tag_kind",
        "current_tag_name",
        "current_tag_self_closing",
        "length",
        "opts",
        "pos",
        "rawtext_end_pattern",
        "rawtext_tag_name",
        "sink",
        "state",
        "text_buffer",
    )

    def __init__(self, sink, opts=None):
        self.sink = sink
        self.opts = opts or TokenizerOpts()

        self.state = self.DATA
        self.buffer = ""
        self.length = 0
        self.pos = 0
        self.text_buffer = []
        self.current_tag_kind = Tag.START
        self.current_tag_name = ""
        self.current_tag_attrs = {}
        self.current_tag_self_closing = False
        self.current_attr_name = None
        self.current_attr_value = []
        self.rawtext_tag_name = None
        self.rawtext_end_pattern = None

    def run(self, html):
        if html and html[0] == "\ufeff" and self.opts.discard_bom:
            html = html[1:]
        html = html or ""
        if "\r" in html:
            html = html.replace("\r\n", "\n").replace("\r", "\n")

        self.buffer = html
        self.length = len(html)
        self.pos = 0
        self.text_buffer.clear()

        initial_state = self.opts.initial_state
        self.state = initial_state if isinstance(initial_state, int) else self.DATA
        if self.opts.initial_rawtext_tag:
            self._set_rawtext_tag(self.opts.initial_rawtext_tag)

        handlers = {
            self.DATA: self._state_data,
            self.TAG_OPEN: self._state_tag_open,
            self.END_TAG_OPEN: self._state_end_tag_open,
            self.TAG_NAME: self._state_tag_name,
            self.BEFORE_ATTRIBUTE_NAME: self._state_before_attribute_name,
            self.ATTRIBUTE_NAME: self._state_attribute_name,
            self.AFTER_ATTRIBUTE_NAME: self._state_after_attribute_name,
            self.BEFORE_ATTRIBUTE_VALUE: self._state_before_attribute_value,
            self.ATTRIBUTE_VALUE_DOUBLE: self._state_attribute_value_double,
            self.ATTRIBUTE_VALUE_SINGLE: self._state_attribute_value_single,
            self.ATTRIBUTE_VALUE_UNQUOTED: self._state_attribute_value_unquoted,
            self.AFTER_ATTRIBUTE_VALUE_QUOTED: self._state_after_attribute_value_quoted,
            self.SELF_CLOSING_START_TAG: self._state_self_closing_start_tag,
            self.MARKUP_DECLARATION_OPEN: self._state_markup_declaration_open,
            self.COMMENT: self._state_comment,
            self.BOGUS_COMMENT: self._state_bogus_comment,
            self.DOCTYPE: self._state_doctype,
            self.RCDATA: self._state_rawtext,
            self.RAWTEXT: self._state_rawtext,
            self.PLAINTEXT: self._state_plaintext,
        }
        while True:
            if handlers[self.state]():
                break

    # ---------------------
    # Helper methods
    # ---------------------

    def _peek(self):
        if self.pos < self.length:
            return self.buffer[self.pos]
        return None

    def _skip_whitespace(self):
        self.pos = _WHITESPACE_PATTERN.match(self.buffer, self.pos).end()

    def _location(self):
        line = self.buffer.count("\n", 0, self.pos) + 1
        column = self.pos - self.buffer.rfind("\n", 0, self.pos)
        return line, column

    def _emit_error(self, code):
        if self.opts.collect_errors:
            line, column = self._location()
            self.sink.process_token(ParseError(code, line=line, column=column))

    def _emit_token(self, token):
        self.sink.process_token(token)

    def _append_text(self, chunk):
        if chunk:
            self.text_buffer.append(chunk)

    def _flush_text(self, decode=True):
        if not self.text_buffer:
            return
        data = "".join(self.text_buffer)
        self.text_buffer.clear()
        if decode and "&" in data:
            data = decode_entities_in_text(data)
        self._emit_token(TextToken(data))

    def _emit_eof(self):
        self._flush_text()
        self._emit_token(EOFToken())
        return True

    def _set_rawtext_tag(self, name):
        self.rawtext_tag_name = name
        self.rawtext_end_pattern = re.compile("</" + re.escape(name) + r"(?=[\t\n\f />])", re.IGNORECASE)

    def _start_tag(self, kind):
        self.current_tag_kind = kind
        self.current_tag_name = ""
        self.current_tag_attrs = {}
        self.current_tag_self_closing = False
        self.current_attr_name = None
        self.current_attr_value = []

    def _start_attribute(self, name=""):
        self._finish_attribute()
        self.current_attr_name = name
        self.current_attr_value = []

    def _finish_attribute(self):
        name = self.current_attr_name
        if name is None:
            return
        self.current_attr_name = None
        value = "".join(self.current_attr_value)
        self.current_attr_value = []
        if name in self.current_tag_attrs:
            self._emit_error("duplicate-attribute")
            return
        if "&" in value:
            value = decode_entities_in_text(value, in_attribute=True)
        self.current_tag_attrs[name] = value

    def _emit_current_tag(self):
        self._finish_attribute()
        name = sys.intern(self.current_tag_name)
        if self.current_tag_kind == Tag.END:
            if self.current_tag_attrs:
                self._emit_error("end-tag-with-attributes")
            self.state = self.DATA
            self._emit_token(Tag(Tag.END, name, {}, self.current_tag_self_closing))
            return

        if name in RCDATA_ELEMENTS:
            self.state = self.RCDATA
            self._set_rawtext_tag(name)
        elif name in RAWTEXT_ELEMENTS:
            self.state = self.RAWTEXT
            self._set_rawtext_tag(name)
        elif name == "plaintext":
            self.state = self.PLAINTEXT
        else:
            self.state = self.DATA
        self._emit_token(Tag(Tag.START, name, self.current_tag_attrs, self.current_tag_self_closing))

    # ---------------------
    # State handlers
    # ---------------------

    def _state_data(self):
        buffer = self.buffer
        pos = self.pos
        next_lt = buffer.find("<", pos)
        end = self.length if next_lt == -1 else next_lt
        chunk = buffer[pos:end]
        if "\0" in chunk:
            self._emit_error("unexpected-null-character")
        self._append_text(chunk)
        if next_lt == -1:
            self.pos = self.length
            return self._emit_eof()
        self.pos = next_lt + 1
        self.state = self.TAG_OPEN
        return False

    def _state_tag_open(self):
        c = self._peek()
        if c == "!":
            self.pos += 1
            self.state = self.MARKUP_DECLARATION_OPEN
        elif c == "/":
            self.pos += 1
            self.state = self.END_TAG_OPEN
        elif c is not None and c.isascii() and c.isalpha():
            self._flush_text()
            self._start_tag(Tag.START)
            self.state = self.TAG_NAME
        elif c == "?":
            self._emit_error("unexpected-question-mark-instead-of-tag-name")
            self.state = self.BOGUS_COMMENT
        else:
            self._emit_error("invalid-first-character-of-tag-name" if c is not None else "eof-before-tag-name")
            self._append_text("<")
            if c is None:
                return self._emit_eof()
            self.state = self.DATA
        return False

    def _state_end_tag_open(self):
        c = self._peek()
        if c is not None and c.isascii() and c.isalpha():
            self._flush_text()
            self._start_tag(Tag.END)
            self.state = self.TAG_NAME
        elif c == ">":
            self._emit_error("missing-end-tag-name")
            self.pos += 1
            self.state = self.DATA
        elif c is None:
            self._emit_error("eof-before-tag-name")
            self._append_text("</")
            return self._emit_eof()
        else:
            self._emit_error("invalid-first-character-of-tag-name")
            self.state = self.BOGUS_COMMENT
        return False

    def _state_tag_name(self):
        match = _TAG_NAME_PATTERN.match(self.buffer, self.pos)
        chunk = match.group(0)
        if "\0" in chunk:
            chunk = chunk.replace("\0", "\ufffd")
        self.current_tag_name += chunk.translate(_ASCII_LOWER_TABLE)
        self.pos = match.end()
        c = self._peek()
        if c is None:
            self._emit_error("eof-in-tag")
            return self._emit_eof()
        self.pos += 1
        if c == "/":
            self.state = self.SELF_CLOSING_START_TAG
        elif c == ">":
            self._emit_current_tag()
        else:
            self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_before_attribute_name(self):
        self._skip_whitespace()
        c = self._peek()
        if c is None or c in "/>":
            self.state = self.AFTER_ATTRIBUTE_NAME
        elif c == "=":
            self._emit_error("unexpected-equals-sign-before-attribute-name")
            self._start_attribute("=")
            self.pos += 1
            self.state = self.ATTRIBUTE_NAME
        else:
            self._start_attribute()
            self.state = self.ATTRIBUTE_NAME
        return False

    def _state_attribute_name(self):
        match = _ATTR_NAME_PATTERN.match(self.buffer, self.pos)
        chunk = match.group(0)
        if "\0" in chunk:
            chunk = chunk.replace("\0", "\ufffd")
        if '"' in chunk or "'" in chunk or "<" in chunk:
            self._emit_error("unexpected-character-in-attribute-name")
        self.current_attr_name += chunk.translate(_ASCII_LOWER_TABLE)
        self.pos = match.end()
        if self._peek() == "=":
            self.pos += 1
            self.state = self.BEFORE_ATTRIBUTE_VALUE
        else:
            self.state = self.AFTER_ATTRIBUTE_NAME
        return False

    def _state_after_attribute_name(self):
        self._skip_whitespace()
        c = self._peek()
        if c is None:
            self._emit_error("eof-in-tag")
            return self._emit_eof()
        if c == "=":
            self.pos += 1
            self.state = self.BEFORE_ATTRIBUTE_VALUE
            return False
        self._finish_attribute()
        if c == "/":
            self.pos += 1
            self.state = self.SELF_CLOSING_START_TAG
        elif c == ">":
            self.pos += 1
            self._emit_current_tag()
        else:
            self._start_attribute()
            self.state = self.ATTRIBUTE_NAME
        return False

    def _state_before_attribute_value(self):
        self._skip_whitespace()
        c = self._peek()
        if c == '"':
            self.pos += 1
            self.state = self.ATTRIBUTE_VALUE_DOUBLE
        elif c == "'":
            self.pos += 1
            self.state = self.ATTRIBUTE_VALUE_SINGLE
        elif c == ">":
            self._emit_error("missing-attribute-value")
            self.pos += 1
            self._emit_current_tag()
        else:
            self.state = self.ATTRIBUTE_VALUE_UNQUOTED
        return False

    def _consume_quoted_value(self, quote):
        end = self.buffer.find(quote, self.pos)
        if end == -1:
            self._emit_error("eof-in-tag")
            self.pos = self.length
            return self._emit_eof()
        chunk = self.buffer[self.pos : end]
        if "\0" in chunk:
            chunk = chunk.replace("\0", "\ufffd")
        self.current_attr_value.append(chunk)
        self.pos = end + 1
        self._finish_attribute()
        self.state = self.AFTER_ATTRIBUTE_VALUE_QUOTED
        return False

    def _state_attribute_value_double(self):
        return self._consume_quoted_value('"')

    def _state_attribute_value_single(self):
        return self._consume_quoted_value("'")

    def _state_attribute_value_unquoted(self):
        match = _ATTR_VALUE_UNQUOTED_PATTERN.match(self.buffer, self.pos)
        chunk = match.group(0)
        if "\0" in chunk:
            chunk = chunk.replace("\0", "\ufffd")
        self.current_attr_value.append(chunk)
        self.pos = match.end()
        c = self._peek()
        if c is None:
            self._emit_error("eof-in-tag")
            return self._emit_eof()
        self.pos += 1
        self._finish_attribute()
        if c == ">":
            self._emit_current_tag()
        else:
            self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_after_attribute_value_quoted(self):
        c = self._peek()
        if c is None:
            self._emit_error("eof-in-tag")
            return self._emit_eof()
        if c in _WHITESPACE:
            self.pos += 1
            self.state = self.BEFORE_ATTRIBUTE_NAME
        elif c == "/":
            self.pos += 1
            self.state = self.SELF_CLOSING_START_TAG
        elif c == ">":
            self.pos += 1
            self._emit_current_tag()
        else:
            self._emit_error("missing-whitespace-between-attributes")
            self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_self_closing_start_tag(self):
        c = self._peek()
        if c is None:
            self._emit_error("eof-in-tag")
            return self._emit_eof()
        if c == ">":
            self.pos += 1
            self.current_tag_self_closing = True
            self._emit_current_tag()
        else:
            self._emit_error("unexpected-solidus-in-tag")
            self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_markup_declaration_open(self):
        buffer = self.buffer
        pos = self.pos
        if buffer.startswith("--", pos):
            self.pos = pos + 2
            self.state = self.COMMENT
        elif buffer[pos : pos + 7].lower() == "doctype":
            self.pos = pos + 7
            self.state = self.DOCTYPE
        else:
            # CDATA sections are only meaningful in foreign content; in HTML
            # they become bogus comments like any other unknown declaration.
            self._emit_error("incorrectly-opened-comment")
            self.state = self.BOGUS_COMMENT
        return False

    def _state_comment(self):
        self._flush_text()
        buffer = self.buffer
        pos = self.pos
        # Abruptly closed empty comments: <!--> and <!--->
        for abrupt in (">", "->"):
            if buffer.startswith(abrupt, pos):
                self._emit_error("abrupt-closing-of-empty-comment")
                self.pos = pos + len(abrupt)
                self._emit_token(CommentToken(""))
                self.state = self.DATA
                return False

        match = _COMMENT_END_PATTERN.search(buffer, pos)
        if match is None:
            self._emit_error("eof-in-comment")
            self._emit_token(CommentToken(buffer[pos:].replace("\0", "\ufffd")))
            self.pos = self.length
            return self._emit_eof()
        if match.group(0) == "--!>":
            self._emit_error("incorrectly-closed-comment")
        self._emit_token(CommentToken(buffer[pos : match.start()].replace("\0", "\ufffd")))
        self.pos = match.end()
        self.state = self.DATA
        return False

    def _state_bogus_comment(self):
        self._flush_text()
        end = self.buffer.find(">", self.pos)
        stop = self.length if end == -1 else end
        self._emit_token(CommentToken(self.buffer[self.pos : stop].replace("\0", "\ufffd")))
        if end == -1:
            self.pos = self.length
            return self._emit_eof()
        self.pos = end + 1
        self.state = self.DATA
        return False

    def _state_doctype(self):
        self._flush_text()
        end = self.buffer.find(">", self.pos)
        stop = self.length if end == -1 else end
        parts = self.buffer[self.pos : stop].split()
        self._emit_token(DoctypeToken(parts[0].translate(_ASCII_LOWER_TABLE) if parts else None))
        if end == -1:
            self._emit_error("eof-in-doctype")
            self.pos = self.length
            return self._emit_eof()
        self.pos = end + 1
        self.state = self.DATA
        return False

    def _state_rawtext(self):
        decode = self.state == self.RCDATA
        match = self.rawtext_end_pattern.search(self.buffer, self.pos)
        end = self.length if match is None else match.start()
        chunk = self.buffer[self.pos : end]
        if "\0" in chunk:
            self._emit_error("unexpected-null-character")
            chunk = chunk.replace("\0", "\ufffd")
        self._append_text(chunk)
        self._flush_text(decode=decode)
        if match is None:
            self.pos = self.length
            return self._emit_eof()
        self.pos = end + 2
        self._start_tag(Tag.END)
        self.state = self.TAG_NAME
        return False

    def _state_plaintext(self):
        chunk = self.buffer[self.pos :]
        self.pos = self.length
        self._append_text(chunk.replace("\0", "\ufffd"))
        self._flush_text(decode=False)
        return self._emit_eof()

"""Element category tables shared by the tokenizer, tree builder and serializer."""

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "basefont",
        "bgsound",
        "br",
        "col",
        "embed",
        "frame",
        "hr",
        "img",
        "input",
        "keygen",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# Content is text up to the matching end tag, character references decoded.
RCDATA_ELEMENTS = frozenset({"title", "textarea"})

# Content is text up to the matching end tag, verbatim. noscript is included
# because that is how a browser with scripting enabled reads it.
RAWTEXT_ELEMENTS = frozenset({"style", "script", "xmp", "iframe", "noembed", "noframes", "noscript"})

# Children of these elements serialize without escaping.
SERIALIZE_RAW_TEXT_ELEMENTS = RAWTEXT_ELEMENTS | {"plaintext"}

# Start tags ignored when building a fragment.
FRAGMENT_IGNORED_START_TAGS = frozenset({"html", "head", "body", "frameset"})

HEADING_ELEMENTS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})

# Start tags that close an open <p> in button scope.
CLOSES_P = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "center",
        "details",
        "dialog",
        "dir",
        "div",
        "dl",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hgroup",
        "hr",
        "listing",
        "main",
        "menu",
        "nav",
        "ol",
        "p",
        "plaintext",
        "pre",
        "search",
        "section",
        "summary",
        "table",
        "ul",
        "li",
        "dd",
        "dt",
        "xmp",
    }
)

# start tag -> open elements it implicitly closes, and where the search stops.
AUTO_CLOSING_TAGS = {
    "button": ({"button"}, set()),
    "li": ({"li"}, {"ul", "ol", "menu"}),
    "dt": ({"dt", "dd"}, {"dl"}),
    "dd": ({"dt", "dd"}, {"dl"}),
    "option": ({"option"}, {"select", "datalist", "optgroup"}),
    "optgroup": ({"option", "optgroup"}, {"select"}),
    "tr": ({"tr", "td", "th"}, {"table", "thead", "tbody", "tfoot"}),
    "td": ({"td", "th"}, {"tr", "table"}),
    "th": ({"td", "th"}, {"tr", "table"}),
    "thead": ({"thead", "tbody", "tfoot", "tr", "td", "th"}, {"table"}),
    "tbody": ({"thead", "tbody", "tfoot", "tr", "td", "th"}, {"table"}),
    "tfoot": ({"thead", "tbody", "tfoot", "tr", "td", "th"}, {"table"}),
    "rb": ({"rb", "rt", "rtc", "rp"}, {"ruby"}),
    "rt": ({"rb", "rt", "rp"}, {"ruby", "rtc"}),
    "rp": ({"rb", "rt", "rp"}, {"ruby", "rtc"}),
    "rtc": ({"rb", "rt", "rtc", "rp"}, {"ruby"}),
}

# Elements that bound the search for an open element (HTML "default scope").
SCOPE_BOUNDARY_ELEMENTS = frozenset(
    {
        "applet",
        "caption",
        "html",
        "table",
        "td",
        "th",
        "marquee",
        "object",
        "template",
    }
)

BUTTON_SCOPE_BOUNDARY_ELEMENTS = SCOPE_BOUNDARY_ELEMENTS | {"button"}

# Attributes whose value is a URL a user agent may navigate to or fetch.
URL_ATTRIBUTES = frozenset(
    {
        "action",
        "background",
        "cite",
        "data",
        "formaction",
        "href",
        "longdesc",
        "lowsrc",
        "manifest",
        "ping",
        "poster",
        "src",
        "xlink:href",
        "xml:base",
    }
)

IMPLIED_END_TAGS = frozenset({"dd", "dt", "li", "optgroup", "option", "p", "rb", "rp", "rt", "rtc"})

# End tags that may close table parts from inside an open cell.
TABLE_END_TAGS = frozenset({"caption", "table", "tbody", "td", "tfoot", "th", "thead", "tr"})

TABLE_SCOPE_BOUNDARY_ELEMENTS = frozenset({"html", "table", "template"})

# Elements tracked in the list of active formatting elements.
FORMATTING_ELEMENTS = frozenset(
    {"a", "b", "big", "code", "em", "font", "i", "nobr", "s", "small", "strike", "strong", "tt", "u"}
)

# Elements that push a marker onto the active formatting list; formatting
# opened outside them is not reopened inside.
FORMATTING_MARKER_ELEMENTS = frozenset({"applet", "caption", "marquee", "object", "td", "template", "th"})

# HTML "special" category: formatting never reaches past these.
SPECIAL_ELEMENTS = frozenset(
    {
        "address",
        "applet",
        "area",
        "article",
        "aside",
        "base",
        "basefont",
        "bgsound",
        "blockquote",
        "body",
        "br",
        "button",
        "caption",
        "center",
        "col",
        "colgroup",
        "dd",
        "details",
        "dir",
        "div",
        "dl",
        "dt",
        "embed",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "frame",
        "frameset",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "head",
        "header",
        "hgroup",
        "hr",
        "html",
        "iframe",
        "img",
        "input",
        "keygen",
        "li",
        "link",
        "listing",
        "main",
        "marquee",
        "menu",
        "meta",
        "nav",
        "noembed",
        "noframes",
        "noscript",
        "object",
        "ol",
        "p",
        "param",
        "plaintext",
        "pre",
        "script",
        "search",
        "section",
        "select",
        "source",
        "style",
        "summary",
        "table",
        "tbody",
        "td",
        "template",
        "textarea",
        "tfoot",
        "th",
        "thead",
        "title",
        "tr",
        "track",
        "ul",
        "wbr",
        "xmp",
    }
)

# Special start tags that still reopen active formatting before inserting.
RECONSTRUCTS_FORMATTING = frozenset(
    {"applet", "area", "br", "button", "embed", "img", "input", "keygen", "marquee", "object", "select", "wbr", "xmp"}
)

# A newline right after these start tags is not part of the content.
LEADING_NEWLINE_ELEMENTS = frozenset({"listing", "pre", "textarea"})

# Foreign content roots. Their subtrees follow XML-like parsing rules in a
# browser, which this parser does not model.
FOREIGN_ELEMENTS = frozenset({"math", "svg"})

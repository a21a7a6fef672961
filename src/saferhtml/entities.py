"""Character reference decoding for text and attribute values.

Handles named references (&amp;, &nbsp;), decimal (&#60;) and hex (&#x3C;)
numeric references, and the legacy names browsers accept without a
trailing semicolon.
"""

import html.entities

# Keys of html5 include the trailing semicolon where one is allowed; strip it
# so lookups work for both forms.
NAMED_ENTITIES = {}
for _key, _value in html.entities.html5.items():
    NAMED_ENTITIES.setdefault(_key[:-1] if _key.endswith(";") else _key, _value)

# html5 lists the semicolon-less spellings separately; those are the legacy set.
LEGACY_ENTITIES = frozenset(key for key in html.entities.html5 if not key.endswith(";"))

# Windows-1252 remapping applied to numeric references in the C1 range.
NUMERIC_REPLACEMENTS = {
    0x00: "\ufffd",
    0x80: "€",
    0x82: "‚",
    0x83: "ƒ",
    0x84: "„",
    0x85: "…",
    0x86: "†",
    0x87: "‡",
    0x88: "ˆ",
    0x89: "‰",
    0x8A: "Š",
    0x8B: "‹",
    0x8C: "Œ",
    0x8E: "Ž",
    0x91: "‘",
    0x92: "’",
    0x93: "“",
    0x94: "”",
    0x95: "•",
    0x96: "–",
    0x97: "—",
    0x98: "˜",
    0x99: "™",
    0x9A: "š",
    0x9B: "›",
    0x9C: "œ",
    0x9E: "ž",
    0x9F: "Ÿ",
}

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def decode_numeric_entity(text, is_hex=False):
    """Decode the digits of a numeric reference, or return None if there are none."""
    try:
        codepoint = int(text, 16 if is_hex else 10)
    except ValueError:
        return None
    if codepoint in NUMERIC_REPLACEMENTS:
        return NUMERIC_REPLACEMENTS[codepoint]
    if codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
        return "\ufffd"
    return chr(codepoint)


def _legacy_blocked(next_char, in_attribute):
    # Inside attribute values a legacy reference without ";" stays literal
    # when it looks like part of a query string ("?a=1&copy=2").
    if not in_attribute or not next_char:
        return False
    return next_char.isalnum() or next_char == "="


def decode_entities_in_text(text, in_attribute=False):
    """Return `text` with every character reference decoded."""
    if "&" not in text:
        return text

    result = []
    i = 0
    length = len(text)
    while i < length:
        next_amp = text.find("&", i)
        if next_amp == -1:
            result.append(text[i:])
            break
        if next_amp > i:
            result.append(text[i:next_amp])

        i = next_amp
        j = i + 1

        if j < length and text[j] == "#":
            j += 1
            is_hex = j < length and text[j] in "xX"
            if is_hex:
                j += 1
            digit_start = j
            while j < length and (text[j] in _HEX_DIGITS if is_hex else "0" <= text[j] <= "9"):
                j += 1
            has_semicolon = j < length and text[j] == ";"
            decoded = decode_numeric_entity(text[digit_start:j], is_hex=is_hex) if j > digit_start else None
            if decoded is None:
                # No digits: the whole thing is literal text.
                result.append(text[i:j])
                i = j
                continue
            result.append(decoded)
            i = j + 1 if has_semicolon else j
            continue

        while j < length and text[j].isalnum():
            j += 1
        entity_name = text[i + 1 : j]
        has_semicolon = j < length and text[j] == ";"

        if has_semicolon and entity_name in NAMED_ENTITIES:
            result.append(NAMED_ENTITIES[entity_name])
            i = j + 1
            continue

        # Longest legacy prefix, e.g. "&notit;" decodes "&not" and keeps "it;".
        matched = 0
        for k in range(len(entity_name), 0, -1):
            if entity_name[:k] in LEGACY_ENTITIES:
                matched = k
                break

        if matched:
            end_pos = i + 1 + matched
            next_char = text[end_pos] if end_pos < length else None
            if not _legacy_blocked(next_char, in_attribute):
                result.append(NAMED_ENTITIES[entity_name[:matched]])
                i = end_pos
                continue

        result.append("&")
        i += 1

    return "".join(result)

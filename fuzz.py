#!/usr/bin/env python3
"""
Random fuzzer for the saferhtml sanitizer.
Generates hostile/malformed markup and checks that sanitizing it never
crashes or hangs, never leaves script-capable content behind (also after
serializing and re-parsing), and is idempotent.
"""

import argparse
import random
import string
import sys
import time
import traceback

from saferhtml import DEFAULT_POLICY, ElementNode, parse_fragment, sanitize, sanitize_to_html

# Fuzzing strategies
TAGS = [
    "div", "span", "p", "a", "img", "table", "tr", "td", "th", "ul", "ol", "li",
    "form", "input", "button", "select", "option", "textarea", "script", "style",
    "head", "body", "html", "title", "br", "hr", "h1", "h2", "iframe", "object",
    "embed", "applet", "frame", "frameset", "video", "svg", "math", "template",
    "noscript", "noembed", "noframes", "xmp", "plaintext", "pre", "dl", "dt", "dd",
    "b", "i", "custom-element",
]

RAW_TEXT_TAGS = ["script", "style", "xmp", "iframe", "noembed", "noframes", "noscript"]
RCDATA_TAGS = ["title", "textarea"]

ATTRIBUTES = [
    "id", "class", "style", "href", "src", "alt", "title", "action", "formaction",
    "poster", "data", "xlink:href", "onclick", "onload", "onerror", "OnMouseOver",
    "data-x", "aria-label",
]

SCRIPT_URLS = [
    "javascript:alert(1)",
    "JaVaScRiPt:alert(1)",
    " javascript:alert(1)",
    "java\tscript:alert(1)",
    "java&#x09;script:alert(1)",
    "&#106;avascript:alert(1)",
    "vbscript:msgbox(1)",
    "\x01javascript:alert(1)",
]

SPECIAL_CHARS = ["\x00", "\x0b", "\x0c", "\r", "\ufffd", "\xa0", "\ufeff", "\u2028"]

ENTITIES = [
    "&amp;", "&lt;", "&gt;", "&quot;", "&nbsp;", "&", "&amp", "&copy", "&notit;",
    "&#", "&#x", "&#0;", "&#13;", "&#x0D;", "&#xFEFF;", "&#128;", "&#xD800;", "&#x110000;",
    "&unknown;",
]


def random_string(min_len=0, max_len=20):
    """Generate random ASCII string."""
    length = random.randint(min_len, max_len)
    return "".join(random.choices(string.ascii_letters + string.digits, k=length))


def fuzz_attribute():
    """Generate an attribute, often a hostile one."""
    name = random.choice(ATTRIBUTES) if random.random() < 0.8 else "on" + random_string(2, 8)
    value = random.choice(
        [
            lambda: random_string(0, 20),
            lambda: random.choice(SCRIPT_URLS),
            lambda: random.choice(ENTITIES),
            lambda: '"><script>alert(1)</script>',
            lambda: "</noscript><img src=x onerror=alert(1)>",
            lambda: random.choice(SPECIAL_CHARS) * random.randint(1, 3),
        ]
    )()
    quote_start, quote_end = random.choice([('="', '"'), ("='", "'"), ("=", ""), ("", ""), ('="', "")])
    if quote_start == "=" and any(c in value for c in " \t\n>"):
        quote_start, quote_end = '="', '"'
    return f"{name}{quote_start}{value}{quote_end}"


def fuzz_open_tag():
    tag = random.choice(TAGS)
    if random.random() < 0.2:
        tag = tag.upper()
    attrs = " ".join(fuzz_attribute() for _ in range(random.randint(0, 4)))
    closing = random.choice([">", "/>", " >", "", ">>"])
    return f"<{tag} {attrs}{closing}"


def fuzz_close_tag():
    tag = random.choice(TAGS)
    return random.choice([f"</{tag}>", f"</{tag} >", f"</{tag}", f"</ {tag}>", f"</{tag} x=1>"])


def fuzz_comment():
    content = random_string(0, 20)
    return random.choice(
        [
            f"<!--{content}-->",
            f"<!--{content}--!>",
            "<!-->",
            "<!--->",
            f"<!--{content}",
            f"<!-- --><script>alert(1)</script><!-- -->",
            f"<?{content}>",
            f"<![CDATA[{content}]]>",
        ]
    )


def fuzz_text():
    parts = [random_string(0, 10)]
    for _ in range(random.randint(0, 3)):
        parts.append(random.choice(ENTITIES + SPECIAL_CHARS + ["<", ">", "&", "<3"]))
        parts.append(random_string(0, 5))
    return "".join(parts)


def fuzz_raw_text():
    """Raw text elements, including attempts to break out of them."""
    tag = random.choice(RAW_TEXT_TAGS)
    content = random_string(0, 20)
    return random.choice(
        [
            f"<{tag}>{content}</{tag}>",
            f"<{tag}>{content}</{tag[:-1]}>{content}</{tag}>",
            f'<{tag}><p title="</{tag}><img src=x onerror=alert(1)>"></{tag}>',
            f"<{tag}><!--</{tag}><script>alert(1)</script>--></{tag}>",
            f"<{tag.upper()}>{content}</{tag}>",
            f"<{tag}>{content}",
            "<script><script>alert(1)</script></script>",
        ]
    )


def fuzz_rcdata():
    tag = random.choice(RCDATA_TAGS)
    return random.choice(
        [
            f"<{tag}><script>alert(1)</script></{tag}>",
            f"<{tag}>{random.choice(ENTITIES)}</{tag}>",
            f"<{tag}></{tag}><img src=x onerror=alert(1)>",
            f"<{tag}>{random_string()}",
        ]
    )


def fuzz_foreign():
    """SVG and MathML content, where raw text elements are parsed as markup."""
    tag = random.choice(["svg", "math", "SVG"])
    inner = random.choice(RAW_TEXT_TAGS + ["title", "foreignObject", "mtext", "desc"])
    return random.choice(
        [
            f"<{tag}><{inner}><img src=x onerror=alert(1)></{inner}></{tag}>",
            f"<{tag}><{inner}>{fuzz_text()}</{inner}>",
            f"<{tag}><p>{random_string()}</p></{tag}>",
            f'<{tag} onload="alert(1)"><a xlink:href="javascript:alert(1)">x</a></{tag}>',
            f"<{tag}><![CDATA[<img src=x onerror=alert(1)>]]></{tag}>",
        ]
    )


def fuzz_nested_structure(depth=0, max_depth=6):
    if depth >= max_depth or random.random() < 0.3:
        return fuzz_text()
    tag = random.choice(TAGS)
    inner = "".join(fuzz_nested_structure(depth + 1, max_depth) for _ in range(random.randint(0, 3)))
    end = f"</{tag}>" if random.random() < 0.7 else ""
    return f"<{tag} {fuzz_attribute()}>{inner}{end}"


def fuzz_implicit_tags():
    return random.choice(
        [
            "<p>a<p>b<div>c</p>",
            "<ul><li>a<li>b<ol><li>c</ul>",
            "<table><tr><td>a<td>b<tr><td>c</table>",
            "<dl><dt>a<dd>b<dt>c</dl>",
            "<a href=x>1<a href=javascript:y>2",
            "<select><option>a<optgroup><option>b</select>",
            "</p></br></div>",
            "<b><i>x</b>y</i>",
            "<a><p><a>x</a></p></a>",
            "<p><b>x</p>y",
            "<pre>\n\nx</pre>",
            "<textarea>\nx</textarea>",
        ]
    )


def generate_fuzzed_html():
    """Generate one fuzzed markup string."""
    parts = []
    for _ in range(random.randint(1, 15)):
        element_type = random.choices(
            [
                fuzz_open_tag,
                fuzz_close_tag,
                fuzz_comment,
                fuzz_text,
                fuzz_raw_text,
                fuzz_rcdata,
                fuzz_nested_structure,
                fuzz_implicit_tags,
                fuzz_foreign,
            ],
            weights=[20, 10, 6, 15, 8, 4, 10, 4, 4],
        )[0]
        parts.append(element_type())
    return "".join(parts)


def find_unsafe(root):
    """Return a description of the first script-capable construct under root, or None.

    <svg> and <math> count: the default policy drops them whole.
    """
    for node in root.walk():
        if not isinstance(node, ElementNode):
            continue
        if DEFAULT_POLICY.drops_subtree(node.name):
            return f"<{node.name}> element"
        for name, value in node.attrs.items():
            if DEFAULT_POLICY.forbids_attribute(name, value):
                return f"{name}={value!r} on <{node.name}>"
    return None


def check_markup(markup):
    """Return a failure description for `markup`, or None if the sanitizer handled it."""
    fragment = sanitize(markup)
    problem = find_unsafe(fragment)
    if problem:
        return f"unsafe tree: {problem}"

    once = sanitize_to_html(markup)
    problem = find_unsafe(parse_fragment(once))
    if problem:
        return f"unsafe after re-parse: {problem}"

    twice = sanitize_to_html(once)
    if twice != once:
        return f"not idempotent: {once!r} -> {twice!r}"
    return None


def run_fuzzer(num_tests, seed=None, verbose=False, save_failures=False):
    """Run the fuzzer against the sanitizer."""
    if seed is not None:
        random.seed(seed)

    crashes = []
    hangs = []
    failures = []
    successes = 0

    print(f"Fuzzing saferhtml with {num_tests} test cases...")
    start_time = time.time()

    for i in range(num_tests):
        html = generate_fuzzed_html()

        if verbose and i % 100 == 0:
            print(f"  Test {i}/{num_tests}...")

        try:
            start = time.perf_counter()
            problem = check_markup(html)
            elapsed = time.perf_counter() - start
        except Exception as e:
            crashes.append({
                "test_num": i,
                "html": html,
                "error": str(e),
                "traceback": traceback.format_exc(),
            })
            if verbose:
                print(f"  CRASH: Test {i}: {e}")
            continue

        if problem:
            failures.append({"test_num": i, "html": html, "problem": problem})
            if verbose:
                print(f"  FAIL: Test {i}: {problem}")
        elif elapsed > 5.0:
            hangs.append({"test_num": i, "html": html, "time": elapsed})
            if verbose:
                print(f"  HANG: Test {i} took {elapsed:.2f}s")
        else:
            successes += 1

    elapsed_total = time.time() - start_time

    # Report results
    print(f"\n{'='*60}")
    print("FUZZING RESULTS: saferhtml")
    print(f"{'='*60}")
    print(f"Total tests:    {num_tests}")
    print(f"Successes:      {successes}")
    print(f"Failures:       {len(failures)}")
    print(f"Crashes:        {len(crashes)}")
    print(f"Hangs (>5s):    {len(hangs)}")
    print(f"Total time:     {elapsed_total:.2f}s")
    print(f"Tests/second:   {num_tests/elapsed_total:.1f}")

    for title, records, key in (("FAILURE", failures, "problem"), ("CRASH", crashes, "error")):
        if not records:
            continue
        print(f"\n{'='*60}")
        print(f"{title} DETAILS:")
        print(f"{'='*60}")
        for record in records[:10]:
            print(f"\nTest #{record['test_num']}:")
            print(f"  HTML: {record['html'][:200]!r}...")
            print(f"  {key.capitalize()}: {record[key]}")
        if len(records) > 10:
            print(f"\n... and {len(records) - 10} more")

    if save_failures and (crashes or hangs or failures):
        filename = f"fuzz_failures_saferhtml_{int(time.time())}.txt"
        with open(filename, "w") as f:
            f.write(f"Seed: {seed}\n\n")
            for failure in failures:
                f.write(f"=== FAILURE #{failure['test_num']} ===\n")
                f.write(f"HTML:\n{failure['html']}\n")
                f.write(f"Problem: {failure['problem']}\n\n")
            for crash in crashes:
                f.write(f"=== CRASH #{crash['test_num']} ===\n")
                f.write(f"HTML:\n{crash['html']}\n")
                f.write(f"Traceback:\n{crash['traceback']}\n\n")
            for hang in hangs:
                f.write(f"=== HANG #{hang['test_num']} ({hang['time']:.2f}s) ===\n")
                f.write(f"HTML:\n{hang['html']}\n\n")
        print(f"\nFailures saved to {filename}")

    return not (crashes or hangs or failures)


def main():
    parser = argparse.ArgumentParser(description="Fuzz the saferhtml sanitizer with hostile input")
    parser.add_argument(
        "--num-tests", "-n",
        type=int,
        default=1000,
        help="Number of test cases to generate (default: 1000)",
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--save-failures",
        action="store_true",
        help="Save failures to a file",
    )
    parser.add_argument(
        "--sample",
        type=int,
        metavar="N",
        help="Just print N sample fuzzed markup strings (no sanitizing)",
    )

    args = parser.parse_args()

    if args.sample:
        if args.seed:
            random.seed(args.seed)
        for i in range(args.sample):
            print(f"=== Sample {i+1} ===")
            print(generate_fuzzed_html())
            print()
        return

    success = run_fuzzer(
        args.num_tests,
        seed=args.seed,
        verbose=args.verbose,
        save_failures=args.save_failures,
    )

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Random fuzzer for the ESI round trip.
Mixes ESI tags into malformed HTML and checks that they come back unchanged.
"""

import argparse
import random
import string
import sys
import time
import traceback
from collections import Counter

from tagrewriter import TagRewriter
from tagrewriter.esi import find_tags, postprocess, preprocess

TAGS = [
    "div", "span", "p", "a", "img", "table", "tr", "td", "th", "ul", "ol", "li",
    "form", "input", "button", "select", "option", "script", "style",
    "head", "body", "html", "meta", "link", "br", "hr", "h1", "h2", "h3",
    "iframe", "object", "video", "audio", "source", "svg", "math",
    "template", "noscript", "pre", "code", "blockquote", "article", "section",
    "header", "footer", "nav", "aside", "main", "figure", "details", "summary",
    "b", "i", "em", "strong", "font", "nobr", "caption", "colgroup", "col",
]

# Text in these elements is escaped on output, which breaks ESI tags inside
# them. Not generated.
ESCAPING_TEXT_TAGS = ["title", "textarea", "plaintext"]

ESI_ELEMENTS = ["include", "remove", "try", "attempt", "except", "choose", "when", "otherwise", "vars", "comment"]

ESI_ATTRIBUTES = [
    'src="/fragment"',
    'src="/fragment?a=1&b=2"',
    'alt="/fallback"',
    'onerror="continue"',
    "test=\"$(HTTP_COOKIE{group})=='Advanced'\"",
    "text='single quoted'",
    'name="$(QUERY_STRING{x})"',
    'src="/a?x=1--2"',
    'src="/ctl\x01"',
    'alt="trailing-"',
]

TEXT_CHUNKS = [
    "text", " ", "\n", "&amp;", "&", "&lt;", "<", "café", " ", "\t", "a > b",
    "\x01", "\x0b", "\x0c", "\x1f", "a--b", "-",
]

# Names that are valid HTML but not valid XML.
ODD_ATTRIBUTES = ['@click="go()"', ':class="c"', 'v-on:submit="s"', 'x:y="1"']

COMMENTS = ["<!-- {} -->", "<!-- a -- {} -->", "<!--{}--->", "<!---{}-->"]


def random_string(min_len=0, max_len=12):
    """Generate random ASCII string."""
    length = random.randint(min_len, max_len)
    return "".join(random.choices(string.ascii_letters + string.digits, k=length))


def generate_esi_tag():
    """Generate one opening, closing or self-closing ESI tag."""
    name = random.choice(ESI_ELEMENTS)
    kind = random.random()
    if kind < 0.3:
        return f"</esi:{name}>"
    attrs = " ".join(random.sample(ESI_ATTRIBUTES, k=random.randint(0, 2)))
    attrs = f" {attrs}" if attrs else ""
    if random.random() < 0.1:
        attrs = attrs.replace(" ", "\n  ", 1)
    if kind < 0.65:
        return f"<esi:{name}{attrs}>"
    return f"<esi:{name}{attrs}{random.choice([' />', '/>'])}"


def generate_html_tag():
    """Generate an HTML start or end tag, not always balanced."""
    name = random.choice(TAGS)
    if random.random() < 0.35:
        return f"</{name}>"
    attrs = ""
    if random.random() < 0.4:
        attrs = f' class="{random_string(1, 6)}"'
    if random.random() < 0.1:
        attrs += ' data-host="<esi:vars>$(HTTP_HOST)</esi:vars>"'
    if random.random() < 0.1:
        attrs += " " + random.choice(ODD_ATTRIBUTES)
    if random.random() < 0.05:
        attrs += ' title="\x02--"'
    return f"<{name}{attrs}>"


def generate_fuzzed_html(max_pieces=40):
    """Generate HTML with ESI tags in random places."""
    pieces = []
    for _ in range(random.randint(1, max_pieces)):
        roll = random.random()
        if roll < 0.3:
            pieces.append(generate_esi_tag())
        elif roll < 0.7:
            pieces.append(generate_html_tag())
        elif roll < 0.95:
            pieces.append(random.choice(TEXT_CHUNKS) + random_string())
        else:
            pieces.append(random.choice(COMMENTS).format(random_string()))
    if random.random() < 0.3:
        pieces.insert(0, "<!DOCTYPE html>")
    return "".join(pieces)


def check_case(rewriter, html, fragment):
    """Return a failure description, or None when the case passes."""
    if postprocess(preprocess(html)) != html:
        return "masker round trip changed the input"

    expected = Counter(find_tags(html))
    if fragment:
        output = rewriter.process_fragment(html)
    else:
        output = rewriter.process(html)
    actual = Counter(find_tags(output))
    if actual != expected:
        missing = expected - actual
        extra = actual - expected
        return f"ESI tags changed: missing={sorted(missing.elements())} extra={sorted(extra.elements())}"
    return None


def run_fuzzer(num_tests=1000, seed=None, verbose=False, save_failures=False, fragment=False):
    """Run the fuzzer and return True when every case passed."""
    if seed is None:
        seed = random.randint(0, 2**32 - 1)
    random.seed(seed)
    print(f"Using seed: {seed}")

    rewriter = TagRewriter()
    failures = []
    crashes = []
    hangs = []
    successes = 0

    mode = "fragment" if fragment else "document"
    print(f"Fuzzing {mode} mode with {num_tests} test cases...")
    start_time = time.time()

    for i in range(num_tests):
        html = generate_fuzzed_html()

        if verbose and i % 100 == 0:
            print(f"  Test {i}/{num_tests}...")

        try:
            start = time.perf_counter()
            problem = check_case(rewriter, html, fragment)
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

        if elapsed > 5.0:
            hangs.append({"test_num": i, "html": html, "time": elapsed})
        if problem is not None:
            failures.append({"test_num": i, "html": html, "error": problem})
            if verbose:
                print(f"  FAIL: Test {i}: {problem}")
        else:
            successes += 1

    elapsed_total = time.time() - start_time

    print(f"\n{'='*60}")
    print(f"FUZZING RESULTS: {mode}")
    print(f"{'='*60}")
    print(f"Total tests:    {num_tests}")
    print(f"Successes:      {successes}")
    print(f"Failures:       {len(failures)}")
    print(f"Crashes:        {len(crashes)}")
    print(f"Hangs (>5s):    {len(hangs)}")
    print(f"Total time:     {elapsed_total:.2f}s")

    for title, items in (("FAILURE DETAILS", failures), ("CRASH DETAILS", crashes)):
        if not items:
            continue
        print(f"\n{'='*60}")
        print(f"{title}:")
        print(f"{'='*60}")
        for item in items[:10]:
            print(f"\nTest #{item['test_num']}:")
            print(f"  HTML: {item['html'][:200]!r}...")
            print(f"  Error: {item['error']}")
        if len(items) > 10:
            print(f"\n... and {len(items) - 10} more")

    if save_failures and (failures or crashes or hangs):
        filename = f"fuzz_failures_{mode}_{int(time.time())}.txt"
        with open(filename, "w", encoding="utf-8") as f:
            f.write(f"Fuzzing results for {mode} mode\n")
            f.write(f"Seed: {seed}\n\n")
            for failure in failures:
                f.write(f"=== FAILURE #{failure['test_num']} ===\n")
                f.write(f"HTML:\n{failure['html']}\n")
                f.write(f"Error: {failure['error']}\n\n")
            for crash in crashes:
                f.write(f"=== CRASH #{crash['test_num']} ===\n")
                f.write(f"HTML:\n{crash['html']}\n")
                f.write(f"Traceback:\n{crash['traceback']}\n\n")
            for hang in hangs:
                f.write(f"=== HANG #{hang['test_num']} ({hang['time']:.2f}s) ===\n")
                f.write(f"HTML:\n{hang['html']}\n\n")
        print(f"\nFailures saved to {filename}")

    return not failures and not crashes and not hangs


def main():
    parser = argparse.ArgumentParser(description="Fuzz the ESI round trip with malformed HTML")
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
        "--fragment",
        action="store_true",
        help="Use process_fragment() instead of process()",
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
        help="Just print N sample fuzzed HTML documents (no processing)",
    )

    args = parser.parse_args()

    if args.sample:
        if args.seed is not None:
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
        fragment=args.fragment,
    )

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()

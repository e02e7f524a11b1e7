#!/usr/bin/env python3
"""
Random fuzzer for XML tokenizers.
Generates invalid/malformed XML to test tokenizer robustness.

A parser may reject a document with its own syntax error; any other
exception is a crash.
"""

import argparse
import random
import string
import sys
import time
import traceback

TAGS = [
    "root", "item", "entry", "book", "title", "author", "price", "value", "add", "mul",
    "math", "list", "node", "a", "b", "c", "x", "feed", "channel", "link",
]

ATTRIBUTES = ["id", "name", "type", "href", "lang", "version", "encoding", "checked", "x", "ref"]

SPECIAL_CHARS = [
    "\x01", "\x0b", "\x0c", "\x7f",  # Control chars
    "\ufffd",  # Replacement character
    "\xa0",  # Non-breaking space
    "\u2028", "\u2029",  # Line/paragraph separators
    "\u200b",  # Zero-width space
    "\ufeff",  # BOM
    "\U0001f600",  # Outside the BMP
]

REFERENCES = [
    "&amp;", "&lt;", "&gt;", "&quot;", "&apos;",
    "&", "&amp", "&ampamp;", "&nbsp;", "&unknown;", "&;",
    "&#", "&#;", "&#x;", "&#65;", "&#x41;", "&#X41;", "&#xF6;", "&#246;",
    "&#0;", "&#x0;", "&#xD800;", "&#x10FFFF;", "&#x110000;", "&#99999999;",
    "&#-1;", "&#xZZ;", "&#12a;",
]


def random_string(min_len=0, max_len=20):
    """Generate random ASCII string."""
    length = random.randint(min_len, max_len)
    return "".join(random.choices(string.ascii_letters + string.digits, k=length))


def random_whitespace():
    ws = [" ", "\t", "\n", "\r", "\f", "\v", ""]
    return "".join(random.choices(ws, k=random.randint(0, 5)))


def fuzz_tag_name():
    strategies = [
        lambda: random.choice(TAGS),
        lambda: random.choice(TAGS).upper(),
        lambda: random.choice(TAGS) + random_string(1, 5),
        lambda: random_string(1, 10),
        lambda: "",
        lambda: random.choice(SPECIAL_CHARS) + random.choice(TAGS),
        lambda: random.choice(TAGS) + ":" + random.choice(TAGS),
        lambda: " " + random.choice(TAGS),
        lambda: random.choice(TAGS) + "?",
    ]
    return random.choice(strategies)()


def fuzz_attribute():
    name_strategies = [
        lambda: random.choice(ATTRIBUTES),
        lambda: random_string(1, 15),
        lambda: "",
        lambda: "=",
        lambda: '"',
        lambda: "?",
        lambda: ">",
    ]
    value_strategies = [
        lambda: random_string(0, 30),
        lambda: random.choice(REFERENCES),
        lambda: random_string() + random.choice(REFERENCES) + random_string(),
        lambda: "<" + random_string(1, 5),
        lambda: ">",
        lambda: "\n" * random.randint(1, 3) + random_string(),
        lambda: "",
    ]
    quote_styles = [
        ('="', '"'),
        ("='", "'"),
        ("=", ""),  # Unquoted
        ("= ", ""),
        ("", ""),  # Bareword
        ('="', ""),  # Unclosed quote
        ("='", '"'),  # Mismatched quotes
        ("==", ""),
    ]
    name = random.choice(name_strategies)()
    value = random.choice(value_strategies)()
    quote_start, quote_end = random.choice(quote_styles)
    return f"{name}{quote_start}{value}{quote_end}"


def fuzz_open_tag():
    tag = fuzz_tag_name()
    attrs = " ".join(fuzz_attribute() for _ in range(random.randint(0, 4)))
    closings = [">", "/>", " >", "/ >", "", ">>", "?>", "/"]
    closing = random.choice(closings)
    return f"<{tag}{random_whitespace()}{attrs}{random_whitespace()}{closing}"


def fuzz_close_tag():
    tag = fuzz_tag_name()
    variants = [
        f"</{tag}>",
        f"</ {tag}>",
        f"</{tag} >",
        f"</{tag}",
        f"</{tag}/>",
        f"<//{tag}>",
        f"</{tag} {fuzz_attribute()}>",
        "</>",
    ]
    return random.choice(variants)


def fuzz_comment():
    content = random_string(0, 30)
    variants = [
        f"<!--{content}-->",
        f"<!--{content}--->",
        f"<!---{content}--->",
        f"<!--{content}->",
        f"<!--{content}",
        f"<!---->",
        f"<!-->",
        f"<!--{content}--{content}-->",
        f"<!-{content}-->",
        f"<!{content}>",
    ]
    return random.choice(variants)


def fuzz_cdata():
    content = random_string(0, 30)
    variants = [
        f"<![CDATA[{content}]]>",
        f"<![CDATA[<{content}>&]]>",
        f"<![CDATA[{content}",
        f"<![CDATA[{content}]>",
        f"<![CDATA[]]>",
        f"<![CDATA{content}]]>",
        f"<![cdata[{content}]]>",
        f"<![{content}",
    ]
    return random.choice(variants)


def fuzz_declaration():
    variants = [
        "<?xml version='1.0' encoding='UTF-8'?>",
        "<?xml version=\"1.1\"?>",
        "<?xml?>",
        "<?xml version='1.0' encoding='ASCII'?>",
        "<?xml version='1.0'",
        "<?xml-stylesheet href='a.xsl'?>",
        "<?php echo 1; ?>",
        "<? xml version='1.0'?>",
        f"<?xml {fuzz_attribute()}?>",
    ]
    return random.choice(variants)


def fuzz_text():
    strategies = [
        lambda: random_string(1, 50),
        lambda: random.choice(REFERENCES),
        lambda: "".join(random.choices(SPECIAL_CHARS, k=random.randint(1, 10))),
        lambda: "&" + random_string(1, 10),
        lambda: random_string() + ">" + random_string(),
        lambda: "\r\n" * random.randint(1, 5),
        lambda: " " * random.randint(1, 50),
    ]
    return random.choice(strategies)()


def fuzz_nested_structure(depth=0, max_depth=8):
    """Generate nested, mostly well-formed structure."""
    if depth >= max_depth or random.random() < 0.3:
        return fuzz_text()
    tag = random.choice(TAGS)
    children = "".join(fuzz_nested_structure(depth + 1, max_depth) for _ in range(random.randint(0, 3)))
    if random.random() < 0.1:
        return f"<{tag}>{children}</{random.choice(TAGS)}>"
    return f"<{tag}>{children}</{tag}>"


def fuzz_deeply_nested():
    depth = random.randint(50, 500)
    tags = [random.choice(TAGS) for _ in range(depth)]
    return "".join(f"<{t}>" for t in tags) + "".join(f"</{t}>" for t in reversed(tags))


def fuzz_many_attributes():
    attrs = " ".join(f"{random.choice(ATTRIBUTES)}{i}='{random_string()}'" for i in range(random.randint(50, 300)))
    return f"<{random.choice(TAGS)} {attrs}/>"


def generate_fuzzed_xml():
    """Generate a complete fuzzed XML document."""
    parts = []

    if random.random() < 0.5:
        parts.append(fuzz_declaration())

    num_elements = random.randint(1, 20)
    for _ in range(num_elements):
        element_type = random.choices(
            [
                fuzz_open_tag,
                fuzz_close_tag,
                fuzz_comment,
                fuzz_text,
                fuzz_cdata,
                fuzz_declaration,
                fuzz_nested_structure,
                fuzz_deeply_nested,
                fuzz_many_attributes,
            ],
            weights=[20, 10, 8, 15, 5, 2, 15, 1, 1],
        )[0]
        parts.append(element_type())

    return "".join(parts)


def _xmlpull_parse(xml):
    from xmlpull import EntityIterator

    iterator = EntityIterator(xml)
    count = 0
    while iterator.advance():
        count += 1
    return count


def _expat_parse(xml):
    from xml.parsers import expat

    parser = expat.ParserCreate()
    parser.Parse(xml, True)
    return parser


def _lxml_parse(xml):
    from lxml import etree

    return etree.fromstring(xml.encode("utf-8"))


def run_fuzzer(parser_name, num_tests, seed=None, verbose=False, save_failures=False):
    """Run the fuzzer against a parser."""
    if seed is not None:
        random.seed(seed)

    if parser_name == "xmlpull":
        from xmlpull import XMLSyntaxError

        parse_fn = _xmlpull_parse
        expected_errors = (XMLSyntaxError,)
    elif parser_name == "expat":
        from xml.parsers import expat

        parse_fn = _expat_parse
        expected_errors = (expat.ExpatError,)
    elif parser_name == "lxml":
        from lxml import etree

        parse_fn = _lxml_parse
        expected_errors = (etree.XMLSyntaxError, ValueError)
    else:
        print(f"Unknown parser: {parser_name}")
        sys.exit(1)

    crashes = []
    hangs = []
    successes = 0
    rejected = 0

    print(f"Fuzzing {parser_name} with {num_tests} test cases...")
    start_time = time.time()

    for i in range(num_tests):
        xml = generate_fuzzed_xml()

        if verbose and i % 100 == 0:
            print(f"  Test {i}/{num_tests}...")

        start = time.perf_counter()
        try:
            parse_fn(xml)
            successes += 1
        except expected_errors:
            rejected += 1
        except Exception as e:
            crashes.append({
                "test_num": i,
                "xml": xml,
                "error": str(e),
                "traceback": traceback.format_exc(),
            })
            if verbose:
                print(f"  CRASH: Test {i}: {e}")
        elapsed = time.perf_counter() - start

        # Check for hangs (>5 seconds)
        if elapsed > 5.0:
            hangs.append({"test_num": i, "xml": xml, "time": elapsed})
            if verbose:
                print(f"  HANG: Test {i} took {elapsed:.2f}s")

    elapsed_total = time.time() - start_time

    print(f"\n{'=' * 60}")
    print(f"FUZZING RESULTS: {parser_name}")
    print(f"{'=' * 60}")
    print(f"Total tests:    {num_tests}")
    print(f"Accepted:       {successes}")
    print(f"Rejected:       {rejected}")
    print(f"Crashes:        {len(crashes)}")
    print(f"Hangs (>5s):    {len(hangs)}")
    print(f"Total time:     {elapsed_total:.2f}s")
    print(f"Tests/second:   {num_tests / elapsed_total:.1f}")

    if crashes:
        print(f"\n{'=' * 60}")
        print("CRASH DETAILS:")
        print(f"{'=' * 60}")
        for crash in crashes[:10]:
            print(f"\nTest #{crash['test_num']}:")
            print(f"  XML: {crash['xml'][:200]!r}...")
            print(f"  Error: {crash['error']}")
        if len(crashes) > 10:
            print(f"\n... and {len(crashes) - 10} more crashes")

    if hangs:
        print(f"\n{'=' * 60}")
        print("HANG DETAILS:")
        print(f"{'=' * 60}")
        for hang in hangs[:5]:
            print(f"\nTest #{hang['test_num']} ({hang['time']:.2f}s):")
            print(f"  XML: {hang['xml'][:200]!r}...")

    if save_failures and (crashes or hangs):
        filename = f"fuzz_failures_{parser_name}_{int(time.time())}.txt"
        with open(filename, "w", encoding="utf-8") as f:
            f.write(f"Fuzzing results for {parser_name}\n")
            f.write(f"Seed: {seed}\n\n")
            for crash in crashes:
                f.write(f"=== CRASH #{crash['test_num']} ===\n")
                f.write(f"XML:\n{crash['xml']}\n")
                f.write(f"Error: {crash['error']}\n")
                f.write(f"Traceback:\n{crash['traceback']}\n\n")
            for hang in hangs:
                f.write(f"=== HANG #{hang['test_num']} ({hang['time']:.2f}s) ===\n")
                f.write(f"XML:\n{hang['xml']}\n\n")
        print(f"\nFailures saved to {filename}")

    return len(crashes) == 0 and len(hangs) == 0


def main():
    parser = argparse.ArgumentParser(description="Fuzz XML tokenizers with invalid input")
    parser.add_argument(
        "--parser", "-p",
        choices=["xmlpull", "expat", "lxml"],
        default="xmlpull",
        help="Parser to fuzz (default: xmlpull)",
    )
    parser.add_argument(
        "--num-tests", "-n",
        type=int,
        default=1000,
        help="Number of test cases to generate (default: 1000)",
    )
    parser.add_argument("--seed", "-s", type=int, default=None, help="Random seed for reproducibility")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--save-failures", action="store_true", help="Save failures to a file")
    parser.add_argument(
        "--sample",
        type=int,
        metavar="N",
        help="Just print N sample fuzzed XML documents (no parsing)",
    )

    args = parser.parse_args()

    if args.sample:
        if args.seed:
            random.seed(args.seed)
        for i in range(args.sample):
            print(f"=== Sample {i + 1} ===")
            print(generate_fuzzed_xml())
            print()
        return

    success = run_fuzzer(
        args.parser,
        args.num_tests,
        seed=args.seed,
        verbose=args.verbose,
        save_failures=args.save_failures,
    )

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()

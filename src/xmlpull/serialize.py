"""Entity stream serialization in the html5lib test style.

Used by the tests, ``run_tests.py`` and ``debug_tokenizer.py`` to compare
streams as text.
"""

from __future__ import annotations

from collections.abc import Iterator

from .stream import stream


def iter_test_format(source, opts=None, *, debug=False) -> Iterator[str]:
    """Yield one ``| ``-prefixed line per entity, indented by nesting depth.

    Closing tags are implied by the indentation and not printed. Lines are
    produced as the document is read, so a caller catching ``XMLSyntaxError``
    keeps everything before the failure.
    """
    depth = 0
    for event, data in stream(source, opts, debug=debug):
        indent = "  " * depth
        if event == "start":
            name, attrs = data
            yield f"| {indent}<{name}>"
            for key in sorted(attrs):
                yield f'| {indent}  {key}="{attrs[key]}"'
            depth += 1
        elif event == "end":
            depth -= 1
        elif event == "comment":
            yield f"| {indent}<!-- {data} -->"
        else:
            yield f'| {indent}"{data}"'


def to_test_format(source, opts=None) -> str:
    return "\n".join(iter_test_format(source, opts))

"""Markup generation into a caller-provided, fixed-size buffer.

The generator is the writing half of the library: anything it produces can be
read back with ``EntityIterator``. It never grows the buffer; running out of
room raises ``GeneratorError`` and leaves the bytes written so far in place.
"""

from __future__ import annotations

import re

_INVALID_NAME_PATTERN = re.compile(r"[\s<>/=?'\"&!]")
_INVALID_HEADER_PATTERN = re.compile(r"[\s<>?'\"&\x00]")
_TEXT_ESCAPE_PATTERN =re.compile(r"[<>&\x01-\x08\x0b\x0c\x0e-\x1f]")


class GeneratorError(RuntimeError):
    pass


def _escape_text(text: str) -> str:
    def replace(match: re.Match[str]) -> str:
        c = match.group()
        if c == "<":
            return "&lt;"
        if c == ">":
            return "&gt;"
        if c == "&":
            return "&amp;"
        return f"&#x{ord(c):02X};"

    return _TEXT_ESCAPE_PATTERN.sub(replace, text)


def _escape_attr_value(value: str) -> str:
    # The reader rejects a raw '>' inside quoted values, so it is escaped too.
    return (
        value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace("'", "&apos;")
    )


def _check_name(name: str, what: str) -> None:
    if not name or _INVALID_NAME_PATTERN.search(name):
        raise GeneratorError(f"Invalid {what} name: {name!r}")


def _check_header_value(value: str, what: str) -> None:
    if not value or _INVALID_HEADER_PATTERN.search(value):
        raise GeneratorError(f"Invalid {what}: {value!r}")


def _check_chars(text: str) -> None:
    if "\x00" in text:
        raise GeneratorError("NUL characters can not be represented in XML")


class _Output:
    __slots__ = ("buffer", "limit", "written")

    def __init__(self, buffer: bytearray, limit: int) -> None:
        self.buffer = buffer
        self.limit = limit
        self.written = 0

    def write(self, text: str) -> None:
        data = text.encode("utf-8")
        end = self.written + len(data)
        if end > self.limit:
            raise GeneratorError("Word too big.")
        self.buffer[self.written : end] = data
        self.written = end


class TagGenerator:
    """An open element. Children and text close the start tag on first use."""

    __slots__ = ("_descendants", "_last_open_child", "_open", "_out", "_parent", "name")

    def __init__(self, out: _Output, name: str, parent: TagGenerator | None = None) -> None:
        _check_name(name, "tag")
        self._out = out
        self.name = name
        self._parent = parent
        self._descendants = False
        self._open = True
        self._last_open_child: TagGenerator | None = None
        out.write("<" + name)
        if parent is not None:
            parent._last_open_child = self

    @property
    def closed(self) -> bool:
        return not self._open

    def add_parameter(self, name: str, value: str) -> None:
        if not self._open:
            raise GeneratorError("Can not add descendant to a closed tag")
        if self._descendants:
            raise GeneratorError(
                f"Can not create parameter '{name}' because the tag already wrote a descendant.",
            )
        _check_name(name, "parameter")
        _check_chars(value)
        self._out.write(f" {name}='{_escape_attr_value(value)}'")

    def add_tag(self, name: str) -> TagGenerator:
        self._check_descendants()
        return TagGenerator(self._out, name, self)

    def add_text(self, text: str) -> None:
        _check_chars(text)
        self._check_descendants()
        self._out.write(_escape_text(text))

    def add_comment(self, text: str) -> None:
        if "-->" in text:
            raise GeneratorError("A comment can not contain '-->'")
        _check_chars(text)
        self._check_descendants()
        self._out.write(f"<!--{text}-->")

    def close(self) -> None:
        if not self._open:
            return
        if self._descendants:
            self._close_open_child()
            self._out.write(f"</{self.name}>")
        else:
            self._out.write("/>")
        if self._parent is not None and self._parent._last_open_child is self:
            self._parent._last_open_child = None
        self._open = False

    def __enter__(self) -> TagGenerator:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()

    def _check_descendants(self) -> None:
        if not self._open:
            raise GeneratorError("Can not add descendant to a closed tag")
        if not self._descendants:
            self._descendants = True
            self._out.write(">")
        self._close_open_child()

    def _close_open_child(self) -> None:
        if self._last_open_child is not None:
            self._last_open_child.close()


class Generator:
    """Writes an XML declaration and one root element into ``buffer``."""

    __slots__ = ("_encoding", "_out", "_root", "_version")

    def __init__(self, buffer: bytearray, size: int | None = None) -> None:
        limit = len(buffer) if size is None else min(size, len(buffer))
        self._out = _Output(buffer, limit)
        self._version = "1.0"
        self._encoding = "UTF-8"
        self._root: TagGenerator | None = None

    def version(self, version: str) -> Generator:
        _check_header_value(version, "version")
        self._version = version
        return self

    def encoding(self, encoding: str) -> Generator:
        _check_header_value(encoding, "encoding")
        self._encoding = encoding
        return self

    def root_tag(self, name: str) -> TagGenerator:
        if self._root is not None:
            raise GeneratorError("Already wrote root")
        self._out.write(f"<?xml version='{self._version}' encoding='{self._encoding}'?>")
        self._root = TagGenerator(self._out, name)
        return self._root

    @property
    def written(self) -> int:
        return self._out.written

    def getvalue(self) -> str:
        return bytes(self._out.buffer[: self._out.written]).decode("utf-8")

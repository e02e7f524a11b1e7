"""XML character reference decoding.

Supports the five predefined named references (&lt; &gt; &amp; &quot; &apos;)
and numeric references in decimal (&#60;) or hexadecimal (&#x3C;) form.
Anything else is an error; there is no DTD to declare more names.
"""

from __future__ import annotations

from .tokens import ErrorCode

PREDEFINED_ENTITIES = {
    "lt": "<",
    "gt": ">",
    "amp": "&",
    "quot": '"',
    "apos": "'",
}

_DECIMAL_DIGITS = frozenset("0123456789")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class ReferenceDecodeError(ValueError):
    """Raised by the decoder; the iterator attaches a position and re-raises."""

    def __init__(self, code: str, message: str, offset: int) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.offset = offset


def decode_numeric_entity(text: str, is_hex: bool = False) -> str | None:
    """Decode the digits of a numeric reference, or None if they are invalid."""
    digits = _HEX_DIGITS if is_hex else _DECIMAL_DIGITS
    if not text or any(c not in digits for c in text):
        return None
    codepoint = int(text, 16 if is_hex else 10)
    if codepoint == 0 or codepoint > 0x10FFFF:
        return None
    if 0xD800 <= codepoint <= 0xDFFF:  # Surrogates have no UTF-8 encoding
        return None
    # chr() is locale independent; below 0x7F this is a single ASCII char.
    return chr(codepoint)


def decode_reference(buffer: str, pos: int) -> tuple[str, int]:
    """Decode the reference starting at ``buffer[pos] == "&"``.

    Returns the decoded text and the index just past the terminating ``;``.
    """
    end = buffer.find(";", pos + 1)
    if end == -1:
        raise ReferenceDecodeError(
            ErrorCode.UNCLOSED_REFERENCE,
            "Expected ';' to terminate the reference before the end of the buffer",
            pos,
        )
    name = buffer[pos + 1 : end]
    if name.startswith("#"):
        if name[1:2] in ("x", "X"):
            decoded = decode_numeric_entity(name[2:], is_hex=True)
        else:
            decoded = decode_numeric_entity(name[1:])
        if decoded is None:
            raise ReferenceDecodeError(
                ErrorCode.UNRESOLVED_REFERENCE, f"Invalid character reference '&{name};'", pos,
            )
        return decoded, end + 1

    decoded = PREDEFINED_ENTITIES.get(name)
    if decoded is None:
        raise ReferenceDecodeError(ErrorCode.UNRESOLVED_REFERENCE, f"Unknown entity '&{name};'", pos)
    return decoded, end + 1


def decode_references(text: str) -> str:
    """Decode every reference in ``text``.

    Raises ``ReferenceDecodeError`` with the offset of the failing ``&``.
    """
    if "&" not in text:
        return text

    result = []
    i = 0
    while True:
        next_amp = text.find("&", i)
        if next_amp == -1:
            result.append(text[i:])
            break
        if next_amp > i:
            result.append(text[i:next_amp])
        decoded, i = decode_reference(text, next_amp)
        result.append(decoded)
    return "".join(result)

from enum import IntEnum


class EntityType(IntEnum):
    TAG_OPEN = 0
    TAG_CLOSE = 1
    COMMENT = 2
    TEXT = 3


class Entity:
    """Snapshot of the iterator's current entity."""

    __slots__ = ("parameters", "type", "value")

    def __init__(self, type, value, parameters=None):
        self.type = type
        self.value = value
        self.parameters = dict(parameters) if parameters else {}

    def __repr__(self):
        if self.type == EntityType.TAG_OPEN:
            attrs = " ".join(f"{name}={value!r}" for name, value in self.parameters.items())
            return f"<start:{self.value} {attrs}>" if attrs else f"<start:{self.value}>"
        if self.type == EntityType.TAG_CLOSE:
            return f"<end:{self.value}>"
        if self.type == EntityType.COMMENT:
            return f"<comment:{self.value!r}>"
        return f"<text:{self.value!r}>"

    def __eq__(self, other):
        if not isinstance(other, Entity):
            return NotImplemented
        return self.type == other.type and self.value == other.value and self.parameters == other.parameters

    __hash__ = None


class ErrorCode:
    __slots__ = ()

    UNCLOSED_TAG = "unclosed-tag"
    UNCLOSED_COMMENT = "unclosed-comment"
    UNCLOSED_CDATA = "unclosed-cdata"
    UNCLOSED_ATTRIBUTE_VALUE = "unclosed-attribute-value"
    UNCLOSED_REFERENCE = "unclosed-reference"
    TAG_MISMATCH = "tag-mismatch"
    INVALID_ATTRIBUTE = "invalid-attribute"
    INVALID_DECLARATION = "invalid-declaration"
    INVALID_TAG_NAME = "invalid-tag-name"
    UNRESOLVED_REFERENCE = "unresolved-reference"


class ParseError:
    """Represents a parse error with location information."""

    __slots__ = ("code", "column", "line", "message")

    def __init__(self, code, line=None, column=None, message=None):
        self.code = code
        self.line = line
        self.column = column
        self.message = message or code

    def __repr__(self):
        if self.line is not None and self.column is not None:
            return f"ParseError({self.code!r}, line={self.line}, column={self.column})"
        return f"ParseError({self.code!r})"

    def __str__(self):
        if self.line is not None and self.column is not None:
            if self.message != self.code:
                return f"({self.line},{self.column}): {self.code} - {self.message}"
            return f"({self.line},{self.column}): {self.code}"
        if self.message != self.code:
            return f"{self.code} - {self.message}"
        return self.code

    def __eq__(self, other):
        if not isinstance(other, ParseError):
            return NotImplemented
        return self.code == other.code and self.line == other.line and self.column == other.column

    __hash__ = None  # Unhashable since we define __eq__


class XMLSyntaxError(SyntaxError):
    """Raised on the first fatal error; ``error`` holds the ParseError."""

    def __init__(self, error):
        self.error = error
        super().__init__(str(error))

    @property
    def code(self):
        return self.error.code

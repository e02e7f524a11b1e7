import re

from .entities import ReferenceDecodeError, decode_reference
from .tagstack import TagStack
from .tokens import Entity, EntityType, ErrorCode, ParseError, XMLSyntaxError

BLANKS = " \t\n\r"

_COMMENT_OPEN = "<!--"
_COMMENT_CLOSE = "-->"
_CDATA_OPEN = "<![CDATA["
_CDATA_CLOSE = "]]>"
_DECLARATION_OPEN = "<?xml"
_DECLARATION_CLOSE = "?>"

_TAG_NAME_TERMINATOR_PATTERN = re.compile(r"[ \t\n\r>/]")
_ATTR_NAME_TERMINATOR_PATTERN = re.compile(r"[= \t\n\r>/?]")
_ATTR_VALUE_DOUBLE_PATTERN = re.compile(r'[">&]')
_ATTR_VALUE_SINGLE_PATTERN = re.compile(r"['>&]")
_TEXT_STOP_PATTERN = re.compile(r"[<&]")


class IteratorOpts:
    __slots__ = ("discard_bom",)

    def __init__(self, discard_bom=True):
        self.discard_bom = bool(discard_bom)


class EntityIterator:
    """Pull-style XML tokenizer.

    Each call to ``advance()`` moves to the next entity in document order and
    exposes it through ``type``, ``value`` and ``parameters``. Construction
    performs the first advance, so a fresh iterator already points at the
    first entity (or at nothing, for an empty document).

    Self-closing tags are reported as a TAG_OPEN followed, on the next
    advance, by a synthetic TAG_CLOSE, so ``<x/>`` and ``<x></x>`` produce the
    same stream.
    """

    IDLE = 0
    PENDING_SYNTHETIC_CLOSE = 1
    DONE = 2

    __slots__ = (
        "_version",
        "buffer",
        "current_params",
        "current_type",
        "current_value",
        "declared",
        "env_debug",
        "error",
        "has_entity",
        "length",
        "opts",
        "pending_close_name",
        "pos",
        "produced",
        "state",
        "tag_stack",
    )

    def __init__(self, source, opts=None, *, debug=False):
        self.opts = opts or IteratorOpts()
        self.env_debug = bool(debug)

        if source is None:
            source = ""
        elif isinstance(source, (bytes, bytearray, memoryview)):
            source = bytes(source).decode("utf-8")
        if source and source[0] == "\ufeff" and self.opts.discard_bom:
            source = source[1:]

        self.buffer = source
        self.length = len(source)
        self.pos = 0
        self.state = self.IDLE
        self.tag_stack = TagStack()
        self.pending_close_name = None

        self.current_type = None
        self.current_value = ""
        self.current_params = {}
        self.has_entity = False

        self._version = "1.0"
        self.declared = False
        self.produced = False
        self.error = None

        self.advance()

    # ---------------------
    # Public API
    # ---------------------

    def advance(self):
        """Move to the next entity. Returns False once the input is exhausted.

        Raises XMLSyntaxError on malformed input. The failure is sticky: every
        later call raises the same error again.
        """
        if self.error is not None:
            raise XMLSyntaxError(self.error)
        try:
            produced = self._next_entity()
        except XMLSyntaxError as exc:
            self.error = exc.error
            self.has_entity = False
            self.debug(f"error: {exc.error}", indent=0)
            raise
        self.has_entity = produced
        return produced

    @property
    def type(self):
        return self.current_type

    @property
    def value(self):
        return self.current_value

    @property
    def parameters(self):
        """Attributes of the current TAG_OPEN; empty for every other entity.

        A new mapping is built per entity, so a reference taken now is not
        touched by later advances.
        """
        return self.current_params

    @property
    def version(self):
        return self._version

    @property
    def encoding(self):
        return "UTF-8"

    @property
    def depth(self):
        return len(self.tag_stack)

    @property
    def line(self):
        return self._location(self.pos)[0]

    @property
    def column(self):
        return self._location(self.pos)[1]

    def entity(self):
        return Entity(self.current_type, self.current_value, self.current_params)

    def copy(self):
        """Independent iterator at the same position."""
        clone = EntityIterator.__new__(EntityIterator)
        for name in self.__slots__:
            setattr(clone, name, getattr(self, name))
        clone.current_params = dict(self.current_params)
        clone.tag_stack = self.tag_stack.copy()
        return clone

    __copy__ = copy

    def __deepcopy__(self, memo):
        return self.copy()

    def __repr__(self):
        return f"<EntityIterator pos={self.pos} depth={self.depth} entity={self.entity()!r}>"

    def debug(self, message, indent=4):
        if self.env_debug:
            print(f"{' ' * indent}{message}")

    # ---------------------
    # Dispatch
    # ---------------------

    def _next_entity(self):
        if self.state == self.PENDING_SYNTHETIC_CLOSE:
            name = self.pending_close_name
            self.pending_close_name = None
            self.state = self.IDLE
            self.debug(f"synthetic close </{name}>")
            self._emit(EntityType.TAG_CLOSE, name)
            return True
        if self.state == self.DONE:
            return False

        buffer = self.buffer
        while True:
            skipped = self._skip_blanks()
            pos = self.pos
            if pos >= self.length:
                self.state = self.DONE
                self.debug("end of input", indent=0)
                return False

            if buffer[pos] != "<":
                # Blanks are significant inside a text run
                self.pos -= skipped
                self._scan_text()
            elif buffer.startswith(_COMMENT_OPEN, pos):
                self._scan_comment()
            elif buffer.startswith("<![", pos):
                self._scan_text()
            elif buffer.startswith("<!", pos):
                self._fail(ErrorCode.INVALID_DECLARATION, "Document type declarations are not supported")
            elif buffer.startswith("<?", pos):
                self._scan_declaration()
                continue
            else:
                self._scan_tag()
            self.produced = True
            return True

    def _emit(self, kind, value, params=None):
        self.current_type = kind
        self.current_value = value
        self.current_params = params if params is not None else {}

    # ---------------------
    # Scanners
    # ---------------------

    def _scan_tag(self):
        buffer = self.buffer
        start = self.pos
        pos = start + 1
        closing = buffer.startswith("/", pos)
        if closing:
            pos += 1

        match = _TAG_NAME_TERMINATOR_PATTERN.search(buffer, pos)
        if match is None:
            self._fail(ErrorCode.UNCLOSED_TAG, "Expected '>' before the end of the buffer", self.length)
        name = buffer[pos : match.start()]
        if not name:
            self._fail(ErrorCode.INVALID_TAG_NAME, "A tag name is expected after '<'", pos)
        self.pos = match.start()

        if closing:
            self._skip_blanks()
            self._expect_tag_end()
            expected = self.tag_stack.pop()
            if expected != name:
                if expected is None:
                    message = f"Closing tag '{name}' has no matching opening tag"
                else:
                    message = f"Tag mismatch, opened with: {expected}, but closed with: {name}"
                self._fail(ErrorCode.TAG_MISMATCH, message, start)
            self.debug(f"pop </{name}> depth={len(self.tag_stack)}")
            self._emit(EntityType.TAG_CLOSE, name)
            return

        params = {}
        self._read_parameters(params)
        if buffer.startswith("/", self.pos):
            self.pos += 1
            self._expect_tag_end()
            self.pending_close_name = name
            self.state = self.PENDING_SYNTHETIC_CLOSE
            self.debug(f"self-closing <{name}/>")
        else:
            self._expect_tag_end()
            self.tag_stack.push(name)
            self.debug(f"push <{name}> depth={len(self.tag_stack)}")
        self._emit(EntityType.TAG_OPEN, name, params)

    def _scan_comment(self):
        buffer = self.buffer
        start = self.pos + len(_COMMENT_OPEN)
        # First '>' preceded by two dashes; extra dashes stay in the value.
        end = buffer.find(_COMMENT_CLOSE, start)
        if end == -1:
            self._fail(ErrorCode.UNCLOSED_COMMENT, "Expected '-->' before the end of the buffer")
        self.pos = end + len(_COMMENT_CLOSE)
        self.debug("comment")
        self._emit(EntityType.COMMENT, buffer[start:end])

    def _scan_text(self):
        buffer = self.buffer
        parts = []
        pos = self.pos
        while True:
            match = _TEXT_STOP_PATTERN.search(buffer, pos)
            end = match.start() if match else self.length
            if end > pos:
                parts.append(buffer[pos:end])
            if match is None:
                pos = self.length
                break
            if buffer[end] == "&":
                decoded, pos = self._decode_reference(end)
                parts.append(decoded)
                continue
            if buffer.startswith("<![", end):
                cdata, pos = self._scan_cdata(end)
                parts.append(cdata)
                continue
            pos = end
            break
        self.pos = pos
        self._emit(EntityType.TEXT, "".join(parts))

    def _scan_cdata(self, start):
        buffer = self.buffer
        if not buffer.startswith(_CDATA_OPEN, start):
            self._fail(ErrorCode.UNCLOSED_CDATA, "Expected '<![CDATA['", start)
        content_start = start + len(_CDATA_OPEN)
        end = buffer.find(_CDATA_CLOSE, content_start)
        if end == -1:
            self._fail(ErrorCode.UNCLOSED_CDATA, "Expected ']]>' before the end of the buffer", start)
        return buffer[content_start:end], end + len(_CDATA_CLOSE)

    def _scan_declaration(self):
        buffer = self.buffer
        start = self.pos
        if self.declared:
            self._fail(ErrorCode.INVALID_DECLARATION, "The XML declaration may appear only once")
        if self.produced:
            self._fail(ErrorCode.INVALID_DECLARATION, "The XML declaration must come before any other content")
        after = start + len(_DECLARATION_OPEN)
        if not buffer.startswith(_DECLARATION_OPEN, start) or buffer[after : after + 1] not in (
            " ",
            "\t",
            "\n",
            "\r",
            "?",
        ):
            self._fail(ErrorCode.INVALID_DECLARATION, "Processing instructions are not supported")

        self.pos = after
        params = {}
        self._read_parameters(params, unclosed_code=ErrorCode.INVALID_DECLARATION)
        encoding = params.get("encoding")
        if encoding is not None and encoding != "UTF-8":
            self._fail(ErrorCode.INVALID_DECLARATION, f"Invalid encoding: {encoding}", start)
        if not buffer.startswith(_DECLARATION_CLOSE, self.pos):
            self._fail(ErrorCode.INVALID_DECLARATION, "Expected '?>' to close the XML declaration")
        self.pos += len(_DECLARATION_CLOSE)

        version = params.get("version")
        if version is not None:
            self._version = version
        self.declared = True
        self.debug(f"declaration version={self._version}", indent=0)

    # ---------------------
    # Attributes
    # ---------------------

    def _read_parameters(self, params, unclosed_code=ErrorCode.UNCLOSED_TAG):
        """Fill ``params`` from the attribute region and stop before '>', '/' or '?'."""
        buffer = self.buffer
        length = self.length
        while True:
            self._skip_blanks()
            start = self.pos
            match = _ATTR_NAME_TERMINATOR_PATTERN.search(buffer, start)
            if match is None:
                self._fail(unclosed_code, "Expected close tag or parameter definition", length)
            end = match.start()
            name = buffer[start:end]
            self.pos = end
            if buffer[end] in ">/?":
                # A name cut off by the terminator is dropped
                return
            if not name:
                self._fail(ErrorCode.INVALID_ATTRIBUTE, "Invalid parameter. A name is expected before the '='", start)

            self._skip_blanks()
            if self.pos >= length:
                self._fail(unclosed_code, "Expected close tag or parameter definition", length)
            if buffer[self.pos] != "=":
                # Bareword attribute
                params[name] = name
                continue
            self.pos += 1
            self._skip_blanks()
            params[name] = self._read_parameter_value(name)

    def _read_parameter_value(self, name):
        buffer = self.buffer
        if self.pos >= self.length:
            self._fail(ErrorCode.UNCLOSED_ATTRIBUTE_VALUE, f"Expected a value for parameter '{name}'")
        quote = buffer[self.pos]
        if quote == '"':
            stop_pattern = _ATTR_VALUE_DOUBLE_PATTERN
        elif quote == "'":
            stop_pattern = _ATTR_VALUE_SINGLE_PATTERN
        else:
            self._fail(
                ErrorCode.INVALID_ATTRIBUTE,
                f"Invalid parameter '{name}'. The parameter value must be surrounded by ' or \", we got: {quote!r}",
            )

        parts = []
        pos = self.pos + 1
        while True:
            match = stop_pattern.search(buffer, pos)
            if match is None:
                self._fail(ErrorCode.UNCLOSED_ATTRIBUTE_VALUE, "Unclosed parameter value", self.length)
            end = match.start()
            if end > pos:
                parts.append(buffer[pos:end])
            c = buffer[end]
            if c == quote:
                self.pos = end + 1
                return "".join(parts)
            if c == ">":
                self._fail(ErrorCode.UNCLOSED_ATTRIBUTE_VALUE, f"Expected a {quote} before '>'", end)
            decoded, pos = self._decode_reference(end)
            parts.append(decoded)

    # ---------------------
    # Low-level helpers
    # ---------------------

    def _decode_reference(self, pos):
        try:
            return decode_reference(self.buffer, pos)
        except ReferenceDecodeError as exc:
            self._fail(exc.code, exc.message, exc.offset)

    def _skip_blanks(self):
        buffer = self.buffer
        length = self.length
        start = pos = self.pos
        while pos < length and buffer[pos] in BLANKS:
            pos += 1
        self.pos = pos
        return pos - start

    def _expect_tag_end(self):
        pos = self.pos
        if pos < self.length and self.buffer[pos] == ">":
            self.pos = pos + 1
            return
        if pos >= self.length:
            self._fail(ErrorCode.UNCLOSED_TAG, "Expected '>' before the end of the buffer")
        self._fail(ErrorCode.UNCLOSED_TAG, f"Expected '>', got {self.buffer[pos]!r}")

    def _location(self, offset):
        buffer = self.buffer
        line = buffer.count("\n", 0, offset) + 1
        column = offset - (buffer.rfind("\n", 0, offset) + 1) + 1
        return line, column

    def _fail(self, code, message, offset=None):
        if offset is None:
            offset = self.pos
        line, column = self._location(offset)
        raise XMLSyntaxError(ParseError(code, line=line, column=column, message=message))

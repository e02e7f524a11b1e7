"""Tests for fatal errors: codes, positions and sticky failure."""

import unittest

from xmlpull import EntityIterator, ErrorCode, ParseError, XMLSyntaxError


def drain(source):
    it = EntityIterator(source)
    while it.advance():
        pass
    return it


class ErrorTestCase(unittest.TestCase):
    def assert_error(self, source, code, line=None, column=None):
        with self.assertRaises(XMLSyntaxError) as cm:
            drain(source)
        error = cm.exception.error
        assert error.code == code, f"{source!r}: expected {code}, got {error}"
        if line is not None:
            assert (error.line, error.column) == (line, column), f"{source!r}: {error}"
        return error


class TestUnclosed(ErrorTestCase):
    def test_unclosed_tag(self):
        self.assert_error("<root", ErrorCode.UNCLOSED_TAG, 1, 6)
        self.assert_error("<a></a", ErrorCode.UNCLOSED_TAG)
        self.assert_error("<a x='1'", ErrorCode.UNCLOSED_TAG)
        self.assert_error("<a x", ErrorCode.UNCLOSED_TAG)
        self.assert_error("<a x ", ErrorCode.UNCLOSED_TAG)

    def test_unexpected_character_before_gt(self):
        self.assert_error("<a/ >", ErrorCode.UNCLOSED_TAG, 1, 4)
        self.assert_error("<a></a x>", ErrorCode.UNCLOSED_TAG)
        self.assert_error("<a></a/>", ErrorCode.UNCLOSED_TAG)

    def test_unclosed_comment(self):
        self.assert_error("<!-- abc", ErrorCode.UNCLOSED_COMMENT, 1, 1)
        self.assert_error("<a>\n<!-- x --", ErrorCode.UNCLOSED_COMMENT, 2, 1)
        self.assert_error("<!-- x ->", ErrorCode.UNCLOSED_COMMENT)

    def test_unclosed_cdata(self):
        self.assert_error("<![CDATA[abc", ErrorCode.UNCLOSED_CDATA, 1, 1)
        self.assert_error("<![CDATA[abc]>", ErrorCode.UNCLOSED_CDATA)
        self.assert_error("<a>x<![foo]]></a>", ErrorCode.UNCLOSED_CDATA, 1, 5)

    def test_unclosed_attribute_value(self):
        self.assert_error("<a x='1>", ErrorCode.UNCLOSED_ATTRIBUTE_VALUE, 1, 8)
        self.assert_error('<a x="1', ErrorCode.UNCLOSED_ATTRIBUTE_VALUE)
        self.assert_error("<a x=", ErrorCode.UNCLOSED_ATTRIBUTE_VALUE)
        self.assert_error("<a x= ", ErrorCode.UNCLOSED_ATTRIBUTE_VALUE)

    def test_unclosed_reference(self):
        self.assert_error("a &amp b", ErrorCode.UNCLOSED_REFERENCE, 1, 3)
        self.assert_error("<a x='&lt'/>", ErrorCode.UNCLOSED_REFERENCE, 1, 7)


class TestTagMismatch(ErrorTestCase):
    def test_different_name(self):
        error = self.assert_error("<a></b>", ErrorCode.TAG_MISMATCH, 1, 4)
        assert error.message == "Tag mismatch, opened with: a, but closed with: b"

    def test_misnested(self):
        self.assert_error("<a><b></a></b>", ErrorCode.TAG_MISMATCH, 1, 7)

    def test_close_with_empty_stack(self):
        self.assert_error("</a>", ErrorCode.TAG_MISMATCH, 1, 1)
        self.assert_error("<a/></a>", ErrorCode.TAG_MISMATCH, 1, 5)

    def test_multiline_position(self):
        self.assert_error("<a>\n  <b>\n  </c>", ErrorCode.TAG_MISMATCH, 3, 3)


class TestInvalid(ErrorTestCase):
    def test_invalid_attribute(self):
        self.assert_error("<a ='1'>", ErrorCode.INVALID_ATTRIBUTE, 1, 4)
        self.assert_error("<a x=1>", ErrorCode.INVALID_ATTRIBUTE, 1, 6)
        self.assert_error("<a x=>", ErrorCode.INVALID_ATTRIBUTE)

    def test_invalid_tag_name(self):
        self.assert_error("<>", ErrorCode.INVALID_TAG_NAME, 1, 2)
        self.assert_error("< a>", ErrorCode.INVALID_TAG_NAME)
        self.assert_error("<a></>", ErrorCode.INVALID_TAG_NAME)
        self.assert_error("<a><//a>", ErrorCode.INVALID_TAG_NAME)

    def test_doctype_is_not_supported(self):
        self.assert_error("<!DOCTYPE a><a/>", ErrorCode.INVALID_DECLARATION, 1, 1)
        self.assert_error("<!ELEMENT a>", ErrorCode.INVALID_DECLARATION)

    def test_declaration_must_come_first(self):
        self.assert_error("<a/><?xml version='1.0'?>", ErrorCode.INVALID_DECLARATION)
        self.assert_error("text<?xml?>", ErrorCode.INVALID_DECLARATION)

    def test_declaration_only_once(self):
        self.assert_error("<?xml?><?xml?><a/>", ErrorCode.INVALID_DECLARATION)

    def test_processing_instructions(self):
        self.assert_error("<?xml-stylesheet href='a.xsl'?><a/>", ErrorCode.INVALID_DECLARATION)
        self.assert_error("<?php echo 1; ?>", ErrorCode.INVALID_DECLARATION)
        self.assert_error("<? xml?>", ErrorCode.INVALID_DECLARATION)

    def test_encoding_must_be_utf8(self):
        error = self.assert_error("<?xml version='1.0' encoding='ASCII'?><a/>", ErrorCode.INVALID_DECLARATION)
        assert "ASCII" in error.message
        self.assert_error("<?xml version='1.0' encoding='utf-8'?><a/>", ErrorCode.INVALID_DECLARATION)

    def test_unterminated_declaration(self):
        self.assert_error("<?xml version='1.0'", ErrorCode.INVALID_DECLARATION)
        self.assert_error("<?xml version='1.0'><a/>", ErrorCode.INVALID_DECLARATION)
        self.assert_error("<?xml version='1.0'/><a/>", ErrorCode.INVALID_DECLARATION)

    def test_unresolved_reference(self):
        self.assert_error("&nbsp;", ErrorCode.UNRESOLVED_REFERENCE, 1, 1)
        self.assert_error("<a x='&foo;'/>", ErrorCode.UNRESOLVED_REFERENCE, 1, 7)
        self.assert_error("&#0;", ErrorCode.UNRESOLVED_REFERENCE)
        self.assert_error("&#xD800;", ErrorCode.UNRESOLVED_REFERENCE)
        self.assert_error("&#x110000;", ErrorCode.UNRESOLVED_REFERENCE)
        self.assert_error("&#12a;", ErrorCode.UNRESOLVED_REFERENCE)


class TestFailureBehavior(unittest.TestCase):
    def test_constructor_raises_on_first_entity(self):
        with self.assertRaises(XMLSyntaxError) as cm:
            EntityIterator("<root")
        assert cm.exception.code == ErrorCode.UNCLOSED_TAG

    def test_failure_is_sticky(self):
        it = EntityIterator("<a></b><c/>")
        with self.assertRaises(XMLSyntaxError) as first:
            it.advance()
        assert it.has_entity is False
        with self.assertRaises(XMLSyntaxError) as second:
            it.advance()
        assert second.exception.error == first.exception.error
        assert second.exception.code == ErrorCode.TAG_MISMATCH

    def test_copy_taken_before_failure_is_unaffected(self):
        it = EntityIterator("<a></b>")
        clone = it.copy()
        with self.assertRaises(XMLSyntaxError):
            it.advance()
        assert clone.error is None
        assert clone.value == "a"
        assert it.error is not None

    def test_entities_before_the_error_are_delivered(self):
        it = EntityIterator("<a>ok</a><!-- unclosed")
        seen = [it.value]
        with self.assertRaises(XMLSyntaxError):
            while it.advance():
                seen.append(it.value)
        assert seen == ["a", "ok", "a"]


class TestParseError(unittest.TestCase):
    def test_str_with_location(self):
        error = ParseError(ErrorCode.UNCLOSED_TAG, line=1, column=6, message="Expected '>'")
        assert str(error) == "(1,6): unclosed-tag - Expected '>'"
        assert repr(error) == "ParseError('unclosed-tag', line=1, column=6)"

    def test_str_without_message(self):
        assert str(ParseError(ErrorCode.TAG_MISMATCH, line=2, column=3)) == "(2,3): tag-mismatch"
        assert str(ParseError(ErrorCode.TAG_MISMATCH)) == "tag-mismatch"

    def test_equality_ignores_message(self):
        assert ParseError("x", line=1, column=1, message="a") == ParseError("x", line=1, column=1, message="b")
        assert ParseError("x", line=1, column=1) != ParseError("x", line=1, column=2)

    def test_exception_is_syntax_error(self):
        with self.assertRaises(SyntaxError) as cm:
            EntityIterator("<a x=1>")
        assert isinstance(cm.exception, XMLSyntaxError)
        assert cm.exception.code == ErrorCode.INVALID_ATTRIBUTE
        assert "invalid-attribute" in str(cm.exception)


if __name__ == "__main__":
    unittest.main()

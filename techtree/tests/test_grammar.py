"""Test suite for the localisation grammar.

Covers the header, entry forms, escapes, comments and failure
positions, plus the serializer round-trip property.
"""

import pytest
from hypothesis import given, strategies as st

from techtree.core.types import Language
from techtree.errors import ErrorCode, LocalisationSyntaxError, ParseError
from techtree.services.grammar import (
    escape_string,
    parse_localisation,
    parse_localisation_bytes,
    serialize_localisation,
)


class TestHeader:
    """Test language header handling."""

    def test_header_then_entry(self):
        parsed = parse_localisation('l_english:\nkey:"v"')
        assert parsed.language is Language.ENGLISH
        assert parsed.entries == {"key": "v"}

    def test_unknown_language(self):
        parsed = parse_localisation('l_klingon:\n key:0 "Qapla"')
        assert parsed.language is Language.UNKNOWN
        assert parsed.entries == {"key": "Qapla"}

    def test_comments_and_blank_lines_before_header(self):
        text = "# generated\n\n   # indented comment\nl_german:\n"
        parsed = parse_localisation(text)
        assert parsed.language is Language.GERMAN
        assert parsed.entries == {}

    def test_bom_is_stripped(self):
        parsed = parse_localisation_bytes('\ufeffl_french:\n a:0 "b"\n'.encode('utf-8'))
        assert parsed.language is Language.FRENCH
        assert parsed.entries == {"a": "b"}

    def test_missing_header(self):
        with pytest.raises(LocalisationSyntaxError) as exc:
            parse_localisation(' key:0 "v"\n')
        assert exc.value.line == 1
        assert exc.value.code is ErrorCode.LOCALISATION_SYNTAX

    def test_empty_file_has_no_header(self):
        with pytest.raises(LocalisationSyntaxError):
            parse_localisation("# only a comment\n")

    def test_header_without_colon(self):
        with pytest.raises(LocalisationSyntaxError) as exc:
            parse_localisation("l_english\n")
        assert "':'" in exc.value.reason


class TestEntries:
    """Test entry forms."""

    def test_version_digits_after_colon(self):
        parsed = parse_localisation('l_english:\n tech_a:0 "A"\n tech_b:12 "B"\n')
        assert parsed.entries == {"tech_a": "A", "tech_b": "B"}

    def test_whitespace_separator(self):
        parsed = parse_localisation('l_english:\n tech_a "A"\n')
        assert parsed.entries == {"tech_a": "A"}

    def test_dotted_keys(self):
        parsed = parse_localisation('l_english:\n tech_a.name:0 "A"\n')
        assert parsed.entries == {"tech_a.name": "A"}

    def test_colon_inside_key(self):
        parsed = parse_localisation('l_english:\n a:b "x"\n c:d:0 "y"\n ok:0 "z"\n')
        assert parsed.entries == {"a:b": "x", "c:d": "y", "ok": "z"}

    def test_colon_without_version_before_quote(self):
        parsed = parse_localisation('l_english:\n a:b:"x"\n')
        assert parsed.entries == {"a:b": "x"}

    def test_duplicate_key_last_wins(self):
        parsed = parse_localisation('l_english:\n key:0 "first"\n key:0 "second"\n')
        assert parsed.entries == {"key": "second"}

    def test_entry_order_is_preserved(self):
        parsed = parse_localisation('l_english:\n b:0 "1"\n a:0 "2"\n c:0 "3"\n')
        assert list(parsed.entries) == ["b", "a", "c"]

    def test_trailing_comment(self):
        parsed = parse_localisation('l_english:\n key:0 "v" # note\n')
        assert parsed.entries == {"key": "v"}

    def test_hash_inside_value_is_text(self):
        parsed = parse_localisation('l_english:\n key:0 "#1 choice"\n')
        assert parsed.entries == {"key": "#1 choice"}

    def test_interspersed_comments(self):
        text = 'l_english:\n a:0 "1"\n # between\n b:0 "2"\n'
        assert parse_localisation(text).entries == {"a": "1", "b": "2"}

    def test_crlf_line_endings(self):
        parsed = parse_localisation('l_english:\r\n key:0 "v"\r\n')
        assert parsed.entries == {"key": "v"}

    def test_markup_is_kept_verbatim(self):
        parsed = parse_localisation('l_english:\n key:0 "§YGold§! costs $cost$ £energy£"\n')
        assert parsed.entries["key"] == "§YGold§! costs $cost$ £energy£"

    def test_empty_value(self):
        assert parse_localisation('l_english:\n key:0 ""\n').entries == {"key": ""}


class TestEscapes:
    """Test escape sequences inside quoted values."""

    def test_simple_escapes(self):
        parsed = parse_localisation(r'l_english:' '\n' r' key:0 "a\"b\\c\/d\ne\tf"')
        assert parsed.entries["key"] == 'a"b\\c/d\ne\tf'

    def test_control_escapes(self):
        parsed = parse_localisation(r'l_english:' '\n' r' key:0 "\b\f\r"')
        assert parsed.entries["key"] == "\b\f\r"

    def test_unicode_escape(self):
        parsed = parse_localisation(r'l_english:' '\n' r' key:0 "\u00e9t\u00e9"')
        assert parsed.entries["key"] == "été"
        assert parsed.diagnostics == ()

    def test_surrogate_escape_is_replaced_with_diagnostic(self):
        parsed = parse_localisation(r'l_english:' '\n' r' key:0 "x\ud800y"')
        assert parsed.entries["key"] == "x\ufffdy"
        assert len(parsed.diagnostics) == 1
        assert parsed.diagnostics[0].code is ErrorCode.INVALID_UNICODE_ESCAPE
        assert parsed.diagnostics[0].line == 2

    def test_unknown_escape_fails(self):
        with pytest.raises(LocalisationSyntaxError) as exc:
            parse_localisation(r'l_english:' '\n' r' key:0 "\q"')
        assert exc.value.line == 2
        assert "\\q" in exc.value.reason

    def test_short_unicode_escape_fails(self):
        with pytest.raises(LocalisationSyntaxError):
            parse_localisation(r'l_english:' '\n' r' key:0 "\u12"')


class TestFailures:
    """Test failure reporting."""

    def test_unterminated_string(self):
        with pytest.raises(LocalisationSyntaxError) as exc:
            parse_localisation('l_english:\n key:0 "open\n')
        assert exc.value.line == 2
        assert exc.value.reason == "unterminated string"

    def test_trailing_text_after_value(self):
        with pytest.raises(LocalisationSyntaxError) as exc:
            parse_localisation('l_english:\n key:0 "v" extra\n')
        assert exc.value.line == 2
        assert exc.value.column == 12

    def test_missing_quote(self):
        with pytest.raises(LocalisationSyntaxError):
            parse_localisation('l_english:\n key:0 value\n')

    def test_error_message_carries_path(self):
        with pytest.raises(LocalisationSyntaxError) as exc:
            parse_localisation('l_english:\n key:0 "v', path="mod/localisation/a.yml")
        assert "mod/localisation/a.yml:2" in exc.value.message
        assert exc.value.path == "mod/localisation/a.yml"

    def test_invalid_utf8_is_parse_error(self):
        with pytest.raises(ParseError) as exc:
            parse_localisation_bytes(b'l_english:\n key:0 "\xff"\n')
        assert exc.value.code is ErrorCode.ENCODING_ERROR


class TestSerialization:
    """Test the serializer against the parser."""

    def test_escape_string(self):
        assert escape_string('say "hi"\n') == 'say \\"hi\\"\\n'
        assert escape_string("\x01") == "\\u0001"
        assert escape_string("a/b") == "a/b"

    def test_serialize_shape(self):
        text = serialize_localisation(Language.ENGLISH, {"a": "1"})
        assert text == 'l_english:\n a:0 "1"\n'

    @given(st.text())
    def test_value_round_trip(self, value):
        text = serialize_localisation(Language.ENGLISH, {"key": value})
        parsed = parse_localisation(text)
        assert parsed.entries == {"key": value}

    @given(st.dictionaries(
        st.text(
            alphabet=st.characters(exclude_characters=' \t\n\r":#', exclude_categories=('Cs', 'Zs', 'Zl', 'Zp', 'Cc')),
            min_size=1
        ),
        st.text(),
        max_size=8
    ))
    def test_file_round_trip(self, entries):
        parsed = parse_localisation(serialize_localisation(Language.RUSSIAN, entries))
        assert parsed.language is Language.RUSSIAN
        assert parsed.entries == entries

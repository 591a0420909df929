"""Line grammar for localisation files.

A localisation file looks like::

    # optional comments
    l_english:
     tech_lasers_1:0 "Red Lasers"
     tech_lasers_1_desc: "Fires \\"red\\" light.\\nVery hot."

One header line names the language for the whole file. Every other
non-blank line is either a comment or exactly one entry: a key, a ``:``
(optionally followed by version digits) or whitespace, then a quoted
string that runs to the end of the line. Only a comment may follow the
closing quote.

Escapes inside the string: ``\\\\ \\/ \\" \\b \\f \\n \\r \\t \\uXXXX``.
A ``\\u`` escape naming a surrogate resolves to U+FFFD and is reported
as a diagnostic instead of failing the file.
"""

import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Union

from techtree.core.types import Diagnostic, Language
from techtree.errors import ErrorCode, LocalisationSyntaxError, ParseError


BOM = "\ufeff"
REPLACEMENT_CHARACTER = "\ufffd"

_SIMPLE_ESCAPES = {
    '\\': '\\',
    '/': '/',
    '"': '"',
    'b': '\b',
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
}

# Inverse used by the serializer; '/' needs no escaping.
_ESCAPED_FORMS = {v: '\\' + k for k, v in _SIMPLE_ESCAPES.items() if k != '/'}

_BLANK = ' \t'
_KEY_STOP = ' \t"'
_HEX = set(string.hexdigits)


@dataclass(frozen=True)
class LocalisationFile:
    """Parse result for one localisation file."""

    language: Language
    entries: dict[str, str]
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)


# ═════════════════════════════════════════════════════════════════════════════
# Parsing
# ═════════════════════════════════════════════════════════════════════════════

def parse_localisation_bytes(
    data: bytes,
    path: Optional[Union[str, Path]] = None
) -> LocalisationFile:
    """Decode file bytes as UTF-8 (BOM tolerated) and parse them."""
    try:
        text = data.decode('utf-8')
    except UnicodeDecodeError as e:
        raise ParseError(
            f"Localisation file is not valid UTF-8: {e}",
            code=ErrorCode.ENCODING_ERROR,
            path=path
        ) from e
    return parse_localisation(text, path)


def parse_localisation(
    text: str,
    path: Optional[Union[str, Path]] = None
) -> LocalisationFile:
    """Parse localisation text into its language and ordered entries.

    Duplicate keys keep the last value.

    Raises:
        LocalisationSyntaxError: header missing or a line is malformed
    """
    if text.startswith(BOM):
        text = text[1:]

    parser = _LineParser(path)
    language: Optional[Language] = None
    entries: dict[str, str] = {}

    for lineno, raw in enumerate(text.split('\n'), start=1):
        line = raw[:-1] if raw.endswith('\r') else raw
        col = _skip_blank(line, 0)

        if col == len(line) or line[col] == '#':
            continue

        if language is None:
            language = parser.header(line, col, lineno)
            continue

        key, value = parser.entry(line, col, lineno)
        entries[key] = value

    if language is None:
        raise LocalisationSyntaxError(
            "missing language header 'l_<language>:'",
            line=1,
            path=path
        )

    return LocalisationFile(
        language=language,
        entries=entries,
        diagnostics=tuple(parser.diagnostics)
    )


def _skip_blank(line: str, col: int) -> int:
    while col < len(line) and line[col] in _BLANK:
        col += 1
    return col


class _LineParser:
    """Single-line productions of the grammar, sharing diagnostics."""

    def __init__(self, path: Optional[Union[str, Path]]):
        self.path = path
        self.diagnostics: list[Diagnostic] = []

    def fail(self, reason: str, lineno: int, col: int) -> LocalisationSyntaxError:
        return LocalisationSyntaxError(reason, line=lineno, column=col + 1, path=self.path)

    def header(self, line: str, col: int, lineno: int) -> Language:
        if not line.startswith('l_', col):
            raise self.fail("expected language header 'l_<language>:'", lineno, col)

        start = col + 2
        end = start
        if end < len(line) and (line[end].isalpha() or line[end] == '_'):
            end += 1
            while end < len(line) and (line[end].isalnum() or line[end] == '_'):
                end += 1
        if end == start:
            raise self.fail("expected language identifier after 'l_'", lineno, start)
        if end >= len(line) or line[end] != ':':
            raise self.fail("expected ':' after language header", lineno, end)

        self.end_of_line(line, end + 1, lineno)
        return Language.from_tag(line[start:end])

    def entry(self, line: str, col: int, lineno: int) -> tuple[str, str]:
        start = col
        while col < len(line) and line[col] not in _KEY_STOP:
            col += 1
        token = line[start:col]
        if not token:
            raise self.fail("expected localisation key", lineno, start)

        # Keys may contain ':'; only a trailing ':<digits>' is the separator.
        key, colon, version = token.rpartition(':')
        if not colon or (version and not (version.isascii() and version.isdigit())):
            key = token
            if col >= len(line) or line[col] not in _BLANK:
                raise self.fail("expected ':' or whitespace after key", lineno, col)
        if not key:
            raise self.fail("expected localisation key", lineno, start)

        col = _skip_blank(line, col)
        if col >= len(line) or line[col] != '"':
            raise self.fail("expected '\"' to open the value", lineno, col)

        value, col = self.quoted(line, col + 1, lineno)
        self.end_of_line(line, col, lineno)
        return key, value

    def quoted(self, line: str, col: int, lineno: int) -> tuple[str, int]:
        chars: list[str] = []
        while col < len(line):
            c = line[col]
            if c == '"':
                return ''.join(chars), col + 1
            if c != '\\':
                chars.append(c)
                col += 1
                continue

            if col + 1 >= len(line):
                raise self.fail("unterminated escape sequence", lineno, col)
            escape = line[col + 1]
            if escape in _SIMPLE_ESCAPES:
                chars.append(_SIMPLE_ESCAPES[escape])
                col += 2
            elif escape == 'u':
                chars.append(self.unicode_escape(line, col, lineno))
                col += 6
            else:
                raise self.fail(f"unknown escape sequence '\\{escape}'", lineno, col)

        raise self.fail("unterminated string", lineno, col)

    def unicode_escape(self, line: str, col: int, lineno: int) -> str:
        digits = line[col + 2:col + 6]
        if len(digits) != 4 or not all(d in _HEX for d in digits):
            raise self.fail("expected 4 hex digits after '\\u'", lineno, col)

        codepoint = int(digits, 16)
        if 0xD800 <= codepoint <= 0xDFFF:
            self.diagnostics.append(Diagnostic(
                code=ErrorCode.INVALID_UNICODE_ESCAPE,
                message=f"'\\u{digits}' is not a Unicode scalar value",
                line=lineno
            ))
            return REPLACEMENT_CHARACTER
        return chr(codepoint)

    def end_of_line(self, line: str, col: int, lineno: int) -> None:
        col = _skip_blank(line, col)
        if col < len(line) and line[col] != '#':
            raise self.fail("unexpected text after value", lineno, col)


# ═════════════════════════════════════════════════════════════════════════════
# Serialization
# ═════════════════════════════════════════════════════════════════════════════

def escape_string(value: str) -> str:
    """Escape a value so that ``parse_localisation`` reads it back unchanged."""
    out = []
    for c in value:
        if c in _ESCAPED_FORMS:
            out.append(_ESCAPED_FORMS[c])
        elif ord(c) < 0x20:
            out.append(f"\\u{ord(c):04x}")
        else:
            out.append(c)
    return ''.join(out)


def serialize_localisation(language: Language, entries: Mapping[str, str]) -> str:
    """Render a localisation file in the grammar's canonical form."""
    lines = [f"l_{language.value}:"]
    lines.extend(f' {key}:0 "{escape_string(value)}"' for key, value in entries.items())
    return '\n'.join(lines) + '\n'

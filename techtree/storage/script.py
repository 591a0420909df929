"""Key/value tokenizer for Clausewitz-style script files.

Handles the subset of the dialect needed to pull out technology
definitions and scripted variables::

    @tier1cost1 = 360                      # scalar variable
    tech_lasers_1 = {
        cost = @tier1cost1
        area = physics
        category = { particles }
        prerequisites = { "tech_physics_1" }
        weight = @[ tier1weight * 2 ]
        potential = { years_passed >= 10 }
    }

Blocks keep every entry in source order, duplicated keys included.
Nothing is evaluated: comparison operators and ``@[ ... ]`` math are
kept verbatim for callers that care.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Union

from techtree.errors import ScriptSyntaxError


OPERATORS = ("<=", ">=", "!=", "==", "?=", "=", "<", ">")

_DELIMITERS = set(' \t\r\n{}="#<>')


@dataclass
class ScriptEntry:
    key: str
    op: str
    value: "ScriptValue"


@dataclass
class ScriptBlock:
    """Ordered ``key op value`` entries plus bare values such as ``{ a b }``."""
    entries: list[ScriptEntry] = field(default_factory=list)
    values: list["ScriptValue"] = field(default_factory=list)

    def __iter__(self) -> Iterator[ScriptEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries) + len(self.values)

    def get(self, key: str) -> Optional["ScriptValue"]:
        """First value bound to ``key``."""
        for entry in self.entries:
            if entry.key == key:
                return entry.value
        return None

    def get_all(self, key: str) -> list["ScriptValue"]:
        """Every value bound to ``key``, in order."""
        return [entry.value for entry in self.entries if entry.key == key]

    def scalars(self) -> list[str]:
        """Bare scalar values, e.g. the items of ``{ a b "c" }``."""
        return [v for v in self.values if isinstance(v, str)]


ScriptValue = Union[str, ScriptBlock]


# ═════════════════════════════════════════════════════════════════════════════
# Decoding
# ═════════════════════════════════════════════════════════════════════════════

def decode_script(data: bytes) -> str:
    """Decode script bytes: UTF-8 (BOM stripped), else Windows-1252."""
    try:
        return data.decode('utf-8-sig')
    except UnicodeDecodeError:
        return data.decode('cp1252', errors='replace')


def load_script(path: Union[str, Path]) -> ScriptBlock:
    """Read and parse one script file."""
    path = Path(path)
    return parse_script(decode_script(path.read_bytes()), path)


# ═════════════════════════════════════════════════════════════════════════════
# Tokenizer
# ═════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class _Token:
    kind: str  # open, close, op, word, string
    text: str
    line: int


class _Tokenizer:
    def __init__(self, text: str, path: Optional[Union[str, Path]]):
        self.text = text
        self.path = path
        self.pos = 0
        self.line = 1

    def tokens(self) -> list[_Token]:
        tokens = []
        while True:
            token = self._next()
            if token is None:
                return tokens
            tokens.append(token)

    def _skip_blank_and_comments(self) -> None:
        text = self.text
        while self.pos < len(text):
            c = text[self.pos]
            if c == '\n':
                self.line += 1
                self.pos += 1
            elif c in ' \t\r':
                self.pos += 1
            elif c == '#':
                end = text.find('\n', self.pos)
                self.pos = len(text) if end == -1 else end
            else:
                return

    def _next(self) -> Optional[_Token]:
        self._skip_blank_and_comments()
        if self.pos >= len(self.text):
            return None

        text = self.text
        c = text[self.pos]
        line = self.line

        if c == '{':
            self.pos += 1
            return _Token('open', c, line)
        if c == '}':
            self.pos += 1
            return _Token('close', c, line)

        for op in OPERATORS:
            if text.startswith(op, self.pos):
                self.pos += len(op)
                return _Token('op', op, line)

        if c == '"':
            return _Token('string', self._quoted(), line)
        if text.startswith('@[', self.pos):
            return _Token('word', self._inline_math(), line)
        return _Token('word', self._word(), line)

    def _quoted(self) -> str:
        start_line = self.line
        start = self.pos + 1
        end = start
        text = self.text
        while end < len(text):
            c = text[end]
            if c == '\\' and end + 1 < len(text):
                end += 2
                continue
            if c == '"':
                value = text[start:end]
                self.line += value.count('\n')
                self.pos = end + 1
                return value
            end += 1
        raise ScriptSyntaxError("unterminated string", start_line, self.path)

    def _inline_math(self) -> str:
        start_line = self.line
        end = self.text.find(']', self.pos)
        if end == -1:
            raise ScriptSyntaxError("unterminated '@['", start_line, self.path)
        value = self.text[self.pos:end + 1]
        self.line += value.count('\n')
        self.pos = end + 1
        return value

    def _word(self) -> str:
        text = self.text
        start = self.pos
        while self.pos < len(text):
            c = text[self.pos]
            if c in _DELIMITERS:
                break
            if c in '!?' and text.startswith('=', self.pos + 1):
                break
            self.pos += 1
        if self.pos == start:
            # Lone '!' or '?' not followed by '='
            self.pos += 1
        return text[start:self.pos]


# ═════════════════════════════════════════════════════════════════════════════
# Parser
# ═════════════════════════════════════════════════════════════════════════════

def parse_script(text: str, path: Optional[Union[str, Path]] = None) -> ScriptBlock:
    """Parse script text into its top-level block.

    Raises:
        ScriptSyntaxError: unbalanced braces, unterminated string, or a
            key with no value
    """
    if text.startswith('\ufeff'):
        text = text[1:]
    tokens = _Tokenizer(text, path).tokens()
    parser = _Parser(tokens, path)
    return parser.block(depth=0, opened_at=1)


class _Parser:
    def __init__(self, tokens: list[_Token], path: Optional[Union[str, Path]]):
        self.tokens = tokens
        self.path = path
        self.index = 0

    def _peek(self) -> Optional[_Token]:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _take(self) -> Optional[_Token]:
        token = self._peek()
        if token is not None:
            self.index += 1
        return token

    def _last_line(self) -> int:
        return self.tokens[-1].line if self.tokens else 1

    def block(self, depth: int, opened_at: int) -> ScriptBlock:
        block = ScriptBlock()
        while True:
            token = self._take()
            if token is None:
                if depth > 0:
                    raise ScriptSyntaxError(
                        f"unbalanced '{{' opened at line {opened_at}",
                        self._last_line(),
                        self.path
                    )
                return block

            if token.kind == 'close':
                if depth == 0:
                    raise ScriptSyntaxError("unexpected '}'", token.line, self.path)
                return block

            if token.kind == 'open':
                block.values.append(self.block(depth + 1, token.line))
                continue

            if token.kind == 'op':
                raise ScriptSyntaxError(
                    f"operator '{token.text}' without a key", token.line, self.path
                )

            following = self._peek()
            if following is not None and following.kind == 'op':
                self._take()
                block.entries.append(ScriptEntry(
                    key=token.text,
                    op=following.text,
                    value=self.value(depth, following)
                ))
            else:
                block.values.append(token.text)

    def value(self, depth: int, op: _Token) -> ScriptValue:
        token = self._take()
        if token is None or token.kind in ('close', 'op'):
            line = token.line if token is not None else op.line
            raise ScriptSyntaxError(f"missing value after '{op.text}'", line, self.path)
        if token.kind == 'open':
            return self.block(depth + 1, token.line)
        return token.text

"""Inline markup lexer for localisation values.

Localisation text carries colour spans opened by ``§`` plus a colour
letter and closed by ``§!``, and variable references written as
``$name$``. The lexer turns a value into a lazy stream of tokens.
Malformed markup never fails: it degrades to plain text.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Union

from techtree.errors import ErrorCode
from techtree.observ import get_logger


logger = get_logger(__name__)

COLOR_MARKER = "§"
COLOR_END = "!"

_VARIABLE = re.compile(r"\$(\w+)\$")


class Color(str, Enum):
    """Text colours, keyed by their markup letter."""
    BLUE = "B"
    TEAL = "E"
    GREEN = "G"
    ORANGE = "H"
    BROWN = "L"
    PURPLE = "M"
    PINK = "P"
    RED = "R"
    DARK_ORANGE = "S"
    GREY = "T"
    WHITE = "W"
    YELLOW = "Y"


_COLOR_CODES = {color.value: color for color in Color}


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class ColorStart:
    color: Color


@dataclass(frozen=True)
class ColorEnd:
    pass


@dataclass(frozen=True)
class VariableRef:
    name: str


Token = Union[PlainText, ColorStart, ColorEnd, VariableRef]


def lex(text: str) -> Iterator[Token]:
    """Yield the markup tokens of ``text`` in order.

    Adjacent plain runs are merged, so a plain token is never followed
    by another plain token. Unknown colour letters and a trailing
    marker are kept as plain text and logged.
    """
    pending: list[str] = []
    pos = 0
    length = len(text)

    while pos < length:
        c = text[pos]

        if c == COLOR_MARKER:
            token = _color_token(text, pos)
            if token is None:
                pending.append(c)
                pos += 1
                continue
            if pending:
                yield PlainText("".join(pending))
                pending.clear()
            yield token
            pos += 2
            continue

        if c == "$":
            match = _VARIABLE.match(text, pos)
            if match:
                if pending:
                    yield PlainText("".join(pending))
                    pending.clear()
                yield VariableRef(match.group(1))
                pos = match.end()
                continue

        pending.append(c)
        pos += 1

    if pending:
        yield PlainText("".join(pending))


def _color_token(text: str, pos: int) -> Union[ColorStart, ColorEnd, None]:
    if pos + 1 >= len(text):
        logger.warning(
            "dangling_color_marker",
            code=ErrorCode.UNKNOWN_COLOR_CODE.value,
            position=pos
        )
        return None

    code = text[pos + 1]
    if code == COLOR_END:
        return ColorEnd()
    if code in _COLOR_CODES:
        return ColorStart(_COLOR_CODES[code])

    logger.warning(
        "unknown_color_code",
        code=ErrorCode.UNKNOWN_COLOR_CODE.value,
        color=code,
        position=pos
    )
    return None


def strip_markup(text: str) -> str:
    """Plain-text rendering of ``text``: colours dropped, variables kept."""
    parts = []
    for token in lex(text):
        if isinstance(token, PlainText):
            parts.append(token.text)
        elif isinstance(token, VariableRef):
            parts.append(f"${token.name}$")
    return "".join(parts)

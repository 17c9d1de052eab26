"""
Lexical recognizers for the SMILES grammar.

Each recognizer looks at the input from a cursor and either consumes a fixed
prefix and returns a typed value, or reports that nothing matched. They keep
no state between calls; the parser owns the cursor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Final

from smilekit.elements import (
    AROMATIC_SUBSET,
    BOND_SYMBOLS,
    ORGANIC_SUBSET,
    TWO_LETTER_ORGANIC,
    Element,
    capitalize_symbol,
)
from smilekit.exceptions import syntax_error

_CHARGE_REPEAT: Final = re.compile(r"^([+-])\1*$")
_CHARGE_SIGN_FIRST: Final = re.compile(r"^([+-])(\d+)$")
_CHARGE_SIGN_LAST: Final = re.compile(r"^(\d+)([+-])$")
_SYMBOL_TOKEN: Final = re.compile(r"[A-Z][a-z]?|[a-z]{1,2}")


class _Tokenizer:
    """Character-by-character access to a string with lookahead."""

    __slots__ = ("_string", "_pos")

    def __init__(self, string: str) -> None:
        self._string = string
        self._pos = 0

    @property
    def position(self) -> int:
        """Current position in the string."""
        return self._pos

    def peek(self, offset: int = 0) -> str | None:
        """Look at character at current position + offset without consuming."""
        pos = self._pos + offset
        if pos >= len(self._string):
            return None
        return self._string[pos]

    def next(self) -> str | None:
        """Consume and return the next character."""
        if self._pos >= len(self._string):
            return None
        char = self._string[self._pos]
        self._pos += 1
        return char

    def read_while(self, predicate: Callable[[str], bool]) -> str:
        """Read characters while predicate is true."""
        start = self._pos
        while self._pos < len(self._string) and predicate(self._string[self._pos]):
            self._pos += 1
        return self._string[start:self._pos]

    def read_number(self) -> int | None:
        """Read and return an integer, or None if no digits present."""
        digits = self.read_while(str.isdigit)
        return int(digits) if digits else None

    def is_eof(self) -> bool:
        return self._pos >= len(self._string)


@dataclass(slots=True)
class Extraction:
    """Result of scanning for a matching close delimiter.

    Attributes:
        extracted: Text between the delimiters.
        open_count: Nesting depth left when scanning stopped (0 = matched).
    """

    extracted: str
    open_count: int

    @property
    def matched(self) -> bool:
        return self.open_count == 0


@dataclass(slots=True)
class DigitRun:
    """Ring closure digits read from one position.

    Attributes:
        digits: Ring numbers in the order written.
        length: Number of characters consumed.
        valid: False if a "%" was not followed by two digits.
    """

    digits: list[int]
    length: int
    valid: bool = True

    def duplicates(self) -> list[int]:
        """Digits that appear more than once, in first-repeat order."""
        seen: set[int] = set()
        dupes: list[int] = []
        for digit in self.digits:
            if digit in seen and digit not in dupes:
                dupes.append(digit)
            seen.add(digit)
        return dupes


@dataclass(slots=True)
class BracketAtom:
    """Parsed contents of a "[...]" atom."""

    elements: dict[str, int] = field(default_factory=dict)
    charge: int = 0
    is_radical: bool = False
    atomic_mass: int | None = None
    is_lowercase: bool = False


def is_bond_char(char: str | None) -> bool:
    return char is not None and char in BOND_SYMBOLS


def is_ring_digit_start(char: str | None) -> bool:
    return char is not None and (char.isdigit() or char == "%")


def extract_between_matching(text: str, open_char: str, close_char: str, start: int) -> Extraction:
    """Extract the text between ``text[start]`` and its matching close char.

    Nested open/close pairs are tracked. If the input ends first, the
    returned extraction has a non-zero ``open_count``.
    """
    depth = 0
    for i in range(start, len(text)):
        char = text[i]
        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return Extraction(text[start + 1:i], 0)
    return Extraction(text[start + 1:], depth)


def parse_digit_string(text: str, start: int = 0) -> DigitRun:
    """Read a run of ring digits ("1", "12", "%10", "1%10") from ``start``."""
    digits: list[int] = []
    pos = start
    while pos < len(text):
        char = text[pos]
        if char.isdigit():
            digits.append(int(char))
            pos += 1
        elif char == "%":
            pair = text[pos + 1:pos + 3]
            if len(pair) != 2 or not pair.isdigit():
                return DigitRun(digits, pos + 1 - start, valid=False)
            digits.append(int(pair))
            pos += 3
        else:
            break
    return DigitRun(digits, pos - start)


def format_ring_digit(digit: int) -> str:
    """Format a ring number the way `parse_digit_string` reads it back."""
    if 0 <= digit <= 9:
        return str(digit)
    return f"%{digit:02d}"


def extract_element(text: str, start: int = 0) -> str | None:
    """Match a bare (unbracketed) atom symbol, longest valid match first.

    Returns the symbol as written (lowercase for aromatic shorthand), or None
    if nothing in the organic subset or aromatic whitelist matches.
    """
    two = text[start:start + 2]
    if len(two) == 2 and (two in TWO_LETTER_ORGANIC or two in AROMATIC_SUBSET):
        return two
    one = text[start:start + 1]
    if one and (one in ORGANIC_SUBSET or one in AROMATIC_SUBSET):
        return one
    return None


def symbol_token(text: str, start: int = 0) -> str:
    """The symbol-shaped characters at ``start``, for error messages."""
    match = _SYMBOL_TOKEN.match(text, start)
    return match.group(0) if match else text[start:start + 1]


def parse_charge_string(body: str) -> int | None:
    """Parse the body of a "{...}" charge clause.

    Accepted forms are "+", "--" (repeated sign), "+2" and "2+".
    Returns None if the body is not a charge.
    """
    if match := _CHARGE_REPEAT.match(body):
        sign = 1 if match.group(1) == "+" else -1
        return sign * len(body)
    if match := _CHARGE_SIGN_FIRST.match(body):
        sign = 1 if match.group(1) == "+" else -1
        return sign * int(match.group(2))
    if match := _CHARGE_SIGN_LAST.match(body):
        sign = 1 if match.group(2) == "+" else -1
        return sign * int(match.group(1))
    return None


def parse_bracket_body(body: str, offset: int, enable_radicals: bool = True) -> BracketAtom:
    """Parse the inside of a bracket atom.

    Grammar: [mass] element [H[count]] [charge] ["."]

    Args:
        body: Text between "[" and "]".
        offset: Column of ``body[0]`` in the full input, used for diagnostics.
        enable_radicals: Whether the "." radical marker is accepted.

    Raises:
        Diagnostic: On any syntax problem.
    """
    tok = _Tokenizer(body)
    atom = BracketAtom()

    atom.atomic_mass = tok.read_number()

    char = tok.peek()
    if char is None or not char.isalpha():
        raise syntax_error("expected element", body or "]", offset + tok.position)

    start = tok.position
    if char.isupper():
        tok.next()
        symbol = char
        nxt = tok.peek()
        if nxt is not None and nxt.islower() and Element.from_symbol(char + nxt) is not None:
            tok.next()
            symbol = char + nxt
        if Element.from_symbol(symbol) is None:
            raise syntax_error(f"unknown element '{symbol}'", symbol, offset + start)
    else:
        symbol = extract_element(body, start) or ""
        if not symbol or symbol not in AROMATIC_SUBSET:
            token = symbol_token(body, start)
            raise syntax_error(
                f"expected element or aromatic ring element "
                f"[{','.join(sorted(AROMATIC_SUBSET))}], got '{token}'",
                token,
                offset + start,
            )
        tok.next()
        if len(symbol) == 2:
            tok.next()
        atom.is_lowercase = True
        symbol = capitalize_symbol(symbol)

    atom.elements[symbol] = 1

    if tok.peek() == "H":
        tok.next()
        count = tok.read_number()
        count = 1 if count is None else count
        if count > 0:
            atom.elements["H"] = atom.elements.get("H", 0) + count

    sign_char = tok.peek()
    if sign_char is not None and sign_char in "+-":
        sign = 1 if sign_char == "+" else -1
        repeat = tok.read_while(lambda c: c == sign_char)
        magnitude = tok.read_number()
        if magnitude is not None and len(repeat) > 1:
            raise syntax_error(
                "invalid charge: use either repeated signs or a magnitude",
                body[start:tok.position],
                offset + start,
            )
        atom.charge = sign * (magnitude if magnitude is not None else len(repeat))

    if tok.peek() == ".":
        if not enable_radicals:
            raise syntax_error("radicals are not enabled", ".", offset + tok.position)
        tok.next()
        atom.is_radical = True

    if not tok.is_eof():
        bad = body[tok.position:]
        raise syntax_error(f"unexpected '{bad[0]}' in bracket atom", bad, offset + tok.position)

    return atom

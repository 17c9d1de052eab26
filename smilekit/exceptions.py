"""
Custom exceptions for smilekit.

This module defines a hierarchy of exceptions for handling chemistry-related
errors in a structured way, plus the internal diagnostic the parser passes up
through its recursion before flattening it into one of the public errors.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from smilekit.types import ValenceProblem


class ChemError(Exception):
    """Base exception for all chemistry-related errors."""

    pass


class ParseError(ChemError):
    """Error during SMILES parsing (syntax errors use this class directly).

    Attributes:
        message: Description of what went wrong.
        smiles: The original SMILES string being parsed.
        position: Character position in the SMILES string where error occurred.
        fragment: The offending substring.
    """

    def __init__(
        self,
        message: str,
        smiles: str | None = None,
        position: int | None = None,
        fragment: str | None = None,
    ) -> None:
        self.message = message
        self.smiles = smiles
        self.position = position
        self.fragment = fragment

        # Build detailed error message
        parts = [message]
        if smiles is not None and position is not None:
            parts.append(f"\n  {smiles}")
            parts.append(f"\n  {' ' * position}^")
        elif smiles is not None:
            parts.append(f" in: {smiles}")

        super().__init__("".join(parts))


class BondError(ParseError):
    """Conflicting or invalid bond creation."""

    pass


class RingError(ParseError):
    """Error related to ring handling in SMILES.

    Attributes:
        ring_digit: The problematic ring closure digit, when known.
    """

    def __init__(
        self,
        message: str,
        smiles: str | None = None,
        position: int | None = None,
        fragment: str | None = None,
        ring_digit: int | None = None,
    ) -> None:
        self.ring_digit = ring_digit
        super().__init__(message, smiles, position, fragment)


class ValenceError(ChemError):
    """Invalid bond count on an organic atom.

    Attributes:
        problem: The structured valence problem that was found.
    """

    def __init__(self, message: str, problem: "ValenceProblem") -> None:
        self.message = message
        self.problem = problem
        super().__init__(message)


class ErrorKind(Enum):
    """Diagnostic category, mapped onto a public exception class."""

    SYNTAX = "Syntax Error"
    BOND = "Bond Error"
    RING = "Ring Error"


_KIND_CLASSES: dict[ErrorKind, type[ParseError]] = {
    ErrorKind.SYNTAX: ParseError,
    ErrorKind.BOND: BondError,
    ErrorKind.RING: RingError,
}


class Diagnostic(Exception):
    """Layered parse diagnostic.

    The kind, message, fragment and column are fixed when raised. Each
    enclosing parser level adds a context frame on the way out; only the
    outermost call turns the whole thing into a public error via `flatten`.
    Columns always index the full input string.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        fragment: str,
        column: int,
        ring_digit: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.fragment = fragment
        self.column = column
        self.ring_digit = ring_digit
        self.frames: tuple[str, ...] = ()

    def add_context(self, frame: str) -> "Diagnostic":
        """Prepend a context frame describing the enclosing level."""
        self.frames = (frame,) + self.frames
        return self

    def flatten(self, smiles: str) -> ParseError:
        """Build the single public exception for this diagnostic."""
        lines = [*self.frames, f"{self.kind.value}: {self.message}"]
        message = "\n".join(lines)
        if self.kind is ErrorKind.RING:
            return RingError(
                message, smiles, self.column, self.fragment, ring_digit=self.ring_digit,
            )
        return _KIND_CLASSES[self.kind](message, smiles, self.column, self.fragment)


def syntax_error(message: str, fragment: str, column: int) -> Diagnostic:
    return Diagnostic(ErrorKind.SYNTAX, message, fragment, column)


def bond_error(message: str, fragment: str, column: int) -> Diagnostic:
    return Diagnostic(ErrorKind.BOND, message, fragment, column)


def ring_error(
    message: str, fragment: str, column: int, ring_digit: int | None = None,
) -> Diagnostic:
    return Diagnostic(ErrorKind.RING, message, fragment, column, ring_digit)

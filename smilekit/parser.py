"""
SMILES string parser.

This module converts a SMILES string into a ParsedSmiles result: one or more
Molecule graphs of AtomGroups, the rings closed in them and the reaction
boundaries between them.

Supported notation:
    - Organic subset atoms (B, C, N, O, P, S, F, Cl, Br, I)
    - Lowercase aromatic shorthand inside rings (b, c, n, o, p, s, as, se)
    - Bracket atoms with isotope, hydrogen count, charge and radical marker
    - Single, double, triple and aromatic bonds
    - Branches (parentheses)
    - Ring closures (1-9, %10-%99)
    - Charge clauses ("{+}", "{2-}") following an atom
    - Separated structures (".") and reactions (">")

The parser recurses once per branch. Errors raised anywhere below the entry
point travel up as a Diagnostic collecting one context line per level, and
are turned into a single ParseError (or subclass) at the top.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from smilekit.elements import (
    AROMATIC_SUBSET,
    ORGANIC_SUBSET,
    BondType,
    capitalize_symbol,
    get_mass,
)
from smilekit.exceptions import (
    Diagnostic,
    ValenceError,
    bond_error,
    ring_error,
    syntax_error,
)
from smilekit.lexer import (
    extract_between_matching,
    extract_element,
    is_bond_char,
    is_ring_digit_start,
    parse_bracket_body,
    parse_charge_string,
    parse_digit_string,
    symbol_token,
)
from smilekit.options import ParseOptions
from smilekit.result import ParsedSmiles
from smilekit.rings import (
    check_lowercase_in_rings,
    check_rings_within_molecules,
    close_rings,
    resolve_rings,
)
from smilekit.types import AtomGroup, Ring

logger = logging.getLogger(__name__)

_ORGANIC_LIST = ",".join(sorted(ORGANIC_SUBSET))
_AROMATIC_LIST = ",".join(sorted(AROMATIC_SUBSET))


@dataclass
class _ParserState:
    """Mutable state shared by every recursion level of one parse."""

    result: ParsedSmiles
    options: ParseOptions

    # Ring closure tracking: digit -> ring waiting for its closing digit
    open_rings: dict[int, Ring] = field(default_factory=dict)

    @property
    def smiles(self) -> str:
        return self.result.smiles


class SmilesParser:
    """SMILES parser holding a stored configuration.

    Example:
        >>> parser = SmilesParser()
        >>> result = parser.parse("CCO")
        >>> len(result.molecules[0])
        3

    Per-call overrides never change the stored options:
        >>> result = parser.parse("CCO", add_implicit_hydrogens=True)

    For convenience, use the module-level `parse()` function:
        >>> from smilekit import parse
        >>> result = parse("CCO")
    """

    def __init__(self, options: ParseOptions | None = None) -> None:
        self.options = options if options is not None else ParseOptions()

    def parse(self, smiles: str, **overrides: bool | int) -> ParsedSmiles:
        """Parse a SMILES string.

        Args:
            smiles: SMILES string to parse.
            **overrides: Option values replacing the stored ones for this call.

        Returns:
            The fully validated parse result.

        Raises:
            ParseError: If the syntax is invalid.
            BondError: If a bond cannot be created.
            RingError: If a ring is unclosed, bridges molecules or mixes
                aromatic and non-aromatic members.
            ValenceError: If ``check_bond_counts`` is enabled and an organic
                atom has a disallowed bond count.
            TypeError: If an override names an unknown option.
        """
        options = self.options.override(**overrides) if overrides else self.options
        result = ParsedSmiles(smiles, options)
        state = _ParserState(result, options)
        logger.debug("Parsing SMILES %r", smiles)

        try:
            self._try_parse(state, smiles, [])
            self._validate(state)
        except Diagnostic as e:
            e.add_context(f"Error in SMILES '{smiles}'")
            raise e.flatten(smiles) from None

        if options.check_bond_counts:
            for mol in result.molecules:
                problem = mol.check_bond_counts()
                if problem is not None:
                    raise ValenceError(
                        f"Error in SMILES '{smiles}'\nBond Error: {problem.message}", problem,
                    )

        logger.debug(
            "Parsed %r: %d molecule(s), %d ring(s)",
            smiles, len(result.molecules), len(result.rings),
        )
        return result

    def _validate(self, state: _ParserState) -> None:
        """Whole-input checks run after the recursive descent."""
        result = state.result
        smiles = state.smiles

        if len(result.reaction_indexes) % 2 == 1:
            raise syntax_error(
                '">" expected (incomplete reaction SMILES)', smiles[-1:], len(smiles) - 1,
            )

        check_rings_within_molecules(result.molecules)
        group_map = result.group_map
        close_rings(result.rings, group_map, smiles)
        resolve_rings(
            result.molecules, state.options.max_ring_paths, state.options.max_ring_steps,
        )
        check_lowercase_in_rings(group_map, result.rings)

        if state.options.add_implicit_hydrogens:
            for mol in result.molecules:
                mol.add_implicit_hydrogens()

    def _try_parse(
        self,
        state: _ParserState,
        smiles: str,
        groups: list[AtomGroup],
        parent: AtomGroup | None = None,
        depth: int = 0,
        offset: int = 0,
    ) -> None:
        try:
            self._parse(state, smiles, groups, parent, depth, offset)
        except Diagnostic as e:
            e.add_context(f'Error whilst parsing SMILES string "{state.smiles}" (chain depth {depth}):')
            raise

    def _parse(
        self,
        state: _ParserState,
        smiles: str,
        groups: list[AtomGroup],
        parent: AtomGroup | None,
        depth: int,
        offset: int,
    ) -> None:
        """Parse one chain.

        Args:
            state: Shared parse state.
            smiles: The chain text (the whole input at depth 0).
            groups: Receives the atoms of this chain, in order.
            parent: Atom the chain hangs from, for branches.
            depth: Branch nesting depth.
            offset: Column of ``smiles[0]`` in the whole input.
        """
        result = state.result
        opts = state.options
        pending: tuple[BondType, int] | None = None
        dont_bond_next = False
        pos = 0
        length = len(smiles)

        while pos < length:
            char = smiles[pos]
            col = offset + pos

            # Separated structures
            if char == "." and depth == 0 and opts.enable_separated_structures:
                if dont_bond_next or not groups:
                    raise syntax_error("expected SMILES, got separator '.'", ".", col)
                if pos == length - 1:
                    raise syntax_error("unexpected end of input after separator '.'", ".", col)
                dont_bond_next = True
                result.molecules.append(result.new_molecule())
                pos += 1
                continue

            # Reactions
            if (
                char == ">"
                and depth == 0
                and groups
                and opts.enable_separated_structures
                and opts.enable_reactions
                and (opts.enable_multiple_reactions or len(result.reaction_indexes) < 2)
            ):
                index = len(result.molecules) - 1
                dont_bond_next = True
                if len(result.molecules[index]) > 0:
                    result.molecules.append(result.new_molecule())
                else:
                    index -= 1
                result.reaction_indexes.append(index)
                pos += 1
                continue

            # Explicit bond; the bonded thing follows in the same iteration
            if is_bond_char(char) and (char != ":" or opts.enable_aromatic_bonds):
                pending = (BondType(char), col)
                pos += 1
                if pos >= length:
                    raise syntax_error(
                        f"invalid bond '{char}': unexpected end of input after bond", char, col,
                    )
                if char == ":":
                    if not state.open_rings:
                        raise bond_error("aromatic bond ':' only valid in rings", char, col)
                    for ring in state.open_rings.values():
                        if ring.is_aromatic is False:
                            raise bond_error(
                                "aromatic bond ':' only valid in aromatic rings", char, col,
                            )
                        ring.is_aromatic = True
                char = smiles[pos]
                col = offset + pos

            mol = result.molecules[-1]

            # Charge clause {...}
            if char == "{" and groups and opts.enable_charge_clauses:
                extraction = extract_between_matching(smiles, "{", "}", pos)
                if not extraction.matched:
                    raise syntax_error(
                        f"unmatched brace at position {col}", smiles[pos:], col,
                    )
                clause = "{" + extraction.extracted + "}"
                if dont_bond_next:
                    raise syntax_error("unexpected charge clause after separator", clause, col)
                if pending is not None:
                    raise bond_error(
                        f"unexpected bond '{pending[0].value}' before charge clause",
                        pending[0].value,
                        pending[1],
                    )
                group = groups[-1]
                if (group.charge != 0 and not opts.cumulative_charge) or group.is_radical:
                    raise syntax_error("unexpected charge clause", clause, col)
                charge = parse_charge_string(extraction.extracted)
                if charge is None:
                    raise syntax_error(
                        "invalid charge string, expected a form like '+', '--', '+2' or '2-'",
                        extraction.extracted,
                        col + 1,
                    )
                group.charge += charge
                group.smiles_len += len(clause)
                pos += len(clause)
                continue

            # Bracket atom [...]
            elif char == "[" and opts.enable_bracket_atoms:
                extraction = extract_between_matching(smiles, "[", "]", pos)
                if not extraction.matched:
                    raise syntax_error(
                        f"unmatched bracket at position {col}", smiles[pos:], col,
                    )
                body = extraction.extracted
                try:
                    atom = parse_bracket_body(body, col + 1, opts.enable_radicals)
                except Diagnostic as e:
                    e.add_context(f'Error whilst parsing bracket atom "[{body}]":')
                    raise
                group = mol.new_group(
                    elements=atom.elements,
                    charge=atom.charge,
                    is_radical=atom.is_radical,
                    atomic_mass=atom.atomic_mass,
                    is_lowercase=atom.is_lowercase,
                    chain_depth=depth,
                    smiles_pos=col,
                    smiles_len=len(body) + 2,
                )
                if group.atomic_mass is None and opts.show_implicit_atomic_mass:
                    group.atomic_mass = round(get_mass(group.symbol))
                groups.append(group)
                pos += len(body) + 2

            # Branch (...)
            elif char == "(" and opts.enable_branches:
                extraction = extract_between_matching(smiles, "(", ")", pos)
                if not extraction.matched:
                    raise syntax_error(
                        f"unmatched parenthesis at position {col}", smiles[pos:], col,
                    )
                chain = extraction.extracted
                if not chain:
                    raise syntax_error(f"empty branch at position {col}", "()", col)
                if not groups:
                    raise syntax_error(
                        "unexpected branch (no parent atom could be found)", f"({chain})", col,
                    )
                if dont_bond_next:
                    raise syntax_error("unexpected branch after separator", f"({chain})", col)
                if pending is not None:
                    raise bond_error(
                        f"unexpected bond '{pending[0].value}' before branch",
                        pending[0].value,
                        pending[1],
                    )
                if depth + 1 > opts.max_branch_depth:
                    raise syntax_error(
                        f"branches nested deeper than {opts.max_branch_depth} levels",
                        f"({chain})",
                        col,
                    )
                try:
                    self._try_parse(state, chain, [], groups[-1], depth + 1, col + 1)
                except Diagnostic as e:
                    e.add_context(f'Error whilst parsing chain "({chain})" at position {col}:')
                    raise
                pos += len(chain) + 2
                continue

            # Ring closure digits
            elif is_ring_digit_start(char) and opts.enable_rings:
                if not groups or dont_bond_next:
                    raise syntax_error("unexpected ring digit", char, col)
                run = parse_digit_string(smiles, pos)
                fragment = smiles[pos:pos + run.length] or char
                if not run.valid or not run.digits:
                    raise syntax_error("invalid ring closure syntax", fragment, col)
                duplicates = run.duplicates()
                if duplicates:
                    raise syntax_error(
                        "duplicate ring closure digits on one atom: "
                        + ", ".join(str(d) for d in duplicates),
                        fragment,
                        col,
                    )
                group = groups[-1]
                group.ring_digits.extend(run.digits)
                # An explicit bond before a digit run belongs to the first digit's closure
                ring_bond, pending = pending, None
                for digit in run.digits:
                    ring = state.open_rings.pop(digit, None)
                    if ring is None:
                        ring = Ring(
                            id=result.next_ring_id(),
                            digit=digit,
                            start=group.id,
                            members=[group.id],
                        )
                        if group.is_lowercase:
                            ring.is_aromatic = True
                        state.open_rings[digit] = ring
                        result.rings.append(ring)
                        mol.rings.append(ring)
                    elif ring.start == group.id:
                        raise ring_error(
                            f"ring '{digit}' closed on its opening atom", fragment, col, digit,
                        )
                    else:
                        ring.end = group.id
                    if ring_bond is not None:
                        self._set_ring_bond(ring, *ring_bond)
                        ring_bond = None
                pos += run.length
                continue

            # Bare atom
            else:
                symbol = extract_element(smiles, pos)
                if symbol is None:
                    if char.isalpha():
                        token = symbol_token(smiles, pos)
                        raise syntax_error(
                            f"expected organic element [{_ORGANIC_LIST}] or ring element "
                            f"[{_AROMATIC_LIST}], got '{token}'",
                            token,
                            col,
                        )
                    raise syntax_error(f"expected atom, got '{char}'", char, col)
                group = mol.new_group(
                    elements={capitalize_symbol(symbol): 1},
                    is_lowercase=symbol[0].islower(),
                    chain_depth=depth,
                    smiles_pos=col,
                    smiles_len=len(symbol),
                )
                if opts.show_implicit_atomic_mass:
                    group.atomic_mass = round(get_mass(group.symbol))
                groups.append(group)
                pos += len(symbol)

            # Bond the new atom into its chain
            if dont_bond_next:
                if pending is not None:
                    bond_type, bond_col = pending
                    raise bond_error(
                        "attempted to create bond between separated structures",
                        bond_type.value,
                        bond_col,
                    )
                dont_bond_next = False
            else:
                self._bond_last(groups, parent, pending, col)
                pending = None

            for ring in state.open_rings.values():
                if ring.is_aromatic is None:
                    ring.is_aromatic = False
                ring.members.append(groups[-1].id)

    @staticmethod
    def _set_ring_bond(ring: Ring, bond_type: BondType, col: int) -> None:
        if ring.bond_type is not None and ring.bond_type is not bond_type:
            raise bond_error(
                f"ring '{ring.digit}' closed with conflicting bonds "
                f"'{ring.bond_type.value}' and '{bond_type.value}'",
                bond_type.value,
                col,
            )
        ring.bond_type = bond_type

    def _bond_last(
        self,
        groups: list[AtomGroup],
        parent: AtomGroup | None,
        pending: tuple[BondType, int] | None,
        col: int,
    ) -> None:
        """Bond the newest atom to the previous one (or the branch parent)."""
        explicit = pending is not None
        bond_type, bond_col = pending if pending is not None else (BondType.SINGLE, col)
        kind = "explicit" if explicit else "implicit"
        fragment = bond_type.value if explicit else groups[-1].to_string()
        this = groups[-1]

        if len(groups) >= 2:
            last = groups[-2]
            if not last.add_bond(bond_type, this):
                raise bond_error(
                    f"attempted to create {kind} bond between this ({this}) and last atom ({last})",
                    fragment,
                    bond_col,
                )
        elif parent is not None:
            if not parent.add_bond(bond_type, this):
                raise bond_error(
                    f"attempted to create {kind} bond between this ({this}) "
                    f"and chain parent atom '{parent}'",
                    fragment,
                    bond_col,
                )
        elif explicit:
            raise syntax_error(f"unexpected bond '{bond_type.value}'", bond_type.value, bond_col)


def parse(smiles: str, options: ParseOptions | None = None, **overrides: bool | int) -> ParsedSmiles:
    """Parse a SMILES string.

    This is a convenience function that creates a SmilesParser and
    calls parse().

    Args:
        smiles: SMILES string to parse.
        options: Stored configuration; defaults to `ParseOptions()`.
        **overrides: Option values for this call only.

    Returns:
        The parse result.

    Example:
        >>> result = parse("CCO", add_implicit_hydrogens=True)
        >>> result.molecular_formula()
        'C2H6O'
    """
    return SmilesParser(options).parse(smiles, **overrides)

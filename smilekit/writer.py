"""
SMILES string writer.

This module converts Molecule graphs back to SMILES. Output is valid and
re-parseable, but not canonical: the traversal starts at the first group of
each connected component and follows bonds in storage order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from smilekit.elements import BondType
from smilekit.exceptions import ChemError
from smilekit.lexer import format_ring_digit

if TYPE_CHECKING:
    from smilekit.types import AtomGroup, Molecule

_MAX_RING_DIGIT = 99


class SmilesWriter:
    """Depth-first SMILES writer.

    The traversal works in three passes:
    1. Build a spanning tree of each component by iterative DFS, following
       higher-order bonds first so ring closures usually land on single or
       aromatic bonds. A double or triple closure is written with its bond
       symbol before the closing digit.
    2. Allocate ring closure digits in textual order, reusing freed digits.
    3. Assemble text bottom-up: every child but the last is parenthesized,
       the last continues the chain inline.

    Example:
        >>> from smilekit import parse
        >>> result = parse("C(C)CC")
        >>> SmilesWriter(result.molecules[0]).to_smiles()
        'C(C)CC'
    """

    def __init__(self, mol: Molecule, show_implicit: bool = False) -> None:
        self._mol = mol
        self._show_implicit = show_implicit

    def _visible(self, group: AtomGroup) -> bool:
        return self._show_implicit or not group.is_implicit

    def to_smiles(self) -> str:
        """Generate the SMILES string of the whole molecule."""
        parts: list[str] = []
        done: set[int] = set()
        for gid, group in self._mol.groups.items():
            if gid in done or not self._visible(group):
                continue
            parts.append(self._write_component(gid, done))
        return ".".join(parts)

    def _write_component(self, root: int, done: set[int]) -> str:
        mol = self._mol

        # Phase 1: spanning tree
        order: list[int] = []
        children: dict[int, list[tuple[int, BondType]]] = {}
        parent_of: dict[int, int | None] = {}
        stack: list[tuple[int, int | None, BondType | None]] = [(root, None, None)]
        while stack:
            gid, parent, bond_type = stack.pop()
            if gid in done:
                continue
            done.add(gid)
            order.append(gid)
            children[gid] = []
            parent_of[gid] = parent
            if parent is not None and bond_type is not None:
                children[parent].append((gid, bond_type))
            bonds = [
                b for b in mol.all_bonds(gid)
                if b.dest not in done and self._visible(mol.groups[b.dest])
            ]
            bonds.sort(key=lambda b: -b.weight)
            for bond in reversed(bonds):
                stack.append((bond.dest, gid, bond.type))

        # Ring closures: bonds in the component that are not tree edges
        preorder = {gid: i for i, gid in enumerate(order)}
        opens: dict[int, list[tuple[int, BondType]]] = {gid: [] for gid in order}
        closes: dict[int, list[tuple[int, BondType]]] = {gid: [] for gid in order}
        for gid in order:
            for bond in mol.groups[gid].bonds:
                other = bond.dest
                if other not in preorder:
                    continue
                if parent_of[other] == gid or parent_of[gid] == other:
                    continue
                first, second = sorted((gid, other), key=preorder.__getitem__)
                opens[first].append((second, bond.type))
                closes[second].append((first, bond.type))

        # Phase 2: ring digits, allocated in text order
        in_use: dict[tuple[int, int], int] = {}
        ring_text: dict[int, str] = {}
        for gid in order:
            tokens: list[str] = []
            released: list[tuple[int, int]] = []
            for first, bond_type in closes[gid]:
                key = (first, gid)
                symbol = bond_type.value if bond_type in (BondType.DOUBLE, BondType.TRIPLE) else ""
                tokens.append(symbol + format_ring_digit(in_use[key]))
                released.append(key)
            for second, _ in opens[gid]:
                digit = self._free_digit(set(in_use.values()))
                in_use[(gid, second)] = digit
                tokens.append(format_ring_digit(digit))
            for key in released:
                del in_use[key]
            ring_text[gid] = "".join(tokens)

        # Phase 3: assemble from the leaves up
        text: dict[int, str] = {}
        for gid in reversed(order):
            group = mol.groups[gid]
            branches = [
                self._bond_symbol(group, mol.groups[child], bond_type) + text.pop(child)
                for child, bond_type in children[gid]
            ]
            last = branches.pop() if branches else ""
            text[gid] = (
                group.to_string()
                + ring_text[gid]
                + "".join(f"({b})" for b in branches)
                + last
            )
        return text[root]

    @staticmethod
    def _free_digit(used: set[int]) -> int:
        for digit in range(1, _MAX_RING_DIGIT + 1):
            if digit not in used:
                return digit
        raise ChemError(f"More than {_MAX_RING_DIGIT} rings open at once")

    @staticmethod
    def _bond_symbol(a: AtomGroup, b: AtomGroup, bond_type: BondType) -> str:
        if bond_type is BondType.SINGLE:
            return ""
        if bond_type is BondType.AROMATIC and a.is_lowercase and b.is_lowercase:
            return ""
        return bond_type.value


def to_smiles(mol: Molecule, show_implicit: bool = False) -> str:
    """Convert a Molecule to a SMILES string.

    Args:
        mol: Molecule to convert.
        show_implicit: Also write implicit (synthesized) groups.

    Returns:
        SMILES string ("" for an empty molecule).
    """
    return SmilesWriter(mol, show_implicit).to_smiles()


def join_molecules(texts: list[str], reaction_indexes: list[int]) -> str:
    """Join per-molecule SMILES with ".", ">" or ">>".

    A boundary after molecule ``i`` gets one ">" per reaction index equal to
    ``i`` and "." otherwise; an index of -1 puts the arrow before the first
    molecule.
    """
    out: list[str] = [">" * reaction_indexes.count(-1)]
    for i, text in enumerate(texts):
        out.append(text)
        arrows = reaction_indexes.count(i)
        if arrows:
            out.append(">" * arrows)
        elif i < len(texts) - 1:
            out.append(".")
    return "".join(out)

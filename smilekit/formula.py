"""
Chemical formula generation.

Atom counting in Hill order (carbon, then hydrogen, then everything else
alphabetically) and the molecular, empirical and condensed formulas built
from it. Functions taking ``groups`` accept any iterable of AtomGroups, so a
Molecule (iterable over its groups) works directly.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import reduce
from itertools import groupby
from math import gcd
from typing import Iterable

from smilekit.types import AtomGroup, Molecule

_DIGITS = re.compile(r"(\d+)")


@dataclass(slots=True)
class AtomCount:
    """One formula entry.

    Attributes:
        atom: Element symbol, or a group's element string (e.g. "NH4").
        charge: Charge the entry is tallied under; None when groups were
            split into elements.
        count: Number of occurrences.
    """

    atom: str
    charge: int | None
    count: int


def _hill_rank(atom: str) -> int:
    if atom == "C":
        return 0
    if atom == "H":
        return 1
    return 2


def hill_sort(atoms: list[AtomCount]) -> list[AtomCount]:
    """Order entries carbons first, hydrogens second, then alphabetically.

    Entries for the same atom are ordered by charge.
    """
    return sorted(
        atoms,
        key=lambda a: (_hill_rank(a.atom), a.atom, a.charge or 0),
    )


def count_atoms(
    groups: Iterable[AtomGroup],
    split_groups: bool = False,
    hill_order: bool = True,
    ignore_charge: bool = False,
) -> list[AtomCount]:
    """Tally atoms.

    Args:
        groups: Groups to count.
        split_groups: Count bare elements ("NH4" adds N once and H four
            times) instead of whole groups.
        hill_order: Sort the result in Hill order.
        ignore_charge: Tally ions of the same atom together.

    Returns:
        Entries in first-seen order, or Hill order.
    """
    counts: dict[tuple[str, int | None], AtomCount] = {}
    for group in groups:
        if split_groups:
            for symbol, n in group.elements.items():
                entry = counts.setdefault((symbol, None), AtomCount(symbol, None, 0))
                entry.count += n
        else:
            label = group.element_string()
            charge = 0 if ignore_charge else group.charge
            entry = counts.setdefault((label, charge), AtomCount(label, charge, 0))
            entry.count += 1

    atoms = list(counts.values())
    return hill_sort(atoms) if hill_order else atoms


def _subscript(text: str, html: bool) -> str:
    return f"<sub>{text}</sub>" if html else text


def _format_entry(atom: str, count: int, html: bool) -> str:
    label = _DIGITS.sub(r"<sub>\1</sub>", atom) if html else atom
    if count == 1:
        return label
    if _DIGITS.search(atom) or sum(c.isupper() for c in atom) > 1:
        label = f"({label})"
    return label + _subscript(str(count), html)


def assemble_formula(atoms: list[AtomCount], html: bool = False) -> str:
    return "".join(_format_entry(a.atom, a.count, html) for a in atoms)


def molecular_formula(
    groups: Iterable[AtomGroup],
    html: bool = False,
    split_groups: bool = False,
) -> str:
    """Molecular formula, e.g. "C2H6O". Charges are ignored."""
    atoms = count_atoms(groups, split_groups=split_groups, ignore_charge=True)
    return assemble_formula(atoms, html)


def empirical_formula(
    groups: Iterable[AtomGroup],
    html: bool = False,
    hill_order: bool = True,
) -> str:
    """Simplest whole-number ratio of elements, e.g. "C2H4O2" -> "CH2O"."""
    atoms = count_atoms(groups, split_groups=True, hill_order=hill_order)
    if not atoms:
        return ""
    divisor = reduce(gcd, (a.count for a in atoms))
    return "".join(
        a.atom + (_subscript(str(a.count // divisor), html) if a.count // divisor != 1 else "")
        for a in atoms
    )


def _unit_string(unit: dict[str, int], html: bool) -> str:
    parts = []
    last = len(unit) - 1
    for j, (label, count) in enumerate(unit.items()):
        text = label if count == 1 else label + _subscript(str(count), html)
        # Multiplied middle entries need brackets: C(CH3)3 vs CH3
        if 0 < j < last and count > 1:
            text = f"({text})"
        parts.append(text)
    return "".join(parts)


def condensed_formula(mol: Molecule, html: bool = False, collapse: bool = True) -> str:
    """Condensed structural formula, e.g. "CH3CH2OH".

    Groups are visited depth first; neighbours with no other bonds are folded
    into their parent's unit. With ``collapse``, runs of identical units are
    written once with a multiplier: "CH3CH2CH2CH3" -> "CH3(CH2)2CH3".
    """
    units: list[dict[str, int]] = []
    done: set[int] = set()

    for root in mol.groups:
        if root in done:
            continue
        stack = [root]
        while stack:
            gid = stack.pop()
            if gid in done:
                continue
            done.add(gid)
            unit = {mol.groups[gid].fancy_string(html): 1}
            bonds = mol.all_bonds(gid)
            for bond in bonds:
                if bond.dest not in done and len(mol.all_bonds(bond.dest)) == 1:
                    label = mol.groups[bond.dest].fancy_string(html)
                    unit[label] = unit.get(label, 0) + 1
                    done.add(bond.dest)
            for bond in reversed(bonds):
                if bond.dest not in done:
                    stack.append(bond.dest)
            units.append(unit)

    segments = [_unit_string(unit, html) for unit in units]
    if not collapse:
        return "".join(segments)

    text = []
    for segment, run in groupby(segments):
        n = len(list(run))
        text.append(segment if n == 1 else f"({segment})" + _subscript(str(n), html))
    return "".join(text)


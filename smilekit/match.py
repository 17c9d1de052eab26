"""
Declarative substructure matching.

A pattern is a tree of MatchAtom nodes: each node constrains one group
(element, charge) and, through ``bonded_to``, the groups bonded to it. Every
labelled node that matches is recorded under its label, so a caller gets a
mapping from pattern labels to the groups found.

The search backtracks over neighbour assignments; a group is never used for
two pattern nodes of the same match.

Example:
    >>> from smilekit import BondType, parse
    >>> from smilekit.match import MatchAtom, match_molecule
    >>>
    >>> mol = parse("CC(=O)O", add_implicit_hydrogens=True).molecules[0]
    >>> acid = MatchAtom("C", label="C", bonded_to=[
    ...     MatchAtom("O", label="O1", bond=BondType.DOUBLE),
    ...     MatchAtom("O", label="O2", bonded_to=[MatchAtom("H")]),
    ... ])
    >>> len(match_molecule(mol, acid))
    1
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from smilekit.elements import BondType

if TYPE_CHECKING:
    from smilekit.types import AtomGroup, Molecule

# Label -> matched group; ring matches also carry "_ring_id" -> ring identity
MatchRecord = dict[str, Union["AtomGroup", int]]


@dataclass(slots=True)
class MatchAtom:
    """One node of a substructure pattern.

    Attributes:
        atom: Element symbol, a tuple of allowed symbols, or None for any.
        label: Key to record the matched group under.
        bond: Required type of the bond from the parent node (for ring
            members, from the previous member).
        charge: Required charge, or None for any.
        bonded_to: Patterns for further groups bonded to this one.
    """

    atom: str | tuple[str, ...] | None = None
    label: str | None = None
    bond: BondType | None = None
    charge: int | None = None
    bonded_to: list[MatchAtom] = field(default_factory=list)

    def accepts(self, group: AtomGroup) -> bool:
        """Whether the group alone satisfies this node."""
        if self.atom is not None:
            symbols = (self.atom,) if isinstance(self.atom, str) else self.atom
            if not group.is_element(*symbols):
                return False
        if self.charge is not None and group.charge != self.charge:
            return False
        return True


def match_atom(
    mol: Molecule,
    group_id: int,
    pattern: MatchAtom,
    record: MatchRecord,
    used: set[int],
) -> bool:
    """Match ``pattern`` rooted at one group.

    Args:
        mol: Molecule being searched.
        group_id: Group to match the pattern root against.
        pattern: The pattern.
        record: Receives label -> group entries on success.
        used: Groups unavailable for ``bonded_to`` children; extended while
            searching and restored on failure.

    Returns:
        True if the pattern matched.
    """
    group = mol.groups[group_id]
    if not pattern.accepts(group):
        return False
    used.add(group_id)

    if not _match_children(mol, group_id, pattern.bonded_to, 0, record, used):
        used.discard(group_id)
        return False
    if pattern.label is not None:
        record[pattern.label] = group
    return True


def _match_children(
    mol: Molecule,
    group_id: int,
    children: list[MatchAtom],
    index: int,
    record: MatchRecord,
    used: set[int],
) -> bool:
    if index == len(children):
        return True
    child = children[index]
    for bond in mol.all_bonds(group_id):
        if bond.dest in used:
            continue
        if child.bond is not None and bond.type is not child.bond:
            continue
        saved_record = dict(record)
        saved_used = set(used)
        if match_atom(mol, bond.dest, child, record, used) and _match_children(
            mol, group_id, children, index + 1, record, used,
        ):
            return True
        record.clear()
        record.update(saved_record)
        used.intersection_update(saved_used)
    return False


def match_molecule(mol: Molecule, pattern: MatchAtom, match_many: bool = True) -> list[MatchRecord]:
    """Match a pattern rooted at every group in turn.

    Returns:
        One record per group the pattern matched at (only the first if
        ``match_many`` is False).
    """
    matches: list[MatchRecord] = []
    for gid in mol.groups:
        record: MatchRecord = {}
        if match_atom(mol, gid, pattern, record, set()):
            matches.append(record)
            if not match_many:
                break
    return matches


def match_ring(
    mol: Molecule,
    members: list[MatchAtom],
    aromatic: bool,
    match_many: bool = True,
) -> list[MatchRecord]:
    """Find rings whose members match ``members`` in order.

    ``members[0]`` is bonded to ``members[-1]``; any rotation of the ring may
    match. Ring members are excluded from ``bonded_to`` children. Each record
    also holds the matched ring's identity under "_ring_id".
    """
    matches: list[MatchRecord] = []
    size = len(members)
    for ring in mol.rings:
        if len(ring.members) != size or bool(ring.is_aromatic) != aromatic:
            continue
        for start in range(size):
            record: MatchRecord = {}
            used = set(ring.members)
            ok = True
            for j, pattern in enumerate(members):
                gid = ring.members[(start + j) % size]
                if pattern.bond is not None:
                    prev = ring.members[(start + j - 1) % size]
                    bond = mol.get_bond(prev, gid)
                    if bond is None or bond.type is not pattern.bond:
                        ok = False
                        break
                used.discard(gid)
                if not match_atom(mol, gid, pattern, record, used):
                    ok = False
                    break
            if ok:
                record["_ring_id"] = ring.id
                matches.append(record)
                break
        if matches and not match_many:
            break
    return matches


def match_benzene(
    mol: Molecule,
    substitute: MatchAtom | None = None,
    match_many: bool = True,
) -> list[MatchRecord]:
    """Find aromatic six-carbon rings with one substituent, the rest hydrogen.

    The substituent defaults to hydrogen, which matches plain benzene.
    Records map "0".."5" to the ring carbons, "0" being the substituted one,
    plus any labels from ``substitute``.
    """
    if substitute is None:
        substitute = MatchAtom("H")
    matches: list[MatchRecord] = []
    for ring in mol.rings:
        if not ring.is_aromatic or len(ring.members) != 6:
            continue
        ring_set = set(ring.members)
        carbons = hydrogens = 0
        sub_index = -1
        sub_record: MatchRecord = {}
        for i, gid in enumerate(ring.members):
            if not mol.groups[gid].is_element("C"):
                continue
            carbons += 1
            outside = next((b.dest for b in mol.all_bonds(gid) if b.dest not in ring_set), None)
            if outside is None:
                continue
            if sub_index == -1 and match_atom(mol, outside, substitute, sub_record, set(ring_set)):
                sub_index = i
            elif mol.groups[outside].is_element("H"):
                hydrogens += 1
        if carbons == 6 and hydrogens == 5 and sub_index != -1:
            record: MatchRecord = {
                str(k): mol.groups[ring.members[(sub_index + k) % 6]] for k in range(6)
            }
            record.update(sub_record)
            matches.append(record)
            if not match_many:
                break
    return matches

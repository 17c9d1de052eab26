"""
Core molecular data types.

This module defines the structures the parser builds: AtomGroup (a node),
Bond (an edge stored once on one endpoint), Ring and Molecule, together with
the graph algorithms that operate on a Molecule.

Bonds are stored on whichever endpoint created them. Code asking adjacency
questions must go through `Molecule.all_bonds`, which merges both directions.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterator

from smilekit.elements import (
    ORGANIC_SUBSET,
    BondType,
    get_allowed_valences,
    get_mass,
)

if TYPE_CHECKING:
    from smilekit.match import MatchAtom, MatchRecord

logger = logging.getLogger(__name__)


def format_charge(charge: int, sign_last: bool = False) -> str:
    """Format a charge as "+", "-", "+2" (or "2+" with ``sign_last``)."""
    if charge == 0:
        return ""
    sign = "+" if charge > 0 else "-"
    magnitude = abs(charge)
    if magnitude == 1:
        return sign
    return f"{magnitude}{sign}" if sign_last else f"{sign}{magnitude}"


@dataclass(slots=True)
class Bond:
    """A typed edge to another atom group.

    Attributes:
        type: Bond type.
        dest: Identity of the atom group at the other end.
    """

    type: BondType
    dest: int

    @property
    def weight(self) -> float:
        return self.type.weight


@dataclass(slots=True, eq=False)
class AtomGroup:
    """A parsed atom, possibly carrying bracket metadata.

    Attributes:
        id: Identity, unique within one parse result.
        elements: Element symbol to count (``[NH4+]`` is {"N": 1, "H": 4}).
        charge: Formal charge.
        is_radical: Radical flag.
        atomic_mass: Isotopic mass number override.
        is_lowercase: Written as lowercase aromatic shorthand.
        chain_depth: Branch depth at creation.
        ring_digits: Ring closure digits written on this atom.
        bonds: Bonds created from this atom (see module docstring).
        smiles_pos: Offset of the atom in the input string.
        smiles_len: Length of the atom's text (including charge clauses).
        is_implicit: Synthesized atom, hidden from default output.
    """

    id: int
    elements: dict[str, int] = field(default_factory=dict)
    charge: int = 0
    is_radical: bool = False
    atomic_mass: int | None = None
    is_lowercase: bool = False
    chain_depth: int = 0
    ring_digits: list[int] = field(default_factory=list)
    bonds: list[Bond] = field(default_factory=list)
    smiles_pos: int = -1
    smiles_len: int = 0
    is_implicit: bool = False

    @property
    def symbol(self) -> str:
        """First (principal) element symbol, or "" for an empty group."""
        return next(iter(self.elements), "")

    def add_element(self, symbol: str, count: int = 1) -> None:
        self.elements[symbol] = self.elements.get(symbol, 0) + count

    def add_bond(self, bond_type: BondType, dest: AtomGroup) -> bool:
        """Bond this group to ``dest``.

        Returns False (and adds nothing) if the two are the same group or if
        a bond between them already exists in either direction.
        """
        if dest is self:
            return False
        if any(b.dest == dest.id for b in self.bonds):
            return False
        if any(b.dest == self.id for b in dest.bonds):
            return False
        self.bonds.append(Bond(bond_type, dest.id))
        return True

    def is_element(self, *symbols: str) -> bool:
        """True if this group is a single atom of one of ``symbols``."""
        return len(self.elements) == 1 and self.symbol in symbols

    def in_organic_subset(self) -> bool:
        return (
            len(self.elements) == 1
            and self.elements[self.symbol] == 1
            and self.symbol in ORGANIC_SUBSET
        )

    def calculate_mr(self) -> float:
        """Relative mass of this group."""
        total = 0.0
        for i, (symbol, count) in enumerate(self.elements.items()):
            mass = self.atomic_mass if i == 0 and self.atomic_mass is not None else get_mass(symbol)
            total += mass * count
        return total

    def element_string(self, html: bool = False) -> str:
        """Element symbols with counts, e.g. "NH4"."""
        parts = []
        for symbol, count in self.elements.items():
            if count == 1:
                parts.append(symbol)
            elif html:
                parts.append(f"{symbol}<sub>{count}</sub>")
            else:
                parts.append(f"{symbol}{count}")
        return "".join(parts)

    def fancy_string(self, html: bool = False, show_charge: bool = True) -> str:
        """Display form, e.g. "NH4+" or "NH<sub>4</sub><sup>+</sup>"."""
        text = self.element_string(html)
        if html and self.atomic_mass is not None:
            text = f"<sup>{self.atomic_mass}</sup>{text}"
        if show_charge:
            charge = format_charge(self.charge, sign_last=True)
            if charge:
                text += f"<sup>{charge}</sup>" if html else charge
            if self.is_radical:
                text += "<sup>•</sup>" if html else "•"
        return text

    def to_string(self) -> str:
        """Notation form of this group."""
        symbol = self.symbol.lower() if self.is_lowercase else self.symbol
        if (
            self.in_organic_subset()
            and self.charge == 0
            and not self.is_radical
            and self.atomic_mass is None
        ):
            return symbol
        parts = ["["]
        if self.atomic_mass is not None:
            parts.append(str(self.atomic_mass))
        for i, (element, count) in enumerate(self.elements.items()):
            parts.append(symbol if i == 0 else element)
            if count != 1:
                parts.append(str(count))
        parts.append(format_charge(self.charge))
        if self.is_radical:
            parts.append(".")
        parts.append("]")
        return "".join(parts)

    def __str__(self) -> str:
        return self.to_string()


@dataclass(slots=True, eq=False)
class Ring:
    """A cycle closed by a matching pair of ring digits.

    Attributes:
        id: Identity, unique within one parse result.
        digit: The ring closure digit.
        start: Identity of the atom where the digit first appeared.
        end: Identity of the closing atom, None while open.
        is_aromatic: True/False once known, None before.
        bond_type: Explicit bond symbol written next to one of the digits,
            None if the closure bond was left implicit.
        members: Provisional members while parsing, the resolved cycle after.
    """

    id: int
    digit: int
    start: int
    end: int | None = None
    is_aromatic: bool | None = None
    bond_type: BondType | None = None
    members: list[int] = field(default_factory=list)

    @property
    def is_closed(self) -> bool:
        return self.end is not None

    def __len__(self) -> int:
        return len(self.members)


@dataclass(slots=True)
class PathSearch:
    """Outcome of `Molecule.search_paths`.

    Attributes:
        paths: Paths found, as bond index lists.
        steps: Bonds examined.
        complete: False if a path or step ceiling cut the search short.
    """

    paths: list[list[int]]
    steps: int
    complete: bool


@dataclass(frozen=True, slots=True)
class ValenceProblem:
    """An organic atom whose bond count is not an allowed valence."""

    group_id: int
    element: str
    bond_count: float
    allowed: tuple[int, ...]
    position: int

    @property
    def message(self) -> str:
        count = int(self.bond_count) if self.bond_count == int(self.bond_count) else self.bond_count
        expected = " or ".join(str(v) for v in self.allowed)
        return (
            f"invalid bond count for organic atom '{self.element}': {count}. "
            f"Expected {expected}."
        )


class Molecule:
    """A set of atom groups keyed by identity, plus the rings inside it.

    Args:
        groups: Initial groups, as a list or an identity mapping.
        id_source: Callable returning fresh identities for groups this
            molecule creates (implicit hydrogens). Defaults to a counter
            starting above the highest existing identity.
    """

    def __init__(
        self,
        groups: dict[int, AtomGroup] | list[AtomGroup] | None = None,
        id_source: Callable[[], int] | None = None,
    ) -> None:
        if groups is None:
            self.groups: dict[int, AtomGroup] = {}
        elif isinstance(groups, dict):
            self.groups = groups
        else:
            self.groups = {g.id: g for g in groups}
        self.rings: list[Ring] = []
        if id_source is None:
            id_source = itertools.count(max(self.groups, default=-1) + 1).__next__
        self._next_id = id_source

    def __len__(self) -> int:
        return len(self.groups)

    def __iter__(self) -> Iterator[AtomGroup]:
        return iter(self.groups.values())

    def __contains__(self, group_id: object) -> bool:
        return group_id in self.groups

    def __getitem__(self, group_id: int) -> AtomGroup:
        return self.groups[group_id]

    def __repr__(self) -> str:
        return f"Molecule(groups={len(self.groups)}, rings={len(self.rings)})"

    def new_group(self, **attrs) -> AtomGroup:
        """Create a group with a fresh identity and add it."""
        group = AtomGroup(id=self._next_id(), **attrs)
        self.groups[group.id] = group
        return group

    def get_ring(self, ring_id: int) -> Ring:
        for ring in self.rings:
            if ring.id == ring_id:
                return ring
        raise KeyError(f"No ring with id {ring_id}")

    def calculate_mr(self) -> float:
        """Relative molecular mass."""
        return sum(group.calculate_mr() for group in self.groups.values())

    def get_bond(self, id1: int, id2: int) -> Bond | None:
        """The stored bond record between two groups, in either direction."""
        for bond in self.groups[id1].bonds:
            if bond.dest == id2:
                return bond
        for bond in self.groups[id2].bonds:
            if bond.dest == id1:
                return bond
        return None

    def all_bonds(self, group_id: int) -> list[Bond]:
        """Every bond touching a group, each with ``dest`` set to the other end.

        Own bonds come first (in creation order), then incoming bonds in
        group order. The returned records are copies.
        """
        bonds = [Bond(b.type, b.dest) for b in self.groups[group_id].bonds]
        for gid, group in self.groups.items():
            if gid == group_id:
                continue
            for bond in group.bonds:
                if bond.dest == group_id:
                    bonds.append(Bond(bond.type, gid))
        return bonds

    def neighbors(self, group_id: int) -> list[int]:
        return [b.dest for b in self.all_bonds(group_id)]

    def sever_bond(self, id1: int, id2: int) -> bool:
        """Remove the bond between two groups. Returns False if none exists."""
        for a, b in ((id1, id2), (id2, id1)):
            bonds = self.groups[a].bonds
            for i, bond in enumerate(bonds):
                if bond.dest == b:
                    del bonds[i]
                    return True
        return False

    def bond_count(self, group_id: int) -> float:
        """Sum of bond weights touching a group (aromatic counts 1.5)."""
        return sum(b.weight for b in self.all_bonds(group_id))

    def remove_unbonded_groups(self, start_id: int) -> dict[int, AtomGroup]:
        """Evict every group not reachable from ``start_id``.

        Returns:
            The discarded groups, keyed by identity.
        """
        reached = {start_id}
        stack = [start_id]
        while stack:
            gid = stack.pop()
            for dest in self.neighbors(gid):
                if dest not in reached:
                    reached.add(dest)
                    stack.append(dest)

        discarded = {gid: g for gid, g in self.groups.items() if gid not in reached}
        for gid in discarded:
            del self.groups[gid]
        return discarded

    def add_implicit_hydrogens(self) -> int:
        """Fill neutral organic atoms up to their next allowed valence.

        Each added hydrogen is a separate implicit group bonded by a single
        bond. Returns the number of hydrogens added.
        """
        added = 0
        for group in list(self.groups.values()):
            if group.is_radical or group.charge != 0 or not group.in_organic_subset():
                continue
            count = self.bond_count(group.id)
            target = next(
                (v for v in get_allowed_valences(group.symbol) if v >= count), None,
            )
            if target is None:
                continue
            for _ in range(int(target - count)):
                hydrogen = self.new_group(
                    elements={"H": 1}, chain_depth=group.chain_depth + 1, is_implicit=True,
                )
                group.add_bond(BondType.SINGLE, hydrogen)
                added += 1
        logger.debug("Added %d implicit hydrogens", added)
        return added

    def check_bond_counts(self) -> ValenceProblem | None:
        """Find the first neutral organic atom with a disallowed bond count."""
        for group in self.groups.values():
            if group.charge != 0 or group.is_radical or not group.in_organic_subset():
                continue
            allowed = get_allowed_valences(group.symbol)
            count = self.bond_count(group.id)
            if count not in allowed:
                return ValenceProblem(
                    group_id=group.id,
                    element=group.symbol,
                    bond_count=count,
                    allowed=allowed,
                    position=group.smiles_pos,
                )
        return None

    def count_bonded_elements(
        self,
        group_id: int,
        elements: str | list[str],
        include_implicit: bool = False,
    ) -> int:
        """Count neighbours of a group that are one of ``elements``."""
        if isinstance(elements, str):
            elements = [elements]
        count = 0
        for bond in self.all_bonds(group_id):
            other = self.groups[bond.dest]
            if other.is_implicit and not include_implicit:
                continue
            if other.is_element(*elements):
                count += 1
        return count

    def pathfind(
        self,
        start_id: int,
        end_id: int,
        allowed: list[int] | set[int] | None = None,
        max_paths: int | None = None,
        max_depth: int | None = None,
        max_steps: int | None = None,
    ) -> list[list[int]]:
        """Enumerate simple paths between two groups.

        Each path is a list of indexes into ``all_bonds`` of the group the
        step leaves from; replay one with `trace_bond_path`.

        Args:
            start_id: First group.
            end_id: Last group.
            allowed: If given, only groups in this collection are visited.
            max_paths: Stop after this many paths have been found.
            max_depth: Do not follow paths longer than this many bonds.
            max_steps: Stop after examining this many bonds, whether or not
                they led anywhere.

        Returns:
            The paths found, in discovery order.
        """
        return self.search_paths(
            start_id, end_id, allowed, max_paths, max_depth, max_steps,
        ).paths

    def search_paths(
        self,
        start_id: int,
        end_id: int,
        allowed: list[int] | set[int] | None = None,
        max_paths: int | None = None,
        max_depth: int | None = None,
        max_steps: int | None = None,
    ) -> PathSearch:
        """Like `pathfind`, but also report whether the search ran to completion."""
        if start_id == end_id:
            return PathSearch([[]], 0, True)

        allowed_set = set(allowed) if allowed is not None else None
        adjacency = {gid: self.all_bonds(gid) for gid in self.groups}
        paths: list[list[int]] = []
        edges: list[int] = []
        stack = [start_id]
        on_path = {start_id}
        cursor = {start_id: 0}
        steps = 0

        while stack:
            gid = stack[-1]
            if gid == end_id:
                paths.append(list(edges))
                if max_paths is not None and len(paths) >= max_paths:
                    return PathSearch(paths, steps, False)
                stack.pop()
                on_path.discard(gid)
                edges.pop()
                continue

            bonds = adjacency[gid]
            i = cursor[gid]
            if i < len(bonds) and (max_depth is None or len(edges) < max_depth):
                if max_steps is not None and steps >= max_steps:
                    return PathSearch(paths, steps, False)
                steps += 1
                cursor[gid] = i + 1
                dest = bonds[i].dest
                if dest in on_path or (allowed_set is not None and dest not in allowed_set):
                    continue
                edges.append(i)
                stack.append(dest)
                on_path.add(dest)
                cursor[dest] = 0
            else:
                stack.pop()
                on_path.discard(gid)
                if edges:
                    edges.pop()

        return PathSearch(paths, steps, True)

    def trace_bond_path(self, start_id: int, path: list[int]) -> list[int]:
        """Replay a path from `pathfind` as group identities."""
        ids = [start_id]
        for index in path:
            ids.append(self.all_bonds(ids[-1])[index].dest)
        return ids

    def _ring_bonds(self, ring: Ring) -> Iterator[Bond]:
        members = ring.members
        for i, gid in enumerate(members):
            bond = self.get_bond(gid, members[(i + 1) % len(members)])
            if bond is not None:
                yield bond

    def aromaticify_ring(self, ring_id: int, lowercase: bool = True) -> None:
        """Mark a ring aromatic and convert its bonds to aromatic bonds.

        A hydrogen is dropped from any member left over its largest valence.
        """
        ring = self.get_ring(ring_id)
        ring.is_aromatic = True
        for bond in self._ring_bonds(ring):
            bond.type = BondType.AROMATIC
        for gid in ring.members:
            group = self.groups[gid]
            if lowercase:
                group.is_lowercase = True
            allowed = get_allowed_valences(group.symbol)
            if not allowed or self.bond_count(gid) <= max(allowed):
                continue
            hydrogen = next(
                (b.dest for b in self.all_bonds(gid) if self.groups[b.dest].is_element("H")),
                None,
            )
            if hydrogen is not None:
                self.sever_bond(gid, hydrogen)
                del self.groups[hydrogen]

    def dearomaticify_ring(self, ring_id: int, implicit_hs: bool = True) -> None:
        """Reduce an aromatic ring to single bonds, adding one H per member."""
        ring = self.get_ring(ring_id)
        ring.is_aromatic = False
        for bond in self._ring_bonds(ring):
            bond.type = BondType.SINGLE
        for gid in ring.members:
            group = self.groups[gid]
            group.is_lowercase = False
            hydrogen = self.new_group(
                elements={"H": 1}, chain_depth=group.chain_depth + 1, is_implicit=implicit_hs,
            )
            group.add_bond(BondType.SINGLE, hydrogen)

    def match_molecule(self, pattern: MatchAtom, match_many: bool = True) -> list[MatchRecord]:
        from smilekit.match import match_molecule

        return match_molecule(self, pattern, match_many)

    def match_benzene(
        self, substitute: MatchAtom | None = None, match_many: bool = True,
    ) -> list[MatchRecord]:
        from smilekit.match import match_benzene

        return match_benzene(self, substitute, match_many)

    def match_ring(
        self, members: list[MatchAtom], aromatic: bool, match_many: bool = True,
    ) -> list[MatchRecord]:
        from smilekit.match import match_ring

        return match_ring(self, members, aromatic, match_many)

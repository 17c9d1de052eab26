"""
Ring closure resolution.

While parsing, every atom seen while a ring digit is open is recorded as a
candidate member, which over-collects for fused and bridged systems. Once the
whole graph exists, the true cycle is the longest simple path between the
ring's start and end atoms through those candidates.
"""

from __future__ import annotations

import logging

from smilekit.elements import AROMATIC_SUBSET, BondType
from smilekit.exceptions import Diagnostic, ring_error, syntax_error
from smilekit.types import AtomGroup, Molecule, Ring

logger = logging.getLogger(__name__)

_AROMATIC_LIST = ",".join(sorted(AROMATIC_SUBSET))


def check_rings_within_molecules(molecules: list[Molecule]) -> None:
    """Reject rings whose members fall outside their molecule.

    Raises:
        Diagnostic: Ring error at the ring's start atom.
    """
    for mol in molecules:
        for ring in mol.rings:
            if any(member not in mol for member in ring.members):
                start = mol.groups.get(ring.start)
                fragment = start.to_string() if start is not None else str(ring.digit)
                column = start.smiles_pos if start is not None else 0
                raise ring_error(
                    "ring structure cannot bridge molecules", fragment, column, ring.digit,
                )


def close_rings(rings: list[Ring], group_map: dict[int, AtomGroup], smiles: str) -> None:
    """Check every ring is closed and add the closing bond.

    The closing bond takes the bond symbol written next to a ring digit if
    there was one. Otherwise it is aromatic if the ring was marked aromatic
    while parsing, single if not.

    Raises:
        Diagnostic: Ring error naming the first unclosed digit.
    """
    for ring in rings:
        start = group_map[ring.start]
        if ring.end is None:
            raise ring_error(
                f"unclosed ring '{ring.digit}'",
                smiles[start.smiles_pos:],
                start.smiles_pos,
                ring.digit,
            )
        if ring.bond_type is not None:
            bond_type = ring.bond_type
        else:
            bond_type = BondType.AROMATIC if ring.is_aromatic else BondType.SINGLE
        start.add_bond(bond_type, group_map[ring.end])


def resolve_ring(
    mol: Molecule,
    ring: Ring,
    max_paths: int | None = None,
    max_steps: int | None = None,
) -> None:
    """Replace a ring's provisional members with its true cycle and validate it.

    The cycle is the longest path found between the ring's start and end. If
    ``max_paths`` or ``max_steps`` cuts the search short, a warning is logged
    and the longest path found so far is used.

    Raises:
        Diagnostic: Ring error if the ring was never closed, or on case or
            aromatic bond mismatches.
    """
    start = mol.groups[ring.start]
    if ring.end is None:
        raise ring_error(
            f"unclosed ring '{ring.digit}'", start.to_string(), start.smiles_pos, ring.digit,
        )
    search = mol.search_paths(
        ring.start,
        ring.end,
        ring.members,
        max_paths=max_paths,
        max_depth=len(set(ring.members)),
        max_steps=max_steps,
    )
    if not search.complete:
        logger.warning(
            "Ring %d: stopped after %d candidate paths and %d steps; using the longest found",
            ring.digit, len(search.paths), search.steps,
        )
    if search.paths:
        longest = max(search.paths, key=len)
        ring.members = mol.trace_bond_path(ring.start, longest)
    else:
        ring.members = [ring.start, ring.end]
    logger.debug("Ring %d resolved to %d members", ring.digit, len(ring.members))

    groups = [mol.groups[gid] for gid in ring.members]
    if groups[0].is_lowercase:
        for group in groups[1:]:
            if not group.is_lowercase:
                raise ring_error(
                    f"expected lowercase ring atom [{_AROMATIC_LIST}] in aromatic ring",
                    group.to_string(), group.smiles_pos, ring.digit,
                )
    else:
        for group in groups[1:]:
            if group.is_lowercase:
                raise ring_error(
                    "unexpected lowercase atom in ring",
                    group.to_string(), group.smiles_pos, ring.digit,
                )

    if not ring.is_aromatic:
        ring.is_aromatic = False
        return

    for a, b in zip(groups, groups[1:]):
        bond = mol.get_bond(a.id, b.id)
        if bond is None:
            continue
        if groups[0].is_lowercase:
            bond.type = BondType.AROMATIC
        elif bond.type is not BondType.AROMATIC:
            raise ring_error(
                f"expected aromatic bond ':' in aromatic ring, got bond '{bond.type.value}'",
                b.to_string(), b.smiles_pos, ring.digit,
            )


def resolve_rings(
    molecules: list[Molecule],
    max_paths: int | None = None,
    max_steps: int | None = None,
) -> None:
    """Resolve every ring of every molecule, in order."""
    for mol in molecules:
        for ring in mol.rings:
            try:
                resolve_ring(mol, ring, max_paths, max_steps)
            except Diagnostic as e:
                e.add_context(f"Error whilst resolving ring '{ring.digit}':")
                raise


def check_lowercase_in_rings(group_map: dict[int, AtomGroup], rings: list[Ring]) -> None:
    """Lowercase aromatic shorthand is only valid on ring members.

    Raises:
        Diagnostic: Syntax error at the first stray lowercase atom.
    """
    members = {gid for ring in rings for gid in ring.members}
    for group in group_map.values():
        if group.is_lowercase and group.id not in members:
            text = group.to_string()
            suggestion = text.replace(group.symbol.lower(), group.symbol, 1)
            raise syntax_error(
                f'unexpected lowercase atom outside of ring structure. '
                f'Did you mean "{suggestion}" ?',
                text,
                group.smiles_pos,
            )

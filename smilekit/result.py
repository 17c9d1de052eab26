"""
Parse result container.

A ParsedSmiles holds every Molecule produced from one input string, all of
the rings closed in them and the reaction boundaries. Reaction boundaries are
stored as molecule indexes: each ">" records the index of the last molecule
before it, so "CC>>CCO" records [0, 0] (an empty reagent zone).
"""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING, Callable, Iterator

from smilekit.formula import (
    AtomCount,
    condensed_formula,
    count_atoms,
    empirical_formula,
    molecular_formula,
)
from smilekit.types import AtomGroup, Molecule, Ring
from smilekit.writer import join_molecules, to_smiles

if TYPE_CHECKING:
    from smilekit.layout import LayoutOptions, PositionData
    from smilekit.options import ParseOptions

logger = logging.getLogger(__name__)


class ParsedSmiles:
    """Output of `SmilesParser.parse`.

    Attributes:
        smiles: The input string.
        options: The effective options used for parsing.
        molecules: Molecules in input order.
        rings: Every ring, in the order its digit was opened.
        reaction_indexes: Index of the last molecule before each ">".
    """

    def __init__(self, smiles: str, options: ParseOptions) -> None:
        self.smiles = smiles
        self.options = options
        self._group_ids = itertools.count()
        self._ring_ids = itertools.count()
        self.molecules: list[Molecule] = [self.new_molecule()]
        self.rings: list[Ring] = []
        self.reaction_indexes: list[int] = []

    def __repr__(self) -> str:
        return f"ParsedSmiles({self.smiles!r}, molecules={len(self.molecules)})"

    def __iter__(self) -> Iterator[Molecule]:
        return iter(self.molecules)

    def __len__(self) -> int:
        return len(self.molecules)

    def next_group_id(self) -> int:
        return next(self._group_ids)

    def next_ring_id(self) -> int:
        return next(self._ring_ids)

    def new_molecule(self) -> Molecule:
        """An empty molecule drawing identities from this result."""
        return Molecule(id_source=self.next_group_id)

    @property
    def group_map(self) -> dict[int, AtomGroup]:
        """Identity to group lookup across every molecule."""
        return {gid: group for mol in self.molecules for gid, group in mol.groups.items()}

    @property
    def groups(self) -> list[AtomGroup]:
        return [group for mol in self.molecules for group in mol.groups.values()]

    @property
    def is_reaction(self) -> bool:
        return bool(self.reaction_indexes)

    def reactants(self) -> list[Molecule]:
        if not self.reaction_indexes:
            return list(self.molecules)
        return self.molecules[:self.reaction_indexes[0] + 1]

    def reagents(self) -> list[Molecule]:
        if len(self.reaction_indexes) < 2:
            return []
        return self.molecules[self.reaction_indexes[0] + 1:self.reaction_indexes[1] + 1]

    def products(self) -> list[Molecule]:
        if not self.reaction_indexes:
            return []
        return self.molecules[self.reaction_indexes[-1] + 1:]

    def calculate_mr(self) -> float:
        """Total relative mass of every molecule."""
        return sum(mol.calculate_mr() for mol in self.molecules)

    def count_atoms(
        self,
        split_groups: bool = False,
        hill_order: bool = True,
        ignore_charge: bool = False,
    ) -> list[AtomCount]:
        return count_atoms(
            self.groups, split_groups=split_groups, hill_order=hill_order,
            ignore_charge=ignore_charge,
        )

    def molecular_formula(self, html: bool = False, split_groups: bool = False) -> str:
        return molecular_formula(self.groups, html=html, split_groups=split_groups)

    def empirical_formula(self, html: bool = False, hill_order: bool = True) -> str:
        return empirical_formula(self.groups, html=html, hill_order=hill_order)

    def condensed_formula(self, html: bool = False, collapse: bool = True) -> str:
        """Condensed formula of each molecule, joined by ".".

        Example:
            >>> parse("CCO", add_implicit_hydrogens=True).condensed_formula()
            'CH3CH2OH'
        """
        return ".".join(
            condensed_formula(mol, html=html, collapse=collapse) for mol in self.molecules
        )

    def generate_smiles(self, show_implicit: bool = False) -> str:
        """Serialize back to SMILES, reinserting ".", ">" and ">>"."""
        texts = [to_smiles(mol, show_implicit=show_implicit) for mol in self.molecules]
        return join_molecules(texts, self.reaction_indexes)

    def __str__(self) -> str:
        return self.generate_smiles()

    def add_molecule(self, mol: Molecule, pos: int | None = None) -> None:
        """Insert a molecule, keeping reaction boundaries consistent.

        The molecule takes the place of the one currently at ``pos`` and
        joins its reaction zone; by default it is appended to the last zone.
        Groups should come from `new_molecule` so identities stay unique.
        """
        if pos is None:
            pos = len(self.molecules)
        self._insert(mol, pos, shift_from=pos)

    def _insert(self, mol: Molecule, pos: int, shift_from: int) -> None:
        self.molecules.insert(pos, mol)
        self.reaction_indexes = [
            ri + 1 if ri >= shift_from else ri for ri in self.reaction_indexes
        ]
        for ring in mol.rings:
            if ring not in self.rings:
                self.rings.append(ring)
        logger.debug("Inserted molecule at %d; reaction indexes %s", pos, self.reaction_indexes)

    def remove_molecule(self, mol: Molecule) -> bool:
        """Remove a molecule and its rings. Returns False if not present."""
        for i, candidate in enumerate(self.molecules):
            if candidate is mol:
                break
        else:
            return False
        del self.molecules[i]
        self.reaction_indexes = [ri - 1 if ri >= i else ri for ri in self.reaction_indexes]
        self.rings = [ring for ring in self.rings if ring not in mol.rings]
        logger.debug("Removed molecule %d; reaction indexes %s", i, self.reaction_indexes)
        return True

    def split_molecule(self, mol: Molecule, id1: int, id2: int) -> Molecule | None:
        """Sever the bond between two groups and split off the detached part.

        The part not containing ``id1`` becomes a new molecule placed right
        after ``mol`` in the same reaction zone, taking the rings wholly
        inside it.

        Returns:
            The new molecule, or None if there was no bond or the groups are
            still connected after severing it.
        """
        if not mol.sever_bond(id1, id2):
            return None
        discarded = mol.remove_unbonded_groups(id1)
        if not discarded:
            return None

        new = Molecule(discarded, id_source=self.next_group_id)
        kept: list[Ring] = []
        for ring in mol.rings:
            if all(member in discarded for member in ring.members):
                new.rings.append(ring)
            else:
                kept.append(ring)
        mol.rings = kept

        index = next(i for i, m in enumerate(self.molecules) if m is mol)
        self._insert(new, index + 1, shift_from=index)
        return new

    def position_data(
        self,
        options: LayoutOptions | None = None,
        measure: Callable[[AtomGroup], tuple[float, float]] | None = None,
    ) -> list[PositionData]:
        """Layout record of each molecule, for an external renderer."""
        from smilekit.layout import get_position_data

        return [get_position_data(mol, options, measure) for mol in self.molecules]

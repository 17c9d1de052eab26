"""Parse configuration."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace


@dataclass(frozen=True)
class ParseOptions:
    """Feature toggles and limits for `SmilesParser`.

    Attributes:
        enable_separated_structures: Allow "." between structures.
        enable_reactions: Allow ">" reaction separators.
        enable_multiple_reactions: Allow more than one reaction (>2 markers).
        enable_aromatic_bonds: Allow the explicit ":" aromatic bond.
        enable_charge_clauses: Allow "{...}" charge clauses after an atom.
        cumulative_charge: Let a charge clause add to an existing charge.
        enable_bracket_atoms: Allow "[...]" atoms.
        enable_branches: Allow "(...)" branches.
        enable_rings: Allow ring closure digits.
        enable_radicals: Allow the "." radical marker inside brackets.
        show_implicit_atomic_mass: Record the standard mass number on atoms
            that did not give one.
        add_implicit_hydrogens: Fill organic atoms up to valence with
            implicit hydrogens after parsing.
        check_bond_counts: Reject organic atoms whose bond count is not an
            allowed valence.
        max_branch_depth: Deepest permitted branch nesting.
        max_ring_paths: Ceiling on candidate paths explored per ring.
        max_ring_steps: Ceiling on bonds examined while searching one ring,
            counting dead ends.
    """

    enable_separated_structures: bool = True
    enable_reactions: bool = True
    enable_multiple_reactions: bool = False
    enable_aromatic_bonds: bool = True
    enable_charge_clauses: bool = True
    cumulative_charge: bool = False
    enable_bracket_atoms: bool = True
    enable_branches: bool = True
    enable_rings: bool = True
    enable_radicals: bool = True
    show_implicit_atomic_mass: bool = False
    add_implicit_hydrogens: bool = False
    check_bond_counts: bool = False
    max_branch_depth: int = 256
    max_ring_paths: int = 10_000
    max_ring_steps: int = 100_000

    def override(self, **changes: bool | int) -> "ParseOptions":
        """Return a copy with the given options replaced.

        Raises:
            TypeError: If an option name is not recognised.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise TypeError(f"Unknown parse option(s): {', '.join(unknown)}")
        return replace(self, **changes)

"""Tests for ring closure resolution."""

import logging

import pytest

from smilekit import BondType, RingError, parse
from smilekit.exceptions import Diagnostic
from smilekit.rings import close_rings, resolve_ring
from smilekit.types import AtomGroup, Molecule, Ring


def acene(rings: int) -> str:
    """Linear fused aromatic rings written with one ring digit per ring."""
    def digit(k: int) -> str:
        return str(k) if k < 10 else f"%{k}"

    text = "c1ccc2"
    for k in range(3, rings + 1):
        text += "cc" + digit(k)
    text += "ccccc" + digit(rings)
    for k in range(rings - 1, 1, -1):
        text += "cc" + digit(k)
    return text + "c1"


class TestRingMembers:
    """Test that provisional members resolve to the true cycle."""

    def test_branch_atoms_dropped(self):
        result = parse("C1CC(O)CC1")
        ring = result.rings[0]
        assert len(ring.members) == 5
        assert 3 not in ring.members

    def test_members_start_and_end(self):
        result = parse("CC1CCCC1")
        ring = result.rings[0]
        assert ring.members[0] == ring.start == 1
        assert ring.members[-1] == ring.end == 5

    def test_ring_closed_inside_branch(self):
        result = parse("c1ccc(cc1)C")
        ring = result.rings[0]
        assert len(ring.members) == 6
        assert ring.is_aromatic

    def test_fused_rings_take_longest_path(self):
        result = parse("c1ccc2ccccc2c1")
        outer, inner = result.rings
        assert len(inner.members) == 6
        assert len(outer.members) == 10

    def test_fused_bonds_all_aromatic(self):
        result = parse("c1ccc2ccccc2c1")
        bonds = [b.type for g in result.groups for b in g.bonds]
        assert bonds == [BondType.AROMATIC] * 11

    def test_spiro(self):
        result = parse("C12(CCC1)CCC2")
        assert [len(r.members) for r in result.rings] == [4, 4]

    def test_path_ceiling_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="smilekit.rings"):
            result = parse("c1ccc2ccccc2c1", max_ring_paths=1)
        assert "stopped after 1 candidate paths" in caplog.text
        assert len(result.rings[0].members) == 10

    def test_acene_string(self):
        assert acene(3) == "c1ccc2cc3ccccc3cc2c1"
        assert acene(12).count("%") == 6

    def test_step_ceiling_bounds_fused_search(self, caplog):
        with caplog.at_level(logging.WARNING, logger="smilekit.rings"):
            result = parse(acene(16), max_ring_steps=2_000)
        assert len(result.rings) == 16
        assert "steps; using the longest found" in caplog.text
        assert len(result.rings[0].members) == 66
        assert len(result.rings[-1].members) == 6

    def test_search_stops_at_step_ceiling(self):
        mol = parse(acene(16), max_ring_steps=2_000).molecules[0]
        search = mol.search_paths(0, 65, max_steps=500)
        assert not search.complete
        assert search.steps == 500
        assert max(len(p) for p in search.paths) == 65


class TestRingFunctions:
    """Test the resolution functions directly."""

    def test_close_rings_unclosed(self):
        result = parse("CC")
        ring = Ring(id=0, digit=3, start=0, members=[0])
        with pytest.raises(Diagnostic, match="unclosed ring '3'") as exc_info:
            close_rings([ring], result.group_map, "CC")
        assert exc_info.value.ring_digit == 3

    def test_close_rings_bond_type(self):
        result = parse("CCC")
        ring = Ring(id=0, digit=1, start=0, end=2, is_aromatic=True, members=[0, 1, 2])
        close_rings([ring], result.group_map, "CCC")
        assert result.molecules[0].get_bond(0, 2).type is BondType.AROMATIC

    def test_resolve_unclosed(self):
        mol = parse("CC").molecules[0]
        ring = Ring(id=0, digit=4, start=0, members=[0])
        with pytest.raises(Diagnostic, match="unclosed ring '4'"):
            resolve_ring(mol, ring)

    def test_close_rings_uses_explicit_bond(self):
        result = parse("CCC")
        ring = Ring(id=0, digit=1, start=0, end=2, is_aromatic=False,
                    bond_type=BondType.DOUBLE, members=[0, 1, 2])
        close_rings([ring], result.group_map, "CCC")
        assert result.molecules[0].get_bond(0, 2).type is BondType.DOUBLE

    def test_resolve_without_path(self):
        mol = Molecule([AtomGroup(id=0, elements={"C": 1}), AtomGroup(id=1, elements={"C": 1})])
        ring = Ring(id=0, digit=1, start=0, end=1, is_aromatic=False, members=[0, 1])
        resolve_ring(mol, ring)
        assert ring.members == [0, 1]

    def test_resolution_error_has_context(self):
        with pytest.raises(RingError, match="Error whilst resolving ring '2'"):
            parse("C1CC2CCCC1cc2")

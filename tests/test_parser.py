"""Tests for the SMILES parser.

Structure checks use small hand-verified molecules; the fixture lists in
conftest exercise the parser over a broader range of notation.
"""

import pytest

from smilekit import (
    AtomGroup,
    BondError,
    BondType,
    ParsedSmiles,
    ParseError,
    ParseOptions,
    RingError,
    SmilesParser,
    ValenceError,
    parse,
)


def bond_types(result: ParsedSmiles) -> list[BondType]:
    return [bond.type for group in result.groups for bond in group.bonds]


class TestBasicParsing:
    """Test basic SMILES parsing functionality."""

    def test_parse_returns_result(self):
        result = parse("C")
        assert isinstance(result, ParsedSmiles)
        assert len(result.molecules) == 1

    def test_single_carbon(self):
        result = parse("C")
        group = result.groups[0]
        assert isinstance(group, AtomGroup)
        assert group.elements == {"C": 1}
        assert group.smiles_pos == 0
        assert group.smiles_len == 1

    def test_ethanol_chain(self):
        result = parse("CCO")
        mol = result.molecules[0]
        assert [g.symbol for g in mol] == ["C", "C", "O"]
        assert mol.get_bond(0, 1).type is BondType.SINGLE
        assert mol.get_bond(1, 2).type is BondType.SINGLE
        assert mol.get_bond(0, 2) is None
        assert mol.bond_count(1) == 2

    def test_ethanol_formula(self):
        result = parse("CCO", add_implicit_hydrogens=True)
        assert result.molecular_formula() == "C2H6O"

    def test_simple_chain(self, simple_smiles):
        for smiles in simple_smiles:
            result = parse(smiles)
            assert len(result.groups) > 0

    def test_two_letter_atoms(self):
        result = parse("ClCCBr")
        assert [g.symbol for g in result.groups] == ["Cl", "C", "C", "Br"]

    @pytest.mark.parametrize("smiles,bond_type", [
        ("C-C", BondType.SINGLE),
        ("C=C", BondType.DOUBLE),
        ("C#C", BondType.TRIPLE),
    ])
    def test_explicit_bonds(self, smiles, bond_type):
        assert bond_types(parse(smiles)) == [bond_type]

    def test_empty_string(self):
        result = parse("")
        assert len(result.molecules) == 1
        assert len(result.molecules[0]) == 0
        assert result.generate_smiles() == ""

    def test_positions_recorded(self):
        result = parse("C[NH4+]Cl")
        assert [(g.smiles_pos, g.smiles_len) for g in result.groups] == [
            (0, 1), (1, 6), (7, 2),
        ]

    def test_ids_unique_across_molecules(self):
        result = parse("CC.O.N")
        ids = [g.id for g in result.groups]
        assert ids == sorted(set(ids))

    def test_explicit_single_bond_same_as_implicit(self):
        assert bond_types(parse("C-C")) == bond_types(parse("CC")) == [BondType.SINGLE]
        assert parse("C-C").generate_smiles() == "CC"


class TestBranches:
    """Test branch parsing."""

    def test_branch_bonds_to_parent(self):
        mol = parse("CC(C)C").molecules[0]
        assert sorted(mol.neighbors(1)) == [0, 2, 3]
        assert mol.groups[2].chain_depth == 1
        assert mol.groups[3].chain_depth == 0

    def test_branch_bond_symbol(self):
        mol = parse("CC(=O)O").molecules[0]
        assert mol.get_bond(1, 2).type is BondType.DOUBLE
        assert mol.get_bond(1, 3).type is BondType.SINGLE

    def test_nested_branches(self):
        mol = parse("C(C(C(C)))").molecules[0]
        assert [g.chain_depth for g in mol] == [0, 1, 2, 3]
        assert mol.get_bond(2, 3) is not None

    def test_multiple_branches(self):
        mol = parse("C(C)(C)(C)C").molecules[0]
        assert sorted(mol.neighbors(0)) == [1, 2, 3, 4]

    def test_branch_depth_limit(self):
        with pytest.raises(ParseError, match="nested deeper than 2"):
            parse("C(C(C(C)))", max_branch_depth=2)

    def test_branch_depth_at_limit(self):
        result = parse("C(C(C))", max_branch_depth=2)
        assert len(result.groups) == 3


class TestRings:
    """Test ring closures."""

    def test_benzene(self):
        result = parse("c1ccccc1", add_implicit_hydrogens=True)
        mol = result.molecules[0]
        ring = result.rings[0]
        assert ring.is_aromatic is True
        assert len(ring.members) == 6
        assert bond_types(result).count(BondType.AROMATIC) == 6
        for gid in ring.members:
            assert mol.groups[gid].is_lowercase
            assert mol.count_bonded_elements(gid, "H", include_implicit=True) == 1

    def test_cyclopropane(self):
        result = parse("C1CC1")
        ring = result.rings[0]
        assert len(ring.members) == 3
        assert ring.is_aromatic is False
        assert ring.digit == 1
        assert result.molecules[0].get_bond(0, 2) is not None

    def test_ring_in_molecule(self):
        result = parse("C1CC1")
        assert result.molecules[0].rings == result.rings

    def test_percent_ring(self):
        result = parse("C%10CC%10")
        assert result.rings[0].digit == 10
        assert len(result.rings[0].members) == 3

    def test_ring_digit_reuse(self):
        result = parse("C1CC1C1CC1")
        assert len(result.rings) == 2
        assert all(len(r.members) == 3 for r in result.rings)

    def test_fused_rings(self):
        result = parse("C1CC2CCCCC2C1")
        assert len(result.rings) == 2
        assert len(result.rings[1].members) == 6

    def test_substituent_excluded_from_ring(self):
        result = parse("CC(=O)Nc1ccc(O)cc1")
        ring = result.rings[0]
        assert len(ring.members) == 6
        assert all(result.group_map[gid].symbol == "C" for gid in ring.members)

    def test_uppercase_aromatic_bonds(self):
        result = parse("C1:C:C:C:C:C1")
        ring = result.rings[0]
        assert ring.is_aromatic is True
        assert set(bond_types(result)) == {BondType.AROMATIC}

    def test_kekule_ring_is_not_aromatic(self):
        result = parse("C1=CC=CC=C1")
        assert result.rings[0].is_aromatic is False

    def test_aromatic_rings(self, aromatic_smiles):
        for smiles in aromatic_smiles:
            result = parse(smiles)
            assert any(r.is_aromatic for r in result.rings), smiles

    def test_ring_smiles(self, ring_smiles):
        for smiles in ring_smiles:
            result = parse(smiles)
            assert result.rings, smiles
            assert all(r.is_closed for r in result.rings)

    @pytest.mark.parametrize("smiles", ["C1CC=1", "C=1CC1", "C=1CC=1"])
    def test_closure_bond_symbol(self, smiles):
        result = parse(smiles)
        assert result.molecules[0].get_bond(0, 2).type is BondType.DOUBLE
        assert bond_types(result).count(BondType.DOUBLE) == 1

    def test_closure_bond_only_on_its_ring(self):
        result = parse("C1CC2CC#1C2")
        assert result.molecules[0].get_bond(0, 4).type is BondType.TRIPLE
        assert result.molecules[0].get_bond(2, 5).type is BondType.SINGLE

    def test_conflicting_closure_bonds(self):
        with pytest.raises(BondError, match="conflicting bonds"):
            parse("C=1CC#1")


class TestCharges:
    """Test bracket charges and charge clauses."""

    @pytest.mark.parametrize("smiles,charge", [
        ("[NH4+]", 1),
        ("[Cl-]", -1),
        ("[O-2]", -2),
        ("[Fe+++]", 3),
        ("C{+}", 1),
        ("O{2-}", -2),
        ("C{--}", -2),
        ("C{+3}", 3),
    ])
    def test_charge(self, smiles, charge):
        assert parse(smiles).groups[0].charge == charge

    def test_charged_smiles(self, charged_smiles):
        for smiles in charged_smiles:
            result = parse(smiles)
            assert any(g.charge != 0 for g in result.groups), smiles

    def test_charge_clause_extends_atom_text(self):
        group = parse("C{2-}").groups[0]
        assert group.smiles_len == 5

    def test_second_charge_rejected(self):
        with pytest.raises(ParseError, match="unexpected charge clause"):
            parse("[NH4+]{+}")

    def test_cumulative_charge(self):
        assert parse("[NH4+]{+}", cumulative_charge=True).groups[0].charge == 2
        assert parse("C{+}{+}", cumulative_charge=True).groups[0].charge == 2

    def test_radical_rejects_clause(self):
        with pytest.raises(ParseError, match="unexpected charge clause"):
            parse("[CH3.]{+}")

    def test_invalid_charge_string(self):
        with pytest.raises(ParseError, match="invalid charge string"):
            parse("C{x}")

    def test_unmatched_brace(self):
        with pytest.raises(ParseError, match="unmatched brace"):
            parse("C{+")


class TestBracketAtoms:
    """Test bracket atom parsing."""

    def test_isotopes(self, isotope_smiles):
        for smiles in isotope_smiles:
            assert parse(smiles).groups[0].atomic_mass is not None

    def test_isotope_value(self):
        group = parse("[13CH4]").groups[0]
        assert group.atomic_mass == 13
        assert group.elements == {"C": 1, "H": 4}

    def test_radical(self):
        assert parse("[CH3.]").groups[0].is_radical

    def test_bracket_in_chain(self):
        mol = parse("C[N+](=O)[O-]").molecules[0]
        assert [g.symbol for g in mol] == ["C", "N", "O", "O"]
        assert mol.get_bond(1, 2).type is BondType.DOUBLE
        assert mol.get_bond(1, 3).type is BondType.SINGLE

    def test_lowercase_bracket_in_ring(self):
        result = parse("c1cc[nH]c1")
        nh = result.groups[3]
        assert nh.is_lowercase
        assert nh.elements == {"N": 1, "H": 1}
        assert nh.id in result.rings[0].members

    def test_show_implicit_atomic_mass(self):
        result = parse("CO[13C][Cl-]", show_implicit_atomic_mass=True)
        assert [g.atomic_mass for g in result.groups] == [12, 16, 13, 35]


class TestSeparatedStructures:
    """Test "." separated structures."""

    def test_two_molecules(self):
        result = parse("CC.O")
        assert len(result.molecules) == 2
        assert [len(m) for m in result.molecules] == [2, 1]
        assert result.molecules[1].all_bonds(2) == []

    def test_multi_component(self, multi_component_smiles):
        for smiles in multi_component_smiles:
            result = parse(smiles)
            assert len(result.molecules) == smiles.count(".") + 1

    @pytest.mark.parametrize("smiles", ["C..C", ".C", "C."])
    def test_bad_separator(self, smiles):
        with pytest.raises(ParseError, match="separator"):
            parse(smiles)

    def test_bond_across_separator(self):
        with pytest.raises(BondError, match="separated structures"):
            parse("C.=C")

    def test_ring_bridging_molecules(self):
        with pytest.raises(RingError, match="cannot bridge molecules") as exc_info:
            parse("C1.C1")
        assert exc_info.value.ring_digit == 1

    def test_ring_digit_after_separator(self):
        with pytest.raises(ParseError, match="unexpected ring digit"):
            parse("C.1C")

    @pytest.mark.parametrize("smiles,message", [
        ("C.(O)C", "unexpected branch after separator"),
        ("C>(O)>C", "unexpected branch after separator"),
        ("C.{+}O", "unexpected charge clause after separator"),
    ])
    def test_nothing_attaches_across_separator(self, smiles, message):
        with pytest.raises(ParseError, match=message):
            parse(smiles)

    @pytest.mark.parametrize("smiles,message", [
        ("C=(O)C", "before branch"),
        ("C={+}", "before charge clause"),
    ])
    def test_bond_must_reach_an_atom(self, smiles, message):
        with pytest.raises(BondError, match=message):
            parse(smiles)


class TestReactions:
    """Test ">" reaction separators."""

    def test_empty_reagents(self):
        result = parse("CC>>CCO")
        assert result.reaction_indexes == [0, 0]
        assert result.is_reaction
        assert result.reagents() == []
        assert len(result.reactants()) == 1
        assert len(result.products()) == 1
        assert len(result.products()[0]) == 3

    def test_with_reagent(self):
        result = parse("CC>O>CCO")
        assert result.reaction_indexes == [0, 1]
        assert [len(m) for m in result.reagents()] == [1]

    def test_multiple_reactants(self):
        result = parse("CC.O>>CCO")
        assert result.reaction_indexes == [1, 1]
        assert len(result.reactants()) == 2

    def test_bracket_reagent(self):
        result = parse("C=C.O>[H+]>CCO")
        assert result.reaction_indexes == [1, 2]
        assert next(iter(result.reagents()[0])).charge == 1

    def test_reaction_smiles(self, reaction_smiles):
        for smiles in reaction_smiles:
            result = parse(smiles)
            assert len(result.reaction_indexes) == 2

    def test_not_a_reaction(self):
        result = parse("CC.O")
        assert not result.is_reaction
        assert len(result.reactants()) == 2
        assert result.products() == []

    def test_incomplete_reaction(self):
        with pytest.raises(ParseError, match='">" expected'):
            parse("CC>CC")

    def test_third_marker_needs_option(self):
        with pytest.raises(ParseError):
            parse("C>C>C>C>C")
        result = parse("C>C>C>C>C", enable_multiple_reactions=True)
        assert result.reaction_indexes == [0, 1, 2, 3]

    def test_bond_across_reaction(self):
        with pytest.raises(BondError):
            parse("CC>=C>C")


class TestOptions:
    """Test feature toggles."""

    @pytest.mark.parametrize("smiles,option", [
        ("C(C)C", "enable_branches"),
        ("C1CC1", "enable_rings"),
        ("[Na+]", "enable_bracket_atoms"),
        ("C{+}", "enable_charge_clauses"),
        ("C1:C:C:C:C:C1", "enable_aromatic_bonds"),
        ("C.C", "enable_separated_structures"),
        ("C>>C", "enable_reactions"),
        ("[CH3.]", "enable_radicals"),
    ])
    def test_disabled_feature_rejected(self, smiles, option):
        parse(smiles)
        with pytest.raises(ParseError):
            parse(smiles, **{option: False})

    def test_stored_options(self):
        parser = SmilesParser(ParseOptions(add_implicit_hydrogens=True))
        assert parser.parse("C").molecular_formula() == "CH4"

    def test_override_does_not_change_stored_options(self):
        parser = SmilesParser()
        result = parser.parse("CCO", add_implicit_hydrogens=True)
        assert result.options.add_implicit_hydrogens
        assert parser.options.add_implicit_hydrogens is False
        assert parser.parse("CCO").molecular_formula() == "C2O"

    def test_unknown_override(self):
        with pytest.raises(TypeError, match="no_such_option"):
            parse("C", no_such_option=True)

    def test_options_are_frozen(self):
        options = ParseOptions()
        with pytest.raises(AttributeError):
            options.enable_rings = False

    def test_override_copies(self):
        options = ParseOptions()
        changed = options.override(enable_rings=False)
        assert options.enable_rings
        assert not changed.enable_rings


class TestImplicitHydrogens:
    """Test implicit hydrogen insertion."""

    @pytest.mark.parametrize("smiles,h_count", [
        ("C", 4),
        ("CC", 6),
        ("O", 2),
        ("N", 3),
        ("C=C", 4),
        ("C#C", 2),
        ("CO", 4),
        ("CC(=O)O", 4),
        ("c1ccccc1", 6),
        ("c1ccncc1", 5),
        ("[NH4+]", 0),
        ("C{+}", 0),
        ("[CH3.]", 0),
    ])
    def test_hydrogen_count(self, smiles, h_count):
        result = parse(smiles, add_implicit_hydrogens=True)
        hydrogens = [g for g in result.groups if g.is_implicit]
        assert len(hydrogens) == h_count
        assert all(g.elements == {"H": 1} for g in hydrogens)

    def test_hydrogens_are_bonded(self):
        result = parse("C", add_implicit_hydrogens=True)
        mol = result.molecules[0]
        assert mol.bond_count(0) == 4
        assert len(mol) == 5

    def test_higher_valence(self):
        # Five bonds to N already; nothing to add
        result = parse("CN(=O)=O", add_implicit_hydrogens=True)
        assert result.molecular_formula() == "CH3NO2"


class TestBondCountChecks:
    """Test the organic valence check."""

    def test_valid(self):
        parse("CCO", add_implicit_hydrogens=True, check_bond_counts=True)
        parse("O=C=O", check_bond_counts=True)

    def test_pentavalent_carbon(self):
        with pytest.raises(ValenceError) as exc_info:
            parse("C(C)(C)(C)(C)C", add_implicit_hydrogens=True, check_bond_counts=True)
        problem = exc_info.value.problem
        assert problem.group_id == 0
        assert problem.element == "C"
        assert problem.bond_count == 5
        assert problem.allowed == (4,)
        assert "invalid bond count for organic atom 'C': 5. Expected 4." in str(exc_info.value)

    def test_missing_hydrogens(self):
        with pytest.raises(ValenceError):
            parse("C", check_bond_counts=True)

    def test_valence_error_is_not_parse_error(self):
        with pytest.raises(ValenceError) as exc_info:
            parse("C", check_bond_counts=True)
        assert not isinstance(exc_info.value, ParseError)

    def test_ions_skipped(self):
        parse("[NH4+].[Cl-]", check_bond_counts=True)


class TestComplexMolecules:
    """Test realistic molecules."""

    def test_complex(self, complex_smiles):
        for smiles in complex_smiles:
            result = parse(smiles, add_implicit_hydrogens=True)
            assert len(result.groups) > 0

    @pytest.mark.parametrize("smiles,formula", [
        ("CC(=O)OC1=CC=CC=C1C(=O)O", "C9H8O4"),
        ("CN1C=NC2=C1C(=O)N(C(=O)N2C)C", "C8H10N4O2"),
        ("CC(C)Cc1ccc(cc1)C(C)C(=O)O", "C13H18O2"),
        ("CC(=O)Nc1ccc(O)cc1", "C8H9NO2"),
    ])
    def test_drug_formulas(self, smiles, formula):
        result = parse(smiles, add_implicit_hydrogens=True)
        assert result.molecular_formula() == formula

    def test_invalid(self, invalid_smiles):
        for smiles in invalid_smiles:
            with pytest.raises(ParseError):
                parse(smiles)

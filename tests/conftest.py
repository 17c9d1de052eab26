"""Pytest configuration and fixtures for smilekit tests."""

import pytest


@pytest.fixture
def simple_smiles():
    """Simple SMILES strings for basic testing."""
    return [
        "C",
        "CC",
        "CCC",
        "CCO",
        "C=C",
        "C#C",
        "C=O",
        "O=C=O",
        "N#N",
        "CC(C)C",
        "CC(=O)O",
        "ClCCBr",
    ]


@pytest.fixture
def aromatic_smiles():
    """Aromatic SMILES strings."""
    return [
        "c1ccccc1",
        "c1ccncc1",
        "c1ccoc1",
        "c1ccsc1",
        "c1cc[nH]c1",
        "Cc1ccccc1",
        "c1ccc2ccccc2c1",
    ]


@pytest.fixture
def ring_smiles():
    """Non-aromatic ring SMILES strings."""
    return [
        "C1CC1",
        "C1CCC1",
        "C1CCCCC1",
        "C1=CC=CC=C1",
        "C1CC2CCCCC2C1",
        "C%10CC%10",
        "O=C1CCCCC1",
    ]


@pytest.fixture
def charged_smiles():
    """SMILES with bracket charges and charge clauses."""
    return [
        "[NH4+]",
        "[Cl-]",
        "[O-2]",
        "[Fe+++]",
        "[Na+].[Cl-]",
        "C{+}",
        "O{2-}",
        "C[N+](=O)[O-]",
    ]


@pytest.fixture
def isotope_smiles():
    """SMILES with isotope labels."""
    return [
        "[13C]",
        "[2H]",
        "[13CH4]",
        "[18O]",
    ]


@pytest.fixture
def multi_component_smiles():
    """SMILES with separated structures."""
    return [
        "C.C",
        "CC.O",
        "[Na+].[Cl-]",
        "CCO.O.C",
    ]


@pytest.fixture
def reaction_smiles():
    """Reaction SMILES strings."""
    return [
        "CC>>CCO",
        "CC>O>CCO",
        "CC.O>>CCO",
        "C=C.O>[H+]>CCO",
    ]


@pytest.fixture
def complex_smiles():
    """Complex drug-like molecules."""
    return [
        "CC(=O)OC1=CC=CC=C1C(=O)O",
        "CN1C=NC2=C1C(=O)N(C(=O)N2C)C",
        "CC(C)Cc1ccc(cc1)C(C)C(=O)O",
        "CC(=O)Nc1ccc(O)cc1",
        "c1ccc2ccccc2c1",
        "OC1CCCCC1",
    ]


@pytest.fixture
def invalid_smiles():
    """Strings every default parser must reject."""
    return [
        "C1CC",
        "C11",
        "C(C",
        "C[Na",
        "(C)C",
        "C()",
        "C=",
        "=C",
        "Xy",
        "c",
        "C..C",
        ".C",
        "C.",
        "CC>CC",
        "[]",
    ]

"""
smilekit - Pure Python SMILES parsing library.

A zero-dependency library that turns SMILES strings (including separated
structures and reactions) into validated molecular graphs, with formulas,
relative mass, substructure queries and re-serialization.

    >>> from smilekit import parse
    >>> result = parse("CCO", add_implicit_hydrogens=True)
    >>> result.molecular_formula()
    'C2H6O'
    >>> result.generate_smiles()
    'CCO'

Submodules:
    smilekit.formula - Hill ordering and formula strings
    smilekit.match   - Declarative substructure matching
    smilekit.layout  - 2D position data for renderers
"""

__version__ = "0.1.0"

# Core types
from smilekit.types import AtomGroup, Bond, Molecule, Ring, ValenceProblem

# Parsing and writing
from smilekit.options import ParseOptions
from smilekit.parser import parse, SmilesParser
from smilekit.result import ParsedSmiles
from smilekit.writer import to_smiles, SmilesWriter
from smilekit.match import MatchAtom

# Exceptions
from smilekit.exceptions import BondError, ChemError, ParseError, RingError, ValenceError

# Element data
from smilekit.elements import Element, BondType, ORGANIC_SUBSET, AROMATIC_SUBSET

# Submodules
from smilekit import formula, layout, match

__all__ = [
    # Types
    "AtomGroup", "Bond", "Molecule", "Ring", "ValenceProblem",
    # Parsing
    "parse", "SmilesParser", "ParseOptions", "ParsedSmiles",
    # Writing
    "to_smiles", "SmilesWriter",
    # Matching
    "MatchAtom",
    # Exceptions
    "ChemError", "ParseError", "BondError", "RingError", "ValenceError",
    # Elements
    "Element", "BondType", "ORGANIC_SUBSET", "AROMATIC_SUBSET",
    # Submodules
    "formula", "layout", "match",
]

#!/usr/bin/env python3
"""
Benchmark script for smilekit parsing, writing and formula generation.

Usage:
    python benchmarks/bench_parse.py [--extended]

Run from the repository root to use the local version:
    python benchmarks/bench_parse.py

Options:
    --extended    Run every stage on every molecule and compare with RDKit parsing
"""

import sys
import os
import time
from dataclasses import dataclass
from typing import Callable, Optional

# Ensure local smilekit is used (not installed version)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Test molecules with varying complexity
TEST_MOLECULES = {
    "small_ether": "CCOCC",
    "medium_drug": "CC(C)Cc1ccc(cc1)C(C)C(=O)O",  # Ibuprofen
    "caffeine": "CN1C=NC2=C1C(=O)N(C(=O)N2C)C",
    "drug_like": "Cc1ccc(cc1Nc2nccc(n2)c3cccnc3)NC(=O)c4ccc(cc4)CN5CCN(CC5)C",  # Imatinib-like
    "reaction": "CC(=O)O.OCC>[H+]>CC(=O)OCC.O",
}

# Default molecule for quick benchmark
DEFAULT_MOLECULE = TEST_MOLECULES["drug_like"]

ITERATIONS = 1000
EXTENDED_ITERATIONS = 500


@dataclass
class BenchmarkResult:
    """Results from a single benchmark run."""
    name: str
    smiles: str
    time_seconds: float
    iterations: int
    num_atoms: int

    @property
    def time_per_call_ms(self) -> float:
        return (self.time_seconds / self.iterations) * 1000

    @property
    def time_per_atom_us(self) -> float:
        """Microseconds per atom per call."""
        return (self.time_seconds / self.iterations / self.num_atoms) * 1_000_000


def count_atoms(smiles: str) -> int:
    """Count heavy atom groups using smilekit."""
    from smilekit import parse
    return len(parse(smiles).groups)


def _time(name: str, smiles: str, iterations: int, call: Callable[[], object]) -> BenchmarkResult:
    # Warmup
    call()

    start = time.perf_counter()
    for _ in range(iterations):
        call()
    end = time.perf_counter()

    return BenchmarkResult(
        name=name,
        smiles=smiles,
        time_seconds=end - start,
        iterations=iterations,
        num_atoms=count_atoms(smiles),
    )


def benchmark_stages(smiles: str, iterations: int) -> list[BenchmarkResult]:
    """Benchmark each smilekit stage on one SMILES string."""
    from smilekit import parse

    result = parse(smiles, add_implicit_hydrogens=True)

    return [
        _time("parse", smiles, iterations, lambda: parse(smiles)),
        _time("parse+H", smiles, iterations,
              lambda: parse(smiles, add_implicit_hydrogens=True)),
        _time("write", smiles, iterations, result.generate_smiles),
        _time("formula", smiles, iterations, result.molecular_formula),
        _time("condensed", smiles, iterations, result.condensed_formula),
    ]


def benchmark_rdkit(smiles: str, iterations: int) -> BenchmarkResult:
    """Benchmark RDKit parsing of the same string."""
    from rdkit import Chem

    if Chem.MolFromSmiles(smiles) is None:
        raise ValueError(f"RDKit failed to parse SMILES: {smiles}")

    return _time("rdkit", smiles, iterations, lambda: Chem.MolFromSmiles(smiles))


def run_single_benchmark():
    """Run basic single-molecule benchmark."""
    print("=" * 70)
    print("smilekit Benchmark")
    print("=" * 70)
    print(f"\nTest molecule ({len(DEFAULT_MOLECULE)} chars):")
    print(f"  {DEFAULT_MOLECULE[:60]}...")
    print(f"\nIterations: {ITERATIONS}")
    print("-" * 70)

    for result in benchmark_stages(DEFAULT_MOLECULE, ITERATIONS):
        print(f"  {result.name:<10} {result.time_seconds:.3f}s ({result.time_per_call_ms:.4f}ms per call)")

    print("\nRunning RDKit parse...", end=" ", flush=True)
    try:
        rdkit_result = benchmark_rdkit(DEFAULT_MOLECULE, ITERATIONS)
        print("done")
        print(f"  Time: {rdkit_result.time_seconds:.3f}s ({rdkit_result.time_per_call_ms:.4f}ms per call)")
    except ImportError:
        print("SKIPPED (rdkit not installed)")
    except Exception as e:
        print(f"ERROR: {e}")


def run_extended_benchmark():
    """Run extended benchmark with multiple molecules and detailed metrics."""
    print("=" * 90)
    print("EXTENDED smilekit Benchmark")
    print("=" * 90)
    print(f"\nIterations per molecule: {EXTENDED_ITERATIONS}")
    print("-" * 90)

    results: dict[str, dict[str, Optional[BenchmarkResult]]] = {}

    for name, smiles in TEST_MOLECULES.items():
        print(f"\n[{name}] ({len(smiles)} chars)")
        print(f"  SMILES: {smiles[:50]}{'...' if len(smiles) > 50 else ''}")

        results[name] = {r.name: r for r in benchmark_stages(smiles, EXTENDED_ITERATIONS)}
        results[name]["rdkit"] = None

        try:
            results[name]["rdkit"] = benchmark_rdkit(smiles, EXTENDED_ITERATIONS)
        except ImportError:
            print("  RDKit:  SKIPPED (not installed)")
        except Exception as e:
            print(f"  RDKit:  ERROR ({e})")

    stages = ["parse", "parse+H", "write", "formula", "condensed", "rdkit"]

    print("\n" + "=" * 90)
    print("Milliseconds per call")
    print("=" * 90)

    header = f"{'Molecule':<14} {'Atoms':>6} " + " ".join(f"{s:>10}" for s in stages)
    print(header)
    print("-" * 90)

    for name in TEST_MOLECULES:
        row = results[name]
        cells = [
            f"{row[s].time_per_call_ms:>10.4f}" if row[s] else f"{'N/A':>10}"
            for s in stages
        ]
        print(f"{name:<14} {row['parse'].num_atoms:>6} " + " ".join(cells))

    print("\n" + "-" * 90)
    print("Parse Per-Atom Cost")
    print("-" * 90)

    parse_results = [r["parse"] for r in results.values()]
    avg_per_atom = sum(r.time_per_atom_us for r in parse_results) / len(parse_results)
    print(f"Average parse time per atom: {avg_per_atom:.2f} µs")

    ratios = [
        r["parse"].time_seconds / r["rdkit"].time_seconds
        for r in results.values() if r["rdkit"]
    ]
    if ratios:
        avg_ratio = sum(ratios) / len(ratios)
        if avg_ratio < 1:
            print(f"\nsmilekit parses on average {1/avg_ratio:.2f}x FASTER than RDKit")
        else:
            print(f"\nsmilekit parses on average {avg_ratio:.2f}x SLOWER than RDKit")


def main():
    if "--extended" in sys.argv or "-e" in sys.argv:
        run_extended_benchmark()
    else:
        run_single_benchmark()
        print("\n" + "-" * 70)
        print("TIP: Run with --extended for detailed multi-molecule analysis")


if __name__ == "__main__":
    main()

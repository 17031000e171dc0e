"""
Pytest configuration and shared fixtures for spectral hash key tests.
"""

import sys
from pathlib import Path

import pytest

# Ensure the package is importable when running tests from a checkout
repo_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(repo_root))

from spectral_hk.data.bond_orders import assign_bond_orders
from spectral_hk.data.graph_construction import build_graph
from spectral_hk.data.identifier import parse_identifier
from spectral_hk.data.ring_perception import perceive_rings
from spectral_hk.spectral.digest import SpectralHasher

METHANE = "InChI=1S/CH4/h1H4"
ETHANOL = "InChI=1S/C2H6O/c1-2-3/h3H,2H2,1H3"
PROPANE = "InChI=1S/C3H8/c1-3-2/h3H2,1-2H3"
CYCLOPROPANE = "InChI=1S/C3H6/c1-2-3-1/h1-3H2"
ETHYLENE = "InChI=1S/C2H4/c1-2/h1-2H2"
ACETYLENE = "InChI=1S/C2H2/c1-2/h1-2H"
BENZENE = "InChI=1S/C6H6/c1-2-4-6-5-3-1/h1-6H"
CYCLOHEXANE = "InChI=1S/C6H12/c1-2-4-6-5-3-1/h1-6H2"
NAPHTHALENE = "InChI=1S/C10H8/c1-2-6-10-8-4-3-7-9(10)5-1/h1-8H"
NORBORNANE = "InChI=1S/C7H12/c1-2-7-4-3-6(1)5-7/h6-7H,1-5H2"
FURAN = "InChI=1S/C4H4O/c1-2-4-5-3-1/h1-4H"
THIOPHENE = "InChI=1S/C4H4S/c1-2-4-5-3-1/h1-4H"
PYRROLE = "InChI=1S/C4H5N/c1-2-4-5-3-1/h1-5H"
CYCLOPENTADIENE = "InChI=1S/C5H6/c1-2-4-5-3-1/h1-4H,5H2"
ACETIC_ACID = "InChI=1S/C2H4O2/c1-2(3)4/h1H3,(H,3,4)"
SODIUM_ACETATE = "InChI=1S/C2H4O2.Na/c1-2(3)4;/h1H3,(H,3,4);/q;+1/p-1"
METHOXIDE = "InChI=1S/CH3O/c1-2/h1H3/q-1"
TETRAMETHYLAMMONIUM = "InChI=1S/C4H12N/c1-5(2,3)4/h1-4H3/q+1"
ETHYL_RADICAL = "InChI=1S/C2H5/c1-2/h1H2,2H3"
DICARBON = "InChI=1S/C2/c1-2"


@pytest.fixture
def hasher():
    """Fresh hashing handle with default settings."""
    return SpectralHasher()


@pytest.fixture
def make_graph():
    """Build a graph from an identifier, optionally running ring and bond-order perception."""

    def _make(identifier, rings=True, bonds=True, max_ring_size=None):
        graph = build_graph(parse_identifier(identifier))
        if rings:
            perceive_rings(graph, max_ring_size)
        report = assign_bond_orders(graph) if bonds else None
        return graph, report

    return _make

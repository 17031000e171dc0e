"""
Spectral hash keys for InChI identifiers.

This package parses the connection, formula and hydrogen layers of an
InChI identifier into a molecular graph, perceives rings and bond orders,
and fingerprints the graph with the quantized spectrum of its normalized
Laplacian, chained with the identifier text through SHA-1.
"""

__version__ = "0.1.0"

# Import main components for easier access
from .spectral.digest import DigestResult, ErrorKind, SpectralHasher, compute_hashkey
from .data.identifier import parse_identifier
from .data.graph_construction import MolecularGraph, build_graph

__all__ = [
    "SpectralHasher",
    "DigestResult",
    "ErrorKind",
    "compute_hashkey",
    "parse_identifier",
    "MolecularGraph",
    "build_graph",
]

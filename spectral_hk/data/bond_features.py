"""
Bond dissociation energies and bond lengths.

Values are per element pair and bond order, in kJ/mol and picometres,
from the NIST Computational Chemistry Comparison and Benchmark Database.
Pairs without data report an energy of 0 and a length of 1000 pm.
"""

import logging
from typing import Dict, Tuple, Union

from .graph_construction import Edge, MolecularGraph

logger = logging.getLogger(__name__)

UNKNOWN_BOND = (0.0, 1000.0)

H, B, C, N, O, F, SI, P, S, CL, BR, I = 1, 5, 6, 7, 8, 9, 14, 15, 16, 17, 35, 53

# (lower atomic number, higher atomic number) -> (energy, length) or {order: (energy, length)}
BOND_TABLE: Dict[Tuple[int, int], Union[Tuple[float, float], Dict[int, Tuple[float, float]]]] = {
    (H, H): (432, 74), (H, B): (389, 119), (H, C): (411, 109), (H, N): (386, 101),
    (H, O): (459, 96), (H, F): (565, 92), (H, SI): (318, 148), (H, P): (322, 144),
    (H, S): (363, 134), (H, CL): (428, 127), (H, BR): (362, 141), (H, I): (295, 161),

    (B, B): (293, 170.2), (B, C): (536, 149.1), (B, F): (613, 130.7),
    (B, CL): (456, 175), (B, BR): (377, 188.8),

    (C, C): {1: (346, 154), 2: (602, 134), 3: (835, 120)},
    (C, N): {1: (305, 147), 2: (615, 129), 3: (887, 116)},
    (C, O): {1: (358, 143), 2: (799, 120), 3: (1072, 113)},
    (C, F): (485, 135), (C, SI): (318, 185), (C, P): (264, 184),
    (C, S): {1: (272, 182), 2: (573, 160)},
    (C, CL): (327, 177), (C, BR): (285, 194), (C, I): (213, 214),

    (N, N): {1: (167, 145), 2: (418, 125), 3: (942, 110)},
    (N, O): {1: (201, 140), 2: (607, 121)},
    (N, F): (283, 136), (N, SI): (355, 157.19), (N, S): (0, 149.7), (N, CL): (313, 175),

    (O, O): {1: (142, 148), 2: (494, 121)},
    (O, F): (190, 142), (O, SI): (452, 163),
    (O, P): {1: (335, 163), 2: (544, 150)},
    (O, S): {1: (0, 157.4), 2: (522, 143)},
    (O, I): (201, 1000),

    (F, F): (155, 142), (F, SI): (565, 160), (F, P): (490, 154), (F, S): (284, 156),

    (SI, SI): (222, 233), (SI, S): (293, 200), (SI, CL): (381, 202),
    (SI, BR): (310, 215), (SI, I): (234, 243),

    (P, P): (201, 221), (P, S): {2: (335, 186)}, (P, CL): (326, 203),
    (P, BR): (264, 1000), (P, I): (184, 1000),

    (S, S): {2: (425, 149)}, (S, CL): (255, 207),

    (CL, CL): (240, 199), (CL, I): (208, 232),
    (BR, BR): (190, 228), (BR, I): (175, 1000),
    (I, I): (148, 267),
}


def lookup_bond(first: int, second: int, order: int = 1) -> Tuple[float, float]:
    """
    Energy and length for a bond between two elements.

    Args:
        first: Atomic number of one end
        second: Atomic number of the other end
        order: Bond order

    Returns:
        Tuple of (energy in kJ/mol, length in pm)
    """
    entry = BOND_TABLE.get((min(first, second), max(first, second)))
    if entry is None:
        logger.debug(f"No bond data for {first}-{second}")
        return UNKNOWN_BOND
    if isinstance(entry, dict):
        entry = entry.get(order)
        if entry is None:
            logger.debug(f"No bond data for {first}-{second} of order {order}")
            return UNKNOWN_BOND
    return float(entry[0]), float(entry[1])


def bond_energy_length(graph: MolecularGraph, edge: Edge) -> Tuple[float, float]:
    """Energy and length of one graph edge at its current order."""
    return lookup_bond(graph.vertices[edge.u].atomic_number,
                       graph.vertices[edge.v].atomic_number,
                       edge.order)

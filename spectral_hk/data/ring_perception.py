"""
Ring perception: extract a cycle basis from a molecular graph.

Every candidate ring closes an edge ``(p, q)`` with a shortest path from
some vertex ``u`` to ``p`` and any simple path from ``u`` to ``q`` that
meets the first path only at ``u``. Candidates are accepted smallest
first, skipping rings already contained in an accepted ring and rings
that are a GF(2) combination of accepted rings, until the basis holds
``E - V + C`` rings.
"""

import logging
from typing import Dict, FrozenSet, List, Optional, Tuple

import numpy as np

from .graph_construction import MolecularGraph, Ring, VertexFlag

logger = logging.getLogger(__name__)

Path = Tuple[Tuple[int, ...], FrozenSet[int]]


def shortest_path_costs(graph: MolecularGraph) -> np.ndarray:
    """
    All-pairs path lengths by Floyd-Warshall.

    Unreachable pairs keep the sentinel cost ``n`` (no simple path is
    that long).
    """
    n = graph.vertex_count
    cost = np.full((n, n), n, dtype=np.int64)
    cost[graph.adjacency > 0] = 1
    np.fill_diagonal(cost, 0)
    for k in range(n):
        cost = np.minimum(cost, cost[:, k:k + 1] + cost[k:k + 1, :])
    return cost


def shortest_paths(graph: MolecularGraph, cost: np.ndarray, source: int, target: int) -> List[Path]:
    """All shortest paths from ``source`` to ``target`` as (edges, vertices-after-source)."""
    paths = []
    edges: List[int] = []
    vertices: List[int] = []
    total = cost[source, target]

    def walk(x: int):
        if x == target:
            paths.append((tuple(edges), frozenset(vertices)))
            return
        step = cost[source, x] + 1
        for edge in graph.incident_edges(x):
            y = edge.other(x)
            if cost[source, y] == step and step + cost[y, target] == total:
                edges.append(edge.index)
                vertices.append(y)
                walk(y)
                edges.pop()
                vertices.pop()

    if total < graph.vertex_count:
        walk(source)
    return paths


def simple_paths(graph: MolecularGraph, source: int, target: int,
                 max_length: Optional[int] = None) -> List[Path]:
    """All simple paths from ``source`` to ``target``, optionally capped in edge count."""
    paths = []
    edges: List[int] = []
    vertices: List[int] = []
    visited = [False] * graph.vertex_count
    visited[source] = True

    def walk(x: int):
        if x == target:
            paths.append((tuple(edges), frozenset(vertices)))
            return
        if max_length is not None and len(edges) >= max_length:
            return
        for edge in graph.incident_edges(x):
            y = edge.other(x)
            if visited[y]:
                continue
            visited[y] = True
            edges.append(edge.index)
            vertices.append(y)
            walk(y)
            edges.pop()
            vertices.pop()
            visited[y] = False

    walk(source)
    return paths


class CycleSpace:
    """Incremental GF(2) basis over edge-incidence bitsets."""

    def __init__(self):
        self._rows: Dict[int, int] = {}

    def __len__(self):
        return len(self._rows)

    @staticmethod
    def vector(edges) -> int:
        bits = 0
        for position in edges:
            bits ^= 1 << position
        return bits

    def add(self, edges) -> bool:
        """Add a cycle; return False if it is a combination of cycles already held."""
        bits = self.vector(edges)
        while bits:
            pivot = bits.bit_length() - 1
            row = self._rows.get(pivot)
            if row is None:
                self._rows[pivot] = bits
                return True
            bits ^= row
        return False


def ring_candidates(graph: MolecularGraph, cost: np.ndarray,
                    max_ring_size: Optional[int] = None) -> List[List[int]]:
    """
    Enumerate distinct ring candidates in discovery order.

    Each candidate is an edge list in cyclic order: the reversed path to
    ``p``, the path to ``q``, then the closing edge.
    """
    shortest_cache: Dict[Tuple[int, int], List[Path]] = {}
    simple_cache: Dict[Tuple[int, int], List[Path]] = {}
    path_limit = max_ring_size - 2 if max_ring_size is not None else None

    seen = set()
    candidates = []
    for u in range(graph.vertex_count):
        if graph.vertices[u].degree < 2:
            continue
        for edge in graph.edges:
            p, q = edge.u, edge.v
            if u == p or u == q:
                continue

            key = (u, p)
            if key not in shortest_cache:
                shortest_cache[key] = shortest_paths(graph, cost, u, p)
            to_p = shortest_cache[key]
            if not to_p:
                continue

            key = (u, q)
            if key not in simple_cache:
                simple_cache[key] = simple_paths(graph, u, q, path_limit)
            to_q = simple_cache[key]

            for p_edges, p_vertices in to_p:
                for q_edges, q_vertices in to_q:
                    if p_vertices & q_vertices:
                        continue
                    size = len(p_edges) + len(q_edges) + 1
                    if max_ring_size is not None and size > max_ring_size:
                        continue
                    ring = list(reversed(p_edges)) + list(q_edges) + [edge.index]
                    signature = frozenset(ring)
                    if signature in seen:
                        continue
                    seen.add(signature)
                    candidates.append(ring)
    return candidates


def perceive_rings(graph: MolecularGraph, max_ring_size: Optional[int] = None) -> List[Ring]:
    """
    Compute a cycle basis of ``graph`` and flag ring members.

    Args:
        graph: Graph with closed edges
        max_ring_size: Optional cap on candidate ring size

    Returns:
        The accepted rings, also stored on ``graph.rings``
    """
    graph.rings = []
    for edge in graph.edges:
        edge.ring = False
    for vertex in graph.vertices:
        vertex.flags &= ~VertexFlag.RING

    target = graph.cyclomatic_number()
    if target <= 0:
        return graph.rings

    cost = shortest_path_costs(graph)
    candidates = ring_candidates(graph, cost, max_ring_size)
    candidates.sort(key=len)

    space = CycleSpace()
    accepted: List[FrozenSet[int]] = []
    for candidate in candidates:
        edge_set = frozenset(candidate)
        if any(edge_set <= ring for ring in accepted):
            continue
        if not space.add(candidate):
            continue
        accepted.append(edge_set)
        ring = Ring(candidate)
        graph.rings.append(ring)
        for position in candidate:
            edge = graph.edges[position]
            edge.ring = True
            graph.vertices[edge.u].flags |= VertexFlag.RING
            graph.vertices[edge.v].flags |= VertexFlag.RING
        if len(graph.rings) == target:
            break

    if len(graph.rings) < target:
        message = f"Found {len(graph.rings)} of {target} rings"
        graph.messages.append(message)
        logger.warning(message)

    logger.debug(f"Ring sizes: {[ring.size for ring in graph.rings]}")
    return graph.rings

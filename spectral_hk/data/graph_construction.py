"""
Molecular graph construction from a parsed InChI identifier.

The graph is an arena: vertices and edges live in two lists owned by
``MolecularGraph`` and refer to each other by position. Vertex ``i`` of
the arena is atom ``i + 1`` of the identifier.
"""

import logging
from enum import IntFlag
from typing import Dict, List, Optional, Tuple

import numpy as np

from .formula import component_atom_count, format_formula
from .identifier import ParsedIdentifier
from .periodic import Element, HYDROGEN
from ..errors import GraphConsistencyError

logger = logging.getLogger(__name__)


class VertexFlag(IntFlag):
    """Per-vertex annotations."""
    NONE = 0
    RING = 1
    HETERO = 2
    CHIRAL = 4
    QUERY = 8


class Vertex:
    """Atom of the selected component."""

    __slots__ = ('index', 'degree', 'element', 'charge', 'hcount', 'hshare',
                 'hgroup', 'flags', 'edges')

    def __init__(self, index: int, degree: int):
        self.index = index
        self.degree = degree
        self.element: Optional[Element] = None
        self.charge = 0
        self.hcount = 0
        self.hshare = 0
        self.hgroup = 0
        self.flags = VertexFlag.NONE
        # One slot per incident edge, filled with edge positions during closure
        self.edges: List[Optional[int]] = [None] * degree

    @property
    def symbol(self) -> str:
        return self.element.symbol if self.element is not None else '*'

    @property
    def atomic_number(self) -> int:
        return self.element.atomic_number if self.element is not None else 0

    def __repr__(self):
        return (f"Vertex({self.index} {self.symbol} degree={self.degree} "
                f"hcount={self.hcount} hshare={self.hshare} hgroup={self.hgroup} "
                f"charge={self.charge})")


class Edge:
    """Undirected bond between arena positions ``u`` and ``v``."""

    __slots__ = ('index', 'u', 'v', 'order', 'ring')

    def __init__(self, index: int, u: int, v: int):
        self.index = index
        self.u = u
        self.v = v
        self.order = 1
        self.ring = False

    def other(self, w: int) -> int:
        return self.v if w == self.u else self.u

    def __repr__(self):
        return f"Edge({self.index + 1}: {self.u + 1}-{self.v + 1} order={self.order})"


class Ring:
    """Cycle of the basis, as a list of edge positions."""

    __slots__ = ('edges',)

    def __init__(self, edges: List[int]):
        self.edges = list(edges)

    @property
    def size(self) -> int:
        return len(self.edges)

    def vertices(self, graph: 'MolecularGraph') -> List[int]:
        """Arena positions of the ring's vertices, sorted."""
        members = set()
        for position in self.edges:
            edge = graph.edges[position]
            members.add(edge.u)
            members.add(edge.v)
        return sorted(members)

    def __repr__(self):
        return f"Ring(size={self.size}, edges={[e + 1 for e in self.edges]})"


class MolecularGraph:
    """
    Graph of the largest connected component of an identifier.

    Attributes:
        index: Component index the graph was taken from
        connection: Connection-layer text of that component
        adjacency: Symmetric 0/1 matrix, copied out of the parser workspace
        vertices: Vertex arena
        edges: Edge arena, in discovery order
        rings: Cycle basis, filled by ring perception
        messages: Recoverable problems met while building
    """

    def __init__(self, index: int, connection: str, adjacency: np.ndarray):
        self.index = index
        self.connection = connection
        self.adjacency = adjacency
        degrees = adjacency.sum(axis=1)
        self.vertices = [Vertex(i + 1, int(degrees[i])) for i in range(adjacency.shape[0])]
        self.edges: List[Edge] = []
        self.rings: List[Ring] = []
        self.messages: List[str] = []
        self._pairs: Dict[Tuple[int, int], int] = {}

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def neighbors(self, u: int) -> List[int]:
        """Arena positions adjacent to ``u`` in ascending order."""
        return [int(v) for v in np.flatnonzero(self.adjacency[u])]

    def incident_edges(self, u: int) -> List[Edge]:
        return [self.edges[position] for position in self.vertices[u].edges if position is not None]

    def edge_between(self, u: int, v: int) -> Optional[Edge]:
        position = self._pairs.get((min(u, v), max(u, v)))
        return self.edges[position] if position is not None else None

    def add_edge(self, u: int, v: int) -> Edge:
        """Append an edge unless the pair is already joined; return the pair's edge."""
        key = (min(u, v), max(u, v))
        if key in self._pairs:
            return self.edges[self._pairs[key]]
        edge = Edge(len(self.edges), u, v)
        self._pairs[key] = edge.index
        self.edges.append(edge)
        return edge

    def component_count(self) -> int:
        """Number of connected components, isolated vertices included."""
        seen = [False] * self.vertex_count
        components = 0
        for start in range(self.vertex_count):
            if seen[start]:
                continue
            components += 1
            seen[start] = True
            stack = [start]
            while stack:
                u = stack.pop()
                for v in self.neighbors(u):
                    if not seen[v]:
                        seen[v] = True
                        stack.append(v)
        return components

    def cyclomatic_number(self) -> int:
        """Size of any cycle basis: E - V + C."""
        return self.edge_count - self.vertex_count + self.component_count()

    def summary(self) -> Dict:
        """Human-readable description used by debug output and the CLI."""
        return {
            'component': self.index,
            'connection': self.connection,
            'vertices': [
                {
                    'index': vertex.index,
                    'element': vertex.symbol,
                    'degree': vertex.degree,
                    'hcount': vertex.hcount,
                    'hshare': vertex.hshare,
                    'hgroup': vertex.hgroup,
                    'charge': vertex.charge,
                    'flags': int(vertex.flags),
                }
                for vertex in self.vertices
            ],
            'edges': [
                {'index': edge.index + 1, 'u': edge.u + 1, 'v': edge.v + 1,
                 'order': edge.order, 'ring': edge.ring}
                for edge in self.edges
            ],
            'rings': [[e + 1 for e in ring.edges] for ring in self.rings],
        }


def close_edges(graph: MolecularGraph):
    """
    Derive the edge list from the adjacency matrix.

    A depth-first walk from vertex 1 (restarted at any vertex it could not
    reach) visits neighbors in ascending order and creates one edge per
    undirected pair, oriented from the vertex that discovered it. Each
    edge is then recorded in the first free slot of both endpoints.

    Raises:
        GraphConsistencyError: If an edge slot is still empty afterwards
    """
    n = graph.vertex_count
    if n == 0:
        return

    visited = [False] * n
    for root in range(n):
        if visited[root]:
            continue
        visited[root] = True
        stack = [(root, iter(graph.neighbors(root)))]
        while stack:
            u, pending = stack[-1]
            for v in pending:
                if graph.edge_between(u, v) is not None:
                    continue
                graph.add_edge(u, v)
                if not visited[v]:
                    visited[v] = True
                    stack.append((v, iter(graph.neighbors(v))))
                    break
            else:
                stack.pop()

    for edge in graph.edges:
        for end in (edge.u, edge.v):
            slots = graph.vertices[end].edges
            try:
                slots[slots.index(None)] = edge.index
            except ValueError:
                message = f"Edge array of vertex {end + 1} overfilled"
                graph.messages.append(message)
                logger.warning(message)

    for vertex in graph.vertices:
        if None in vertex.edges:
            raise GraphConsistencyError(f"Vertex {vertex.index} has an unfilled edge slot")


def assign_elements(graph: MolecularGraph, parsed: ParsedIdentifier):
    """Give each vertex its element from the component's formula, hydrogens skipped."""
    expected = component_atom_count(parsed.formula, graph.index)
    if expected != graph.vertex_count:
        message = (f"Formula misaligned with component: expecting {expected} "
                   f"atoms but got {graph.vertex_count}")
        graph.messages.append(message)
        logger.warning(message)

    position = 0
    for entry in parsed.formula:
        if entry.index != graph.index or entry.element is HYDROGEN:
            continue
        for _ in range(entry.count):
            if position >= graph.vertex_count:
                break
            vertex = graph.vertices[position]
            vertex.element = entry.element
            if entry.element.symbol != 'C':
                vertex.flags |= VertexFlag.HETERO
            position += 1


def assign_hydrogens(graph: MolecularGraph, parsed: ParsedIdentifier):
    """
    Copy hydrogen annotations onto vertices.

    Fixed hydrogens go to ``hcount``. For a mobile group, the first member
    met carries the group's shared count in ``hshare``; every member gets
    the group id.
    """
    annotations = {}
    for annotation in parsed.hydrogens:
        if annotation.component == graph.index:
            annotations.setdefault(annotation.atom, annotation)

    represented = set()
    for vertex in graph.vertices:
        annotation = annotations.get(vertex.index)
        if annotation is None:
            continue
        if annotation.group:
            vertex.hgroup = annotation.group
            if annotation.group not in represented:
                represented.add(annotation.group)
                vertex.hshare = annotation.count
        else:
            vertex.hcount = annotation.count


def mark_stereo_centers(graph: MolecularGraph, atoms: List[int]):
    for atom in atoms:
        if 0 < atom <= graph.vertex_count:
            graph.vertices[atom - 1].flags |= VertexFlag.CHIRAL


def build_graph(parsed: ParsedIdentifier) -> MolecularGraph:
    """
    Build the molecular graph of the selected component.

    Rings and bond orders are left to their own passes; see
    ``ring_perception.perceive_rings`` and ``bond_orders.assign_bond_orders``.

    Args:
        parsed: Parsed identifier with a non-empty component

    Returns:
        Graph with elements, hydrogens and edges assigned

    Raises:
        GraphConsistencyError: If edge closure leaves a vertex incomplete
    """
    component = parsed.component
    if component is None:
        raise ValueError("Identifier has no connection component to build")

    graph = MolecularGraph(component.index, component.text, component.adjacency)
    assign_elements(graph, parsed)
    assign_hydrogens(graph, parsed)
    mark_stereo_centers(graph, parsed.stereo_atoms)
    close_edges(graph)

    logger.debug(f"Built graph for {format_formula(parsed.formula)} component {graph.index}: "
                 f"{graph.vertex_count} vertices, {graph.edge_count} edges")
    return graph

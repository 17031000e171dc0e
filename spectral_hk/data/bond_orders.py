"""
Bond-order assignment from valence deficits.

Every bond starts single. A depth-first traversal over the edges raises
orders where both endpoints still lack valence, pushes corrections back
up the traversal when a neighbor ends up over- or under-bonded, and
finally settles leftovers by moving a shared (mobile) hydrogen onto a
bond or by charging terminal oxygen or quaternary nitrogen.

The traversal runs on an explicit stack of frames rather than recursion
and reports a tagged ``AssignmentResult``.
"""

import logging
from enum import Enum
from typing import List, Optional

from .graph_construction import Edge, MolecularGraph, Vertex

logger = logging.getLogger(__name__)

MIN_ORDER = 1
MAX_ORDER = 3


def standard_valence(atomic_number: int, bonding: int, degree: int) -> Optional[int]:
    """
    Standard valence for an element under its current bonding pattern.

    Args:
        atomic_number: Element's atomic number
        bonding: Sum of the orders of the vertex's bonds
        degree: Number of bonded neighbors

    Returns:
        The valence, or None for elements outside the table
    """
    if atomic_number == 5:
        return 3
    if atomic_number == 6:
        return 4
    if atomic_number in (7, 15):
        return 3 if bonding <= 3 else 5
    if atomic_number == 8:
        return 2
    if atomic_number == 9:
        return 1
    if atomic_number == 14:
        return 4
    if atomic_number == 16:
        if degree <= 2:
            return 2
        return 4 if degree < 4 else 6
    if atomic_number in (17, 35, 53):
        return 1
    return None


def bonding(graph: MolecularGraph, u: int) -> int:
    return sum(edge.order for edge in graph.incident_edges(u))


def deficit(graph: MolecularGraph, u: int) -> Optional[int]:
    """
    Missing bond order at ``u``: valence - bonding - hydrogens - |charge|.

    Returns None when the element has no standard valence.
    """
    vertex = graph.vertices[u]
    if vertex.element is None:
        return None
    order_sum = bonding(graph, u)
    valence = standard_valence(vertex.atomic_number, order_sum, vertex.degree)
    if valence is None:
        return None
    return valence - order_sum - vertex.hcount - abs(vertex.charge)


class Outcome(Enum):
    RESOLVED = 'resolved'
    DEFICIT = 'deficit'
    FATAL = 'fatal'


class AssignmentResult:
    """Tagged result of an assignment pass: RESOLVED, DEFICIT(amount) or FATAL."""

    __slots__ = ('outcome', 'amount', 'message')

    def __init__(self, outcome: Outcome, amount: int = 0, message: str = ''):
        self.outcome = outcome
        self.amount = amount
        self.message = message

    @classmethod
    def from_amount(cls, amount: int) -> 'AssignmentResult':
        if amount == 0:
            return cls(Outcome.RESOLVED)
        return cls(Outcome.DEFICIT, amount)

    def __repr__(self):
        if self.outcome is Outcome.DEFICIT:
            return f"AssignmentResult(DEFICIT({self.amount}))"
        return f"AssignmentResult({self.outcome.name})"


class BondOrderReport:
    """Summary of a full assignment pass over a graph."""

    def __init__(self, result: AssignmentResult, residual: int, unresolved: List[int]):
        self.result = result
        self.residual = residual
        self.unresolved = unresolved

    @property
    def fatal(self) -> bool:
        return self.result.outcome is Outcome.FATAL

    def to_dict(self):
        return {
            'outcome': self.result.outcome.value,
            'residual': self.residual,
            'unresolved': [u + 1 for u in self.unresolved],
        }


class _BondOrderFatal(Exception):
    """Internal signal: an edge order would leave [MIN_ORDER, MAX_ORDER]."""
    pass


class _Frame:
    __slots__ = ('vertex', 'slot', 'h', 'pending', 'reentry')

    def __init__(self, vertex: int):
        self.vertex = vertex
        self.slot = 0
        self.h = 0
        self.pending: Optional[Edge] = None
        self.reentry = False


class BondOrderAssigner:
    """
    Assign bond orders to a graph in place.

    Orders only ever change through ``_adjust``, which refuses to leave
    the [1, 3] range; such a request ends the pass with FATAL and leaves
    every order valid.
    """

    def __init__(self, graph: MolecularGraph):
        self.graph = graph
        self.visited = [False] * graph.edge_count

    def _deficit(self, u: int) -> int:
        value = deficit(self.graph, u)
        return value if value is not None else 0

    def _adjust(self, edge: Edge, amount: int):
        order = edge.order + amount
        if order < MIN_ORDER or order > MAX_ORDER:
            raise _BondOrderFatal(
                f"Bond {edge.u + 1}-{edge.v + 1} order {edge.order}{amount:+d} out of range")
        edge.order = order

    def _has_unvisited(self, u: int) -> bool:
        return any(not self.visited[position] for position in self.graph.vertices[u].edges)

    def _raise_toward(self, u: int, v: int) -> int:
        """Order increase for edge u-v: v's deficit, capped by u's."""
        return min(self._deficit(v), max(self._deficit(u), 0))

    def _settle(self, u: int) -> int:
        """Absorb u's leftover deficit through a shared hydrogen or a charge."""
        graph = self.graph
        vertex = graph.vertices[u]
        h = self._deficit(u)

        if vertex.hgroup == 0 and h > 0:
            neighbors = sorted((graph.vertices[edge.other(u)] for edge in graph.incident_edges(u)),
                               key=lambda nb: (-nb.atomic_number, nb.index))
            for neighbor in neighbors:
                if neighbor.hshare >= h:
                    edge = graph.edge_between(u, neighbor.index - 1)
                    self._adjust(edge, h)
                    h = 0
                    break

        if h != 0 and self._charge(vertex):
            h = 0
        return h

    @staticmethod
    def _charge(vertex: Vertex) -> bool:
        if vertex.hcount != 0 or vertex.hgroup != 0:
            return False
        if vertex.symbol == 'O' and vertex.degree == 1:
            vertex.charge -= 1
            return True
        if vertex.symbol == 'N' and vertex.degree == 4:
            vertex.charge += 1
            return True
        return False

    def _traverse(self, start: int) -> int:
        graph = self.graph
        stack = [_Frame(start)]
        returned = 0

        while stack:
            frame = stack[-1]
            u = frame.vertex

            if frame.reentry:
                stack.pop()
                continue

            if frame.pending is not None:
                edge = frame.pending
                frame.pending = None
                if returned == 0:
                    frame.h = 0
                else:
                    v = edge.other(u)
                    h = self._deficit(v)
                    if h > 0 and graph.vertices[v].hgroup:
                        # A group member shares its hydrogen; u only gives what it lacks
                        h = min(h, max(self._deficit(u), 0))
                    self._adjust(edge, h)
                    if h < 0 and self._has_unvisited(u):
                        # Relocate the surplus onto u's remaining bonds
                        frame.reentry = True
                        stack.append(_Frame(u))
                        continue
                    stack.pop()
                    returned = h
                    continue

            vertex = graph.vertices[u]
            descended = False
            while frame.slot < vertex.degree:
                edge = graph.edges[vertex.edges[frame.slot]]
                frame.slot += 1
                if self.visited[edge.index]:
                    continue
                self.visited[edge.index] = True
                v = edge.other(u)
                if vertex.hgroup == 0 and graph.vertices[v].hgroup == 0 and self._deficit(u) > 0:
                    h = self._raise_toward(u, v)
                    if h <= 0:
                        quaternary = vertex.hcount == 0 and vertex.degree == 4
                        if not (h == 0 and quaternary):
                            frame.h = -1
                            continue
                    self._adjust(edge, h)
                    frame.h = h
                frame.pending = edge
                stack.append(_Frame(v))
                descended = True
                break
            if descended:
                continue

            h = frame.h
            if h == 0 and self._deficit(u) != 0:
                h = self._settle(u)
            stack.pop()
            returned = h

        return returned

    def run(self) -> BondOrderReport:
        graph = self.graph
        result = None
        try:
            for u in range(graph.vertex_count):
                if all(self.visited):
                    break
                self._traverse(u)
        except _BondOrderFatal as e:
            result = AssignmentResult(Outcome.FATAL, message=str(e))
            graph.messages.append(str(e))
            logger.warning(f"Bond order assignment aborted: {e}")

        residual, unresolved = residual_deficit(graph)
        if result is None:
            result = AssignmentResult.from_amount(residual)
        if residual > 0:
            message = f"{residual} charge/tautomer(s) detected"
            graph.messages.append(message)
            logger.warning(message)
        return BondOrderReport(result, residual, unresolved)


def residual_deficit(graph: MolecularGraph):
    """
    Total valence deficit left after assignment.

    Members of a mobile-hydrogen group are pooled: the group's shared
    hydrogens cover deficits anywhere in the group.

    Returns:
        Tuple of (total deficit, positions of vertices still short)
    """
    total = 0
    unresolved = []
    groups = {}
    for u, vertex in enumerate(graph.vertices):
        value = deficit(graph, u)
        if value is None:
            continue
        if vertex.hgroup:
            pool = groups.setdefault(vertex.hgroup, [0, []])
            pool[0] += value - vertex.hshare
            pool[1].append(u)
        else:
            total += value
            if value != 0:
                unresolved.append(u)
    for amount, members in groups.values():
        total += amount
        if amount != 0:
            unresolved.extend(members)
    return total, sorted(unresolved)


def assign_bond_orders(graph: MolecularGraph) -> BondOrderReport:
    """Assign bond orders in place and report what is left unresolved."""
    return BondOrderAssigner(graph).run()

"""
Tests for cycle-basis ring perception.
"""

import numpy as np

from spectral_hk.data.graph_construction import VertexFlag
from spectral_hk.data.ring_perception import CycleSpace, perceive_rings, shortest_path_costs

from conftest import BENZENE, CYCLOPROPANE, NAPHTHALENE, NORBORNANE, PROPANE


class TestRingPerception:

    def test_acyclic(self, make_graph):
        graph, _ = make_graph(PROPANE, bonds=False)
        assert graph.rings == []
        assert not any(vertex.flags & VertexFlag.RING for vertex in graph.vertices)

    def test_benzene(self, make_graph):
        graph, _ = make_graph(BENZENE, bonds=False)
        assert [ring.size for ring in graph.rings] == [6]
        assert graph.rings[0].vertices(graph) == [0, 1, 2, 3, 4, 5]
        assert all(edge.ring for edge in graph.edges)

    def test_cyclopropane(self, make_graph):
        graph, _ = make_graph(CYCLOPROPANE, bonds=False)
        assert [ring.size for ring in graph.rings] == [3]

    def test_fused_rings(self, make_graph):
        graph, _ = make_graph(NAPHTHALENE, bonds=False)
        assert [ring.size for ring in graph.rings] == [6, 6]
        assert all(vertex.flags & VertexFlag.RING for vertex in graph.vertices)

    def test_bridged_rings_prefer_smallest(self, make_graph):
        graph, _ = make_graph(NORBORNANE, bonds=False)
        assert sorted(ring.size for ring in graph.rings) == [5, 5]
        assert graph.messages == []

    def test_ring_count_matches_cyclomatic_number(self, make_graph):
        for identifier in (BENZENE, NAPHTHALENE, NORBORNANE):
            graph, _ = make_graph(identifier, bonds=False)
            assert len(graph.rings) == graph.cyclomatic_number()

    def test_size_cap_reports_missing_rings(self, make_graph):
        graph, _ = make_graph(NORBORNANE, bonds=False, max_ring_size=4)
        assert graph.rings == []
        assert "Found 0 of 2 rings" in graph.messages

    def test_rerun_is_idempotent(self, make_graph):
        graph, _ = make_graph(NAPHTHALENE, bonds=False)
        first = [sorted(ring.edges) for ring in graph.rings]
        perceive_rings(graph)
        assert [sorted(ring.edges) for ring in graph.rings] == first


class TestHelpers:

    def test_path_costs(self, make_graph):
        graph, _ = make_graph(PROPANE, rings=False, bonds=False)
        cost = shortest_path_costs(graph)
        # Propane is numbered 1-3-2, so atoms 1 and 2 are the two ends
        assert cost[0, 1] == 2
        assert cost[0, 2] == 1
        assert np.array_equal(cost, cost.T)

    def test_cycle_space_rejects_dependent_cycle(self):
        space = CycleSpace()
        assert space.add([0, 1, 2])
        assert space.add([2, 3, 4])
        assert not space.add([0, 1, 3, 4])
        assert len(space) == 2

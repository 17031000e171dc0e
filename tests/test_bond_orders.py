"""
Tests for valence tables and bond-order assignment.
"""

import pytest

from spectral_hk.data.bond_orders import (MAX_ORDER, MIN_ORDER, AssignmentResult, Outcome,
                                         deficit, residual_deficit, standard_valence)

from conftest import (ACETIC_ACID, ACETYLENE, BENZENE, CYCLOHEXANE, CYCLOPENTADIENE, DICARBON,
                      ETHANOL, ETHYL_RADICAL, ETHYLENE, FURAN, METHOXIDE, NAPHTHALENE, PYRROLE,
                      TETRAMETHYLAMMONIUM, THIOPHENE)


class TestValence:

    @pytest.mark.parametrize("atomic_number,bonding,degree,expected", [
        (6, 4, 4, 4),
        (7, 3, 3, 3),
        (7, 4, 4, 5),
        (8, 1, 1, 2),
        (16, 2, 2, 2),
        (16, 4, 3, 4),
        (16, 6, 4, 6),
        (17, 1, 1, 1),
        (26, 2, 2, None),
    ])
    def test_standard_valence(self, atomic_number, bonding, degree, expected):
        assert standard_valence(atomic_number, bonding, degree) == expected

    def test_deficit_of_saturated_atoms(self, make_graph):
        graph, _ = make_graph(ETHANOL, bonds=False)
        assert [deficit(graph, u) for u in range(graph.vertex_count)] == [0, 0, 0]

    def test_assignment_result_from_amount(self):
        assert AssignmentResult.from_amount(0).outcome is Outcome.RESOLVED
        result = AssignmentResult.from_amount(2)
        assert result.outcome is Outcome.DEFICIT
        assert result.amount == 2


class TestBondOrderAssignment:

    def orders(self, graph):
        return [edge.order for edge in graph.edges]

    def test_saturated_chain(self, make_graph):
        graph, report = make_graph(ETHANOL)
        assert self.orders(graph) == [1, 1]
        assert report.result.outcome is Outcome.RESOLVED
        assert report.residual == 0

    def test_saturated_skeleton_closes_valence(self, make_graph):
        graph, report = make_graph("InChI=1S/C4H10/c1-4(2)3/h4H,1-3H3")
        for u, vertex in enumerate(graph.vertices):
            assert sum(e.order for e in graph.incident_edges(u)) + vertex.hcount == 4
        assert report.residual == 0

    def test_double_bond(self, make_graph):
        graph, report = make_graph(ETHYLENE)
        assert self.orders(graph) == [2]
        assert report.residual == 0

    def test_triple_bond(self, make_graph):
        graph, report = make_graph(ACETYLENE)
        assert self.orders(graph) == [3]
        assert report.residual == 0

    def test_benzene_kekule_structure(self, make_graph):
        graph, report = make_graph(BENZENE)
        assert self.orders(graph) == [2, 1, 2, 1, 2, 1]
        assert all(sum(e.order for e in graph.incident_edges(u)) == 3
                   for u in range(graph.vertex_count))
        assert report.residual == 0

    def test_cyclohexane_stays_single(self, make_graph):
        graph, report = make_graph(CYCLOHEXANE)
        assert self.orders(graph) == [1] * 6
        assert report.residual == 0

    def test_naphthalene_is_fully_resolved(self, make_graph):
        graph, report = make_graph(NAPHTHALENE)
        assert sum(edge.order for edge in graph.edges) == 16
        assert report.residual == 0

    @pytest.mark.parametrize("identifier", [FURAN, THIOPHENE, PYRROLE, CYCLOPENTADIENE])
    def test_five_membered_ring_is_fully_resolved(self, make_graph, identifier):
        graph, report = make_graph(identifier)
        assert sum(edge.order for edge in graph.edges) == 7
        assert report.result.outcome is Outcome.RESOLVED
        assert report.residual == 0
        assert report.unresolved == []

    def test_furan_double_bonds_skip_the_oxygen(self, make_graph):
        graph, _ = make_graph(FURAN)
        assert graph.edge_between(0, 2).order == 2
        assert graph.edge_between(1, 3).order == 2
        assert graph.edge_between(0, 1).order == 1
        assert all(edge.order == 1 for edge in graph.incident_edges(4))

    def test_terminal_oxygen_is_charged(self, make_graph):
        graph, report = make_graph(METHOXIDE)
        assert graph.vertices[1].charge == -1
        assert report.residual == 0

    def test_quaternary_nitrogen_is_charged(self, make_graph):
        graph, report = make_graph(TETRAMETHYLAMMONIUM)
        assert graph.vertices[4].charge == 1
        assert self.orders(graph) == [1, 1, 1, 1]
        assert report.residual == 0

    def test_mobile_hydrogen_group(self, make_graph):
        graph, report = make_graph(ACETIC_ACID)
        carbonyl = graph.edge_between(1, 2)
        assert carbonyl.order == 2
        assert graph.edge_between(1, 3).order == 1
        assert report.result.outcome is Outcome.RESOLVED
        assert report.residual == 0

    def test_radical_leaves_residual(self, make_graph):
        graph, report = make_graph(ETHYL_RADICAL)
        assert report.result.outcome is Outcome.DEFICIT
        assert report.result.amount == 1
        assert report.residual == 1
        assert report.unresolved == [0]
        assert "1 charge/tautomer(s) detected" in graph.messages

    def test_out_of_range_order_is_fatal(self, make_graph):
        graph, report = make_graph(DICARBON)
        assert report.fatal
        assert report.result.message in graph.messages
        assert all(MIN_ORDER <= edge.order <= MAX_ORDER for edge in graph.edges)

    def test_report_dict(self, make_graph):
        _, report = make_graph(ETHYL_RADICAL)
        assert report.to_dict() == {'outcome': 'deficit', 'residual': 1, 'unresolved': [1]}


class TestResidualDeficit:

    def test_group_members_are_pooled(self, make_graph):
        graph, _ = make_graph(ACETIC_ACID, bonds=False)
        # Both oxygens short by one, one shared hydrogen covers one of them
        total, unresolved = residual_deficit(graph)
        assert total == 2
        assert unresolved == [1, 2, 3]

"""
Tests for graph matrices, eigensolvers, the interval quantizer and base-32 keys.
"""

import numpy as np
import pytest

from spectral_hk.errors import EigensolverError
from spectral_hk.spectral import b32
from spectral_hk.spectral.eigensolver import (JacobiEigensolver, ScipyEigensolver,
                                              create_eigensolver)
from spectral_hk.spectral.laplacian import (laplacian_matrix, normalized_laplacian,
                                            signless_laplacian_matrix)
from spectral_hk.spectral.quantizer import IntervalTree

# Combinatorial Laplacian of a 16-vertex, 18-edge test graph
LAPLACIAN_16 = np.array([
    [2, 0, -1, -1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 2, 0, 0, -1, -1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [-1, 0, 2, 0, 0, 0, 0, 0, 0, -1, 0, 0, 0, 0, 0, 0],
    [-1, 0, 0, 2, 0, 0, 0, 0, 0, 0, -1, 0, 0, 0, 0, 0],
    [0, -1, 0, 0, 2, 0, 0, 0, 0, 0, 0, 0, 0, 0, -1, 0],
    [0, -1, 0, 0, 0, 2, 0, 0, 0, 0, 0, 0, 0, 0, -1, 0],
    [0, 0, 0, 0, 0, 0, 2, 0, -1, 0, 0, 0, 0, 0, -1, 0],
    [0, 0, 0, 0, 0, 0, 0, 2, -1, 0, 0, 0, 0, 0, 0, -1],
    [0, 0, 0, 0, 0, 0, -1, -1, 3, 0, 0, 0, 0, -1, 0, 0],
    [0, 0, -1, 0, 0, 0, 0, 0, 0, 3, 0, -1, -1, 0, 0, 0],
    [0, 0, 0, -1, 0, 0, 0, 0, 0, 0, 3, -1, 0, -1, 0, 0],
    [0, 0, 0, 0, 0, 0, 0, 0, 0, -1, -1, 3, 0, 0, 0, -1],
    [0, 0, 0, 0, 0, 0, 0, 0, 0, -1, 0, 0, 1, 0, 0, 0],
    [0, 0, 0, 0, 0, 0, 0, 0, -1, 0, -1, 0, 0, 2, 0, 0],
    [0, 0, 0, 0, -1, -1, -1, 0, 0, 0, 0, 0, 0, 0, 3, 0],
    [0, 0, 0, 0, 0, 0, 0, -1, 0, 0, 0, -1, 0, 0, 0, 2],
], dtype=np.float64)

EIGENVALUES_16 = [0.0000, 0.0952, 0.4147, 0.6157, 1.0555, 1.2361, 1.7745, 1.8350,
                  2.0000, 2.7540, 2.9476, 3.5116, 3.8308, 4.2331, 4.6543, 5.0418]

FIEDLER_16 = [0.2407, -0.4151, 0.2506, 0.2079, -0.3954, -0.3954, -0.1910, 0.0479,
              -0.0259, 0.2366, 0.1553, 0.1752, 0.2615, 0.0679, -0.3380, 0.1172]

PATH_3 = np.array([[0, 1, 0], [1, 0, 1], [0, 1, 0]], dtype=np.int8)


class TestLaplacian:

    def test_combinatorial(self):
        lap = laplacian_matrix(PATH_3)
        assert np.array_equal(lap, [[1, -1, 0], [-1, 2, -1], [0, -1, 1]])

    def test_signless(self):
        assert np.array_equal(signless_laplacian_matrix(PATH_3), [[1, 1, 0], [1, 2, 1], [0, 1, 1]])

    def test_normalized_path(self):
        lap = normalized_laplacian(PATH_3)
        assert np.allclose(np.diag(lap), 1.0)
        assert lap[0, 1] == pytest.approx(-1 / np.sqrt(2))
        assert np.allclose(np.linalg.eigvalsh(lap), [0.0, 1.0, 2.0])

    def test_isolated_vertex_has_zero_diagonal(self):
        adjacency = np.zeros((3, 3), dtype=np.int8)
        adjacency[0, 1] = adjacency[1, 0] = 1
        lap = normalized_laplacian(adjacency)
        assert lap[2, 2] == 0.0
        assert not lap[2].any()


class TestJacobiEigensolver:

    def test_reference_matrix(self):
        values, vectors = JacobiEigensolver().decompose(LAPLACIAN_16)
        assert values == pytest.approx(EIGENVALUES_16, abs=1e-3)

        fiedler = vectors[:, 1]
        if fiedler[0] < 0:
            fiedler = -fiedler
        assert fiedler == pytest.approx(FIEDLER_16, abs=1e-3)
        assert fiedler.sum() == pytest.approx(0.0, abs=1e-9)

    def test_reconstruction(self):
        values, vectors = JacobiEigensolver().decompose(LAPLACIAN_16)
        assert np.allclose(vectors @ np.diag(values) @ vectors.T, LAPLACIAN_16, atol=1e-9)
        assert np.allclose(vectors.T @ vectors, np.eye(16), atol=1e-9)

    def test_values_ascend(self):
        values, _ = JacobiEigensolver().decompose(LAPLACIAN_16)
        assert np.all(np.diff(values) >= 0)

    def test_agrees_with_scipy(self):
        matrix = normalized_laplacian((LAPLACIAN_16 < 0).astype(np.int8))
        jacobi, _ = JacobiEigensolver().decompose(matrix)
        lapack, _ = ScipyEigensolver().decompose(matrix)
        assert np.allclose(jacobi, lapack, atol=1e-9)

    def test_diagonal_matrix_needs_no_sweeps(self):
        solver = JacobiEigensolver()
        values, vectors = solver.decompose(np.diag([3.0, 1.0, 2.0]))
        assert list(values) == [1.0, 2.0, 3.0]
        assert solver.sweeps == 0
        assert np.array_equal(np.abs(vectors), [[0, 0, 1], [1, 0, 0], [0, 1, 0]])

    def test_empty_matrix(self):
        values, vectors = JacobiEigensolver().decompose(np.zeros((0, 0)))
        assert values.size == 0
        assert vectors.shape == (0, 0)

    def test_non_convergence(self):
        with pytest.raises(EigensolverError, match="didn't converge within 1 sweeps"):
            JacobiEigensolver(max_sweeps=1).decompose(LAPLACIAN_16)

    def test_factory(self):
        assert isinstance(create_eigensolver('jacobi', max_sweeps=10), JacobiEigensolver)
        assert isinstance(create_eigensolver('scipy'), ScipyEigensolver)
        with pytest.raises(ValueError):
            create_eigensolver('power')


class TestIntervalTree:

    def test_leaves(self):
        tree = IntervalTree()
        leaves = tree.leaves()
        assert len(leaves) == 32
        assert leaves[0] == (0.0, 0.0625)
        assert leaves[-1] == (1.9375, 2.0)
        assert tree.leaf_width == 0.0625

    def test_range_ends(self):
        tree = IntervalTree()
        assert tree.encode(0.0) == 1
        assert tree.encode(2.0) == 1 << 31

    def test_value_inside_leaf(self):
        assert IntervalTree().encode(0.03) == 1

    def test_boundary_sets_both_neighbors(self):
        tree = IntervalTree()
        assert tree.encode(1.0) == (1 << 15) | (1 << 16)
        assert tree.encode(0.0624) == 0b11

    def test_zero_slack_at_boundary(self):
        assert IntervalTree().encode(0.0626, slack=0.0) == 0b10

    def test_big_endian_bytes(self):
        tree = IntervalTree()
        assert tree.code_size == 4
        assert tree.encode_bytes(2.0) == b'\x80\x00\x00\x00'
        assert tree.encode_bytes(0.0) == b'\x00\x00\x00\x01'

    def test_small_tree(self):
        tree = IntervalTree(0.0, 1.0, bits=4)
        assert tree.leaves() == [(0.0, 0.25), (0.25, 0.5), (0.5, 0.75), (0.75, 1.0)]
        assert tree.code_size == 1

    def test_invalid_bits(self):
        with pytest.raises(ValueError):
            IntervalTree(bits=24)


class TestBase32:

    def test_alphabet(self):
        assert len(b32.ALPHABET) == 32
        assert not set('EIO0') & set(b32.ALPHABET)

    def test_unrank_pads_left(self):
        assert b32.unrank(0, 15) == 'AAA'
        assert b32.unrank(31, 15) == 'AA9'
        assert b32.unrank(32, 15) == 'ABA'

    def test_unrank_masks_high_bits(self):
        assert b32.unrank(1 << 15, 15) == 'AAA'

    @pytest.mark.parametrize("bits", b32.SUPPORTED_WIDTHS)
    @pytest.mark.parametrize("value", [0, 1, 31, 32, 'middle', 'max'])
    def test_rank_inverts_unrank(self, bits, value):
        if value == 'middle':
            value = (1 << bits) // 3
        elif value == 'max':
            value = (1 << bits) - 1
        text = b32.unrank(value, bits)
        assert len(text) == bits // 5
        assert b32.rank(text) == value

    @pytest.mark.parametrize("bits", b32.SUPPORTED_WIDTHS)
    @pytest.mark.parametrize("pattern", ['A', '9', 'B', 'ZA', 'K3QX7', b32.ALPHABET])
    def test_unrank_inverts_rank(self, bits, pattern):
        length = bits // 5
        text = (pattern * length)[:length]
        assert b32.unrank(b32.rank(text), bits) == text

    def test_extreme_strings(self):
        assert b32.rank('AAA') == 0
        assert b32.rank('999') == (1 << 15) - 1
        assert b32.unrank((1 << 60) - 1, 60) == '9' * 12

    def test_rank_rejects_foreign_character(self):
        assert b32.rank('AE') == -1

    def test_encode_reads_little_endian(self):
        assert b32.encode(b'\x01\x00', 15) == 'AAB'
        assert b32.encode(b'\x00\x01', 15) == 'AKA'

    def test_encoded_lengths(self):
        assert [b32.encoded_length(bits) for bits in (35, 40, 45)] == [7, 8, 9]
        assert len(b32.encode(bytes(20), 45)) == 9

    def test_short_data(self):
        with pytest.raises(ValueError):
            b32.encode(b'\x01', 15)

    def test_unsupported_width(self):
        with pytest.raises(ValueError):
            b32.unrank(1, 16)

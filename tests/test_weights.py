"""
Unit tests for spatial_weights.weights and spatial_weights.lag modules.

Tests the WeightsMatrix wrapper (dense view, row standardization,
windowing) and the spatial lag operations built on it.
"""

import pytest
import numpy as np

from spatial_weights.csr_matrix import CSRMatrix, Neighbor
from spatial_weights.weights import WeightsMatrix
from spatial_weights.lag import (
    neighbor_sum,
    neighbor_average,
    window_sum,
    window_average,
)
from spatial_weights.exceptions import DimensionError, ShapeError, UnknownKeyError


@pytest.fixture
def line():
    """Binary contiguity for four locations on a line: a - b - c - d."""
    return WeightsMatrix({
        'a': [{'id': 'b', 'weight': 1}],
        'b': [{'id': 'a', 'weight': 1}, {'id': 'c', 'weight': 1}],
        'c': [{'id': 'b', 'weight': 1}, {'id': 'd', 'weight': 1}],
        'd': [{'id': 'c', 'weight': 1}],
    })


class TestWeightsMatrix:
    """Test WeightsMatrix construction and views."""

    def test_basic_properties(self, line):
        assert line.n == 4
        assert len(line) == 4
        assert line.keys == ['a', 'b', 'c', 'd']
        assert isinstance(line.sparse, CSRMatrix)
        assert line.sparse.nnz == 6
        assert repr(line) == "WeightsMatrix(n=4, nnz=6)"

    def test_weights_normalized_to_neighbors(self, line):
        rows = line.weights
        assert rows['b'] == [Neighbor('a', 1.0), Neighbor('c', 1.0)]
        assert rows['a'][0].id == 'b'
        assert rows['a'][0].weight == 1.0

    def test_independent_of_input(self):
        """Test later changes to the input dict do not leak in."""
        data = {'a': [{'id': 'b', 'weight': 1}], 'b': []}
        w = WeightsMatrix(data)
        data['b'].append({'id': 'a', 'weight': 1})
        assert w.neighbors('b') == []

    def test_neighbors(self, line):
        assert line.neighbors('b') == ['a', 'c']
        with pytest.raises(UnknownKeyError):
            line.neighbors('z')

    def test_full(self, line):
        expected = np.array([
            [0, 1, 0, 0],
            [1, 0, 1, 0],
            [0, 1, 0, 1],
            [0, 0, 1, 0],
        ], dtype=float)
        np.testing.assert_array_equal(line.full, expected)
        assert line.trace == 0.0

    def test_full_sums_duplicates(self):
        w = WeightsMatrix({
            'a': [{'id': 'b', 'weight': 1.0}, {'id': 'b', 'weight': 2.0}],
            'b': [],
        })
        np.testing.assert_array_equal(w.full, [[0.0, 3.0], [0.0, 0.0]])

    def test_full_returns_copy(self, line):
        dense = line.full
        dense[0, 0] = 99.0
        assert line.full[0, 0] == 0.0

    def test_key_ordering(self):
        w = WeightsMatrix(
            {'a': [{'id': 'b', 'weight': 2.0}], 'b': []},
            keys=['b', 'a'],
        )
        assert w.keys == ['b', 'a']
        np.testing.assert_array_equal(w.full, [[0.0, 0.0], [2.0, 0.0]])

    def test_invalid_input(self):
        with pytest.raises(ShapeError):
            WeightsMatrix([('a', 'b')])
        with pytest.raises(UnknownKeyError):
            WeightsMatrix({'a': [{'id': 'q', 'weight': 1}]})

    def test_verbose(self, capsys):
        WeightsMatrix({'a': [{'id': 'b', 'weight': 1}], 'b': []}, verbose=True)
        out = capsys.readouterr().out
        assert "2 observations, 1 links" in out
        assert "1 observations have no neighbors" in out


class TestTransformations:
    """Test row standardization and windowing."""

    def test_row_standardized(self, line):
        std = line.row_standardized()
        np.testing.assert_allclose(std.full.sum(axis=1), 1.0)
        assert std.weights['b'] == [Neighbor('a', 0.5), Neighbor('c', 0.5)]
        # original is untouched
        assert line.weights['b'] == [Neighbor('a', 1.0), Neighbor('c', 1.0)]

    def test_row_standardized_unequal_weights(self):
        w = WeightsMatrix({
            'a': [{'id': 'b', 'weight': 1.0}, {'id': 'c', 'weight': 3.0}],
            'b': [{'id': 'a', 'weight': 2.0}],
            'c': [{'id': 'a', 'weight': 5.0}],
        })
        std = w.row_standardized()
        np.testing.assert_allclose(std.full[0], [0.0, 0.25, 0.75])

    def test_row_standardized_islands_warn(self):
        w = WeightsMatrix({
            'a': [],
            'b': [{'id': 'c', 'weight': 0.0}],
            'c': [{'id': 'b', 'weight': 2.0}],
        })
        with pytest.warns(UserWarning, match="2 observations have no neighbors"):
            std = w.row_standardized()
        assert std.weights['a'] == []
        assert std.weights['b'] == [Neighbor('c', 0.0)]
        assert std.weights['c'] == [Neighbor('b', 1.0)]

    def test_windowed(self, line):
        win = line.windowed()
        assert win.neighbors('b') == ['a', 'c', 'b']
        assert win.trace == 4.0
        np.testing.assert_array_equal(np.diag(win.full), [1.0, 1.0, 1.0, 1.0])

    def test_windowed_keeps_existing_self_links(self):
        w = WeightsMatrix({
            'a': [{'id': 'a', 'weight': 0.5}, {'id': 'b', 'weight': 1.0}],
            'b': [{'id': 'a', 'weight': 1.0}],
        })
        win = w.windowed()
        assert win.weights['a'] == [Neighbor('a', 0.5), Neighbor('b', 1.0)]
        assert win.weights['b'] == [Neighbor('a', 1.0), Neighbor('b', 1.0)]

    def test_windowed_idempotent(self, line):
        once = line.windowed()
        twice = once.windowed()
        np.testing.assert_array_equal(once.full, twice.full)


class TestLag:
    """Test spatial lag operations."""

    def setup_method(self):
        self.x = [1.0, 2.0, 3.0, 4.0]

    def test_neighbor_sum(self, line):
        np.testing.assert_array_equal(neighbor_sum(line, self.x), [2.0, 4.0, 6.0, 3.0])

    def test_neighbor_average(self, line):
        np.testing.assert_allclose(neighbor_average(line, self.x), [2.0, 2.0, 3.0, 3.0])

    def test_window_sum(self, line):
        np.testing.assert_array_equal(window_sum(line, self.x), [3.0, 6.0, 9.0, 7.0])

    def test_window_average(self, line):
        np.testing.assert_allclose(window_average(line, self.x), [1.5, 2.0, 3.0, 3.5])

    def test_dimension_mismatch(self, line):
        with pytest.raises(DimensionError):
            neighbor_sum(line, [1.0, 2.0])

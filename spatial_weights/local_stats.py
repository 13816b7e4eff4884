"""
Local indicators of spatial association.

Each statistic here returns one value per observation, describing how
that observation relates to its neighbors. Significance is assessed by
conditional permutation: x_i stays at location i while the remaining
values are shuffled across the other locations.
"""

from typing import Callable, Optional

import numpy as np

from spatial_weights.csr_matrix import CSRMatrix
from spatial_weights.exceptions import DimensionError, ParameterError
from spatial_weights.lag import neighbor_average, neighbor_sum, window_sum
from spatial_weights.utils import as_float_vector
from spatial_weights.weights import WeightsMatrix


def _conditional_mc(
    values: np.ndarray,
    lag_matrix: CSRMatrix,
    stat_i: Callable[[int, float], float],
    observed: np.ndarray,
    permutations: int,
    seed: Optional[int]
) -> np.ndarray:
    """
    Pseudo p-values for a local statistic by conditional permutation.

    For observation idx, ``values[idx]`` is held fixed and the other
    values are shuffled. The lag of idx is recomputed from its row of
    ``lag_matrix`` and passed to ``stat_i(idx, lag)``. r counts
    permutations whose statistic is at least the observed one, folded
    to the smaller tail, giving (r + 1) / (permutations + 1).
    """
    if permutations < 1:
        raise ParameterError(f"permutations must be positive, got {permutations}")

    rng = np.random.default_rng(seed)
    n = len(values)
    p_values = np.empty(n)
    for idx in range(n):
        others = np.delete(np.arange(n), idx)
        x_perm = values.copy()
        r = 0
        for _ in range(permutations):
            x_perm[others] = rng.permutation(values[others])
            if stat_i(idx, lag_matrix.dot_row(x_perm, idx)) >= observed[idx]:
                r += 1

        if permutations - r < r:
            r = permutations - r
        p_values[idx] = (r + 1) / (permutations + 1)
    return p_values


class LocalMoran:
    """
    Local Moran's I (Anselin, 1995).

    For deviations z = x - mean(x):

        I_i = z_i / s_i^2 * sum_j w_ij z_j

    where s_i^2 = sum_{j != i} z_j^2 / (n - 1). The lag term is taken
    over the row-standardized form of ``weights``, not the raw weights,
    so it is the mean deviation of the neighbors.
    Positive values mark observations surrounded by similar values,
    negative values mark spatial outliers.
    """

    def __init__(self, x, weights: WeightsMatrix) -> None:
        if weights.n < 2:
            raise DimensionError(f"Local Moran's I needs at least 2 observations, got {weights.n}")
        self.weights = weights
        self.x = as_float_vector(x, weights.n, name="x")

    @property
    def z(self) -> np.ndarray:
        return self.x - self.x.mean()

    @property
    def si2(self) -> np.ndarray:
        z2 = self.z ** 2
        return (z2.sum() - z2) / (self.weights.n - 1)

    @property
    def i(self) -> np.ndarray:
        z = self.z
        z_lag = neighbor_average(self.weights, z)
        return z / self.si2 * z_lag

    def mc(self, permutations: int = 99, seed: Optional[int] = None) -> np.ndarray:
        """
        Conditional permutation pseudo p-value for every observation.

        Permuting the other values leaves mean(x) and s_i^2 unchanged,
        so only the lag term is recomputed.

        :param permutations: Number of random permutations per observation
        :param seed: Seed for numpy's random generator

        :returns: Array of n pseudo p-values in (0, 0.5]
        :raises ParameterError: If permutations is less than 1
        """
        z = self.z
        si2 = self.si2
        lag_matrix = self.weights.row_standardized().sparse

        def stat_i(idx, lag):
            return z[idx] / si2[idx] * lag

        return _conditional_mc(z, lag_matrix, stat_i, self.i, permutations, seed)


class GetisOrd:
    """
    Getis-Ord G and G* statistics.

    G is the ratio of the spatially lagged x to the sum of every other
    x, excluding x_i. G* includes x_i in both the lag and the
    denominator by windowing the weights.

    Parameters
    ----------
    x : sequence of float
        Observed values, ordered like ``weights.keys``
    weights : WeightsMatrix
        Neighbor relationships between the observations
    star : bool, optional
        Compute G* instead of G. If None, G* is used when the weights
        already contain self-links (positive trace).
    """

    def __init__(
        self,
        x,
        weights: WeightsMatrix,
        star: Optional[bool] = None
    ) -> None:
        self.weights = weights
        self.x = as_float_vector(x, weights.n, name="x")
        self._star = star
        self._w = None

    @property
    def star(self) -> bool:
        if self._star is None:
            self._star = self.weights.trace > 0
        return self._star

    @property
    def w(self) -> WeightsMatrix:
        if self._w is None:
            if self.star:
                self._w = self.weights.windowed().row_standardized()
            else:
                self._w = self.weights.row_standardized()
        return self._w

    @property
    def x_lag(self) -> np.ndarray:
        if self.star:
            return window_sum(self.w, self.x)
        return neighbor_sum(self.w, self.x)

    @property
    def denominators(self) -> np.ndarray:
        total = self.x.sum()
        if self.star:
            return np.full(self.weights.n, total)
        return total - self.x

    @property
    def g(self) -> np.ndarray:
        """G (or G*) for every observation."""
        return self.x_lag / self.denominators

    def mc(self, permutations: int = 99, seed: Optional[int] = None) -> np.ndarray:
        """
        Conditional permutation pseudo p-value for every observation.

        The denominators do not change when the other values are
        permuted, so only the lag of each observation is recomputed.

        :param permutations: Number of random permutations per observation
        :param seed: Seed for numpy's random generator

        :returns: Array of n pseudo p-values in (0, 0.5]
        :raises ParameterError: If permutations is less than 1
        """
        denominators = self.denominators
        lag_matrix = self.w.windowed().sparse if self.star else self.w.sparse

        def stat_i(idx, lag):
            return lag / denominators[idx]

        return _conditional_mc(self.x, lag_matrix, stat_i, self.g, permutations, seed)

"""
Global spatial autocorrelation statistics.

Moran's I measures whether similar values cluster in space: for a
variable x with deviations z = x - mean(x) and row-standardized
weights W,

    I = sum(z * (W @ z)) / sum(z**2)

Significance is assessed either through the analytical moments of I
under the randomization assumption or by a permutation test.
"""

from typing import Optional

import numpy as np
from scipy.stats import norm

from spatial_weights.exceptions import DimensionError, ParameterError
from spatial_weights.lag import neighbor_sum
from spatial_weights.utils import as_float_vector
from spatial_weights.weights import WeightsMatrix


class Moran:
    """
    Global Moran's I for a variable observed on a set of locations.

    Parameters
    ----------
    x : sequence of float
        Observed values, ordered like ``weights.keys``
    weights : WeightsMatrix
        Neighbor relationships between the observations. The statistic
        uses the row-standardized form of these weights.
    verbose : bool
        Print progress for permutation tests

    Examples
    --------
    >>> w = WeightsMatrix({
    ...     'a': [{'id': 'b', 'weight': 1}],
    ...     'b': [{'id': 'a', 'weight': 1}, {'id': 'c', 'weight': 1}],
    ...     'c': [{'id': 'b', 'weight': 1}, {'id': 'd', 'weight': 1}],
    ...     'd': [{'id': 'c', 'weight': 1}],
    ... })
    >>> Moran([1, 2, 3, 4], w).i
    0.4
    """

    def __init__(
        self,
        x,
        weights: WeightsMatrix,
        verbose: bool = False
    ) -> None:
        if weights.n < 2:
            raise DimensionError(f"Moran's I needs at least 2 observations, got {weights.n}")
        self.weights = weights
        self.x = as_float_vector(x, weights.n, name="x")
        self.verbose = verbose
        self._w = weights.row_standardized()
        self._i = None

    @property
    def n(self) -> int:
        return self.weights.n

    @property
    def z(self) -> np.ndarray:
        return self.x - self.x.mean()

    @property
    def i(self) -> float:
        if self._i is None:
            self._i = self._compute_i(self.z)
        return self._i

    def _compute_i(self, z: np.ndarray) -> float:
        z_lag = neighbor_sum(self._w, z)
        return float(np.sum(z * z_lag) / np.sum(z ** 2))

    @property
    def expectation(self) -> float:
        """Expected value of I under no autocorrelation, -1/(n-1)."""
        return -1.0 / (self.n - 1)

    @property
    def variance(self) -> float:
        """
        Variance of I under the randomization assumption.

        :raises DimensionError: If there are fewer than 4 observations
        """
        n = self.n
        if n < 4:
            raise DimensionError(f"Variance of Moran's I needs at least 4 observations, got {n}")

        wij = self._w.full
        w = wij.sum()
        e = self.expectation
        z = self.z

        s1 = 0.5 * np.sum((wij + wij.T) ** 2)
        s2 = np.sum((wij.sum(axis=1) + wij.sum(axis=0)) ** 2)
        s3 = (np.sum(z ** 4) / n) / (np.sum(z ** 2) / n) ** 2

        s4 = (n ** 2 - 3 * n + 3) * s1 - n * s2 + 3 * w ** 2
        s5 = (n ** 2 - n) * s1 - 2 * n * s2 + 6 * w ** 2

        var_left = (n * s4 - s3 * s5) / ((n - 1) * (n - 2) * (n - 3) * w ** 2)
        return float(var_left - e ** 2)

    @property
    def z_score(self) -> float:
        return (self.i - self.expectation) / np.sqrt(self.variance)

    @property
    def p_norm(self) -> float:
        """Two-sided p-value from the normal approximation of z_score."""
        return float(2 * norm.sf(abs(self.z_score)))

    def mc(self, permutations: int = 99, seed: Optional[int] = None) -> float:
        """
        Permutation pseudo p-value for I.

        Values of x are shuffled across locations ``permutations`` times.
        r counts the shuffles with I at least as large as the observed I,
        folded to the smaller tail (r = permutations - r when that is
        smaller), and the result is (r + 1) / (permutations + 1).

        :param permutations: Number of random permutations
        :param seed: Seed for numpy's random generator

        :returns: Pseudo p-value in (0, 1]
        :raises ParameterError: If permutations is less than 1
        """
        if permutations < 1:
            raise ParameterError(f"permutations must be positive, got {permutations}")

        rng = np.random.default_rng(seed)
        i_orig = self.i
        z = self.z

        if self.verbose:
            print(f"Running {permutations} permutations of Moran's I (n={self.n})")

        r = 0
        for _ in range(permutations):
            if self._compute_i(rng.permutation(z)) >= i_orig:
                r += 1

        if permutations - r < r:
            r = permutations - r

        p = (r + 1) / (permutations + 1)
        if self.verbose:
            print(f"  I = {i_orig:.4f}, pseudo p-value = {p:.4f}")
        return p

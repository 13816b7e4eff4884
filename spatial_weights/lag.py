"""
Spatial lag operations.

The spatial lag of a variable x under weights W is W @ x: for every
observation, the weighted combination of its neighbors' values.
"""

import numpy as np

from spatial_weights.weights import WeightsMatrix


def neighbor_sum(w: WeightsMatrix, x) -> np.ndarray:
    """
    Weighted sum of each observation's neighbors, W @ x.

    :param w: Weights matrix with n observations
    :param x: Sequence of n values

    :returns: Array of n lagged values
    :raises DimensionError: If len(x) != n
    """
    return w.sparse.multiply(x)


def neighbor_average(w: WeightsMatrix, x) -> np.ndarray:
    """Lag under row-standardized weights: the weighted mean of the neighbors."""
    return neighbor_sum(w.row_standardized(), x)


def window_sum(w: WeightsMatrix, x) -> np.ndarray:
    """Lag under windowed weights, so each observation includes itself."""
    return neighbor_sum(w.windowed(), x)


def window_average(w: WeightsMatrix, x) -> np.ndarray:
    return neighbor_sum(w.windowed().row_standardized(), x)

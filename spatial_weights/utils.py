"""
Utility functions for validating inputs to CSR and weights operations
"""

import numbers

import numpy as np

from spatial_weights.exceptions import DimensionError, ShapeError, RowIndexError


def as_float_vector(vec, n: int, name: str = "vec") -> np.ndarray:
    """
    Convert a sequence to a 1-D float64 array of length n.

    :param vec: Sequence or array of numbers
    :param n: Required length
    :param name: Argument name used in error messages

    :returns: 1-D float64 array
    :raises ShapeError: If vec cannot be read as real numbers
    :raises DimensionError: If vec is not 1-D or its length is not n
    """
    try:
        arr = np.asarray(vec, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ShapeError(f"{name} must contain real numbers") from e

    if arr.ndim != 1:
        raise DimensionError(f"{name} must be 1-D, got shape {arr.shape}")
    if len(arr) != n:
        raise DimensionError(
            f"Dimension mismatch: matrix has n={n}, {name} has length {len(arr)}"
        )
    return arr


def is_integer(value) -> bool:
    """True for Python and numpy integers, False for bools."""
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def check_row_index(row, n: int) -> int:
    """
    Validate a row index against a matrix with n rows.

    Negative indices are rejected rather than wrapped.

    :raises ShapeError: If row is not an integer
    :raises RowIndexError: If row is outside [0, n)
    """
    if not is_integer(row):
        raise ShapeError(f"row must be an integer, got {type(row).__name__}")
    row = int(row)
    if not 0 <= row < n:
        raise RowIndexError(f"Row index {row} out of range for n={n}")
    return row

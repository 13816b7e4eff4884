"""
Compressed Sparse Row storage for spatial weights.

This module converts a Dictionary of Keys (DOK) weights structure,
a mapping from row identifier to a list of {id, weight} records,
into the three CSR arrays (values, column indices, row offsets)
and answers row-oriented queries against them.
"""

from collections.abc import Mapping, Sequence
from typing import Dict, Hashable, List, NamedTuple, Optional, Tuple
import numbers

import numpy as np

from spatial_weights.exceptions import (
    DimensionError,
    ShapeError,
    UnknownKeyError,
)
from spatial_weights.utils import as_float_vector, check_row_index, is_integer


class Neighbor(NamedTuple):
    """A single weights entry: neighbor identifier and its weight."""
    id: Hashable
    weight: float


def _entry_fields(entry, key, position: int) -> Tuple[Hashable, float]:
    """Read (id, weight) from a mapping record or an object with attributes."""
    if isinstance(entry, Mapping):
        if "id" not in entry or "weight" not in entry:
            raise ShapeError(
                f"Entry {position} of row {key!r} must have 'id' and 'weight' fields"
            )
        neighbor_id, weight = entry["id"], entry["weight"]
    elif hasattr(entry, "id") and hasattr(entry, "weight"):
        neighbor_id, weight = entry.id, entry.weight
    else:
        raise ShapeError(
            f"Entry {position} of row {key!r} must be a record with 'id' and 'weight', "
            f"got {type(entry).__name__}"
        )

    try:
        hash(neighbor_id)
    except TypeError as e:
        raise ShapeError(
            f"Entry {position} of row {key!r} has unhashable id {neighbor_id!r}"
        ) from e
    if not isinstance(weight, numbers.Real) or isinstance(weight, (bool, np.bool_)):
        raise ShapeError(
            f"Entry {position} of row {key!r} has non-numeric weight {weight!r}"
        )
    return neighbor_id, float(weight)


def _build_key_lookup(keys: List[Hashable]) -> Dict[Hashable, int]:
    lookup = {}
    for i, key in enumerate(keys):
        try:
            if key in lookup:
                raise DimensionError(f"Duplicate row identifier {key!r} in keys")
            lookup[key] = i
        except TypeError as e:
            raise ShapeError(f"Row identifier {key!r} is not hashable") from e
    return lookup


def _row_entries(data: Mapping, key) -> Sequence:
    try:
        row = data[key]
    except KeyError:
        raise UnknownKeyError(f"Row identifier {key!r} has no entry in data") from None

    if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
        raise ShapeError(
            f"Row {key!r} must be a sequence of entries, got {type(row).__name__}"
        )
    return row


class CSRMatrix:
    """
    Immutable square sparse matrix in Compressed Sparse Row form.

    Rows and columns are indexed 0..n-1 over the same key set, in the order
    given by ``keys`` (the enumeration order of ``data`` by default).
    Entries keep their input order within a row and duplicate (row, col)
    pairs are stored separately, so they add up under multiplication.

    Parameters
    ----------
    data : Mapping
        Row identifier -> sequence of entries. An entry is either a mapping
        with ``"id"`` and ``"weight"`` keys or an object with ``id`` and
        ``weight`` attributes, such as :class:`Neighbor`.
    num_rows : int
        Declared row count; must equal the number of keys.
    keys : sequence, optional
        Row identifier ordering. Defaults to ``list(data)``.

    Raises
    ------
    ShapeError
        If data is not a mapping, a row is not a sequence of records,
        or an entry lacks an id or a numeric weight.
    DimensionError
        If num_rows does not match the number of keys.
    UnknownKeyError
        If a neighbor id (or a key in ``keys``) is not a row of ``data``.

    Examples
    --------
    >>> weights = {
    ...     'a': [{'id': 'c', 'weight': 1}],
    ...     'b': [{'id': 'b', 'weight': 1}],
    ...     'c': [{'id': 'a', 'weight': 1}],
    ... }
    >>> csr = CSRMatrix(weights, 3)
    >>> csr.multiply([1, 2, 3]).tolist()
    [3.0, 2.0, 1.0]
    """

    __slots__ = ("_n", "_nnz", "_values", "_col_index", "_row_index")

    def __init__(
        self,
        data: Mapping,
        num_rows: int,
        keys: Optional[Sequence] = None
    ) -> None:
        if not isinstance(data, Mapping):
            raise ShapeError(f"data must be a mapping, got {type(data).__name__}")
        if not is_integer(num_rows):
            raise ShapeError(f"num_rows must be an integer, got {type(num_rows).__name__}")

        keys = list(data) if keys is None else list(keys)
        n = int(num_rows)
        if n != len(keys):
            raise DimensionError(
                f"Declared row count does not match key count: "
                f"num_rows={n}, len(keys)={len(keys)}"
            )
        if len(data) != n:
            raise DimensionError(
                f"Declared row count does not match key count: "
                f"num_rows={n}, len(data)={len(data)}"
            )

        lookup = _build_key_lookup(keys)

        # sizing pass: validate every row and entry, count non-zeros
        nnz = 0
        for key in keys:
            row = _row_entries(data, key)
            for position, entry in enumerate(row):
                _entry_fields(entry, key, position)
            nnz += len(row)

        values = np.empty(nnz, dtype=np.float64)
        col_index = np.empty(nnz, dtype=np.intp)
        row_index = np.empty(n + 1, dtype=np.intp)

        # fill pass
        nz_idx = 0
        for i, key in enumerate(keys):
            row_index[i] = nz_idx
            for position, entry in enumerate(data[key]):
                neighbor_id, weight = _entry_fields(entry, key, position)
                try:
                    col = lookup[neighbor_id]
                except KeyError:
                    raise UnknownKeyError(
                        f"Neighbor id {neighbor_id!r} in row {key!r} "
                        "is not a declared row identifier"
                    ) from None
                values[nz_idx] = weight
                col_index[nz_idx] = col
                nz_idx += 1
        row_index[n] = nnz

        for arr in (values, col_index, row_index):
            arr.flags.writeable = False

        object.__setattr__(self, "_n", n)
        object.__setattr__(self, "_nnz", nnz)
        object.__setattr__(self, "_values", values)
        object.__setattr__(self, "_col_index", col_index)
        object.__setattr__(self, "_row_index", row_index)

    def __setattr__(self, name, value):
        raise AttributeError("CSRMatrix is immutable")

    def __delattr__(self, name):
        raise AttributeError("CSRMatrix is immutable")

    def __repr__(self) -> str:
        return f"CSRMatrix(n={self._n}, nnz={self._nnz})"

    @property
    def n(self) -> int:
        """Number of rows (and columns)."""
        return self._n

    @property
    def nnz(self) -> int:
        """Number of stored non-zero entries."""
        return self._nnz

    @property
    def shape(self) -> Tuple[int, int]:
        return (self._n, self._n)

    def values(self) -> np.ndarray:
        """Non-zero values in storage order."""
        return self._values.copy()

    def column_indices(self) -> np.ndarray:
        """Column index of each non-zero value."""
        return self._col_index.copy()

    def row_offsets(self) -> np.ndarray:
        """
        Start offset of each row in values/column_indices, length n + 1.

        Row i holds ``row_offsets()[i+1] - row_offsets()[i]`` entries,
        e.g. [0, 2, 3] describes two rows with 2 and 1 non-zeros.
        """
        return self._row_index.copy()

    def row(self, row: int) -> Tuple[np.ndarray, np.ndarray]:
        """
        Column indices and values of a single row.

        :param row: Row index in [0, n)

        :returns: (columns, values) copies of the row's slice
        :raises RowIndexError: If row is out of range
        """
        row = check_row_index(row, self._n)
        start, end = self._row_index[row], self._row_index[row + 1]
        return self._col_index[start:end].copy(), self._values[start:end].copy()

    def multiply(self, vec) -> np.ndarray:
        """
        Multiply the matrix by a dense vector.

        Each row is accumulated left to right in storage order.

        :param vec: Sequence of n numbers

        :returns: Array of n floats
        :raises DimensionError: If len(vec) != n
        """
        vec = as_float_vector(vec, self._n)
        products = self._values * vec[self._col_index]
        rows = np.repeat(np.arange(self._n), np.diff(self._row_index))
        # bincount adds weights sequentially, matching a per-row running sum
        return np.bincount(rows, weights=products, minlength=self._n)

    def dot_row(self, vec, row: int) -> float:
        """
        Dot product of one row with a dense vector.

        Equivalent to ``multiply(vec)[row]`` without computing other rows.

        :param vec: Sequence of n numbers
        :param row: Row index in [0, n)

        :returns: The row's dot product
        :raises DimensionError: If len(vec) != n
        :raises RowIndexError: If row is out of range
        """
        vec = as_float_vector(vec, self._n)
        row = check_row_index(row, self._n)

        start, end = self._row_index[row], self._row_index[row + 1]
        products = self._values[start:end] * vec[self._col_index[start:end]]
        total = 0.0
        for p in products.tolist():
            total += p
        return total

    def coordinates(self) -> Dict[Tuple[int, int], float]:
        """
        Mapping of (row, col) coordinates to value for every non-zero.

        If a (row, col) pair is stored more than once, the later entry
        replaces the earlier one. ``multiply`` sums such entries instead.

        Examples
        --------
        >>> weights = {'a': [{'id': 'b', 'weight': 1}], 'b': [], 'c': [
        ...     {'id': 'a', 'weight': 1}, {'id': 'c', 'weight': 1}]}
        >>> CSRMatrix(weights, 3).coordinates()
        {(0, 1): 1.0, (2, 0): 1.0, (2, 2): 1.0}
        """
        coords = {}
        if self._nnz == 0:
            return coords

        row_index = self._row_index.tolist()
        col_index = self._col_index.tolist()
        values = self._values.tolist()

        i = 0
        row_end = row_index[1]
        for k in range(self._nnz):
            # skip past empty rows as well as the row just finished
            while k == row_end:
                i += 1
                row_end = row_index[i + 1]
            coords[(i, col_index[k])] = values[k]
        return coords

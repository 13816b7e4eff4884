"""
Spatial weights matrix built on the CSR engine.

A WeightsMatrix holds a Dictionary of Keys (DOK) description of the
neighbor relationships between observations, keyed by observation id:

    {
        'a': [{'id': 'b', 'weight': 1}],
        'b': [{'id': 'a', 'weight': 1}, {'id': 'c', 'weight': 1}],
        'c': [{'id': 'b', 'weight': 1}],
    }

and exposes the transformations the autocorrelation statistics need
(row standardization, windowing) together with sparse and dense views.
"""

from collections.abc import Mapping, Sequence
from typing import Dict, Hashable, List, Optional
import warnings

import numpy as np

from spatial_weights.csr_matrix import CSRMatrix, Neighbor
from spatial_weights.exceptions import ShapeError, UnknownKeyError


class WeightsMatrix:
    """
    Square spatial weights matrix over a fixed set of observation keys.

    Parameters
    ----------
    weights : Mapping
        Observation id -> sequence of {id, weight} records.
    keys : sequence, optional
        Order of the observations (row i <-> keys[i]). Defaults to the
        enumeration order of ``weights``.
    verbose : bool
        Print a short summary after construction.

    Raises
    ------
    ShapeError, DimensionError, UnknownKeyError
        As raised by :class:`CSRMatrix` for malformed weights.
    """

    def __init__(
        self,
        weights: Mapping,
        keys: Optional[Sequence] = None,
        verbose: bool = False
    ) -> None:
        if not isinstance(weights, Mapping):
            raise ShapeError(f"weights must be a mapping, got {type(weights).__name__}")

        self._keys = list(weights) if keys is None else list(keys)
        self._sparse = CSRMatrix(weights, len(self._keys), self._keys)
        self._full = None

        # normalized copy of the rows, independent of the caller's data
        self._rows: Dict[Hashable, List[Neighbor]] = {}
        for i, key in enumerate(self._keys):
            cols, vals = self._sparse.row(i)
            self._rows[key] = [
                Neighbor(self._keys[c], v) for c, v in zip(cols.tolist(), vals.tolist())
            ]

        if verbose:
            n_islands = sum(1 for row in self._rows.values() if not row)
            print(f"Weights matrix: {self.n} observations, {self._sparse.nnz} links")
            if n_islands:
                print(f"  {n_islands} observations have no neighbors")

    def __len__(self) -> int:
        return self.n

    def __repr__(self) -> str:
        return f"WeightsMatrix(n={self.n}, nnz={self._sparse.nnz})"

    @property
    def n(self) -> int:
        return self._sparse.n

    @property
    def keys(self) -> List[Hashable]:
        return list(self._keys)

    @property
    def weights(self) -> Dict[Hashable, List[Neighbor]]:
        """Copy of the rows as lists of Neighbor records."""
        return {key: list(row) for key, row in self._rows.items()}

    @property
    def sparse(self) -> CSRMatrix:
        return self._sparse

    @property
    def full(self) -> np.ndarray:
        """
        Dense n x n weights array. Duplicate entries are summed.
        """
        if self._full is None:
            offsets = self._sparse.row_offsets()
            rows = np.repeat(np.arange(self.n), np.diff(offsets))
            dense = np.zeros((self.n, self.n))
            np.add.at(dense, (rows, self._sparse.column_indices()), self._sparse.values())
            dense.flags.writeable = False
            self._full = dense
        return self._full.copy()

    @property
    def trace(self) -> float:
        return float(np.trace(self.full))

    def neighbors(self, key: Hashable) -> List[Hashable]:
        """
        Ids of the neighbors of an observation, in storage order.

        :raises UnknownKeyError: If key is not an observation id
        """
        try:
            row = self._rows[key]
        except KeyError:
            raise UnknownKeyError(f"Unknown observation id {key!r}") from None
        return [neighbor.id for neighbor in row]

    def row_standardized(self) -> "WeightsMatrix":
        """
        Weights rescaled so that every row sums to 1.

        Rows without neighbors or with a zero sum are copied unchanged
        and reported with a warning.
        """
        standardized = {}
        skipped = []
        for key, row in self._rows.items():
            total = sum(neighbor.weight for neighbor in row)
            if not row or total == 0:
                skipped.append(key)
                standardized[key] = list(row)
                continue
            standardized[key] = [
                Neighbor(neighbor.id, neighbor.weight / total) for neighbor in row
            ]

        if skipped:
            warnings.warn(
                f"{len(skipped)} observations have no neighbors or zero total weight, "
                "leaving those rows unstandardized"
            )
        return WeightsMatrix(standardized, self._keys)

    def windowed(self) -> "WeightsMatrix":
        """
        Weights where every observation neighbors itself.

        A self-link of weight 1 is appended to each row that lacks one;
        existing self-links are kept as they are.
        """
        windowed = {}
        for key, row in self._rows.items():
            if any(neighbor.id == key for neighbor in row):
                windowed[key] = list(row)
            else:
                windowed[key] = list(row) + [Neighbor(key, 1.0)]
        return WeightsMatrix(windowed, self._keys)

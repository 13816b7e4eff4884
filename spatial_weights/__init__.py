"""
SPATIAL_WEIGHTS: CSR spatial weights matrices and autocorrelation statistics
"""

__version__ = "0.1.0"

# Sparse engine
from .csr_matrix import (
    CSRMatrix,
    Neighbor,
)

# Weights and lags
from .weights import WeightsMatrix
from .lag import (
    neighbor_sum,
    neighbor_average,
    window_sum,
    window_average,
)

# Statistics
from .global_stats import Moran
from .local_stats import (
    LocalMoran,
    GetisOrd,
)

# Exceptions
from .exceptions import (
    SpatialWeightsError,
    DimensionError,
    ShapeError,
    RowIndexError,
    UnknownKeyError,
    ParameterError,
)

__all__ = [
    # Sparse engine
    'CSRMatrix',
    'Neighbor',

    # Weights and lags
    'WeightsMatrix',
    'neighbor_sum',
    'neighbor_average',
    'window_sum',
    'window_average',

    # Statistics
    'Moran',
    'LocalMoran',
    'GetisOrd',

    # Exceptions
    'SpatialWeightsError',
    'DimensionError',
    'ShapeError',
    'RowIndexError',
    'UnknownKeyError',
    'ParameterError',
]

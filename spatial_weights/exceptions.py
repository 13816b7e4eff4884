"""Custom exceptions for spatial_weights package"""

class SpatialWeightsError(Exception):
    """Base exception for spatial_weights package"""
    pass

class DimensionError(SpatialWeightsError, ValueError):
    """Raised when a row count or vector length does not match the matrix"""
    pass

class ShapeError(SpatialWeightsError, TypeError):
    """Raised when weights input does not have the expected record shape"""
    pass

class RowIndexError(SpatialWeightsError, IndexError):
    """Raised when a row index falls outside [0, n)"""
    pass

class UnknownKeyError(SpatialWeightsError, KeyError):
    """Raised when a neighbor id is not one of the declared row identifiers"""
    pass

class ParameterError(SpatialWeightsError, ValueError):
    """Raised when a statistic is called with an invalid parameter value"""
    pass

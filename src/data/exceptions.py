class AnalyticsError(Exception):
    """Base exception for all analytics core errors."""
    pass

class InvalidCoordinateError(AnalyticsError, ValueError):
    """Raised when a latitude or longitude is outside its valid range."""
    pass

class MissingDataError(AnalyticsError):
    """Raised when an AQI is requested but no usable pollutant value exists."""
    pass

class EmptySeriesError(AnalyticsError):
    """Raised when a peak or trend is requested on an empty series."""
    pass

class MalformedRecordError(AnalyticsError):
    """Raised when a record is missing a required field."""
    pass

class ClusteringStateError(AnalyticsError):
    """Raised when points are added to a clustering run that is already frozen."""
    pass

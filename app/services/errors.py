"""
Domain errors raised by learning track services
"""


class TrackError(Exception):
    """Base class for learning track errors"""


class TrackNotFoundError(TrackError):
    pass


class TrackLoadError(TrackError):
    """Fetching track lessons or progress failed"""


class TrackProgressError(TrackError):
    """Persisting lesson or track progress failed"""


class InvalidCompletionError(TrackError):
    """Completed lesson index does not fit the track"""

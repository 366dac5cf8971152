"""Exception hierarchy shared across dirfinder."""


class DirFinderError(Exception):
    """Base class for errors raised by dirfinder."""
    pass


class CacheError(DirFinderError):
    """Raised when the directory cache cannot be persisted."""
    pass

"""
Custom exception hierarchy for the photo repository.

Configuration problems are raised at the offending setter, cache problems are
recovered by the repository, and filesystem problems abort the running
operation.
"""


class PhotoRepoError(Exception):
    """Base exception for all photo repository errors."""
    pass


class ConfigurationError(PhotoRepoError):
    """Raised when a link type, order value or filter expression is invalid."""
    pass


class CacheLoadError(PhotoRepoError):
    """Raised when the persisted cache document cannot be read or parsed."""
    pass


class FilesystemError(PhotoRepoError):
    """Raised when a directory walk or link operation fails."""
    pass

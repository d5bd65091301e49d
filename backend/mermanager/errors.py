"""
Error types shared by the store, identity and optimization layers.

None of these are fatal: routers turn them into HTTP errors and the shell
turns them into a notice for the user.
"""


class MerManagerError(Exception):
    """Base class for all MerManager errors."""
    pass


class AuthError(MerManagerError):
    """Sign-in flow failed or was cancelled."""
    pass


class StoreError(MerManagerError):
    """A create/update/delete was rejected by the persistence layer."""
    pass


class OptimizationError(MerManagerError):
    """The AI listing optimization could not produce a usable result."""
    pass

"""
trackkit - Exceptions and Warnings
==================================

Errors raised by the numeric kernels. All of them are raised at the point
of detection; nothing in trackkit retries or recovers.

License: MIT
"""


class TrackkitError(Exception):
    """Base class for trackkit errors"""


class UnsupportedParameterError(TrackkitError, NotImplementedError):
    """
    A parameter combination the routine has no implementation for.

    Raised e.g. when a noncentral gamma distribution (lam != 0) is passed to
    an operation that only exists for the central case.
    """


class InvalidAlgorithmError(TrackkitError, ValueError):
    """Unknown algorithm / coordinate-system selector"""


class SeriesNonconvergenceWarning(RuntimeWarning):
    """
    A series expansion hit its iteration limit before reaching the
    requested tolerance. The partial sum is still returned.
    """

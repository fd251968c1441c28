"""
utils/errors.py — Exception types raised by the analysis engine
================================================================
Only malformed input raises.  A well-formed computation whose result is
mathematically undefined (no template matches, an empty fit range, zero
variance) is reported as a value, never as an exception:

    * scalar metrics in a `MetricsRecord` → `None` plus a reason string
    * arrays (entropy profiles, spectra)  → NaN
"""


class HRVError(Exception):
    """Base class for all errors raised by this project."""


class InvalidInputError(HRVError, ValueError):
    """
    Input that an algorithm cannot accept: too few samples for its window or
    model order, non-positive intervals, mismatched or non-monotonic arrays.

    Subclasses ValueError so callers that already guard signal-processing
    steps with `except ValueError` keep working.
    """

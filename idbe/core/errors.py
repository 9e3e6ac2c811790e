"""
idbe/core/errors.py

Failure conditions raised by the bucket elimination solver.

All of them are fatal for the run that raised them: no partial MEU or
policy survives.
"""

from __future__ import annotations


class BEError(Exception):
    """Base class for solver failures."""


class UnsupportedModelError(BEError):
    """The model lacks the constrained (partial order) structure BE needs, e.g. a LIMID."""


class UnknownOperatorError(BEError):
    """An elimination was requested with an operator outside {sum, max, min}."""


class UnsupportedQueryError(BEError):
    """
    The solver does not implement the requested query family
    (beliefs, bounds, best configuration, partition function).

    Distinct from PreconditionViolation: the query is not applicable to this
    solver at all, rather than not available yet.
    """


class PreconditionViolation(BEError):
    """A result was requested before the pass that produces it completed."""

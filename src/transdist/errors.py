# src/transdist/errors.py
"""Exception types raised by the estimation pipeline."""


class TransDistError(ValueError):
    """Base class for every error raised by transdist."""


class DomainError(TransDistError):
    """Malformed probability or case inputs (e.g. weights that do not sum to a positive value)."""


class ShapeMismatchError(TransDistError):
    """A caller-supplied matrix or tensor does not match the case-time structure."""


class InsufficientDataError(TransDistError):
    """Too few unique times or case pairs to compute an estimate."""

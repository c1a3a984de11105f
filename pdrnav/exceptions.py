"""
Exception types raised by the PDR pipeline.

Two failure classes exist:
    - InvalidInputError: malformed arguments (mismatched lengths, wrong
      matrix shapes, out-of-range coefficients). Raised before any
      internal state is modified.
    - SingularMatrixError: a matrix that must be inverted is numerically
      singular. Fatal to the single call that triggered it.

Particle-weight collapse is handled inside the particle filter and never
surfaces as an exception.
"""

import numpy as np


class InvalidInputError(ValueError):
    """Argument with a bad shape, length or value range."""


class SingularMatrixError(np.linalg.LinAlgError):
    """Matrix inversion hit a pivot whose magnitude is below tolerance."""

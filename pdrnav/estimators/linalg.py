"""
Matrix inversion with an explicit singularity tolerance.

The Kalman gain needs S^{-1} for innovation covariances that are tiny
(1x1, 2x2 for the heading filter) or small (3x3 for the attitude filter).
Closed-form inverses are used for 1x1 and 2x2; larger matrices go through
Gauss-Jordan elimination with partial pivoting. Any pivot (or determinant)
with magnitude below PIVOT_TOLERANCE raises SingularMatrixError instead of
returning a matrix full of inf/nan.
"""

import numpy as np

from pdrnav.exceptions import InvalidInputError, SingularMatrixError

PIVOT_TOLERANCE = 1e-10


def invert_matrix(A: np.ndarray, tol: float = PIVOT_TOLERANCE) -> np.ndarray:
    """
    Invert a square matrix.

    Args:
        A: Square matrix (n×n), n >= 1.
        tol: Smallest admissible pivot magnitude.

    Returns:
        A^{-1} (n×n). The input is not modified.

    Raises:
        InvalidInputError: If A is not a non-empty square matrix.
        SingularMatrixError: If a pivot falls below tol.

    Example:
        >>> invert_matrix(np.array([[2.0, 0.0], [0.0, 4.0]]))
        array([[0.5 , 0.  ],
               [0.  , 0.25]])
    """
    A = np.asarray(A, dtype=np.float64)
    if A.ndim != 2 or A.shape[0] != A.shape[1] or A.shape[0] == 0:
        raise InvalidInputError(f"Expected a non-empty square matrix, got shape {A.shape}")

    n = A.shape[0]

    if n == 1:
        if abs(A[0, 0]) < tol:
            raise SingularMatrixError(f"Matrix is singular (|a| = {abs(A[0, 0]):.3e})")
        return np.array([[1.0 / A[0, 0]]])

    if n == 2:
        det = A[0, 0] * A[1, 1] - A[0, 1] * A[1, 0]
        if abs(det) < tol:
            raise SingularMatrixError(f"Matrix is singular (|det| = {abs(det):.3e})")
        return np.array([[A[1, 1], -A[0, 1]], [-A[1, 0], A[0, 0]]]) / det

    # Augmented matrix [A | I], reduced in place to [I | A^{-1}]
    aug = np.hstack([A.copy(), np.eye(n)])
    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(aug[col:, col])))
        if abs(aug[pivot_row, col]) < tol:
            raise SingularMatrixError(
                f"Matrix is singular (pivot {abs(aug[pivot_row, col]):.3e} in column {col})"
            )
        if pivot_row != col:
            aug[[col, pivot_row]] = aug[[pivot_row, col]]

        aug[col] /= aug[col, col]
        factors = aug[:, col].copy()
        factors[col] = 0.0
        aug -= np.outer(factors, aug[col])

    return aug[:, n:]

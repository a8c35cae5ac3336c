"""Dense linear system solver (Gauss-Jordan with partial pivoting).

Island sizes stay in the tens of nodes, so a dense elimination is enough.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

PIVOT_TOLERANCE = 1e-12


class SingularMatrixError(np.linalg.LinAlgError):
    """Best available pivot is below the tolerance."""


def gauss_jordan_solve(
    a: ArrayLike,
    b: ArrayLike,
    pivot_tolerance: float = PIVOT_TOLERANCE,
) -> NDArray[np.float64]:
    """Solve ``a @ x = b``.

    Algorithm:
    1. Build the augmented matrix [A | b]
    2. For each column i, swap in the remaining row with the largest |M[r, i]|
    3. Fail if that pivot is below ``pivot_tolerance``
    4. Normalize the pivot row, eliminate column i from every other row
    5. The last column holds x

    Raises:
        SingularMatrixError: no usable pivot for some column.
        ValueError: ``a`` is not square or ``b`` does not match it.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    n = b.shape[0] if b.ndim == 1 else -1
    if a.size == 0 and n == 0:
        return np.zeros(0)
    if a.ndim != 2 or a.shape != (n, n):
        raise ValueError(f"Expected an n×n matrix and length-n vector, got {a.shape} and {b.shape}")

    m = np.hstack([a, b.reshape(n, 1)])

    for i in range(n):
        max_r = i + int(np.argmax(np.abs(m[i:, i])))
        if abs(m[max_r, i]) < pivot_tolerance:
            raise SingularMatrixError(
                f"Singular matrix at column {i} (islanded network or slack not connected)"
            )
        if max_r != i:
            m[[i, max_r]] = m[[max_r, i]]

        m[i, i:] /= m[i, i]

        factors = m[:, i].copy()
        factors[i] = 0.0
        m[:, i:] -= np.outer(factors, m[i, i:])

    return m[:, n].copy()

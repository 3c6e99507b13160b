"""Eager input validation shared by clustering, quantization and aggregation.

All checks run before any heavy computation so that a failing call never
produces partial output.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .errors import DimensionMismatch, NonFiniteInput

_FLOAT_TYPES = (np.float32, np.float64)


def _check_ragged(rows: Sequence, what: str) -> None:
    if not len(rows):
        return
    width = len(rows[0])
    for row in rows:
        if len(row) != width:
            raise DimensionMismatch(width, len(row), what)


def as_feature_matrix(
    data,
    what: str = "feature matrix",
    dim: Optional[int] = None,
    dtype: Optional[np.dtype] = None,
) -> np.ndarray:
    """Return *data* as a C-contiguous 2-D float32/float64 array.

    Parameters
    ----------
    data  : array-like of shape (n, d); a 1-D input is one row.
    what  : label used in error messages.
    dim   : required column count, if known.
    dtype : force this float dtype (used to match a vocabulary).

    An empty input yields a (0, dim) matrix.

    Raises
    ------
    DimensionMismatch on ragged rows, a non-empty zero-width matrix or a
    column count different from ``dim``; NonFiniteInput on NaN / infinity.
    """
    if not isinstance(data, np.ndarray):
        if len(data) and np.ndim(data[0]) == 1:
            _check_ragged(data, what)
        data = np.asarray(data)

    if data.ndim == 1 and not data.size:
        data = data.reshape(0, dim or 0)
    elif data.ndim == 1:
        data = data[np.newaxis, :]
    if data.ndim != 2:
        raise ValueError(f"{what} must be 2-D (n, d), got {data.ndim}-D.")

    if dtype is None:
        dtype = data.dtype if data.dtype.type in _FLOAT_TYPES else np.float64
    arr = np.ascontiguousarray(data, dtype=dtype)

    if dim is not None and arr.shape[1] != dim:
        raise DimensionMismatch(dim, arr.shape[1], what)
    if arr.shape[0] and arr.shape[1] < 1:
        raise DimensionMismatch(1, 0, what)

    finite = np.isfinite(arr).all(axis=1)
    if not finite.all():
        raise NonFiniteInput(what, int(np.argmin(finite)))
    return arr


def as_index_array(data, n: int, what: str) -> np.ndarray:
    """1-D int64 array of length *n* (item maps, labels)."""
    arr = np.asarray(data)
    if arr.ndim != 1:
        raise ValueError(f"{what} must be 1-D, got {arr.ndim}-D.")
    if len(arr) != n:
        raise DimensionMismatch(n, len(arr), what)
    if len(arr) and not np.issubdtype(arr.dtype, np.integer):
        raise ValueError(f"{what} must hold integers, got {arr.dtype}.")
    return arr.astype(np.int64, copy=False)

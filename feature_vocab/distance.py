"""Vector math primitives for feature-vocab.

Single vectors are 1-D numpy arrays; matrices are (n, d) row-major arrays.

Primitives
----------
squared_euclidean : squared L2 distance between two vectors
euclidean         : L2 distance between two vectors
vector_sum        : componentwise sum of a set of vectors
accumulate        : add a vector into a running sum, in place
scale             : multiply a vector by a scalar
nearest_centroid  : exact nearest-centroid scan for a block of rows
"""

from __future__ import annotations

from typing import Tuple

import numpy as np


# ---------------------------------------------------------------------------
# Individual vectors
# ---------------------------------------------------------------------------


def squared_euclidean(a: np.ndarray, b: np.ndarray) -> float:
    """Squared L2 distance between two vectors."""
    diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
    return float(np.dot(diff, diff))


def euclidean(a: np.ndarray, b: np.ndarray) -> float:
    """L2 distance between two vectors."""
    return squared_euclidean(a, b) ** 0.5


def vector_sum(vectors: np.ndarray) -> np.ndarray:
    """Componentwise sum of the rows of *vectors*, in float64."""
    return np.asarray(vectors).sum(axis=0, dtype=np.float64)


def accumulate(total: np.ndarray, vector: np.ndarray) -> np.ndarray:
    """Add *vector* into *total* in place and return *total*."""
    total += vector
    return total


def scale(vector: np.ndarray, factor: float) -> np.ndarray:
    return np.asarray(vector) * factor


# ---------------------------------------------------------------------------
# Blocks of rows
# ---------------------------------------------------------------------------


def row_sq_distances(rows: np.ndarray, vector: np.ndarray) -> np.ndarray:
    """Squared L2 distance of every row of *rows* to *vector*, in float64."""
    diff = rows.astype(np.float64, copy=False) - vector
    return np.einsum("ij,ij->i", diff, diff)


def nearest_centroid(
    rows: np.ndarray, centroids: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """Exact nearest centroid for each row.

    Distances are formed from the differences directly (not the
    ``|x|^2 - 2xc + |c|^2`` expansion) so that equal distances compare
    equal. Ties go to the lowest centroid id.

    Returns
    -------
    (labels, sq_dists): (n,) int64 ids and (n,) squared distances.
    """
    rows = rows.astype(np.float64, copy=False)
    n = rows.shape[0]
    labels = np.zeros(n, dtype=np.int64)
    best = np.full(n, np.inf, dtype=np.float64)
    for j in range(centroids.shape[0]):
        d = row_sq_distances(rows, centroids[j])
        closer = d < best
        best[closer] = d[closer]
        labels[closer] = j
    return labels, best

"""Quantization of feature vectors against a fixed vocabulary.

Each query row maps to the id of its nearest centroid (exact squared L2,
ties to the lowest id). The vocabulary is only read.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import numpy as np

from .distance import nearest_centroid
from .parallel import map_chunks
from .types import Assignment, Vocabulary
from .validation import as_feature_matrix

logger = logging.getLogger(__name__)

BATCH_SIZE = 1024


def quantize(
    vocabulary: Vocabulary,
    query_matrix,
    *,
    batch_size: int = BATCH_SIZE,
    workers: int = 1,
    progress: Optional[Callable[[int], None]] = None,
) -> Assignment:
    """Assign every row of *query_matrix* to its nearest centroid.

    Parameters
    ----------
    vocabulary   : the codebook to quantize against.
    query_matrix : (N, D) array-like; a single 1-D vector is one row.
    batch_size   : rows handed to a worker at a time.
    workers      : threads scanning batches concurrently.
    progress     : called with the row count of each finished batch, from the
                   calling thread and in batch order.

    Returns
    -------
    Assignment of size N with labels in [0, k) and the squared distance of
    each row to its centroid.

    Raises
    ------
    DimensionMismatch if the query width differs from the vocabulary's,
    NonFiniteInput on NaN / infinity.
    """
    query = as_feature_matrix(
        query_matrix, "query matrix", dim=vocabulary.dim, dtype=vocabulary.dtype
    )
    centroids = vocabulary.centroids
    n = query.shape[0]

    def scan(start: int, stop: int):
        return nearest_centroid(query[start:stop], centroids)

    def report(start: int, stop: int, _) -> None:
        progress(stop - start)

    parts = map_chunks(
        scan, n, batch_size, workers, on_done=None if progress is None else report
    )
    if parts:
        labels = np.concatenate([p[0] for p in parts])
        distances = np.concatenate([p[1] for p in parts])
    else:
        labels = np.zeros(0, dtype=np.int64)
        distances = np.zeros(0, dtype=np.float64)

    logger.info(
        "quantized %d feature(s) against %d centroid(s) in %d batch(es)",
        n, vocabulary.k, len(parts),
    )
    return Assignment(labels=labels, k=vocabulary.k, distances=distances)

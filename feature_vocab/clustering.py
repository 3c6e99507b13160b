"""Vocabulary construction with Lloyd's algorithm.

ClusterAccumulator : per-centroid (sum, count) partials, merged associatively
assign_chunk       : assignment step + local accumulation over one row chunk
lloyd              : iterate assign / update from given initial centroids
build_vocabulary   : validate, seed and run Lloyd's algorithm
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import reduce
from typing import List, Optional, Tuple, Union

import numpy as np

from .distance import (
    accumulate,
    euclidean,
    nearest_centroid,
    row_sq_distances,
    scale,
    vector_sum,
)
from .errors import DimensionMismatch, InsufficientSamples
from .parallel import map_chunks
from .seeding import initial_centroids
from .types import ClusteringConfig, InitPolicy, Vocabulary
from .validation import as_feature_matrix

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reduction
# ---------------------------------------------------------------------------


@dataclass
class ClusterAccumulator:
    """Sum of assigned vectors and their count, per centroid id.

    Partials built over disjoint chunks merge with ``merge`` in any order
    (up to floating-point rounding); ``objective`` carries the chunk's
    sum of squared distances alongside.
    """

    sums: np.ndarray
    counts: np.ndarray
    objective: float = 0.0

    @classmethod
    def empty(cls, k: int, dim: int) -> "ClusterAccumulator":
        return cls(
            sums=np.zeros((k, dim), dtype=np.float64),
            counts=np.zeros(k, dtype=np.int64),
        )

    def add(
        self, rows: np.ndarray, labels: np.ndarray, sq_dists: np.ndarray
    ) -> "ClusterAccumulator":
        for j in np.unique(labels):
            accumulate(self.sums[j], vector_sum(rows[labels == j]))
        self.counts += np.bincount(labels, minlength=len(self.counts))
        self.objective += float(sq_dists.sum())
        return self

    def merge(self, other: "ClusterAccumulator") -> "ClusterAccumulator":
        return ClusterAccumulator(
            sums=accumulate(self.sums.copy(), other.sums),
            counts=self.counts + other.counts,
            objective=self.objective + other.objective,
        )

    def means(self, fallback: np.ndarray) -> np.ndarray:
        """Per-centroid mean; rows of *fallback* where the count is zero."""
        out = np.array(fallback, dtype=np.float64)
        filled = self.counts > 0
        inverse = 1.0 / self.counts[filled, np.newaxis]
        out[filled] = scale(self.sums[filled], inverse)
        return out


def assign_chunk(
    sample: np.ndarray, centroids: np.ndarray, start: int, stop: int
) -> Tuple[np.ndarray, np.ndarray, ClusterAccumulator]:
    """Nearest centroids for ``sample[start:stop]`` and the chunk's partials."""
    rows = sample[start:stop]
    labels, sq_dists = nearest_centroid(rows, centroids)
    acc = ClusterAccumulator.empty(*centroids.shape).add(rows, labels, sq_dists)
    return labels, sq_dists, acc


# ---------------------------------------------------------------------------
# Low-level helpers
# ---------------------------------------------------------------------------


def clustering_objective(sample: np.ndarray, centroids: np.ndarray) -> float:
    """Sum of squared distances from each row to its nearest centroid."""
    _, sq_dists = nearest_centroid(sample, centroids)
    return float(sq_dists.sum())


def _reseed_empty(
    sample: np.ndarray,
    labels: np.ndarray,
    centroids: np.ndarray,
    empty: np.ndarray,
) -> np.ndarray:
    """Move each empty centroid onto the row farthest from its own centroid.

    Successive empty clusters take successive farthest rows; ties go to the
    lowest row index.
    """
    spread = row_sq_distances(sample, centroids[labels])
    for j in empty:
        far = int(np.argmax(spread))
        centroids[j] = sample[far]
        spread[far] = 0.0
    return centroids


# ---------------------------------------------------------------------------
# Lloyd iterations
# ---------------------------------------------------------------------------


def lloyd(
    sample: np.ndarray,
    centroids: np.ndarray,
    max_iterations: int = 25,
    tolerance: float = 1e-4,
    workers: int = 1,
    chunk_size: int = 1024,
) -> Tuple[Vocabulary, np.ndarray]:
    """Refine *centroids* on *sample* until convergence or the cap.

    Parameters
    ----------
    sample         : validated (M, D) float array.
    centroids      : (k, D) initial centroids.
    max_iterations : iteration cap.
    tolerance      : stop once the largest centroid displacement (L2) is
                     below this value, or exactly zero.
    workers        : threads for the assignment / accumulation pass.
    chunk_size     : rows per work unit.

    Returns
    -------
    (vocabulary, labels): labels are the sample's assignment from the
    final iteration's assignment step.
    """
    dtype = sample.dtype
    centroids = np.array(centroids, dtype=dtype)
    if centroids.ndim != 2 or centroids.shape[1] != sample.shape[1]:
        raise DimensionMismatch(sample.shape[1], centroids.shape[-1], "centroids")

    objectives: List[float] = []
    labels = np.zeros(sample.shape[0], dtype=np.int64)
    converged = False
    iteration = 0

    for iteration in range(1, max_iterations + 1):
        current = centroids
        parts = map_chunks(
            lambda start, stop: assign_chunk(sample, current, start, stop),
            sample.shape[0],
            chunk_size,
            workers,
        )
        labels = np.concatenate([p[0] for p in parts])
        acc = reduce(ClusterAccumulator.merge, (p[2] for p in parts))
        objectives.append(acc.objective)

        updated = acc.means(fallback=current)
        empty = np.flatnonzero(acc.counts == 0)
        if empty.size:
            logger.warning(
                "iteration %d: reseeding %d empty cluster(s) %s",
                iteration, empty.size, empty[:10].tolist(),
            )
            updated = _reseed_empty(sample, labels, updated, empty)

        centroids = updated.astype(dtype)
        shift = max(euclidean(u, c) for u, c in zip(centroids, current))
        logger.debug(
            "iteration %d: objective=%.6g max_shift=%.6g",
            iteration, acc.objective, shift,
        )
        if shift < tolerance or shift == 0.0:
            converged = True
            break

    if not converged:
        logger.warning(
            "k-means stopped at the iteration cap (%d) without converging",
            max_iterations,
        )

    vocabulary = Vocabulary(
        centroids=centroids,
        iterations=iteration,
        converged=converged,
        objectives=objectives,
    )
    return vocabulary, labels


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def cluster(sample, config: ClusteringConfig) -> Vocabulary:
    """Build a vocabulary from *sample* according to *config*."""
    if config.max_samples is not None:
        sample = sample[: config.max_samples]
    data = as_feature_matrix(sample, "sample matrix")
    if data.shape[0] < config.k:
        raise InsufficientSamples(config.k, data.shape[0])

    logger.info(
        "clustering %d descriptors of dimension %d into %d components (%s)",
        data.shape[0], data.shape[1], config.k, config.init_policy.value,
    )
    seeds = initial_centroids(data, config.k, config.init_policy, config.seed)
    vocabulary, _ = lloyd(
        data,
        seeds,
        max_iterations=config.max_iterations,
        tolerance=config.tolerance,
        workers=config.workers,
        chunk_size=config.chunk_size,
    )
    logger.info(
        "done after %d iteration(s), converged=%s, final objective %.6g",
        vocabulary.iterations, vocabulary.converged, vocabulary.objective,
    )
    return vocabulary


def build_vocabulary(
    sample_matrix,
    k: int,
    seed: int = 0,
    max_iterations: int = 25,
    tolerance: float = 1e-4,
    init_policy: Union[InitPolicy, str] = InitPolicy.FARTHEST_POINT,
    *,
    max_samples: Optional[int] = None,
    workers: int = 1,
    chunk_size: int = 1024,
) -> Vocabulary:
    """Cluster *sample_matrix* into a vocabulary of k centroids.

    Parameters
    ----------
    sample_matrix  : (M, D) array-like of feature vectors.
    k              : vocabulary size.
    seed           : seed for the initial centroid selection.
    max_iterations : Lloyd iteration cap.
    tolerance      : convergence threshold on the largest centroid shift.
    init_policy    : InitPolicy or "random" / "kmeans++".
    max_samples    : only cluster the first ``max_samples`` rows.
    workers        : threads for the data-parallel steps.
    chunk_size     : rows per work unit.

    Returns
    -------
    Vocabulary with exactly k centroids of dimension D, plus the iteration
    count used and whether the tolerance was met.

    Raises
    ------
    InsufficientSamples, DimensionMismatch, NonFiniteInput.
    """
    config = ClusteringConfig(
        k=k,
        seed=seed,
        max_iterations=max_iterations,
        tolerance=tolerance,
        init_policy=init_policy,
        max_samples=max_samples,
        workers=workers,
        chunk_size=chunk_size,
    )
    return cluster(sample_matrix, config)

"""Initial centroid selection.

random_distinct : k distinct rows drawn uniformly without replacement
farthest_point  : k-means++ seeding (D^2 weighting)

Each policy is a pure function of (sample, k, rng) returning the chosen row
indices; ``initial_centroids`` dispatches on InitPolicy.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict

import numpy as np

from .distance import row_sq_distances
from .errors import InsufficientSamples
from .types import InitPolicy

logger = logging.getLogger(__name__)


def random_distinct(
    sample: np.ndarray, k: int, rng: np.random.Generator
) -> np.ndarray:
    """Indices of k distinct sample rows, uniformly without replacement."""
    return rng.choice(sample.shape[0], size=k, replace=False)


def farthest_point(
    sample: np.ndarray, k: int, rng: np.random.Generator
) -> np.ndarray:
    """k-means++ seeding.

    The first row is chosen uniformly; each following row is drawn with
    probability proportional to its squared distance to the nearest row
    already chosen. If every remaining distance is zero (fewer distinct
    points than k), the next row is drawn uniformly from the rows not yet
    chosen.
    """
    n = sample.shape[0]
    chosen = np.empty(k, dtype=np.int64)
    taken = np.zeros(n, dtype=bool)

    chosen[0] = rng.integers(0, n)
    taken[chosen[0]] = True
    dist2 = row_sq_distances(sample, sample[chosen[0]]).astype(np.float64)

    for i in range(1, k):
        total = dist2.sum()
        if total > 0.0 and np.isfinite(total):
            idx = rng.choice(n, p=dist2 / total)
        else:
            logger.debug("no spread left after %d seeds, drawing uniformly", i)
            idx = rng.choice(np.flatnonzero(~taken))
        chosen[i] = idx
        taken[idx] = True
        dist2 = np.minimum(dist2, row_sq_distances(sample, sample[idx]))
        dist2[taken] = 0.0

    return chosen


_POLICIES: Dict[InitPolicy, Callable[..., np.ndarray]] = {
    InitPolicy.RANDOM_DISTINCT: random_distinct,
    InitPolicy.FARTHEST_POINT: farthest_point,
}


def initial_centroids(
    sample: np.ndarray,
    k: int,
    policy: InitPolicy = InitPolicy.FARTHEST_POINT,
    seed: int = 0,
) -> np.ndarray:
    """Pick k initial centroids from *sample* (a validated (M, D) array).

    Deterministic for a given seed. Returns a new (k, D) array of the
    sample's dtype.

    Raises
    ------
    InsufficientSamples if M < k.
    """
    if sample.shape[0] < k:
        raise InsufficientSamples(k, sample.shape[0])
    rng = np.random.default_rng(seed)
    indices = _POLICIES[InitPolicy(policy)](sample, k, rng)
    return sample[indices].copy()

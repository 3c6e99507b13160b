"""Core record types for feature-vocab.

InitPolicy       : initial centroid selection policy (tagged variant)
ClusteringConfig : explicit run configuration for vocabulary construction
Vocabulary       : the k centroids produced by clustering (the codebook)
Assignment       : nearest-centroid id for every feature row
Bag / BagTable   : per-item histograms over the vocabulary
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import numpy as np

from .validation import as_feature_matrix


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class InitPolicy(str, Enum):
    """How the initial centroids are chosen from the sample."""

    RANDOM_DISTINCT = "random"
    FARTHEST_POINT = "kmeans++"


@dataclass(frozen=True)
class ClusteringConfig:
    """Parameters of one vocabulary construction run.

    Schema
    ------
    k              : vocabulary size (number of centroids), >= 1
    seed           : seed of the pseudo-random source used for initialisation
    max_iterations : Lloyd iteration cap, >= 1
    tolerance      : stop once the largest centroid displacement is below this
    init_policy    : InitPolicy (or its string value)
    max_samples    : only the first ``max_samples`` rows are clustered
    workers        : threads used for the data-parallel steps
    chunk_size     : rows per work unit in the data-parallel steps
    """

    k: int
    seed: int = 0
    max_iterations: int = 25
    tolerance: float = 1e-4
    init_policy: InitPolicy = InitPolicy.FARTHEST_POINT
    max_samples: Optional[int] = None
    workers: int = 1
    chunk_size: int = 1024

    def __post_init__(self) -> None:
        if self.k < 1:
            raise ValueError(f"k must be >= 1, got {self.k}")
        if self.max_iterations < 1:
            raise ValueError(
                f"max_iterations must be >= 1, got {self.max_iterations}"
            )
        if not self.tolerance >= 0.0:
            raise ValueError(f"tolerance must be >= 0, got {self.tolerance}")
        if self.max_samples is not None and self.max_samples < 1:
            raise ValueError(f"max_samples must be >= 1, got {self.max_samples}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")
        object.__setattr__(self, "init_policy", InitPolicy(self.init_policy))


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class Vocabulary:
    """The codebook: k centroid vectors of dimension D.

    Centroid ids are the row indices 0..k-1. The centroid array is marked
    read-only; a vocabulary never changes after clustering returns.

    Schema
    ------
    centroids  : (k, D) float32 / float64 array
    iterations : Lloyd iterations actually run (0 for a loaded vocabulary)
    converged  : True if the displacement tolerance was met before the cap
    objectives : within-cluster sum of squared distances, one per iteration
    """

    centroids: np.ndarray
    iterations: int = 0
    converged: bool = False
    objectives: List[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        centroids = np.array(as_feature_matrix(self.centroids, "vocabulary"))
        if not centroids.shape[0]:
            raise ValueError("centroids must be a non-empty (k, D) array")
        self.centroids = _frozen(centroids)

    @classmethod
    def from_array(cls, centroids) -> "Vocabulary":
        """Wrap centroids loaded from storage."""
        return cls(centroids=centroids)

    @property
    def k(self) -> int:
        return self.centroids.shape[0]

    @property
    def dim(self) -> int:
        return self.centroids.shape[1]

    @property
    def dtype(self) -> np.dtype:
        return self.centroids.dtype

    @property
    def objective(self) -> float:
        """Last recorded objective, ``inf`` when none was recorded."""
        return self.objectives[-1] if self.objectives else float("inf")

    def fingerprint(self) -> str:
        """Blake2b-256 hash of the raw centroid bytes."""
        h = hashlib.blake2b(digest_size=32)
        h.update(str(self.centroids.dtype).encode())
        h.update(np.asarray(self.centroids.shape, dtype=np.int64).tobytes())
        h.update(self.centroids.tobytes())
        return h.hexdigest()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "centroids": self.centroids.tolist(),
            "iterations": self.iterations,
            "converged": self.converged,
            "objectives": list(self.objectives),
        }

    def __len__(self) -> int:
        return self.k


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class Assignment:
    """Nearest-centroid id for each of N feature rows.

    Schema
    ------
    labels    : (N,) int64 array with values in [0, k)
    k         : size of the vocabulary the labels refer to
    distances : optional (N,) squared distance to the assigned centroid
    """

    labels: np.ndarray
    k: int
    distances: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        self.labels = _frozen(np.array(self.labels, dtype=np.int64))
        if self.labels.ndim != 1:
            raise ValueError("labels must be 1-D")
        if self.k < 1:
            raise ValueError(f"k must be >= 1, got {self.k}")
        if len(self.labels) and (
            self.labels.min() < 0 or self.labels.max() >= self.k
        ):
            raise ValueError(f"labels must lie in [0, {self.k})")
        if self.distances is not None:
            self.distances = _frozen(np.array(self.distances))
            if self.distances.shape != self.labels.shape:
                raise ValueError("distances must match labels in shape")

    def counts(self) -> np.ndarray:
        """Number of rows assigned to each centroid id."""
        return np.bincount(self.labels, minlength=self.k)

    def __len__(self) -> int:
        return len(self.labels)


# ---------------------------------------------------------------------------
# Bags
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class Bag:
    """Histogram of one item's features over the vocabulary.

    ``counts`` holds raw occurrence counts, or the counts divided by
    ``total`` when ``normalized`` is set.
    """

    item_id: int
    counts: np.ndarray
    total: int
    name: Optional[str] = None
    normalized: bool = False

    @property
    def k(self) -> int:
        return len(self.counts)


class BagTable:
    """Item id → Bag, for the items actually present in an assignment."""

    def __init__(self, bags: Dict[int, Bag], k: int, normalized: bool = False):
        self.k = k
        self.normalized = normalized
        self._bags: Dict[int, Bag] = dict(sorted(bags.items()))

    @property
    def item_ids(self) -> List[int]:
        return list(self._bags)

    def __getitem__(self, item_id: int) -> Bag:
        return self._bags[item_id]

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._bags

    def __iter__(self) -> Iterator[int]:
        return iter(self._bags)

    def __len__(self) -> int:
        return len(self._bags)

    def items(self):
        return self._bags.items()

    def values(self):
        return self._bags.values()

    def to_matrix(
        self, n_items: Optional[int] = None
    ) -> Tuple[np.ndarray, np.ndarray, List[Optional[str]]]:
        """Stack the bags into one matrix.

        Parameters
        ----------
        n_items : when given, produce the dense layout where row ``i`` is
                  item id ``i`` and absent items are zero rows. All item ids
                  must then lie in ``[0, n_items)``.

        Returns
        -------
        (item_ids, matrix, names) with rows of ``matrix`` aligned to
        ``item_ids`` and ``names``.
        """
        dtype: Union[type, np.dtype] = np.float64 if self.normalized else np.int64
        if n_items is None:
            ids = np.asarray(self.item_ids, dtype=np.int64)
            matrix = np.zeros((len(ids), self.k), dtype=dtype)
            for row, bag in enumerate(self._bags.values()):
                matrix[row] = bag.counts
            return ids, matrix, [bag.name for bag in self._bags.values()]

        bad = [i for i in self._bags if not 0 <= i < n_items]
        if bad:
            raise ValueError(
                f"item id(s) {bad[:10]} outside [0, {n_items}) for dense layout"
            )
        matrix = np.zeros((n_items, self.k), dtype=dtype)
        names: List[Optional[str]] = [None] * n_items
        for item_id, bag in self._bags.items():
            matrix[item_id] = bag.counts
            names[item_id] = bag.name
        return np.arange(n_items, dtype=np.int64), matrix, names

    def __repr__(self) -> str:
        return (
            f"BagTable(items={len(self)} k={self.k} "
            f"normalized={self.normalized})"
        )

"""BagOfFeatures: vocabulary construction, quantization and bag building.

Public API
----------
BagOfFeatures
    .fit()       : cluster a sample into a vocabulary and keep it
    .quantize()  : nearest-centroid assignment for a feature matrix
    .bags()      : quantize + aggregate into per-item histograms
    .history     : one record per operation, tagged with the vocabulary fingerprint
    .stats()     : summary dict
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .bags import ItemNames, aggregate
from .clustering import cluster
from .quantize import BATCH_SIZE, quantize
from .types import Assignment, BagTable, ClusteringConfig, Vocabulary

logger = logging.getLogger(__name__)


def _utcnow() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class BagOfFeatures:
    """Bag-of-visual-words pipeline over one vocabulary.

    Parameters
    ----------
    config     : ClusteringConfig used by ``fit``. Its ``workers`` and
                 ``chunk_size`` also drive quantization.
    vocabulary : an existing vocabulary (e.g. loaded from storage); ``fit``
                 is then optional.
    """

    def __init__(
        self,
        config: Optional[ClusteringConfig] = None,
        vocabulary: Optional[Vocabulary] = None,
    ) -> None:
        if config is None and vocabulary is None:
            raise ValueError("either config or vocabulary is required")
        self.config = config
        self.vocabulary = vocabulary
        self.history: List[Dict[str, Any]] = []
        if vocabulary is not None:
            self._log("LOAD_VOCABULARY", k=vocabulary.k, dim=vocabulary.dim)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _log(self, action: str, **kwargs: Any) -> None:
        logger.debug("%s %s", action, kwargs)
        self.history.append(
            {
                "action": action,
                "timestamp": _utcnow(),
                "vocabulary": (
                    self.vocabulary.fingerprint() if self.vocabulary else None
                ),
                **kwargs,
            }
        )

    def _require_vocabulary(self) -> Vocabulary:
        if self.vocabulary is None:
            raise RuntimeError("no vocabulary: call fit() or pass one in")
        return self.vocabulary

    @property
    def _workers(self) -> int:
        return self.config.workers if self.config else 1

    @property
    def _batch_size(self) -> int:
        return self.config.chunk_size if self.config else BATCH_SIZE

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def fit(self, sample) -> Vocabulary:
        """Cluster *sample* with ``self.config`` and keep the result."""
        if self.config is None:
            raise RuntimeError("fit() needs a ClusteringConfig")
        self.vocabulary = cluster(sample, self.config)
        self._log(
            "FIT",
            k=self.vocabulary.k,
            dim=self.vocabulary.dim,
            iterations=self.vocabulary.iterations,
            converged=self.vocabulary.converged,
            objective=self.vocabulary.objective,
        )
        return self.vocabulary

    def quantize(
        self, features, progress: Optional[Callable[[int], None]] = None
    ) -> Assignment:
        vocabulary = self._require_vocabulary()
        assignment = quantize(
            vocabulary,
            features,
            batch_size=self._batch_size,
            workers=self._workers,
            progress=progress,
        )
        self._log("QUANTIZE", features=len(assignment))
        return assignment

    def bags(
        self,
        features,
        item_map=None,
        item_names: Optional[ItemNames] = None,
        normalize: bool = False,
        progress: Optional[Callable[[int], None]] = None,
    ) -> BagTable:
        """Quantize *features* and aggregate them per item."""
        assignment = self.quantize(features, progress=progress)
        table = aggregate(
            assignment, item_map, normalize=normalize, item_names=item_names
        )
        self._log("BAGS", items=len(table), normalized=normalize)
        return table

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def stats(self) -> Dict[str, Any]:
        v = self.vocabulary
        return {
            "k": v.k if v else (self.config.k if self.config else None),
            "dim": v.dim if v else None,
            "iterations": v.iterations if v else 0,
            "converged": v.converged if v else False,
            "objective": v.objective if v else None,
            "fingerprint": v.fingerprint() if v else None,
            "operations": len(self.history),
        }

    def __repr__(self) -> str:
        s = self.stats()
        fp = s["fingerprint"][:8] + "..." if s["fingerprint"] else None
        return (
            f"BagOfFeatures(k={s['k']} dim={s['dim']} "
            f"iterations={s['iterations']} vocabulary={fp})"
        )

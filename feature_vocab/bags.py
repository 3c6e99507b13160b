"""Bag-of-features aggregation.

Groups quantized features by item and emits one length-k histogram per item
that has at least one feature. Without an item map every feature belongs to
the single implicit item ``SINGLE_ITEM``.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Sequence, Union

import numpy as np

from .errors import UnknownItemReference
from .types import Assignment, Bag, BagTable
from .validation import as_index_array

logger = logging.getLogger(__name__)

SINGLE_ITEM = 0

ItemNames = Union[Sequence[str], Mapping[int, str]]


def _resolve_names(item_ids: np.ndarray, item_names: ItemNames) -> Dict[int, str]:
    """Map each observed item id to its name.

    A sequence is indexed by item id; a mapping is looked up by key.
    """
    names: Dict[int, str] = {}
    missing = []
    is_mapping = isinstance(item_names, Mapping)
    for item_id in item_ids.tolist():
        if is_mapping:
            if item_id in item_names:
                names[item_id] = str(item_names[item_id])
                continue
        elif 0 <= item_id < len(item_names):
            names[item_id] = str(item_names[item_id])
            continue
        missing.append(item_id)
    if missing:
        raise UnknownItemReference(missing)
    return names


def histograms(labels: np.ndarray, item_ids: np.ndarray, k: int):
    """Keyed reduction of (item, label) pairs.

    Returns
    -------
    (unique_ids, counts): sorted distinct item ids and an
    (n_items, k) int64 count matrix aligned to them.
    """
    unique_ids, inverse = np.unique(item_ids, return_inverse=True)
    flat = inverse.reshape(-1) * k + labels
    counts = np.bincount(flat, minlength=len(unique_ids) * k)
    return unique_ids, counts.reshape(len(unique_ids), k).astype(np.int64)


def aggregate(
    assignment: Assignment,
    item_map=None,
    normalize: bool = False,
    item_names: Optional[ItemNames] = None,
) -> BagTable:
    """Build one histogram per item present in *assignment*.

    Parameters
    ----------
    assignment : labels for N features (from ``quantize``).
    item_map   : (N,) integer item id per feature; ``None`` puts every
                 feature in item ``SINGLE_ITEM``.
    normalize  : divide each histogram by its item's feature count.
    item_names : optional name table (sequence indexed by item id, or a
                 mapping). When given, every observed item id must resolve.

    Returns
    -------
    BagTable keyed by item id. Items without features are absent.

    Raises
    ------
    DimensionMismatch if ``item_map`` does not have N entries,
    UnknownItemReference if an observed item id has no name.
    """
    n = len(assignment)
    k = assignment.k
    if item_map is None:
        item_ids = np.full(n, SINGLE_ITEM, dtype=np.int64)
    else:
        item_ids = as_index_array(item_map, n, "item map")

    unique_ids, counts = histograms(assignment.labels, item_ids, k)
    names = (
        _resolve_names(unique_ids, item_names) if item_names is not None else {}
    )

    bags: Dict[int, Bag] = {}
    for item_id, row in zip(unique_ids.tolist(), counts):
        total = int(row.sum())
        values = row / total if normalize else row
        bags[item_id] = Bag(
            item_id=item_id,
            counts=values,
            total=total,
            name=names.get(item_id),
            normalized=normalize,
        )

    logger.info(
        "built %d bag(s) of size %d from %d feature(s)", len(bags), k, n
    )
    return BagTable(bags, k=k, normalized=normalize)

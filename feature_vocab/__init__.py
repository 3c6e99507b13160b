"""feature-vocab: visual vocabularies and bags of features.

Clusters a sample of dense feature vectors into a fixed-size codebook with
Lloyd's algorithm, quantizes feature vectors against it and aggregates the
assignments into per-item histograms.

Public API::

    from feature_vocab import build_vocabulary, quantize, aggregate
"""

from .bags import SINGLE_ITEM, aggregate
from .clustering import build_vocabulary, cluster, lloyd
from .errors import (
    DimensionMismatch,
    FeatureVocabError,
    InsufficientSamples,
    NonFiniteInput,
    UnknownItemReference,
)
from .pipeline import BagOfFeatures
from .quantize import quantize
from .types import Assignment, Bag, BagTable, ClusteringConfig, InitPolicy, Vocabulary

__version__ = "0.1.0"
__all__ = [
    "Assignment",
    "Bag",
    "BagOfFeatures",
    "BagTable",
    "ClusteringConfig",
    "DimensionMismatch",
    "FeatureVocabError",
    "InitPolicy",
    "InsufficientSamples",
    "NonFiniteInput",
    "SINGLE_ITEM",
    "UnknownItemReference",
    "Vocabulary",
    "aggregate",
    "build_vocabulary",
    "cluster",
    "lloyd",
    "quantize",
]

"""Unit tests for feature_vocab.types."""

import numpy as np
import pytest

from feature_vocab.errors import NonFiniteInput
from feature_vocab.types import (
    Assignment,
    Bag,
    BagTable,
    ClusteringConfig,
    InitPolicy,
    Vocabulary,
)


# ---------------------------------------------------------------------------
# ClusteringConfig
# ---------------------------------------------------------------------------


def test_config_defaults():
    c = ClusteringConfig(k=8)
    assert c.max_iterations == 25
    assert c.init_policy is InitPolicy.FARTHEST_POINT
    assert c.workers == 1


def test_config_coerces_policy_string():
    assert ClusteringConfig(k=2, init_policy="random").init_policy is InitPolicy.RANDOM_DISTINCT


@pytest.mark.parametrize(
    "kwargs, match",
    [
        ({"k": 0}, "k must be"),
        ({"k": 2, "max_iterations": 0}, "max_iterations"),
        ({"k": 2, "tolerance": -0.1}, "tolerance"),
        ({"k": 2, "tolerance": float("nan")}, "tolerance"),
        ({"k": 2, "max_samples": 0}, "max_samples"),
        ({"k": 2, "workers": 0}, "workers"),
        ({"k": 2, "chunk_size": 0}, "chunk_size"),
    ],
)
def test_config_invalid(kwargs, match):
    with pytest.raises(ValueError, match=match):
        ClusteringConfig(**kwargs)


def test_config_is_frozen():
    c = ClusteringConfig(k=2)
    with pytest.raises(Exception):
        c.k = 3  # type: ignore


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------


def test_vocabulary_properties():
    v = Vocabulary(centroids=np.zeros((3, 5), dtype=np.float32), iterations=4,
                   converged=True, objectives=[3.0, 2.0])
    assert v.k == 3
    assert v.dim == 5
    assert len(v) == 3
    assert v.dtype == np.float32
    assert v.objective == 2.0


def test_vocabulary_is_read_only():
    v = Vocabulary.from_array([[0.0, 1.0]])
    with pytest.raises(ValueError):
        v.centroids[0, 0] = 5.0


def test_vocabulary_copies_input():
    src = np.ones((2, 2))
    v = Vocabulary(centroids=src)
    src[0, 0] = 9.0
    assert v.centroids[0, 0] == 1.0
    assert src.flags.writeable


def test_vocabulary_objective_without_history():
    assert Vocabulary.from_array([[1.0]]).objective == float("inf")


def test_vocabulary_fingerprint():
    a = Vocabulary.from_array([[0.0, 1.0], [2.0, 3.0]])
    b = Vocabulary.from_array([[0.0, 1.0], [2.0, 3.0]])
    c = Vocabulary.from_array([[0.0, 1.0], [2.0, 3.5]])
    assert len(a.fingerprint()) == 64
    assert a.fingerprint() == b.fingerprint()
    assert a.fingerprint() != c.fingerprint()


def test_vocabulary_from_array_rejects_nan():
    with pytest.raises(NonFiniteInput):
        Vocabulary.from_array([[0.0, np.nan]])


def test_vocabulary_rejects_empty():
    with pytest.raises(ValueError):
        Vocabulary(centroids=np.zeros((0, 3)))


def test_vocabulary_constructor_validates():
    with pytest.raises(NonFiniteInput, match="row 0"):
        Vocabulary(centroids=[[np.nan], [1.0]])
    with pytest.raises(ValueError):
        Vocabulary(centroids=[])


def test_vocabulary_promotes_integer_centroids():
    v = Vocabulary(centroids=np.array([[0, 2], [4, 6]]))
    assert v.dtype == np.float64
    assert v.centroids.tolist() == [[0.0, 2.0], [4.0, 6.0]]
    assert not v.centroids.flags.writeable


def test_vocabulary_to_dict():
    d = Vocabulary.from_array([[1.0, 2.0]]).to_dict()
    assert d["centroids"] == [[1.0, 2.0]]
    assert d["iterations"] == 0
    assert d["converged"] is False


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------


def test_assignment_counts():
    a = Assignment(labels=[0, 2, 2, 1, 2], k=4)
    assert a.counts().tolist() == [1, 1, 3, 0]
    assert len(a) == 5


def test_assignment_label_range():
    with pytest.raises(ValueError, match="labels must lie"):
        Assignment(labels=[0, 3], k=3)
    with pytest.raises(ValueError, match="labels must lie"):
        Assignment(labels=[-1], k=3)


def test_assignment_distances_shape():
    with pytest.raises(ValueError, match="distances"):
        Assignment(labels=[0, 1], k=2, distances=[0.0])


# ---------------------------------------------------------------------------
# BagTable
# ---------------------------------------------------------------------------


def _table(normalized=False):
    bags = {
        4: Bag(item_id=4, counts=np.array([1, 0, 2]), total=3, name="four"),
        1: Bag(item_id=1, counts=np.array([0, 5, 0]), total=5, name="one"),
    }
    return BagTable(bags, k=3, normalized=normalized)


def test_bag_table_sorted_by_item():
    t = _table()
    assert t.item_ids == [1, 4]
    assert list(t) == [1, 4]
    assert len(t) == 2
    assert t[4].k == 3


def test_bag_table_to_matrix():
    ids, matrix, names = _table().to_matrix()
    assert ids.tolist() == [1, 4]
    assert matrix.tolist() == [[0, 5, 0], [1, 0, 2]]
    assert names == ["one", "four"]


def test_bag_table_to_dense_matrix():
    ids, matrix, names = _table().to_matrix(n_items=6)
    assert ids.tolist() == list(range(6))
    assert matrix.shape == (6, 3)
    assert matrix[1].tolist() == [0, 5, 0]
    assert matrix[4].tolist() == [1, 0, 2]
    assert matrix[0].sum() == 0
    assert names[4] == "four" and names[0] is None


def test_bag_table_dense_out_of_range():
    with pytest.raises(ValueError, match="outside"):
        _table().to_matrix(n_items=3)

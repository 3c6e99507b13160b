"""Unit tests for feature_vocab.distance."""

import numpy as np
import pytest

from feature_vocab.distance import (
    accumulate,
    euclidean,
    nearest_centroid,
    row_sq_distances,
    scale,
    squared_euclidean,
    vector_sum,
)


# ---------------------------------------------------------------------------
# Single vectors
# ---------------------------------------------------------------------------


def test_squared_euclidean_known():
    a = np.array([0.0, 0.0])
    b = np.array([3.0, 4.0])
    assert squared_euclidean(a, b) == pytest.approx(25.0)


def test_euclidean_known():
    a = np.array([0.0, 0.0])
    b = np.array([3.0, 4.0])
    assert euclidean(a, b) == pytest.approx(5.0)


def test_squared_euclidean_identical():
    a = np.array([1.5, -2.0, 3.0], dtype=np.float32)
    assert squared_euclidean(a, a) == 0.0


def test_vector_sum():
    rows = np.array([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])
    np.testing.assert_allclose(vector_sum(rows), [9.0, 12.0])


def test_accumulate_in_place():
    total = np.zeros(3)
    out = accumulate(total, np.array([1.0, 2.0, 3.0]))
    accumulate(total, np.array([1.0, 1.0, 1.0]))
    assert out is total
    np.testing.assert_allclose(total, [2.0, 3.0, 4.0])


def test_scale():
    np.testing.assert_allclose(scale(np.array([2.0, -4.0]), 0.5), [1.0, -2.0])


# ---------------------------------------------------------------------------
# Blocks of rows
# ---------------------------------------------------------------------------


def test_row_sq_distances():
    rows = np.array([[0.0, 0.0], [1.0, 1.0], [3.0, 4.0]])
    np.testing.assert_allclose(row_sq_distances(rows, np.zeros(2)), [0.0, 2.0, 25.0])


def test_nearest_centroid_picks_minimum():
    centroids = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
    rows = np.array([[1.0, 1.0], [9.0, 1.0], [1.0, 9.0], [6.0, 0.0]])
    labels, sq = nearest_centroid(rows, centroids)
    assert labels.tolist() == [0, 1, 2, 1]
    np.testing.assert_allclose(sq, [2.0, 2.0, 2.0, 16.0])


def test_nearest_centroid_tie_goes_to_lowest_id():
    centroids = np.array([[1.0, 0.0], [-1.0, 0.0], [1.0, 0.0]])
    labels, sq = nearest_centroid(np.array([[0.0, 0.0], [1.0, 0.0]]), centroids)
    assert labels.tolist() == [0, 0]
    np.testing.assert_allclose(sq, [1.0, 0.0])


def test_nearest_centroid_matches_brute_force():
    rng = np.random.default_rng(3)
    rows = rng.normal(size=(50, 6))
    centroids = rng.normal(size=(7, 6))
    labels, sq = nearest_centroid(rows, centroids)
    full = ((rows[:, None, :] - centroids[None, :, :]) ** 2).sum(axis=2)
    assert labels.tolist() == full.argmin(axis=1).tolist()
    np.testing.assert_allclose(sq, full.min(axis=1))


def test_nearest_centroid_empty_block():
    labels, sq = nearest_centroid(np.zeros((0, 3)), np.ones((2, 3)))
    assert labels.shape == (0,)
    assert sq.shape == (0,)


def test_row_sq_distances_float32_do_not_overflow():
    rows = np.array([[1e20], [0.0]], dtype=np.float32)
    d = row_sq_distances(rows, np.zeros(1, dtype=np.float32))
    assert d.dtype == np.float64
    assert d.tolist() == pytest.approx([1e40, 0.0], rel=1e-6)


def test_nearest_centroid_float32_large_magnitudes():
    centroids = np.array([[0.0], [1e20]], dtype=np.float32)
    labels, sq = nearest_centroid(np.array([[6e19]], dtype=np.float32), centroids)
    assert labels.tolist() == [1]
    assert np.isfinite(sq).all()

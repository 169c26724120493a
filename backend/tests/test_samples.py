"""Tests for color samples and the distance metric."""

import math
import tracemalloc

import numpy as np
import pytest

from samples import ColorSample, as_population, distance, distances_to_centers


class TestDistance:
    """Test cases for the Euclidean RGBA distance."""

    def test_known_distance(self):
        a = ColorSample(0, 0, 0, 0)
        b = ColorSample(3, 4, 0, 0)
        assert distance(a, b) == pytest.approx(5.0)

    def test_alpha_counts(self):
        """Alpha is the fourth dimension of the metric."""
        a = ColorSample(10, 10, 10, 0)
        b = ColorSample(10, 10, 10, 255)
        assert a.distance_to(b) == pytest.approx(255.0)

    def test_symmetric_and_zero_on_equal(self):
        a = ColorSample(12, 200, 45, 255)
        b = ColorSample(90, 3, 77, 128)
        assert distance(a, b) == distance(b, a)
        assert distance(a, ColorSample(12, 200, 45, 255)) == 0.0

    def test_triangle_inequality(self):
        rng = np.random.RandomState(0)
        for _ in range(50):
            a, b, c = (ColorSample.from_channels(rng.uniform(0, 255, 4)) for _ in range(3))
            assert distance(a, c) <= distance(a, b) + distance(b, c) + 1e-9

    def test_degenerate_distance_is_nan(self):
        nan = ColorSample.zero().finalize_mean(0)
        assert math.isnan(distance(nan, ColorSample(1, 2, 3, 4)))

    def test_distances_to_centers_shape(self):
        population = np.array([[0, 0, 0, 0], [255, 0, 0, 255]], dtype=np.float64)
        centers = np.array([[0, 0, 0, 0], [255, 0, 0, 255], [0, 0, 0, 255]], dtype=np.float64)
        dists = distances_to_centers(population, centers)
        assert dists.shape == (2, 3)
        assert dists[0, 0] == 0.0
        assert dists[1, 1] == 0.0
        assert dists[1, 2] == pytest.approx(255.0)


class TestAccumulate:
    """Test cases for accumulation and averaging."""

    def test_accumulate_leaves_count(self):
        acc = ColorSample.zero()
        acc.accumulate(ColorSample(10, 20, 30, 40, count=7))
        acc.accumulate([1, 2, 3, 4])
        assert (acc.r, acc.g, acc.b, acc.a) == (11, 22, 33, 44)
        assert acc.count == 0

    def test_accumulate_block_sums_rows(self):
        acc = ColorSample.zero()
        acc.accumulate(np.array([[1, 1, 1, 1], [2, 3, 4, 5]]))
        np.testing.assert_array_equal(acc.channels, [3, 4, 5, 6])

    def test_finalize_mean(self):
        acc = ColorSample(30, 60, 90, 120)
        mean = acc.finalize_mean(3)
        np.testing.assert_array_equal(mean.channels, [10, 20, 30, 40])
        assert mean.count == 3
        assert not mean.is_degenerate

    def test_finalize_mean_of_nothing_is_nan(self):
        mean = ColorSample.zero().finalize_mean(0)
        assert mean.is_degenerate
        assert mean.count == 0
        assert np.isnan(mean.channels).all()


class TestAsPopulation:
    """Test cases for population construction."""

    def test_flattens_image(self):
        pixels = np.zeros((4, 5, 4), dtype=np.uint8)
        population = as_population(pixels)
        assert population.shape == (20, 4)
        assert population.dtype == np.float64

    def test_empty(self):
        assert as_population([]).shape == (0, 4)

    def test_rejects_rgb(self):
        with pytest.raises(ValueError, match="Expected 4 channels"):
            as_population(np.zeros((3, 3)))


class TestDistanceMatrix:
    """Test cases for the sample-to-center distance matrix."""

    def test_distances_match_broadcast_norm(self):
        rng = np.random.RandomState(4)
        population = rng.uniform(0, 255, (500, 4))
        centers = rng.uniform(0, 255, (3, 4))
        expected = np.linalg.norm(population[:, np.newaxis, :] - centers[np.newaxis, :, :], axis=2)
        np.testing.assert_allclose(distances_to_centers(population, centers), expected)

    def test_distances_memory_stays_per_center(self):
        """Scratch memory scales with N, not with N * k * 4."""
        population = np.random.RandomState(0).uniform(0, 255, (200_000, 4))
        centers = np.array([[0, 0, 0, 0], [128, 128, 128, 128], [255, 255, 255, 255]], dtype=np.float64)

        tracemalloc.start()
        try:
            distances_to_centers(population, centers)
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()

        # per center a few (N, 4) temporaries, about 25 MB; broadcasting all centers needs over 60 MB
        assert peak < 40 * 1024 * 1024

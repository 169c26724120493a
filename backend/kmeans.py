"""K-means clustering of RGBA samples.

Centroids are seeded with a farthest-point heuristic, then refined with
Lloyd iterations until the summed centroid displacement drops to the
tolerance. Empty clusters keep NaN channels for the rest of the run.
"""

from typing import List, Optional, Tuple

import numpy as np
from loguru import logger

from errors import ConvergenceError, InsufficientSamplesError
from samples import ColorSample, distance, distances_to_centers

DEFAULT_TOLERANCE = 0.01
DEFAULT_MAX_ITERATIONS = 300
# RandomState only takes seeds in [0, 2**32)
SEED_RANGE = 2 ** 32


def generate_initial_centers(population: np.ndarray, k: int, rng: np.random.RandomState) -> List[ColorSample]:
    """Pick ``k`` starting centroids from the population.

    The first one is drawn uniformly at random; each next one is the sample
    farthest from its nearest chosen centroid (first such sample wins).
    """
    n = len(population)
    if n == 0 or n < k:
        raise InsufficientSamplesError(n, k)

    first = rng.randint(n)
    indices = [first]
    nearest = np.linalg.norm(population - population[first], axis=1)

    for _ in range(1, k):
        idx = int(np.argmax(nearest))
        indices.append(idx)
        nearest = np.minimum(nearest, np.linalg.norm(population - population[idx], axis=1))

    return [ColorSample.from_channels(population[i]) for i in indices]


def assign_samples(population: np.ndarray, centroids: List[ColorSample]) -> Tuple[List[ColorSample], np.ndarray]:
    """Assign every sample to its nearest centroid.

    Returns one fresh accumulator (channel sums) per centroid and the
    number of samples assigned to each. Ties go to the lower index and a
    degenerate centroid never wins a sample.
    """
    centers = np.array([c.channels for c in centroids])
    dists = distances_to_centers(population, centers)
    dists = np.where(np.isnan(dists), np.inf, dists)
    labels = np.argmin(dists, axis=1)

    counts = np.bincount(labels, minlength=len(centroids))
    accumulators = []
    for i in range(len(centroids)):
        acc = ColorSample.zero()
        if counts[i]:
            acc.accumulate(population[labels == i])
        accumulators.append(acc)

    return accumulators, counts


def update_centroids(accumulators: List[ColorSample], counts: np.ndarray) -> List[ColorSample]:
    return [acc.finalize_mean(int(n)) for acc, n in zip(accumulators, counts)]


def centroid_movement(old: List[ColorSample], new: List[ColorSample]) -> float:
    """Total displacement between two centroid sets.

    Moves into or out of a degenerate state count as zero.
    """
    moves = [distance(o, c) for o, c in zip(old, new)]
    return float(np.nansum(moves))


def kmeans(
    population: np.ndarray,
    k: int,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    seed: Optional[int] = None,
) -> Tuple[List[ColorSample], int]:
    """Run k-means to convergence.

    Args:
        population: Samples shaped (N, 4)
        k: Number of clusters
        tolerance: Convergence threshold on total centroid movement
        max_iterations: Iteration cap
        seed: Seed for the first centroid pick, any int; ``None`` draws fresh entropy

    Returns:
        Tuple of (centroids, iterations)

    Raises:
        InsufficientSamplesError: If the population has fewer than ``k`` samples
        ConvergenceError: If ``max_iterations`` is reached first
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    if tolerance < 0:
        raise ValueError(f"tolerance must be >= 0, got {tolerance}")
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")

    rng = np.random.RandomState(None if seed is None else seed % SEED_RANGE)
    centroids = generate_initial_centers(population, k, rng)

    movement = float("inf")
    for iteration in range(1, max_iterations + 1):
        accumulators, counts = assign_samples(population, centroids)
        candidates = update_centroids(accumulators, counts)
        movement = centroid_movement(centroids, candidates)
        centroids = candidates

        logger.debug(f"Iteration {iteration}: movement={movement:.4f}, counts={counts.tolist()}")

        if movement <= tolerance:
            logger.info(f"K-means converged after {iteration} iterations on {len(population)} samples")
            return centroids, iteration

    logger.warning(f"K-means hit the {max_iterations} iteration cap (movement={movement:.4f})")
    raise ConvergenceError(max_iterations, movement)


def rank_clusters(centroids: List[ColorSample]) -> List[ColorSample]:
    """Largest cluster first; order among equal counts is unspecified."""
    return sorted(centroids, key=lambda c: c.count, reverse=True)


def calculate_prominent_clusters(
    population: np.ndarray,
    k: int,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    seed: Optional[int] = None,
) -> List[ColorSample]:
    centroids, _ = kmeans(population, k, tolerance, max_iterations, seed)
    return rank_clusters(centroids)

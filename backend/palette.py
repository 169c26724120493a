"""Palette value objects and the ``compute_palette`` entry point."""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from loguru import logger

from errors import DegenerateResultError
from kmeans import DEFAULT_MAX_ITERATIONS, DEFAULT_TOLERANCE, calculate_prominent_clusters
from samples import ColorSample, as_population

PALETTE_SIZE = 3


@dataclass(frozen=True)
class PaletteColor:
    """A palette entry with 0-255 channels and its cluster population."""

    red: float
    green: float
    blue: float
    alpha: float
    count: int = 0

    @classmethod
    def from_centroid(cls, centroid: ColorSample) -> Optional["PaletteColor"]:
        if centroid.is_degenerate:
            return None
        return cls(centroid.r, centroid.g, centroid.b, centroid.a, centroid.count)

    @property
    def channels(self) -> Tuple[int, int, int, int]:
        values = np.clip(np.rint([self.red, self.green, self.blue, self.alpha]), 0, 255)
        return tuple(int(v) for v in values)

    @property
    def hex(self) -> str:
        r, g, b, _ = self.channels
        return "#{:02x}{:02x}{:02x}".format(r, g, b)

    @property
    def rgba(self) -> Tuple[float, float, float, float]:
        return (self.red / 255, self.green / 255, self.blue / 255, self.alpha / 255)

    def to_dict(self) -> dict:
        return {
            "hex": self.hex,
            "rgba": [round(v, 4) for v in self.rgba],
            "channels": list(self.channels),
            "count": self.count,
        }

    def __str__(self) -> str:
        return f"{self.hex} (alpha {self.channels[3]}, {self.count} px)"


@dataclass(frozen=True)
class Palette:
    """The three most prominent colors of an image.

    Images with fewer than three distinct clusters leave ``secondary``
    and/or ``tertiary`` empty.
    """

    primary: PaletteColor
    secondary: Optional[PaletteColor] = None
    tertiary: Optional[PaletteColor] = None

    @property
    def colors(self) -> List[PaletteColor]:
        return [c for c in (self.primary, self.secondary, self.tertiary) if c is not None]

    def to_dict(self) -> dict:
        return {
            "primary": self.primary.to_dict(),
            "secondary": self.secondary.to_dict() if self.secondary else None,
            "tertiary": self.tertiary.to_dict() if self.tertiary else None,
            "description": str(self),
        }

    def __str__(self) -> str:
        description = f"Primary: {self.primary}"
        if self.secondary is not None:
            description += f", Secondary: {self.secondary}"
        if self.tertiary is not None:
            description += f", Tertiary: {self.tertiary}"
        return description


def assemble_palette(ranked: List[ColorSample]) -> Palette:
    """Build a Palette from centroids ranked by population.

    Raises:
        DegenerateResultError: If the top-ranked centroid is empty
    """
    if not ranked or ranked[0].is_degenerate:
        raise DegenerateResultError("Most populated cluster has no samples")

    entries = [PaletteColor.from_centroid(c) for c in ranked[:PALETTE_SIZE]]
    entries += [None] * (PALETTE_SIZE - len(entries))
    return Palette(*entries)


def compute_palette(
    samples,
    cluster_count: int = PALETTE_SIZE,
    tolerance: float = DEFAULT_TOLERANCE,
    random_seed: Optional[int] = None,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> Palette:
    """Cluster color samples and return the most prominent colors.

    Args:
        samples: RGBA channel values, anything reshapeable to (N, 4)
        cluster_count: Number of k-means clusters
        tolerance: Convergence threshold on total centroid movement
        random_seed: Seed for reproducible results
        max_iterations: Iteration cap

    Returns:
        Palette with up to three colors

    Raises:
        InsufficientSamplesError: If there are fewer samples than clusters
        DegenerateResultError: If no cluster received a sample
        ConvergenceError: If the iteration cap is reached
    """
    population = as_population(samples)
    ranked = calculate_prominent_clusters(
        population, cluster_count, tolerance, max_iterations, random_seed
    )
    palette = assemble_palette(ranked)
    logger.info(f"Computed palette: {palette}")
    return palette

"""Color samples and the Euclidean RGBA distance used by k-means."""

from dataclasses import dataclass

import numpy as np

CHANNELS = 4


@dataclass
class ColorSample:
    """One RGBA observation, or a centroid carrying its member count."""

    r: float
    g: float
    b: float
    a: float
    count: int = 0

    @classmethod
    def zero(cls):
        return cls(0.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_channels(cls, channels, count=0):
        r, g, b, a = (float(c) for c in channels)
        return cls(r, g, b, a, count)

    @property
    def channels(self) -> np.ndarray:
        return np.array([self.r, self.g, self.b, self.a], dtype=np.float64)

    @property
    def is_degenerate(self) -> bool:
        """True when the mean was taken over zero samples."""
        return bool(np.isnan(self.channels).any())

    def distance_to(self, other) -> float:
        return distance(self, other)

    def accumulate(self, channels) -> None:
        """Add channel values into this accumulator.

        Accepts a single sample (``ColorSample`` or length-4 sequence) or a
        block of samples shaped ``(n, 4)``, which is summed over rows.
        ``count`` is left alone.
        """
        if isinstance(channels, ColorSample):
            channels = channels.channels
        values = np.asarray(channels, dtype=np.float64)
        if values.ndim == 2:
            values = values.sum(axis=0)
        self.r += values[0]
        self.g += values[1]
        self.b += values[2]
        self.a += values[3]

    def finalize_mean(self, total_count: int) -> "ColorSample":
        """Divide the accumulated channels by ``total_count``.

        A zero count produces NaN channels, marking a degenerate centroid.
        """
        with np.errstate(invalid="ignore", divide="ignore"):
            mean = self.channels / np.float64(total_count)
        return ColorSample.from_channels(mean, count=int(total_count))


def distance(a: ColorSample, b: ColorSample) -> float:
    return float(np.linalg.norm(a.channels - b.channels))


def distances_to_centers(population: np.ndarray, centers: np.ndarray) -> np.ndarray:
    """Distance from every sample to every center, shaped (N, k).

    One center at a time, so scratch memory stays at a single (N, 4) block.
    """
    dists = np.empty((len(population), len(centers)), dtype=np.float64)
    for j, center in enumerate(centers):
        dists[:, j] = np.linalg.norm(population - center, axis=1)
    return dists


def as_population(pixels) -> np.ndarray:
    arr = np.asarray(pixels, dtype=np.float64)
    if arr.size == 0:
        return arr.reshape(0, CHANNELS)
    if arr.ndim == 0 or arr.shape[-1] != CHANNELS:
        raise ValueError(f"Expected {CHANNELS} channels per sample, got shape {arr.shape}")
    return arr.reshape(-1, CHANNELS)

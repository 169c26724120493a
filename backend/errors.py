"""Exceptions raised while computing a color palette."""


class PaletteError(Exception):
    """Base exception for palette computation errors."""

    pass


class InsufficientSamplesError(PaletteError):
    """Raised when there are fewer samples than requested clusters."""

    def __init__(self, sample_count: int, cluster_count: int):
        self.sample_count = sample_count
        self.cluster_count = cluster_count
        super().__init__(
            f"Insufficient distinct samples: {sample_count} < {cluster_count}"
        )


class DegenerateResultError(PaletteError):
    """Raised when the most populated cluster never received a sample."""

    pass


class PixelExtractionError(PaletteError):
    """Raised when raw RGBA pixels cannot be read from an image."""

    pass


class ConvergenceError(PaletteError):
    """Raised when k-means hits its iteration cap without converging."""

    def __init__(self, iterations: int, movement: float):
        self.iterations = iterations
        self.movement = movement
        super().__init__(
            f"K-means did not converge after {iterations} iterations "
            f"(last movement {movement:.4f})"
        )


class ImageTooLargeError(PaletteError):
    """Raised when a decoded image has more pixels than allowed."""

    def __init__(self, pixel_count: int, max_pixels: int):
        self.pixel_count = pixel_count
        self.max_pixels = max_pixels
        super().__init__(f"Image has {pixel_count} pixels, limit is {max_pixels}")

"""Image decoding, resize-quality policy and pixel extraction.

Turns uploaded bytes or a PIL image into the RGBA sample population that
``palette.compute_palette`` consumes.
"""

import io
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from enum import Enum
from typing import Callable, Optional

import numpy as np
from loguru import logger
from PIL import Image
from skimage.transform import resize

from config import config
from errors import ImageTooLargeError, PaletteError, PixelExtractionError
from kmeans import DEFAULT_MAX_ITERATIONS, DEFAULT_TOLERANCE
from palette import Palette, compute_palette
from samples import as_population


class ResizeQuality(Enum):
    """Scale factor applied to both sides of an image before clustering.

    Smaller images cluster faster at the cost of color accuracy.
    """

    LOW = 0.3
    MEDIUM = 0.5
    HIGH = 0.8
    STANDARD = 1.0

    @classmethod
    def parse(cls, name: str) -> "ResizeQuality":
        try:
            return cls[name.strip().upper()]
        except KeyError:
            choices = ", ".join(q.name.lower() for q in cls)
            raise ValueError(f"Unknown quality '{name}', expected one of: {choices}") from None


def decode_image(data: bytes, max_pixels: Optional[int] = None) -> Image.Image:
    """Decode encoded image bytes (PNG, JPEG, ...) into a PIL image.

    The pixel count is checked from the header, before the full decode.
    """
    if max_pixels is None:
        max_pixels = config.MAX_PIXELS

    try:
        img = Image.open(io.BytesIO(data))
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise PixelExtractionError(f"Could not decode image: {e}") from e

    pixel_count = img.width * img.height
    if pixel_count > max_pixels:
        raise ImageTooLargeError(pixel_count, max_pixels)

    try:
        img.load()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise PixelExtractionError(f"Could not decode image: {e}") from e
    return img


def image_to_pixels(image: Image.Image) -> np.ndarray:
    try:
        return np.array(image.convert("RGBA"), dtype=np.uint8)
    except (OSError, ValueError) as e:
        raise PixelExtractionError(f"Could not read pixel data: {e}") from e


def resize_pixels(pixels: np.ndarray, quality: ResizeQuality) -> np.ndarray:
    """Scale an (H, W, 4) image by the quality factor, keeping at least 1 px per side."""
    if quality is ResizeQuality.STANDARD or pixels.size == 0:
        return pixels

    h, w = pixels.shape[:2]
    new_h = max(1, int(round(h * quality.value)))
    new_w = max(1, int(round(w * quality.value)))

    resized = resize(
        pixels,
        (new_h, new_w),
        order=1,
        preserve_range=True,
        anti_aliasing=True,
    )
    logger.debug(f"Resized {w}x{h} -> {new_w}x{new_h} ({quality.name.lower()})")
    return np.clip(np.rint(resized), 0, 255).astype(np.uint8)


def limit_long_edge(image: Image.Image, max_edge: Optional[int] = None) -> Image.Image:
    """Shrink ``image`` so its longest edge is at most ``max_edge`` pixels."""
    if max_edge is None:
        max_edge = config.MAX_EDGE

    width, height = image.size
    current_max = max(width, height)
    if current_max <= max_edge:
        return image

    scale = max_edge / current_max
    new_size = (max(1, int(width * scale)), max(1, int(height * scale)))
    logger.info(f"Downscaling {width}x{height} to {new_size[0]}x{new_size[1]}")
    return image.resize(new_size, Image.Resampling.BOX)


def extract_samples(
    image: Image.Image,
    quality: ResizeQuality = ResizeQuality.STANDARD,
    max_edge: Optional[int] = None,
) -> np.ndarray:
    """Sample population for an image, one row per pixel.

    Pixels are walked column by column (x outer, y inner).
    """
    image = limit_long_edge(image, max_edge)
    pixels = resize_pixels(image_to_pixels(image), quality)
    return as_population(pixels.transpose(1, 0, 2))


def retrieve_color_palette(
    image: Image.Image,
    quality: ResizeQuality = ResizeQuality.STANDARD,
    random_seed: Optional[int] = None,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> Palette:
    """Three most prominent colors of ``image``."""
    samples = extract_samples(image, quality)
    return compute_palette(
        samples,
        tolerance=tolerance,
        random_seed=random_seed,
        max_iterations=max_iterations,
    )


def retrieve_color_palette_async(
    image: Image.Image,
    completion: Callable[[Optional[Palette]], None],
    quality: ResizeQuality = ResizeQuality.STANDARD,
    random_seed: Optional[int] = None,
    executor: Optional[Executor] = None,
) -> Future:
    """Compute the palette on a worker thread and hand it to ``completion``.

    ``completion`` receives None when the palette could not be computed;
    the failure is logged and stays available on the returned future.
    """
    owned = executor is None
    if owned:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="palette")

    future = executor.submit(retrieve_color_palette, image, quality, random_seed)

    def deliver(done: Future) -> None:
        try:
            palette = done.result()
        except PaletteError as e:
            logger.warning(f"Palette computation failed: {e}")
            palette = None
        except Exception as e:
            logger.opt(exception=e).error(f"Palette computation crashed: {e}")
            palette = None
        completion(palette)

    future.add_done_callback(deliver)
    if owned:
        executor.shutdown(wait=False)
    return future

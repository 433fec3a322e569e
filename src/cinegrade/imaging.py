"""
Image I/O helpers around the grading pipeline.

Decoding files into RGBA pixel grids, fitting them to the working
resolution, normalizing pixel grids for upload and encoding snapshots.
"""

from __future__ import annotations

import io
import logging
import math
from pathlib import Path
from typing import BinaryIO, TypeAlias

import numpy as np
from PIL import Image, UnidentifiedImageError

from cinegrade.constants import (
    MAX_WORKING_HEIGHT,
    MAX_WORKING_WIDTH,
    SNAPSHOT_FORMAT,
    SNAPSHOT_PREFIX,
)
from cinegrade.errors import UnsupportedInputError
from cinegrade.validators import validate_positive

logger = logging.getLogger(__name__)

ImageSource: TypeAlias = str | Path | bytes | BinaryIO


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@validate_positive("width", param_index=0)
@validate_positive("height", param_index=1)
def fit_to_working_resolution(
    width: int,
    height: int,
    max_width: int = MAX_WORKING_WIDTH,
    max_height: int = MAX_WORKING_HEIGHT,
) -> tuple[int, int]:
    """
    Compute the aspect-preserving size that fits within the working resolution.

    Width is capped first, then height; images already inside the bounds keep
    their size.

    Args:
        width: Source width in pixels
        height: Source height in pixels
        max_width: Maximum working width
        max_height: Maximum working height

    Returns:
        (width, height) of the working image

    Example:
        >>> fit_to_working_resolution(2800, 1400)
        (1400, 700)
        >>> fit_to_working_resolution(1000, 1800)
        (500, 900)
    """
    w = float(width)
    h = float(height)
    if w > max_width:
        h = h * max_width / w
        w = float(max_width)
    if h > max_height:
        w = w * max_height / h
        h = float(max_height)
    return max(_round_half_up(w), 1), max(_round_half_up(h), 1)


def to_rgba_float(pixels: np.ndarray | Image.Image) -> np.ndarray:
    """
    Normalize a decoded pixel grid to float32 RGBA in [0, 1].

    Accepts PIL images, and arrays shaped [H, W, 3] or [H, W, 4] with an
    unsigned integer or floating dtype. RGB input gets an opaque alpha.

    Raises:
        UnsupportedInputError: If the input is not a supported pixel grid
    """
    if isinstance(pixels, Image.Image):
        pixels = np.asarray(pixels.convert("RGBA"))
    if not isinstance(pixels, np.ndarray):
        raise UnsupportedInputError(
            f"Expected a decoded pixel grid (numpy array or PIL image), got {type(pixels).__name__}"
        )
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4) or pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise UnsupportedInputError(
            f"Pixel grid must have shape [H, W, 3] or [H, W, 4], got {pixels.shape}"
        )

    if pixels.dtype == np.uint8:
        rgba = pixels.astype(np.float32) / 255.0
    elif pixels.dtype == np.uint16:
        rgba = pixels.astype(np.float32) / 65535.0
    elif np.issubdtype(pixels.dtype, np.floating):
        rgba = np.clip(np.nan_to_num(pixels.astype(np.float32), nan=0.0), 0.0, 1.0)
    else:
        raise UnsupportedInputError(f"Unsupported pixel dtype {pixels.dtype}")

    if rgba.shape[2] == 3:
        alpha = np.ones(rgba.shape[:2] + (1,), dtype=np.float32)
        rgba = np.concatenate([rgba, alpha], axis=2)
    return np.ascontiguousarray(rgba)


def to_rgba_uint8(pixels: np.ndarray) -> np.ndarray:
    """Quantize float RGBA in [0, 1] to uint8 (round to nearest)."""
    return np.clip(np.rint(pixels * 255.0), 0, 255).astype(np.uint8)


def decode_image(source: ImageSource) -> np.ndarray:
    """
    Decode an image file into an RGBA uint8 pixel grid.

    Args:
        source: File path, encoded bytes or a binary file object

    Returns:
        Pixel grid [H, W, 4] uint8

    Raises:
        UnsupportedInputError: If the data is not a decodable image
        FileNotFoundError: If a path does not exist
    """
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    try:
        with Image.open(source) as image:
            image.load()
            pixels = np.asarray(image.convert("RGBA"))
    except FileNotFoundError:
        raise
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise UnsupportedInputError(f"Could not decode image: {exc}") from exc

    logger.info("[imaging] Decoded %dx%d image", pixels.shape[1], pixels.shape[0])
    return pixels


def prepare_source(
    image: np.ndarray | Image.Image,
    max_width: int = MAX_WORKING_WIDTH,
    max_height: int = MAX_WORKING_HEIGHT,
) -> np.ndarray:
    """
    Downscale a decoded image to fit the working resolution.

    Args:
        image: Decoded image (PIL image or RGBA/RGB pixel grid)
        max_width: Maximum working width
        max_height: Maximum working height

    Returns:
        RGBA uint8 pixel grid no larger than max_width x max_height

    Raises:
        UnsupportedInputError: If the image is not a supported pixel grid
    """
    if not isinstance(image, Image.Image):
        image = Image.fromarray(to_rgba_uint8(to_rgba_float(image)))
    image = image.convert("RGBA")

    size = fit_to_working_resolution(image.width, image.height, max_width, max_height)
    if size != (image.width, image.height):
        logger.info(
            "[imaging] Downscaling %dx%d -> %dx%d", image.width, image.height, size[0], size[1]
        )
        image = image.resize(size, Image.Resampling.LANCZOS)
    return np.asarray(image)


def encode_png(pixels: np.ndarray) -> bytes:
    """Encode an RGBA uint8 pixel grid [H, W, 4] as PNG bytes."""
    buffer = io.BytesIO()
    Image.fromarray(pixels).save(buffer, format=SNAPSHOT_FORMAT)
    return buffer.getvalue()


def snapshot_filename(image_name: str | None = None) -> str:
    """
    File name for an exported snapshot.

    The full source file name is kept, extension included; only directories
    are dropped.

    Example:
        >>> snapshot_filename("beach.jpg")
        'graded_beach.jpg.png'
        >>> snapshot_filename()
        'graded_image.png'
    """
    name = Path(image_name).name if image_name else ""
    return f"{SNAPSHOT_PREFIX}{name or 'image'}.png"

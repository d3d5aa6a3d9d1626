"""
Image output.

Converts linear radiance into 8-bit pixels and writes them out, either as a
plain-text PPM (P3) image or, for any other extension, through Pillow.

Each channel is gamma corrected with gamma 2 (square root), clamped to
[0, 0.999] and scaled by 256, so every value lands in [0, 255].
"""

from __future__ import annotations
import io
import logging
import math
import sys
from pathlib import Path
from typing import TextIO, Union
import numpy as np

from .vec3 import Color

logger = logging.getLogger(__name__)

MAX_INTENSITY = 0.999


def _quantize(value: float) -> int:
    """Gamma correct, clamp and scale one linear channel value."""
    corrected = math.sqrt(max(value, 0.0))
    return int(256 * min(corrected, MAX_INTENSITY))


def write_color(out: TextIO, pixel_color: Color, samples_per_pixel: int) -> None:
    """Write one pixel as an ``r g b`` line.

    Args:
        out: Text stream to write to
        pixel_color: Sum of all samples taken for the pixel
        samples_per_pixel: Number of samples in the sum
    """
    scale = 1.0 / samples_per_pixel
    r = _quantize(pixel_color.x * scale)
    g = _quantize(pixel_color.y * scale)
    b = _quantize(pixel_color.z * scale)
    out.write(f"{r} {g} {b}\n")


def to_ldr(image: np.ndarray) -> np.ndarray:
    """Convert an averaged linear image to 8-bit with gamma correction.

    Args:
        image: Float image array of shape (height, width, 3)

    Returns:
        LDR image as uint8 array
    """
    corrected = np.sqrt(np.clip(image, 0, None))
    return (256 * np.clip(corrected, 0, MAX_INTENSITY)).astype(np.uint8)


def ppm_header(width: int, height: int) -> str:
    return f"P3\n{width} {height}\n255\n"


def write_ppm(out: TextIO, image: np.ndarray) -> None:
    """Write an averaged linear image as PPM text, top row first."""
    height, width = image.shape[:2]
    ldr = to_ldr(image)

    out.write(ppm_header(width, height))
    for row in ldr:
        out.write("".join(f"{r} {g} {b}\n" for r, g, b in row))


def encode_ppm(image: np.ndarray) -> str:
    """Return an averaged linear image as PPM text."""
    buffer = io.StringIO()
    write_ppm(buffer, image)
    return buffer.getvalue()


def save_ppm(image: np.ndarray, filename: Union[str, Path]) -> None:
    """Save image as a PPM file; ``-`` writes to standard output."""
    if str(filename) == '-':
        write_ppm(sys.stdout, image)
        sys.stdout.flush()
        return

    with open(filename, 'w', encoding='ascii', newline='\n') as f:
        write_ppm(f, image)


def check_output_format(filename: Union[str, Path]) -> None:
    """Make sure an image can be written under this filename.

    Raises:
        ValueError: If the extension is neither ``.ppm`` nor one Pillow writes
    """
    from PIL import Image as PILImage

    name = str(filename)
    if name == '-':
        return
    suffix = Path(name).suffix.lower()
    if suffix == '.ppm':
        return
    # Some registered formats can only be read
    image_format = PILImage.registered_extensions().get(suffix)
    if image_format is None or image_format not in PILImage.SAVE:
        raise ValueError(f"unknown image format for {name}: {suffix or 'no extension'}")


def save_image(image: np.ndarray, filename: Union[str, Path]) -> None:
    """Save image to file.

    Args:
        image: Averaged linear image, shape (height, width, 3)
        filename: Output filename (extension determines format, ``-`` = PPM on stdout)

    Raises:
        ValueError: If the output format is unknown
    """
    from PIL import Image as PILImage

    name = str(filename)
    check_output_format(name)
    if name == '-' or name.lower().endswith('.ppm'):
        save_ppm(image, filename)
    else:
        pil_image = PILImage.fromarray(to_ldr(image))
        pil_image.save(name)

    logger.info("Wrote %dx%d image to %s", image.shape[1], image.shape[0],
                'stdout' if name == '-' else name)

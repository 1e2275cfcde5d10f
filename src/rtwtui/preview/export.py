"""Image export for full-quality renders.

Supported formats (chosen by file extension through Pillow):
    - PNG (default when the name has no extension)
    - PPM, the format the render form has always produced
    - Any other format Pillow can write for 8-bit RGB

The pixels handed to this module are already gamma mapped and quantized;
no further color processing happens here.

Example:
    >>> from src.rtwtui.preview.export import save_image
    >>> save_image(job.get_image_uint8(), "image.ppm")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.rtwtui.errors import ExportError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".png"


def output_path_for(image_name: str, extension: str = DEFAULT_EXTENSION) -> Path:
    """Build the output path for an image name typed in the render form.

    A name that already carries an extension is used as-is.
    """
    path = Path(image_name)
    if not path.suffix:
        path = path.with_suffix(extension)
    return path


def save_image(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> Path:
    """Write a fully populated 8-bit RGB pixel grid to a file.

    Args:
        pixels: Array of shape (height, width, 3), dtype uint8, rows top to
            bottom.
        filepath: Output path; the extension selects the format.

    Returns:
        The path written.

    Raises:
        ValueError: If the array is not an (H, W, 3) uint8 image.
        ExportError: If encoding or writing the file fails. A partially
            written file is left in an undefined state.
    """
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {pixels.shape}")
    if pixels.dtype != np.uint8:
        raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")

    path = Path(filepath)
    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels))
    try:
        pil_image.save(path)
    except (OSError, ValueError) as exc:
        raise ExportError(f"Could not write {path}: {exc}") from exc

    logger.info("Wrote %dx%d image to %s", pixels.shape[1], pixels.shape[0], path)
    return path

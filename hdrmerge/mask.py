"""
Rejected Sample Mask Module
---------------------------
Diagnostics for pixels the reconstruction could not measure: every sample
of at least one channel was saturated (0 or 255), so the radiance there is 0.
"""

import cv2
import numpy as np
from typing import Union
from pathlib import Path
from hdrmerge.exposure import ExposureStack
from hdrmerge.logger import setup_logger
from hdrmerge.fileio import save_image, ensure_dir
from hdrmerge.radiance import valid_samples

logger = setup_logger("mask")

OVERLAY_ALPHA = 0.5


def rejected_sample_mask(stack: ExposureStack) -> np.ndarray:
    """
    Return a boolean (H, W) mask, True where some channel has no usable sample
    in any exposure of the stack.
    """
    stack.validate()
    usable = np.zeros(stack.shape, dtype=bool)
    for image in stack.images:
        usable |= valid_samples(image)
    if usable.ndim == 3:
        return ~usable.all(axis=2)
    return ~usable


def save_mask_debug(image: np.ndarray, mask: np.ndarray, filename: Union[str, Path] = 'rejected_mask.png') -> bool:
    """
    Save a red overlay of `mask` on an 8-bit exposure for inspection.

    Args:
        image: uint8 exposure, grayscale or BGR.
        mask: (H, W) boolean or float [0, 1] mask.
        filename: Path where the overlay is written.

    Returns:
        True if the overlay was saved successfully, False otherwise.
    """
    output_path = Path(filename)
    if not ensure_dir(output_path.parent):
        logger.error(f"Cannot save mask debug image, failed to ensure output directory: {output_path.parent}")
        return False

    if image.dtype != np.uint8:
        logger.error(f"Mask overlay needs a uint8 image, got {image.dtype}")
        return False
    base = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR) if image.ndim == 2 else image
    if mask.shape != base.shape[:2]:
        logger.error(f"Mask shape {mask.shape} does not match image shape {base.shape[:2]}")
        return False

    mask_float = np.clip(mask.astype(np.float32), 0, 1)
    overlay = np.zeros_like(base, dtype=np.float32)
    overlay[..., 2] = mask_float * 255  # red in BGR

    blended = cv2.addWeighted(base.astype(np.float32), 1.0 - OVERLAY_ALPHA, overlay, OVERLAY_ALPHA, 0)
    blended_uint8 = np.clip(blended, 0, 255).astype(np.uint8)

    success = save_image(output_path, blended_uint8)
    if success:
        logger.info(f"Saved rejected sample mask: {output_path} ({int(np.count_nonzero(mask))} pixel(s))")
    return success

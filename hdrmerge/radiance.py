"""
Radiance Reconstruction Module
------------------------------
Fuses an exposure stack into a floating-point radiance map using a known
inverse camera response.

For every pixel and channel, samples at 0 or 255 are rejected and the
remaining samples are averaged as exp(g(z, c)) / t. A pixel/channel whose
samples were all rejected is 0.

Functions:
    iter_pixel_ranges: Split a flat pixel index range into blocks.
    reconstruct: Build the radiance map from a stack and a response curve.
"""

import time
from typing import Iterator, Optional, Tuple

import numpy as np

from hdrmerge.exposure import ExposureStack
from hdrmerge.logger import setup_logger
from hdrmerge.response import ResponseCurve, Z_MIN, Z_MAX

logger = setup_logger("radiance")

DEFAULT_CHUNK_SIZE = 262144


def iter_pixel_ranges(n_pixels: int, chunk_size: Optional[int] = None) -> Iterator[Tuple[int, int]]:
    """Yield (start, stop) bounds covering range(n_pixels) in blocks of chunk_size."""
    if chunk_size is None:
        chunk_size = DEFAULT_CHUNK_SIZE
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    for start in range(0, n_pixels, chunk_size):
        yield start, min(start + chunk_size, n_pixels)


def valid_samples(samples: np.ndarray) -> np.ndarray:
    """Mask of samples usable for a response curve lookup (not saturated low or high)."""
    return (samples > Z_MIN) & (samples < Z_MAX)


def _fuse_block(samples: np.ndarray, table: np.ndarray, inv_times: np.ndarray) -> Tuple[np.ndarray, int]:
    """
    Fuse one block of pixels.

    Args:
        samples: uint8 array (N, B, C) of N exposures for B pixels.
        table: Response table (256, C).
        inv_times: (N,) reciprocal exposure times.

    Returns:
        (B, C) float64 mean irradiance, 0 where no sample survived, and the
        number of pixel channels in the block with no surviving sample.
    """
    valid = valid_samples(samples)
    log_exposure = table[samples, np.arange(samples.shape[2])]
    # exp(-inf) == 0 keeps rejected samples out of the sum
    irradiance = np.exp(np.where(valid, log_exposure, -np.inf)) * inv_times[:, np.newaxis, np.newaxis]
    total = irradiance.sum(axis=0)
    count = valid.sum(axis=0)
    fused = np.divide(total, count, out=np.zeros_like(total), where=count > 0)
    return fused, int(np.count_nonzero(count == 0))


def reconstruct(stack: ExposureStack, curve: ResponseCurve, chunk_size: Optional[int] = None) -> np.ndarray:
    """
    Reconstruct the radiance map of an exposure stack.

    Args:
        stack: Aligned uint8 exposures with their exposure times.
        curve: Inverse response, same channel order as the images.
        chunk_size: Pixels per block. The result does not depend on it.

    Returns:
        float64 radiance map with the images' shape.

    Raises:
        ValueError: If the stack or the curve violates its invariants.
    """
    stack.validate()
    curve.validate(stack.channels)

    merge_start = time.perf_counter()
    logger.info(f"Reconstructing radiance from {len(stack)} exposure(s)...")

    image_shape = stack.shape
    channels = stack.channels
    n_pixels = image_shape[0] * image_shape[1]

    # (N, P, C) view over all exposures
    samples = np.stack([image.reshape(n_pixels, channels) for image in stack.images])
    inv_times = 1.0 / np.asarray(stack.exposure_times, dtype=np.float64)

    radiance = np.empty((n_pixels, channels), dtype=np.float64)
    rejected = 0
    for start, stop in iter_pixel_ranges(n_pixels, chunk_size):
        radiance[start:stop], block_rejected = _fuse_block(samples[:, start:stop], curve.table, inv_times)
        rejected += block_rejected

    if rejected:
        logger.info(f"{rejected} pixel channel(s) saturated in every exposure, set to 0")
    logger.debug(f"Radiance range: min={radiance.min():.6g}, max={radiance.max():.6g}")
    logger.debug(f"Radiance reconstruction took {time.perf_counter() - merge_start:.3f}s")

    return radiance.reshape(image_shape)

"""
Tone Mapping Module
-------------------
Photographic global tone mapping of a radiance map.

The operator runs in two stages joined by one scalar: a reduction of the
whole luminance map to its log-average, then a per-pixel mapping that uses it.

Functions:
    luminance_map: Weighted sum of the radiance channels.
    log_average_luminance: Geometric mean of the positive luminance values.
    apply_global_operator: Reinhard global operator, applied through the luminance.
    tone_map: Run both stages.
"""

import logging
import time
from dataclasses import dataclass
from functools import reduce
from typing import Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# Luma weights in BGR order (0.299 R, 0.587 G, 0.114 B)
LUMA_WEIGHTS_BGR = np.array([0.114, 0.587, 0.299], dtype=np.float64)
DEFAULT_ALPHA = 0.18
LOG_EPSILON = float(np.finfo(np.float64).eps)
DEFAULT_ROW_BLOCK = 256


def luminance_map(radiance: np.ndarray) -> np.ndarray:
    """
    Return the (H, W) luminance of a BGR radiance map.

    Raises:
        ValueError: If the map is not (H, W, 3).
    """
    if radiance.ndim != 3 or radiance.shape[2] != 3:
        raise ValueError(f"Luminance needs a 3-channel (H, W, 3) map, got shape {radiance.shape}")
    return radiance.astype(np.float64, copy=False) @ LUMA_WEIGHTS_BGR


@dataclass(frozen=True)
class LogLuminanceSum:
    """
    Partial sum of log(L + epsilon) over the positive luminance values.

    LogLuminanceSum() is the identity of `combine`, so partial sums over any
    partition of the image reduce to the same result.
    """
    total: float = 0.0
    count: int = 0

    @classmethod
    def from_block(cls, block: np.ndarray, epsilon: float = LOG_EPSILON) -> 'LogLuminanceSum':
        positive = block[block > 0]
        return cls(float(np.log(positive + epsilon).sum()), int(positive.size))

    def combine(self, other: 'LogLuminanceSum') -> 'LogLuminanceSum':
        return LogLuminanceSum(self.total + other.total, self.count + other.count)

    def mean(self) -> float:
        """Geometric mean, or 0.0 when no luminance value was positive."""
        if self.count == 0:
            return 0.0
        return float(np.exp(self.total / self.count))


def log_average_luminance(luminance: np.ndarray, epsilon: float = LOG_EPSILON,
                          row_block: Optional[int] = None) -> float:
    """
    Reduce a luminance map to its log-average over row blocks.

    Returns:
        exp(mean(log(L + epsilon))) over L > 0, or 0.0 if no pixel is positive.
    """
    if row_block is None:
        row_block = DEFAULT_ROW_BLOCK
    if row_block <= 0:
        raise ValueError(f"row_block must be positive, got {row_block}")
    partials = (
        LogLuminanceSum.from_block(luminance[start:start + row_block], epsilon)
        for start in range(0, luminance.shape[0], row_block)
    )
    return reduce(LogLuminanceSum.combine, partials, LogLuminanceSum()).mean()


def apply_global_operator(radiance: np.ndarray, luminance: np.ndarray,
                          log_average: float, alpha: float = DEFAULT_ALPHA) -> np.ndarray:
    """
    Apply L' = s / (1 + s) with s = (alpha / log_average) * L, scaling every
    channel by L' / L so that chromaticity is kept.

    Pixels with L == 0, and every pixel when log_average <= 0, map to 0.

    Raises:
        ValueError: If alpha is not positive.
    """
    if not alpha > 0:
        raise ValueError(f"alpha must be positive, got {alpha}")
    if log_average <= 0:
        logger.warning("Log-average luminance is 0 (black scene), tone-mapped output is black")
        return np.zeros(radiance.shape, dtype=np.float64)

    scaled = (alpha / log_average) * luminance
    compressed = scaled / (1.0 + scaled)
    scale = np.divide(compressed, luminance, out=np.zeros_like(compressed), where=luminance > 0)
    return radiance * scale[..., np.newaxis]


def tone_map(radiance: np.ndarray, alpha: float = DEFAULT_ALPHA,
             epsilon: float = LOG_EPSILON) -> Tuple[np.ndarray, np.ndarray]:
    """
    Tone map a BGR radiance map with the photographic global operator.

    Args:
        radiance: (H, W, 3) non-negative radiance map.
        alpha: Key value; higher values give a brighter result.
        epsilon: Guard added inside the log of the log-average.

    Returns:
        (luminance map, tone-mapped map). The tone-mapped luminance is in [0, 1).
    """
    tm_start = time.perf_counter()
    luminance = luminance_map(radiance)
    log_average = log_average_luminance(luminance, epsilon)
    logger.info(f"Log-average luminance: {log_average:.6g} (alpha={alpha})")
    tone_mapped = apply_global_operator(radiance, luminance, log_average, alpha)
    logger.debug(f"Tone mapping took {time.perf_counter() - tm_start:.3f}s")
    return luminance, tone_mapped

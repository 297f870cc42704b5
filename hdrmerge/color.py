"""
Gamma Encoding Module
---------------------
Converts normalized [0, 1] float images to integer output ranges, with or
without a power-law gamma re-encoding.
"""

import numpy as np
import logging

# Configure logger
logger = logging.getLogger(__name__)

_OUTPUT_DTYPES = {8: np.uint8, 16: np.uint16}


def _output_dtype(bit_depth: int):
    try:
        return _OUTPUT_DTYPES[bit_depth]
    except KeyError:
        raise ValueError(f"bit_depth must be one of {sorted(_OUTPUT_DTYPES)}, got {bit_depth}") from None


def rescale_to_integer(image: np.ndarray, bit_depth: int = 16) -> np.ndarray:
    """
    Rescale a normalized float image to the full integer range of `bit_depth`.
    Values outside [0, 1] saturate.

    Args:
        image: Float image, nominally in [0, 1].
        bit_depth: 8 or 16.

    Returns:
        uint8 or uint16 image.
    """
    dtype = _output_dtype(bit_depth)
    max_value = float(np.iinfo(dtype).max)
    clipped = np.clip(image, 0.0, 1.0)
    return np.rint(clipped * max_value).astype(dtype)


def gamma_encode(image: np.ndarray, gamma: float, bit_depth: int = 16) -> np.ndarray:
    """
    Apply out = in ** (1 / gamma) to a normalized float image and rescale it
    to the integer range of `bit_depth`.

    Args:
        image: Float image, nominally in [0, 1]. Values outside saturate.
        gamma: Gamma exponent, e.g. 2.2 (sRGB-like) or 2.0.
        bit_depth: 8 or 16.

    Returns:
        uint8 or uint16 gamma-encoded image.

    Raises:
        ValueError: If gamma is not positive or bit_depth is unsupported.
    """
    if not gamma > 0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    _output_dtype(bit_depth)

    encoded = np.power(np.clip(image, 0.0, 1.0), 1.0 / gamma)
    logger.debug(f"Gamma encoded with gamma={gamma}, {bit_depth}-bit output")
    return rescale_to_integer(encoded, bit_depth)

"""
Response Curve Module
---------------------
Holds the precomputed inverse camera response g(z, c): the log exposure that
produced pixel value z in channel c. Calibration happens elsewhere; this module
only loads and checks the table.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np

from hdrmerge.logger import setup_logger

logger = setup_logger("response")

CURVE_LEVELS = 256
# Pixel values at or beyond these bounds are saturated and never looked up
Z_MIN = 0
Z_MAX = 255


@dataclass(frozen=True, eq=False)
class ResponseCurve:
    """
    Read-only table of shape (256, C), indexed as table[z, channel].

    A (256,) table is treated as a single-channel curve.
    """
    table: np.ndarray

    def __post_init__(self):
        table = np.array(self.table, dtype=np.float64)
        if table.ndim == 1:
            table = table[:, np.newaxis]
        table.setflags(write=False)
        object.__setattr__(self, 'table', table)

    @property
    def channels(self) -> int:
        return self.table.shape[1] if self.table.ndim == 2 else 0

    def validate(self, channels: int) -> None:
        """
        Check the table can serve a stack with `channels` channels.

        Raises:
            ValueError: On a wrong shape or non-finite values for non-saturated pixel values.
        """
        if self.table.ndim != 2 or self.table.shape[0] != CURVE_LEVELS:
            raise ValueError(
                f"Response curve must have {CURVE_LEVELS} rows, got shape {self.table.shape}")
        if self.table.shape[1] != channels:
            raise ValueError(
                f"Response curve has {self.table.shape[1]} channel(s), images have {channels}")
        usable = self.table[Z_MIN + 1:Z_MAX]
        if not np.all(np.isfinite(usable)):
            bad_rows = np.unique(np.nonzero(~np.isfinite(usable))[0]) + Z_MIN + 1
            raise ValueError(f"Response curve has non-finite values at pixel value(s) {bad_rows.tolist()}")


def load_response_curve(path: Union[str, Path]) -> ResponseCurve:
    """
    Load a MATLAB-style response curve file.

    Layout: one header line, then one "R G B" row per pixel value 0..255,
    closed by a line starting with "]". Columns are reordered to BGR so
    that table[z, c] matches OpenCV's channel order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a row does not hold three numbers or the row count is not 256.
    """
    curve_path = Path(path)
    if not curve_path.is_file():
        msg = f"Response curve file not found: {curve_path}"
        logger.error(msg)
        raise FileNotFoundError(msg)

    rows = []
    with open(curve_path, 'r') as f:
        next(f, None)  # header, e.g. "curve = ["
        for line_number, line in enumerate(f, start=2):
            stripped = line.strip()
            if stripped.startswith(']'):
                break
            if not stripped:
                continue
            fields = stripped.rstrip(';').split()
            if len(fields) != 3:
                raise ValueError(f"{curve_path}:{line_number}: expected 3 values, got {len(fields)}")
            try:
                red, green, blue = (float(v) for v in fields)
            except ValueError as e:
                raise ValueError(f"{curve_path}:{line_number}: {e}") from e
            rows.append((blue, green, red))

    if len(rows) != CURVE_LEVELS:
        raise ValueError(f"{curve_path}: expected {CURVE_LEVELS} curve rows, got {len(rows)}")

    curve = ResponseCurve(np.array(rows, dtype=np.float64))
    logger.info(f"Loaded response curve from {curve_path} "
                f"(log exposure range {curve.table.min():.3f}..{curve.table.max():.3f})")
    return curve

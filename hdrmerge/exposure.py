"""
Exposure Stack Module
---------------------
Data model and loader for a bracketed exposure stack: N aligned 8-bit
images of one static scene together with their exposure durations.

Functions:
    parse_exposure: Parse an exposure duration such as "0.5" or "1/250".
    read_exposure_table: Read the "<file name>;<exposure>" table of a stack directory.
    load_exposure_stack: Load the images named in the table into an ExposureStack.
"""

import csv
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from hdrmerge.config import Config, get_config
from hdrmerge.fileio import load_image, SUPPORTED_IMAGE_EXTENSIONS
from hdrmerge.logger import setup_logger

logger = setup_logger("exposure")


@dataclass(frozen=True, eq=False)
class ExposureStack:
    """
    Ordered (image, exposure time) pairs.

    Images are uint8 arrays of identical shape, either (H, W) or (H, W, C).
    Channel order must match the response curve columns (BGR when loaded
    from disk).
    """
    images: Sequence[np.ndarray]
    exposure_times: Sequence[float]

    def __post_init__(self):
        object.__setattr__(self, 'images', tuple(self.images))
        object.__setattr__(self, 'exposure_times', tuple(float(t) for t in self.exposure_times))

    def __len__(self) -> int:
        return len(self.images)

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.images[0].shape

    @property
    def channels(self) -> int:
        return 1 if self.images[0].ndim == 2 else self.images[0].shape[2]

    def validate(self) -> None:
        """
        Check the stack invariants.

        Raises:
            ValueError: On an empty stack, a count mismatch between images and
                exposure times, non-uint8 or mis-shaped images, or a
                non-positive exposure time.
        """
        if not self.images:
            raise ValueError("Exposure stack is empty")
        if len(self.images) != len(self.exposure_times):
            raise ValueError(
                f"Got {len(self.images)} images but {len(self.exposure_times)} exposure times")

        reference = self.images[0]
        if reference.ndim not in (2, 3) or reference.size == 0:
            raise ValueError(f"Images must be non-empty (H, W) or (H, W, C) arrays, got shape {reference.shape}")

        for index, (image, exposure_time) in enumerate(zip(self.images, self.exposure_times)):
            if image.dtype != np.uint8:
                raise ValueError(f"Image {index} must be uint8, got {image.dtype}")
            if image.shape != reference.shape:
                raise ValueError(
                    f"Image {index} has shape {image.shape}, expected {reference.shape}")
            if not (np.isfinite(exposure_time) and exposure_time > 0):
                raise ValueError(f"Exposure time {index} must be a positive number, got {exposure_time}")

        if len(self.images) == 1:
            logger.warning("Exposure stack holds a single image; the radiance map is a plain copy of it")


def parse_exposure(text: str) -> float:
    """
    Parse an exposure duration in seconds. Accepts decimal ("0.25") and
    fractional ("1/250") notation.

    Raises:
        ValueError: If the text is not a number or fraction, the denominator is
            zero, or the duration is not positive.
    """
    value = text.strip()
    if not value:
        raise ValueError("Empty exposure value")

    numerator, slash, denominator = value.partition('/')
    try:
        if slash:
            den = float(denominator)
            if den == 0:
                raise ValueError(f"Zero denominator in exposure value: {text!r}")
            seconds = float(numerator) / den
        else:
            seconds = float(value)
    except ValueError as e:
        raise ValueError(f"Invalid exposure value {text!r}: {e}") from e

    if not (np.isfinite(seconds) and seconds > 0):
        raise ValueError(f"Exposure value must be positive, got {text!r}")
    return seconds


def read_exposure_table(path: Union[str, Path], delimiter: str = ';') -> List[Tuple[str, float]]:
    """
    Read an exposure table: one header line, then "<file name><delimiter><exposure>" rows.

    Returns:
        List of (file name, exposure seconds) in file order.

    Raises:
        FileNotFoundError: If the table does not exist.
        ValueError: If a row is malformed or the table holds no entries.
    """
    table_path = Path(path)
    if not table_path.is_file():
        msg = f"Exposure table not found: {table_path}"
        logger.error(msg)
        raise FileNotFoundError(msg)

    entries = []
    with open(table_path, 'r', newline='') as f:
        reader = csv.reader(f, delimiter=delimiter)
        next(reader, None)  # header
        for row in reader:
            if not row or not any(field.strip() for field in row):
                continue
            if len(row) < 2 or not row[0].strip():
                raise ValueError(
                    f"{table_path}:{reader.line_num}: expected '<name>{delimiter}<exposure>', got {delimiter.join(row)!r}")
            name = row[0].strip()
            try:
                seconds = parse_exposure(row[1])
            except ValueError as e:
                raise ValueError(f"{table_path}:{reader.line_num}: {e}") from e
            entries.append((name, seconds))

    if not entries:
        raise ValueError(f"Exposure table has no entries: {table_path}")

    logger.debug(f"Read {len(entries)} exposure entries from {table_path}")
    return entries


def load_exposure_stack(stack_dir: Union[str, Path], config: Optional[Config] = None) -> ExposureStack:
    """
    Load every image listed in the stack directory's exposure table.

    Args:
        stack_dir: Directory holding the exposure table and the images.
        config: Configuration (table name and delimiter); defaults to the global config.

    Returns:
        A validated ExposureStack (BGR, uint8).
    """
    config = config or get_config()
    load_start = time.perf_counter()
    stack_path = Path(stack_dir)
    entries = read_exposure_table(stack_path / config.EXPOSURE_FILE, config.EXPOSURE_DELIMITER)

    images = []
    exposure_times = []
    for name, seconds in entries:
        image_path = stack_path / name
        if image_path.suffix.lower() not in SUPPORTED_IMAGE_EXTENSIONS:
            logger.warning(f"Unrecognised image extension, trying to decode anyway: {image_path}")
        images.append(load_image(image_path))
        exposure_times.append(seconds)
        logger.debug(f"  {name}: exposure {seconds:.6g}s")

    stack = ExposureStack(images, exposure_times)
    stack.validate()
    logger.info(f"Loaded exposure stack of {len(stack)} image(s), shape {stack.shape}, "
                f"exposures {min(exposure_times):.6g}s..{max(exposure_times):.6g}s")
    logger.debug(f"Stack loading took {time.perf_counter() - load_start:.3f}s")
    return stack

"""
File Input/Output Module
------------------------
Handles loading 8-bit exposures, saving integer and floating-point images,
managing directories, and discovering stack directories.
"""

from pathlib import Path
import cv2
import numpy as np
import logging
from typing import List, Union

# Setup logger for fileio module
logger = logging.getLogger(__name__)

HDR_EXTENSION = '.hdr'

# Supported image extensions (case-insensitive)
SUPPORTED_IMAGE_EXTENSIONS = {
    '.jpg', '.jpeg', '.png', '.bmp', '.tif', '.tiff', '.webp'
}


def ensure_dir(path: Union[str, Path]) -> bool:
    """
    Ensure that a directory exists, creating it if necessary.

    Args:
        path: Path to the directory.

    Returns:
        True if the directory exists or was created successfully, False otherwise.
    """
    dir_path = Path(path)
    try:
        if not dir_path.exists():
            logger.info(f"Creating directory: {dir_path}")
            dir_path.mkdir(parents=True, exist_ok=True)
        elif not dir_path.is_dir():
            logger.error(f"Path exists but is not a directory: {dir_path}")
            return False
        return True
    except PermissionError:
        logger.error(f"Permission denied creating directory: {dir_path}")
        return False
    except OSError as e:
        logger.error(f"Error ensuring directory exists {dir_path}: {e}", exc_info=True)
        return False


def load_image(path: Union[str, Path]) -> np.ndarray:
    """
    Load an 8-bit, 3-channel exposure from the specified path using OpenCV.

    Args:
        path: Path to the image file.

    Returns:
        Loaded image as a uint8 NumPy array (BGR order).

    Raises:
        FileNotFoundError: If the path does not exist or is not a file.
        ValueError: If the file cannot be decoded as an 8-bit image.
    """
    image_path = Path(path)
    if not image_path.is_file():
        msg = f"Image file not found or path is not a file: {image_path}"
        logger.error(msg)
        raise FileNotFoundError(msg)

    # IMREAD_COLOR always yields 8-bit BGR, whatever the file holds
    img = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
    if img is None:
        msg = f"Failed to load image (OpenCV returned None). Unsupported format or corrupt file?: {image_path}"
        logger.error(msg)
        raise ValueError(msg)

    logger.debug(f"Image loaded successfully: {image_path} (shape: {img.shape}, dtype: {img.dtype})")
    return img


def save_image(path: Union[str, Path], image: np.ndarray) -> bool:
    """
    Save an integer image (uint8 or uint16) using OpenCV.
    Creates the output directory if it doesn't exist.

    Args:
        path: Output path for the image file. Use .png or .tif for 16-bit data.
        image: Image data as a NumPy array.

    Returns:
        True if saving was successful, False otherwise.
    """
    output_path = Path(path)
    if not ensure_dir(output_path.parent):
        logger.error(f"Cannot save image, failed to ensure output directory exists: {output_path.parent}")
        return False

    try:
        success = cv2.imwrite(str(output_path), image)
    except cv2.error as e:
        logger.error(f"OpenCV error saving image {output_path}: {e}")
        return False

    if success:
        logger.debug(f"Image saved successfully: {output_path}")
    else:
        logger.error(f"Failed to save image (OpenCV returned False): {output_path}")
    return bool(success)


def save_hdr_image(path: Union[str, Path], image: np.ndarray) -> bool:
    """
    Save a floating-point image as Radiance RGBE (.hdr).

    Single-channel maps are written as three identical channels.

    Returns:
        True if saving was successful, False otherwise.
    """
    output_path = Path(path)
    if output_path.suffix.lower() != HDR_EXTENSION:
        logger.error(f"Unsupported HDR output format '{output_path.suffix}', expected {HDR_EXTENSION}: {output_path}")
        return False
    if not ensure_dir(output_path.parent):
        logger.error(f"Cannot save HDR image, failed to ensure output directory exists: {output_path.parent}")
        return False

    data = np.ascontiguousarray(image, dtype=np.float32)
    if data.ndim == 2:
        data = cv2.cvtColor(data, cv2.COLOR_GRAY2BGR)

    try:
        success = cv2.imwrite(str(output_path), data)
    except cv2.error as cv_err:
        logger.error(f"OpenCV HDR save failed ({output_path}): {cv_err}")
        return False

    if success:
        logger.debug(f"HDR image saved: {output_path}")
    else:
        logger.error(f"Failed to save HDR image (OpenCV returned False): {output_path}")
    return bool(success)


def list_stack_dirs(root: Union[str, Path], marker_file: str) -> List[Path]:
    """
    List the immediate sub-directories of `root` that contain `marker_file`.

    Returns:
        Sorted list of stack directories. Empty if `root` is not a directory.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        logger.warning(f"Directory not found or is not a directory: {root_path}")
        return []

    stack_dirs = sorted(
        item for item in root_path.iterdir()
        if item.is_dir() and (item / marker_file).is_file()
    )
    logger.debug(f"Found {len(stack_dirs)} stack director(y/ies) in {root_path}")
    return stack_dirs

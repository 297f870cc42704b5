"""
HDR Merge - Main Orchestrator
-----------------------------
High-level pipeline that merges a bracketed exposure stack into a radiance
map and tone maps it to displayable 16-bit images.

Usage:
    python -m hdrmerge.cli single input/stack output
    python -m hdrmerge.cli batch input output
"""

import time
from typing import Optional, Union
from pathlib import Path

import numpy as np

from hdrmerge.config import Config, get_config
from hdrmerge.exposure import ExposureStack, load_exposure_stack
from hdrmerge.response import ResponseCurve, load_response_curve
from hdrmerge.radiance import reconstruct
from hdrmerge.tonemap import tone_map
from hdrmerge.color import gamma_encode, rescale_to_integer
from hdrmerge.mask import rejected_sample_mask, save_mask_debug
from hdrmerge.fileio import ensure_dir, save_image, save_hdr_image
from hdrmerge.logger import setup_logger

# --- Logger ---
logger = setup_logger("hdr_converter")

# --- Output naming ---
RADIANCE_SUFFIX = ".hdr"
LUMINANCE_SUFFIX = "_luminance.hdr"
LDR_SUFFIX = "_ldr.png"
LDR_GAMMA_SUFFIX = "_ldr_gamma.png"
MASK_SUFFIX = "_rejected_mask.png"


# --- Core Processing Steps ---

def load_inputs(stack_dir: Path, config: Config) -> tuple:
    """Load the exposure stack and response curve of a stack directory."""
    load_start = time.perf_counter()
    logger.info(f"Loading stack directory: {stack_dir}")
    stack = load_exposure_stack(stack_dir, config)
    curve = load_response_curve(stack_dir / config.CURVE_FILE)
    logger.debug(f"Loading inputs took {time.perf_counter() - load_start:.3f}s")
    return stack, curve


def save_radiance_outputs(radiance: np.ndarray, luminance: np.ndarray, output_dir: Path,
                          output_base_name: str, config: Config) -> Optional[Path]:
    """Save the radiance map (and optionally the luminance map)."""
    save_start = time.perf_counter()
    hdr_path = output_dir / f"{output_base_name}{RADIANCE_SUFFIX}"
    if save_hdr_image(hdr_path, radiance):
        logger.info(f"Saved Radiance HDR: {hdr_path}")
    else:
        logger.error(f"Failed to save radiance map: {hdr_path}")
        hdr_path = None

    if config.SAVE_LUMINANCE:
        luminance_path = output_dir / f"{output_base_name}{LUMINANCE_SUFFIX}"
        if save_hdr_image(luminance_path, luminance):
            logger.info(f"Saved luminance map: {luminance_path}")
        else:
            logger.warning(f"Could not save luminance map: {luminance_path}")

    logger.debug(f"Saving HDR outputs took {time.perf_counter() - save_start:.3f}s")
    return hdr_path


def save_ldr_outputs(tone_mapped: np.ndarray, output_dir: Path, output_base_name: str, config: Config) -> None:
    """Save the tone-mapped map rescaled directly and gamma encoded."""
    ldr_path = output_dir / f"{output_base_name}{LDR_SUFFIX}"
    if save_image(ldr_path, rescale_to_integer(tone_mapped, config.OUTPUT_BIT_DEPTH)):
        logger.info(f"Saved tone-mapped LDR: {ldr_path}")
    else:
        logger.warning(f"Could not save tone-mapped LDR: {ldr_path}")

    gamma_path = output_dir / f"{output_base_name}{LDR_GAMMA_SUFFIX}"
    if save_image(gamma_path, gamma_encode(tone_mapped, config.GAMMA, config.OUTPUT_BIT_DEPTH)):
        logger.info(f"Saved gamma-encoded LDR (gamma={config.GAMMA}): {gamma_path}")
    else:
        logger.warning(f"Could not save gamma-encoded LDR: {gamma_path}")


def save_rejected_mask(stack: ExposureStack, output_dir: Path, output_base_name: str) -> None:
    """Overlay the all-saturated pixels on the middle exposure of the stack."""
    mask = rejected_sample_mask(stack)
    reference = stack.images[len(stack) // 2]
    save_mask_debug(reference, mask, filename=output_dir / f"{output_base_name}{MASK_SUFFIX}")


def merge_and_tone_map(stack: ExposureStack, curve: ResponseCurve, config: Config) -> tuple:
    """
    Run the in-memory core: reconstruction, then tone mapping.

    Returns:
        (radiance map, luminance map, tone-mapped map)
    """
    radiance = reconstruct(stack, curve, chunk_size=config.CHUNK_SIZE)
    if radiance.ndim != 3 or radiance.shape[2] != 3:
        raise ValueError(f"Tone mapping needs 3-channel images, stack has shape {stack.shape}")
    luminance, tone_mapped = tone_map(radiance, alpha=config.ALPHA, epsilon=config.LOG_EPSILON)
    return radiance, luminance, tone_mapped


# --- Main Workflow ---

def create_hdr_pipeline(stack_dir: Union[str, Path], output_dir: Optional[Union[str, Path]] = None,
                        config: Optional[Config] = None,
                        output_base_name: Optional[str] = None) -> Optional[Path]:
    """
    Merge the stack in `stack_dir` and write all outputs to `output_dir`.

    Args:
        stack_dir: Directory with the exposure table, response curve and images.
        output_dir: Destination directory (created if needed); defaults to config.OUTPUT_DIR.
        config: Configuration; defaults to the global config.
        output_base_name: Prefix for output files; defaults to the stack directory name.

    Returns:
        Path of the saved radiance map, or None if the pipeline failed.
    """
    overall_start_time = time.perf_counter()
    config = config or get_config()
    logger.info("=" * 15 + " Starting HDR Merge Pipeline " + "=" * 15)
    try:
        stack_dir = Path(stack_dir).resolve()
        output_dir = Path(output_dir).resolve() if output_dir is not None else config.output_dir_path
        output_base_name = output_base_name or stack_dir.name
        logger.info(f"Stack directory: {stack_dir}")
        logger.info(f"Output directory: {output_dir}")
        logger.info(f"Output base name: {output_base_name}")

        if not stack_dir.is_dir():
            raise FileNotFoundError(f"Stack directory not found: {stack_dir}")
        if not ensure_dir(output_dir):
            raise RuntimeError(f"Cannot use output directory: {output_dir}")

        # --- Step 1: Load stack and response curve ---
        stack, curve = load_inputs(stack_dir, config)

        # --- Step 2 & 3: Reconstruct radiance, tone map ---
        radiance, luminance, tone_mapped = merge_and_tone_map(stack, curve, config)

        # --- Step 4: Save HDR outputs ---
        final_hdr_path = save_radiance_outputs(radiance, luminance, output_dir, output_base_name, config)

        # --- Step 5: Save LDR outputs ---
        save_ldr_outputs(tone_mapped, output_dir, output_base_name, config)

        if config.SAVE_REJECTED_MASK:
            save_rejected_mask(stack, output_dir, output_base_name)

        total_time = time.perf_counter() - overall_start_time
        logger.info("=" * 15 + " HDR Merge Pipeline Finished " + "=" * 15)
        logger.info(f"Total processing time: {total_time:.2f} seconds.")
        if final_hdr_path:
            logger.info(f"Successfully generated HDR: {final_hdr_path}")
        else:
            logger.error("Failed to save the final .hdr output file!")
        logger.info("=" * 60)
        return final_hdr_path

    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error(f"Pipeline failed: {e}", exc_info=False)
        logger.info("=" * 60)
        return None
    except Exception as e:
        logger.error(f"Unhandled pipeline error: {e}", exc_info=True)
        logger.info("=" * 60)
        return None

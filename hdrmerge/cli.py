"""
Command-Line Interface (CLI) Module
------------------------------------
Handles command-line argument parsing and runs the HDR merge pipeline for a
single stack directory or for every stack directory below a root directory.
"""

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional

from hdrmerge.logger import setup_logger
from hdrmerge.config import Config, get_config, override_config
from hdrmerge.fileio import list_stack_dirs
from hdrmerge.hdr_converter import create_hdr_pipeline

# Setup logger for the CLI module
logger = setup_logger("cli")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=str, default=None,
                        help="Path to a custom JSON configuration file.")
    parser.add_argument("--alpha", type=float, default=None,
                        help="Override the tone mapping key value (default: use config).")
    parser.add_argument("--gamma", type=float, default=None,
                        help="Override the gamma of the gamma-encoded output (default: use config).")


def _parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for single or batch processing."""
    parser = argparse.ArgumentParser(
        prog="hdrmerge",
        description="Merge bracketed exposures into a radiance map (.hdr) and tone map it.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''Examples:
  Single stack:
    python -m hdrmerge.cli single input/office output
  Batch processing:
    python -m hdrmerge.cli batch input output --config custom_config.json
'''
    )

    subparsers = parser.add_subparsers(dest='mode', required=True,
                                       help='Processing mode: \'single\' or \'batch\'')

    # --- Single Stack Mode ---
    parser_single = subparsers.add_parser('single', help='Process one stack directory.',
                                          formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser_single.add_argument("stack_dir", type=str,
                               help="Directory holding exposure_times.csv, curve.m and the images.")
    parser_single.add_argument("output_dir", type=str, nargs="?", default=None,
                               help="Directory where outputs are written (default: config OUTPUT_DIR).")
    parser_single.add_argument("--name", type=str, default=None,
                               help="Base name of the output files (default: stack directory name).")
    _add_common_arguments(parser_single)

    # --- Batch Mode ---
    parser_batch = subparsers.add_parser('batch', help='Process every stack directory below a root.',
                                         formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser_batch.add_argument("root_dir", type=str,
                              help="Directory whose sub-directories are stacks.")
    parser_batch.add_argument("output_dir", type=str, nargs="?", default=None,
                              help="Directory where outputs are written (default: config OUTPUT_DIR).")
    _add_common_arguments(parser_batch)

    return parser.parse_args(argv)


def _load_config(args: argparse.Namespace) -> Config:
    config = get_config(args.config)
    return override_config(config, ALPHA=args.alpha, GAMMA=args.gamma)


def run_single_conversion(args: argparse.Namespace) -> bool:
    """Merge one stack directory. Returns True on success."""
    logger.info("--- Running in Single Stack Mode ---")
    config = _load_config(args)

    stack_dir = Path(args.stack_dir)
    if not stack_dir.is_absolute() and not stack_dir.is_dir():
        # Fall back to DATA_DIR for relative paths
        candidate = config.data_dir_path / stack_dir
        if candidate.is_dir():
            logger.debug(f"Resolved relative stack path using DATA_DIR: {candidate}")
            stack_dir = candidate

    start_time = time.perf_counter()
    result_path = create_hdr_pipeline(stack_dir, args.output_dir, config, output_base_name=args.name)
    elapsed = time.perf_counter() - start_time

    if result_path:
        logger.info(f"HDR merge successful. Output: {result_path} (Completed in {elapsed:.2f}s)")
        return True
    logger.error(f"HDR merge failed for {stack_dir}. (Failed in {elapsed:.2f}s)")
    return False


def run_batch_conversion(args: argparse.Namespace) -> bool:
    """Merge every stack directory below args.root_dir. Returns True if all succeeded."""
    logger.info("--- Running in Batch Processing Mode ---")
    total_start_time = time.perf_counter()
    config = _load_config(args)

    root_dir = Path(args.root_dir).resolve()
    stack_dirs = list_stack_dirs(root_dir, config.EXPOSURE_FILE)
    if not stack_dirs:
        logger.warning(f"No stack directories containing '{config.EXPOSURE_FILE}' found in: {root_dir}")
        return False

    logger.info(f"Found {len(stack_dirs)} stack director(y/ies) to process.")

    success_count = 0
    fail_count = 0
    for i, stack_dir in enumerate(stack_dirs):
        logger.info(f"--- Processing stack {i + 1}/{len(stack_dirs)}: {stack_dir.name} ---")
        start_time = time.perf_counter()
        result_path = create_hdr_pipeline(stack_dir, args.output_dir, config)
        elapsed = time.perf_counter() - start_time
        if result_path:
            logger.info(f"Successfully processed {stack_dir.name}. Output: {result_path} (Took {elapsed:.2f}s)")
            success_count += 1
        else:
            logger.error(f"Failed to process {stack_dir.name}. (Failed in {elapsed:.2f}s)")
            fail_count += 1
        logger.info("-" * 60)

    total_elapsed = time.perf_counter() - total_start_time
    logger.info("--- Batch Processing Summary ---")
    logger.info(f"Total stacks processed: {len(stack_dirs)}")
    logger.info(f"Successful merges: {success_count}")
    logger.info(f"Failed merges: {fail_count}")
    logger.info(f"Total batch time: {total_elapsed:.2f} seconds")
    return fail_count == 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI application. Returns the exit status."""
    args = _parse_arguments(argv)

    try:
        if args.mode == 'single':
            ok = run_single_conversion(args)
        else:
            ok = run_batch_conversion(args)
    except ValueError as e:
        logger.error(f"Invalid arguments: {e}")
        return 1

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())

"""
Config Module
-------------
Centralizes all configuration for the radiance merge and tone mapping pipeline.
Supports file-based config override and validation.

Usage:
    from hdrmerge.config import get_config
    config = get_config()
"""

from dataclasses import dataclass, asdict, replace
from typing import List, Optional, Dict, Any, Union
from pathlib import Path
import json
from hdrmerge.logger import setup_logger
from hdrmerge.tonemap import DEFAULT_ALPHA, LOG_EPSILON as DEFAULT_LOG_EPSILON

# Configure logger
logger = setup_logger("config")

SUPPORTED_BIT_DEPTHS = (8, 16)


def _validate_config(cfg: 'Config') -> List[str]:
    """
    Validate configuration values are within acceptable ranges.

    Args:
        cfg: Configuration object to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not (cfg.ALPHA > 0):
        errors.append("ALPHA must be > 0")

    if not (0 < cfg.GAMMA <= 5.0):
        errors.append("GAMMA must be in range (0, 5.0]")

    if cfg.OUTPUT_BIT_DEPTH not in SUPPORTED_BIT_DEPTHS:
        errors.append(f"OUTPUT_BIT_DEPTH must be one of {SUPPORTED_BIT_DEPTHS}")

    if not (0 < cfg.LOG_EPSILON < 1e-3):
        errors.append("LOG_EPSILON must be in range (0, 1e-3)")

    if not (isinstance(cfg.CHUNK_SIZE, int) and cfg.CHUNK_SIZE > 0):
        errors.append("CHUNK_SIZE must be a positive integer")

    if not cfg.EXPOSURE_FILE:
        errors.append("EXPOSURE_FILE must not be empty")

    if len(cfg.EXPOSURE_DELIMITER) != 1:
        errors.append("EXPOSURE_DELIMITER must be a single character")

    if not cfg.CURVE_FILE:
        errors.append("CURVE_FILE must not be empty")

    # Directories are only reported, never created here
    data_dir = cfg.data_dir_path
    if not data_dir.exists():
        logger.debug(f"DATA_DIR does not exist: {data_dir}")

    return errors


@dataclass(frozen=True)
class Config:
    """
    Configuration parameters for the radiance merge pipeline.

    Attributes:
        # --- Tone Mapping ---
        ALPHA: Key value of the photographic operator. Higher values pull more of the range toward bright.
        GAMMA: Gamma exponent for the gamma-encoded LDR output (out = in ** (1 / GAMMA)).
        OUTPUT_BIT_DEPTH: Integer range of the LDR outputs (8 or 16 bits per channel).
        LOG_EPSILON: Small constant added to luminance inside the log of the log-average.

        # --- Radiance Reconstruction ---
        CHUNK_SIZE: Number of pixels fused per block during reconstruction.

        # --- Stack Directory Layout ---
        EXPOSURE_FILE: Name of the exposure table inside a stack directory.
        EXPOSURE_DELIMITER: Field delimiter of the exposure table.
        CURVE_FILE: Name of the response curve file inside a stack directory.

        # --- Outputs ---
        SAVE_LUMINANCE: Write the luminance map next to the radiance map.
        SAVE_REJECTED_MASK: Write an overlay of pixels whose samples were all saturated.

        # --- File I/O ---
        DATA_DIR: Default base directory for stack directories.
        OUTPUT_DIR: Default base directory for output results.
    """

    # --- Tone Mapping ---
    ALPHA: float = DEFAULT_ALPHA
    GAMMA: float = 2.2
    OUTPUT_BIT_DEPTH: int = 16
    LOG_EPSILON: float = DEFAULT_LOG_EPSILON

    # --- Radiance Reconstruction ---
    CHUNK_SIZE: int = 262144

    # --- Stack Directory Layout ---
    EXPOSURE_FILE: str = "exposure_times.csv"
    EXPOSURE_DELIMITER: str = ";"
    CURVE_FILE: str = "curve.m"

    # --- Outputs ---
    SAVE_LUMINANCE: bool = True
    SAVE_REJECTED_MASK: bool = False

    # --- File I/O ---
    # Default locations relative to project root (config.py lives in hdrmerge/)
    DATA_DIR: str = str(Path(__file__).resolve().parent.parent / "input")
    OUTPUT_DIR: str = str(Path(__file__).resolve().parent.parent / "output")

    @property
    def data_dir_path(self) -> Path:
        """Return the data directory as a Path object."""
        return Path(self.DATA_DIR).resolve()

    @property
    def output_dir_path(self) -> Path:
        """Return the output directory as a Path object."""
        return Path(self.OUTPUT_DIR).resolve()


def _load_config_from_file(path: Union[str, Path, None]) -> Optional[Dict[str, Any]]:
    """
    Load configuration from a JSON file.

    Args:
        path: Path to JSON config file

    Returns:
        Dictionary of config values or None if loading failed
    """
    if not path:
        return None

    config_path = Path(path)
    if not config_path.exists():
        logger.warning(f"Config file not found: {config_path}")
        return None

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON in config file: {config_path}")
        return None
    except OSError as e:
        logger.error(f"Error reading config from {config_path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.error(f"Config file must contain a JSON object: {config_path}")
        return None

    logger.info(f"Loaded configuration from {config_path}")
    return data


def override_config(config: Config, **overrides: Any) -> Config:
    """
    Return a copy of `config` with the non-None overrides applied.

    Raises:
        ValueError: If the resulting configuration does not validate.
    """
    changes = {k: v for k, v in overrides.items() if v is not None}
    if not changes:
        return config
    new_config = replace(config, **changes)
    errors = _validate_config(new_config)
    if errors:
        raise ValueError("Invalid configuration override: " + "; ".join(errors))
    logger.debug(f"Applied config overrides: {changes}")
    return new_config


# Global config instance
_config: Optional[Config] = None


def get_config(config_path: Optional[Union[str, Path]] = None) -> Config:
    """
    Get the global configuration object, optionally loading from a file.

    Args:
        config_path: Optional path to JSON config file

    Returns:
        Configuration object with all parameters
    """
    global _config

    # If config_path provided, always reload
    if config_path is not None:
        config_data = _load_config_from_file(config_path)

        if config_data:
            # Filter out unknown fields
            known = asdict(Config())
            unknown = sorted(k for k in config_data if k not in known)
            if unknown:
                logger.warning(f"Ignoring unknown config keys: {unknown}")
            filtered_data = {k: v for k, v in config_data.items() if k in known}

            try:
                new_config = Config(**filtered_data)
            except TypeError as e:
                logger.error(f"Error creating config from file data: {e}")
                new_config = None

            errors = _validate_config(new_config) if new_config is not None else ["unusable config data"]
            if errors:
                for err in errors:
                    logger.error(f"Config validation error: {err}")
                logger.warning("Falling back to default configuration")
                _config = Config()
            else:
                _config = new_config
                logger.info("Configuration successfully loaded and validated")
        else:
            _config = Config()

    if _config is None:
        _config = Config()
        for err in _validate_config(_config):
            logger.error(f"Default config validation error: {err}")

    return _config


def save_config(config: Config, output_path: Union[str, Path]) -> bool:
    """
    Save configuration to a JSON file.

    Args:
        config: Configuration object to save
        output_path: Path to save the config to

    Returns:
        True if saving succeeded, False otherwise
    """
    try:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(asdict(config), f, indent=4)
        logger.info(f"Configuration saved to {output_path}")
        return True
    except OSError as e:
        logger.error(f"Failed to save configuration: {e}")
        return False

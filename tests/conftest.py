"""Shared fixtures: synthetic exposure stacks encoded with z = E * t and g(z) = ln(z)."""

from pathlib import Path

import cv2
import numpy as np
import pytest

from hdrmerge.config import Config
from hdrmerge.response import ResponseCurve

EXPOSURE_TIMES = ("1/4", "1", "4")
EXPOSURE_SECONDS = (0.25, 1.0, 4.0)


def log_curve_table(channels: int = 3) -> np.ndarray:
    """g(z) = ln(z) for z in 1..255, 0 at z = 0."""
    table = np.zeros(256, dtype=np.float64)
    table[1:] = np.log(np.arange(1, 256))
    return np.repeat(table[:, np.newaxis], channels, axis=1)


def encode(radiance: np.ndarray, exposure_time: float) -> np.ndarray:
    return np.clip(np.rint(radiance * exposure_time), 0, 255).astype(np.uint8)


def write_curve_file(path: Path, table_rgb: np.ndarray) -> None:
    lines = ["curve = ["]
    lines += [" ".join(f"{v:.17g}" for v in row) for row in table_rgb]
    lines.append("];")
    path.write_text("\n".join(lines) + "\n")


def write_stack_dir(stack_dir: Path, radiance: np.ndarray) -> Path:
    """Write a BGR stack of `radiance` plus exposure table and curve into stack_dir."""
    stack_dir.mkdir(parents=True, exist_ok=True)
    rows = ["file;exposure"]
    for index, (label, seconds) in enumerate(zip(EXPOSURE_TIMES, EXPOSURE_SECONDS)):
        name = f"exposure_{index}.png"
        assert cv2.imwrite(str(stack_dir / name), encode(radiance, seconds))
        rows.append(f"{name};{label}")
    (stack_dir / "exposure_times.csv").write_text("\n".join(rows) + "\n")
    write_curve_file(stack_dir / "curve.m", log_curve_table(3))
    return stack_dir


@pytest.fixture
def scene_radiance() -> np.ndarray:
    rng = np.random.default_rng(7)
    radiance = rng.uniform(2.0, 60.0, size=(12, 16, 3))
    radiance[0, 0] = 5000.0  # saturated in every exposure
    return radiance


@pytest.fixture
def stack_dir(tmp_path, scene_radiance) -> Path:
    return write_stack_dir(tmp_path / "office", scene_radiance)


@pytest.fixture
def log_curve() -> ResponseCurve:
    return ResponseCurve(log_curve_table(3))


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(DATA_DIR=str(tmp_path), OUTPUT_DIR=str(tmp_path / "output"))


@pytest.fixture(autouse=True)
def reset_global_config(monkeypatch):
    monkeypatch.setattr("hdrmerge.config._config", None)

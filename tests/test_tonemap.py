import numpy as np
import pytest

from hdrmerge.tonemap import (
    LogLuminanceSum,
    apply_global_operator,
    log_average_luminance,
    luminance_map,
    tone_map,
)


@pytest.fixture
def radiance():
    rng = np.random.default_rng(5)
    values = rng.uniform(0.01, 100.0, size=(20, 30, 3))
    values[3, 4] = 0.0
    return values


def test_luminance_uses_bgr_luma_weights():
    pixel = np.array([[[1.0, 2.0, 4.0]]])  # B, G, R
    assert luminance_map(pixel)[0, 0] == pytest.approx(0.114 * 1.0 + 0.587 * 2.0 + 0.299 * 4.0)


def test_luminance_requires_three_channels():
    with pytest.raises(ValueError):
        luminance_map(np.ones((4, 4)))


def test_log_average_is_geometric_mean_of_positive_pixels():
    luminance = np.array([[1.0, 4.0], [0.0, 16.0]])
    assert log_average_luminance(luminance) == pytest.approx(4.0)


def test_log_average_of_black_scene_is_zero():
    assert log_average_luminance(np.zeros((5, 5))) == 0.0


def test_reduction_identity_and_partition_independence(radiance):
    luminance = luminance_map(radiance)
    partial = LogLuminanceSum.from_block(luminance)
    assert LogLuminanceSum().combine(partial) == partial
    assert partial.combine(LogLuminanceSum()) == partial

    whole = log_average_luminance(luminance, row_block=1000)
    assert log_average_luminance(luminance, row_block=1) == pytest.approx(whole, rel=1e-12)
    assert log_average_luminance(luminance, row_block=7) == pytest.approx(whole, rel=1e-12)


@pytest.mark.parametrize("row_block", [0, -3])
def test_log_average_rejects_non_positive_row_block(row_block):
    with pytest.raises(ValueError, match="row_block"):
        log_average_luminance(np.ones((4, 4)), row_block=row_block)


def test_tone_mapped_luminance_is_bounded(radiance):
    _, tone_mapped = tone_map(radiance)
    out_luminance = luminance_map(tone_mapped)
    assert np.all(out_luminance >= 0.0)
    assert np.all(out_luminance < 1.0)


def test_grey_pixels_are_bounded_per_channel():
    grey = np.linspace(0.0, 1e6, 64).reshape(8, 8, 1).repeat(3, axis=2)
    _, tone_mapped = tone_map(grey)
    assert np.all(tone_mapped >= 0.0)
    assert np.all(tone_mapped < 1.0)


def test_compressed_luminance_is_monotonic():
    luminance = np.linspace(0.0, 1000.0, 501).reshape(1, -1)
    radiance = luminance[..., np.newaxis].repeat(3, axis=2)
    out = luminance_map(apply_global_operator(radiance, luminance, log_average=5.0, alpha=0.18))
    assert np.all(np.diff(out[0]) >= 0.0)


def test_chromaticity_is_preserved(radiance):
    _, tone_mapped = tone_map(radiance)
    lit = luminance_map(radiance) > 0
    np.testing.assert_allclose(
        tone_mapped[lit][:, 0] / tone_mapped[lit][:, 2],
        radiance[lit][:, 0] / radiance[lit][:, 2],
        rtol=1e-10,
    )


def test_scaling_radiance_does_not_change_output(radiance):
    _, reference = tone_map(radiance, alpha=0.18)
    _, scaled = tone_map(radiance * 37.5, alpha=0.18)
    np.testing.assert_allclose(scaled, reference, rtol=1e-9, atol=1e-12)


def test_zero_luminance_pixel_maps_to_black(radiance):
    luminance, tone_mapped = tone_map(radiance)
    assert luminance[3, 4] == 0.0
    np.testing.assert_array_equal(tone_mapped[3, 4], 0.0)


def test_black_scene_gives_black_output_without_nan():
    with np.errstate(all="raise"):
        luminance, tone_mapped = tone_map(np.zeros((6, 6, 3)))
    assert not np.isnan(tone_mapped).any()
    np.testing.assert_array_equal(tone_mapped, 0.0)
    np.testing.assert_array_equal(luminance, 0.0)


def test_higher_key_value_brightens(radiance):
    _, dim = tone_map(radiance, alpha=0.09)
    _, bright = tone_map(radiance, alpha=0.72)
    assert luminance_map(bright).mean() > luminance_map(dim).mean()


def test_non_positive_alpha_is_rejected(radiance):
    with pytest.raises(ValueError):
        tone_map(radiance, alpha=0.0)

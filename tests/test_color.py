import numpy as np
import pytest

from hdrmerge.color import gamma_encode, rescale_to_integer


def test_rescale_to_16_bit():
    image = np.array([0.0, 0.8, 1.0, 1.7, -0.2])
    out = rescale_to_integer(image, 16)
    assert out.dtype == np.uint16
    np.testing.assert_array_equal(out, [0, 52428, 65535, 65535, 0])


def test_rescale_to_8_bit():
    out = rescale_to_integer(np.array([0.0, 0.8, 1.0]), 8)
    assert out.dtype == np.uint8
    np.testing.assert_array_equal(out, [0, 204, 255])


@pytest.mark.parametrize("bit_depth, max_value", [(8, 255), (16, 65535)])
def test_gamma_encode_applies_inverse_power(bit_depth, max_value):
    out = gamma_encode(np.array([0.0, 0.64, 1.0]), gamma=2.0, bit_depth=bit_depth)
    np.testing.assert_array_equal(out, [0, round(0.8 * max_value), max_value])


def test_gamma_encode_brightens_mid_tones():
    image = np.linspace(0.05, 0.95, 10)
    assert np.all(gamma_encode(image, 2.2) > rescale_to_integer(image))


def test_gamma_one_matches_plain_rescale():
    image = np.random.default_rng(0).uniform(0, 1, size=(4, 4, 3))
    np.testing.assert_array_equal(gamma_encode(image, 1.0), rescale_to_integer(image))


@pytest.mark.parametrize("gamma", [0.0, -2.2])
def test_gamma_must_be_positive(gamma):
    with pytest.raises(ValueError):
        gamma_encode(np.zeros(3), gamma)


def test_unsupported_bit_depth():
    with pytest.raises(ValueError):
        gamma_encode(np.zeros(3), 2.2, bit_depth=12)

import numpy as np
import pytest

from hdrmerge.response import ResponseCurve, load_response_curve

from conftest import write_curve_file


def _rgb_table():
    z = np.arange(256, dtype=np.float64)
    return np.stack([z + 0.1, z + 0.2, z + 0.3], axis=1)  # R, G, B


def test_load_reorders_columns_to_bgr(tmp_path):
    path = tmp_path / "curve.m"
    write_curve_file(path, _rgb_table())

    curve = load_response_curve(path)

    assert curve.table.shape == (256, 3)
    np.testing.assert_allclose(curve.table[:, 0], _rgb_table()[:, 2])
    np.testing.assert_allclose(curve.table[:, 2], _rgb_table()[:, 0])


def test_load_rejects_short_curve(tmp_path):
    path = tmp_path / "curve.m"
    write_curve_file(path, _rgb_table()[:255])
    with pytest.raises(ValueError, match="256"):
        load_response_curve(path)


def test_load_rejects_malformed_row(tmp_path):
    path = tmp_path / "curve.m"
    path.write_text("curve = [\n1.0 2.0\n];\n")
    with pytest.raises(ValueError, match="expected 3 values"):
        load_response_curve(path)


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_response_curve(tmp_path / "curve.m")


def test_table_is_read_only():
    curve = ResponseCurve(_rgb_table())
    with pytest.raises(ValueError):
        curve.table[10, 0] = 0.0


def test_one_dimensional_table_is_single_channel():
    curve = ResponseCurve(np.zeros(256))
    assert curve.channels == 1
    curve.validate(1)


def test_non_finite_values_only_allowed_at_saturated_levels():
    table = _rgb_table()
    table[0] = -np.inf
    table[255] = np.inf
    ResponseCurve(table).validate(3)

    table[100, 1] = np.nan
    with pytest.raises(ValueError, match="100"):
        ResponseCurve(table).validate(3)

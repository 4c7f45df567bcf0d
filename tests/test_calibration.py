"""
Calibration Tests
=================
"""

import numpy as np
import pytest

from thermal_stream.calibration import raw_matrix_to_celsius, raw_to_celsius
from thermal_stream.config import CalibrationConfig


class TestCalibration:
    """Tests for raw-to-Celsius conversion."""

    def test_default_is_centi_kelvin(self):
        assert raw_to_celsius(27315) == pytest.approx(0.0)
        assert raw_to_celsius(31015) == pytest.approx(37.0)

    def test_matrix_conversion(self, sample_matrix):
        celsius = raw_matrix_to_celsius(sample_matrix)

        assert celsius.dtype == np.float32
        assert celsius.shape == sample_matrix.shape
        assert celsius[0, 0] == pytest.approx(raw_to_celsius(int(sample_matrix[0, 0])), abs=1e-3)

    def test_custom_coefficients(self):
        config = CalibrationConfig(gain=0.1, offset=-40.0)
        matrix = np.array([[400, 800]], dtype=np.uint16)

        np.testing.assert_allclose(raw_matrix_to_celsius(matrix, config), [[0.0, 40.0]])
        assert raw_to_celsius(400, config) == pytest.approx(0.0)

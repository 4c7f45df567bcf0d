"""
Calibration
===========

Linear conversion of raw sensor counts to degrees Celsius.

    celsius = raw * gain + offset

The defaults treat raw values as centi-kelvin (gain 0.01, offset -273.15).
"""

from typing import Optional

import numpy as np

from thermal_stream.config import CalibrationConfig


_DEFAULT = CalibrationConfig()


def raw_to_celsius(raw: int, config: Optional[CalibrationConfig] = None) -> float:
    """Convert one raw sample to Celsius."""
    config = config or _DEFAULT
    return float(raw) * config.gain + config.offset


def raw_matrix_to_celsius(
    matrix: np.ndarray,
    config: Optional[CalibrationConfig] = None,
) -> np.ndarray:
    """
    Convert a raw uint16 matrix to a float32 Celsius matrix of the same shape.

    Args:
        matrix: Raw intensities
        config: Calibration coefficients, defaults to CalibrationConfig()

    Returns:
        float32 array
    """
    config = config or _DEFAULT
    celsius = matrix.astype(np.float64) * config.gain + config.offset
    return celsius.astype(np.float32)

"""
Storage Tests
=============

Frame recording files: header, column-major samples, round trips.
"""

import struct

import numpy as np
import pytest

from thermal_stream.exceptions import StorageError
from thermal_stream.storage import (
    load_frames_celsius,
    load_frames_raw,
    save_frames_celsius,
    save_frames_raw,
)


class TestRawFrames:
    """Tests for uint16 recordings."""

    def test_round_trip(self, tmp_path, sample_matrix):
        path = tmp_path / "raw.bin"
        frames = [sample_matrix, sample_matrix[::-1].copy()]

        save_frames_raw(path, frames, width=4, height=3)
        loaded, width, height = load_frames_raw(path)

        assert (width, height) == (4, 3)
        assert len(loaded) == 2
        for got, expected in zip(loaded, frames):
            assert got.dtype == np.uint16
            np.testing.assert_array_equal(got, expected)

    def test_file_layout(self, tmp_path):
        """Header is width, height; samples follow column by column."""
        path = tmp_path / "layout.bin"
        matrix = np.array([[1, 2, 3], [4, 5, 6]], dtype=np.uint16)

        save_frames_raw(path, [matrix], width=3, height=2)
        data = path.read_bytes()

        assert struct.unpack_from("<HH", data) == (3, 2)
        assert struct.unpack("<6H", data[4:]) == (1, 4, 2, 5, 3, 6)

    def test_empty_recording(self, tmp_path):
        path = tmp_path / "empty.bin"

        save_frames_raw(path, [], width=80, height=62)

        assert load_frames_raw(path) == ([], 80, 62)

    def test_shape_mismatch_rejected(self, tmp_path, sample_matrix):
        with pytest.raises(StorageError):
            save_frames_raw(tmp_path / "bad.bin", [sample_matrix], width=3, height=4)

    def test_truncated_file_rejected(self, tmp_path, sample_matrix):
        path = tmp_path / "truncated.bin"
        save_frames_raw(path, [sample_matrix], width=4, height=3)
        path.write_bytes(path.read_bytes()[:-1])

        with pytest.raises(StorageError):
            load_frames_raw(path)

    def test_missing_header_rejected(self, tmp_path):
        path = tmp_path / "short.bin"
        path.write_bytes(b"\x01")

        with pytest.raises(StorageError):
            load_frames_raw(path)


class TestCelsiusFrames:
    """Tests for float32 recordings."""

    def test_round_trip(self, tmp_path):
        path = tmp_path / "celsius.bin"
        frame = np.linspace(-10.5, 42.25, 12, dtype=np.float32).reshape(3, 4)

        save_frames_celsius(path, [frame], width=4, height=3)
        loaded, width, height = load_frames_celsius(path)

        assert (width, height) == (4, 3)
        assert loaded[0].dtype == np.float32
        np.testing.assert_array_equal(loaded[0], frame)
        assert path.stat().st_size == 4 + 12 * 4

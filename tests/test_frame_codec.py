"""
Frame Codec Tests
=================

Decoding of raw TCP frames into uint16 matrices.
"""

import numpy as np
import pytest

from thermal_stream.samples import samples_to_matrix
from thermal_stream.stream import DecodedFrame, decode_frame, encode_frame


class TestDecodeFrame:
    """Tests for decode_frame."""

    def test_round_trip(self, stream_config, sample_matrix):
        """Encoding a matrix and decoding it returns the same matrix."""
        frame_bytes = encode_frame(sample_matrix, stream_config)
        assert len(frame_bytes) == stream_config.total_frame_size_bytes

        decoded = decode_frame(frame_bytes, stream_config)

        assert decoded.is_valid
        assert decoded.matrix.dtype == np.uint16
        np.testing.assert_array_equal(decoded.matrix, sample_matrix)

    def test_row_major_orientation(self, stream_config):
        """Flat sample i lands at row i // width, column i % width."""
        payload = np.arange(12, dtype="<u2").tobytes()
        frame_bytes = b"\x00" * 2 + payload + b"\x00" * 3

        matrix = decode_frame(frame_bytes, stream_config).matrix

        assert matrix.shape == (3, 4)
        assert matrix[0, 1] == 1
        assert matrix[1, 0] == 4
        assert matrix[2, 3] == 11

    def test_little_endian_samples(self, stream_config):
        """Sample bytes are little-endian."""
        payload = b"\x01\x02" + b"\x00" * 22
        frame_bytes = b"\xaa\xbb" + payload + b"\xcc\xdd\xee"

        matrix = decode_frame(frame_bytes, stream_config).matrix

        assert matrix[0, 0] == 0x0201

    def test_envelope_bytes_are_discarded(self, stream_config, sample_matrix):
        """Head and tail bytes never leak into the matrix."""
        frame_bytes = encode_frame(
            sample_matrix, stream_config, head=b"\xff\xff", tail=b"\xff\xff\xff"
        )

        decoded = decode_frame(frame_bytes, stream_config)

        np.testing.assert_array_equal(decoded.matrix, sample_matrix)

    def test_wrong_length_is_invalid(self, stream_config):
        """A frame of the wrong size decodes to an invalid frame."""
        short = bytes(stream_config.total_frame_size_bytes - 1)
        long = bytes(stream_config.total_frame_size_bytes + 1)

        for data in (short, long, b""):
            decoded = decode_frame(data, stream_config)
            assert decoded == DecodedFrame(is_valid=False)
            assert decoded.matrix is None

    def test_default_geometry(self):
        """Default 80x62 frame decodes to a 62x80 matrix."""
        from thermal_stream.config import StreamConfig

        config = StreamConfig()
        decoded = decode_frame(bytes(config.total_frame_size_bytes), config)

        assert decoded.is_valid
        assert decoded.shape == (62, 80)


class TestEncodeFrame:
    """Tests for encode_frame."""

    def test_rejects_wrong_shape(self, stream_config):
        with pytest.raises(ValueError):
            encode_frame(np.zeros((4, 3), dtype=np.uint16), stream_config)

    def test_rejects_wrong_envelope(self, stream_config, sample_matrix):
        with pytest.raises(ValueError):
            encode_frame(sample_matrix, stream_config, head=b"\x00")


class TestSamples:
    """Tests for the shared sample layout helpers."""

    def test_matrix_owns_memory(self):
        """Decoded matrices are writable copies, not views of the input."""
        matrix = samples_to_matrix(bytes(8), 2, 2)
        matrix[0, 0] = 5
        assert matrix[0, 0] == 5

    def test_size_mismatch_raises(self):
        with pytest.raises(ValueError):
            samples_to_matrix(bytes(7), 2, 2)

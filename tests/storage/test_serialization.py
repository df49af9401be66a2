"""
Tests for binary matrix persistence.
"""

import io
import struct

import numpy as np
import pytest

from pymatrix import Matrix, ValidationError, deserialize, read_matrix, serialize, write_matrix


class TestSerialize:

    def test_exact_layout(self):
        data = serialize(Matrix.from_rows([[1, 2]]))
        assert data == struct.pack('<ii', 1, 2) + struct.pack('<2d', 1.0, 2.0)

    def test_padding_not_written(self, magic3):
        assert magic3.stride > 3 * 8
        assert len(serialize(magic3)) == 8 + 9 * 8

    def test_window_serializes_region(self, magic3):
        data = serialize(magic3.window(1, 1))
        assert deserialize(data).tolist() == [[5, 6], [8, 9]]

    def test_array_like_input(self):
        assert len(serialize([[1, 2], [3, 4]])) == 8 + 4 * 8


class TestDeserialize:

    def test_round_trip(self, rng):
        m = Matrix.from_array(rng.standard_normal((4, 5)))
        assert deserialize(serialize(m)) == m

    def test_empty_round_trip(self):
        data = serialize(Matrix())
        assert data == struct.pack('<ii', 0, 0)
        assert deserialize(data).shape == (0, 0)

    def test_integer_elements(self):
        m = Matrix.from_rows([[1, -2], [3, 4]], dtype=np.int32)
        restored = deserialize(serialize(m), dtype=np.int32)
        assert restored.dtype == np.int32
        assert restored == m

    def test_trailing_bytes_ignored(self):
        data = serialize(Matrix.from_rows([[7.5]])) + b'extra'
        assert deserialize(data).tolist() == [[7.5]]

    def test_truncated_header(self):
        with pytest.raises(ValidationError, match="header"):
            deserialize(b'\x01\x00\x00')

    def test_negative_header(self):
        with pytest.raises(ValidationError, match="negative"):
            deserialize(struct.pack('<ii', -1, 2))

    def test_short_payload(self):
        with pytest.raises(ValidationError, match="needs"):
            deserialize(struct.pack('<ii', 2, 2) + bytes(8))

    def test_result_is_writable(self):
        restored = deserialize(serialize(Matrix.from_rows([[1, 2]])))
        restored[0, 0] = 5
        assert restored[0, 0] == 5


class TestStreams:

    def test_back_to_back(self, magic3):
        stream = io.BytesIO()
        write_matrix(stream, magic3)
        write_matrix(stream, Matrix.identity(2))
        stream.seek(0)
        assert read_matrix(stream) == magic3
        assert read_matrix(stream) == Matrix.identity(2)

    def test_stream_ends_early(self):
        stream = io.BytesIO(struct.pack('<ii', 3, 3) + bytes(16))
        with pytest.raises(ValidationError):
            read_matrix(stream)

    def test_empty_stream(self):
        with pytest.raises(ValidationError, match="header"):
            read_matrix(io.BytesIO())

"""
Tests for the copy-on-write Matrix.

Validates:
    - Construction forms and zero-size matrices
    - Copy-on-write isolation between handles
    - Windows (aliasing) and views (snapshots), including index rules
    - Shape changes: resize, append, insert, remove
    - External memory
    - Element-wise arithmetic and matrix products
"""

import copy

import numpy as np
import pytest

from pymatrix import DimensionError, Matrix, OutOfRangeError, Ownership, Submatrix, ValidationError


# ═══════════════════════════════════════════════════════════════════════
# Construction
# ═══════════════════════════════════════════════════════════════════════


class TestConstruction:

    def test_zero_filled(self):
        m = Matrix(2, 3)
        assert m.shape == (2, 3)
        assert m.dtype == np.float64
        assert m.tolist() == [[0, 0, 0], [0, 0, 0]]

    def test_dtype(self):
        m = Matrix(2, 2, dtype=np.int32)
        assert m.dtype == np.int32
        assert m.stride % 16 == 0

    def test_from_rows(self, magic3):
        assert magic3.shape == (3, 3)
        assert magic3[1, 2] == 6

    def test_from_rows_ragged(self):
        with pytest.raises(DimensionError, match="inconsistent"):
            Matrix.from_rows([[1, 2], [3]])

    def test_from_rows_empty(self):
        assert Matrix.from_rows([]).shape == (0, 0)

    def test_from_array_1d_is_row(self):
        assert Matrix.from_array([1, 2, 3]).shape == (1, 3)

    def test_from_array_3d_rejected(self):
        with pytest.raises(DimensionError):
            Matrix.from_array(np.zeros((2, 2, 2)))

    def test_negative_size_rejected(self):
        with pytest.raises(ValidationError):
            Matrix(-1, 2)

    def test_identity(self):
        np.testing.assert_array_equal(Matrix.identity(3).array(), np.eye(3))

    def test_converting_copy(self, magic3):
        m = Matrix(magic3, dtype=np.int64)
        assert m.dtype == np.int64
        assert m.tolist() == magic3.tolist()
        assert not magic3.is_shared()

    def test_zero_size(self):
        m = Matrix(0, 0)
        assert m.is_empty()
        assert m.size == 0
        assert list(m) == []
        assert Matrix(3, 0).is_empty()


# ═══════════════════════════════════════════════════════════════════════
# Copy-on-write
# ═══════════════════════════════════════════════════════════════════════


class TestCopyOnWrite:

    def test_copy_shares_storage(self, magic3):
        other = Matrix(magic3)
        assert other.buffer is magic3.buffer
        assert magic3.is_shared()

    def test_write_detaches_writer(self, magic3):
        other = Matrix(magic3)
        other[0, 0] = 100
        assert magic3[0, 0] == 1
        assert other[0, 0] == 100
        assert other.buffer is not magic3.buffer
        assert not magic3.is_shared()

    def test_original_write_leaves_copy(self, magic3):
        other = copy.copy(magic3)
        magic3.fill(0)
        assert other.tolist() == [[1, 2, 3], [4, 5, 6], [7, 8, 9]]

    def test_clone_is_exclusive(self, magic3):
        other = magic3.clone()
        assert other.buffer is not magic3.buffer
        assert copy.deepcopy(magic3) == magic3

    def test_read_only_array(self, magic3):
        with pytest.raises(ValueError):
            magic3.array()[0, 0] = 5

    def test_writable_array_detaches(self, magic3):
        other = Matrix(magic3)
        other.writable_array()[...] = 0
        assert magic3[2, 2] == 9

    def test_dropping_handle_releases(self, magic3):
        other = Matrix(magic3)
        assert magic3.buffer.refcount == 2
        del other
        assert magic3.buffer.refcount == 1

    def test_astype_same_dtype_shares(self, magic3):
        assert magic3.astype(np.float64).buffer is magic3.buffer


# ═══════════════════════════════════════════════════════════════════════
# Element access and iteration
# ═══════════════════════════════════════════════════════════════════════


class TestElementAccess:

    def test_vector_indexing(self):
        row = Matrix.from_rows([[1, 2, 3]])
        column = Matrix.from_rows([[1], [2], [3]])
        assert row[2] == 3
        assert column[2] == 3
        column[0] = 10
        assert column[0, 0] == 10

    def test_rows_and_columns(self, magic3):
        np.testing.assert_array_equal(magic3.row(1), [4, 5, 6])
        np.testing.assert_array_equal(magic3.column(2), [3, 6, 9])
        magic3.writable_column(0)[:] = 0
        assert magic3.column(0).tolist() == [0, 0, 0]

    def test_row_major_iteration(self, magic3):
        assert list(magic3) == list(range(1, 10))

    def test_iterator_arithmetic(self, magic3):
        it = magic3.begin()
        assert it[4] == 5
        assert (it + 7).value == 8
        assert (it + 5).row == 1
        assert (it + 5).column == 2
        assert magic3.end() - it == 9
        assert it + 9 == magic3.end()
        assert it < it + 1

    def test_writable_iterator(self, magic3):
        it = magic3.begin(writable=True)
        it[8] = 0
        assert magic3[2, 2] == 0

    def test_column_iterator(self, magic3):
        it = magic3.column_begin(1)
        assert [it[k] for k in range(3)] == [2, 5, 8]
        assert it.step == magic3.stride


# ═══════════════════════════════════════════════════════════════════════
# Windows and views
# ═══════════════════════════════════════════════════════════════════════


class TestWindows:

    def test_window_region(self, magic3):
        assert magic3.window(0, 1, 1, 2).tolist() == [[2, 3]]

    def test_window_negative_indices(self, magic3):
        assert magic3.window(-2, -2, -1, 1).tolist() == [[5], [8]]

    def test_window_to_end(self, magic3):
        assert magic3.window(1, 1).tolist() == [[5, 6], [8, 9]]

    def test_window_writes_reach_parent(self, magic3):
        window = magic3.window(1, 1, 2, 2)
        assert isinstance(window, Submatrix)
        window.fill(0)
        assert magic3.tolist() == [[1, 2, 3], [4, 0, 0], [7, 0, 0]]

    def test_parent_writes_reach_window(self, magic3):
        window = magic3.window(0, 0, 2, 2)
        magic3[1, 1] = -5
        assert window[1, 1] == -5

    def test_window_detaches_shared_parent(self, magic3):
        other = Matrix(magic3)
        magic3.window(0, 0, 1, 1)[0, 0] = 42
        assert magic3[0, 0] == 42
        assert other[0, 0] == 1

    def test_window_out_of_range(self, magic3):
        with pytest.raises(OutOfRangeError):
            magic3.window(2, 2, 2, 2)
        with pytest.raises(IndexError):
            magic3.window(-4, 0)

    def test_window_keeps_parent_alive(self):
        m = Matrix.from_rows([[1, 2], [3, 4]])
        window = m.window(1, 0, 1, 2)
        del m
        assert window.tolist() == [[3, 4]]

    def test_copy_of_parent_with_live_window(self, magic3):
        window = magic3.window(0, 0, 1, 1)
        other = Matrix(magic3)
        window[0, 0] = 99
        assert magic3[0, 0] == 99
        assert other[0, 0] == 1

    def test_structural_change_copies_window(self, magic3):
        window = magic3.window(0, 0, 2, 2)
        window.append_row([0, 0])
        assert not window.is_attached()
        window[0, 0] = 50
        assert magic3[0, 0] == 1

    def test_copy_of_window_keeps_window_attached(self, magic3):
        window = magic3.window(0, 0, 2, 2)
        snapshot = copy.copy(window)
        window[0, 0] = 42
        assert magic3[0, 0] == 42
        assert snapshot[0, 0] == 1
        assert window.is_attached()

    def test_shared_window_handle_is_a_copy(self, magic3):
        window = magic3.window(1, 1)
        other = Matrix(window)
        other[0, 0] = -1
        window[0, 0] = 0
        assert magic3[1, 1] == 0
        assert other[0, 0] == -1

    def test_view_of_window_keeps_window_attached(self, magic3):
        window = magic3.window(0, 0, 2, 2)
        view = window.view()
        window[0, 0] = 42
        assert magic3[0, 0] == 42
        assert view[0, 0] == 1

    def test_concatenate_with_empty_keeps_window_attached(self, magic3):
        from pymatrix.storage.util import concatenate

        window = magic3.window(0, 0, 1, 3)
        joined = concatenate(window, Matrix(0, 3))
        window[0, 2] = 30
        assert magic3[0, 2] == 30
        assert joined.tolist() == [[1, 2, 3]]

    def test_submatrix_direct_construction_rejected(self):
        with pytest.raises(TypeError):
            Submatrix(2, 2)


class TestViews:

    def test_view_is_snapshot(self, magic3):
        view = magic3.view(0, 0, 2, 2)
        magic3.fill(0)
        assert view.tolist() == [[1, 2], [4, 5]]

    def test_view_write_leaves_parent(self, magic3):
        view = magic3.view(1, 1)
        view[0, 0] = 0
        assert magic3[1, 1] == 5
        assert view.tolist() == [[0, 6], [8, 9]]

    def test_view_with_live_window(self, magic3):
        window = magic3.window(0, 0)
        view = magic3.view()
        window.fill(0)
        assert view == Matrix.from_rows([[1, 2, 3], [4, 5, 6], [7, 8, 9]])


# ═══════════════════════════════════════════════════════════════════════
# Shape changes
# ═══════════════════════════════════════════════════════════════════════


class TestResize:

    def test_grow_zero_fills(self):
        m = Matrix.from_rows([[1, 2], [3, 4]])
        m.resize(3, 3)
        assert m.tolist() == [[1, 2, 0], [3, 4, 0], [0, 0, 0]]

    def test_shrink_then_grow_clears_stale_values(self, magic3):
        magic3.resize(2, 2)
        assert magic3.tolist() == [[1, 2], [4, 5]]
        magic3.resize(3, 3)
        assert magic3.tolist() == [[1, 2, 0], [4, 5, 0], [0, 0, 0]]

    def test_resize_detaches(self, magic3):
        other = Matrix(magic3)
        other.resize(1, 1)
        assert magic3.shape == (3, 3)

    def test_clear(self, magic3):
        magic3.clear()
        assert magic3.shape == (0, 0)

    def test_reserve_keeps_size(self, magic3):
        magic3.reserve(10)
        assert magic3.capacity >= 10
        assert magic3.shape == (3, 3)


class TestAppendInsertRemove:

    def test_append_row(self, magic3):
        magic3.append_row([10, 11, 12])
        assert magic3.shape == (4, 3)
        assert magic3.row(3).tolist() == [10, 11, 12]

    def test_append_row_to_empty_adopts_length(self):
        m = Matrix()
        m.append_row([1, 2])
        m.append_row()
        assert m.tolist() == [[1, 2], [0, 0]]

    def test_append_row_wrong_length(self, magic3):
        with pytest.raises(DimensionError):
            magic3.append_row([1, 2])
        assert magic3.shape == (3, 3)

    def test_append_amortized(self):
        m = Matrix(0, 3)
        n = 1000
        for i in range(n):
            m.append_row([i, i, i])
        assert m.rows == n
        assert m.buffer.reallocations <= int(np.log2(n)) + 2
        assert m[n - 1, 2] == n - 1

    def test_append_rows_self(self):
        m = Matrix.from_rows([[1, 2]])
        m.append_rows(m)
        assert m.tolist() == [[1, 2], [1, 2]]

    def test_append_column(self, magic3):
        magic3.append_column([0, 0, 0])
        assert magic3.shape == (3, 4)
        assert magic3.row(0).tolist() == [1, 2, 3, 0]

    def test_repeated_column_appends(self):
        m = Matrix(4, 1)
        for i in range(20):
            m.append_column(np.full(4, i))
        assert m.shape == (4, 21)
        assert m.column(20).tolist() == [19] * 4

    def test_insert_row(self, magic3):
        magic3.insert_row(1, [0, 0, 0])
        assert magic3.tolist() == [[1, 2, 3], [0, 0, 0], [4, 5, 6], [7, 8, 9]]

    def test_insert_row_does_not_touch_copy(self, magic3):
        other = Matrix(magic3)
        magic3.insert_row(0)
        assert other.tolist() == [[1, 2, 3], [4, 5, 6], [7, 8, 9]]
        assert magic3.row(1).tolist() == [1, 2, 3]

    def test_insert_row_out_of_range(self, magic3):
        with pytest.raises(OutOfRangeError):
            magic3.insert_row(5)

    def test_insert_column(self, magic3):
        magic3.insert_column(0, [-1, -2, -3])
        assert magic3.tolist() == [[-1, 1, 2, 3], [-2, 4, 5, 6], [-3, 7, 8, 9]]

    def test_insert_column_out_of_range(self, magic3):
        with pytest.raises(OutOfRangeError):
            magic3.insert_column(4)

    def test_remove_row(self, magic3):
        magic3.remove_row(0)
        assert magic3.tolist() == [[4, 5, 6], [7, 8, 9]]
        magic3.remove_row(-1)
        assert magic3.tolist() == [[4, 5, 6]]

    def test_remove_columns(self, magic3):
        magic3.remove_columns(0, 2)
        assert magic3.tolist() == [[3], [6], [9]]

    def test_remove_out_of_range(self, magic3):
        with pytest.raises(OutOfRangeError):
            magic3.remove_rows(2, 2)
        with pytest.raises(OutOfRangeError):
            magic3.remove_column(3)


# ═══════════════════════════════════════════════════════════════════════
# External memory
# ═══════════════════════════════════════════════════════════════════════


class TestExternalMemory:

    def test_borrowed_memory_written_in_place(self):
        data = np.zeros(4)
        m = Matrix.from_buffer(2, 2, data)
        m[1, 1] = 3
        assert data[3] == 3

    def test_read_only_memory_copied_on_write(self):
        data = np.arange(4, dtype=np.float64).tobytes()
        m = Matrix.from_buffer(2, 2, data)
        assert m.tolist() == [[0, 1], [2, 3]]
        m[0, 0] = 7
        assert np.frombuffer(data)[0] == 0
        assert m[0, 0] == 7

    def test_owned_memory_deallocated(self):
        released = []
        data = bytearray(32)
        m = Matrix.from_buffer(2, 2, data, ownership=Ownership.EXTERNAL_OWNED,
                               deallocator=released.append)
        other = Matrix(m)
        del m
        assert released == []
        del other
        assert len(released) == 1

    def test_too_small_memory(self):
        with pytest.raises(ValidationError):
            Matrix.from_buffer(3, 3, bytearray(16))

    def test_structural_change_copies_external(self):
        data = np.zeros(4)
        m = Matrix.from_buffer(2, 2, data)
        m.append_row([1, 1])
        m[0, 0] = 5
        assert data[0] == 0


# ═══════════════════════════════════════════════════════════════════════
# Arithmetic
# ═══════════════════════════════════════════════════════════════════════


class TestArithmetic:

    def test_scalar_operations(self, magic3):
        np.testing.assert_array_equal((magic3 + 1).array(), magic3.array() + 1)
        np.testing.assert_array_equal((2 * magic3).array(), magic3.array() * 2)
        np.testing.assert_array_equal((10 - magic3).array(), 10 - magic3.array())
        np.testing.assert_array_equal((-magic3).array(), -magic3.array())

    def test_elementwise(self, magic3):
        result = magic3 * magic3
        np.testing.assert_array_equal(result.array(), magic3.array() ** 2)
        assert isinstance(np.ones((3, 3)) + magic3, Matrix)

    def test_shape_mismatch(self, magic3):
        with pytest.raises(DimensionError, match="addition"):
            magic3 + Matrix(2, 2)

    def test_inplace_detaches(self, magic3):
        other = Matrix(magic3)
        other += 1
        assert magic3[0, 0] == 1
        assert other[0, 0] == 2

    def test_inplace_keeps_dtype(self):
        m = Matrix.from_rows([[1, 2]], dtype=np.int32)
        m /= 2
        assert m.dtype == np.int32

    def test_matmul(self, magic3):
        result = magic3 @ Matrix.identity(3)
        assert result == magic3
        np.testing.assert_array_equal((magic3 @ magic3).array(), magic3.array() @ magic3.array())

    def test_matmul_mismatch(self, magic3):
        with pytest.raises(DimensionError):
            magic3 @ Matrix(2, 2)

    def test_equality(self, magic3):
        assert magic3 == magic3.clone()
        assert magic3 != Matrix(3, 3)
        assert magic3 != Matrix(2, 2)

    def test_assign_flat(self):
        m = Matrix(2, 2)
        m.assign([1, 2, 3, 4])
        assert m.tolist() == [[1, 2], [3, 4]]
        with pytest.raises(DimensionError):
            m.assign([1, 2, 3])

    def test_numpy_conversion(self, magic3):
        array = np.asarray(magic3)
        assert array.shape == (3, 3)
        array[0, 0] = -1
        assert magic3[0, 0] == 1

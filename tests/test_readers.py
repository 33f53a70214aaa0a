"""Width-aware integer and float readers."""

import warnings

import numpy as np
import pytest

from bmt_factory import floats, ints
from bmt_io.formats.bmt.bmt import BMTDecodeError, DecodeErrorKind, DecodeStage
from bmt_io.formats.bmt.readers import read_dimensions, read_floats, read_integers
from bmt_io.io.file_reader import ByteCursor


def cursor(data: bytes) -> ByteCursor:
    return ByteCursor(memoryview(data))


class TestReadIntegers:
    @pytest.mark.parametrize("width", [32, 64])
    @pytest.mark.parametrize("dtype", [np.int32, np.int64])
    def test_values_preserved(self, width, dtype):
        out = read_integers(cursor(ints([0, 2, 4, 4], width)), 4, width=width, dtype=dtype)
        assert out.dtype == np.dtype(dtype)
        assert out.tolist() == [0, 2, 4, 4]

    def test_matching_dtype_reuses_read_buffer(self):
        out = read_integers(cursor(ints([1, 2, 3], 64)), 3, width=64, dtype=np.int64)
        assert not out.flags.owndata
        assert out.flags.writeable

    def test_widening_converts(self):
        out = read_integers(cursor(ints([1, 2, 3], 32)), 3, width=32, dtype=np.int64)
        assert out.flags.owndata
        assert out.dtype == np.int64

    def test_narrowing_truncates_without_error(self):
        big = 2**32 + 5
        out = read_integers(cursor(ints([big], 64)), 1, width=64, dtype=np.int32)
        assert out.dtype == np.int32
        assert out.tolist() == [5]

    def test_consumes_exactly_count_elements(self):
        cur = cursor(ints([7, 8, 9], 32))
        out = read_integers(cur, 2, width=32, dtype=np.int64)
        assert out.tolist() == [7, 8]
        assert cur.offset == 8
        assert cur.remaining == 4

    def test_short_read_is_truncation_and_consumes_nothing(self):
        cur = cursor(ints([1, 2], 32))
        with pytest.raises(BMTDecodeError) as ei:
            read_integers(cur, 3, width=32, stage=DecodeStage.INDEX_OR_POINTER_READ)
        assert ei.value.kind is DecodeErrorKind.TRUNCATED_SOURCE
        assert ei.value.stage is DecodeStage.INDEX_OR_POINTER_READ
        assert cur.offset == 0

    def test_zero_count(self):
        out = read_integers(cursor(b""), 0, width=64, dtype=np.int32)
        assert out.shape == (0,)
        assert out.dtype == np.int32

    def test_negative_count(self):
        with pytest.raises(BMTDecodeError) as ei:
            read_integers(cursor(ints([1], 32)), -1, width=32)
        assert ei.value.kind is DecodeErrorKind.INVALID_DIMENSIONS

    @pytest.mark.parametrize("dtype", [np.float64, np.bool_, "U4"])
    def test_rejects_non_integer_target(self, dtype):
        with pytest.raises(TypeError):
            read_integers(cursor(ints([1], 32)), 1, width=32, dtype=dtype)


class TestReadFloats:
    def test_float64_exact(self):
        vals = [0.605543559817451, 0.384665659769348]
        out = read_floats(cursor(floats(vals, 64)), 2, width=64, dtype=np.float64)
        assert out.tolist() == vals
        assert not out.flags.owndata

    def test_widening_is_exact(self):
        vals = np.array([0.1, 1e-30, 3.5], dtype=np.float32)
        out = read_floats(cursor(floats(vals, 32)), 3, width=32, dtype=np.float64)
        assert out.dtype == np.float64
        np.testing.assert_array_equal(out, vals.astype(np.float64))

    def test_narrowing_loses_precision_only(self):
        vals = [0.605543559817451, 0.384665659769348]
        out = read_floats(cursor(floats(vals, 64)), 2, width=64, dtype=np.float32)
        assert out.dtype == np.float32
        np.testing.assert_array_equal(out, np.array(vals, dtype=np.float32))
        np.testing.assert_allclose(out, vals, rtol=1e-6)

    def test_narrowing_overflow_is_silent_inf(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            out = read_floats(cursor(floats([1e300, -1e300], 64)), 2, width=64, dtype=np.float32)
        assert out.dtype == np.float32
        assert np.isposinf(out[0]) and np.isneginf(out[1])

    def test_truncated(self):
        with pytest.raises(BMTDecodeError) as ei:
            read_floats(cursor(floats([1.0], 64)[:-1]), 1, width=64)
        assert ei.value.kind is DecodeErrorKind.TRUNCATED_SOURCE
        assert ei.value.stage is DecodeStage.PAYLOAD_READ

    def test_rejects_integer_target(self):
        with pytest.raises(TypeError):
            read_floats(cursor(floats([1.0], 64)), 1, width=64, dtype=np.int64)


class TestReadDimensions:
    @pytest.mark.parametrize("width", [32, 64])
    def test_python_ints(self, width):
        dims = read_dimensions(cursor(ints([5, 3, 4], width)), 3, width=width)
        assert dims == [5, 3, 4]
        assert all(type(d) is int for d in dims)

    def test_negative_dimension(self):
        with pytest.raises(BMTDecodeError) as ei:
            read_dimensions(cursor(ints([5, -3], 32)), 2, width=32)
        assert ei.value.kind is DecodeErrorKind.INVALID_DIMENSIONS
        assert ei.value.stage is DecodeStage.DIMENSIONS_READ

    def test_truncated(self):
        with pytest.raises(BMTDecodeError) as ei:
            read_dimensions(cursor(ints([5], 64)), 2, width=64)
        assert ei.value.kind is DecodeErrorKind.TRUNCATED_SOURCE
        assert ei.value.stage is DecodeStage.DIMENSIONS_READ

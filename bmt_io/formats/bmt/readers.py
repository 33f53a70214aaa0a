"""
Width-aware array readers.

Arrays are stored in the file at 32 or 64 bits and handed back in whatever
dtype the caller asked for. When the stored and requested dtypes are the same
the read buffer is returned as-is; otherwise elements go through an unchecked
numeric cast (narrowing truncates, the same as a C static_cast).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import DTypeLike

from bmt_io.io.file_reader import ByteCursor

from .bmt import BMTDecodeError, DecodeErrorKind, DecodeStage

# Host byte order: the header's endianness tag is not applied.
_DISK_INTS = {32: np.dtype("=i4"), 64: np.dtype("=i8")}
_DISK_FLOATS = {32: np.dtype("=f4"), 64: np.dtype("=f8")}


def integer_dtype(dtype: DTypeLike) -> np.dtype:
    """Resolve a caller-supplied index dtype, rejecting non-integer types."""
    dt = np.dtype(dtype)
    if dt.kind not in "iu":
        raise TypeError(f"index dtype must be an integer type, got {dt}")
    return dt


def floating_dtype(dtype: DTypeLike) -> np.dtype:
    """Resolve a caller-supplied value dtype, rejecting non-floating types."""
    dt = np.dtype(dtype)
    if dt.kind != "f":
        raise TypeError(f"value dtype must be a floating type, got {dt}")
    return dt


def _read_array(
    cursor: ByteCursor,
    count: int,
    disk: np.dtype,
    target: np.dtype,
    *,
    what: str,
    stage: DecodeStage,
) -> np.ndarray:
    if count < 0:
        raise BMTDecodeError(
            DecodeErrorKind.INVALID_DIMENSIONS, f"Negative element count {count} for {what}", stage
        )
    nbytes = count * disk.itemsize
    start = cursor.offset
    raw = cursor.read(nbytes)
    if raw is None:
        raise BMTDecodeError(
            DecodeErrorKind.TRUNCATED_SOURCE,
            f"{what}: needs {nbytes} bytes at offset {start}, {cursor.remaining} available",
            stage,
        )
    if count == 0:
        return np.empty(0, dtype=target)
    arr = np.frombuffer(raw, dtype=disk, count=count)
    if disk == target:
        return arr
    # out-of-range values narrow to inf
    with np.errstate(over="ignore"):
        return arr.astype(target, casting="unsafe")


def read_integers(
    cursor: ByteCursor,
    count: int,
    *,
    width: int,
    dtype: DTypeLike = np.int64,
    what: str = "integers",
    stage: DecodeStage = DecodeStage.INDEX_OR_POINTER_READ,
) -> np.ndarray:
    """Read ``count`` integers stored at ``width`` bits, returned as ``dtype``."""
    return _read_array(
        cursor, count, _DISK_INTS[width], integer_dtype(dtype), what=what, stage=stage
    )


def read_floats(
    cursor: ByteCursor,
    count: int,
    *,
    width: int,
    dtype: DTypeLike = np.float64,
    what: str = "values",
    stage: DecodeStage = DecodeStage.PAYLOAD_READ,
) -> np.ndarray:
    """Read ``count`` floats stored at ``width`` bits, returned as ``dtype``."""
    return _read_array(
        cursor, count, _DISK_FLOATS[width], floating_dtype(dtype), what=what, stage=stage
    )


def read_dimensions(cursor: ByteCursor, count: int, *, width: int) -> list[int]:
    """Read the leading size fields as Python ints."""
    dims = read_integers(
        cursor, count, width=width, dtype=np.int64, what="dimensions", stage=DecodeStage.DIMENSIONS_READ
    )
    values = [int(d) for d in dims]
    if any(d < 0 for d in values):
        raise BMTDecodeError(
            DecodeErrorKind.INVALID_DIMENSIONS,
            f"Negative dimension in {values}",
            DecodeStage.DIMENSIONS_READ,
        )
    return values

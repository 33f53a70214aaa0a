"""
Dense BMT decoder (column-major and row-major payloads).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import DTypeLike

from bmt_io.io.file_reader import ByteCursor, SourceLike

from .bmt import DENSE_KINDS, DecodeResult, DecodeStage, DenseMatrix
from .decoding import run_decode
from .header import read_header
from .readers import floating_dtype, read_dimensions, read_floats


def decode_dense(source: SourceLike, value_dtype: DTypeLike = np.float64) -> DecodeResult[DenseMatrix]:
    """Decode a dense BMT source.

    The flat ``data`` buffer is returned in file order; ``order`` tells how to
    interpret it; no transposition is performed.

    Args:
        source: Path, bytes-like object, or source instance.
        value_dtype: numpy floating dtype for ``data``.

    Returns:
        A DecodeResult holding either the matrix or the failure.
    """
    target = floating_dtype(value_dtype)

    def body(cursor: ByteCursor, result: DecodeResult) -> DenseMatrix:
        header = read_header(cursor, allowed_kinds=DENSE_KINDS)
        result.header = header
        rows, cols = read_dimensions(cursor, 2, width=header.integer_width)
        data = read_floats(
            cursor,
            rows * cols,
            width=header.float_width,
            dtype=target,
            what="dense data",
            stage=DecodeStage.PAYLOAD_READ,
        )
        return DenseMatrix(order=header.order, row_count=rows, col_count=cols, data=data)

    return run_decode(source, "dense", body)


def read_dense(source: SourceLike, value_dtype: DTypeLike = np.float64) -> DenseMatrix:
    """Like :func:`decode_dense` but raises BMTDecodeError on failure."""
    return decode_dense(source, value_dtype).unwrap()

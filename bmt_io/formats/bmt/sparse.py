"""
Sparse BMT decoder (CSC and CSR).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import DTypeLike

from bmt_io.io.file_reader import ByteCursor, SourceLike

from .bmt import SPARSE_KINDS, DecodeResult, DecodeStage, Order, SparseMatrix
from .decoding import run_decode
from .header import read_header
from .readers import floating_dtype, integer_dtype, read_dimensions, read_floats, read_integers


def decode_sparse(
    source: SourceLike,
    value_dtype: DTypeLike = np.float64,
    index_dtype: DTypeLike = np.int64,
) -> DecodeResult[SparseMatrix]:
    """Decode a sparse BMT source.

    Layout after the header: rows, cols, nnz; nnz values; nnz indices; then
    primary+1 pointers, where primary is the column count for CSC and the row
    count for CSR. The arrays are returned as stored; use
    ``SparseMatrix.structure_problems()`` to check them.
    """
    values_t = floating_dtype(value_dtype)
    index_t = integer_dtype(index_dtype)

    def body(cursor: ByteCursor, result: DecodeResult) -> SparseMatrix:
        header = read_header(cursor, allowed_kinds=SPARSE_KINDS)
        result.header = header
        iw = header.integer_width
        rows, cols, nnz = read_dimensions(cursor, 3, width=iw)
        order = header.order

        values = read_floats(
            cursor,
            nnz,
            width=header.float_width,
            dtype=values_t,
            what="sparse values",
            stage=DecodeStage.PAYLOAD_READ,
        )
        primary = cols if order is Order.CSC else rows
        indices = read_integers(
            cursor,
            nnz,
            width=iw,
            dtype=index_t,
            what="row indices" if order is Order.CSC else "column indices",
            stage=DecodeStage.INDEX_OR_POINTER_READ,
        )
        pointers = read_integers(
            cursor,
            primary + 1,
            width=iw,
            dtype=index_t,
            what="column pointers" if order is Order.CSC else "row pointers",
            stage=DecodeStage.INDEX_OR_POINTER_READ,
        )
        return SparseMatrix(
            order=order,
            row_count=rows,
            col_count=cols,
            nnz=nnz,
            values=values,
            indices=indices,
            pointers=pointers,
        )

    return run_decode(source, "sparse", body)


def read_sparse(
    source: SourceLike,
    value_dtype: DTypeLike = np.float64,
    index_dtype: DTypeLike = np.int64,
) -> SparseMatrix:
    """Like :func:`decode_sparse` but raises BMTDecodeError on failure."""
    return decode_sparse(source, value_dtype, index_dtype).unwrap()

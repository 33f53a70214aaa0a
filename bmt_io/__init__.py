# bmt_io/__init__.py
"""
bmt_io
======

Decoder for BMT binary matrix files: dense (row/column-major) and sparse
(CSR/CSC) matrices read straight into numpy arrays, with width-aware
conversion between the on-disk types and the types the caller asks for.
"""
from __future__ import annotations

from importlib.metadata import version as _pkg_version

from bmt_io.formats.bmt.bmt import (
    BMTDecodeError,
    DecodeErrorKind,
    DecodeFailure,
    DecodeResult,
    DecodeStage,
    DenseMatrix,
    FormatHeader,
    MatrixKind,
    Order,
    SparseMatrix,
)
from bmt_io.formats.bmt.dense import decode_dense, read_dense
from bmt_io.formats.bmt.header import is_sparse, sniff_kind
from bmt_io.formats.bmt.sparse import decode_sparse, read_sparse

__all__ = [
    "__version__",
    "BMTDecodeError",
    "DecodeErrorKind",
    "DecodeFailure",
    "DecodeResult",
    "DecodeStage",
    "DenseMatrix",
    "FormatHeader",
    "MatrixKind",
    "Order",
    "SparseMatrix",
    "decode_dense",
    "decode_sparse",
    "is_sparse",
    "read_dense",
    "read_sparse",
    "sniff_kind",
]

try:
    # Read version dynamically from installed package metadata
    __version__: str = _pkg_version("bmt-io")
except Exception:  # pragma: no cover - fallback for development environments
    __version__ = "0.0.0-dev"

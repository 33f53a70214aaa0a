"""
BMT shared structures, error taxonomy and decode results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Generic, List, Optional, Tuple, TypeVar

import numpy as np

HEADER_SIZE = 4
VALID_WIDTHS = frozenset({32, 64})
VALID_ENDIANNESS = frozenset({0, 1})


class MatrixKind(IntEnum):
    """Value of the fourth header byte."""

    DENSE_COL = 0
    DENSE_ROW = 1
    SPARSE_CSC = 2
    SPARSE_CSR = 3


DENSE_KINDS = frozenset({MatrixKind.DENSE_COL, MatrixKind.DENSE_ROW})
SPARSE_KINDS = frozenset({MatrixKind.SPARSE_CSC, MatrixKind.SPARSE_CSR})


class Order(str, Enum):
    """Layout of the decoded buffers."""

    COLUMN_MAJOR = "column-major"
    ROW_MAJOR = "row-major"
    CSC = "csc"
    CSR = "csr"


KIND_ORDER = {
    MatrixKind.DENSE_COL: Order.COLUMN_MAJOR,
    MatrixKind.DENSE_ROW: Order.ROW_MAJOR,
    MatrixKind.SPARSE_CSC: Order.CSC,
    MatrixKind.SPARSE_CSR: Order.CSR,
}


class DecodeErrorKind(IntEnum):
    """Failure kinds. Values are stable and double as status codes."""

    SOURCE_UNAVAILABLE = 1
    TRUNCATED_SOURCE = 2
    INVALID_INTEGER_WIDTH = 3
    INVALID_FLOAT_WIDTH = 4
    INVALID_ENDIANNESS = 5
    INVALID_MATRIX_KIND = 6
    UNSUPPORTED_PLATFORM_FLOAT_WIDTH = 7
    INVALID_DIMENSIONS = 9


class DecodeStage(str, Enum):
    """Decoder state machine; a failure is tagged with the stage it happened in."""

    START = "start"
    HEADER_READ = "header"
    DIMENSIONS_READ = "dimensions"
    PAYLOAD_READ = "payload"
    INDEX_OR_POINTER_READ = "index/pointer"
    DONE = "done"


class BMTDecodeError(Exception):
    """Raised when a BMT source is unreadable or malformed."""

    def __init__(self, kind: DecodeErrorKind, message: str, stage: DecodeStage = DecodeStage.START):
        super().__init__(message)
        self.kind = kind
        self.stage = stage


@dataclass(frozen=True)
class FormatHeader:
    integer_width: int  # bits, 32 or 64
    float_width: int  # bits, 32 or 64
    endianness: int  # 0 or 1; recorded, never applied
    kind: MatrixKind

    @property
    def integer_bytes(self) -> int:
        return self.integer_width // 8

    @property
    def float_bytes(self) -> int:
        return self.float_width // 8

    @property
    def order(self) -> Order:
        return KIND_ORDER[self.kind]

    @property
    def is_sparse(self) -> bool:
        return self.kind in SPARSE_KINDS


@dataclass
class DenseMatrix:
    order: Order
    row_count: int
    col_count: int
    data: np.ndarray  # flat, interpreted according to `order`

    @property
    def shape(self) -> tuple[int, int]:
        return (self.row_count, self.col_count)

    def to_ndarray(self) -> np.ndarray:
        """2-D view of ``data`` honouring the stored order (no copy)."""
        layout = "F" if self.order is Order.COLUMN_MAJOR else "C"
        return self.data.reshape(self.shape, order=layout)


@dataclass
class SparseMatrix:
    order: Order
    row_count: int
    col_count: int
    nnz: int
    values: np.ndarray
    indices: np.ndarray  # column indices for CSR, row indices for CSC
    pointers: np.ndarray  # length primary_dimension + 1

    @property
    def shape(self) -> tuple[int, int]:
        return (self.row_count, self.col_count)

    @property
    def primary_dimension(self) -> int:
        return self.row_count if self.order is Order.CSR else self.col_count

    @property
    def secondary_dimension(self) -> int:
        return self.col_count if self.order is Order.CSR else self.row_count

    def check_structure(self) -> Dict[str, Tuple[bool, str]]:
        """Evaluate the compressed-storage invariants.

        Returns:
            Mapping of check name to ``(ok, details)``.
        """
        ptr = self.pointers
        expected_len = self.primary_dimension + 1
        checks: Dict[str, Tuple[bool, str]] = {
            "pointer_length": (
                len(ptr) == expected_len,
                f"{len(ptr)} pointers, expected {expected_len}",
            ),
        }
        if len(ptr):
            first, last = int(ptr[0]), int(ptr[-1])
            checks["pointer_start"] = (first == 0, f"pointers[0] = {first}")
            checks["pointer_end"] = (last == self.nnz, f"pointers[-1] = {last}, nnz = {self.nnz}")
        else:
            checks["pointer_start"] = (False, "pointer array is empty")
            checks["pointer_end"] = (False, "pointer array is empty")
        monotone = len(ptr) < 2 or not bool(np.any(np.diff(ptr.astype(np.int64)) < 0))
        checks["pointers_non_decreasing"] = (monotone, "pointer array never decreases")
        if len(self.indices):
            lo, hi = int(self.indices.min()), int(self.indices.max())
            in_range = lo >= 0 and hi < self.secondary_dimension
            details = f"indices span [{lo}, {hi}], bound [0, {self.secondary_dimension})"
        else:
            in_range, details = True, "no stored entries"
        checks["index_bounds"] = (in_range, details)
        return checks

    def structure_problems(self) -> List[str]:
        """Describe every violated invariant. Empty when the matrix is valid."""
        return [
            f"{name}: {details}"
            for name, (ok, details) in self.check_structure().items()
            if not ok
        ]

    def to_dense(self) -> np.ndarray:
        """Expand into a 2-D numpy array.

        Raises:
            ValueError: if the compressed arrays break any structural invariant.
        """
        problems = self.structure_problems()
        if problems:
            raise ValueError("cannot expand sparse matrix: " + "; ".join(problems))
        out = np.zeros(self.shape, dtype=self.values.dtype)
        for p in range(self.primary_dimension):
            lo, hi = int(self.pointers[p]), int(self.pointers[p + 1])
            idx = self.indices[lo:hi]
            if self.order is Order.CSR:
                out[p, idx] = self.values[lo:hi]
            else:
                out[idx, p] = self.values[lo:hi]
        return out


@dataclass(frozen=True)
class DecodeFailure:
    kind: DecodeErrorKind
    message: str
    stage: DecodeStage

    @classmethod
    def from_error(cls, err: BMTDecodeError) -> "DecodeFailure":
        return cls(kind=err.kind, message=str(err), stage=err.stage)


M = TypeVar("M", DenseMatrix, SparseMatrix)


@dataclass
class DecodeResult(Generic[M]):
    """Either a complete matrix or the failure that stopped the decode."""

    matrix: Optional[M] = None
    failure: Optional[DecodeFailure] = None
    header: Optional[FormatHeader] = None
    bytes_consumed: int = 0
    stage: DecodeStage = DecodeStage.START

    @property
    def ok(self) -> bool:
        return self.failure is None and self.matrix is not None

    def unwrap(self) -> M:
        if self.failure is not None:
            raise BMTDecodeError(self.failure.kind, self.failure.message, self.failure.stage)
        if self.matrix is None:
            raise RuntimeError("DecodeResult holds neither a matrix nor a failure")
        return self.matrix

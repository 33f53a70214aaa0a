# bmt_io/analysis/bmt_analyzer.py
"""
BMT analyzers: decode outcome, header fields and structural verification.
"""

from __future__ import annotations

import sys
from abc import abstractmethod
from typing import Optional

import numpy as np
from numpy.typing import DTypeLike

from bmt_io.analysis.analyzer import Analyzer
from bmt_io.analysis.base import AnalysisReport
from bmt_io.formats.bmt.bmt import (
    HEADER_SIZE,
    SPARSE_KINDS,
    DecodeResult,
    DenseMatrix,
    FormatHeader,
    Order,
    SparseMatrix,
)
from bmt_io.formats.bmt.dense import decode_dense
from bmt_io.formats.bmt.header import sniff_kind
from bmt_io.formats.bmt.sparse import decode_sparse
from bmt_io.io.file_reader import BufferSource


class BMTAnalyzer(Analyzer):
    """Shared decode-then-check flow for both matrix families."""

    target = "bmt"

    def __init__(
        self,
        path: str,
        *,
        value_dtype: DTypeLike = np.float64,
        index_dtype: DTypeLike = np.int64,
    ):
        super().__init__(path)
        self.value_dtype = value_dtype
        self.index_dtype = index_dtype

    @abstractmethod
    def _decode(self, mv: memoryview) -> DecodeResult:
        raise NotImplementedError

    @abstractmethod
    def _expected_size(self, header: FormatHeader, matrix) -> int:
        raise NotImplementedError

    @abstractmethod
    def _check_matrix(self, matrix, report: AnalysisReport) -> None:
        raise NotImplementedError

    def _perform_analysis(self, mv: memoryview, report: AnalysisReport) -> None:
        file_size = report.file_size
        result = self._decode(mv)

        if result.header is not None:
            self._report_header(result.header, report)

        if not result.ok:
            failure = result.failure
            report.add(
                "decode:result",
                False,
                f"{failure.kind.name} at {failure.stage.value}: {failure.message}",
            )
            report.add_reason(self.target, failure.message)
            return

        matrix = result.matrix
        report.add("decode:result", True, f"decoded {matrix.row_count}x{matrix.col_count} {matrix.order.value}")
        report.metadata.update(
            {
                "order": matrix.order.value,
                "rows": matrix.row_count,
                "cols": matrix.col_count,
                "value_dtype": str(np.dtype(self.value_dtype)),
            }
        )

        self._check_matrix(matrix, report)

        # Overall file coverage check
        expected = self._expected_size(result.header, matrix)
        coverage_ok = expected == file_size
        details = (
            "The end of the last array aligns perfectly with the end of the file."
            if coverage_ok
            else f"There are {file_size - expected} bytes of unaccounted-for data at the end of the file."
        )
        report.add(
            "structural_integrity:file_coverage",
            coverage_ok,
            details,
            **{"expected_end": expected, "file_size": file_size},
        )

    def _report_header(self, header: FormatHeader, report: AnalysisReport) -> None:
        report.add("header:integer_width", True, f"{header.integer_width}-bit integers")
        report.add("header:float_width", True, f"{header.float_width}-bit floats")
        report.add(
            "header:endianness",
            True,
            f"tag {header.endianness} recorded; payload read in host order ({sys.byteorder})",
        )
        report.add("header:kind", True, f"{header.kind.name} ({int(header.kind)})")
        report.metadata.update(
            {
                "integer_width": header.integer_width,
                "float_width": header.float_width,
                "endianness_tag": header.endianness,
                "kind": header.kind.name,
            }
        )


class DenseAnalyzer(BMTAnalyzer):
    """Analyzer implementation for dense BMT files."""

    target = "bmt dense"

    def get_format_name(self) -> str:
        return "bmt-dense"

    def _decode(self, mv: memoryview) -> DecodeResult:
        return decode_dense(BufferSource(mv, path=self.path), self.value_dtype)

    def _expected_size(self, header: FormatHeader, matrix: DenseMatrix) -> int:
        return (
            HEADER_SIZE
            + 2 * header.integer_bytes
            + matrix.row_count * matrix.col_count * header.float_bytes
        )

    def _check_matrix(self, matrix: DenseMatrix, report: AnalysisReport) -> None:
        expected = matrix.row_count * matrix.col_count
        report.add(
            "structural_integrity:data_length",
            matrix.data.size == expected,
            f"{matrix.data.size} values for {matrix.row_count}x{matrix.col_count}",
        )


class SparseAnalyzer(BMTAnalyzer):
    """Analyzer implementation for sparse BMT files."""

    target = "bmt sparse"

    def get_format_name(self) -> str:
        return "bmt-sparse"

    def _decode(self, mv: memoryview) -> DecodeResult:
        return decode_sparse(BufferSource(mv, path=self.path), self.value_dtype, self.index_dtype)

    def _expected_size(self, header: FormatHeader, matrix: SparseMatrix) -> int:
        ib = header.integer_bytes
        return (
            HEADER_SIZE
            + 3 * ib
            + matrix.nnz * header.float_bytes
            + matrix.nnz * ib
            + (matrix.primary_dimension + 1) * ib
        )

    def _check_matrix(self, matrix: SparseMatrix, report: AnalysisReport) -> None:
        report.metadata.update(
            {"nnz": matrix.nnz, "index_dtype": str(np.dtype(self.index_dtype))}
        )
        primary = "columns" if matrix.order is Order.CSC else "rows"
        report.add(
            "structural_integrity:primary_dimension",
            True,
            f"{matrix.primary_dimension} {primary}",
        )
        for name, (ok, details) in matrix.check_structure().items():
            report.add(f"structural_integrity:{name}", ok, details)


def analyzer_for(
    path: str,
    *,
    value_dtype: DTypeLike = np.float64,
    index_dtype: DTypeLike = np.int64,
) -> Optional[BMTAnalyzer]:
    """Pick the analyzer matching the file's kind tag, or None when it is unknown."""
    kind = sniff_kind(path)
    if kind is None:
        return None
    cls = SparseAnalyzer if kind in SPARSE_KINDS else DenseAnalyzer
    return cls(path, value_dtype=value_dtype, index_dtype=index_dtype)

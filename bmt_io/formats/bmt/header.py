"""
BMT info block: validation of the four header bytes, and kind sniffing.
"""

from __future__ import annotations

import struct
from typing import AbstractSet, Optional

from loguru import logger

from bmt_io.io.file_reader import ByteCursor, SourceLike, as_source

from .bmt import (
    HEADER_SIZE,
    SPARSE_KINDS,
    VALID_ENDIANNESS,
    VALID_WIDTHS,
    BMTDecodeError,
    DecodeErrorKind,
    DecodeStage,
    FormatHeader,
    MatrixKind,
)

# Native C sizes; payload bytes are reinterpreted as these types.
_NATIVE_FLOAT_SIZES = {32: ("float", "f", 4), 64: ("double", "d", 8)}


def _native_size(code: str) -> int:
    return struct.calcsize(code)


def _fail(kind: DecodeErrorKind, message: str) -> BMTDecodeError:
    return BMTDecodeError(kind, message, DecodeStage.HEADER_READ)


def parse_header(raw: bytes, *, allowed_kinds: AbstractSet[int]) -> FormatHeader:
    """Validate a raw info block, checking fields in file order."""
    if len(raw) != HEADER_SIZE:
        raise _fail(
            DecodeErrorKind.TRUNCATED_SOURCE,
            f"Header needs {HEADER_SIZE} bytes, source has {len(raw)}",
        )
    int_width, float_width, endianness, kind = raw[0], raw[1], raw[2], raw[3]

    if int_width not in VALID_WIDTHS:
        raise _fail(
            DecodeErrorKind.INVALID_INTEGER_WIDTH,
            f"Integer width {int_width} not in {{32, 64}}",
        )
    if float_width not in VALID_WIDTHS:
        raise _fail(
            DecodeErrorKind.INVALID_FLOAT_WIDTH,
            f"Float width {float_width} not in {{32, 64}}",
        )
    if endianness not in VALID_ENDIANNESS:
        raise _fail(
            DecodeErrorKind.INVALID_ENDIANNESS,
            f"Endianness tag {endianness} not in {{0, 1}}",
        )
    if kind not in allowed_kinds:
        allowed = ", ".join(str(int(k)) for k in sorted(allowed_kinds))
        raise _fail(
            DecodeErrorKind.INVALID_MATRIX_KIND,
            f"Matrix kind {kind} not in {{{allowed}}}",
        )

    c_name, code, expected = _NATIVE_FLOAT_SIZES[float_width]
    actual = _native_size(code)
    if actual != expected:
        raise _fail(
            DecodeErrorKind.UNSUPPORTED_PLATFORM_FLOAT_WIDTH,
            f"Native {c_name} is {actual} bytes on this platform, {float_width}-bit payload needs {expected}",
        )

    return FormatHeader(
        integer_width=int_width,
        float_width=float_width,
        endianness=endianness,
        kind=MatrixKind(kind),
    )


def read_header(cursor: ByteCursor, *, allowed_kinds: AbstractSet[int]) -> FormatHeader:
    """Consume the info block from ``cursor`` and validate it."""
    raw = cursor.read(HEADER_SIZE)
    if raw is None:
        raise _fail(
            DecodeErrorKind.TRUNCATED_SOURCE,
            f"Header needs {HEADER_SIZE} bytes, source has {cursor.remaining}",
        )
    header = parse_header(bytes(raw), allowed_kinds=allowed_kinds)
    logger.debug(
        "BMT header: int={iw}b float={fw}b endian={e} kind={k}",
        iw=header.integer_width,
        fw=header.float_width,
        e=header.endianness,
        k=header.kind.name,
    )
    return header


def sniff_kind(source: SourceLike) -> Optional[MatrixKind]:
    """Peek at the kind tag only. None when the source is too short or the tag is unknown.

    This is a cheap pre-check; it does not validate the rest of the header.
    """
    with as_source(source).open() as src:
        if src.size < HEADER_SIZE:
            return None
        tag = src.view[HEADER_SIZE - 1]
    try:
        return MatrixKind(tag)
    except ValueError:
        return None


def is_sparse(source: SourceLike) -> bool:
    return sniff_kind(source) in SPARSE_KINDS

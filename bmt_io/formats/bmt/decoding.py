"""
Call boundary shared by the dense and sparse decoders.
"""

from __future__ import annotations

from typing import Callable

from loguru import logger

from bmt_io.io.file_reader import ByteCursor, SourceLike, as_source
from bmt_io.observability import Timer

from .bmt import (
    BMTDecodeError,
    DecodeErrorKind,
    DecodeFailure,
    DecodeResult,
    DecodeStage,
    M,
)

DecodeBody = Callable[[ByteCursor, DecodeResult], M]


def run_decode(source: SourceLike, label: str, body: DecodeBody) -> DecodeResult[M]:
    """Open ``source``, run ``body`` over it and fold any failure into the result.

    ``body`` stores the parsed header on the result as soon as it has one, so
    failures past the header still report what the file declared.
    """
    src = as_source(source)
    result: DecodeResult[M] = DecodeResult()
    with Timer(label) as t:
        try:
            with src.open() as handle:
                cursor = ByteCursor(handle.view)
                try:
                    matrix = body(cursor, result)
                finally:
                    result.bytes_consumed = cursor.offset
        except BMTDecodeError as e:
            result.failure = DecodeFailure.from_error(e)
            result.stage = e.stage
        except OSError as e:
            result.failure = DecodeFailure(
                kind=DecodeErrorKind.SOURCE_UNAVAILABLE,
                message=f"Cannot open {src.path}: {e.strerror or e}",
                stage=DecodeStage.START,
            )
        else:
            result.matrix = matrix
            result.stage = DecodeStage.DONE

    if result.failure is not None:
        logger.debug(
            "{label} decode of {path} failed at {stage}: {kind} ({msg})",
            label=label,
            path=src.path,
            stage=result.failure.stage.value,
            kind=result.failure.kind.name,
            msg=result.failure.message,
        )
    else:
        logger.debug(
            "{label} decode of {path} completed in {ms:.2f}ms",
            label=label,
            path=src.path,
            ms=t.duration_ms,
        )
    return result

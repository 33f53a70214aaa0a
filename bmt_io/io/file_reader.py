"""
Byte sources for the decoders: read-only mmap over local files, plain buffers
for in-memory data, and a sequential cursor over either.
"""

from __future__ import annotations

import mmap
import os
from dataclasses import dataclass
from typing import Optional, Union

BytesLike = Union[bytes, bytearray, memoryview]
SourceLike = Union[str, "os.PathLike[str]", BytesLike, "LocalFileSource", "BufferSource"]


@dataclass
class LocalFileSource:
    """Local file source with zero-copy memory mapping.

    Attributes:
        path: Path to the local file.
    """

    path: str

    def open(self) -> "MappedFile":
        """Open and memory-map the file read-only."""
        return MappedFile(self.path)


@dataclass
class BufferSource:
    """In-memory source over an existing bytes-like object."""

    data: BytesLike
    path: str = "<memory>"

    def __post_init__(self) -> None:
        # the cursor slices a flat byte view
        if isinstance(self.data, memoryview) and not self.data.c_contiguous:
            raise TypeError("in-memory source must be a C-contiguous buffer")

    def open(self) -> "BufferView":
        return BufferView(self.data, self.path)


class MappedFile:
    """Context manager that wraps an mmapped file and exposes a memoryview."""

    __slots__ = ("_fd", "_m", "_mv", "size", "path")

    def __init__(self, path: str):
        self.path = path
        self._fd: Optional[int] = None
        self._m: Optional[mmap.mmap] = None
        self._mv: Optional[memoryview] = None
        self.size: int = 0

    def __enter__(self) -> "MappedFile":
        self._fd = os.open(self.path, os.O_RDONLY)
        try:
            self.size = os.fstat(self._fd).st_size
            # mmap refuses zero-length mappings
            if self.size:
                self._m = mmap.mmap(self._fd, self.size, access=mmap.ACCESS_READ)
                self._mv = memoryview(self._m)
            else:
                self._mv = memoryview(b"")
        except BaseException:
            self.__exit__(None, None, None)
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._mv is not None:
            self._mv.release()
            self._mv = None
        if self._m is not None:
            self._m.close()
            self._m = None
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None

    @property
    def view(self) -> memoryview:
        """Zero-copy memoryview over the file bytes."""
        if self._mv is None:
            raise RuntimeError("MappedFile is not entered")
        return self._mv


class BufferView:
    """Context manager exposing a bytes-like object the same way MappedFile does."""

    __slots__ = ("_data", "_mv", "size", "path")

    def __init__(self, data: BytesLike, path: str = "<memory>"):
        self.path = path
        self._data = data
        self._mv: Optional[memoryview] = None
        self.size: int = 0

    def __enter__(self) -> "BufferView":
        self._mv = memoryview(self._data).cast("B")
        self.size = self._mv.nbytes
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._mv is not None:
            self._mv.release()
            self._mv = None

    @property
    def view(self) -> memoryview:
        if self._mv is None:
            raise RuntimeError("BufferView is not entered")
        return self._mv


def as_source(source: SourceLike) -> Union[LocalFileSource, BufferSource]:
    """Normalize a path, bytes-like object or source instance into a source."""
    if isinstance(source, (LocalFileSource, BufferSource)):
        return source
    if isinstance(source, (bytes, bytearray, memoryview)):
        return BufferSource(source)
    return LocalFileSource(os.fspath(source))


class ByteCursor:
    """Sequential reader over a memoryview.

    Every read returns a fresh, writable ``bytearray`` so nothing handed out
    keeps the underlying mapping alive once the source is closed.
    """

    __slots__ = ("_mv", "offset")

    def __init__(self, mv: memoryview, offset: int = 0):
        self._mv = mv
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self._mv) - self.offset

    def read(self, n: int) -> Optional[bytearray]:
        """Consume exactly ``n`` bytes, or nothing at all when fewer remain."""
        if n < 0 or n > self.remaining:
            return None
        with self._mv[self.offset : self.offset + n] as chunk:
            out = bytearray(chunk)
        self.offset += n
        return out

"""
seqlen I/O Utilities - Byte sources, compression sniffing and JSON output

Usage:
    from seqlen.io import detect_compression, open_source, save_json

    # Transparent decompression based on magic bytes, not file names
    with open_source("reads.fq.gz") as handle:
        for line in handle:
            ...

    # Atomic JSON output
    save_json("stats.json", {"n50": 1200})
"""

import bz2
import gzip
import json
import lzma
import os
import sys
import tempfile
import zlib
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import IO, Any, Generator, Optional, Union

from .errors import (
    CorruptContainerError,
    IoFailureError,
    SeqLenError,
    UnsupportedFormatError,
)

PathLike = Union[str, Path]

GZIP_MAGIC = b"\x1f\x8b"
BZIP2_MAGIC = b"BZh"
XZ_MAGIC = b"\xfd7zXZ\x00"
ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"

# Extensions that only describe the compression layer
COMPRESSION_SUFFIXES = (".gz", ".bgz", ".bgzf", ".bz2", ".xz")

# Errors raised by the stdlib decompressors on damaged input
DECOMPRESSION_ERRORS = (gzip.BadGzipFile, EOFError, zlib.error, lzma.LZMAError)


class Compression(Enum):
    """Compression layer detected from magic bytes"""
    NONE = "none"
    GZIP = "gzip"    # includes BGZF, which is multi-member gzip
    BZ2 = "bz2"
    XZ = "xz"


# =============================================================================
# Byte Sources
# =============================================================================

def read_magic(path: PathLike, size: int = 8) -> bytes:
    """Read the first bytes of a file, mapping OS errors to IoFailureError."""
    try:
        with open(path, "rb") as f:
            return f.read(size)
    except OSError as e:
        raise IoFailureError(
            f"Cannot open {path}: {e.strerror or e}",
            path=str(path),
            operation="open",
            cause=e
        ) from e


def detect_compression(path: PathLike) -> Compression:
    """
    Detect the compression layer of a file from its magic bytes.

    Raises:
        IoFailureError: the file cannot be opened
        UnsupportedFormatError: zstd input, which has no stdlib decoder
    """
    magic = read_magic(path)
    if magic.startswith(GZIP_MAGIC):
        return Compression.GZIP
    if magic.startswith(BZIP2_MAGIC):
        return Compression.BZ2
    if magic.startswith(XZ_MAGIC):
        return Compression.XZ
    if magic.startswith(ZSTD_MAGIC):
        raise UnsupportedFormatError(
            f"zstd-compressed input is not supported: {path}",
            path=str(path),
            detected="zstd",
            suggestions=["Recompress with gzip or bgzip"]
        )
    return Compression.NONE


def strip_compression_suffix(name: str) -> str:
    """Drop a trailing compression extension (reads.fq.gz -> reads.fq)."""
    lowered = name.lower()
    for suffix in COMPRESSION_SUFFIXES:
        if lowered.endswith(suffix):
            return name[:-len(suffix)]
    return name


def open_binary(path: PathLike, compression: Compression) -> IO[bytes]:
    """Open a file as a decompressed binary stream."""
    try:
        if compression is Compression.GZIP:
            return gzip.open(path, "rb")
        if compression is Compression.BZ2:
            return bz2.open(path, "rb")
        if compression is Compression.XZ:
            return lzma.open(path, "rb")
        return open(path, "rb")
    except OSError as e:
        raise IoFailureError(
            f"Cannot open {path}: {e.strerror or e}",
            path=str(path),
            operation="open",
            cause=e
        ) from e


@contextmanager
def open_source(
    path: PathLike,
    compression: Optional[Compression] = None
) -> Generator[IO[bytes], None, None]:
    """
    Context manager yielding a decompressed binary stream.

    The compression layer is sniffed when not given. The stream is closed on
    every exit path.
    """
    if compression is None:
        compression = detect_compression(path)
    handle = open_binary(path, compression)
    try:
        yield handle
    finally:
        handle.close()


def stream_failure(
    exc: Exception,
    path: PathLike,
    compression: Compression,
    offset: Optional[int] = None,
    record_index: Optional[int] = None,
) -> SeqLenError:
    """
    Classify an exception raised while reading a byte source.

    Decompressor errors (and OSErrors without an errno raised by a
    decompressor) become CorruptContainerError; everything else is an
    IoFailureError.
    """
    damaged = isinstance(exc, DECOMPRESSION_ERRORS) or (
        compression is not Compression.NONE
        and isinstance(exc, OSError)
        and exc.errno is None
    )
    if damaged:
        return CorruptContainerError(
            f"Damaged {compression.value} stream in {path}: {exc}",
            offset=offset,
            record_index=record_index,
            path=str(path),
            cause=exc
        )
    return IoFailureError(
        f"Cannot read {path}: {exc}",
        path=str(path),
        operation="read",
        cause=exc
    )


def peek_decompressed(path: PathLike, compression: Compression, size: int = 4096) -> bytes:
    """Read the first decompressed bytes of a file."""
    with open_source(path, compression) as handle:
        try:
            return handle.read(size)
        except DECOMPRESSION_ERRORS + (OSError,) as e:
            raise stream_failure(e, path, compression, offset=0) from e


# =============================================================================
# JSON Output
# =============================================================================

@contextmanager
def atomic_write(
    path: PathLike,
    mode: str = "w",
    encoding: Optional[str] = "utf-8",
    suffix: str = ".tmp"
) -> Generator:
    """
    Context manager for atomic file writes.

    Writes to a temporary file and renames on success.
    The original file is preserved if an error occurs.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # Create temp file in same directory for atomic rename
    fd, tmp_path = tempfile.mkstemp(
        suffix=suffix,
        dir=path.parent,
        prefix=f".{path.name}."
    )

    try:
        if "b" in mode:
            with os.fdopen(fd, mode) as f:
                yield f
        else:
            with os.fdopen(fd, mode, encoding=encoding) as f:
                yield f

        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def save_json(
    destination: Optional[PathLike],
    data: Any,
    indent: Optional[int] = 2,
) -> None:
    """
    Write data as JSON to a file, or to stdout when destination is None or "-".

    Args:
        destination: Output path, "-" or None for standard output
        data: JSON-serializable data
        indent: JSON indentation (None for compact output)
    """
    content = json.dumps(data, indent=indent)

    if destination is None or str(destination) == "-":
        sys.stdout.write(content + "\n")
        sys.stdout.flush()
        return

    try:
        with atomic_write(destination, mode="w") as f:
            f.write(content + "\n")
    except OSError as e:
        raise IoFailureError(
            f"Cannot write {destination}: {e.strerror or e}",
            path=str(destination),
            operation="write",
            cause=e
        ) from e

"""
Sequence length decoders for FASTQ, FASTA and unaligned BAM/SAM files.

Each decoder turns one file into a lazy, forward-only stream of per-record
lengths. Names, bases and qualities never leave the decoder.

Usage:
    from seqlen.decoders import resolve_format

    handle = resolve_format("reads.fq.gz")          # auto-detect
    handle = resolve_format("reads.bam", "bam")      # explicit
    with handle.open() as lengths:
        for length in lengths:
            ...
"""

import re
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from functools import partial
from pathlib import Path
from typing import IO, Callable, Dict, Generator, Iterator, Optional, Union

import pysam

from .errors import (
    CorruptContainerError,
    IoFailureError,
    MalformedRecordError,
    NotFastaFormatError,
    UnsupportedFormatError,
)
from .io import (
    DECOMPRESSION_ERRORS,
    Compression,
    detect_compression,
    open_source,
    peek_decompressed,
    stream_failure,
    strip_compression_suffix,
)
from .logging_config import get_logger

logger = get_logger(__name__)

BAM_MAGIC = b"BAM\x01"
SAM_HEADER_LINE = re.compile(rb"^@(HD|SQ|RG|PG|CO)\t")
SAM_MIN_COLUMNS = 11

FASTQ_EXTENSIONS = (".fastq", ".fq")
FASTA_EXTENSIONS = (".fasta", ".fa", ".fna", ".ffn", ".faa", ".frn", ".fas", ".mfa")
ALIGNMENT_EXTENSIONS = (".bam", ".ubam", ".sam")


class SequenceFormat(Enum):
    """Input format selector"""
    AUTO = "auto"
    FASTQ = "fastq"
    FASTA = "fasta"
    BAM = "bam"  # BAM and SAM

    @classmethod
    def parse(cls, value: Union[str, "SequenceFormat", None]) -> "SequenceFormat":
        if value is None:
            return cls.AUTO
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise UnsupportedFormatError(
                f"Unknown format: {value}",
                detected=str(value),
                suggestions=[f"Use one of: {', '.join(f.value for f in cls)}"]
            ) from None


# =============================================================================
# Text Decoders
# =============================================================================

def decode_fastq(stream: IO[bytes]) -> Iterator[int]:
    """
    Yield the sequence length of every four-line FASTQ record.

    Raises:
        MalformedRecordError: missing '@' or '+' sentinel, sequence/quality
            length mismatch, or a record truncated at end of file
    """
    index = 0
    offset = 0
    lines = iter(stream)

    for header in lines:
        record_offset = offset
        offset += len(header)

        if not header.strip():
            continue
        if not header.startswith(b"@"):
            raise MalformedRecordError(
                f"FASTQ record {index} at byte {record_offset} does not start with '@'",
                record_index=index,
                offset=record_offset
            )

        body = []
        for _ in range(3):
            line = next(lines, None)
            if line is None:
                raise MalformedRecordError(
                    f"FASTQ record {index} at byte {record_offset} is truncated",
                    record_index=index,
                    offset=record_offset
                )
            offset += len(line)
            body.append(line.rstrip(b"\r\n"))

        sequence, separator, quality = body
        if not separator.startswith(b"+"):
            raise MalformedRecordError(
                f"FASTQ record {index} at byte {record_offset} has no '+' separator line",
                record_index=index,
                offset=record_offset
            )
        if len(quality) != len(sequence):
            raise MalformedRecordError(
                f"FASTQ record {index} at byte {record_offset}: sequence length "
                f"{len(sequence)} does not match quality length {len(quality)}",
                record_index=index,
                offset=record_offset
            )

        yield len(sequence)
        index += 1


def decode_fasta(stream: IO[bytes]) -> Iterator[int]:
    """
    Yield the total sequence length of every FASTA record.

    Sequence lines are concatenated until the next '>' header. Blank lines are
    ignored and a header without sequence lines yields 0.

    Raises:
        NotFastaFormatError: sequence data before the first header
    """
    length: Optional[int] = None
    index = 0
    offset = 0

    for line in stream:
        line_offset = offset
        offset += len(line)

        if line.startswith(b">"):
            if length is not None:
                yield length
                index += 1
            length = 0
            continue

        sequence = line.rstrip(b"\r\n")
        if not sequence.strip():
            continue
        if length is None:
            raise NotFastaFormatError(
                f"Sequence data before the first FASTA header at byte {line_offset}",
                record_index=0,
                offset=line_offset
            )
        length += len(sequence)

    if length is not None:
        yield length


# =============================================================================
# Alignment Decoder
# =============================================================================

def looks_like_sam(head: bytes) -> bool:
    """True if the first line is a SAM header line or an alignment record."""
    first = head.split(b"\n", 1)[0].rstrip(b"\r")
    return bool(SAM_HEADER_LINE.match(first)) or len(first.split(b"\t")) >= SAM_MIN_COLUMNS


def alignment_mode(path: Union[str, Path], compression: Compression) -> str:
    """
    Pick the pysam open mode from the decompressed magic.

    Raises:
        CorruptContainerError: neither BAM magic nor SAM text
        UnsupportedFormatError: compression htslib cannot read
    """
    if compression not in (Compression.NONE, Compression.GZIP):
        raise UnsupportedFormatError(
            f"BAM/SAM input must be BGZF-compressed or plain: {path}",
            path=str(path),
            detected=compression.value
        )

    head = peek_decompressed(path, compression)
    if head.startswith(BAM_MAGIC):
        return "rb"
    if looks_like_sam(head):
        return "r"
    raise CorruptContainerError(
        f"Bad BAM magic in {path}: expected {BAM_MAGIC!r}, found {head[:4]!r}",
        offset=0,
        path=str(path)
    )


def decode_bam(
    path: Union[str, Path],
    compression: Optional[Compression] = None
) -> Iterator[int]:
    """
    Yield the stored sequence length of every unmapped record.

    Mapped records are skipped with a one-time warning. Offsets in errors are
    BGZF virtual offsets of the last good record boundary.

    Raises:
        CorruptContainerError: bad magic, missing EOF marker or truncated block
        IoFailureError: the file cannot be opened
    """
    if compression is None:
        compression = detect_compression(path)
    mode = alignment_mode(path, compression)

    try:
        bam = pysam.AlignmentFile(str(path), mode, check_sq=False)
    except (FileNotFoundError, PermissionError, IsADirectoryError) as e:
        raise IoFailureError(
            f"Cannot open {path}: {e}",
            path=str(path),
            operation="open",
            cause=e
        ) from e
    except (ValueError, OSError) as e:
        raise CorruptContainerError(
            f"Cannot open alignment container {path}: {e}",
            offset=0,
            path=str(path),
            cause=e
        ) from e

    # Virtual offsets only exist for BGZF-compressed containers
    seekable = mode == "rb"

    index = 0
    mapped = 0
    with bam:
        offset = bam.tell() if seekable else None
        while True:
            try:
                read = next(bam)
            except StopIteration:
                break
            except (OSError, ValueError) as e:
                raise CorruptContainerError(
                    f"Truncated or corrupt alignment record {index} in {path}: {e}",
                    offset=offset,
                    record_index=index,
                    path=str(path),
                    cause=e
                ) from e

            if read.is_unmapped:
                yield read.query_length
            else:
                if not mapped:
                    logger.warning(f"Detected aligned reads, only unmapped records are counted: {path}")
                mapped += 1

            index += 1
            if seekable:
                offset = bam.tell()

    if mapped:
        logger.info(f"Skipped {mapped} mapped records of {index} in {path}")


# =============================================================================
# Format Handle and Dispatch
# =============================================================================

@dataclass(frozen=True)
class FormatHandle:
    """A file path bound to its resolved format and compression layer"""
    path: Path
    format: SequenceFormat
    compression: Compression

    def lengths(self) -> Iterator[int]:
        """Lazy length stream; not restartable."""
        decoder = DECODERS.get(self.format)
        if decoder is None:
            raise UnsupportedFormatError(
                f"No decoder for format {self.format.value}: {self.path}",
                path=str(self.path),
                detected=self.format.value
            )
        return decoder(self)

    @contextmanager
    def open(self) -> Generator[Iterator[int], None, None]:
        """Yield the length stream and release the byte source on exit."""
        lengths = self.lengths()
        try:
            yield lengths
        finally:
            lengths.close()


LengthDecoder = Callable[[FormatHandle], Generator[int, None, None]]


def _decode_text(handle: FormatHandle, parser: Callable[[IO[bytes]], Iterator[int]]) -> Iterator[int]:
    with open_source(handle.path, handle.compression) as stream:
        count = 0
        try:
            for length in parser(stream):
                yield length
                count += 1
        except DECOMPRESSION_ERRORS + (OSError,) as e:
            raise stream_failure(
                e, handle.path, handle.compression,
                offset=stream.tell(),
                record_index=count
            ) from e


def _decode_alignment(handle: FormatHandle) -> Iterator[int]:
    return decode_bam(handle.path, handle.compression)


DECODERS: Dict[SequenceFormat, LengthDecoder] = {
    SequenceFormat.FASTQ: partial(_decode_text, parser=decode_fastq),
    SequenceFormat.FASTA: partial(_decode_text, parser=decode_fasta),
    SequenceFormat.BAM: _decode_alignment,
}


# =============================================================================
# Format Detection
# =============================================================================

def format_from_extension(path: Union[str, Path]) -> Optional[SequenceFormat]:
    """Format implied by the file name, ignoring compression suffixes."""
    name = strip_compression_suffix(Path(path).name).lower()
    if name.endswith(FASTQ_EXTENSIONS):
        return SequenceFormat.FASTQ
    if name.endswith(FASTA_EXTENSIONS):
        return SequenceFormat.FASTA
    if name.endswith(ALIGNMENT_EXTENSIONS):
        return SequenceFormat.BAM
    return None


def format_from_content(head: bytes) -> Optional[SequenceFormat]:
    """Format implied by the first decompressed bytes, or None."""
    if head.startswith(BAM_MAGIC):
        return SequenceFormat.BAM

    text = head.lstrip()
    if not text:
        return None
    if text.startswith(b">"):
        return SequenceFormat.FASTA
    if looks_like_sam(text):
        return SequenceFormat.BAM
    if text.startswith(b"@"):
        return SequenceFormat.FASTQ
    return None


def resolve_format(
    path: Union[str, Path],
    fmt: Union[str, SequenceFormat, None] = SequenceFormat.AUTO
) -> FormatHandle:
    """
    Bind a path to its format.

    An explicit format is trusted. With "auto", the extension and the content
    must agree; a conflict or an unrecognized file fails closed.

    Raises:
        UnsupportedFormatError: format cannot be determined
        IoFailureError: the file cannot be opened
    """
    path = Path(path)
    selected = SequenceFormat.parse(fmt)
    compression = detect_compression(path)

    if selected is not SequenceFormat.AUTO:
        logger.debug(f"Using declared format {selected.value} for {path} ({compression.value})")
        return FormatHandle(path, selected, compression)

    by_name = format_from_extension(path)
    by_content = format_from_content(peek_decompressed(path, compression))

    if by_name and by_content and by_name is not by_content:
        raise UnsupportedFormatError(
            f"Ambiguous input {path}: extension suggests {by_name.value} "
            f"but content looks like {by_content.value}",
            path=str(path),
            detected=f"{by_name.value}/{by_content.value}",
            suggestions=["Pass an explicit format"]
        )

    resolved = by_content or by_name
    if resolved is None:
        raise UnsupportedFormatError(
            f"Cannot determine file type: {path}",
            path=str(path),
            suggestions=["Pass an explicit format (fastq, fasta or bam)"]
        )

    logger.debug(f"Detected format {resolved.value} for {path} ({compression.value})")
    return FormatHandle(path, resolved, compression)

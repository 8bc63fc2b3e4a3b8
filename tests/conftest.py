"""Shared fixtures: synthetic FASTQ, FASTA and BAM files"""

import gzip
import logging
import os
import random
import sys
from pathlib import Path

import pysam
import pytest

# Add repository root for imports without installation
sys.path.insert(0, str(Path(__file__).parent.parent))


def random_bases(length: int, rng: random.Random) -> str:
    return "".join(rng.choice("ACGT") for _ in range(length))


def fastq_text(lengths, seed: int = 7) -> str:
    """Four-line FASTQ records with the given sequence lengths"""
    rng = random.Random(seed)
    records = []
    for i, length in enumerate(lengths):
        records.append(f"@read{i} sample=test\n{random_bases(length, rng)}\n+\n{'I' * length}\n")
    return "".join(records)


def fasta_text(lengths, width: int = 60, seed: int = 7) -> str:
    """FASTA records wrapped at `width` columns"""
    rng = random.Random(seed)
    records = []
    for i, length in enumerate(lengths):
        seq = random_bases(length, rng)
        lines = [seq[j:j + width] for j in range(0, length, width)]
        records.append(f">contig{i} len={length}\n" + "".join(line + "\n" for line in lines))
    return "".join(records)


def write_text(path: Path, text: str, compress: bool = False) -> Path:
    data = text.encode()
    if compress:
        data = gzip.compress(data)
    path.write_bytes(data)
    return path


def write_bam(path: Path, records, with_sq: bool = True, seed: int = 7) -> Path:
    """
    Write a BAM file from (length, unmapped) pairs.

    Mapped records are placed at chr1:101 with a full-length match.
    """
    rng = random.Random(seed)
    header = {"HD": {"VN": "1.6", "SO": "unknown"}}
    if with_sq:
        header["SQ"] = [{"SN": "chr1", "LN": 1000000}]

    with pysam.AlignmentFile(str(path), "wb", header=header) as out:
        for i, (length, unmapped) in enumerate(records):
            segment = pysam.AlignedSegment(out.header)
            segment.query_name = f"read{i}"
            segment.query_sequence = random_bases(length, rng)
            if unmapped:
                segment.flag = 4
                segment.reference_id = -1
                segment.reference_start = -1
            else:
                segment.flag = 0
                segment.reference_id = 0
                segment.reference_start = 100
                segment.mapping_quality = 60
                segment.cigartuples = [(0, length)]
            out.write(segment)
    return path


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's config file and SEQLEN_* variables out of every test"""
    for key in list(os.environ):
        if key.startswith("SEQLEN_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.fixture
def five_lengths():
    return [1, 2, 3, 4, 5]


@pytest.fixture
def fastq_file(tmp_path, five_lengths):
    return write_text(tmp_path / "reads.fastq", fastq_text(five_lengths))


@pytest.fixture
def fastq_gz_file(tmp_path, five_lengths):
    return write_text(tmp_path / "reads.fastq.gz", fastq_text(five_lengths), compress=True)


@pytest.fixture
def fasta_file(tmp_path):
    return write_text(tmp_path / "contigs.fa", fasta_text([50, 50, 100, 100, 150, 150, 1000]))


@pytest.fixture
def unaligned_bam(tmp_path):
    records = [(length, True) for length in (1, 1, 1, 2, 2, 3, 4, 4)]
    return write_bam(tmp_path / "reads.bam", records, with_sq=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to a previous test's captured stderr"""
    yield
    logger = logging.getLogger("seqlen")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

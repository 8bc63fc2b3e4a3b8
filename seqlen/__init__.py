"""seqlen: sequence length statistics for FASTQ, FASTA and unaligned BAM

Computes total bases, sequence count, mean and median length and N-scores
(N50, N75, N90, ...) from per-record lengths, without keeping sequence data.
"""

__version__ = "1.0.0"


# Pipeline entry point - import on demand to keep `seqlen --version` fast
def analyze_file(path, **kwargs):
    """Compute length statistics for one file. Lazy import to avoid startup overhead."""
    from .core import analyze_file as _analyze_file
    return _analyze_file(path, **kwargs)


def compute_length_stats(collection, percentiles=(50, 75, 90)):
    """Compute statistics for a LengthCollection. Lazy import to avoid startup overhead."""
    from .stats import compute_length_stats as _compute_length_stats
    return _compute_length_stats(collection, percentiles)


def resolve_format(path, fmt="auto"):
    """Bind a path to its sequence format. Lazy import to avoid startup overhead."""
    from .decoders import resolve_format as _resolve_format
    return _resolve_format(path, fmt)


# Logging configuration
def get_logger(name: str):
    """Get a logger for a module. Lazy import to avoid startup overhead."""
    from .logging_config import get_logger as _get_logger
    return _get_logger(name)


def setup_logging(**kwargs):
    """Setup logging configuration. Lazy import to avoid startup overhead."""
    from .logging_config import setup_logging as _setup_logging
    return _setup_logging(**kwargs)

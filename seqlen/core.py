"""
seqlen pipeline: file -> length stream -> collection -> statistics.

Usage:
    from seqlen.core import analyze_file

    report = analyze_file("reads.fastq.gz", percentiles=[10, 50, 90])
    print(report.to_dict())
"""

from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from .collector import DEFAULT_PROGRESS_INTERVAL, collect_lengths
from .config import Config
from .decoders import SequenceFormat, resolve_format
from .errors import EmptyInputError, ValidationError
from .logging_config import get_logger
from .results import LengthReport
from .stats import DEFAULT_PERCENTILES, compute_length_stats, validate_percentiles
from .timing import Timer

logger = get_logger(__name__)


def percentiles_from_config(config: Config) -> Tuple[int, ...]:
    """Configured N-score percentiles; a single value is accepted as a list of one."""
    value = config.get("stats.percentiles", list(DEFAULT_PERCENTILES))
    if isinstance(value, (int, str)):
        value = [value]
    try:
        return validate_percentiles(int(v) if isinstance(v, str) else v for v in value)
    except ValueError as e:
        raise ValidationError(
            f"Invalid percentile in configuration: {value}",
            field="stats.percentiles",
            value=value,
            expected="integers in 1..100",
            cause=e
        ) from e


def _int_setting(config: Config, key: str, default: int, minimum: int) -> int:
    value = config.get(key, default)
    expected = f"integer >= {minimum}"

    # bool and float slip through int(); neither is a valid count
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(
            f"Invalid value for {key} in configuration: {value!r}",
            field=key,
            value=value,
            expected=expected
        )
    try:
        number = int(value)
    except ValueError as e:
        raise ValidationError(
            f"Invalid value for {key} in configuration: {value!r}",
            field=key,
            value=value,
            expected=expected,
            cause=e
        ) from e

    if number < minimum:
        raise ValidationError(
            f"Invalid value for {key} in configuration: {number} is below {minimum}",
            field=key,
            value=number,
            expected=expected
        )
    return number


def progress_interval_from_config(config: Config) -> int:
    """Sequences between progress messages; 0 disables them."""
    return _int_setting(config, "collector.progress_interval", DEFAULT_PROGRESS_INTERVAL, 0)


def indent_from_config(config: Config) -> int:
    """JSON indentation for the statistics output."""
    return _int_setting(config, "output.indent", 2, 0)


def analyze_file(
    path: Union[str, Path],
    fmt: Union[str, SequenceFormat, None] = None,
    percentiles: Optional[Iterable[int]] = None,
    keep_lengths: bool = False,
    progress_interval: Optional[int] = None,
    config: Optional[Config] = None,
) -> LengthReport:
    """
    Compute length statistics for one sequence file.

    Arguments left as None fall back to the configuration, then the defaults.

    Args:
        path: FASTQ, FASTA or BAM/SAM file, optionally compressed
        fmt: "auto", "fastq", "fasta" or "bam"
        percentiles: N-score percentiles (default 50, 75, 90)
        keep_lengths: Retain the raw lengths on the report
        progress_interval: Log progress every N sequences
        config: Configuration to read defaults from

    Returns:
        LengthReport

    Raises:
        UnsupportedFormatError, MalformedRecordError, CorruptContainerError,
        IoFailureError, EmptyInputError, ValidationError
    """
    config = config or Config()
    path = Path(path)

    if fmt is None:
        fmt = config.get("format", SequenceFormat.AUTO.value)
    requested = (validate_percentiles(percentiles) if percentiles is not None
                 else percentiles_from_config(config))
    if progress_interval is None:
        progress_interval = progress_interval_from_config(config)

    handle = resolve_format(path, fmt)
    logger.info(f"Loading file \"{path}\" as {handle.format.value} "
                f"({handle.compression.value})...")

    with Timer(f"Decoding {path.name}", logger=logger):
        with handle.open() as lengths:
            collection = collect_lengths(lengths, progress_interval=progress_interval)

    if collection.total_sequences == 0:
        raise EmptyInputError(
            f"No qualifying sequences in {path}; length statistics are undefined",
            path=str(path)
        )

    with Timer("Computing statistics", logger=logger):
        stats = compute_length_stats(collection, requested)

    return LengthReport(
        stats=stats,
        source=path,
        format=handle.format.value,
        collection=collection if keep_lengths else None,
    )

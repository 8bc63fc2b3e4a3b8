"""
seqlen command line

Computes length statistics for one FASTQ, FASTA or unaligned BAM file and
writes them as JSON.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import Config, load_config
from .core import analyze_file, indent_from_config, percentiles_from_config
from .decoders import SequenceFormat
from .errors import SeqLenError, handle_error
from .logging_config import add_logging_args, get_logger, setup_logging
from .results import write_lengths, write_report

logger = get_logger(__name__)

FORMAT_CHOICES = [f.value for f in SequenceFormat]


# =============================================================================
# Argument Parsing
# =============================================================================

def add_input_args(parser: argparse.ArgumentParser) -> None:
    """Add input file and format arguments"""
    parser.add_argument(
        "input",
        type=Path,
        help="FASTQ, FASTA or unaligned BAM/SAM file (optionally compressed)"
    )
    parser.add_argument(
        "--format", "-f",
        choices=FORMAT_CHOICES,
        default=None,
        help="Input format (default: auto)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        metavar="FILE",
        help="YAML configuration file"
    )


def add_stats_args(parser: argparse.ArgumentParser) -> None:
    """Add statistics arguments"""
    parser.add_argument(
        "--n-score", "-n",
        dest="percentiles",
        type=int,
        action="append",
        metavar="PCT",
        help="N-score percentile to report, repeatable (default: 50 75 90)"
    )


def add_output_args(parser: argparse.ArgumentParser) -> None:
    """Add output destination arguments"""
    parser.add_argument(
        "--output", "-o",
        type=Path,
        metavar="FILE",
        help="Write statistics JSON to file (default: stdout)"
    )
    parser.add_argument(
        "--save-lengths", "-l",
        type=Path,
        metavar="FILE",
        help="Also write the per-record lengths as a JSON array"
    )
    parser.add_argument(
        "--sort-lengths",
        action="store_true",
        default=None,
        help="Sort the saved lengths ascending (default: file order)"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seqlen",
        description="Sequence length statistics (N50 and friends) for FASTQ, FASTA and unaligned BAM",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default statistics (N50, N75, N90) to stdout
  seqlen reads.fastq.gz

  # Custom N-scores, written to a file
  seqlen assembly.fa -n 10 -n 50 -n 90 -o stats.json

  # Unaligned BAM, keeping the raw lengths for later analysis
  seqlen reads.bam --save-lengths lengths.json
"""
    )
    add_input_args(parser)
    add_stats_args(parser)
    add_output_args(parser)
    add_logging_args(parser)
    parser.add_argument("--version", action="version", version=f"seqlen {__version__}")
    return parser


# =============================================================================
# Entry Point
# =============================================================================

def apply_args(config: Config, args: argparse.Namespace) -> Config:
    """Layer explicit command line flags over the loaded configuration."""
    if args.format is not None:
        config.set("format", args.format)
    if args.percentiles:
        config.set("stats.percentiles", args.percentiles)
    if args.sort_lengths is not None:
        config.set("output.sort_lengths", args.sort_lengths)
    return config


def run(args: argparse.Namespace) -> None:
    config = apply_args(load_config(args.config), args)
    # reject a bad setting before any decoding work
    indent = indent_from_config(config)

    report = analyze_file(
        args.input,
        fmt=config.get("format"),
        percentiles=percentiles_from_config(config),
        keep_lengths=args.save_lengths is not None,
        config=config,
    )

    write_report(report, args.output, indent=indent)
    if args.save_lengths is not None:
        write_lengths(report, args.save_lengths, sort=bool(config.get("output.sort_lengths")))


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose, quiet=args.quiet, debug=args.debug,
                  log_file=args.log_file)

    try:
        run(args)
    except SeqLenError as e:
        logger.debug("Run failed", exc_info=True)
        handle_error(e, verbose=args.verbose or args.debug)

    return 0


if __name__ == "__main__":
    sys.exit(main())

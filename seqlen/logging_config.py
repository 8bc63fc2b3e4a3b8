"""
seqlen logging

All diagnostics go to stderr under the "seqlen" logger namespace so that
stdout stays reserved for the JSON result.

Usage:
    from seqlen.logging_config import setup_logging, get_logger

    setup_logging(verbose=args.verbose, quiet=args.quiet)
    logger = get_logger(__name__)
    logger.info("Loading file...")
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER = "seqlen"

BRIEF_FORMAT = "%(levelname)s: %(message)s"
DETAILED_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"
TIME_FORMAT = "%H:%M:%S"


def console_level(verbose: bool = False, quiet: bool = False, debug: bool = False) -> int:
    """Console threshold: --debug beats --quiet beats --verbose."""
    if debug:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.INFO
    return logging.WARNING


def _stderr_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if level <= logging.INFO:
        handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=TIME_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(BRIEF_FORMAT))
    return handler


def _file_handler(path: Union[str, Path]) -> logging.Handler:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
    return handler


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    debug: bool = False,
    log_file: Optional[Path] = None,
    name: str = ROOT_LOGGER
) -> logging.Logger:
    """
    Attach seqlen's handlers, replacing any from an earlier call.

    Args:
        verbose: Progress messages (INFO) on stderr
        quiet: Errors only
        debug: Everything, including phase timings
        log_file: Also write every record (DEBUG and up) to this file
        name: Logger to configure

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    # handlers do the filtering
    logger.setLevel(logging.DEBUG)

    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    logger.addHandler(_stderr_handler(console_level(verbose, quiet, debug)))
    if log_file:
        logger.addHandler(_file_handler(log_file))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Module logger inside the seqlen namespace ("decoders" -> "seqlen.decoders")."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def add_logging_args(parser) -> None:
    """Add -v/-q/--debug/--log-file to an argparse parser."""
    group = parser.add_argument_group("logging")
    group.add_argument("-v", "--verbose", action="store_true",
                       help="Report progress on stderr")
    group.add_argument("-q", "--quiet", action="store_true",
                       help="Report errors only")
    group.add_argument("--debug", action="store_true",
                       help="Report everything, including timings")
    group.add_argument("--log-file", type=Path, metavar="FILE",
                       help="Also write a full log to FILE")

"""
Result model: a serialization-ready snapshot of one statistics run.

Usage:
    from seqlen.results import write_report, write_lengths

    write_report(report, None)                  # primary JSON to stdout
    write_lengths(report, "lengths.json")       # optional raw length dump
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .collector import LengthCollection
from .errors import ValidationError
from .io import save_json
from .logging_config import get_logger
from .stats import LengthStats

logger = get_logger(__name__)


@dataclass(frozen=True)
class LengthReport:
    """Statistics plus, when requested, the raw lengths they came from"""
    stats: LengthStats
    source: Path
    format: str
    collection: Optional[LengthCollection] = None

    def to_dict(self) -> Dict[str, Any]:
        """Primary output object."""
        return self.stats.to_dict()

    def raw_lengths(self, sort: bool = False) -> List[int]:
        """Per-record lengths, insertion order unless sort is set."""
        if self.collection is None:
            raise ValidationError(
                "Raw lengths were not retained for this report",
                field="keep_lengths",
                expected="analyze_file(..., keep_lengths=True)"
            )
        return self.collection.to_list(sort=sort)


def write_report(
    report: LengthReport,
    destination: Optional[Union[str, Path]] = None,
    indent: Optional[int] = 2
) -> None:
    """Write the primary JSON object to a file, or stdout for None/"-"."""
    save_json(destination, report.to_dict(), indent=indent)
    if destination is not None and str(destination) != "-":
        logger.info(f"Statistics saved: {destination}")


def write_lengths(
    report: LengthReport,
    destination: Union[str, Path],
    sort: bool = False,
    indent: Optional[int] = None
) -> None:
    """Write the raw length list as a JSON array."""
    save_json(destination, report.raw_lengths(sort=sort), indent=indent)
    logger.info(f"Lengths saved: {destination}")

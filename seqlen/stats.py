"""
Length statistics: totals, mean, median and N-scores.

N-score definition: N<p> is the largest length L such that sequences of
length >= L hold at least p% of all bases. With lengths sorted descending and
accumulated, it is the length at which the running sum first reaches p% of
the total.

Usage:
    from seqlen.stats import compute_length_stats

    stats = compute_length_stats(collection, percentiles=[10, 50, 90])
    print(stats.n_scores[50])
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

import numpy as np

from .collector import LengthCollection
from .errors import EmptyInputError, ValidationError

DEFAULT_PERCENTILES: Tuple[int, ...] = (50, 75, 90)


@dataclass(frozen=True)
class LengthStats:
    """Summary statistics for one length collection"""
    total_bases: int
    total_sequences: int
    mean_length: float
    median_length: float
    n_scores: Mapping[int, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(
            self, "n_scores",
            MappingProxyType(dict(sorted(self.n_scores.items())))
        )

    def n_score(self, percentile: int) -> int:
        return self.n_scores[percentile]

    def to_dict(self) -> Dict[str, Any]:
        """Flat JSON-ready mapping with one n<p> key per percentile."""
        result: Dict[str, Any] = {
            "total_bases": self.total_bases,
            "total_sequences": self.total_sequences,
            "mean_length": self.mean_length,
            "median_length": self.median_length,
        }
        for percentile, value in self.n_scores.items():
            result[f"n{percentile}"] = value
        return result


def validate_percentiles(percentiles: Iterable[Any]) -> Tuple[int, ...]:
    """
    Normalize requested N-score percentiles.

    Returns:
        Sorted, de-duplicated percentiles

    Raises:
        ValidationError: a value is not an integer in 1..100, or none given
    """
    values = set()
    for value in percentiles:
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise ValidationError(
                f"N-score percentile must be an integer: {value!r}",
                field="percentiles",
                value=value,
                expected="integer in 1..100"
            )
        if not 0 < value <= 100:
            raise ValidationError(
                f"N-score percentile out of range: {value}",
                field="percentiles",
                value=value,
                expected="integer in 1..100"
            )
        values.add(int(value))

    if not values:
        raise ValidationError(
            "At least one N-score percentile is required",
            field="percentiles",
            expected="integer in 1..100"
        )
    return tuple(sorted(values))


def compute_total_counts(length_counts: Mapping[int, int]) -> Tuple[int, int]:
    """
    Total bases and sequences from a length -> count mapping.

    >>> compute_total_counts({5: 10, 10: 3})
    (80, 13)
    """
    total_bases = 0
    total_seqs = 0
    for length, count in length_counts.items():
        total_bases += int(length) * int(count)
        total_seqs += int(count)
    return total_bases, total_seqs


def compute_median_length(sorted_lengths: np.ndarray) -> float:
    """
    Median of ascending-sorted lengths.

    Even counts average the two middle values.

    >>> compute_median_length(np.array([1, 2, 3, 4]))
    2.5
    """
    n = len(sorted_lengths)
    if n == 0:
        raise EmptyInputError("Median is undefined for zero sequences")

    middle = n // 2
    if n % 2:
        return float(sorted_lengths[middle])
    return (int(sorted_lengths[middle - 1]) + int(sorted_lengths[middle])) / 2


def compute_n_score(
    sorted_desc: np.ndarray,
    total_bases: int,
    percentile: int,
    cumulative: Optional[np.ndarray] = None
) -> int:
    """
    N-score for lengths sorted descending.

    The threshold is ceil(percentile * total_bases / 100), computed with
    integers; p=100 gives the smallest contributing length and small p the
    largest length through the same search. When every length is 0
    (total_bases == 0) the threshold is 0 and every N-score is 0.

    Args:
        sorted_desc: Lengths in descending order
        total_bases: Sum of the lengths
        percentile: Target in 1..100 (50 for N50)
        cumulative: Precomputed running sum of sorted_desc

    >>> compute_n_score(np.array([5, 4, 3, 2, 1]), 15, 50)
    4
    """
    if len(sorted_desc) == 0:
        raise EmptyInputError("N-score is undefined for zero sequences")
    if not 0 < percentile <= 100:
        raise ValidationError(
            f"N-score percentile out of range: {percentile}",
            field="percentiles",
            value=percentile,
            expected="integer in 1..100"
        )

    if cumulative is None:
        cumulative = np.cumsum(sorted_desc, dtype=np.uint64)

    target = -(-int(percentile) * int(total_bases) // 100)
    index = int(np.searchsorted(cumulative, np.uint64(target), side="left"))
    return int(sorted_desc[index])


def compute_length_stats(
    collection: LengthCollection,
    percentiles: Sequence[int] = DEFAULT_PERCENTILES
) -> LengthStats:
    """
    Compute all statistics for a populated collection.

    Sorts once; the descending order used for N-scores is a reversed view.

    Raises:
        EmptyInputError: the collection holds no sequences
        ValidationError: invalid percentiles
    """
    requested = validate_percentiles(percentiles)

    total_bases = collection.total_bases
    total_seqs = collection.total_sequences
    if total_seqs == 0:
        raise EmptyInputError("No sequences found; length statistics are undefined")

    ascending = collection.sorted_lengths()
    descending = ascending[::-1]
    cumulative = np.cumsum(descending, dtype=np.uint64)

    n_scores = {
        p: compute_n_score(descending, total_bases, p, cumulative=cumulative)
        for p in requested
    }

    return LengthStats(
        total_bases=total_bases,
        total_sequences=total_seqs,
        mean_length=total_bases / total_seqs,
        median_length=compute_median_length(ascending),
        n_scores=n_scores,
    )

"""
Length collection: every per-record length plus running totals.

Exact median and N-scores need the full distribution, so every length is
kept (8 bytes each) while totals are maintained incrementally.
"""

from array import array
from collections import Counter
from typing import Dict, Iterable, Iterator, List

import numpy as np

from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_PROGRESS_INTERVAL = 1000000


class LengthCollection:
    """
    Insertion-ordered multiset of sequence lengths.

    Invariant: sum(lengths) == total_bases and len(lengths) == total_sequences.
    """

    def __init__(self, lengths: Iterable[int] = ()):
        self._lengths = array("Q")
        self.total_bases = 0
        self.total_sequences = 0
        for length in lengths:
            self.add(length)

    def add(self, length: int) -> None:
        """Append one length and update the running totals."""
        if length < 0:
            raise ValueError(f"Sequence length cannot be negative: {length}")
        self._lengths.append(length)
        self.total_bases += length
        self.total_sequences += 1

    def __len__(self) -> int:
        return self.total_sequences

    def __iter__(self) -> Iterator[int]:
        return iter(self._lengths)

    def __repr__(self) -> str:
        return (f"LengthCollection(total_sequences={self.total_sequences}, "
                f"total_bases={self.total_bases})")

    def as_array(self) -> np.ndarray:
        """
        Zero-copy uint64 view of the lengths in insertion order.

        The collection cannot grow while a view is alive.
        """
        if not self._lengths:
            return np.zeros(0, dtype=np.uint64)
        return np.frombuffer(self._lengths, dtype=np.uint64)

    def sorted_lengths(self, descending: bool = False) -> np.ndarray:
        """Sorted copy of the lengths."""
        ordered = np.sort(self.as_array())
        return ordered[::-1] if descending else ordered

    def length_counts(self) -> Dict[int, int]:
        """Mapping of length -> number of sequences, in ascending length order."""
        counts = Counter(self._lengths)
        return {length: counts[length] for length in sorted(counts)}

    def to_list(self, sort: bool = False) -> List[int]:
        """Plain list of lengths, insertion order unless sort is set."""
        if sort:
            return [int(x) for x in self.sorted_lengths()]
        return self._lengths.tolist()


def collect_lengths(
    lengths: Iterable[int],
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL
) -> LengthCollection:
    """
    Consume a length stream completely.

    Args:
        lengths: Iterable of per-record lengths (consumed once)
        progress_interval: Log progress every N sequences (0 disables)

    Returns:
        Populated LengthCollection
    """
    collection = LengthCollection()
    for length in lengths:
        collection.add(length)
        if progress_interval and collection.total_sequences % progress_interval == 0:
            logger.info(f"Processed {collection.total_sequences} sequences")

    logger.info(f"Finished loading {collection.total_sequences} sequences "
                f"({collection.total_bases} bases)")
    return collection

"""
In-memory index builder
Runs tokenize -> count -> regroup -> rank over a list of records without
touching disk. The local MapReduce pipeline produces the same entries.
"""

import logging
from typing import Iterable, List, Sequence

from docindex.counting import count_partitions, regroup_by_word
from docindex.errors import ParseError
from docindex.ranking import IndexEntry, rank_index
from docindex.tokenizer import tokenize

logger = logging.getLogger(__name__)


def _tokenize_partition(records: Iterable[str], threshold: int):
    for record in records:
        try:
            yield from tokenize(record, threshold)
        except ParseError as e:
            logger.warning(f"Skipping record: {e}")


def build_index(records: Sequence[str], threshold: int, num_partitions: int = 1) -> List[IndexEntry]:
    """
    Build the ranked word index for a corpus held in memory

    Args:
        records: Raw 'documentID:word1,word2,...' lines
        threshold: Minimum record and word length N (already validated)
        num_partitions: Number of round-robin partitions counted separately
            before the partial counts are merged

    Returns:
        IndexEntry list sorted by word
    """
    records = list(records)
    num_partitions = max(1, num_partitions)
    partitions = [records[i::num_partitions] for i in range(num_partitions)]

    counts = count_partitions(_tokenize_partition(partition, threshold) for partition in partitions)
    logger.debug(f"Counted {len(counts)} distinct (word, document) pairs")
    return rank_index(regroup_by_word(counts))


def format_index(entries: Iterable[IndexEntry]) -> str:
    """Render entries one per line, newline-terminated"""
    return ''.join(entry.format() + '\n' for entry in entries)

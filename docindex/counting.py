"""
Pair Counter and Word Regrouper
Counts (word, document_id) occurrences and re-keys the counts by word
"""

import operator
from collections import Counter, defaultdict
from functools import reduce
from typing import Dict, Iterable, List, Mapping, Tuple

WordDocPair = Tuple[str, str]
Observation = Tuple[int, str]

# Associative and commutative, so partial sums may be combined in any grouping
combine_counts = operator.add


def merge_counts(left: Mapping[WordDocPair, int], right: Mapping[WordDocPair, int]) -> Counter:
    """Sum two count tables into a new Counter, leaving both inputs untouched"""
    merged = Counter(left)
    for key, count in right.items():
        merged[key] = combine_counts(merged[key], count)
    return merged


def count_pairs(pairs: Iterable[WordDocPair]) -> Counter:
    """Count the multiplicity of every (word, document_id) pair"""
    return Counter(pairs)


def count_partitions(partitions: Iterable[Iterable[WordDocPair]]) -> Counter:
    """
    Count pairs partition by partition, then fold the partial tables

    The result is the same for any split of the input into partitions.
    """
    return reduce(merge_counts, (count_pairs(partition) for partition in partitions), Counter())


def regroup_by_word(counts: Mapping[WordDocPair, int]) -> Dict[str, List[Observation]]:
    """
    Re-key counts by word

    Args:
        counts: Mapping of (word, document_id) to frequency

    Returns:
        Dictionary mapping word to an unsorted list of (frequency, document_id)
    """
    grouped = defaultdict(list)
    for (word, document_id), frequency in counts.items():
        if frequency > 0:
            grouped[word].append((frequency, document_id))
    return dict(grouped)

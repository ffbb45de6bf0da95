"""
Round one: count (word, document_id) occurrences.
"""

from functools import reduce

from docindex.counting import combine_counts
from docindex.tokenizer import tokenize


def map_function(key, value, threshold):
    """
    Map function: emit ((word, document_id), 1) for every kept word.

    Args:
        key: Position of the record in its input split (unused)
        value: Raw record line
        threshold: Minimum record and word length

    Yields:
        ((word, document_id), 1) tuples

    Raises:
        ParseError: If the record is malformed
    """
    for pair in tokenize(value, threshold):
        yield (pair, 1)


def reduce_function(key, values):
    """
    Reduce function: sum the partial counts for one (word, document_id).

    Args:
        key: (word, document_id) tuple
        values: Partial counts

    Yields:
        ((word, document_id), frequency) tuple
    """
    yield (key, reduce(combine_counts, values, 0))


# Summing is associative, so the reducer doubles as the combiner
combiner_function = reduce_function

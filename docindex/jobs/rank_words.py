"""
Round two: regroup counts by word and rank each word's documents.
"""

from docindex.ranking import rank_observations


def map_function(key, value):
    """
    Map function: move the document ID from the key into the value.

    Args:
        key: (word, document_id) tuple
        value: Frequency

    Yields:
        (word, (frequency, document_id)) tuple
    """
    word, document_id = key
    yield (word, (value, document_id))


def reduce_function(key, values):
    """
    Reduce function: rank one word's observations.

    Args:
        key: Word
        values: (frequency, document_id) observations, one per document

    Yields:
        (word, ranked observations) tuple
    """
    yield (key, rank_observations(tuple(observation) for observation in values))


# Ranking is not a partial aggregation, so there is no combiner
combiner_function = None

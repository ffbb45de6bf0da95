"""
Tokenizer
Parses one raw record into (word, document_id) pairs
"""

from typing import List, Tuple

from docindex.errors import ParseError

RECORD_SEPARATOR = ':'
WORD_SEPARATOR = ','
TRAILING_PUNCTUATION = (',', '.', ';')


def parse_record(record: str) -> Tuple[str, List[str]]:
    """
    Split a record into its document ID and raw word tokens

    Args:
        record: Line of the form 'documentID:word1,word2,...'

    Returns:
        (document_id, tokens) tuple

    Raises:
        ParseError: If there is no ':' or the document ID is empty
    """
    document_id, separator, words = record.partition(RECORD_SEPARATOR)
    if not separator:
        raise ParseError(record, "missing ':' separator")
    if not document_id:
        raise ParseError(record, "empty document ID")
    return document_id, words.split(WORD_SEPARATOR)


def strip_punctuation(token: str) -> str:
    """Remove exactly one trailing ',', '.' or ';'"""
    if token.endswith(TRAILING_PUNCTUATION):
        return token[:-1]
    return token


def tokenize(record: str, threshold: int) -> List[Tuple[str, str]]:
    """
    Turn a record into (word, document_id) pairs

    Records shorter than the threshold produce nothing. Every word is
    stripped of one trailing punctuation mark and kept only if it is still
    at least `threshold` characters long. Repeated words yield repeated pairs.

    Args:
        record: Raw input line (a trailing line terminator is ignored)
        threshold: Minimum record length and minimum word length

    Returns:
        List of (word, document_id) tuples, possibly empty

    Raises:
        ParseError: If the record is long enough but malformed
    """
    record = record.rstrip('\r\n')
    if not record or len(record) < threshold:
        return []

    document_id, tokens = parse_record(record)
    pairs = []
    for token in tokens:
        word = strip_punctuation(token)
        if len(word) < threshold:
            continue
        pairs.append((word, document_id))
    return pairs

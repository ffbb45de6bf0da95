"""
Frequency Ranker
Orders each word's (frequency, document_id) observations into its index entry
"""

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Tuple

Observation = Tuple[int, str]


@dataclass(frozen=True)
class IndexEntry:
    """Final output for one word: its postings ranked by frequency"""
    word: str
    postings: Tuple[Observation, ...]

    def format(self) -> str:
        return format_entry(self.word, self.postings)


def ranking_key(observation: Observation) -> Tuple[int, str]:
    """Sort key: highest frequency first, then document ID ascending"""
    frequency, document_id = observation
    return -frequency, document_id


def rank_observations(observations: Iterable[Observation]) -> Tuple[Observation, ...]:
    return tuple(sorted(observations, key=ranking_key))


def rank_index(grouped: Mapping[str, Iterable[Observation]]) -> List[IndexEntry]:
    """
    Rank every word's observations

    Args:
        grouped: Mapping of word to its unsorted (frequency, document_id) list

    Returns:
        IndexEntry list sorted by word
    """
    return [IndexEntry(word, rank_observations(grouped[word])) for word in sorted(grouped)]


def format_postings(postings: Iterable[Observation]) -> str:
    return ''.join(f"({frequency},{document_id})" for frequency, document_id in postings)


def format_entry(word: str, postings: Iterable[Observation]) -> str:
    """Render 'word<TAB>(f1,doc1)(f2,doc2)...'"""
    return f"{word}\t{format_postings(postings)}"

"""
docindex - per-word, frequency-ranked document index.
"""

from docindex.errors import ConfigError, DocIndexError, IntermediateDataError, JobFailedError, ParseError
from docindex.index import build_index, format_index
from docindex.ranking import IndexEntry

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DocIndexError",
    "IndexEntry",
    "IntermediateDataError",
    "JobFailedError",
    "ParseError",
    "build_index",
    "format_index",
]

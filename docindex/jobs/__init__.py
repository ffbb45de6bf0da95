"""
MapReduce job modules run by the index pipeline

Each module defines map_function, reduce_function and optionally
combiner_function.
"""

COUNT_PAIRS_JOB = 'docindex.jobs.count_pairs'
RANK_WORDS_JOB = 'docindex.jobs.rank_words'

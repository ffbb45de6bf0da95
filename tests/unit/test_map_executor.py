"""
Unit tests for MapExecutor
"""

import json
import os
from unittest.mock import Mock, patch

import pytest

from docindex.errors import IntermediateDataError, ParseError
from docindex.jobs import COUNT_PAIRS_JOB, RANK_WORDS_JOB
from docindex.worker.intermediate import decode_record, encode_record, partition_for
from docindex.worker.map_executor import INPUT_FORMAT_JSONL, MapExecutor


def make_executor(input_path, intermediate_dir, start_offset=0, end_offset=None,
                  num_reduce_tasks=2, use_combiner=False, task_id=0, **kwargs):
    if end_offset is None:
        end_offset = os.path.getsize(input_path)
    kwargs.setdefault('job', COUNT_PAIRS_JOB)
    kwargs.setdefault('job_params', {'threshold': 3})
    return MapExecutor(
        task_id=task_id,
        input_path=input_path,
        start_offset=start_offset,
        end_offset=end_offset,
        num_reduce_tasks=num_reduce_tasks,
        use_combiner=use_combiner,
        job_id='test-job',
        intermediate_dir=intermediate_dir,
        **kwargs
    )


def read_intermediate(intermediate_dir):
    pairs = []
    for filename in sorted(os.listdir(intermediate_dir)):
        with open(os.path.join(intermediate_dir, filename)) as f:
            pairs.extend(decode_record(line) for line in f if line.strip())
    return pairs


class TestMapExecutorInputSplitting:
    """Tests for input split reading"""

    def test_reads_full_file_when_offsets_cover_entire_file(self, sample_input_file, temp_dir, sample_records):
        executor = make_executor(sample_input_file, temp_dir)

        key_values = executor._read_input_split()

        assert [value for _, value in key_values] == sample_records
        assert all(isinstance(kv[0], int) for kv in key_values)

    def test_reads_partial_file_split(self, sample_input_file, temp_dir, sample_records):
        mid_point = os.path.getsize(sample_input_file) // 2
        executor = make_executor(sample_input_file, temp_dir, end_offset=mid_point)

        key_values = executor._read_input_split()

        assert 0 < len(key_values) < len(sample_records)

    @pytest.mark.parametrize("num_splits", [2, 3, 5, 8, 13])
    def test_adjacent_splits_read_every_line_once(self, sample_input_file, temp_dir, sample_records, num_splits):
        file_size = os.path.getsize(sample_input_file)
        chunk = file_size // num_splits

        lines = []
        for i in range(num_splits):
            end = file_size if i == num_splits - 1 else (i + 1) * chunk
            executor = make_executor(sample_input_file, temp_dir, start_offset=i * chunk, end_offset=end)
            lines.extend(value for _, value in executor._read_input_split())

        assert lines == sample_records

    def test_split_starting_on_line_boundary_keeps_that_line(self, temp_dir):
        input_file = os.path.join(temp_dir, 'input.txt')
        with open(input_file, 'w') as f:
            f.write("doc1:fox\ndoc2:fox\n")

        first = make_executor(input_file, temp_dir, start_offset=0, end_offset=9)._read_input_split()
        second = make_executor(input_file, temp_dir, start_offset=9)._read_input_split()

        assert [v for _, v in first] == ["doc1:fox"]
        assert [v for _, v in second] == ["doc2:fox"]

    def test_empty_split_returns_empty_list(self, temp_dir):
        empty_file = os.path.join(temp_dir, 'empty.txt')
        open(empty_file, 'w').close()

        executor = make_executor(empty_file, temp_dir, end_offset=0)

        assert executor._read_input_split() == []

    def test_reads_jsonl_records(self, temp_dir):
        input_file = os.path.join(temp_dir, 'part-0.jsonl')
        with open(input_file, 'w') as f:
            f.write(encode_record(("fox", "doc1"), 2) + '\n')
            f.write('\n')
            f.write(encode_record(("over", "doc1"), 1) + '\n')

        executor = make_executor(input_file, temp_dir, job=RANK_WORDS_JOB, job_params=None,
                                 input_format=INPUT_FORMAT_JSONL)

        assert executor._read_input_split() == [(("fox", "doc1"), 2), (("over", "doc1"), 1)]

    @pytest.mark.parametrize("bad_line", ['not json', '{"key": ["fox", "doc1"]}', '[1, 2]'])
    def test_malformed_jsonl_record_raises(self, temp_dir, bad_line):
        input_file = os.path.join(temp_dir, 'part-0.jsonl')
        good_line = encode_record(("fox", "doc1"), 2)
        with open(input_file, 'w') as f:
            f.write(good_line + '\n')
            f.write(bad_line + '\n')

        executor = make_executor(input_file, temp_dir, job=RANK_WORDS_JOB, job_params=None,
                                 input_format=INPUT_FORMAT_JSONL)

        with pytest.raises(IntermediateDataError) as excinfo:
            executor._read_input_split()
        assert excinfo.value.path == input_file
        assert excinfo.value.location == f"byte {len(good_line) + 1}"

    def test_undecodable_text_line_is_skipped(self, temp_dir):
        input_file = os.path.join(temp_dir, 'input.txt')
        with open(input_file, 'wb') as f:
            f.write(b"doc1:fox\ndoc\xff:fox\ndoc2:fox\n")

        executor = make_executor(input_file, temp_dir)

        assert [v for _, v in executor._read_input_split()] == ["doc1:fox", "doc2:fox"]
        assert executor.undecodable_lines == 1


class TestMapExecutorPartitioning:
    """Tests for stable hash partitioning"""

    def test_pairs_land_in_their_partition_file(self, sample_input_file, temp_dir):
        intermediate_dir = os.path.join(temp_dir, 'intermediate')
        executor = make_executor(sample_input_file, intermediate_dir, num_reduce_tasks=3)

        result = executor.execute()

        assert result['success'] is True
        assert result['intermediate_files']
        for path in result['intermediate_files']:
            partition = int(path.rsplit('-', 1)[1].split('.')[0])
            with open(path) as f:
                for line in f:
                    key, _ = decode_record(line)
                    assert partition_for(key, 3) == partition

    def test_same_key_goes_to_same_partition(self):
        key = ("fox", "doc1")

        assert partition_for(key, 4) == partition_for(("fox", "doc1"), 4)
        assert partition_for(key, 4) == partition_for(["fox", "doc1"], 4)

    def test_partition_in_range(self):
        for word in ("fox", "jumped", "over", "fence", "crazy"):
            assert 0 <= partition_for(word, 5) < 5


class TestMapExecutorExecution:
    """Tests for the full map task"""

    def test_emits_one_pair_per_kept_word(self, temp_dir):
        input_file = os.path.join(temp_dir, 'input.txt')
        with open(input_file, 'w') as f:
            f.write("doc1:fox,jumped,fox\ndoc2:a,fox\n")
        intermediate_dir = os.path.join(temp_dir, 'intermediate')

        result = make_executor(input_file, intermediate_dir).execute()

        assert result['success'] is True
        assert result['records_read'] == 2
        assert result['pairs_emitted'] == 4
        assert sorted(read_intermediate(intermediate_dir)) == [
            (("fox", "doc1"), 1),
            (("fox", "doc1"), 1),
            (("fox", "doc2"), 1),
            (("jumped", "doc1"), 1),
        ]

    def test_skips_malformed_records(self, temp_dir):
        input_file = os.path.join(temp_dir, 'input.txt')
        with open(input_file, 'w') as f:
            f.write("doc1:fox\nthis line has no separator\n:fox,fox\ndoc2:fox\n")
        intermediate_dir = os.path.join(temp_dir, 'intermediate')

        result = make_executor(input_file, intermediate_dir).execute()

        assert result['success'] is True
        assert result['records_read'] == 4
        assert result['records_skipped'] == 2
        assert result['pairs_emitted'] == 2

    def test_undecodable_records_are_counted_as_skipped(self, temp_dir):
        input_file = os.path.join(temp_dir, 'input.txt')
        with open(input_file, 'wb') as f:
            f.write(b"doc1:fox\ndoc\xe9:fox\ndoc2:fox\n")
        intermediate_dir = os.path.join(temp_dir, 'intermediate')

        result = make_executor(input_file, intermediate_dir).execute()

        assert result['success'] is True
        assert result['records_read'] == 3
        assert result['records_skipped'] == 1
        assert sorted(read_intermediate(intermediate_dir)) == [(("fox", "doc1"), 1), (("fox", "doc2"), 1)]

    def test_corrupt_previous_round_output_fails_task(self, temp_dir):
        input_file = os.path.join(temp_dir, 'part-0.jsonl')
        with open(input_file, 'w') as f:
            f.write(encode_record(("fox", "doc1"), 2) + '\n')
            f.write('{"key": ["fox", "doc2"], "val\n')

        result = make_executor(input_file, os.path.join(temp_dir, 'intermediate'), job=RANK_WORDS_JOB,
                               job_params=None, input_format=INPUT_FORMAT_JSONL).execute()

        assert result['success'] is False
        assert input_file in result['error_message']
        assert result['intermediate_files'] == []

    def test_missing_input_fails_task(self, temp_dir):
        executor = make_executor(os.path.join(temp_dir, 'missing.txt'), temp_dir, end_offset=100)

        result = executor.execute()

        assert result['success'] is False
        assert 'missing.txt' in result['error_message']

    def test_unexpected_map_error_fails_task(self, sample_input_file, temp_dir):
        def broken_map(key, value):
            raise ValueError("boom")
            yield

        mock_loader = Mock()
        mock_loader.get_map_function.return_value = broken_map

        with patch('docindex.worker.map_executor.FunctionLoader', return_value=mock_loader):
            result = make_executor(sample_input_file, temp_dir).execute()

        assert result['success'] is False
        assert result['error_message'] == 'boom'

    def test_parse_error_from_custom_map_is_counted(self, sample_input_file, temp_dir, sample_records):
        def strict_map(key, value):
            raise ParseError(value, "rejected")
            yield

        mock_loader = Mock()
        mock_loader.get_map_function.return_value = strict_map

        with patch('docindex.worker.map_executor.FunctionLoader', return_value=mock_loader):
            result = make_executor(sample_input_file, os.path.join(temp_dir, 'out')).execute()

        assert result['success'] is True
        assert result['records_skipped'] == len(sample_records)
        assert result['intermediate_files'] == []


class TestMapExecutorCombiner:
    """Tests for combiner functionality"""

    def test_combiner_reduces_intermediate_data(self, sample_input_file, temp_dir):
        dir_no_combiner = os.path.join(temp_dir, 'no-combiner')
        dir_with_combiner = os.path.join(temp_dir, 'with-combiner')

        result_without = make_executor(sample_input_file, dir_no_combiner, use_combiner=False).execute()
        result_with = make_executor(sample_input_file, dir_with_combiner, use_combiner=True).execute()

        assert result_without['success'] and result_with['success']
        assert result_with['pairs_emitted'] == result_without['pairs_emitted']
        assert result_with['pairs_after_combine'] < result_without['pairs_after_combine']

    def test_combiner_preserves_totals(self, sample_input_file, temp_dir):
        dir_no_combiner = os.path.join(temp_dir, 'no-combiner')
        dir_with_combiner = os.path.join(temp_dir, 'with-combiner')
        make_executor(sample_input_file, dir_no_combiner, use_combiner=False).execute()
        make_executor(sample_input_file, dir_with_combiner, use_combiner=True).execute()

        def totals(pairs):
            summed = {}
            for key, value in pairs:
                summed[key] = summed.get(key, 0) + value
            return summed

        assert totals(read_intermediate(dir_with_combiner)) == totals(read_intermediate(dir_no_combiner))

    def test_combined_keys_are_unique_per_partition(self, sample_input_file, temp_dir):
        result = make_executor(sample_input_file, temp_dir, use_combiner=True).execute()

        for path in result['intermediate_files']:
            with open(path) as f:
                keys = [tuple(json.loads(line)['key']) for line in f]
            assert len(keys) == len(set(keys))

#!/usr/bin/env python3
"""
Map Task Executor
Executes map tasks by reading input splits, applying map functions,
partitioning output, and writing intermediate files
"""

import json
import logging
import os
import time
from collections import defaultdict

from docindex.errors import IntermediateDataError, ParseError
from docindex.worker.function_loader import FunctionLoader
from docindex.worker.intermediate import decode_record, encode_record, partition_for

logger = logging.getLogger(__name__)

INPUT_FORMAT_TEXT = 'text'
INPUT_FORMAT_JSONL = 'jsonl'


class MapExecutor:
    """Executes a single map task"""

    def __init__(self, task_id: int, input_path: str, start_offset: int,
                 end_offset: int, num_reduce_tasks: int, job: str,
                 use_combiner: bool, job_id: str, intermediate_dir: str,
                 input_format: str = INPUT_FORMAT_TEXT, job_params: dict = None):
        """
        Initialize the map executor

        Args:
            task_id: Unique ID for this map task
            input_path: Path to input file
            start_offset: Byte offset where this task should start reading
            end_offset: Byte offset where this task should stop reading
            num_reduce_tasks: Number of reduce tasks (for partitioning)
            job: Job module name or path
            use_combiner: Whether to apply combiner function
            job_id: Unique job identifier
            intermediate_dir: Directory for this job's intermediate files
            input_format: 'text' for raw lines, 'jsonl' for a previous round's output
            job_params: Keyword arguments bound to the map function
        """
        self.task_id = task_id
        self.input_path = input_path
        self.start_offset = start_offset
        self.end_offset = end_offset
        self.num_reduce_tasks = num_reduce_tasks
        self.job = job
        self.use_combiner = use_combiner
        self.job_id = job_id
        self.intermediate_dir = intermediate_dir
        self.input_format = input_format
        self.undecodable_lines = 0
        self.loader = FunctionLoader(job, job_params)

    def execute(self) -> dict:
        """
        Execute the map task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            record/pair counters and the list of 'intermediate_files'
        """
        start_time = time.time()
        result = {
            'success': False,
            'execution_time_ms': 0,
            'error_message': '',
            'records_read': 0,
            'records_skipped': 0,
            'pairs_emitted': 0,
            'pairs_after_combine': 0,
            'intermediate_files': [],
        }

        try:
            map_func = self.loader.get_map_function()

            key_values = self._read_input_split()
            result['records_read'] = len(key_values) + self.undecodable_lines
            result['records_skipped'] = self.undecodable_lines
            logger.info(f"Map task {self.task_id}: Processing {len(key_values)} records from {self.input_path}")

            # Apply map function and partition output
            intermediate = defaultdict(list)
            for key, value in key_values:
                try:
                    for out_key, out_value in map_func(key, value):
                        partition = partition_for(out_key, self.num_reduce_tasks)
                        intermediate[partition].append((out_key, out_value))
                except ParseError as e:
                    result['records_skipped'] += 1
                    logger.warning(f"Map task {self.task_id}: Skipping record: {e}")

            result['pairs_emitted'] = sum(len(v) for v in intermediate.values())
            logger.info(f"Map task {self.task_id}: Generated {result['pairs_emitted']} intermediate pairs")

            if self.use_combiner:
                intermediate = self._apply_combiner(intermediate)
            result['pairs_after_combine'] = sum(len(v) for v in intermediate.values())
            if self.use_combiner:
                logger.info(f"Map task {self.task_id}: After combiner: {result['pairs_after_combine']} pairs")

            result['intermediate_files'] = self._write_intermediate_files(intermediate)
            result['success'] = True

        except Exception as e:
            result['error_message'] = str(e)
            logger.error(f"Map task {self.task_id} failed: {e}")

        result['execution_time_ms'] = int((time.time() - start_time) * 1000)
        if result['success']:
            logger.info(f"Map task {self.task_id}: Completed in {result['execution_time_ms']}ms")
        return result

    def _read_input_split(self):
        """
        Read assigned portion of input file with line boundary alignment

        A line belongs to the split in which its first byte falls. Text lines
        that are not valid UTF-8 are skipped and counted in
        ``self.undecodable_lines``; a bad line in a previous round's output
        fails the task.

        Returns:
            List of (key, value) tuples

        Raises:
            IntermediateDataError: If a JSON-lines record can't be decoded
        """
        key_values = []
        self.undecodable_lines = 0

        with open(self.input_path, 'rb') as f:
            if self.start_offset > 0:
                # Finish the line that started in the previous split
                f.seek(self.start_offset - 1)
                f.readline()

            line_num = 0
            while f.tell() < self.end_offset:
                line_start = f.tell()
                raw = f.readline()
                if not raw:
                    break

                if self.input_format == INPUT_FORMAT_JSONL:
                    try:
                        line = raw.decode('utf-8')
                        if line.strip():
                            key_values.append(decode_record(line))
                    except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
                        raise IntermediateDataError(self.input_path, f"byte {line_start}",
                                                    f"malformed record: {e}") from e
                else:
                    try:
                        line = raw.decode('utf-8').rstrip('\r\n')
                    except UnicodeDecodeError as e:
                        self.undecodable_lines += 1
                        logger.warning(f"Map task {self.task_id}: Skipping line at byte {line_start} "
                                       f"of {self.input_path}: {e}")
                    else:
                        key_values.append((line_num, line))
                line_num += 1

        return key_values

    def _apply_combiner(self, intermediate: dict) -> dict:
        """
        Apply combiner function to local map output

        Args:
            intermediate: Dictionary mapping partition_id to list of (key, value) pairs

        Returns:
            Dictionary with same structure but with combined values
        """
        combiner_func = self.loader.get_combiner_function()
        if not combiner_func:
            return intermediate

        combined = {}
        for partition, kv_pairs in intermediate.items():
            key_groups = defaultdict(list)
            for k, v in kv_pairs:
                key_groups[k].append(v)

            combined_pairs = []
            for key, values in key_groups.items():
                for out_key, out_value in combiner_func(key, values):
                    combined_pairs.append((out_key, out_value))

            combined[partition] = combined_pairs

        return combined

    def _write_intermediate_files(self, intermediate: dict) -> list:
        """
        Write intermediate key-value pairs to disk in JSON-lines format

        Returns:
            Paths of the files written, one per non-empty partition
        """
        os.makedirs(self.intermediate_dir, exist_ok=True)

        written = []
        for partition in sorted(intermediate):
            kv_pairs = intermediate[partition]
            if not kv_pairs:
                continue
            filename = os.path.join(self.intermediate_dir, f"map-{self.task_id}-reduce-{partition}.jsonl")

            with open(filename, 'w', encoding='utf-8') as f:
                for key, value in kv_pairs:
                    f.write(encode_record(key, value) + '\n')
            written.append(filename)

        return written

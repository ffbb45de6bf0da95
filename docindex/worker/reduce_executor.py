#!/usr/bin/env python3
"""
Reduce Task Executor
Executes reduce tasks by reading intermediate data, grouping by key,
applying reduce functions, and writing final output
"""

import json
import logging
import os
import time
from collections import defaultdict

from docindex.errors import IntermediateDataError
from docindex.worker.function_loader import FunctionLoader
from docindex.worker.intermediate import decode_record, encode_record

logger = logging.getLogger(__name__)


class ReduceExecutor:
    """Executes a single reduce task"""

    def __init__(self, task_id: int, partition_id: int, intermediate_files: list,
                 job: str, output_path: str, job_id: str):
        """
        Initialize the reduce executor

        Args:
            task_id: Unique ID for this reduce task
            partition_id: Partition ID this reduce task is responsible for
            intermediate_files: List of intermediate file paths to read
            job: Job module name or path
            output_path: Directory path where this round's output should be written
            job_id: Unique job identifier
        """
        self.task_id = task_id
        self.partition_id = partition_id
        self.intermediate_files = intermediate_files
        self.job = job
        self.output_path = output_path
        self.job_id = job_id
        self.loader = FunctionLoader(job)

    def execute(self) -> dict:
        """
        Execute the reduce task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            'output_file' and 'records_written' fields
        """
        start_time = time.time()
        result = {
            'success': False,
            'execution_time_ms': 0,
            'error_message': '',
            'output_file': '',
            'records_written': 0,
        }

        try:
            reduce_func = self.loader.get_reduce_function()

            key_groups = self._read_and_group_intermediate()
            logger.info(f"Reduce task {self.task_id}: Grouped {len(key_groups)} unique keys")

            results = []
            for key in sorted(key_groups):  # Sort by key for deterministic output
                for out_key, out_value in reduce_func(key, key_groups[key]):
                    results.append((out_key, out_value))

            result['output_file'] = self._write_output(results)
            result['records_written'] = len(results)
            result['success'] = True

        except Exception as e:
            result['error_message'] = str(e)
            logger.error(f"Reduce task {self.task_id} failed: {e}")

        result['execution_time_ms'] = int((time.time() - start_time) * 1000)
        if result['success']:
            logger.info(f"Reduce task {self.task_id}: Completed in {result['execution_time_ms']}ms")
        return result

    def _read_and_group_intermediate(self) -> dict:
        """
        Read all intermediate files and group by key

        A missing file or a line that does not decode fails the task.

        Returns:
            Dictionary mapping key to list of values

        Raises:
            FileNotFoundError: If an assigned intermediate file is missing
            IntermediateDataError: If a line is not a valid record
        """
        key_groups = defaultdict(list)
        lines_processed = 0

        for filepath in self.intermediate_files:
            with open(filepath, 'r', encoding='utf-8') as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue

                    try:
                        key, value = decode_record(line)
                    except (json.JSONDecodeError, KeyError, TypeError) as e:
                        raise IntermediateDataError(filepath, f"line {line_num}", f"malformed record: {e}") from e

                    key_groups[key].append(value)
                    lines_processed += 1

        logger.info(f"Reduce task {self.task_id}: Read {len(self.intermediate_files)} files, "
                    f"processed {lines_processed} records")
        return key_groups

    def _write_output(self, results: list) -> str:
        """
        Write reduce output as JSON lines, sorted by key

        Args:
            results: List of (key, value) tuples to write

        Returns:
            Path of the file written
        """
        os.makedirs(self.output_path, exist_ok=True)

        output_file = os.path.join(self.output_path, f"part-{self.partition_id}.jsonl")

        with open(output_file, 'w', encoding='utf-8') as f:
            for key, value in results:
                f.write(encode_record(key, value) + '\n')

        logger.info(f"Reduce task {self.task_id}: Wrote output to {output_file}")
        return output_file

#!/usr/bin/env python3
"""
Index Pipeline
Runs the two MapReduce rounds that build the ranked word index:
  1. count_pairs - tokenize records and count (word, document) pairs
  2. rank_words  - regroup the counts by word and rank each word's documents
then merges the sorted round-two partitions into one output file.
"""

import heapq
import json
import logging
import os
import shutil
import tempfile
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterator, List, Tuple

from docindex.config import PipelineConfig
from docindex.coordinator.job_manager import Job, JobManager, JobSpec, JobStatus
from docindex.coordinator.metrics import JobMetrics, MetricsCollector
from docindex.errors import JobFailedError
from docindex.jobs import COUNT_PAIRS_JOB, RANK_WORDS_JOB
from docindex.ranking import format_entry
from docindex.worker.intermediate import decode_record
from docindex.worker.map_executor import INPUT_FORMAT_JSONL, INPUT_FORMAT_TEXT, MapExecutor
from docindex.worker.reduce_executor import ReduceExecutor

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of one pipeline run"""
    run_id: str
    output_path: str
    words_written: int
    elapsed_seconds: float
    metrics: List[JobMetrics] = field(default_factory=list)
    work_dir: str = ''

    @property
    def records_read(self) -> int:
        return self.metrics[0].records_read if self.metrics else 0

    @property
    def records_skipped(self) -> int:
        return self.metrics[0].records_skipped if self.metrics else 0

    def to_dict(self) -> dict:
        return {
            'run_id': self.run_id,
            'output_path': self.output_path,
            'words_written': self.words_written,
            'elapsed_seconds': self.elapsed_seconds,
            'records_read': self.records_read,
            'records_skipped': self.records_skipped,
            'jobs': [m.to_dict() for m in self.metrics],
        }

    def save_metrics(self, filepath: str):
        """Save run and per-round metrics to a JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


def resolve_input_files(input_path: str) -> List[str]:
    """
    List the record files under an input location

    Args:
        input_path: A file, or a directory whose non-hidden files are all read

    Raises:
        FileNotFoundError: If the location doesn't exist
    """
    if os.path.isfile(input_path):
        return [input_path]
    if os.path.isdir(input_path):
        return sorted(
            os.path.join(input_path, name) for name in os.listdir(input_path)
            if not name.startswith(('.', '_')) and os.path.isfile(os.path.join(input_path, name))
        )
    raise FileNotFoundError(f"Input not found: {input_path}")


def _read_part(path: str) -> Iterator[Tuple[str, tuple]]:
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            if line.strip():
                yield decode_record(line)


def write_index(part_files: List[str], output_path: str) -> int:
    """
    Merge word-sorted partition files into the final index file

    Each partition holds a disjoint set of words in ascending order, so a
    k-way merge yields one file sorted by word whatever the partitioning.
    The file is written under a temporary name and moved into place, so an
    existing index is only replaced by a complete one.

    Returns:
        Number of words written
    """
    parent = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(parent, exist_ok=True)

    words_written = 0
    tmp_path = output_path + '.tmp'
    try:
        with open(tmp_path, 'w', encoding='utf-8') as out:
            merged = heapq.merge(*(_read_part(p) for p in part_files), key=lambda record: record[0])
            for word, postings in merged:
                out.write(format_entry(word, postings) + '\n')
                words_written += 1
        os.replace(tmp_path, output_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    return words_written


class IndexPipeline:
    """Builds the ranked word index for one input location"""

    def __init__(self, config: PipelineConfig):
        self.config = config
        self.job_manager = JobManager()
        self.metrics = MetricsCollector()
        self.run_id = uuid.uuid4().hex[:8]

    def run(self) -> PipelineResult:
        """
        Run both rounds and write the index

        Raises:
            ConfigError: If the configuration is invalid
            FileNotFoundError: If the input location doesn't exist
            JobFailedError: If any map or reduce task fails
        """
        config = self.config.validate()
        input_files = resolve_input_files(config.input_path)
        start_time = time.time()

        if config.work_dir:
            os.makedirs(config.work_dir, exist_ok=True)
        work_dir = tempfile.mkdtemp(prefix=f'docindex-{self.run_id}-', dir=config.work_dir)
        logger.info(f"Run {self.run_id}: {len(input_files)} input files, threshold {config.threshold}, "
                    f"work dir {work_dir}")

        try:
            with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
                count_job = self._run_round(
                    executor, 'count', COUNT_PAIRS_JOB, input_files, INPUT_FORMAT_TEXT,
                    work_dir, params={'threshold': config.threshold}
                )
                rank_job = self._run_round(
                    executor, 'rank', RANK_WORDS_JOB, self._round_outputs(count_job), INPUT_FORMAT_JSONL,
                    work_dir
                )

            words_written = write_index(self._round_outputs(rank_job), config.output_path)
        finally:
            if not config.keep_intermediate:
                shutil.rmtree(work_dir, ignore_errors=True)

        result = PipelineResult(
            run_id=self.run_id,
            output_path=config.output_path,
            words_written=words_written,
            elapsed_seconds=time.time() - start_time,
            metrics=[self.metrics.get_metrics(count_job.job_id), self.metrics.get_metrics(rank_job.job_id)],
            work_dir=work_dir if config.keep_intermediate else ''
        )
        logger.info(f"Run {self.run_id}: Wrote {words_written} words to {config.output_path} "
                    f"in {result.elapsed_seconds:.2f}s")

        if config.metrics_path:
            result.save_metrics(config.metrics_path)
        return result

    @staticmethod
    def _round_outputs(job: Job) -> List[str]:
        paths = (os.path.join(job.output_path, f"part-{t.partition_id}.jsonl") for t in job.reduce_tasks)
        return [p for p in paths if os.path.exists(p)]

    def _run_round(self, executor: ThreadPoolExecutor, round_name: str, job_module: str,
                   input_paths: List[str], input_format: str, work_dir: str, params: dict = None) -> Job:
        """Run the map phase, then the reduce phase, of one job"""
        config = self.config
        job_id = f"{self.run_id}-{round_name}"
        round_dir = os.path.join(work_dir, round_name)

        job = self.job_manager.create_job(JobSpec(
            job_id=job_id,
            job=job_module,
            input_paths=input_paths,
            output_path=os.path.join(round_dir, 'output'),
            intermediate_dir=os.path.join(round_dir, 'intermediate'),
            num_map_tasks=config.num_map_tasks,
            num_reduce_tasks=config.num_reduce_tasks,
            use_combiner=config.use_combiner,
            input_format=input_format,
            params=params or {}
        ))
        os.makedirs(job.output_path, exist_ok=True)

        map_tasks = self.job_manager.generate_map_tasks(job)
        self.metrics.start_job(job_id, job_module, len(map_tasks), job.num_reduce_tasks,
                               job.use_combiner, input_paths)

        # Map phase
        self.job_manager.set_job_status(job_id, JobStatus.MAP_PHASE)
        logger.info(f"Job {job_id}: Starting map phase with {len(map_tasks)} tasks")
        futures = []
        while True:
            task = self.job_manager.get_next_pending_map_task(job_id)
            if task is None:
                break
            map_executor = MapExecutor(
                task_id=task.task_id,
                input_path=task.input_path,
                start_offset=task.start_offset,
                end_offset=task.end_offset,
                num_reduce_tasks=job.num_reduce_tasks,
                job=job.job,
                use_combiner=job.use_combiner,
                job_id=job_id,
                intermediate_dir=job.intermediate_dir,
                input_format=job.input_format,
                job_params=job.params
            )
            futures.append((task.task_id, executor.submit(map_executor.execute)))

        for task_id, future in futures:
            result = future.result()
            if not result['success']:
                self._fail(job_id, 'map', task_id, result['error_message'])
            self.metrics.record_map_result(job_id, result)
            self.job_manager.mark_map_task_completed(job_id, task_id)
        self.metrics.end_map_phase(job_id)

        # Shuffle: each reduce task picks up its partition's files
        reduce_tasks = self.job_manager.generate_reduce_tasks(job)
        self.metrics.start_reduce_phase(job_id, job.intermediate_dir)

        # Reduce phase
        self.job_manager.set_job_status(job_id, JobStatus.REDUCE_PHASE)
        logger.info(f"Job {job_id}: Starting reduce phase with {len(reduce_tasks)} tasks")
        futures = []
        while True:
            task = self.job_manager.get_next_pending_reduce_task(job_id)
            if task is None:
                break
            reduce_executor = ReduceExecutor(
                task_id=task.task_id,
                partition_id=task.partition_id,
                intermediate_files=task.intermediate_files,
                job=job.job,
                output_path=job.output_path,
                job_id=job_id
            )
            futures.append((task.task_id, executor.submit(reduce_executor.execute)))

        for task_id, future in futures:
            result = future.result()
            if not result['success']:
                self._fail(job_id, 'reduce', task_id, result['error_message'])
            self.metrics.record_reduce_result(job_id, result)
            self.job_manager.mark_reduce_task_completed(job_id, task_id)

        self.metrics.end_job(job_id, job.output_path)
        logger.info(f"Job {job_id}: {self.job_manager.get_job_status(job_id)}")
        return job

    def _fail(self, job_id: str, task_type: str, task_id: int, error_message: str):
        self.job_manager.mark_task_failed(job_id, task_type, task_id, error_message)
        raise JobFailedError(job_id, task_type, task_id, error_message)

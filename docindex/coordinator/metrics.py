"""
Performance metrics collection for MapReduce jobs.
"""

import glob
import json
import os
import time
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

import psutil


def _total_size(paths) -> int:
    return sum(os.path.getsize(p) for p in paths if os.path.exists(p))


@dataclass
class JobMetrics:
    """Metrics for a single MapReduce job execution."""

    job_id: str
    job_name: str
    start_time: float
    end_time: float
    map_phase_start: float
    map_phase_end: float
    reduce_phase_start: float
    reduce_phase_end: float
    num_map_tasks: int
    num_reduce_tasks: int
    use_combiner: bool
    input_size_bytes: int
    intermediate_size_bytes: int
    output_size_bytes: int
    records_read: int = 0
    records_skipped: int = 0
    pairs_emitted: int = 0
    pairs_after_combine: int = 0
    records_written: int = 0
    combiner_reduction_ratio: float = 0.0
    peak_memory_bytes: int = 0

    @property
    def total_time_seconds(self) -> float:
        """Total job execution time in seconds."""
        return self.end_time - self.start_time

    @property
    def map_phase_time_seconds(self) -> float:
        """Map phase execution time in seconds."""
        return self.map_phase_end - self.map_phase_start

    @property
    def reduce_phase_time_seconds(self) -> float:
        """Reduce phase execution time in seconds."""
        return self.reduce_phase_end - self.reduce_phase_start

    def to_dict(self) -> dict:
        """Convert metrics to dictionary, including derived timings."""
        data = asdict(self)
        data['total_time_seconds'] = self.total_time_seconds
        data['map_phase_time_seconds'] = self.map_phase_time_seconds
        data['reduce_phase_time_seconds'] = self.reduce_phase_time_seconds
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


class MetricsCollector:
    """Collects and manages metrics for MapReduce jobs."""

    def __init__(self):
        self.job_metrics: Dict[str, JobMetrics] = {}
        self.process = psutil.Process()

    def _sample_memory(self, job_id: str):
        rss = self.process.memory_info().rss
        metrics = self.job_metrics[job_id]
        metrics.peak_memory_bytes = max(metrics.peak_memory_bytes, rss)

    def start_job(self, job_id: str, job_name: str, num_map_tasks: int, num_reduce_tasks: int,
                  use_combiner: bool, input_paths: List[str]):
        """Initialize metrics tracking for a new job."""
        now = time.time()
        self.job_metrics[job_id] = JobMetrics(
            job_id=job_id,
            job_name=job_name,
            start_time=now,
            end_time=0,
            map_phase_start=now,
            map_phase_end=0,
            reduce_phase_start=0,
            reduce_phase_end=0,
            num_map_tasks=num_map_tasks,
            num_reduce_tasks=num_reduce_tasks,
            use_combiner=use_combiner,
            input_size_bytes=_total_size(input_paths),
            intermediate_size_bytes=0,
            output_size_bytes=0
        )
        self._sample_memory(job_id)

    def record_map_result(self, job_id: str, result: dict):
        """Add one map task's counters to the job totals."""
        if job_id in self.job_metrics:
            metrics = self.job_metrics[job_id]
            metrics.records_read += result.get('records_read', 0)
            metrics.records_skipped += result.get('records_skipped', 0)
            metrics.pairs_emitted += result.get('pairs_emitted', 0)
            metrics.pairs_after_combine += result.get('pairs_after_combine', 0)

    def record_reduce_result(self, job_id: str, result: dict):
        if job_id in self.job_metrics:
            self.job_metrics[job_id].records_written += result.get('records_written', 0)

    def end_map_phase(self, job_id: str):
        """Mark the end of the map phase."""
        if job_id in self.job_metrics:
            self.job_metrics[job_id].map_phase_end = time.time()
            self._sample_memory(job_id)

    def start_reduce_phase(self, job_id: str, intermediate_dir: str):
        """Mark the start of the reduce phase and calculate intermediate data size."""
        if job_id in self.job_metrics:
            metrics = self.job_metrics[job_id]
            metrics.reduce_phase_start = time.time()

            intermediate_files = glob.glob(os.path.join(intermediate_dir, "map-*-reduce-*.jsonl"))
            metrics.intermediate_size_bytes = _total_size(intermediate_files)

            # Share of map output pairs removed by the combiner
            if metrics.pairs_emitted > 0:
                metrics.combiner_reduction_ratio = \
                    1.0 - (metrics.pairs_after_combine / metrics.pairs_emitted)

    def end_job(self, job_id: str, output_path: str):
        """Mark job completion and calculate output size."""
        if job_id in self.job_metrics:
            metrics = self.job_metrics[job_id]
            metrics.reduce_phase_end = time.time()
            metrics.end_time = time.time()
            metrics.output_size_bytes = _total_size(glob.glob(os.path.join(output_path, "part-*.jsonl")))
            self._sample_memory(job_id)

    def get_metrics(self, job_id: str) -> Optional[JobMetrics]:
        """Retrieve metrics for a specific job."""
        return self.job_metrics.get(job_id)

#!/usr/bin/env python3
"""
Job Manager
Handles job state management, task generation, and progress tracking
for each MapReduce round of the index pipeline
"""

import glob
import os
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class JobStatus(Enum):
    """Status of a MapReduce job"""
    PENDING = "pending"
    MAP_PHASE = "map_phase"
    SHUFFLE_PHASE = "shuffle_phase"
    REDUCE_PHASE = "reduce_phase"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskStatus(Enum):
    """Status of individual map or reduce tasks"""
    PENDING = "pending"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class JobSpec:
    """What to run: a job module over a set of input files"""
    job_id: str
    job: str
    input_paths: List[str]
    output_path: str
    intermediate_dir: str
    num_map_tasks: int
    num_reduce_tasks: int
    use_combiner: bool
    input_format: str = 'text'
    params: Dict = field(default_factory=dict)


@dataclass
class MapTask:
    """Represents a single map task"""
    task_id: int
    input_path: str
    start_offset: int
    end_offset: int
    status: TaskStatus = TaskStatus.PENDING
    error_message: str = ''


@dataclass
class ReduceTask:
    """Represents a single reduce task"""
    task_id: int
    partition_id: int
    intermediate_files: List[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    error_message: str = ''


@dataclass
class Job:
    """Represents a complete MapReduce job"""
    job_id: str
    job: str
    input_paths: List[str]
    output_path: str
    intermediate_dir: str
    num_map_tasks: int
    num_reduce_tasks: int
    use_combiner: bool
    input_format: str = 'text'
    params: Dict = field(default_factory=dict)
    status: JobStatus = JobStatus.PENDING
    map_tasks: List[MapTask] = field(default_factory=list)
    reduce_tasks: List[ReduceTask] = field(default_factory=list)
    start_time: float = 0.0
    end_time: float = 0.0


def split_counts(num_files: int, num_map_tasks: int) -> List[int]:
    """Spread num_map_tasks over num_files, at least one split per file"""
    base, extra = divmod(num_map_tasks, num_files)
    return [max(1, base + (1 if i < extra else 0)) for i in range(num_files)]


class JobManager:
    """Manages all MapReduce jobs and their lifecycle"""

    def __init__(self):
        self.jobs: Dict[str, Job] = {}
        self.lock = threading.Lock()

    def create_job(self, job_spec: JobSpec) -> Job:
        """Create new job from specification"""
        with self.lock:
            job = Job(
                job_id=job_spec.job_id,
                job=job_spec.job,
                input_paths=list(job_spec.input_paths),
                output_path=job_spec.output_path,
                intermediate_dir=job_spec.intermediate_dir,
                num_map_tasks=job_spec.num_map_tasks,
                num_reduce_tasks=job_spec.num_reduce_tasks,
                use_combiner=job_spec.use_combiner,
                input_format=job_spec.input_format,
                params=dict(job_spec.params),
                start_time=time.time()
            )
            self.jobs[job.job_id] = job
            return job

    def generate_map_tasks(self, job: Job) -> List[MapTask]:
        """
        Split the input files into byte-range map tasks

        Empty files get no task. A file is never split into more chunks
        than it has bytes.
        """
        map_tasks = []
        if not job.input_paths:
            job.map_tasks = map_tasks
            return map_tasks

        for input_path, num_splits in zip(job.input_paths, split_counts(len(job.input_paths), job.num_map_tasks)):
            file_size = os.path.getsize(input_path)
            if file_size == 0:
                continue
            num_splits = min(num_splits, file_size)
            chunk_size = file_size // num_splits

            for i in range(num_splits):
                start = i * chunk_size
                end = file_size if i == num_splits - 1 else (i + 1) * chunk_size
                map_tasks.append(MapTask(
                    task_id=len(map_tasks),
                    input_path=input_path,
                    start_offset=start,
                    end_offset=end
                ))

        job.map_tasks = map_tasks
        return map_tasks

    def generate_reduce_tasks(self, job: Job) -> List[ReduceTask]:
        """Create R reduce tasks with intermediate file assignments"""
        reduce_tasks = []
        for partition_id in range(job.num_reduce_tasks):
            intermediate_pattern = os.path.join(job.intermediate_dir, f"map-*-reduce-{partition_id}.jsonl")
            intermediate_files = sorted(glob.glob(intermediate_pattern))

            reduce_tasks.append(ReduceTask(
                task_id=partition_id,
                partition_id=partition_id,
                intermediate_files=intermediate_files
            ))

        job.reduce_tasks = reduce_tasks
        return reduce_tasks

    def set_job_status(self, job_id: str, status: JobStatus):
        with self.lock:
            job = self.jobs.get(job_id)
            if job:
                job.status = status
                if status in (JobStatus.COMPLETED, JobStatus.FAILED):
                    job.end_time = time.time()

    def get_next_pending_map_task(self, job_id: str) -> Optional[MapTask]:
        """Get next pending map task for assignment"""
        with self.lock:
            job = self.jobs.get(job_id)
            if not job:
                return None

            for task in job.map_tasks:
                if task.status == TaskStatus.PENDING:
                    task.status = TaskStatus.ASSIGNED
                    return task
            return None

    def get_next_pending_reduce_task(self, job_id: str) -> Optional[ReduceTask]:
        """Get next pending reduce task for assignment"""
        with self.lock:
            job = self.jobs.get(job_id)
            if not job:
                return None

            for task in job.reduce_tasks:
                if task.status == TaskStatus.PENDING:
                    task.status = TaskStatus.ASSIGNED
                    return task
            return None

    def mark_map_task_completed(self, job_id: str, task_id: int):
        """Mark map task as completed"""
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.map_tasks):
                job.map_tasks[task_id].status = TaskStatus.COMPLETED

                # Check if all map tasks completed
                if all(t.status == TaskStatus.COMPLETED for t in job.map_tasks):
                    job.status = JobStatus.SHUFFLE_PHASE

    def mark_reduce_task_completed(self, job_id: str, task_id: int):
        """Mark reduce task as completed"""
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.reduce_tasks):
                job.reduce_tasks[task_id].status = TaskStatus.COMPLETED

                # Check if all reduce tasks completed
                if all(t.status == TaskStatus.COMPLETED for t in job.reduce_tasks):
                    job.status = JobStatus.COMPLETED
                    job.end_time = time.time()

    def mark_task_failed(self, job_id: str, task_type: str, task_id: int, error_message: str):
        """Mark a map or reduce task as failed, which fails the whole job"""
        with self.lock:
            job = self.jobs.get(job_id)
            if not job:
                return

            tasks = job.map_tasks if task_type == 'map' else job.reduce_tasks
            if task_id < len(tasks):
                tasks[task_id].status = TaskStatus.FAILED
                tasks[task_id].error_message = error_message
            job.status = JobStatus.FAILED
            job.end_time = time.time()

    def get_job_status(self, job_id: str) -> Optional[Dict]:
        """Get current job status with progress"""
        with self.lock:
            job = self.jobs.get(job_id)
            if not job:
                return None

            map_completed = sum(1 for t in job.map_tasks if t.status == TaskStatus.COMPLETED)
            reduce_completed = sum(1 for t in job.reduce_tasks if t.status == TaskStatus.COMPLETED)
            total_tasks = len(job.map_tasks) + len(job.reduce_tasks)

            progress = int(((map_completed + reduce_completed) / total_tasks * 100)) if total_tasks > 0 else 0

            return {
                'status': job.status.value,
                'progress': progress,
                'map_completed': map_completed,
                'map_total': len(job.map_tasks),
                'reduce_completed': reduce_completed,
                'reduce_total': len(job.reduce_tasks)
            }

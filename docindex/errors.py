"""
Exception types raised by docindex
"""


class DocIndexError(Exception):
    """Base class for all docindex errors"""


class ParseError(DocIndexError):
    """A record could not be split into a document ID and a word list"""

    def __init__(self, record: str, reason: str):
        self.record = record
        self.reason = reason
        super().__init__(f"{reason}: {record!r}")


class ConfigError(DocIndexError):
    """Pipeline configuration is missing or invalid"""


class JobFailedError(DocIndexError):
    """A map or reduce task failed, so the whole job failed"""

    def __init__(self, job_id: str, task_type: str, task_id: int, error_message: str):
        self.job_id = job_id
        self.task_type = task_type
        self.task_id = task_id
        self.error_message = error_message
        super().__init__(f"Job {job_id}: {task_type} task {task_id} failed: {error_message}")


class IntermediateDataError(DocIndexError):
    """A record in an intermediate file between rounds could not be decoded"""

    def __init__(self, path: str, location: str, reason: str):
        self.path = path
        self.location = location
        self.reason = reason
        super().__init__(f"{path} ({location}): {reason}")

"""
Utility modules for the restore assistant.
"""

from .progress import JobProgressTracker
from .export import bound_depth, export_job, job_record

__all__ = [
    'JobProgressTracker',
    'bound_depth',
    'export_job',
    'job_record'
]

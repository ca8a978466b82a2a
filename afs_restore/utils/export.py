"""
Job Export

Writes the final job record to disk as JSON. Nesting deeper than the
configured depth is collapsed to its string form.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from ..exceptions import JobExportError
from ..models.entities import RestoreJob

logger = logging.getLogger(__name__)


def bound_depth(value: Any, max_depth: int, depth: int = 1) -> Any:
    """
    Copy a JSON-like value, collapsing containers nested deeper than `max_depth`.

    The top-level container is at depth 1.

    Example:
        ```python
        bound_depth({"a": {"b": {"c": 1}}}, max_depth=2)
        # {'a': {'b': "{'c': 1}"}}
        ```
    """
    if isinstance(value, dict):
        if depth > max_depth:
            return str(value)
        return {str(k): bound_depth(v, max_depth, depth + 1) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        if depth > max_depth:
            return str(list(value))
        return [bound_depth(v, max_depth, depth + 1) for v in value]
    return value


def job_record(job: RestoreJob) -> Dict[str, Any]:
    """JSON-compatible record of a job, including the raw service details."""
    record = job.model_dump(mode="json")
    record["duration_seconds"] = job.duration_seconds
    return record


def export_job(
    job: RestoreJob,
    path: Union[str, Path],
    max_depth: int = 10,
    indent: int = 2
) -> Path:
    """
    Write a job record to a JSON file, creating parent directories.

    Args:
        job: Job to export
        path: Destination file
        max_depth: Maximum nesting depth kept
        indent: JSON indentation

    Returns:
        Path of the written file

    Raises:
        JobExportError: If the record cannot be serialized or written
    """
    export_path = Path(path).expanduser()
    record = bound_depth(job_record(job), max_depth)

    try:
        export_path.parent.mkdir(parents=True, exist_ok=True)
        with open(export_path, "w", encoding="utf-8") as f:
            json.dump(record, f, indent=indent, default=str)
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to export job {job.job_id} to {export_path}: {e}")
        raise JobExportError(
            f"Failed to write job record: {e}",
            job_id=job.job_id,
            export_path=str(export_path)
        ) from e

    logger.info(f"Exported job {job.job_id} to {export_path}")
    return export_path

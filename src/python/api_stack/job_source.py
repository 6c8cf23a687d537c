"""Code source resolution for scheduled jobs."""

import logging
from dataclasses import fields
from pathlib import Path
from typing import Callable, Optional

from .consts import PROJECT_ROOT
from .errors import ConfigurationError
from .models import (
    BucketCode,
    InlineCode,
    JobCodeSource,
    LocalCode,
    LocalImageCode,
    RegistryImageCode,
    ResolvedJob,
    ResolvedJobCode,
    ScheduledJob,
)

logger = logging.getLogger(__name__)

S3_SCHEME = "s3://"

# Runtime family -> source file extension for inline code
INLINE_EXTENSIONS = {
    "python": ".py",
    "nodejs": ".js",
    "ruby": ".rb",
}


def inline_filename(runtime: str, entrypoint: str) -> str:
    """File name inline code is packaged under.

    The module part of the entrypoint names the file:
    ("python3.11", "index.handler") -> "index.py"

    Raises:
        ConfigurationError: If the runtime can't run inline code
    """
    for family, extension in INLINE_EXTENSIONS.items():
        if runtime.startswith(family):
            module = entrypoint.rsplit(".", 1)[0]
            return f"{module}{extension}"
    raise ConfigurationError(f"inline code is not supported for runtime '{runtime}'")


def parse_s3_path(uri: str) -> tuple[str, str]:
    """Split an S3 URI into bucket name and object key.

    The first path segment is the bucket; everything after it, rejoined
    with '/', is the key:

        s3://my-bucket/jobs/handler.zip -> ("my-bucket", "jobs/handler.zip")

    Args:
        uri: Object URI, with or without the s3:// scheme

    Returns:
        (bucket, key)

    Raises:
        ConfigurationError: If the bucket or key is empty
    """
    path = uri[len(S3_SCHEME):] if uri.startswith(S3_SCHEME) else uri
    bucket, _, key = path.partition("/")
    if not bucket or not key:
        raise ConfigurationError(
            f"Invalid bucket path '{uri}': expected s3://<bucket>/<key>"
        )
    return bucket, key


def _resolve_under(project_root: Path) -> Callable[[str], str]:
    return lambda value: str((project_root / value.lstrip("/")).resolve())


def resolve_job_code(source: JobCodeSource, project_root: Path = PROJECT_ROOT) -> ResolvedJobCode:
    """Resolve the single code source of a job.

    Args:
        source: Selector with up to five mutually exclusive fields
        project_root: Directory local paths are relative to

    Returns:
        The resolved code source, tagged with its strategy

    Raises:
        ConfigurationError: If zero or several fields are set, or a value
            is not a string
    """
    resolve_path = _resolve_under(project_root)
    strategies: dict[str, Callable[[str], ResolvedJobCode]] = {
        "local": lambda value: LocalCode(path=resolve_path(value)),
        "local_image": lambda value: LocalImageCode(path=resolve_path(value)),
        "from_bucket": lambda value: BucketCode(*parse_s3_path(value)),
        "ecr_image": lambda value: RegistryImageCode(reference=value),
        "inline": lambda value: InlineCode(code=value),
    }

    count = 0
    resolved: Optional[ResolvedJobCode] = None
    for source_field in fields(source):
        value = getattr(source, source_field.name)
        if not value:
            continue
        if not isinstance(value, str):
            raise ConfigurationError(
                f"job code source '{source_field.name}' must be a string, "
                f"got {type(value).__name__}"
            )
        count += 1
        resolved = strategies[source_field.name](value)

    if count != 1:
        raise ConfigurationError(
            f"a job must have exactly one code source (got {count})"
        )
    if resolved is None:
        raise ConfigurationError("a job must have exactly one code source (none resolved)")

    return resolved


def resolve_jobs(
    jobs: list[ScheduledJob], project_root: Path = PROJECT_ROOT
) -> tuple[ResolvedJob, ...]:
    """Resolve the code source of every scheduled job, in order.

    Raises:
        ConfigurationError: On duplicate job names or an invalid code source
    """
    seen: set[str] = set()
    resolved = []
    for job in jobs:
        if job.name in seen:
            raise ConfigurationError(f"Duplicate scheduled job name: '{job.name}'")
        seen.add(job.name)

        try:
            code = resolve_job_code(job.source, project_root)
            if isinstance(code, InlineCode):
                inline_filename(job.runtime, job.entrypoint)
        except ConfigurationError as e:
            raise ConfigurationError(f"Job '{job.name}': {e}") from e

        logger.debug("Job %s resolved with %s source", job.name, code.strategy.value)
        resolved.append(
            ResolvedJob(
                name=job.name,
                entrypoint=job.entrypoint,
                schedule=job.schedule,
                runtime=job.runtime,
                code=code,
            )
        )
    return tuple(resolved)

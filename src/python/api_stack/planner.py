"""Resolution pipeline: service definition -> ResolvedPlan."""

import logging
from pathlib import Path
from typing import Callable, Protocol

from .consts import API_TARGET_GROUP, PROJECT_ROOT
from .defaults import apply_defaults
from .errors import ConfigurationError
from .image_resolver import docker_available, resolve_image
from .job_source import resolve_jobs
from .models import ResolvedPlan, ServiceConfig
from .scaling import compile_scaling_policies, scalable_target
from .topology import resolve_cdn, resolve_cluster, resolve_network

logger = logging.getLogger(__name__)


class ProvisioningBackend(Protocol):
    """Turns a resolved plan into real infrastructure."""

    def provision(self, plan: ResolvedPlan) -> object: ...


def _check_shape(config: ServiceConfig) -> None:
    if not config.service_name:
        raise ConfigurationError("service_name must not be empty")
    if config.cpu_reservation <= 0 or config.memory_reservation <= 0:
        raise ConfigurationError(
            "cpu and memory reservations must be positive "
            f"(got cpu={config.cpu_reservation}, memory={config.memory_reservation})"
        )

    mixture = config.capacity_mixture
    if mixture.spot < 0 or mixture.ondemand < 0 or mixture.spot + mixture.ondemand == 0:
        raise ConfigurationError(
            "capacity weights must be non-negative with a positive sum "
            f"(got spot={mixture.spot}, ondemand={mixture.ondemand})"
        )


def resolve_plan(
    config: ServiceConfig,
    toolchain_check: Callable[[], bool] = docker_available,
    project_root: Path = PROJECT_ROOT,
) -> ResolvedPlan:
    """Normalize, validate and resolve a service definition.

    Fails fast: the first invalid feature group raises and no plan is
    produced. The input config is never mutated.

    Args:
        config: Service definition, possibly with unset optional fields
        toolchain_check: Container toolchain availability check
        project_root: Directory local paths are relative to

    Returns:
        Fully resolved, immutable plan

    Raises:
        ConfigurationError: On any invalid or inconsistent field
        ParseError: If container envs are a malformed serialized blob
    """
    normalized = apply_defaults(config)
    _check_shape(normalized)

    image = resolve_image(
        normalized.container.image, toolchain_check=toolchain_check, project_root=project_root
    )
    jobs = resolve_jobs(normalized.jobs, project_root=project_root)

    target = scalable_target(normalized.scaling)
    # The API service is always load balanced, so its target group exists
    actions = compile_scaling_policies(normalized.scaling.policies, target, API_TARGET_GROUP)

    network = resolve_network(normalized)
    cluster = resolve_cluster(normalized)
    cdn = resolve_cdn(normalized.cloudfront)

    logger.info(
        "Resolved plan for %s: %d scaling action(s), %d job(s), cdn=%s",
        normalized.service_name,
        len(actions),
        len(jobs),
        "yes" if cdn else "no",
    )
    return ResolvedPlan(
        config=normalized,
        image=image,
        jobs=jobs,
        scalable_target=target,
        scaling_actions=actions,
        network=network,
        cluster=cluster,
        cdn=cdn,
    )

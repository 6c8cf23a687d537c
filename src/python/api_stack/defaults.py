"""Fill unset optional fields of a service definition."""

import copy
import json
import logging
from dataclasses import replace

from .consts import (
    DEFAULT_API_CONTAINER_NAME,
    DEFAULT_API_CONTAINER_PORT,
    DEFAULT_CLUSTER_NAME,
    DEFAULT_CONTAINER_ESSENTIAL,
    DEFAULT_ONDEMAND_WEIGHT,
    DEFAULT_SPOT_WEIGHT,
)
from .errors import ParseError
from .models import CapacityMixture, ContainerConfig, ExistingResourceSelection, ServiceConfig

logger = logging.getLogger(__name__)


def parse_envs(blob: str) -> dict[str, str]:
    """Parse a serialized environment variable blob.

    Args:
        blob: JSON object text, e.g. '{"LOG_LEVEL": "info"}'

    Returns:
        Mapping of variable name to string value

    Raises:
        ParseError: If the blob is not valid JSON or not a JSON object
    """
    try:
        parsed = json.loads(blob)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid container environment JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise ParseError(
            f"Container environment must be a JSON object, got {type(parsed).__name__}"
        )

    return _stringify_envs(parsed)


def _stringify_envs(envs: dict) -> dict[str, str]:
    # ECS only accepts string values; YAML booleans keep their YAML spelling
    return {
        str(key): str(value).lower() if isinstance(value, bool) else str(value)
        for key, value in envs.items()
    }


def _apply_container_defaults(container: ContainerConfig) -> ContainerConfig:
    envs = container.envs
    if isinstance(envs, str):
        envs = parse_envs(envs)
    elif isinstance(envs, dict):
        envs = _stringify_envs(envs)
    elif envs is not None:
        raise ParseError(
            f"Container environment must be a mapping or JSON text, got {type(envs).__name__}"
        )

    return replace(
        container,
        name=container.name if container.name is not None else DEFAULT_API_CONTAINER_NAME,
        port=container.port if container.port is not None else DEFAULT_API_CONTAINER_PORT,
        essential=(
            container.essential
            if container.essential is not None
            else DEFAULT_CONTAINER_ESSENTIAL
        ),
        envs=envs,
    )


def apply_defaults(config: ServiceConfig) -> ServiceConfig:
    """Return a copy of config with every unset optional field populated.

    Fields the caller set (including an explicit False) are kept as-is.
    Applying this twice yields the same result as applying it once.

    Raises:
        ParseError: If container envs are a malformed serialized blob
    """
    config = copy.deepcopy(config)

    normalized = replace(
        config,
        use_logging=config.use_logging if config.use_logging is not None else False,
        use_all_azs=config.use_all_azs if config.use_all_azs is not None else False,
        capacity_mixture=config.capacity_mixture
        or CapacityMixture(spot=DEFAULT_SPOT_WEIGHT, ondemand=DEFAULT_ONDEMAND_WEIGHT),
        cluster_name=config.cluster_name or DEFAULT_CLUSTER_NAME,
        attach_existing=config.attach_existing or ExistingResourceSelection(),
        container=_apply_container_defaults(config.container),
    )

    logger.debug("Applied defaults to service %s", normalized.service_name)
    return normalized

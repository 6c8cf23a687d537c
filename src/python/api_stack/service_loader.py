"""Service definition loader for YAML files."""

from pathlib import Path
from typing import Optional

import yaml

from . import consts
from .errors import ParseError
from .models import (
    CapacityMixture,
    CloudfrontConfig,
    ContainerConfig,
    ContainerImageConfig,
    ExistingResourceSelection,
    JobCodeSource,
    ScalerConfig,
    ScalingConfig,
    ScalingMetric,
    ScalingPolicy,
    ScheduledJob,
    ServiceConfig,
    ZoneCreation,
    ZoneImport,
)


class ServiceNotFoundError(Exception):
    """Raised when a service cannot be found."""

    pass


class ServiceParseError(ParseError):
    """Raised when a service.yaml is malformed."""

    pass


def discover_services() -> list[str]:
    """Return list of available service names.

    Returns:
        Sorted list of service directory names that contain service.yaml
    """
    services = []
    if not consts.SERVICES_BASE_PATH.exists():
        return services

    for service_dir in consts.SERVICES_BASE_PATH.iterdir():
        if service_dir.is_dir() and (service_dir / "service.yaml").exists():
            services.append(service_dir.name)
    return sorted(services)


def get_service_path(service_name: str) -> Path:
    """Get the path to a service's service.yaml file.

    Args:
        service_name: Name of the service directory

    Returns:
        Path to service.yaml

    Raises:
        ServiceNotFoundError: If service directory or service.yaml doesn't exist
    """
    path = consts.SERVICES_BASE_PATH / service_name / "service.yaml"
    if not path.exists():
        raise ServiceNotFoundError(f"Service '{service_name}' not found at {path}")
    return path


def _mapping(value, where: str, required: bool = True) -> Optional[dict]:
    """Return value if it is a mapping block; None for an absent optional block."""
    if value is None and not required:
        return None
    if not isinstance(value, dict):
        raise ServiceParseError(
            f"Expected a mapping for '{where}', got {type(value).__name__}"
        )
    return value


def _parse_metric(value: str) -> ScalingMetric:
    try:
        return ScalingMetric(str(value).lower())
    except ValueError:
        supported = ", ".join(m.value for m in ScalingMetric)
        raise ServiceParseError(
            f"Unsupported scaling metric: {value}. Supported metrics: {supported}"
        ) from None


def _parse_policy(data: dict) -> ScalingPolicy:
    """Parse a scaling policy.

    Args:
        data: Policy dict, e.g. {"metric": "cpu", "scaling": {...}}

    Returns:
        ScalingPolicy dataclass
    """
    data = _mapping(data, "scaling.policies[]")
    scaling = _mapping(data.get("scaling"), "scaling.policies[].scaling", required=False)

    return ScalingPolicy(
        metric=_parse_metric(data["metric"]),
        scaling=ScalerConfig(**scaling) if scaling else None,
    )


def _parse_scaling(data: dict) -> ScalingConfig:
    data = _mapping(data, "scaling")
    return ScalingConfig(
        desired_count=data["desired_count"],
        max_count=data["max_count"],
        min_count=data["min_count"],
        policies=[_parse_policy(p) for p in data.get("policies") or []],
    )


def _parse_container(data: dict) -> ContainerConfig:
    data = _mapping(data, "container")
    image = _mapping(data.get("image"), "container.image", required=False) or {}
    return ContainerConfig(
        image=ContainerImageConfig(
            local=image.get("local"),
            registry=image.get("registry"),
        ),
        name=data.get("name"),
        port=data.get("port"),
        essential=data.get("essential"),
        envs=data.get("envs"),
    )


def _parse_cloudfront(data: Optional[dict]) -> Optional[CloudfrontConfig]:
    """Parse the optional CloudFront block.

    Zone exclusivity is not checked here; the topology resolver owns it.
    """
    data = _mapping(data, "cloudfront", required=False)
    if not data:
        return None

    external = _mapping(data.get("external_zone"), "cloudfront.external_zone", required=False)
    new = _mapping(data.get("new_zone"), "cloudfront.new_zone", required=False)

    return CloudfrontConfig(
        domain_name=data["domain_name"],
        certificate_arn=data.get("certificate_arn"),
        external_zone=(
            ZoneImport(zone_name=external["zone_name"], zone_id=external["zone_id"])
            if external is not None
            else None
        ),
        new_zone=ZoneCreation(zone_name=new["zone_name"]) if new is not None else None,
    )


def _parse_job(data: dict) -> ScheduledJob:
    data = _mapping(data, "jobs[]")
    source = _mapping(data.get("source"), f"jobs[{data.get('name')}].source", required=False)
    return ScheduledJob(
        name=data["name"],
        entrypoint=data["entrypoint"],
        schedule=data["schedule"],
        runtime=data["runtime"],
        source=JobCodeSource(**(source or {})),
    )


def parse_service(data: dict) -> ServiceConfig:
    """Build a ServiceConfig from parsed service.yaml data.

    Args:
        data: Top-level service.yaml mapping

    Returns:
        ServiceConfig with unset optional fields left as None

    Raises:
        ServiceParseError: If required keys are missing or a block has the wrong shape
    """
    try:
        capacity = _mapping(data.get("capacity"), "capacity", required=False)
        attach = _mapping(data.get("attach_existing"), "attach_existing", required=False)
        reservations = _mapping(data["reservations"], "reservations")

        return ServiceConfig(
            service_name=data["id"],
            region=data["region"],
            stack_id=data.get("stack_id", data["id"]),
            container=_parse_container(data["container"]),
            scaling=_parse_scaling(data["scaling"]),
            cpu_reservation=reservations["cpu"],
            memory_reservation=reservations["memory"],
            capacity_mixture=CapacityMixture(**capacity) if capacity else None,
            attach_existing=ExistingResourceSelection(**attach) if attach else None,
            cloudfront=_parse_cloudfront(data.get("cloudfront")),
            jobs=[_parse_job(j) for j in data.get("jobs") or []],
            cluster_name=data.get("cluster_name"),
            use_logging=data.get("use_logging"),
            use_all_azs=data.get("use_all_azs"),
        )
    except KeyError as e:
        raise ServiceParseError(f"Missing required key: {e}") from e
    except TypeError as e:
        raise ServiceParseError(f"Malformed service definition: {e}") from e


def load_service(service_name: str) -> ServiceConfig:
    """Load and parse a service definition.

    Args:
        service_name: Name of the service to load

    Returns:
        ServiceConfig with parsed configuration

    Raises:
        ServiceNotFoundError: If service doesn't exist
        ServiceParseError: If YAML is invalid or malformed
    """
    path = get_service_path(service_name)

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ServiceParseError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ServiceParseError(f"Expected a mapping at the top of {path}")

    return parse_service(data)

"""Pulumi Automation API orchestration for deploying services."""

import logging
from typing import Callable

from pulumi import automation as auto

from .consts import PROJECT_ROOT
from .image_resolver import docker_available
from .models import ResolvedPlan
from .planner import resolve_plan
from .service_loader import load_service
from .settings import DeploySettings, get_deploy_settings
from .stack import PulumiBackend

logger = logging.getLogger(__name__)

# Pulumi project configuration
PROJECT_NAME = "api-stack"

# Working directory for Pulumi operations
WORK_DIR = PROJECT_ROOT / ".pulumi-work"


class DeployerError(Exception):
    """Raised when deployment operations fail."""

    pass


def _ensure_work_dir() -> None:
    """Ensure the Pulumi working directory exists."""
    WORK_DIR.mkdir(parents=True, exist_ok=True)


def plan_service(
    service_name: str, toolchain_check: Callable[[], bool] = docker_available
) -> ResolvedPlan:
    """Load a service definition and resolve it into a plan.

    No cloud calls are made.

    Args:
        service_name: Name of the service to plan
        toolchain_check: Container toolchain availability check

    Returns:
        ResolvedPlan for the service

    Raises:
        ServiceNotFoundError: If service doesn't exist
        ServiceParseError: If service.yaml is malformed
        ConfigurationError: If the definition is invalid
    """
    config = load_service(service_name)
    return resolve_plan(config, toolchain_check=toolchain_check)


def _create_pulumi_program(plan: ResolvedPlan) -> Callable[[], None]:
    """Create a Pulumi program function for the given plan.

    Args:
        plan: Resolved service plan

    Returns:
        A callable that defines the Pulumi infrastructure
    """

    def pulumi_program() -> None:
        PulumiBackend().provision(plan)

    return pulumi_program


def _get_or_create_stack(
    stack_name: str,
    region: str,
    settings: DeploySettings,
    program: Callable[[], None],
) -> auto.Stack:
    """Get or create a Pulumi stack.

    Args:
        stack_name: Stack name (one per service)
        region: AWS region resources are created in
        settings: Pulumi backend and AWS configuration
        program: Inline Pulumi program

    Returns:
        Pulumi Stack instance
    """
    _ensure_work_dir()

    # State lives in the configured backend, not the local work dir
    project_settings = auto.ProjectSettings(
        name=PROJECT_NAME,
        runtime="python",
        backend=auto.ProjectBackend(url=settings.backend),
    )

    stack = auto.create_or_select_stack(
        stack_name=stack_name,
        project_name=PROJECT_NAME,
        program=program,
        opts=auto.LocalWorkspaceOptions(
            work_dir=str(WORK_DIR),
            project_settings=project_settings,
            env_vars=settings.workspace_env(region),
        ),
    )
    stack.set_config("aws:region", auto.ConfigValue(value=region))

    return stack


def _stack_for_plan(plan: ResolvedPlan) -> auto.Stack:
    settings = get_deploy_settings()
    return _get_or_create_stack(
        plan.config.stack_id,
        plan.config.region,
        settings,
        _create_pulumi_program(plan),
    )


def preview_service(service_name: str, on_output: Callable[[str], None] = print) -> auto.PreviewResult:
    """Preview changes for a service without applying them.

    Args:
        service_name: Name of the service to preview
        on_output: Callback for output messages (default: print)

    Returns:
        PreviewResult containing change summary

    Raises:
        DeployerError: If preview fails
    """
    # Resolve before touching Pulumi so invalid definitions never reach it
    plan = plan_service(service_name)
    stack = _stack_for_plan(plan)

    try:
        return stack.preview(on_output=on_output)
    except auto.CommandError as e:
        raise DeployerError(f"Preview of {service_name} failed: {e}") from e


def deploy_service(service_name: str, on_output: Callable[[str], None] = print) -> auto.UpResult:
    """Deploy a service to AWS.

    Args:
        service_name: Name of the service to deploy
        on_output: Callback for output messages (default: print)

    Returns:
        UpResult containing deployment outputs

    Raises:
        DeployerError: If deployment fails
    """
    plan = plan_service(service_name)
    stack = _stack_for_plan(plan)

    logger.info("Deploying %s to stack %s", service_name, plan.config.stack_id)
    try:
        return stack.up(on_output=on_output)
    except auto.CommandError as e:
        raise DeployerError(f"Deployment of {service_name} failed: {e}") from e


def destroy_service(service_name: str, on_output: Callable[[str], None] = print) -> auto.DestroyResult:
    """Destroy a deployed service.

    The definition is loaded only for its stack name and region, so a
    service whose configuration no longer resolves can still be torn down.

    Args:
        service_name: Name of the service to destroy
        on_output: Callback for output messages (default: print)

    Returns:
        DestroyResult from the operation

    Raises:
        DeployerError: If destruction fails
    """
    config = load_service(service_name)
    settings = get_deploy_settings()
    stack = _get_or_create_stack(config.stack_id, config.region, settings, lambda: None)

    try:
        return stack.destroy(on_output=on_output)
    except auto.CommandError as e:
        raise DeployerError(f"Destroy of {service_name} failed: {e}") from e

"""Click CLI commands for api_stack."""

import logging
import sys

import click

from .deployer import DeployerError, deploy_service, destroy_service, plan_service, preview_service
from .errors import ConfigurationError, ParseError
from .models import ResolvedPlan
from .service_loader import ServiceNotFoundError, discover_services
from .settings import SettingsError

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v info, -vv debug)")
def cli(verbose: int) -> None:
    """Manage containerized API services on AWS."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _fail(prefix: str, error: Exception) -> None:
    click.echo(f"{prefix}: {error}", err=True)
    sys.exit(1)


def _run_or_exit(action: str, func, service: str):
    """Run a service operation, mapping known errors to exit status 1."""
    try:
        return func(service)
    except ServiceNotFoundError as e:
        _fail("Error", e)
    except ParseError as e:
        _fail("Parse error", e)
    except ConfigurationError as e:
        _fail("Configuration error", e)
    except SettingsError as e:
        _fail("Settings error", e)
    except DeployerError as e:
        _fail(f"{action} failed", e)
    except Exception as e:
        logger.debug("%s of %s failed", action, service, exc_info=True)
        _fail(f"{action} failed", e)


def _echo_available(command: str) -> None:
    services = discover_services()
    if services:
        click.echo("Available services:")
        for svc in services:
            click.echo(f"  - {svc}")
        click.echo(f"\nRun: apistack {command} <service> to {command} a specific service")
    else:
        click.echo("No services found in services/")


def _each_service(verb: str, func, printer) -> None:
    """Run func over every discovered service, reporting failures and carrying on."""
    services = discover_services()
    if not services:
        click.echo("No services found.", err=True)
        sys.exit(1)

    failed = []
    for svc in services:
        click.echo(f"\n=== {verb} {svc} ===")
        try:
            printer(func(svc))
        except Exception as e:
            logger.debug("%s of %s failed", verb, svc, exc_info=True)
            click.echo(f"Error: {e}", err=True)
            failed.append(svc)

    if failed:
        click.echo(f"\n{len(failed)} of {len(services)} failed: {', '.join(failed)}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("service", required=False)
def validate(service: str | None) -> None:
    """Resolve a service definition without touching the cloud."""
    if not service:
        _echo_available("validate")
        return

    plan = _run_or_exit("Validation", plan_service, service)
    _print_plan(plan)


@cli.command()
@click.argument("service", required=False)
@click.option("--all", "preview_all", is_flag=True, help="Preview all services")
def preview(service: str | None, preview_all: bool) -> None:
    """Preview infrastructure changes for SERVICE, or for every service with --all."""
    if preview_all:
        _each_service("Previewing", preview_service, _print_change_summary)
        return

    if not service:
        _echo_available("preview")
        return

    click.echo(f"Previewing service: {service}")
    result = _run_or_exit("Preview", preview_service, service)
    _print_change_summary(result)


@cli.command()
@click.argument("service", required=False)
@click.option("--all", "deploy_all", is_flag=True, help="Deploy all services")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def deploy(service: str | None, deploy_all: bool, yes: bool) -> None:
    """Deploy SERVICE to AWS, or every service with --all."""
    if deploy_all:
        if not yes:
            click.confirm(f"Deploy {len(discover_services())} services?", abort=True)
        _each_service("Deploying", deploy_service, _print_deploy_result)
        return

    if not service:
        _echo_available("deploy")
        return

    if not yes:
        click.confirm(f"Deploy service '{service}'?", abort=True)

    click.echo(f"Deploying service: {service}")
    result = _run_or_exit("Deployment", deploy_service, service)
    _print_deploy_result(result)


@cli.command()
@click.argument("service", required=False)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def destroy(service: str | None, yes: bool) -> None:
    """Destroy a service's deployed infrastructure."""
    if not service:
        _echo_available("destroy")
        return

    if not yes:
        click.confirm(
            f"Destroy service '{service}'? This cannot be undone.", abort=True
        )

    click.echo(f"Destroying service: {service}")
    result = _run_or_exit("Destruction", destroy_service, service)
    click.echo("\nDestruction complete.")
    if result.summary.result == "succeeded":
        click.echo("All resources have been removed.")


@cli.command("list")
def list_services() -> None:
    """List all discovered services."""
    services = discover_services()
    if services:
        click.echo("Discovered services:")
        for svc in services:
            click.echo(f"  - {svc}")
    else:
        click.echo("No services found in services/")


def _print_plan(plan: ResolvedPlan) -> None:
    """Print a summary of a resolved plan."""
    config = plan.config
    click.echo(f"Service: {config.service_name} ({config.region}, stack {config.stack_id})")
    click.echo(f"  image: {plan.image}")
    click.echo(f"  network: {plan.network}")
    click.echo(f"  cluster: {plan.cluster}")
    click.echo(
        f"  tasks: {config.scaling.desired_count} desired, "
        f"{plan.scalable_target.min_capacity}..{plan.scalable_target.max_capacity}"
    )
    for action in plan.scaling_actions:
        click.echo(
            f"  scaling {action.name}: target={action.target_utilization_percent}% "
            f"in={action.scale_in_cooldown_seconds}s out={action.scale_out_cooldown_seconds}s"
            + (f" requests={action.requests_per_target}" if action.requests_per_target else "")
        )
    if plan.cdn:
        click.echo(f"  cdn: {plan.cdn.domain_name} via {plan.cdn.zone}")
    for job in plan.jobs:
        click.echo(f"  job {job.name}: {job.schedule} ({job.code.strategy.value})")


def _print_change_summary(result) -> None:
    """Print a summary of changes from preview."""
    summary = result.change_summary
    if summary:
        click.echo("\nChange summary:")
        for change_type, count in summary.items():
            if count > 0:
                click.echo(f"  {change_type}: {count}")
    else:
        click.echo("No changes detected.")


def _print_deploy_result(result) -> None:
    """Print deployment result."""
    if result.outputs:
        click.echo("\nOutputs:")
        for key, value in result.outputs.items():
            click.echo(f"  {key}: {value.value}")
    else:
        click.echo("\nDeployment complete.")

"""Container image source resolution for the API service."""

import logging
import subprocess
from pathlib import Path
from typing import Callable

from .consts import TOOLCHAIN_CHECK_TIMEOUT_SECONDS, PROJECT_ROOT
from .errors import ConfigurationError, ToolchainError
from .models import ContainerImageConfig, LocalBuildImage, RegistryImage, ResolvedImage

logger = logging.getLogger(__name__)


def docker_available() -> bool:
    """Check whether a local docker toolchain answers `docker version`.

    Returns:
        True if docker responded successfully

    Raises:
        ToolchainError: If docker is missing, fails, or times out
    """
    try:
        subprocess.run(
            ["docker", "version"],
            capture_output=True,
            text=True,
            check=True,
            timeout=TOOLCHAIN_CHECK_TIMEOUT_SECONDS,
        )
        return True
    except subprocess.CalledProcessError as e:
        raise ToolchainError(f"docker version failed: {e.stderr.strip()}") from e
    except subprocess.TimeoutExpired as e:
        raise ToolchainError(f"docker version timed out after {e.timeout}s") from e
    except FileNotFoundError:
        raise ToolchainError("docker CLI not found on PATH") from None


def normalize_local_path(path: str) -> str:
    """Make a build context path begin and end with '/'.

    Args:
        path: Relative build context, e.g. "api" or "/api/"

    Returns:
        Normalized path, e.g. "/api/"
    """
    if not path.startswith("/"):
        path = f"/{path}"
    if not path.endswith("/"):
        path = f"{path}/"
    return path


def _toolchain_ready(toolchain_check: Callable[[], bool]) -> bool:
    try:
        return toolchain_check()
    except ToolchainError as e:
        logger.warning("Container toolchain unavailable, skipping local image: %s", e)
        return False


def resolve_image(
    cfg: ContainerImageConfig,
    toolchain_check: Callable[[], bool] = docker_available,
    project_root: Path = PROJECT_ROOT,
) -> ResolvedImage:
    """Pick the image strategy for the API container.

    A local build context takes strict precedence over a registry
    reference whenever the toolchain check succeeds. The registry is used
    only when no local path is set or the toolchain is unavailable.

    Args:
        cfg: Image configuration with optional local and registry fields
        toolchain_check: Toolchain availability check (only called if local is set)
        project_root: Directory local build contexts are relative to

    Returns:
        LocalBuildImage or RegistryImage

    Raises:
        ConfigurationError: If neither strategy is usable
    """
    if cfg.local and _toolchain_ready(toolchain_check):
        local = normalize_local_path(cfg.local)
        context = (project_root / local.strip("/")).resolve()
        logger.info("Using local build context %s", context)
        return LocalBuildImage(path=local, context=str(context))

    if cfg.registry:
        logger.info("Using registry image %s", cfg.registry)
        return RegistryImage(reference=cfg.registry)

    raise ConfigurationError(
        "no usable image source: set container image 'registry', "
        "or 'local' with a working docker toolchain"
    )

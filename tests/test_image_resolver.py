"""Tests for container image source resolution."""

import subprocess

import pytest

from api_stack import image_resolver
from api_stack.errors import ConfigurationError, ToolchainError
from api_stack.image_resolver import docker_available, normalize_local_path, resolve_image
from api_stack.models import ContainerImageConfig, LocalBuildImage, RegistryImage

from .conftest import docker_down, docker_up


def broken_check() -> bool:
    raise ToolchainError("docker daemon not responding")


def unexpected_check() -> bool:
    raise AssertionError("toolchain check should not run without a local path")


class TestResolveImage:
    def test_local_wins_when_toolchain_available(self, tmp_path):
        cfg = ContainerImageConfig(local="api", registry="example/api")

        result = resolve_image(cfg, toolchain_check=docker_up, project_root=tmp_path)

        assert result == LocalBuildImage(path="/api/", context=str((tmp_path / "api").resolve()))

    def test_registry_when_toolchain_unavailable(self, tmp_path):
        cfg = ContainerImageConfig(local="api", registry="example/api")
        result = resolve_image(cfg, toolchain_check=docker_down, project_root=tmp_path)
        assert result == RegistryImage("example/api")

    def test_toolchain_error_is_treated_as_unavailable(self, tmp_path):
        cfg = ContainerImageConfig(local="api", registry="example/api")
        result = resolve_image(cfg, toolchain_check=broken_check, project_root=tmp_path)
        assert result == RegistryImage("example/api")

    def test_registry_only_skips_toolchain_check(self):
        cfg = ContainerImageConfig(registry="example/api")
        assert resolve_image(cfg, toolchain_check=unexpected_check) == RegistryImage("example/api")

    def test_no_source_fails(self):
        with pytest.raises(ConfigurationError, match="no usable image source"):
            resolve_image(ContainerImageConfig(), toolchain_check=docker_up)

    def test_local_only_without_toolchain_fails(self):
        with pytest.raises(ConfigurationError, match="no usable image source"):
            resolve_image(ContainerImageConfig(local="api"), toolchain_check=docker_down)


class TestNormalizeLocalPath:
    @pytest.mark.parametrize(
        "raw, expected",
        [("api", "/api/"), ("/api", "/api/"), ("api/", "/api/"), ("/svc/api/", "/svc/api/")],
    )
    def test_wraps_with_separators(self, raw, expected):
        assert normalize_local_path(raw) == expected


class TestDockerAvailable:
    def test_true_when_docker_answers(self, monkeypatch):
        monkeypatch.setattr(
            image_resolver.subprocess,
            "run",
            lambda *a, **kw: subprocess.CompletedProcess(a, 0, stdout="", stderr=""),
        )
        assert docker_available() is True

    def test_missing_cli_raises_toolchain_error(self, monkeypatch):
        def run(*args, **kwargs):
            raise FileNotFoundError("docker")

        monkeypatch.setattr(image_resolver.subprocess, "run", run)
        with pytest.raises(ToolchainError, match="not found"):
            docker_available()

    def test_timeout_raises_toolchain_error(self, monkeypatch):
        def run(*args, **kwargs):
            raise subprocess.TimeoutExpired(cmd="docker version", timeout=10)

        monkeypatch.setattr(image_resolver.subprocess, "run", run)
        with pytest.raises(ToolchainError, match="timed out"):
            docker_available()

    def test_failed_command_raises_toolchain_error(self, monkeypatch):
        def run(*args, **kwargs):
            raise subprocess.CalledProcessError(1, "docker version", stderr="Cannot connect\n")

        monkeypatch.setattr(image_resolver.subprocess, "run", run)
        with pytest.raises(ToolchainError, match="Cannot connect"):
            docker_available()

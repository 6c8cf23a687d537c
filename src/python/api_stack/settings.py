"""Deploy settings from services/config.yaml, with op:// secrets read via 1Password."""

import os
import subprocess
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml

from . import consts

OP_SCHEME = "op://"


class SettingsError(Exception):
    """Raised when deploy settings cannot be retrieved."""

    pass


@dataclass
class AWSCredentials:
    """Credentials used for both the state bucket and provisioning."""

    access_key_id: str
    secret_access_key: str


@dataclass
class DeploySettings:
    """Where Pulumi keeps state and how to unlock it."""

    backend: str
    aws: AWSCredentials
    passphrase: str = ""

    def workspace_env(self, region: str) -> dict[str, str]:
        """Environment for a Pulumi workspace deploying into region."""
        env = {
            "PULUMI_CONFIG_PASSPHRASE": self.passphrase,
            "AWS_REGION": region,
        }
        # Empty keys fall through to the ambient AWS credential chain
        if self.aws.access_key_id:
            env["AWS_ACCESS_KEY_ID"] = self.aws.access_key_id
        if self.aws.secret_access_key:
            env["AWS_SECRET_ACCESS_KEY"] = self.aws.secret_access_key
        return env


@lru_cache
def _load_config(path: Path) -> dict:
    """Read config.yaml once per path.

    Raises:
        SettingsError: If the file is missing or not valid YAML
    """
    if not path.exists():
        raise SettingsError(f"Config file not found at {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise SettingsError(f"Expected a mapping at the top of {path}")
    return data


def _op_read(reference: str) -> str:
    """Fetch one secret with `op read`.

    Args:
        reference: 1Password secret reference (e.g., "op://vault/item/field")

    Raises:
        SettingsError: If the op command fails or is not installed
    """
    try:
        result = subprocess.run(
            ["op", "read", reference],
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        raise SettingsError(
            f"Failed to read 1Password reference '{reference}': {e.stderr}"
        ) from e
    except FileNotFoundError:
        raise SettingsError(
            "1Password CLI (op) not found. Please install it: "
            "https://developer.1password.com/docs/cli/get-started/"
        ) from None
    return result.stdout.strip()


def _resolve_value(section: dict, key: str, default: str = "") -> str:
    value = section.get(key) or default
    if value.startswith(OP_SCHEME):
        return _op_read(value)
    return value


def get_deploy_settings() -> DeploySettings:
    """Resolve the `pulumi` section of config.yaml.

    The passphrase falls back to PULUMI_CONFIG_PASSPHRASE from the
    calling environment when config.yaml does not set one.

    Raises:
        SettingsError: If the file can't be read, a secret can't be
            fetched, or no backend is configured
    """
    config = _load_config(consts.CONFIG_PATH)
    section = config.get("pulumi") or {}

    backend = _resolve_value(section, "backend")
    if not backend:
        raise SettingsError(f"pulumi.backend is not set in {consts.CONFIG_PATH}")

    return DeploySettings(
        backend=backend,
        aws=AWSCredentials(
            access_key_id=_resolve_value(section, "aws_access_key_id"),
            secret_access_key=_resolve_value(section, "aws_secret_access_key"),
        ),
        passphrase=_resolve_value(
            section, "passphrase", os.environ.get("PULUMI_CONFIG_PASSPHRASE", "")
        ),
    )

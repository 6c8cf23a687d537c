"""Helpers shared by resource mappers."""

from typing import Optional


def project_tags(service_name: str, name: Optional[str] = None) -> dict[str, str]:
    """Tags applied to every resource of a service."""
    tags = {"Project": service_name}
    if name:
        tags["Name"] = name
    return tags

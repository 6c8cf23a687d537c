"""Attach-or-create decisions for network, cluster and DNS zone."""

import logging
from typing import Optional, Union

from .consts import ALL_AZ_COUNT, BOUNDED_AZ_COUNT, DEFAULT_CLUSTER_NAME
from .errors import ConfigurationError
from .models import (
    AliasRecord,
    AttachCluster,
    AttachNetwork,
    CdnPlan,
    CloudfrontConfig,
    CreateCluster,
    CreateNetwork,
    CreateZone,
    ImportZone,
    ServiceConfig,
    ZoneStrategy,
)

logger = logging.getLogger(__name__)


def _max_azs(config: ServiceConfig) -> int:
    return ALL_AZ_COUNT if config.use_all_azs else BOUNDED_AZ_COUNT


def resolve_network(config: ServiceConfig) -> Union[AttachNetwork, CreateNetwork]:
    """Attach the selected network if an identifier is given, else create one."""
    selection = config.attach_existing
    if selection and selection.network_id:
        logger.info("Attaching existing network %s", selection.network_id)
        return AttachNetwork(network_id=selection.network_id)
    return CreateNetwork(max_azs=_max_azs(config))


def resolve_cluster(config: ServiceConfig) -> Union[AttachCluster, CreateCluster]:
    """Attach the selected cluster if an identifier is given, else create one."""
    selection = config.attach_existing
    if selection and selection.cluster_id:
        logger.info("Attaching existing cluster %s", selection.cluster_id)
        return AttachCluster(cluster_id=selection.cluster_id)
    return CreateCluster(
        name=config.cluster_name or DEFAULT_CLUSTER_NAME,
        max_azs=_max_azs(config),
    )


def _resolve_zone(cfg: CloudfrontConfig) -> ZoneStrategy:
    if cfg.external_zone and cfg.new_zone:
        raise ConfigurationError("only one zone definition can be applied")
    if cfg.external_zone:
        return ImportZone(zone_name=cfg.external_zone.zone_name, zone_id=cfg.external_zone.zone_id)
    if cfg.new_zone:
        return CreateZone(zone_name=cfg.new_zone.zone_name)
    raise ConfigurationError("a hosted zone must be supplied")


def resolve_cdn(cfg: Optional[CloudfrontConfig]) -> Optional[CdnPlan]:
    """Resolve the zone strategy and alias records for a CDN config.

    Returns None when no CDN is configured. The distribution serves the
    domain as an alias, so a certificate covering it is required.

    Raises:
        ConfigurationError: If both or neither zone strategies are given,
            or no certificate_arn is set
    """
    if cfg is None:
        return None

    zone = _resolve_zone(cfg)
    if not cfg.certificate_arn:
        raise ConfigurationError(
            f"a certificate_arn covering '{cfg.domain_name}' must be supplied for the CDN"
        )
    records = (
        AliasRecord(record_type="A", name=cfg.domain_name),
        AliasRecord(record_type="AAAA", name=cfg.domain_name),
    )
    logger.info("CDN %s resolved to %s", cfg.domain_name, type(zone).__name__)
    return CdnPlan(
        domain_name=cfg.domain_name,
        certificate_arn=cfg.certificate_arn,
        zone=zone,
        records=records,
    )

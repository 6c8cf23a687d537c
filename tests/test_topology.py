"""Tests for network, cluster and hosted zone resolution."""

import pytest

from api_stack.errors import ConfigurationError
from api_stack.models import (
    AliasRecord,
    AttachCluster,
    AttachNetwork,
    CloudfrontConfig,
    CreateCluster,
    CreateNetwork,
    CreateZone,
    ExistingResourceSelection,
    ImportZone,
    ZoneCreation,
    ZoneImport,
)
from api_stack.topology import resolve_cdn, resolve_cluster, resolve_network

from .conftest import make_config


class TestResolveNetwork:
    def test_creates_bounded_network_by_default(self):
        assert resolve_network(make_config()) == CreateNetwork(max_azs=3)

    def test_all_azs_toggle(self):
        assert resolve_network(make_config(use_all_azs=True)) == CreateNetwork(max_azs=99)

    def test_attaches_when_identifier_present(self):
        config = make_config(attach_existing=ExistingResourceSelection(network_id="vpc-123"))
        assert resolve_network(config) == AttachNetwork(network_id="vpc-123")

    def test_cluster_attachment_does_not_attach_network(self):
        config = make_config(attach_existing=ExistingResourceSelection(cluster_id="shared"))
        assert isinstance(resolve_network(config), CreateNetwork)


class TestResolveCluster:
    def test_creates_named_cluster(self):
        config = make_config(cluster_name="orders")
        assert resolve_cluster(config) == CreateCluster(name="orders", max_azs=3)

    def test_attaches_when_identifier_present(self):
        config = make_config(attach_existing=ExistingResourceSelection(cluster_id="shared"))
        assert resolve_cluster(config) == AttachCluster(cluster_id="shared")


class TestResolveCdn:
    def test_no_cdn_skips_zone_resolution(self):
        assert resolve_cdn(None) is None

    def test_both_zones_fail(self):
        cfg = CloudfrontConfig(
            domain_name="api.example.com",
            external_zone=ZoneImport(zone_name="example.com", zone_id="Z123"),
            new_zone=ZoneCreation(zone_name="example.com"),
        )
        with pytest.raises(ConfigurationError, match="only one zone definition can be applied"):
            resolve_cdn(cfg)

    def test_no_zone_fails(self):
        cfg = CloudfrontConfig(domain_name="api.example.com")
        with pytest.raises(ConfigurationError, match="a hosted zone must be supplied"):
            resolve_cdn(cfg)

    def test_external_zone(self):
        cfg = CloudfrontConfig(
            domain_name="api.example.com",
            certificate_arn="arn:aws:acm:us-east-1:123:certificate/abc",
            external_zone=ZoneImport(zone_name="example.com", zone_id="Z123"),
        )

        plan = resolve_cdn(cfg)

        assert plan.zone == ImportZone(zone_name="example.com", zone_id="Z123")
        assert plan.certificate_arn == cfg.certificate_arn
        assert plan.records == (
            AliasRecord(record_type="A", name="api.example.com"),
            AliasRecord(record_type="AAAA", name="api.example.com"),
        )

    def test_new_zone(self):
        cfg = CloudfrontConfig(
            domain_name="api.example.com",
            certificate_arn="arn:aws:acm:us-east-1:123:certificate/abc",
            new_zone=ZoneCreation(zone_name="example.com"),
        )

        plan = resolve_cdn(cfg)

        assert plan.zone == CreateZone(zone_name="example.com")
        assert {r.record_type for r in plan.records} == {"A", "AAAA"}

    def test_missing_certificate_fails(self):
        cfg = CloudfrontConfig(
            domain_name="api.example.com",
            external_zone=ZoneImport(zone_name="example.com", zone_id="Z123"),
        )
        with pytest.raises(ConfigurationError, match="certificate_arn covering 'api.example.com'"):
            resolve_cdn(cfg)

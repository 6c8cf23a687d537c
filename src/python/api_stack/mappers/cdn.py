"""Mapper for the CloudFront distribution and its DNS records."""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from ..models import CdnPlan, CreateZone, ImportZone
from .common import project_tags

ORIGIN_ID = "api-load-balancer"
# AWS managed policies
CACHING_DISABLED_POLICY_ID = "4135ea2d-6df8-44a3-9df3-4b5a84be39ad"
ALL_VIEWER_ORIGIN_REQUEST_POLICY_ID = "216adef6-5c7f-47e4-b989-5492eafa07d3"


@dataclass
class CdnHandles:
    distribution: aws.cloudfront.Distribution
    zone_id: pulumi.Input[str]
    records: list[aws.route53.Record]


def viewer_certificate(certificate_arn: str) -> aws.cloudfront.DistributionViewerCertificateArgs:
    """Serve the alias domain with an ACM certificate (us-east-1) over SNI."""
    return aws.cloudfront.DistributionViewerCertificateArgs(
        acm_certificate_arn=certificate_arn,
        ssl_support_method="sni-only",
        minimum_protocol_version="TLSv1.2_2021",
    )


def _zone_id(name: str, plan: CdnPlan, opts: pulumi.ResourceOptions) -> pulumi.Input[str]:
    if isinstance(plan.zone, ImportZone):
        return plan.zone.zone_id
    if isinstance(plan.zone, CreateZone):
        zone = aws.route53.Zone(
            f"{name}-zone",
            name=plan.zone.zone_name,
            tags=project_tags(name, plan.zone.zone_name),
            opts=opts,
        )
        return zone.zone_id
    raise TypeError(f"Unknown zone strategy: {plan.zone!r}")


def create_cdn(
    name: str,
    plan: CdnPlan,
    origin_domain: pulumi.Input[str],
    opts: pulumi.ResourceOptions,
) -> CdnHandles:
    """Create a distribution in front of the load balancer plus alias records.

    Args:
        name: Service name used to prefix resource names
        plan: Resolved CDN plan
        origin_domain: Load balancer DNS name
        opts: Resource options (parent component)

    Returns:
        CdnHandles
    """
    distribution = aws.cloudfront.Distribution(
        f"{name}-distribution",
        enabled=True,
        is_ipv6_enabled=True,
        aliases=[plan.domain_name],
        origins=[
            aws.cloudfront.DistributionOriginArgs(
                origin_id=ORIGIN_ID,
                domain_name=origin_domain,
                custom_origin_config=aws.cloudfront.DistributionOriginCustomOriginConfigArgs(
                    http_port=80,
                    https_port=443,
                    origin_protocol_policy="http-only",
                    origin_ssl_protocols=["TLSv1.2"],
                ),
            )
        ],
        default_cache_behavior=aws.cloudfront.DistributionDefaultCacheBehaviorArgs(
            target_origin_id=ORIGIN_ID,
            viewer_protocol_policy="redirect-to-https",
            allowed_methods=["GET", "HEAD", "OPTIONS", "PUT", "POST", "PATCH", "DELETE"],
            cached_methods=["GET", "HEAD"],
            cache_policy_id=CACHING_DISABLED_POLICY_ID,
            origin_request_policy_id=ALL_VIEWER_ORIGIN_REQUEST_POLICY_ID,
        ),
        restrictions=aws.cloudfront.DistributionRestrictionsArgs(
            geo_restriction=aws.cloudfront.DistributionRestrictionsGeoRestrictionArgs(
                restriction_type="none",
            ),
        ),
        viewer_certificate=viewer_certificate(plan.certificate_arn),
        tags=project_tags(name, plan.domain_name),
        opts=opts,
    )

    zone_id = _zone_id(name, plan, opts)

    records = [
        aws.route53.Record(
            f"{name}-cdn-{record.record_type.lower()}",
            zone_id=zone_id,
            name=record.name,
            type=record.record_type,
            aliases=[
                aws.route53.RecordAliasArgs(
                    name=distribution.domain_name,
                    zone_id=distribution.hosted_zone_id,
                    evaluate_target_health=False,
                )
            ],
            opts=opts,
        )
        for record in plan.records
    ]

    return CdnHandles(distribution=distribution, zone_id=zone_id, records=records)

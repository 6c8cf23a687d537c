"""Pulumi provisioning backend for resolved plans."""

import logging

import pulumi
import pulumi_aws as aws
from pulumi import ComponentResource, ResourceOptions

from .consts import API_TARGET_GROUP, LOCAL_IMAGE_TAG
from .mappers import (
    create_api_service,
    create_cdn,
    create_cluster,
    create_network,
    create_scheduled_job,
    register_scaling_actions,
)
from .models import LocalBuildImage, ResolvedPlan
from .mappers.common import project_tags

logger = logging.getLogger(__name__)


class ApiStack(ComponentResource):
    """All resources of one API service, created from a resolved plan."""

    def __init__(self, name: str, plan: ResolvedPlan, opts=None):
        super().__init__("apistack:service", name, None, opts)
        self.name = name
        self.plan = plan

        self.api = None
        self.cdn = None
        self.jobs = []

        # Create all resources during initialization
        self._create_resources()
        self.register_outputs(self.outputs())

    def _create_resources(self):
        opts = ResourceOptions(parent=self)
        plan = self.plan

        network = create_network(self.name, plan.network, opts)
        cluster = create_cluster(self.name, plan.cluster, opts)

        self.api = create_api_service(
            self.name, plan.config, self._image_uri(opts), network, cluster, opts
        )

        register_scaling_actions(
            self.name,
            plan.scalable_target,
            plan.scaling_actions,
            cluster_name=cluster.name,
            service_name=self.api.service.name,
            target_group_labels={
                API_TARGET_GROUP: pulumi.Output.concat(
                    self.api.load_balancer.arn_suffix, "/", self.api.target_group.arn_suffix
                ),
            },
            opts=opts,
        )

        if plan.cdn:
            self.cdn = create_cdn(self.name, plan.cdn, self.api.load_balancer.dns_name, opts)

        self.jobs = [create_scheduled_job(self.name, job, opts) for job in plan.jobs]

    def _image_uri(self, opts: ResourceOptions) -> pulumi.Input[str]:
        """Registry reference, or the ECR tag a local build is pushed to."""
        image = self.plan.image
        if isinstance(image, LocalBuildImage):
            logger.info("Local build context %s must be pushed as :%s", image.context, LOCAL_IMAGE_TAG)
            repository = aws.ecr.Repository(
                f"{self.name}-api-repo",
                force_delete=True,
                tags=project_tags(self.name),
                opts=opts,
            )
            return pulumi.Output.concat(repository.repository_url, ":", LOCAL_IMAGE_TAG)
        return image.reference

    def outputs(self) -> dict:
        outputs = {
            "load_balancer_dns": self.api.load_balancer.dns_name,
            "service_name": self.api.service.name,
        }
        if self.cdn:
            outputs["distribution_domain"] = self.cdn.distribution.domain_name
            outputs["zone_id"] = self.cdn.zone_id
        for job, handles in zip(self.plan.jobs, self.jobs):
            outputs[f"job_{job.name}_arn"] = handles.function.arn
        return outputs


class PulumiBackend:
    """ProvisioningBackend that builds an ApiStack inside a Pulumi program."""

    def provision(self, plan: ResolvedPlan) -> ApiStack:
        stack = ApiStack(plan.config.service_name, plan)
        for key, value in stack.outputs().items():
            pulumi.export(key, value)
        return stack

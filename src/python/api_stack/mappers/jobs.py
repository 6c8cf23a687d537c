"""Mapper for scheduled jobs (Lambda function + EventBridge rule)."""

from dataclasses import dataclass
from typing import Any, Optional

import pulumi
import pulumi_aws as aws

from ..consts import LOCAL_IMAGE_TAG
from ..job_source import inline_filename
from ..models import (
    BucketCode,
    InlineCode,
    LocalCode,
    LocalImageCode,
    RegistryImageCode,
    ResolvedJob,
)
from .common import project_tags

DEFAULT_TIMEOUT_SECONDS = 60


@dataclass
class JobHandles:
    function: aws.lambda_.Function
    rule: aws.cloudwatch.EventRule


def function_code_args(job: ResolvedJob, image_uri: Optional[pulumi.Input[str]] = None) -> dict[str, Any]:
    """Lambda Function arguments for a job's code source.

    Zip sources get runtime and handler; image sources run the
    entrypoint as the image command.

    Args:
        job: Resolved job
        image_uri: Image to run for LocalImageCode jobs

    Returns:
        Keyword arguments for aws.lambda_.Function
    """
    code = job.code
    zip_args = {"runtime": job.runtime, "handler": job.entrypoint}

    if isinstance(code, LocalCode):
        return {**zip_args, "code": pulumi.FileArchive(code.path)}
    if isinstance(code, InlineCode):
        filename = inline_filename(job.runtime, job.entrypoint)
        return {**zip_args, "code": pulumi.AssetArchive({filename: pulumi.StringAsset(code.code)})}
    if isinstance(code, BucketCode):
        return {**zip_args, "s3_bucket": code.bucket, "s3_key": code.key}

    if isinstance(code, RegistryImageCode):
        image_uri = code.reference
    elif not isinstance(code, LocalImageCode):
        raise TypeError(f"Unknown job code source: {code!r}")

    return {
        "package_type": "Image",
        "image_uri": image_uri,
        "image_config": aws.lambda_.FunctionImageConfigArgs(commands=[job.entrypoint]),
    }


def create_scheduled_job(
    name: str,
    job: ResolvedJob,
    opts: pulumi.ResourceOptions,
) -> JobHandles:
    """Create the function, schedule rule and invoke permission for a job.

    Args:
        name: Service name used to prefix resource names
        job: Resolved job
        opts: Resource options (parent component)

    Returns:
        JobHandles
    """
    prefix = f"{name}-{job.name}"
    tags = project_tags(name, prefix)

    role = aws.iam.Role(
        f"{prefix}-role",
        assume_role_policy="""{
          "Version": "2012-10-17",
          "Statement": [{
            "Action": "sts:AssumeRole",
            "Principal": {
              "Service": "lambda.amazonaws.com"
            },
            "Effect": "Allow",
            "Sid": ""
          }]
        }""",
        tags=tags,
        opts=opts,
    )

    aws.iam.RolePolicyAttachment(
        f"{prefix}-basic-execution",
        role=role.name,
        policy_arn="arn:aws:iam::aws:policy/service-role/AWSLambdaBasicExecutionRole",
        opts=opts,
    )

    image_uri = None
    if isinstance(job.code, LocalImageCode):
        # The image is built and pushed by external tooling
        repository = aws.ecr.Repository(
            f"{prefix}-repo",
            force_delete=True,
            tags=tags,
            opts=opts,
        )
        image_uri = pulumi.Output.concat(repository.repository_url, ":", LOCAL_IMAGE_TAG)

    function = aws.lambda_.Function(
        f"{prefix}-function",
        role=role.arn,
        timeout=DEFAULT_TIMEOUT_SECONDS,
        tags=tags,
        opts=opts,
        **function_code_args(job, image_uri),
    )

    rule = aws.cloudwatch.EventRule(
        f"{prefix}-schedule-rule",
        schedule_expression=job.schedule,
        tags=tags,
        opts=opts,
    )

    aws.lambda_.Permission(
        f"{prefix}-permission",
        action="lambda:InvokeFunction",
        function=function.name,
        principal="events.amazonaws.com",
        source_arn=rule.arn,
        opts=opts,
    )

    aws.cloudwatch.EventTarget(
        f"{prefix}-target",
        rule=rule.name,
        arn=function.arn,
        opts=opts,
    )

    return JobHandles(function=function, rule=rule)

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from devbox_infra.config import StackSettings, create_common_tags


@dataclass
class WorkspaceBucket:
    bucket: aws.s3.BucketV2
    public_access_block: aws.s3.BucketPublicAccessBlock


def create_workspace_bucket(settings: StackSettings) -> WorkspaceBucket:
    """S3 bucket for the devbox workspace. Public access is always blocked."""
    bucket = aws.s3.BucketV2(f"{settings.project_name}-workspace",
        bucket=settings.bucket_name,
        tags=create_common_tags(settings, "workspace"))

    # Not configurable.
    public_access_block = aws.s3.BucketPublicAccessBlock(f"{settings.project_name}-workspace-public-access-block",
        bucket=bucket.id,
        block_public_acls=True,
        block_public_policy=True,
        ignore_public_acls=True,
        restrict_public_buckets=True)

    pulumi.log.info(f"Declared workspace bucket {settings.bucket_name} with public access blocked")
    return WorkspaceBucket(bucket=bucket, public_access_block=public_access_block)

import json
from dataclasses import dataclass

import pulumi_aws as aws

from devbox_infra.config import StackSettings, create_common_tags

EC2_SERVICE_PRINCIPAL = "ec2.amazonaws.com"
SSM_MANAGED_INSTANCE_CORE_ARN = "arn:aws:iam::aws:policy/AmazonSSMManagedInstanceCore"


@dataclass
class InstanceIdentity:
    role: aws.iam.Role
    inline_policy: aws.iam.RolePolicy
    ssm_policy_attachment: aws.iam.RolePolicyAttachment
    instance_profile: aws.iam.InstanceProfile


def ec2_assume_role_policy() -> str:
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Effect": "Allow",
            "Principal": {"Service": EC2_SERVICE_PRINCIPAL},
            "Action": "sts:AssumeRole",
        }],
    })


def s3_full_access_policy() -> str:
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Effect": "Allow",
            "Action": ["s3:*"],
            "Resource": ["*"],
        }],
    })


def create_instance_role(settings: StackSettings) -> InstanceIdentity:
    """Role for both instances: full S3 access plus what the SSM agent needs."""
    name = settings.project_name
    role = aws.iam.Role(f"{name}-instance-role",
        name=settings.role_name,
        assume_role_policy=ec2_assume_role_policy(),
        tags=create_common_tags(settings, "instance-role"))

    inline_policy = aws.iam.RolePolicy(f"{name}-instance-s3-policy",
        name=settings.inline_policy_name,
        role=role.id,
        policy=s3_full_access_policy())

    # AmazonSSMManagedInstanceCore to communicate with SSM
    ssm_policy_attachment = aws.iam.RolePolicyAttachment(f"{name}-instance-ssm-policy-attachment",
        role=role.name,
        policy_arn=SSM_MANAGED_INSTANCE_CORE_ARN)

    instance_profile = aws.iam.InstanceProfile(f"{name}-instance-profile",
        role=role.name,
        tags=create_common_tags(settings, "instance-profile"))

    return InstanceIdentity(
        role=role,
        inline_policy=inline_policy,
        ssm_policy_attachment=ssm_policy_attachment,
        instance_profile=instance_profile,
    )

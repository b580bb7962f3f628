from typing import List

import pulumi
import pulumi_aws as aws

from devbox_infra.config import StackSettings, create_common_tags

ANY_IPV4 = "0.0.0.0/0"
SSH_PORT = 22
HTTPS_PORT = 443
INGRESS_PORTS = (SSH_PORT, HTTPS_PORT)

allow_all_egress_args = aws.ec2.SecurityGroupEgressArgs(
    protocol="-1", # All protocols
    from_port=0,
    to_port=0,
    cidr_blocks=[ANY_IPV4],
)


def devbox_ingress_rules() -> List[aws.ec2.SecurityGroupIngressArgs]:
    """SSH and HTTPS from anywhere. Nothing else is opened."""
    descriptions = {
        SSH_PORT: "allow ssh from the world",
        HTTPS_PORT: "allow port 443 from the world",
    }
    return [
        aws.ec2.SecurityGroupIngressArgs(
            description=descriptions[port],
            protocol="tcp",
            from_port=port,
            to_port=port,
            cidr_blocks=[ANY_IPV4],
        )
        for port in INGRESS_PORTS
    ]


def create_devbox_security_group(settings: StackSettings, vpc_id: pulumi.Input[str]) -> aws.ec2.SecurityGroup:
    return aws.ec2.SecurityGroup(f"{settings.project_name}-devbox-sg",
        vpc_id=vpc_id,
        description="allow port 22 and 443",
        ingress=devbox_ingress_rules(),
        egress=[allow_all_egress_args],
        tags=create_common_tags(settings, "devbox-sg"))

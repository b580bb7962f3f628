"""EC2 instances for the devbox and the elastic IP of the public one."""
import enum
from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from devbox_infra.config import StackSettings, create_common_tags
from devbox_infra.iam import InstanceIdentity
from devbox_infra.network import Network


class Placement(enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


@dataclass
class PlacedInstance:
    instance: aws.ec2.Instance
    placement: Placement


@dataclass
class DevboxInstances:
    private: PlacedInstance
    public: PlacedInstance


def lookup_machine_image(settings: StackSettings) -> str:
    """Id of the latest Amazon Linux image matching ``ami_name_pattern``."""
    ami = aws.ec2.get_ami(
        most_recent=True,
        owners=["amazon"],
        filters=[
            aws.ec2.GetAmiFilterArgs(name="name", values=[settings.ami_name_pattern]),
            aws.ec2.GetAmiFilterArgs(name="virtualization-type", values=["hvm"]),
        ])
    return ami.id


def create_instance(settings: StackSettings, name: str, instance_name: str, instance_type: str,
                    placement: Placement, network: Network, identity: InstanceIdentity,
                    security_group: aws.ec2.SecurityGroup, ami_id: str) -> PlacedInstance:
    """One instance in the first subnet of the requested tier."""
    subnets = network.public_subnets if placement is Placement.PUBLIC else network.private_subnets
    instance = aws.ec2.Instance(f"{settings.project_name}-{name}",
        ami=ami_id,
        instance_type=instance_type,
        subnet_id=subnets[0].id,
        vpc_security_group_ids=[security_group.id],
        iam_instance_profile=identity.instance_profile.name,
        key_name=settings.key_pair_name,
        associate_public_ip_address=placement is Placement.PUBLIC,
        tags=create_common_tags(settings, name, {"Name": instance_name, "Placement": placement.value}),
        opts=pulumi.ResourceOptions(depends_on=[identity.inline_policy, identity.ssm_policy_attachment]))
    return PlacedInstance(instance=instance, placement=placement)


def create_devbox_instances(settings: StackSettings, network: Network, identity: InstanceIdentity,
                            security_group: aws.ec2.SecurityGroup) -> DevboxInstances:
    ami_id = lookup_machine_image(settings)
    pulumi.log.info(f"Using machine image {ami_id} for devbox instances")

    private = create_instance(settings, "private-instance",
        instance_name=settings.private_instance_name,
        instance_type=settings.private_instance_type,
        placement=Placement.PRIVATE,
        network=network,
        identity=identity,
        security_group=security_group,
        ami_id=ami_id)

    public = create_instance(settings, "public-instance",
        instance_name=settings.public_instance_name,
        instance_type=settings.public_instance_type,
        placement=Placement.PUBLIC,
        network=network,
        identity=identity,
        security_group=security_group,
        ami_id=ami_id)

    return DevboxInstances(private=private, public=public)


def create_public_address(settings: StackSettings, target: PlacedInstance) -> aws.ec2.Eip:
    """Elastic IP for an instance in a public subnet."""
    if target.placement is not Placement.PUBLIC:
        raise ValueError(f"Elastic IP can only be bound to a public instance, got {target.placement.value}")
    return aws.ec2.Eip(f"{settings.project_name}-public-instance-eip",
        domain="vpc",
        instance=target.instance.id,
        tags=create_common_tags(settings, "public-instance-eip"))

from dataclasses import dataclass
from typing import List, Optional

import pulumi
import pulumi_aws as aws

from devbox_infra.compute import DevboxInstances, create_devbox_instances, create_public_address
from devbox_infra.config import StackSettings
from devbox_infra.iam import InstanceIdentity, create_instance_role
from devbox_infra.monitoring import create_idle_stop_alarm
from devbox_infra.network import Network, add_interface_endpoint, create_network
from devbox_infra.security import create_devbox_security_group
from devbox_infra.storage import WorkspaceBucket, create_workspace_bucket


@dataclass
class DevboxStack:
    workspace: WorkspaceBucket
    network: Network
    identity: InstanceIdentity
    security_group: aws.ec2.SecurityGroup
    ssm_endpoint: aws.ec2.VpcEndpoint
    instances: DevboxInstances
    public_address: aws.ec2.Eip
    idle_stop_alarm: aws.cloudwatch.MetricAlarm


def create_stack(settings: StackSettings, region: Optional[str] = None) -> DevboxStack:
    """Declare every devbox resource. Ordering is left to the engine."""
    region = region or aws.get_region().name

    workspace = create_workspace_bucket(settings)
    network = create_network(settings, region)
    identity = create_instance_role(settings)
    security_group = create_devbox_security_group(settings, network.vpc.id)
    ssm_endpoint = add_interface_endpoint(settings, network, region, "ssm", security_group.id)
    instances = create_devbox_instances(settings, network, identity, security_group)
    public_address = create_public_address(settings, instances.public)
    idle_stop_alarm = create_idle_stop_alarm(settings, instances.public, region)

    return DevboxStack(
        workspace=workspace,
        network=network,
        identity=identity,
        security_group=security_group,
        ssm_endpoint=ssm_endpoint,
        instances=instances,
        public_address=public_address,
        idle_stop_alarm=idle_stop_alarm,
    )


def export_outputs(stack: DevboxStack) -> None:
    public_subnet_ids: List[pulumi.Output[str]] = [s.id for s in stack.network.public_subnets]
    private_subnet_ids: List[pulumi.Output[str]] = [s.id for s in stack.network.private_subnets]

    pulumi.export("workspace_bucket_name", stack.workspace.bucket.bucket)
    pulumi.export("vpc_id", stack.network.vpc.id)
    pulumi.export("public_subnet_ids", public_subnet_ids)
    pulumi.export("private_subnet_ids", private_subnet_ids)
    pulumi.export("vpc_endpoint_ids", [e.id for e in stack.network.endpoints])
    pulumi.export("instance_role_arn", stack.identity.role.arn)
    pulumi.export("devbox_sg_id", stack.security_group.id)
    pulumi.export("private_instance_id", stack.instances.private.instance.id)
    pulumi.export("private_instance_private_ip", stack.instances.private.instance.private_ip)
    pulumi.export("public_instance_id", stack.instances.public.instance.id)
    pulumi.export("public_instance_elastic_ip", stack.public_address.public_ip)
    pulumi.export("idle_stop_alarm_name", stack.idle_stop_alarm.name)

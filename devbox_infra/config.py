"""Stack configuration for the devbox program.

Values come from the Pulumi stack config (``Pulumi.<stack>.yaml``) with the
defaults below. Only ``key_pair_name`` is expected from the operator.
"""
import ipaddress
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pulumi

KEY_PAIR_PLACEHOLDER = "keyPairName"


@dataclass
class StackSettings:
    project_name: str = "devbox"
    environment: str = "development"
    key_pair_name: str = KEY_PAIR_PLACEHOLDER
    bucket_name: str = "devbox-workspace"

    vpc_cidr: str = "10.0.0.0/16"
    availability_zones: List[str] = field(default_factory=list)
    public_subnet_cidrs: List[str] = field(default_factory=lambda: ["10.0.0.0/18", "10.0.64.0/18"])
    private_subnet_cidrs: List[str] = field(default_factory=lambda: ["10.0.128.0/18", "10.0.192.0/18"])
    enable_nat_gateway: bool = True

    role_name: str = "RoleForEc2ToAccessS3"
    inline_policy_name: str = "PolicyForEc2AccessS3"

    private_instance_name: str = "Ec2PrivateVsCode"
    private_instance_type: str = "t2.small"
    public_instance_name: str = "Ec2PubVscode"
    public_instance_type: str = "t2.large"
    ami_name_pattern: str = "amzn2-ami-hvm-*-x86_64-gp2"

    alarm_name: str = "StopIdleEc2Instance"
    idle_cpu_threshold: float = 0.99
    idle_period_seconds: int = 300
    idle_evaluation_periods: int = 6
    idle_datapoints_to_alarm: int = 5

    def validate(self) -> None:
        """Raise ValueError on settings the provider would reject later anyway."""
        if not self.project_name.strip():
            raise ValueError("project_name must not be empty")
        _check_cidr("vpc_cidr", self.vpc_cidr)
        if len(self.public_subnet_cidrs) != len(self.private_subnet_cidrs):
            raise ValueError(
                f"public_subnet_cidrs ({len(self.public_subnet_cidrs)}) and "
                f"private_subnet_cidrs ({len(self.private_subnet_cidrs)}) must have the same length")
        if not self.public_subnet_cidrs:
            raise ValueError("At least one public and one private subnet must be specified")
        vpc_network = ipaddress.ip_network(self.vpc_cidr)
        for cidr in self.public_subnet_cidrs + self.private_subnet_cidrs:
            subnet = _check_cidr("subnet cidr", cidr)
            if not subnet.subnet_of(vpc_network):
                raise ValueError(f"Subnet {cidr} is not inside VPC CIDR {self.vpc_cidr}")
        if self.availability_zones and len(self.availability_zones) != len(self.public_subnet_cidrs):
            raise ValueError(
                f"Number of subnets per tier ({len(self.public_subnet_cidrs)}) "
                f"does not match number of availability_zones ({len(self.availability_zones)})")
        if self.idle_cpu_threshold <= 0:
            raise ValueError(f"idle_cpu_threshold must be positive, got {self.idle_cpu_threshold}")
        if self.idle_period_seconds < 60 or self.idle_period_seconds % 60 != 0:
            raise ValueError(f"idle_period_seconds must be a multiple of 60, got {self.idle_period_seconds}")
        if self.idle_evaluation_periods < 1:
            raise ValueError("idle_evaluation_periods must be at least 1")
        if not (1 <= self.idle_datapoints_to_alarm <= self.idle_evaluation_periods):
            raise ValueError(
                "Invalid alarm configuration: 1 <= idle_datapoints_to_alarm <= idle_evaluation_periods must be true")


def _check_cidr(label: str, cidr: str) -> ipaddress.IPv4Network:
    if not cidr.strip() or cidr.count('/') != 1:
        raise ValueError(f"Invalid {label} format: {cidr}")
    try:
        return ipaddress.IPv4Network(cidr)
    except ValueError as e:
        raise ValueError(f"Invalid {label} format: {cidr}") from e


def load_settings(config: Optional[pulumi.Config] = None) -> StackSettings:
    """Read the stack config on top of the defaults and validate the result."""
    config = config or pulumi.Config()
    defaults = StackSettings()
    project_name = config.get("project_name") or defaults.project_name

    key_pair_name = config.get("key_pair_name")
    if not key_pair_name:
        pulumi.log.warn(
            f"key_pair_name is not set; using placeholder '{KEY_PAIR_PLACEHOLDER}'. "
            "Run `pulumi config set key_pair_name <name>` before deploying.")
        key_pair_name = KEY_PAIR_PLACEHOLDER

    settings = StackSettings(
        project_name=project_name,
        environment=config.get("environment") or defaults.environment,
        key_pair_name=key_pair_name,
        bucket_name=config.get("bucket_name") or f"{project_name}-workspace-{pulumi.get_stack()}",
        vpc_cidr=config.get("vpc_cidr") or defaults.vpc_cidr,
        availability_zones=config.get_object("availability_zones") or [],
        public_subnet_cidrs=config.get_object("public_subnet_cidrs") or defaults.public_subnet_cidrs,
        private_subnet_cidrs=config.get_object("private_subnet_cidrs") or defaults.private_subnet_cidrs,
        enable_nat_gateway=config.get_bool("enable_nat_gateway") if config.get("enable_nat_gateway") is not None else defaults.enable_nat_gateway,
        private_instance_type=config.get("private_instance_type") or defaults.private_instance_type,
        public_instance_type=config.get("public_instance_type") or defaults.public_instance_type,
        ami_name_pattern=config.get("ami_name_pattern") or defaults.ami_name_pattern,
        idle_cpu_threshold=config.get_float("idle_cpu_threshold") if config.get("idle_cpu_threshold") is not None else defaults.idle_cpu_threshold,
        idle_period_seconds=config.get_int("idle_period_seconds") if config.get("idle_period_seconds") is not None else defaults.idle_period_seconds,
        idle_evaluation_periods=config.get_int("idle_evaluation_periods") if config.get("idle_evaluation_periods") is not None else defaults.idle_evaluation_periods,
        idle_datapoints_to_alarm=config.get_int("idle_datapoints_to_alarm") if config.get("idle_datapoints_to_alarm") is not None else defaults.idle_datapoints_to_alarm,
    )
    try:
        settings.validate()
    except ValueError as e:
        pulumi.log.error(f"Invalid stack configuration: {e}")
        raise
    return settings


def create_common_tags(settings: StackSettings, name: str, additional_tags: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Create a consistent set of tags for resources."""
    tags = {
        "Name": f"{settings.project_name}-{name}",
        "Project": settings.project_name,
        "Environment": settings.environment,
        "ManagedBy": "pulumi"
    }
    if additional_tags:
        tags.update(additional_tags)
    return tags

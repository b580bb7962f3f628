"""Shared fixtures: Pulumi mocks that record every declared resource."""

import json
from dataclasses import dataclass
from typing import Any, Dict, List

import pulumi
import pytest

from devbox_infra import StackSettings, create_stack

REGION = "us-east-1"
AMI_ID = "ami-0123456789abcdef0"


@dataclass
class DeclaredResource:
    typ: str
    name: str
    inputs: Dict[str, Any]


class DevboxMocks(pulumi.runtime.Mocks):
    """Echo inputs back as outputs and keep a log of registrations."""

    def __init__(self) -> None:
        self.resources: List[DeclaredResource] = []

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        self.resources.append(DeclaredResource(typ=args.typ, name=args.name, inputs=dict(args.inputs)))
        outputs = dict(args.inputs)
        if args.typ == "aws:ec2/instance:Instance":
            outputs["privateIp"] = "10.0.128.10"
        elif args.typ == "aws:ec2/eip:Eip":
            outputs["publicIp"] = "203.0.113.10"
        elif args.typ == "aws:iam/role:Role":
            outputs["arn"] = f"arn:aws:iam::123456789012:role/{args.inputs.get('name', args.name)}"
        elif args.typ == "aws:iam/instanceProfile:InstanceProfile":
            outputs["name"] = args.name
        return [f"{args.name}-id", outputs]

    def call(self, args: pulumi.runtime.MockCallArgs):
        if args.token == "aws:ec2/getAmi:getAmi":
            return {"id": AMI_ID, "architecture": "x86_64"}
        if args.token == "aws:index/getAvailabilityZones:getAvailabilityZones":
            return {"names": ["us-east-1a", "us-east-1b", "us-east-1c"], "id": REGION}
        if args.token == "aws:index/getRegion:getRegion":
            return {"name": REGION, "id": REGION}
        return {}

    def of_type(self, typ: str) -> List[DeclaredResource]:
        return [r for r in self.resources if r.typ == typ]

    def one(self, typ: str) -> DeclaredResource:
        found = self.of_type(typ)
        assert len(found) == 1, f"expected one {typ}, found {len(found)}"
        return found[0]


@pytest.fixture
def mocks() -> DevboxMocks:
    mocks = DevboxMocks()
    pulumi.runtime.set_mocks(mocks, project="devbox", stack="test", preview=False)
    return mocks


@pytest.fixture
def settings() -> StackSettings:
    return StackSettings(key_pair_name="devbox-key", bucket_name="devbox-workspace-test")


def declare(settings: StackSettings, region: str = REGION):
    """Run create_stack inside the Pulumi runtime and wait for every registration."""
    declared = []

    @pulumi.runtime.test
    def run():
        stack = create_stack(settings, region=region)
        declared.append(stack)
        return stack.idle_stop_alarm.urn

    run()
    return declared[0]


@pytest.fixture
def declared(mocks: DevboxMocks, settings: StackSettings) -> DevboxMocks:
    declare(settings)
    return mocks


def load_policy(document: str) -> Dict[str, Any]:
    return json.loads(document)

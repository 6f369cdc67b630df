"""CloudFormation stack resource lookups, including nested stacks."""

from __future__ import annotations

from typing import Any

NESTED_STACK_TYPE = "AWS::CloudFormation::Stack"


def is_nested_stack(resource: dict[str, Any]) -> bool:
    """Return True if the stack resource is itself a CloudFormation stack."""
    return resource.get("ResourceType") == NESTED_STACK_TYPE


def get_resources_by_stack_name(stack_name: str, svc: Any) -> list[dict[str, Any]]:
    """Return the resources of the named stack."""
    response = svc.describe_stack_resources(StackName=stack_name)
    return list(response.get("StackResources") or [])


def get_nested_cloudformation_resources(stack_name: str, svc: Any) -> list[dict[str, Any]]:
    """Return the stack's resources, each nested stack followed by its own resources."""
    result: list[dict[str, Any]] = []
    for resource in get_resources_by_stack_name(stack_name, svc):
        result.append(resource)
        if is_nested_stack(resource):
            result.extend(get_nested_cloudformation_resources(resource.get("PhysicalResourceId"), svc))
    return result
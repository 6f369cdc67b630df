"""Name lookups for EC2 resources and simple instance queries."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

_LATEST_FAMILY_VERSIONS = {
    "c": "4",
    "d": "2",
    "f": "1",
    "g": "3",
    "p": "2",
    "i": "3",
    "m": "4",
    "r": "4",
    "t": "2",
    "x": "1",
}

_MAX_NAME_LENGTH = 100


def get_name_from_tags(tags: Iterable[dict[str, Any]] | None) -> str:
    """Return the value of the first Name tag, trimmed to 100 characters, or ""."""
    for tag in tags or ():
        if tag.get("Key") == "Name":
            name = tag.get("Value") or ""
            if not name.strip():
                return ""
            if len(name) > _MAX_NAME_LENGTH:
                return name[: _MAX_NAME_LENGTH - 3] + "..."
            return name
    return ""


def _display(name: str, resource_id: str) -> str | None:
    if name and name != resource_id:
        return f"{name} ({resource_id})"
    return None


def get_resource_display_name_from_tags(resource_id: str, tags: Iterable[dict[str, Any]] | None) -> str:
    """Return "Name (ID)" when the resource has a distinct Name tag, else the ID."""
    return _display(get_name_from_tags(tags), resource_id) or resource_id


def get_resource_display_name_with_global_lookup(
    resource_id: str,
    tags: Iterable[dict[str, Any]] | None,
    global_lookup: Callable[[str], str] | None,
) -> str:
    """Like get_resource_display_name_from_tags, but try ``global_lookup`` first."""
    if global_lookup is not None:
        shown = _display(global_lookup(resource_id), resource_id)
        if shown:
            return shown
    return get_resource_display_name_from_tags(resource_id, tags)


def is_latest_instance_family(instance_family: str) -> bool:
    """Return True if the family (e.g. "m4") is the newest known generation."""
    if not instance_family:
        raise ValueError("instance family must not be empty")
    family, version = instance_family[0], instance_family[1:]
    return _LATEST_FAMILY_VERSIONS.get(family) == version


def get_ec2_name(instance_id: str, svc: Any) -> str:
    """Return the Name tag of the given instance, or "" if it has none."""
    response = svc.describe_instances(InstanceIds=[instance_id])
    for reservation in response.get("Reservations") or []:
        for instance in reservation.get("Instances") or []:
            return get_name_from_tags(instance.get("Tags"))
    return ""


def get_all_security_groups(svc: Any) -> list[dict[str, Any]]:
    return list(svc.describe_security_groups().get("SecurityGroups") or [])


def get_ec2_by_security_group(security_group_id: str, svc: Any) -> list[dict[str, Any]]:
    """Return the reservations of instances that use the security group."""
    response = svc.describe_instances(
        Filters=[{"Name": "instance.group-id", "Values": [security_group_id]}]
    )
    return list(response.get("Reservations") or [])


def get_all_ec2_instances(svc: Any) -> list[dict[str, Any]]:
    return list(svc.describe_instances().get("Reservations") or [])
"""Finding which resource holds a private IP address, and its network context."""

from __future__ import annotations

import ipaddress
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, NoReturn

from awstools.ec2names import get_name_from_tags
from awstools.subnets import (
    ENILookupCache,
    get_eni_attachment_details,
    get_eni_usage_type,
    new_eni_lookup_cache,
)
from awstools.vpcrouting import format_route_table_info, get_subnet_route_table

logger = logging.getLogger(__name__)

_NO_ROUTE_TABLE = "No route table"


class AWSAPIError(RuntimeError):
    """An AWS API call failed; the message explains the likely cause."""


@dataclass
class VPCInfo:
    id: str = ""
    name: str = ""
    cidr: str = ""


@dataclass
class SubnetInfo:
    id: str = ""
    name: str = ""
    cidr: str = ""


@dataclass
class SecurityGroupInfo:
    id: str = ""
    name: str = ""


@dataclass
class RouteTableInfo:
    id: str = ""
    name: str = ""
    routes: list[str] = field(default_factory=list)


@dataclass
class IPFinderResult:
    """Everything known about the owner of an IP address."""

    ip_address: str = ""
    eni: dict[str, Any] | None = None
    resource_type: str = ""
    resource_name: str = ""
    resource_id: str = ""
    vpc: VPCInfo = field(default_factory=VPCInfo)
    subnet: SubnetInfo = field(default_factory=SubnetInfo)
    security_groups: list[SecurityGroupInfo] = field(default_factory=list)
    route_table: RouteTableInfo = field(default_factory=RouteTableInfo)
    is_secondary_ip: bool = False
    found: bool = False


def is_valid_ip_address(ip: str) -> bool:
    """Return True if the text is an IPv4 or IPv6 address."""
    if "%" in ip:
        return False
    try:
        ipaddress.ip_address(ip)
    except ValueError:
        return False
    return True


def is_valid_cidr(cidr: str) -> bool:
    """Return True if the text is an address followed by a prefix length."""
    address, separator, prefix = cidr.rpartition("/")
    if not separator or not (prefix.isascii() and prefix.isdigit()) or "%" in address:
        return False
    try:
        ipaddress.ip_network(cidr, strict=False)
    except ValueError:
        return False
    return True


def raise_api_error(error: BaseException, api_name: str) -> NoReturn:
    """Raise AWSAPIError with an explanation suited to the kind of failure."""
    text = str(error)
    if "UnauthorizedOperation" in text:
        message = (
            f"insufficient permissions for {api_name}\n\n"
            f"Required permissions:\n  - ec2:{api_name}\n\nOriginal error: {text}"
        )
    elif "AuthFailure" in text:
        message = (
            "AWS authentication failed\n\n"
            "Please check your AWS credentials:\n"
            "  - AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables\n"
            "  - ~/.aws/credentials file\n"
            "  - IAM role (if running on EC2)\n\n"
            f"Original error: {text}"
        )
    elif "RequestLimitExceeded" in text or "Throttling" in text:
        message = (
            "AWS API rate limit exceeded\n\n"
            "The request was throttled. Please wait a moment and try again.\n\n"
            f"Original error: {text}"
        )
    else:
        message = f"failed to call {api_name}: {text}"
    raise AWSAPIError(message) from error


def search_enis_by_ip(svc: Any, filters: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Return the network interfaces matching the filters."""
    try:
        response = svc.describe_network_interfaces(Filters=filters)
    except Exception as exc:
        raise_api_error(exc, "DescribeNetworkInterfaces")
    return list(response.get("NetworkInterfaces") or [])


def is_secondary_ip(eni: dict[str, Any], ip_address: str) -> bool:
    """Return True if the address is a non-primary private address of the interface."""
    if (eni.get("PrivateIpAddress") or "") == ip_address:
        return False
    return any(
        (private_ip.get("PrivateIpAddress") or "") == ip_address and not private_ip.get("Primary")
        for private_ip in eni.get("PrivateIpAddresses") or []
    )


def get_resource_name_and_id(eni: dict[str, Any], cache: ENILookupCache) -> tuple[str, str]:
    """Return a description of what the interface is attached to and that resource's id."""
    details = get_eni_attachment_details(eni, cache)
    instance_id = (eni.get("Attachment") or {}).get("InstanceId")
    if instance_id is not None:
        return details, instance_id
    eni_id = eni.get("NetworkInterfaceId")
    endpoint = cache.endpoints_by_eni.get(eni_id)
    if endpoint is not None:
        return details, endpoint["VpcEndpointId"]
    nat_gateway = cache.nat_gateways_by_eni.get(eni_id)
    if nat_gateway is not None:
        return details, nat_gateway["NatGatewayId"]
    return details, ""


def get_vpc_info(svc: Any, vpc_id: str) -> VPCInfo:
    """Return the name and CIDR of a VPC."""
    if not vpc_id:
        return VPCInfo()
    try:
        response = svc.describe_vpcs(VpcIds=[vpc_id])
    except Exception as exc:
        raise_api_error(exc, "DescribeVpcs")
    vpcs = response.get("Vpcs") or []
    if not vpcs:
        return VPCInfo(id=vpc_id)
    vpc = vpcs[0]
    return VPCInfo(
        id=vpc_id,
        name=get_name_from_tags(vpc.get("Tags")),
        cidr=vpc.get("CidrBlock") or "",
    )


def get_subnet_info(svc: Any, subnet_id: str) -> SubnetInfo:
    """Return the name and CIDR of a subnet."""
    if not subnet_id:
        return SubnetInfo()
    try:
        response = svc.describe_subnets(SubnetIds=[subnet_id])
    except Exception as exc:
        raise_api_error(exc, "DescribeSubnets")
    subnets = response.get("Subnets") or []
    if not subnets:
        return SubnetInfo(id=subnet_id)
    subnet = subnets[0]
    return SubnetInfo(
        id=subnet_id,
        name=get_name_from_tags(subnet.get("Tags")),
        cidr=subnet.get("CidrBlock") or "",
    )


def get_security_group_info(
    svc: Any, groups: Iterable[dict[str, Any]] | None
) -> list[SecurityGroupInfo]:
    """Return the ids and names of the given security groups."""
    group_ids = [group.get("GroupId") or "" for group in groups or []]
    if not group_ids:
        return []
    try:
        response = svc.describe_security_groups(GroupIds=group_ids)
    except Exception as exc:
        raise_api_error(exc, "DescribeSecurityGroups")
    return [
        SecurityGroupInfo(id=group.get("GroupId") or "", name=group.get("GroupName") or "")
        for group in response.get("SecurityGroups") or []
    ]


def get_route_table_info(svc: Any, subnet_id: str) -> RouteTableInfo:
    """Return the route table that applies to the subnet, with its routes."""
    if not subnet_id:
        return RouteTableInfo()
    route_tables = svc.describe_route_tables().get("RouteTables") or []
    table = get_subnet_route_table(subnet_id, route_tables)
    if table is None:
        return RouteTableInfo(id=_NO_ROUTE_TABLE, name=_NO_ROUTE_TABLE)
    display, routes = format_route_table_info(table)
    return RouteTableInfo(id=table.get("RouteTableId") or "", name=display, routes=routes)


def find_ip_address_details(svc: Any, ip_address: str) -> IPFinderResult:
    """Find the interface holding the address, as primary or secondary, and describe it."""
    filters = [{"Name": "addresses.private-ip-address", "Values": [ip_address]}]
    enis = search_enis_by_ip(svc, filters)
    if not enis:
        return IPFinderResult(ip_address=ip_address, found=False)

    eni = enis[0]
    if len(enis) > 1:
        logger.warning(
            "Multiple ENIs found with IP %s. Returning details for first ENI (%s)",
            ip_address,
            eni.get("NetworkInterfaceId"),
        )

    cache = new_eni_lookup_cache(svc, [eni])
    resource_name, resource_id = get_resource_name_and_id(eni, cache)
    subnet_id = eni.get("SubnetId") or ""
    return IPFinderResult(
        ip_address=ip_address,
        eni=eni,
        found=True,
        is_secondary_ip=is_secondary_ip(eni, ip_address),
        resource_type=get_eni_usage_type(eni, cache),
        resource_name=resource_name,
        resource_id=resource_id,
        vpc=get_vpc_info(svc, eni.get("VpcId") or ""),
        subnet=get_subnet_info(svc, subnet_id),
        security_groups=get_security_group_info(svc, eni.get("Groups")),
        route_table=get_route_table_info(svc, subnet_id),
    )
"""Per-VPC and per-subnet IP address usage overview."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from awstools.ec2names import get_name_from_tags
from awstools.subnets import (
    IPAddressInfo,
    analyze_subnet_ip_usage,
    calculate_subnet_stats,
)
from awstools.vpcrouting import is_public_subnet


@dataclass
class SubnetUsageInfo:
    """Address usage of a single subnet."""

    id: str = ""
    name: str = ""
    cidr: str = ""
    vpc_id: str = ""
    vpc_name: str = ""
    tags: list[dict[str, Any]] = field(default_factory=list)
    is_public: bool = False
    total_ips: int = 0
    available_ips: int = 0
    used_ips: int = 0
    ip_details: list[IPAddressInfo] = field(default_factory=list)


@dataclass
class VPCUsageInfo:
    """A VPC and the usage of each of its subnets."""

    id: str = ""
    name: str = ""
    cidr: str = ""
    tags: list[dict[str, Any]] = field(default_factory=list)
    subnets: list[SubnetUsageInfo] = field(default_factory=list)


@dataclass
class VPCUsageSummary:
    """Totals across every VPC in the overview."""

    total_vpcs: int = 0
    total_subnets: int = 0
    total_ips: int = 0
    used_ips: int = 0
    aws_reserved_ips: int = 0
    service_ips: int = 0
    available_ips: int = 0


def _ip_dict(info: IPAddressInfo) -> dict[str, Any]:
    data = {
        "ip_address": info.ip_address,
        "usage_type": info.usage_type,
        "attachment_info": info.attachment_info,
    }
    if info.public_ip:
        data["public_ip"] = info.public_ip
    return data


def _subnet_dict(subnet: SubnetUsageInfo) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": subnet.id,
        "name": subnet.name,
        "cidr": subnet.cidr,
        "vpc_id": subnet.vpc_id,
        "vpc_name": subnet.vpc_name,
    }
    if subnet.tags:
        data["tags"] = [dict(tag) for tag in subnet.tags]
    data.update(
        is_public=subnet.is_public,
        total_ips=subnet.total_ips,
        available_ips=subnet.available_ips,
        used_ips=subnet.used_ips,
    )
    if subnet.ip_details:
        data["ip_details"] = [_ip_dict(info) for info in subnet.ip_details]
    return data


def _vpc_dict(vpc: VPCUsageInfo) -> dict[str, Any]:
    data: dict[str, Any] = {"id": vpc.id, "name": vpc.name, "cidr": vpc.cidr}
    if vpc.tags:
        data["tags"] = [dict(tag) for tag in vpc.tags]
    data["subnets"] = [_subnet_dict(subnet) for subnet in vpc.subnets]
    return data


@dataclass
class VPCOverview:
    """The complete VPC usage analysis."""

    vpcs: list[VPCUsageInfo] = field(default_factory=list)
    summary: VPCUsageSummary = field(default_factory=VPCUsageSummary)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dictionary; empty tags and IP details are left out."""
        return {
            "vpcs": [_vpc_dict(vpc) for vpc in self.vpcs],
            "summary": asdict(self.summary),
        }


def get_vpc_usage_overview(svc: Any) -> VPCOverview:
    """Analyse the address usage of every subnet of every VPC in the region."""
    vpcs = svc.describe_vpcs().get("Vpcs") or []
    subnets = svc.describe_subnets().get("Subnets") or []
    network_interfaces = svc.describe_network_interfaces().get("NetworkInterfaces") or []
    route_tables = svc.describe_route_tables().get("RouteTables") or []

    summary = VPCUsageSummary()
    infos: list[VPCUsageInfo] = []
    for vpc in vpcs:
        vpc_id = vpc["VpcId"]
        vpc_info = VPCUsageInfo(
            id=vpc_id,
            name=get_name_from_tags(vpc.get("Tags")),
            cidr=vpc["CidrBlock"],
            tags=list(vpc.get("Tags") or []),
        )
        for subnet in subnets:
            if subnet["VpcId"] != vpc_id:
                continue
            total_ips, _ = calculate_subnet_stats(subnet["CidrBlock"])
            usage = analyze_subnet_ip_usage(subnet, network_interfaces, svc)
            vpc_info.subnets.append(
                SubnetUsageInfo(
                    id=subnet["SubnetId"],
                    name=get_name_from_tags(subnet.get("Tags")),
                    cidr=subnet["CidrBlock"],
                    vpc_id=subnet["VpcId"],
                    vpc_name=vpc_info.name,
                    tags=list(subnet.get("Tags") or []),
                    is_public=is_public_subnet(subnet["SubnetId"], route_tables),
                    total_ips=total_ips,
                    available_ips=usage.available_ips,
                    used_ips=usage.used_ips,
                    ip_details=usage.ip_details,
                )
            )
            summary.total_ips += total_ips
            summary.used_ips += usage.used_ips
            summary.available_ips += usage.available_ips
            summary.aws_reserved_ips += usage.aws_reserved_ips
            summary.service_ips += usage.service_ips
        infos.append(vpc_info)

    summary.total_vpcs = len(infos)
    summary.total_subnets = sum(len(vpc.subnets) for vpc in infos)
    return VPCOverview(vpcs=infos, summary=summary)
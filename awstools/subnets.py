"""Subnet IP address analysis and the lookups that explain each address in use."""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Union

from awstools.ec2names import get_name_from_tags

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

VPC_ENDPOINT_TYPE = "VPC Endpoint"
LAMBDA_FUNCTION_TYPE = "Lambda Function"
AWS_SERVICE_TYPE = "AWS Service"
RESERVED_USAGE_TYPE = "RESERVED BY AWS"

_PLAIN_INTERFACE = "interface"
_TRANSIT_GATEWAY_INTERFACE = "transit_gateway"
_NAT_GATEWAY_INTERFACE = "nat_gateway"

# AWS keeps back the first four addresses and the last one of every subnet.
_AWS_RESERVED_COUNT = 5
_INSTANCE_BATCH_SIZE = 100

_INTERFACE_TYPE_USAGE = {
    _TRANSIT_GATEWAY_INTERFACE: "Transit Gateway",
    _NAT_GATEWAY_INTERFACE: "NAT Gateway",
    "vpc_endpoint": VPC_ENDPOINT_TYPE,
    "lambda": LAMBDA_FUNCTION_TYPE,
    "quicksight": "QuickSight",
    "network_load_balancer": "Network Load Balancer",
    "gateway_load_balancer": "Gateway Load Balancer",
}

# Checked in order; the first keyword found in the description decides.
_DESCRIPTION_USAGE = (
    ("elb", "Load Balancer"),
    ("rds", "RDS Database"),
    ("lambda", LAMBDA_FUNCTION_TYPE),
    ("vpc", "VPC Service"),
    ("elasticache", "ElastiCache"),
    ("efs", "EFS Mount Target"),
    ("redshift", "Redshift Cluster"),
    ("apigateway", "API Gateway"),
    ("codebuild", "CodeBuild"),
)


@dataclass
class IPAddressInfo:
    """What a single IP address in a subnet is used for."""

    ip_address: str = ""
    usage_type: str = ""
    attachment_info: str = ""
    public_ip: str = ""


@dataclass
class SubnetIPUsage:
    """The outcome of analysing the addresses of one subnet."""

    ip_details: list[IPAddressInfo] = field(default_factory=list)
    used_ips: int = 0
    available_ips: int = 0
    aws_reserved_ips: int = 0
    service_ips: int = 0


@dataclass
class ENILookupCache:
    """Resources fetched in bulk so network interfaces can be described without extra calls."""

    instance_names: dict[str, str] = field(default_factory=dict)
    transit_gateways: dict[str, str] = field(default_factory=dict)
    endpoints_by_eni: dict[str, dict[str, Any]] = field(default_factory=dict)
    nat_gateways_by_eni: dict[str, dict[str, Any]] = field(default_factory=dict)

    def fetch_vpc_endpoints(self, svc: Any, vpc_ids: Iterable[str]) -> None:
        """Index the VPC endpoints of the given VPCs by network interface id."""
        vpc_list = sorted(set(vpc_ids))
        if not vpc_list:
            return
        response = svc.describe_vpc_endpoints(Filters=[{"Name": "vpc-id", "Values": vpc_list}])
        for endpoint in response.get("VpcEndpoints") or []:
            for eni_id in endpoint.get("NetworkInterfaceIds") or []:
                self.endpoints_by_eni[eni_id] = endpoint

    def fetch_instance_names(self, svc: Any, instance_ids: Iterable[str]) -> None:
        """Record the Name tag of each instance; batches that fail are skipped."""
        id_list = sorted(set(instance_ids))
        for start in range(0, len(id_list), _INSTANCE_BATCH_SIZE):
            batch = id_list[start : start + _INSTANCE_BATCH_SIZE]
            try:
                response = svc.describe_instances(InstanceIds=batch)
            except Exception:
                continue
            for reservation in response.get("Reservations") or []:
                for instance in reservation.get("Instances") or []:
                    instance_id = instance.get("InstanceId")
                    if instance_id is not None:
                        self.instance_names[instance_id] = get_name_from_tags(instance.get("Tags"))

    def fetch_nat_gateways(self, svc: Any, vpc_ids: Iterable[str]) -> None:
        """Index the NAT gateways of the given VPCs by network interface id."""
        vpc_list = sorted(set(vpc_ids))
        if not vpc_list:
            return
        response = svc.describe_nat_gateways(Filter=[{"Name": "vpc-id", "Values": vpc_list}])
        for nat_gateway in response.get("NatGateways") or []:
            for address in nat_gateway.get("NatGatewayAddresses") or []:
                eni_id = address.get("NetworkInterfaceId")
                if eni_id is not None:
                    self.nat_gateways_by_eni[eni_id] = nat_gateway

    def fetch_transit_gateways(self, svc: Any, vpc_ids: Iterable[str]) -> None:
        """Record the transit gateway attachment id of each of the given VPCs."""
        vpc_list = sorted(set(vpc_ids))
        if not vpc_list:
            return
        response = svc.describe_transit_gateway_vpc_attachments(
            Filters=[{"Name": "vpc-id", "Values": vpc_list}]
        )
        for attachment in response.get("TransitGatewayVpcAttachments") or []:
            vpc_id = attachment.get("VpcId")
            attachment_id = attachment.get("TransitGatewayAttachmentId")
            if vpc_id is not None and attachment_id is not None:
                self.transit_gateways[vpc_id] = attachment_id


def _instance_id(eni: dict[str, Any]) -> str | None:
    return (eni.get("Attachment") or {}).get("InstanceId")


def new_eni_lookup_cache(svc: Any, network_interfaces: Iterable[dict[str, Any]]) -> ENILookupCache:
    """Build a cache holding everything needed to describe the given interfaces."""
    vpc_ids: set[str] = set()
    instance_ids: set[str] = set()
    for eni in network_interfaces:
        if eni.get("VpcId") is not None:
            vpc_ids.add(eni["VpcId"])
        instance_id = _instance_id(eni)
        if instance_id is not None:
            instance_ids.add(instance_id)

    cache = ENILookupCache()
    cache.fetch_vpc_endpoints(svc, vpc_ids)
    cache.fetch_instance_names(svc, instance_ids)
    cache.fetch_nat_gateways(svc, vpc_ids)
    cache.fetch_transit_gateways(svc, vpc_ids)
    return cache


def generate_ip_range(cidr: str) -> list[IPAddress]:
    """Return every address in the CIDR block; raises ValueError if it is invalid."""
    if "/" not in cidr:
        raise ValueError(f"invalid CIDR address: {cidr!r}")
    return list(ipaddress.ip_network(cidr, strict=False))


def calculate_subnet_stats(cidr: str) -> tuple[int, int]:
    """Return the total addresses in the block and those left after AWS reservations."""
    if "/" not in cidr:
        raise ValueError(f"invalid CIDR address: {cidr!r}")
    total = ipaddress.ip_network(cidr, strict=False).num_addresses
    return total, max(total - _AWS_RESERVED_COUNT, 0)


def sort_ip_addresses(ips: Iterable[IPAddress]) -> list[IPAddress]:
    """Return the addresses in ascending numerical order."""
    return sorted(ips, key=lambda ip: (ip.version, int(ip)))


def identify_aws_reserved_ips(ips: list[IPAddress]) -> dict[str, str]:
    """Map the addresses AWS reserves in a subnet to what they are reserved for."""
    reserved: dict[str, str] = {}
    labels = ("Network address", "VPC router", "DNS server", "Reserved for future use")
    for ip, label in zip(ips, labels):
        reserved[str(ip)] = label
    if len(ips) > 4:
        reserved[str(ips[-1])] = "Broadcast address"
    return reserved


def get_eni_usage_type(eni: dict[str, Any], cache: ENILookupCache) -> str:
    """Return the general kind of resource a network interface belongs to."""
    if eni.get("NetworkInterfaceId") in cache.endpoints_by_eni:
        return VPC_ENDPOINT_TYPE

    if _instance_id(eni) is not None:
        return "EC2 Instance"

    interface_type = eni.get("InterfaceType") or ""
    if interface_type != _PLAIN_INTERFACE:
        return _INTERFACE_TYPE_USAGE.get(interface_type, AWS_SERVICE_TYPE)

    description = eni.get("Description")
    if description is not None:
        lowered = description.lower()
        for keyword, usage in _DESCRIPTION_USAGE:
            if keyword in lowered:
                return usage
        return AWS_SERVICE_TYPE

    if eni.get("Attachment") is None:
        return "Unattached ENI"
    return "Unknown"


def get_eni_attachment_details(eni: dict[str, Any], cache: ENILookupCache) -> str:
    """Return what exactly a network interface is attached to."""
    eni_id = eni.get("NetworkInterfaceId")
    endpoint = cache.endpoints_by_eni.get(eni_id)
    if endpoint is not None:
        short_service = endpoint["ServiceName"].split(".")[-1]
        return f"{endpoint['VpcEndpointId']} ({short_service})"

    instance_id = _instance_id(eni)
    if instance_id is not None:
        instance_name = cache.instance_names.get(instance_id, "")
        if instance_name and instance_name != instance_id:
            return f"{instance_id} ({instance_name})"
        return instance_id

    interface_type = eni.get("InterfaceType") or ""
    if interface_type and interface_type != _PLAIN_INTERFACE:
        if interface_type == _TRANSIT_GATEWAY_INTERFACE:
            vpc_id = eni.get("VpcId")
            if vpc_id is not None and vpc_id in cache.transit_gateways:
                return cache.transit_gateways[vpc_id]
            return "Unknown Transit Gateway"
        if interface_type == _NAT_GATEWAY_INTERFACE:
            nat_gateway = cache.nat_gateways_by_eni.get(eni_id)
            if nat_gateway is None:
                return "Unknown NAT Gateway"
            nat_id = nat_gateway["NatGatewayId"]
            nat_name = get_name_from_tags(nat_gateway.get("Tags"))
            if nat_name and nat_name != nat_id:
                return f"{nat_id} ({nat_name})"
            return nat_id
        description = eni.get("Description")
        return description if description is not None else interface_type

    description = eni.get("Description")
    if description is not None:
        return description

    if eni.get("Attachment") is None:
        return "Unattached"
    return "N/A"


def map_network_interfaces_to_ips(
    network_interfaces: list[dict[str, Any]], subnet_id: str, svc: Any
) -> dict[str, IPAddressInfo]:
    """Describe every private address of the interfaces that sit in the subnet."""
    cache = new_eni_lookup_cache(svc, network_interfaces)
    result: dict[str, IPAddressInfo] = {}
    for eni in network_interfaces:
        if eni.get("SubnetId") != subnet_id:
            continue
        for private_ip in eni.get("PrivateIpAddresses") or []:
            address = private_ip.get("PrivateIpAddress")
            if address is None:
                continue
            public_ip = (private_ip.get("Association") or {}).get("PublicIp") or ""
            result[address] = IPAddressInfo(
                ip_address=address,
                usage_type=get_eni_usage_type(eni, cache),
                attachment_info=get_eni_attachment_details(eni, cache),
                public_ip=public_ip,
            )
    return result


def analyze_subnet_ip_usage(
    subnet: dict[str, Any], network_interfaces: list[dict[str, Any]], svc: Any
) -> SubnetIPUsage:
    """Account for every used address in a subnet, reserved ones and service ones."""
    all_ips = generate_ip_range(subnet["CidrBlock"])
    reserved = identify_aws_reserved_ips(all_ips)
    eni_ips = map_network_interfaces_to_ips(network_interfaces, subnet["SubnetId"], svc)

    usage = SubnetIPUsage()
    for ip in sort_ip_addresses(all_ips):
        text = str(ip)
        if text in reserved:
            usage.ip_details.append(
                IPAddressInfo(
                    ip_address=text,
                    usage_type=RESERVED_USAGE_TYPE,
                    attachment_info=reserved[text],
                )
            )
            usage.aws_reserved_ips += 1
        elif text in eni_ips:
            usage.ip_details.append(eni_ips[text])
            usage.service_ips += 1
    usage.used_ips = usage.aws_reserved_ips + usage.service_ips
    usage.available_ips = len(all_ips) - usage.used_ips
    return usage
"""VPC peerings, route tables, transit gateways and network interface lookups."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from awstools.ec2names import get_name_from_tags, get_resource_display_name_from_tags

_VPN_RESOURCE_TYPE = "vpn"

# Later entries win when a route carries more than one target.
_ROUTE_TARGET_KEYS = (
    "VpcPeeringConnectionId",
    "GatewayId",
    "NatGatewayId",
    "NetworkInterfaceId",
    "EgressOnlyInternetGatewayId",
    "TransitGatewayId",
)

# First present entry wins when formatting route tables for display.
_DISPLAY_TARGET_KEYS = (
    "GatewayId",
    "NatGatewayId",
    "VpcPeeringConnectionId",
    "NetworkInterfaceId",
    "TransitGatewayId",
    "EgressOnlyInternetGatewayId",
)


@dataclass
class VPCHolder:
    """Basic identification of a VPC."""

    id: str = ""
    account_id: str = ""


@dataclass
class VpcPeering:
    """A peering connection between two VPCs."""

    requester_vpc: VPCHolder = field(default_factory=VPCHolder)
    accepter_vpc: VPCHolder = field(default_factory=VPCHolder)
    peering_id: str = ""


@dataclass
class VPCRoute:
    """A route in a VPC route table; the target is given whatever its kind."""

    destination_cidr: str = ""
    state: str = ""
    destination_target: str = ""


@dataclass
class VPCRouteTable:
    """A VPC route table with its routes and associated subnets."""

    vpc: VPCHolder = field(default_factory=VPCHolder)
    id: str = ""
    routes: list[VPCRoute] = field(default_factory=list)
    subnets: list[str] = field(default_factory=list)
    default: bool = False


@dataclass
class TransitGatewayAttachment:
    """An attachment of a resource to a transit gateway."""

    id: str = ""
    resource_type: str = ""
    resource_id: str = ""


@dataclass
class TransitGatewayRoute:
    """A route in a transit gateway route table."""

    state: str = ""
    cidr: str = ""
    attachment: TransitGatewayAttachment = field(default_factory=TransitGatewayAttachment)
    resource_type: str = ""
    route_type: str = ""


@dataclass
class TransitGatewayRouteTable:
    """A transit gateway route table with its routes and attachments."""

    id: str = ""
    name: str = ""
    routes: list[TransitGatewayRoute] = field(default_factory=list)
    source_attachments: list[TransitGatewayAttachment] = field(default_factory=list)
    destination_attachments: list[TransitGatewayAttachment] = field(default_factory=list)


@dataclass
class TransitGateway:
    """A transit gateway and its route tables keyed by route table id."""

    id: str = ""
    account_id: str = ""
    name: str = ""
    route_tables: dict[str, TransitGatewayRouteTable] = field(default_factory=dict)


def get_all_vpc_peers(svc: Any) -> list[VpcPeering]:
    """Return the peerings present in this account and region."""
    response = svc.describe_vpc_peering_connections()
    peerings = []
    for connection in response.get("VpcPeeringConnections") or []:
        requester = connection["RequesterVpcInfo"]
        accepter = connection["AccepterVpcInfo"]
        peerings.append(
            VpcPeering(
                requester_vpc=VPCHolder(id=requester["VpcId"], account_id=requester["OwnerId"]),
                accepter_vpc=VPCHolder(id=accepter["VpcId"], account_id=accepter["OwnerId"]),
                peering_id=connection["VpcPeeringConnectionId"],
            )
        )
    return peerings


def parse_vpc_routes(routes: list[dict[str, Any]] | None) -> list[VPCRoute]:
    """Turn raw route entries into VPCRoute objects."""
    result = []
    for route in routes or []:
        parsed = VPCRoute(state=str(route.get("State") or ""))
        if route.get("DestinationCidrBlock") is not None:
            parsed.destination_cidr = route["DestinationCidrBlock"]
        if route.get("DestinationIpv6CidrBlock") is not None:
            parsed.destination_cidr = route["DestinationIpv6CidrBlock"]
        for key in _ROUTE_TARGET_KEYS:
            if route.get(key) is not None:
                parsed.destination_target = route[key]
        result.append(parsed)
    return result


def get_all_vpc_route_tables(svc: Any) -> list[VPCRouteTable]:
    """Return every route table in the account and region."""
    tables = []
    for table in svc.describe_route_tables().get("RouteTables") or []:
        subnets = [
            association["SubnetId"]
            for association in table.get("Associations") or []
            if association.get("SubnetId") is not None
        ]
        tables.append(
            VPCRouteTable(
                vpc=VPCHolder(id=table["VpcId"], account_id=table["OwnerId"]),
                id=table["RouteTableId"],
                routes=parse_vpc_routes(table.get("Routes")),
                subnets=subnets,
            )
        )
    return tables


def get_all_transit_gateways(svc: Any) -> list[TransitGateway]:
    """Return every transit gateway in the account with its route tables."""
    gateways = []
    for tgw in svc.describe_transit_gateways().get("TransitGateways") or []:
        tgw_id = tgw["TransitGatewayId"]
        gateways.append(
            TransitGateway(
                id=tgw_id,
                account_id=tgw["OwnerId"],
                name=get_name_from_tags(tgw.get("Tags")),
                route_tables=get_route_tables_for_transit_gateway(tgw_id, svc),
            )
        )
    return gateways


def get_route_tables_for_transit_gateway(tgw_id: str, svc: Any) -> dict[str, TransitGatewayRouteTable]:
    """Return the route tables of a transit gateway, keyed by id, with routes filled in."""
    response = svc.describe_transit_gateway_route_tables(
        Filters=[{"Name": "transit-gateway-id", "Values": [tgw_id]}]
    )
    tables: dict[str, TransitGatewayRouteTable] = {}
    for table in response.get("TransitGatewayRouteTables") or []:
        route_table = TransitGatewayRouteTable(
            id=table["TransitGatewayRouteTableId"],
            name=get_name_from_tags(table.get("Tags")),
        )
        tables[route_table.id] = route_table
    for route_table in tables.values():
        route_table.routes = get_active_routes_for_transit_gateway_route_table(
            route_table.id, svc
        ) + get_blackhole_routes_for_transit_gateway_route_table(route_table.id, svc)
        route_table.source_attachments = get_source_attachments_for_transit_gateway_route_table(
            route_table.id, svc
        )
    return tables


def get_source_attachments_for_transit_gateway_route_table(
    route_table_id: str, svc: Any
) -> list[TransitGatewayAttachment]:
    """Return the attachments associated with a transit gateway route table."""
    response = svc.get_transit_gateway_route_table_associations(
        TransitGatewayRouteTableId=route_table_id
    )
    return [
        TransitGatewayAttachment(
            id=association["TransitGatewayAttachmentId"],
            resource_id=association["ResourceId"],
            resource_type=str(association.get("ResourceType") or ""),
        )
        for association in response.get("Associations") or []
    ]


def _search_routes(route_table_id: str, state: str, svc: Any) -> list[dict[str, Any]]:
    response = svc.search_transit_gateway_routes(
        TransitGatewayRouteTableId=route_table_id,
        Filters=[{"Name": "state", "Values": [state]}],
    )
    return list(response.get("Routes") or [])


def get_active_routes_for_transit_gateway_route_table(
    route_table_id: str, svc: Any
) -> list[TransitGatewayRoute]:
    """Return the active routes of a transit gateway route table."""
    routes = []
    for route in _search_routes(route_table_id, "active", svc):
        attachment = route["TransitGatewayAttachments"][0]
        resource_id = attachment["ResourceId"]
        # VPN resource ids carry the public IP in parentheses; drop it.
        if attachment.get("ResourceType") == _VPN_RESOURCE_TYPE:
            resource_id = resource_id.split("(")[0]
        routes.append(
            TransitGatewayRoute(
                state=str(route.get("State") or ""),
                cidr=route["DestinationCidrBlock"],
                attachment=TransitGatewayAttachment(
                    id=attachment["TransitGatewayAttachmentId"],
                    resource_id=resource_id,
                ),
                route_type=str(route.get("Type") or ""),
            )
        )
    return routes


def get_blackhole_routes_for_transit_gateway_route_table(
    route_table_id: str, svc: Any
) -> list[TransitGatewayRoute]:
    """Return the blackhole routes of a transit gateway route table."""
    return [
        TransitGatewayRoute(
            state=str(route.get("State") or ""),
            cidr=route["DestinationCidrBlock"],
            route_type=str(route.get("Type") or ""),
        )
        for route in _search_routes(route_table_id, "blackhole", svc)
    ]


def _add_tagged_names(result: dict[str, str], resources: list[dict[str, Any]], id_key: str) -> None:
    for resource in resources:
        resource_id = resource[id_key]
        result[resource_id] = get_name_from_tags(resource.get("Tags")) or resource_id


def get_all_ec2_resource_names(svc: Any) -> dict[str, str]:
    """Map the ids of VPCs, peerings, subnets, route tables, transit gateways and VPNs to names."""
    result: dict[str, str] = {}
    _add_tagged_names(result, svc.describe_vpcs().get("Vpcs") or [], "VpcId")
    _add_tagged_names(
        result,
        svc.describe_vpc_peering_connections().get("VpcPeeringConnections") or [],
        "VpcPeeringConnectionId",
    )
    _add_tagged_names(result, svc.describe_subnets().get("Subnets") or [], "SubnetId")
    _add_tagged_names(result, svc.describe_route_tables().get("RouteTables") or [], "RouteTableId")
    for tgw in get_all_transit_gateways(svc):
        result[tgw.id] = tgw.name
        for route_table in tgw.route_tables.values():
            result[route_table.id] = route_table.name
    _add_tagged_names(
        result, svc.describe_vpn_connections().get("VpnConnections") or [], "VpnConnectionId"
    )
    return result


def get_network_interfaces(svc: Any) -> list[dict[str, Any]]:
    return list(svc.describe_network_interfaces().get("NetworkInterfaces") or [])


def get_transit_gateway_from_network_interface(network_interface: dict[str, Any], svc: Any) -> str:
    """Return the transit gateway attachment id whose subnets include the interface's subnet."""
    response = svc.describe_transit_gateway_vpc_attachments(
        Filters=[{"Name": "vpc-id", "Values": [network_interface["VpcId"]]}]
    )
    attachments = response.get("TransitGatewayVpcAttachments") or []
    if attachments:
        first = attachments[0]
        if network_interface["SubnetId"] in (first.get("SubnetIds") or []):
            return first["TransitGatewayAttachmentId"]
    return ""


def get_vpc_endpoint_from_network_interface(
    network_interface: dict[str, Any], svc: Any
) -> dict[str, Any] | None:
    """Return the VPC endpoint that owns the interface, or None."""
    response = svc.describe_vpc_endpoints(
        Filters=[{"Name": "vpc-id", "Values": [network_interface["VpcId"]]}]
    )
    eni_id = network_interface["NetworkInterfaceId"]
    for endpoint in response.get("VpcEndpoints") or []:
        if eni_id in (endpoint.get("NetworkInterfaceIds") or []):
            return endpoint
    return None


def get_nat_gateway_from_network_interface(
    network_interface: dict[str, Any], svc: Any
) -> dict[str, Any] | None:
    """Return the NAT gateway that owns the interface, or None."""
    response = svc.describe_nat_gateways(
        Filter=[{"Name": "vpc-id", "Values": [network_interface["VpcId"]]}]
    )
    eni_id = network_interface["NetworkInterfaceId"]
    for nat_gateway in response.get("NatGateways") or []:
        for address in nat_gateway.get("NatGatewayAddresses") or []:
            if address.get("NetworkInterfaceId") == eni_id:
                return nat_gateway
    return None


def get_subnet_route_table(
    subnet_id: str, route_tables: list[dict[str, Any]]
) -> dict[str, Any] | None:
    """Return the route table explicitly associated with the subnet, else the main one."""
    for table in route_tables:
        for association in table.get("Associations") or []:
            if association.get("SubnetId") == subnet_id:
                return table
    for table in route_tables:
        for association in table.get("Associations") or []:
            if association.get("Main"):
                return table
    return None


def format_route_table_info(route_table: dict[str, Any] | None) -> tuple[str, list[str]]:
    """Return the display name of a route table and its routes as "CIDR: target" lines."""
    if route_table is None:
        return "No route table", []
    display = get_resource_display_name_from_tags(route_table["RouteTableId"], route_table.get("Tags"))
    lines = []
    for route in route_table.get("Routes") or []:
        destination = route.get("DestinationCidrBlock") or route.get("DestinationIpv6CidrBlock") or ""
        target = next(
            (route[key] for key in _DISPLAY_TARGET_KEYS if route.get(key) is not None),
            "local",
        )
        if destination and target:
            lines.append(f"{destination}: {target}")
    return display, lines


def has_internet_gateway_route(route_table: dict[str, Any]) -> bool:
    """Return True if the table sends 0.0.0.0/0 to an internet gateway."""
    return any(
        (route.get("GatewayId") or "").startswith("igw-")
        and route.get("DestinationCidrBlock") == "0.0.0.0/0"
        for route in route_table.get("Routes") or []
    )


def is_public_subnet(subnet_id: str, route_tables: list[dict[str, Any]]) -> bool:
    """Return True if the subnet's route table has a default route to an internet gateway."""
    table = get_subnet_route_table(subnet_id, route_tables)
    return table is not None and has_internet_gateway_route(table)
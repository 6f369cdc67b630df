import pytest

from awstools.ipfinder import (
    AWSAPIError,
    IPFinderResult,
    RouteTableInfo,
    SecurityGroupInfo,
    SubnetInfo,
    VPCInfo,
    find_ip_address_details,
    get_resource_name_and_id,
    get_route_table_info,
    get_security_group_info,
    get_subnet_info,
    get_vpc_info,
    is_secondary_ip,
    is_valid_cidr,
    is_valid_ip_address,
    raise_api_error,
    search_enis_by_ip,
)
from awstools.subnets import ENILookupCache


class FakeEC2:
    def __init__(
        self,
        enis=(),
        vpcs=(),
        subnets=(),
        groups=(),
        route_tables=(),
        instances=(),
        fail_with=None,
    ):
        self.enis = list(enis)
        self.vpcs = list(vpcs)
        self.subnets = list(subnets)
        self.groups = list(groups)
        self.route_tables = list(route_tables)
        self.instances = list(instances)
        self.fail_with = fail_with

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    def describe_network_interfaces(self, Filters=()):
        self._maybe_fail()
        wanted = None
        for item in Filters:
            if item["Name"] == "addresses.private-ip-address":
                wanted = set(item["Values"])
        if wanted is None:
            return {"NetworkInterfaces": self.enis}
        found = [
            eni
            for eni in self.enis
            if any(p["PrivateIpAddress"] in wanted for p in eni.get("PrivateIpAddresses", []))
        ]
        return {"NetworkInterfaces": found}

    def describe_vpcs(self, VpcIds=()):
        self._maybe_fail()
        return {"Vpcs": [v for v in self.vpcs if v["VpcId"] in VpcIds]}

    def describe_subnets(self, SubnetIds=()):
        self._maybe_fail()
        return {"Subnets": [s for s in self.subnets if s["SubnetId"] in SubnetIds]}

    def describe_security_groups(self, GroupIds=()):
        self._maybe_fail()
        return {"SecurityGroups": [g for g in self.groups if g["GroupId"] in GroupIds]}

    def describe_route_tables(self, **kwargs):
        return {"RouteTables": self.route_tables}

    def describe_vpc_endpoints(self, **kwargs):
        return {"VpcEndpoints": []}

    def describe_nat_gateways(self, **kwargs):
        return {"NatGateways": []}

    def describe_transit_gateway_vpc_attachments(self, **kwargs):
        return {"TransitGatewayVpcAttachments": []}

    def describe_instances(self, InstanceIds=()):
        found = [i for i in self.instances if i["InstanceId"] in InstanceIds]
        return {"Reservations": [{"Instances": found}]}


def _name(value):
    return [{"Key": "Name", "Value": value}]


@pytest.mark.parametrize(
    "ip, expected",
    [
        ("192.168.1.1", True),
        ("2001:db8::1", True),
        ("999.999.999.999", False),
        ("", False),
        ("not-an-ip", False),
        ("192.168.1", False),
        ("192.168.1.1.1", False),
        ("127.0.0.1", True),
        ("::1", True),
        ("0.0.0.0", True),
    ],
)
def test_is_valid_ip_address(ip, expected):
    assert is_valid_ip_address(ip) is expected


@pytest.mark.parametrize(
    "cidr, expected",
    [
        ("192.168.1.0/24", True),
        ("2001:db8::/32", True),
        ("192.168.1.1/32", True),
        ("192.168.1.0", False),
        ("999.999.999.999/24", False),
        ("192.168.1.0/99", False),
        ("", False),
        ("not-a-cidr", False),
        ("10.0.0.0/8", True),
        ("192.168.1.0/30", True),
    ],
)
def test_is_valid_cidr(cidr, expected):
    assert is_valid_cidr(cidr) is expected


def _eni(primary, *secondaries):
    addresses = [{"PrivateIpAddress": primary, "Primary": True}]
    addresses += [{"PrivateIpAddress": ip, "Primary": False} for ip in secondaries]
    return {"PrivateIpAddress": primary, "PrivateIpAddresses": addresses}


@pytest.mark.parametrize(
    "eni, ip, expected",
    [
        (_eni("10.0.1.100"), "10.0.1.100", False),
        (_eni("10.0.1.100", "10.0.1.101"), "10.0.1.101", True),
        (_eni("10.0.1.100"), "10.0.1.999", False),
        (_eni("10.0.1.100", "10.0.1.101", "10.0.1.102"), "10.0.1.102", True),
    ],
)
def test_is_secondary_ip(eni, ip, expected):
    assert is_secondary_ip(eni, ip) is expected


@pytest.mark.parametrize(
    "message, api_name, expected",
    [
        (
            "UnauthorizedOperation: You are not authorized to perform this operation",
            "DescribeNetworkInterfaces",
            "insufficient permissions for DescribeNetworkInterfaces",
        ),
        (
            "AuthFailure: AWS was not able to validate the provided access credentials",
            "DescribeVpcs",
            "AWS authentication failed",
        ),
        ("RequestLimitExceeded: Request limit exceeded", "DescribeSubnets", "AWS API rate limit exceeded"),
        ("Throttling: Rate exceeded", "DescribeSecurityGroups", "AWS API rate limit exceeded"),
        (
            "InternalError: We encountered an internal error",
            "DescribeNetworkInterfaces",
            "failed to call DescribeNetworkInterfaces",
        ),
    ],
)
def test_raise_api_error(message, api_name, expected):
    original = Exception(message)
    with pytest.raises(AWSAPIError) as excinfo:
        raise_api_error(original, api_name)
    assert expected in str(excinfo.value)
    assert message in str(excinfo.value)
    assert excinfo.value.__cause__ is original


def test_search_enis_wraps_api_errors():
    svc = FakeEC2(fail_with=Exception("UnauthorizedOperation: denied"))
    with pytest.raises(AWSAPIError, match="insufficient permissions for DescribeNetworkInterfaces"):
        search_enis_by_ip(svc, [])


def test_get_resource_name_and_id_unattached():
    eni = {"NetworkInterfaceId": "eni-12345678"}
    name, resource_id = get_resource_name_and_id(eni, ENILookupCache())
    assert name == "Unattached"
    assert resource_id == ""


def test_get_resource_name_and_id_instance():
    eni = {
        "NetworkInterfaceId": "eni-12345678",
        "Attachment": {"InstanceId": "i-1234567890abcdef0"},
    }
    name, resource_id = get_resource_name_and_id(eni, ENILookupCache())
    assert name == "i-1234567890abcdef0"
    assert resource_id == "i-1234567890abcdef0"


def test_get_resource_name_and_id_endpoint():
    endpoint = {"VpcEndpointId": "vpce-1", "ServiceName": "com.amazonaws.us-east-1.s3"}
    cache = ENILookupCache(endpoints_by_eni={"eni-1": endpoint})
    name, resource_id = get_resource_name_and_id({"NetworkInterfaceId": "eni-1"}, cache)
    assert name == "vpce-1 (s3)"
    assert resource_id == "vpce-1"


def test_vpc_and_subnet_info_edge_cases():
    svc = FakeEC2()
    assert get_vpc_info(svc, "") == VPCInfo()
    assert get_vpc_info(svc, "vpc-12345678") == VPCInfo(id="vpc-12345678")
    assert get_subnet_info(svc, "") == SubnetInfo()
    assert get_subnet_info(svc, "subnet-12345678") == SubnetInfo(id="subnet-12345678")


def test_vpc_info_api_error():
    svc = FakeEC2(fail_with=Exception("AuthFailure: bad credentials"))
    with pytest.raises(AWSAPIError, match="AWS authentication failed"):
        get_vpc_info(svc, "vpc-1")


def test_security_group_info_empty():
    assert get_security_group_info(FakeEC2(), []) == []


def test_route_table_info_edge_cases():
    assert get_route_table_info(FakeEC2(), "") == RouteTableInfo()
    assert get_route_table_info(FakeEC2(), "subnet-1") == RouteTableInfo(
        id="No route table", name="No route table", routes=[]
    )


@pytest.mark.parametrize("ip", ["10.0.1.999", "192.168.1.1"])
def test_find_ip_not_found(ip):
    assert find_ip_address_details(FakeEC2(), ip) == IPFinderResult(ip_address=ip, found=False)


@pytest.fixture
def populated():
    eni = {
        "NetworkInterfaceId": "eni-12345678",
        "VpcId": "vpc-12345678",
        "SubnetId": "subnet-12345678",
        "InterfaceType": "interface",
        "Attachment": {"InstanceId": "i-12345678"},
        "Groups": [{"GroupId": "sg-12345678"}],
        **_eni("10.0.1.100", "10.0.1.101"),
    }
    return FakeEC2(
        enis=[eni],
        vpcs=[{"VpcId": "vpc-12345678", "CidrBlock": "10.0.0.0/16", "Tags": _name("main-vpc")}],
        subnets=[
            {
                "SubnetId": "subnet-12345678",
                "CidrBlock": "10.0.1.0/24",
                "Tags": _name("public-subnet-1"),
            }
        ],
        groups=[{"GroupId": "sg-12345678", "GroupName": "web-servers"}],
        route_tables=[
            {
                "RouteTableId": "rtb-12345678",
                "Tags": _name("main-rt"),
                "Associations": [{"SubnetId": "subnet-12345678"}],
                "Routes": [
                    {"DestinationCidrBlock": "10.0.0.0/16", "GatewayId": "local"},
                    {"DestinationCidrBlock": "0.0.0.0/0", "GatewayId": "igw-12345678"},
                ],
            }
        ],
        instances=[{"InstanceId": "i-12345678", "Tags": _name("web-server-1")}],
    )


def test_find_ip_secondary_address(populated):
    result = find_ip_address_details(populated, "10.0.1.101")
    assert result.found is True
    assert result.is_secondary_ip is True
    assert result.eni["NetworkInterfaceId"] == "eni-12345678"
    assert result.resource_type == "EC2 Instance"
    assert result.resource_name == "i-12345678 (web-server-1)"
    assert result.resource_id == "i-12345678"
    assert result.vpc == VPCInfo(id="vpc-12345678", name="main-vpc", cidr="10.0.0.0/16")
    assert result.subnet == SubnetInfo(
        id="subnet-12345678", name="public-subnet-1", cidr="10.0.1.0/24"
    )
    assert result.security_groups == [SecurityGroupInfo(id="sg-12345678", name="web-servers")]
    assert result.route_table == RouteTableInfo(
        id="rtb-12345678",
        name="main-rt (rtb-12345678)",
        routes=["10.0.0.0/16: local", "0.0.0.0/0: igw-12345678"],
    )


def test_find_ip_primary_address(populated):
    result = find_ip_address_details(populated, "10.0.1.100")
    assert result.found is True
    assert result.is_secondary_ip is False
    assert result.ip_address == "10.0.1.100"
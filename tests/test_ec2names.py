import pytest

from awstools.ec2names import (
    get_all_ec2_instances,
    get_all_security_groups,
    get_ec2_by_security_group,
    get_ec2_name,
    get_name_from_tags,
    get_resource_display_name_from_tags,
    get_resource_display_name_with_global_lookup,
    is_latest_instance_family,
)


def tag(key, value):
    return {"Key": key, "Value": value}


@pytest.mark.parametrize(
    "tags,expected",
    [
        ([tag("Environment", "production"), tag("Name", "my-resource"), tag("Team", "backend")], "my-resource"),
        ([tag("Environment", "production"), tag("Team", "backend")], ""),
        (None, ""),
        ([], ""),
        ([tag("Name", "")], ""),
        ([tag("Name", "   ")], ""),
        ([tag("Name", "first-name"), tag("Name", "second-name")], "first-name"),
    ],
)
def test_get_name_from_tags(tags, expected):
    assert get_name_from_tags(tags) == expected


def test_get_name_from_tags_truncates_long_names():
    result = get_name_from_tags([tag("Name", "a" * 150)])
    assert result == "a" * 97 + "..."
    assert len(result) == 100


def test_get_name_from_tags_keeps_exactly_100():
    assert get_name_from_tags([tag("Name", "b" * 100)]) == "b" * 100


@pytest.mark.parametrize(
    "family,expected",
    [
        ("c4", True), ("c3", False), ("d2", True), ("d1", False), ("f1", True),
        ("g3", True), ("g2", False), ("p2", True), ("p1", False), ("i3", True),
        ("i2", False), ("m4", True), ("m3", False), ("r4", True), ("r3", False),
        ("t2", True), ("t1", False), ("x1", True), ("z9", False), ("invalid", False),
    ],
)
def test_is_latest_instance_family(family, expected):
    assert is_latest_instance_family(family) is expected


def test_is_latest_instance_family_empty():
    with pytest.raises(ValueError):
        is_latest_instance_family("")


def test_display_name_from_tags():
    assert get_resource_display_name_from_tags("rtb-1", [tag("Name", "main")]) == "main (rtb-1)"
    assert get_resource_display_name_from_tags("rtb-1", [tag("Name", "rtb-1")]) == "rtb-1"
    assert get_resource_display_name_from_tags("rtb-1", None) == "rtb-1"


def test_display_name_global_lookup_first():
    lookup = {"vpc-1": "global-name"}.get
    result = get_resource_display_name_with_global_lookup("vpc-1", [tag("Name", "tag-name")], lambda i: lookup(i, ""))
    assert result == "global-name (vpc-1)"


def test_display_name_global_lookup_falls_back_to_tags():
    result = get_resource_display_name_with_global_lookup("vpc-1", [tag("Name", "tag-name")], lambda i: i)
    assert result == "tag-name (vpc-1)"


def test_display_name_global_lookup_none():
    assert get_resource_display_name_with_global_lookup("vpc-1", [], None) == "vpc-1"


class FakeEC2:
    def __init__(self, reservations=None, groups=None):
        self.reservations = reservations or []
        self.groups = groups or []
        self.calls = []

    def describe_instances(self, **kwargs):
        self.calls.append(kwargs)
        return {"Reservations": self.reservations}

    def describe_security_groups(self, **kwargs):
        return {"SecurityGroups": self.groups}


def test_get_ec2_name():
    svc = FakeEC2([{"Instances": [{"InstanceId": "i-1", "Tags": [tag("Name", "web-server-1")]}]}])
    assert get_ec2_name("i-1", svc) == "web-server-1"
    assert svc.calls == [{"InstanceIds": ["i-1"]}]


def test_get_ec2_name_not_found():
    assert get_ec2_name("i-1", FakeEC2()) == ""


def test_get_ec2_by_security_group_filter():
    reservations = [{"Instances": [{"InstanceId": "i-1"}]}]
    svc = FakeEC2(reservations)
    assert get_ec2_by_security_group("sg-12345678", svc) == reservations
    assert svc.calls == [{"Filters": [{"Name": "instance.group-id", "Values": ["sg-12345678"]}]}]


def test_get_all_instances_and_groups():
    reservations = [{"Instances": [{"InstanceId": "i-1"}]}]
    groups = [{"GroupId": "sg-1", "GroupName": "web"}]
    svc = FakeEC2(reservations, groups)
    assert get_all_ec2_instances(svc) == reservations
    assert get_all_security_groups(svc) == groups
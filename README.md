# awstools

Helpers for looking into an AWS account. They cover VPC routing and peering,
transit gateways, subnet IP usage, finding the owner of a private IP address,
App Mesh service paths and nested CloudFormation stacks.

The package has no hard dependencies. Every function that talks to AWS takes a
service client as its `svc` argument. Any object works if it offers the
boto3-style API calls (`describe_vpcs`, `describe_subnets`,
`describe_network_interfaces`, `list_virtual_nodes`,
`describe_stack_resources`, ...) and returns responses shaped as boto3 returns
them. You can pass in real boto3 clients, or simple stand-ins in tests.

## Modules

| Module | Purpose |
| --- | --- |
| `awstools.settings` | Case-insensitive settings store (`Settings`), `OutputSettings`, and the typed `Config` accessors |
| `awstools.awsconfig` | `AWSConfig` (account, region, caller identity, service clients) and `default_aws_config` |
| `awstools.cfn` | Stack resources, with the resources of nested stacks included |
| `awstools.ec2names` | Name-tag lookup, display names, instance-family check and simple EC2 queries |
| `awstools.appmesh` | Routes, nodes, services, unserviced nodes and node connections in an App Mesh |
| `awstools.vpcrouting` | Peerings, route tables, transit gateways, resource names, ENI owners and public-subnet detection |
| `awstools.subnets` | IP range generation, AWS reserved addresses, ENI classification and per-subnet IP usage |
| `awstools.vpcoverview` | IP usage overview of every VPC and subnet in a region, with `to_dict()` for JSON |
| `awstools.ipfinder` | IP/CIDR validation, and finding the network interface and resource behind a private IP |

## Examples

Settings and output configuration:

```python
from awstools.settings import Config, Settings

config = Config(Settings({"output": {"format": "TABLE", "append": True}}))
config.get_output_format()            # "table"
config.get_separator()                # "\r\n"
config.should_combine_and_append()    # True
```

Connecting to an account. `default_aws_config` calls `session_factory` with the
`profile_name` and `region_name` keyword arguments. The object it returns needs
a `client(name)` method and a `region_name` attribute, so `boto3.Session` works
as the factory. The function then asks STS for the account and user IDs. It
also asks IAM for the account alias. If that lookup fails, or the account has
no alias, it uses the account ID as the alias.

```python
from awstools.awsconfig import default_aws_config

aws = default_aws_config(config, session_factory=boto3.Session)
ec2 = aws.ec2_client()
```

Names from tags:

```python
from awstools.ec2names import get_name_from_tags, get_resource_display_name_from_tags

tags = [{"Key": "Name", "Value": "web-server"}]
get_name_from_tags(tags)                                  # "web-server"
get_resource_display_name_from_tags("i-0abc", tags)       # "web-server (i-0abc)"
```

Subnet arithmetic:

```python
from awstools.subnets import calculate_subnet_stats, generate_ip_range, identify_aws_reserved_ips

total, available = calculate_subnet_stats("10.0.1.0/24")  # 256, 251
reserved = identify_aws_reserved_ips(generate_ip_range("10.0.1.0/28"))
# {"10.0.1.0": "Network address", "10.0.1.1": "VPC router", ...,
#  "10.0.1.15": "Broadcast address"}
```

Validation:

```python
from awstools.ipfinder import is_valid_cidr, is_valid_ip_address

is_valid_ip_address("2001:db8::1")   # True
is_valid_cidr("192.168.1.0/99")      # False
```

Route tables:

```python
from awstools.vpcrouting import get_all_vpc_route_tables

for table in get_all_vpc_route_tables(ec2):
    print(table.id, [route.destination_cidr for route in table.routes])
```

Finding who holds an IP address:

```python
from awstools.ipfinder import find_ip_address_details

result = find_ip_address_details(ec2, "10.0.1.100")
if result.found:
    print(result.resource_type, result.resource_id, result.subnet.id)
```

A VPC usage overview as plain data:

```python
from awstools.vpcoverview import get_vpc_usage_overview

overview = get_vpc_usage_overview(ec2)
print(overview.to_dict()["summary"])
```

## Errors

Some functions in `awstools.ipfinder` wrap their EC2 calls: `search_enis_by_ip`,
`get_vpc_info`, `get_subnet_info` and `get_security_group_info`. When one of
these calls fails, the error is raised again as
`awstools.ipfinder.AWSAPIError`. For permission, authentication and throttling
failures, the message explains what went wrong.

Some failures are not raised:

- `ENILookupCache.fetch_instance_names` skips a batch of instances when the
  lookup for that batch fails.
- `AWSConfig` falls back to the account ID when the account alias cannot be
  read.

All other helpers let the client's own exceptions through unchanged.

## What this package does not do

It is a library only. It has no command-line program. It does not render
tables, diagrams or files. `OutputSettings` and `Config` only describe how
output should look; they do not produce it.
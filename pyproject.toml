[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "awstools"
version = "0.1.0"
description = "Helpers for inspecting AWS accounts: VPC routing, subnet IP usage, IP lookup, App Mesh paths and CloudFormation stacks"
requires-python = ">=3.10"
dependencies = []
keywords = ["aws", "ec2", "vpc", "subnet", "appmesh", "cloudformation", "transit-gateway", "networking"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["awstools"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

"""Helpers for inspecting AWS networking, subnet IP usage, App Mesh and CloudFormation resources."""

__version__ = "0.1.0"
"""Connection details for the AWS account in use and service clients."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from awstools.settings import Config


@dataclass
class AWSConfig:
    """Account, identity and region information plus the session behind them."""

    account_alias: str = ""
    account_id: str = ""
    config: Any = None
    profile_name: str = ""
    region: str = ""
    user_id: str = ""

    def client(self, service_name: str) -> Any:
        """Return a client for the named service from the session."""
        if self.config is None:
            raise RuntimeError("no AWS session configured")
        return self.config.client(service_name)

    def sts_client(self) -> Any:
        return self.client("sts")

    def iam_client(self) -> Any:
        return self.client("iam")

    def appmesh_client(self) -> Any:
        return self.client("appmesh")

    def cloudformation_client(self) -> Any:
        return self.client("cloudformation")

    def ec2_client(self) -> Any:
        return self.client("ec2")

    def rds_client(self) -> Any:
        return self.client("rds")

    def organizations_client(self) -> Any:
        return self.client("organizations")

    def sso_client(self) -> Any:
        return self.client("sso-admin")

    def s3_client(self) -> Any:
        return self.client("s3")

    def _set_caller_info(self) -> None:
        identity = self.sts_client().get_caller_identity()
        self.account_id = identity["Account"]
        self.user_id = identity["UserId"]

    def _set_alias(self) -> None:
        # Missing permission or no alias both fall back to the account id.
        try:
            aliases = self.iam_client().list_account_aliases().get("AccountAliases") or []
        except Exception:
            aliases = []
        self.account_alias = aliases[0] if aliases else self.account_id


def default_aws_config(config: Config, session_factory: Callable[..., Any]) -> AWSConfig:
    """Create a session from the configured profile and region and identify the caller.

    ``session_factory`` is called with ``profile_name`` and ``region_name``
    keyword arguments and must return an object with a ``client(name)`` method
    and a ``region_name`` attribute.
    """
    aws_config = AWSConfig()
    profile = config.get_lc_string("aws.profile")
    region = config.get_lc_string("aws.region")
    aws_config.profile_name = profile
    aws_config.config = session_factory(
        profile_name=profile or None,
        region_name=region or None,
    )
    aws_config.region = region or (getattr(aws_config.config, "region_name", None) or "")
    aws_config._set_caller_info()
    aws_config._set_alias()
    return aws_config
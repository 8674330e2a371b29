from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
    ProfileNotFound,
)

from .errors import ConfigError, CredentialsError, InventoryError
from .models import ByInstanceId, ByNameTag, ForwardSpec, InstanceRecord, SelectionFilter

logger = logging.getLogger(__name__)

PORT_FORWARD_DOCUMENT = "AWS-StartPortForwardingSessionToRemoteHost"
REGION_ENV_VARS = ("AWS_REGION", "AWS_DEFAULT_REGION")
AUTH_ERROR_CODES = {
    "AuthFailure",
    "UnauthorizedOperation",
    "UnrecognizedClientException",
    "InvalidClientTokenId",
    "SignatureDoesNotMatch",
    "ExpiredToken",
    "ExpiredTokenException",
    "RequestExpired",
}
MISSING_INSTANCE_CODES = {"InvalidInstanceID.NotFound", "InvalidInstanceID.Malformed"}

SessionFactory = Callable[..., Any]


@dataclass(slots=True, frozen=True)
class AwsInstance:
    instance_id: str
    profile: str | None = None
    region: str | None = None

    def build_ssm_shell_command(self) -> list[str]:
        return self._base_start_session_command()

    def build_port_forward_command(self, spec: ForwardSpec) -> list[str]:
        return [
            *self._base_start_session_command(),
            "--document-name",
            PORT_FORWARD_DOCUMENT,
            "--parameters",
            json.dumps(spec.ssm_parameters(), separators=(",", ":")),
        ]

    def _base_start_session_command(self) -> list[str]:
        return [
            *aws_cli_prefix(self.profile, self.region),
            "ssm",
            "start-session",
            "--target",
            self.instance_id,
        ]


def aws_cli_prefix(profile: str | None, region: str | None) -> list[str]:
    command = ["aws"]
    if profile:
        command += ["--profile", profile]
    if region:
        command += ["--region", region]
    return command


class InventoryClient:
    def __init__(
        self,
        profile: str | None,
        region: str,
        session_factory: SessionFactory = boto3.Session,
    ) -> None:
        self.profile = profile
        self.region = region
        self._session_factory = session_factory

    def query(self, selection: SelectionFilter | None = None) -> list[InstanceRecord]:
        kwargs: dict[str, Any] = {}
        match selection:
            case ByInstanceId(instance_id=instance_id):
                kwargs["InstanceIds"] = [instance_id]
            case ByNameTag(pattern=pattern):
                kwargs["Filters"] = [{"Name": "tag:Name", "Values": [pattern]}]

        logger.debug("Querying instances in %s (%s) with %s", self.region, self.profile or "default", kwargs)
        records: list[InstanceRecord] = []
        seen: set[str] = set()
        try:
            ec2 = _open_session(self._session_factory, self.profile, self.region).client("ec2")
            paginator = ec2.get_paginator("describe_instances")
            for page in paginator.paginate(**kwargs):
                for reservation in page.get("Reservations", []):
                    for instance in reservation.get("Instances", []):
                        record = self._to_record(instance)
                        if record.instance_id in seen:
                            continue
                        seen.add(record.instance_id)
                        records.append(record)
        except (NoCredentialsError, PartialCredentialsError) as error:
            raise CredentialsError(_credentials_hint(self.profile)) from error
        except ClientError as error:
            code = _error_code(error)
            if code in MISSING_INSTANCE_CODES:
                return []
            if code in AUTH_ERROR_CODES:
                raise CredentialsError(f"{_credentials_hint(self.profile)} ({code})") from error
            raise InventoryError(f"Failed to query instances in {self.region}: {error}") from error
        except BotoCoreError as error:
            raise InventoryError(f"Failed to query instances in {self.region}: {error}") from error
        return records

    @staticmethod
    def _to_record(instance: dict[str, Any]) -> InstanceRecord:
        return InstanceRecord(
            instance_id=instance["InstanceId"],
            name=_tag_value(instance.get("Tags") or [], "Name"),
            private_ip=instance.get("PrivateIpAddress"),
            public_ip=instance.get("PublicIpAddress"),
            status=instance.get("State", {}).get("Name"),
            image_id=instance.get("ImageId"),
            instance_type=instance.get("InstanceType"),
            public_dns=instance.get("PublicDnsName"),
        )


def check_credentials(
    profile: str | None,
    region: str | None,
    session_factory: SessionFactory = boto3.Session,
) -> None:
    try:
        sts = _open_session(session_factory, profile, region).client("sts")
        identity = sts.get_caller_identity()
    except (ClientError, BotoCoreError) as error:
        raise CredentialsError(_credentials_hint(profile)) from error
    logger.debug("Authenticated as %s", identity.get("Arn", "unknown"))


def resolve_region(
    explicit: str | None,
    environ: Mapping[str, str],
    profile: str | None,
    session_factory: SessionFactory = boto3.Session,
) -> str:
    if explicit:
        return explicit
    for name in REGION_ENV_VARS:
        if environ.get(name):
            return environ[name]
    try:
        region = _open_session(session_factory, profile, None).region_name
    except BotoCoreError as error:
        raise CredentialsError(_credentials_hint(profile)) from error
    if not region:
        raise ConfigError("AWS region not specified. Use --region or configure a default.")
    return region


def _open_session(session_factory: SessionFactory, profile: str | None, region: str | None) -> Any:
    try:
        return session_factory(profile_name=profile or None, region_name=region or None)
    except ProfileNotFound as error:
        raise CredentialsError(_credentials_hint(profile)) from error


def _credentials_hint(profile: str | None) -> str:
    if profile:
        return (
            f"AWS credentials for profile {profile} not found. "
            f"Please run 'aws configure --profile {profile}'."
        )
    return "AWS credentials not found. Please set AWS_PROFILE or run 'aws configure'."


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def _tag_value(tags: Iterable[dict[str, str]], key: str) -> str:
    for tag in tags:
        if tag.get("Key") == key:
            return tag.get("Value", "")
    return ""

import json

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError, ProfileNotFound

from awsssh.aws_api import AwsInstance, InventoryClient, check_credentials, resolve_region
from awsssh.errors import ConfigError, CredentialsError, InventoryError
from awsssh.models import ByInstanceId, ByNameTag, ForwardSpec, InstanceRecord
from fakes import FakeSession, make_instance


def client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "DescribeInstances")


def test_query_normalizes_instances() -> None:
    session = FakeSession(
        [
            make_instance(
                "i-0abc",
                name="web-1",
                public_ip="54.1.2.3",
                public_dns="ec2-54-1-2-3.compute-1.amazonaws.com",
            ),
            make_instance("i-0def", state="stopped", private_ip=None),
        ]
    )

    records = InventoryClient("prod", "us-east-1", session).query()

    assert records == [
        InstanceRecord(
            instance_id="i-0abc",
            name="web-1",
            private_ip="10.0.0.10",
            public_ip="54.1.2.3",
            status="running",
            image_id="ami-0123456789",
            instance_type="t3.micro",
            public_dns="ec2-54-1-2-3.compute-1.amazonaws.com",
        ),
        InstanceRecord(
            instance_id="i-0def",
            status="stopped",
            image_id="ami-0123456789",
            instance_type="t3.micro",
        ),
    ]
    assert session.created == [{"profile_name": "prod", "region_name": "us-east-1"}]
    session.paginator.paginate.assert_called_once_with()


def test_query_by_instance_id() -> None:
    session = FakeSession([make_instance("i-0abc")])

    InventoryClient(None, "us-east-1", session).query(ByInstanceId("i-0abc"))

    session.paginator.paginate.assert_called_once_with(InstanceIds=["i-0abc"])


def test_query_by_name_tag() -> None:
    session = FakeSession([make_instance("i-0abc", name="web-1")])

    InventoryClient(None, "us-east-1", session).query(ByNameTag("web-*"))

    session.paginator.paginate.assert_called_once_with(
        Filters=[{"Name": "tag:Name", "Values": ["web-*"]}]
    )


def test_query_replaces_tabs_in_values() -> None:
    session = FakeSession([make_instance("i-0abc", name="web\tfront")])

    [record] = InventoryClient(None, "us-east-1", session).query()

    assert record.name == "web front"


def test_query_drops_duplicate_ids() -> None:
    session = FakeSession([make_instance("i-0abc"), make_instance("i-0abc")])

    assert len(InventoryClient(None, "us-east-1", session).query()) == 1


def test_unknown_instance_id_is_empty_result() -> None:
    session = FakeSession(describe_error=client_error("InvalidInstanceID.NotFound"))

    assert InventoryClient(None, "us-east-1", session).query(ByInstanceId("i-missing")) == []


@pytest.mark.parametrize(
    "error",
    [NoCredentialsError(), client_error("AuthFailure"), client_error("ExpiredToken")],
)
def test_credential_failures(error) -> None:
    session = FakeSession(describe_error=error)

    with pytest.raises(CredentialsError):
        InventoryClient("prod", "us-east-1", session).query()


@pytest.mark.parametrize(
    "error",
    [client_error("InternalError"), EndpointConnectionError(endpoint_url="https://ec2.us-east-1.amazonaws.com")],
)
def test_transport_failures(error) -> None:
    session = FakeSession(describe_error=error)

    with pytest.raises(InventoryError):
        InventoryClient(None, "us-east-1", session).query()


def test_missing_profile_is_credentials_error() -> None:
    session = FakeSession(session_error=ProfileNotFound(profile="nope"))

    with pytest.raises(CredentialsError, match="aws configure --profile nope"):
        InventoryClient("nope", "us-east-1", session).query()


def test_check_credentials_passes() -> None:
    session = FakeSession()

    check_credentials("prod", "us-east-1", session)

    session.sts.get_caller_identity.assert_called_once_with()


def test_check_credentials_failure_hint() -> None:
    session = FakeSession(identity_error=NoCredentialsError())

    with pytest.raises(CredentialsError, match="set AWS_PROFILE"):
        check_credentials(None, "us-east-1", session)


def test_resolve_region_prefers_explicit() -> None:
    assert resolve_region("eu-west-1", {"AWS_REGION": "us-east-1"}, None, FakeSession()) == "eu-west-1"


def test_resolve_region_from_environment() -> None:
    assert resolve_region(None, {"AWS_DEFAULT_REGION": "ap-south-1"}, None, FakeSession()) == "ap-south-1"
    assert (
        resolve_region(None, {"AWS_REGION": "us-east-2", "AWS_DEFAULT_REGION": "ap-south-1"}, None, FakeSession())
        == "us-east-2"
    )


def test_resolve_region_from_profile_config() -> None:
    session = FakeSession(region_name="eu-central-1")

    assert resolve_region(None, {}, "prod", session) == "eu-central-1"
    assert session.created == [{"profile_name": "prod", "region_name": None}]


def test_resolve_region_missing() -> None:
    with pytest.raises(ConfigError, match="AWS region not specified"):
        resolve_region(None, {}, None, FakeSession())


def test_ssm_shell_command() -> None:
    command = AwsInstance("i-0abc", profile="prod", region="us-east-1").build_ssm_shell_command()

    assert command == ["aws", "--profile", "prod", "--region", "us-east-1", "ssm", "start-session", "--target", "i-0abc"]


def test_ssm_command_omits_empty_profile() -> None:
    command = AwsInstance("i-0abc", region="us-east-1").build_ssm_shell_command()

    assert "--profile" not in command


def test_port_forward_command() -> None:
    spec = ForwardSpec.parse("8080:localhost:80")

    command = AwsInstance("i-0abc", region="us-east-1").build_port_forward_command(spec)

    assert command[:7] == ["aws", "--region", "us-east-1", "ssm", "start-session", "--target", "i-0abc"]
    assert command[7:9] == ["--document-name", "AWS-StartPortForwardingSessionToRemoteHost"]
    assert command[9] == "--parameters"
    assert json.loads(command[10]) == {"portNumber": ["80"], "localPortNumber": ["8080"], "host": ["localhost"]}

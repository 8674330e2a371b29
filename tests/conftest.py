"""Pytest configuration and fixtures for awsssh tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from awsssh.models import ConnectionConfig, InstanceRecord

tests_root = Path(__file__).parent
if str(tests_root) not in sys.path:
    sys.path.insert(0, str(tests_root))

from fakes import FakeLauncher, FakeSession  # noqa: E402


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def running_record() -> InstanceRecord:
    return InstanceRecord(
        instance_id="i-0abc",
        name="web-1",
        private_ip="10.0.1.21",
        public_ip="54.10.10.21",
        status="running",
        image_id="ami-0123456789",
        instance_type="t3.micro",
        public_dns="ec2-54-10-10-21.compute-1.amazonaws.com",
    )


@pytest.fixture
def stopped_record() -> InstanceRecord:
    return InstanceRecord(instance_id="i-0stopped", name="batch", status="stopped")


@pytest.fixture
def config() -> ConnectionConfig:
    return ConnectionConfig(region="us-east-1", profile="prod")


@pytest.fixture
def environ(tmp_path: Path) -> dict[str, str]:
    return {"HOME": str(tmp_path), "AWS_REGION": "us-east-1"}


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()

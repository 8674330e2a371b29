from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum

from .errors import InvalidForwardSpecError


class InstanceStatus(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"
    PENDING = "pending"
    OTHER = "other"

    @classmethod
    def from_raw(cls, value: str | None) -> InstanceStatus:
        try:
            status = cls((value or "").strip().lower())
        except ValueError:
            return cls.OTHER
        return status


class Transport(str, Enum):
    SSH = "ssh"
    SSM = "ssm"


@dataclass(slots=True, frozen=True)
class InstanceRecord:
    instance_id: str
    name: str | None = None
    private_ip: str | None = None
    public_ip: str | None = None
    status: str | None = None
    image_id: str | None = None
    instance_type: str | None = None
    public_dns: str | None = None

    def __post_init__(self) -> None:
        for item in fields(self):
            object.__setattr__(self, item.name, _clean(getattr(self, item.name)))
        if not self.instance_id:
            raise ValueError("instance id must not be empty")

    @property
    def display_name(self) -> str:
        return self.name or self.instance_id

    @property
    def state(self) -> InstanceStatus:
        return InstanceStatus.from_raw(self.status)

    @property
    def is_running(self) -> bool:
        return self.state is InstanceStatus.RUNNING

    @property
    def window_key(self) -> str:
        return f"ssh:{self.name or ''}:{self.instance_id}"


@dataclass(slots=True, frozen=True)
class ForwardSpec:
    local_port: int
    remote_host: str
    remote_port: int

    @classmethod
    def parse(cls, raw: str) -> ForwardSpec:
        spec = "".join(raw.split())
        local, _, host_port = spec.partition(":")
        host, _, remote = host_port.rpartition(":")
        local_port = _parse_port(local)
        remote_port = _parse_port(remote)
        if not host or local_port is None or remote_port is None:
            raise InvalidForwardSpecError(spec or raw)
        return cls(local_port=local_port, remote_host=host, remote_port=remote_port)

    def ssh_argument(self) -> str:
        host = self.remote_host
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"{self.local_port}:{host}:{self.remote_port}"

    def ssm_parameters(self) -> dict[str, list[str]]:
        return {
            "portNumber": [str(self.remote_port)],
            "localPortNumber": [str(self.local_port)],
            "host": [self.remote_host],
        }

    def __str__(self) -> str:
        return f"{self.local_port}:{self.remote_host}:{self.remote_port}"


@dataclass(slots=True, frozen=True)
class ByInstanceId:
    instance_id: str

    def __str__(self) -> str:
        return self.instance_id


@dataclass(slots=True, frozen=True)
class ByNameTag:
    pattern: str

    def __str__(self) -> str:
        return self.pattern


SelectionFilter = ByInstanceId | ByNameTag


def selection_filter_from(value: str | None) -> SelectionFilter | None:
    value = (value or "").strip()
    if not value:
        return None
    if value.startswith("i-"):
        return ByInstanceId(value)
    return ByNameTag(value)


@dataclass(slots=True, frozen=True)
class ConnectionConfig:
    region: str
    profile: str | None = None
    transport: str = Transport.SSM.value
    forwards: tuple[str, ...] = field(default_factory=tuple)
    selection: SelectionFilter | None = None
    ssh_user: str = "ec2-user"


def _parse_port(value: str) -> int | None:
    if not (value.isascii() and value.isdigit()) or value.startswith("0"):
        return None
    port = int(value)
    if port < 1 or port > 65535:
        return None
    return port


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = str(value).replace("\t", " ").replace("\r", " ").replace("\n", " ")
    return cleaned or None

from __future__ import annotations

import logging
from collections.abc import Sequence

from .aws_api import AwsInstance
from .errors import InvalidForwardSpecError, NotRunningError, UnreachableError
from .launcher import ProcessLauncher
from .models import ForwardSpec, InstanceRecord, Transport

logger = logging.getLogger(__name__)

DEFAULT_SSH_USER = "ec2-user"


class ConnectionDispatcher:
    def __init__(self, launcher: ProcessLauncher, ssh_user: str = DEFAULT_SSH_USER) -> None:
        self.launcher = launcher
        self.ssh_user = ssh_user or DEFAULT_SSH_USER

    def connect(
        self,
        record: InstanceRecord,
        transport: str,
        region: str | None,
        profile: str | None,
        forwards: Sequence[str] = (),
    ) -> int:
        if not record.is_running:
            raise NotRunningError(record.display_name, record.status)

        try:
            kind = Transport(transport)
        except ValueError:
            raise UnreachableError(record.display_name, record.instance_id, transport) from None

        specs = parse_forwards(forwards)
        match kind:
            case Transport.SSH:
                if not record.public_dns:
                    raise UnreachableError(record.display_name, record.instance_id, transport)
                return self._direct_login(record, specs)
            case Transport.SSM:
                instance = AwsInstance(instance_id=record.instance_id, profile=profile, region=region)
                if not specs:
                    return self._broker_session(record, instance)
                return self._broker_forwards(record, instance, specs)
        raise UnreachableError(record.display_name, record.instance_id, transport)

    def build_ssh_command(self, record: InstanceRecord, specs: Sequence[ForwardSpec]) -> list[str]:
        command = ["ssh"]
        for spec in specs:
            command += ["-L", spec.ssh_argument()]
        command.append(f"{self.ssh_user}@{record.public_dns}")
        return command

    def _direct_login(self, record: InstanceRecord, specs: Sequence[ForwardSpec]) -> int:
        logger.info("Connecting to %s (%s) as %s...", record.display_name, record.public_dns, self.ssh_user)
        return self.launcher.run(self.build_ssh_command(record, specs)).returncode

    def _broker_session(self, record: InstanceRecord, instance: AwsInstance) -> int:
        logger.info("Connecting to %s (%s) with AWS SSM session...", record.display_name, record.instance_id)
        return self.launcher.run(instance.build_ssm_shell_command()).returncode

    def _broker_forwards(self, record: InstanceRecord, instance: AwsInstance, specs: Sequence[ForwardSpec]) -> int:
        if len(specs) > 1:
            logger.info("Multiple forwards detected; starting sessions sequentially.")

        status = 0
        for spec in specs:
            logger.info(
                "Starting port forward on %s (%s) %s->%s:%s via SSM...",
                record.display_name,
                record.instance_id,
                spec.local_port,
                spec.remote_host,
                spec.remote_port,
            )
            returncode = self.launcher.run(instance.build_port_forward_command(spec)).returncode
            if returncode != 0:
                status = returncode
        return status


def parse_forwards(forwards: Sequence[str]) -> list[ForwardSpec]:
    specs: list[ForwardSpec] = []
    for raw in forwards:
        if not raw.strip():
            continue
        try:
            specs.append(ForwardSpec.parse(raw))
        except InvalidForwardSpecError as error:
            logger.error("%s", error)
    return specs

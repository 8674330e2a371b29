from __future__ import annotations

import logging
import shlex
import sys
from collections.abc import Callable, Mapping, Sequence

from .dispatcher import ConnectionDispatcher
from .errors import DependencyError, SkippableError, WindowConflictError, WindowLaunchError
from .formatter import RecordFormatter
from .launcher import ProcessLauncher
from .models import ConnectionConfig, InstanceRecord

logger = logging.getLogger(__name__)

TMUX_BINARY = "tmux"
DEFAULT_SESSION_NAME = "asw_ssh"

WindowCommand = Callable[[InstanceRecord, ConnectionConfig], str]


def build_window_command(
    record: InstanceRecord,
    config: ConnectionConfig,
    *,
    keep_open: bool = True,
    formatter: RecordFormatter | None = None,
) -> str:
    formatter = formatter or RecordFormatter()
    argv = [
        sys.executable,
        "-m",
        "awsssh",
        f"--record={formatter.serialize(record)}",
        f"--connection={config.transport}",
        f"--region={config.region}",
    ]
    if config.profile:
        argv.append(f"--profile={config.profile}")
    argv.extend(f"--forward={forward}" for forward in config.forwards)
    command = shlex.join(argv)
    if keep_open:
        command += '; exec "${SHELL:-/bin/sh}"'
    return command


class SessionFanOut:
    def __init__(
        self,
        dispatcher: ConnectionDispatcher,
        launcher: ProcessLauncher,
        *,
        session_name: str = DEFAULT_SESSION_NAME,
        window_command: WindowCommand = build_window_command,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.launcher = launcher
        self.session_name = session_name
        self.window_command = window_command
        self.environ = environ or {}

    def launch(self, records: Sequence[InstanceRecord], config: ConnectionConfig) -> int:
        if len(records) == 1:
            return self._connect_inline(records[0], config)

        if self.launcher.which(TMUX_BINARY) is None:
            raise DependencyError("tmux binary not found in PATH. Install tmux to open multiple sessions.")

        self.ensure_session()
        existing = set(self.list_windows())
        for record in records:
            try:
                self._open_window(record, config, existing)
            except SkippableError as error:
                logger.log(error.log_level, "%s", error)
        return self.attach()

    def ensure_session(self) -> None:
        if self._has_session():
            return
        logger.debug("Creating tmux session %s", self.session_name)
        created = self._tmux("new-session", "-d", "-s", self.session_name)
        # Another invocation may have created it between the check and the create.
        if created != 0 and not self._has_session():
            raise DependencyError(f"Could not create tmux session {self.session_name}.")

    def list_windows(self) -> list[str]:
        result = self.launcher.run(
            [TMUX_BINARY, "list-windows", "-t", self.session_name, "-F", "#{window_name}"],
            capture=True,
        )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def attach(self) -> int:
        if self.environ.get("TMUX"):
            return self.launcher.run([TMUX_BINARY, "switch-client", "-t", self.session_name]).returncode
        return self.launcher.run([TMUX_BINARY, "attach-session", "-t", self.session_name]).returncode

    def _connect_inline(self, record: InstanceRecord, config: ConnectionConfig) -> int:
        try:
            return self.dispatcher.connect(
                record,
                config.transport,
                config.region,
                config.profile,
                config.forwards,
            )
        except SkippableError as error:
            logger.log(error.log_level, "%s", error)
            return error.exit_code

    def _open_window(self, record: InstanceRecord, config: ConnectionConfig, existing: set[str]) -> None:
        key = record.window_key
        if key in existing:
            raise WindowConflictError(key)
        returncode = self._tmux(
            "new-window",
            "-d",
            "-n",
            key,
            "-t",
            f"{self.session_name}:",
            self.window_command(record, config),
        )
        if returncode != 0:
            raise WindowLaunchError(key, returncode)
        logger.info("Opened window %s for %s (%s).", key, record.display_name, record.instance_id)
        existing.add(key)

    def _has_session(self) -> bool:
        return self._tmux("has-session", "-t", self.session_name) == 0

    def _tmux(self, *args: str) -> int:
        return self.launcher.run([TMUX_BINARY, *args], quiet=True).returncode

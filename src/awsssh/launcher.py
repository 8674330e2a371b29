from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from .errors import DependencyError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ProcessResult:
    returncode: int
    stdout: str = ""


class ProcessLauncher(Protocol):
    def which(self, name: str) -> str | None: ...

    def run(
        self,
        command: Sequence[str],
        *,
        input_text: str | None = None,
        capture: bool = False,
        quiet: bool = False,
    ) -> ProcessResult: ...


class SubprocessLauncher:
    """Runs commands in the foreground, inheriting the terminal unless told otherwise."""

    def which(self, name: str) -> str | None:
        return shutil.which(name)

    def run(
        self,
        command: Sequence[str],
        *,
        input_text: str | None = None,
        capture: bool = False,
        quiet: bool = False,
    ) -> ProcessResult:
        logger.debug("Running: %s", shlex.join(command))
        try:
            result = subprocess.run(
                list(command),
                input=input_text,
                stdout=subprocess.PIPE if capture else (subprocess.DEVNULL if quiet else None),
                stderr=subprocess.DEVNULL if quiet else None,
                text=True,
                check=False,
            )
        except FileNotFoundError as error:
            raise DependencyError(f"{command[0]} binary not found in PATH.") from error
        return ProcessResult(returncode=result.returncode, stdout=result.stdout or "")

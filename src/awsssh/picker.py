from __future__ import annotations

import logging
from collections.abc import Sequence

from .errors import DependencyError
from .formatter import FIELD_DELIMITER, HEADERS, RecordFormatter
from .launcher import ProcessLauncher
from .models import InstanceRecord

logger = logging.getLogger(__name__)

FZF_BINARY = "fzf"
# Fields 2-9 of each picker line are the machine row; field 1 is display only.
PREVIEW_TEMPLATE = "printf '{}\\n' {}".format(
    "\\n".join(f"{label}: %s" for label in HEADERS),
    " ".join(f"{{{index}}}" for index in range(2, len(HEADERS) + 2)),
)


class FzfPicker:
    def __init__(
        self,
        launcher: ProcessLauncher,
        formatter: RecordFormatter | None = None,
        height: str = "40%",
    ) -> None:
        self.launcher = launcher
        self.formatter = formatter or RecordFormatter()
        self.height = height

    def ensure_available(self) -> None:
        if self.launcher.which(FZF_BINARY) is None:
            raise DependencyError("fzf binary not found in PATH. Install fzf to continue.")

    def pick(self, records: Sequence[InstanceRecord]) -> list[InstanceRecord]:
        self.ensure_available()
        lines = [self._line(self.formatter.display_header(), FIELD_DELIMITER.join(HEADERS))]
        lines.extend(
            self._line(self.formatter.display_row(record), self.formatter.serialize(record)) for record in records
        )
        result = self.launcher.run(self.build_command(), input_text="\n".join(lines) + "\n", capture=True)
        logger.debug("fzf exited with %s", result.returncode)

        selected: list[InstanceRecord] = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            _, _, machine_row = line.partition(FIELD_DELIMITER)
            selected.append(self.formatter.parse(machine_row))
        return selected

    def build_command(self) -> list[str]:
        return [
            FZF_BINARY,
            f"--height={self.height}",
            "--layout=reverse",
            "--border",
            "--border-label=EC2 Instances",
            "--info=default",
            "--multi",
            "--prompt=Search Instance: ",
            "--header=Select (Enter), Toggle Details (Ctrl-/), Quit (Ctrl-C or ESC)",
            "--header-lines=1",
            "--bind=ctrl-/:toggle-preview",
            "--preview-window=right:40%:wrap",
            "--preview-label=Details",
            f"--preview={PREVIEW_TEMPLATE}",
            f"--delimiter={FIELD_DELIMITER}",
            "--with-nth=1",
        ]

    @staticmethod
    def _line(display: str, machine_row: str) -> str:
        return f"{display}{FIELD_DELIMITER}{machine_row}"

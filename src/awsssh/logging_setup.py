from __future__ import annotations

import logging
import sys
from collections.abc import Mapping

DEBUG_ENV_VAR = "AWSSSH_DEBUG"
LOG_FORMAT = "AWSSSH:%(levelname)s: %(message)s"
QUIET_LOGGERS = ("botocore", "boto3", "urllib3")


class MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.max_level


def configure_logging(environ: Mapping[str, str]) -> None:
    debug = environ.get(DEBUG_ENV_VAR) == "1"
    formatter = logging.Formatter(LOG_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    stderr_handler.setLevel(logging.WARNING)

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        handlers=[stdout_handler, stderr_handler],
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

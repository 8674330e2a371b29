import logging

import pytest

from awsssh.logging_setup import MaxLevelFilter, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_default_level_is_info(restore_root_logger) -> None:
    configure_logging({})

    assert restore_root_logger.level == logging.INFO
    assert logging.getLogger("botocore").level == logging.WARNING


def test_debug_env_enables_debug(restore_root_logger) -> None:
    configure_logging({"AWSSSH_DEBUG": "1"})

    assert restore_root_logger.level == logging.DEBUG


def test_messages_carry_prefix(restore_root_logger) -> None:
    configure_logging({})

    formatter = restore_root_logger.handlers[0].formatter
    record = logging.LogRecord("awsssh", logging.INFO, __file__, 1, "Connecting", None, None)
    assert formatter.format(record) == "AWSSSH:INFO: Connecting"


def test_max_level_filter() -> None:
    stdout_filter = MaxLevelFilter(logging.WARNING)

    info = logging.LogRecord("x", logging.INFO, __file__, 1, "m", None, None)
    error = logging.LogRecord("x", logging.ERROR, __file__, 1, "m", None, None)
    assert stdout_filter.filter(info)
    assert not stdout_filter.filter(error)

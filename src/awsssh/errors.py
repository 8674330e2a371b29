from __future__ import annotations

import logging


class AwsSshError(Exception):
    exit_code = 1
    log_level = logging.ERROR


class ConfigError(AwsSshError):
    exit_code = 2


class CredentialsError(AwsSshError):
    pass


class DependencyError(AwsSshError):
    pass


class InventoryError(AwsSshError):
    pass


class NoMatchError(AwsSshError):
    def __init__(self, selection: object, region: str) -> None:
        if selection is None:
            message = f"No instances found in region {region}."
        else:
            message = f"No instance matched '{selection}' in region {region}."
        super().__init__(message)


class NoSelectionError(AwsSshError):
    log_level = logging.INFO

    def __init__(self) -> None:
        super().__init__("No instances selected. Exiting...")


class SkippableError(AwsSshError):
    """Failure that affects one record or forward; the run carries on."""


class NotRunningError(SkippableError):
    log_level = logging.INFO

    def __init__(self, display_name: str, status: str | None) -> None:
        super().__init__(f"Instance {display_name} ({status or 'unknown'}) is not running.")


class UnreachableError(SkippableError):
    log_level = logging.INFO

    def __init__(self, display_name: str, instance_id: str, transport: str) -> None:
        super().__init__(f"Unable to connect to {display_name} ({instance_id}) with {transport}.")


class InvalidForwardSpecError(SkippableError):
    def __init__(self, spec: str) -> None:
        self.spec = spec
        super().__init__(f"Invalid forward specification '{spec}'. Expected format local:host:remote.")


class WindowConflictError(SkippableError):
    def __init__(self, window_key: str) -> None:
        self.window_key = window_key
        super().__init__(f"Window {window_key} already exists.")


class WindowLaunchError(SkippableError):
    def __init__(self, window_key: str, returncode: int) -> None:
        self.window_key = window_key
        super().__init__(f"Could not open window {window_key} (tmux exited with {returncode}).")

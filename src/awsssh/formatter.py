"""Tab-delimited serialization of instance records plus a separate display rendering.

The machine form is what travels through the picker and into fan-out windows;
the display form is padded for people and is never parsed.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import InstanceRecord

FIELD_DELIMITER = "\t"
FIELDS = (
    "name",
    "instance_id",
    "private_ip",
    "public_ip",
    "status",
    "image_id",
    "instance_type",
    "public_dns",
)
HEADERS = (
    "Name",
    "Instance ID",
    "Private IP",
    "Public IP",
    "Status",
    "AMI",
    "Type",
    "Public DNS Name",
)
DISPLAY_WIDTHS = (30, 20, 15, 15, 10, 21, 12, 0)


class RecordFormatter:
    def serialize(self, record: InstanceRecord) -> str:
        return FIELD_DELIMITER.join(getattr(record, name) or "" for name in FIELDS)

    def parse(self, line: str) -> InstanceRecord:
        values = line.rstrip("\r\n").split(FIELD_DELIMITER)
        if len(values) != len(FIELDS):
            raise ValueError(f"Expected {len(FIELDS)} tab-separated fields, got {len(values)}: {line!r}")
        cleaned = [value or None for value in values]
        fields = dict(zip(FIELDS, cleaned))
        if not fields["instance_id"]:
            raise ValueError(f"Row has no instance id: {line!r}")
        return InstanceRecord(**fields)

    def render(self, records: Iterable[InstanceRecord], *, header: bool = False) -> str:
        lines = [FIELD_DELIMITER.join(HEADERS)] if header else []
        lines.extend(self.serialize(record) for record in records)
        return "\n".join(lines)

    def display_header(self) -> str:
        return _pad_columns(HEADERS)

    def display_row(self, record: InstanceRecord) -> str:
        return _pad_columns([getattr(record, name) or "-" for name in FIELDS])


def _pad_columns(values: Iterable[str]) -> str:
    cells = []
    for value, width in zip(values, DISPLAY_WIDTHS):
        value = value.replace(FIELD_DELIMITER, " ")
        cells.append(_truncate(value, width).ljust(width) if width else value)
    return " ".join(cells).rstrip()


def _truncate(value: str, max_length: int) -> str:
    if len(value) <= max_length:
        return value
    return f"{value[: max_length - 3]}..."

"""Device inventory models (``devices`` table).

A device row is written by two independent fact sources that share the
serial number as their conflict key:

- provisioning feed facts (``MergeSource.FETCH``)
- enrollment handshake facts (``MergeSource.AUTHENTICATE``)
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from enum import Enum
from typing import Any, Mapping


class MergeSource(str, Enum):
    """Origin of a device fact set."""

    FETCH = "fetch"
    AUTHENTICATE = "authenticate"


# Written by MergeSource.FETCH; dep_device is always set true.
PROVISIONING_COLUMNS: tuple[str, ...] = (
    "serial_number",
    "model",
    "description",
    "color",
    "asset_tag",
    "dep_profile_status",
    "dep_profile_uuid",
    "dep_profile_assign_time",
    "dep_profile_push_time",
    "dep_profile_assigned_date",
    "dep_profile_assigned_by",
    "dep_device",
)

# Written by MergeSource.AUTHENTICATE.
ENROLLMENT_COLUMNS: tuple[str, ...] = (
    "udid",
    "apple_mdm_topic",
    "os_version",
    "build_version",
    "product_name",
    "serial_number",
    "imei",
    "meid",
)

SUMMARY_COLUMNS: tuple[str, ...] = (
    "device_uuid",
    "udid",
    "serial_number",
    "dep_profile_status",
    "model",
    "workflow_uuid",
)


@dataclass
class Device:
    """Device record row (``devices``)."""

    device_uuid: str | None = None
    udid: str = ""
    serial_number: str | None = None
    os_version: str | None = None
    model: str | None = None
    color: str | None = None
    asset_tag: str | None = None
    dep_profile_status: str | None = None
    dep_profile_uuid: str | None = None
    dep_profile_assign_time: date | None = None
    dep_profile_push_time: date | None = None
    dep_profile_assigned_date: date | None = None
    dep_profile_assigned_by: str | None = None
    description: str | None = None
    build_version: str | None = None
    product_name: str | None = None
    imei: str | None = None
    meid: str | None = None
    apple_mdm_token: str | None = None
    apple_mdm_topic: str | None = None
    apple_push_magic: str | None = None
    mdm_enrolled: bool | None = None
    workflow_uuid: str = ""  # owned by the workflow service
    dep_device: bool | None = None
    awaiting_configuration: bool | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Device:
        """Build a Device from a row mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in row.items() if key in known}
        if values.get("device_uuid") is not None:
            values["device_uuid"] = str(values["device_uuid"])
        return cls(**values)

    def provisioning_params(self) -> tuple[Any, ...]:
        """Bound parameters for a provisioning merge, in PROVISIONING_COLUMNS order."""
        return (
            self.serial_number,
            self.model,
            self.description,
            self.color,
            self.asset_tag,
            self.dep_profile_status,
            self.dep_profile_uuid,
            self.dep_profile_assign_time,
            self.dep_profile_push_time,
            self.dep_profile_assigned_date,
            self.dep_profile_assigned_by,
            True,
        )

    def enrollment_params(self) -> tuple[Any, ...]:
        """Bound parameters for an enrollment merge, in ENROLLMENT_COLUMNS order."""
        return tuple(getattr(self, column) for column in ENROLLMENT_COLUMNS)


DEVICE_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(Device))


__all__ = [
    "MergeSource",
    "Device",
    "DEVICE_COLUMNS",
    "PROVISIONING_COLUMNS",
    "ENROLLMENT_COLUMNS",
    "SUMMARY_COLUMNS",
]

"""Device Spine - persistence layer for the device inventory.

Merges provisioning-feed facts and enrollment facts about the same device
into one row keyed by serial number.

    >>> from device_spine import open_store, Device, MergeSource
    >>> store = open_store("postgres", "postgresql://localhost/device_spine")
    >>> device_uuid = store.create_or_merge(
    ...     MergeSource.FETCH, Device(serial_number="ABC123", model="Widget")
    ... )
"""

from device_spine.bootstrap import open_store
from device_spine.errors import (
    ConfigError,
    ConnectivityExhaustedError,
    DeviceNotFoundError,
    DeviceSpineError,
    InvalidProjectionError,
    QueryError,
    SchemaMigrationError,
    UnknownDriverError,
    UnsupportedCommandError,
)
from device_spine.filters import ByUDID, BySerialNumber, ByUUID, ByWorkflow, Filter
from device_spine.models import Device, MergeSource
from device_spine.store import DeviceDatastore, DeviceStore

__version__ = "0.1.0"

__all__ = [
    "open_store",
    "DeviceStore",
    "DeviceDatastore",
    "Device",
    "MergeSource",
    "Filter",
    "ByUUID",
    "BySerialNumber",
    "ByUDID",
    "ByWorkflow",
    "DeviceSpineError",
    "ConfigError",
    "UnknownDriverError",
    "UnsupportedCommandError",
    "InvalidProjectionError",
    "ConnectivityExhaustedError",
    "SchemaMigrationError",
    "QueryError",
    "DeviceNotFoundError",
]

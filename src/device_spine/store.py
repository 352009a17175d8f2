"""Device store - merges provisioning and enrollment facts into one row per device.

Both merge sources upsert on ``serial_number`` with a single
``INSERT ... ON CONFLICT ... DO UPDATE ... RETURNING device_uuid`` statement.
Postgres resolves concurrent conflicts on the unique serial index, so a
provisioning merge and an enrollment merge racing for the same device both
land on the same row without either fact set being lost.
"""

from __future__ import annotations

import uuid
from typing import Any, Protocol

import psycopg
from psycopg_pool import ConnectionPool

from device_spine.errors import (
    DeviceNotFoundError,
    InvalidProjectionError,
    QueryError,
    UnsupportedCommandError,
)
from device_spine.filters import ByUUID, compose_where
from device_spine.logging import get_logger
from device_spine.models import (
    DEVICE_COLUMNS,
    ENROLLMENT_COLUMNS,
    PROVISIONING_COLUMNS,
    SUMMARY_COLUMNS,
    Device,
    MergeSource,
)

logger = get_logger(__name__)


def _upsert_statement(columns: tuple[str, ...]) -> str:
    placeholders = ", ".join(["%s"] * len(columns))
    assignments = ",\n        ".join(f"{col} = EXCLUDED.{col}" for col in columns)
    return f"""
    INSERT INTO devices ({", ".join(columns)})
    VALUES ({placeholders})
    ON CONFLICT (serial_number)
    DO UPDATE SET
        {assignments}
    RETURNING device_uuid
    """


FETCH_DEVICE_SQL = _upsert_statement(PROVISIONING_COLUMNS)
AUTHENTICATE_DEVICE_SQL = _upsert_statement(ENROLLMENT_COLUMNS)

SELECT_DEVICES_SQL = f"SELECT {', '.join(SUMMARY_COLUMNS)} FROM devices"


class DeviceDatastore(Protocol):
    """Operations callers may rely on, for the real store and fakes alike."""

    def create_or_merge(self, source: MergeSource | str, device: Device) -> str: ...

    def get_by_udid(self, udid: str, *fields: str) -> Device: ...

    def list_devices(self, *params: Any) -> list[Device]: ...


class DeviceStore:
    """Postgres-backed device datastore sharing one connection pool.

    Safe for concurrent use; the pool handles its own synchronization.
    Build one with :func:`device_spine.bootstrap.open_store`.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self.pool = pool

    # -- lifecycle -------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying connection pool."""
        self.pool.close()

    def __enter__(self) -> DeviceStore:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # -- merges ----------------------------------------------------------------

    def create_or_merge(self, source: MergeSource | str, device: Device) -> str:
        """Insert a device or merge one fact set into the existing row.

        Args:
            source: ``"fetch"`` writes provisioning facts, ``"authenticate"``
                writes enrollment facts. Columns of the other fact set are
                left untouched.
            device: The facts to write; not modified.

        Returns:
            The row's ``device_uuid``.

        Raises:
            UnsupportedCommandError: Unknown source; nothing is written.
            psycopg.Error: Write failures propagate unwrapped.
        """
        try:
            merge_source = MergeSource(source)
        except ValueError:
            raise UnsupportedCommandError(str(source)) from None

        if merge_source is MergeSource.FETCH:
            stmt, params = FETCH_DEVICE_SQL, device.provisioning_params()
        else:
            stmt, params = AUTHENTICATE_DEVICE_SQL, device.enrollment_params()

        with self.pool.connection() as conn:
            row = conn.execute(stmt, params).fetchone()

        device_uuid = str(row["device_uuid"])
        logger.debug(
            "device_merged",
            source=merge_source.value,
            serial_number=device.serial_number,
            device_uuid=device_uuid,
        )
        return device_uuid

    # -- reads -----------------------------------------------------------------

    def get_by_udid(self, udid: str, *fields: str) -> Device:
        """Fetch one device by UDID, selecting only ``fields``.

        ``udid`` is not unique at the storage level; the first match wins.
        With no fields every column is selected.

        Raises:
            InvalidProjectionError: A field is not a devices column.
            DeviceNotFoundError: No device has this UDID.
            QueryError: The read failed.
        """
        columns = _projection(fields)
        stmt = f"SELECT {', '.join(columns)} FROM devices WHERE udid = %s LIMIT 1"
        row = self._fetch_one(stmt, (udid,), operation="get_by_udid")
        if row is None:
            raise DeviceNotFoundError(f"no device with udid {udid!r}").with_context(
                operation="get_by_udid", udid=udid
            )
        return Device.from_row(row)

    def get_by_uuid(self, device_uuid: str) -> Device:
        """Fetch one device by surrogate identifier.

        Raises:
            DeviceNotFoundError: No such device, including malformed ids.
            QueryError: The read failed.
        """
        row = None
        if _is_uuid(device_uuid):
            stmt = f"SELECT {', '.join(DEVICE_COLUMNS)} FROM devices WHERE device_uuid = %s"
            row = self._fetch_one(stmt, (device_uuid,), operation="get_by_uuid")
        if row is None:
            raise DeviceNotFoundError(f"no device {device_uuid!r}").with_context(
                operation="get_by_uuid", device_uuid=device_uuid
            )
        return Device.from_row(row)

    def list_devices(self, *params: Any) -> list[Device]:
        """List device summaries matching every filter in ``params``.

        Arguments that are not filters are ignored; with no filters every
        device is returned. A malformed UUID filter matches nothing.
        """
        if any(isinstance(p, ByUUID) and not _is_uuid(p.value) for p in params):
            return []

        stmt, bound = compose_where(SELECT_DEVICES_SQL, *params)
        try:
            with self.pool.connection() as conn:
                rows = conn.execute(stmt, bound).fetchall()
        except psycopg.Error as e:
            raise QueryError(f"device list failed: {e}", cause=e).with_context(
                operation="list_devices"
            ) from e
        return [Device.from_row(row) for row in rows]

    def _fetch_one(
        self, stmt: str, params: tuple[Any, ...], *, operation: str
    ) -> dict[str, Any] | None:
        try:
            with self.pool.connection() as conn:
                return conn.execute(stmt, params).fetchone()
        except psycopg.Error as e:
            raise QueryError(f"{operation} failed: {e}", cause=e).with_context(
                operation=operation
            ) from e


def _is_uuid(value: Any) -> bool:
    # device_uuid is a uuid column; postgres rejects malformed text outright
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _projection(fields: tuple[str, ...]) -> tuple[str, ...]:
    if not fields:
        return DEVICE_COLUMNS
    unknown = [name for name in fields if name not in DEVICE_COLUMNS]
    if unknown:
        raise InvalidProjectionError(unknown).with_context(operation="get_by_udid")
    return fields


__all__ = [
    "DeviceDatastore",
    "DeviceStore",
    "FETCH_DEVICE_SQL",
    "AUTHENTICATE_DEVICE_SQL",
    "SELECT_DEVICES_SQL",
]

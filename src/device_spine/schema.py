"""Persisted schema for the device inventory and its idempotent ensure step.

Every object is created with ``IF NOT EXISTS`` so running
:func:`ensure_schema` on each process start is a no-op against a store that
is already migrated.
"""

from __future__ import annotations

from psycopg_pool import ConnectionPool

from device_spine.errors import SchemaMigrationError
from device_spine.logging import get_logger

logger = get_logger(__name__)

DEVICES_TABLE = "devices"

SCHEMA_STATEMENTS: tuple[str, ...] = (
    'CREATE EXTENSION IF NOT EXISTS "uuid-ossp"',
    """
    CREATE TABLE IF NOT EXISTS devices (
        device_uuid uuid PRIMARY KEY
                    DEFAULT uuid_generate_v4(),
        udid text NOT NULL DEFAULT '',
        serial_number text,
        os_version text,
        model text,
        color text,
        asset_tag text,
        dep_profile_status text,
        dep_profile_uuid text,
        dep_profile_assign_time date,
        dep_profile_push_time date,
        dep_profile_assigned_date date,
        dep_profile_assigned_by text,
        description text,
        build_version text,
        product_name text,
        imei text,
        meid text,
        apple_mdm_token text,
        apple_mdm_topic text,
        apple_push_magic text,
        mdm_enrolled boolean,
        workflow_uuid text NOT NULL DEFAULT '',
        dep_device boolean,
        awaiting_configuration boolean
    )
    """,
    "CREATE UNIQUE INDEX IF NOT EXISTS serial_idx ON devices (serial_number)",
)


def ensure_schema(pool: ConnectionPool) -> None:
    """Create the extension, devices table and serial index if absent.

    All statements run in one transaction.

    Raises:
        SchemaMigrationError: Any failure; not retried.
    """
    try:
        with pool.connection() as conn:
            with conn.transaction():
                for statement in SCHEMA_STATEMENTS:
                    conn.execute(statement)
    except Exception as e:
        logger.error("schema_ensure_failed", error=str(e))
        raise SchemaMigrationError(
            f"could not ensure {DEVICES_TABLE} schema: {e}", cause=e
        ).with_context(operation="ensure_schema") from e

    logger.info("schema_ensured", table=DEVICES_TABLE)


__all__ = [
    "DEVICES_TABLE",
    "SCHEMA_STATEMENTS",
    "ensure_schema",
]

"""Filters that narrow down device list queries.

Each :class:`Filter` variant matches one fixed column and renders a
``(fragment, params)`` pair with ``%s`` placeholders, so caller values are
always bound by the driver and never formatted into the statement.

    >>> stmt, params = compose_where("SELECT udid FROM devices", ByUUID("u-1"))
    >>> stmt
    'SELECT udid FROM devices WHERE device_uuid = %s'
    >>> params
    ('u-1',)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar


class Filter(ABC):
    """A predicate on the devices table."""

    value: Any

    @property
    @abstractmethod
    def column(self) -> str:
        """The devices column this filter matches."""
        ...

    def where(self) -> tuple[str, tuple[Any, ...]]:
        """Render this filter as a ``(fragment, params)`` pair."""
        return f"{self.column} = %s", (self.value,)


@dataclass(frozen=True)
class ByUUID(Filter):
    """Match a device by surrogate identifier."""

    column: ClassVar[str] = "device_uuid"

    value: str


@dataclass(frozen=True)
class BySerialNumber(Filter):
    """Match a device by hardware serial number."""

    column: ClassVar[str] = "serial_number"

    value: str


@dataclass(frozen=True)
class ByUDID(Filter):
    """Match devices by enrollment UDID."""

    column: ClassVar[str] = "udid"

    value: str


@dataclass(frozen=True)
class ByWorkflow(Filter):
    """Match devices assigned to a workflow."""

    column: ClassVar[str] = "workflow_uuid"

    value: str


def compose_where(stmt: str, *params: Any) -> tuple[str, tuple[Any, ...]]:
    """Append a WHERE clause built from the filters among ``params``.

    Values that are not filters are ignored. With no filters the statement
    is returned unchanged and every row is eligible.
    """
    fragments: list[str] = []
    bound: list[Any] = []
    for param in params:
        if isinstance(param, Filter):
            fragment, values = param.where()
            fragments.append(fragment)
            bound.extend(values)

    if fragments:
        stmt = f"{stmt} WHERE {' AND '.join(fragments)}"
    return stmt, tuple(bound)


__all__ = [
    "Filter",
    "ByUUID",
    "BySerialNumber",
    "ByUDID",
    "ByWorkflow",
    "compose_where",
]

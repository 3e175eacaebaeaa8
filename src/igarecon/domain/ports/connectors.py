"""Ports through which connectors hand flat records to the core."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date


@dataclass(frozen=True, slots=True, kw_only=True)
class AccountRecord:
    """Flat account as exported by a target system.

    Every optional field may be ``None`` meaning "unknown".
    """

    unique_id: str
    display_name: str | None = None
    description: str | None = None
    created: date | None = None
    last_logon: date | None = None
    password_last_set: date | None = None
    expiration_date: date | None = None
    enabled: bool | None = None
    deleted: bool | None = None
    locked: bool | None = None
    member_of: tuple[str, ...] | None = None
    ou: str | None = None
    other_attributes: dict[str, str | None] = field(default_factory=dict["str", "str | None"])


@dataclass(frozen=True, slots=True, kw_only=True)
class EntitlementRecord:
    """Flat group-like record as exported by a target system."""

    unique_id: str
    display_name: str | None = None
    description: str | None = None
    created: date | None = None
    member_of: tuple[str, ...] | None = None
    member_groups: tuple[str, ...] | None = None
    members: tuple[str, ...] | None = None
    ou: str | None = None
    other_attributes: dict[str, str | None] = field(default_factory=dict["str", "str | None"])
    system_owners: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class IdentityRecord:
    unique_id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    employee_no: str = ""
    employee_type: str = ""
    enabled: bool | None = None
    manager_key: str = ""
    hire_date: date | None = None
    termination_date: date | None = None
    attributes: dict[str, str] = field(default_factory=dict["str", "str"])


@runtime_checkable
class TargetSystemConnector(Protocol):
    """Source of accounts and entitlements for one target system.

    ``reverse_membership`` is true when entitlements only expose the
    ``member_groups`` attribute and parent links must be derived by inversion.
    """

    @property
    def reverse_membership(self) -> bool: ...

    def load_accounts(self) -> Sequence[AccountRecord]: ...

    def load_entitlements(self) -> Sequence[EntitlementRecord]: ...


@runtime_checkable
class IdentitySource(Protocol):
    def read_identities(self) -> Sequence[IdentityRecord]: ...


__all__ = [
    "AccountRecord",
    "EntitlementRecord",
    "IdentityRecord",
    "IdentitySource",
    "TargetSystemConnector",
]

"""Accounts, entitlements and their history as loaded from one target system.

Membership edges are identifier-valued: records never hold references to other
records. Lookups go through the owning :class:`~igarecon.domain.model.store.RecordStore`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import date

    from igarecon.domain.model.identity import Identity
    from igarecon.domain.ports.connectors import AccountRecord, EntitlementRecord


@dataclass(frozen=True, slots=True, kw_only=True)
class HistoryRecord:
    date: date
    source: str
    event_name: str
    link_key: str = ""
    initiator: str = ""
    state: str = ""
    description: str = ""


@dataclass(eq=False, kw_only=True)
class Account:
    id: str
    display_name: str | None = None
    description: str | None = None

    created: date | None = None
    last_logon: date | None = None
    password_last_set: date | None = None
    expiration_date: date | None = None

    enabled: bool | None = None
    deleted: bool | None = None
    locked: bool | None = None

    # None means the source did not expose memberships at all
    member_of: set[str] | None = None
    member_of_indirect: set[str] = field(default_factory=set["str"])
    ou: str | None = None

    other_attributes: dict[str, str | None] = field(default_factory=dict["str", "str | None"])
    account_type: str = ""

    synchronization_counterpart_id: str | None = None
    syncs_to_system: str | None = None
    identity_owners: list[str] = field(default_factory=list["str"])

    history: list[HistoryRecord] = field(default_factory=list["HistoryRecord"], repr=False)

    @classmethod
    def from_record(cls, record: AccountRecord) -> Account:
        history: list[HistoryRecord] = []
        if record.created is not None:
            history.append(
                HistoryRecord(
                    date=record.created,
                    source="Account data",
                    event_name="Account creation",
                )
            )
        return cls(
            id=record.unique_id,
            display_name=record.display_name,
            description=record.description,
            created=record.created,
            last_logon=record.last_logon,
            password_last_set=record.password_last_set,
            expiration_date=record.expiration_date,
            enabled=record.enabled,
            deleted=record.deleted,
            locked=record.locked,
            member_of=set(record.member_of) if record.member_of is not None else None,
            ou=record.ou,
            other_attributes=dict(record.other_attributes),
            history=history,
        )

    @property
    def display_label(self) -> str:
        return self.display_name or self.id

    @property
    def direct_member_of(self) -> frozenset[str]:
        return frozenset(self.member_of or ())

    @property
    def total_entitlements(self) -> int:
        return len(self.member_of) if self.member_of is not None else 0

    def is_orphan(self) -> bool:
        """Enabled account without any identity owner."""
        return self.enabled is True and not self.identity_owners

    def is_persistent_leaver(self, identities: Mapping[str, Identity], *, today: date) -> bool:
        """Enabled account whose owners all left before ``today``.

        An owner that cannot be found, or whose status/termination is unknown,
        keeps the account out of this category.
        """

        if not self.identity_owners or self.enabled is not True:
            return False
        for owner_id in self.identity_owners:
            identity = identities.get(owner_id)
            if identity is None or not identity.has_left(today=today):
                return False
        return True


@dataclass(eq=False, kw_only=True)
class Entitlement:
    id: str
    display_name: str | None = None
    description: str | None = None
    created: date | None = None

    member_of: set[str] | None = None
    member_groups: set[str] | None = None
    all_indirect_member_of: set[str] = field(default_factory=set["str"])
    members: set[str] | None = None
    ou: str | None = None

    other_attributes: dict[str, str | None] = field(default_factory=dict["str", "str | None"])
    entitlement_type: str = ""

    synchronization_counterpart_id: str | None = None
    syncs_to_system: str | None = None
    identity_owners: list[str] = field(default_factory=list["str"])
    system_owners: list[str] | None = None

    history: list[HistoryRecord] = field(default_factory=list["HistoryRecord"], repr=False)

    @classmethod
    def from_record(cls, record: EntitlementRecord) -> Entitlement:
        history: list[HistoryRecord] = []
        if record.created is not None:
            history.append(
                HistoryRecord(
                    date=record.created,
                    source="Group data",
                    event_name="Group creation",
                )
            )
        return cls(
            id=record.unique_id,
            display_name=record.display_name,
            description=record.description,
            created=record.created,
            member_of=set(record.member_of) if record.member_of is not None else None,
            member_groups=(
                set(record.member_groups) if record.member_groups is not None else None
            ),
            members=set(record.members) if record.members is not None else None,
            ou=record.ou,
            other_attributes=dict(record.other_attributes),
            system_owners=list(record.system_owners) if record.system_owners is not None else None,
            history=history,
        )

    @property
    def display_label(self) -> str:
        return self.display_name or self.id

    @property
    def direct_member_of(self) -> frozenset[str]:
        return frozenset(self.member_of or ())

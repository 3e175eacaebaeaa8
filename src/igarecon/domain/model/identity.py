"""Identities read from the HR-style roster."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date

    from igarecon.domain.ports.connectors import IdentityRecord


type MatchesBySystem = dict[str, list[str]]


@dataclass(eq=False, kw_only=True)
class Identity:
    id: str
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

    # Populated by ownership strategies, keyed by target system id
    personal_accounts: MatchesBySystem = field(default_factory=dict["str", "list[str]"])
    owned_accounts: MatchesBySystem = field(default_factory=dict["str", "list[str]"])
    owned_entitlements: MatchesBySystem = field(default_factory=dict["str", "list[str]"])

    @classmethod
    def from_record(cls, record: IdentityRecord) -> Identity:
        return cls(
            id=record.unique_id,
            first_name=record.first_name,
            last_name=record.last_name,
            email=record.email,
            employee_no=record.employee_no,
            employee_type=record.employee_type,
            enabled=record.enabled,
            manager_key=record.manager_key,
            hire_date=record.hire_date,
            termination_date=record.termination_date,
            attributes=dict(record.attributes),
        )

    @property
    def display_label(self) -> str:
        return f"{self.first_name} {self.last_name} ({self.id})"

    def is_inactive(self) -> bool:
        return self.enabled is False

    def has_left(self, *, today: date) -> bool:
        return (
            self.is_inactive()
            and self.termination_date is not None
            and self.termination_date < today
        )

    def field_value(self, name: str) -> str | None:
        """Return a string identity field or open attribute by name."""

        if name in _STRING_FIELDS:
            value = getattr(self, name)
            return value or None
        return self.attributes.get(name) or None

    def record_match(self, matches: MatchesBySystem, system_id: str, record_id: str) -> None:
        ids = matches.setdefault(system_id, [])
        if record_id not in ids:
            ids.append(record_id)


_STRING_FIELDS = frozenset(
    {
        "id",
        "first_name",
        "last_name",
        "email",
        "employee_no",
        "employee_type",
        "manager_key",
    }
)

"""Pydantic models describing AD-style JSON exports and their attribute mapping."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, RootModel, model_validator


class DisplayNameFallback(StrEnum):
    """Where the display name comes from when the configured attribute is empty."""

    ID = "id"
    DESCRIPTION = "description"
    NONE = "none"


class AdBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


class AdUserAttributes(AdBaseModel):
    """Source attribute name for every account field; ``None`` disables a field."""

    unique_id: str | None = "SamAccountName"
    display_name: str | None = "DisplayName"
    description: str | None = "Description"
    created: str | None = "whenCreated"
    last_logon: str | None = "LastLogonDate"
    password_last_set: str | None = "PasswordLastSet"
    expiration_date: str | None = "AccountExpirationDate"
    enabled: str | None = "Enabled"
    deleted: str | None = None
    locked: str | None = "LockedOut"
    member_of: str | None = "MemberOf"
    ou: str | None = None
    other_attributes: tuple[str, ...] = ()
    display_name_fallback: DisplayNameFallback = DisplayNameFallback.ID


class AdGroupAttributes(AdBaseModel):
    unique_id: str | None = "DistinguishedName"
    display_name: str | None = "Name"
    description: str | None = "Description"
    created: str | None = "whenCreated"
    member_of: str | None = "MemberOf"
    members: str | None = "Members"
    # Reverse nesting attribute; when set, member_of is derived by inversion
    member_groups: str | None = None
    ou: str | None = None
    system_owners: str | None = "ManagedBy"
    other_attributes: tuple[str, ...] = ()
    display_name_fallback: DisplayNameFallback = DisplayNameFallback.ID


class AdExport(RootModel[list[dict[str, Any]]]):
    """Top-level export: a JSON array of objects.

    PowerShell's ``ConvertTo-Json`` emits a bare object for single-row exports, so a
    lone object is accepted as a one-element array.
    """

    root: list[dict[str, Any]] = Field(default_factory=list["dict[str, Any]"])

    @model_validator(mode="before")
    @classmethod
    def _wrap_single_object(cls, value: object) -> object:
        if isinstance(value, Mapping):
            return [cast(Mapping[str, object], value)]
        return value

    @property
    def objects(self) -> Sequence[dict[str, Any]]:
        return self.root

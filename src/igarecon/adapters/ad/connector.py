"""File-based connector for AD-style user and group exports."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from igarecon.domain.errors import ConnectorError

from .schema import AdExport, AdGroupAttributes, AdUserAttributes
from .translator import parse_account, parse_entitlement

if TYPE_CHECKING:
    from pathlib import Path

    from igarecon.domain.ports import AccountRecord, EntitlementRecord

log = getLogger(__name__)


def read_export(path: Path) -> AdExport:
    """Read one export file, raising :class:`ConnectorError` when it is unusable."""

    try:
        with path.open(encoding="utf-8-sig") as handle:
            payload = json.load(handle)
    except OSError as exc:
        raise ConnectorError(f"Failed to read file: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConnectorError(f"Failed to deserialize json after opening file: {path}") from exc

    try:
        return AdExport.model_validate(payload)
    except ValidationError as exc:
        raise ConnectorError(f"Unexpected export structure in {path}: {exc}") from exc


@dataclass(frozen=True, slots=True, kw_only=True)
class ADJsonConnector:
    users_path: Path
    groups_path: Path
    user_attributes: AdUserAttributes = field(default_factory=AdUserAttributes)
    group_attributes: AdGroupAttributes = field(default_factory=AdGroupAttributes)

    @property
    def reverse_membership(self) -> bool:
        return self.group_attributes.member_groups is not None

    def load_accounts(self) -> list[AccountRecord]:
        export = read_export(self.users_path)
        accounts = [parse_account(obj, self.user_attributes) for obj in export.objects]
        log.debug("Parsed %s accounts from %s", len(accounts), self.users_path)
        return accounts

    def load_entitlements(self) -> list[EntitlementRecord]:
        export = read_export(self.groups_path)
        entitlements = [parse_entitlement(obj, self.group_attributes) for obj in export.objects]
        log.debug("Parsed %s entitlements from %s", len(entitlements), self.groups_path)
        return entitlements

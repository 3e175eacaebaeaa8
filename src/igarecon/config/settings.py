"""TOML settings file validated into pydantic models.

Relative paths in the file are resolved against the directory holding it.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from igarecon.adapters.ad.schema import AdGroupAttributes, AdUserAttributes
from igarecon.adapters.history_csv import HistoryColumns
from igarecon.adapters.identity_roster import RosterColumns

from .env import config_path_from_env, output_dir_from_env
from .errors import ConfigurationError

DEFAULT_OUTPUT_DIR = Path("reports")


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _resolve_path(value: Path, info: ValidationInfo) -> Path:
    base_dir = info.context.get("base_dir") if info.context else None
    path = value.expanduser()
    if base_dir is not None and not path.is_absolute():
        return Path(base_dir) / path
    return path


class SettingsModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class AccountMatchingSettings(SettingsModel):
    # None matches on the account id
    attribute: str | None = None
    identity_field: str = "id"
    personal: bool = True

    _normalize_attribute = field_validator("attribute", mode="before")(_blank_to_none)


class EntitlementOwnershipSettings(SettingsModel):
    attribute: str
    identity_field: str = "id"


class CounterpartSettings(SettingsModel):
    to_system: str
    attribute: str | None = None

    _normalize_attribute = field_validator("attribute", mode="before")(_blank_to_none)


class ClassificationSettings(SettingsModel):
    account_attribute: str | None = None
    entitlement_attribute: str | None = None
    default: str = ""


class HistorySourceSettings(SettingsModel):
    path: Path
    columns: HistoryColumns = Field(default_factory=HistoryColumns)
    source: str = ""
    delimiter: str = Field(default=",", min_length=1, max_length=1)

    _resolve_paths = field_validator("path", mode="after")(_resolve_path)


class TargetSystemSettings(SettingsModel):
    unique_id: str = Field(min_length=1)
    users_path: Path
    groups_path: Path
    users: AdUserAttributes = Field(default_factory=AdUserAttributes)
    groups: AdGroupAttributes = Field(default_factory=AdGroupAttributes)
    account_matching: AccountMatchingSettings | None = None
    entitlement_ownership: EntitlementOwnershipSettings | None = None
    counterpart: CounterpartSettings | None = None
    classification: ClassificationSettings | None = None
    account_history: list[HistorySourceSettings] = Field(
        default_factory=list["HistorySourceSettings"]
    )
    entitlement_history: list[HistorySourceSettings] = Field(
        default_factory=list["HistorySourceSettings"]
    )
    other_attributes: dict[str, str] = Field(default_factory=dict["str", "str"])

    _resolve_paths = field_validator("users_path", "groups_path", mode="after")(_resolve_path)

    @model_validator(mode="after")
    def _check_rule_attributes(self) -> Self:
        """Rules read extra attributes, so each one must be exported."""

        users = set(self.users.other_attributes)
        groups = set(self.groups.other_attributes)
        checks: list[tuple[str, str | None, set[str]]] = []
        if self.account_matching is not None:
            checks.append(("account_matching.attribute", self.account_matching.attribute, users))
        if self.entitlement_ownership is not None:
            attribute = self.entitlement_ownership.attribute
            checks.append(("entitlement_ownership.attribute", attribute, groups))
        if self.counterpart is not None:
            checks.append(("counterpart.attribute", self.counterpart.attribute, users & groups))
        if self.classification is not None:
            classification = self.classification
            checks.append(
                ("classification.account_attribute", classification.account_attribute, users)
            )
            checks.append(
                (
                    "classification.entitlement_attribute",
                    classification.entitlement_attribute,
                    groups,
                )
            )
        for name, attribute, exported in checks:
            if attribute is not None and attribute not in exported:
                raise ValueError(
                    f"{self.unique_id}: {name} {attribute!r} is not listed in other_attributes"
                )
        return self


class IdentitySourceSettings(SettingsModel):
    path: Path
    columns: RosterColumns = Field(default_factory=RosterColumns)
    enabled_codes: tuple[str, ...] = ("3",)
    disabled_codes: tuple[str, ...] = ("0",)
    sheet: str | None = None
    delimiter: str = Field(default=",", min_length=1, max_length=1)

    _resolve_paths = field_validator("path", mode="after")(_resolve_path)

    @model_validator(mode="after")
    def _check_codes(self) -> Self:
        overlap = set(self.enabled_codes) & set(self.disabled_codes)
        if overlap:
            raise ValueError(f"Status codes both enabled and disabled: {sorted(overlap)}")
        return self


class SyncSettings(SettingsModel):
    from_system: str
    to_system: str

    @model_validator(mode="after")
    def _check_distinct(self) -> Self:
        if self.from_system == self.to_system:
            raise ValueError("sync.from_system and sync.to_system must differ")
        return self


class Settings(SettingsModel):
    identity_source: IdentitySourceSettings
    target_systems: list[TargetSystemSettings] = Field(min_length=1)
    sync: SyncSettings | None = None
    output_dir: Path = Field(default=DEFAULT_OUTPUT_DIR, validate_default=True)

    _resolve_paths = field_validator("output_dir", mode="after")(_resolve_path)

    @model_validator(mode="after")
    def _check_unique_systems(self) -> Self:
        seen: set[str] = set()
        for target_system in self.target_systems:
            if target_system.unique_id in seen:
                raise ValueError(f"Duplicate target system id: {target_system.unique_id}")
            seen.add(target_system.unique_id)
        return self


def load_settings(path: Path | None = None, *, output_dir: Path | None = None) -> Settings:
    """Read and validate the settings file.

    ``path`` defaults to ``$IGARECON_CONFIG``. The output directory is taken from
    ``output_dir``, then ``$IGARECON_OUTPUT_DIR``, then the file.
    """

    settings_path = path if path is not None else config_path_from_env()
    try:
        with settings_path.open("rb") as handle:
            data = tomllib.load(handle)
    except OSError as exc:
        raise ConfigurationError(f"Failed to read settings file: {settings_path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {settings_path}: {exc}") from exc

    try:
        settings = Settings.model_validate(
            data, context={"base_dir": settings_path.resolve().parent}
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings in {settings_path}: {exc}") from exc

    override = output_dir if output_dir is not None else output_dir_from_env()
    if override is not None:
        settings = settings.model_copy(update={"output_dir": override})
    return settings

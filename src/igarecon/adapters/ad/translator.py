"""Translate raw AD export objects into flat connector records.

Field-level problems never raise: an unreadable value becomes ``None`` so that a
single bad attribute does not drop the whole record.
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from igarecon.domain.ports import AccountRecord, EntitlementRecord

from .schema import AdGroupAttributes, AdUserAttributes, DisplayNameFallback

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

MISSING_ID = "No ID"

_MS_DATE = re.compile(r"^/Date\((-?\d+)(?:[+-]\d{4})?\)/$")


def get_string(data: Mapping[str, object], key: str | None) -> str | None:
    if key is None:
        return None
    value = data.get(key)
    if isinstance(value, str):
        return value.strip() or None
    return None


def get_date(data: Mapping[str, object], key: str | None) -> date | None:
    """Parse ``/Date(<epoch ms>)/`` or ISO-8601 strings into a date."""

    text = get_string(data, key)
    if text is None:
        return None
    match = _MS_DATE.match(text)
    try:
        if match is not None:
            return datetime.fromtimestamp(int(match.group(1)) / 1000, tz=UTC).date()
        normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
        return datetime.fromisoformat(normalized).date()
    except (ValueError, OverflowError, OSError):
        log.debug("Unparseable date %r for attribute %s", text, key)
        return None


def get_bool(data: Mapping[str, object], key: str | None) -> bool | None:
    if key is None:
        return None
    value = data.get(key)
    return value if isinstance(value, bool) else None


def get_string_list(data: Mapping[str, object], key: str | None) -> tuple[str, ...] | None:
    """Return the string items of a list attribute.

    An unconfigured attribute is unknown (``None``); a configured attribute that is
    absent or not a list yields an empty tuple.
    """

    if key is None:
        return None
    value = data.get(key)
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, str) and item)


def _other_attributes(
    data: Mapping[str, object], names: tuple[str, ...]
) -> dict[str, str | None]:
    return {name: get_string(data, name) for name in names}


def _display_name(
    configured: str | None,
    *,
    unique_id: str,
    description: str | None,
    fallback: DisplayNameFallback,
) -> str | None:
    if configured:
        return configured
    if fallback is DisplayNameFallback.ID:
        return unique_id
    if fallback is DisplayNameFallback.DESCRIPTION:
        return description
    return None


def parse_account(data: Mapping[str, object], attributes: AdUserAttributes) -> AccountRecord:
    unique_id = get_string(data, attributes.unique_id) or MISSING_ID
    description = get_string(data, attributes.description)
    return AccountRecord(
        unique_id=unique_id,
        display_name=_display_name(
            get_string(data, attributes.display_name),
            unique_id=unique_id,
            description=description,
            fallback=attributes.display_name_fallback,
        ),
        description=description,
        created=get_date(data, attributes.created),
        last_logon=get_date(data, attributes.last_logon),
        password_last_set=get_date(data, attributes.password_last_set),
        expiration_date=get_date(data, attributes.expiration_date),
        enabled=get_bool(data, attributes.enabled),
        deleted=get_bool(data, attributes.deleted),
        locked=get_bool(data, attributes.locked),
        member_of=get_string_list(data, attributes.member_of),
        ou=get_string(data, attributes.ou),
        other_attributes=_other_attributes(data, attributes.other_attributes),
    )


def parse_entitlement(
    data: Mapping[str, object], attributes: AdGroupAttributes
) -> EntitlementRecord:
    unique_id = get_string(data, attributes.unique_id) or MISSING_ID
    description = get_string(data, attributes.description)
    return EntitlementRecord(
        unique_id=unique_id,
        display_name=_display_name(
            get_string(data, attributes.display_name),
            unique_id=unique_id,
            description=description,
            fallback=attributes.display_name_fallback,
        ),
        description=description,
        created=get_date(data, attributes.created),
        member_of=get_string_list(data, attributes.member_of),
        member_groups=get_string_list(data, attributes.member_groups),
        members=get_string_list(data, attributes.members),
        ou=get_string(data, attributes.ou),
        other_attributes=_other_attributes(data, attributes.other_attributes),
        system_owners=get_string_list(data, attributes.system_owners),
    )

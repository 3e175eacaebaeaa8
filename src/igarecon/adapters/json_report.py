"""JSON snapshots of report views written to the output directory."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from igarecon.domain.iga import IdentityAccess
    from igarecon.domain.model import Account, Entitlement, HistoryRecord
    from igarecon.domain.reconciliation import EdgeKind, PairedRecord, Pairing
    from igarecon.domain.reporting import CategoryTotals

log = getLogger(__name__)

type Payload = dict[str, Any]


def history_payload(history: Iterable[HistoryRecord]) -> list[Payload]:
    """Events newest first."""

    return [
        {
            "date": event.date,
            "event_name": event.event_name,
            "source": event.source,
            "state": event.state,
            "initiator": event.initiator,
            "description": event.description,
            "link_key": event.link_key,
        }
        for event in sorted(history, key=lambda event: event.date, reverse=True)
    ]


def account_payload(account: Account) -> Payload:
    return {
        "id": account.id,
        "display_name": account.display_label,
        "enabled": account.enabled,
        "ou": account.ou,
        "account_type": account.account_type,
        "last_logon": account.last_logon,
        "identity_owners": list(account.identity_owners),
        "member_of": sorted(account.direct_member_of),
        "member_of_indirect": sorted(account.member_of_indirect),
        "history": history_payload(account.history),
    }


def entitlement_payload(entitlement: Entitlement) -> Payload:
    return {
        "id": entitlement.id,
        "display_name": entitlement.display_label,
        "ou": entitlement.ou,
        "entitlement_type": entitlement.entitlement_type,
        "identity_owners": list(entitlement.identity_owners),
        "member_of": sorted(entitlement.direct_member_of),
        "all_indirect_member_of": sorted(entitlement.all_indirect_member_of),
        "history": history_payload(entitlement.history),
    }


def accounts_by_system_payload(accounts: Mapping[str, Iterable[Account]]) -> Payload:
    return {
        system_id: [account_payload(account) for account in system_accounts]
        for system_id, system_accounts in accounts.items()
    }


def totals_payload(totals: Iterable[CategoryTotals]) -> list[Payload]:
    return [
        {
            "system_id": entry.system_id,
            "label": entry.label,
            "totals": dict(sorted(entry.totals.items())),
            "grand_total": entry.grand_total,
        }
        for entry in totals
    ]


def identity_access_payload(access: IdentityAccess) -> Payload:
    identity = access.identity
    return {
        "identity": {
            "id": identity.id,
            "display_name": identity.display_label,
            "email": identity.email,
            "enabled": identity.enabled,
            "termination_date": identity.termination_date,
        },
        "personal_accounts": {
            system_id: [account_payload(account) for account in accounts]
            for system_id, accounts in access.personal_accounts.items()
        },
        "owned_accounts": {
            system_id: [account_payload(account) for account in accounts]
            for system_id, accounts in access.owned_accounts.items()
        },
        "owned_entitlements": {
            system_id: [entitlement_payload(entitlement) for entitlement in entitlements]
            for system_id, entitlements in access.owned_entitlements.items()
        },
    }


def _paired_payload(
    paired: PairedRecord[Account] | PairedRecord[Entitlement], kinds: Iterable[EdgeKind]
) -> Payload:
    counterpart = paired.counterpart
    payload: Payload = {
        "id": paired.record.id,
        "counterpart_id": counterpart.id if counterpart is not None else None,
    }
    for kind in kinds:
        payload[str(kind)] = {
            "edges": [
                {"id": edge.edge_id, "counterpart_id": edge.counterpart_edge_id}
                for edge in paired.edges_for(kind)
            ],
            "extraneous": list(paired.extraneous_edges(kind)),
        }
    return payload


def pairing_payload(
    pairing: Pairing[Account] | Pairing[Entitlement], kinds: Iterable[EdgeKind]
) -> Payload:
    edge_kinds = tuple(kinds)
    sync = pairing.sync
    return {
        "sync": {"from": sync.from_system, "to": sync.to_system} if sync else None,
        "matched": pairing.matched_count,
        "pairs": [_paired_payload(paired, edge_kinds) for paired in pairing.synced_pairs],
        "unpaired": {
            system_id: [paired.record.id for paired in system_pairs]
            for system_id, system_pairs in pairing.pairs.items()
            if sync is None or system_id != sync.from_system
        },
        "unmatched_to": [record.id for record in pairing.unmatched_to],
        "duplicate_claims": list(pairing.duplicate_claims),
    }


def write_report(output_dir: Path, name: str, payload: object) -> Path:
    """Write ``payload`` to ``<output_dir>/<name>.json`` and return the path."""

    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"{name}.json"
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, default=str, ensure_ascii=False)
    log.info("Written %s report to %s", name, path)
    return path


__all__ = [
    "account_payload",
    "accounts_by_system_payload",
    "entitlement_payload",
    "history_payload",
    "identity_access_payload",
    "pairing_payload",
    "totals_payload",
    "write_report",
]

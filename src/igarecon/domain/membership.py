"""Membership closure over nested entitlements.

Three passes, run once per target system right after load:

1) optional reverse-edge inversion (``member_groups`` -> parent ``member_of``)
2) per-entitlement breadth-first expansion of ``member_of`` into
   ``all_indirect_member_of``
3) propagation of those closures to accounts as ``member_of_indirect``

Dangling identifiers are skipped; nothing here raises for bad references.
"""

from __future__ import annotations

from logging import DEBUG, getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from igarecon.domain.model.records import Entitlement
    from igarecon.domain.model.store import RecordStore

log = getLogger(__name__)


def invert_member_groups(entitlements: Mapping[str, Entitlement]) -> None:
    """Rebuild every ``member_of`` from the ``member_groups`` lists.

    An entitlement ``G1`` listing ``G2`` in ``member_groups`` puts ``G1`` into
    ``G2.member_of``. Entitlements nobody points at end up with ``member_of = None``.
    """

    inverted: dict[str, set[str]] = {}
    for entitlement in entitlements.values():
        for target_id in entitlement.member_groups or ():
            if target_id == entitlement.id or target_id not in entitlements:
                continue
            inverted.setdefault(target_id, set()).add(entitlement.id)

    for entitlement in entitlements.values():
        entitlement.member_of = inverted.get(entitlement.id)


def ancestor_closure(entitlement_id: str, entitlements: Mapping[str, Entitlement]) -> set[str]:
    """Return every entitlement reachable from ``entitlement_id`` via ``member_of``.

    The start identifier is never part of the result, even through a cycle.
    """

    start = entitlements.get(entitlement_id)
    if start is None:
        return set()

    visited: set[str] = set()
    frontier = _parents_of(start.member_of or (), entitlement_id)
    while frontier:
        new_ids = [uid for uid in frontier if uid not in visited]
        visited.update(new_ids)
        frontier = []
        for uid in new_ids:
            parent = entitlements.get(uid)
            if parent is None:
                continue
            frontier.extend(_parents_of(parent.member_of or (), entitlement_id))
    return visited


def _parents_of(member_of: Iterable[str], excluded: str) -> list[str]:
    return [uid for uid in member_of if uid != excluded]


def compute_entitlement_closures(entitlements: Mapping[str, Entitlement]) -> None:
    for entitlement_id, entitlement in entitlements.items():
        entitlement.all_indirect_member_of = ancestor_closure(entitlement_id, entitlements)


def propagate_to_accounts(store: RecordStore) -> None:
    """Fill each account's ``member_of_indirect`` from its direct entitlements.

    Entitlements also held directly are removed, so direct and indirect never overlap.
    """

    for account in store.accounts.values():
        direct = account.direct_member_of
        inherited: set[str] = set()
        for entitlement_id in direct:
            entitlement = store.entitlements.get(entitlement_id)
            if entitlement is not None:
                inherited |= entitlement.all_indirect_member_of
        account.member_of_indirect = inherited - direct


def compute_memberships(store: RecordStore, *, reverse_membership: bool = False) -> None:
    """Run the full closure pipeline on ``store`` in place."""

    if reverse_membership:
        invert_member_groups(store.entitlements)
    compute_entitlement_closures(store.entitlements)
    propagate_to_accounts(store)

    if log.isEnabledFor(DEBUG):
        dangling = _count_dangling_parents(store.entitlements)
        if dangling:
            log.debug("Skipped %s dangling parent references", dangling)


def _count_dangling_parents(entitlements: Mapping[str, Entitlement]) -> int:
    return sum(
        1
        for entitlement in entitlements.values()
        for parent_id in entitlement.member_of or ()
        if parent_id not in entitlements
    )


__all__ = [
    "ancestor_closure",
    "compute_entitlement_closures",
    "compute_memberships",
    "invert_member_groups",
    "propagate_to_accounts",
]

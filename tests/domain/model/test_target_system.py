from __future__ import annotations

from datetime import date

import pytest

from igarecon.domain.errors import ConnectorError
from igarecon.domain.model import HistoryRecord, TargetSystem, TargetSystemConfig
from igarecon.domain.ports import EntitlementRecord
from tests.helpers.records import FailingConnector, FakeConnector


def test_load_builds_store_and_closures(nested_connector: FakeConnector) -> None:
    target_system = TargetSystem(TargetSystemConfig(unique_id="AD", connector=nested_connector))

    target_system.load()

    assert target_system.loaded
    assert set(target_system.accounts) == {"alice", "bob", "svc"}
    assert target_system.entitlements["G1"].all_indirect_member_of == {"G2", "G3"}
    assert target_system.accounts["alice"].member_of_indirect == {"G2", "G3"}
    assert target_system.accounts["bob"].member_of_indirect == set()
    assert target_system.accounts["svc"].member_of is None


def test_load_inverts_member_groups_for_reverse_connectors() -> None:
    connector = FakeConnector(
        entitlements=[
            EntitlementRecord(unique_id="G1", member_groups=("G2",)),
            EntitlementRecord(unique_id="G2", member_groups=()),
        ],
        reverse=True,
    )
    target_system = TargetSystem(TargetSystemConfig(unique_id="AD", connector=connector))

    target_system.load()

    assert target_system.entitlements["G2"].member_of == {"G1"}
    assert target_system.entitlements["G2"].all_indirect_member_of == {"G1"}


def test_load_propagates_connector_errors() -> None:
    target_system = TargetSystem(TargetSystemConfig(unique_id="AD", connector=FailingConnector()))

    with pytest.raises(ConnectorError):
        target_system.load()

    assert not target_system.loaded


def test_history_is_appended_for_known_ids_only(nested_connector: FakeConnector) -> None:
    target_system = TargetSystem(TargetSystemConfig(unique_id="AD", connector=nested_connector))
    target_system.load()
    event = HistoryRecord(date=date(2024, 3, 1), source="Audit", event_name="Password reset")

    target_system.add_account_history({"alice": event, "ghost": event})
    target_system.add_entitlement_history({"G1": event})

    assert target_system.accounts["alice"].history == [event]
    assert target_system.entitlements["G1"].history == [event]


def test_history_pairs_keep_every_event(nested_connector: FakeConnector) -> None:
    target_system = TargetSystem(TargetSystemConfig(unique_id="AD", connector=nested_connector))
    target_system.load()
    reset = HistoryRecord(date=date(2024, 3, 1), source="Audit", event_name="Password reset")
    disabled = HistoryRecord(date=date(2024, 4, 1), source="Audit", event_name="Disabled")

    target_system.add_account_history([("alice", reset), ("alice", disabled), ("ghost", reset)])

    assert target_system.accounts["alice"].history == [reset, disabled]

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from igarecon.domain.ports import AccountRecord, EntitlementRecord
from tests.helpers.records import FakeConnector

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture
def nested_connector() -> FakeConnector:
    """Two nesting levels: G1 -> G2 -> G3, with accounts in G1 and G2."""

    return FakeConnector(
        accounts=[
            AccountRecord(unique_id="alice", member_of=("G1",), enabled=True),
            AccountRecord(unique_id="bob", member_of=("G2", "G3"), enabled=True),
            AccountRecord(unique_id="svc", member_of=None, enabled=False),
        ],
        entitlements=[
            EntitlementRecord(unique_id="G1", member_of=("G2",), members=("alice",)),
            EntitlementRecord(unique_id="G2", member_of=("G3",), members=("G1", "bob")),
            EntitlementRecord(unique_id="G3", member_of=(), members=("G2", "bob")),
        ],
    )


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, object], Path]:
    def write(name: str, payload: object) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return write


ROSTER_CSV = """\
ID,FirstName,LastName,Email,EmployeeNo,EmployeeType,Status,Manager,HireDate,TerminationDate
e100,Jane,Doe,jane@example.org,100,Employee,3,,2019-04-01,
e200,Old,Timer,old@example.org,200,Employee,0,E100,2001-01-01,2024-01-31
"""

SETTINGS_TOML = """\
output_dir = "reports"

[identity_source]
path = "roster.csv"

[sync]
from_system = "AD"
to_system = "AAD"

[[target_systems]]
unique_id = "AD"
users_path = "ad_users.json"
groups_path = "ad_groups.json"

[target_systems.users]
other_attributes = ["employeeID", "cloudId", "kind"]

[target_systems.groups]
other_attributes = ["cloudId"]

[target_systems.account_matching]
attribute = "employeeID"
identity_field = "employee_no"

[target_systems.counterpart]
to_system = "AAD"
attribute = "cloudId"

[target_systems.classification]
account_attribute = "kind"
default = "unclassified"

[[target_systems]]
unique_id = "AAD"
users_path = "aad_users.json"
groups_path = "aad_groups.json"
"""


@pytest.fixture
def settings_file(tmp_path: Path, write_json: Callable[[str, object], Path]) -> Path:
    """A complete settings file with an AD -> AAD pair and an HR roster beside it."""

    write_json(
        "ad_users.json",
        [
            {
                "SamAccountName": "jdoe",
                "Enabled": True,
                "MemberOf": ["CN=Staff,OU=Groups,DC=corp"],
                "employeeID": "100",
                "cloudId": "jdoe@corp",
                "kind": "user",
            },
            {"SamAccountName": "old", "Enabled": True, "MemberOf": [], "employeeID": "200"},
            {"SamAccountName": "svc-build", "Enabled": True, "kind": "service"},
        ],
    )
    write_json(
        "ad_groups.json",
        [
            {
                "DistinguishedName": "CN=Staff,OU=Groups,DC=corp",
                "Name": "Staff",
                "MemberOf": ["CN=Everyone,OU=Groups,DC=corp"],
                "Members": ["CN=jdoe,OU=Users,DC=corp"],
                "cloudId": "CN=Staff,OU=Cloud",
            },
            {
                "DistinguishedName": "CN=Everyone,OU=Groups,DC=corp",
                "Name": "Everyone",
                "MemberOf": [],
                "Members": ["CN=Staff,OU=Groups,DC=corp"],
            },
        ],
    )
    write_json(
        "aad_users.json",
        [
            {
                "SamAccountName": "jdoe@corp",
                "Enabled": True,
                "MemberOf": ["CN=Staff,OU=Cloud", "CN=Extra,OU=Cloud"],
            },
            {"SamAccountName": "stray@corp", "Enabled": True, "MemberOf": []},
        ],
    )
    write_json(
        "aad_groups.json",
        [
            {
                "DistinguishedName": "CN=Staff,OU=Cloud",
                "Name": "Staff",
                "Members": ["CN=jdoe@corp,OU=Cloud"],
            },
            {"DistinguishedName": "CN=Extra,OU=Cloud", "Name": "Extra", "Members": []},
        ],
    )
    (tmp_path / "roster.csv").write_text(ROSTER_CSV, encoding="utf-8")
    path = tmp_path / "igarecon.toml"
    path.write_text(SETTINGS_TOML, encoding="utf-8")
    return path

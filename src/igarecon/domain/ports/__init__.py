"""Domain port definitions for adapters."""

from __future__ import annotations

from .connectors import (
    AccountRecord,
    EntitlementRecord,
    IdentityRecord,
    IdentitySource,
    TargetSystemConnector,
)
from .rules import OwnershipRules, no_rules

__all__ = [
    "AccountRecord",
    "EntitlementRecord",
    "IdentityRecord",
    "IdentitySource",
    "OwnershipRules",
    "TargetSystemConnector",
    "no_rules",
]

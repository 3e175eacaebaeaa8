"""Public interface for the AD export adapter."""

from __future__ import annotations

from .connector import ADJsonConnector, read_export
from .schema import AdExport, AdGroupAttributes, AdUserAttributes, DisplayNameFallback
from .translator import parse_account, parse_entitlement

__all__ = [
    "ADJsonConnector",
    "AdExport",
    "AdGroupAttributes",
    "AdUserAttributes",
    "DisplayNameFallback",
    "parse_account",
    "parse_entitlement",
    "read_export",
]

"""Injected ownership and synchronization-key strategies."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from igarecon.domain.iga import Iga
    from igarecon.domain.model import TargetSystem


# Invoked once per loaded target system. Strategies may only touch identity match
# maps, record owners and synchronization-key fields.
type OwnershipRules = Callable[[Iga, TargetSystem], None]


def no_rules(_iga: Iga, _target_system: TargetSystem) -> None:
    return None


__all__ = ["OwnershipRules", "no_rules"]

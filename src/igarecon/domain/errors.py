"""Structural failures that abort a load."""

from __future__ import annotations


class IgaLoadError(RuntimeError):
    """Raised when a source cannot be located or parsed at all."""


class ConnectorError(IgaLoadError):
    """Raised by target-system connectors for unreadable exports."""


class IdentitySourceError(IgaLoadError):
    """Raised when the identity roster cannot be read."""


class TargetSystemLoadError(IgaLoadError):
    def __init__(self, system_id: str, cause: BaseException) -> None:
        self.system_id = system_id
        super().__init__(f"Failed to load target system {system_id!r}: {cause}")


class TargetSystemNotFoundError(IgaLoadError):
    def __init__(self, system_id: str) -> None:
        self.system_id = system_id
        super().__init__(f"Target system not found for UID: {system_id}")


"""Error kinds raised by the subnet allocator.

Every error is fatal to the allocation run: the planner never returns a
partial plan.  Errors carry the offending group and zone (when known) so the
provisioning layer can point the operator at the right declaration.
"""

from __future__ import annotations

from typing import Optional


class AllocationError(Exception):
    """Base class for all allocator failures."""

    def __init__(
        self,
        message: str,
        *,
        group: Optional[str] = None,
        zone: Optional[str] = None,
    ) -> None:
        self.group = group
        self.zone = zone
        self.reason = message
        super().__init__(self._render(message))

    def _render(self, message: str) -> str:
        where = []
        if self.group is not None:
            where.append(f"group '{self.group}'")
        if self.zone is not None:
            where.append(f"zone '{self.zone}'")
        if not where:
            return message
        return f"{', '.join(where)}: {message}"


class MalformedBlock(AllocationError):
    """Block text is not a valid network prefix for its family."""


class FamilyMismatch(AllocationError):
    """A group's explicit list mixes IPv4 and IPv6 without dual-stack."""


class OutOfParentRange(AllocationError):
    """An explicit block lies outside its family's parent block."""


class OverlapDetected(AllocationError):
    """Two admitted blocks intersect."""


class CapacityExceeded(AllocationError):
    """No unused sub-block of the requested size is left in the parent."""


class InvalidPrefixLength(AllocationError):
    """Prefix length outside the valid range for its address family."""


class InvalidGroupDeclaration(AllocationError):
    """A group declaration is structurally inconsistent."""


class MissingParentBlock(AllocationError):
    """A group asks for a family that has no parent block."""


class InvalidZoneSet(AllocationError):
    """The zone set is empty, has duplicates or cannot be synthesized."""

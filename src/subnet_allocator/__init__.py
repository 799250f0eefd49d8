"""Deterministic VPC subnet address-space allocator.

Given a parent IPv4 block (and optionally an IPv6 block), a set of
availability zones and a map of named subnet groups, the allocator partitions
the parent space into non-overlapping per-zone blocks.  Each group either
pins explicit blocks or asks for a prefix length; computed groups are carved
in a fixed priority order:

* custom (private) groups, in declaration order;
* ``public``;
* ``transit_gateway``;
* ``core_network``.

The allocator is a pure function.  It performs no I/O and keeps nothing
between runs, so planning the same input twice yields the same plan.

Changing the zone count recomputes every computed group and shifts the
blocks of every group allocated after the first one.  Switch a group to
explicit ``cidrs`` to pin its addresses before making such a change.
"""

from .blocks import AddressBlock, AddressFamily  # noqa: F401
from .config import GroupDeclaration, GroupKind, ZoneSet  # noqa: F401
from .exceptions import AllocationError  # noqa: F401
from .planner import AllocationPlan, SubnetPlanner  # noqa: F401

__all__ = [
    "AddressBlock",
    "AddressFamily",
    "AllocationError",
    "AllocationPlan",
    "GroupDeclaration",
    "GroupKind",
    "SubnetPlanner",
    "ZoneSet",
]

"""Allocation priority order.

Private (custom) groups are always carved before ``public``, then the transit
gateway and core network attachment groups.  Custom groups keep their
declaration order.  Because computed groups consume the parent block front to
back in this order, adding a zone appends each group's new block after that
group's existing ones, but every later group shifts: changing the zone count,
reordering groups or widening a netmask reshuffles computed blocks.  Groups
that must keep their addresses should declare explicit ``cidrs``.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from .config import GroupKind, SubnetGroupRequest

KIND_PRIORITY: Dict[GroupKind, int] = {
    GroupKind.CUSTOM: 0,
    GroupKind.PUBLIC: 1,
    GroupKind.TRANSIT_GATEWAY: 2,
    GroupKind.CORE_NETWORK: 3,
}


def priority_key(request: SubnetGroupRequest) -> Tuple[int, int]:
    return KIND_PRIORITY[request.kind], request.declaration_index


def order_requests(requests: Iterable[SubnetGroupRequest]) -> List[SubnetGroupRequest]:
    """Return ``requests`` sorted into allocation order (stable)."""

    return sorted(requests, key=priority_key)

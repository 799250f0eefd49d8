"""Subnet planner.

This module ties the allocator stages together: group declarations are
normalized into per-family requests, ordered by allocation priority,
partitioned out of the parent blocks and finally projected into the views the
provisioning layer consumes.  The planner keeps no state between calls; the
same inputs always produce the same plan, which is what lets a caller diff an
old plan against a new one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .allocator import Allocation, Partitioner
from .blocks import AddressBlock, AddressFamily
from .config import AllocationEntry, GroupDeclaration, ZoneSet
from .exceptions import MalformedBlock
from .normalizer import normalize_groups
from .projector import GroupedProjector, ProjectedViews, ZoneSubnet

LOG = logging.getLogger(__name__)

VIEWS = ("flat", "by-zone", "by-type", "attributes-by-az")

BlockLike = Union[str, AddressBlock]


@dataclass(frozen=True)
class AllocationPlan:
    """Result of one planning pass."""

    zones: ZoneSet
    allocation: Allocation
    views: ProjectedViews

    @property
    def entries(self) -> Sequence[AllocationEntry]:
        return self.allocation.entries

    @property
    def by_zone(self) -> Dict[str, Dict[str, ZoneSubnet]]:
        return self.views.by_zone

    @property
    def by_type(self) -> Dict[str, Dict[str, List[ZoneSubnet]]]:
        return self.views.by_type

    @property
    def attributes_by_az(self) -> Dict[str, ZoneSubnet]:
        return self.views.attributes_by_az

    def cidrs(
        self, group: str, family: AddressFamily = AddressFamily.IPV4
    ) -> List[str]:
        return self.allocation.cidrs_for(group, family)

    def to_dict(self, view: str = "flat") -> Dict[str, Any]:
        """JSON-friendly rendering of ``view``."""

        if view not in VIEWS:
            raise ValueError(f"unknown view '{view}', expected one of {VIEWS}")

        data: Dict[str, Any] = {
            "parents": {
                family.label: str(block)
                for family, block in self.allocation.parents.items()
            },
            "zones": list(self.zones.names),
        }
        if view == "flat":
            data["subnets"] = [entry.as_dict() for entry in self.entries]
        elif view == "by-zone":
            data["subnets"] = {
                group: {zone: subnet.as_dict() for zone, subnet in zones.items()}
                for group, zones in self.by_zone.items()
            }
        elif view == "by-type":
            data["subnets"] = {
                type_name: {
                    zone: [subnet.as_dict() for subnet in subnets]
                    for zone, subnets in zones.items()
                }
                for type_name, zones in self.by_type.items()
            }
        else:
            data["subnets"] = {
                key: subnet.as_dict()
                for key, subnet in self.attributes_by_az.items()
            }
        return data


def _as_block(value: BlockLike, family: AddressFamily) -> AddressBlock:
    if isinstance(value, AddressBlock):
        if value.family is not family:
            raise MalformedBlock(f"{value} is not an {family.label} block")
        return value
    return AddressBlock.parse(value, family=family)


class SubnetPlanner:
    """Plan subnet blocks for a VPC.

    Parameters
    ----------
    cidr_block:
        Required IPv4 parent block.
    zones:
        Zones receiving one subnet per applicable group.
    ipv6_cidr_block:
        Optional IPv6 parent block for dual-stack and IPv6-native groups.
    """

    def __init__(
        self,
        cidr_block: BlockLike,
        zones: ZoneSet,
        ipv6_cidr_block: Optional[BlockLike] = None,
    ) -> None:
        parents: Dict[AddressFamily, AddressBlock] = {
            AddressFamily.IPV4: _as_block(cidr_block, AddressFamily.IPV4)
        }
        if ipv6_cidr_block:
            parents[AddressFamily.IPV6] = _as_block(
                ipv6_cidr_block, AddressFamily.IPV6
            )
        self._parents = parents
        self._zones = zones

    @property
    def zones(self) -> ZoneSet:
        return self._zones

    @property
    def parents(self) -> Mapping[AddressFamily, AddressBlock]:
        return dict(self._parents)

    def plan(self, declarations: Sequence[GroupDeclaration]) -> AllocationPlan:
        """Allocate every group in ``declarations``.

        Raises an :class:`~subnet_allocator.exceptions.AllocationError`
        subclass if the declarations cannot be satisfied; no partial plan is
        ever returned.
        """

        requests = normalize_groups(declarations, len(self._zones))
        LOG.debug(
            "Normalized %d groups into %d requests",
            len(declarations),
            len(requests),
        )

        allocation = Partitioner(self._parents, self._zones).allocate(requests)
        attributes = {d.name: d.attributes for d in declarations}
        views = GroupedProjector(allocation, attributes).project()

        LOG.info(
            "Planned %d subnets for %d groups across %d zones in %s",
            len(allocation),
            len(allocation.groups()),
            len(self._zones),
            ", ".join(str(block) for block in self._parents.values()),
        )
        return AllocationPlan(zones=self._zones, allocation=allocation, views=views)

"""Secondary views over a flat allocation.

The provisioning layer consumes subnets keyed by zone, grouped by subnet type
and split by address family.  Nothing here validates: any invariant violation
has already been rejected by the partitioner.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .allocator import Allocation
from .blocks import AddressFamily
from .config import AllocationEntry, GroupKind

ZoneView = Dict[str, "ZoneSubnet"]


@dataclass(frozen=True)
class ZoneSubnet:
    """A group's subnet in one zone, with both address families."""

    group: str
    zone: str
    zone_index: int
    kind: GroupKind
    name: str
    type_name: str
    ipv4: Optional[AllocationEntry] = None
    ipv6: Optional[AllocationEntry] = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    @property
    def ipv4_cidr(self) -> Optional[str]:
        return self.ipv4.cidr if self.ipv4 else None

    @property
    def ipv6_cidr(self) -> Optional[str]:
        return self.ipv6.cidr if self.ipv6 else None

    @property
    def dual_stack(self) -> bool:
        return self.ipv4 is not None and self.ipv6 is not None

    def as_dict(self) -> dict:
        data = {
            "group": self.group,
            "zone": self.zone,
            "name": self.name,
            "type": self.type_name,
            "ipv4_cidr": self.ipv4_cidr,
            "ipv6_cidr": self.ipv6_cidr,
        }
        if self.attributes:
            data["attributes"] = dict(self.attributes)
        return data


@dataclass(frozen=True)
class ProjectedViews:
    """All views derived from one allocation."""

    by_zone: Dict[str, ZoneView]
    by_type: Dict[str, Dict[str, List[ZoneSubnet]]]
    by_family: Dict[AddressFamily, Tuple[AllocationEntry, ...]]
    attributes_by_az: Dict[str, ZoneSubnet]


class GroupedProjector:
    """Re-index an :class:`Allocation` for downstream consumers.

    ``attributes`` maps group names to their passthrough attributes so the
    zone records can carry them next to the addresses.
    """

    def __init__(
        self,
        allocation: Allocation,
        attributes: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> None:
        self._allocation = allocation
        self._attributes = attributes or {}

    def project(self) -> ProjectedViews:
        by_zone = self.by_zone()
        return ProjectedViews(
            by_zone=by_zone,
            by_type=self._group_by_type(by_zone),
            by_family=self.by_family(),
            attributes_by_az=self._flatten(by_zone),
        )

    def by_zone(self) -> Dict[str, ZoneView]:
        """group -> zone -> :class:`ZoneSubnet`, in allocation order."""

        view: Dict[str, ZoneView] = {}
        for entry in self._allocation:
            zones = view.setdefault(entry.group, {})
            current = zones.get(entry.zone)
            if current is None:
                current = ZoneSubnet(
                    group=entry.group,
                    zone=entry.zone,
                    zone_index=entry.zone_index,
                    kind=entry.kind,
                    name=entry.subnet_name,
                    type_name=entry.type_name,
                    attributes=self._attributes.get(entry.group, {}),
                )
            if entry.family is AddressFamily.IPV4:
                current = replace(current, ipv4=entry)
            else:
                current = replace(current, ipv6=entry)
            zones[entry.zone] = current

        # v6-only zones may have been inserted after v4 ones; keep zone order.
        return {
            group: dict(sorted(zones.items(), key=lambda item: item[1].zone_index))
            for group, zones in view.items()
        }

    def by_type(self) -> Dict[str, Dict[str, List[ZoneSubnet]]]:
        """type -> zone -> subnets of every group sharing that type."""

        return self._group_by_type(self.by_zone())

    def by_family(self) -> Dict[AddressFamily, Tuple[AllocationEntry, ...]]:
        view: Dict[AddressFamily, Tuple[AllocationEntry, ...]] = {}
        for family in AddressFamily:
            entries = tuple(e for e in self._allocation if e.family is family)
            if entries:
                view[family] = entries
        return view

    def attributes_by_az(self) -> Dict[str, ZoneSubnet]:
        """Flat ``"<group>/<zone>"`` keyed view."""

        return self._flatten(self.by_zone())

    def _group_by_type(
        self, by_zone: Mapping[str, ZoneView]
    ) -> Dict[str, Dict[str, List[ZoneSubnet]]]:
        view: Dict[str, Dict[str, List[ZoneSubnet]]] = {}
        for zones in by_zone.values():
            for subnet in zones.values():
                bucket = view.setdefault(subnet.type_name, {})
                bucket.setdefault(subnet.zone, []).append(subnet)
        return view

    @staticmethod
    def _flatten(by_zone: Mapping[str, ZoneView]) -> Dict[str, ZoneSubnet]:
        return {
            f"{group}/{zone}": subnet
            for group, zones in by_zone.items()
            for zone, subnet in zones.items()
        }

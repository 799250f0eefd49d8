"""Data structures shared by the allocator stages.

These light-weight dataclasses describe the zone set, the raw group
declarations, the normalized per-family requests and the allocation entries
produced by the partitioner.  They carry no behaviour beyond small derived
properties so each stage stays a pure transform over them.
"""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from .blocks import AddressBlock, AddressFamily
from .exceptions import InvalidZoneSet

DEFAULT_SEPARATOR = "/"
DEFAULT_IPV6_NETMASK = 64


class GroupKind(Enum):
    """Kinds of subnet group.

    Reserved group names select a fixed allocation slot; any other name is a
    custom (private-like) group.
    """

    CUSTOM = "custom"
    PUBLIC = "public"
    TRANSIT_GATEWAY = "transit_gateway"
    CORE_NETWORK = "core_network"

    @classmethod
    def from_group_name(cls, name: str) -> "GroupKind":
        for kind in (cls.PUBLIC, cls.TRANSIT_GATEWAY, cls.CORE_NETWORK):
            if name == kind.value:
                return kind
        return cls.CUSTOM

    @property
    def is_reserved(self) -> bool:
        return self is not GroupKind.CUSTOM


@dataclass(frozen=True)
class ZoneSet:
    """Ordered availability zones for one allocation run."""

    names: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.names:
            raise InvalidZoneSet("at least one zone is required")
        if len(set(self.names)) != len(self.names):
            raise InvalidZoneSet(f"duplicate zone names in {list(self.names)}")

    @classmethod
    def from_names(cls, names: Sequence[str]) -> "ZoneSet":
        return cls(tuple(str(name) for name in names))

    @classmethod
    def from_count(cls, count: int, region: str = "") -> "ZoneSet":
        """Synthesize ``count`` zones named ``<region>a``, ``<region>b``, ..."""

        letters = string.ascii_lowercase
        if not 1 <= count <= len(letters):
            raise InvalidZoneSet(
                f"zone count must be between 1 and {len(letters)}, got {count}"
            )
        return cls(tuple(f"{region}{letters[i]}" for i in range(count)))

    def __len__(self) -> int:
        return len(self.names)

    def name(self, index: int) -> str:
        return self.names[index]


@dataclass(frozen=True)
class GroupDeclaration:
    """User input for one named subnet group.

    Attributes
    ----------
    name:
        Group key.  ``public``, ``transit_gateway`` and ``core_network`` are
        reserved and change where the group sits in the allocation order.
    netmask / cidrs:
        IPv4 request: a prefix length to compute, or explicit blocks.  ``cidrs``
        may also carry IPv6 blocks when the group is dual-stack.
    ipv6_netmask / ipv6_cidrs:
        IPv6 request for dual-stack or IPv6-native groups.
    assign_ipv6_cidr:
        Dual-stack declaration; without ``ipv6_netmask`` or ``ipv6_cidrs`` a
        ``/64`` per zone is computed.
    ipv6_native:
        The group has no IPv4 side at all.
    az_count:
        Optional per-group zone count, at most the run's zone count.
    attributes:
        Opaque passthrough values (NAT wiring, tags, ...) carried to the
        projected views untouched.
    """

    name: str
    netmask: Optional[int] = None
    cidrs: Optional[Sequence[str]] = None
    ipv6_netmask: Optional[int] = None
    ipv6_cidrs: Optional[Sequence[str]] = None
    assign_ipv6_cidr: bool = False
    ipv6_native: bool = False
    az_count: Optional[int] = None
    name_prefix: Optional[str] = None
    separator: str = DEFAULT_SEPARATOR
    attributes: Mapping[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> GroupKind:
        return GroupKind.from_group_name(self.name)

    @property
    def dual_stack(self) -> bool:
        return self.assign_ipv6_cidr or self.ipv6_native


@dataclass(frozen=True)
class Explicit:
    """User-pinned blocks; zone ``i`` receives ``blocks[i]``."""

    blocks: Tuple[AddressBlock, ...]

    @property
    def count(self) -> int:
        return len(self.blocks)


@dataclass(frozen=True)
class Computed:
    """Blocks of ``prefix_length`` to be carved for ``count`` zones."""

    prefix_length: int
    count: int


RequestMode = Union[Explicit, Computed]


@dataclass(frozen=True)
class SubnetGroupRequest:
    """Normalized request for one group in one address family."""

    name: str
    kind: GroupKind
    family: AddressFamily
    mode: RequestMode
    name_prefix: str
    separator: str = DEFAULT_SEPARATOR
    declaration_index: int = 0

    @property
    def is_explicit(self) -> bool:
        return isinstance(self.mode, Explicit)

    @property
    def zone_count(self) -> int:
        return self.mode.count

    def subnet_name(self, zone_name: str) -> str:
        return f"{self.name_prefix}{self.separator}{zone_name}"

    @property
    def type_name(self) -> str:
        """Bucket used by the by-type view."""

        if self.kind.is_reserved:
            return self.name
        return self.name.split(self.separator, 1)[0] if self.separator else self.name


@dataclass(frozen=True)
class AllocationEntry:
    """One admitted block: a group's subnet in one zone and family."""

    group: str
    zone_index: int
    zone: str
    family: AddressFamily
    block: AddressBlock
    kind: GroupKind = GroupKind.CUSTOM
    subnet_name: str = ""
    type_name: str = ""

    @property
    def cidr(self) -> str:
        return str(self.block)

    def as_dict(self) -> dict:
        return {
            "group": self.group,
            "zone": self.zone,
            "zone_index": self.zone_index,
            "family": self.family.label,
            "cidr": self.cidr,
            "name": self.subnet_name,
        }

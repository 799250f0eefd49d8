"""Partition parent blocks into per-zone subnet blocks.

The partitioner keeps one cursor and one admitted-block set per address
family.  Explicit blocks are admitted first, verbatim, so they reserve their
space wherever it sits.  Computed requests are then carved front to back in
priority order: each takes the lowest aligned sub-block at or after the
cursor that does not collide with an admitted block, and the cursor moves to
the end of it.  Allocation is first-fit and never backtracks.

All state lives in objects created per :meth:`Partitioner.allocate` call, so
the same inputs always produce the same allocation.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .blocks import AddressBlock, AddressFamily
from .config import AllocationEntry, SubnetGroupRequest, ZoneSet
from .exceptions import (
    CapacityExceeded,
    MalformedBlock,
    MissingParentBlock,
    OutOfParentRange,
    OverlapDetected,
)
from .ordering import order_requests, priority_key

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class Allocation:
    """Flat, ordered result of one allocation run."""

    entries: Tuple[AllocationEntry, ...]
    parents: Mapping[AddressFamily, AddressBlock] = field(default_factory=dict)

    def __iter__(self) -> Iterator[AllocationEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def groups(self) -> List[str]:
        return list(dict.fromkeys(entry.group for entry in self.entries))

    def blocks_for(
        self, group: str, family: AddressFamily = AddressFamily.IPV4
    ) -> List[AddressBlock]:
        """Blocks of ``group`` in ``family``, ordered by zone index."""

        matching = [
            e for e in self.entries if e.group == group and e.family is family
        ]
        return [e.block for e in sorted(matching, key=lambda e: e.zone_index)]

    def cidrs_for(
        self, group: str, family: AddressFamily = AddressFamily.IPV4
    ) -> List[str]:
        return [str(block) for block in self.blocks_for(group, family)]


@dataclass
class Cursor:
    """Next unused offset, in addresses, from the start of ``parent``.

    Only computed allocations move the cursor.
    """

    parent: AddressBlock
    offset: int = 0

    def start_index(self, prefix_length: int) -> int:
        size = 1 << (self.parent.family.max_prefix_length - prefix_length)
        return -(-self.offset // size)

    def advance_past(self, block: AddressBlock) -> None:
        self.offset = max(self.offset, block.last - self.parent.first + 1)


class AdmittedBlocks:
    """Disjoint admitted blocks of one family, kept sorted by start address."""

    def __init__(self) -> None:
        self._starts: List[int] = []
        self._entries: List[AllocationEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AllocationEntry]:
        return iter(self._entries)

    def find_overlap(self, block: AddressBlock) -> Optional[AllocationEntry]:
        # Only the admitted block starting closest below block.last can reach it.
        index = bisect.bisect_right(self._starts, block.last)
        if index == 0:
            return None
        candidate = self._entries[index - 1]
        if candidate.block.last >= block.first:
            return candidate
        return None

    def add(self, entry: AllocationEntry) -> None:
        index = bisect.bisect_right(self._starts, entry.block.first)
        self._starts.insert(index, entry.block.first)
        self._entries.insert(index, entry)


class _FamilyRun:
    """Mutable state for one family during one allocation run."""

    def __init__(self, parent: AddressBlock, zones: ZoneSet) -> None:
        self.parent = parent
        self.zones = zones
        self.cursor = Cursor(parent)
        self.admitted = AdmittedBlocks()

    def _entry(
        self, request: SubnetGroupRequest, zone_index: int, block: AddressBlock
    ) -> AllocationEntry:
        zone = self.zones.name(zone_index)
        return AllocationEntry(
            group=request.name,
            zone_index=zone_index,
            zone=zone,
            family=request.family,
            block=block,
            kind=request.kind,
            subnet_name=request.subnet_name(zone),
            type_name=request.type_name,
        )

    def admit_explicit(self, request: SubnetGroupRequest) -> None:
        for zone_index, block in enumerate(request.mode.blocks):
            zone = self.zones.name(zone_index)
            if not self.parent.contains(block):
                raise OutOfParentRange(
                    f"{block} is not inside parent block {self.parent}",
                    group=request.name,
                    zone=zone,
                )
            clash = self.admitted.find_overlap(block)
            if clash is not None:
                raise OverlapDetected(
                    f"{block} overlaps {clash.block} of group '{clash.group}' "
                    f"in zone '{clash.zone}'",
                    group=request.name,
                    zone=zone,
                )
            self.admitted.add(self._entry(request, zone_index, block))
            LOG.debug("Admitted explicit %s for %s/%s", block, request.name, zone)

    def admit_computed(self, request: SubnetGroupRequest) -> None:
        prefix_length = request.mode.prefix_length
        try:
            capacity = self.parent.subblock_count(prefix_length)
        except CapacityExceeded as exc:
            raise CapacityExceeded(exc.reason, group=request.name) from exc
        size = 1 << (self.parent.family.max_prefix_length - prefix_length)

        for zone_index in range(request.mode.count):
            zone = self.zones.name(zone_index)
            index = self.cursor.start_index(prefix_length)
            while index < capacity:
                candidate = self.parent.derive(prefix_length, index)
                clash = self.admitted.find_overlap(candidate)
                if clash is None:
                    break
                # Jump to the first aligned index past the colliding block.
                index = -(-(clash.block.last - self.parent.first + 1) // size)
            else:
                raise CapacityExceeded(
                    f"no free /{prefix_length} left in {self.parent}",
                    group=request.name,
                    zone=zone,
                )
            self.admitted.add(self._entry(request, zone_index, candidate))
            self.cursor.advance_past(candidate)
            LOG.debug(
                "Computed %s for %s/%s (cursor now +%d)",
                candidate,
                request.name,
                zone,
                self.cursor.offset,
            )


class Partitioner:
    """Allocate blocks for ordered requests inside per-family parent blocks.

    Parameters
    ----------
    parents:
        Parent block per address family.  IPv4 is normally always present;
        IPv6 only for dual-stack plans.
    zones:
        Zone set the requests were normalized against.
    """

    def __init__(
        self,
        parents: Mapping[AddressFamily, AddressBlock],
        zones: ZoneSet,
    ) -> None:
        for family, parent in parents.items():
            if parent.family is not family:
                raise MalformedBlock(
                    f"parent block {parent} registered as {family.label}"
                )
        self._parents: Dict[AddressFamily, AddressBlock] = dict(parents)
        self._zones = zones

    @property
    def parents(self) -> Mapping[AddressFamily, AddressBlock]:
        return dict(self._parents)

    def _parent_for(self, request: SubnetGroupRequest) -> AddressBlock:
        parent = self._parents.get(request.family)
        if parent is None:
            raise MissingParentBlock(
                f"no {request.family.label} parent block for this plan",
                group=request.name,
            )
        return parent

    def allocate(self, requests: Sequence[SubnetGroupRequest]) -> Allocation:
        ordered = order_requests(requests)
        entries: List[AllocationEntry] = []

        for family in AddressFamily:
            family_requests = [r for r in ordered if r.family is family]
            if not family_requests:
                continue
            run = _FamilyRun(self._parent_for(family_requests[0]), self._zones)

            for request in family_requests:
                if request.is_explicit:
                    run.admit_explicit(request)
            for request in family_requests:
                if not request.is_explicit:
                    run.admit_computed(request)

            rank = {r.name: priority_key(r) for r in family_requests}
            entries.extend(
                sorted(run.admitted, key=lambda e: (rank[e.group], e.zone_index))
            )
            LOG.debug(
                "Allocated %d %s blocks in %s (cursor +%d)",
                len(run.admitted),
                family.label,
                run.parent,
                run.cursor.offset,
            )

        return Allocation(entries=tuple(entries), parents=dict(self._parents))


def partition(
    parents: Mapping[AddressFamily, AddressBlock],
    requests: Sequence[SubnetGroupRequest],
    zones: ZoneSet,
) -> Allocation:
    """Convenience wrapper around :class:`Partitioner`."""

    return Partitioner(parents, zones).allocate(requests)

"""Turn raw group declarations into per-family allocation requests."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from .blocks import AddressBlock, AddressFamily, validate_prefix_length
from .config import (
    DEFAULT_IPV6_NETMASK,
    Computed,
    Explicit,
    GroupDeclaration,
    RequestMode,
    SubnetGroupRequest,
)
from .exceptions import FamilyMismatch, InvalidGroupDeclaration, MalformedBlock


def _parse_blocks(values: Iterable[str], group: str) -> List[AddressBlock]:
    blocks: List[AddressBlock] = []
    for value in values:
        try:
            blocks.append(AddressBlock.parse(value))
        except MalformedBlock as exc:
            raise MalformedBlock(exc.reason, group=group) from exc
    return blocks


def _split_families(
    blocks: Sequence[AddressBlock],
) -> Tuple[List[AddressBlock], List[AddressBlock]]:
    v4 = [b for b in blocks if b.family is AddressFamily.IPV4]
    v6 = [b for b in blocks if b.family is AddressFamily.IPV6]
    return v4, v6


def _computed_count(declaration: GroupDeclaration, zone_count: int) -> int:
    if declaration.az_count is None:
        return zone_count
    if not 1 <= declaration.az_count <= zone_count:
        raise InvalidGroupDeclaration(
            f"az_count {declaration.az_count} must be between 1 and {zone_count}",
            group=declaration.name,
        )
    return declaration.az_count


def _explicit(
    blocks: Sequence[AddressBlock], zone_count: int, group: str
) -> Explicit:
    if not blocks:
        raise InvalidGroupDeclaration("explicit block list is empty", group=group)
    if len(blocks) > zone_count:
        raise InvalidGroupDeclaration(
            f"{len(blocks)} explicit blocks given for {zone_count} zones",
            group=group,
        )
    return Explicit(tuple(blocks))


def _ipv4_mode(
    declaration: GroupDeclaration,
    v4_blocks: Optional[List[AddressBlock]],
    zone_count: int,
) -> Optional[RequestMode]:
    name = declaration.name
    if declaration.ipv6_native:
        if declaration.netmask is not None or v4_blocks:
            raise FamilyMismatch(
                "ipv6_native group cannot request IPv4 space", group=name
            )
        return None

    has_v4_blocks = bool(v4_blocks)
    if declaration.netmask is not None and has_v4_blocks:
        raise InvalidGroupDeclaration(
            "set either 'netmask' or IPv4 'cidrs', not both", group=name
        )
    if has_v4_blocks:
        return _explicit(v4_blocks, zone_count, name)
    if declaration.netmask is not None:
        validate_prefix_length(AddressFamily.IPV4, declaration.netmask, group=name)
        return Computed(declaration.netmask, _computed_count(declaration, zone_count))
    if declaration.cidrs is not None and not declaration.cidrs:
        raise InvalidGroupDeclaration("explicit block list is empty", group=name)
    raise InvalidGroupDeclaration(
        "an IPv4 'netmask' or 'cidrs' is required", group=name
    )


def _ipv6_mode(
    declaration: GroupDeclaration,
    v6_blocks: Optional[List[AddressBlock]],
    zone_count: int,
) -> Optional[RequestMode]:
    name = declaration.name
    if not declaration.dual_stack:
        if declaration.ipv6_cidrs is not None or declaration.ipv6_netmask is not None:
            raise InvalidGroupDeclaration(
                "IPv6 settings need 'assign_ipv6_cidr' or 'ipv6_native'",
                group=name,
            )
        return None

    if declaration.ipv6_cidrs is not None:
        if v6_blocks:
            raise InvalidGroupDeclaration(
                "IPv6 blocks given in both 'cidrs' and 'ipv6_cidrs'", group=name
            )
        parsed = _parse_blocks(declaration.ipv6_cidrs, name)
        if any(b.family is not AddressFamily.IPV6 for b in parsed):
            raise FamilyMismatch("'ipv6_cidrs' contains IPv4 blocks", group=name)
        v6_blocks = parsed

    if v6_blocks:
        if declaration.ipv6_netmask is not None:
            raise InvalidGroupDeclaration(
                "set either 'ipv6_netmask' or IPv6 blocks, not both", group=name
            )
        return _explicit(v6_blocks, zone_count, name)
    if declaration.ipv6_cidrs is not None:
        raise InvalidGroupDeclaration("'ipv6_cidrs' is empty", group=name)

    netmask = declaration.ipv6_netmask
    if netmask is None:
        netmask = DEFAULT_IPV6_NETMASK
    validate_prefix_length(AddressFamily.IPV6, netmask, group=name)
    return Computed(netmask, _computed_count(declaration, zone_count))


def normalize_group(
    declaration: GroupDeclaration,
    zone_count: int,
    declaration_index: int = 0,
) -> List[SubnetGroupRequest]:
    """Return one request per address family ``declaration`` uses.

    Explicit lists keep their order: zone ``i`` receives block ``i``.  A
    computed request covers ``zone_count`` zones unless the group's own
    ``az_count`` is smaller.
    """

    name = declaration.name
    v4_blocks: Optional[List[AddressBlock]] = None
    v6_blocks: Optional[List[AddressBlock]] = None
    if declaration.cidrs is not None:
        v4_blocks, v6_blocks = _split_families(_parse_blocks(declaration.cidrs, name))
        if v6_blocks and not declaration.dual_stack:
            raise FamilyMismatch(
                "'cidrs' contains IPv6 blocks but the group is not dual-stack",
                group=name,
            )

    modes = (
        (AddressFamily.IPV4, _ipv4_mode(declaration, v4_blocks, zone_count)),
        (AddressFamily.IPV6, _ipv6_mode(declaration, v6_blocks, zone_count)),
    )
    return [
        SubnetGroupRequest(
            name=name,
            kind=declaration.kind,
            family=family,
            mode=mode,
            name_prefix=declaration.name_prefix or name,
            separator=declaration.separator,
            declaration_index=declaration_index,
        )
        for family, mode in modes
        if mode is not None
    ]


def normalize_groups(
    declarations: Iterable[GroupDeclaration], zone_count: int
) -> List[SubnetGroupRequest]:
    """Normalize every declaration, preserving declaration order."""

    requests: List[SubnetGroupRequest] = []
    seen = set()
    for index, declaration in enumerate(declarations):
        if declaration.name in seen:
            raise InvalidGroupDeclaration(
                "group declared more than once", group=declaration.name
            )
        seen.add(declaration.name)
        requests.extend(normalize_group(declaration, zone_count, index))
    return requests

"""Address block value type.

An :class:`AddressBlock` is an immutable network prefix stored as integers so
range arithmetic (overlap, containment, sub-block derivation) stays exact for
both IPv4 and IPv6.  Parsing and formatting go through :mod:`ipaddress` in
strict mode so a block's text round-trips without loss.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .exceptions import CapacityExceeded, InvalidPrefixLength, MalformedBlock


class AddressFamily(Enum):
    """IP address families understood by the allocator."""

    IPV4 = 4
    IPV6 = 6

    @property
    def max_prefix_length(self) -> int:
        return 32 if self is AddressFamily.IPV4 else 128

    @property
    def label(self) -> str:
        return "ipv4" if self is AddressFamily.IPV4 else "ipv6"


def validate_prefix_length(
    family: AddressFamily,
    prefix_length: int,
    *,
    group: Optional[str] = None,
) -> int:
    """Return ``prefix_length`` if it is legal for ``family``."""

    if isinstance(prefix_length, bool) or not isinstance(prefix_length, int):
        raise InvalidPrefixLength(
            f"prefix length {prefix_length!r} is not an integer", group=group
        )
    if not 0 <= prefix_length <= family.max_prefix_length:
        raise InvalidPrefixLength(
            f"/{prefix_length} is outside 0..{family.max_prefix_length} "
            f"for {family.label}",
            group=group,
        )
    return prefix_length


@dataclass(frozen=True)
class AddressBlock:
    """A network prefix: family, network address (as int) and prefix length."""

    family: AddressFamily
    base: int
    prefix_length: int

    def __post_init__(self) -> None:
        validate_prefix_length(self.family, self.prefix_length)
        if not 0 <= self.base < (1 << self.family.max_prefix_length):
            raise MalformedBlock(
                f"base address {self.base} is outside {self.family.label} space"
            )
        if self.base & (self.num_addresses - 1):
            raise MalformedBlock(
                f"base address has host bits set for /{self.prefix_length}"
            )

    # ------------------------------------------------------------------
    # Text form
    # ------------------------------------------------------------------
    @classmethod
    def parse(
        cls, text: str, family: Optional[AddressFamily] = None
    ) -> "AddressBlock":
        """Parse canonical CIDR ``text``.

        Host bits must be zero.  When ``family`` is given the prefix must
        belong to it.
        """

        if not isinstance(text, str) or "/" not in text:
            raise MalformedBlock(f"'{text}' is not in CIDR notation")
        try:
            network = ipaddress.ip_network(text.strip(), strict=True)
        except ValueError as exc:
            raise MalformedBlock(f"'{text}' is not a valid prefix: {exc}") from exc

        parsed_family = (
            AddressFamily.IPV4 if network.version == 4 else AddressFamily.IPV6
        )
        if family is not None and parsed_family is not family:
            raise MalformedBlock(f"'{text}' is not an {family.label} prefix")
        return cls(
            family=parsed_family,
            base=int(network.network_address),
            prefix_length=network.prefixlen,
        )

    def to_network(self) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
        if self.family is AddressFamily.IPV4:
            return ipaddress.IPv4Network((self.base, self.prefix_length))
        return ipaddress.IPv6Network((self.base, self.prefix_length))

    def __str__(self) -> str:
        return str(self.to_network())

    # ------------------------------------------------------------------
    # Range helpers
    # ------------------------------------------------------------------
    @property
    def num_addresses(self) -> int:
        return 1 << (self.family.max_prefix_length - self.prefix_length)

    @property
    def first(self) -> int:
        return self.base

    @property
    def last(self) -> int:
        return self.base + self.num_addresses - 1

    def overlaps(self, other: "AddressBlock") -> bool:
        if self.family is not other.family:
            return False
        return self.first <= other.last and other.first <= self.last

    def contains(self, other: "AddressBlock") -> bool:
        if self.family is not other.family:
            return False
        return self.first <= other.first and other.last <= self.last

    def offset_in(self, parent: "AddressBlock") -> int:
        """Distance in addresses from the start of ``parent``."""

        return self.first - parent.first

    # ------------------------------------------------------------------
    # Sub-block derivation
    # ------------------------------------------------------------------
    def subblock_count(self, prefix_length: int) -> int:
        """Number of ``/prefix_length`` blocks that fit in this block."""

        validate_prefix_length(self.family, prefix_length)
        if prefix_length <= self.prefix_length:
            raise CapacityExceeded(
                f"/{prefix_length} is not more specific than parent {self}"
            )
        return 1 << (prefix_length - self.prefix_length)

    def derive(self, prefix_length: int, index: int) -> "AddressBlock":
        """Return the ``index``-th ``/prefix_length`` sub-block.

        Sub-block 0 occupies the lowest addresses of this block.
        """

        count = self.subblock_count(prefix_length)
        if not 0 <= index < count:
            raise CapacityExceeded(
                f"sub-block index {index} out of range for /{prefix_length} "
                f"in {self} (0..{count - 1})"
            )
        size = 1 << (self.family.max_prefix_length - prefix_length)
        return AddressBlock(
            family=self.family,
            base=self.base + index * size,
            prefix_length=prefix_length,
        )


def derive(parent: AddressBlock, prefix_length: int, index: int) -> AddressBlock:
    """Module-level form of :meth:`AddressBlock.derive`."""

    return parent.derive(prefix_length, index)


def overlaps(a: AddressBlock, b: AddressBlock) -> bool:
    return a.overlaps(b)


def contains(a: AddressBlock, b: AddressBlock) -> bool:
    """True when ``b`` lies entirely inside ``a``."""

    return a.contains(b)

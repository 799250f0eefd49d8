import pytest

from subnet_allocator.blocks import AddressBlock, AddressFamily, derive
from subnet_allocator.exceptions import (
    CapacityExceeded,
    InvalidPrefixLength,
    MalformedBlock,
)


def test_parse_and_format_round_trip():
    for text in ("10.0.0.0/16", "192.168.10.128/25", "2600:1f14:abcd:1200::/56"):
        assert str(AddressBlock.parse(text)) == text


def test_parse_detects_family():
    assert AddressBlock.parse("10.0.0.0/16").family is AddressFamily.IPV4
    assert AddressBlock.parse("2600:1f14::/56").family is AddressFamily.IPV6


def test_parse_rejects_host_bits():
    with pytest.raises(MalformedBlock):
        AddressBlock.parse("10.0.77.19/16")


@pytest.mark.parametrize("text", ["10.0.0.300/24", "not-a-cidr", "10.0.0.0", ""])
def test_parse_rejects_garbage(text):
    with pytest.raises(MalformedBlock):
        AddressBlock.parse(text)


def test_parse_enforces_requested_family():
    with pytest.raises(MalformedBlock, match="ipv6"):
        AddressBlock.parse("10.0.0.0/16", family=AddressFamily.IPV6)


def test_derive_enumerates_from_lowest_address():
    parent = AddressBlock.parse("10.0.0.0/16")

    assert str(parent.derive(24, 0)) == "10.0.0.0/24"
    assert str(parent.derive(24, 1)) == "10.0.1.0/24"
    assert str(parent.derive(24, 255)) == "10.0.255.0/24"
    assert str(derive(parent, 20, 3)) == "10.0.48.0/20"


def test_derive_ipv6():
    parent = AddressBlock.parse("2600:1f14:abcd:1200::/56")

    assert str(parent.derive(64, 2)) == "2600:1f14:abcd:1202::/64"


def test_derive_index_out_of_range():
    parent = AddressBlock.parse("10.0.0.0/16")

    with pytest.raises(CapacityExceeded):
        parent.derive(24, 256)
    with pytest.raises(CapacityExceeded):
        parent.derive(24, -1)


@pytest.mark.parametrize("prefix_length", [15, 16])
def test_derive_requires_more_specific_prefix(prefix_length):
    parent = AddressBlock.parse("10.0.0.0/16")

    with pytest.raises(CapacityExceeded):
        parent.derive(prefix_length, 0)


def test_derive_rejects_prefix_outside_family_range():
    parent = AddressBlock.parse("10.0.0.0/16")

    with pytest.raises(InvalidPrefixLength):
        parent.derive(33, 0)


def test_overlap_and_containment():
    parent = AddressBlock.parse("10.0.0.0/16")
    wide = AddressBlock.parse("10.0.0.0/23")
    a = AddressBlock.parse("10.0.0.0/24")
    b = AddressBlock.parse("10.0.1.0/24")
    outside = AddressBlock.parse("10.1.0.0/24")

    assert parent.contains(a)
    assert not parent.contains(outside)
    assert not a.contains(parent)
    assert wide.overlaps(b)
    assert b.overlaps(wide)
    assert not a.overlaps(b)
    assert a.overlaps(a)


def test_families_never_overlap():
    v4 = AddressBlock.parse("0.0.0.0/0")
    v6 = AddressBlock.parse("::/0")

    assert not v4.overlaps(v6)
    assert not v6.contains(v4)


def test_block_ranges():
    block = AddressBlock.parse("10.0.1.0/24")
    parent = AddressBlock.parse("10.0.0.0/16")

    assert block.num_addresses == 256
    assert block.last - block.first == 255
    assert block.offset_in(parent) == 256

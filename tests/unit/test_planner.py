import logging

import pytest

from subnet_allocator import GroupDeclaration, SubnetPlanner, ZoneSet
from subnet_allocator.blocks import AddressBlock, AddressFamily
from subnet_allocator.exceptions import CapacityExceeded, MalformedBlock


def build_planner(zones=3, **kwargs) -> SubnetPlanner:
    return SubnetPlanner("10.0.0.0/16", ZoneSet.from_count(zones, "us-east-1"), **kwargs)


def two_tier():
    return [
        GroupDeclaration("private", netmask=24, attributes={"connect_to_public_natgw": True}),
        GroupDeclaration("public", netmask=24, attributes={"nat_gateway_configuration": "all_azs"}),
    ]


def test_planner_produces_two_tier_plan():
    plan = build_planner().plan(two_tier())

    assert plan.cidrs("private") == ["10.0.0.0/24", "10.0.1.0/24", "10.0.2.0/24"]
    assert plan.cidrs("public") == ["10.0.3.0/24", "10.0.4.0/24", "10.0.5.0/24"]
    assert plan.by_zone["public"]["us-east-1c"].ipv4_cidr == "10.0.5.0/24"
    assert plan.attributes_by_az["private/us-east-1a"].attributes == {
        "connect_to_public_natgw": True
    }


def test_planner_is_repeatable():
    planner = build_planner()

    assert planner.plan(two_tier()) == planner.plan(two_tier())


def test_planner_recomputes_when_zone_count_shrinks():
    plan = build_planner(zones=2).plan(two_tier())

    assert plan.cidrs("private") == ["10.0.0.0/24", "10.0.1.0/24"]
    assert plan.cidrs("public") == ["10.0.2.0/24", "10.0.3.0/24"]


def test_planner_dual_stack():
    planner = build_planner(ipv6_cidr_block="2600:1f14:abcd:1200::/56")

    plan = planner.plan(
        [GroupDeclaration("private", netmask=24, assign_ipv6_cidr=True)]
    )

    assert plan.cidrs("private", AddressFamily.IPV6)[0] == "2600:1f14:abcd:1200::/64"
    assert set(planner.parents) == {AddressFamily.IPV4, AddressFamily.IPV6}


def test_planner_rejects_parent_with_host_bits():
    with pytest.raises(MalformedBlock):
        SubnetPlanner("10.0.77.19/16", ZoneSet.from_count(2))


def test_planner_rejects_parent_of_wrong_family():
    with pytest.raises(MalformedBlock):
        SubnetPlanner(
            AddressBlock.parse("2600:1f14::/56"), ZoneSet.from_count(2)
        )
    with pytest.raises(MalformedBlock):
        SubnetPlanner(
            "10.0.0.0/16", ZoneSet.from_count(2), ipv6_cidr_block="10.1.0.0/16"
        )


def test_planner_error_aborts_whole_run():
    planner = SubnetPlanner("10.0.0.0/24", ZoneSet.from_count(3))

    with pytest.raises(CapacityExceeded):
        planner.plan([GroupDeclaration("private", netmask=22)])


def test_to_dict_flat_view():
    data = build_planner(zones=2).plan(two_tier()).to_dict()

    assert data["parents"] == {"ipv4": "10.0.0.0/16"}
    assert data["zones"] == ["us-east-1a", "us-east-1b"]
    assert data["subnets"][0] == {
        "group": "private",
        "zone": "us-east-1a",
        "zone_index": 0,
        "family": "ipv4",
        "cidr": "10.0.0.0/24",
        "name": "private/us-east-1a",
    }


def test_to_dict_grouped_views():
    plan = build_planner(zones=2).plan(two_tier())

    by_zone = plan.to_dict("by-zone")["subnets"]
    assert by_zone["public"]["us-east-1b"]["ipv4_cidr"] == "10.0.3.0/24"

    by_type = plan.to_dict("by-type")["subnets"]
    assert by_type["private"]["us-east-1a"][0]["ipv4_cidr"] == "10.0.0.0/24"

    by_az = plan.to_dict("attributes-by-az")["subnets"]
    assert by_az["public/us-east-1a"]["attributes"] == {
        "nat_gateway_configuration": "all_azs"
    }


def test_to_dict_unknown_view():
    plan = build_planner().plan(two_tier())

    with pytest.raises(ValueError):
        plan.to_dict("by-colour")


def test_planner_logs_summary(caplog):
    caplog.set_level(logging.INFO, logger="subnet_allocator")

    build_planner().plan(two_tier())

    assert "Planned 6 subnets for 2 groups across 3 zones" in caplog.text

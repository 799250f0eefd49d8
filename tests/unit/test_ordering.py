from subnet_allocator.config import GroupDeclaration
from subnet_allocator.normalizer import normalize_groups
from subnet_allocator.ordering import order_requests


def build_requests(*names):
    return normalize_groups([GroupDeclaration(n, netmask=28) for n in names], 3)


def test_custom_groups_come_before_reserved_groups():
    requests = build_requests(
        "core_network", "public", "app", "transit_gateway", "db"
    )

    ordered = [r.name for r in order_requests(requests)]

    assert ordered == ["app", "db", "public", "transit_gateway", "core_network"]


def test_custom_groups_keep_declaration_order():
    requests = build_requests("zeta", "alpha", "mid")

    ordered = [r.name for r in order_requests(requests)]

    assert ordered == ["zeta", "alpha", "mid"]


def test_ordering_is_stable_across_families():
    requests = normalize_groups(
        [
            GroupDeclaration("public", netmask=24, assign_ipv6_cidr=True),
            GroupDeclaration("app", netmask=24, assign_ipv6_cidr=True),
        ],
        2,
    )

    ordered = [(r.name, r.family.label) for r in order_requests(requests)]

    assert ordered == [
        ("app", "ipv4"),
        ("app", "ipv6"),
        ("public", "ipv4"),
        ("public", "ipv6"),
    ]

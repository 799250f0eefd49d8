"""YAML configuration loader for the subnet planner."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from subnet_allocator.config import DEFAULT_SEPARATOR, GroupDeclaration, ZoneSet
from subnet_allocator.planner import SubnetPlanner


class ConfigError(ValueError):
    """Raised when the planner configuration document is malformed."""


# Keys the allocator understands; anything else on a group is passed through.
GROUP_KEYS = (
    "netmask",
    "cidrs",
    "ipv6_netmask",
    "ipv6_cidrs",
    "assign_ipv6_cidr",
    "ipv6_native",
    "az_count",
    "name_prefix",
    "separator",
)


@dataclass
class VpcConfig:
    cidr_block: str
    zones: ZoneSet
    ipv6_cidr_block: Optional[str] = None

    def build_planner(self) -> SubnetPlanner:
        return SubnetPlanner(
            self.cidr_block,
            self.zones,
            ipv6_cidr_block=self.ipv6_cidr_block,
        )


@dataclass
class PlannerConfig:
    vpc: VpcConfig
    subnets: Sequence[GroupDeclaration] = field(default_factory=list)


def _int(value: Any, what: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    raise ConfigError(f"{what} must be an integer, got {value!r}")


def _bool(value: Any, what: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigError(f"{what} must be true or false, got {value!r}")
    return value


def _optional_int(value: Any, what: str) -> Optional[int]:
    if value is None:
        return None
    return _int(value, what)


def _str_list(value: Any, what: str) -> Optional[List[str]]:
    if value is None:
        return None
    if not isinstance(value, list):
        raise ConfigError(f"{what} must be a list")
    return [str(item) for item in value]


def _parse_zones(section: Mapping[str, Any]) -> ZoneSet:
    azs = _str_list(section.get("azs"), "vpc.azs")
    az_count = _optional_int(section.get("az_count"), "vpc.az_count")

    if azs is not None:
        if az_count is not None and az_count != len(azs):
            raise ConfigError(
                f"vpc.az_count ({az_count}) does not match vpc.azs ({len(azs)} zones)"
            )
        return ZoneSet.from_names(azs)
    if az_count is None:
        raise ConfigError("vpc section needs either 'azs' or 'az_count'")
    return ZoneSet.from_count(az_count, region=str(section.get("region", "")))


def _parse_vpc(section: Any) -> VpcConfig:
    if not isinstance(section, dict):
        raise ConfigError("'vpc' section must be a mapping")
    if "cidr_block" not in section:
        raise ConfigError("vpc section missing 'cidr_block'")

    ipv6_cidr_block = section.get("ipv6_cidr_block")
    return VpcConfig(
        cidr_block=str(section["cidr_block"]),
        zones=_parse_zones(section),
        ipv6_cidr_block=str(ipv6_cidr_block) if ipv6_cidr_block else None,
    )


def _parse_group(name: str, entry: Any, separator: str) -> GroupDeclaration:
    if not isinstance(entry, dict):
        raise ConfigError(f"subnet group '{name}' must be a mapping")

    attributes: Dict[str, Any] = {
        key: value for key, value in entry.items() if key not in GROUP_KEYS
    }
    name_prefix = entry.get("name_prefix")
    return GroupDeclaration(
        name=name,
        netmask=_optional_int(entry.get("netmask"), f"{name}.netmask"),
        cidrs=_str_list(entry.get("cidrs"), f"{name}.cidrs"),
        ipv6_netmask=_optional_int(entry.get("ipv6_netmask"), f"{name}.ipv6_netmask"),
        ipv6_cidrs=_str_list(entry.get("ipv6_cidrs"), f"{name}.ipv6_cidrs"),
        assign_ipv6_cidr=_bool(entry.get("assign_ipv6_cidr"), f"{name}.assign_ipv6_cidr"),
        ipv6_native=_bool(entry.get("ipv6_native"), f"{name}.ipv6_native"),
        az_count=_optional_int(entry.get("az_count"), f"{name}.az_count"),
        name_prefix=str(name_prefix) if name_prefix is not None else None,
        separator=str(entry.get("separator", separator)),
        attributes=attributes,
    )


def _parse_subnets(section: Any, separator: str) -> List[GroupDeclaration]:
    if not isinstance(section, dict):
        raise ConfigError("'subnets' section must be a mapping of group names")
    if not section:
        raise ConfigError("'subnets' section declares no groups")
    return [
        _parse_group(str(name), entry, separator) for name, entry in section.items()
    ]


def parse_config(data: Any) -> PlannerConfig:
    """Build a :class:`PlannerConfig` from an already-decoded document."""

    if not isinstance(data, dict):
        raise ConfigError("Planner configuration must be a mapping")

    vpc_section = data.get("vpc")
    if vpc_section is None:
        raise ConfigError("Configuration missing 'vpc' section")
    vpc = _parse_vpc(vpc_section)

    subnets_section = data.get("subnets")
    if subnets_section is None:
        raise ConfigError("Configuration missing 'subnets' section")
    separator = str(data.get("separator", DEFAULT_SEPARATOR))
    subnets = _parse_subnets(subnets_section, separator)

    return PlannerConfig(vpc=vpc, subnets=subnets)


def load_config(path: Path) -> PlannerConfig:
    try:
        data = yaml.safe_load(Path(path).read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(f"failed to parse {path}: {exc}") from exc
    return parse_config(data)

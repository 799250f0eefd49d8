"""Subnet planner runtime helpers."""

from .config import PlannerConfig, load_config  # noqa: F401

__all__ = [
    "PlannerConfig",
    "load_config",
]

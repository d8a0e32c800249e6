"""Reference registries for PrePilot."""

from .schema import (
    BenchmarkEntry,
    BenchmarkMetric,
    BudgetTier,
    CompatibilityTier,
    ConfidenceTier,
    DeviceModifier,
    GoalProfile,
    IndustryProfile,
    PlatformCompatibility,
    PlatformProfile,
    SanityRangeEntry,
    SeasonProfile,
)
from .registry import Registries
from .data import build_default_registries, default_tables
from .loader import RegistryLoader

__all__ = [
    "BenchmarkEntry",
    "BenchmarkMetric",
    "BudgetTier",
    "CompatibilityTier",
    "ConfidenceTier",
    "DeviceModifier",
    "GoalProfile",
    "IndustryProfile",
    "PlatformCompatibility",
    "PlatformProfile",
    "SanityRangeEntry",
    "SeasonProfile",
    "Registries",
    "build_default_registries",
    "default_tables",
    "RegistryLoader",
]

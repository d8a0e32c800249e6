"""Configuration management for PrePilot."""

from .schema import (
    EngineConfig,
    SanityConfig,
    ConfidenceConfig,
    SanityPolicy,
    GoalRankDecay,
    CampaignInput,
)
from .loader import ConfigLoader, merge_settings, parse_overrides

__all__ = [
    "EngineConfig",
    "SanityConfig",
    "ConfidenceConfig",
    "SanityPolicy",
    "GoalRankDecay",
    "CampaignInput",
    "ConfigLoader",
    "merge_settings",
    "parse_overrides",
]

"""
The ``Registries`` container and its lookup helpers.
"""

from typing import Iterable, Optional
from pydantic import Field, model_validator
import logging

from ..config.schema import CampaignInput
from .schema import (
    DEFAULT_KEY,
    FrozenModel,
    BenchmarkEntry,
    BudgetTier,
    DemographicProfile,
    DeviceModifier,
    GoalProfile,
    IndustryProfile,
    PlatformCompatibility,
    PlatformProfile,
    RateModifier,
    SanityRangeEntry,
    SeasonProfile,
)

logger = logging.getLogger(__name__)

ALL_DEVICES = "all"

# Tables of RateModifier keyed by name, resolvable through their aliases
MODIFIER_TABLES = ("creative_types", "competition_levels", "locations", "interests", "behaviors")


def _match_key(value: str, names: dict[str, Iterable[str]]) -> Optional[str]:
    """Find the key whose own name or any alias matches ``value``.

    Exact key match wins, then a case-insensitive match on the key, then a
    case-insensitive match on any alternative name.
    """
    if value in names:
        return value
    folded = value.strip().casefold()
    for key in names:
        if key.casefold() == folded:
            return key
    for key, alternatives in names.items():
        if any(alt.casefold() == folded for alt in alternatives):
            return key
    return None


class Registries(FrozenModel):
    """All reference tables the engine reads, frozen after construction."""
    industries: dict[str, IndustryProfile]
    platforms: dict[str, PlatformProfile]
    default_benchmark: BenchmarkEntry
    goals: dict[str, GoalProfile]
    seasons: dict[str, SeasonProfile] = Field(default_factory=dict)
    budget_tiers: tuple[BudgetTier, ...]
    devices: dict[str, DeviceModifier]
    compatibility: dict[str, PlatformCompatibility]
    industry_goal_adjustments: dict[str, dict[str, float]] = Field(default_factory=dict)
    sanity_ranges: tuple[SanityRangeEntry, ...] = Field(default_factory=tuple)
    creative_types: dict[str, RateModifier] = Field(default_factory=dict)
    competition_levels: dict[str, RateModifier] = Field(default_factory=dict)
    demographics: dict[str, DemographicProfile] = Field(default_factory=dict)
    locations: dict[str, RateModifier] = Field(default_factory=dict)
    interests: dict[str, RateModifier] = Field(default_factory=dict)
    behaviors: dict[str, RateModifier] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_required_entries(self) -> "Registries":
        default = self.industries.get(DEFAULT_KEY)
        if default is None or default.default_split is None:
            raise ValueError("industries must contain a 'default' entry with a split")
        if DEFAULT_KEY not in self.compatibility:
            raise ValueError("compatibility must contain a 'default' entry")
        if ALL_DEVICES not in self.devices:
            raise ValueError("devices must contain an 'all' entry")
        if not self.budget_tiers:
            raise ValueError("at least one budget tier is required")

        for key, industry in self.industries.items():
            unknown = set(industry.default_split or {}) - set(self.platforms)
            if unknown:
                raise ValueError(f"Industry '{key}' splits onto unknown platforms: {sorted(unknown)}")

        unknown = set(self.demographics) - set(self.platforms)
        if unknown:
            raise ValueError(f"Demographics given for unknown platforms: {sorted(unknown)}")
        return self

    # -------------------------------------------------------------------------
    # Key resolution
    # -------------------------------------------------------------------------

    def resolve_industry(self, name: str) -> Optional[str]:
        return _match_key(name, {k: v.aliases for k, v in self.industries.items()})

    def resolve_platform(self, name: str) -> Optional[str]:
        """Map a platform key, display name or alias to its canonical key."""
        return _match_key(
            name, {k: (v.display_name, *v.aliases) for k, v in self.platforms.items()}
        )

    def resolve_goal(self, name: str) -> Optional[str]:
        """Map a goal key or alias (e.g. "Conversions") to its canonical key."""
        return _match_key(name, {k: v.aliases for k, v in self.goals.items()})

    def resolve_season(self, name: str) -> Optional[str]:
        return _match_key(name, {k: v.aliases for k, v in self.seasons.items()})

    def resolve_modifier(self, table: str, name: str) -> Optional[str]:
        """Map a name to its key in one of the ``MODIFIER_TABLES``."""
        entries = getattr(self, table)
        return _match_key(name, {k: v.aliases for k, v in entries.items()})

    @property
    def age_groups(self) -> set[str]:
        """Age groups known to at least one platform."""
        return {age for profile in self.demographics.values() for age in profile.age_groups}

    @property
    def genders(self) -> set[str]:
        return {gender for profile in self.demographics.values() for gender in profile.genders}

    def canonicalize(self, campaign: CampaignInput) -> CampaignInput:
        """
        Return a copy of ``campaign`` with every resolvable key made canonical.

        Keys that cannot be resolved are left as given so the validator can
        report them.
        """
        goals = tuple(dict.fromkeys(self.resolve_goal(g) or g for g in campaign.goals))

        platforms = campaign.selected_platforms
        if platforms is not None:
            platforms = tuple(dict.fromkeys(self.resolve_platform(p) or p for p in platforms))

        season = campaign.season
        if season is not None:
            season = self.resolve_season(season) or season

        def one(table, name):
            return None if name is None else self.resolve_modifier(table, name) or name

        def many(table, names):
            return tuple(dict.fromkeys(self.resolve_modifier(table, n) or n for n in names))

        gender = campaign.gender
        if gender is not None:
            gender = _match_key(gender, dict.fromkeys(self.genders, ())) or gender

        return campaign.with_keys(
            industry=self.resolve_industry(campaign.industry) or campaign.industry,
            goals=goals,
            selected_platforms=platforms,
            season=season,
            creative_type=one("creative_types", campaign.creative_type),
            competition_level=one("competition_levels", campaign.competition_level),
            locations=many("locations", campaign.locations),
            interests=many("interests", campaign.interests),
            behaviors=many("behaviors", campaign.behaviors),
            gender=gender,
        )

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def display_name(self, platform: str) -> str:
        profile = self.platforms.get(platform)
        return profile.display_name if profile else platform

    def industry_profile(self, industry: str) -> IndustryProfile:
        """Industry profile, or the default profile for an unknown key."""
        return self.industries.get(industry, self.industries[DEFAULT_KEY])

    def industry_split(self, industry: str) -> tuple[dict[str, float], bool]:
        """
        Return the industry's platform split.

        Returns
        -------
        tuple[dict[str, float], bool]
            The split and whether the default split was substituted.
        """
        profile = self.industries.get(industry)
        if profile is not None and profile.default_split is not None:
            return dict(profile.default_split), False
        logger.warning(f"No split for industry '{industry}', using the default split")
        return dict(self.industries[DEFAULT_KEY].default_split), True

    def platform_limits(self, industry: str) -> tuple[int, Optional[int]]:
        """(min_platforms, max_platforms) for an industry, with default fallbacks."""
        default = self.industries[DEFAULT_KEY]
        profile = self.industries.get(industry, default)
        min_platforms = profile.min_platforms or default.min_platforms or 1
        max_platforms = profile.max_platforms or default.max_platforms
        return min_platforms, max_platforms

    def compatibility_for(self, industry: str) -> PlatformCompatibility:
        return self.compatibility.get(industry, self.compatibility[DEFAULT_KEY])

    def tier_for_budget(self, budget: float) -> BudgetTier:
        """Return the budget tier containing ``budget``.

        Budgets below the lowest bound map to the first tier, budgets above
        the highest bound to the last one.
        """
        tiers = sorted(self.budget_tiers, key=lambda t: t.lower_bound)
        for tier in tiers:
            if tier.contains(budget):
                return tier
        return tiers[0] if budget < tiers[0].lower_bound else tiers[-1]

    def benchmark_for(self, platform: str) -> tuple[BenchmarkEntry, bool]:
        """
        Return the platform's benchmark entry.

        Returns
        -------
        tuple[BenchmarkEntry, bool]
            The entry and whether the default benchmark was substituted.
        """
        profile = self.platforms.get(platform)
        if profile is not None and profile.benchmark is not None:
            return profile.benchmark, False
        return self.default_benchmark, True

    def season_profile(self, season: Optional[str]) -> Optional[SeasonProfile]:
        if season is None:
            return None
        return self.seasons.get(season)

    def industry_goal_multiplier(self, industry: str, goal: str) -> float:
        return self.industry_goal_adjustments.get(industry, {}).get(goal, 1.0)

    def device_modifier(self, shares: dict[str, float]) -> DeviceModifier:
        """Share-weighted device modifier; the 'all' entry when no mix is given."""
        if not shares:
            return self.devices[ALL_DEVICES]
        ctr_mod = sum(self.devices[d].ctr_mod * s for d, s in shares.items())
        cvr_mod = sum(self.devices[d].cvr_mod * s for d, s in shares.items())
        return DeviceModifier(ctr_mod=ctr_mod, cvr_mod=cvr_mod)

    def sanity_entries_for(self, industry: str, goals: Iterable[str]) -> list[SanityRangeEntry]:
        """Sanity entries matching the industry and any of the goals."""
        goals = set(goals)
        return [e for e in self.sanity_ranges if e.industry == industry and e.goal in goals]

    def demographic_modifiers(
        self, platform: str, age_groups: Iterable[str], gender: Optional[str]
    ) -> list[tuple[str, RateModifier]]:
        """
        Age-group and gender modifiers for one platform.

        Returns
        -------
        list[tuple[str, RateModifier]]
            ``(source, modifier)`` pairs such as ``("age:25-34", ...)``; groups
            the platform has no data for are left out.
        """
        profile = self.demographics.get(platform)
        if profile is None:
            return []
        found = [(f"age:{age}", profile.age_groups[age]) for age in age_groups if age in profile.age_groups]
        if gender is not None and gender in profile.genders:
            found.append((f"gender:{gender}", profile.genders[gender]))
        return found

    def location_modifier(self, locations: Iterable[str]) -> Optional[RateModifier]:
        """Mean CPM/CVR modifier over the known locations, None if there are none."""
        known = [self.locations[loc] for loc in locations if loc in self.locations]
        if not known:
            return None
        return RateModifier(
            cpm=sum(m.cpm for m in known) / len(known),
            ctr=sum(m.ctr for m in known) / len(known),
            cvr=sum(m.cvr for m in known) / len(known),
        )

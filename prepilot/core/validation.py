"""
Campaign input validation.

Problems are returned as data, never raised: a single pass reports every
error so the caller can show them together.
"""

import math
from typing import Optional
from dataclasses import dataclass, field
import logging

from ..config.schema import CampaignInput, EngineConfig
from ..registries.registry import Registries
from ..registries.schema import CompatibilityTier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation error with a machine-readable code."""
    field: str
    code: str
    message: str


@dataclass
class ValidationResult:
    """Result of a validation check."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    issues: list[ValidationIssue] = field(default_factory=list)

    def add_error(self, message: str, field_name: str = "", code: str = "invalid") -> None:
        """Add an error message."""
        self.errors.append(message)
        self.issues.append(ValidationIssue(field=field_name, code=code, message=message))
        self.valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def merge(self, other: "ValidationResult") -> None:
        """Merge another validation result into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.issues.extend(other.issues)
        if not other.valid:
            self.valid = False

    @property
    def codes(self) -> list[str]:
        return [issue.code for issue in self.issues]

    def __str__(self) -> str:
        """String representation of validation result."""
        lines = []
        if self.valid:
            lines.append("Validation PASSED")
        else:
            lines.append("Validation FAILED")

        if self.errors:
            lines.append(f"  Errors ({len(self.errors)}):")
            for err in self.errors:
                lines.append(f"    - {err}")

        if self.warnings:
            lines.append(f"  Warnings ({len(self.warnings)}):")
            for warn in self.warnings:
                lines.append(f"    - {warn}")

        return "\n".join(lines)


class CampaignValidator:
    """Validate a campaign request against the registries."""

    def __init__(self, registries: Registries, config: Optional[EngineConfig] = None):
        """
        Initialize CampaignValidator.

        Parameters
        ----------
        registries : Registries
            Reference tables to validate keys against.
        config : EngineConfig, optional
            Engine configuration (for the minimum budget).
        """
        self.registries = registries
        self.config = config or EngineConfig()

    def validate(self, campaign: CampaignInput) -> ValidationResult:
        """
        Run all validation checks on a campaign.

        Keys are expected to be canonical (see ``Registries.canonicalize``).

        Parameters
        ----------
        campaign : CampaignInput
            Campaign to validate.

        Returns
        -------
        ValidationResult
            Combined validation result. Each check adds at most one error.
        """
        result = ValidationResult(valid=True)

        result.merge(self.validate_industry(campaign))
        result.merge(self.validate_budget(campaign))
        result.merge(self.validate_goals(campaign))
        result.merge(self.validate_platforms(campaign))
        result.merge(self.validate_season(campaign))
        result.merge(self.validate_device_mix(campaign))
        result.merge(self.validate_creative(campaign))
        result.merge(self.validate_audience(campaign))

        if result.valid:
            logger.debug(f"Campaign for '{campaign.industry}' passed validation")
        else:
            logger.info(f"Campaign validation failed with {len(result.errors)} error(s): {result.codes}")
        return result

    def validate_industry(self, campaign: CampaignInput) -> ValidationResult:
        """The industry must exist; an unknown industry is never defaulted."""
        result = ValidationResult(valid=True)
        if campaign.industry not in self.registries.industries:
            result.add_error(
                f"الصناعة '{campaign.industry}' غير مدعومة حالياً. اختر صناعة من القائمة.",
                "industry",
                "unknown_industry",
            )
        return result

    def validate_budget(self, campaign: CampaignInput) -> ValidationResult:
        result = ValidationResult(valid=True)
        if campaign.budget < self.config.min_budget:
            result.add_error(
                f"الميزانية يجب أن تكون على الأقل {self.config.min_budget:,.0f} ريال.",
                "budget",
                "budget_too_low",
            )
            return result

        profile = self.registries.industries.get(campaign.industry)
        if profile is not None and profile.min_recommended_budget is not None:
            if campaign.budget < profile.min_recommended_budget:
                result.add_warning(
                    f"الميزانية أقل من الحد الموصى به لهذه الصناعة "
                    f"({profile.min_recommended_budget:,.0f} ريال)."
                )
        return result

    def validate_goals(self, campaign: CampaignInput) -> ValidationResult:
        """At least one goal, and every goal known. One error at most."""
        result = ValidationResult(valid=True)
        if not campaign.goals:
            result.add_error("لازم تختار هدف واحد على الأقل للحملة.", "goals", "no_goal_selected")
            return result

        unknown = [g for g in campaign.goals if g not in self.registries.goals]
        if unknown:
            result.add_error(
                f"أهداف غير مدعومة: {', '.join(unknown)}.",
                "goals",
                "unknown_goal",
            )
        return result

    def validate_platforms(self, campaign: CampaignInput) -> ValidationResult:
        result = ValidationResult(valid=True)
        selected = campaign.selected_platforms
        if selected is None:
            return result

        unknown = [p for p in selected if p not in self.registries.platforms]
        if unknown:
            result.add_error(
                f"منصات غير مدعومة: {', '.join(unknown)}. اختر منصات مدعومة فقط.",
                "selected_platforms",
                "unsupported_platform",
            )
            return result

        # Compatibility only makes sense for a known industry
        if campaign.industry not in self.registries.industries:
            return result

        compatibility = self.registries.compatibility_for(campaign.industry)
        tiers = {p: compatibility.tier(p) for p in selected}
        if not any(tier == CompatibilityTier.ALLOWED for tier in tiers.values()):
            result.add_error(
                "لا توجد منصة مختارة متوافقة مع هذه الصناعة.",
                "selected_platforms",
                "no_compatible_platform",
            )
            return result

        for platform, tier in tiers.items():
            name = self.registries.display_name(platform)
            if tier == CompatibilityTier.DISCOURAGED:
                result.add_warning(f"منصة {name} غير مفضلة لهذه الصناعة.")
            elif tier == CompatibilityTier.DISALLOWED:
                result.add_warning(f"منصة {name} ليست ضمن المنصات المناسبة لهذه الصناعة.")
        return result

    def validate_season(self, campaign: CampaignInput) -> ValidationResult:
        result = ValidationResult(valid=True)
        if campaign.season is None:
            return result

        season = self.registries.seasons.get(campaign.season)
        if season is None:
            result.add_error(
                f"الموسم '{campaign.season}' غير مدعوم. اختر من القائمة.",
                "season",
                "unknown_season",
            )
        elif campaign.industry in season.worst_industries:
            result.add_warning(f"موسم {season.key} يعتبر ضعيفاً لهذه الصناعة.")
        return result

    def validate_device_mix(self, campaign: CampaignInput) -> ValidationResult:
        result = ValidationResult(valid=True)
        mix = campaign.device_mix
        if mix is None:
            return result

        unknown = [d for d in mix if d not in self.registries.devices]
        shares = list(mix.values())
        if (
            unknown
            or any(not math.isfinite(s) or s < 0 for s in shares)
            or sum(shares) <= 0
        ):
            result.add_error(
                "توزيع الأجهزة غير صالح: يجب أن تكون الأجهزة معروفة والنسب موجبة.",
                "device_mix",
                "invalid_device_mix",
            )
        return result

    def validate_creative(self, campaign: CampaignInput) -> ValidationResult:
        """Creative type and competition level, when given, must be known."""
        result = ValidationResult(valid=True)
        regs = self.registries
        if campaign.creative_type is not None and campaign.creative_type not in regs.creative_types:
            result.add_error(
                f"نوع المحتوى '{campaign.creative_type}' غير مدعوم.",
                "creative_type",
                "unknown_creative_type",
            )
        if campaign.competition_level is not None and campaign.competition_level not in regs.competition_levels:
            result.add_error(
                f"مستوى المنافسة '{campaign.competition_level}' غير مدعوم.",
                "competition_level",
                "unknown_competition_level",
            )
        return result

    def validate_audience(self, campaign: CampaignInput) -> ValidationResult:
        """Age groups, gender, locations, interests and behaviours must be known."""
        result = ValidationResult(valid=True)
        regs = self.registries

        unknown = [a for a in campaign.age_groups if a not in regs.age_groups]
        if campaign.gender is not None and campaign.gender not in regs.genders:
            unknown.append(campaign.gender)
        unknown.extend(loc for loc in campaign.locations if loc not in regs.locations)
        if unknown:
            result.add_error(
                f"خصائص جمهور غير معروفة: {', '.join(unknown)}.",
                "target_audience",
                "unknown_audience",
            )

        targeting = [i for i in campaign.interests if i not in regs.interests]
        targeting.extend(b for b in campaign.behaviors if b not in regs.behaviors)
        if targeting:
            result.add_error(
                f"خيارات استهداف غير معروفة: {', '.join(targeting)}.",
                "targeting",
                "unknown_targeting",
            )
        return result

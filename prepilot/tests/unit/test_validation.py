"""
Tests for core/validation.py - Campaign validation.
"""

import pytest

from prepilot.config.schema import CampaignInput, EngineConfig
from prepilot.core.validation import CampaignValidator, ValidationResult


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def validator(synthetic_registries):
    """Validator over the synthetic registries."""
    return CampaignValidator(synthetic_registries)


def _campaign(**overrides) -> CampaignInput:
    values = {"industry": "widgets", "budget": 25000, "goals": ["Sales"]}
    values.update(overrides)
    return CampaignInput(**values)


# =============================================================================
# ValidationResult Tests
# =============================================================================

class TestValidationResult:
    """Tests for ValidationResult."""

    def test_add_error_invalidates(self):
        """Adding an error marks the result invalid and records the code."""
        result = ValidationResult(valid=True)
        result.add_error("bad", "budget", "budget_too_low")

        assert not result.valid
        assert result.codes == ["budget_too_low"]
        assert result.issues[0].field == "budget"

    def test_warning_keeps_valid(self):
        """Warnings do not invalidate."""
        result = ValidationResult(valid=True)
        result.add_warning("careful")
        assert result.valid
        assert result.warnings == ["careful"]

    def test_merge(self):
        """Merging combines errors, warnings and issues."""
        first = ValidationResult(valid=True)
        first.add_warning("w1")
        second = ValidationResult(valid=True)
        second.add_error("e1", "goals", "no_goal_selected")

        first.merge(second)
        assert not first.valid
        assert first.errors == ["e1"]
        assert first.warnings == ["w1"]
        assert first.codes == ["no_goal_selected"]

    def test_str(self):
        """String form reports PASSED or FAILED with the messages."""
        result = ValidationResult(valid=True)
        assert "PASSED" in str(result)

        result.add_error("bad budget")
        text = str(result)
        assert "FAILED" in text
        assert "bad budget" in text


# =============================================================================
# CampaignValidator Tests
# =============================================================================

class TestCampaignValidator:
    """Tests for CampaignValidator."""

    def test_valid_campaign(self, validator):
        """A well-formed campaign passes without warnings."""
        result = validator.validate(_campaign())
        assert result.valid
        assert result.errors == []
        assert result.warnings == []

    def test_unknown_industry(self, validator):
        """An unknown industry is an error, never defaulted."""
        result = validator.validate(_campaign(industry="spaceships"))
        assert result.codes == ["unknown_industry"]

    def test_budget_boundary(self, validator):
        """The minimum budget is inclusive."""
        assert validator.validate(_campaign(budget=5000)).codes == []
        assert validator.validate(_campaign(budget=4999.99)).codes == ["budget_too_low"]

    def test_configurable_min_budget(self, synthetic_registries):
        """min_budget comes from the engine configuration."""
        validator = CampaignValidator(synthetic_registries, EngineConfig(min_budget=100))
        assert validator.validate(_campaign(budget=150)).codes == []

    def test_below_recommended_budget_warns(self, validator):
        """Budgets under the industry's recommendation warn but pass."""
        result = validator.validate(_campaign(budget=10000))
        assert result.valid
        assert len(result.warnings) == 1

    def test_no_goal(self, validator):
        """At least one goal is required."""
        assert validator.validate(_campaign(goals=[])).codes == ["no_goal_selected"]

    def test_unknown_goal(self, validator):
        """Unknown goals are reported once."""
        result = validator.validate(_campaign(goals=["Sales", "Fame", "Glory"]))
        assert result.codes == ["unknown_goal"]
        assert "Fame" in result.errors[0]
        assert "Glory" in result.errors[0]

    def test_unsupported_platform(self, validator):
        """Unknown platforms are an error."""
        result = validator.validate(_campaign(selected_platforms=["alpha", "omega"]))
        assert result.codes == ["unsupported_platform"]
        assert "omega" in result.errors[0]

    def test_no_compatible_platform(self, validator):
        """A selection with only discouraged platforms has nothing compatible."""
        result = validator.validate(_campaign(selected_platforms=["delta"]))
        assert result.codes == ["no_compatible_platform"]

    def test_discouraged_platform_warns(self, validator):
        """A discouraged platform next to an allowed one only warns."""
        result = validator.validate(_campaign(selected_platforms=["alpha", "delta"]))
        assert result.valid
        assert any("Delta" in w for w in result.warnings)

    def test_unknown_season(self, validator):
        """Unknown seasons are an error."""
        assert validator.validate(_campaign(season="winter")).codes == ["unknown_season"]

    def test_weak_season_warns(self, validator):
        """A season listing the industry as worst warns."""
        result = validator.validate(_campaign(season="slow"))
        assert result.valid
        assert len(result.warnings) == 1

    @pytest.mark.parametrize("mix", [
        {"tv": 1.0},
        {"mobile": -0.5, "desktop": 1.5},
        {"mobile": 0.0},
    ])
    def test_invalid_device_mix(self, validator, mix):
        """Unknown devices, negative shares and zero totals are rejected."""
        assert validator.validate(_campaign(device_mix=mix)).codes == ["invalid_device_mix"]

    def test_valid_device_mix(self, validator):
        """Known devices with positive shares pass."""
        assert validator.validate(_campaign(device_mix={"mobile": 70, "desktop": 30})).valid

    def test_reports_every_problem(self, registries, invalid_input):
        """Several problems are reported together, one error per check."""
        validator = CampaignValidator(registries)
        result = validator.validate(registries.canonicalize(invalid_input))

        assert not result.valid
        assert result.codes == ["budget_too_low", "no_goal_selected", "unsupported_platform"]
        assert len(result.errors) == 3


# =============================================================================
# Creative and audience checks
# =============================================================================

class TestAudienceValidation:
    """Tests for creative, competition and audience keys (production tables)."""

    @pytest.fixture
    def production_validator(self, registries):
        return CampaignValidator(registries)

    def _canonical(self, registries, **overrides):
        values = {"industry": "Retail", "budget": 25000, "goals": ["Sales"]}
        values.update(overrides)
        return registries.canonicalize(CampaignInput(**values))

    def test_known_values_pass(self, registries, production_validator):
        campaign = self._canonical(
            registries,
            creative_type="فيديو",
            competition_level="High",
            age_groups=["25-34"],
            gender="Female",
            locations=["Riyadh"],
            interests=["electronics"],
            behaviors=["online_shoppers"],
        )
        assert production_validator.validate(campaign).valid

    def test_unknown_creative_type(self, registries, production_validator):
        result = production_validator.validate(self._canonical(registries, creative_type="hologram"))
        assert result.codes == ["unknown_creative_type"]
        assert "hologram" in result.errors[0]

    def test_unknown_competition_level(self, registries, production_validator):
        result = production_validator.validate(self._canonical(registries, competition_level="fierce"))
        assert result.codes == ["unknown_competition_level"]

    def test_unknown_audience_listed_once(self, registries, production_validator):
        """Unknown age, gender and city are reported in one error."""
        result = production_validator.validate(
            self._canonical(registries, age_groups=["90-99"], gender="other", locations=["Atlantis"])
        )
        assert result.codes == ["unknown_audience"]
        assert result.issues[0].field == "target_audience"
        for value in ("90-99", "other", "Atlantis"):
            assert value in result.errors[0]

    def test_unknown_targeting(self, registries, production_validator):
        result = production_validator.validate(
            self._canonical(registries, interests=["knitting"], behaviors=["night_owls"])
        )
        assert result.codes == ["unknown_targeting"]
        assert "knitting" in result.errors[0] and "night_owls" in result.errors[0]

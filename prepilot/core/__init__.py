"""Core functionality for PrePilot."""

from .validation import CampaignValidator, ValidationIssue, ValidationResult

__all__ = [
    "CampaignValidator",
    "ValidationIssue",
    "ValidationResult",
]

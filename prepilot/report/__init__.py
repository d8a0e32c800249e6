"""Forecast pipeline and report models."""

from .models import CampaignReport, ForecastError, ForecastOutcome
from .assembler import ForecastEngine

__all__ = [
    "CampaignReport",
    "ForecastError",
    "ForecastOutcome",
    "ForecastEngine",
]

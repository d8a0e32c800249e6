"""Budget allocation for PrePilot."""

from .engine import AllocationEngine
from .results import AllocationFailure, AllocationResult, EngineErrorKind

__all__ = [
    "AllocationEngine",
    "AllocationFailure",
    "AllocationResult",
    "EngineErrorKind",
]

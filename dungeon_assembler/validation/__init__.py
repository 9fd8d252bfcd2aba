"""
Validation package for the dungeon assembler.

Public API:
    - ValidationResult, ValidationIssue, Severity: Core result types
    - ValidationStage: Where a finding was produced
    - ValidationError: Exception raised on FAIL issues in strict mode
    - AABB, is_overlapping: Placement validator used by the layout engine
"""

from .core import (
    Severity,
    ValidationStage,
    ValidationIssue,
    ValidationResult,
    ValidationError,
)
from .spatial_validation import AABB, is_overlapping

__all__ = [
    # Core types
    'Severity',
    'ValidationStage',
    'ValidationIssue',
    'ValidationResult',
    'ValidationError',
    # Placement
    'AABB',
    'is_overlapping',
]

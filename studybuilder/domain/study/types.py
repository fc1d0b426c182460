"""Validation result types for study drafts."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


DRAFT_SCOPE = "draft"


class WizardStep(str, Enum):
    """Steps of the study creation wizard, in order."""
    SETUP = "setup"
    BLOCKS = "blocks"
    SESSION = "session"
    PARTICIPANTS = "participants"
    SETTINGS = "settings"
    REVIEW = "review"


class ValidationIssueCode(Enum):
    """Codes for validation errors and warnings."""

    # Structure
    TOO_FEW_BLOCKS = "TOO_FEW_BLOCKS"
    TOO_MANY_BLOCKS = "TOO_MANY_BLOCKS"
    BLOCK_TYPE_NOT_ALLOWED = "BLOCK_TYPE_NOT_ALLOWED"
    UNKNOWN_BLOCK_TYPE = "UNKNOWN_BLOCK_TYPE"
    BLOCK_ORDER_RULE = "BLOCK_ORDER_RULE"
    DURATION_EXCEEDS_THRESHOLD = "DURATION_EXCEEDS_THRESHOLD"

    # Block fields
    MISSING_NAME = "MISSING_NAME"
    MISSING_DESCRIPTION = "MISSING_DESCRIPTION"
    DURATION_OUT_OF_RANGE = "DURATION_OUT_OF_RANGE"
    INVALID_SETTING = "INVALID_SETTING"
    FIELD_NOT_CUSTOMIZABLE = "FIELD_NOT_CUSTOMIZABLE"

    # Setup
    INVALID_TITLE = "INVALID_TITLE"
    INVALID_DESCRIPTION = "INVALID_DESCRIPTION"
    INVALID_PARTICIPANTS = "INVALID_PARTICIPANTS"
    INVALID_COMPENSATION = "INVALID_COMPENSATION"

    # Session
    MISSING_SESSION_CONFIG = "MISSING_SESSION_CONFIG"
    INVALID_SESSION_DURATION = "INVALID_SESSION_DURATION"
    MISSING_INTERVIEW_QUESTIONS = "MISSING_INTERVIEW_QUESTIONS"

    # Settings
    RECORDING_RECOMMENDED = "RECORDING_RECOMMENDED"


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation error or warning.

    scope is "draft" for study-level issues, otherwise the offending block id.
    """

    code: ValidationIssueCode
    message: str
    scope: str = DRAFT_SCOPE
    field: Optional[str] = None
    step: Optional[str] = None

    @property
    def is_block_issue(self) -> bool:
        return self.scope != DRAFT_SCOPE

    def __str__(self) -> str:
        location = self.scope if not self.field else f"{self.scope}.{self.field}"
        return f"[{self.code.value}] {location}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scope": self.scope,
            "code": self.code.value,
            "message": self.message,
            "field": self.field,
            "step": self.step,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating a draft (or one wizard step of it)."""

    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.is_valid

    @classmethod
    def success(cls) -> "ValidationResult":
        """Create a result with no issues."""
        return cls(errors=[], warnings=[])

    @classmethod
    def from_issues(
        cls,
        errors: List[ValidationIssue],
        warnings: Optional[List[ValidationIssue]] = None,
    ) -> "ValidationResult":
        return cls(errors=list(errors), warnings=list(warnings or []))

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Combine two results, keeping issue order."""
        return ValidationResult(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )

    def for_scope(self, scope: str) -> List[ValidationIssue]:
        """All errors and warnings attached to one block id (or "draft")."""
        return [i for i in self.errors + self.warnings if i.scope == scope]

    def codes(self) -> List[ValidationIssueCode]:
        return [i.code for i in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }

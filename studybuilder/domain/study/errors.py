"""Exceptions raised by the study definition engine.

Validation problems are never raised; they are returned as data inside a
ValidationResult. The exceptions here cover authoring/configuration errors
and stale references.
"""

from typing import List, Optional


class StudyBuilderError(Exception):
    """Base class for study builder errors."""
    pass


class UnknownBlockType(StudyBuilderError):
    """Raised when a block type is outside the closed set or not in the catalog."""

    def __init__(self, block_type: str):
        self.block_type = block_type
        super().__init__(f"Unknown block type: '{block_type}'")


class MissingRequiredVariable(StudyBuilderError):
    """Raised when a required template variable has no binding."""

    def __init__(self, key: str, template_id: Optional[str] = None):
        self.key = key
        self.template_id = template_id
        where = f" for template '{template_id}'" if template_id else ""
        super().__init__(f"Missing required variable '{key}'{where}")


class BlockNotFound(StudyBuilderError):
    """Raised when a block id is not present in the list."""

    def __init__(self, block_id: str):
        self.block_id = block_id
        super().__init__(f"Block '{block_id}' not found")


class DuplicateBlockId(StudyBuilderError):
    """Raised when inserting a block whose id is already in the list."""

    def __init__(self, block_id: str):
        self.block_id = block_id
        super().__init__(f"Block id '{block_id}' already exists in this draft")


class TemplateNotFound(StudyBuilderError):
    """Raised when requested template doesn't exist."""

    def __init__(self, template_id: str, available: Optional[List[str]] = None):
        self.template_id = template_id
        listing = ", ".join(available or []) or "(none)"
        super().__init__(f"Template '{template_id}' not found. Available: {listing}")


class CatalogLoadError(StudyBuilderError):
    """Raised when catalog or template seed data fails to load."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []

    def __str__(self) -> str:
        if self.errors:
            lines = [f"  - {e}" for e in self.errors[:5]]
            if len(self.errors) > 5:
                lines.append(f"  ... and {len(self.errors) - 5} more errors")
            return f"{self.args[0]}\n" + "\n".join(lines)
        return self.args[0]


class SubmissionError(StudyBuilderError):
    """Raised when the study creation collaborator rejects or fails a submission."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

"""Print-readiness checks for rendered PDFs"""

from storyprint.validator.cover_validator import CoverIssue, CoverReport, validate_cover

__all__ = ["CoverIssue", "CoverReport", "validate_cover"]

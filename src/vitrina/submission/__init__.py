"""
Alta de listings: wizard por pasos y transformación de commit.
"""

from vitrina.submission.steps import (
    FRANCHISE_STEPS,
    IDEA_STEPS,
    ValidationIssue,
    WizardStep,
)
from vitrina.submission.transform import build_listing, make_suffix_factory, slugify
from vitrina.submission.wizard import SubmissionWizard

__all__ = [
    "FRANCHISE_STEPS",
    "IDEA_STEPS",
    "ValidationIssue",
    "WizardStep",
    "build_listing",
    "make_suffix_factory",
    "slugify",
    "SubmissionWizard",
]

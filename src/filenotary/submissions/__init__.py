"""
Upload submission and single-upload view.

Provides:
- Validation and registration of submissions (operations.py)
- Upload form, submit and view routes (api.py)
"""

from .operations import (
    PayloadUpload,
    SubmissionError,
    SubmissionForm,
    build_confirmation,
    register_submission,
    validate_submission,
)

__all__ = [
    "PayloadUpload",
    "SubmissionError",
    "SubmissionForm",
    "build_confirmation",
    "register_submission",
    "validate_submission",
]

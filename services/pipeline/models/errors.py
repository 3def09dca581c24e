"""
Error response models.
"""

from typing import List, Optional

from pydantic import BaseModel


class ValidationErrorItem(BaseModel):
    """One field-level schema violation."""

    key: str
    message: str


class ErrorBody(BaseModel):
    """
    Envelope written for every error response.

    Use model_dump(exclude_none=True) so validationErrors only appears for schema failures.
    """

    message: str
    code: int
    requestId: str
    timestamp: str
    validationErrors: Optional[List[ValidationErrorItem]] = None

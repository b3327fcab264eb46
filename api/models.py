"""
API response models for SessionGate.

The /auth endpoints answer in text/plain (the username or an empty body), so
the only Pydantic models here are the error envelope and the health probe.
All error responses share the ErrorResponse envelope so clients can parse
failures uniformly.
"""

from typing import Optional

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str

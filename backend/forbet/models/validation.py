"""
backend/forbet/models/validation.py

Purpose:
    Result shape of a provider credential/health probe, cached per provider
    under ``validation:{provider}``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ValidationStatus(str, Enum):
    SUCCESS = "success"
    AUTH_ERROR = "auth_error"
    QUOTA_EXCEEDED = "quota_exceeded"
    UNKNOWN_ERROR = "unknown_error"


class ApiValidationResult(BaseModel):
    name: str
    is_valid: bool
    status: ValidationStatus
    error: str | None = None
    remaining_quota: int | None = None

    @classmethod
    def ok(cls, name: str, *, remaining_quota: int | None = None) -> "ApiValidationResult":
        return cls(name=name, is_valid=True, status=ValidationStatus.SUCCESS, remaining_quota=remaining_quota)

    @classmethod
    def failed(cls, name: str, status: ValidationStatus, error: str) -> "ApiValidationResult":
        return cls(name=name, is_valid=False, status=status, error=error)

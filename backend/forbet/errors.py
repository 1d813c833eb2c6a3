"""
backend/forbet/errors.py

Purpose:
    Exception types shared by provider adapters and the fixture orchestrator.
    Only ProvidersExhaustedError is meant to leave the service layer.
"""

from __future__ import annotations

from dataclasses import dataclass


class ForbetError(Exception):
    """Base class for application errors."""


class ProviderError(ForbetError):
    """A single upstream provider failed (network, HTTP status, payload)."""

    def __init__(self, provider: str, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class ProviderConfigError(ProviderError):
    """Provider cannot be called because its key or base URL is missing."""


@dataclass(frozen=True)
class ProviderFailure:
    provider: str
    message: str

    def describe(self) -> str:
        return f"{self.provider}: {self.message}"


class ProvidersExhaustedError(ForbetError):
    """Every eligible provider failed or returned no data."""

    def __init__(self, failures: list[ProviderFailure], *, subject: str = "fixtures"):
        self.failures = list(failures)
        self.subject = subject
        if self.failures:
            detail = "; ".join(f.describe() for f in self.failures)
        else:
            detail = "no eligible provider"
        super().__init__(f"All providers failed for {subject}: {detail}")

"""Pydantic schemas for the sanitization endpoints."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class Identity(BaseModel):
    """Identifying fields of the user a prompt is about."""

    full_name: str | None = Field(default=None, description="Display name of the user.")
    email: str | None = Field(default=None, description="Email address of the user.")


class SanitizeStructureRequest(BaseModel):
    data: Any = Field(
        ...,
        description="Arbitrary JSON document (object, array or scalar) to redact.",
    )


class SanitizeStructureResponse(BaseModel):
    data: Any = Field(
        ...,
        description="Same-shaped document with values under PII-looking keys replaced.",
    )
    redacted_paths: List[str] = Field(
        default_factory=list,
        description="Paths of the replaced values, e.g. 'contacts[0].email'.",
    )


class SanitizePromptRequest(BaseModel):
    prompt: str = Field(..., description="Free-text prompt bound for an external model.")
    identity: Identity | None = Field(
        default=None,
        description="Name and email to strip from the prompt.",
    )


class SanitizePromptResponse(BaseModel):
    prompt: str = Field(..., description="Prompt with identifying strings replaced.")


class MaskRequest(BaseModel):
    account_number: str | None = None
    card_number: str | None = None
    ssn: str | None = None


class MaskResponse(BaseModel):
    account_number: str | None = None
    card_number: str | None = None
    ssn: str | None = None


class ScopeStatus(BaseModel):
    limit: int = Field(..., description="Maximum requests per window.")
    window_ms: int = Field(..., description="Sliding window length in milliseconds.")
    remaining: int = Field(..., description="Requests left in the current window.")
    reset_after_ms: int = Field(
        ..., description="Milliseconds until a request would be admitted again (0 if now)."
    )


class RateLimitStatusResponse(BaseModel):
    enabled: bool
    scopes: Dict[str, ScopeStatus] = Field(default_factory=dict)

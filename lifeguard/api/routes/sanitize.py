from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from lifeguard.core.auth import verify_api_key
from lifeguard.core.errors import ValidationAppError
from lifeguard.core.rate_limit import rate_limited
from lifeguard.core.state import get_app_settings
from lifeguard.schemas.sanitize import (
    MaskRequest,
    MaskResponse,
    SanitizePromptRequest,
    SanitizePromptResponse,
    SanitizeStructureRequest,
    SanitizeStructureResponse,
)
from lifeguard.services.pii import (
    PIIRedactor,
    mask_account_number,
    mask_card_number,
    mask_ssn,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Sanitize"])


def get_pii_redactor(request: Request) -> PIIRedactor:
    """Return the redactor created by the app factory."""

    redactor = getattr(request.app.state, "pii_redactor", None)
    if redactor is None:
        raise RuntimeError("PII redactor is not configured on app.state")
    return redactor


@router.post(
    "/sanitize/structure",
    response_model=SanitizeStructureResponse,
    dependencies=[Depends(verify_api_key), Depends(rate_limited("api"))],
)
async def sanitize_structure(
    payload: SanitizeStructureRequest,
    redactor: PIIRedactor = Depends(get_pii_redactor),
) -> SanitizeStructureResponse:
    """Redact values under PII-looking keys in a JSON document.

    Best-effort only: matching is by key name, so identifiers stored under
    innocuous keys pass through.
    """

    paths = redactor.sensitive_paths(payload.data)
    sanitized = redactor.sanitize_structure(payload.data)
    logger.info("pii.structure_sanitized", extra={"redacted_count": len(paths)})
    return SanitizeStructureResponse(data=sanitized, redacted_paths=paths)


@router.post(
    "/sanitize/prompt",
    response_model=SanitizePromptResponse,
    dependencies=[Depends(verify_api_key), Depends(rate_limited("api"))],
)
async def sanitize_prompt(
    request: Request,
    payload: SanitizePromptRequest,
    redactor: PIIRedactor = Depends(get_pii_redactor),
) -> SanitizePromptResponse:
    """Strip the user's name and email from a prompt before it leaves the service.

    Raises:
        ValidationAppError: If the prompt exceeds the configured maximum length.
    """

    max_chars = get_app_settings(request).pii.max_prompt_chars
    if len(payload.prompt) > max_chars:
        raise ValidationAppError(
            code="prompt_too_long",
            message=f"Prompt exceeds the maximum of {max_chars} characters",
            details={"max_value": max_chars, "actual_value": len(payload.prompt)},
        )

    identity = payload.identity.model_dump() if payload.identity else None
    sanitized = redactor.sanitize_prompt_text(payload.prompt, identity)
    logger.info(
        "pii.prompt_sanitized",
        extra={"char_count": len(payload.prompt), "has_identity": identity is not None},
    )
    return SanitizePromptResponse(prompt=sanitized or "")


@router.post(
    "/mask",
    response_model=MaskResponse,
    dependencies=[Depends(verify_api_key), Depends(rate_limited())],
)
async def mask_financial_fields(payload: MaskRequest) -> MaskResponse:
    """Mask account, card and SSN values down to their last four characters."""

    return MaskResponse(
        account_number=mask_account_number(payload.account_number)
        if payload.account_number is not None
        else None,
        card_number=mask_card_number(payload.card_number)
        if payload.card_number is not None
        else None,
        ssn=mask_ssn(payload.ssn) if payload.ssn is not None else None,
    )

"""
Error payloads — backend refusals mapped onto domain errors.

The backend answers a refused discount with an error code. Older endpoints
send only an English message; those are matched against known phrasings.
"""

from __future__ import annotations

import logging
import re
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field

from bookflow.discount import DiscountError, DiscountErrorKind, normalize_code

logger = logging.getLogger(__name__)


def first_text(value: Any) -> str | None:
    """
    Field errors arrive as lists of strings (`{"code": ["..."]}`); keep the
    first. Anything else that is not text is stringified.
    """
    if isinstance(value, list | tuple):
        value = value[0] if value else None
    if value is None or isinstance(value, str):
        return value
    return str(value)


def _text_or_empty(value: Any) -> str:
    return first_text(value) or ""


class ErrorPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    error_code: Annotated[str | None, BeforeValidator(first_text)] = Field(
        default=None,
        validation_alias=AliasChoices("error_code", "code", "error"),
    )
    message: Annotated[str, BeforeValidator(_text_or_empty)] = Field(
        default="",
        validation_alias=AliasChoices("message", "detail"),
    )
    params: dict[str, Any] = Field(default_factory=dict)


_DISCOUNT_CODES: dict[str, DiscountErrorKind] = {
    "invalid_code": DiscountErrorKind.INVALID_CODE,
    "code_not_found": DiscountErrorKind.INVALID_CODE,
    "empty_code": DiscountErrorKind.INVALID_CODE,
    "code_inactive": DiscountErrorKind.INACTIVE,
    "code_expired": DiscountErrorKind.EXPIRED,
    "usage_limit_exceeded": DiscountErrorKind.USAGE_LIMIT_EXCEEDED,
    "already_applied": DiscountErrorKind.ALREADY_APPLIED,
}

# Checked in order; the first match wins.
_DISCOUNT_PATTERNS: tuple[tuple[re.Pattern[str], DiscountErrorKind], ...] = (
    (re.compile(r"already (been )?applied", re.I), DiscountErrorKind.ALREADY_APPLIED),
    (re.compile(r"maximum number of times|usage limit", re.I), DiscountErrorKind.USAGE_LIMIT_EXCEEDED),
    (re.compile(r"no longer active|inactive", re.I), DiscountErrorKind.INACTIVE),
    (re.compile(r"expired", re.I), DiscountErrorKind.EXPIRED),
    (re.compile(r"invalid|not found|cannot be empty|may not be blank", re.I), DiscountErrorKind.INVALID_CODE),
)


def _from_message(message: str) -> DiscountErrorKind | None:
    for pattern, kind in _DISCOUNT_PATTERNS:
        if pattern.search(message):
            return kind
    return None


def discount_error_from_payload(payload: ErrorPayload, *, code: str) -> DiscountError:
    """
    Turn a refused redemption into a DiscountError.

    Known error codes map one to one. Without one, the message is matched
    against the backend's English phrasings. Anything unrecognised is
    reported as INVALID_CODE.

    Example:
        err = discount_error_from_payload(
            ErrorPayload.model_validate({"error": "code_expired"}), code="SPRING",
        )
        err.kind  # DiscountErrorKind.EXPIRED
    """
    normalized = normalize_code(code)
    params = {"code": normalized, **{k: str(v) for k, v in payload.params.items()}}

    kind = _DISCOUNT_CODES.get(payload.error_code or "")
    if kind is None:
        kind = _from_message(payload.message or payload.error_code or "")
        if kind is not None:
            logger.warning(
                "Discount refusal for %s matched by message (%r), backend sent no known code",
                normalized, payload.message,
            )
    if kind is None:
        logger.warning(
            "Unrecognised discount refusal for %s: code=%r message=%r",
            normalized, payload.error_code, payload.message,
        )
        kind = DiscountErrorKind.INVALID_CODE

    return DiscountError(kind=kind, message=payload.message or kind.value, params=params)


__all__ = (
    "ErrorPayload",
    "discount_error_from_payload",
)

"""Validation helpers used at the handler and store boundaries."""

import re
from typing import Any, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from supportdesk.utils.error_handling import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value or ""))


def normalize_email(value: str) -> str:
    """Trim and lower-case an email for ownership comparisons."""
    return (value or "").strip().lower()


def parse_payload(model: Type[ModelT], payload: Any) -> ModelT:
    """Validate a raw payload into ``model``, raising the domain ValidationError."""
    try:
        return model.model_validate(payload if payload is not None else {})
    except PydanticValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ValidationError(details or "Invalid input") from exc

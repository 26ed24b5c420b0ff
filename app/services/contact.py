# app/services/contact.py
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from email_validator import EmailNotValidError, validate_email

from app.errors import ValidationError
from app.schemas import ContactSubmission

log = logging.getLogger(__name__)

FIELDS = ("name", "email", "subject", "message")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_email(email: str) -> Optional[str]:
    """
    ASCII form of a syntactically valid address (IDN domains punycoded), or
    None. Non-ASCII local parts are refused: they cannot be written into a
    Reply-To header without SMTPUTF8.
    """
    try:
        result = validate_email(email, check_deliverability=False, allow_smtputf8=False)
    except EmailNotValidError:
        return None
    return result.ascii_email


def is_valid_email(email: str) -> bool:
    return normalize_email(email) is not None


def validate_submission(raw: Mapping[str, Any]) -> ContactSubmission:
    """
    Trim and check the four contact fields.

    Every failing check is collected so the caller gets one combined message,
    e.g. "Name is required, Invalid email format".
    """
    values = {k: _text(raw.get(k)) for k in FIELDS}
    errors: list[str] = []

    if not values["name"]:
        errors.append("Name is required")

    if not values["email"]:
        errors.append("Email is required")
    else:
        email = normalize_email(values["email"])
        if email is None:
            errors.append("Invalid email format")
        else:
            values["email"] = email

    if not values["subject"]:
        errors.append("Subject is required")

    if not values["message"]:
        errors.append("Message is required")

    if errors:
        log.info("Contact submission rejected: %s", ", ".join(errors))
        raise ValidationError(errors)

    return ContactSubmission(**values)


def is_honeypot_filled(raw: Mapping[str, Any], field: str) -> bool:
    # hidden input real visitors never see; bots fill every field
    if not field:
        return False
    return bool(_text(raw.get(field)))

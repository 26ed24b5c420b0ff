# app/errors.py
from __future__ import annotations


class ContactError(Exception):
    """Base for every failure the contact pipeline reports to a caller."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ContactError):
    """One or more submitted fields are missing or malformed."""

    status_code = 400

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class TransportError(ContactError):
    """
    The delivery channel could not place the message.

    `detail` is for server logs only; the HTTP layer answers with the
    configured fallback text instead of `message`.
    """

    status_code = 500

    def __init__(self, message: str, detail: str = ""):
        super().__init__(message)
        self.detail = detail or message


class ProtocolViolation(ContactError):
    status_code = 405

    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message)


class ClientNetworkError(ContactError):
    """The request never completed (offline, DNS failure, timeout, CORS block)."""

    status_code = 0

# app/contact_form.py
"""
Form-side half of the contact pipeline.

ContactFormHandler is what a page's submit listener calls: it flips the
loading/error/success regions, posts the four fields to the /send-email
endpoint and reports how it went. Regions are optional; a page without a
success box still gets its message delivered. The endpoint is an absolute
URL unless the injected client carries a base_url.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import httpx

from app.errors import ClientNetworkError

log = logging.getLogger(__name__)

SUCCESS_TEXT = "Your message has been sent. Thank you!"
REJECTED_TEXT = "The server could not accept your message. Please try again later."
NETWORK_TEXT = "Network error: could not reach the server. Please check your connection and try again."


class SubmitOutcome(str, Enum):
    SENT = "sent"
    REJECTED = "rejected"
    NETWORK_ERROR = "network_error"
    IGNORED = "ignored"


@dataclass
class StatusRegion:
    visible: bool = False
    text: str = ""

    def show(self, text: Optional[str] = None) -> None:
        if text is not None:
            self.text = text
        self.visible = True

    def hide(self) -> None:
        self.visible = False


@dataclass
class ContactForm:
    name: str = ""
    email: str = ""
    subject: str = ""
    message: str = ""
    loading: Optional[StatusRegion] = None
    error: Optional[StatusRegion] = None
    success: Optional[StatusRegion] = None
    # stands in for the disabled submit button
    submitting: bool = field(default=False, compare=False)

    def payload(self) -> dict:
        return {
            "name": self.name,
            "email": self.email,
            "subject": self.subject,
            "message": self.message,
        }

    def reset(self) -> None:
        self.name = self.email = self.subject = self.message = ""


def _show(region: Optional[StatusRegion], text: Optional[str] = None) -> None:
    if region is not None:
        region.show(text)


def _hide(region: Optional[StatusRegion]) -> None:
    if region is not None:
        region.hide()


class ContactFormHandler:
    def __init__(
        self,
        form: ContactForm,
        endpoint: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
        success_hide_after: Optional[float] = 5.0,
    ):
        # a relative endpoint ("/send-email") only works through a client that carries base_url
        if client is None and not httpx.URL(endpoint).is_absolute_url:
            raise ValueError(f"endpoint must be an absolute URL when no client is given: {endpoint!r}")
        self.form = form
        self.endpoint = endpoint
        self.timeout = timeout
        self.success_hide_after = success_hide_after
        self._client = client
        self._hide_handle: Optional[asyncio.TimerHandle] = None

    async def _post(self, payload: dict) -> httpx.Response:
        try:
            if self._client is not None:
                return await self._client.post(self.endpoint, json=payload, timeout=self.timeout)
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.post(self.endpoint, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # no usable answer: connect/read failures, timeouts, undecodable bodies, redirect loops
            raise ClientNetworkError(NETWORK_TEXT) from e

    @staticmethod
    def _server_message(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return None

    def _schedule_success_hide(self) -> None:
        if self._hide_handle is not None:
            self._hide_handle.cancel()
            self._hide_handle = None
        if self.form.success is None or not self.success_hide_after:
            return
        loop = asyncio.get_running_loop()
        self._hide_handle = loop.call_later(self.success_hide_after, self.form.success.hide)

    async def handle_submit(self) -> SubmitOutcome:
        form = self.form
        if form.submitting:
            log.info("Contact form submit ignored: previous submission still in flight")
            return SubmitOutcome.IGNORED

        form.submitting = True
        _show(form.loading)
        _hide(form.error)
        _hide(form.success)
        try:
            try:
                response = await self._post(form.payload())
            except ClientNetworkError as e:
                log.warning("Contact form network error: %s", e.__cause__)
                _hide(form.loading)
                _show(form.error, e.message)
                return SubmitOutcome.NETWORK_ERROR

            _hide(form.loading)
            if response.is_success:
                _show(form.success, self._server_message(response) or SUCCESS_TEXT)
                form.reset()
                self._schedule_success_hide()
                return SubmitOutcome.SENT

            log.info("Contact form rejected by server: HTTP %s", response.status_code)
            _show(form.error, self._server_message(response) or REJECTED_TEXT)
            return SubmitOutcome.REJECTED
        finally:
            form.submitting = False

"""
Form-side submission handler, driven against a mocked /send-email.
"""
import asyncio
import json

import httpx
import pytest

from app.contact_form import (
    NETWORK_TEXT,
    REJECTED_TEXT,
    ContactForm,
    ContactFormHandler,
    StatusRegion,
    SubmitOutcome,
)


def _form(**regions):
    form = ContactForm(name="Ada", email="ada@example.com", subject="Hi", message="Hello there")
    for key in ("loading", "error", "success"):
        setattr(form, key, regions.get(key, StatusRegion()))
    return form


def _handler(form, responder, **kwargs):
    client = httpx.AsyncClient(base_url="https://api.portfolio.example.com", transport=httpx.MockTransport(responder))
    return ContactFormHandler(form, "/send-email", client=client, **kwargs)


def _ok(request):
    return httpx.Response(200, json={"success": True, "message": "Your message has been sent successfully!"})


def test_success_shows_message_and_clears_form():
    seen = {}

    def responder(request):
        seen["body"] = json.loads(request.content)
        seen["method"] = request.method
        return _ok(request)

    form = _form()
    form.error.show("old error")

    outcome = asyncio.run(_handler(form, responder).handle_submit())

    assert outcome is SubmitOutcome.SENT
    assert seen["method"] == "POST"
    assert seen["body"] == {"name": "Ada", "email": "ada@example.com", "subject": "Hi", "message": "Hello there"}
    assert form.success.visible and form.success.text == "Your message has been sent successfully!"
    assert not form.loading.visible
    assert not form.error.visible
    assert form.payload() == {"name": "", "email": "", "subject": "", "message": ""}
    assert form.submitting is False


def test_server_rejection_shows_server_message_and_keeps_input():
    def responder(request):
        return httpx.Response(400, json={"success": False, "message": "Invalid email format"})

    form = _form()

    outcome = asyncio.run(_handler(form, responder).handle_submit())

    assert outcome is SubmitOutcome.REJECTED
    assert form.error.visible and form.error.text == "Invalid email format"
    assert not form.success.visible
    assert not form.loading.visible
    assert form.name == "Ada"


def test_server_rejection_without_json_uses_generic_text():
    form = _form()

    outcome = asyncio.run(_handler(form, lambda request: httpx.Response(502, text="Bad Gateway")).handle_submit())

    assert outcome is SubmitOutcome.REJECTED
    assert form.error.text == REJECTED_TEXT


def test_network_failure_is_reported_distinctly():
    def responder(request):
        raise httpx.ConnectError("name resolution failed", request=request)

    form = _form()

    outcome = asyncio.run(_handler(form, responder).handle_submit())

    assert outcome is SubmitOutcome.NETWORK_ERROR
    assert form.error.visible and form.error.text == NETWORK_TEXT
    assert not form.loading.visible
    assert form.submitting is False


def test_timeout_is_a_network_failure():
    def responder(request):
        raise httpx.ReadTimeout("timed out", request=request)

    form = _form()

    assert asyncio.run(_handler(form, responder).handle_submit()) is SubmitOutcome.NETWORK_ERROR


def test_missing_regions_do_not_break_submission():
    calls = []

    def responder(request):
        calls.append(request)
        return _ok(request)

    form = ContactForm(name="Ada", email="ada@example.com", subject="Hi", message="Hello there")

    outcome = asyncio.run(_handler(form, responder).handle_submit())

    assert outcome is SubmitOutcome.SENT
    assert len(calls) == 1
    assert form.name == ""


def test_duplicate_submit_is_ignored_while_in_flight():
    calls = []

    async def scenario():
        release = asyncio.Event()

        async def responder(request):
            calls.append(request)
            await release.wait()
            return _ok(request)

        form = _form()
        handler = _handler(form, responder)

        first = asyncio.create_task(handler.handle_submit())
        await asyncio.sleep(0)
        while not calls:
            await asyncio.sleep(0)
        assert form.submitting and form.loading.visible

        second = await handler.handle_submit()
        release.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first is SubmitOutcome.SENT
    assert second is SubmitOutcome.IGNORED
    assert len(calls) == 1


def test_success_message_hides_after_delay():
    async def scenario():
        form = _form()
        handler = _handler(form, _ok, success_hide_after=0.01)
        await handler.handle_submit()
        shown = form.success.visible
        await asyncio.sleep(0.05)
        return shown, form.success.visible

    shown, later = asyncio.run(scenario())

    assert shown is True
    assert later is False


def test_undecodable_body_is_a_network_failure():
    def responder(request):
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip")

    form = _form()

    outcome = asyncio.run(_handler(form, responder).handle_submit())

    assert outcome is SubmitOutcome.NETWORK_ERROR
    assert not form.loading.visible
    assert form.error.visible and form.error.text == NETWORK_TEXT
    assert form.submitting is False
    assert form.name == "Ada"


def test_redirect_loop_is_a_network_failure():
    def responder(request):
        return httpx.Response(302, headers={"Location": "/send-email"})

    form = _form()
    client = httpx.AsyncClient(
        base_url="https://api.portfolio.example.com",
        transport=httpx.MockTransport(responder),
        follow_redirects=True,
    )

    outcome = asyncio.run(ContactFormHandler(form, "/send-email", client=client).handle_submit())

    assert outcome is SubmitOutcome.NETWORK_ERROR
    assert not form.loading.visible


def test_relative_endpoint_needs_a_client():
    with pytest.raises(ValueError):
        ContactFormHandler(_form(), "/send-email")

    handler = ContactFormHandler(_form(), "https://api.portfolio.example.com/send-email")
    assert handler.endpoint == "https://api.portfolio.example.com/send-email"

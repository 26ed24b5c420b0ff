# app/routers/contact.py
import logging

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from app.config import Settings
from app.deps import get_app_settings, get_mail_channel
from app.errors import ProtocolViolation, TransportError
from app.schemas import DeliveryResult
from app.services.contact import is_honeypot_filled, validate_submission
from app.services.email import MailChannel, compose_message

log = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["contact"])


async def _read_payload(request: Request) -> dict:
    # --- Parse body (support JSON + form) ---
    ct = (request.headers.get("content-type") or "").lower()
    raw = {}
    if ct.startswith("application/json"):
        try:
            raw = await request.json()
        except Exception:
            raw = {}
    elif ct.startswith("application/x-www-form-urlencoded") or ct.startswith("multipart/form-data"):
        try:
            form = await request.form()
            raw = dict(form)
        except Exception:
            raw = {}
    else:
        # last attempt: try JSON then form
        try:
            raw = await request.json()
        except Exception:
            try:
                form = await request.form()
                raw = dict(form)
            except Exception:
                raw = {}
    return raw if isinstance(raw, dict) else {}


@router.post("/send-email", response_model=DeliveryResult)
async def send_email(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    channel: MailChannel = Depends(get_mail_channel),
):
    raw = await _read_payload(request)

    # --- Honeypot: hidden "website" field ---
    if is_honeypot_filled(raw, settings.HONEYPOT_FIELD):
        log.warning("[HONEYPOT] Dropped contact submission (%s field filled).", settings.HONEYPOT_FIELD)
        return DeliveryResult(success=True, message=settings.CONFIRMATION_MESSAGE)

    # ValidationError / TransportError are turned into responses by app.main
    submission = validate_submission(raw)
    msg = compose_message(submission, settings)

    try:
        await run_in_threadpool(channel.send, msg)
    except TransportError:
        raise
    except Exception as e:
        raise TransportError("Unexpected delivery error", detail=repr(e)) from e

    log.info(
        "Contact email sent via %s | from=%s <%s> | subject=%s",
        channel.name, submission.name, submission.email, submission.subject,
    )
    return DeliveryResult(success=True, message=settings.CONFIRMATION_MESSAGE)


@router.options("/send-email", include_in_schema=False)
def send_email_options():
    return Response(status_code=200)


@router.api_route("/send-email", methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def send_email_wrong_method():
    raise ProtocolViolation()

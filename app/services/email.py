# app/services/email.py
from __future__ import annotations

import logging
import os
import ssl
import smtplib
import subprocess
from email.message import EmailMessage
from email.utils import formataddr, getaddresses, make_msgid, parseaddr

import httpx

from app.config import Settings
from app.errors import TransportError
from app.schemas import ContactSubmission
from app.services.templates import build_subject, render_html, render_text

log = logging.getLogger(__name__)

SENDGRID_API = "https://api.sendgrid.com/v3"

# ---- internal helpers --------------------------------------------------------


def _header_safe(value: str) -> str:
    # CR/LF (and the other unicode line separators) would start a new header line
    return " ".join(part.strip() for part in (value or "").splitlines() if part.strip())


def _detect_sendgrid_api_key(settings: Settings) -> str | None:
    """
    Prefer explicit SENDGRID_API_KEY; otherwise, if SendGrid SMTP was configured
    (host=smtp.sendgrid.net, username=apikey) with an SG.* password, use that.
    """
    if settings.SENDGRID_API_KEY:
        return settings.SENDGRID_API_KEY
    host = (settings.SMTP_HOST or "").lower().strip()
    if host == "smtp.sendgrid.net" and settings.SMTP_USERNAME == "apikey" and settings.SMTP_PASSWORD.startswith("SG."):
        return settings.SMTP_PASSWORD
    return None


# ---- composition -------------------------------------------------------------


def compose_message(submission: ContactSubmission, settings: Settings) -> EmailMessage:
    """
    Build the notification sent to the site owner.

    From is always the configured mailbox so SPF/DKIM stay aligned; the
    visitor only appears in Reply-To and in the body.
    """
    msg = EmailMessage()
    msg["From"] = formataddr((_header_safe(settings.FROM_NAME), settings.FROM_EMAIL))
    msg["To"] = settings.RECIPIENT_EMAIL
    msg["Reply-To"] = _header_safe(submission.email)
    msg["Subject"] = _header_safe(build_subject(submission, settings.SUBJECT_PREFIX))
    msg["Message-ID"] = make_msgid(domain=settings.FROM_EMAIL.rpartition("@")[2] or None)
    msg.set_content(render_text(submission))
    msg.add_alternative(render_html(submission), subtype="html")
    return msg


# ---- channels ----------------------------------------------------------------


class MailChannel:
    """Places a composed message into the email system."""

    name = "base"

    def send(self, msg: EmailMessage) -> None:
        raise NotImplementedError

    def verify(self) -> bool:
        return True

    def describe(self) -> dict:
        return {"transport": self.name}

    def close(self) -> None:
        pass


class DryRunChannel(MailChannel):
    name = "dry_run"

    def send(self, msg: EmailMessage) -> None:
        log.info("[EMAIL DRY RUN] to=%s reply_to=%s subject=%s", msg["To"], msg["Reply-To"], msg["Subject"])


class SmtpChannel(MailChannel):
    """
    Authenticated SMTP session, one connection per send.

    secure=True speaks TLS from the first byte (port 465); otherwise the
    session is upgraded with STARTTLS (port 587).
    """

    name = "smtp"

    def __init__(self, host: str, port: int, username: str, password: str,
                 secure: bool = True, timeout: float = 30.0):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.secure = secure
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.secure:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)
        s = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            s.ehlo()
            s.starttls(context=context)
            s.ehlo()
        except Exception:
            s.close()
            raise
        return s

    def send(self, msg: EmailMessage) -> None:
        if not (self.host and self.username and self.password):
            raise TransportError("SMTP is not configured", detail="SMTP creds missing (host/user/pwd)")

        try:
            with self._connect() as s:
                s.login(self.username, self.password)
                s.send_message(msg)
        except smtplib.SMTPAuthenticationError as e:
            raise TransportError("SMTP authentication failed", detail=f"{e.smtp_code} {e.smtp_error!r}") from e
        except smtplib.SMTPRecipientsRefused as e:
            raise TransportError("SMTP recipient refused", detail=repr(e.recipients)) from e
        except smtplib.SMTPException as e:
            raise TransportError("SMTP send failed", detail=str(e)) from e
        except OSError as e:
            # DNS failures, refused connections, TLS errors and socket timeouts
            raise TransportError("SMTP connection failed", detail=f"{self.host}:{self.port}: {e}") from e
        log.info("SMTP send ok → %s via %s:%s", msg["To"], self.host, self.port)

    def verify(self) -> bool:
        if not (self.host and self.username and self.password):
            log.error("SMTP creds missing (host/user/pwd)")
            return False
        try:
            with self._connect() as s:
                s.login(self.username, self.password)
                s.noop()
        except (smtplib.SMTPException, OSError) as e:
            log.error("SMTP verify failed for %s:%s: %s", self.host, self.port, e)
            return False
        log.info("SMTP ready: %s:%s as %s", self.host, self.port, self.username)
        return True

    def describe(self) -> dict:
        return {
            "transport": self.name,
            "host": self.host,
            "port": self.port,
            "secure": self.secure,
            "configured": bool(self.host and self.username and self.password),
        }


class SendmailChannel(MailChannel):
    """Hands the message to the local MTA binary; recipients are read from the headers."""

    name = "sendmail"

    def __init__(self, path: str = "/usr/sbin/sendmail", timeout: float = 30.0):
        self.path = path
        self.timeout = timeout

    def send(self, msg: EmailMessage) -> None:
        try:
            proc = subprocess.run(
                [self.path, "-t", "-i"],
                input=msg.as_bytes(),
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise TransportError("sendmail timed out", detail=f"{self.path} after {self.timeout}s") from e
        except OSError as e:
            raise TransportError("sendmail unavailable", detail=f"{self.path}: {e}") from e

        if proc.returncode != 0:
            stderr = (proc.stderr or b"").decode("utf-8", "ignore").strip()
            raise TransportError("sendmail rejected the message", detail=f"exit {proc.returncode}: {stderr}")
        log.info("sendmail send ok → %s", msg["To"])

    def verify(self) -> bool:
        ok = os.path.isfile(self.path) and os.access(self.path, os.X_OK)
        if not ok:
            log.error("sendmail binary not executable: %s", self.path)
        return ok

    def describe(self) -> dict:
        return {"transport": self.name, "path": self.path}


class SendGridChannel(MailChannel):
    """
    SendGrid v3 HTTP API. One httpx.Client is shared by every request; it is
    safe for concurrent use from the worker threads.
    """

    name = "sendgrid"

    def __init__(self, api_key: str, timeout: float = 30.0, client: httpx.Client | None = None):
        self.timeout = timeout
        self._client = client or httpx.Client(base_url=SENDGRID_API, timeout=timeout)
        self._headers = {"Authorization": f"Bearer {api_key}"}

    @staticmethod
    def _payload(msg: EmailMessage) -> dict:
        from_name, from_email = parseaddr(msg["From"])
        to = [addr for _, addr in getaddresses(msg.get_all("To", [])) if addr]

        payload = {
            "personalizations": [{"to": [{"email": e} for e in to]}],
            "from": {"email": from_email, "name": from_name or from_email},
            "subject": str(msg["Subject"]),
            "content": [],
        }
        text = msg.get_body(preferencelist=("plain",))
        html = msg.get_body(preferencelist=("html",))
        if text is not None:
            payload["content"].append({"type": "text/plain", "value": text.get_content()})
        if html is not None:
            payload["content"].append({"type": "text/html", "value": html.get_content()})
        if msg["Reply-To"]:
            payload["reply_to"] = {"email": parseaddr(msg["Reply-To"])[1]}
        return payload

    def send(self, msg: EmailMessage) -> None:
        try:
            r = self._client.post("/mail/send", json=self._payload(msg), headers=self._headers)
        except httpx.HTTPError as e:
            raise TransportError("SendGrid network error", detail=str(e)) from e

        if r.status_code >= 400:
            raise TransportError(f"SendGrid HTTP {r.status_code}", detail=r.text)
        log.info("SendGrid API send ok → %s", msg["To"])

    def verify(self) -> bool:
        try:
            r = self._client.get("/scopes", headers=self._headers)
        except httpx.HTTPError as e:
            log.error("SendGrid verify network error: %s", e)
            return False
        if r.status_code != 200:
            log.error("SendGrid verify HTTP %s", r.status_code)
            return False
        return True

    def describe(self) -> dict:
        return {"transport": self.name, "api": SENDGRID_API}

    def close(self) -> None:
        self._client.close()


# ---- factory -----------------------------------------------------------------


def build_channel(settings: Settings) -> MailChannel:
    """
    Pick the delivery channel for this process.
    - EMAIL_DRY_RUN short-circuits everything (logs, doesn't send)
    - a SendGrid key hiding in the SMTP settings goes through the HTTP API
    """
    if settings.EMAIL_DRY_RUN:
        return DryRunChannel()

    transport = settings.MAIL_TRANSPORT
    if transport == "smtp" and _detect_sendgrid_api_key(settings):
        transport = "sendgrid"

    if transport == "sendgrid":
        api_key = _detect_sendgrid_api_key(settings)
        if not api_key:
            raise ValueError("MAIL_TRANSPORT=sendgrid requires SENDGRID_API_KEY")
        return SendGridChannel(api_key, timeout=settings.MAIL_TIMEOUT)
    if transport == "sendmail":
        return SendmailChannel(settings.SENDMAIL_PATH, timeout=settings.MAIL_TIMEOUT)
    if transport == "dry_run":
        return DryRunChannel()
    return SmtpChannel(
        settings.SMTP_HOST,
        settings.SMTP_PORT,
        settings.SMTP_USERNAME,
        settings.SMTP_PASSWORD,
        secure=settings.MAIL_SECURE,
        timeout=settings.MAIL_TIMEOUT,
    )

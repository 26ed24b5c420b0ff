# app/config.py
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# load .env into process env vars
ROOT = Path(__file__).resolve().parents[1]
load_dotenv(ROOT / ".env")

TRANSPORTS = ("smtp", "sendmail", "sendgrid", "dry_run")


def _as_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in ("1", "true", "yes", "y", "on")


def _as_int(name: str, default: int) -> int:
    try:
        return int(str(os.getenv(name, default)).strip())
    except Exception:
        return default


def _as_float(name: str, default: float) -> float:
    try:
        return float(str(os.getenv(name, default)).strip())
    except Exception:
        return default


def _as_list(name: str, default: str = "") -> list[str]:
    """
    Accepts:  'https://a.example,https://b.example'
    Returns:  ['https://a.example', 'https://b.example']
    """
    raw = os.getenv(name, default) or ""
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass
class Settings:
    # App
    ENV: str = "dev"
    PORT: int = 3000
    LOG_DIR: str = str(ROOT / "logs")
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = field(default_factory=lambda: ["*"])

    # Delivery channel
    MAIL_TRANSPORT: str = "smtp"
    EMAIL_DRY_RUN: bool = True
    MAIL_TIMEOUT: float = 30.0
    MAIL_VERIFY_ON_STARTUP: bool = True

    # SMTP
    SMTP_HOST: str = "smtp.hostinger.com"
    SMTP_PORT: int = 465
    MAIL_SECURE: bool = True
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""

    # Transactional API / local MTA
    SENDGRID_API_KEY: str = ""
    SENDMAIL_PATH: str = "/usr/sbin/sendmail"

    # Identity
    FROM_EMAIL: str = "no-reply@example.com"
    FROM_NAME: str = "Portfolio Contact Form"
    RECIPIENT_EMAIL: str = ""
    CONTACT_EMAIL: str = ""

    # Copy
    SUBJECT_PREFIX: str = "New Contact Form: "
    CONFIRMATION_MESSAGE: str = "Your message has been sent successfully! I'll respond within 24 hours."
    HONEYPOT_FIELD: str = "website"

    def __post_init__(self):
        self.MAIL_TRANSPORT = (self.MAIL_TRANSPORT or "smtp").strip().lower()
        if self.MAIL_TRANSPORT not in TRANSPORTS:
            raise ValueError(
                f"Unknown MAIL_TRANSPORT '{self.MAIL_TRANSPORT}'. Expected one of: {', '.join(TRANSPORTS)}"
            )
        # No recipient configured => the sender mailbox forwards to itself
        if not self.RECIPIENT_EMAIL:
            self.RECIPIENT_EMAIL = self.FROM_EMAIL
        if not self.CONTACT_EMAIL:
            self.CONTACT_EMAIL = self.RECIPIENT_EMAIL

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            ENV=os.getenv("ENV", defaults.ENV),
            PORT=_as_int("PORT", defaults.PORT),
            LOG_DIR=os.getenv("LOG_DIR", defaults.LOG_DIR),
            LOG_LEVEL=os.getenv("LOG_LEVEL", defaults.LOG_LEVEL).upper(),
            CORS_ORIGINS=_as_list("CORS_ORIGINS", "*"),
            MAIL_TRANSPORT=os.getenv("MAIL_TRANSPORT", defaults.MAIL_TRANSPORT),
            EMAIL_DRY_RUN=_as_bool("EMAIL_DRY_RUN", defaults.EMAIL_DRY_RUN),
            MAIL_TIMEOUT=_as_float("MAIL_TIMEOUT", defaults.MAIL_TIMEOUT),
            MAIL_VERIFY_ON_STARTUP=_as_bool("MAIL_VERIFY_ON_STARTUP", defaults.MAIL_VERIFY_ON_STARTUP),
            SMTP_HOST=os.getenv("SMTP_HOST", defaults.SMTP_HOST).strip(),
            SMTP_PORT=_as_int("SMTP_PORT", defaults.SMTP_PORT),
            MAIL_SECURE=_as_bool("MAIL_SECURE", defaults.MAIL_SECURE),
            SMTP_USERNAME=os.getenv("SMTP_USERNAME", "").strip(),
            SMTP_PASSWORD=os.getenv("SMTP_PASSWORD", ""),
            SENDGRID_API_KEY=os.getenv("SENDGRID_API_KEY", "").strip(),
            SENDMAIL_PATH=os.getenv("SENDMAIL_PATH", defaults.SENDMAIL_PATH),
            FROM_EMAIL=os.getenv("FROM_EMAIL", defaults.FROM_EMAIL).strip(),
            FROM_NAME=os.getenv("FROM_NAME", defaults.FROM_NAME),
            RECIPIENT_EMAIL=os.getenv("RECIPIENT_EMAIL", "").strip(),
            CONTACT_EMAIL=os.getenv("CONTACT_EMAIL", "").strip(),
            SUBJECT_PREFIX=os.getenv("SUBJECT_PREFIX", defaults.SUBJECT_PREFIX),
            CONFIRMATION_MESSAGE=os.getenv("CONFIRMATION_MESSAGE", defaults.CONFIRMATION_MESSAGE),
            HONEYPOT_FIELD=os.getenv("HONEYPOT_FIELD", defaults.HONEYPOT_FIELD).strip(),
        )

    @property
    def failure_message(self) -> str:
        return (
            "Failed to send email. Please try again later or contact me directly at "
            f"{self.CONTACT_EMAIL}"
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()

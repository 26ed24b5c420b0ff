# app/main.py
#run it with uvicorn app.main:app --reload
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import Settings, get_settings
from app.errors import ProtocolViolation, TransportError, ValidationError
from app.logging_config import setup_logging
from app.services.email import MailChannel, build_channel

# Routers
from app.routers.contact import router as contact_router
from app.routers.health import router as health_router

log = logging.getLogger(__name__)


def _result(status_code: int, success: bool, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse({"success": success, "message": message}, status_code=status_code, headers=headers)


def create_app(settings: Optional[Settings] = None, channel: Optional[MailChannel] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title="Portfolio Contact Mailer", version="1.0.0")
    app.state.settings = settings
    if channel is not None:
        app.state.mail_channel = channel

    # CORS: the portfolio page is usually served from another origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    # ---------- Error mapping ----------
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _result(400, False, exc.message)

    @app.exception_handler(TransportError)
    async def transport_error_handler(request: Request, exc: TransportError):
        log.error("✗ Error sending email: %s | %s", exc.message, exc.detail)
        return _result(500, False, settings.failure_message)

    @app.exception_handler(ProtocolViolation)
    async def protocol_error_handler(request: Request, exc: ProtocolViolation):
        return _result(405, False, exc.message, headers={"Allow": "POST, OPTIONS"})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # methods the router has no route for (TRACE, CONNECT, ...) get the same 405 body
        if exc.status_code == 405:
            return _result(405, False, ProtocolViolation().message, headers={"Allow": "POST, OPTIONS"})
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _result(500, False, settings.failure_message)

    # ---------- Simple root ----------
    @app.get("/")
    def root():
        return {
            "message": "Contact Form Email Server",
            "endpoints": {
                "health": "/health",
                "sendEmail": "/send-email (POST)",
            },
            "version": app.version,
        }

    # ---------- Routers ----------
    app.include_router(contact_router)
    app.include_router(health_router)

    # ---------- Startup / shutdown ----------
    @app.on_event("startup")
    def on_startup():
        setup_logging(settings)
        if getattr(app.state, "mail_channel", None) is None:
            app.state.mail_channel = build_channel(settings)
        mail_channel = app.state.mail_channel

        log.info("✓ Delivery channel: %s", mail_channel.describe())
        log.info("✓ Sending from: %s", settings.FROM_EMAIL)
        log.info("✓ Sending to: %s", settings.RECIPIENT_EMAIL)
        if settings.MAIL_VERIFY_ON_STARTUP:
            if mail_channel.verify():
                log.info("✓ Server is ready to send emails")
            else:
                log.error("✗ Email configuration error, check the %s settings", mail_channel.name)

    @app.on_event("shutdown")
    def on_shutdown():
        mail_channel = getattr(app.state, "mail_channel", None)
        if mail_channel is not None:
            mail_channel.close()

    return app


app = create_app()

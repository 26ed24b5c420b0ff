# app/deps.py
import threading

from fastapi import Depends, Request

from app.config import Settings, get_settings
from app.services.email import MailChannel, build_channel

_channel_lock = threading.Lock()


def get_app_settings(request: Request) -> Settings:
    # create_app() pins its Settings on app.state; fall back to the env-built ones
    return getattr(request.app.state, "settings", None) or get_settings()


def get_mail_channel(request: Request, settings: Settings = Depends(get_app_settings)) -> MailChannel:
    """
    Shared delivery channel owned by the app (built at startup, or lazily on
    first use when startup hasn't run, e.g. under a bare TestClient).
    """
    state = request.app.state
    channel = getattr(state, "mail_channel", None)
    if channel is not None:
        return channel
    with _channel_lock:
        channel = getattr(state, "mail_channel", None)
        if channel is None:
            channel = build_channel(settings)
            state.mail_channel = channel
    return channel

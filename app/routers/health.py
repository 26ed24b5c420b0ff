from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.deps import get_mail_channel
from app.services.email import MailChannel

router = APIRouter()


@router.get("/health")
def health(channel: MailChannel = Depends(get_mail_channel)):
    return {
        "status": "OK",
        "message": "Email server is running",
        "transport": channel.describe(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

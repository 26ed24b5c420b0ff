from pydantic import BaseModel, ConfigDict


class ContactSubmission(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    subject: str
    message: str


class DeliveryResult(BaseModel):
    success: bool
    message: str

import logging
from pydantic import BaseModel, EmailStr
from gigflow.shared.artifacts import save_json
from gigflow.shared.config import settings

logger = logging.getLogger(__name__)

class EmailDraft(BaseModel):
    to: EmailStr
    subject: str
    body: str

def send_verification_code(email: str, code: str) -> str | None:
    """
    Dry-run delivery: the message is written to the outbox and logged.
    Returns the outbox path, or None if it could not be written.
    """
    draft = EmailDraft(
        to=email,
        subject="GigFlow - Email Verification",
        body=f"Your verification code is: {code}\nThis code expires in {settings.OTP_TTL_MIN} minutes.",
    )
    try:
        path = save_json("verification", draft.model_dump())
    except OSError:
        logger.exception("could not write verification email for %s", email)
        return None
    logger.info("verification code for %s written to %s", email, path)
    return path

"""Newsletter routes: public subscribe, privileged broadcast."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from bench.auth.models import Profile
from bench.services.newsletter_service import NewsletterService
from bench.utils.exceptions import BenchError
from bench.utils.logger import get_logger

from .auth_middleware import require_super_admin

logger = get_logger(__name__)

router = APIRouter(prefix="/newsletter", tags=["newsletter"])


class SubscribeRequest(BaseModel):
    email: Optional[str] = None


class BroadcastRequest(BaseModel):
    subject: Optional[str] = None
    content: Optional[str] = None
    audience: str = "subscribers"
    recipients: Optional[List[str]] = None


def get_newsletter_service(request: Request) -> NewsletterService:
    return request.app.state.newsletter_service


@router.post("/subscribe", status_code=201)
def subscribe(body: SubscribeRequest, request: Request, background_tasks: BackgroundTasks):
    """
    Subscribe an email address.

    The welcome email is sent after the response; if it fails the
    subscription still stands.
    """
    service = get_newsletter_service(request)
    try:
        row = service.subscribe(body.email)
    except BenchError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.public_message})
    background_tasks.add_task(service.send_welcome, row["email"])
    return {
        "success": True,
        "message": "Successfully subscribed to newsletter! Check your email for confirmation.",
        "data": row,
    }


@router.post("/send")
def send_newsletter(
    body: BroadcastRequest,
    request: Request,
    current_user: Profile = Depends(require_super_admin),
):
    result = get_newsletter_service(request).broadcast(
        body.subject, body.content, audience=body.audience, recipients=body.recipients
    )
    logger.info("Newsletter broadcast requested", user_id=current_user.id, recipients=result["recipients"])
    return {
        "success": True,
        "message": f"Newsletter sent to {result['recipients']} recipients",
        "newsletterId": result["newsletter"].get("id"),
        "delivered": result["delivered"],
    }

"""
FastAPI routes for super-admin authentication.

POST /login, POST /logout, GET /verify, GET/PUT /profile.
Errors come back as ``{"success": false, "error": "..."}`` through the
application's BenchError handler; /verify answers ``{"valid": false}``
instead.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from bench.auth.models import Profile
from bench.utils.clock import to_iso
from bench.utils.exceptions import BenchError
from bench.utils.logger import get_logger

from .auth_middleware import client_ip, extract_token, get_auth_service, require_super_admin

logger = get_logger(__name__)

router = APIRouter(tags=["super-admin-auth"])


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None


@router.post("/login")
def login(body: LoginRequest, request: Request) -> Dict[str, Any]:
    """
    Log in a super admin.

    Request (JSON): {"email": "...", "password": "..."}

    Response:
        {
          "success": true,
          "token": "<opaque token>",
          "user": {"id": "...", "email": "...", "full_name": "...", "role": "super_admin"},
          "expiresAt": "<ISO timestamp>"
        }
    """
    service = get_auth_service(request)
    result = service.login(
        body.email,
        body.password,
        user_agent=request.headers.get("User-Agent", ""),
        ip_address=client_ip(request),
    )
    return {
        "success": True,
        "token": result.token,
        "user": result.user.summary(),
        "expiresAt": to_iso(result.expires_at),
    }


@router.post("/logout")
def logout(request: Request) -> Dict[str, Any]:
    """Delete the session named by the bearer token. Idempotent."""
    get_auth_service(request).logout(extract_token(request))
    return {"success": True, "message": "Logged out successfully"}


@router.get("/verify")
def verify(request: Request, background_tasks: BackgroundTasks):
    """Report whether the bearer token is a live session."""
    token = extract_token(request)
    service = get_auth_service(request)
    try:
        profile = service.verify(token, touch=False)
    except BenchError as e:
        if e.status_code >= 500:
            logger.error("Token verification error", error=str(e))
        return JSONResponse(
            status_code=e.status_code,
            content={"valid": False, "error": e.public_message},
        )
    background_tasks.add_task(service.touch_session, token)
    return {"valid": True, "user": profile.public()}


@router.get("/profile")
def get_profile(current_user: Profile = Depends(require_super_admin)) -> Dict[str, Any]:
    return {"success": True, "user": current_user.detail()}


@router.put("/profile")
def update_profile(
    body: ProfileUpdate,
    request: Request,
    current_user: Profile = Depends(require_super_admin),
) -> Dict[str, Any]:
    """Update full_name / avatar_url / bio. Only fields sent are written."""
    updated = get_auth_service(request).update_profile(
        current_user.id, body.model_dump(exclude_unset=True)
    )
    return {"success": True, "user": updated.detail()}

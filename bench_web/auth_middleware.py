"""
Super-admin auth dependencies.

require_super_admin() is the FastAPI dependency every privileged route
uses. It:
- Reads the bearer token from the Authorization header
- Verifies it against the session store (authoritative check)
- Schedules the last-used update to run after the response
"""

from __future__ import annotations

from fastapi import BackgroundTasks, Request

from bench.auth.models import Profile
from bench.auth.service import SuperAdminAuthService
from bench.auth.tokens import parse_bearer


def extract_token(request: Request) -> str:
    return parse_bearer(request.headers.get("Authorization"))


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else ""


def get_auth_service(request: Request) -> SuperAdminAuthService:
    return request.app.state.auth_service


def require_super_admin(request: Request, background_tasks: BackgroundTasks) -> Profile:
    """
    Dependency for privileged routes.

    Raises MissingToken / InvalidOrExpiredToken (401) when the token is
    absent, unknown or expired.
    """
    token = extract_token(request)
    service = get_auth_service(request)
    profile = service.verify(token, touch=False)
    background_tasks.add_task(service.touch_session, token)
    return profile

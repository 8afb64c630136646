from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.deps import get_app_settings, get_db, get_session_guard, get_session_token, require_admin
from app.schemas.audit import AuditLogOut
from app.schemas.auth import AdminCheckResponse, AdminLoginRequest, OkResponse
from app.services.audit_service import ADMIN_ACTOR, list_audit_logs, write_audit_log
from app.services.errors import InvalidCredentials, StoreUnavailable
from app.services.session_guard import AdminSessionGuard

router = APIRouter()


@router.post("/login", response_model=OkResponse)
def login(
    payload: AdminLoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    guard: AdminSessionGuard = Depends(get_session_guard),
    settings: Settings = Depends(get_app_settings),
):
    ip = request.client.host if request.client else ""
    # attempts from a throttled client are not audited
    throttled = guard.is_throttled(ip)
    try:
        token = guard.login(payload.password, client_ip=ip)
    except InvalidCredentials:
        if not throttled:
            write_audit_log(db, action_type="ADMIN_LOGIN_FAIL", target_type="admin", summary="Admin login failed", request=request)
        raise

    try:
        write_audit_log(db, actor=ADMIN_ACTOR, action_type="ADMIN_LOGIN", target_type="admin", summary="Admin logged in", request=request)
    except StoreUnavailable:
        guard.logout(token)
        raise

    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )
    return OkResponse()


@router.post("/logout", response_model=OkResponse)
def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    token: str | None = Depends(get_session_token),
    guard: AdminSessionGuard = Depends(get_session_guard),
    settings: Settings = Depends(get_app_settings),
):
    had_session = guard.check(token)
    guard.logout(token)
    response.delete_cookie(key=settings.session_cookie_name, path="/")

    if had_session:
        write_audit_log(db, actor=ADMIN_ACTOR, action_type="ADMIN_LOGOUT", target_type="admin", summary="Admin logged out", request=request)
    return OkResponse()


@router.get("/check", response_model=AdminCheckResponse)
def check(token: str | None = Depends(get_session_token), guard: AdminSessionGuard = Depends(get_session_guard)):
    return AdminCheckResponse(is_admin=guard.check(token))


@router.get("/audit-logs", response_model=list[AuditLogOut], dependencies=[Depends(require_admin)])
def audit_logs(action_type: str | None = None, db: Session = Depends(get_db)):
    return [AuditLogOut.model_validate(a) for a in list_audit_logs(db, action_type=action_type)]

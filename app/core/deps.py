from __future__ import annotations

from typing import Iterator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.services.customer_resolver import CustomerResolver
from app.services.customer_store import CustomerStore
from app.services.session_guard import AdminSessionGuard


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_customer_store(db: Session = Depends(get_db)) -> CustomerStore:
    return CustomerStore(db)


def get_customer_resolver(
    store: CustomerStore = Depends(get_customer_store),
    settings: Settings = Depends(get_app_settings),
) -> CustomerResolver:
    return CustomerResolver(store, settings)


def get_session_guard(request: Request) -> AdminSessionGuard:
    return request.app.state.session_guard


def get_session_token(request: Request, settings: Settings = Depends(get_app_settings)) -> str | None:
    return request.cookies.get(settings.session_cookie_name)


def require_admin(
    token: str | None = Depends(get_session_token),
    guard: AdminSessionGuard = Depends(get_session_guard),
) -> None:
    if not guard.check(token):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

"""
Application entry point.

``create_app`` wires settings, storage, the admin session guard and the
routers together. Tests call it with their own ``Settings``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from sqlalchemy.orm import sessionmaker

from app.api.exception_handlers import register_exception_handlers
from app.api.router import api_router
from app.core.config import Settings, get_settings
from app.db.base import Base
from app.db.session import build_engine, build_session_factory
from app.services.session_guard import AdminSessionGuard
from app.services.session_store import DatabaseSessionStore, InMemorySessionStore, SessionStore

# Import models to register with SQLAlchemy
from app import models  # noqa: F401

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_session_store(settings: Settings, session_factory: sessionmaker) -> SessionStore:
    backend = settings.session_backend.lower()
    if backend == "database":
        return DatabaseSessionStore(session_factory)
    if backend != "memory":
        raise ValueError(f"Unknown session backend: {settings.session_backend}")
    return InMemorySessionStore()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    engine = build_engine(settings)
    session_factory = build_session_factory(engine)
    if settings.create_tables_on_startup:
        Base.metadata.create_all(bind=engine)

    if not settings.admin_password_hash and not settings.admin_password.get_secret_value():
        logger.warning("No admin password configured; admin login is disabled")

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.session_guard = AdminSessionGuard(build_session_store(settings, session_factory), settings)

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    logger.info(f"Application created: {settings.app_name} ({settings.environment})")
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:create_app", factory=True, host="0.0.0.0", port=8000)

from __future__ import annotations

from fastapi import FastAPI, Request
from sqlalchemy.orm import Session

from salesflow.auth import Principal
from salesflow.models import User

PRINCIPAL_HEADER = 'x-user-id'


def load_principal(db: Session, raw_user_id: str | None) -> Principal | None:
    raw = (raw_user_id or '').strip()
    if not raw.isdigit():
        return None
    user = db.get(User, int(raw))
    if not user:
        return None
    return Principal(id=user.id, username=user.username, role=user.role, active=user.active)


def install_principal_middleware(app: FastAPI) -> None:
    """Resolve the acting user from the upstream-authenticated ``X-User-Id`` header."""

    @app.middleware('http')
    async def principal_middleware(request: Request, call_next):
        with request.app.state.session_factory() as db:
            request.state.principal = load_principal(db, request.headers.get(PRINCIPAL_HEADER))
        return await call_next(request)

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from core.database import get_db
from core.security import decode_token
from services.row_store import SqlAlchemyRowStore


bearer_scheme = HTTPBearer(auto_error=False)

TIMETABLE_READ = "timetable:read"
TIMETABLE_WRITE = "timetable:write"
ROSTER_WRITE = "roster:write"

ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    "admin": frozenset({TIMETABLE_READ, TIMETABLE_WRITE, ROSTER_WRITE}),
    "principal": frozenset({TIMETABLE_READ, TIMETABLE_WRITE, ROSTER_WRITE}),
    "teacher": frozenset({TIMETABLE_READ}),
    "student": frozenset({TIMETABLE_READ}),
}


@dataclass(frozen=True)
class AuthContext:
    subject: str
    role: str

    @property
    def capabilities(self) -> frozenset[str]:
        return ROLE_CAPABILITIES.get(self.role, frozenset())

    def can(self, capability: str) -> bool:
        return capability in self.capabilities


def _extract_token(request: Request, creds: HTTPAuthorizationCredentials | None) -> str | None:
    if creds is not None and creds.credentials:
        return creds.credentials
    cookie_token = request.cookies.get("access_token")
    return cookie_token or None


def get_auth_context(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AuthContext:
    cached = getattr(request.state, "auth", None)
    if isinstance(cached, AuthContext):
        return cached

    token = _extract_token(request, creds)
    if not token:
        raise HTTPException(status_code=401, detail="NOT_AUTHENTICATED")
    try:
        payload = decode_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="INVALID_TOKEN")

    subject = payload.get("sub")
    role = str(payload.get("role") or "").strip().lower()
    if not subject or not role:
        raise HTTPException(status_code=401, detail="INVALID_TOKEN")

    ctx = AuthContext(subject=str(subject), role=role)
    request.state.auth = ctx
    return ctx


def require_capability(capability: str):
    def _check(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if not ctx.can(capability):
            raise HTTPException(status_code=403, detail="NOT_AUTHORIZED")
        return ctx

    return _check


def get_row_store(db: Session = Depends(get_db)) -> SqlAlchemyRowStore:
    return SqlAlchemyRowStore(db)

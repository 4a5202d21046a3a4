from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from api.deps import ROLE_CAPABILITIES
from core.security import create_access_token
from schemas.auth import DevTokenResponse


router = APIRouter()


@router.post("/token", response_model=DevTokenResponse)
def dev_token(
    role: str = Query(default="admin"),
    subject: str = Query(default="dev"),
) -> DevTokenResponse:
    """Dev-only token minting endpoint. Never mounted in production."""

    role = role.strip().lower()
    if role not in ROLE_CAPABILITIES:
        raise HTTPException(status_code=422, detail="UNKNOWN_ROLE")
    token = create_access_token(subject=subject, role=role)
    return DevTokenResponse(access_token=token, role=role)

from __future__ import annotations

from pydantic import BaseModel


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str

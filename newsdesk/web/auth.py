from __future__ import annotations
import hmac
import os
from typing import Optional

from fastapi import Header, HTTPException

def admin_token() -> Optional[str]:
    return os.getenv("ADMIN_TOKEN") or None

async def require_admin(x_admin_token: Optional[str] = Header(default=None)) -> None:
    """Mutating endpoints need the shared admin token in `x-admin-token`."""
    expected = admin_token()
    if expected is None:
        raise HTTPException(status_code=503, detail="ADMIN_TOKEN is not configured")
    if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=401, detail="Invalid admin token")

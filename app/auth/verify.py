"""
verify.py
---------
Purpose:
    Bearer API-key check for the operations endpoints.

Notes:
    - The key is shared with the frontend scheduler (BACKEND_API_KEY).
    - Provides `api_key_dependency` for protected routes.
"""

import hmac

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import settings

_security = HTTPBearer(auto_error=False)


def verify_api_key(token: str | None) -> bool:
    if not token:
        return False
    return hmac.compare_digest(token.encode(), settings.BACKEND_API_KEY.encode())


def api_key_dependency(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
) -> str:
    token = credentials.credentials if credentials else None
    if not verify_api_key(token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token

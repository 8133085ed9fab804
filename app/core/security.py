"""Bearer-token guards for the cron trigger and the admin API."""
from __future__ import annotations

import hmac

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import SecretStr

from app.config import settings

AUTH_SCHEME = HTTPBearer(auto_error=False)


def _token_matches(creds: HTTPAuthorizationCredentials | None, secret: SecretStr) -> bool:
    if creds is None or not creds.credentials:
        return False
    return hmac.compare_digest(creds.credentials, secret.get_secret_value())


def verify_cron_secret(
    creds: HTTPAuthorizationCredentials | None = Depends(AUTH_SCHEME),
) -> None:
    """Only enforced when CRON_SECRET is configured."""
    secret = settings.cron_secret
    if secret is None or not secret.get_secret_value():
        return
    if not _token_matches(creds, secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def require_admin_api_key(
    creds: HTTPAuthorizationCredentials | None = Depends(AUTH_SCHEME),
) -> None:
    """Only enforced when ADMIN_API_KEY is configured."""
    secret = settings.admin_api_key
    if secret is None or not secret.get_secret_value():
        return
    if creds is None or not creds.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization token",
        )
    if not _token_matches(creds, secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

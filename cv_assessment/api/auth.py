"""
Authentication Module

Bearer-token authentication against a shared secret. Authentication is only
enforced when a secret is configured or the environment is production.
"""

import logging
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import get_settings

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


async def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> Optional[HTTPAuthorizationCredentials]:
    """
    Verify shared secret token.

    Raises:
        HTTPException: 401 if the token is missing or invalid, 500 if auth is
            required but no secret is configured
    """
    settings = get_settings()
    if not settings.auth_required:
        return credentials

    if not settings.api_secret:
        raise HTTPException(status_code=500, detail="Server authentication not configured")

    if credentials is None or credentials.credentials != settings.api_secret:
        logger.warning("Rejected request with missing or invalid token")
        raise HTTPException(status_code=401, detail="Invalid authentication token")

    return credentials

"""
Admin API Key Authentication

Validates admin API keys for maintenance endpoints.
"""

import hmac

from fastapi import Header
from libs.result import Error

from config import ApplicationConfig
from src.api.error import raise_for_error
from src.domain.errors import ErrorCode


async def verify_admin_api_key(x_admin_api_key: str = Header(None)):
    """
    Verify admin API key from X-Admin-API-Key header.

    Service-to-service auth, separate from account access tokens.

    Raises:
        ClientError: 401 if key is missing or invalid

    Returns:
        True if valid
    """
    if not x_admin_api_key:
        raise_for_error(Error(ErrorCode.UNAUTHORIZED, "Admin API key required"))

    if not hmac.compare_digest(
        x_admin_api_key.encode("utf-8"), ApplicationConfig.ADMIN_API_KEY.encode("utf-8")
    ):
        raise_for_error(Error(ErrorCode.UNAUTHORIZED, "Invalid admin API key"))

    return True

"""
Authentication Module
=====================

JWT bearer authentication for the pool service.

Usage:
    from shared.auth import Principal, get_current_principal, require_admin

    @router.put("/fees")
    async def update(principal: Principal = Depends(get_current_principal)):
        ...
"""

from shared.auth.dependencies import (
    Principal,
    get_current_principal,
    oauth2_scheme,
    require_admin,
    require_roles,
)
from shared.auth.jwt import TokenData, create_access_token, decode_token

__all__ = [
    # JWT
    "create_access_token",
    "decode_token",
    "TokenData",
    # Dependencies
    "Principal",
    "get_current_principal",
    "require_roles",
    "require_admin",
    "oauth2_scheme",
]

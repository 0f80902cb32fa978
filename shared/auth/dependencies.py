"""
FastAPI Authentication Dependencies
===================================

Dependency injection for route protection.

Every identity that has to sign on the ledger (the depositor, the policy
authority) is the authenticated principal, never a request body field.

Version: 0.1.0
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel, Field

from shared.auth.jwt import decode_token
from shared.logging import get_logger


logger = get_logger(__name__)

# OAuth2 scheme for token extraction from Authorization header
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/auth/token",
    auto_error=False,
)


class Principal(BaseModel):
    """Authenticated ledger account."""

    account: bytes = Field(..., min_length=32, max_length=32)
    roles: list[str] = Field(default_factory=list)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_principal(
    token: Annotated[str | None, Depends(oauth2_scheme)],
) -> Principal:
    """
    Extract and validate the signing account from a JWT.

    Raises:
        HTTPException: 401 if the token is missing, invalid, or its subject
            is not a 32-byte hex account
    """
    if token is None:
        logger.warning("auth_token_missing")
        raise _credentials_exception()

    token_data = decode_token(token, verify_type="access")
    if token_data is None:
        logger.warning("auth_token_invalid")
        raise _credentials_exception()

    try:
        account = bytes.fromhex(token_data.sub.removeprefix("0x"))
    except ValueError:
        account = b""
    if len(account) != 32:
        logger.warning("auth_subject_invalid", sub=token_data.sub)
        raise _credentials_exception()

    logger.debug("principal_authenticated", account=account)
    return Principal(account=account, roles=token_data.roles)


def require_roles(required_roles: list[str]) -> Callable[..., Principal]:
    """
    Create a dependency that requires any of the given roles.

    Usage:
        @router.post("/initialize")
        async def initialize(principal: Principal = Depends(require_admin)):
            ...
    """

    async def role_checker(
        principal: Annotated[Principal, Depends(get_current_principal)],
    ) -> Principal:
        if not set(required_roles).intersection(principal.roles):
            logger.warning(
                "insufficient_roles",
                account=principal.account,
                roles=principal.roles,
                required_roles=required_roles,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return role_checker


require_admin = require_roles(["admin"])

"""
Policy Routes
=============

Pool initialization and the authority-gated policy setters.

The caller is the authenticated bearer. Initialization additionally needs
the admin role, so an unconfigured deployment cannot be claimed by whoever
calls first.
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from services.pool.dependencies import get_pool
from services.pool.models.state import GlobalConfig, TreeAccount
from services.pool.services.orchestrator import ShieldedPool
from shared.auth import Principal, get_current_principal, require_admin
from shared.logging import get_logger


logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class FeePolicyUpdate(BaseModel):
    """Update any subset of the fee rates (basis points)."""

    deposit_fee_rate: int | None = Field(default=None, description="0-10000")
    withdrawal_fee_rate: int | None = Field(default=None, description="0-10000")
    fee_error_margin: int | None = Field(default=None, description="0-10000")


class DepositLimitUpdate(BaseModel):
    """Set the largest accepted single deposit."""

    max_deposit_amount: int = Field(..., ge=0)


class PolicyResponse(BaseModel):
    """Current fee policy and deposit limit."""

    config: GlobalConfig
    max_deposit_amount: int


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/initialize", response_model=TreeAccount, status_code=status.HTTP_201_CREATED)
async def initialize_pool(
    principal: Principal = Depends(require_admin),
    pool: ShieldedPool = Depends(get_pool),
) -> TreeAccount:
    """Create the empty commitment tree and the fee policy, owned by the caller."""
    return await pool.initialize(principal.account)


@router.get("", response_model=PolicyResponse)
async def get_policy(pool: ShieldedPool = Depends(get_pool)) -> PolicyResponse:
    """Get the current fee policy."""
    return PolicyResponse(
        config=pool.global_config(),
        max_deposit_amount=pool.tree_account().max_deposit_amount,
    )


@router.put("/fees", response_model=GlobalConfig)
async def update_fee_policy(
    request: FeePolicyUpdate,
    principal: Principal = Depends(get_current_principal),
    pool: ShieldedPool = Depends(get_pool),
) -> GlobalConfig:
    """Update fee rates. Only the pool authority may call this."""
    logger.info(
        "fee_policy_update_requested",
        caller=principal.account,
        deposit_fee_rate=request.deposit_fee_rate,
        withdrawal_fee_rate=request.withdrawal_fee_rate,
        fee_error_margin=request.fee_error_margin,
    )
    return await pool.set_fee_policy(
        principal.account,
        deposit_fee_rate=request.deposit_fee_rate,
        withdrawal_fee_rate=request.withdrawal_fee_rate,
        fee_error_margin=request.fee_error_margin,
    )


@router.put("/deposit-limit", response_model=TreeAccount)
async def update_deposit_limit(
    request: DepositLimitUpdate,
    principal: Principal = Depends(get_current_principal),
    pool: ShieldedPool = Depends(get_pool),
) -> TreeAccount:
    """Update the deposit limit. Only the pool authority may call this."""
    return await pool.set_deposit_limit(principal.account, request.max_deposit_amount)

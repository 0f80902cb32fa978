"""
Transaction Routes
==================

API endpoints for shielded deposits, withdrawals and swaps.

Pool rejections propagate as PoolError and are rendered by the service's
exception handler. Deposits are funded by the authenticated bearer; withdrawals
and swaps are authorized by their proofs alone and may be relayed by anyone.
"""

from fastapi import APIRouter, Depends

from services.pool.dependencies import get_pool
from services.pool.models.events import TransactionReceipt
from services.pool.models.transactions import DepositRequest, SwapRequest, WithdrawRequest
from services.pool.services.orchestrator import ShieldedPool
from shared.auth import Principal, get_current_principal
from shared.logging import bind_context, get_logger


logger = get_logger(__name__)
router = APIRouter()


@router.post("/deposit", response_model=TransactionReceipt)
async def deposit(
    request: DepositRequest,
    principal: Principal = Depends(get_current_principal),
    pool: ShieldedPool = Depends(get_pool),
) -> TransactionReceipt:
    """
    Deposit value from the authenticated account into the pool.

    Verifies the proof against a known root and the bound external data,
    registers both nullifiers, moves the deposit into custody and appends
    the two output commitments.
    """
    bind_context(tx_kind="deposit", mint=request.mint.hex())
    logger.info(
        "deposit_requested",
        ext_amount=request.ext_data.ext_amount,
        fee=request.ext_data.fee,
    )
    return await pool.deposit(request, principal.account)


@router.post("/withdraw", response_model=TransactionReceipt)
async def withdraw(
    request: WithdrawRequest,
    pool: ShieldedPool = Depends(get_pool),
) -> TransactionReceipt:
    """
    Withdraw value from the pool to a recipient.

    The fee is paid to the fee recipient before the payout.
    """
    bind_context(tx_kind="withdraw", mint=request.mint.hex())
    logger.info(
        "withdraw_requested",
        ext_amount=request.ext_data.ext_amount,
        fee=request.ext_data.fee,
    )
    return await pool.withdraw(request)


@router.post("/swap", response_model=TransactionReceipt)
async def swap(
    request: SwapRequest,
    pool: ShieldedPool = Depends(get_pool),
) -> TransactionReceipt:
    """
    Swap pooled value of one asset into another.

    Rejects if the exchange delivers less than the declared minimum; any
    surplus above the minimum is paid to the fee recipient.
    """
    bind_context(
        tx_kind="swap",
        mint_in=request.mint_in.hex(),
        mint_out=request.mint_out.hex(),
    )
    logger.info(
        "swap_requested",
        ext_amount=request.ext_data.ext_amount,
        ext_min_amount_out=request.ext_data.ext_min_amount_out,
    )
    return await pool.swap(request)

"""
Commitment Tree Routes
======================

Read-only views of the commitment tree.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from services.pool.dependencies import get_pool
from services.pool.services.orchestrator import ShieldedPool
from shared.zk.field import ZERO_BYTES32
from shared.zk.models import Bytes32


router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================


class TreeStateResponse(BaseModel):
    """Current tree state."""

    height: int
    capacity: int
    next_index: int
    root: Bytes32
    root_history: list[Bytes32]
    max_deposit_amount: int


class RootStatusResponse(BaseModel):
    """Whether a root may still be targeted by a proof."""

    root: Bytes32
    known: bool


# ============================================================================
# Endpoints
# ============================================================================


@router.get("", response_model=TreeStateResponse)
async def get_tree(pool: ShieldedPool = Depends(get_pool)) -> TreeStateResponse:
    """
    Get the current root, next leaf index and the superseded roots still
    accepted, oldest first.
    """
    account = pool.tree_account()
    ordered = account.root_history[account.root_index :] + account.root_history[: account.root_index]
    return TreeStateResponse(
        height=account.height,
        capacity=2**account.height,
        next_index=account.next_index,
        root=account.root,
        root_history=[r for r in ordered if r != ZERO_BYTES32],
        max_deposit_amount=account.max_deposit_amount,
    )


@router.get("/roots/{root}", response_model=RootStatusResponse)
async def get_root_status(
    root: str,
    pool: ShieldedPool = Depends(get_pool),
) -> RootStatusResponse:
    """Check whether a root is the current root or still in the history."""
    try:
        value = bytes.fromhex(root.lower().removeprefix("0x"))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Root must be hex encoded",
        ) from e
    if len(value) != 32:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Root must be 32 bytes",
        )
    return RootStatusResponse(root=value, known=pool.is_known_root(value))

"""
Commitment Tree
===============

Fixed-depth append-only Merkle tree of output commitments with a bounded
history of superseded roots.

Appends are incremental: `filled_subtrees[i]` caches the last left child
seen at level i, so each append hashes exactly `height` pairs. Roots that a
proof may target are the current root plus the last `root_history_size`
superseded roots, kept in a ring buffer with a write cursor.

Version: 0.1.0
"""

from typing import Protocol

from services.pool.errors import CapacityExceeded
from services.pool.models.state import TreeAccount
from shared.logging import get_logger
from shared.zk.field import ZERO_BYTES32, is_canonical
from shared.zk.poseidon import PoseidonHasher


logger = get_logger(__name__)

DEFAULT_HEIGHT = 26
DEFAULT_ROOT_HISTORY_SIZE = 100


class TreeHasher(Protocol):
    """Two-to-one compression over 32-byte nodes."""

    name: str

    def hash_pair(self, left: bytes, right: bytes) -> bytes: ...


_zero_cache: dict[str, list[bytes]] = {}


def zero_hashes(height: int, hasher: TreeHasher) -> list[bytes]:
    """
    Roots of empty subtrees: zeros[0] is the empty leaf, zeros[height] the
    root of an empty tree of the given height.
    """
    zeros = _zero_cache.setdefault(hasher.name, [ZERO_BYTES32])
    while len(zeros) <= height:
        zeros.append(hasher.hash_pair(zeros[-1], zeros[-1]))
    return zeros[: height + 1]


def zero_root(height: int, hasher: TreeHasher | None = None) -> bytes:
    return zero_hashes(height, hasher or PoseidonHasher())[height]


class CommitmentTree:
    """
    Append-only commitment accumulator.

    Not safe for concurrent mutation; callers serialize `append`.
    """

    def __init__(
        self,
        height: int = DEFAULT_HEIGHT,
        root_history_size: int = DEFAULT_ROOT_HISTORY_SIZE,
        hasher: TreeHasher | None = None,
        authority: bytes = ZERO_BYTES32,
        max_deposit_amount: int = 0,
        bump: int = 255,
    ):
        if height < 1:
            raise ValueError("Tree height must be positive")
        if root_history_size < 1:
            raise ValueError("Root history must hold at least one root")

        self.height = height
        self.root_history_size = root_history_size
        self.hasher = hasher or PoseidonHasher()
        self.authority = authority
        self.max_deposit_amount = max_deposit_amount
        self.bump = bump

        self._zeros = zero_hashes(height, self.hasher)
        self.next_index = 0
        self.filled_subtrees = list(self._zeros[:height])
        self.root = self._zeros[height]
        self.root_history = [ZERO_BYTES32] * root_history_size
        self.root_index = 0

    @property
    def capacity(self) -> int:
        return 2**self.height

    @property
    def remaining_capacity(self) -> int:
        return self.capacity - self.next_index

    def is_known_root(self, root: bytes) -> bool:
        """True for the current root or any root still in the history ring."""
        if root == ZERO_BYTES32:
            return False
        return root == self.root or root in self.root_history

    def ensure_capacity(self, count: int) -> None:
        """
        Raises:
            CapacityExceeded: If fewer than `count` leaves still fit.
        """
        if count > self.remaining_capacity:
            raise CapacityExceeded(
                f"Tree holds {self.next_index} of {self.capacity} leaves; "
                f"cannot append {count}"
            )

    def append(self, leaf: bytes) -> int:
        """
        Insert a leaf at `next_index` and return that index.

        Raises:
            CapacityExceeded: If the tree is full.
            ValueError: If the leaf is not a canonical field element.
        """
        self.ensure_capacity(1)
        if not is_canonical(leaf):
            raise ValueError("Leaf is not a canonical field element")

        index = self.next_index
        current = leaf
        position = index
        for level in range(self.height):
            if position % 2 == 0:
                self.filled_subtrees[level] = current
                left, right = current, self._zeros[level]
            else:
                left, right = self.filled_subtrees[level], current
            current = self.hasher.hash_pair(left, right)
            position //= 2

        self.root_history[self.root_index] = self.root
        self.root_index = (self.root_index + 1) % self.root_history_size
        self.root = current
        self.next_index = index + 1

        logger.debug("leaf_appended", index=index, root=self.root)
        return index

    # =========================================================================
    # Persistence
    # =========================================================================

    def to_account(self) -> TreeAccount:
        return TreeAccount(
            authority=self.authority,
            next_index=self.next_index,
            filled_subtrees=list(self.filled_subtrees),
            root=self.root,
            root_history=list(self.root_history),
            root_index=self.root_index,
            max_deposit_amount=self.max_deposit_amount,
            height=self.height,
            bump=self.bump,
        )

    @classmethod
    def from_account(
        cls,
        account: TreeAccount,
        hasher: TreeHasher | None = None,
    ) -> "CommitmentTree":
        tree = cls(
            height=account.height,
            root_history_size=len(account.root_history),
            hasher=hasher,
            authority=account.authority,
            max_deposit_amount=account.max_deposit_amount,
            bump=account.bump,
        )
        tree.next_index = account.next_index
        tree.filled_subtrees = list(account.filled_subtrees)
        tree.root = account.root
        tree.root_history = list(account.root_history)
        tree.root_index = account.root_index
        return tree

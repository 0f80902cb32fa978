"""
Shielded Pool Orchestrator
==========================

Deposit, withdraw and swap state machines.

Each transaction runs in two phases:

1. Validation (pure, lock-free, safe to run concurrently):
   root known -> ext data binding -> public amounts -> fee -> proof
   -> direction and limits
2. Commit (under the pool lock):
   capacity and balance prechecks -> nullifier registration
   -> value movement -> commitment append -> emitted records

Registration, value movement and the append form one settlement: if any
step after registration fails, the ledger unit of work is rolled back and
the nullifiers are released before the error propagates.

Every failure is a PoolError raised where it is detected. Nothing is
retried here; resubmission against a fresher root is a client concern.

Version: 0.1.0
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from services.pool.errors import (
    ArithmeticOverflow,
    CapacityExceeded,
    DoubleSpend,
    ExternalAdapterFailure,
    InsufficientCustody,
    InvalidDirection,
    InvalidFeeRate,
    InvalidProof,
    NotInitialized,
    SlippageViolation,
    StaleOrUnknownRoot,
    Unauthorized,
)
from services.pool.models.events import (
    CommitmentAppended,
    DepositCompleted,
    PoolEvent,
    SwapCompleted,
    TransactionKind,
    TransactionReceipt,
    WithdrawCompleted,
)
from services.pool.models.state import BASIS_POINTS, GlobalConfig, TreeAccount
from services.pool.models.transactions import (
    U64_MAX,
    DepositRequest,
    ExtData,
    SwapExtData,
    SwapRequest,
    WithdrawRequest,
)
from services.pool.services.amounts import require_public_amount, require_zero_leg
from services.pool.services.binding import (
    calculate_ext_data_hash,
    calculate_swap_ext_data_hash,
    verify_ext_data_binding,
)
from services.pool.services.fees import validate_fee
from services.pool.services.merkle_tree import CommitmentTree, TreeHasher
from shared.blockchain.client import (
    AccountMeta,
    LedgerCollaborators,
    LedgerError,
    RegistrationStatus,
    config_authority,
    create_program_address,
    derive_nullifier_address,
)
from shared.config import PoolSettings, settings
from shared.logging import get_logger
from shared.zk.field import is_canonical
from shared.zk.models import CompressedProof
from shared.zk.verifier import Groth16Verifier, get_verifier


logger = get_logger(__name__)

LEAVES_PER_TRANSACTION = 2


class ShieldedPool:
    """
    Verification core of the shielded pool.

    Usage:
        pool = ShieldedPool(get_ledger_collaborators())
        await pool.initialize(authority)
        receipt = await pool.deposit(request, depositor)
    """

    def __init__(
        self,
        collaborators: LedgerCollaborators,
        pool_settings: PoolSettings | None = None,
        verifier: Groth16Verifier | None = None,
        hasher: TreeHasher | None = None,
    ):
        self.settings = pool_settings or settings.pool
        self.registry = collaborators.registry
        self.ledger = collaborators.ledger
        self.exchange = collaborators.exchange
        self.verifier = verifier or get_verifier()
        self.hasher = hasher

        self.program_id = bytes.fromhex(self.settings.program_id)
        self.nullifier_namespace = bytes.fromhex(self.settings.nullifier_namespace)
        self.authority_address = config_authority(self.program_id, self.settings.bump)

        self.tree: CommitmentTree | None = None
        self.config: GlobalConfig | None = None
        self._lock = asyncio.Lock()

    # =========================================================================
    # Lifecycle and Accessors
    # =========================================================================

    @property
    def initialized(self) -> bool:
        return self.tree is not None and self.config is not None

    async def initialize(self, authority: bytes) -> TreeAccount:
        """
        Create the empty tree and the fee policy.

        Raises:
            Unauthorized: If an admin is configured and `authority` differs,
                or the pool is already initialized.
        """
        admin = self.settings.admin
        if admin is not None and authority != bytes.fromhex(admin):
            raise Unauthorized("Only the configured admin may initialize the pool")

        async with self._lock:
            if self.initialized:
                raise Unauthorized("Pool is already initialized")

            self.tree = CommitmentTree(
                height=self.settings.tree_height,
                root_history_size=self.settings.root_history_size,
                hasher=self.hasher,
                authority=authority,
                max_deposit_amount=self.settings.max_deposit_amount,
                bump=self.settings.bump,
            )
            self.config = GlobalConfig(
                authority=authority,
                deposit_fee_rate=self.settings.deposit_fee_rate,
                withdrawal_fee_rate=self.settings.withdrawal_fee_rate,
                fee_error_margin=self.settings.fee_error_margin,
                bump=self.settings.bump,
            )

        logger.info(
            "pool_initialized",
            height=self.tree.height,
            root_history_size=self.tree.root_history_size,
            root=self.tree.root,
        )
        return self.tree.to_account()

    def custody_account(self, mint: bytes) -> bytes:
        """Pool reserve account holding `mint`, owned by the config authority."""
        return create_program_address([b"reserve", mint], self.program_id)

    def nullifier_identity(self, nullifier: bytes) -> bytes:
        return derive_nullifier_address(nullifier, self.nullifier_namespace, self.program_id)

    def _state(self) -> tuple[CommitmentTree, GlobalConfig]:
        if self.tree is None or self.config is None:
            raise NotInitialized()
        return self.tree, self.config

    def is_known_root(self, root: bytes) -> bool:
        tree, _ = self._state()
        return tree.is_known_root(root)

    def tree_account(self) -> TreeAccount:
        tree, _ = self._state()
        return tree.to_account()

    def global_config(self) -> GlobalConfig:
        _, config = self._state()
        return config

    # =========================================================================
    # Shared Validation Steps
    # =========================================================================

    def _require_known_root(self, tree: CommitmentTree, proof: CompressedProof) -> None:
        if not tree.is_known_root(proof.root):
            logger.info("unknown_root", root=proof.root, current_root=tree.root)
            raise StaleOrUnknownRoot()

    async def _require_valid_proof(
        self,
        proof: CompressedProof,
        mint_a: bytes,
        mint_b: bytes,
    ) -> None:
        if not all(is_canonical(c) for c in proof.output_commitments):
            raise InvalidProof("Output commitment is not a canonical field element")

        result = await self.verifier.verify_async(proof, mint_a, mint_b)
        if not result.valid:
            logger.info("proof_rejected", verification_time_ms=result.verification_time_ms)
            raise InvalidProof()

    @staticmethod
    def _require_distinct_nullifiers(proof: CompressedProof) -> None:
        if proof.input_nullifiers[0] == proof.input_nullifiers[1]:
            raise DoubleSpend("Input nullifiers must be distinct")

    async def _register_nullifiers(self, proof: CompressedProof) -> list[bytes]:
        identities = [self.nullifier_identity(n) for n in proof.input_nullifiers]
        try:
            status = await self.registry.register_all(identities)
        except LedgerError as e:
            raise ExternalAdapterFailure(f"Nullifier registry failed: {e}") from e

        if status == RegistrationStatus.ALREADY_EXISTS:
            logger.warning("double_spend_rejected", nullifiers=proof.input_nullifiers)
            raise DoubleSpend()
        if status != RegistrationStatus.CREATED:
            raise ExternalAdapterFailure(f"Nullifier registry returned {status.value}")

        logger.info("nullifiers_registered", identities=identities)
        return identities

    @asynccontextmanager
    async def _settlement(self, proof: CompressedProof) -> AsyncIterator[None]:
        """
        Register the nullifiers, then run the block as one ledger unit of work.

        If the block raises, the ledger rolls back every balance change made
        in it and the nullifiers are released, so a rejected transaction
        leaves no trace and its notes stay spendable.
        """
        identities = await self._register_nullifiers(proof)
        try:
            async with self.ledger.atomic():
                yield
        except Exception as e:
            try:
                await self.registry.release_all(identities)
            except LedgerError as release_error:
                logger.error(
                    "nullifier_release_failed",
                    identities=identities,
                    error=str(release_error),
                )
            else:
                logger.info("settlement_rolled_back", identities=identities, reason=str(e))
            raise

    async def _transfer(
        self,
        mint: bytes,
        source: bytes,
        destination: bytes,
        amount: int,
        authority: bytes,
    ) -> None:
        try:
            await self.ledger.transfer(mint, source, destination, amount, authority)
        except LedgerError as e:
            raise ExternalAdapterFailure(f"Transfer failed: {e}") from e

    def _append_commitments(
        self,
        tree: CommitmentTree,
        proof: CompressedProof,
        encrypted_output: bytes,
    ) -> CommitmentAppended:
        index = tree.append(proof.output_commitments[0])
        tree.append(proof.output_commitments[1])
        return CommitmentAppended(
            index=index,
            commitment0=proof.output_commitments[0],
            commitment1=proof.output_commitments[1],
            encrypted_output=encrypted_output,
        )

    def _receipt(
        self,
        kind: TransactionKind,
        tree: CommitmentTree,
        events: list[PoolEvent],
    ) -> TransactionReceipt:
        for event in events:
            logger.info(event.event, **event.model_dump(exclude={"event"}))
        return TransactionReceipt(
            kind=kind,
            events=events,
            next_index=tree.next_index,
            root=tree.root,
        )

    # =========================================================================
    # Deposit
    # =========================================================================

    async def validate_deposit(self, request: DepositRequest) -> ExtData:
        """Run every deposit check that has no side effects."""
        tree, config = self._state()
        proof = request.proof
        ext_data = ExtData.from_minified(
            self.custody_account(request.mint), request.fee_recipient, request.ext_data
        )

        self._require_known_root(tree, proof)
        digest = calculate_ext_data_hash(
            ext_data, request.encrypted_output, request.mint, request.mint
        )
        verify_ext_data_binding(digest, proof.ext_data_hash)
        require_public_amount(ext_data.ext_amount, ext_data.fee, proof.public_amount0)
        require_zero_leg(proof.public_amount1)
        validate_fee(
            ext_data.ext_amount,
            ext_data.fee,
            config.deposit_fee_rate,
            config.withdrawal_fee_rate,
            config.fee_error_margin,
        )
        await self._require_valid_proof(proof, request.mint, request.mint)

        if ext_data.ext_amount <= 0:
            raise InvalidDirection("Deposit requires a positive ext_amount")
        if ext_data.ext_amount > tree.max_deposit_amount:
            raise CapacityExceeded(
                f"Deposit {ext_data.ext_amount} exceeds limit {tree.max_deposit_amount}"
            )
        self._require_distinct_nullifiers(proof)
        return ext_data

    async def deposit(self, request: DepositRequest, depositor: bytes) -> TransactionReceipt:
        """
        Move value from the depositor into pool custody.

        Args:
            request: Proof, amounts and context identities
            depositor: Authenticated account that signs the funding transfers

        Returns:
            Receipt with CommitmentAppended and DepositCompleted records
        """
        ext_data = await self.validate_deposit(request)
        proof = request.proof
        amount, fee = ext_data.ext_amount, ext_data.fee

        async with self._lock:
            tree, _ = self._state()
            self._require_known_root(tree, proof)
            tree.ensure_capacity(LEAVES_PER_TRANSACTION)
            if amount + fee > U64_MAX:
                raise ArithmeticOverflow("Deposit plus fee exceeds u64")
            balance = await self.ledger.balance_of(depositor, request.mint)
            if balance < amount + fee:
                raise ExternalAdapterFailure(
                    f"Depositor balance {balance} cannot cover {amount + fee}"
                )

            async with self._settlement(proof):
                await self._transfer(
                    request.mint, depositor, ext_data.recipient, amount, depositor
                )
                if fee > 0:
                    await self._transfer(
                        request.mint, depositor, request.fee_recipient, fee, depositor
                    )
                appended = self._append_commitments(tree, proof, request.encrypted_output)

            return self._receipt(
                TransactionKind.DEPOSIT,
                tree,
                [appended, DepositCompleted(asset=request.mint, amount=amount)],
            )

    # =========================================================================
    # Withdraw
    # =========================================================================

    async def validate_withdraw(self, request: WithdrawRequest) -> ExtData:
        """Run every withdrawal check that has no side effects."""
        tree, config = self._state()
        proof = request.proof
        ext_data = ExtData.from_minified(
            request.recipient, request.fee_recipient, request.ext_data
        )

        self._require_known_root(tree, proof)
        digest = calculate_ext_data_hash(
            ext_data, request.encrypted_output, request.mint, request.mint
        )
        verify_ext_data_binding(digest, proof.ext_data_hash)
        require_public_amount(ext_data.ext_amount, ext_data.fee, proof.public_amount0)
        require_zero_leg(proof.public_amount1)
        validate_fee(
            ext_data.ext_amount,
            ext_data.fee,
            config.deposit_fee_rate,
            config.withdrawal_fee_rate,
            config.fee_error_margin,
        )
        await self._require_valid_proof(proof, request.mint, request.mint)

        if ext_data.ext_amount >= 0:
            raise InvalidDirection("Withdrawal requires a negative ext_amount")
        self._require_distinct_nullifiers(proof)
        return ext_data

    async def withdraw(self, request: WithdrawRequest) -> TransactionReceipt:
        """
        Pay value out of pool custody. The fee is paid before the payout.

        Returns:
            Receipt with CommitmentAppended and WithdrawCompleted records
        """
        ext_data = await self.validate_withdraw(request)
        proof = request.proof
        amount, fee = -ext_data.ext_amount, ext_data.fee
        custody = self.custody_account(request.mint)

        async with self._lock:
            tree, _ = self._state()
            self._require_known_root(tree, proof)
            tree.ensure_capacity(LEAVES_PER_TRANSACTION)
            balance = await self.ledger.balance_of(custody, request.mint)
            if balance < amount + fee:
                logger.warning(
                    "insufficient_custody",
                    balance=balance,
                    amount=amount,
                    fee=fee,
                )
                raise InsufficientCustody(f"Custody holds {balance}, needs {amount + fee}")

            async with self._settlement(proof):
                if fee > 0:
                    await self._transfer(
                        request.mint, custody, request.fee_recipient, fee, self.authority_address
                    )
                await self._transfer(
                    request.mint, custody, request.recipient, amount, self.authority_address
                )
                appended = self._append_commitments(tree, proof, request.encrypted_output)

            return self._receipt(
                TransactionKind.WITHDRAW,
                tree,
                [appended, WithdrawCompleted(asset=request.mint, amount=amount)],
            )

    # =========================================================================
    # Swap
    # =========================================================================

    async def validate_swap(self, request: SwapRequest) -> SwapExtData:
        """Run every swap check that has no side effects."""
        tree, _ = self._state()
        proof = request.proof
        ext_data = SwapExtData.from_minified(request.fee_recipient, request.ext_data)

        self._require_known_root(tree, proof)
        digest = calculate_swap_ext_data_hash(
            ext_data, request.encrypted_output, request.mint_in, request.mint_out
        )
        verify_ext_data_binding(digest, proof.ext_data_hash)

        if ext_data.ext_amount >= 0:
            raise InvalidDirection("Swap requires a negative ext_amount")
        if ext_data.ext_min_amount_out < 0:
            raise InvalidDirection("Swap minimum output must not be negative")

        require_public_amount(ext_data.ext_amount, ext_data.fee, proof.public_amount0)
        require_public_amount(ext_data.ext_min_amount_out, 0, proof.public_amount1)
        await self._require_valid_proof(proof, request.mint_in, request.mint_out)

        if not request.exchange_payload:
            raise ExternalAdapterFailure("Swap requires an exchange instruction")
        self._require_distinct_nullifiers(proof)
        return ext_data

    async def swap(self, request: SwapRequest) -> TransactionReceipt:
        """
        Exchange pooled value through the exchange adapter.

        The amount received above `ext_min_amount_out` is the realized fee
        and goes to the fee recipient.

        Returns:
            Receipt with CommitmentAppended and SwapCompleted records
        """
        ext_data = await self.validate_swap(request)
        proof = request.proof
        amount_in = -ext_data.ext_amount
        min_out = ext_data.ext_min_amount_out
        input_custody = self.custody_account(request.mint_in)
        output_custody = self.custody_account(request.mint_out)

        async with self._lock:
            tree, _ = self._state()
            self._require_known_root(tree, proof)
            tree.ensure_capacity(LEAVES_PER_TRANSACTION)

            async with self._settlement(proof):
                input_before = await self.ledger.balance_of(input_custody, request.mint_in)
                output_before = await self.ledger.balance_of(output_custody, request.mint_out)

                accounts = [
                    AccountMeta(address=input_custody, mint=request.mint_in, is_writable=True),
                    AccountMeta(address=output_custody, mint=request.mint_out, is_writable=True),
                    AccountMeta(address=self.authority_address, is_signer=True),
                ]
                try:
                    await self.exchange.execute(
                        request.exchange_program,
                        request.exchange_payload,
                        accounts,
                        self.authority_address,
                    )
                except LedgerError as e:
                    raise ExternalAdapterFailure(f"Exchange failed: {e}") from e

                input_after = await self.ledger.balance_of(input_custody, request.mint_in)
                output_after = await self.ledger.balance_of(output_custody, request.mint_out)

                if input_before - input_after > amount_in:
                    raise ExternalAdapterFailure(
                        f"Exchange spent {input_before - input_after}, authorized {amount_in}"
                    )
                received = output_after - output_before
                if received < 0:
                    raise ArithmeticOverflow("Output custody balance decreased during swap")

                realized_fee = received - min_out
                if realized_fee < 0:
                    logger.warning(
                        "swap_slippage_exceeded", received=received, min_amount_out=min_out
                    )
                    raise SlippageViolation(f"Received {received}, minimum {min_out}")
                max_fee = self.settings.max_swap_fee
                if max_fee is not None and realized_fee > max_fee:
                    raise SlippageViolation(f"Realized fee {realized_fee} exceeds cap {max_fee}")

                if realized_fee > 0:
                    await self._transfer(
                        request.mint_out,
                        output_custody,
                        request.fee_recipient,
                        realized_fee,
                        self.authority_address,
                    )
                appended = self._append_commitments(tree, proof, request.encrypted_output)

            return self._receipt(
                TransactionKind.SWAP,
                tree,
                [
                    appended,
                    SwapCompleted(
                        asset_in=request.mint_in,
                        asset_out=request.mint_out,
                        amount_in=amount_in,
                        amount_out=received,
                        realized_fee=realized_fee,
                    ),
                ],
            )

    # =========================================================================
    # Policy
    # =========================================================================

    async def set_deposit_limit(self, caller: bytes, new_limit: int) -> TreeAccount:
        """
        Raises:
            Unauthorized: If `caller` is not the tree authority.
            ArithmeticOverflow: If the limit does not fit in u64.
        """
        async with self._lock:
            tree, _ = self._state()
            if caller != tree.authority:
                raise Unauthorized()
            if not 0 <= new_limit <= U64_MAX:
                raise ArithmeticOverflow("Deposit limit must fit in u64")
            tree.max_deposit_amount = new_limit

        logger.info("deposit_limit_updated", max_deposit_amount=new_limit)
        return tree.to_account()

    async def set_fee_policy(
        self,
        caller: bytes,
        deposit_fee_rate: int | None = None,
        withdrawal_fee_rate: int | None = None,
        fee_error_margin: int | None = None,
    ) -> GlobalConfig:
        """
        Update any subset of the fee rates.

        Raises:
            Unauthorized: If `caller` is not the config authority.
            InvalidFeeRate: If a rate is outside 0..10000.
        """
        updates = {
            "deposit_fee_rate": deposit_fee_rate,
            "withdrawal_fee_rate": withdrawal_fee_rate,
            "fee_error_margin": fee_error_margin,
        }
        updates = {k: v for k, v in updates.items() if v is not None}

        async with self._lock:
            _, config = self._state()
            if caller != config.authority:
                raise Unauthorized()
            for name, rate in updates.items():
                if not 0 <= rate <= BASIS_POINTS:
                    raise InvalidFeeRate(f"{name}={rate} outside 0..{BASIS_POINTS}")
            self.config = config.model_copy(update=updates)

        logger.info("fee_policy_updated", **updates)
        return self.config

"""Service owning user balances and the credit transaction log."""
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from creditledger.config import settings
from creditledger.exceptions import DuplicateUserError, ValidationError
from creditledger.metrics import (
    credit_debits_rejected_total,
    credits_debited_total,
    credits_granted_total,
    users_created_total,
)
from creditledger.models.base import utcnow
from creditledger.models.credit_transaction import CreditTransaction, TransactionAction, TransactionSource
from creditledger.models.user import User
from creditledger.schemas.credit import DeductionResult, LedgerSummary

logger = structlog.get_logger(__name__)


class CreditService:
    """
    Ledger authority: the only writer of ``users.credits`` and ``credit_transactions``.

    Methods flush but never commit; the request-scoped session commits, so a
    balance change and its transaction row land in the same database
    transaction.
    """

    def __init__(self, db: AsyncSession):
        """Initialize credit service with database session."""
        self.db = db

    async def get_user(self, user_id: UUID) -> Optional[User]:
        """
        Get user by ID.

        Args:
            user_id: User UUID

        Returns:
            User or None if not found
        """
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_phone(self, phone_number: str) -> Optional[User]:
        """
        Get user by phone number without creating it.

        Args:
            phone_number: User's phone number

        Returns:
            User or None if not found
        """
        result = await self.db.execute(select(User).where(User.phone_number == phone_number))
        return result.scalar_one_or_none()

    async def get_or_create_user(self, phone_number: str) -> User:
        """
        Get user by phone number, creating it with the signup bonus if missing.

        Two concurrent first lookups race on the insert; the unique index on
        ``phone_number`` lets one win and the loser re-reads the winner's row.

        Args:
            phone_number: User's phone number

        Returns:
            Existing or newly created user
        """
        user = await self.get_user_by_phone(phone_number)
        if user:
            return user

        try:
            return await self._create_user(phone_number)
        except DuplicateUserError:
            logger.info("user_create_race_lost", phone_number=phone_number)
            user = await self.get_user_by_phone(phone_number)
            if user is None:
                raise
            return user

    async def _create_user(self, phone_number: str) -> User:
        """
        Insert a user and its signup-bonus transaction inside one savepoint.

        Raises:
            DuplicateUserError: If the phone number was inserted concurrently
        """
        bonus = settings.signup_bonus_credits
        logger.info("user_creating", phone_number=phone_number)

        try:
            async with self.db.begin_nested():
                user = User(phone_number=phone_number, credits=bonus)
                self.db.add(user)
                await self.db.flush()

                if bonus > 0:
                    self.db.add(
                        CreditTransaction(
                            user_id=user.id,
                            action=TransactionAction.CREDIT,
                            credits=bonus,
                            source=TransactionSource.SYSTEM,
                            reference_id=None,
                        )
                    )
                    await self.db.flush()
        except IntegrityError as e:
            raise DuplicateUserError(phone_number) from e

        users_created_total.inc()
        if bonus > 0:
            credits_granted_total.labels(source=TransactionSource.SYSTEM).inc(bonus)

        logger.info("user_created", user_id=str(user.id), credits=bonus)
        return user

    async def deduct_credit(self, phone_number: str) -> DeductionResult:
        """
        Deduct one credit for a service use.

        The decrement is a single conditional UPDATE (``credits >= 1``), so of
        several concurrent debits against a balance of 1 exactly one succeeds.

        Args:
            phone_number: User's phone number

        Returns:
            DeductionResult with success flag and remaining credits
        """
        user = await self.get_or_create_user(phone_number)

        if user.credits <= 0:
            credit_debits_rejected_total.inc()
            return DeductionResult(success=False, remaining_credits=user.credits)

        result = await self.db.execute(
            update(User)
            .where(User.id == user.id, User.credits >= 1)
            .values(credits=User.credits - 1, updated_at=utcnow())
            .returning(User.credits)
            .execution_options(synchronize_session=False)
        )
        new_balance = result.scalar_one_or_none()

        if new_balance is None:
            # Balance was exhausted by a concurrent request
            current = await self._current_balance(user.id)
            set_committed_value(user, "credits", current)
            credit_debits_rejected_total.inc()
            logger.info("credit_deduction_lost_race", user_id=str(user.id), remaining_credits=current)
            return DeductionResult(success=False, remaining_credits=current)

        set_committed_value(user, "credits", new_balance)
        self.db.add(
            CreditTransaction(
                user_id=user.id,
                action=TransactionAction.DEBIT,
                credits=1,
                source=TransactionSource.IMAGE_GENERATION,
                reference_id=None,
            )
        )
        await self.db.flush()

        credits_debited_total.inc()
        logger.info("credit_deducted", user_id=str(user.id), remaining_credits=new_balance)

        return DeductionResult(success=True, remaining_credits=new_balance)

    async def add_credits(
        self,
        phone_number: str,
        amount: int,
        source: str,
        reference_id: Optional[str] = None,
    ) -> User:
        """
        Add credits to a user's balance.

        Args:
            phone_number: User's phone number
            amount: Number of credits to add (must be positive)
            source: Source of credits (payment, webhook_payment, ...)
            reference_id: External reference, e.g. the Razorpay payment ID

        Returns:
            Updated user

        Raises:
            ValidationError: If amount is not a positive integer
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError(f"Credit amount must be a positive integer, got {amount!r}")

        user = await self.get_or_create_user(phone_number)

        await self.db.execute(
            update(User)
            .where(User.id == user.id)
            .values(credits=User.credits + amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        self.db.add(
            CreditTransaction(
                user_id=user.id,
                action=TransactionAction.CREDIT,
                credits=amount,
                source=source,
                reference_id=reference_id,
            )
        )
        await self.db.flush()
        await self.db.refresh(user)

        credits_granted_total.labels(source=source).inc(amount)
        logger.info(
            "credits_added",
            user_id=str(user.id),
            credits=amount,
            source=source,
            reference_id=reference_id,
            new_total=user.credits,
        )

        return user

    async def get_credit_history(self, user_id: UUID, limit: Optional[int] = None) -> list[CreditTransaction]:
        """
        Get credit transactions for a user, newest first.

        Args:
            user_id: User UUID
            limit: Maximum number of transactions (default from settings)

        Returns:
            List of credit transactions
        """
        if limit is None:
            limit = settings.credit_history_default_limit

        result = await self.db.execute(
            select(CreditTransaction)
            .where(CreditTransaction.user_id == user_id)
            .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_ledger_summary(self, user_id: UUID) -> Optional[LedgerSummary]:
        """
        Compare the stored balance with the sum of the transaction log.

        A mismatch means a balance write and its log row diverged; it is
        logged for offline repair rather than corrected here.

        Args:
            user_id: User UUID

        Returns:
            LedgerSummary, or None if the user does not exist
        """
        balance = await self._current_balance(user_id)
        if balance is None:
            return None

        result = await self.db.execute(
            select(
                func.coalesce(
                    func.sum(case((CreditTransaction.action == TransactionAction.CREDIT, CreditTransaction.credits), else_=0)),
                    0,
                ),
                func.coalesce(
                    func.sum(case((CreditTransaction.action == TransactionAction.DEBIT, CreditTransaction.credits), else_=0)),
                    0,
                ),
            ).where(CreditTransaction.user_id == user_id)
        )
        total_credited, total_debited = result.one()
        ledger_balance = int(total_credited) - int(total_debited)
        consistent = ledger_balance == balance

        if not consistent:
            logger.warning(
                "ledger_inconsistency_detected",
                user_id=str(user_id),
                balance=balance,
                ledger_balance=ledger_balance,
            )

        return LedgerSummary(
            user_id=user_id,
            balance=balance,
            total_credited=int(total_credited),
            total_debited=int(total_debited),
            ledger_balance=ledger_balance,
            consistent=consistent,
        )

    async def _current_balance(self, user_id: UUID) -> Optional[int]:
        """Read the committed balance, bypassing the identity map."""
        result = await self.db.execute(select(User.credits).where(User.id == user_id))
        return result.scalar_one_or_none()

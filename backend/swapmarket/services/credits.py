"""Swap credit accounting

Every balance change is a single UPDATE with arithmetic in SQL, so concurrent
requests cannot lose an increment or overdraw an account. None of these
methods commit.
"""

import logging
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.config import get_settings
from swapmarket.core.database import utc_now
from swapmarket.core.exceptions import ConflictError
from swapmarket.models.user import SwapLimit

logger = logging.getLogger(__name__)
settings = get_settings()


class InsufficientCreditsError(ConflictError):
    def __init__(self):
        super().__init__("No swap credits available")


def default_account(user_id: UUID) -> SwapLimit:
    return SwapLimit(
        user_id=user_id,
        total_swaps=settings.default_swap_allowance,
        used_swaps=0,
        earned_swaps=0,
    )


class CreditService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def ensure_account(self, user_id: UUID) -> SwapLimit:
        """Return the user's credit row, creating it with the default allowance"""
        account = await self.db.get(SwapLimit, user_id, populate_existing=True)
        if account is None:
            account = default_account(user_id)
            self.db.add(account)
            await self.db.flush()
        return account

    async def get_account(self, user_id: UUID) -> SwapLimit:
        """Read-only view; a missing row is returned as an unsaved default account"""
        account = await self.db.get(SwapLimit, user_id, populate_existing=True)
        if account is None:
            return default_account(user_id)
        return account

    async def get_balance(self, user_id: UUID) -> int:
        account = await self.get_account(user_id)
        return account.available

    async def consume(self, user_id: UUID) -> None:
        await self.ensure_account(user_id)
        result = await self.db.execute(
            update(SwapLimit)
            .where(
                SwapLimit.user_id == user_id,
                SwapLimit.used_swaps < SwapLimit.total_swaps + SwapLimit.earned_swaps,
            )
            .values(used_swaps=SwapLimit.used_swaps + 1, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise InsufficientCreditsError()

    async def refund(self, user_id: UUID) -> None:
        await self.db.execute(
            update(SwapLimit)
            .where(SwapLimit.user_id == user_id, SwapLimit.used_swaps > 0)
            .values(used_swaps=SwapLimit.used_swaps - 1, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )

    async def award(self, user_id: UUID, amount: int = 1) -> None:
        await self.ensure_account(user_id)
        await self.db.execute(
            update(SwapLimit)
            .where(SwapLimit.user_id == user_id)
            .values(earned_swaps=SwapLimit.earned_swaps + amount, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        logger.info(f"Awarded {amount} swap credit(s) to {user_id}")

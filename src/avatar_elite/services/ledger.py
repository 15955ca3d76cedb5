"""Credit ledger with per-user atomic consume and add."""

import asyncio
import logging
from dataclasses import dataclass, field

from avatar_elite.domain.errors import StoreUnavailableError
from avatar_elite.domain.models import DEFAULT_STARTING_CREDITS, ConsumeResult
from avatar_elite.services.accounts import AccountRepository
from avatar_elite.services.mutation_queue import MutationQueue

LOW_BALANCE_THRESHOLD = 5
UNMETERED_BALANCE = 999

_QUALITY_COSTS = {"4k": 10, "2k": 7}
_DEFAULT_COST = 5

_logger = logging.getLogger(__name__)


def cost_for_quality(quality: str) -> int:
    """Return the credit cost for a quality tier."""
    return _QUALITY_COSTS.get(quality, _DEFAULT_COST)


def is_low_balance(remaining: int) -> bool:
    """Return True when the balance should trigger a top-up warning."""
    return remaining < LOW_BALANCE_THRESHOLD


@dataclass
class CreditLedger:
    """Per-user credit balance backed by the account store.

    Reads and writes for one user go through the mutation queue, so concurrent
    consumes can neither overdraw nor lose a decrement. With no store
    configured the ledger runs unmetered and every consume succeeds.
    """

    repository: AccountRepository | None
    queue: MutationQueue = field(default_factory=MutationQueue)
    starting_credits: int = DEFAULT_STARTING_CREDITS

    async def consume(self, telegram_user_id: int, amount: int) -> ConsumeResult:
        """Atomically take ``amount`` credits if the balance covers it."""
        repository = self.repository
        if repository is None:
            _logger.warning(
                "No account store configured; allowing %s credits for %s",
                amount,
                telegram_user_id,
            )
            return ConsumeResult(ok=True, remaining=UNMETERED_BALANCE)

        async def _consume() -> ConsumeResult:
            try:
                balance = await asyncio.to_thread(
                    repository.read_credits, telegram_user_id
                )
            except Exception:
                _logger.exception("Failed to read credits for %s", telegram_user_id)
                return ConsumeResult(ok=False, remaining=0)
            if balance is None:
                _logger.error("No account found for %s", telegram_user_id)
                return ConsumeResult(ok=False, remaining=0)
            if balance < amount:
                _logger.info(
                    "Insufficient credits for %s: have %s, need %s",
                    telegram_user_id,
                    balance,
                    amount,
                )
                return ConsumeResult(ok=False, remaining=balance)
            new_balance = balance - amount
            try:
                await asyncio.to_thread(
                    repository.write_credits, telegram_user_id, new_balance
                )
            except Exception:
                _logger.exception("Failed to update credits for %s", telegram_user_id)
                return ConsumeResult(ok=False, remaining=0)
            _logger.info(
                "Consumed %s credits for %s, balance %s",
                amount,
                telegram_user_id,
                new_balance,
            )
            return ConsumeResult(ok=True, remaining=new_balance)

        return await self.queue.run(telegram_user_id, _consume)

    async def add(self, telegram_user_id: int, amount: int) -> int | None:
        """Atomically add credits and return the new balance.

        Returns None when no store is configured.
        """
        if amount <= 0:
            raise ValueError("Credit amount must be positive")
        repository = self.repository
        if repository is None:
            _logger.warning(
                "No account store configured; dropping %s credits for %s",
                amount,
                telegram_user_id,
            )
            return None

        async def _add() -> int:
            try:
                balance = await asyncio.to_thread(
                    repository.read_credits, telegram_user_id
                )
                if balance is None:
                    account = await asyncio.to_thread(
                        repository.get_or_create,
                        telegram_user_id,
                        self.starting_credits,
                    )
                    balance = account.credits
                new_balance = balance + amount
                await asyncio.to_thread(
                    repository.write_credits, telegram_user_id, new_balance
                )
            except Exception as exc:
                _logger.exception("Failed to add credits for %s", telegram_user_id)
                raise StoreUnavailableError("Account store unavailable") from exc
            _logger.info(
                "Added %s credits for %s, balance %s",
                amount,
                telegram_user_id,
                new_balance,
            )
            return new_balance

        return await self.queue.run(telegram_user_id, _add)

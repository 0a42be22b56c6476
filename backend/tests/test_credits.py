import pytest

from swapmarket.models import SwapLimit
from swapmarket.services.credits import CreditService, InsufficientCreditsError


async def test_new_account_gets_default_allowance(db, alice):
    account = await CreditService(db).ensure_account(alice.id)
    assert (account.total_swaps, account.used_swaps, account.earned_swaps) == (3, 0, 0)
    assert account.available == 3


async def test_consume_until_empty(db, alice):
    credits = CreditService(db)
    for expected in (2, 1, 0):
        await credits.consume(alice.id)
        assert await credits.get_balance(alice.id) == expected

    with pytest.raises(InsufficientCreditsError):
        await credits.consume(alice.id)
    assert await credits.get_balance(alice.id) == 0


async def test_award_extends_balance(db, alice):
    credits = CreditService(db)
    for _ in range(3):
        await credits.consume(alice.id)
    await credits.award(alice.id, 2)

    assert await credits.get_balance(alice.id) == 2
    account = await db.get(SwapLimit, alice.id)
    assert account.earned_swaps == 2


async def test_refund_never_goes_below_zero_used(db, alice):
    credits = CreditService(db)
    await credits.refund(alice.id)
    assert await credits.get_balance(alice.id) == 3

    await credits.consume(alice.id)
    await credits.refund(alice.id)
    assert await credits.get_balance(alice.id) == 3


async def test_missing_account_reads_as_default_without_being_created(db, make_user):
    user = await make_user("carol@example.com")
    await db.delete(await db.get(SwapLimit, user.id))
    await db.flush()

    credits = CreditService(db)
    assert await credits.get_balance(user.id) == 3
    account = await credits.get_account(user.id)
    assert (account.total_swaps, account.used_swaps, account.earned_swaps) == (3, 0, 0)
    assert await db.get(SwapLimit, user.id) is None
    assert account not in db


async def test_error_is_a_conflict():
    error = InsufficientCreditsError()
    assert error.status_code == 409
    assert error.detail == "No swap credits available"

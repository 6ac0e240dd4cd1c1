"""
BalanceManagementService 통합 테스트

원자적 갱신, 음수 잔액 거부, 버킷별 직렬화, 잔액 조회
"""

import asyncio
from decimal import Decimal

import pytest

from core.balance.models import BalanceUpdate
from core.errors import InsufficientBalance, InvalidAmount, InvalidBucket
from core.ledger.types import Actor, Bucket
from core.service import Cashbook
from core.types import BalanceSource, TransactionType
from tests.integration.utils.helpers import DAY1, DAY2, at


class TestUpdateBalance:
    """update_balance 테스트"""

    @pytest.mark.asyncio
    async def test_income_then_expense(self, cashbook: Cashbook) -> None:
        """입금 후 출금"""
        first = await cashbook.record_payment(Bucket.cash(), "500", "income")
        second = await cashbook.record_payment(Bucket.cash(), Decimal("200"), "expense")

        assert (first.before, first.after, first.change_amount) == (
            Decimal("0"),
            Decimal("500"),
            Decimal("500"),
        )
        assert (second.before, second.after, second.change_amount) == (
            Decimal("500"),
            Decimal("300"),
            Decimal("-200"),
        )
        assert await cashbook.get_balance(Bucket.cash()) == Decimal("300")

    @pytest.mark.asyncio
    async def test_ledger_entry_recorded(self, cashbook: Cashbook) -> None:
        """원장 항목 필드"""
        actor = Actor(user_id="u-7", user_name="Cashier")
        result = await cashbook.record_payment(
            Bucket.bank("BA-1"),
            "250",
            TransactionType.INCOME,
            source=BalanceSource.SALE_PAYMENT,
            source_id="S-1",
            actor=actor,
            description="Sale S-1",
        )

        entry = await cashbook.ledger.get(result.transaction_id)

        assert entry.date == DAY1
        assert entry.bucket == Bucket.bank("BA-1")
        assert entry.source == "sale_payment"
        assert entry.source_id == "S-1"
        assert entry.user_id == "u-7"
        assert entry.user_name == "Cashier"
        assert entry.before_balance == Decimal("0")
        assert entry.after_balance == Decimal("250")

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, cashbook: Cashbook) -> None:
        """음수 잔액 거부 (원장 변경 없음)"""
        await cashbook.record_payment(Bucket.cash(), "30", "income")

        with pytest.raises(InsufficientBalance) as exc_info:
            await cashbook.record_payment(Bucket.cash(), "50", "expense")

        assert exc_info.value.bucket == "cash"
        assert exc_info.value.balance == Decimal("30")
        assert exc_info.value.requested == Decimal("50")
        assert len(await cashbook.ledger.query()) == 1
        assert await cashbook.get_balance(Bucket.cash()) == Decimal("30")

    @pytest.mark.asyncio
    async def test_expense_to_exactly_zero(self, cashbook: Cashbook) -> None:
        """잔액을 정확히 0으로 만드는 출금은 허용"""
        await cashbook.record_payment(Bucket.cash(), "40", "income")

        result = await cashbook.record_payment(Bucket.cash(), "40", "expense")

        assert result.after == Decimal("0")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-5", "abc"])
    async def test_invalid_amount(self, cashbook: Cashbook, amount: str) -> None:
        """0 이하 / 숫자가 아닌 금액"""
        with pytest.raises(InvalidAmount):
            await cashbook.record_payment(Bucket.cash(), amount, "income")

        assert await cashbook.ledger.query() == []

    def test_invalid_bucket(self) -> None:
        """참조 ID 없는 은행 버킷"""
        with pytest.raises(InvalidBucket):
            Bucket.bank("")

    @pytest.mark.asyncio
    async def test_concurrent_updates_serialized(self, cashbook: Cashbook) -> None:
        """같은 버킷 동시 갱신은 직렬화되어 before가 겹치지 않음"""
        results = await asyncio.gather(
            cashbook.record_payment(Bucket.cash(), "100", "income"),
            cashbook.record_payment(Bucket.cash(), "100", "income"),
        )

        assert sorted(r.before for r in results) == [Decimal("0"), Decimal("100")]
        assert sorted(r.after for r in results) == [Decimal("100"), Decimal("200")]
        assert await cashbook.get_balance(Bucket.cash()) == Decimal("200")

    @pytest.mark.asyncio
    async def test_buckets_are_independent(self, cashbook: Cashbook) -> None:
        """버킷끼리 잔액이 섞이지 않음"""
        await cashbook.record_payment(Bucket.cash(), "100", "income")
        await cashbook.record_payment(Bucket.bank("BA-1"), "300", "income")
        await cashbook.record_payment(Bucket.bank("BA-2"), "50", "income")

        with pytest.raises(InsufficientBalance):
            await cashbook.record_payment(Bucket.bank("BA-2"), "60", "expense")

        assert await cashbook.get_balances() == {
            "cash": Decimal("100"),
            "bank:BA-1": Decimal("300"),
            "bank:BA-2": Decimal("50"),
        }

    @pytest.mark.asyncio
    async def test_first_update_creates_opening(self, cashbook: Cashbook) -> None:
        """그날 첫 갱신 시 개시 잔액 행 자동 생성 (갱신 전 값)"""
        assert await cashbook.repository.get_opening(DAY1) is None

        await cashbook.record_payment(Bucket.cash(), "100", "income")
        opening = await cashbook.repository.get_opening(DAY1)

        assert opening is not None
        assert opening.balances.cash == Decimal("0")


class TestUpdateBalances:
    """여러 버킷 일괄 갱신 테스트"""

    @pytest.mark.asyncio
    async def test_all_or_nothing(self, cashbook: Cashbook) -> None:
        """하나라도 실패하면 전부 취소"""
        updates = [
            BalanceUpdate(
                bucket=Bucket.cash(),
                amount=Decimal("100"),
                direction=TransactionType.INCOME,
            ),
            BalanceUpdate(
                bucket=Bucket.bank("BA-1"),
                amount=Decimal("50"),
                direction=TransactionType.EXPENSE,
            ),
        ]

        with pytest.raises(InsufficientBalance):
            await cashbook.balances.update_balances(updates)

        assert await cashbook.ledger.query() == []
        assert await cashbook.repository.get_opening(DAY1) is None

    @pytest.mark.asyncio
    async def test_rolled_back_entries_never_visible(self, cashbook: Cashbook) -> None:
        """취소되는 일괄 갱신 도중에도 다른 Task는 미커밋 원장 항목을 보지 못함"""
        updates = [
            BalanceUpdate(
                bucket=Bucket.cash(),
                amount=Decimal("100"),
                direction=TransactionType.INCOME,
            ),
            BalanceUpdate(
                bucket=Bucket.bank("BA-1"),
                amount=Decimal("50"),
                direction=TransactionType.EXPENSE,
            ),
        ]
        observed: list[int] = []
        done = asyncio.Event()

        async def writer() -> None:
            try:
                await cashbook.balances.update_balances(updates)
            finally:
                done.set()

        async def reader() -> None:
            while not done.is_set():
                observed.append(len(await cashbook.ledger.query()))
                observed.append(int(await cashbook.get_balance(Bucket.cash())))
                await asyncio.sleep(0)

        results = await asyncio.gather(writer(), reader(), return_exceptions=True)

        assert isinstance(results[0], InsufficientBalance)
        assert results[1] is None
        assert observed
        assert set(observed) == {0}
        assert await cashbook.ledger.query() == []

    @pytest.mark.asyncio
    async def test_results_in_request_order(self, cashbook: Cashbook) -> None:
        """결과는 요청 순서"""
        updates = [
            BalanceUpdate(
                bucket=Bucket.bank("BA-9"),
                amount=Decimal("10"),
                direction=TransactionType.INCOME,
            ),
            BalanceUpdate(
                bucket=Bucket.cash(),
                amount=Decimal("20"),
                direction=TransactionType.INCOME,
            ),
        ]

        results = await cashbook.balances.update_balances(updates)

        assert [r.after for r in results] == [Decimal("10"), Decimal("20")]

    @pytest.mark.asyncio
    async def test_empty(self, cashbook: Cashbook) -> None:
        """빈 요청"""
        assert await cashbook.balances.update_balances([]) == []


class TestGetBalance:
    """잔액 조회 테스트"""

    @pytest.mark.asyncio
    async def test_empty_ledger(self, cashbook: Cashbook) -> None:
        """원장이 비어 있으면 0"""
        assert await cashbook.get_balance(Bucket.cash()) == Decimal("0")
        assert await cashbook.get_balance(Bucket.card("C-1")) == Decimal("0")

    @pytest.mark.asyncio
    async def test_past_day(self, cashbook: Cashbook, clock) -> None:
        """과거 날짜는 그날 마지막 순간 기준"""
        await cashbook.record_payment(Bucket.cash(), "100", "income")
        clock.set(at(DAY2, 9))
        await cashbook.record_payment(Bucket.cash(), "40", "expense")

        assert await cashbook.get_balance(Bucket.cash(), DAY1) == Decimal("100")
        assert await cashbook.get_balance(Bucket.cash(), DAY2) == Decimal("60")
        assert await cashbook.get_balance(Bucket.cash()) == Decimal("60")

    @pytest.mark.asyncio
    async def test_add_to_opening_balance(self, cashbook: Cashbook) -> None:
        """기준 잔액 추가는 add_opening_balance 원장 항목으로 기록"""
        result = await cashbook.add_to_opening_balance(DAY1, "75", Bucket.cash())

        entry = await cashbook.ledger.get(result.transaction_id)

        assert entry.source == "add_opening_balance"
        assert entry.type == TransactionType.INCOME
        assert await cashbook.get_balance(Bucket.cash()) == Decimal("75")

"""
OpeningBalanceManager 통합 테스트

기준 잔액 생성/조회/수정/삭제, 수정 시 원장 조정 항목 기록
"""

from decimal import Decimal

import pytest

from core.errors import DuplicateBaseline, InsufficientBalance, NotFound
from core.ledger.types import Actor, Bucket
from core.service import Cashbook
from tests.integration.utils.helpers import DAY1, DAY2


class TestCreate:
    """기준 잔액 생성 테스트"""

    @pytest.mark.asyncio
    async def test_create(self, cashbook: Cashbook) -> None:
        """생성 시 원장 항목은 기록하지 않음"""
        opening = await cashbook.create_opening_balance(
            DAY1,
            "1000",
            bank_balances=[{"bankAccountId": "BA-1", "balance": "250.50"}],
            card_balances=[{"cardId": "C1", "balance": "20"}],
            notes="Start of month",
            actor=Actor(user_id="u-1", user_name="Manager"),
        )

        assert opening.opening_id is not None
        assert opening.is_stored
        assert opening.balances.cash == Decimal("1000")
        assert opening.balances.banks == {"BA-1": Decimal("250.50")}
        assert opening.balances.cards == {"C1": Decimal("20")}
        assert opening.notes == "Start of month"
        assert opening.created_by == "u-1"
        assert await cashbook.ledger.query() == []

    @pytest.mark.asyncio
    async def test_duplicate(self, cashbook: Cashbook) -> None:
        """같은 날짜 두 번 생성"""
        await cashbook.create_opening_balance(DAY1, "100")

        with pytest.raises(DuplicateBaseline):
            await cashbook.create_opening_balance(DAY1, "200")

    @pytest.mark.asyncio
    async def test_negative_cash(self, cashbook: Cashbook) -> None:
        """음수 현금 기준값 거부"""
        with pytest.raises(ValueError):
            await cashbook.create_opening_balance(DAY1, "-1")

        assert await cashbook.openings.get_by_date(DAY1) is None


class TestGetOpeningBalance:
    """개시 잔액 조회 테스트"""

    @pytest.mark.asyncio
    async def test_stored_row_shows_live_cash(self, cashbook: Cashbook) -> None:
        """저장된 행은 현금을 실시간 잔액으로 보여주고 기준값은 그대로"""
        await cashbook.create_opening_balance(DAY1, "1000")
        await cashbook.record_payment(Bucket.cash(), "300", "expense")

        opening = await cashbook.get_opening_balance(DAY1)
        baseline = await cashbook.openings.get_baseline(DAY1)

        assert opening.balances.cash == Decimal("700")
        assert baseline.balances.cash == Decimal("1000")

    @pytest.mark.asyncio
    async def test_synthesized(self, cashbook: Cashbook) -> None:
        """저장된 행이 없으면 전일 마감에서 합성"""
        await cashbook.create_opening_balance(DAY1, "400")

        opening = await cashbook.get_opening_balance(DAY2)

        assert opening.opening_id is None
        assert not opening.is_stored
        assert opening.balances.cash == Decimal("400")

    @pytest.mark.asyncio
    async def test_list_and_get(self, cashbook: Cashbook) -> None:
        """ID 조회 / 구간 목록"""
        first = await cashbook.create_opening_balance(DAY1, "1")
        second = await cashbook.create_opening_balance(DAY2, "2")

        listed = await cashbook.openings.list_openings(DAY1, DAY2)

        assert [o.opening_id for o in listed] == [first.opening_id, second.opening_id]
        assert (await cashbook.openings.get(second.opening_id)).balances.cash == Decimal("2")
        with pytest.raises(NotFound):
            await cashbook.openings.get("ob-missing")

    @pytest.mark.asyncio
    async def test_running_balance(self, cashbook: Cashbook) -> None:
        """현재 시각까지의 실시간 잔액"""
        await cashbook.create_opening_balance(
            DAY1, "100", bank_balances=[{"bankAccountId": "BA-1", "balance": "10"}]
        )
        await cashbook.record_payment(Bucket.cash(), "50", "income")
        await cashbook.record_payment(Bucket.bank("BA-2"), "5", "income")

        running = await cashbook.openings.get_running_balance(DAY1)

        assert running.cash == Decimal("150")
        assert running.banks == {"BA-1": Decimal("10"), "BA-2": Decimal("5")}


class TestUpdate:
    """기준 잔액 수정 테스트"""

    @pytest.mark.asyncio
    async def test_increase_is_idempotent(self, cashbook: Cashbook) -> None:
        """같은 값으로 두 번 수정하면 조정 항목은 한 번만"""
        opening = await cashbook.create_opening_balance(DAY1, "1000")

        first = await cashbook.update_opening_balance(opening.opening_id, new_cash="1500")
        second = await cashbook.update_opening_balance(opening.opening_id, new_cash="1500")

        assert [a.change_amount for a in first.adjustments] == [Decimal("500")]
        assert second.adjustments == []
        assert first.opening.balances.cash == Decimal("1000")
        entries = await cashbook.ledger.query(source="add_opening_balance")
        assert len(entries) == 1
        assert entries[0].source_id == opening.opening_id
        assert await cashbook.get_balance(Bucket.cash()) == Decimal("1500")

    @pytest.mark.asyncio
    async def test_decrease_records_deduction(self, cashbook: Cashbook) -> None:
        """감소는 opening_balance_deduction 항목"""
        opening = await cashbook.create_opening_balance(DAY1, "1000")

        result = await cashbook.update_opening_balance(opening.opening_id, new_cash="800")

        assert [a.change_amount for a in result.adjustments] == [Decimal("-200")]
        entries = await cashbook.ledger.query(source="opening_balance_deduction")
        assert [e.amount for e in entries] == [Decimal("200")]
        assert await cashbook.get_balance(Bucket.cash()) == Decimal("800")

    @pytest.mark.asyncio
    async def test_deduction_below_zero(self, cashbook: Cashbook) -> None:
        """이미 사용한 금액보다 많이 차감하면 거부"""
        opening = await cashbook.create_opening_balance(DAY1, "100")
        await cashbook.record_payment(Bucket.cash(), "90", "expense")

        with pytest.raises(InsufficientBalance):
            await cashbook.update_opening_balance(opening.opening_id, new_cash="0")

    @pytest.mark.asyncio
    async def test_bank_balances(self, cashbook: Cashbook) -> None:
        """은행 기준값 수정 (목록에 없는 계좌는 그대로)"""
        opening = await cashbook.create_opening_balance(
            DAY1,
            "0",
            bank_balances=[
                {"bankAccountId": "BA-1", "balance": "100"},
                {"bankAccountId": "BA-2", "balance": "100"},
            ],
        )

        result = await cashbook.update_opening_balance(
            opening.opening_id,
            new_bank_balances=[{"bankAccountId": "BA-1", "balance": "130"}],
        )

        assert len(result.adjustments) == 1
        assert await cashbook.get_balances() == {
            "cash": Decimal("0"),
            "bank:BA-1": Decimal("130"),
            "bank:BA-2": Decimal("100"),
        }

    @pytest.mark.asyncio
    async def test_notes_only(self, cashbook: Cashbook) -> None:
        """메모만 수정"""
        opening = await cashbook.create_opening_balance(DAY1, "10", notes="old")

        result = await cashbook.update_opening_balance(opening.opening_id, notes="new")

        assert result.adjustments == []
        assert result.opening.notes == "new"

    @pytest.mark.asyncio
    async def test_not_found(self, cashbook: Cashbook) -> None:
        """없는 기준 잔액"""
        with pytest.raises(NotFound):
            await cashbook.update_opening_balance("ob-missing", new_cash="1")


class TestDelete:
    """기준 잔액 삭제 테스트"""

    @pytest.mark.asyncio
    async def test_delete(self, cashbook: Cashbook) -> None:
        """삭제 후 재생성 가능"""
        opening = await cashbook.create_opening_balance(DAY1, "100")

        await cashbook.delete_opening_balance(opening.opening_id)

        assert await cashbook.openings.get_by_date(DAY1) is None
        with pytest.raises(NotFound):
            await cashbook.delete_opening_balance(opening.opening_id)
        recreated = await cashbook.create_opening_balance(DAY1, "200")
        assert recreated.balances.cash == Decimal("200")

    @pytest.mark.asyncio
    async def test_delete_invalidates_closing(self, cashbook: Cashbook) -> None:
        """삭제 시 그날 이후 마감 캐시 무효화"""
        opening = await cashbook.create_opening_balance(DAY1, "100")
        await cashbook.chain.get_closing_balance(DAY2)

        await cashbook.delete_opening_balance(opening.opening_id)

        assert await cashbook.repository.get_closing(DAY1) is None
        assert (await cashbook.chain.get_closing_balance(DAY2)).balances.cash == Decimal("0")

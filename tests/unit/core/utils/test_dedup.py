"""
core/utils/dedup.py 테스트

대사 key 생성 함수들의 출력 형식 검증
"""

from decimal import Decimal

from core.utils.dedup import make_payment_base_key, normalize_amount, with_occurrence


class TestNormalizeAmount:
    """normalize_amount 테스트"""

    def test_integer(self) -> None:
        """정수는 소수점 2자리로"""
        assert normalize_amount(Decimal("200")) == "200.00"

    def test_equivalent_representations(self) -> None:
        """표현이 달라도 같은 금액이면 같은 문자열"""
        assert normalize_amount("200.0") == normalize_amount(200) == "200.00"

    def test_rounding(self) -> None:
        """소수점 셋째 자리 반올림"""
        assert normalize_amount("10.005") == "10.01"
        assert normalize_amount("10.004") == "10.00"


class TestMakePaymentBaseKey:
    """make_payment_base_key 테스트"""

    def test_basic_format(self) -> None:
        """기본 형식 확인"""
        result = make_payment_base_key("sale_payment", "S-1", Decimal("200"), "2026-03-01")
        assert result == "sale_payment:S-1:200.00:2026-03-01"

    def test_missing_source_id(self) -> None:
        """source_id 없으면 빈 문자열"""
        result = make_payment_base_key("expense", None, Decimal("5"), "2026-03-01")
        assert result == "expense::5.00:2026-03-01"

    def test_different_days(self) -> None:
        """날짜가 다르면 다른 key"""
        first = make_payment_base_key("sale_payment", "S-1", Decimal("200"), "2026-03-01")
        second = make_payment_base_key("sale_payment", "S-1", Decimal("200"), "2026-03-02")
        assert first != second


class TestWithOccurrence:
    """with_occurrence 테스트"""

    def test_unique_keys(self) -> None:
        """중복 없으면 모두 :0"""
        assert with_occurrence(["a", "b"]) == ["a:0", "b:0"]

    def test_repeated_keys(self) -> None:
        """같은 base key는 등장 순서대로 번호 증가"""
        assert with_occurrence(["a", "b", "a", "a"]) == ["a:0", "b:0", "a:1", "a:2"]

    def test_empty(self) -> None:
        """빈 입력"""
        assert with_occurrence([]) == []

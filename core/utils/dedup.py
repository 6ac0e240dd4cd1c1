"""
대사(Reconciliation) Key 생성 유틸리티

원장 항목과 원천 문서 결제 행은 같은 사실을 서로 독립적으로 기록한 것.
둘을 같은 composite key로 변환하여 집합 연산으로 중복/누락을 판정한다.

key 규칙: {source}:{source_id}:{amount}:{date}:{occurrence}
- amount: 소수점 2자리로 정규화
- occurrence: 같은 (source, source_id, amount, date) 조합 내 등장 순번 (0부터)
"""

from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from core.constants import Money


def normalize_amount(amount: Decimal | str | int | float) -> str:
    """금액을 key 비교용 문자열로 정규화

    Example:
        >>> normalize_amount(Decimal("200"))
        '200.00'
    """
    return str(Decimal(str(amount)).quantize(Money.QUANTUM, rounding=ROUND_HALF_UP))


def make_payment_base_key(
    source: str,
    source_id: str | None,
    amount: Decimal | str,
    day: str,
) -> str:
    """occurrence를 제외한 결제 key 생성

    Args:
        source: 출처 태그 (예: sale_payment)
        source_id: 원천 문서 ID
        amount: 금액
        day: 영업일 문자열 (YYYY-MM-DD)

    Returns:
        base key: {source}:{source_id}:{amount}:{day}

    Example:
        >>> make_payment_base_key("sale_payment", "S-1", Decimal("200"), "2026-03-01")
        'sale_payment:S-1:200.00:2026-03-01'
    """
    return f"{source}:{source_id or ''}:{normalize_amount(amount)}:{day}"


def with_occurrence(base_keys: Iterable[str]) -> list[str]:
    """base key 목록에 등장 순번을 붙여 고유 key 목록으로 변환

    같은 문서에 같은 날 같은 금액 결제가 두 번 있으면 :0, :1 로 구분된다.

    Args:
        base_keys: 입력 순서대로의 base key

    Returns:
        순번이 붙은 key 목록 (입력과 같은 순서/길이)

    Example:
        >>> with_occurrence(["a", "b", "a"])
        ['a:0', 'b:0', 'a:1']
    """
    seen: Counter[str] = Counter()
    keys = []
    for base in base_keys:
        keys.append(f"{base}:{seen[base]}")
        seen[base] += 1
    return keys

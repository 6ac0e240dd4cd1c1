"""
도메인 예외 정의

잔액/원장 연산에서 발생하는 비즈니스 예외.
InsufficientBalance는 일시적 오류가 아니므로 호출자가 재시도하면 안 된다.
"""

from decimal import Decimal


class CashbookError(Exception):
    """Cashbook 도메인 예외 기본 클래스"""

    pass


class InsufficientBalance(CashbookError):
    """출금 후 버킷 잔액이 음수가 되는 경우

    Attributes:
        bucket: 대상 버킷 라벨 (예: cash, bank:BA-1)
        balance: 현재 잔액
        requested: 요청 금액
    """

    def __init__(self, bucket: str, balance: Decimal, requested: Decimal) -> None:
        self.bucket = bucket
        self.balance = balance
        self.requested = requested
        super().__init__(
            f"Insufficient balance in {bucket}: "
            f"available {balance}, requested {requested}"
        )


class InvalidBucket(CashbookError, ValueError):
    """잘못된 버킷 참조 (은행 계좌 ID/카드 ID 누락 등)"""

    pass


class InvalidAmount(CashbookError, ValueError):
    """금액이 0 이하이거나 숫자가 아닌 경우"""

    pass


class NotFound(CashbookError):
    """존재해야 할 기준 잔액/마감 잔액/원장 항목이 없는 경우"""

    pass


class DuplicateBaseline(CashbookError):
    """이미 기준(개시) 잔액이 있는 날짜에 다시 생성하려는 경우"""

    pass

"""
타입 정의 모듈

원장/잔액/리포트 전반에서 공유하는 Enum 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class TransactionType(str, Enum):
    """원장 항목 방향 (입금 / 출금)"""

    INCOME = "income"
    EXPENSE = "expense"


class BucketKind(str, Enum):
    """잔액 버킷 종류"""

    CASH = "cash"
    BANK = "bank"
    CARD = "card"


class PaymentType(str, Enum):
    """결제 수단 (원장 및 원천 문서 공통)

    CREDIT(외상)은 어떤 버킷도 움직이지 않음
    """

    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"
    CREDIT = "credit"


class BalanceSource(str, Enum):
    """원장 항목의 발생 출처 태그"""

    SALE_PAYMENT = "sale_payment"
    PURCHASE_PAYMENT = "purchase_payment"
    EXPENSE = "expense"
    SALE_REFUND = "sale_refund"
    PURCHASE_REFUND = "purchase_refund"
    OPENING_BALANCE = "opening_balance"  # 기준 잔액 설정 전용 (재생 시 제외)
    ADD_OPENING_BALANCE = "add_opening_balance"
    OPENING_BALANCE_DEDUCTION = "opening_balance_deduction"
    MANUAL_ADJUSTMENT = "manual_adjustment"


class DocumentKind(str, Enum):
    """원천 문서 종류 (외부 협력 서비스 소유)"""

    SALE = "sale"
    PURCHASE = "purchase"
    EXPENSE = "expense"


class DocumentStatus(str, Enum):
    """원천 문서 상태 (completed만 잔액/리포트에 반영)"""

    COMPLETED = "completed"
    CANCELLED = "cancelled"


# 원천 문서 종류 → 결제 행이 원장에 기록될 때의 출처 태그
DOCUMENT_SOURCE: dict[DocumentKind, BalanceSource] = {
    DocumentKind.SALE: BalanceSource.SALE_PAYMENT,
    DocumentKind.PURCHASE: BalanceSource.PURCHASE_PAYMENT,
    DocumentKind.EXPENSE: BalanceSource.EXPENSE,
}

# 원천 문서 종류 → 잔액 방향
DOCUMENT_DIRECTION: dict[DocumentKind, TransactionType] = {
    DocumentKind.SALE: TransactionType.INCOME,
    DocumentKind.PURCHASE: TransactionType.EXPENSE,
    DocumentKind.EXPENSE: TransactionType.EXPENSE,
}

"""
원장 ↔ 원천 문서 대사

같은 결제 사실이 원장 항목과 원천 문서 결제 행 양쪽에 독립적으로 기록된다.
양쪽을 composite key {source, sourceId, amount, date, occurrence}로 변환한 뒤
집합 차이로 "원장에 없는 결제"만 골라낸다 (중복 계상/누락 방지).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Iterable

from core.errors import InvalidBucket
from core.ledger.types import BalanceTransaction, Bucket
from core.types import DOCUMENT_SOURCE, PaymentType
from core.utils.dedup import make_payment_base_key, with_occurrence

if TYPE_CHECKING:
    from adapters.models import SourceDocument, SourcePayment

logger = logging.getLogger(__name__)

# 원천 문서 결제로부터 기록되는 원장 출처 태그
PAYMENT_SOURCES = frozenset(source.value for source in DOCUMENT_SOURCE.values())


@dataclass(frozen=True)
class UnrecordedPayment:
    """원장에 대응 항목이 없는 원천 문서 결제 행

    Attributes:
        document: 원천 문서
        payment: 결제 행
        bucket: 결제가 움직이는 버킷
        key: 대사 key
    """

    document: SourceDocument
    payment: SourcePayment
    bucket: Bucket
    key: str


def is_balance_moving(payment: SourcePayment) -> bool:
    """버킷을 움직이는 결제인지 (외상/0원 제외)"""
    return payment.type != PaymentType.CREDIT and payment.amount > 0


def ledger_payment_keys(entries: Iterable[BalanceTransaction]) -> set[str]:
    """원장 항목 중 문서 결제에서 온 것들의 대사 key 집합

    Args:
        entries: created_at 오름차순 원장 항목

    Returns:
        key 집합
    """
    base_keys = [
        make_payment_base_key(
            entry.source,
            entry.source_id,
            entry.amount,
            entry.date.isoformat(),
        )
        for entry in entries
        if entry.source in PAYMENT_SOURCES and entry.source_id
    ]
    return set(with_occurrence(base_keys))


def document_payment_keys(
    documents: Iterable[SourceDocument],
    start: date,
    end: date,
) -> list[tuple[str, SourceDocument, SourcePayment]]:
    """결제일이 [start, end]인 문서 결제 행과 대사 key (완료된 문서만)

    Args:
        documents: 원천 문서 목록
        start: 구간 시작일
        end: 구간 종료일

    Returns:
        (key, 문서, 결제 행) 목록 (문서 순서 → 결제 행 순서)
    """
    candidates: list[tuple[SourceDocument, SourcePayment]] = []
    for document in documents:
        if not document.is_completed:
            continue
        for payment in document.payments:
            if start <= payment.day <= end and is_balance_moving(payment):
                candidates.append((document, payment))

    base_keys = [
        make_payment_base_key(
            document.source,
            document.document_id,
            payment.amount,
            payment.day.isoformat(),
        )
        for document, payment in candidates
    ]
    return [
        (key, document, payment)
        for key, (document, payment) in zip(with_occurrence(base_keys), candidates)
    ]


def find_unrecorded_payments(
    entries: Iterable[BalanceTransaction],
    documents: Iterable[SourceDocument],
    start: date,
    end: date,
) -> list[UnrecordedPayment]:
    """원장에 없는 문서 결제 행 찾기

    Args:
        entries: 같은 구간의 원장 항목 (논리적 날짜 기준, created_at 오름차순)
        documents: 원천 문서 목록
        start: 구간 시작일
        end: 구간 종료일

    Returns:
        원장에 없는 결제 행 목록 (문서 순서 유지)
    """
    recorded = ledger_payment_keys(entries)
    unrecorded = []
    for key, document, payment in document_payment_keys(documents, start, end):
        if key in recorded:
            continue
        try:
            bucket = payment.bucket
        except InvalidBucket:
            logger.warning(
                f"버킷을 알 수 없는 결제 행 제외: {key}",
                extra={"document_id": document.document_id},
            )
            continue
        if bucket is None:
            continue
        unrecorded.append(
            UnrecordedPayment(document=document, payment=payment, bucket=bucket, key=key)
        )
    return unrecorded

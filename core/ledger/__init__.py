"""
잔액 원장 (append-only)

현금/은행/카드 버킷의 모든 잔액 변동을 불변 항목으로 기록.

사용 예시:
```python
from core.ledger import LedgerStore, Bucket

ledger = LedgerStore(db)

# 오늘 현금 버킷 항목 조회
entries = await ledger.query(date_from=day, date_to=day, bucket=Bucket.cash())

# 특정 시점 이전 마지막 항목
last = await ledger.latest_for_bucket(Bucket.bank("BA-1"), until=cutoff)
```
"""

from core.ledger.store import LedgerStore, new_transaction_id
from core.ledger.types import (
    SYSTEM_ACTOR,
    Actor,
    BalanceSnapshot,
    BalanceTransaction,
    Bucket,
)

__all__ = [
    # 핵심 클래스
    "LedgerStore",
    "BalanceTransaction",
    "BalanceSnapshot",
    "Bucket",
    "Actor",
    # 상수/함수
    "SYSTEM_ACTOR",
    "new_transaction_id",
]

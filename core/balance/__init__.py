"""
일별 잔액 관리

개시(기준) 잔액 → 원장 재생 → 마감 잔액 체인과 원자적 잔액 갱신.

사용 예시:
```python
from core.balance import (
    BalanceManagementService,
    DailyBalanceChain,
    DailyBalanceRepository,
    OpeningBalanceManager,
)

repository = DailyBalanceRepository(db)
chain = DailyBalanceChain(db, ledger, repository, documents)
balances = BalanceManagementService(db, ledger, chain, repository)

# 현금 출금 (잔액 부족 시 InsufficientBalance)
result = await balances.update_balance(Bucket.cash(), Decimal("300"), "expense")

# 마감 잔액 (캐시 없으면 계산 후 저장)
closing = await chain.get_closing_balance(day)
```
"""

from core.balance.chain import DailyBalanceChain
from core.balance.manager import BalanceManagementService
from core.balance.models import (
    BalanceUpdate,
    BalanceUpdateResult,
    DailyClosingBalance,
    DailyOpeningBalance,
    OpeningBalanceUpdate,
)
from core.balance.opening import OpeningBalanceManager
from core.balance.repository import DailyBalanceRepository

__all__ = [
    # 서비스
    "BalanceManagementService",
    "DailyBalanceChain",
    "DailyBalanceRepository",
    "OpeningBalanceManager",
    # 모델
    "BalanceUpdate",
    "BalanceUpdateResult",
    "DailyClosingBalance",
    "DailyOpeningBalance",
    "OpeningBalanceUpdate",
]

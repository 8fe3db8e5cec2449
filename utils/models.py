"""
models.py — Immutable records shared by the fraud-analytics pipeline.

Accounts and transactions come in from the caller; features, patterns and
risk records are derived fresh on every run and handed back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


REASON_DELIMITER: str = "; "


class AccountType(str, Enum):
    PERSONAL = "Personal"
    BUSINESS = "Business"
    EXCHANGE = "Exchange"
    MONEY_SERVICE = "MoneyService"
    UNKNOWN = "Unknown"


class TransactionType(str, Enum):
    TRANSFER = "Transfer"
    PAYMENT = "Payment"
    WITHDRAWAL = "Withdrawal"
    DEPOSIT = "Deposit"
    EXCHANGE = "Exchange"


class PatternType(str, Enum):
    LAYERING = "Layering"
    MONEY_MULE = "MoneyMule"
    CIRCULAR = "Circular"


# ── Inputs ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Account:
    """An account in the transaction network.

    ``risk_score`` is a prior assessment in [0, 1], or ``None`` when the
    account has never been assessed.
    """

    account_id: str
    account_type: AccountType
    created_at: datetime
    country: str
    risk_score: Optional[float] = None

    def __post_init__(self) -> None:
        if self.risk_score is not None and not 0.0 <= self.risk_score <= 1.0:
            raise ValueError(
                f"Prior risk score for {self.account_id} must lie in [0, 1], "
                f"got {self.risk_score}"
            )


@dataclass(frozen=True)
class Transaction:
    source: str
    destination: str
    amount: float
    timestamp: datetime
    transaction_type: TransactionType = TransactionType.TRANSFER


# ── Derived records ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GraphFeatures:
    account_id: str
    degree: int
    in_degree: int
    out_degree: int
    clustering_coefficient: float
    page_rank: float
    total_volume: float
    avg_transaction_size: float
    transaction_velocity: float


@dataclass(frozen=True)
class FraudPattern:
    """A detected fraud pattern and the accounts it implicates."""

    pattern_type: PatternType
    confidence: float
    members: Tuple[str, ...]
    label: str

    def __post_init__(self) -> None:
        if not self.members:
            raise ValueError(f"{self.pattern_type.value} pattern has no members")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Pattern confidence must lie in [0, 1], got {self.confidence}"
            )


@dataclass(frozen=True)
class AccountRisk:
    account_id: str
    risk_score: float
    reasons: Tuple[str, ...] = ()
    community: int = 0
    has_quantum_failure: bool = False

    @property
    def top_reason(self) -> str:
        return self.reasons[0] if self.reasons else ""

    def to_row(self) -> Dict[str, Any]:
        """Flatten into the string-keyed row consumed by report writers."""
        return {
            "account_id": self.account_id,
            "risk_score": self.risk_score,
            "risk_pct": round(self.risk_score * 100.0, 1),
            "community": self.community,
            "top_reason": self.top_reason,
            "all_reasons": REASON_DELIMITER.join(self.reasons),
            "has_quantum_failure": self.has_quantum_failure,
        }


@dataclass(frozen=True)
class Community:
    community_id: int
    members: Tuple[str, ...]
    internal_density: float = 0.0
    external_connections: int = 0
    suspicion_score: float = 0.0
    characteristics: Tuple[str, ...] = ()

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class NetworkMetrics:
    total_accounts: int
    total_transactions: int
    total_volume: float
    average_clustering_coefficient: float
    network_density: float
    number_of_communities: int


@dataclass(frozen=True)
class FraudAnalysisResult:
    high_risk_accounts: List[AccountRisk]
    communities: List[Community]
    fraud_patterns: List[FraudPattern]
    network_metrics: NetworkMetrics
    recommendations: List[str]
    community_failed: bool = False
    features: List[GraphFeatures] = field(default_factory=list)

    @property
    def suspicious_communities(self) -> List[Community]:
        return [c for c in self.communities if c.suspicion_score > 0.5]

"""
scoring.py — Risk scoring engine.

Fuses graph features, detected patterns, account metadata and prior risk
into a single 0–1 score per account, with one human-readable reason per
contributing factor.

Scoring rules (applied in this order, never subtracting)
--------------------------------------------------------
Factor                     | Weight               | Condition
1. High velocity           | 0.20                 | > 5 tx/day
2. Clustered connections   | 0.15                 | clustering > 0.8
3. Money-mule topology     | 0.25                 | in-degree > 5, out-degree ≤ 1
4. Unknown jurisdiction    | 0.10                 | country == "XX"
5. New account             | 0.15                 | younger than 90 days
6. Pattern involvement     | 0.5 × max confidence | member of any pattern
7. Prior risk carry-over   | 0.2 × prior score    | prior assessment exists
8. No prior assessment     | 0.05                 | no prior assessment

The sum is clamped to 1.0.  A maximally flagged account can reach ~1.5
before clamping, so scores near the top of the scale are compressed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from utils.models import Account, AccountRisk, FraudPattern, GraphFeatures


# ── Weight configuration ─────────────────────────────────────────────────────
WEIGHT_VELOCITY: float = 0.20
WEIGHT_CLUSTERING: float = 0.15
WEIGHT_MULE_TOPOLOGY: float = 0.25
WEIGHT_UNKNOWN_JURISDICTION: float = 0.10
WEIGHT_NEW_ACCOUNT: float = 0.15
WEIGHT_PATTERN: float = 0.5
WEIGHT_PRIOR_RISK: float = 0.2
WEIGHT_NO_PRIOR: float = 0.05

# Thresholds
HIGH_VELOCITY: float = 5.0               # tx/day
HIGH_CLUSTERING: float = 0.8
MULE_MIN_IN_DEGREE: int = 5              # strictly exceeded
MULE_MAX_OUT_DEGREE: int = 1
NEW_ACCOUNT_DAYS: float = 90.0
UNKNOWN_JURISDICTION: str = "XX"
PUBLICATION_THRESHOLD: float = 0.3       # strictly exceeded


# ── Rule table ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PatternInvolvement:
    max_confidence: float
    labels: Tuple[str, ...]


@dataclass(frozen=True)
class ScoringContext:
    account: Account
    features: Optional[GraphFeatures]
    involvement: Optional[PatternInvolvement]
    reference_time: datetime

    @property
    def age_days(self) -> float:
        return (self.reference_time - self.account.created_at).total_seconds() / 86400.0


@dataclass(frozen=True)
class RiskRule:
    """One scoring factor: when ``applies`` holds, add ``weight`` and ``reasons``."""

    name: str
    applies: Callable[[ScoringContext], bool]
    weight: Callable[[ScoringContext], float]
    reasons: Callable[[ScoringContext], List[str]]


RISK_RULES: Tuple[RiskRule, ...] = (
    RiskRule(
        "high_velocity",
        lambda c: c.features is not None and c.features.transaction_velocity > HIGH_VELOCITY,
        lambda c: WEIGHT_VELOCITY,
        lambda c: [f"High velocity: {c.features.transaction_velocity:.1f} tx/day"],
    ),
    RiskRule(
        "clustered_connections",
        lambda c: c.features is not None and c.features.clustering_coefficient > HIGH_CLUSTERING,
        lambda c: WEIGHT_CLUSTERING,
        lambda c: ["Highly clustered connections"],
    ),
    RiskRule(
        "mule_topology",
        lambda c: (
            c.features is not None
            and c.features.in_degree > MULE_MIN_IN_DEGREE
            and c.features.out_degree <= MULE_MAX_OUT_DEGREE
        ),
        lambda c: WEIGHT_MULE_TOPOLOGY,
        lambda c: ["Money mule topology (many in, few out)"],
    ),
    RiskRule(
        "unknown_jurisdiction",
        lambda c: c.account.country == UNKNOWN_JURISDICTION,
        lambda c: WEIGHT_UNKNOWN_JURISDICTION,
        lambda c: ["Unknown jurisdiction"],
    ),
    RiskRule(
        "new_account",
        lambda c: c.age_days < NEW_ACCOUNT_DAYS,
        lambda c: WEIGHT_NEW_ACCOUNT,
        lambda c: [f"New account ({c.age_days:.0f} days old)"],
    ),
    RiskRule(
        "pattern_involvement",
        lambda c: c.involvement is not None,
        lambda c: c.involvement.max_confidence * WEIGHT_PATTERN,
        lambda c: list(c.involvement.labels),
    ),
    RiskRule(
        "prior_risk",
        lambda c: c.account.risk_score is not None,
        lambda c: c.account.risk_score * WEIGHT_PRIOR_RISK,
        lambda c: [],
    ),
    RiskRule(
        "no_prior_assessment",
        lambda c: c.account.risk_score is None,
        lambda c: WEIGHT_NO_PRIOR,
        lambda c: ["No prior risk assessment"],
    ),
)


# ── Public API ───────────────────────────────────────────────────────────────

def compute_risk_scores(
    accounts: Sequence[Account],
    features: Sequence[GraphFeatures],
    patterns: Sequence[FraudPattern],
    community_membership: Mapping[str, int],
    community_failed: bool,
    reference_time: Optional[datetime] = None,
    threshold: float = PUBLICATION_THRESHOLD,
) -> List[AccountRisk]:
    """Score every account and keep only those above *threshold*.

    Parameters
    ----------
    accounts : sequence of Account
        The batch's accounts.
    features : sequence of GraphFeatures
        Output of ``features.extract_graph_features``.
    patterns : sequence of FraudPattern
        Output of ``patterns.detect_fraud_patterns``.
    community_membership : mapping
        Account id → community id; absent accounts get community 0.
    community_failed : bool
        Batch-level flag copied onto every result.
    reference_time : datetime or None
        "Now" for account-age checks; defaults to the current time.
    threshold : float
        Scores must strictly exceed this to be published.

    Returns
    -------
    list[AccountRisk]
        Sorted descending by score, ties broken by account id.
    """
    all_scores = score_all_accounts(
        accounts, features, patterns,
        community_membership, community_failed, reference_time,
    )
    return publish_risks(all_scores, threshold)


def publish_risks(
    scores: Sequence[AccountRisk],
    threshold: float = PUBLICATION_THRESHOLD,
) -> List[AccountRisk]:
    """Drop scores at or below *threshold* and rank the rest."""
    published = [r for r in scores if r.risk_score > threshold]
    published.sort(key=lambda r: (-r.risk_score, r.account_id))

    logger.info(
        f"Scored {len(scores)} accounts, {len(published)} above {threshold:.2f}"
    )
    return published


def score_all_accounts(
    accounts: Sequence[Account],
    features: Sequence[GraphFeatures],
    patterns: Sequence[FraudPattern],
    community_membership: Mapping[str, int],
    community_failed: bool,
    reference_time: Optional[datetime] = None,
) -> List[AccountRisk]:
    """Unfiltered, unsorted ``AccountRisk`` for every input account."""
    now = reference_time or datetime.now()
    feature_map = {f.account_id: f for f in features}
    involvement_map = pattern_involvement(patterns)

    return [
        score_account(
            acc,
            feature_map.get(acc.account_id),
            involvement_map.get(acc.account_id),
            now,
            community=community_membership.get(acc.account_id, 0),
            community_failed=community_failed,
        )
        for acc in accounts
    ]


def score_account(
    account: Account,
    features: Optional[GraphFeatures],
    involvement: Optional[PatternInvolvement],
    reference_time: datetime,
    community: int = 0,
    community_failed: bool = False,
    rules: Sequence[RiskRule] = RISK_RULES,
) -> AccountRisk:
    """Fold *rules* over one account; the result is clamped but not filtered."""
    ctx = ScoringContext(account, features, involvement, reference_time)

    score = 0.0
    reasons: List[str] = []
    for rule in rules:
        if rule.applies(ctx):
            score += rule.weight(ctx)
            reasons.extend(rule.reasons(ctx))

    return AccountRisk(
        account_id=account.account_id,
        risk_score=min(1.0, score),
        reasons=tuple(reasons),
        community=community,
        has_quantum_failure=community_failed,
    )


def pattern_involvement(
    patterns: Sequence[FraudPattern],
) -> Dict[str, PatternInvolvement]:
    """Per account: highest pattern confidence and one label per pattern type.

    The label kept for a type is the first one seen for that account.
    """
    confidence: Dict[str, float] = {}
    labels: Dict[str, Dict[str, str]] = {}

    for pattern in patterns:
        for member in pattern.members:
            confidence[member] = max(confidence.get(member, 0.0), pattern.confidence)
            labels.setdefault(member, {}).setdefault(
                pattern.pattern_type.value, pattern.label
            )

    return {
        acc: PatternInvolvement(confidence[acc], tuple(labels[acc].values()))
        for acc in confidence
    }

"""
money_mule.py — Money mule (fan-in star) detection.

A mule account collects funds from several senders and forwards almost
nothing itself, usually in a short burst of activity.

Detection targets
-----------------
In-degree ≥ 3, out-degree ≤ 1 and velocity above 2 transactions/day.
"""

from __future__ import annotations

from typing import List, Sequence

from loguru import logger

from utils.graph_builder import GraphIndex
from utils.models import FraudPattern, GraphFeatures, PatternType, Transaction


# ── Configurable thresholds ──────────────────────────────────────────────────

MIN_IN_DEGREE: int = 3                  # min incoming transactions
MAX_OUT_DEGREE: int = 1                 # max outgoing transactions
MIN_VELOCITY: float = 2.0               # tx/day, strictly exceeded
MULE_CONFIDENCE: float = 0.8


# ── Public API ───────────────────────────────────────────────────────────────

def detect_money_mules(
    transactions: Sequence[Transaction],
    features: Sequence[GraphFeatures],
    min_in_degree: int = MIN_IN_DEGREE,
    max_out_degree: int = MAX_OUT_DEGREE,
    min_velocity: float = MIN_VELOCITY,
    confidence: float = MULE_CONFIDENCE,
) -> List[FraudPattern]:
    """Identify fan-in hubs that behave like money mules.

    Parameters
    ----------
    transactions : sequence of Transaction
        Used to look up the distinct senders of each hub.
    features : sequence of GraphFeatures
        Output of ``features.extract_graph_features``.
    min_in_degree, max_out_degree : int
        Degree bounds for the star shape.
    min_velocity : float
        Velocity (tx/day) that must be exceeded.
    confidence : float
        Fixed confidence assigned to every mule pattern.

    Returns
    -------
    list[FraudPattern]
        Members are the hub followed by its distinct senders.
    """
    index = GraphIndex(transactions)
    patterns: List[FraudPattern] = []

    for f in features:
        if not (
            f.in_degree >= min_in_degree
            and f.out_degree <= max_out_degree
            and f.transaction_velocity > min_velocity
        ):
            continue

        senders = _distinct_senders(index, f.account_id)
        patterns.append(
            FraudPattern(
                pattern_type=PatternType.MONEY_MULE,
                confidence=confidence,
                members=(f.account_id,) + tuple(s for s in senders if s != f.account_id),
                label=f"Money Mule: {f.account_id} receiving from {len(senders)} accounts",
            )
        )

    logger.debug(f"Money mule: {len(patterns)} hub(s) detected")
    return patterns


# ── Internal helpers ─────────────────────────────────────────────────────────

def _distinct_senders(index: GraphIndex, account_id: str) -> List[str]:
    senders: List[str] = []
    for tx in index.incoming(account_id):
        if tx.source not in senders:
            senders.append(tx.source)
    return senders

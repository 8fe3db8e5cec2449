"""
layering.py — Rapid sequential transfer (layering) detection.

Pattern: A → B → C → D, each hop a few minutes after the last.

Why Suspicious?
Launderers push funds through a string of accounts in quick succession to
obscure where the money came from.

Detection:
Walk all transactions in time order, growing a chain while each transaction
starts where the previous one ended and follows within the time window.
"""

from __future__ import annotations

from datetime import timedelta
from typing import List, Sequence

from loguru import logger

from utils.models import FraudPattern, PatternType, Transaction


# ── Configurable thresholds ──────────────────────────────────────────────────
TIME_WINDOW_MINUTES: float = 30.0       # max gap between consecutive hops
MIN_CHAIN_LENGTH: int = 3               # minimum transactions in a chain
CONFIDENCE_DIVISOR: float = 5.0         # chain length giving full confidence

LAYERING_LABEL = "Layering: Rapid sequential transfers detected"


def detect_layering(
    transactions: Sequence[Transaction],
    time_window_minutes: float = TIME_WINDOW_MINUTES,
    min_chain_length: int = MIN_CHAIN_LENGTH,
    confidence_divisor: float = CONFIDENCE_DIVISOR,
) -> List[FraudPattern]:
    """Detect chains of rapid, hand-to-hand transfers.

    Parameters
    ----------
    transactions : sequence of Transaction
        Full transaction snapshot; not mutated.
    time_window_minutes : float
        A transaction extends the chain only if it occurs strictly less than
        this many minutes after the previous chain transaction.
    min_chain_length : int
        Chains shorter than this are discarded.
    confidence_divisor : float
        Confidence is ``min(1, chain_length / confidence_divisor)``.

    Returns
    -------
    list[FraudPattern]
        One Layering pattern per surviving chain, in chronological order.
    """
    window = timedelta(minutes=time_window_minutes)
    ordered = sorted(transactions, key=lambda tx: tx.timestamp)

    chains: List[List[Transaction]] = []
    current: List[Transaction] = []

    for tx in ordered:
        if current:
            last = current[-1]
            if tx.timestamp - last.timestamp < window and tx.source == last.destination:
                current.append(tx)
                continue
            if len(current) >= min_chain_length:
                chains.append(current)
        current = [tx]

    if len(current) >= min_chain_length:
        chains.append(current)

    patterns = [
        FraudPattern(
            pattern_type=PatternType.LAYERING,
            confidence=min(1.0, len(chain) / confidence_divisor),
            members=_chain_members(chain),
            label=LAYERING_LABEL,
        )
        for chain in chains
    ]

    logger.debug(f"Layering: {len(patterns)} chain(s) detected")
    return patterns


def _chain_members(chain: Sequence[Transaction]) -> tuple:
    """Distinct accounts touched by the chain, in order of appearance."""
    seen: dict = {}
    for tx in chain:
        seen.setdefault(tx.source, None)
        seen.setdefault(tx.destination, None)
    return tuple(seen)

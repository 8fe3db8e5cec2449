"""
features.py — Per-account structural and behavioural graph features.

For each account we derive degree counts, a local clustering coefficient, a
one-shot PageRank approximation, transaction volume and velocity.  These feed
the money-mule detector and the risk scorer.
"""

from __future__ import annotations

from typing import List, Sequence

from loguru import logger

from utils.graph_builder import GraphIndex
from utils.models import Account, GraphFeatures, Transaction


# ── Configurable constants ───────────────────────────────────────────────────
DAMPING_FACTOR: float = 0.85
SECONDS_PER_DAY: float = 86400.0


# ── Public API ───────────────────────────────────────────────────────────────

def extract_graph_features(
    accounts: Sequence[Account],
    transactions: Sequence[Transaction],
    damping: float = DAMPING_FACTOR,
) -> List[GraphFeatures]:
    """Compute one ``GraphFeatures`` record per input account.

    Parameters
    ----------
    accounts : sequence of Account
        The batch's accounts; output order follows this order.
    transactions : sequence of Transaction
        All transactions in the snapshot.
    damping : float
        Damping factor of the PageRank approximation.

    Returns
    -------
    list[GraphFeatures]
        Degenerate cases (no neighbours, no transactions) fall back to 0.
    """
    index = GraphIndex(transactions)
    n_accounts = len(accounts)

    features: List[GraphFeatures] = []
    for acc in accounts:
        out_tx = index.outgoing(acc.account_id)
        in_tx = index.incoming(acc.account_id)
        all_tx = out_tx + in_tx
        total_volume = sum(tx.amount for tx in all_tx)

        features.append(
            GraphFeatures(
                account_id=acc.account_id,
                degree=len(index.neighbors(acc.account_id)),
                in_degree=len(in_tx),
                out_degree=len(out_tx),
                clustering_coefficient=clustering_coefficient(index, acc.account_id),
                page_rank=approximate_page_rank(len(in_tx), n_accounts, damping),
                total_volume=total_volume,
                avg_transaction_size=total_volume / len(all_tx) if all_tx else 0.0,
                transaction_velocity=transaction_velocity(all_tx),
            )
        )

    logger.debug(f"Extracted graph features for {len(features)} accounts")
    return features


def clustering_coefficient(index: GraphIndex, account_id: str) -> float:
    """Fraction of neighbour pairs that are themselves directly connected.

    Quadratic in the account's degree: every unordered neighbour pair is
    checked once against the index.
    """
    neighbors = sorted(index.neighbors(account_id))
    if len(neighbors) < 2:
        return 0.0

    possible = len(neighbors) * (len(neighbors) - 1) // 2
    actual = 0
    for i in range(len(neighbors) - 1):
        for j in range(i + 1, len(neighbors)):
            if index.are_connected(neighbors[i], neighbors[j]):
                actual += 1
    return actual / possible


def approximate_page_rank(
    in_links: int,
    n_accounts: int,
    damping: float = DAMPING_FACTOR,
) -> float:
    """Single-iteration PageRank: ``(1 - d) / N + d * inLinks / N``.

    Not iterated to convergence.  Capped at 1.0 for accounts with more
    incoming transactions than there are accounts.
    """
    if n_accounts <= 0:
        return 0.0
    score = (1.0 - damping) / n_accounts + damping * (in_links / n_accounts)
    return min(1.0, score)


def transaction_velocity(transactions: Sequence[Transaction]) -> float:
    """Transactions per day over the observed span (span + 1 day)."""
    if not transactions:
        return 0.0
    timestamps = [tx.timestamp for tx in transactions]
    span_days = (max(timestamps) - min(timestamps)).total_seconds() / SECONDS_PER_DAY
    return len(transactions) / (span_days + 1.0)

"""
cycles.py — Circular fund routing detection.

Detects closed transaction loops of length 3–5: A → B → C → A.

In legitimate commerce, money rarely travels in a perfect circle back to
the originator.  Cycles found from different starting rotations are
reported once.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Set, Tuple

from loguru import logger

from utils.models import FraudPattern, PatternType, Transaction


# ── Configurable thresholds ──────────────────────────────────────────────────
MIN_CYCLE_LENGTH: int = 3
MAX_DEPTH: int = 5
CYCLE_CONFIDENCE: float = 0.9


# ── Public API ───────────────────────────────────────────────────────────────

def detect_circular(
    transactions: Sequence[Transaction],
    min_length: int = MIN_CYCLE_LENGTH,
    max_depth: int = MAX_DEPTH,
    confidence: float = CYCLE_CONFIDENCE,
) -> List[FraudPattern]:
    """Find closed loops and emit one Circular pattern per distinct cycle.

    Parameters
    ----------
    transactions : sequence of Transaction
        Full transaction snapshot; not mutated.
    min_length, max_depth : int
        Inclusive bounds on cycle length (number of hops).
    confidence : float
        Fixed confidence assigned to every cycle.

    Returns
    -------
    list[FraudPattern]
        Members are the cycle's accounts in traversal order.
    """
    adjacency = build_adjacency(transactions)
    cycles = find_bounded_cycles(adjacency, min_length, max_depth)

    patterns = [
        FraudPattern(
            pattern_type=PatternType.CIRCULAR,
            confidence=confidence,
            members=cycle,
            label=f"Circular: Funds cycling through {len(cycle)} accounts",
        )
        for cycle in cycles
    ]

    logger.debug(f"Circular: {len(patterns)} cycle(s) detected")
    return patterns


def build_adjacency(transactions: Sequence[Transaction]) -> Dict[str, List[str]]:
    """Forward adjacency (source → distinct destinations, first-seen order)."""
    adjacency: Dict[str, List[str]] = {}
    for tx in transactions:
        targets = adjacency.setdefault(tx.source, [])
        if tx.destination not in targets:
            targets.append(tx.destination)
    return adjacency


def find_bounded_cycles(
    adjacency: Dict[str, List[str]],
    min_length: int = MIN_CYCLE_LENGTH,
    max_depth: int = MAX_DEPTH,
) -> List[Tuple[str, ...]]:
    """Depth-bounded path search from every start node.

    Uses an explicit stack of paths; a path never revisits a node other than
    the start, and a cycle is recorded when an edge leads back to the start
    after at least ``min_length`` hops.  Cycles are de-duplicated by their
    sorted membership.

    Worst-case cost is exponential in ``max_depth`` on dense graphs.
    """
    found: List[Tuple[str, ...]] = []
    seen: Set[Tuple[str, ...]] = set()

    for start in adjacency:
        stack: List[Tuple[str, ...]] = [(start,)]
        while stack:
            path = stack.pop()
            for nxt in reversed(adjacency.get(path[-1], [])):
                if nxt == start:
                    if len(path) >= min_length:
                        signature = tuple(sorted(path))
                        if signature not in seen:
                            seen.add(signature)
                            found.append(path)
                elif nxt not in path and len(path) < max_depth:
                    stack.append(path + (nxt,))

    return found

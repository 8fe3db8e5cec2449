"""
graph_builder.py — Keyed views over the transaction list.

``GraphIndex`` groups transactions by sender and by receiver once per run;
every downstream feature and detector reads from it.  The helpers below build
the weighted, undirected account graph handed to community detection.
"""

from __future__ import annotations

from collections import defaultdict
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Sequence, Tuple

import networkx as nx

from utils.models import Transaction


WeightedEdge = Tuple[str, str, float]


# ── Public API ───────────────────────────────────────────────────────────────

class GraphIndex:
    """Read-only adjacency built from a fixed transaction snapshot.

    Lookups for unknown account ids return empty results rather than raising.
    """

    def __init__(self, transactions: Iterable[Transaction]):
        self._transactions: Tuple[Transaction, ...] = tuple(transactions)

        outgoing: Dict[str, List[Transaction]] = defaultdict(list)
        incoming: Dict[str, List[Transaction]] = defaultdict(list)
        for tx in self._transactions:
            outgoing[tx.source].append(tx)
            incoming[tx.destination].append(tx)

        self._outgoing: Mapping[str, Tuple[Transaction, ...]] = MappingProxyType(
            {acc: tuple(txs) for acc, txs in outgoing.items()}
        )
        self._incoming: Mapping[str, Tuple[Transaction, ...]] = MappingProxyType(
            {acc: tuple(txs) for acc, txs in incoming.items()}
        )

        neighbors: Dict[str, set] = defaultdict(set)
        for tx in self._transactions:
            neighbors[tx.source].add(tx.destination)
            neighbors[tx.destination].add(tx.source)
        self._neighbors: Mapping[str, FrozenSet[str]] = MappingProxyType(
            {acc: frozenset(nbrs) for acc, nbrs in neighbors.items()}
        )

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return self._transactions

    def outgoing(self, account_id: str) -> List[Transaction]:
        return list(self._outgoing.get(account_id, ()))

    def incoming(self, account_id: str) -> List[Transaction]:
        return list(self._incoming.get(account_id, ()))

    def neighbors(self, account_id: str) -> FrozenSet[str]:
        """Counterparties of *account_id* in either direction."""
        return self._neighbors.get(account_id, frozenset())

    def are_connected(self, a: str, b: str) -> bool:
        """True when at least one transaction links *a* and *b*, either way."""
        return b in self._neighbors.get(a, frozenset())


def community_edges(transactions: Sequence[Transaction]) -> List[WeightedEdge]:
    """Aggregate transactions into weighted undirected edges.

    Amounts are summed per unordered account pair and divided by the largest
    pair volume, so every weight lies in (0, 1].
    """
    volumes: Dict[Tuple[str, str], float] = defaultdict(float)
    for tx in transactions:
        pair = (tx.source, tx.destination) if tx.source < tx.destination \
            else (tx.destination, tx.source)
        volumes[pair] += tx.amount

    if not volumes:
        return []

    max_volume = max(volumes.values())
    return [(a, b, volume / max_volume) for (a, b), volume in volumes.items()]


def build_community_graph(
    vertices: Sequence[str],
    edges: Sequence[WeightedEdge],
) -> nx.Graph:
    """Build the weighted undirected graph used for partitioning.

    Isolated vertices are kept so every account receives a side.
    """
    G = nx.Graph()
    G.add_nodes_from(vertices)
    for a, b, weight in edges:
        G.add_edge(a, b, weight=weight)
    return G

"""
community.py — Two-way community partitioning of the account graph.

The partitioner is an injected strategy: given account ids and weighted
undirected edges it returns a 2-partition and a cut value, or raises
``CommunityDetectionError``.  The default implementation is a classical
greedy max-cut.  A failing partitioner never aborts the pipeline: the batch
is simply flagged and every account falls back to community 0.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence, Tuple

import networkx as nx
from networkx.algorithms.approximation.maxcut import one_exchange
from loguru import logger

from utils.graph_builder import WeightedEdge, build_community_graph, community_edges
from utils.models import Account, Community, Transaction


# ── Configurable constants ───────────────────────────────────────────────────
MAXCUT_SEED: int = 42
COMMUNITY_A: int = 1
COMMUNITY_B: int = 2
NO_COMMUNITY: int = 0


class CommunityDetectionError(Exception):
    """Raised by a partitioner that could not produce a partition."""


@dataclass(frozen=True)
class Partition:
    partition_a: Tuple[str, ...]
    partition_b: Tuple[str, ...]
    cut_value: float


@dataclass(frozen=True)
class CommunityResult:
    membership: Mapping[str, int] = field(default_factory=dict)
    communities: List[Community] = field(default_factory=list)
    cut_value: float = 0.0
    failed: bool = False
    error: str = ""


# ── Partitioners ─────────────────────────────────────────────────────────────

class CommunityPartitioner(ABC):
    """Strategy contract for 2-way graph partitioning."""

    @abstractmethod
    def partition(
        self,
        vertex_ids: Sequence[str],
        edges: Sequence[WeightedEdge],
    ) -> Partition:
        """Split *vertex_ids* into two sides.

        Every vertex must appear in exactly one side.  Implementations signal
        failure by raising ``CommunityDetectionError``.
        """


class MaxCutPartitioner(CommunityPartitioner):
    """Greedy one-exchange max-cut from ``networkx.algorithms.approximation``."""

    def __init__(self, seed: int = MAXCUT_SEED):
        self.seed = seed

    def partition(
        self,
        vertex_ids: Sequence[str],
        edges: Sequence[WeightedEdge],
    ) -> Partition:
        if not vertex_ids:
            raise CommunityDetectionError("Cannot partition an empty vertex set")

        known = set(vertex_ids)
        unknown = sorted({v for a, b, _ in edges for v in (a, b)} - known)
        if unknown:
            raise CommunityDetectionError(
                f"Edges reference unknown vertices: {', '.join(unknown)}"
            )

        G = build_community_graph(vertex_ids, edges)
        try:
            cut_value, (side_a, side_b) = one_exchange(
                G, seed=self.seed, weight="weight"
            )
        except nx.NetworkXException as exc:
            raise CommunityDetectionError(f"Max-cut failed: {exc}") from exc

        partition = Partition(
            partition_a=tuple(v for v in vertex_ids if v in side_a),
            partition_b=tuple(v for v in vertex_ids if v in side_b),
            cut_value=float(cut_value),
        )
        _check_partition(vertex_ids, partition)
        return partition


# ── Public API ───────────────────────────────────────────────────────────────

def detect_communities(
    accounts: Sequence[Account],
    transactions: Sequence[Transaction],
    partitioner: CommunityPartitioner,
) -> CommunityResult:
    """Partition the account graph and map each account to community 1 or 2.

    Parameters
    ----------
    accounts : sequence of Account
        Vertices of the partition problem.
    transactions : sequence of Transaction
        Aggregated into volume-normalised undirected edges.  Edges touching
        accounts missing from *accounts* are left out.
    partitioner : CommunityPartitioner
        Strategy performing the actual split.

    Returns
    -------
    CommunityResult
        ``failed`` is True (with an empty membership map) when the
        partitioner raised ``CommunityDetectionError`` or returned sides
        that do not cover every account exactly once.  An empty account
        list yields an empty, non-failed result.
    """
    vertices = [acc.account_id for acc in accounts]
    if not vertices:
        return CommunityResult()

    # Counterparties outside the account table stay out of the partition
    known = set(vertices)
    edges = community_edges(
        [tx for tx in transactions if tx.source in known and tx.destination in known]
    )

    try:
        partition = partitioner.partition(vertices, edges)
        _check_partition(vertices, partition)
    except CommunityDetectionError as exc:
        logger.warning(f"Community detection failed: {exc}")
        return CommunityResult(failed=True, error=str(exc))

    membership: Dict[str, int] = {}
    for acc_id in partition.partition_a:
        membership[acc_id] = COMMUNITY_A
    for acc_id in partition.partition_b:
        membership[acc_id] = COMMUNITY_B

    G = build_community_graph(vertices, edges)
    cut_edges = sum(
        1 for a, b in G.edges() if membership.get(a) != membership.get(b)
    )
    communities = [
        Community(
            community_id=COMMUNITY_A,
            members=partition.partition_a,
            internal_density=_internal_density(G, partition.partition_a),
            external_connections=cut_edges,
        ),
        Community(
            community_id=COMMUNITY_B,
            members=partition.partition_b,
            internal_density=_internal_density(G, partition.partition_b),
            external_connections=cut_edges,
        ),
    ]

    logger.info(
        f"Partitioned {len(vertices)} accounts into communities of "
        f"{len(partition.partition_a)} and {len(partition.partition_b)} "
        f"(cut value {partition.cut_value:.2f})"
    )
    return CommunityResult(
        membership=membership,
        communities=communities,
        cut_value=partition.cut_value,
    )


# ── Internal helpers ─────────────────────────────────────────────────────────

def _check_partition(vertex_ids: Sequence[str], partition: Partition) -> None:
    side_a, side_b = set(partition.partition_a), set(partition.partition_b)
    if side_a & side_b or (side_a | side_b) != set(vertex_ids):
        raise CommunityDetectionError(
            "Partition does not place every vertex in exactly one side"
        )


def _internal_density(G: nx.Graph, members: Sequence[str]) -> float:
    """Undirected edge density inside *members* (0 for fewer than 2)."""
    if len(members) < 2:
        return 0.0
    return float(nx.density(G.subgraph(members)))

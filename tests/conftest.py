"""
Shared fixtures for the fraud-analytics test suite.
"""

from datetime import datetime, timedelta
from typing import Sequence

import pytest

from detection.community import (
    CommunityDetectionError,
    CommunityPartitioner,
    Partition,
)
from utils.graph_builder import WeightedEdge
from utils.models import Account, AccountType, Transaction
from utils.sample_data import generate_sample_network


class FixedPartitioner(CommunityPartitioner):
    """Always succeeds: ACC* accounts on side A, everything else on side B."""

    def partition(self, vertex_ids: Sequence[str], edges: Sequence[WeightedEdge]) -> Partition:
        side_a = tuple(v for v in vertex_ids if v.startswith("ACC"))
        side_b = tuple(v for v in vertex_ids if not v.startswith("ACC"))
        return Partition(partition_a=side_a, partition_b=side_b, cut_value=1.0)


class FailingPartitioner(CommunityPartitioner):
    """Always fails."""

    def partition(self, vertex_ids: Sequence[str], edges: Sequence[WeightedEdge]) -> Partition:
        raise CommunityDetectionError("backend unavailable")


def make_account(account_id, country="US", created=datetime(2015, 1, 1), risk_score=None,
                 account_type=AccountType.PERSONAL):
    return Account(
        account_id=account_id,
        account_type=account_type,
        created_at=created,
        country=country,
        risk_score=risk_score,
    )


def make_tx(source, destination, timestamp, amount=1000.0):
    return Transaction(source=source, destination=destination, amount=amount, timestamp=timestamp)


@pytest.fixture
def sample_network():
    """The 15-account / 18-transaction reference network."""
    return generate_sample_network()


@pytest.fixture
def reference_time():
    """'Now' for the reference network: fraud ring and mule accounts are < 90 days old."""
    return datetime(2023, 11, 1)


@pytest.fixture
def fixed_partitioner():
    return FixedPartitioner()


@pytest.fixture
def failing_partitioner():
    return FailingPartitioner()


@pytest.fixture
def layering_transactions():
    """FRAUD01 → FRAUD02 → FRAUD03 → FRAUD04 five minutes apart, closing back to FRAUD01."""
    t0 = datetime(2024, 1, 15, 10, 0, 0)
    return [
        make_tx("FRAUD01", "FRAUD02", t0, 9800.0),
        make_tx("FRAUD02", "FRAUD03", t0 + timedelta(minutes=5), 9500.0),
        make_tx("FRAUD03", "FRAUD04", t0 + timedelta(minutes=10), 9200.0),
        make_tx("FRAUD04", "FRAUD01", t0 + timedelta(minutes=15), 4000.0),
    ]


@pytest.fixture
def mule_network():
    """Three victims pay MULE01 within hours; MULE01 forwards once the next morning."""
    t0 = datetime(2024, 1, 12, 9, 0, 0)
    accounts = [
        make_account("MULE01", country="NG", risk_score=0.6),
        make_account("VICTIM01"),
        make_account("VICTIM02"),
        make_account("VICTIM03"),
        make_account("CASHOUT"),
    ]
    transactions = [
        make_tx("VICTIM01", "MULE01", t0, 2000.0),
        make_tx("VICTIM02", "MULE01", t0 + timedelta(hours=2), 1800.0),
        make_tx("VICTIM03", "MULE01", t0 + timedelta(hours=5), 2200.0),
        make_tx("MULE01", "CASHOUT", t0 + timedelta(hours=23), 5500.0),
    ]
    return accounts, transactions

"""
End-to-end tests for the analysis pipeline on the reference network.
"""

from datetime import datetime

import pytest

from conftest import make_account, make_tx
from detection.community import MaxCutPartitioner
from detection.pipeline import (
    analyze_transaction_network,
    build_recommendations,
    compute_network_metrics,
)
from utils.models import PatternType


FRAUD_IDS = {"FRAUD01", "FRAUD02", "FRAUD03", "FRAUD04", "MULE01"}
LEGIT_IDS = {"ACC001", "ACC002", "ACC003", "ACC004", "ACC005", "ACC006", "ACC007"}


@pytest.fixture
def result(sample_network, fixed_partitioner, reference_time):
    accounts, transactions = sample_network
    return analyze_transaction_network(
        accounts, transactions, partitioner=fixed_partitioner, reference_time=reference_time
    )


def _scores(risks):
    return {r.account_id: r.risk_score for r in risks}


class TestReferenceNetwork:

    def test_ranked_descending(self, result):
        scores = [r.risk_score for r in result.high_risk_accounts]
        assert scores
        assert scores == sorted(scores, reverse=True)
        assert all(0.3 < s <= 1.0 for s in scores)

    def test_fraud_and_mule_accounts_outrank_legitimate_accounts(self, result):
        scores = _scores(result.high_risk_accounts)
        assert FRAUD_IDS <= set(scores)

        lowest_fraud = min(scores[a] for a in FRAUD_IDS)
        legit_scores = [scores[a] for a in LEGIT_IDS if a in scores]
        assert all(lowest_fraud > s for s in legit_scores)

    def test_expected_scores(self, result):
        scores = _scores(result.high_risk_accounts)
        assert scores["FRAUD01"] == pytest.approx(0.90)
        assert scores["FRAUD04"] == pytest.approx(0.75)
        assert scores["MULE01"] == pytest.approx(0.67)
        assert "ACC004" not in scores

    def test_ties_broken_by_account_id(self, result):
        top = [r.account_id for r in result.high_risk_accounts[:3]]
        assert top == ["FRAUD01", "FRAUD02", "FRAUD03"]

    def test_fraud_ring_reasons(self, result):
        fraud01 = next(r for r in result.high_risk_accounts if r.account_id == "FRAUD01")
        assert fraud01.reasons[:3] == (
            "Highly clustered connections",
            "Unknown jurisdiction",
            "New account (31 days old)",
        )
        assert fraud01.reasons[3] == "Layering: Rapid sequential transfers detected"
        assert fraud01.reasons[4].startswith("Circular:")
        assert fraud01.reasons[-1] == "No prior risk assessment"

    def test_patterns_of_every_kind_found(self, result):
        by_type = {}
        for p in result.fraud_patterns:
            by_type.setdefault(p.pattern_type, []).append(p)
        assert len(by_type[PatternType.LAYERING]) == 1
        assert len(by_type[PatternType.MONEY_MULE]) == 1
        assert len(by_type[PatternType.CIRCULAR]) == 5

    def test_communities_annotated(self, result):
        assert not result.community_failed
        assert all(not r.has_quantum_failure for r in result.high_risk_accounts)
        assert {r.community for r in result.high_risk_accounts} == {1, 2}

        legit, other = result.communities
        assert set(legit.characteristics) == {"Circular"}
        assert set(other.characteristics) == {"Layering", "MoneyMule", "Circular"}
        assert other.suspicion_score > legit.suspicion_score
        assert result.suspicious_communities == [other]

    def test_network_metrics(self, result):
        metrics = result.network_metrics
        assert metrics.total_accounts == 15
        assert metrics.total_transactions == 18
        assert metrics.total_volume == pytest.approx(101800.0)
        assert metrics.network_density == pytest.approx(18 / 210)
        assert metrics.number_of_communities == 2
        assert 0.0 < metrics.average_clustering_coefficient < 1.0

    def test_recommendations(self, result):
        recs = result.recommendations
        assert recs[0].startswith(f"Review {len(result.high_risk_accounts)} high-risk")
        assert any("rapid sequential" in r for r in recs)
        assert any("money mule" in r for r in recs)
        assert any("circular" in r.lower() for r in recs)
        assert recs[-1] == "Monitor for new accounts joining flagged clusters"


class TestCommunityFailure:

    def test_failure_keeps_scores_and_flags_every_result(
        self, sample_network, reference_time, result, failing_partitioner
    ):
        accounts, transactions = sample_network
        degraded = analyze_transaction_network(
            accounts, transactions, partitioner=failing_partitioner, reference_time=reference_time
        )

        assert degraded.community_failed
        assert degraded.communities == []
        assert _scores(degraded.high_risk_accounts) == _scores(result.high_risk_accounts)
        assert all(r.has_quantum_failure for r in degraded.high_risk_accounts)
        assert all(r.community == 0 for r in degraded.high_risk_accounts)
        assert degraded.network_metrics.number_of_communities == 0


def test_default_partitioner_runs(sample_network, reference_time):
    accounts, transactions = sample_network
    outcome = analyze_transaction_network(accounts, transactions, reference_time=reference_time)
    assert not outcome.community_failed
    assert {r.community for r in outcome.high_risk_accounts} <= {1, 2}


def test_explicit_max_cut_is_deterministic(sample_network, reference_time):
    accounts, transactions = sample_network
    runs = [
        analyze_transaction_network(
            accounts, transactions, partitioner=MaxCutPartitioner(), reference_time=reference_time
        )
        for _ in range(2)
    ]
    assert runs[0].high_risk_accounts == runs[1].high_risk_accounts


def test_empty_batch():
    outcome = analyze_transaction_network([], [])
    assert outcome.high_risk_accounts == []
    assert outcome.fraud_patterns == []
    assert not outcome.community_failed
    assert outcome.communities == []
    assert outcome.network_metrics.total_accounts == 0
    assert outcome.network_metrics.network_density == 0.0


def test_payment_to_outside_account_does_not_fail_communities(reference_time):
    accounts = [make_account(a) for a in ("A", "B", "C")]
    transactions = [
        make_tx("A", "B", datetime(2024, 1, 1, 9, 0)),
        make_tx("B", "C", datetime(2024, 1, 2, 9, 0)),
        make_tx("C", "EXTERNAL_BANK", datetime(2024, 1, 3, 9, 0)),
    ]
    outcome = analyze_transaction_network(
        accounts, transactions, reference_time=reference_time
    )
    assert outcome.community_failed is False
    assert sum(c.size for c in outcome.communities) == 3


def test_metrics_without_accounts():
    metrics = compute_network_metrics([], [], [], 0)
    assert metrics.average_clustering_coefficient == 0.0


def test_recommendations_without_findings():
    assert build_recommendations([], []) == [
        "Consider enhanced due diligence for accounts in suspicious communities",
        "Monitor for new accounts joining flagged clusters",
    ]

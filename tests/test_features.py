"""
Tests for per-account graph feature extraction.
"""

from datetime import datetime, timedelta

import pytest

from conftest import make_account, make_tx
from detection.features import (
    approximate_page_rank,
    clustering_coefficient,
    extract_graph_features,
    transaction_velocity,
)
from utils.graph_builder import GraphIndex


T0 = datetime(2024, 1, 1, 9, 0, 0)


def _by_id(features):
    return {f.account_id: f for f in features}


class TestClusteringCoefficient:

    def test_closed_triangle_is_fully_clustered(self):
        index = GraphIndex([
            make_tx("A", "B", T0),
            make_tx("B", "C", T0),
            make_tx("C", "A", T0),
        ])
        assert clustering_coefficient(index, "A") == pytest.approx(1.0)

    def test_star_centre_has_no_clustering(self):
        index = GraphIndex([
            make_tx("HUB", "A", T0),
            make_tx("HUB", "B", T0),
            make_tx("C", "HUB", T0),
        ])
        assert clustering_coefficient(index, "HUB") == 0.0

    def test_fewer_than_two_neighbours(self):
        index = GraphIndex([make_tx("A", "B", T0), make_tx("B", "A", T0)])
        assert clustering_coefficient(index, "A") == 0.0
        assert clustering_coefficient(index, "NOBODY") == 0.0

    def test_partial_clustering(self):
        # A's neighbours B, C, D; only B-C connected → 1 of 3 pairs
        index = GraphIndex([
            make_tx("A", "B", T0),
            make_tx("A", "C", T0),
            make_tx("D", "A", T0),
            make_tx("B", "C", T0),
        ])
        assert clustering_coefficient(index, "A") == pytest.approx(1 / 3)

    def test_sample_network_values_within_unit_interval(self, sample_network):
        accounts, transactions = sample_network
        for f in extract_graph_features(accounts, transactions):
            assert 0.0 <= f.clustering_coefficient <= 1.0


class TestPageRank:

    def test_formula(self):
        assert approximate_page_rank(2, 10) == pytest.approx(0.015 + 0.85 * 0.2)

    def test_no_accounts(self):
        assert approximate_page_rank(3, 0) == 0.0

    def test_capped_at_one(self):
        assert approximate_page_rank(50, 2) == 1.0

    def test_positive_for_every_account(self, sample_network):
        accounts, transactions = sample_network
        assert all(f.page_rank > 0 for f in extract_graph_features(accounts, transactions))

    def test_sums_to_one_when_every_account_has_one_in_link(self):
        accounts = [make_account(a) for a in "ABCD"]
        transactions = [
            make_tx("A", "B", T0),
            make_tx("B", "C", T0),
            make_tx("C", "D", T0),
            make_tx("D", "A", T0),
        ]
        features = extract_graph_features(accounts, transactions)
        assert sum(f.page_rank for f in features) == pytest.approx(1.0)


class TestVelocity:

    def test_empty(self):
        assert transaction_velocity([]) == 0.0

    def test_single_transaction_counts_one_day(self):
        assert transaction_velocity([make_tx("A", "B", T0)]) == pytest.approx(1.0)

    def test_span_plus_one_day(self):
        txs = [make_tx("A", "B", T0 + timedelta(days=d)) for d in (0, 1, 2, 3)]
        assert transaction_velocity(txs) == pytest.approx(4 / 4.0)


class TestExtractGraphFeatures:

    def test_one_record_per_account_in_input_order(self, sample_network):
        accounts, transactions = sample_network
        features = extract_graph_features(accounts, transactions)
        assert [f.account_id for f in features] == [a.account_id for a in accounts]

    def test_mule_hub_features(self, mule_network):
        accounts, transactions = mule_network
        mule = _by_id(extract_graph_features(accounts, transactions))["MULE01"]
        assert mule.in_degree == 3
        assert mule.out_degree == 1
        assert mule.degree == 4
        assert mule.total_volume == pytest.approx(11500.0)
        assert mule.avg_transaction_size == pytest.approx(2875.0)
        assert mule.transaction_velocity == pytest.approx(4 / (23 / 24 + 1))

    def test_degree_counts_transactions_not_counterparties(self):
        accounts = [make_account("A"), make_account("B")]
        transactions = [make_tx("A", "B", T0), make_tx("A", "B", T0 + timedelta(hours=1))]
        a = _by_id(extract_graph_features(accounts, transactions))["A"]
        assert a.out_degree == 2
        assert a.degree == 1

    def test_account_without_transactions(self):
        accounts = [make_account("IDLE"), make_account("A"), make_account("B")]
        idle = _by_id(extract_graph_features(accounts, [make_tx("A", "B", T0)]))["IDLE"]
        assert idle.degree == 0
        assert idle.total_volume == 0.0
        assert idle.avg_transaction_size == 0.0
        assert idle.transaction_velocity == 0.0
        assert idle.page_rank == pytest.approx(0.15 / 3)

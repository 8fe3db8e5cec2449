"""
patterns.py — Run every fraud-pattern detector in a fixed order.
"""

from __future__ import annotations

from typing import List, Sequence

from loguru import logger

from detection.cycles import detect_circular
from detection.layering import detect_layering
from detection.money_mule import detect_money_mules
from utils.models import FraudPattern, GraphFeatures, Transaction


def detect_fraud_patterns(
    transactions: Sequence[Transaction],
    features: Sequence[GraphFeatures],
) -> List[FraudPattern]:
    """Concatenate Layering, MoneyMule and Circular patterns, in that order.

    The order only matters for the order of reasons attached downstream.
    """
    layering = detect_layering(transactions)
    mules = detect_money_mules(transactions, features)
    circular = detect_circular(transactions)

    logger.info(
        f"Detected {len(layering)} layering, {len(mules)} money mule and "
        f"{len(circular)} circular pattern(s)"
    )
    return layering + mules + circular

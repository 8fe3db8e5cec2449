"""
json_export.py — Handoff shapes for reporting and export collaborators.

Output Schema
-------------
{
  "suspicious_accounts": [ ... ],
  "fraud_patterns": [ ... ],
  "communities": [ ... ],
  "network_metrics": { ... },
  "recommendations": [ ... ],
  "summary": { ... }
}
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Dict, List, Sequence

import pandas as pd

from utils.models import AccountRisk, FraudAnalysisResult

ROW_COLUMNS = [
    "account_id",
    "risk_score",
    "risk_pct",
    "community",
    "top_reason",
    "all_reasons",
    "has_quantum_failure",
]


def risk_rows(risks: Sequence[AccountRisk]) -> List[Dict[str, Any]]:
    """Flatten risk records into string-keyed rows, preserving order."""
    return [risk.to_row() for risk in risks]


def risks_to_frame(risks: Sequence[AccountRisk]) -> pd.DataFrame:
    """Tabulate risk rows (columns fixed even when *risks* is empty)."""
    return pd.DataFrame(risk_rows(risks), columns=ROW_COLUMNS)


def generate_report(result: FraudAnalysisResult) -> Dict[str, Any]:
    """Build the JSON-serialisable report dictionary.

    Parameters
    ----------
    result : FraudAnalysisResult
        Output of ``pipeline.analyze_transaction_network``.

    Returns
    -------
    dict
        The complete report matching the schema above.
    """
    # ── 1. Suspicious accounts ────────────────────────────────────────────
    suspicious_accounts = risk_rows(result.high_risk_accounts)

    # ── 2. Fraud patterns, highest confidence first ───────────────────────
    patterns: List[Dict[str, Any]] = [
        {
            "pattern_type": p.pattern_type.value,
            "confidence": p.confidence,
            "member_accounts": list(p.members),
            "label": p.label,
        }
        for p in result.fraud_patterns
    ]
    patterns.sort(key=lambda p: -p["confidence"])

    # ── 3. Communities ────────────────────────────────────────────────────
    communities: List[Dict[str, Any]] = [
        {
            "community_id": c.community_id,
            "members": list(c.members),
            "size": c.size,
            "internal_density": round(c.internal_density, 4),
            "external_connections": c.external_connections,
            "suspicion_score": round(c.suspicion_score, 4),
            "characteristics": list(c.characteristics),
        }
        for c in result.communities
    ]

    # ── 4. Summary ────────────────────────────────────────────────────────
    summary = {
        "total_accounts_analyzed": result.network_metrics.total_accounts,
        "suspicious_accounts_flagged": len(suspicious_accounts),
        "fraud_patterns_detected": len(patterns),
        "suspicious_communities": len(result.suspicious_communities),
        "community_detection_failed": result.community_failed,
    }

    return {
        "suspicious_accounts": suspicious_accounts,
        "fraud_patterns": patterns,
        "communities": communities,
        "network_metrics": asdict(result.network_metrics),
        "recommendations": list(result.recommendations),
        "summary": summary,
    }


def report_to_json_string(report: Dict[str, Any], indent: int = 2) -> str:
    """Serialise the report dict to a pretty-printed JSON string."""
    return json.dumps(report, indent=indent, default=str)

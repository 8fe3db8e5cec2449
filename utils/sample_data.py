"""
sample_data.py — Reference transaction network with known fraud patterns.

Patterns embedded:
- Legitimate supply-chain and retail clusters (with ordinary payment loops)
- A layering ring FRAUD01 → FRAUD02 → FRAUD03 → FRAUD04 → FRAUD01, five
  minutes per hop, plus two cross transfers inside the ring
- A money mule collecting from three victims, then cashing out
"""

from __future__ import annotations

from typing import List, Tuple

import pandas as pd

from utils.models import Account, Transaction
from utils.validation import validate_network


def generate_sample_frames() -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Return the reference network as (accounts_df, transactions_df).

    Returns
    -------
    accounts_df : pd.DataFrame
        15 accounts: account_id, account_type, created_at, country, risk_score
    transactions_df : pd.DataFrame
        18 transactions: source, destination, amount, timestamp,
        transaction_type
    """
    account_rows: list[dict] = []
    tx_rows: list[dict] = []

    def _add_account(acc_id: str, acc_type: str, created: str, country: str,
                     risk: float | None) -> None:
        account_rows.append({
            "account_id": acc_id,
            "account_type": acc_type,
            "created_at": f"{created} 00:00:00",
            "country": country,
            "risk_score": risk,
        })

    def _add_tx(source: str, destination: str, amount: float, ts: str,
                tx_type: str = "Transfer") -> None:
        if len(ts) == 10:
            ts = f"{ts} 00:00:00"
        tx_rows.append({
            "source": source,
            "destination": destination,
            "amount": amount,
            "timestamp": ts,
            "transaction_type": tx_type,
        })

    # ── 1. Legitimate accounts ───────────────────────────────────────────
    _add_account("ACC001", "Business", "2020-01-15", "US", 0.10)
    _add_account("ACC002", "Business", "2019-06-20", "US", 0.15)
    _add_account("ACC003", "Business", "2018-03-10", "US", 0.10)
    _add_account("ACC004", "Personal", "2021-02-05", "US", 0.05)
    _add_account("ACC005", "Business", "2017-08-01", "UK", 0.20)
    _add_account("ACC006", "Personal", "2020-11-30", "UK", 0.10)
    _add_account("ACC007", "Personal", "2019-04-15", "UK", 0.08)

    # ── 2. Fraud ring (unknown jurisdiction, never assessed) ─────────────
    _add_account("FRAUD01", "Personal", "2023-10-01", "XX", None)
    _add_account("FRAUD02", "Personal", "2023-10-02", "XX", None)
    _add_account("FRAUD03", "Personal", "2023-10-03", "XX", None)
    _add_account("FRAUD04", "MoneyService", "2023-09-28", "XX", None)

    # ── 3. Money mule and victims ────────────────────────────────────────
    _add_account("MULE01", "Personal", "2023-08-15", "NG", 0.60)
    _add_account("VICTIM01", "Personal", "2015-03-20", "US", 0.05)
    _add_account("VICTIM02", "Personal", "2018-07-10", "CA", 0.03)
    _add_account("VICTIM03", "Personal", "2016-12-05", "UK", 0.04)

    # ── 4. Legitimate transactions ───────────────────────────────────────
    _add_tx("ACC001", "ACC002", 15000.0, "2024-01-05", "Payment")
    _add_tx("ACC002", "ACC003", 12000.0, "2024-01-06", "Payment")
    _add_tx("ACC003", "ACC001", 8000.0, "2024-01-07", "Payment")
    _add_tx("ACC001", "ACC004", 3500.0, "2024-01-08")
    _add_tx("ACC005", "ACC006", 2500.0, "2024-01-03", "Payment")
    _add_tx("ACC006", "ACC007", 800.0, "2024-01-04")
    _add_tx("ACC007", "ACC005", 1200.0, "2024-01-05", "Payment")
    _add_tx("ACC002", "ACC005", 5000.0, "2024-01-10", "Payment")

    # ── 5. Layering ring: rapid sequential transfers ─────────────────────
    _add_tx("FRAUD01", "FRAUD02", 9800.0, "2024-01-15 10:00:00")
    _add_tx("FRAUD02", "FRAUD03", 9500.0, "2024-01-15 10:05:00")
    _add_tx("FRAUD03", "FRAUD04", 9200.0, "2024-01-15 10:10:00")
    _add_tx("FRAUD04", "FRAUD01", 4000.0, "2024-01-15 10:15:00")
    _add_tx("FRAUD01", "FRAUD03", 5000.0, "2024-01-16 14:00:00")
    _add_tx("FRAUD02", "FRAUD04", 4800.0, "2024-01-16 14:05:00")

    # ── 6. Money mule: star fan-in, then cash-out ────────────────────────
    _add_tx("VICTIM01", "MULE01", 2000.0, "2024-01-12 09:00:00")
    _add_tx("VICTIM02", "MULE01", 1800.0, "2024-01-12 11:00:00")
    _add_tx("VICTIM03", "MULE01", 2200.0, "2024-01-12 14:00:00")
    _add_tx("MULE01", "FRAUD04", 5500.0, "2024-01-13 08:00:00", "Withdrawal")

    return pd.DataFrame(account_rows), pd.DataFrame(tx_rows)


def generate_sample_network() -> Tuple[List[Account], List[Transaction]]:
    """Return the reference network as validated records."""
    accounts_df, transactions_df = generate_sample_frames()
    is_valid, errors, accounts, transactions = validate_network(
        accounts_df, transactions_df
    )
    if not is_valid:
        raise ValueError(f"Sample network failed validation: {errors}")
    return accounts, transactions

"""
validation.py — Validate tabular account and transaction inputs.

Turns caller-supplied DataFrames into immutable ``Account`` and
``Transaction`` records before any graph construction or detection runs.
"""

from __future__ import annotations

from typing import List, Tuple

import pandas as pd
from loguru import logger

from utils.models import Account, AccountType, Transaction, TransactionType

# ── Required schema ──────────────────────────────────────────────────────────
ACCOUNT_COLUMNS = {
    "account_id": "string",
    "account_type": "string",
    "created_at": "datetime",
    "country": "string",
}

TRANSACTION_COLUMNS = {
    "source": "string",
    "destination": "string",
    "amount": "float",
    "timestamp": "datetime",
}

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


# ── Public API ───────────────────────────────────────────────────────────────

def validate_accounts(df: pd.DataFrame) -> Tuple[bool, List[str], List[Account]]:
    """Validate an account table and build ``Account`` records.

    Parameters
    ----------
    df : pd.DataFrame
        Columns ``account_id``, ``account_type``, ``created_at``, ``country``
        and optionally ``risk_score`` (blank for never-assessed accounts).

    Returns
    -------
    is_valid : bool
    errors : list[str]
        Human-readable error messages (empty when valid).
    accounts : list[Account]
        Empty on failure.
    """
    errors: List[str] = []

    # 1. Check required columns ------------------------------------------------
    missing = set(ACCOUNT_COLUMNS) - set(df.columns)
    if missing:
        errors.append(f"Missing required columns: {', '.join(sorted(missing))}")
        return False, errors, []

    cleaned = df.copy()
    if "risk_score" not in cleaned.columns:
        cleaned["risk_score"] = float("nan")

    # 2. Strip whitespace, check for empty IDs ---------------------------------
    for col in ("account_id", "account_type", "country"):
        cleaned[col] = cleaned[col].fillna("").astype(str).str.strip()
    n_empty = (cleaned["account_id"] == "").sum()
    if n_empty:
        errors.append(f"Column 'account_id' has {n_empty} empty/null value(s).")

    # 3. Unique IDs ------------------------------------------------------------
    dup_count = cleaned["account_id"].duplicated().sum()
    if dup_count:
        errors.append(f"Column 'account_id' has {dup_count} duplicate value(s).")

    # 4. Known account types ---------------------------------------------------
    known_types = {t.value for t in AccountType}
    bad_types = sorted(set(cleaned["account_type"]) - known_types)
    if bad_types:
        errors.append(f"Unknown account type(s): {', '.join(bad_types)}")

    # 5. Parse creation date ---------------------------------------------------
    cleaned["created_at"] = pd.to_datetime(
        cleaned["created_at"], format=TIMESTAMP_FORMAT, errors="coerce"
    )
    n_bad_ts = cleaned["created_at"].isna().sum()
    if n_bad_ts:
        errors.append(
            f"Column 'created_at' has {n_bad_ts} value(s) that don't match "
            f"format '{TIMESTAMP_FORMAT}'."
        )

    # 6. Prior risk in [0, 1] --------------------------------------------------
    cleaned["risk_score"] = pd.to_numeric(cleaned["risk_score"], errors="coerce")
    out_of_range = ((cleaned["risk_score"] < 0) | (cleaned["risk_score"] > 1)).sum()
    if out_of_range:
        errors.append(
            f"Column 'risk_score' has {out_of_range} value(s) outside [0, 1]."
        )

    if errors:
        return False, errors, []

    accounts = [
        Account(
            account_id=row.account_id,
            account_type=AccountType(row.account_type),
            created_at=row.created_at.to_pydatetime(),
            country=row.country,
            risk_score=None if pd.isna(row.risk_score) else float(row.risk_score),
        )
        for row in cleaned.itertuples(index=False)
    ]
    return True, errors, accounts


def validate_transactions(
    df: pd.DataFrame,
) -> Tuple[bool, List[str], List[Transaction]]:
    """Validate a transaction table and build ``Transaction`` records.

    Self-transfers are dropped with a warning; they do not fail validation.
    A missing ``transaction_type`` column defaults every row to Transfer.
    """
    errors: List[str] = []

    # 1. Check required columns ------------------------------------------------
    missing = set(TRANSACTION_COLUMNS) - set(df.columns)
    if missing:
        errors.append(f"Missing required columns: {', '.join(sorted(missing))}")
        return False, errors, []

    cleaned = df.copy()
    if "transaction_type" not in cleaned.columns:
        cleaned["transaction_type"] = TransactionType.TRANSFER.value

    # 2. Strip whitespace, check for empty IDs ---------------------------------
    for col in ("source", "destination", "transaction_type"):
        cleaned[col] = cleaned[col].fillna("").astype(str).str.strip()
    for col in ("source", "destination"):
        n_empty = (cleaned[col] == "").sum()
        if n_empty:
            errors.append(f"Column '{col}' has {n_empty} empty/null value(s).")

    # 3. Positive numeric amounts ----------------------------------------------
    cleaned["amount"] = pd.to_numeric(cleaned["amount"], errors="coerce")
    n_bad_amount = cleaned["amount"].isna().sum()
    if n_bad_amount:
        errors.append(f"Column 'amount' has {n_bad_amount} non-numeric value(s).")
    n_neg = (cleaned["amount"] <= 0).sum()
    if n_neg:
        errors.append(
            f"Column 'amount' has {n_neg} non-positive value(s). "
            "All amounts must be > 0."
        )

    # 4. Parse timestamp -------------------------------------------------------
    cleaned["timestamp"] = pd.to_datetime(
        cleaned["timestamp"], format=TIMESTAMP_FORMAT, errors="coerce"
    )
    n_bad_ts = cleaned["timestamp"].isna().sum()
    if n_bad_ts:
        errors.append(
            f"Column 'timestamp' has {n_bad_ts} value(s) that don't match "
            f"format '{TIMESTAMP_FORMAT}'."
        )

    # 5. Known transaction types -----------------------------------------------
    known_types = {t.value for t in TransactionType}
    bad_types = sorted(set(cleaned["transaction_type"]) - known_types)
    if bad_types:
        errors.append(f"Unknown transaction type(s): {', '.join(bad_types)}")

    if errors:
        return False, errors, []

    # 6. Self-transfers (warning only) -----------------------------------------
    n_self = (cleaned["source"] == cleaned["destination"]).sum()
    if n_self:
        errors.append(
            f"Warning: found {n_self} self-transfer(s) (source == destination). "
            "These will be dropped."
        )
        logger.warning(f"Dropping {n_self} self-transfer(s)")
        cleaned = cleaned[cleaned["source"] != cleaned["destination"]]

    transactions = [
        Transaction(
            source=row.source,
            destination=row.destination,
            amount=float(row.amount),
            timestamp=row.timestamp.to_pydatetime(),
            transaction_type=TransactionType(row.transaction_type),
        )
        for row in cleaned.itertuples(index=False)
    ]
    return True, errors, transactions


def validate_network(
    accounts_df: pd.DataFrame,
    transactions_df: pd.DataFrame,
) -> Tuple[bool, List[str], List[Account], List[Transaction]]:
    """Validate both tables and warn about transactions naming unknown accounts."""
    acc_ok, acc_errors, accounts = validate_accounts(accounts_df)
    tx_ok, tx_errors, transactions = validate_transactions(transactions_df)
    errors = acc_errors + tx_errors

    if acc_ok and tx_ok:
        known = {acc.account_id for acc in accounts}
        unknown = sorted(
            {tx.source for tx in transactions} | {tx.destination for tx in transactions}
        )
        unknown = [acc_id for acc_id in unknown if acc_id not in known]
        if unknown:
            errors.append(
                f"Warning: transactions reference {len(unknown)} account(s) "
                f"missing from the account table: {', '.join(unknown)}"
            )

    is_valid = acc_ok and tx_ok
    if not is_valid:
        return False, errors, [], []
    return True, errors, accounts, transactions

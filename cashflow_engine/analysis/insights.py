"""
Drill-down helpers over classified transactions.

Backs the "why is this number what it is" views: spend by category, monthly
trend per bucket, the largest contributors and the accounts involved.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Sequence

import pandas as pd

from ..classification.engine import TransactionClassifier
from ..models.account import Account
from ..models.buckets import BucketCategory
from ..models.transaction import Transaction


CALCULATION_EXPLANATIONS = {
    BucketCategory.INCOME: (
        "Average of income deposits (payroll, benefits, interest and dividends) "
        "over the months analyzed. Transfers between your own accounts and "
        "investment contributions are not counted."
    ),
    BucketCategory.EXPENSES: (
        "Average monthly spending across housing, food, transportation, utilities, "
        "insurance, subscriptions, healthcare and other purchases. Credit card "
        "payments and transfers are excluded to avoid double counting."
    ),
    BucketCategory.DEBT: (
        "Current balances of credit cards and loans. Minimum payments come from "
        "your provider or are estimated from the balance and loan type."
    ),
    BucketCategory.INVESTED: (
        "Balances of investment and brokerage accounts, plus contributions "
        "detected in your transactions."
    ),
    BucketCategory.CASH: (
        "Available balance of checking and savings accounts, excluding "
        "certificates of deposit."
    ),
    BucketCategory.DISPOSABLE: (
        "Average monthly income minus expenses and debt minimum payments."
    ),
    BucketCategory.EXCLUDED: (
        "Transfers between your own accounts, which are neither income nor spending."
    ),
}


def calculation_explanation(bucket: BucketCategory) -> str:
    return CALCULATION_EXPLANATIONS[bucket]


def _category_label(txn: Transaction) -> str:
    pfc = txn.personal_finance_category
    if pfc is not None:
        return pfc.primary.replace("_", " ").title()
    if txn.category:
        return txn.category[0]
    return "Uncategorized"


def expenses_by_category(
    transactions: Iterable[Transaction],
    classifier: TransactionClassifier
) -> Dict[str, float]:
    """Total real expense per top-level category label, largest first."""
    totals: Dict[str, float] = defaultdict(float)
    for txn in transactions:
        if classifier.is_essential_expense(txn):
            totals[_category_label(txn)] += txn.amount
    return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))


def transactions_to_dataframe(
    transactions: Sequence[Transaction],
    classifier: TransactionClassifier
) -> pd.DataFrame:
    """
    Tabulate transactions with their derived classification fields.

    Args:
        transactions: Transactions to tabulate
        classifier: Classifier used for the derived columns

    Returns:
        pandas DataFrame, one row per transaction
    """
    rows = []
    for txn in transactions:
        result = classifier.classify(txn)
        pfc = txn.personal_finance_category
        rows.append({
            "transaction_id": txn.transaction_id,
            "account_id": txn.account_id,
            "date": pd.Timestamp(txn.date),
            "name": txn.name,
            "merchant_name": txn.merchant_name or "",
            "amount": txn.amount,
            "pfc_primary": pfc.primary if pfc else "",
            "pfc_detailed": pfc.detailed if pfc else "",
            "confidence_level": result.confidence_level.value,
            "bucket": result.bucket.value,
            "rule": result.rule,
            "is_essential": result.is_essential,
            "is_discretionary": result.is_discretionary,
            "needs_validation": result.needs_validation,
        })
    columns = [
        "transaction_id", "account_id", "date", "name", "merchant_name", "amount",
        "pfc_primary", "pfc_detailed", "confidence_level", "bucket", "rule",
        "is_essential", "is_discretionary", "needs_validation",
    ]
    return pd.DataFrame(rows, columns=columns)


def monthly_trends(
    transactions: Sequence[Transaction],
    bucket: BucketCategory,
    classifier: TransactionClassifier
) -> pd.Series:
    """
    Monthly totals (absolute amounts) for one bucket, indexed by month start.

    Returns an empty float Series when nothing falls in the bucket.
    """
    dates = []
    amounts = []
    for txn in transactions:
        if classifier.categorize_to_bucket(txn) == bucket:
            dates.append(pd.Timestamp(txn.date))
            amounts.append(abs(txn.amount))
    if not dates:
        return pd.Series(dtype=float)

    frame = pd.DataFrame({"date": dates, "amount": amounts})
    return frame.groupby(pd.Grouper(key="date", freq="MS"))["amount"].sum()


def top_contributors(
    transactions: Iterable[Transaction],
    bucket: BucketCategory,
    classifier: TransactionClassifier,
    limit: int = 10
) -> List[Transaction]:
    """Largest transactions in a bucket by absolute amount."""
    members = [txn for txn in transactions if classifier.categorize_to_bucket(txn) == bucket]
    members.sort(key=lambda txn: (-abs(txn.amount), txn.date, txn.transaction_id))
    return members[:limit]


def contributing_accounts(
    transactions: Iterable[Transaction],
    accounts: Sequence[Account],
    bucket: BucketCategory,
    classifier: TransactionClassifier
) -> List[Account]:
    """Accounts holding at least one transaction in the bucket."""
    account_ids = {
        txn.account_id for txn in transactions
        if classifier.categorize_to_bucket(txn) == bucket
    }
    return [account for account in accounts if account.account_id in account_ids]


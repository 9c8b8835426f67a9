"""CSV export of a user's transactions."""

import csv
from io import StringIO
from typing import Sequence

from moneymigo.models.finance import Transaction


CSV_HEADER = ["Date", "Type", "Amount", "Category", "Description"]

# Spreadsheet apps evaluate cells starting with these
FORMULA_TRIGGERS = ("=", "+", "-", "@", "\t", "\r")


def sanitize_csv_value(value: str) -> str:
    """Prefix formula-looking text with a tab so it is never evaluated."""
    if not value or value.strip() == "":
        return ""
    value = value.strip()
    if value.startswith(FORMULA_TRIGGERS):
        return "\t" + value
    return value


def export_transactions(transactions: Sequence[Transaction]) -> str:
    """
    Render transactions as CSV text, in the order given.

    Amounts are positive; the Type column carries the direction.
    """
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADER)
    for txn in transactions:
        writer.writerow(
            [
                txn.date.isoformat(),
                txn.type.value,
                f"{txn.amount:.2f}",
                sanitize_csv_value(txn.category),
                sanitize_csv_value(txn.description),
            ]
        )
    return output.getvalue()

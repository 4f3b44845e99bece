"""
Seed ingestion - loads sample transactions from a CSV file into an empty store.
Expected header: date, merchant, amount, category, notes.
"""

import logging
import os
import sys
from typing import List, Optional

import pandas as pd

from config import get_settings
from models import Transaction
from repositories import TransactionRepository
from services.common import parse_date

logger = logging.getLogger(__name__)

SEED_COLUMNS = ["date", "merchant", "amount", "category", "notes"]


def _text(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def _amount(value) -> Optional[float]:
    text = _text(value)
    if text is None:
        return None
    number = pd.to_numeric(text, errors="coerce")
    return None if pd.isna(number) else float(number)


def read_seed_file(path: str) -> List[Transaction]:
    """
    Parse a seed CSV into unsaved transactions.
    Rows with fewer than five cells are skipped and longer rows keep their
    first five. An unparseable amount or date is stored as absent instead of
    rejecting the row.

    Args:
        path: CSV file with a header row

    Returns:
        List of Transaction objects without ids
    """
    # Long rows (e.g. notes holding a comma) keep their first five cells;
    # index_col=False stops pandas from turning an extra leading cell into the index
    df = pd.read_csv(
        path,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        index_col=False,
        engine="python",
        on_bad_lines=lambda fields: fields[:len(SEED_COLUMNS)]
    )
    if len(df.columns) < len(SEED_COLUMNS):
        logger.warning(f"Seed file {path} has {len(df.columns)} columns, expected {len(SEED_COLUMNS)}")
        return []

    # Columns are positional; the header row only names them
    df = df.iloc[:, :len(SEED_COLUMNS)]
    df.columns = SEED_COLUMNS

    transactions = []
    for row in df.itertuples(index=False):
        if any(cell is None or pd.isna(cell) for cell in row):
            continue
        transactions.append(Transaction(
            date=parse_date(_text(row.date)),
            merchant=_text(row.merchant),
            amount=_amount(row.amount),
            category=_text(row.category),
            notes=_text(row.notes)
        ))
    return transactions


def seed_from_csv(path: Optional[str] = None) -> int:
    """
    Load the seed file, but only into an empty store.

    Args:
        path: CSV path; defaults to the configured seed_csv_path

    Returns:
        Number of transactions inserted (0 when skipped)
    """
    path = path or get_settings().seed_csv_path
    if TransactionRepository.count() > 0:
        logger.info("Store already has transactions, skipping seed")
        return 0
    if not path or not os.path.exists(path):
        logger.info(f"No seed file at {path}, skipping seed")
        return 0

    inserted = TransactionRepository.add_many(read_seed_file(path))
    logger.info(f"Seeded {inserted} transactions from {path}")
    return inserted


if __name__ == "__main__":
    from dotenv import load_dotenv
    from db_engine import init_db

    load_dotenv()
    logging.basicConfig(
        level=get_settings().log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    init_db()
    count = seed_from_csv(sys.argv[1] if len(sys.argv) > 1 else None)
    print(f"Inserted {count} transactions.")

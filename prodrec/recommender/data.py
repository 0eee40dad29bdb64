"""Rating data loading, cleaning and train/test splitting.

Reads the product review CSV by fixed column position, keeps rows with
usable identifiers and a numeric rating, and splits the cleaned data into
training and held-out sets.
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from prodrec.recommender.config import (
    DEFAULT_RANDOM_STATE,
    DEFAULT_TEST_FRACTION,
    ColumnConfig,
)
from prodrec.recommender.exceptions import ColumnConfigError, SplitError

# Configure module logger
logger = logging.getLogger(__name__)

RATING_COLUMNS = ["product_id", "user_id", "label"]
PREVIEW_ROWS = 5


@dataclass
class LoadResult:
    """Cleaned dataset plus row accounting.

    Attributes:
        dataset: DataFrame with product_id, user_id and label columns,
            in source row order.
        n_rows_read: Number of data rows in the file, malformed lines included.
        n_rows_skipped: Number of rows dropped during cleaning.
    """

    dataset: pd.DataFrame
    n_rows_read: int
    n_rows_skipped: int

    @property
    def n_records(self) -> int:
        return len(self.dataset)


def normalize_identifier(value: str) -> str:
    """Replace commas so identifiers never collide with the CSV delimiter."""
    return value.replace(",", " ")


def _validate_header(header: List[str], columns: ColumnConfig) -> None:
    """Check configured column positions against the header row.

    Raises:
        ColumnConfigError: If the header is narrower than the widest
            configured column index.
    """
    if columns.max_index() >= len(header):
        raise ColumnConfigError(
            f"CSV header has {len(header)} columns but column index "
            f"{columns.max_index()} is configured",
            details={"header": header, "columns": columns.positions()},
        )

    if not columns.expected_headers:
        return

    for name, index in columns.positions().items():
        expected = columns.expected_headers.get(name)
        actual = header[index].strip()
        if expected is not None and actual != expected:
            logger.warning(
                "Unexpected header name for configured column",
                extra={"field": name, "index": index, "expected": expected, "actual": actual},
            )


def load_ratings(csv_path: str, columns: Optional[ColumnConfig] = None) -> LoadResult:
    """Load and clean rating records from a CSV file.

    Each row contributes one record if its product and user identifiers are
    non-blank (after replacing commas with spaces) and its rating parses as
    a finite number. Any other row is skipped and counted; a bad row never
    aborts the load.

    Args:
        csv_path: Path to a CSV file with a header row.
        columns: Positions of the product id, rating and user id columns.

    Returns:
        LoadResult with the cleaned dataset and skip count.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
        ColumnConfigError: If the header doesn't have the configured columns.

    Example:
        >>> result = load_ratings("data/amazon.csv")
        >>> print(f"{result.n_records} records, {result.n_rows_skipped} skipped")
    """
    columns = columns or ColumnConfig()
    columns.validate()

    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    logger.info(f"Loading ratings from {csv_path}")

    bad_lines: List[List[str]] = []

    def _collect_bad_line(line: List[str]) -> None:
        bad_lines.append(line)
        return None

    try:
        raw = pd.read_csv(
            csv_file,
            header=0,
            dtype=str,
            encoding="utf-8",
            # Undecodable bytes become U+FFFD so one bad row can't abort the load
            encoding_errors="replace",
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines=_collect_bad_line,
            engine="python",
        )
    except pd.errors.EmptyDataError:
        raise ColumnConfigError(f"CSV file has no header row: {csv_path}")

    _validate_header([str(name) for name in raw.columns], columns)

    # Short rows come back as NaN for the missing trailing fields
    raw = raw.fillna("")

    product_ids = raw.iloc[:, columns.product_id_col].astype(str).str.replace(",", " ", regex=False)
    user_ids = raw.iloc[:, columns.user_id_col].astype(str).str.replace(",", " ", regex=False)
    labels = pd.to_numeric(
        raw.iloc[:, columns.label_col].astype(str).str.strip(), errors="coerce"
    ).astype(np.float64)

    valid = (
        (product_ids.str.strip() != "")
        & (user_ids.str.strip() != "")
        & labels.notna()
        & np.isfinite(labels.fillna(0.0))
    )

    dataset = pd.DataFrame(
        {
            "product_id": product_ids[valid].to_numpy(),
            "user_id": user_ids[valid].to_numpy(),
            "label": labels[valid].astype(np.float32).to_numpy(),
        },
        columns=RATING_COLUMNS,
    )

    n_rows_read = len(raw) + len(bad_lines)
    n_rows_skipped = n_rows_read - len(dataset)

    if n_rows_skipped:
        logger.warning(
            "Skipped malformed rating rows",
            extra={
                "csv_path": str(csv_path),
                "rows_skipped": n_rows_skipped,
                "bad_lines": len(bad_lines),
                "rows_read": n_rows_read,
            },
        )

    logger.info(f"Loaded {len(dataset)} rating records ({n_rows_skipped} skipped)")
    for row in dataset.head(PREVIEW_ROWS).itertuples(index=False):
        logger.debug(f"User: {row.user_id}, Product: {row.product_id}, Rating: {row.label}")

    return LoadResult(dataset=dataset, n_rows_read=n_rows_read, n_rows_skipped=n_rows_skipped)


def split_dataset(
    dataset: pd.DataFrame,
    test_fraction: float = DEFAULT_TEST_FRACTION,
    random_state: int = DEFAULT_RANDOM_STATE,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Split a dataset into training and held-out sets.

    The held-out side gets ceil(test_fraction * n) rows and training gets the
    rest. Rows are picked with a seeded shuffle, then each side is put back
    in source order.

    Args:
        dataset: Cleaned rating records.
        test_fraction: Fraction of rows to hold out, in (0, 1).
        random_state: Seed for the shuffle.

    Returns:
        Tuple of (train, test) DataFrames with fresh indices.

    Raises:
        ValueError: If test_fraction is outside (0, 1).
        SplitError: If either side of the split would be empty.
    """
    if not 0.0 < test_fraction < 1.0:
        raise ValueError(f"test_fraction must be in (0, 1), got {test_fraction}")

    n_rows = len(dataset)
    # Rounded first so 0.3 * 10 gives 3 test rows, not 4
    n_test = math.ceil(round(test_fraction * n_rows, 9))
    n_train = n_rows - n_test

    if n_test == 0 or n_train == 0:
        raise SplitError(
            f"Cannot split {n_rows} rows with test_fraction={test_fraction}: "
            f"train={n_train}, test={n_test}",
            details={"n_rows": n_rows, "n_train": n_train, "n_test": n_test},
        )

    train_idx, test_idx = train_test_split(
        np.arange(n_rows),
        test_size=n_test,
        random_state=random_state,
        shuffle=True,
    )

    train = dataset.iloc[np.sort(train_idx)].reset_index(drop=True)
    test = dataset.iloc[np.sort(test_idx)].reset_index(drop=True)

    logger.info(f"Split {n_rows} rows into train={len(train)}, test={len(test)}")

    return train, test

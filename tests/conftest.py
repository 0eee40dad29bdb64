"""Shared fixtures for the ProdRec test suite."""

import sys
from pathlib import Path
from typing import List, Sequence

import pandas as pd
import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from prodrec.recommender.model import RatingModel
from prodrec.recommender.train import fit_model
from scripts.generate_fake_data import REVIEW_COLUMNS, generate_fake_reviews


def review_row(product_id: str, rating: str, user_id: str) -> List[str]:
    """Build one review row with the three rating fields at their real positions."""
    row = [""] * len(REVIEW_COLUMNS)
    row[0] = product_id
    row[1] = "Some product"
    row[6] = rating
    row[9] = user_id
    return row


def write_reviews(path: Path, rows: Sequence[Sequence[str]]) -> Path:
    """Write review rows under the export header, quoting as csv would."""
    df = pd.DataFrame(list(rows), columns=REVIEW_COLUMNS)
    df.to_csv(path, index=False)
    return path


@pytest.fixture
def reviews_csv(tmp_path: Path) -> Path:
    """Generate a realistic review CSV.

    Returns:
        Path to a CSV with 20 users, 30 products and 400 reviews.
    """
    df = generate_fake_reviews(num_users=20, num_products=30, num_reviews=400, seed=7)
    csv_path = tmp_path / "reviews.csv"
    df.to_csv(csv_path, index=False)
    return csv_path


@pytest.fixture
def ratings_df() -> pd.DataFrame:
    """Cleaned rating records as the loader would return them."""
    df = generate_fake_reviews(num_users=15, num_products=25, num_reviews=300, seed=3)
    return pd.DataFrame(
        {
            "product_id": df["product_id"],
            "user_id": df["user_id"],
            "label": df["rating"].astype("float32"),
        }
    )


@pytest.fixture
def trained_model(ratings_df: pd.DataFrame) -> RatingModel:
    """A small fitted model."""
    return fit_model(ratings_df, rank=5, n_iter=5, random_state=42)

"""Generate fake product review data for testing and development.

Writes CSV files laid out like the Amazon product review export the model
is trained on: product id in column 0, rating in column 6 and user id in
column 9. Ratings come from random latent user and product tastes, so a
trained model has real structure to recover.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_reviews
        df = generate_fake_reviews(num_users=100, num_products=200)
"""

import argparse
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

# Default configuration constants
DEFAULT_NUM_USERS = 50
DEFAULT_NUM_PRODUCTS = 100
DEFAULT_NUM_REVIEWS = 1000
DEFAULT_LATENT_DIM = 3
DEFAULT_SEED = 42

REVIEW_COLUMNS = [
    "product_id",
    "product_name",
    "category",
    "discounted_price",
    "actual_price",
    "discount_percentage",
    "rating",
    "rating_count",
    "about_product",
    "user_id",
    "user_name",
    "review_id",
]


def generate_fake_reviews(
    num_users: int = DEFAULT_NUM_USERS,
    num_products: int = DEFAULT_NUM_PRODUCTS,
    num_reviews: int = DEFAULT_NUM_REVIEWS,
    latent_dim: int = DEFAULT_LATENT_DIM,
    seed: Optional[int] = DEFAULT_SEED,
) -> pd.DataFrame:
    """Generate synthetic product reviews.

    Args:
        num_users: Number of unique users to simulate. Must be positive.
        num_products: Number of unique products. Must be positive.
        num_reviews: Total number of review rows. Must be positive.
        latent_dim: Dimension of the hidden taste vectors behind the ratings.
        seed: Random seed, None for a fresh random state.

    Returns:
        DataFrame with REVIEW_COLUMNS. Ratings are between 1.0 and 5.0 with
        one decimal. Product names contain commas, as in the real export.

    Raises:
        ValueError: If any count is non-positive.
    """
    if num_users <= 0 or num_products <= 0 or num_reviews <= 0 or latent_dim <= 0:
        raise ValueError(
            "num_users, num_products, num_reviews and latent_dim must be positive"
        )

    rng = np.random.default_rng(seed)

    user_taste = rng.normal(0.0, 0.6, size=(num_users, latent_dim))
    product_traits = rng.normal(0.0, 0.6, size=(num_products, latent_dim))

    users = rng.integers(0, num_users, size=num_reviews)
    products = rng.integers(0, num_products, size=num_reviews)

    raw = 3.8 + np.einsum("ij,ij->i", user_taste[users], product_traits[products])
    raw += rng.normal(0.0, 0.1, size=num_reviews)
    ratings = np.clip(np.round(raw, 1), 1.0, 5.0)

    prices = rng.integers(199, 4999, size=num_products)

    return pd.DataFrame(
        {
            "product_id": [f"B{p:09d}" for p in products],
            "product_name": [f"Product {p}, assorted colours" for p in products],
            "category": "Electronics|Accessories",
            "discounted_price": [f"₹{prices[p] // 2}" for p in products],
            "actual_price": [f"₹{prices[p]}" for p in products],
            "discount_percentage": "50%",
            "rating": ratings,
            "rating_count": rng.integers(1, 50000, size=num_reviews),
            "about_product": "Fake product for testing",
            "user_id": [f"AUSER{u:06d}" for u in users],
            "user_name": [f"User {u}" for u in users],
            "review_id": [f"R{i:08d}" for i in range(num_reviews)],
        },
        columns=REVIEW_COLUMNS,
    )


def main() -> None:
    """Generate fake reviews and save them to data/fake_reviews.csv."""
    parser = argparse.ArgumentParser(description="Generate fake product review data")
    parser.add_argument("--num-users", type=int, default=DEFAULT_NUM_USERS)
    parser.add_argument("--num-products", type=int, default=DEFAULT_NUM_PRODUCTS)
    parser.add_argument("--num-reviews", type=int, default=DEFAULT_NUM_REVIEWS)
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED)
    parser.add_argument("--output", type=str, default=None)
    args = parser.parse_args()

    print(f"Generating {args.num_reviews} fake reviews...")
    print(f"Users: {args.num_users}, Products: {args.num_products}")

    try:
        df = generate_fake_reviews(
            num_users=args.num_users,
            num_products=args.num_products,
            num_reviews=args.num_reviews,
            seed=args.seed,
        )
    except ValueError as e:
        print(f"Error generating data: {e}")
        return

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        data_dir = Path(__file__).parent.parent / "data"
        data_dir.mkdir(exist_ok=True)
        output_path = data_dir / "fake_reviews.csv"

    df.to_csv(output_path, index=False)

    print(f"\nData generated successfully!")
    print(f"Saved to: {output_path}")
    print(f"\nData preview:")
    print(df[["product_id", "rating", "user_id"]].head(10))
    print(f"\nData summary:")
    print(f"  Total reviews: {len(df)}")
    print(f"  Unique users: {df['user_id'].nunique()}")
    print(f"  Unique products: {df['product_id'].nunique()}")
    print(f"  Mean rating: {df['rating'].mean():.2f}")


if __name__ == "__main__":
    main()

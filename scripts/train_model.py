"""Command-line interface for training the product rating model.

This script trains the ProdRec matrix factorization model from a product
review CSV, reports held-out metrics and saves the model file.

Example:
    Train a model with default settings:
        $ python scripts/train_model.py data/amazon.csv

    Train with custom parameters:
        $ python scripts/train_model.py data/amazon.csv \\
            --model-path models/production.joblib \\
            --rank 50 \\
            --n-iter 30
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from prodrec.recommender.config import (
    DEFAULT_LABEL_COL,
    DEFAULT_MODEL_PATH,
    DEFAULT_N_ITERATIONS,
    DEFAULT_PRODUCT_ID_COL,
    DEFAULT_RANDOM_STATE,
    DEFAULT_RANK,
    DEFAULT_TEST_FRACTION,
    DEFAULT_USER_ID_COL,
    ColumnConfig,
    TrainingConfig,
)
from prodrec.recommender.exceptions import TrainingError
from prodrec.recommender.train import train_and_evaluate


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the script.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise, use INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Train a matrix factorization rating model from a product review CSV.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Train with default settings
  python scripts/train_model.py data/amazon.csv

  # Train with a smaller rank and a custom model path
  python scripts/train_model.py data/amazon.csv --model-path models/prod.joblib --rank 30

  # Train with verbose logging
  python scripts/train_model.py data/amazon.csv --verbose
        """,
    )

    parser.add_argument(
        "csv_path",
        type=str,
        help="Path to the review CSV (product id, rating and user id at fixed columns)",
    )
    parser.add_argument(
        "--model-path",
        type=str,
        default=DEFAULT_MODEL_PATH,
        help=f"Where the trained model is saved (default: {DEFAULT_MODEL_PATH})",
    )
    parser.add_argument(
        "--test-fraction",
        type=float,
        default=DEFAULT_TEST_FRACTION,
        help=f"Fraction of rows held out for evaluation (default: {DEFAULT_TEST_FRACTION})",
    )
    parser.add_argument(
        "--rank",
        type=int,
        default=DEFAULT_RANK,
        help=f"Rank of the latent factor matrices (default: {DEFAULT_RANK}). "
        "Will be automatically reduced if too large for the data.",
    )
    parser.add_argument(
        "--n-iter",
        type=int,
        default=DEFAULT_N_ITERATIONS,
        help=f"Number of solver iterations (default: {DEFAULT_N_ITERATIONS})",
    )
    parser.add_argument(
        "--random-state",
        type=int,
        default=DEFAULT_RANDOM_STATE,
        help=f"Random seed for the split and the solver (default: {DEFAULT_RANDOM_STATE})",
    )
    parser.add_argument("--product-col", type=int, default=DEFAULT_PRODUCT_ID_COL,
                        help=f"Product id column index (default: {DEFAULT_PRODUCT_ID_COL})")
    parser.add_argument("--label-col", type=int, default=DEFAULT_LABEL_COL,
                        help=f"Rating column index (default: {DEFAULT_LABEL_COL})")
    parser.add_argument("--user-col", type=int, default=DEFAULT_USER_ID_COL,
                        help=f"User id column index (default: {DEFAULT_USER_ID_COL})")
    parser.add_argument("--sample-user", type=str, default=None,
                        help="User id for the post-training sample prediction")
    parser.add_argument("--sample-product", type=str, default=None,
                        help="Product id for the post-training sample prediction")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point for the training script.

    Returns:
        Exit code: 0 on success, 1 on error, 130 if interrupted.
    """
    try:
        args = parse_arguments(argv)

        setup_logging(verbose=args.verbose)
        logger = logging.getLogger(__name__)

        config = TrainingConfig(
            csv_path=args.csv_path,
            model_path=args.model_path,
            test_fraction=args.test_fraction,
            rank=args.rank,
            n_iter=args.n_iter,
            random_state=args.random_state,
            columns=ColumnConfig(
                product_id_col=args.product_col,
                label_col=args.label_col,
                user_id_col=args.user_col,
            ),
            sample_user_id=args.sample_user,
            sample_product_id=args.sample_product,
        )

        logger.info("=" * 70)
        logger.info("Training Configuration")
        logger.info("=" * 70)
        logger.info(f"CSV path:       {config.csv_path}")
        logger.info(f"Model path:     {config.model_path}")
        logger.info(f"Test fraction:  {config.test_fraction}")
        logger.info(f"Rank:           {config.rank}")
        logger.info(f"Iterations:     {config.n_iter}")
        logger.info(f"Random state:   {config.random_state}")
        logger.info("=" * 70)

        result = train_and_evaluate(config)

        logger.info("=" * 70)
        logger.info("Training Summary")
        logger.info("=" * 70)
        logger.info(f"Rows read:       {result.load_result.n_rows_read}")
        logger.info(f"Rows skipped:    {result.load_result.n_rows_skipped}")
        logger.info(f"Train / test:    {result.n_train} / {result.n_test}")
        logger.info(f"Users:           {result.model.n_users}")
        logger.info(f"Products:        {result.model.n_products}")
        logger.info(f"Rank used:       {result.model.rank}")
        logger.info(f"RMSE:            {result.metrics.rmse:.4f}")
        logger.info(f"R squared:       {result.metrics.r_squared:.4f}")
        logger.info(f"Model saved to:  {result.model_path.absolute()}")
        logger.info("=" * 70)

        return 0

    except FileNotFoundError as e:
        logging.error(f"File error: {e}")
        return 1
    except TrainingError as e:
        logging.error(f"Training error: {e}")
        return 1
    except ValueError as e:
        logging.error(f"Validation error: {e}")
        return 1
    except OSError as e:
        logging.error(f"I/O error: {e}")
        return 1
    except KeyboardInterrupt:
        logging.warning("Training interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())

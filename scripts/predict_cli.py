"""CLI script for scoring a product for a user.

Useful for testing a trained model by hand. Prints the predicted score and
whether the product would be recommended.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from prodrec.recommender.config import (
    DEFAULT_MODEL_PATH,
    DEFAULT_RECOMMEND_THRESHOLD,
    UNSEEN_POLICIES,
)
from prodrec.recommender.exceptions import UnseenIdentifierError
from prodrec.recommender.infer import is_recommended, predict_score
from prodrec.recommender.utils import load_model

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Predict the score a user would give a product",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/predict_cli.py AGYLPKPZHVYKKZHOTHCTYVEDAJ4A B01486F4G6
  python scripts/predict_cli.py new-user B01486F4G6 --policy global_mean
        """
    )
    parser.add_argument("user_id", type=str, help="User identifier")
    parser.add_argument("product_id", type=str, help="Product identifier")
    parser.add_argument(
        "--model-path",
        type=str,
        default=DEFAULT_MODEL_PATH,
        help=f"Trained model file (default: {DEFAULT_MODEL_PATH})"
    )
    parser.add_argument(
        "--policy",
        type=str,
        choices=UNSEEN_POLICIES,
        default="reject",
        help="What to do with identifiers not seen in training (default: reject)"
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=DEFAULT_RECOMMEND_THRESHOLD,
        help=f"Score above which the product is recommended (default: {DEFAULT_RECOMMEND_THRESHOLD})"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    try:
        model = load_model(args.model_path)
        score = predict_score(model, args.user_id, args.product_id, args.policy)
    except FileNotFoundError as e:
        print(f"Error: Model not found at {args.model_path}", file=sys.stderr)
        print(f"  {e}", file=sys.stderr)
        return 1
    except UnseenIdentifierError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    verdict = "is" if is_recommended(score, args.threshold) else "is not"
    print(f"\nScore for user {args.user_id}, product {args.product_id}: {score:.4f}")
    print(f"Product {args.product_id} {verdict} recommended for user {args.user_id}")
    print()

    return 0


if __name__ == "__main__":
    sys.exit(main())

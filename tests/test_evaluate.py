"""Tests for model evaluation."""

import math

import numpy as np
import pandas as pd
import pytest

from prodrec.recommender.evaluate import Metrics, evaluate_model, predict_dataset
from prodrec.recommender.model import RatingModel


@pytest.fixture
def exact_model() -> RatingModel:
    """Hand-built rank-1 model with known scores.

    Scores: (u1, p1) = 4.0, (u1, p2) = 2.0, (u2, p1) = 3.5, (u2, p2) = 2.5.
    """
    return RatingModel(
        user_id_to_idx={"u1": 0, "u2": 1},
        product_id_to_idx={"p1": 0, "p2": 1},
        user_factors=np.array([[1.0], [0.5]]),
        product_factors=np.array([[1.0], [-1.0]]),
        global_mean=3.0,
        rank=1,
        n_iter=1,
    )


def test_evaluate_model_perfect_predictions(exact_model: RatingModel) -> None:
    test = pd.DataFrame(
        {
            "product_id": ["p1", "p2", "p1", "p2"],
            "user_id": ["u1", "u1", "u2", "u2"],
            "label": [4.0, 2.0, 3.5, 2.5],
        }
    )

    metrics = evaluate_model(exact_model, test)

    assert metrics.rmse == pytest.approx(0.0)
    assert metrics.r_squared == pytest.approx(1.0)
    assert metrics.n_samples == 4
    assert metrics.n_unseen == 0


def test_evaluate_model_known_error(exact_model: RatingModel) -> None:
    """Every prediction off by one gives an RMSE of one."""
    test = pd.DataFrame(
        {"product_id": ["p1", "p2"], "user_id": ["u1", "u1"], "label": [5.0, 1.0]}
    )

    metrics = evaluate_model(exact_model, test)

    assert metrics.rmse == pytest.approx(1.0)
    # labels mean 3, total sum of squares 8, residual sum of squares 2
    assert metrics.r_squared == pytest.approx(0.75)


def test_evaluate_model_counts_unseen(exact_model: RatingModel) -> None:
    """Unseen pairs are scored with the global mean and counted."""
    test = pd.DataFrame(
        {"product_id": ["p1", "p9"], "user_id": ["u1", "u1"], "label": [4.0, 3.0]}
    )

    scores, known = predict_dataset(exact_model, test)
    metrics = evaluate_model(exact_model, test)

    assert scores.tolist() == pytest.approx([4.0, 3.0])
    assert known.tolist() == [True, False]
    assert metrics.n_unseen == 1
    assert metrics.rmse == pytest.approx(0.0)


def test_evaluate_model_single_sample(exact_model: RatingModel) -> None:
    test = pd.DataFrame({"product_id": ["p1"], "user_id": ["u2"], "label": [3.0]})

    metrics = evaluate_model(exact_model, test)

    assert metrics.rmse == pytest.approx(0.5)
    assert math.isnan(metrics.r_squared)


def test_evaluate_model_does_not_mutate_inputs(exact_model: RatingModel) -> None:
    test = pd.DataFrame(
        {"product_id": ["p1", "p2"], "user_id": ["u2", "u2"], "label": [3.0, 3.0]}
    )
    before = test.copy()
    factors_before = exact_model.user_factors.copy()

    evaluate_model(exact_model, test)

    pd.testing.assert_frame_equal(test, before)
    np.testing.assert_array_equal(exact_model.user_factors, factors_before)


def test_evaluate_model_empty_test_set_raises(exact_model: RatingModel) -> None:
    empty = pd.DataFrame({"product_id": [], "user_id": [], "label": []})

    with pytest.raises(ValueError, match="empty"):
        evaluate_model(exact_model, empty)


def test_metrics_as_dict() -> None:
    metrics = Metrics(rmse=0.9, r_squared=0.4, n_samples=10, n_unseen=2)

    assert metrics.as_dict() == {"rmse": 0.9, "r_squared": 0.4, "n_samples": 10, "n_unseen": 2}

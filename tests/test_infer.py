"""Tests for the prediction module."""

import queue
import threading

import numpy as np
import pandas as pd
import pytest

from prodrec.recommender.exceptions import UnseenIdentifierError
from prodrec.recommender.infer import (
    ScorerPool,
    find_unseen,
    is_recommended,
    predict_score,
)
from prodrec.recommender.model import RatingModel
from prodrec.recommender.train import fit_model


def _known_pair(model: RatingModel):
    return next(iter(model.user_id_to_idx)), next(iter(model.product_id_to_idx))


def test_predict_score_known_pair_returns_float(trained_model: RatingModel) -> None:
    """Predicting twice for the same pair gives the identical value."""
    user_id, product_id = _known_pair(trained_model)

    first = predict_score(trained_model, user_id, product_id)
    second = predict_score(trained_model, user_id, product_id)

    assert isinstance(first, float)
    assert first == second


def test_predict_score_matches_factor_formula(trained_model: RatingModel) -> None:
    user_id, product_id = _known_pair(trained_model)
    u = trained_model.user_id_to_idx[user_id]
    p = trained_model.product_id_to_idx[product_id]

    expected = trained_model.global_mean + trained_model.user_factors[u] @ trained_model.product_factors[p]

    assert predict_score(trained_model, user_id, product_id) == pytest.approx(expected)


def test_predict_score_unseen_user_rejected_by_default(trained_model: RatingModel) -> None:
    _, product_id = _known_pair(trained_model)

    with pytest.raises(UnseenIdentifierError) as exc_info:
        predict_score(trained_model, "never-seen-user", product_id)

    assert exc_info.value.unseen == {"user_id": "never-seen-user"}
    assert isinstance(exc_info.value, KeyError)
    assert "never-seen-user" in str(exc_info.value)


def test_predict_score_unseen_fallback_policies(trained_model: RatingModel) -> None:
    user_id, _ = _known_pair(trained_model)

    mean_score = predict_score(trained_model, user_id, "never-seen-product", unseen_policy="global_mean")
    zero_score = predict_score(trained_model, "nobody", "nothing", unseen_policy="zero")

    assert mean_score == pytest.approx(trained_model.global_mean)
    assert zero_score == 0.0


def test_predict_score_unknown_policy_raises(trained_model: RatingModel) -> None:
    user_id, product_id = _known_pair(trained_model)

    with pytest.raises(ValueError, match="unseen_policy"):
        predict_score(trained_model, user_id, product_id, unseen_policy="guess")


def test_predict_score_normalizes_commas() -> None:
    """Identifiers are normalized the same way the loader stores them."""
    train = pd.DataFrame(
        {
            "product_id": ["B1", "B2", "B1", "B2", "B3"],
            "user_id": ["U A", "U A", "U B", "U C", "U C"],
            "label": np.array([5.0, 1.0, 4.0, 2.0, 3.0], dtype=np.float32),
        }
    )
    model = fit_model(train, rank=1, n_iter=5)

    assert predict_score(model, "U,A", "B1") == predict_score(model, "U A", "B1")
    assert find_unseen(model, "U,A", "B1") == {}


def test_is_recommended_threshold() -> None:
    assert is_recommended(3.6)
    assert is_recommended(3.56)
    assert not is_recommended(3.54)
    assert not is_recommended(3.5)
    assert is_recommended(2.1, threshold=2.0)


def test_scorer_pool_checkout_and_release(trained_model: RatingModel) -> None:
    pool = ScorerPool(trained_model, size=2)
    user_id, product_id = _known_pair(trained_model)

    with pool.checkout() as scorer:
        assert pool.available == 1
        score = scorer.predict(user_id, product_id)

    assert pool.available == 2
    assert score == predict_score(trained_model, user_id, product_id)


def test_scorer_pool_releases_on_exception(trained_model: RatingModel) -> None:
    """A scorer goes back to the pool even if the with block raises."""
    pool = ScorerPool(trained_model, size=1)

    with pytest.raises(UnseenIdentifierError):
        with pool.checkout() as scorer:
            scorer.predict("nobody", "nothing")

    assert pool.available == 1


def test_scorer_pool_times_out_when_exhausted(trained_model: RatingModel) -> None:
    pool = ScorerPool(trained_model, size=1)

    with pool.checkout():
        with pytest.raises(queue.Empty):
            with pool.checkout(timeout=0.01):
                pass

    assert pool.available == 1


def test_scorer_pool_concurrent_predictions(trained_model: RatingModel) -> None:
    """Concurrent requests share one model and all get the same answer."""
    pool = ScorerPool(trained_model, size=3)
    user_id, product_id = _known_pair(trained_model)
    expected = predict_score(trained_model, user_id, product_id)
    results = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(20):
            with pool.checkout() as scorer:
                value = scorer.predict(user_id, product_id)
            with lock:
                results.append(value)

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == 120
    assert set(results) == {expected}
    assert pool.available == 3


def test_scorer_pool_invalid_arguments(trained_model: RatingModel) -> None:
    with pytest.raises(ValueError):
        ScorerPool(trained_model, size=0)
    with pytest.raises(ValueError):
        ScorerPool(trained_model, unseen_policy="guess")


def test_predict_cli(trained_model: RatingModel, tmp_path, capsys) -> None:
    """The predict script prints a score, and exits 2 for rejected identifiers."""
    from prodrec.recommender.utils import save_model
    from scripts.predict_cli import main

    model_path = tmp_path / "model.joblib"
    save_model(trained_model, str(model_path))
    user_id, product_id = _known_pair(trained_model)

    assert main([user_id, product_id, "--model-path", str(model_path)]) == 0
    assert f"Score for user {user_id}" in capsys.readouterr().out

    assert main(["nobody", product_id, "--model-path", str(model_path)]) == 2
    assert main(["nobody", product_id, "--model-path", str(model_path), "--policy", "zero"]) == 0
    assert main([user_id, product_id, "--model-path", str(tmp_path / "missing.joblib")]) == 1


def test_scorer_handles_share_model_and_policy(trained_model: RatingModel) -> None:
    """Pooled scorers hold no state of their own beyond the model and policy."""
    pool = ScorerPool(trained_model, size=2, unseen_policy="zero")

    with pool.checkout() as first, pool.checkout() as second:
        assert first is not second
        assert first.model is second.model is trained_model
        assert vars(first) == {"model": trained_model, "unseen_policy": "zero"}
        assert first.predict("nobody", "nothing") == 0.0

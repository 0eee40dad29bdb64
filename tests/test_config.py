"""Tests for training and service configuration."""

import pytest

from prodrec.recommender.config import (
    DEFAULT_SERVICE_POLICY,
    ColumnConfig,
    ServiceSettings,
    TrainingConfig,
)
from prodrec.recommender.infer import DEFAULT_PREDICT_POLICY


def test_column_config_defaults_match_review_export() -> None:
    columns = ColumnConfig()

    assert columns.positions() == {"product_id": 0, "label": 6, "user_id": 9}
    assert columns.max_index() == 9


def test_column_config_rejects_duplicate_positions() -> None:
    with pytest.raises(ValueError, match="distinct"):
        ColumnConfig(product_id_col=3, label_col=3, user_id_col=4).validate()


def test_training_config_defaults() -> None:
    config = TrainingConfig(csv_path="data/amazon.csv")

    config.validate()
    assert config.test_fraction == 0.2
    assert config.rank == 100
    assert config.n_iter == 20


@pytest.mark.parametrize(
    "overrides",
    [{"test_fraction": 0.0}, {"test_fraction": 1.0}, {"rank": 0}, {"n_iter": 0}],
)
def test_training_config_validate_rejects_out_of_range(overrides: dict) -> None:
    config = TrainingConfig(csv_path="data/amazon.csv", **overrides)

    with pytest.raises(ValueError):
        config.validate()


def test_service_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRODREC_MODEL_PATH", "/srv/model.joblib")
    monkeypatch.setenv("PRODREC_POOL_SIZE", "8")
    monkeypatch.setenv("PRODREC_UNSEEN_POLICY", "reject")

    settings = ServiceSettings.from_env()

    assert settings.model_path == "/srv/model.joblib"
    assert settings.pool_size == 8
    assert settings.unseen_policy == "reject"


def test_service_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PRODREC_MODEL_PATH", "PRODREC_POOL_SIZE", "PRODREC_UNSEEN_POLICY", "PRODREC_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = ServiceSettings.from_env()

    assert settings.unseen_policy == "global_mean"
    assert settings.pool_size == 4


def test_service_settings_invalid_policy(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRODREC_UNSEEN_POLICY", "guess")

    with pytest.raises(ValueError, match="PRODREC_UNSEEN_POLICY"):
        ServiceSettings.from_env()


@pytest.mark.parametrize(
    "overrides",
    [{"unseen_policy": "guess"}, {"pool_size": 0}],
)
def test_service_settings_validated_on_construction(overrides: dict) -> None:
    """Bad settings fail when built, before any app is created from them."""
    with pytest.raises(ValueError):
        ServiceSettings(model_path="models/m.joblib", **overrides)


def test_library_and_service_default_policies() -> None:
    """Direct scoring rejects unseen ids while the service falls back to the mean."""
    assert DEFAULT_PREDICT_POLICY == "reject"
    assert DEFAULT_SERVICE_POLICY == "global_mean"
    assert ServiceSettings().unseen_policy == DEFAULT_SERVICE_POLICY

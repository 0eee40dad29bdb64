"""Tests for saving and loading trained models."""

from pathlib import Path

import joblib
import pytest

from prodrec.recommender.exceptions import ModelStoreError
from prodrec.recommender.infer import predict_score
from prodrec.recommender.model import RatingModel
from prodrec.recommender.utils import (
    DEFAULT_SCHEMA,
    check_model_exists,
    load_model,
    load_model_with_schema,
    save_model,
)


def test_save_and_load_preserves_predictions(trained_model: RatingModel, tmp_path: Path) -> None:
    """A reloaded model predicts exactly what the original did."""
    model_path = tmp_path / "model.joblib"
    save_model(trained_model, str(model_path))

    loaded = load_model(str(model_path))

    sample_users = list(trained_model.user_id_to_idx)[:5]
    sample_products = list(trained_model.product_id_to_idx)[:5]
    for user_id in sample_users:
        for product_id in sample_products:
            assert predict_score(loaded, user_id, product_id) == predict_score(
                trained_model, user_id, product_id
            )
    assert loaded.global_mean == trained_model.global_mean
    assert loaded.rank == trained_model.rank


def test_save_stores_schema(trained_model: RatingModel, tmp_path: Path) -> None:
    model_path = tmp_path / "model.joblib"
    schema = {"product_id": "string", "user_id": "string", "label": "float32", "extra": "int"}

    save_model(trained_model, str(model_path), schema=schema)
    _, loaded_schema = load_model_with_schema(str(model_path))

    assert loaded_schema == schema


def test_save_default_schema(trained_model: RatingModel, tmp_path: Path) -> None:
    model_path = tmp_path / "model.joblib"
    save_model(trained_model, str(model_path))

    _, loaded_schema = load_model_with_schema(str(model_path))

    assert loaded_schema == DEFAULT_SCHEMA


def test_save_missing_directory_raises(trained_model: RatingModel, tmp_path: Path) -> None:
    model_path = tmp_path / "missing" / "model.joblib"

    with pytest.raises(FileNotFoundError):
        save_model(trained_model, str(model_path))

    assert not model_path.exists()


def test_save_creates_directories_when_asked(trained_model: RatingModel, tmp_path: Path) -> None:
    model_path = tmp_path / "a" / "b" / "model.joblib"

    returned = save_model(trained_model, str(model_path), create_dirs=True)

    assert returned == model_path
    assert check_model_exists(str(model_path))


def test_load_missing_file_raises(tmp_path: Path) -> None:
    assert not check_model_exists(str(tmp_path / "nope.joblib"))

    with pytest.raises(FileNotFoundError):
        load_model(str(tmp_path / "nope.joblib"))


def test_load_corrupted_file_raises(tmp_path: Path) -> None:
    """Garbage bytes surface as an OSError subclass."""
    model_path = tmp_path / "corrupt.joblib"
    model_path.write_bytes(b"this is not a model file")

    with pytest.raises(ModelStoreError) as exc_info:
        load_model(str(model_path))

    assert isinstance(exc_info.value, OSError)


def test_load_foreign_object_raises(tmp_path: Path) -> None:
    model_path = tmp_path / "foreign.joblib"
    joblib.dump({"weights": [1, 2, 3]}, model_path)

    with pytest.raises(ModelStoreError, match="Not a ProdRec model file"):
        load_model(str(model_path))

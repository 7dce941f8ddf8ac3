"""Tests for record assembly."""

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from arize_log.builder import build_record, resolve_timestamp
from arize_log.errors import (
    EmptyVectorError,
    LabelMismatchError,
    UnsupportedTypeError,
    ValidationError,
)
from arize_log.models import (
    CategoryLabel,
    Embedding,
    EmbeddingValue,
    IntValue,
    NumericLabel,
    StringValue,
)


FIXED_NOW = datetime(2024, 3, 1, 9, 30, 0, tzinfo=timezone.utc)


def _fixed_clock():
    return FIXED_NOW


def test_empty_model_id_rejected():
    """Test that model_id must be non-empty."""
    with pytest.raises(ValidationError, match="model_id"):
        build_record("space", "", "xyz")


def test_empty_prediction_id_rejected():
    """Test that prediction_id must be non-empty."""
    with pytest.raises(ValidationError, match="prediction_id"):
        build_record("space", "mk", "")


def test_empty_record_is_accepted():
    """Test that a call with no prediction, actual or SHAP still builds."""
    record = build_record("space", "mk", "xyz")
    assert record.model_id == "mk"
    assert record.prediction is None
    assert record.actual is None
    assert record.feature_importances is None


def test_numeric_prediction_and_actual():
    """Test numeric labels on both sides."""
    record = build_record("space", "mk", "xyz", prediction=0.65, actual=0.3)
    assert record.prediction.label == NumericLabel(0.65)
    assert record.actual.label == NumericLabel(0.3)


def test_mixed_numeric_widths_are_compatible():
    """Test that float prediction and int64 actual are both numeric."""
    record = build_record("space", "mk", "xyz", prediction=np.float64(0.65), actual=np.int64(1))
    assert record.actual.label == NumericLabel(1.0)


def test_categorical_prediction_and_actual():
    """Test string labels on both sides."""
    record = build_record("space", "mk", "xyz", prediction="hotdog", actual="notHotdog")
    assert record.prediction.label == CategoryLabel("hotdog")
    assert record.actual.label == CategoryLabel("notHotdog")


def test_label_mismatch():
    """Test that numeric prediction with string actual fails."""
    with pytest.raises(LabelMismatchError):
        build_record("space", "mk", "xyz", prediction=0.65, actual="bad")


def test_embedding_labels_rejected():
    """Test that embeddings can not be used as labels."""
    with pytest.raises(UnsupportedTypeError):
        build_record(
            "space",
            "mk",
            "xyz",
            prediction=Embedding(vector=[1.0]),
            actual=Embedding(vector=[0.5]),
        )


def test_unsupported_feature_rejected():
    """Test that an unsigned 64-bit feature fails."""
    with pytest.raises(UnsupportedTypeError):
        build_record("space", "mk", "xyz", features={"x": np.uint64(2)}, prediction=0.5)


def test_embedding_in_features_rejected():
    """Test that embeddings must go through embedding_features."""
    with pytest.raises(UnsupportedTypeError):
        build_record(
            "space", "mk", "xyz", features={"x": Embedding(vector=[1.0])}, prediction=0.5
        )


def test_tags_validated_without_prediction():
    """Test that tags are parsed even when there is no prediction."""
    with pytest.raises(UnsupportedTypeError):
        build_record("space", "mk", "xyz", tags={"x": np.uint64(2)})
    with pytest.raises(UnsupportedTypeError):
        build_record("space", "mk", "xyz", tags={"x": Embedding(vector=[1.0])})


def test_features_ignored_without_prediction():
    """Test that features are only parsed for a prediction sub-record."""
    record = build_record("space", "mk", "xyz", features={"x": np.uint64(2)}, actual=1.0)
    assert record.prediction is None
    assert record.actual is not None


def test_tags_shared_between_prediction_and_actual():
    """Test that the same parsed tag mapping is reused."""
    record = build_record("space", "mk", "xyz", tags={"t": 1}, prediction=0.5, actual=0.1)
    assert record.prediction.tags == {"t": IntValue(1)}
    assert record.prediction.tags is record.actual.tags


def test_embeddings_merged_into_features():
    """Test that embeddings land in the feature map next to plain features."""
    record = build_record(
        "space",
        "mk",
        "xyz",
        features={"x": 1, "y": "y1"},
        prediction=0.5,
        embedding_features={
            "e": Embedding(vector=[1.34, 5.67], data=["token"], link_to_data="gs://my/thing")
        },
    )
    features = record.prediction.features
    assert features["x"] == IntValue(1)
    assert features["y"] == StringValue("y1")
    assert features["e"] == EmbeddingValue((1.34, 5.67), ("token",), "gs://my/thing")


def test_embedding_collision_overwrites_feature():
    """Test last-write-wins when a key is both a feature and an embedding."""
    record = build_record(
        "space",
        "mk",
        "xyz",
        features={"e": "plain"},
        prediction=0.5,
        embedding_features={"e": Embedding(vector=[1.0])},
    )
    assert isinstance(record.prediction.features["e"], EmbeddingValue)


def test_empty_embedding_vector():
    """Test that an empty embedding vector fails."""
    with pytest.raises(EmptyVectorError):
        build_record(
            "space", "mk", "xyz", prediction=0.5, embedding_features={"e": Embedding(vector=[])}
        )


def test_clock_used_when_no_timestamp():
    """Test that the injected clock supplies the timestamp."""
    record = build_record(
        "space", "mk", "xyz", prediction=1, actual=2, shap_values={"s": 0.1}, clock=_fixed_clock
    )
    assert record.prediction.timestamp == FIXED_NOW
    assert record.actual.timestamp == FIXED_NOW
    assert record.feature_importances.timestamp == FIXED_NOW


def test_model_version_defaults_to_empty():
    """Test that a missing model version becomes an empty string."""
    record = build_record("space", "mk", "xyz", prediction=1, shap_values={"s": 1.76})
    assert record.prediction.model_version == ""
    assert record.feature_importances.model_version == ""


def test_shap_values_build_feature_importances():
    """Test that SHAP values produce a feature importances sub-record."""
    record = build_record(
        "space", "mk", "xyz", model_version="v2", shap_values={"s": 1.76, "n": np.int32(1)}
    )
    assert record.feature_importances.feature_importances == {"s": 1.76, "n": 1.0}
    assert record.feature_importances.model_version == "v2"


def test_empty_shap_values_skipped():
    """Test that an empty SHAP map adds nothing."""
    assert build_record("space", "mk", "xyz", shap_values={}).feature_importances is None


def test_shap_values_must_be_numbers():
    """Test that non-numeric SHAP values fail."""
    with pytest.raises(UnsupportedTypeError):
        build_record("space", "mk", "xyz", shap_values={"s": "high"})


def test_resolve_timestamp_variants():
    """Test datetime, naive datetime and epoch-second timestamps."""
    paris = timezone(timedelta(hours=1))
    assert resolve_timestamp(datetime(2024, 3, 1, 10, 30, tzinfo=paris)) == FIXED_NOW
    naive = resolve_timestamp(datetime(2024, 3, 1, 9, 30))
    assert naive == FIXED_NOW
    assert naive.tzinfo == timezone.utc
    assert resolve_timestamp(FIXED_NOW.timestamp()) == FIXED_NOW
    assert resolve_timestamp(int(FIXED_NOW.timestamp())) == FIXED_NOW


def test_resolve_timestamp_rejects_strings():
    """Test that unsupported timestamp types fail."""
    with pytest.raises(UnsupportedTypeError):
        resolve_timestamp("2024-03-01")
    with pytest.raises(UnsupportedTypeError):
        resolve_timestamp(True)


def test_oversized_int_label_and_shap_rejected():
    """Test that ints too large for a double raise UnsupportedTypeError."""
    with pytest.raises(UnsupportedTypeError):
        build_record("space", "mk", "xyz", prediction=10**400)
    with pytest.raises(UnsupportedTypeError):
        build_record("space", "mk", "xyz", shap_values={"a": 10**400})


def test_record_maps_are_read_only():
    """Test that features, tags and importances can not be changed in place."""
    record = build_record(
        "space",
        "mk",
        "xyz",
        features={"x": 1},
        tags={"t": 1},
        shap_values={"s": 0.5},
        prediction=0.5,
        actual=0.1,
    )
    with pytest.raises(TypeError):
        record.actual.tags["t"] = IntValue(2)  # type: ignore[index]
    with pytest.raises(TypeError):
        record.prediction.features["y"] = IntValue(2)  # type: ignore[index]
    with pytest.raises(TypeError):
        record.feature_importances.feature_importances["s"] = 1.0  # type: ignore[index]
    assert record.prediction.tags == {"t": IntValue(1)}

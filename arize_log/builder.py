"""Assemble a `Record` from the arguments of a log call.

`build_record` is pure: it validates and coerces its inputs and returns an
immutable record, or raises a `ValidationError` subclass. It never performs
I/O, so a failing call never reaches the network.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

import numpy as np

from .codec import as_utc
from .errors import UnsupportedTypeError, ValidationError
from .models import Actual, Embedding, FeatureImportances, Prediction, Record
from .parsing import (
    as_float,
    merge_embeddings,
    parse_dimensions,
    parse_embeddings,
    parse_label,
    validate_labels,
)


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current wall-clock time in UTC."""
    return datetime.now(timezone.utc)


def resolve_timestamp(timestamp: Any, clock: Clock = utc_now) -> datetime:
    """Return the record timestamp as an aware UTC datetime.

    ``None`` asks `clock` for the current time. Besides ``datetime`` values,
    Unix epoch seconds (int or float) are accepted.
    """
    if timestamp is None:
        return as_utc(clock())
    if isinstance(timestamp, datetime):
        return as_utc(timestamp)
    if isinstance(timestamp, (bool, np.bool_)):
        raise UnsupportedTypeError(f"unknown type for timestamp = {timestamp!r}")
    if isinstance(timestamp, (int, float, np.integer, np.floating)):
        try:
            return datetime.fromtimestamp(float(timestamp), tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise ValidationError(f"timestamp {timestamp!r} is out of range") from exc
    raise UnsupportedTypeError(f"unknown type for timestamp = {timestamp!r}")


def parse_shap_values(shap_values: Optional[Mapping[str, Any]]) -> Dict[str, float]:
    parsed: Dict[str, float] = {}
    for name, score in (shap_values or {}).items():
        if not isinstance(name, str):
            raise UnsupportedTypeError(f"feature importance names must be strings, got {name!r}")
        parsed[name] = as_float(score, f"feature importance {name!r}")
    return parsed


# pylint: disable=too-many-arguments,too-many-locals
def build_record(
    space_key: str,
    model_id: str,
    prediction_id: str,
    *,
    model_version: Optional[str] = None,
    features: Optional[Mapping[str, Any]] = None,
    tags: Optional[Mapping[str, Any]] = None,
    shap_values: Optional[Mapping[str, Any]] = None,
    prediction: Any = None,
    actual: Any = None,
    timestamp: Any = None,
    embedding_features: Optional[Mapping[str, Embedding]] = None,
    clock: Clock = utc_now,
) -> Record:
    """Validate the arguments of a log call and build its record.

    Features and embeddings are only attached to the prediction sub-record,
    so they are not parsed unless a prediction label is given. Tags are
    parsed once and the same read-only mapping is shared by the prediction
    and actual sub-records. A call without prediction, actual or SHAP values still
    produces a (nearly empty) record.
    """
    if not model_id:
        raise ValidationError("model_id can not be empty")
    if not prediction_id:
        raise ValidationError("prediction_id can not be empty")

    prediction_label = parse_label(prediction)
    actual_label = parse_label(actual)
    validate_labels(prediction_label, actual_label)

    ts = resolve_timestamp(timestamp, clock)
    parsed_tags = MappingProxyType(parse_dimensions(tags))
    version = model_version or ""

    pred = None
    if prediction_label is not None:
        parsed_features = merge_embeddings(
            parse_dimensions(features), parse_embeddings(embedding_features)
        )
        pred = Prediction(
            timestamp=ts,
            label=prediction_label,
            model_version=version,
            features=MappingProxyType(parsed_features),
            tags=parsed_tags,
        )

    act = None
    if actual_label is not None:
        act = Actual(timestamp=ts, label=actual_label, tags=parsed_tags)

    importances = None
    parsed_shap = parse_shap_values(shap_values)
    if parsed_shap:
        importances = FeatureImportances(
            timestamp=ts,
            feature_importances=MappingProxyType(parsed_shap),
            model_version=version,
        )

    return Record(
        space_key=space_key,
        model_id=model_id,
        prediction_id=prediction_id,
        prediction=pred,
        actual=act,
        feature_importances=importances,
    )


__all__ = ["Clock", "utc_now", "resolve_timestamp", "parse_shap_values", "build_record"]

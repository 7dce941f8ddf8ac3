"""Record types: caller-side inputs and the wire schema they are mapped to.

Callers build `ScoreCategorical` and `Embedding` values directly and pass
everything else as plain Python scalars. The parsing layer turns those into
the immutable wire dataclasses below, which the codec serializes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple, Union


# --------------------------------------------------------------------------
# caller-side inputs
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoreCategorical:
    """A categorical label carrying a score and an optional numeric sequence."""

    category: str
    score: float = 0.0
    numeric_sequence: Sequence[float] = ()


@dataclass(frozen=True)
class Embedding:
    """An embedding feature.

    `vector` must be non-empty. `data` holds the raw tokens the vector was
    computed from and `link_to_data` points at the raw source (an image URI,
    for example). Embeddings are only accepted through the
    ``embedding_features`` argument, never as plain features, tags or labels.
    """

    vector: Sequence[float]
    data: Optional[Sequence[str]] = None
    link_to_data: Optional[str] = None


# --------------------------------------------------------------------------
# labels
# --------------------------------------------------------------------------


class CategoricalLabel:  # pylint: disable=too-few-public-methods
    """Marker base for both categorical label shapes."""


@dataclass(frozen=True)
class CategoryLabel(CategoricalLabel):
    category: str


@dataclass(frozen=True)
class ScoreCategoryLabel(CategoricalLabel):
    category: str
    score: float = 0.0
    numeric_sequence: Tuple[float, ...] = ()


@dataclass(frozen=True)
class NumericLabel:
    value: float


Label = Union[CategoryLabel, ScoreCategoryLabel, NumericLabel]


# --------------------------------------------------------------------------
# feature / tag values
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class StringValue:
    value: str


@dataclass(frozen=True)
class IntValue:
    value: int


@dataclass(frozen=True)
class DoubleValue:
    value: float


@dataclass(frozen=True)
class EmbeddingValue:
    vector: Tuple[float, ...]
    raw_tokens: Optional[Tuple[str, ...]] = None
    link_to_data: Optional[str] = None


Value = Union[StringValue, IntValue, DoubleValue, EmbeddingValue]


# --------------------------------------------------------------------------
# record
# --------------------------------------------------------------------------


def _empty_map() -> Mapping:
    return MappingProxyType({})


@dataclass(frozen=True)
class Prediction:
    timestamp: datetime
    label: Label
    model_version: str = ""
    features: Mapping[str, Value] = field(default_factory=_empty_map)
    tags: Mapping[str, Value] = field(default_factory=_empty_map)


@dataclass(frozen=True)
class Actual:
    timestamp: datetime
    label: Label
    tags: Mapping[str, Value] = field(default_factory=_empty_map)


@dataclass(frozen=True)
class FeatureImportances:
    timestamp: datetime
    feature_importances: Mapping[str, float]
    model_version: str = ""


@dataclass(frozen=True)
class Record:
    """One logged event: up to one prediction, one actual and one SHAP map."""

    space_key: str
    model_id: str
    prediction_id: str
    prediction: Optional[Prediction] = None
    actual: Optional[Actual] = None
    feature_importances: Optional[FeatureImportances] = None


@dataclass(frozen=True)
class Response:
    """What the ingestion API answered. Non-2xx statuses are not errors."""

    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


__all__ = [
    "ScoreCategorical",
    "Embedding",
    "CategoricalLabel",
    "CategoryLabel",
    "ScoreCategoryLabel",
    "NumericLabel",
    "Label",
    "StringValue",
    "IntValue",
    "DoubleValue",
    "EmbeddingValue",
    "Value",
    "Prediction",
    "Actual",
    "FeatureImportances",
    "Record",
    "Response",
]

"""Coerce loosely typed Python values into wire labels and values.

Accepted inputs, by kind:

- labels: ``str``, ``bool``, signed integers, floats (builtin or numpy) and
  `ScoreCategorical`. Strings and booleans become categorical labels,
  numbers become numeric labels.
- features / tags: ``str``, ``bool``, signed integers, floats. Booleans are
  sent as the strings ``"true"`` / ``"false"``.
- embeddings: only `Embedding`, only through ``parse_embeddings``.

Everything else (``None`` values, unsigned integers, containers, embeddings in
the wrong place) raises `UnsupportedTypeError`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import numpy as np

from .errors import EmptyVectorError, LabelMismatchError, UnsupportedTypeError
from .models import (
    CategoricalLabel,
    CategoryLabel,
    DoubleValue,
    Embedding,
    EmbeddingValue,
    IntValue,
    Label,
    NumericLabel,
    ScoreCategorical,
    ScoreCategoryLabel,
    StringValue,
    Value,
)


logger = logging.getLogger(__name__)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_BOOL_TYPES = (bool, np.bool_)
_INT_TYPES = (int, np.signedinteger)
_FLOAT_TYPES = (float, np.floating)


def _format_bool(value: Any) -> str:
    return "true" if value else "false"


def as_float(value: Any, what: str) -> float:
    """Return a real number as a float, or raise naming `what`."""
    if isinstance(value, _BOOL_TYPES) or not isinstance(value, _INT_TYPES + _FLOAT_TYPES):
        raise UnsupportedTypeError(f"{what} must be a number, got {value!r}")
    try:
        return float(value)
    except OverflowError as exc:
        raise UnsupportedTypeError(f"{what} {value!r} is too large for a double") from exc


def _sequence(values: Any, what: str) -> tuple:
    if values is None:
        return ()
    # a string would otherwise be split into characters
    if isinstance(values, (str, bytes)):
        raise UnsupportedTypeError(f"{what} must be a sequence, got {values!r}")
    try:
        return tuple(values)
    except TypeError as exc:
        raise UnsupportedTypeError(f"{what} must be a sequence, got {values!r}") from exc


def _float_tuple(values: Any, what: str) -> tuple:
    return tuple(as_float(v, what) for v in _sequence(values, what))


def _score_category(raw: ScoreCategorical) -> ScoreCategoryLabel:
    if not isinstance(raw.category, str):
        raise UnsupportedTypeError(
            f"score categorical category must be a string, got {raw.category!r}"
        )
    return ScoreCategoryLabel(
        category=raw.category,
        score=as_float(raw.score, "score categorical score"),
        numeric_sequence=_float_tuple(
            raw.numeric_sequence, "score categorical numeric sequence"
        ),
    )


def parse_label(raw: Any) -> Optional[Label]:
    """Map a prediction or actual value to a label; ``None`` means no label."""
    if raw is None:
        return None
    if isinstance(raw, ScoreCategorical):
        return _score_category(raw)
    # bool must be checked before int: bool is an int subclass
    if isinstance(raw, _BOOL_TYPES):
        return CategoryLabel(_format_bool(raw))
    if isinstance(raw, str):
        return CategoryLabel(str(raw))
    if isinstance(raw, _INT_TYPES + _FLOAT_TYPES):
        return NumericLabel(as_float(raw, "label value"))
    raise UnsupportedTypeError(f"unknown type for label value = {raw!r}")


def _label_kind(label: Label) -> Optional[str]:
    if isinstance(label, CategoricalLabel):
        return "categorical"
    if isinstance(label, NumericLabel):
        return "numeric"
    return None


def validate_labels(prediction: Optional[Label], actual: Optional[Label]) -> None:
    """Check that prediction and actual labels are the same kind.

    Only evaluated when both labels are present.
    """
    if prediction is None or actual is None:
        return
    kind = _label_kind(prediction)
    if kind is None:
        raise LabelMismatchError(f"unknown prediction label. prediction = {prediction!r}")
    if _label_kind(actual) != kind:
        raise LabelMismatchError(
            "prediction and actual labels need to be the same type. "
            f"prediction = {prediction!r}, actual = {actual!r}"
        )


def parse_value(raw: Any) -> Value:
    """Map a single feature or tag value to its wire value."""
    if isinstance(raw, _BOOL_TYPES):
        return StringValue(_format_bool(raw))
    if isinstance(raw, str):
        return StringValue(str(raw))
    if isinstance(raw, _INT_TYPES):
        value = int(raw)
        if not INT64_MIN <= value <= INT64_MAX:
            raise UnsupportedTypeError(f"integer value {value} does not fit in int64")
        return IntValue(value)
    if isinstance(raw, _FLOAT_TYPES):
        return DoubleValue(float(raw))
    raise UnsupportedTypeError(f"unknown type for value = {raw!r}")


def _check_key(key: Any) -> str:
    if not isinstance(key, str):
        raise UnsupportedTypeError(f"dimension names must be strings, got {key!r}")
    return key


def parse_dimensions(dims: Optional[Mapping[str, Any]]) -> Dict[str, Value]:
    """Parse a feature or tag mapping. The first bad entry aborts the call."""
    parsed: Dict[str, Value] = {}
    if not dims:
        return parsed
    for key, raw in dims.items():
        name = _check_key(key)
        try:
            parsed[name] = parse_value(raw)
        except UnsupportedTypeError as exc:
            raise UnsupportedTypeError(f"dimension {name!r}: {exc}") from exc
    return parsed


def _tokens(name: str, data: Any) -> tuple:
    tokens = _sequence(data, f"embedding {name!r}: data")
    for token in tokens:
        if not isinstance(token, str):
            raise UnsupportedTypeError(
                f"embedding {name!r}: data tokens must be strings, got {token!r}"
            )
    return tokens


def parse_embeddings(embeddings: Optional[Mapping[str, Embedding]]) -> Dict[str, Value]:
    """Parse embedding features into embedding values keyed by feature name."""
    parsed: Dict[str, Value] = {}
    if not embeddings:
        return parsed
    for key, emb in embeddings.items():
        name = _check_key(key)
        if not isinstance(emb, Embedding):
            raise UnsupportedTypeError(
                f"embedding {name!r}: expected Embedding, got {type(emb).__name__}"
            )
        vector = _float_tuple(emb.vector, f"embedding {name!r}: vector")
        if not vector:
            raise EmptyVectorError(f"embedding {name!r}: vector can not be empty")
        if emb.link_to_data is not None and not isinstance(emb.link_to_data, str):
            raise UnsupportedTypeError(
                f"embedding {name!r}: link_to_data must be a string, got {emb.link_to_data!r}"
            )
        parsed[name] = EmbeddingValue(
            vector=vector,
            raw_tokens=_tokens(name, emb.data),
            link_to_data=emb.link_to_data,
        )
    return parsed


def merge_embeddings(
    features: Dict[str, Value], embeddings: Mapping[str, Value]
) -> Dict[str, Value]:
    """Merge parsed embeddings into parsed features; embeddings win on collision."""
    for name, value in embeddings.items():
        if name in features:
            logger.warning(
                "Embedding feature %r replaces a plain feature with the same name", name
            )
        features[name] = value
    return features


__all__ = [
    "as_float",
    "parse_label",
    "validate_labels",
    "parse_value",
    "parse_dimensions",
    "parse_embeddings",
    "merge_embeddings",
]

"""Canonical protobuf-JSON encoding of `Record` values.

The ingestion API decodes request bodies with the standard protobuf JSON
mapping, so field names, oneof member names and scalar encodings here must
match it exactly:

- message fields are lowerCamelCase (``modelId``, ``featureImportances``);
- int64 values are decimal strings, doubles are numbers except the non-finite
  ones, which are the strings ``"NaN"``, ``"Infinity"`` and ``"-Infinity"``;
- timestamps are RFC 3339 in UTC with a ``Z`` suffix;
- regular fields holding their default value are omitted, oneof members are
  always written.

`decode_record` is the inverse. It also accepts the original snake_case
field names and ignores fields it does not know.
"""

from __future__ import annotations

import json
import math
import re
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from .errors import DecodeError
from .models import (
    Actual,
    CategoryLabel,
    DoubleValue,
    EmbeddingValue,
    FeatureImportances,
    IntValue,
    Label,
    NumericLabel,
    Prediction,
    Record,
    ScoreCategoryLabel,
    StringValue,
    Value,
)


_TIMESTAMP_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d{1,9}))?(Z|z|[+-]\d{2}:\d{2})$"
)

_NON_FINITE = {"NaN": math.nan, "Infinity": math.inf, "-Infinity": -math.inf}


def as_utc(ts: datetime) -> datetime:
    """Return `ts` as an aware UTC datetime; naive values are taken as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


# --------------------------------------------------------------------------
# scalars
# --------------------------------------------------------------------------


def format_timestamp(ts: datetime) -> str:
    ts = as_utc(ts)
    text = (
        f"{ts.year:04d}-{ts.month:02d}-{ts.day:02d}"
        f"T{ts.hour:02d}:{ts.minute:02d}:{ts.second:02d}"
    )
    micros = ts.microsecond
    if micros % 1000 == 0 and micros:
        text += f".{micros // 1000:03d}"
    elif micros:
        text += f".{micros:06d}"
    return text + "Z"


def parse_timestamp(text: Any) -> datetime:
    if not isinstance(text, str):
        raise DecodeError(f"timestamp must be a string, got {text!r}")
    m = _TIMESTAMP_RE.match(text)
    if not m:
        raise DecodeError(f"invalid RFC 3339 timestamp {text!r}")
    year, month, day, hour, minute, second = (int(g) for g in m.groups()[:6])
    fraction = (m.group(7) or "").ljust(9, "0")
    offset = m.group(8)
    if offset in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6]))
        tz = timezone(sign * delta)
    try:
        ts = datetime(
            year, month, day, hour, minute, second, int(fraction[:6]), tzinfo=tz
        )
    except ValueError as exc:
        raise DecodeError(f"invalid RFC 3339 timestamp {text!r}") from exc
    return ts.astimezone(timezone.utc)


def _encode_double(value: float) -> Any:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return value


def _decode_double(raw: Any) -> float:
    if isinstance(raw, bool):
        raise DecodeError(f"expected a number, got {raw!r}")
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        if raw in _NON_FINITE:
            return _NON_FINITE[raw]
        try:
            return float(raw)
        except ValueError as exc:
            raise DecodeError(f"expected a number, got {raw!r}") from exc
    raise DecodeError(f"expected a number, got {raw!r}")


def _decode_int64(raw: Any) -> int:
    if isinstance(raw, bool):
        raise DecodeError(f"expected an int64, got {raw!r}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str):
        try:
            return int(raw)
        except ValueError as exc:
            raise DecodeError(f"expected an int64, got {raw!r}") from exc
    raise DecodeError(f"expected an int64, got {raw!r}")


def _decode_string(raw: Any) -> str:
    if not isinstance(raw, str):
        raise DecodeError(f"expected a string, got {raw!r}")
    return raw


def _field(obj: Dict[str, Any], json_name: str, proto_name: Optional[str] = None) -> Any:
    if json_name in obj:
        return obj[json_name]
    if proto_name is not None:
        return obj.get(proto_name)
    return None


def _object(raw: Any, what: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise DecodeError(f"{what} must be a JSON object, got {raw!r}")
    return raw


# --------------------------------------------------------------------------
# labels and values
# --------------------------------------------------------------------------


def _is_set(value: float) -> bool:
    # negative zero is a set value on the wire
    return bool(value) or math.copysign(1.0, value) < 0


def _label_to_dict(label: Label) -> Dict[str, Any]:
    if isinstance(label, NumericLabel):
        return {"numeric": _encode_double(label.value)}
    if isinstance(label, CategoryLabel):
        inner: Dict[str, Any] = {}
        if label.category:
            inner["category"] = label.category
        return {"scoreCategorical": {"category": inner}}
    if isinstance(label, ScoreCategoryLabel):
        inner = {}
        if label.category:
            inner["category"] = label.category
        if _is_set(label.score):
            inner["score"] = _encode_double(label.score)
        if label.numeric_sequence:
            inner["numericSequence"] = [_encode_double(v) for v in label.numeric_sequence]
        return {"scoreCategorical": {"scoreCategory": inner}}
    raise TypeError(f"not a label: {label!r}")


def _label_from_dict(raw: Any) -> Label:
    obj = _object(raw, "label")
    if "numeric" in obj:
        return NumericLabel(_decode_double(obj["numeric"]))
    sc = _field(obj, "scoreCategorical", "score_categorical")
    if sc is None:
        raise DecodeError(f"label has no recognised variant: {obj!r}")
    sc = _object(sc, "scoreCategorical")
    if "category" in sc:
        cat = _object(sc["category"], "category")
        return CategoryLabel(_decode_string(cat.get("category", "")))
    scored = _field(sc, "scoreCategory", "score_category")
    if scored is None:
        raise DecodeError(f"scoreCategorical has no recognised variant: {sc!r}")
    scored = _object(scored, "scoreCategory")
    seq = _field(scored, "numericSequence", "numeric_sequence") or []
    return ScoreCategoryLabel(
        category=_decode_string(scored.get("category", "")),
        score=_decode_double(scored.get("score", 0.0)),
        numeric_sequence=tuple(_decode_double(v) for v in seq),
    )


def _value_to_dict(value: Value) -> Dict[str, Any]:
    if isinstance(value, StringValue):
        return {"string": value.value}
    if isinstance(value, IntValue):
        return {"int": str(value.value)}
    if isinstance(value, DoubleValue):
        return {"double": _encode_double(value.value)}
    if isinstance(value, EmbeddingValue):
        emb: Dict[str, Any] = {}
        if value.vector:
            emb["vector"] = [_encode_double(v) for v in value.vector]
        if value.raw_tokens is not None:
            tokens: Dict[str, Any] = {}
            if value.raw_tokens:
                tokens["tokens"] = list(value.raw_tokens)
            emb["rawData"] = {"tokenArray": tokens}
        if value.link_to_data is not None:
            emb["linkToData"] = value.link_to_data
        return {"embedding": emb}
    raise TypeError(f"not a value: {value!r}")


def _value_from_dict(raw: Any) -> Value:
    obj = _object(raw, "value")
    if "string" in obj:
        return StringValue(_decode_string(obj["string"]))
    if "int" in obj:
        return IntValue(_decode_int64(obj["int"]))
    if "double" in obj:
        return DoubleValue(_decode_double(obj["double"]))
    if "embedding" in obj:
        emb = _object(obj["embedding"], "embedding")
        raw_tokens = None
        raw_data = _field(emb, "rawData", "raw_data")
        if raw_data is not None:
            token_array = _field(_object(raw_data, "rawData"), "tokenArray", "token_array")
            tokens = _object(token_array or {}, "tokenArray").get("tokens") or []
            raw_tokens = tuple(_decode_string(t) for t in tokens)
        link = _field(emb, "linkToData", "link_to_data")
        return EmbeddingValue(
            vector=tuple(_decode_double(v) for v in emb.get("vector") or []),
            raw_tokens=raw_tokens,
            link_to_data=_decode_string(link) if link is not None else None,
        )
    raise DecodeError(f"value has no recognised variant: {obj!r}")


def _map_to_dict(values: Mapping[str, Any], encode: Callable[[Any], Any]) -> Dict[str, Any]:
    return {key: encode(val) for key, val in values.items()}


def _map_from_dict(raw: Any, decode: Callable[[Any], Any], what: str) -> Mapping[str, Any]:
    if raw is None:
        return MappingProxyType({})
    return MappingProxyType({key: decode(val) for key, val in _object(raw, what).items()})


# --------------------------------------------------------------------------
# record
# --------------------------------------------------------------------------


def _put(out: Dict[str, Any], key: str, value: Any) -> None:
    """Set `key` unless `value` is a proto3 default."""
    if value:
        out[key] = value


def record_to_dict(record: Record) -> Dict[str, Any]:
    """Return the protobuf-JSON object for `record`."""
    out: Dict[str, Any] = {}
    _put(out, "spaceKey", record.space_key)
    _put(out, "modelId", record.model_id)
    _put(out, "predictionId", record.prediction_id)

    pred = record.prediction
    if pred is not None:
        p: Dict[str, Any] = {
            "timestamp": format_timestamp(pred.timestamp),
            "label": _label_to_dict(pred.label),
        }
        _put(p, "modelVersion", pred.model_version)
        _put(p, "features", _map_to_dict(pred.features, _value_to_dict))
        _put(p, "tags", _map_to_dict(pred.tags, _value_to_dict))
        out["prediction"] = p

    actual = record.actual
    if actual is not None:
        a: Dict[str, Any] = {
            "timestamp": format_timestamp(actual.timestamp),
            "label": _label_to_dict(actual.label),
        }
        _put(a, "tags", _map_to_dict(actual.tags, _value_to_dict))
        out["actual"] = a

    fi = record.feature_importances
    if fi is not None:
        f: Dict[str, Any] = {"timestamp": format_timestamp(fi.timestamp)}
        _put(f, "modelVersion", fi.model_version)
        _put(f, "featureImportances", _map_to_dict(fi.feature_importances, _encode_double))
        out["featureImportances"] = f

    return out


def _required(obj: Dict[str, Any], name: str, what: str) -> Any:
    value = obj.get(name)
    if value is None:
        raise DecodeError(f"{what}.{name} is missing")
    return value


def record_from_dict(raw: Any) -> Record:
    """Build a `Record` from a decoded protobuf-JSON object."""
    obj = _object(raw, "record")

    prediction = None
    p = _field(obj, "prediction")
    if p is not None:
        p = _object(p, "prediction")
        prediction = Prediction(
            timestamp=parse_timestamp(_required(p, "timestamp", "prediction")),
            label=_label_from_dict(_required(p, "label", "prediction")),
            model_version=_decode_string(_field(p, "modelVersion", "model_version") or ""),
            features=_map_from_dict(p.get("features"), _value_from_dict, "features"),
            tags=_map_from_dict(p.get("tags"), _value_from_dict, "tags"),
        )

    actual = None
    a = _field(obj, "actual")
    if a is not None:
        a = _object(a, "actual")
        actual = Actual(
            timestamp=parse_timestamp(_required(a, "timestamp", "actual")),
            label=_label_from_dict(_required(a, "label", "actual")),
            tags=_map_from_dict(a.get("tags"), _value_from_dict, "tags"),
        )

    importances = None
    f = _field(obj, "featureImportances", "feature_importances")
    if f is not None:
        f = _object(f, "featureImportances")
        importances = FeatureImportances(
            timestamp=parse_timestamp(_required(f, "timestamp", "featureImportances")),
            feature_importances=_map_from_dict(
                _field(f, "featureImportances", "feature_importances"),
                _decode_double,
                "featureImportances",
            ),
            model_version=_decode_string(_field(f, "modelVersion", "model_version") or ""),
        )

    return Record(
        space_key=_decode_string(_field(obj, "spaceKey", "space_key") or ""),
        model_id=_decode_string(_field(obj, "modelId", "model_id") or ""),
        prediction_id=_decode_string(_field(obj, "predictionId", "prediction_id") or ""),
        prediction=prediction,
        actual=actual,
        feature_importances=importances,
    )


def encode_record(record: Record) -> bytes:
    """Serialize `record` to the request body bytes."""
    return json.dumps(
        record_to_dict(record), separators=(",", ":"), allow_nan=False
    ).encode("utf-8")


def decode_record(data: bytes) -> Record:
    """Parse request body bytes back into a `Record`."""
    try:
        raw = json.loads(data)
    except ValueError as exc:
        raise DecodeError(f"record is not valid JSON: {exc}") from exc
    return record_from_dict(raw)


__all__ = [
    "as_utc",
    "format_timestamp",
    "parse_timestamp",
    "record_to_dict",
    "record_from_dict",
    "encode_record",
    "decode_record",
]

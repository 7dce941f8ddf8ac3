"""Client library for logging model predictions, actuals, feature importances
and embeddings to the Arize ingestion API.

Usage:
    from arize_log import Embedding, new_client

    client = new_client("space-key", "api-key")
    resp = client.log(
        "fraud-model",
        "txn-42",
        model_version="v3",
        features={"amount": 12.5, "country": "FR"},
        prediction=0.91,
        actual=1.0,
        embedding_features={"desc": Embedding(vector=[0.1, 0.2], data=["card"])},
    )
"""

# pylint: disable=wrong-import-position

from __future__ import annotations

import logging

__version__ = "0.1.0"


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


from .builder import build_record, utc_now
from .client import Client, new_client
from .codec import decode_record, encode_record
from .config import DEFAULT_CONFIG, Config
from .errors import (
    ArizeLogError,
    DecodeError,
    EmptyVectorError,
    LabelMismatchError,
    RequestConstructionError,
    RequestExecutionError,
    TransportError,
    UnsupportedTypeError,
    ValidationError,
)
from .models import Embedding, Record, Response, ScoreCategorical


# package exports
__all__ = [
    "Config",
    "DEFAULT_CONFIG",
    "Client",
    "new_client",
    "build_record",
    "utc_now",
    "encode_record",
    "decode_record",
    "Embedding",
    "ScoreCategorical",
    "Record",
    "Response",
    "ArizeLogError",
    "ValidationError",
    "UnsupportedTypeError",
    "LabelMismatchError",
    "EmptyVectorError",
    "TransportError",
    "RequestConstructionError",
    "RequestExecutionError",
    "DecodeError",
    "__version__",
]

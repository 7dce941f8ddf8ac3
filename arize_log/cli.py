"""Command line runner that logs a single record.

Example:
    arize-log --model-id fraud --prediction-id txn-1 --prediction 0.9 \
        --actual 1 --feature amount=12.5 --feature country=FR --dry-run

Scalar values given on the command line are read as int, then float, then
``true``/``false``, falling back to a plain string.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from .builder import build_record
from .client import new_client
from .codec import record_to_dict
from .config import DEFAULT_CONFIG
from .errors import ArizeLogError


logger = logging.getLogger(__name__)


def coerce_scalar(text: str) -> Any:
    """Read a command line value as the most specific scalar it spells."""
    for convert in (int, float):
        try:
            return convert(text)
        except ValueError:
            pass
    if text.lower() in ("true", "false"):
        return text.lower() == "true"
    return text


def parse_pairs(pairs: Optional[List[str]], option: str) -> Dict[str, Any]:
    """Turn repeated ``key=value`` options into a dict of coerced scalars."""
    out: Dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"{option} expects key=value, got {pair!r}")
        out[key] = coerce_scalar(value)
    return out


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Log one prediction record to Arize")
    parser.add_argument("--model-id", required=True, help="Model identifier")
    parser.add_argument("--prediction-id", required=True, help="Prediction identifier")
    parser.add_argument("--model-version", default=None, help="Model version")
    parser.add_argument("--prediction", default=None, help="Predicted label")
    parser.add_argument("--actual", default=None, help="Actual label")
    parser.add_argument(
        "--feature", action="append", metavar="KEY=VALUE", help="Feature (repeatable)"
    )
    parser.add_argument("--tag", action="append", metavar="KEY=VALUE", help="Tag (repeatable)")
    parser.add_argument(
        "--shap", action="append", metavar="KEY=VALUE", help="Feature importance (repeatable)"
    )
    parser.add_argument(
        "--timestamp", type=float, default=None, help="Unix epoch seconds (default: now)"
    )
    parser.add_argument(
        "--space-key",
        default=os.getenv("ARIZE_SPACE_KEY", ""),
        help="Space key (default: $ARIZE_SPACE_KEY)",
    )
    parser.add_argument(
        "--api-key",
        default=os.getenv("ARIZE_API_KEY", ""),
        help="API key (default: $ARIZE_API_KEY)",
    )
    parser.add_argument("--host", default=None, help="API host (default: $ARIZE_HOST)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the encoded record instead of sending it",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        record = build_record(
            args.space_key,
            args.model_id,
            args.prediction_id,
            model_version=args.model_version,
            features=parse_pairs(args.feature, "--feature"),
            tags=parse_pairs(args.tag, "--tag"),
            shap_values=parse_pairs(args.shap, "--shap"),
            prediction=coerce_scalar(args.prediction) if args.prediction is not None else None,
            actual=coerce_scalar(args.actual) if args.actual is not None else None,
            timestamp=args.timestamp,
        )
    except (ArizeLogError, ValueError, OverflowError) as exc:
        logger.error("Invalid record: %s", exc)
        return 2

    if args.dry_run:
        print(json.dumps(record_to_dict(record), indent=2, sort_keys=True))
        return 0

    if not args.space_key or not args.api_key:
        logger.error("Both --space-key and --api-key (or ARIZE_* variables) are required")
        return 2

    config = DEFAULT_CONFIG if args.host is None else replace(DEFAULT_CONFIG, host=args.host)
    with new_client(args.space_key, args.api_key, config=config) as client:
        try:
            resp = client.send(record)
        except ArizeLogError as exc:
            logger.error("Failed to send record: %s", exc)
            return 2

    logger.info("Arize responded %s", resp.status_code)
    print(resp.body)
    return 0 if resp.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
